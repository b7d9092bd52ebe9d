"""Command line entry point, meant to be invoked from crontab every minute.

    * * * * * cd /srv/app && cronhound run schedule.py >> cron.log 2>&1
"""

from __future__ import annotations

import argparse
import json
import logging
import runpy
import sys
from pathlib import Path
from typing import Sequence

import pytz

from .env import load_env
from .errors import ConfigurationError
from .scheduler import Scheduler

LOG = logging.getLogger("cronhound.cli")


def load_scheduler(path: Path) -> Scheduler:
    """Execute a schedule file and return the scheduler it defines.

    The file must expose a module-level ``scheduler`` or a ``build_scheduler()``
    factory.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Schedule file not found: {path}")
    namespace = runpy.run_path(str(path), run_name="cronhound_schedule")
    scheduler = namespace.get("scheduler")
    if scheduler is None and callable(namespace.get("build_scheduler")):
        scheduler = namespace["build_scheduler"]()
    if not isinstance(scheduler, Scheduler):
        raise ConfigurationError(f"{path} must define 'scheduler' or 'build_scheduler()' returning a Scheduler")
    return scheduler


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cronhound", description="Lock-aware task dispatch for cron invocations")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default INFO)")
    parser.add_argument("--timezone", default=None, help="Timezone for schedule evaluation (overrides the file)")
    sub = parser.add_subparsers(dest="command", required=True)
    run = sub.add_parser("run", help="Dispatch every task once")
    run.add_argument("schedule_file", type=Path, help="Python file defining the scheduler")
    settings = sub.add_parser("settings", help="Print the task settings as JSON and exit")
    settings.add_argument("schedule_file", type=Path, help="Python file defining the scheduler")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), format="%(message)s")
    load_env(args.schedule_file.resolve().parent)
    try:
        scheduler = load_scheduler(args.schedule_file)
        if args.timezone:
            scheduler.set_timezone(args.timezone)
    except pytz.UnknownTimeZoneError as exc:
        LOG.error("Unknown timezone: %s", exc)
        return 1
    except Exception as exc:
        LOG.error("Unable to load schedule %s: %s", args.schedule_file, exc)
        return 1

    if args.command == "settings":
        print(json.dumps(scheduler.get_tasks_settings(), indent=2))
        return 0

    scheduler.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
