"""Launch decision rules for one task on one invocation.

``decide`` is pure: it looks at the schedule, the runtime options and the
last launch record and returns what the wrapper should do. Mode validation
and the in-window check happen in ``TaskWrapper.dispatch`` before the last
launch is read, so ``decide`` covers everything after that point.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from cronhound.storage.db.models import LaunchRecord
from cronhound.timeutils import ensure_aware, to_local

from .constants import Mode
from .matcher import same_window
from .options import TaskOptions
from .schedule import Schedule


class Decision(Enum):
    """Outcome of the dispatch rules"""
    NOT_IN_WINDOW = "not_in_window"
    FIRST_LAUNCH = "first_launch"
    SAME_WINDOW = "same_window"
    EVERY_PENDING = "every_pending"
    DELAY_PENDING = "delay_pending"
    LAUNCH = "launch"
    STALE_LOCK = "stale_lock"
    DELAY_RUNNING = "delay_running"
    OVERLAP_PREVENTED = "overlap_prevented"
    SINGLE_OVERLAP = "single_overlap"
    EVERY_OVERLAP = "every_overlap"

    @property
    def launches(self) -> bool:
        return self in _LAUNCHING

    @property
    def resets_lock(self) -> bool:
        return self in _RESETTING


_LAUNCHING = {
    Decision.FIRST_LAUNCH,
    Decision.LAUNCH,
    Decision.STALE_LOCK,
    Decision.SINGLE_OVERLAP,
    Decision.EVERY_OVERLAP,
}
_RESETTING = {Decision.STALE_LOCK, Decision.SINGLE_OVERLAP, Decision.EVERY_OVERLAP}


@dataclass(frozen=True)
class Verdict:
    decision: Decision
    message: str


def elapsed_minutes(later: datetime, earlier: datetime) -> int:
    """Whole minutes between two instants, always non-negative"""
    seconds = abs((ensure_aware(later) - ensure_aware(earlier)).total_seconds())
    return int(seconds // 60)


def decide(
    now: datetime,
    schedule: Schedule,
    options: TaskOptions,
    last_launch: Optional[LaunchRecord],
) -> Verdict:
    mode = schedule.mode
    period = schedule.period_minutes

    if last_launch is None:
        return Verdict(Decision.FIRST_LAUNCH, "Hasn't started before or has been changed")

    last_start = to_local(last_launch.start_time, now.tzinfo)

    if mode == Mode.SINGLE and same_window(schedule, now, last_start):
        delay = elapsed_minutes(now, last_start)
        return Verdict(
            Decision.SAME_WINDOW,
            f"Last launch was started in the current time interval ({delay} min ago). Wait for a new time interval",
        )

    since_start = elapsed_minutes(now, last_start)
    if mode == Mode.EVERY and since_start < period:
        return Verdict(
            Decision.EVERY_PENDING,
            f"Less than the specified delay has passed since the start of the previous launch "
            f"({since_start}/{period} min). Wait {period - since_start} min.",
        )

    if mode == Mode.DELAY and last_launch.end_time is not None:
        since_end = elapsed_minutes(now, last_launch.end_time)
        if since_end < period:
            return Verdict(
                Decision.DELAY_PENDING,
                f"Less than the specified delay has passed since the end of the previous launch "
                f"({since_end}/{period} min). Wait {period - since_end} min.",
            )

    if not last_launch.is_working:
        return Verdict(Decision.LAUNCH, "Previous launch is completed")

    timeout = options.lock_reset_timeout
    if since_start >= timeout:
        return Verdict(
            Decision.STALE_LOCK,
            f"The previous launch is still running (already {since_start} min), which is bigger than "
            f"the reset timeout ({timeout} min). Reset lock",
        )

    if mode == Mode.DELAY:
        return Verdict(
            Decision.DELAY_RUNNING,
            f"The previous launch is still running (already {since_start} min). DELAY mode can't overlap. "
            f"Waiting for task completion or lock release ({timeout - since_start} min)",
        )

    if options.prevent_overlapping:
        return Verdict(
            Decision.OVERLAP_PREVENTED,
            f"The previous launch is still running (already {since_start} min), the reset timeout is "
            f"{timeout} min and overlap is not allowed. Keep working",
        )

    if mode == Mode.SINGLE:
        return Verdict(
            Decision.SINGLE_OVERLAP,
            "Overlap allowed. Was started in the previous time interval. Reset lock and start overlapping",
        )

    return Verdict(
        Decision.EVERY_OVERLAP,
        f"Overlap allowed. More than the set delay ({period} min) has passed since the start of the last "
        f"launch ({since_start} min). Reset lock and start overlapping",
    )
