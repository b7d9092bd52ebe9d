"""Debug / warning / error channels on top of stdlib logging."""
from __future__ import annotations

import logging

from central_logging import writer as log_writer

from .config import SchedulerConfig

LOG = logging.getLogger("cronhound")


class TaskLogger:
    """Routes scheduler messages according to the config switches.

    Disabled channels drop the message. The configured logger (or the
    ``cronhound`` logger) receives everything else at the configured level,
    and with ``audit_log`` the message is mirrored to the JSONL audit file.
    """

    def __init__(self, config: SchedulerConfig):
        self.config = config

    @property
    def logger(self) -> logging.Logger:
        return self.config.logger or LOG

    def debug(self, message: str, task_id: int | None = None) -> None:
        if not self.config.debug_logging:
            return
        self._emit("debug", self.config.debug_log_level, message, task_id)

    def warning(self, message: str, task_id: int | None = None) -> None:
        if not self.config.error_logging:
            return
        self._emit("warning", logging.WARNING, message, task_id)

    def error(self, message: str, task_id: int | None = None) -> None:
        if not self.config.error_logging:
            return
        self._emit("error", self.config.error_log_level, message, task_id)

    def _emit(self, channel: str, level: int, message: str, task_id: int | None) -> None:
        self.logger.log(level, message)
        if self.config.audit_log:
            log_writer.write_scheduler({"channel": channel, "task_id": task_id, "message": message})
