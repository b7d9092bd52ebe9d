"""Per-task runtime options, independent of the schedule"""

from dataclasses import dataclass
from typing import Any, Dict

from cronhound.errors import ConfigurationError, ErrorKind


@dataclass(frozen=True)
class TaskOptions:
    """Overlap, lock timeout and retry settings for one task.

    ``lock_reset_timeout`` is in minutes, ``try_delay`` is the sleep in
    seconds between two attempts of the same launch.
    """

    prevent_overlapping: bool = False
    lock_reset_timeout: int = 360
    tries: int = 1
    try_delay: int = 0

    def __post_init__(self) -> None:
        if self.lock_reset_timeout < 0:
            raise ConfigurationError(
                "The number of minutes in the locking reset timeout must be greater than or equal to zero.",
                ErrorKind.INVALID_RANGE,
            )
        if self.tries <= 0:
            raise ConfigurationError("The number of attempts must be greater than zero.", ErrorKind.INVALID_RANGE)
        if self.try_delay < 0:
            raise ConfigurationError(
                "The delay before new try must be greater than or equal to zero.", ErrorKind.INVALID_RANGE
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prevent_overlapping": self.prevent_overlapping,
            "lock_reset_timeout": self.lock_reset_timeout,
            "tries": self.tries,
            "try_delay": self.try_delay,
        }
