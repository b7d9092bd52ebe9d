"""Cron-like task dispatch: schedules, launch decisions and the task registry"""

from .constants import DayOfWeek, Mode, Month
from .schedule import Schedule, ScheduleBuilder, TimeWindow
from .matcher import WindowIdentity, in_window, same_window, window_identity
from .options import TaskOptions
from .dispatcher import Decision, Verdict, decide
from .tasks import AbstractTask, BunchTask, CallableTask, CommandTask, FileTask, JobTask
from .persistence import JsonLaunchHistory
from .wrapper import TaskWrapper
from .scheduler import Scheduler

__all__ = [
    'Scheduler',
    'TaskWrapper',
    'Schedule',
    'ScheduleBuilder',
    'TimeWindow',
    'TaskOptions',
    'Mode',
    'DayOfWeek',
    'Month',
    'WindowIdentity',
    'window_identity',
    'in_window',
    'same_window',
    'Decision',
    'Verdict',
    'decide',
    'AbstractTask',
    'CommandTask',
    'CallableTask',
    'FileTask',
    'JobTask',
    'BunchTask',
    'JsonLaunchHistory',
]
