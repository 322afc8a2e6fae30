"""taskkeeper - a personal task tracker with categories, priorities, and reminders."""

__version__ = "0.1.0"
__author__ = "taskkeeper contributors"

from .category import DEFAULT_PRIORITY_NAME, Category, Priority
from .errors import NotFoundError, StateError, StorageError, TaskKeeperError, ValidationError
from .reminder import Reminder, ReminderKind
from .store import TaskStore
from .task import Task, TaskStatus

__all__ = [
    "Task",
    "TaskStatus",
    "Category",
    "Priority",
    "DEFAULT_PRIORITY_NAME",
    "Reminder",
    "ReminderKind",
    "TaskStore",
    "TaskKeeperError",
    "ValidationError",
    "NotFoundError",
    "StateError",
    "StorageError",
    "__version__",
]
