"""Exceptions raised by the taskkeeper core and storage layers."""

from typing import Any, List, Optional


class TaskKeeperError(Exception):
    """Base class for all taskkeeper errors."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(message)


class ValidationError(TaskKeeperError):
    """Malformed or conflicting input: blank or duplicate names, unknown
    references, dates in the past."""

    def __init__(self, message: str, field_name: Optional[str] = None, value: Any = None,
                 suggestions: Optional[List[str]] = None):
        self.field_name = field_name
        self.value = value
        super().__init__(message, suggestions)


class NotFoundError(TaskKeeperError):
    """Operation on an entity that the store does not track."""


class StateError(TaskKeeperError):
    """Operation disallowed by the current state of an entity."""


class StorageError(TaskKeeperError):
    """Persisted data could not be read, parsed, or written."""
