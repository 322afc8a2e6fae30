"""Task data model for taskkeeper."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from .utils.datetime import parse_date, to_iso_date


class TaskStatus(Enum):
    """Task status states."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    POSTPONED = "Postponed"
    COMPLETED = "Completed"
    DELAYED = "Delayed"

    @classmethod
    def from_text(cls, text: str) -> "TaskStatus":
        """Parse a status from its name ("IN_PROGRESS") or label ("in progress")."""
        if isinstance(text, cls):
            return text
        key = str(text).strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown task status: {text!r}") from None


@dataclass
class Task:
    """A unit of work tracked by the store.

    ``category`` and ``priority`` hold entity names, not objects. The
    ``id`` is internal and never persisted; titles are the external key.
    """

    title: str
    description: str = ""
    category: str = ""
    priority: str = "Default"
    deadline: Optional[date] = None
    status: TaskStatus = TaskStatus.OPEN
    id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def is_overdue(self, today: date) -> bool:
        """Deadline strictly before ``today`` and not completed."""
        return (
            self.deadline is not None
            and self.deadline < today
            and not self.is_completed
        )

    def mark_delayed_if_overdue(self, today: date) -> bool:
        """Apply the automatic DELAYED transition. Returns True if it fired."""
        if self.is_overdue(today) and self.status != TaskStatus.DELAYED:
            self.status = TaskStatus.DELAYED
            return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Convert the task to its persisted record."""
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "deadline": to_iso_date(self.deadline),
            "status": self.status.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create a Task from a persisted record.

        Raises:
            ValueError: If the title is missing or a field cannot be parsed
        """
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValueError(f"Task record without title: {data!r}")

        return cls(
            title=title.strip(),
            description=data.get("description") or "",
            category=data.get("category") or "",
            priority=data.get("priority") or "Default",
            deadline=parse_date(data.get("deadline")),
            status=TaskStatus.from_text(data.get("status") or "OPEN"),
        )
