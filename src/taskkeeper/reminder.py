"""Reminder data model and reminder-date computation."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from .errors import ValidationError
from .task import Task
from .utils.datetime import subtract_months, to_iso_date


class ReminderKind(Enum):
    """When a reminder fires relative to the task deadline."""
    ONE_DAY_BEFORE = "1 day before"
    ONE_WEEK_BEFORE = "1 week before"
    ONE_MONTH_BEFORE = "1 month before"
    CUSTOM_DATE = "custom date"

    @classmethod
    def from_text(cls, text: str) -> "ReminderKind":
        if isinstance(text, cls):
            return text
        key = str(text).strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown reminder kind: {text!r}") from None


def compute_reminder_date(kind: ReminderKind, deadline: Optional[date],
                          custom_date: Optional[date] = None) -> date:
    """Work out the date a reminder fires on.

    Raises:
        ValidationError: If the kind needs a deadline the task lacks, or a
            custom reminder has no date
    """
    if kind == ReminderKind.CUSTOM_DATE:
        if custom_date is None:
            raise ValidationError(
                "A custom reminder needs a date.", field_name="custom_date"
            )
        return custom_date

    if deadline is None:
        raise ValidationError(
            f"Reminder '{kind.value}' needs a task deadline.",
            field_name="kind",
            value=kind,
            suggestions=["Set a deadline on the task", "Use a custom date reminder"],
        )
    if kind == ReminderKind.ONE_DAY_BEFORE:
        return deadline - timedelta(days=1)
    if kind == ReminderKind.ONE_WEEK_BEFORE:
        return deadline - timedelta(weeks=1)
    if kind == ReminderKind.ONE_MONTH_BEFORE:
        return subtract_months(deadline, 1)
    raise ValidationError(f"Unknown reminder kind: {kind!r}", field_name="kind", value=kind)


@dataclass
class Reminder:
    """A notice tied to a task.

    ``task`` is a back-reference; the store owns the task and drops the
    reminder whenever the task goes away.
    """

    task: Task
    kind: ReminderKind
    custom_date: Optional[date] = None
    id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def reminder_date(self) -> date:
        return compute_reminder_date(self.kind, self.task.deadline, self.custom_date)

    def to_dict(self) -> Dict[str, Any]:
        data = {"task": self.task.title, "kind": self.kind.name}
        if self.kind == ReminderKind.CUSTOM_DATE:
            data["custom_date"] = to_iso_date(self.custom_date)
        return data
