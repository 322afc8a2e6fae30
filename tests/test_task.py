"""Tests for the task, category, and reminder models."""

import pytest
from datetime import date, timedelta

from taskkeeper.category import Category, Priority
from taskkeeper.errors import ValidationError
from taskkeeper.reminder import ReminderKind, compute_reminder_date
from taskkeeper.task import Task, TaskStatus
from taskkeeper.utils.datetime import parse_date, subtract_months


class TestTask:
    """Test Task model functionality."""

    def test_task_creation(self):
        """New tasks start open with a fresh internal id."""
        task = Task(title="Report", category="Work")

        assert task.status == TaskStatus.OPEN
        assert task.priority == "Default"
        assert task.deadline is None
        assert task.id != Task(title="Report").id

    def test_overdue_detection(self):
        today = date(2025, 6, 15)
        task = Task(title="Old", deadline=today - timedelta(days=1))

        assert task.is_overdue(today)
        assert not Task(title="Due today", deadline=today).is_overdue(today)
        assert not Task(title="No deadline").is_overdue(today)

        task.status = TaskStatus.COMPLETED
        assert not task.is_overdue(today)

    def test_mark_delayed_if_overdue(self):
        today = date(2025, 6, 15)
        task = Task(title="Old", deadline=today - timedelta(days=3))

        assert task.mark_delayed_if_overdue(today) is True
        assert task.status == TaskStatus.DELAYED
        # Already delayed: nothing changes
        assert task.mark_delayed_if_overdue(today) is False

    def test_to_dict_uses_enum_names_and_iso_dates(self):
        task = Task(
            title="Report",
            description="Quarterly",
            category="Work",
            priority="High",
            deadline=date(2025, 7, 1),
            status=TaskStatus.IN_PROGRESS,
        )

        assert task.to_dict() == {
            "title": "Report",
            "description": "Quarterly",
            "category": "Work",
            "priority": "High",
            "deadline": "2025-07-01",
            "status": "IN_PROGRESS",
        }

    def test_from_dict_defaults(self):
        task = Task.from_dict({"title": "Bare", "category": "Work"})

        assert task.status == TaskStatus.OPEN
        assert task.deadline is None
        assert task.description == ""
        assert task.priority == "Default"

    def test_from_dict_trims_title(self):
        assert Task.from_dict({"title": "  Report ", "category": "Work"}).title == "Report"

    def test_from_dict_rejects_missing_title(self):
        with pytest.raises(ValueError):
            Task.from_dict({"description": "no title"})

    def test_from_dict_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            Task.from_dict({"title": "X", "status": "FINISHED"})


class TestTaskStatus:

    @pytest.mark.parametrize("text,expected", [
        ("OPEN", TaskStatus.OPEN),
        ("in_progress", TaskStatus.IN_PROGRESS),
        ("In Progress", TaskStatus.IN_PROGRESS),
        ("delayed", TaskStatus.DELAYED),
    ])
    def test_from_text(self, text, expected):
        assert TaskStatus.from_text(text) == expected


class TestLabels:

    def test_matches_is_case_insensitive(self):
        assert Category("Work").matches("work")
        assert Category("Work").matches("  WORK ")
        assert not Category("Work").matches("Home")

    def test_default_priority_flag(self):
        assert Priority("Default").is_default
        assert Priority("default").is_default
        assert not Priority("High").is_default

    def test_from_dict_requires_name(self):
        with pytest.raises(ValueError):
            Category.from_dict({"name": "  "})
        assert Priority.from_dict({"name": "High"}) == Priority("High")


class TestReminderDates:
    deadline = date(2025, 3, 31)

    def test_offsets(self):
        assert compute_reminder_date(ReminderKind.ONE_DAY_BEFORE, self.deadline) == date(2025, 3, 30)
        assert compute_reminder_date(ReminderKind.ONE_WEEK_BEFORE, self.deadline) == date(2025, 3, 24)

    def test_month_offset_clamps_to_month_end(self):
        assert compute_reminder_date(ReminderKind.ONE_MONTH_BEFORE, self.deadline) == date(2025, 2, 28)

    def test_custom_date(self):
        custom = date(2025, 1, 2)
        assert compute_reminder_date(ReminderKind.CUSTOM_DATE, self.deadline, custom) == custom
        assert compute_reminder_date(ReminderKind.CUSTOM_DATE, None, custom) == custom

    def test_custom_without_date_is_invalid(self):
        with pytest.raises(ValidationError):
            compute_reminder_date(ReminderKind.CUSTOM_DATE, self.deadline)

    def test_offset_without_deadline_is_invalid(self):
        with pytest.raises(ValidationError):
            compute_reminder_date(ReminderKind.ONE_WEEK_BEFORE, None)

    def test_kind_from_text(self):
        assert ReminderKind.from_text("ONE_MONTH_BEFORE") == ReminderKind.ONE_MONTH_BEFORE
        assert ReminderKind.from_text("custom date") == ReminderKind.CUSTOM_DATE
        with pytest.raises(ValueError):
            ReminderKind.from_text("yearly")


class TestDateUtilities:

    def test_subtract_months_across_year(self):
        assert subtract_months(date(2025, 1, 15), 1) == date(2024, 12, 15)
        assert subtract_months(date(2024, 3, 30), 1) == date(2024, 2, 29)

    def test_parse_date(self):
        assert parse_date("2025-06-15") == date(2025, 6, 15)
        assert parse_date("15/06/2025", "%d/%m/%Y") == date(2025, 6, 15)
        assert parse_date("  ") is None
        assert parse_date(None) is None
        with pytest.raises(ValueError):
            parse_date("yesterday")
