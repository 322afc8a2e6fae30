"""Tests for the command-line interface."""

import json
from datetime import date, timedelta

import pytest
from click.testing import CliRunner

from taskkeeper.cli import main


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def run(data_dir):
    runner = CliRunner()

    def invoke(*args, input=None):
        return runner.invoke(main, ["--data-dir", str(data_dir), *args], input=input)

    return invoke


def read_tasks(data_dir):
    return json.loads((data_dir / "tasks.json").read_text(encoding="utf-8"))


@pytest.fixture
def seeded(run):
    assert run("category", "add", "Work").exit_code == 0
    assert run("priority", "add", "High").exit_code == 0
    return run


class TestTaskCommands:

    def test_add_and_list(self, seeded, data_dir):
        due = (date.today() + timedelta(days=2)).isoformat()

        result = seeded("task", "add", "Report", "-c", "Work", "-p", "High", "-d", due)

        assert result.exit_code == 0, result.output
        assert "Added task: Report" in result.output
        assert read_tasks(data_dir)[0]["deadline"] == due

        listing = seeded("task", "list")
        assert listing.exit_code == 0
        assert "Report" in listing.output

    def test_add_with_past_deadline_reports_delayed(self, seeded, data_dir):
        past = (date.today() - timedelta(days=1)).isoformat()

        result = seeded("task", "add", "Old", "-c", "Work", "-d", past)

        assert result.exit_code == 0
        assert "Delayed" in result.output
        assert read_tasks(data_dir)[0]["status"] == "DELAYED"

    def test_add_unknown_category_fails_without_saving(self, seeded, data_dir):
        result = seeded("task", "add", "Report", "-c", "Home")

        assert result.exit_code == 1
        assert "Category does not exist" in result.output
        assert read_tasks(data_dir) == []

    def test_add_requires_category(self, seeded):
        result = seeded("task", "add", "Report")

        assert result.exit_code == 1
        assert "category is required" in result.output

    def test_bad_date_is_usage_error(self, seeded):
        result = seeded("task", "add", "Report", "-c", "Work", "-d", "tomorrow")

        assert result.exit_code == 2

    def test_status_and_search(self, seeded, data_dir):
        for title in ("Email", "Shopping", "Meeting"):
            seeded("task", "add", title, "-c", "Work")

        result = seeded("task", "status", "email", "in_progress")
        assert result.exit_code == 0, result.output
        statuses = {t["title"]: t["status"] for t in read_tasks(data_dir)}
        assert statuses["Email"] == "IN_PROGRESS"

        search = seeded("task", "search", "e")
        assert "Found 2 task(s)" in search.output
        assert "Shopping" not in search.output

    def test_update_and_remove(self, seeded, data_dir):
        seeded("task", "add", "Report", "-c", "Work")

        result = seeded("task", "update", "Report", "--title", "Summary", "-p", "High")
        assert result.exit_code == 0, result.output
        assert read_tasks(data_dir)[0]["title"] == "Summary"
        assert read_tasks(data_dir)[0]["priority"] == "High"

        result = seeded("task", "remove", "Summary", "--yes")
        assert result.exit_code == 0
        assert read_tasks(data_dir) == []

    def test_remove_asks_for_confirmation(self, seeded, data_dir):
        seeded("task", "add", "Report", "-c", "Work")

        result = seeded("task", "remove", "Report", input="n\n")

        assert result.exit_code == 1
        assert len(read_tasks(data_dir)) == 1

    def test_remove_unknown_task(self, seeded):
        result = seeded("task", "remove", "Ghost", "--yes")

        assert result.exit_code == 1
        assert "Task does not exist" in result.output


class TestCategoryAndPriorityCommands:

    def test_remove_category_cascades(self, seeded, data_dir):
        seeded("category", "add", "Home")
        seeded("task", "add", "Report", "-c", "Work")
        seeded("task", "add", "Laundry", "-c", "Home")

        result = seeded("category", "remove", "work", "--yes")

        assert result.exit_code == 0, result.output
        assert "1 tasks deleted" in result.output
        assert [t["title"] for t in read_tasks(data_dir)] == ["Laundry"]

    def test_rename_category(self, seeded, data_dir):
        seeded("task", "add", "Report", "-c", "Work")

        result = seeded("category", "rename", "Work", "Job")

        assert result.exit_code == 0
        assert read_tasks(data_dir)[0]["category"] == "Job"
        assert "Job (1 tasks)" in seeded("category", "list").output

    def test_remove_priority_moves_tasks_to_default(self, seeded, data_dir):
        seeded("task", "add", "Report", "-c", "Work", "-p", "High")

        result = seeded("priority", "remove", "High")

        assert result.exit_code == 0
        assert read_tasks(data_dir)[0]["priority"] == "Default"

    def test_default_priority_is_protected(self, seeded):
        assert seeded("priority", "remove", "Default").exit_code == 1
        result = seeded("priority", "rename", "Default", "Normal")
        assert result.exit_code == 1
        assert "Cannot rename" in result.output


class TestReminderCommands:

    def test_reminder_lifecycle(self, seeded, data_dir):
        due = date.today() + timedelta(days=10)
        seeded("task", "add", "Report", "-c", "Work", "-d", due.isoformat())

        result = seeded("reminder", "add", "Report", "--kind", "week")
        assert result.exit_code == 0, result.output
        assert (due - timedelta(weeks=1)).isoformat() in result.output

        listing = seeded("reminder", "list")
        assert "1 Report" in listing.output

        custom = (date.today() + timedelta(days=1)).isoformat()
        result = seeded("reminder", "update", "1", "--kind", "custom", "--date", custom)
        assert result.exit_code == 0, result.output
        reminders = json.loads((data_dir / "reminders.json").read_text(encoding="utf-8"))
        assert reminders == [{"task": "Report", "kind": "CUSTOM_DATE", "custom_date": custom}]

        due_output = seeded("reminder", "due", "--date", custom)
        assert "Report" in due_output.output

        assert seeded("reminder", "remove", "1").exit_code == 0
        assert "No reminders found" in seeded("reminder", "list").output

    def test_reminder_in_past_fails(self, seeded):
        seeded("task", "add", "Report", "-c", "Work",
               "-d", (date.today() + timedelta(days=2)).isoformat())

        result = seeded("reminder", "add", "Report", "--kind", "month")

        assert result.exit_code == 1
        assert "in the past" in result.output

    def test_completing_task_drops_reminders(self, seeded, data_dir):
        seeded("task", "add", "Report", "-c", "Work",
               "-d", (date.today() + timedelta(days=5)).isoformat())
        seeded("reminder", "add", "Report")

        seeded("task", "status", "Report", "completed")

        assert json.loads((data_dir / "reminders.json").read_text(encoding="utf-8")) == []
        result = seeded("reminder", "add", "Report")
        assert result.exit_code == 1
        assert "completed task" in result.output

    def test_unknown_reminder_number(self, seeded):
        result = seeded("reminder", "remove", "3")

        assert result.exit_code == 1
        assert "No reminder number 3" in result.output


class TestOverviewCommands:

    def test_dashboard(self, seeded):
        seeded("task", "add", "Old", "-c", "Work",
               "-d", (date.today() - timedelta(days=1)).isoformat())
        seeded("task", "add", "Soon", "-c", "Work",
               "-d", (date.today() + timedelta(days=1)).isoformat())
        seeded("reminder", "add", "Soon")

        result = seeded("dashboard")

        assert result.exit_code == 0, result.output
        assert "Total: 2" in result.output
        assert "Delayed: 1" in result.output
        assert "Reminders for today" in result.output

    def test_backup(self, seeded, tmp_path):
        result = seeded("backup")

        assert result.exit_code == 0
        assert "Backup written to" in result.output
        assert any((tmp_path / "data" / "backups").iterdir())
