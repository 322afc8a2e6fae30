"""In-memory task store.

The store owns tasks, categories, priorities, and reminders and keeps
them consistent:

- every task references an existing category and priority by name
- a "Default" priority always exists and is protected
- reminders never outlive their task and never attach to a completed task
- tasks whose deadline has passed become DELAYED unless completed

Every public method runs under one re-entrant lock, so a collaborator
polling reminders from another thread is serialised against mutations.
Rejected operations raise before touching any state.
"""

import logging
import threading
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from .category import DEFAULT_PRIORITY_NAME, Category, Priority
from .errors import NotFoundError, StateError, StorageError, ValidationError
from .reminder import Reminder, ReminderKind, compute_reminder_date
from .task import Task, TaskStatus
from .utils.datetime import parse_date, today

logger = logging.getLogger(__name__)

Label = TypeVar("Label", bound=Category)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _find_label(labels: Iterable[Label], name: Optional[str]) -> Optional[Label]:
    if _blank(name):
        return None
    for label in labels:
        if label.matches(name):
            return label
    return None


def _contains(items: Iterable[Any], item: Any) -> bool:
    return any(existing is item for existing in items)


class TaskStore:
    """Entity store for tasks, categories, priorities, and reminders."""

    def __init__(self, clock: Callable[[], date] = today):
        """
        Args:
            clock: Returns "today"; injectable so tests can pin the date.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._tasks: Dict[str, Task] = {}
        self._categories: List[Category] = []
        self._priorities: List[Priority] = []
        self._reminders: Dict[str, Reminder] = {}
        self.enforce_invariants()

    # ---- read access ----

    @property
    def lock(self) -> threading.RLock:
        """The exclusion boundary collaborators can hold across several calls."""
        return self._lock

    def today(self) -> date:
        return self._clock()

    @property
    def tasks(self) -> List[Task]:
        with self._lock:
            return list(self._tasks.values())

    @property
    def categories(self) -> List[Category]:
        with self._lock:
            return list(self._categories)

    @property
    def priorities(self) -> List[Priority]:
        with self._lock:
            return list(self._priorities)

    @property
    def reminders(self) -> List[Reminder]:
        with self._lock:
            return list(self._reminders.values())

    def get_task(self, title: str) -> Task:
        with self._lock:
            task = self._find_task(title)
            if task is None:
                raise NotFoundError(f"Task does not exist: {title}")
            return task

    def get_category(self, name: str) -> Category:
        with self._lock:
            category = _find_label(self._categories, name)
            if category is None:
                raise NotFoundError(f"Category does not exist: {name}")
            return category

    def get_priority(self, name: str) -> Priority:
        with self._lock:
            priority = _find_label(self._priorities, name)
            if priority is None:
                raise NotFoundError(f"Priority does not exist: {name}")
            return priority

    def reminders_for_task(self, task: Task) -> List[Reminder]:
        with self._lock:
            return [r for r in self._reminders.values() if r.task is task]

    # ---- internal helpers ----

    def _find_task(self, title: Optional[str]) -> Optional[Task]:
        if _blank(title):
            return None
        wanted = title.strip().lower()
        for task in self._tasks.values():
            if task.title.strip().lower() == wanted:
                return task
        return None

    def _require_task(self, task: Optional[Task]) -> None:
        if task is None or self._tasks.get(task.id) is not task:
            title = task.title if task is not None else None
            raise NotFoundError(f"Task does not exist: {title}")

    def _require_reminder(self, reminder: Optional[Reminder]) -> None:
        if reminder is None or self._reminders.get(reminder.id) is not reminder:
            raise NotFoundError("Reminder does not exist.")

    def _resolve_category(self, name: str) -> Category:
        category = _find_label(self._categories, name)
        if category is None:
            raise ValidationError(
                f"Category does not exist: {name}", field_name="category", value=name
            )
        return category

    def _resolve_priority(self, name: str) -> Priority:
        priority = _find_label(self._priorities, name)
        if priority is None:
            raise ValidationError(
                f"Priority does not exist: {name}", field_name="priority", value=name
            )
        return priority

    def _validate_new_label_name(self, labels: List[Label], name: Optional[str],
                                 kind: str, ignore: Optional[Label] = None) -> str:
        if _blank(name):
            raise ValidationError(f"{kind} name cannot be empty.", field_name="name", value=name)
        clean = name.strip()
        existing = _find_label(labels, clean)
        if existing is not None and existing is not ignore:
            raise ValidationError(f"{kind} already exists: {clean}", field_name="name", value=clean)
        return clean

    def _drop_reminders_for(self, doomed: Iterable[Task]) -> int:
        doomed_ids = {task.id for task in doomed}
        stale = [rid for rid, r in self._reminders.items() if r.task.id in doomed_ids]
        for rid in stale:
            del self._reminders[rid]
        return len(stale)

    def _checked_reminder_date(self, task: Task, kind: ReminderKind,
                               custom_date: Optional[date]) -> date:
        if task.is_completed:
            raise StateError(f"Cannot set a reminder for completed task: {task.title}")
        if not isinstance(kind, ReminderKind):
            raise ValidationError(f"Unknown reminder kind: {kind!r}", field_name="kind", value=kind)
        reminder_date = compute_reminder_date(kind, task.deadline, custom_date)
        if reminder_date < self.today():
            raise ValidationError(
                f"Reminder date {reminder_date.isoformat()} is in the past.",
                field_name="reminder_date",
                value=reminder_date,
            )
        return reminder_date

    # ---- invariants ----

    def enforce_invariants(self) -> None:
        """Guarantee the Default priority exists and mark overdue tasks DELAYED."""
        with self._lock:
            if _find_label(self._priorities, DEFAULT_PRIORITY_NAME) is None:
                self._priorities.append(Priority(DEFAULT_PRIORITY_NAME))
                logger.debug("Created missing '%s' priority", DEFAULT_PRIORITY_NAME)

            current = self.today()
            delayed = [t.title for t in self._tasks.values() if t.mark_delayed_if_overdue(current)]
            if delayed:
                logger.info("Marked %d overdue task(s) as delayed: %s", len(delayed), ", ".join(delayed))

    # ---- tasks ----

    def add_task(self, task: Task) -> Task:
        """Insert a task after validating its title and references."""
        with self._lock:
            if _blank(task.title):
                raise ValidationError("Task title cannot be empty.", field_name="title")
            if self._find_task(task.title) is not None:
                raise ValidationError(
                    f"Task already exists: {task.title}", field_name="title", value=task.title
                )
            category = self._resolve_category(task.category)
            priority = self._resolve_priority(task.priority)

            task.title = task.title.strip()
            task.category = category.name
            task.priority = priority.name
            self._tasks[task.id] = task
            task.mark_delayed_if_overdue(self.today())
            logger.debug("Added task %r (%s)", task.title, task.status.name)
            return task

    def remove_task(self, task: Task) -> None:
        """Remove a task together with its reminders."""
        with self._lock:
            self._require_task(task)
            del self._tasks[task.id]
            dropped = self._drop_reminders_for([task])
            logger.debug("Removed task %r and %d reminder(s)", task.title, dropped)

    def update_task(
        self,
        task: Task,
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        priority: Optional[str] = None,
        deadline: Optional[date] = None,
    ) -> Task:
        """Apply the non-blank fields to ``task``.

        Everything is validated first, so a rejected update changes nothing.
        """
        with self._lock:
            self._require_task(task)

            new_title = None
            if not _blank(title):
                new_title = title.strip()
                clash = self._find_task(new_title)
                if clash is not None and clash is not task:
                    raise ValidationError(
                        f"Task already exists: {new_title}", field_name="title", value=new_title
                    )
            new_category = None if _blank(category) else self._resolve_category(category)
            new_priority = None if _blank(priority) else self._resolve_priority(priority)
            if deadline is not None and deadline < self.today():
                raise ValidationError(
                    "Deadline cannot be in the past.", field_name="deadline", value=deadline
                )

            if new_title is not None:
                task.title = new_title
            if not _blank(description):
                task.description = description
            if new_category is not None:
                task.category = new_category.name
            if new_priority is not None:
                task.priority = new_priority.name
            if deadline is not None:
                task.deadline = deadline

            task.mark_delayed_if_overdue(self.today())
            logger.debug("Updated task %r", task.title)
            return task

    def update_task_status(self, task: Task, new_status: TaskStatus) -> Task:
        """Change a task's status; completing it discards its reminders."""
        with self._lock:
            self._require_task(task)
            if new_status is None:
                raise ValidationError("Task status cannot be empty.", field_name="status")
            if not isinstance(new_status, TaskStatus):
                raise ValidationError(
                    f"Unknown task status: {new_status!r}", field_name="status", value=new_status
                )

            task.status = new_status
            if new_status == TaskStatus.COMPLETED:
                dropped = self._drop_reminders_for([task])
                if dropped:
                    logger.info("Task %r completed; removed %d reminder(s)", task.title, dropped)
            return task

    def search_tasks(self, title: Optional[str] = None, category: Optional[str] = None,
                     priority: Optional[str] = None) -> List[Task]:
        """Tasks matching every supplied filter; blank filters match all."""
        with self._lock:
            results = []
            for task in self._tasks.values():
                if not _blank(title) and title.strip().lower() not in task.title.lower():
                    continue
                if not _blank(category) and task.category.lower() != category.strip().lower():
                    continue
                if not _blank(priority) and task.priority.lower() != priority.strip().lower():
                    continue
                results.append(task)
            return results

    # ---- categories ----

    def add_category(self, name: str) -> Category:
        """Track a new category.

        Raises:
            ValidationError: If the name is blank or already used
        """
        with self._lock:
            clean = self._validate_new_label_name(self._categories, name, "Category")
            category = Category(clean)
            self._categories.append(category)
            logger.debug("Added category %r", clean)
            return category

    def remove_category(self, category: Category) -> List[Task]:
        """Remove a category and every task filed under it.

        Returns:
            The tasks that were deleted by the cascade
        """
        with self._lock:
            if not _contains(self._categories, category):
                raise NotFoundError(f"Category does not exist: {getattr(category, 'name', None)}")

            self._categories = [c for c in self._categories if c is not category]
            doomed = [t for t in self._tasks.values() if category.matches(t.category)]
            for task in doomed:
                del self._tasks[task.id]
            dropped = self._drop_reminders_for(doomed)
            logger.info(
                "Removed category %r with %d task(s) and %d reminder(s)",
                category.name, len(doomed), dropped,
            )
            return doomed

    def rename_category(self, category: Category, new_name: str) -> Category:
        """Rename a category and move its tasks to the new name.

        Raises:
            NotFoundError: If the category is not tracked
            ValidationError: If the new name is blank or used by another category
        """
        with self._lock:
            if not _contains(self._categories, category):
                raise NotFoundError(f"Category does not exist: {getattr(category, 'name', None)}")
            clean = self._validate_new_label_name(
                self._categories, new_name, "Category", ignore=category
            )
            for task in self._tasks.values():
                if category.matches(task.category):
                    task.category = clean
            logger.debug("Renamed category %r to %r", category.name, clean)
            category.name = clean
            return category

    # ---- priorities ----

    def add_priority(self, name: str) -> Priority:
        """Track a new priority.

        Raises:
            ValidationError: If the name is blank or already used
        """
        with self._lock:
            clean = self._validate_new_label_name(self._priorities, name, "Priority")
            priority = Priority(clean)
            self._priorities.append(priority)
            logger.debug("Added priority %r", clean)
            return priority

    def remove_priority(self, priority: Priority) -> List[Task]:
        """Remove a priority and move its tasks to Default.

        Returns:
            The tasks that were reassigned
        """
        with self._lock:
            if not _contains(self._priorities, priority):
                raise NotFoundError(f"Priority does not exist: {getattr(priority, 'name', None)}")
            if priority.is_default:
                raise ValidationError(
                    "Cannot delete the default priority.", field_name="name", value=priority.name
                )

            default = _find_label(self._priorities, DEFAULT_PRIORITY_NAME)
            self._priorities = [p for p in self._priorities if p is not priority]
            moved = [t for t in self._tasks.values() if priority.matches(t.priority)]
            for task in moved:
                task.priority = default.name
            logger.info("Removed priority %r; %d task(s) moved to %s",
                        priority.name, len(moved), default.name)
            return moved

    def rename_priority(self, priority: Priority, new_name: str) -> Priority:
        """Rename a priority and move its tasks to the new name.

        Raises:
            ValidationError: If the new name is blank or taken, or the priority is Default
            NotFoundError: If the priority is not tracked
        """
        with self._lock:
            if _blank(new_name):
                raise ValidationError("Priority name cannot be empty.", field_name="name", value=new_name)
            if priority is not None and priority.is_default:
                raise ValidationError(
                    f"Cannot rename the '{DEFAULT_PRIORITY_NAME}' priority.",
                    field_name="name", value=priority.name,
                )
            if not _contains(self._priorities, priority):
                raise NotFoundError(f"Priority does not exist: {getattr(priority, 'name', None)}")
            clean = self._validate_new_label_name(
                self._priorities, new_name, "Priority", ignore=priority
            )
            for task in self._tasks.values():
                if priority.matches(task.priority):
                    task.priority = clean
            logger.debug("Renamed priority %r to %r", priority.name, clean)
            priority.name = clean
            return priority

    # ---- reminders ----

    def add_reminder(self, task_title: str, kind: ReminderKind,
                     custom_date: Optional[date] = None) -> Reminder:
        """Attach a reminder to the task titled ``task_title``.

        Args:
            task_title: Title of the task, matched case-insensitively
            kind: When the reminder fires relative to the deadline
            custom_date: Reminder date, used only with CUSTOM_DATE

        Raises:
            NotFoundError: If no task has that title
            StateError: If the task is completed
            ValidationError: If the date cannot be computed or is in the past
        """
        with self._lock:
            task = self._find_task(task_title)
            if task is None:
                raise NotFoundError(f"Task does not exist: {task_title}")
            self._checked_reminder_date(task, kind, custom_date)

            reminder = Reminder(
                task=task,
                kind=kind,
                custom_date=custom_date if kind == ReminderKind.CUSTOM_DATE else None,
            )
            self._reminders[reminder.id] = reminder
            logger.debug("Added reminder %s for %r on %s",
                         kind.name, task.title, reminder.reminder_date)
            return reminder

    def update_reminder(self, reminder: Reminder, new_kind: ReminderKind,
                        new_custom_date: Optional[date] = None) -> Reminder:
        """Change a reminder's kind and custom date.

        Raises:
            NotFoundError: If the reminder is not tracked
            StateError: If its task is completed
            ValidationError: If the date cannot be computed or is in the past
        """
        with self._lock:
            self._require_reminder(reminder)
            self._checked_reminder_date(reminder.task, new_kind, new_custom_date)

            reminder.kind = new_kind
            reminder.custom_date = new_custom_date if new_kind == ReminderKind.CUSTOM_DATE else None
            return reminder

    def remove_reminder(self, reminder: Reminder) -> None:
        """Raises NotFoundError if the reminder is not tracked."""
        with self._lock:
            self._require_reminder(reminder)
            del self._reminders[reminder.id]

    def due_reminders_on(self, day: date) -> List[Reminder]:
        """Reminders whose computed date is exactly ``day``."""
        with self._lock:
            due = []
            for reminder in self._reminders.values():
                try:
                    if reminder.reminder_date == day:
                        due.append(reminder)
                except ValidationError:
                    logger.warning("Reminder for %r has no computable date", reminder.task.title)
            return due

    # ---- summaries ----

    def statistics(self, today: Optional[date] = None, upcoming_days: int = 7) -> Dict[str, int]:
        """Counts for the dashboard: total, completed, delayed, upcoming."""
        with self._lock:
            current = today or self.today()
            horizon = current + timedelta(days=upcoming_days)
            tasks = list(self._tasks.values())
            return {
                "total": len(tasks),
                "completed": sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
                "delayed": sum(1 for t in tasks if t.status == TaskStatus.DELAYED),
                "upcoming": sum(
                    1 for t in tasks
                    if t.deadline is not None and current <= t.deadline < horizon
                ),
            }

    # ---- snapshots ----

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """Plain-data copy of all four collections, taken under the lock."""
        with self._lock:
            return {
                "categories": [c.to_dict() for c in self._categories],
                "priorities": [p.to_dict() for p in self._priorities],
                "tasks": [t.to_dict() for t in self._tasks.values()],
                "reminders": [r.to_dict() for r in self._reminders.values()],
            }

    def load_snapshot(self, snapshot: Mapping[str, Optional[Iterable[Mapping[str, Any]]]]) -> None:
        """Replace the store contents with persisted records.

        Records are restored in dependency order: categories, priorities,
        tasks, reminders. Records pointing at missing entities are dropped
        with a warning. Malformed records raise StorageError and leave the
        current contents untouched.
        """
        categories: List[Category] = []
        priorities: List[Priority] = []
        tasks: Dict[str, Task] = {}
        reminders: Dict[str, Reminder] = {}

        try:
            for record in _records(snapshot, "categories"):
                category = Category.from_dict(record)
                if _find_label(categories, category.name) is None:
                    categories.append(category)
                else:
                    logger.warning("Skipping duplicate category %r", category.name)

            for record in _records(snapshot, "priorities"):
                priority = Priority.from_dict(record)
                if _find_label(priorities, priority.name) is None:
                    priorities.append(priority)
                else:
                    logger.warning("Skipping duplicate priority %r", priority.name)
            if _find_label(priorities, DEFAULT_PRIORITY_NAME) is None:
                priorities.append(Priority(DEFAULT_PRIORITY_NAME))

            titles = set()
            for record in _records(snapshot, "tasks"):
                task = Task.from_dict(record)
                category = _find_label(categories, task.category)
                priority = _find_label(priorities, task.priority)
                if category is None or priority is None:
                    logger.warning(
                        "Dropping task %r: unknown category %r or priority %r",
                        task.title, task.category, task.priority,
                    )
                    continue
                key = task.title.strip().lower()
                if key in titles:
                    logger.warning("Dropping duplicate task %r", task.title)
                    continue
                titles.add(key)
                task.category = category.name
                task.priority = priority.name
                tasks[task.id] = task

            by_title = {task.title.strip().lower(): task for task in tasks.values()}
            for record in _records(snapshot, "reminders"):
                title = record.get("task")
                if isinstance(title, Mapping):
                    title = title.get("title")
                kind = ReminderKind.from_text(record.get("kind") or "")
                custom_date = parse_date(record.get("custom_date"))
                task = by_title.get(str(title or "").strip().lower())
                if task is None:
                    logger.warning("Dropping reminder for unknown task %r", title)
                    continue
                if task.is_completed:
                    logger.warning("Dropping reminder for completed task %r", task.title)
                    continue
                try:
                    compute_reminder_date(kind, task.deadline, custom_date)
                except ValidationError as e:
                    logger.warning("Dropping reminder for %r: %s", task.title, e)
                    continue
                if kind != ReminderKind.CUSTOM_DATE:
                    custom_date = None
                reminder = Reminder(task=task, kind=kind, custom_date=custom_date)
                reminders[reminder.id] = reminder
        except (AttributeError, TypeError, ValueError) as e:
            raise StorageError(f"Malformed task data: {e}") from e

        with self._lock:
            self._categories = categories
            self._priorities = priorities
            self._tasks = tasks
            self._reminders = reminders
            self.enforce_invariants()
        logger.info(
            "Loaded %d task(s), %d category(ies), %d priority(ies), %d reminder(s)",
            len(tasks), len(categories), len(priorities), len(reminders),
        )

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Optional[Iterable[Mapping[str, Any]]]],
                      clock: Callable[[], date] = today) -> "TaskStore":
        store = cls(clock=clock)
        store.load_snapshot(snapshot)
        return store


def _records(snapshot: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    records = snapshot.get(key)
    if records is None:
        return []
    if not isinstance(records, list):
        raise StorageError(f"Expected a list of {key}, got {type(records).__name__}")
    for record in records:
        if not isinstance(record, Mapping):
            raise StorageError(f"Expected {key} records to be objects, got {record!r}")
    return records
