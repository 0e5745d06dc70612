"""Storage layer for unutma using one markdown file per day with YAML frontmatter."""

import logging
import re
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

import frontmatter

from .config import ConfigModel
from .keywords import format_long_date
from .task import Task, TaskStatus
from .utils.datetime import from_date_key, from_iso_string, to_iso_string

logger = logging.getLogger(__name__)


TASK_LINE_RE = re.compile(r"^- \[( |x)\]\s+(.*)$")
META_COMMENT_RE = re.compile(r"\s*<!--\s*(.*?)\s*-->\s*$")
DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
NEWLINE_RE = re.compile(r"[\r\n]+")


class TaskNotFoundError(KeyError):
    """Raised when a task id is not present in the store."""


class TaskMarkdownFormat:
    """Handles conversion between Task objects and markdown lines.

    A task line keeps its text readable and carries machine metadata in a
    trailing HTML comment::

        - [ ] toplantı yarın akşam <!-- id:3f2c... created:2024-05-01T10:00:00 reminder:2024-05-02T21:00:00 notification:n-1 -->
    """

    @staticmethod
    def to_markdown(task: Task) -> str:
        checkbox = "- [x]" if task.completed else "- [ ]"
        text = NEWLINE_RE.sub(" ", task.text.replace("<!--", "< !--"))

        meta = [f"id:{task.id}", f"created:{to_iso_string(task.created_at)}"]
        if task.reminder_date:
            meta.append(f"reminder:{to_iso_string(task.reminder_date)}")
        if task.reminder_id:
            meta.append(f"notification:{task.reminder_id}")

        return f"{checkbox} {text} <!-- {' '.join(meta)} -->"

    @staticmethod
    def from_markdown(line: str, date_key: str) -> Optional[Task]:
        """Parse a markdown line back to a Task, or None for non-task lines."""
        line = line.strip()
        match = TASK_LINE_RE.match(line)
        if not match:
            return None

        status = TaskStatus.COMPLETED if match.group(1) == "x" else TaskStatus.PENDING
        body = match.group(2)

        meta: Dict[str, str] = {}
        comment = META_COMMENT_RE.search(body)
        if comment:
            for token in comment.group(1).split():
                key, _, value = token.partition(":")
                meta[key] = value
            body = body[: comment.start()]

        if "id" not in meta:
            logger.warning(f"Skipping task line without id in {date_key}: {line}")
            return None

        try:
            created_at = from_iso_string(meta.get("created"))
            reminder_date = from_iso_string(meta.get("reminder"))
        except ValueError:
            logger.warning(f"Skipping task line with invalid timestamps in {date_key}: {line}")
            return None

        task = Task(
            id=meta["id"],
            text=body.strip(),
            date=date_key,
            status=status,
            reminder_id=meta.get("notification") or None,
            reminder_date=reminder_date,
        )
        if created_at:
            task.created_at = created_at
        return task


class DayMarkdownFormat:
    """Handles conversion between a day's tasks and a markdown file."""

    @staticmethod
    def to_markdown(date_key: str, tasks: List[Task]) -> str:
        day = from_date_key(date_key)
        lines = [f"# {format_long_date(day)}", ""]
        lines.extend(TaskMarkdownFormat.to_markdown(task) for task in tasks)
        post = frontmatter.Post("\n".join(lines), date=date_key, tasks=len(tasks))
        return frontmatter.dumps(post)

    @staticmethod
    def from_markdown(content: str, date_key: str) -> List[Task]:
        post = frontmatter.loads(content)
        tasks = []
        for line in post.content.split("\n"):
            task = TaskMarkdownFormat.from_markdown(line, date_key)
            if task:
                tasks.append(task)
        return tasks


class Storage:
    """File-based task store keyed by ``YYYY-MM-DD`` day keys."""

    def __init__(self, config: ConfigModel):
        self.config = config
        self._last_deleted: Optional[Task] = None
        self._ensure_directories()

    def _ensure_directories(self):
        self.config.get_days_dir().mkdir(parents=True, exist_ok=True)

    def _load_day(self, date_key: str) -> List[Task]:
        path = self.config.get_day_path(date_key)
        if not path.exists():
            return []
        with open(path, "r", encoding="utf-8") as f:
            return DayMarkdownFormat.from_markdown(f.read(), date_key)

    def _save_day(self, date_key: str, tasks: List[Task]) -> None:
        path = self.config.get_day_path(date_key)
        if not tasks:
            if path.exists():
                path.unlink()
            return

        ids = [t.id for t in tasks]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate task IDs detected for {date_key}: {ids}")

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(DayMarkdownFormat.to_markdown(date_key, tasks))

    def _find(self, task_id: str) -> Tuple[str, List[Task], Task]:
        for date_key in self.list_days():
            tasks = self._load_day(date_key)
            for task in tasks:
                if task.id == task_id:
                    return date_key, tasks, task
        raise TaskNotFoundError(task_id)

    def list_days(self) -> List[str]:
        """Day keys that currently hold at least one task, oldest first."""
        days_dir = self.config.get_days_dir()
        if not days_dir.exists():
            return []
        return sorted(p.stem for p in days_dir.glob("*.md") if DATE_KEY_RE.match(p.stem))

    def add_task(self, text: str, date_key: str) -> Task:
        """File a new pending task under ``date_key``."""
        task = Task(text=text, date=date_key)
        tasks = self._load_day(date_key)
        tasks.append(task)
        self._save_day(date_key, tasks)
        logger.debug(f"Added task {task.id} on {date_key}")
        return task

    def get_task(self, task_id: str) -> Task:
        """Get a task by id.

        Raises:
            TaskNotFoundError: if no day holds the task
        """
        return self._find(task_id)[2]

    def tasks_for_date(self, date_key: str) -> List[Task]:
        """Tasks filed under a day, in creation order."""
        return sorted(self._load_day(date_key), key=lambda t: t.created_at)

    def all_tasks(self) -> List[Task]:
        tasks = []
        for date_key in self.list_days():
            tasks.extend(self.tasks_for_date(date_key))
        return tasks

    def toggle_task(self, task_id: str) -> Task:
        date_key, tasks, task = self._find(task_id)
        task.toggle()
        self._save_day(date_key, tasks)
        return task

    def update_task(self, task_id: str, text: str) -> Task:
        date_key, tasks, task = self._find(task_id)
        task.text = text
        self._save_day(date_key, tasks)
        return task

    def delete_task(self, task_id: str) -> Task:
        """Remove a task, remembering it for :meth:`restore_last_deleted`."""
        date_key, tasks, task = self._find(task_id)
        self._save_day(date_key, [t for t in tasks if t.id != task_id])
        self._last_deleted = task
        return task

    def restore_last_deleted(self) -> Optional[Task]:
        """Put the most recently deleted task back on its day."""
        task = self._last_deleted
        if task is None:
            return None
        tasks = self._load_day(task.date)
        tasks.append(task)
        self._save_day(task.date, tasks)
        self._last_deleted = None
        return task

    def move_task_to_date(self, task_id: str, date_key: str) -> Task:
        from_date_key(date_key)
        old_key, tasks, task = self._find(task_id)
        if old_key == date_key:
            return task

        self._save_day(old_key, [t for t in tasks if t.id != task_id])
        task.date = date_key
        target = self._load_day(date_key)
        target.append(task)
        self._save_day(date_key, target)
        return task

    def set_reminder(self, task_id: str, reminder_id: Optional[str],
                     reminder_date: Optional[datetime]) -> Task:
        """Record (or clear, with ``None``) the notification attached to a task."""
        date_key, tasks, task = self._find(task_id)
        task.reminder_id = reminder_id
        task.reminder_date = reminder_date if reminder_id else None
        self._save_day(date_key, tasks)
        return task

    def clear_reminder(self, task_id: str) -> Task:
        return self.set_reminder(task_id, None, None)

    def overdue_tasks(self, today: date) -> List[Task]:
        """Pending tasks filed under days before ``today``."""
        return [t for t in self.all_tasks() if t.is_overdue(today)]
