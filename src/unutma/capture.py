"""Task capture flow: parse typed text, file the task, schedule its reminder.

The task is always created. The reminder is best effort; a rejected or failed
scheduling call leaves the task without a reminder and is never surfaced as an
error.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from .config import ConfigModel
from .keywords import format_long_date
from .notifications import NotificationError, NotificationScheduler
from .parser import ParseContext, ParseResult, TemporalPhraseParser
from .storage import Storage
from .task import Task
from .utils.datetime import add_days, now_local, to_date_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Confirmation:
    """Shown when a task lands on a different day than the one on screen."""
    title: str
    message: str


@dataclass
class CaptureOutcome:
    task: Task
    result: ParseResult
    reminder_id: Optional[str] = None
    confirmation: Optional[Confirmation] = None

    @property
    def rescheduled(self) -> bool:
        return self.confirmation is not None


def build_confirmation(task_text: str, target_date: date) -> Confirmation:
    return Confirmation(
        title="Planlandı 📅",
        message=f'"{task_text}" görevi {format_long_date(target_date)} tarihine eklendi.',
    )


class TaskCapture:
    """Coordinates the parser, the task store and the notification scheduler."""

    def __init__(self, storage: Storage, scheduler: NotificationScheduler,
                 parser: Optional[TemporalPhraseParser] = None,
                 config: Optional[ConfigModel] = None):
        self.storage = storage
        self.scheduler = scheduler
        self.config = config or storage.config
        self.parser = parser or TemporalPhraseParser.from_config(self.config)

    def _schedule(self, task: Task, when: datetime, now: datetime) -> Optional[str]:
        """Schedule a reminder for ``task``; None when rejected or failed."""
        if when <= now:
            return None
        try:
            return self.scheduler.schedule(
                f"{self.config.reminder_title_prefix}{task.text}",
                self.config.reminder_body,
                when,
                now=now,
            )
        except NotificationError as e:
            logger.warning(f"Could not schedule reminder for task {task.id}: {e}")
            return None

    def _cancel(self, task: Task) -> None:
        if not task.reminder_id:
            return
        try:
            self.scheduler.cancel(task.reminder_id)
        except NotificationError as e:
            logger.warning(f"Could not cancel reminder {task.reminder_id}: {e}")

    def add_task(self, raw_text: str, reference_date: date,
                 now: Optional[datetime] = None) -> Optional[CaptureOutcome]:
        """Create a task from typed text.

        Args:
            raw_text: Text as typed by the user
            reference_date: Day currently displayed
            now: Wall-clock time of the action (defaults to the local clock)

        Returns:
            The outcome, or None when the text is blank
        """
        if not raw_text or not raw_text.strip():
            return None

        now = now or now_local()
        result = self.parser.parse(ParseContext(raw_text=raw_text, reference_date=reference_date, now=now))
        task = self.storage.add_task(result.task_text, result.date_key)
        outcome = CaptureOutcome(task=task, result=result)

        if result.reminder_instant is not None:
            reminder_id = self._schedule(task, result.reminder_instant, now)
            if reminder_id:
                outcome.task = self.storage.set_reminder(task.id, reminder_id, result.reminder_instant)
                outcome.reminder_id = reminder_id
            else:
                logger.info(f"Reminder at {result.reminder_instant} not set for task {task.id}")

        if result.target_date != reference_date:
            outcome.confirmation = build_confirmation(result.task_text, result.target_date)

        return outcome

    def reschedule_reminder(self, task_id: str, when: datetime,
                            now: Optional[datetime] = None) -> Optional[str]:
        """Replace a task's reminder; returns None when ``when`` is not in the future."""
        now = now or now_local()
        task = self.storage.get_task(task_id)
        if when <= now:
            return None

        self._cancel(task)
        reminder_id = self._schedule(task, when, now)
        self.storage.set_reminder(task_id, reminder_id, when)
        return reminder_id

    def remove_reminder(self, task_id: str) -> Task:
        task = self.storage.get_task(task_id)
        self._cancel(task)
        return self.storage.clear_reminder(task_id)

    def delete_task(self, task_id: str) -> Task:
        """Delete a task and cancel its pending reminder."""
        task = self.storage.get_task(task_id)
        self._cancel(task)
        return self.storage.delete_task(task_id)

    def move_to_tomorrow(self, task_id: str, now: Optional[datetime] = None) -> Task:
        """Move a task one day later, carrying its reminder along when still useful."""
        now = now or now_local()
        task = self.storage.get_task(task_id)
        task = self.storage.move_task_to_date(task_id, to_date_key(add_days(task.day, 1)))

        if task.reminder_id and task.reminder_date:
            self._cancel(task)
            new_reminder = task.reminder_date + timedelta(days=1)
            reminder_id = self._schedule(task, new_reminder, now)
            task = self.storage.set_reminder(task_id, reminder_id, new_reminder)

        return task

    def move_overdue_to_today(self, today: Optional[date] = None) -> List[Task]:
        """Refile every overdue pending task under ``today``."""
        today = today or now_local().date()
        today_key = to_date_key(today)
        moved = [self.storage.move_task_to_date(t.id, today_key) for t in self.storage.overdue_tasks(today)]
        if moved:
            logger.info(f"Moved {len(moved)} overdue tasks to {today_key}")
        return moved

    def tasks_for(self, day: date) -> List[Task]:
        return self.storage.tasks_for_date(to_date_key(day))
