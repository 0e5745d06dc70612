"""Reminder notification scheduling for unutma.

Delivering notifications is a platform concern; this module defines the
scheduler interface the capture flow talks to, an in-process
implementation for tests and a YAML-backed one for the CLI.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .utils.datetime import now_local

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a notification backend fails to schedule or cancel."""


@dataclass
class Notification:
    """A scheduled notification instance"""
    id: str
    title: str
    body: str
    trigger_at: datetime


class NotificationScheduler(ABC):
    """Schedules one-shot reminders.

    Implementations must refuse instants that are not in the future by
    returning ``None`` rather than raising.
    """

    @abstractmethod
    def schedule(self, title: str, body: str, when: datetime,
                 now: Optional[datetime] = None) -> Optional[str]:
        """Schedule a notification, returning its id or None when rejected."""

    @abstractmethod
    def cancel(self, notification_id: str) -> None:
        """Cancel a scheduled notification; unknown ids are ignored."""


class InMemoryScheduler(NotificationScheduler):
    """Keeps scheduled notifications in process memory."""

    def __init__(self):
        self.notifications: Dict[str, Notification] = {}

    def schedule(self, title: str, body: str, when: datetime,
                 now: Optional[datetime] = None) -> Optional[str]:
        now = now or now_local()
        if when <= now:
            logger.info(f"Refusing to schedule '{title}' in the past ({when} <= {now})")
            return None

        notification = Notification(id=str(uuid.uuid4()), title=title, body=body, trigger_at=when)
        self.notifications[notification.id] = notification
        logger.debug(f"Scheduled notification {notification.id} for {when}")
        return notification.id

    def cancel(self, notification_id: str) -> None:
        if self.notifications.pop(notification_id, None) is not None:
            logger.debug(f"Cancelled notification {notification_id}")

    def pending(self) -> List[Notification]:
        """Scheduled notifications ordered by trigger time."""
        return sorted(self.notifications.values(), key=lambda n: n.trigger_at)


class FileScheduler(InMemoryScheduler):
    """In-memory scheduler persisted to a YAML file between runs."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                entries = yaml.safe_load(f) or []
            for entry in entries:
                notification = Notification(
                    id=entry["id"],
                    title=entry["title"],
                    body=entry["body"],
                    trigger_at=datetime.fromisoformat(entry["trigger_at"]),
                )
                self.notifications[notification.id] = notification
        except (OSError, yaml.YAMLError, KeyError, TypeError, ValueError) as e:
            raise NotificationError(f"Failed to load notifications from {self.path}: {e}") from e

    def _save(self):
        entries = [
            {
                "id": n.id,
                "title": n.title,
                "body": n.body,
                "trigger_at": n.trigger_at.isoformat(),
            }
            for n in self.pending()
        ]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(entries, f, allow_unicode=True, sort_keys=False)
        except OSError as e:
            raise NotificationError(f"Failed to save notifications to {self.path}: {e}") from e

    def schedule(self, title: str, body: str, when: datetime,
                 now: Optional[datetime] = None) -> Optional[str]:
        notification_id = super().schedule(title, body, when, now)
        if notification_id:
            self._save()
        return notification_id

    def cancel(self, notification_id: str) -> None:
        super().cancel(notification_id)
        self._save()
