"""Task data model for unutma."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from .utils.datetime import from_date_key, from_iso_string, now_local, to_iso_string


class TaskStatus(Enum):
    """Task status states."""
    PENDING = "pending"
    COMPLETED = "completed"


def new_task_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Task:
    """A task filed under a calendar day, optionally carrying a reminder."""

    text: str
    date: str  # YYYY-MM-DD
    id: str = field(default_factory=new_task_id)
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = field(default_factory=now_local)

    # Scheduled notification, if any
    reminder_id: Optional[str] = None
    reminder_date: Optional[datetime] = None

    def __post_init__(self):
        # Reject malformed day keys early
        from_date_key(self.date)

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def day(self) -> date:
        return from_date_key(self.date)

    def toggle(self):
        """Flip between pending and completed."""
        self.status = TaskStatus.PENDING if self.completed else TaskStatus.COMPLETED

    def is_overdue(self, today: date) -> bool:
        """Pending tasks filed under a day before ``today``."""
        return not self.completed and self.day < today

    def to_dict(self) -> Dict[str, Any]:
        """Convert task to dictionary."""
        return {
            "id": self.id,
            "text": self.text,
            "date": self.date,
            "status": self.status.value,
            "created_at": to_iso_string(self.created_at),
            "reminder_id": self.reminder_id,
            "reminder_date": to_iso_string(self.reminder_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Create task from dictionary."""
        return cls(
            id=data["id"],
            text=data["text"],
            date=data["date"],
            status=TaskStatus(data.get("status", "pending")),
            created_at=from_iso_string(data.get("created_at")) or now_local(),
            reminder_id=data.get("reminder_id"),
            reminder_date=from_iso_string(data.get("reminder_date")),
        )
