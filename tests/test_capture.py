"""Tests for the task capture flow."""

from datetime import date, datetime

import pytest

from unutma.capture import TaskCapture, build_confirmation
from unutma.notifications import InMemoryScheduler, NotificationError
from unutma.storage import Storage, TaskNotFoundError

TODAY = date(2024, 5, 1)
NOW = datetime(2024, 5, 1, 10, 0)


class FailingScheduler(InMemoryScheduler):
    def schedule(self, title, body, when, now=None):
        raise NotificationError("backend unavailable")


@pytest.fixture
def scheduler():
    return InMemoryScheduler()


@pytest.fixture
def capture(config, scheduler):
    return TaskCapture(Storage(config), scheduler)


class TestAddTask:
    def test_tomorrow_evening(self, capture, scheduler):
        outcome = capture.add_task("toplantı yarın akşam", TODAY, now=NOW)

        assert outcome.task.date == "2024-05-02"
        assert outcome.task.text == "toplantı yarın akşam"
        assert outcome.reminder_id is not None
        assert outcome.task.reminder_id == outcome.reminder_id
        assert outcome.task.reminder_date == datetime(2024, 5, 2, 21, 0)

        [notification] = scheduler.pending()
        assert notification.title == "Hatırlatıcı: toplantı yarın akşam"
        assert notification.body == "Unutma!"
        assert notification.trigger_at == datetime(2024, 5, 2, 21, 0)

    def test_confirmation_when_date_moves(self, capture):
        outcome = capture.add_task("toplantı yarın akşam", TODAY, now=NOW)
        assert outcome.rescheduled
        assert outcome.confirmation.title == "Planlandı 📅"
        assert outcome.confirmation.message == '"toplantı yarın akşam" görevi 2 Mayıs Perşembe tarihine eklendi.'

    def test_plain_task_on_reference_day(self, capture, scheduler):
        outcome = capture.add_task("süt al", TODAY, now=NOW)
        assert outcome.task.date == "2024-05-01"
        assert outcome.reminder_id is None
        assert outcome.confirmation is None
        assert scheduler.pending() == []

    def test_blank_text(self, capture):
        assert capture.add_task("   ", TODAY, now=NOW) is None
        assert capture.storage.all_tasks() == []

    def test_past_reminder_still_creates_task(self, capture, scheduler):
        # Viewing an old page: the rolled reminder is still in the past
        outcome = capture.add_task("ara 8de", date(2024, 4, 20), now=NOW)

        assert outcome.task.date == "2024-04-21"
        assert outcome.result.reminder_instant == datetime(2024, 4, 21, 8, 0)
        assert outcome.reminder_id is None
        assert outcome.task.reminder_id is None
        assert scheduler.pending() == []

    def test_scheduler_failure_keeps_task(self, config):
        capture = TaskCapture(Storage(config), FailingScheduler())
        outcome = capture.add_task("yarın spor", TODAY, now=NOW)

        assert outcome.reminder_id is None
        assert capture.storage.get_task(outcome.task.id).date == "2024-05-02"

    def test_stored_task_matches_result(self, capture, config):
        outcome = capture.add_task("cuma 14:00 dişçi", TODAY, now=NOW)
        stored = Storage(config).get_task(outcome.task.id)
        assert stored.date == outcome.result.date_key
        assert stored.reminder_date == outcome.result.reminder_instant


class TestReminderManagement:
    def test_reschedule(self, capture, scheduler):
        outcome = capture.add_task("yarın spor", TODAY, now=NOW)
        new_id = capture.reschedule_reminder(outcome.task.id, datetime(2024, 5, 2, 7, 0), now=NOW)

        assert new_id != outcome.reminder_id
        assert [n.id for n in scheduler.pending()] == [new_id]
        assert capture.storage.get_task(outcome.task.id).reminder_date == datetime(2024, 5, 2, 7, 0)

    def test_reschedule_in_past_is_rejected(self, capture, scheduler):
        outcome = capture.add_task("yarın spor", TODAY, now=NOW)
        assert capture.reschedule_reminder(outcome.task.id, datetime(2024, 5, 1, 9, 0), now=NOW) is None
        assert [n.id for n in scheduler.pending()] == [outcome.reminder_id]

    def test_remove_reminder(self, capture, scheduler):
        outcome = capture.add_task("yarın spor", TODAY, now=NOW)
        task = capture.remove_reminder(outcome.task.id)
        assert task.reminder_id is None
        assert scheduler.pending() == []

    def test_delete_cancels_reminder(self, capture, scheduler):
        outcome = capture.add_task("yarın spor", TODAY, now=NOW)
        capture.delete_task(outcome.task.id)

        assert scheduler.pending() == []
        with pytest.raises(TaskNotFoundError):
            capture.storage.get_task(outcome.task.id)

    def test_move_to_tomorrow_carries_reminder(self, capture, scheduler):
        outcome = capture.add_task("toplantı yarın akşam", TODAY, now=NOW)
        task = capture.move_to_tomorrow(outcome.task.id, now=NOW)

        assert task.date == "2024-05-03"
        assert task.reminder_date == datetime(2024, 5, 3, 21, 0)
        assert [n.trigger_at for n in scheduler.pending()] == [datetime(2024, 5, 3, 21, 0)]

    def test_move_to_tomorrow_without_reminder(self, capture):
        outcome = capture.add_task("süt al", TODAY, now=NOW)
        task = capture.move_to_tomorrow(outcome.task.id, now=NOW)
        assert task.date == "2024-05-02"
        assert task.reminder_id is None


class TestOverdue:
    def test_move_overdue_to_today(self, capture):
        capture.storage.add_task("eski", "2024-04-28")
        capture.storage.add_task("daha eski", "2024-04-20")

        moved = capture.move_overdue_to_today(TODAY)

        assert len(moved) == 2
        assert {t.text for t in capture.tasks_for(TODAY)} == {"eski", "daha eski"}
        assert capture.storage.overdue_tasks(TODAY) == []


def test_build_confirmation():
    confirmation = build_confirmation("sunum", date(2024, 5, 4))
    assert confirmation.message == '"sunum" görevi 4 Mayıs Cumartesi tarihine eklendi.'
