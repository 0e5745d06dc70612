"""Tests for the markdown task store."""

from datetime import date, datetime

import pytest

from unutma.parser import ParseContext, TemporalPhraseParser
from unutma.storage import DayMarkdownFormat, Storage, TaskMarkdownFormat, TaskNotFoundError
from unutma.task import Task, TaskStatus


class TestTaskMarkdownFormat:
    def test_round_trip(self):
        task = Task(
            text="toplantı yarın akşam",
            date="2024-05-02",
            created_at=datetime(2024, 5, 1, 10, 0, 5),
            reminder_id="n-1",
            reminder_date=datetime(2024, 5, 2, 21, 0),
        )
        line = TaskMarkdownFormat.to_markdown(task)
        parsed = TaskMarkdownFormat.from_markdown(line, "2024-05-02")

        assert parsed == task
        assert line.count("<!--") == 1

    def test_completed_checkbox(self):
        task = Task(text="bitti", date="2024-05-02", status=TaskStatus.COMPLETED)
        line = TaskMarkdownFormat.to_markdown(task)
        assert line.startswith("- [x] bitti")
        assert TaskMarkdownFormat.from_markdown(line, "2024-05-02").completed

    def test_line_without_id_is_skipped(self):
        assert TaskMarkdownFormat.from_markdown("- [ ] el yazısı görev", "2024-05-02") is None

    def test_non_task_lines(self):
        assert TaskMarkdownFormat.from_markdown("# 2 Mayıs Perşembe", "2024-05-02") is None
        assert TaskMarkdownFormat.from_markdown("", "2024-05-02") is None

    def test_invalid_timestamp_is_skipped(self):
        line = "- [ ] görev <!-- id:abc created:yesterday -->"
        assert TaskMarkdownFormat.from_markdown(line, "2024-05-02") is None

    def test_comment_markers_in_text(self):
        task = Task(text="a <!-- b", date="2024-05-02")
        parsed = TaskMarkdownFormat.from_markdown(TaskMarkdownFormat.to_markdown(task), "2024-05-02")
        assert parsed.id == task.id
        assert parsed.text == "a < !-- b"

    def test_internal_whitespace_is_kept(self):
        task = Task(text="rapor  hazırla\tbugün", date="2024-05-02")
        parsed = TaskMarkdownFormat.from_markdown(TaskMarkdownFormat.to_markdown(task), "2024-05-02")
        assert parsed.text == "rapor  hazırla\tbugün"

    def test_newlines_stay_on_one_line(self):
        line = TaskMarkdownFormat.to_markdown(Task(text="süt\nal", date="2024-05-02"))
        assert "\n" not in line
        assert TaskMarkdownFormat.from_markdown(line, "2024-05-02").text == "süt al"

    def test_day_file_has_frontmatter_and_heading(self):
        task = Task(text="spor", date="2024-05-02")
        content = DayMarkdownFormat.to_markdown("2024-05-02", [task])
        assert content.startswith("---")
        assert "# 2 Mayıs Perşembe" in content
        assert DayMarkdownFormat.from_markdown(content, "2024-05-02")[0].id == task.id


class TestStorage:
    def setup_method(self):
        self.today = date(2024, 5, 1)

    @pytest.fixture
    def storage(self, config):
        return Storage(config)

    def test_add_and_list(self, storage):
        first = storage.add_task("bir", "2024-05-01")
        second = storage.add_task("iki", "2024-05-01")
        storage.add_task("üç", "2024-05-02")

        assert [t.id for t in storage.tasks_for_date("2024-05-01")] == [first.id, second.id]
        assert storage.list_days() == ["2024-05-01", "2024-05-02"]
        assert len(storage.all_tasks()) == 3

    def test_parse_store_round_trip(self, storage, config):
        parser = TemporalPhraseParser()
        result = parser.parse(ParseContext("toplantı yarın akşam", self.today, datetime(2024, 5, 1, 10, 0)))

        task = storage.add_task(result.task_text, result.date_key)
        storage.set_reminder(task.id, "n-1", result.reminder_instant)

        reloaded = Storage(config).get_task(task.id)
        assert reloaded.date == result.date_key
        assert reloaded.day == result.target_date
        assert reloaded.reminder_date == result.reminder_instant

    def test_stored_text_equals_parsed_text(self, storage, config):
        task = storage.add_task("rapor  hazırla", "2024-05-01")
        assert Storage(config).get_task(task.id).text == "rapor  hazırla"

    def test_get_missing(self, storage):
        with pytest.raises(TaskNotFoundError):
            storage.get_task("nope")

    def test_toggle(self, storage):
        task = storage.add_task("spor", "2024-05-01")
        assert storage.toggle_task(task.id).status == TaskStatus.COMPLETED
        assert storage.get_task(task.id).completed
        assert storage.toggle_task(task.id).status == TaskStatus.PENDING

    def test_update_text(self, storage):
        task = storage.add_task("spor", "2024-05-01")
        storage.update_task(task.id, "yüzme")
        assert storage.get_task(task.id).text == "yüzme"

    def test_delete_and_restore(self, storage, config):
        task = storage.add_task("spor", "2024-05-01")
        storage.delete_task(task.id)

        assert storage.tasks_for_date("2024-05-01") == []
        assert not config.get_day_path("2024-05-01").exists()

        restored = storage.restore_last_deleted()
        assert restored.id == task.id
        assert storage.get_task(task.id).text == "spor"
        assert storage.restore_last_deleted() is None

    def test_move_task(self, storage):
        task = storage.add_task("spor", "2024-05-01")
        moved = storage.move_task_to_date(task.id, "2024-05-03")

        assert moved.date == "2024-05-03"
        assert storage.tasks_for_date("2024-05-01") == []
        assert storage.get_task(task.id).date == "2024-05-03"

    def test_move_to_invalid_key(self, storage):
        task = storage.add_task("spor", "2024-05-01")
        with pytest.raises(ValueError):
            storage.move_task_to_date(task.id, "yarın")

    def test_clear_reminder(self, storage):
        task = storage.add_task("spor", "2024-05-01")
        storage.set_reminder(task.id, "n-1", datetime(2024, 5, 1, 18, 0))
        cleared = storage.clear_reminder(task.id)
        assert cleared.reminder_id is None
        assert storage.get_task(task.id).reminder_date is None

    def test_overdue(self, storage):
        old = storage.add_task("eski", "2024-04-29")
        done = storage.add_task("bitmiş", "2024-04-30")
        storage.toggle_task(done.id)
        storage.add_task("bugün", "2024-05-01")

        assert [t.id for t in storage.overdue_tasks(self.today)] == [old.id]

    def test_ignores_foreign_files(self, storage, config):
        (config.get_days_dir() / "notes.md").write_text("# notes", encoding="utf-8")
        assert storage.list_days() == []
