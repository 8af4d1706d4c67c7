import json

import pytest

from sopmetrics.data.data_repository import DataRepository
from sopmetrics.data.db import RowStore
from sopmetrics.data.exceptions import EntityReaderError, InvalidRecordError
from sopmetrics.data.models import SopStatus, TimeWindow
from sopmetrics.data.repositories import CompletionRepository, SopRepository


class TestEntityReader:
    def test_list_steps_in_order_with_events(self, reader):
        steps = reader.list_steps("sop-1")

        assert [s.id for s in steps] == ["s1-a", "s1-b", "s1-c"]
        assert sorted(e.id for e in steps[0].completion_events) == ["c1", "c3"]
        assert steps[2].completion_events == []

    def test_list_completion_events_in_window(self, reader, now):
        events = reader.list_completion_events(TimeWindow.LAST_30_DAYS, now=now)
        assert [e.id for e in events] == ["c1", "c2", "c3", "c4"]
        assert len(reader.list_completion_events(TimeWindow.ALL_TIME, now=now)) == 5

    def test_list_sops_newest_first_with_nested_steps(self, reader):
        sops = reader.list_sops(limit=2)

        assert [s.id for s in sops] == ["sop-1", "sop-2"]
        assert [s.id for s in sops[0].steps] == ["s1-a", "s1-b", "s1-c"]
        assert [s.id for s in reader.list_sops(descending=False)] == ["sop-3", "sop-2", "sop-1"]

    def test_list_sops_by_owner(self, reader):
        (sop,) = reader.list_sops_by_owner("user-1")
        assert sop.id == "sop-1"
        assert len(sop.steps) == 3
        assert reader.list_sops_by_owner("nobody") == []

    def test_count_active_users(self, reader, now):
        assert reader.count_active_users(TimeWindow.LAST_30_DAYS, now=now) == 2
        assert reader.count_active_users(TimeWindow.LAST_7_DAYS, now=now) == 1
        assert reader.count_active_users(TimeWindow.ALL_TIME, now=now) == 3

    def test_snapshot(self, reader, now):
        snapshot = reader.snapshot(now=now)

        assert snapshot.captured_at == now
        assert [s.id for s in snapshot.sops] == ["sop-1", "sop-2", "sop-3"]
        assert len(snapshot.steps) == 5
        assert len(snapshot.completion_events) == 5
        assert len(snapshot.profiles) == 3
        assert snapshot.invalid_record_count == 0
        assert snapshot.sops[1].title == "Month-end Close"
        assert [s.id for s in snapshot.sops[1].steps] == ["s2-a", "s2-b"]

    def test_data_summary(self, reader, tmp_path):
        summary = reader.get_data_summary()

        assert summary["sops"]["document_count"] == 3
        assert summary["sops"]["by_status"] == {"draft": 2, "published": 1, "archived": 0}
        assert summary["completions"]["invalid_count"] == 0

        target = tmp_path / "summary.json"
        reader.export_summary(target)
        assert json.loads(target.read_text())["profiles"]["document_count"] == 3


class TestInvalidRows:
    def test_invalid_rows_are_skipped_and_counted(self, settings, raw_rows, now):
        raw_rows["completions"].append({"id": "bad-1", "step_id": "s1-a"})
        raw_rows["steps"].append({"id": "bad-2", "sop_id": "sop-1", "order_index": -3})
        reader = DataRepository(settings, db=RowStore())
        reader.load_records(**raw_rows)

        snapshot = reader.snapshot(now=now)

        assert len(snapshot.completion_events) == 5
        assert len(snapshot.steps) == 5
        assert snapshot.invalid_record_count == 2

    def test_rejections_are_counted_once(self, raw_rows):
        repo = CompletionRepository(db=RowStore())
        repo.load_records(raw_rows["completions"] + [{"id": "bad"}])

        repo.get_all()
        repo.clear_cache()
        repo.get_all()

        assert repo.invalid_record_count == 1
        assert repo.count() == 6

    def test_non_object_rows_abort_the_load(self, settings):
        reader = DataRepository(settings, db=RowStore())
        with pytest.raises(EntityReaderError):
            reader.load_records(sops=["not a row"])

    def test_invalid_record_error_message(self):
        error = InvalidRecordError("sops", "sop-9", "status: bad")
        assert "sops" in str(error)
        assert "sop-9" in str(error)


class TestLoadingFiles:
    def test_load_from_directory(self, settings, data_dir, now):
        reader = DataRepository(settings, db=RowStore())

        loaded = reader.load_data_from_directory(data_dir)

        assert loaded == {
            "sops.json": 3,
            "sop_steps.json": 5,
            "sop_step_completions.json": 5,
            "profiles.json": 3,
        }
        assert len(reader.snapshot(now=now).completion_events) == 5

    def test_connect_reads_configured_paths(self, settings, data_dir, now):
        settings.use_data_dir(str(data_dir))
        reader = DataRepository(settings, db=RowStore())

        reader.connect()

        assert len(reader.snapshot(now=now).sops) == 3

    def test_missing_files_are_skipped(self, settings, data_dir, now):
        (data_dir / "profiles.json").unlink()
        reader = DataRepository(settings, db=RowStore())

        loaded = reader.load_data_from_directory(data_dir)

        assert "profiles.json" not in loaded
        assert reader.snapshot(now=now).profiles == []

    def test_missing_directory_raises(self, settings, tmp_path):
        reader = DataRepository(settings, db=RowStore())
        with pytest.raises(EntityReaderError):
            reader.load_data_from_directory(tmp_path / "nowhere")

    def test_unreadable_file_raises(self, settings, data_dir):
        (data_dir / "sops.json").write_text("[{not json", encoding="utf-8")
        reader = DataRepository(settings, db=RowStore())
        with pytest.raises(EntityReaderError):
            reader.load_data_from_directory(data_dir)

    def test_connect_wraps_unreadable_file(self, settings, data_dir):
        (data_dir / "sop_steps.json").write_text("{", encoding="utf-8")
        settings.use_data_dir(str(data_dir))
        reader = DataRepository(settings, db=RowStore())
        with pytest.raises(EntityReaderError):
            reader.snapshot()


class TestSopRepository:
    @pytest.fixture
    def repo(self, raw_rows):
        repo = SopRepository(db=RowStore())
        repo.load_records(raw_rows["sops"])
        return repo

    def test_find_recent(self, repo):
        assert [s.id for s in repo.find_recent(limit=2)] == ["sop-1", "sop-2"]

    def test_find_by_status_treats_missing_status_as_draft(self, repo):
        assert [s.id for s in repo.find_by_status(SopStatus.DRAFT)] == ["sop-2", "sop-3"]
        assert [s.id for s in repo.find_by_status("published")] == ["sop-1"]
        assert repo.find_by_status(SopStatus.ARCHIVED) == []

    def test_find_by_owner_accepts_camel_case_rows(self, repo):
        repo.load_records(
            [
                {
                    "id": "sop-4",
                    "title": "Camel",
                    "createdAt": "2024-03-02T00:00:00Z",
                    "createdBy": "user-1",
                }
            ]
        )
        assert [s.id for s in repo.find_by_owner("user-1")] == ["sop-4", "sop-1"]

    def test_integer_creator_ids_are_kept_and_matched(self, repo):
        repo.load_records(
            [{"id": 4, "title": "Numeric", "created_at": "2024-03-03T00:00:00Z", "created_by": 42}]
        )

        assert repo.invalid_record_count == 0
        assert [s.id for s in repo.find_by_owner(42)] == ["4"]
        assert [s.id for s in repo.find_by_owner("42")] == ["4"]

    def test_find_by_id(self, repo):
        assert repo.find_by_id("sop-3").title == "Archive Review"
        assert repo.find_by_id("missing") is None


class TestIntegerKeys:
    def test_sop_with_integer_creator_reaches_the_owner_view(self, settings, raw_rows, now):
        raw_rows["sops"].append(
            {"id": 9, "title": "Payroll", "created_at": "2024-03-05T00:00:00Z", "created_by": 101}
        )
        reader = DataRepository(settings, db=RowStore())
        reader.load_records(**raw_rows)

        snapshot = reader.snapshot(now=now)

        assert len(snapshot.sops) == 4
        assert snapshot.invalid_record_count == 0
        assert [s.id for s in reader.list_sops_by_owner(101)] == ["9"]
