"""Tests for the deadline store."""

import json
import pytest
from datetime import datetime
from unittest.mock import patch

from deadline_watch.models import DeadlineRecord
from deadline_watch.store import CorruptStoreError, DeadlineStore


def _record(message="Submit report", due_at=datetime(2025, 8, 2), notified=False):
    return DeadlineRecord(message=message, due_at=due_at, notified=notified)


class TestLoad:
    """Tests for loading the backing file."""

    def test_missing_file_is_empty(self, store_path):
        store = DeadlineStore(str(store_path))

        assert store.load() == []
        assert len(store) == 0

    @pytest.mark.parametrize("content", ["", "   ", "\n\t  \n"])
    def test_blank_file_is_empty(self, store_path, content):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(content)

        assert DeadlineStore(str(store_path)).load() == []

    def test_loads_records_in_file_order(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps([
            {"message": "first", "time": "2025-08-03T00:00", "notified": False},
            {"message": "second", "time": "2025-08-02T00:00", "notified": True},
        ]))

        records = DeadlineStore(str(store_path)).load()

        assert [r.message for r in records] == ["first", "second"]
        assert records[1].notified is True

    def test_legacy_file_with_null_time_loads(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps([
            {"msg": "ok", "time": "2025-08-02T00:00"},
            {"msg": "Bring ID cards", "time": None},
        ]))

        records = DeadlineStore(str(store_path)).load()

        assert [r.message for r in records] == ["ok", "Bring ID cards"]
        assert records[1].due_at is None

    @pytest.mark.parametrize("content", [
        "{not json",
        '{"message": "x", "time": "2025-08-02T00:00"}',
        '[{"message": "x"}]',
        '[{"message": "x", "time": "soon"}]',
    ])
    def test_corrupt_file_fails_fast(self, store_path, content):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(content)

        with pytest.raises(CorruptStoreError):
            DeadlineStore(str(store_path)).load()


class TestAppend:
    """Tests for appending records."""

    def test_append_writes_json_array(self, store, store_path):
        store.append(_record(due_at=datetime(2025, 8, 2, 18, 30)))

        data = json.loads(store_path.read_text())
        assert data == [{"message": "Submit report", "time": "2025-08-02T18:30", "notified": False}]

    def test_append_then_reload_matches_memory(self, store, store_path):
        store.append(_record("first", datetime(2025, 8, 3)))
        store.append(_record("second", datetime(2025, 8, 2, 9, 15)))
        store.append(_record("third", datetime(2025, 8, 1, 23, 59)))

        reloaded = DeadlineStore(str(store_path)).load()

        assert reloaded == store.records

    def test_append_preserves_insertion_order(self, store):
        """No sorting by due time."""
        store.append(_record("later", datetime(2025, 9, 1)))
        store.append(_record("sooner", datetime(2025, 8, 1)))

        assert [r.message for r in store.records] == ["later", "sooner"]

    def test_append_extends_existing_file(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(json.dumps([
            {"message": "old", "time": "2025-07-01T00:00", "notified": True},
        ]))
        store = DeadlineStore(str(store_path))
        store.load()

        store.append(_record("new"))

        data = json.loads(store_path.read_text())
        assert [d["message"] for d in data] == ["old", "new"]

    def test_failed_write_is_not_committed(self, store):
        with patch.object(store, "_save", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.append(_record())

        assert len(store) == 0

    def test_no_temp_file_left_behind(self, store, store_path):
        store.append(_record())

        assert [p.name for p in store_path.parent.iterdir()] == ["deadlines.json"]


class TestMarkNotified:
    """Tests for flagging records as alerted."""

    def test_mark_notified_persists(self, store, store_path):
        record = _record()
        store.append(record)

        store.mark_notified(record)

        assert record.notified is True
        assert json.loads(store_path.read_text())[0]["notified"] is True

    def test_mark_notified_twice_is_idempotent(self, store):
        record = _record("Pay fees", datetime(2025, 8, 2, 12, 0))
        store.append(record)

        store.mark_notified(record)
        store.mark_notified(record)

        assert len(store) == 1
        assert store.records[0] == DeadlineRecord("Pay fees", datetime(2025, 8, 2, 12, 0), True)

    def test_mark_notified_only_touches_that_record(self, store):
        first, second = _record("first"), _record("second")
        store.append(first)
        store.append(second)

        store.mark_notified(second)

        assert first.notified is False
        assert store.pending() == [first]

    def test_mark_notified_identical_records_by_identity(self, store):
        """Two records with the same text and time are still distinct."""
        first, second = _record(), _record()
        store.append(first)
        store.append(second)

        store.mark_notified(second)

        assert [r.notified for r in store.records] == [False, True]

    def test_unknown_record_raises(self, store):
        with pytest.raises(KeyError):
            store.mark_notified(_record())

    def test_failed_write_reverts_flag(self, store):
        record = _record()
        store.append(record)

        with patch.object(store, "_save", side_effect=OSError("read-only filesystem")):
            with pytest.raises(OSError):
                store.mark_notified(record)

        assert record.notified is False
        assert store.pending() == [record]
