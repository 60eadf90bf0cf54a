"""Tests for pickup log stores and the pickup log service."""

import json
import threading
from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from pickup_tracker.database import DatabaseLogStore
from pickup_tracker.models import PickupRecord
from pickup_tracker.services.pickup_log import (
    InvalidTimestampError,
    PickupLogService,
    StorageWriteError,
    parse_timestamp,
)
from pickup_tracker.storage import (
    InMemoryLogStore,
    JsonFileLogStore,
    LogStore,
    create_log_store,
)

AMSTERDAM = ZoneInfo("Europe/Amsterdam")
NOW = datetime(2024, 3, 20, 9, 0, tzinfo=timezone.utc)


def make_record(record_id, cost="0.66", date="2024-03-06"):
    return PickupRecord(
        id=record_id,
        timestamp=f"{date}T15:50:00",
        child="Alex",
        pickup_time="15:50",
        date=date,
        day="Wednesday",
        cost=Decimal(cost),
        time_slot="15:45-16:15",
        created_at="2024-03-06T14:50:01+00:00",
    )


class TestJsonFileLogStore:
    """Test the flat-file store."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileLogStore(tmp_path / "data" / "pickup-logs.json")
        assert store.load() == []
        assert store.count() == 0

    def test_save_creates_directory_and_file(self, tmp_path):
        path = tmp_path / "data" / "pickup-logs.json"
        store = JsonFileLogStore(path)

        assert store.save([make_record(2), make_record(1, cost="0")]) is True
        assert path.exists()

        data = json.loads(path.read_text(encoding="utf-8"))
        assert [entry["id"] for entry in data] == [2, 1]
        assert data[0]["pickupTime"] == "15:50"
        assert data[0]["timeSlot"] == "15:45-16:15"
        assert data[0]["createdAt"] == "2024-03-06T14:50:01+00:00"
        assert data[0]["cost"] == 0.66

    def test_round_trip_keeps_exact_costs(self, tmp_path):
        store = JsonFileLogStore(tmp_path / "logs.json")
        records = [make_record(3, cost="3.30"), make_record(2, cost="1.32"), make_record(1, cost="0")]
        store.save(records)

        loaded = store.load()
        assert [r.id for r in loaded] == [3, 2, 1]
        assert [r.cost for r in loaded] == [Decimal("3.30"), Decimal("1.32"), Decimal("0")]
        assert loaded[0].cost == Decimal("3.3")

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "logs.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileLogStore(path).load() == []

    def test_non_list_document_is_empty(self, tmp_path):
        path = tmp_path / "logs.json"
        path.write_text('{"id": 1}', encoding="utf-8")
        assert JsonFileLogStore(path).load() == []

    def test_unreadable_entries_skipped(self, tmp_path):
        path = tmp_path / "logs.json"
        path.write_text(json.dumps([
            {"id": 2, "date": "2024-03-06", "cost": 0.66},
            {"child": "no id"},
            "garbage",
            {"id": 1, "child": "Alex"},
        ]), encoding="utf-8")

        loaded = JsonFileLogStore(path).load()
        assert [r.id for r in loaded] == [2, 1]
        assert loaded[1].date is None
        assert loaded[1].cost == Decimal("0")

    def test_unwritable_path_reports_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileLogStore(blocker / "logs.json")
        assert store.save([make_record(1)]) is False

    def test_implements_protocol(self, tmp_path):
        assert isinstance(JsonFileLogStore(tmp_path / "logs.json"), LogStore)
        assert isinstance(InMemoryLogStore(), LogStore)


class TestDatabaseLogStore:
    """Test the SQLite-backed store."""

    def setup_method(self):
        self.store = DatabaseLogStore("sqlite://")

    def test_empty(self):
        assert self.store.load() == []
        assert self.store.count() == 0

    def test_save_and_load_newest_first(self):
        assert self.store.save([make_record(1), make_record(3, cost="3.63"), make_record(2, cost="0")]) is True

        loaded = self.store.load()
        assert [r.id for r in loaded] == [3, 2, 1]
        assert loaded[0].cost == Decimal("3.63")
        assert loaded[1].cost == Decimal("0")
        assert loaded[2].time_slot == "15:45-16:15"
        assert self.store.count() == 3

    def test_save_replaces_collection(self):
        self.store.save([make_record(1), make_record(2)])
        self.store.save([make_record(5)])
        assert [r.id for r in self.store.load()] == [5]

    def test_implements_protocol(self):
        assert isinstance(self.store, LogStore)


class TestCreateLogStore:
    """Test store selection."""

    def test_json_backend(self):
        assert isinstance(create_log_store("json"), JsonFileLogStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_log_store("redis")


class TestPickupLogService:
    """Test submitting pickups through the service."""

    def setup_method(self):
        self.store = InMemoryLogStore()
        self.service = PickupLogService(self.store, zone=AMSTERDAM, clock=lambda: NOW)

    def test_log_pickup_builds_record(self):
        """Wednesday 15:50 is charged the first paid tier."""
        record = self.service.log_pickup(datetime(2024, 3, 6, 15, 50), "Alex")

        assert record.cost == Decimal("0.66")
        assert record.time_slot == "15:45-16:15"
        assert record.day == "Wednesday"
        assert record.date == "2024-03-06"
        assert record.pickup_time == "15:50"
        assert record.child == "Alex"
        assert record.timestamp == "2024-03-06T15:50:00"
        assert record.created_at == NOW.isoformat()
        assert record.id == int(NOW.timestamp() * 1000)
        assert self.store.load() == [record]

    def test_wednesday_noon_is_free(self):
        record = self.service.log_pickup(datetime(2024, 3, 6, 12, 15), "Alex")
        assert record.cost == Decimal("0")
        assert record.time_slot == "12:10-12:30 (Wednesday free)"

    def test_date_and_day_follow_configured_zone(self):
        """23:30 UTC on Wednesday is already Thursday in Amsterdam."""
        record = self.service.log_pickup(datetime(2024, 3, 6, 23, 30, tzinfo=timezone.utc), "Alex")
        assert record.date == "2024-03-07"
        assert record.day == "Thursday"
        assert record.pickup_time == "00:30"

    def test_newest_first_with_increasing_ids(self):
        """Ids stay unique even when the clock does not move."""
        first = self.service.log_pickup(datetime(2024, 3, 4, 16, 0), "Alex")
        second = self.service.log_pickup(datetime(2024, 3, 5, 16, 0), "Sam")

        assert second.id > first.id
        assert [r.id for r in self.store.load()] == [second.id, first.id]

    @pytest.mark.parametrize("instant,child", [
        (None, "Alex"),
        (datetime(2024, 3, 6, 15, 50), None),
        (datetime(2024, 3, 6, 15, 50), ""),
        (datetime(2024, 3, 6, 15, 50), "   "),
        ("", "Alex"),
        ("  ", "Alex"),
    ])
    def test_missing_fields_rejected(self, instant, child):
        with pytest.raises(ValueError, match="Timestamp and child are required"):
            self.service.log_pickup(instant, child)
        assert self.store.load() == []

    def test_submitted_timestamp_kept_verbatim(self):
        """The submitted text is stored unchanged; date and time are derived locally."""
        record = self.service.log_pickup("2024-03-06T14:50:00Z", "Alex")
        assert record.timestamp == "2024-03-06T14:50:00Z"
        assert record.pickup_time == "15:50"
        assert record.cost == Decimal("0.66")

    def test_unparseable_timestamp(self):
        with pytest.raises(InvalidTimestampError, match="Invalid timestamp: yesterday"):
            self.service.log_pickup("yesterday", "Alex")
        assert self.store.load() == []

    def test_child_name_trimmed(self):
        record = self.service.log_pickup(datetime(2024, 3, 6, 15, 50), "  Alex ")
        assert record.child == "Alex"

    def test_write_failure(self):
        self.store.fail_writes = True
        with pytest.raises(StorageWriteError):
            self.service.log_pickup(datetime(2024, 3, 6, 15, 50), "Alex")
        assert self.store.load() == []

    def test_concurrent_submissions_all_kept(self):
        """Serialized writes keep every submission."""
        def submit(n):
            self.service.log_pickup(datetime(2024, 3, 4, 16, n), f"child-{n}")

        threads = [threading.Thread(target=submit, args=(n,)) for n in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        records = self.store.load()
        assert len(records) == 20
        assert len({r.id for r in records}) == 20

    def test_works_with_json_store(self, tmp_path):
        store = JsonFileLogStore(tmp_path / "data" / "pickup-logs.json")
        service = PickupLogService(store, zone=AMSTERDAM, clock=lambda: NOW)

        record = service.log_pickup(datetime(2024, 3, 6, 15, 50), "Alex")
        assert store.load() == [record]


class TestParseTimestamp:
    """Test timestamp parsing."""

    def test_utc_suffix(self):
        assert parse_timestamp("2024-03-06T14:50:00Z") == datetime(2024, 3, 6, 14, 50, tzinfo=timezone.utc)

    def test_naive_text(self):
        assert parse_timestamp("2024-03-06T15:50:00") == datetime(2024, 3, 6, 15, 50)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            parse_timestamp("not a time")
