"""Pickup log service: submitting, listing and exporting pickups."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from pickup_tracker.config import settings
from pickup_tracker.models import LogsResponse, LogStats, PickupRecord
from pickup_tracker.services.aggregator import (
    aggregate,
    calculate_totals,
    filter_records,
    month_key,
    sort_by_month_desc,
)
from pickup_tracker.services.cost_calculator import (
    CostCalculatorInterface,
    TariffCostCalculator,
    to_local,
)
from pickup_tracker.services.report import create_detail_csv, create_summary_csv
from pickup_tracker.storage import LogStore, get_log_store
from pickup_tracker.tariffs import WEEKDAY_NAMES

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Timestamp and child are required"
SUMMARY_EXPORT = "summary"


class StorageWriteError(RuntimeError):
    """Raised when the log store could not persist a new pickup."""


class InvalidTimestampError(ValueError):
    """Raised when a pickup timestamp is not a valid ISO-8601 moment."""


@dataclass(frozen=True)
class CsvExport:
    """A rendered CSV report and its download name."""
    filename: str
    content: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


_datetime_adapter = TypeAdapter(datetime)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z`` for UTC."""
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        raise InvalidTimestampError(f"Invalid timestamp: {value}")


class PickupLogService:
    """
    Records pickups and answers listing/export queries over a log store.

    Writes are serialized so two submissions cannot overwrite each other's
    read-append-write cycle.
    """

    def __init__(
        self,
        store: LogStore,
        calculator: Optional[CostCalculatorInterface] = None,
        zone: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.zone = zone or settings.tzinfo
        self.calculator = calculator or TariffCostCalculator(zone=self.zone)
        self.clock = clock
        self._write_lock = threading.Lock()

    def build_record(
        self,
        pickup_instant: datetime,
        child: str,
        record_id: int,
        timestamp: Optional[str] = None,
    ) -> PickupRecord:
        """Derive a pickup record; ``timestamp`` is the submitted text, kept as is."""
        local = to_local(pickup_instant, self.zone)
        cost_info = self.calculator.calculate_cost(pickup_instant)
        return PickupRecord(
            id=record_id,
            timestamp=timestamp or pickup_instant.isoformat(),
            child=child,
            pickup_time=local.strftime("%H:%M"),
            date=local.strftime("%Y-%m-%d"),
            day=WEEKDAY_NAMES[local.weekday()],
            cost=cost_info.cost,
            time_slot=cost_info.time_slot,
            created_at=self.clock().isoformat(),
        )

    def _next_id(self, records: List[PickupRecord]) -> int:
        candidate = int(self.clock().timestamp() * 1000)
        if records:
            candidate = max(candidate, max(r.id for r in records) + 1)
        return candidate

    def log_pickup(
        self,
        timestamp: Union[str, datetime, None],
        child: Optional[str],
    ) -> PickupRecord:
        """
        Calculate the cost of a pickup and prepend it to the log.

        Args:
            timestamp: Moment of pickup, as submitted (ISO-8601 text) or a datetime
            child: Name of the child

        Returns:
            The stored PickupRecord

        Raises:
            ValueError: If the timestamp or the child name is missing
            InvalidTimestampError: If the timestamp cannot be parsed
            StorageWriteError: If the log store rejected the write
        """
        child = child.strip() if child else ""
        if isinstance(timestamp, str) and not timestamp.strip():
            timestamp = None
        if timestamp is None or not child:
            raise ValueError(REQUIRED_FIELDS_MESSAGE)

        pickup_instant = parse_timestamp(timestamp)
        raw = timestamp if isinstance(timestamp, str) else None

        with self._write_lock:
            records = self.store.load()
            record = self.build_record(pickup_instant, child, self._next_id(records), raw)
            records.insert(0, record)
            if not self.store.save(records):
                raise StorageWriteError("Failed to save log")

        logger.info("Logged pickup %s for %s at %s (%s)", record.id, child, record.pickup_time, record.cost)
        return record

    def list_logs(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        child: Optional[str] = None,
    ) -> LogsResponse:
        """Filtered pickups with totals and per-month statistics."""
        records = filter_records(self.store.load(), year=year, month=month, child=child)
        total_cost, total_pickups = calculate_totals(records)
        return LogsResponse(
            logs=records,
            stats=LogStats(
                total_cost=total_cost,
                total_pickups=total_pickups,
                monthly_stats=aggregate(records),
            ),
        )

    def export_csv(
        self,
        report_type: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> CsvExport:
        """
        Render a CSV export.

        Without ``year`` and ``month`` the current calendar month is used.
        The detail export lists that month's pickups; the summary export
        covers every month in the log, newest first.
        """
        records = self.store.load()

        if year is not None and month is not None:
            target = month_key(year, month)
        else:
            now = to_local(self.clock(), self.zone)
            year, month = now.year, now.month
            target = month_key(year, month)

        prefix = f"{settings.EXPORT_FILENAME_PREFIX}-{target}"

        if report_type == SUMMARY_EXPORT:
            content = create_summary_csv(sort_by_month_desc(aggregate(records)))
            return CsvExport(filename=f"{prefix}-summary.csv", content=content)

        content = create_detail_csv(filter_records(records, year=year, month=month))
        return CsvExport(filename=f"{prefix}.csv", content=content)


# Singleton instance for default service
_default_service: Optional[PickupLogService] = None


def get_pickup_service() -> PickupLogService:
    """Get the default pickup log service backed by the configured store."""
    global _default_service
    if _default_service is None:
        _default_service = PickupLogService(get_log_store())
    return _default_service
