"""Filtering and monthly aggregation of pickup records."""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pickup_tracker.models import MonthlySummary, PickupRecord


def month_key(year: int, month: int) -> str:
    """Format a ``(year, month)`` pair as ``YYYY-MM``."""
    return f"{int(year):04d}-{int(month):02d}"


def filter_records(
    records: Iterable[PickupRecord],
    year: Optional[int] = None,
    month: Optional[int] = None,
    child: Optional[str] = None,
) -> List[PickupRecord]:
    """
    Filter records by calendar month and/or child.

    The month filter only applies when both ``year`` and ``month`` are given.
    The child filter is an exact, case-insensitive name match.
    """
    filtered = list(records)

    if year is not None and month is not None:
        target = month_key(year, month)
        filtered = [r for r in filtered if r.month_key == target]

    if child:
        wanted = child.lower()
        filtered = [r for r in filtered if r.child and r.child.lower() == wanted]

    return filtered


def calculate_totals(records: Sequence[PickupRecord]) -> Tuple[Decimal, int]:
    """Total cost and number of pickups over all records."""
    return sum((r.cost for r in records), Decimal("0")), len(records)


def aggregate(records: Iterable[PickupRecord]) -> List[MonthlySummary]:
    """
    Group records into monthly summaries.

    Records without a date are left out. Months appear in the order they are
    first seen in ``records``.
    """
    groups: Dict[str, MonthlySummary] = {}

    for record in records:
        key = record.month_key
        if key is None:
            continue
        summary = groups.setdefault(key, MonthlySummary(month=key))
        summary.pickup_count += 1
        summary.total_cost += record.cost
        if record.cost == 0:
            summary.free_day_count += 1

    for summary in groups.values():
        summary.paid_day_count = summary.pickup_count - summary.free_day_count
        if summary.pickup_count > 0:
            summary.average_cost_per_pickup = summary.total_cost / summary.pickup_count
        else:
            summary.average_cost_per_pickup = Decimal("0")

    return list(groups.values())


def sort_by_month_desc(summaries: Iterable[MonthlySummary]) -> List[MonthlySummary]:
    """Most recent month first."""
    return sorted(summaries, key=lambda s: s.month, reverse=True)
