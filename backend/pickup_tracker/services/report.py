"""CSV rendering of pickup logs and monthly summaries."""

import csv
import io
from decimal import Decimal
from typing import Iterable, List

from pickup_tracker.models import MonthlySummary, PickupRecord

UTF8_BOM = "\ufeff"

DETAIL_HEADERS = [
    "Date",
    "Time",
    "Day",
    "Child",
    "Time Slot",
    "Cost (€)",
    "Remark",
]

SUMMARY_HEADERS = [
    "Month",
    "Total Pickups",
    "Free Days",
    "Paid Days",
    "Total Cost (€)",
    "Average per Pickup (€)",
]

FREE_REMARK = "Free"


def format_amount(value) -> str:
    """Two-decimal string for a money amount."""
    return f"{Decimal(value or 0):.2f}"


def _write_rows(header: List[str], rows: Iterable[List[str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    # No trailing newline after the last row
    return buffer.getvalue().rstrip("\n")


def detail_row(record: PickupRecord) -> List[str]:
    return [
        record.date or "",
        record.pickup_time or "",
        record.day or "",
        record.child or "",
        record.time_slot or "",
        format_amount(record.cost),
        FREE_REMARK if record.cost == 0 else "",
    ]


def summary_row(summary: MonthlySummary) -> List[str]:
    return [
        summary.month,
        str(summary.pickup_count),
        str(summary.free_day_count),
        str(summary.paid_day_count),
        format_amount(summary.total_cost),
        format_amount(summary.average_cost_per_pickup),
    ]


def create_detail_csv(records: Iterable[PickupRecord]) -> str:
    """One quoted row per pickup under the detail header."""
    return _write_rows(DETAIL_HEADERS, (detail_row(r) for r in records))


def create_summary_csv(summaries: Iterable[MonthlySummary]) -> str:
    """One quoted row per month under the summary header."""
    return _write_rows(SUMMARY_HEADERS, (summary_row(s) for s in summaries))


def with_bom(text: str) -> str:
    """Prefix text with a UTF-8 byte-order mark so spreadsheets detect the encoding."""
    return UTF8_BOM + text
