#!/usr/bin/env python3
"""
Pickup log management utility.

Usage:
    python manage_logs.py show [child]                 - Show all logged pickups
    python manage_logs.py summary                      - Show monthly summaries
    python manage_logs.py tariffs                      - Show the tariff table
    python manage_logs.py quote <timestamp>            - Show the cost of a pickup time
    python manage_logs.py log <timestamp> <child>      - Log a pickup
    python manage_logs.py export [summary] [YYYY-MM]   - Write a CSV export
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from pickup_tracker.services import (
    get_cost_calculator,
    get_pickup_service,
    parse_timestamp,
    InvalidTimestampError,
    StorageWriteError,
)
from pickup_tracker.services.aggregator import aggregate, sort_by_month_desc
from pickup_tracker.services.report import with_bom
from pickup_tracker.tariffs import OUTSIDE_HOURS_COST, OUTSIDE_HOURS_LABEL, TARIFF_RULES, SPECIAL_FREE_WINDOWS, WEEKDAY_NAMES


def show_logs(child=None):
    """Display logged pickups, newest first."""
    result = get_pickup_service().list_logs(child=child)

    print("\n" + "="*70)
    print("LOGGED PICKUPS")
    print("="*70)
    print(f"{'Date':<12} {'Time':<6} {'Day':<10} {'Child':<15} {'Time slot':<16} {'Cost':>7}")
    print("-"*70)

    for record in result.logs:
        print(
            f"{record.date or '':<12} {record.pickup_time or '':<6} {record.day or '':<10} "
            f"{record.child or '':<15} {record.time_slot or '':<16} €{record.cost:>6.2f}"
        )

    print("-"*70)
    print(f"Total pickups: {result.stats.total_pickups}")
    print(f"Total cost: €{result.stats.total_cost:.2f}")
    print("="*70)


def show_summary():
    """Display monthly summaries, most recent month first."""
    summaries = sort_by_month_desc(aggregate(get_pickup_service().store.load()))

    print("\n" + "="*60)
    print("MONTHLY SUMMARY")
    print("="*60)
    print(f"{'Month':<9} {'Pickups':>8} {'Free':>6} {'Paid':>6} {'Total':>10} {'Average':>10}")
    print("-"*60)

    for summary in summaries:
        print(
            f"{summary.month:<9} {summary.pickup_count:>8} {summary.free_day_count:>6} "
            f"{summary.paid_day_count:>6} €{summary.total_cost:>9.2f} €{summary.average_cost_per_pickup:>9.2f}"
        )

    print("="*60)


def show_tariffs():
    """Display the tariff table in matching order."""
    print("\nTARIFFS (first match wins)")
    print("-"*30)
    for window in SPECIAL_FREE_WINDOWS:
        print(f"{window.label:<30} €{window.cost:.2f} ({WEEKDAY_NAMES[window.weekday]} only)")
    for rule in TARIFF_RULES:
        print(f"{rule.label:<30} €{rule.cost:.2f}")
    print(f"{OUTSIDE_HOURS_LABEL:<30} €{OUTSIDE_HOURS_COST:.2f}")


def _parse_timestamp(value):
    try:
        return parse_timestamp(value)
    except InvalidTimestampError:
        print(f"Invalid timestamp: {value} (expected e.g. 2024-03-06T15:50:00)")
        return None


def quote_cost(timestamp=None):
    """Show the cost for a pickup time without logging it."""
    if not timestamp:
        print("Usage: python manage_logs.py quote <timestamp>")
        return
    instant = _parse_timestamp(timestamp)
    if instant is None:
        return
    result = get_cost_calculator().calculate_cost(instant)
    print(f"{instant:%Y-%m-%d %H:%M}: €{result.cost:.2f} ({result.time_slot})")


def log_pickup(timestamp=None, *child_parts):
    """Log a pickup from the command line."""
    child = " ".join(child_parts)
    if not timestamp or not child:
        print("Usage: python manage_logs.py log <timestamp> <child>")
        return
    if _parse_timestamp(timestamp) is None:
        return

    try:
        record = get_pickup_service().log_pickup(timestamp, child)
    except StorageWriteError as e:
        print(f"Error logging pickup: {e}")
        return

    print(f"✓ Pickup logged for {record.child} at {record.pickup_time} on {record.day}: "
          f"€{record.cost:.2f} ({record.time_slot})")


def export_csv(*args):
    """Write a CSV export to the current directory."""
    report_type = None
    year = month = None

    for arg in args:
        if arg == "summary":
            report_type = "summary"
        else:
            try:
                year, month = (int(part) for part in arg.split("-"))
            except ValueError:
                year = month = None
            if year is None or year < 1 or not 1 <= month <= 12:
                print(f"Invalid month: {arg} (expected YYYY-MM)")
                return

    export = get_pickup_service().export_csv(report_type=report_type, year=year, month=month)
    with open(export.filename, "w", encoding="utf-8", newline="") as f:
        f.write(with_bom(export.content))
    print(f"✓ Wrote {export.filename}")


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print(__doc__)
        return

    command = sys.argv[1].lower()

    commands = {
        'show': show_logs,
        'summary': show_summary,
        'tariffs': show_tariffs,
        'quote': quote_cost,
        'log': log_pickup,
        'export': export_csv
    }

    if command in commands:
        commands[command](*sys.argv[2:])
    else:
        print(f"Unknown command: {command}")
        print(__doc__)


if __name__ == "__main__":
    main()
