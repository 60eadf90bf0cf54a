"""Tariff table for after-school pickups.

Rules are matched in declared order and the first hit wins. Several primary
rules share the 15:45 start, so a time such as 16:00 falls inside
15:45-16:15, 15:45-16:45 and every longer window; the shortest (cheapest)
window is declared first and therefore takes precedence.
"""

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import List, Optional, Tuple

WEDNESDAY = 2  # datetime.weekday()

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass(frozen=True)
class TariffRule:
    """Inclusive time range with a fixed pickup cost."""
    start: time
    end: time
    cost: Decimal
    note: Optional[str] = None

    @property
    def label(self) -> str:
        label = f"{format_time(self.start)}-{format_time(self.end)}"
        return f"{label} ({self.note})" if self.note else label

    def matches(self, moment: time) -> bool:
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class FallbackRule:
    """Half-open time range ``[start, end)``, optionally closed at the end."""
    start: time
    end: time
    cost: Decimal
    label: str
    closed: bool = False

    def matches(self, moment: time) -> bool:
        if self.closed:
            return self.start <= moment <= self.end
        return self.start <= moment < self.end


@dataclass(frozen=True)
class SpecialFreeWindow:
    """Weekday-bound time range that is free regardless of the tariff table."""
    weekday: int
    start: time
    end: time
    label: str
    cost: Decimal = Decimal("0")

    def matches(self, weekday: int, moment: time) -> bool:
        return weekday == self.weekday and self.start <= moment <= self.end


TARIFF_RULES: Tuple[TariffRule, ...] = (
    TariffRule(time(15, 25), time(15, 45), Decimal("0"), note="free"),
    TariffRule(time(15, 45), time(16, 15), Decimal("0.66")),
    TariffRule(time(15, 45), time(16, 45), Decimal("1.32")),
    TariffRule(time(15, 45), time(17, 15), Decimal("1.98")),
    TariffRule(time(15, 45), time(17, 45), Decimal("2.64")),
    TariffRule(time(15, 45), time(18, 15), Decimal("3.30")),
    TariffRule(time(15, 45), time(18, 30), Decimal("3.63")),
    # Noon pickup on any weekday; Wednesday is already covered by the free window
    TariffRule(time(12, 10), time(12, 30), Decimal("0")),
)

FALLBACK_RULES: Tuple[FallbackRule, ...] = (
    FallbackRule(time(15, 25), time(15, 45), Decimal("0"), "15:25-15:45 (free)"),
    FallbackRule(time(15, 45), time(16, 15), Decimal("0.66"), "15:45-16:15"),
    FallbackRule(time(16, 15), time(16, 45), Decimal("1.32"), "15:45-16:45"),
    FallbackRule(time(16, 45), time(17, 15), Decimal("1.98"), "15:45-17:15"),
    FallbackRule(time(17, 15), time(17, 45), Decimal("2.64"), "15:45-17:45"),
    FallbackRule(time(17, 45), time(18, 15), Decimal("3.30"), "15:45-18:15"),
    FallbackRule(time(18, 15), time(18, 30), Decimal("3.63"), "15:45-18:30", closed=True),
)

SPECIAL_FREE_WINDOWS: Tuple[SpecialFreeWindow, ...] = (
    SpecialFreeWindow(WEDNESDAY, time(12, 10), time(12, 30), "12:10-12:30 (Wednesday free)"),
)

OUTSIDE_HOURS_COST = Decimal("3.63")
OUTSIDE_HOURS_LABEL = "outside normal hours"


def allowed_costs() -> List[Decimal]:
    """Every cost the calculator can produce, ascending."""
    costs = {rule.cost for rule in TARIFF_RULES}
    costs.update(rule.cost for rule in FALLBACK_RULES)
    costs.update(window.cost for window in SPECIAL_FREE_WINDOWS)
    costs.add(OUTSIDE_HOURS_COST)
    return sorted(costs)
