"""Pickup cost calculation service implementing the tariff lookup."""

from datetime import datetime, time, tzinfo
from typing import Optional, Protocol, Sequence, runtime_checkable

from pickup_tracker.config import settings
from pickup_tracker.models import CostResult
from pickup_tracker.tariffs import (
    FALLBACK_RULES,
    OUTSIDE_HOURS_COST,
    OUTSIDE_HOURS_LABEL,
    SPECIAL_FREE_WINDOWS,
    TARIFF_RULES,
    FallbackRule,
    SpecialFreeWindow,
    TariffRule,
)


@runtime_checkable
class CostCalculatorInterface(Protocol):
    """
    Interface for pickup cost calculation.
    Every implementation must return a result for any instant.
    """

    def calculate_cost(self, pickup_instant: datetime) -> CostResult:
        """Calculate the cost of a pickup at the given instant."""
        ...


def to_local(pickup_instant: datetime, zone: tzinfo) -> datetime:
    """
    Express an instant as wall-clock time in ``zone``.

    Aware instants are converted; naive instants are assumed to already be
    wall-clock time in ``zone``.
    """
    if pickup_instant.tzinfo is None:
        return pickup_instant.replace(tzinfo=zone)
    return pickup_instant.astimezone(zone)


class TariffCostCalculator:
    """
    Cost calculator driven by an ordered tariff table.

    Lookup order: special free windows, the primary table (inclusive bounds,
    first match wins), the half-open fallback ladder, and finally the
    outside-hours tariff.
    """

    def __init__(
        self,
        zone: Optional[tzinfo] = None,
        tariff_rules: Sequence[TariffRule] = TARIFF_RULES,
        fallback_rules: Sequence[FallbackRule] = FALLBACK_RULES,
        free_windows: Sequence[SpecialFreeWindow] = SPECIAL_FREE_WINDOWS,
    ):
        self.zone = zone or settings.tzinfo
        self.tariff_rules = tuple(tariff_rules)
        self.fallback_rules = tuple(fallback_rules)
        self.free_windows = tuple(free_windows)

    def calculate_cost(self, pickup_instant: datetime) -> CostResult:
        """
        Calculate the cost of a pickup.

        Args:
            pickup_instant: Moment of pickup, naive or timezone-aware

        Returns:
            CostResult with the cost and the label of the matched time slot
        """
        local = to_local(pickup_instant, self.zone)
        return self.lookup(local.time().replace(second=0, microsecond=0), local.weekday())

    def lookup(self, moment: time, weekday: int) -> CostResult:
        """Resolve a minute-resolution time of day on a weekday (Monday=0)."""
        for window in self.free_windows:
            if window.matches(weekday, moment):
                return CostResult(cost=window.cost, time_slot=window.label)

        for rule in self.tariff_rules:
            if rule.matches(moment):
                return CostResult(cost=rule.cost, time_slot=rule.label)

        for step in self.fallback_rules:
            if step.matches(moment):
                return CostResult(cost=step.cost, time_slot=step.label)

        return CostResult(cost=OUTSIDE_HOURS_COST, time_slot=OUTSIDE_HOURS_LABEL)


# Singleton instance for default calculator
_default_calculator: Optional[CostCalculatorInterface] = None


def get_cost_calculator() -> CostCalculatorInterface:
    """
    Get the default cost calculator instance (Singleton pattern).

    Returns:
        Cost calculator instance implementing CostCalculatorInterface
    """
    global _default_calculator
    if _default_calculator is None:
        _default_calculator = TariffCostCalculator()
    return _default_calculator
