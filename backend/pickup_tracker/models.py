"""Models for the pickup tracker."""

from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def _to_decimal(value):
    # Floats read back from JSON go through str so 0.66 stays 0.66
    if isinstance(value, float):
        return Decimal(str(value))
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_to_decimal),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CostResult(CamelModel):
    """Outcome of a tariff lookup."""
    cost: Money
    time_slot: str


class PickupRequest(BaseModel):
    """Request body for logging a pickup."""
    timestamp: Optional[str] = Field(None, description="Moment of pickup (ISO-8601)")
    child: Optional[str] = Field(None, description="Name of the child")


class PickupRecord(CamelModel):
    """A single logged pickup as stored in the log."""
    id: int
    timestamp: Optional[str] = None
    child: Optional[str] = None
    pickup_time: Optional[str] = None
    date: Optional[str] = None
    day: Optional[str] = None
    cost: Money = Decimal("0")
    time_slot: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def month_key(self) -> Optional[str]:
        """``YYYY-MM`` prefix of the pickup date."""
        return self.date[:7] if self.date else None


class PickupResponse(BaseModel):
    """Response model for a logged pickup."""
    success: bool = True
    log: PickupRecord
    message: str


class MonthlySummary(CamelModel):
    """Aggregated figures for all pickups in one calendar month."""
    month: str
    pickup_count: int = 0
    total_cost: Money = Decimal("0")
    free_day_count: int = 0
    paid_day_count: int = 0
    average_cost_per_pickup: Money = Decimal("0")


class LogStats(CamelModel):
    """Totals over a listed set of pickups."""
    total_cost: Money
    total_pickups: int
    monthly_stats: List[MonthlySummary]


class LogsResponse(BaseModel):
    """Response model for listing pickups."""
    success: bool = True
    logs: List[PickupRecord]
    stats: LogStats
