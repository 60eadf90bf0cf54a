"""Services package for the pickup tracker."""

from .cost_calculator import (
    get_cost_calculator,
    CostCalculatorInterface,
    TariffCostCalculator
)
from .pickup_log import (
    get_pickup_service,
    parse_timestamp,
    InvalidTimestampError,
    PickupLogService,
    StorageWriteError
)

__all__ = [
    'get_cost_calculator',
    'CostCalculatorInterface',
    'TariffCostCalculator',
    'get_pickup_service',
    'parse_timestamp',
    'InvalidTimestampError',
    'PickupLogService',
    'StorageWriteError'
]
