"""API endpoints for logging and reporting pickups."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from pickup_tracker.config import settings
from pickup_tracker.models import CostResult, LogsResponse, PickupRequest, PickupResponse
from pickup_tracker.services import get_cost_calculator, get_pickup_service
from pickup_tracker.services.cost_calculator import TariffCostCalculator
from pickup_tracker.services.pickup_log import (
    InvalidTimestampError,
    PickupLogService,
    StorageWriteError,
)
from pickup_tracker.services.report import with_bom
from pickup_tracker.tariffs import OUTSIDE_HOURS_COST, OUTSIDE_HOURS_LABEL, WEEKDAY_NAMES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Pickups"])


def get_service() -> PickupLogService:
    """Dependency injection for the pickup log service."""
    return get_pickup_service()


def get_calculator() -> TariffCostCalculator:
    """Dependency injection for the cost calculator."""
    return get_cost_calculator()


@router.post("/log-pickup", response_model=PickupResponse)
def log_pickup(
    request: PickupRequest,
    service: PickupLogService = Depends(get_service)
) -> PickupResponse:
    """
    Log a pickup and calculate its cost.

    Args:
        request: Pickup timestamp and child name
        service: Injected pickup log service

    Returns:
        PickupResponse with the stored record and a confirmation message

    Raises:
        HTTPException: 400 when a field is missing, 422 when the timestamp
            cannot be parsed, 500 when saving fails
    """
    try:
        record = service.log_pickup(request.timestamp, request.child)
    except InvalidTimestampError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageWriteError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return PickupResponse(
        log=record,
        message=f"Pickup logged for {record.child} at {record.pickup_time}"
    )


@router.get("/get-logs", response_model=LogsResponse)
def get_logs(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1),
    child: Optional[str] = None,
    service: PickupLogService = Depends(get_service)
) -> LogsResponse:
    """
    List logged pickups with totals and monthly statistics.

    The month filter applies only when both month and year are given.
    """
    return service.list_logs(year=year, month=month, child=child)


@router.get("/export-csv")
def export_csv(
    type: Optional[str] = None,
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1),
    service: PickupLogService = Depends(get_service)
) -> Response:
    """
    Export pickups as CSV.

    ``type=summary`` returns the monthly summary over the whole log; any
    other value returns the detailed list for the selected (or current) month.
    """
    export = service.export_csv(report_type=type, year=year, month=month)
    return Response(
        content=with_bom(export.content),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
            "Cache-Control": "no-cache",
        },
    )


@router.get("/calculate-cost", response_model=CostResult)
def calculate_cost(
    timestamp: Optional[datetime] = None,
    calculator: TariffCostCalculator = Depends(get_calculator)
) -> CostResult:
    """Preview the cost of a pickup at the given timestamp without logging it."""
    if timestamp is None:
        raise HTTPException(status_code=400, detail="Timestamp is required")
    return calculator.calculate_cost(timestamp)


@router.get("/tariffs")
def get_tariffs(calculator: TariffCostCalculator = Depends(get_calculator)):
    """
    Get the tariff table used for pickup costs.

    Returns:
        Rules in matching order, special free windows and the outside-hours tariff
    """
    return {
        "rules": [
            {"timeSlot": rule.label, "cost": float(rule.cost)}
            for rule in calculator.tariff_rules
        ],
        "freeWindows": [
            {
                "day": WEEKDAY_NAMES[window.weekday],
                "timeSlot": window.label,
                "cost": float(window.cost),
            }
            for window in calculator.free_windows
        ],
        "outsideHours": {
            "timeSlot": OUTSIDE_HOURS_LABEL,
            "cost": float(OUTSIDE_HOURS_COST),
        },
        "timezone": str(calculator.zone),
    }


@router.get("/health")
def health_check(service: PickupLogService = Depends(get_service)):
    """Health check endpoint including log store status."""
    store_status = "healthy"
    try:
        records_count = service.store.count()
    except Exception as e:
        logger.exception("Log store health check failed")
        store_status = f"unhealthy: {str(e)}"
        records_count = 0

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "store": type(service.store).__name__,
        "store_status": store_status,
        "records_count": records_count
    }
