"""Shipment tracking proxy routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import ValidationError

from storefront.models.tracking import TrackingInfo
from storefront.services.clients.tracking_client import TrackingDependency, TrackingError

router = APIRouter(prefix="/tracking", tags=["tracking"])
logger = logging.getLogger(__name__)


@router.get(
    "",
    response_model=TrackingInfo,
    summary="Look up a shipment with its carrier",
)
async def track_shipment(
    tracking: TrackingDependency,
    tracking_number: str = Query(..., min_length=1),
    courier: str = Query(..., min_length=1),
) -> TrackingInfo:
    if tracking is None:
        logger.warning("Tracking requested but AfterShip is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Shipment tracking is not configured in this environment",
        )

    try:
        record = await tracking.track(courier, tracking_number)
    except TrackingError as error:
        raise HTTPException(status_code=error.status_code, detail=error.message) from error

    try:
        return TrackingInfo.model_validate(record)
    except ValidationError as error:
        logger.error("Unexpected tracking record shape: %s", error)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Invalid tracking response",
        ) from error
