"""Shipment tracking client abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Annotated, Any

import httpx
from fastapi import Depends

from storefront.config import settings

logger = logging.getLogger(__name__)


class TrackingError(Exception):
    """Raised when the carrier API rejects or fails a tracking lookup."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class TrackingClient(ABC):
    """Abstract interface for shipment tracking lookups."""

    @abstractmethod
    async def track(self, courier: str, tracking_number: str) -> dict[str, Any]:
        """Return the raw tracking record for a shipment."""


class AfterShipTrackingClient(TrackingClient):
    """Tracking implementation backed by the AfterShip v4 REST API."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("AfterShip API key is required to initialize tracking client")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def track(self, courier: str, tracking_number: str) -> dict[str, Any]:
        url = f"{self._base_url}/trackings/{courier}/{tracking_number}"
        headers = {
            "aftership-api-key": self._api_key,
            "Content-Type": "application/json",
        }
        logger.info("AfterShip GET %s", url)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("AfterShip request failed: %s", exc)
            raise TrackingError(502, "Failed to fetch tracking data") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(
                "AfterShip API error",
                extra={"status_code": response.status_code, "detail": message},
            )
            raise TrackingError(response.status_code, message)

        try:
            body = response.json()
        except ValueError as exc:
            logger.error("AfterShip returned a non-JSON body: %s", exc)
            raise TrackingError(502, "Invalid tracking response") from exc

        data = body.get("data") if isinstance(body, dict) else None
        record = data.get("tracking") if isinstance(data, dict) else None
        if not isinstance(record, dict):
            logger.error("AfterShip response carried no tracking record")
            raise TrackingError(502, "Invalid tracking response")
        return record


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["meta"]["message"]
    except (ValueError, KeyError, TypeError):
        return "Failed to fetch tracking data"


def _initialize_tracking_client() -> TrackingClient | None:
    if not settings.tracking_enabled:
        return None
    return AfterShipTrackingClient(
        api_key=settings.AFTERSHIP_API_KEY,
        base_url=settings.AFTERSHIP_BASE_URL,
        timeout=settings.AFTERSHIP_TIMEOUT_SECONDS,
    )


_tracking_client = _initialize_tracking_client()


def get_tracking_client() -> TrackingClient | None:
    """FastAPI dependency to obtain the configured tracking client if available."""

    return _tracking_client


TrackingDependency = Annotated[TrackingClient | None, Depends(get_tracking_client)]
