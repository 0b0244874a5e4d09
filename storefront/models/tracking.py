"""Schemas for the shipment tracking proxy."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field


class TrackingCheckpoint(BaseModel):
    """A single carrier scan event."""

    status: str | None = Field(None, validation_alias=AliasChoices("tag", "status"))
    message: str | None = None
    location: str | None = None
    checkpoint_time: str | None = None


class TrackingInfo(BaseModel):
    """Subset of the AfterShip tracking payload shown to shoppers."""

    tracking_number: str
    slug: str | None = None
    title: str | None = None
    status: str | None = Field(None, validation_alias=AliasChoices("tag", "status"))
    last_updated_at: str | None = None
    expected_delivery: str | None = None
    checkpoints: list[TrackingCheckpoint] = Field(default_factory=list)
