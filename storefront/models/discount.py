"""Referral discount schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ReferralDiscount(BaseModel):
    """A percentage discount granted through the referral program."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    type: Literal["referrer", "referred"]
    percentage: Decimal = Field(
        ...,
        ge=0,
        le=100,
        validation_alias=AliasChoices("percentage", "discount_percentage"),
    )
    is_active: bool = Field(
        True,
        validation_alias=AliasChoices("is_active", "active"),
    )
    used: bool = False
    expires_at: datetime | None = None
    created_at: datetime | None = None


class DiscountResult(BaseModel):
    """Outcome of applying the best qualifying discount to a unit price."""

    discounted_price: Decimal
    applied_discount: ReferralDiscount | None = None
