"""
Marketplace record models consumed by the aggregation engine.

Records are owned and mutated by other parts of the platform; the engine
only reads them, so every model is frozen.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, Field, field_validator

from .base import BaseModel, zero_if_missing


class ListingType(str, Enum):
    """Marketplace verticals."""

    STAYS = "stays"
    EXPERIENCES = "experiences"
    SERVICES = "services"


class BookingStatus(str, Enum):
    """Booking lifecycle labels. Transitions are owned elsewhere."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    COMPLETED = "completed"
    REFUND_REQUESTED = "refund_requested"
    REFUNDED = "refunded"


# Statuses that count as a realized booking for revenue and rankings.
CONFIRMED_STATUSES = frozenset({BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value})


class ListingStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class UserRole(str, Enum):
    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class Booking(BaseModel):
    """A guest booking of a listing."""

    id: str
    listing_id: Optional[str] = None
    guest_id: Optional[str] = None
    host_id: Optional[str] = None
    type: ListingType
    status: BookingStatus
    total_amount: float = 0.0
    service_fee: float = 0.0
    created_at: Optional[datetime] = None
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    service_date: Optional[datetime] = None

    @field_validator("total_amount", "service_fee", mode="before")
    @classmethod
    def default_amounts(cls, v):
        return zero_if_missing(v)

    @property
    def is_confirmed(self) -> bool:
        """Confirmed or completed."""
        return self.status in CONFIRMED_STATUSES


class Listing(BaseModel):
    """A stay, experience or service offered by a host."""

    id: str
    host_id: Optional[str] = None
    type: ListingType
    title: str = ""
    location: str = ""
    price: float = 0.0
    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = 0
    status: ListingStatus = ListingStatus.ACTIVE
    is_draft: bool = False
    created_at: Optional[datetime] = None

    @field_validator("price", "rating", "review_count", mode="before")
    @classmethod
    def default_numbers(cls, v):
        return zero_if_missing(v)

    @field_validator("is_draft", mode="before")
    @classmethod
    def default_draft(cls, v):
        return bool(v)

    @property
    def is_active(self) -> bool:
        """Published and switched on; the only listings that get ranked."""
        return self.status == ListingStatus.ACTIVE.value and not self.is_draft


class User(BaseModel):
    id: str
    role: UserRole
    account_status: AccountStatus = AccountStatus.ACTIVE
    display_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("display_name", "displayName", "fullName"),
    )
    created_at: Optional[datetime] = None


class Review(BaseModel):
    id: Optional[str] = None
    listing_id: str
    rating: float = 0.0
    created_at: Optional[datetime] = None

    @field_validator("rating", mode="before")
    @classmethod
    def default_rating(cls, v):
        return zero_if_missing(v)


class RewardLedgerEntry(BaseModel):
    """Points issued to or redeemed by a user at one point in time."""

    user_id: str
    points_issued: int = 0
    points_redeemed: int = 0
    created_at: Optional[datetime] = None

    @field_validator("points_issued", "points_redeemed", mode="before")
    @classmethod
    def default_points(cls, v):
        return zero_if_missing(v)
