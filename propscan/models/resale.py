"""Pydantic models for user-submitted resale listings.

A listing carries two independent state fields. ``approval_status`` records the
admin review (pending, then approved or rejected, both terminal).
``listing_status`` records commercial availability and only matters once the
listing is approved:

================  ===============  =================
approval_status   listing_status   publicly visible
================  ===============  =================
pending           any              no
rejected          any              no
approved          active           yes
approved          sold             no
approved          on-hold          no
================  ===============  =================
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, FrozenSet, List, Literal, Optional

from pydantic import Field

from .base import RecordModel


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    ON_HOLD = "on-hold"


PropertyType = Literal["Apartment", "Villa", "Plot", "Commercial", "Office Space", "Retail Shop", "Other"]


class ResaleProperty(RecordModel):
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id", "submittedAt", "updatedAt"})
    # Set only through the review workflow, never by the submitting seller.
    workflow_fields: ClassVar[FrozenSet[str]] = frozenset(
        {"approvalStatus", "listingStatus", "adminNotes", "rejectionReason"}
    )

    id: Optional[str] = None

    seller_name: str
    seller_phone: str
    seller_email: str
    seller_type: Literal["Owner", "Investor"] = "Owner"

    property_type: PropertyType = "Apartment"
    bhk: Optional[str] = None
    area: str
    city: str
    locality: str
    address: Optional[str] = None
    project_name: Optional[str] = None

    price: str
    price_negotiable: bool = False

    possession: Literal["Ready to Move", "Under Construction"] = "Ready to Move"
    furnished: Literal["Furnished", "Semi-Furnished", "Unfurnished"] = "Semi-Furnished"
    age_of_property: Optional[str] = None
    floor_number: Optional[str] = None
    total_floors: Optional[str] = None

    facing: Optional[str] = None
    parking: Optional[int] = Field(default=None, ge=0)
    balconies: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)

    images: List[str] = Field(default_factory=list)
    description: str
    key_highlights: List[str] = Field(default_factory=list)

    submitted_at: Optional[str] = None
    updated_at: Optional[str] = None
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    listing_status: ListingStatus = ListingStatus.ACTIVE
    admin_notes: Optional[str] = None
    rejection_reason: Optional[str] = None

    @property
    def publicly_visible(self) -> bool:
        return is_publicly_visible(self)


def is_publicly_visible(listing: ResaleProperty) -> bool:
    return listing.approval_status == ApprovalStatus.APPROVED and listing.listing_status == ListingStatus.ACTIVE
