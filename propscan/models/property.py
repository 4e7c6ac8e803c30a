"""Pydantic models for the city-scoped project catalog."""

from __future__ import annotations

from typing import ClassVar, FrozenSet, List, Literal, Optional

from pydantic import Field, field_validator

from .base import RecordModel

ProjectPhase = Literal["new-launch", "under-construction", "ready-to-move"]
Verification = Literal["verified", "in-progress"]


def _kebab(value):
    # Snapshots published before the values were normalised use display labels
    # such as "New Launch" or "In Progress".
    if isinstance(value, str):
        return "-".join(value.strip().lower().replace("_", " ").split())
    return value


class Property(RecordModel):
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id", "createdAt"})

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    location: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price: str = ""
    price_per_sqft: Optional[str] = None
    possession: str = ""
    delivery: Optional[str] = None
    builder: str = ""
    developer: Optional[str] = None
    size: str = ""
    configuration: Optional[str] = None
    payment_plan: str = ""
    description: str = ""
    highlights: str = ""
    amenities: List[str] = Field(default_factory=list)
    rera: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    status: Literal["active", "inactive"] = "active"
    project_status: Optional[ProjectPhase] = None
    verified_status: Optional[Verification] = None
    land_area: Optional[str] = None
    number_of_towers: Optional[int] = Field(default=None, ge=0)
    number_of_floors: Optional[int] = Field(default=None, ge=0)
    brochure_path: Optional[str] = None
    highlighted: bool = False
    official_website: Optional[str] = None
    overview: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("project_status", "verified_status", "status", mode="before")
    @classmethod
    def normalise_labels(cls, value):
        return _kebab(value)
