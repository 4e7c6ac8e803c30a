"""Pydantic models for the smaller site collections: testimonials, cities and page copy."""

from __future__ import annotations

from typing import ClassVar, FrozenSet, Optional

from pydantic import Field, field_validator

from .base import RecordModel


class Testimonial(RecordModel):
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id", "createdAt"})

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    city: str = ""
    message: str = Field(..., min_length=1)
    created_at: Optional[str] = None


class City(RecordModel):
    # The id is always the slug.
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id"})

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    slug: str = Field(..., pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

    @field_validator("slug", mode="before")
    @classmethod
    def lower_slug(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class HeroSection(RecordModel):
    server_fields: ClassVar[FrozenSet[str]] = frozenset()

    headline: str = Field(..., min_length=1)
    subheadline: str = ""


class AboutUs(RecordModel):
    server_fields: ClassVar[FrozenSet[str]] = frozenset()

    content: str = Field(..., min_length=1)


DEFAULT_HERO_SECTION = HeroSection(
    headline="Your Trusted Property Intelligence Partner",
    subheadline="Compare, Discover, and Invest in Gurgaon, Noida & Dubai with Confidence",
)

DEFAULT_ABOUT_US = AboutUs(
    content=(
        "PropScan Intelligence is committed to providing transparent, data-driven "
        "real estate advisory services."
    ),
)
