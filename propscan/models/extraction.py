"""Pydantic models for details scraped from a project's official website."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from .base import RecordModel


class ExtractedAmenity(RecordModel):
    name: str
    category: str = "General"


class ProjectDocument(RecordModel):
    title: str
    type: Literal["brochure", "floorplan", "other"] = "other"
    url: str


class ExtractedProject(RecordModel):
    """Suggested values for a property's ``officialWebsite``, ``images`` and ``brochurePath``.

    Nothing here is stored; the admin reviews it and copies what they want into
    the property form.
    """

    official_website: str
    project_id: Optional[str] = None
    overview: Optional[str] = None
    amenities: List[ExtractedAmenity] = Field(default_factory=list)
    project_images: List[str] = Field(default_factory=list)
    floor_plans: List[str] = Field(default_factory=list)
    documents: List[ProjectDocument] = Field(default_factory=list)
    brochure_path: Optional[str] = None


class ImageCheck(RecordModel):
    url: str
    valid: bool
    content_type: Optional[str] = None
    size: Optional[int] = None
    error: Optional[str] = None
