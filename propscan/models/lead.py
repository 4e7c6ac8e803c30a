"""Pydantic model for prospect inquiries."""

from __future__ import annotations

from typing import ClassVar, FrozenSet, Optional

from .base import RecordModel


class Lead(RecordModel):
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id", "timestamp"})

    id: Optional[str] = None
    name: str
    phone: str
    email: Optional[str] = None
    city: str = ""
    budget: Optional[str] = None
    purpose: Optional[str] = None
    message: Optional[str] = None
    source: Optional[str] = None
    timestamp: Optional[str] = None
