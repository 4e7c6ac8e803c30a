"""Typed failures shared by the store, the services, the API and the client."""

from __future__ import annotations

from typing import Dict, Optional


class PropScanError(Exception):
    """Base class for every failure the core reports to its callers."""


class ValidationError(PropScanError):
    """One or more input fields were missing or malformed.

    ``fields`` maps the wire name of each offending field to a message that a
    form can show next to it.
    """

    def __init__(self, fields: Dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message)
        self.fields = dict(fields)

    def __str__(self) -> str:
        details = ", ".join(f"{name}: {msg}" for name, msg in sorted(self.fields.items()))
        return f"{self.args[0]} ({details})" if details else self.args[0]


class NotFoundError(PropScanError):
    def __init__(self, collection: str, record_id: str, partition: Optional[str] = None) -> None:
        where = f"{collection}/{partition}" if partition else collection
        super().__init__(f"No record {record_id!r} in {where}")
        self.collection = collection
        self.record_id = record_id
        self.partition = partition


class InvalidStateTransitionError(PropScanError):
    def __init__(self, record_id: str, current: str, attempted: str) -> None:
        super().__init__(f"Cannot {attempted} listing {record_id!r} while it is {current}")
        self.record_id = record_id
        self.current = current
        self.attempted = attempted


class StorageError(PropScanError):
    """The backing storage could not be read or written."""


class ExtractionError(PropScanError):
    """A remote project page could not be fetched or read."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Could not extract project details from {url}: {reason}")
        self.url = url
        self.reason = reason


class ReadOnlyModeError(PropScanError):
    def __init__(self, operation: str = "write") -> None:
        super().__init__(f"Cannot {operation}: this deployment is read-only")
        self.operation = operation


__all__ = [
    "PropScanError",
    "ValidationError",
    "NotFoundError",
    "InvalidStateTransitionError",
    "StorageError",
    "ReadOnlyModeError",
    "ExtractionError",
]
