"""Boundary checks that turn raw payloads into typed records or per-field errors."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import ValidationError as SchemaError

from ..errors import StorageError, ValidationError
from ..models.base import RecordModel
from ..utils.coerce import strip_spaces, to_str
from ..utils.logging import get_logger

LOGGER = get_logger("services.validation")

M = TypeVar("M", bound=RecordModel)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\d{10}$")

FieldErrors = Dict[str, str]


def require_text(errors: FieldErrors, payload: Mapping[str, Any], field: str, message: str) -> None:
    if not to_str(payload.get(field)).strip():
        errors.setdefault(field, message)


def check_phone(errors: FieldErrors, payload: Mapping[str, Any], field: str, required: bool = True) -> None:
    raw = to_str(payload.get(field)).strip()
    if not raw:
        if required:
            errors.setdefault(field, "Phone is required")
        return
    if not PHONE_PATTERN.match(strip_spaces(raw)):
        errors.setdefault(field, "Phone must be 10 digits")


def check_email(errors: FieldErrors, payload: Mapping[str, Any], field: str, required: bool = False) -> None:
    raw = to_str(payload.get(field)).strip()
    if not raw:
        if required:
            errors.setdefault(field, "Email is required")
        return
    if not EMAIL_PATTERN.match(raw):
        errors.setdefault(field, "Invalid email format")


def screen_payload(model_cls: Type[RecordModel], payload: Any, errors: Optional[FieldErrors] = None) -> Dict[str, Any]:
    """Reject unknown keys and drop server-assigned ones from an input payload."""

    if not isinstance(payload, Mapping):
        raise ValidationError({"body": "Expected a JSON object"})
    known = model_cls.wire_names()
    cleaned: Dict[str, Any] = {}
    for key, value in payload.items():
        if key in model_cls.server_fields or model_cls.wire_name(key) in model_cls.server_fields:
            continue
        if key not in known:
            if errors is not None:
                errors.setdefault(key, "Unknown field")
            else:
                raise ValidationError({key: "Unknown field"})
            continue
        cleaned[model_cls.wire_name(key)] = value
    return cleaned


def build_model(model_cls: Type[M], data: Mapping[str, Any], errors: Optional[FieldErrors] = None) -> M:
    """Validate ``data`` into ``model_cls``; raise one ValidationError covering every bad field."""

    collected: FieldErrors = dict(errors or {})
    model: Optional[M] = None
    try:
        model = model_cls.model_validate(dict(data))
    except SchemaError as exc:
        for key, message in schema_errors(model_cls, exc).items():
            collected.setdefault(key, message)
    if collected or model is None:
        raise ValidationError(collected)
    return model


def schema_errors(model_cls: Type[RecordModel], exc: SchemaError) -> FieldErrors:
    fields: FieldErrors = {}
    for error in exc.errors():
        loc = error.get("loc") or ("body",)
        key = model_cls.wire_name(str(loc[0]))
        if error.get("type") == "missing":
            message = "This field is required"
        else:
            message = error.get("msg", "Invalid value")
        fields.setdefault(key, message)
    return fields


def parse_record(model_cls: Type[M], row: Mapping[str, Any], collection: str) -> M:
    """Parse one stored row that a caller asked for by id.

    A row that no longer fits the model is a storage fault here, not a client error.
    """

    try:
        return model_cls.model_validate(row)
    except SchemaError as exc:
        LOGGER.error(
            "record_invalid collection=%s id=%s errors=%s", collection, row.get("id", "-"), exc.error_count()
        )
        raise StorageError(f"Stored record in {collection} is invalid") from exc


def parse_records(model_cls: Type[M], rows: Iterable[Mapping[str, Any]], collection: str) -> List[M]:
    """Parse stored rows, skipping (and logging) any that no longer fit the model."""

    records: List[M] = []
    for row in rows:
        try:
            records.append(model_cls.model_validate(row))
        except SchemaError as exc:
            LOGGER.warning("record_skipped collection=%s id=%s errors=%s", collection, row.get("id", "-"), exc.error_count())
    return records


__all__ = [
    "EMAIL_PATTERN",
    "PHONE_PATTERN",
    "require_text",
    "check_phone",
    "check_email",
    "screen_payload",
    "build_model",
    "schema_errors",
    "parse_record",
    "parse_records",
]
