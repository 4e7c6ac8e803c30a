"""Shared pydantic configuration for stored records."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, FrozenSet

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Base for every persisted record.

    Attributes are snake_case in Python and camelCase on disk and on the wire.
    Keys a model does not know are dropped when a stored record is read; input
    payloads are screened for unknown keys before they reach the model.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    # Wire names of server-assigned keys that callers may not set or change.
    server_fields: ClassVar[FrozenSet[str]] = frozenset({"id"})

    @classmethod
    def wire_names(cls) -> FrozenSet[str]:
        names = set()
        for name, info in cls.model_fields.items():
            names.add(name)
            names.add(info.alias or name)
        return frozenset(names)

    @classmethod
    def wire_name(cls, name: str) -> str:
        info = cls.model_fields.get(name)
        return (info.alias or name) if info is not None else name

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
