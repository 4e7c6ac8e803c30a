"""City-scoped property catalog on top of the record store."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..db.store import RecordStore
from ..errors import NotFoundError, ValidationError
from ..models.property import Property
from ..utils.logging import get_logger
from .validation import build_model, parse_record, parse_records, screen_payload

LOGGER = get_logger("services.catalog")

COLLECTION = "properties"


def city_key(city: str) -> str:
    key = (city or "").strip().lower()
    if not key:
        raise ValidationError({"city": "City is required"})
    return key


class PropertyCatalog:
    """Properties partitioned by city slug.

    A property belongs to exactly one city and ids are only unique within a
    city. ``update`` cannot move a property to another city; that takes a
    delete in the old city followed by an add in the new one.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def partitions(self) -> Dict[str, List[Property]]:
        return {
            city: parse_records(Property, rows, COLLECTION)
            for city, rows in self.store.read_partitions(COLLECTION).items()
        }

    def list_by_city(self, city: str) -> List[Property]:
        rows = self.store.read_all(COLLECTION, partition=city_key(city))
        return parse_records(Property, rows, COLLECTION)

    def list_all(self) -> List[Property]:
        return parse_records(Property, self.store.read_all(COLLECTION), COLLECTION)

    def get(self, city: str, property_id: str) -> Property:
        key = city_key(city)
        row = self.store.get(COLLECTION, property_id, partition=key)
        if row is None:
            raise NotFoundError(COLLECTION, property_id, key)
        return parse_record(Property, row, COLLECTION)

    def add(self, city: str, fields: Mapping[str, Any]) -> Property:
        key = city_key(city)
        self.store.check_writable("add property")
        errors: Dict[str, str] = {}
        data = screen_payload(Property, fields, errors)
        record = build_model(Property, data, errors).to_record()
        stored = self.store.append(COLLECTION, record, partition=key, id_prefix="prop")
        return Property.model_validate(stored)

    def update(self, city: str, property_id: str, fields: Mapping[str, Any]) -> Property:
        key = city_key(city)
        self.store.check_writable("update property")
        changes = screen_payload(Property, fields)
        stored = self.store.update(
            COLLECTION,
            property_id,
            changes,
            partition=key,
            normalise=lambda merged: build_model(Property, merged).to_record(),
        )
        return Property.model_validate(stored)

    def delete(self, city: str, property_id: str) -> bool:
        key = city_key(city)
        return self.store.delete(COLLECTION, property_id, partition=key)


__all__ = ["PropertyCatalog", "city_key", "COLLECTION"]
