"""City reference data. Slugs double as the property catalog's partition keys."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..db.store import RecordStore
from ..errors import NotFoundError, ValidationError
from ..models.site import City
from ..utils.logging import get_logger
from .validation import build_model, parse_records, screen_payload

LOGGER = get_logger("services.cities")

COLLECTION = "cities"


class CityDirectory:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def list_all(self) -> List[City]:
        return parse_records(City, self.store.read_all(COLLECTION), COLLECTION)

    def get_by_slug(self, slug: str) -> City:
        wanted = (slug or "").strip().lower()
        for city in self.list_all():
            if city.slug == wanted:
                return city
        raise NotFoundError(COLLECTION, wanted)

    def add(self, fields: Mapping[str, Any]) -> City:
        self.store.check_writable("add city")
        errors: Dict[str, str] = {}
        data = screen_payload(City, fields, errors)
        city = build_model(City, data, errors)
        if any(existing.slug == city.slug for existing in self.list_all()):
            raise ValidationError({"slug": "A city with this slug already exists"})
        stored = self.store.append(
            COLLECTION,
            city.to_record(),
            stamp_field=None,
            record_id=city.slug,
        )
        LOGGER.info("city_added slug=%s", city.slug)
        return City.model_validate(stored)

    def update(self, slug: str, fields: Mapping[str, Any]) -> City:
        self.store.check_writable("update city")
        current = self.get_by_slug(slug)
        changes = screen_payload(City, fields)
        new_slug = str(changes.get("slug", current.slug)).strip().lower()
        if new_slug != current.slug:
            # Properties are filed under the slug; renaming it would orphan them.
            raise ValidationError({"slug": "The slug of an existing city cannot be changed"})
        stored = self.store.update(
            COLLECTION,
            current.id,
            changes,
            normalise=lambda merged: build_model(City, merged).to_record(),
        )
        return City.model_validate(stored)

    def delete(self, slug: str) -> bool:
        self.store.check_writable("delete city")
        try:
            current = self.get_by_slug(slug)
        except NotFoundError:
            return False
        return self.store.delete(COLLECTION, current.id)


__all__ = ["CityDirectory", "COLLECTION"]
