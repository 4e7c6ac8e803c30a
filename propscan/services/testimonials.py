"""Customer testimonials shown on the home page and curated from the admin panel."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from ..db.store import RecordStore
from ..models.site import Testimonial
from .validation import build_model, parse_records, screen_payload

COLLECTION = "testimonials"


class CustomerTestimonials:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def list_all(self) -> List[Testimonial]:
        return parse_records(Testimonial, self.store.read_all(COLLECTION), COLLECTION)

    def add(self, fields: Mapping[str, Any]) -> Testimonial:
        self.store.check_writable("add testimonial")
        errors: Dict[str, str] = {}
        data = screen_payload(Testimonial, fields, errors)
        record = build_model(Testimonial, data, errors).to_record()
        stored = self.store.append(COLLECTION, record, id_prefix="test")
        return Testimonial.model_validate(stored)

    def update(self, testimonial_id: str, fields: Mapping[str, Any]) -> Testimonial:
        self.store.check_writable("update testimonial")
        changes = screen_payload(Testimonial, fields)
        stored = self.store.update(
            COLLECTION,
            testimonial_id,
            changes,
            normalise=lambda merged: build_model(Testimonial, merged).to_record(),
        )
        return Testimonial.model_validate(stored)

    def delete(self, testimonial_id: str) -> bool:
        return self.store.delete(COLLECTION, testimonial_id)
