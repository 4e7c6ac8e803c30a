"""Singleton page-copy documents (hero section, about-us) edited from the admin panel."""

from __future__ import annotations

from typing import Any, Mapping, Type, TypeVar

from pydantic import ValidationError as SchemaError

from ..db.store import RecordStore
from ..models.base import RecordModel
from ..models.site import DEFAULT_ABOUT_US, DEFAULT_HERO_SECTION, AboutUs, HeroSection
from ..utils.logging import get_logger
from .validation import build_model, screen_payload

LOGGER = get_logger("services.content")

HERO_SECTION = "heroSection"
ABOUT_US = "aboutUs"

D = TypeVar("D", bound=RecordModel)


class SiteContent:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def get_hero_section(self) -> HeroSection:
        return self._load(HERO_SECTION, HeroSection, DEFAULT_HERO_SECTION)

    def update_hero_section(self, fields: Mapping[str, Any]) -> HeroSection:
        return self._replace(HERO_SECTION, HeroSection, fields)

    def get_about_us(self) -> AboutUs:
        return self._load(ABOUT_US, AboutUs, DEFAULT_ABOUT_US)

    def update_about_us(self, fields: Mapping[str, Any]) -> AboutUs:
        return self._replace(ABOUT_US, AboutUs, fields)

    def _load(self, name: str, model_cls: Type[D], default: D) -> D:
        document = self.store.load_document(name)
        if document is None:
            return default
        try:
            return model_cls.model_validate(document)
        except SchemaError as exc:
            LOGGER.warning("content_invalid document=%s errors=%s; serving default", name, exc.error_count())
            return default

    def _replace(self, name: str, model_cls: Type[D], fields: Mapping[str, Any]) -> D:
        self.store.check_writable(f"update {name}")
        errors: dict = {}
        data = screen_payload(model_cls, fields, errors)
        document = build_model(model_cls, data, errors)
        self.store.save_document(name, document.to_record(), "replace")
        LOGGER.info("content_replaced document=%s", name)
        return document
