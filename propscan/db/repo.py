"""Repository context bundling the record store with the domain services.

One ``Repo`` is built per application (or per test) from explicit settings and
handed to whoever needs it; nothing here is module-level state.
"""

from __future__ import annotations

from typing import Optional

from ..services.catalog import PropertyCatalog
from ..services.cities import CityDirectory
from ..services.content import SiteContent
from ..services.extraction import ProjectExtractor
from ..services.leads import LeadIntake
from ..services.resale import ResaleWorkflow
from ..services.testimonials import CustomerTestimonials
from ..utils.logging import get_logger
from ..utils.settings import Settings
from .store import RecordStore

LOGGER = get_logger("db.repo")


class Repo:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[RecordStore] = None,
        extractor: Optional[ProjectExtractor] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.store = store or RecordStore(self.settings.data_dir, read_only=self.settings.read_only)
        self.properties = PropertyCatalog(self.store)
        self.leads = LeadIntake(self.store)
        self.testimonials = CustomerTestimonials(self.store)
        self.resale = ResaleWorkflow(self.store)
        self.cities = CityDirectory(self.store)
        self.content = SiteContent(self.store)
        self.extractor = extractor or ProjectExtractor()
        LOGGER.info(
            "Repository running in %s mode data_dir=%s",
            "read-only" if self.store.read_only else "writable",
            self.store.data_dir,
        )

    @property
    def read_only(self) -> bool:
        return self.store.read_only


__all__ = ["Repo"]
