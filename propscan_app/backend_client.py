"""Data access facade used by the site and admin panel.

The deployment mode is chosen explicitly when the client is built:

* ``api``: every read and write goes to the HTTP API.
* ``static``: reads come from published JSON snapshots (an HTTP base URL or a
  local directory holding ``<collection>.json`` files) and every write raises
  ``ReadOnlyModeError`` without touching the network.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from propscan.db.store import RecordStore
from propscan.errors import (
    ExtractionError,
    InvalidStateTransitionError,
    NotFoundError,
    ReadOnlyModeError,
    StorageError,
    ValidationError,
)
from propscan.models.extraction import ExtractedProject, ImageCheck
from propscan.models.lead import Lead
from propscan.models.property import Property
from propscan.models.resale import ApprovalStatus, ResaleProperty, is_publicly_visible
from propscan.models.site import DEFAULT_ABOUT_US, DEFAULT_HERO_SECTION, AboutUs, City, HeroSection, Testimonial
from propscan.services.leads import export_csv
from propscan.services.validation import parse_records
from propscan.utils.logging import get_logger
from propscan.utils.settings import MODE_STATIC, MODES, Settings

LOGGER = get_logger("app.backend_client")

DEFAULT_TIMEOUT = 10


class BackendClient:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        mode: Optional[str] = None,
        base_url: Optional[str] = None,
        static_source: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        settings = settings or Settings.from_env()
        self.mode = (mode or settings.mode).lower()
        if self.mode not in MODES:
            raise ValueError(f"Unknown deployment mode: {self.mode!r} (expected one of {MODES})")
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.static_source = static_source or settings.static_source
        self.timeout = timeout
        self.session = session or self._build_session(settings.api_retries, settings.api_backoff)
        self._snapshots: Optional[RecordStore] = None
        if self.mode == MODE_STATIC:
            if not self.static_source:
                raise ValueError("static mode needs a snapshot source (URL or directory)")
            if not self._static_is_url():
                self._snapshots = RecordStore(Path(self.static_source), read_only=True)
        LOGGER.info("DataService mode=%s api=%s static=%s", self.mode, self.base_url, self.static_source or "-")

    @property
    def read_only(self) -> bool:
        return self.mode == MODE_STATIC

    # ------------------------------------------------------------------
    # Properties
    def load_properties(self) -> Dict[str, List[Property]]:
        if self.read_only:
            document = self._snapshot("properties", {})
        else:
            document = self._get_json("/properties")
        return {city: parse_records(Property, rows, "properties") for city, rows in document.items()}

    def get_properties_by_city(self, city: str) -> List[Property]:
        key = city.strip().lower()
        if self.read_only:
            document = self._snapshot("properties", {})
            rows = next((items for name, items in document.items() if name.lower() == key), [])
        else:
            rows = self._get_json(f"/properties/{key}")
        return parse_records(Property, rows, "properties")

    def add_property(self, city: str, fields: Mapping[str, Any]) -> Property:
        data = self._send("POST", f"/properties/{city.strip().lower()}", fields, operation="add property")
        return Property.model_validate(data)

    def update_property(self, city: str, property_id: str, fields: Mapping[str, Any]) -> Property:
        data = self._send(
            "PUT",
            f"/properties/{city.strip().lower()}/{property_id}",
            fields,
            operation="update property",
            collection="properties",
            record_id=property_id,
        )
        return Property.model_validate(data)

    def delete_property(self, city: str, property_id: str) -> bool:
        data = self._send("DELETE", f"/properties/{city.strip().lower()}/{property_id}", operation="delete property")
        return bool(data.get("deleted"))

    # ------------------------------------------------------------------
    # Testimonials
    def load_testimonials(self) -> List[Testimonial]:
        rows = self._snapshot("testimonials", []) if self.read_only else self._get_json("/testimonials")
        return parse_records(Testimonial, rows, "testimonials")

    def add_testimonial(self, fields: Mapping[str, Any]) -> Testimonial:
        return Testimonial.model_validate(self._send("POST", "/testimonials", fields, operation="add testimonial"))

    def update_testimonial(self, testimonial_id: str, fields: Mapping[str, Any]) -> Testimonial:
        data = self._send(
            "PUT",
            f"/testimonials/{testimonial_id}",
            fields,
            operation="update testimonial",
            collection="testimonials",
            record_id=testimonial_id,
        )
        return Testimonial.model_validate(data)

    def delete_testimonial(self, testimonial_id: str) -> bool:
        data = self._send("DELETE", f"/testimonials/{testimonial_id}", operation="delete testimonial")
        return bool(data.get("deleted"))

    # ------------------------------------------------------------------
    # Leads
    def load_leads(self, city: Optional[str] = None, source: Optional[str] = None) -> List[Lead]:
        if not self.read_only:
            params = {key: value for key, value in (("city", city), ("source", source)) if value}
            return parse_records(Lead, self._get_json("/leads", params=params or None), "leads")
        leads = parse_records(Lead, self._snapshot("leads", []), "leads")
        if city:
            wanted = city.strip().lower()
            leads = [lead for lead in leads if lead.city.strip().lower() == wanted]
        if source:
            wanted = source.strip().lower()
            leads = [lead for lead in leads if (lead.source or "").strip().lower() == wanted]
        return leads

    def add_lead(self, fields: Mapping[str, Any]) -> Lead:
        return Lead.model_validate(self._send("POST", "/leads", fields, operation="add lead"))

    def delete_lead(self, lead_id: str) -> bool:
        data = self._send("DELETE", f"/leads/{lead_id}", operation="delete lead")
        return bool(data.get("deleted"))

    def export_leads_csv(self, city: Optional[str] = None) -> str:
        return export_csv(self.load_leads(city=city))

    # ------------------------------------------------------------------
    # Cities
    def load_cities(self) -> List[City]:
        rows = self._snapshot("cities", []) if self.read_only else self._get_json("/cities")
        return parse_records(City, rows, "cities")

    def add_city(self, fields: Mapping[str, Any]) -> City:
        return City.model_validate(self._send("POST", "/cities", fields, operation="add city"))

    def update_city(self, slug: str, fields: Mapping[str, Any]) -> City:
        data = self._send("PUT", f"/cities/{slug}", fields, operation="update city", collection="cities", record_id=slug)
        return City.model_validate(data)

    def delete_city(self, slug: str) -> bool:
        return bool(self._send("DELETE", f"/cities/{slug}", operation="delete city").get("deleted"))

    # ------------------------------------------------------------------
    # Page copy
    def get_hero_section(self) -> HeroSection:
        if self.read_only:
            document = self._snapshot("heroSection", None)
            return HeroSection.model_validate(document) if document else DEFAULT_HERO_SECTION
        return HeroSection.model_validate(self._get_json("/hero-section"))

    def update_hero_section(self, fields: Mapping[str, Any]) -> HeroSection:
        return HeroSection.model_validate(self._send("PUT", "/hero-section", fields, operation="update hero section"))

    def get_about_us(self) -> AboutUs:
        if self.read_only:
            document = self._snapshot("aboutUs", None)
            return AboutUs.model_validate(document) if document else DEFAULT_ABOUT_US
        return AboutUs.model_validate(self._get_json("/about-us"))

    def update_about_us(self, fields: Mapping[str, Any]) -> AboutUs:
        return AboutUs.model_validate(self._send("PUT", "/about-us", fields, operation="update about us"))

    # ------------------------------------------------------------------
    # Property form helpers (need the API; unavailable in static mode)
    def extract_project(self, website_url: str, project_id: Optional[str] = None) -> ExtractedProject:
        body: Dict[str, Any] = {"websiteUrl": website_url}
        if project_id:
            body["projectId"] = project_id
        data = self._send("POST", "/extract", body, operation="extract project details")
        return ExtractedProject.model_validate(data)

    def validate_images(self, image_urls: List[str]) -> List[ImageCheck]:
        data = self._send("POST", "/validate-images", {"imageUrls": list(image_urls)}, operation="validate images")
        return [ImageCheck.model_validate(item) for item in data.get("results", [])]

    # ------------------------------------------------------------------
    # Resale listings
    def load_resale_properties(self, status: Optional[str] = None) -> List[ResaleProperty]:
        if not self.read_only:
            params = {"status": status} if status else None
            return parse_records(ResaleProperty, self._get_json("/resale-properties", params=params), "resale-properties")
        listings = parse_records(ResaleProperty, self._snapshot("resale-properties", []), "resale-properties")
        if status:
            try:
                wanted = ApprovalStatus(status)
            except ValueError:
                raise ValidationError({"status": f"Unknown approval status {status!r}"}) from None
            listings = [listing for listing in listings if listing.approval_status == wanted]
        return listings

    def load_public_resale_properties(self) -> List[ResaleProperty]:
        if not self.read_only:
            return parse_records(ResaleProperty, self._get_json("/resale-properties/public"), "resale-properties")
        return [listing for listing in self.load_resale_properties() if is_publicly_visible(listing)]

    def get_resale_property(self, listing_id: str) -> ResaleProperty:
        if self.read_only:
            for listing in self.load_resale_properties():
                if listing.id == listing_id:
                    return listing
            raise NotFoundError("resale-properties", listing_id)
        data = self._get_json(f"/resale-properties/{listing_id}", collection="resale-properties", record_id=listing_id)
        return ResaleProperty.model_validate(data)

    def submit_resale_property(self, fields: Mapping[str, Any]) -> ResaleProperty:
        data = self._send("POST", "/resale-properties", fields, operation="submit listing")
        return ResaleProperty.model_validate(data)

    def update_resale_property(self, listing_id: str, fields: Mapping[str, Any]) -> ResaleProperty:
        data = self._send(
            "PUT",
            f"/resale-properties/{listing_id}",
            fields,
            operation="update listing",
            collection="resale-properties",
            record_id=listing_id,
        )
        return ResaleProperty.model_validate(data)

    def delete_resale_property(self, listing_id: str) -> bool:
        data = self._send("DELETE", f"/resale-properties/{listing_id}", operation="delete listing")
        return bool(data.get("deleted"))

    def approve_resale_property(self, listing_id: str, admin_notes: Optional[str] = None) -> ResaleProperty:
        body = {"adminNotes": admin_notes} if admin_notes is not None else {}
        data = self._send(
            "POST",
            f"/resale-properties/{listing_id}/approve",
            body,
            operation="approve",
            collection="resale-properties",
            record_id=listing_id,
        )
        return ResaleProperty.model_validate(data)

    def reject_resale_property(self, listing_id: str, reason: str, admin_notes: Optional[str] = None) -> ResaleProperty:
        body: Dict[str, Any] = {"reason": reason}
        if admin_notes is not None:
            body["adminNotes"] = admin_notes
        data = self._send(
            "POST",
            f"/resale-properties/{listing_id}/reject",
            body,
            operation="reject",
            collection="resale-properties",
            record_id=listing_id,
        )
        return ResaleProperty.model_validate(data)

    def set_resale_listing_status(self, listing_id: str, status: str) -> ResaleProperty:
        data = self._send(
            "PUT",
            f"/resale-properties/{listing_id}/listing-status",
            {"status": status},
            operation=f"mark as {status}",
            collection="resale-properties",
            record_id=listing_id,
        )
        return ResaleProperty.model_validate(data)

    # ------------------------------------------------------------------
    def debug_info(self) -> Dict[str, str]:
        if self.read_only:
            return {
                "dataSource": "Static JSON snapshots",
                "storageType": "Read-Only",
                "apiEndpoint": "Direct JSON access",
                "source": str(self.static_source),
            }
        return {
            "dataSource": "JSON files via API",
            "storageType": "File System",
            "apiEndpoint": self.base_url,
            "source": self.base_url,
        }

    # ------------------------------------------------------------------
    @staticmethod
    def _build_session(retries: int, backoff: float) -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=retries,
            backoff_factor=backoff,
            status_forcelist=(500, 502, 503, 504),
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _static_is_url(self) -> bool:
        return str(self.static_source).startswith(("http://", "https://"))

    def _snapshot(self, collection: str, default: Any) -> Any:
        if self._snapshots is not None:
            document = self._snapshots.load_document(collection)
            return default if document is None else document
        url = f"{str(self.static_source).rstrip('/')}/{collection}.json"
        resp = self._request("GET", url, operation=f"read {collection}")
        if resp.status_code == 404:
            return default
        self._raise_for_status(resp, operation=f"read {collection}")
        return resp.json()

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None, **context: Any) -> Any:
        resp = self._request("GET", f"{self.base_url}{path}", params=params, operation=f"read {path}")
        self._raise_for_status(resp, operation=f"read {path}", **context)
        return resp.json()

    def _send(
        self,
        method: str,
        path: str,
        payload: Optional[Mapping[str, Any]] = None,
        operation: str = "write",
        **context: Any,
    ) -> Dict[str, Any]:
        if self.read_only:
            LOGGER.warning("write_blocked mode=%s op=%s path=%s", self.mode, operation, path)
            raise ReadOnlyModeError(operation)
        body = dict(payload) if payload is not None else None
        resp = self._request(method, f"{self.base_url}{path}", json=body, operation=operation)
        self._raise_for_status(resp, operation=operation, **context)
        return resp.json()

    def _request(self, method: str, url: str, operation: str, **kwargs: Any) -> Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            LOGGER.error("request_failed method=%s url=%s op=%s error=%s", method, url, operation, exc)
            raise StorageError(f"Could not {operation}") from exc

    def _raise_for_status(
        self,
        resp: Response,
        operation: str,
        collection: str = "",
        record_id: str = "",
    ) -> None:
        if resp.ok:
            return
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or resp.reason or "request failed"
        status = resp.status_code
        if status == 422:
            raise ValidationError(body.get("fields") or {"body": str(message)})
        if status == 404:
            raise NotFoundError(collection or "resource", record_id or resp.url or "")
        if status == 409:
            raise InvalidStateTransitionError(record_id, str(body.get("current", "unknown")), operation)
        if status == 403 and body.get("error") == "read_only":
            raise ReadOnlyModeError(operation)
        if status == 502 and body.get("error") == "extraction_failed":
            raise ExtractionError(resp.url or "", str(message))
        LOGGER.error("api_error status=%s op=%s message=%s", status, operation, message)
        raise StorageError(f"Could not {operation}")
