"""Helpers for the property form: scrape a project's official site and check image links.

Both talk to third-party hosts only. Nothing is written to the record store, so
they stay available when the deployment is read-only.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from ..errors import ExtractionError, ValidationError
from ..models.extraction import ExtractedAmenity, ExtractedProject, ImageCheck, ProjectDocument
from ..utils.coerce import to_int, to_str
from ..utils.logging import get_logger

LOGGER = get_logger("services.extraction")

REQUEST_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    ),
}
PAGE_TIMEOUT = 15
IMAGE_TIMEOUT = 5

MAX_IMAGES = 20
MAX_AMENITIES = 20
MAX_OVERVIEW = 1000

OVERVIEW_SELECTORS = (
    ".project-overview",
    ".overview",
    ".description",
    ".about-project",
    '[class*="overview"]',
    '[class*="description"]',
    "section.about",
    ".project-details p",
)
AMENITY_SELECTORS = (
    ".amenities li",
    ".amenity-list li",
    '[class*="amenity"] li',
    ".features li",
    ".facility",
)
SKIP_IMAGE_WORDS = ("icon", "logo", "sprite")
FLOOR_PLAN = re.compile(r"floor|plan", re.IGNORECASE)

AMENITY_CATEGORIES = (
    (re.compile(r"pool|swim|spa|gym|fitness|yoga"), "Fitness & Wellness"),
    (re.compile(r"park|garden|landscape|green"), "Outdoor"),
    (re.compile(r"club|lounge|party|banquet"), "Leisure"),
    (re.compile(r"security|cctv|guard"), "Security"),
    (re.compile(r"play|kids|children"), "Kids"),
    (re.compile(r"sport|court|cricket|tennis|badminton"), "Sports"),
)


def categorize_amenity(name: str) -> str:
    lowered = name.lower()
    for pattern, category in AMENITY_CATEGORIES:
        if pattern.search(lowered):
            return category
    return "General"


def _unique(values: Iterable[str], limit: int) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)[:limit]


def _build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(REQUEST_HEADERS)
    return session


class ProjectExtractor:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = PAGE_TIMEOUT,
        image_timeout: float = IMAGE_TIMEOUT,
    ) -> None:
        self.session = session or _build_session()
        self.timeout = timeout
        self.image_timeout = image_timeout

    # ------------------------------------------------------------------
    # Official website
    def extract(self, website_url: Any, project_id: Optional[str] = None) -> ExtractedProject:
        url = to_str(website_url).strip()
        if not url:
            raise ValidationError({"websiteUrl": "Website URL is required"})
        if urlparse(url).scheme not in ("http", "https"):
            raise ValidationError({"websiteUrl": "Website URL must start with http:// or https://"})

        LOGGER.info("extract_started url=%s project=%s", url, project_id or "-")
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            LOGGER.warning("extract_failed url=%s error=%s", url, exc)
            raise ExtractionError(url, str(exc)) from exc

        project = parse_project_page(resp.text, url, project_id)
        LOGGER.info(
            "extract_completed url=%s overview=%s amenities=%d images=%d documents=%d",
            url,
            bool(project.overview),
            len(project.amenities),
            len(project.project_images),
            len(project.documents),
        )
        return project

    # ------------------------------------------------------------------
    # Image links
    def validate_images(self, image_urls: Any) -> List[ImageCheck]:
        if not isinstance(image_urls, list):
            raise ValidationError({"imageUrls": "imageUrls must be an array"})
        return [self._check_image(to_str(url).strip()) for url in image_urls]

    def _check_image(self, url: str) -> ImageCheck:
        try:
            resp = self.session.head(url, timeout=self.image_timeout, allow_redirects=True)
        except requests.Timeout:
            return ImageCheck(url=url, valid=False, error="Timeout")
        except requests.RequestException as exc:
            LOGGER.info("image_check_failed url=%s error=%s", url, exc)
            return ImageCheck(url=url, valid=False, error="Request failed")
        return ImageCheck(
            url=url,
            valid=resp.status_code == 200,
            content_type=resp.headers.get("Content-Type"),
            size=to_int(resp.headers.get("Content-Length")),
        )


def parse_project_page(html: str, page_url: str, project_id: Optional[str] = None) -> ExtractedProject:
    """Pull overview, amenities, images and PDF documents out of a project page."""

    soup = BeautifulSoup(html, "html.parser")
    base_tag = soup.find("base", href=True)
    base_url = urljoin(page_url, base_tag["href"]) if base_tag else page_url

    overview = None
    for selector in OVERVIEW_SELECTORS:
        node = soup.select_one(selector)
        text = node.get_text(" ", strip=True) if node else ""
        if len(text) > 50:
            overview = text[:MAX_OVERVIEW]
            break

    amenity_names = []
    for selector in AMENITY_SELECTORS:
        for node in soup.select(selector):
            text = node.get_text(" ", strip=True)
            if text and len(text) < 100:
                amenity_names.append(text)
    amenities = [
        ExtractedAmenity(name=name, category=categorize_amenity(name))
        for name in _unique(amenity_names, MAX_AMENITIES)
    ]

    images, floor_plans = [], []
    for img in soup.find_all("img"):
        src = (img.get("src") or img.get("data-src") or "").strip()
        if not src or src.startswith("data:"):
            continue
        absolute = urljoin(base_url, src)
        if any(word in absolute.lower() for word in SKIP_IMAGE_WORDS):
            continue
        if FLOOR_PLAN.search(src) or FLOOR_PLAN.search(img.get("alt") or ""):
            floor_plans.append(absolute)
        else:
            images.append(absolute)

    documents = []
    for link in soup.find_all("a", href=True):
        if ".pdf" not in link["href"].lower():
            continue
        title = link.get_text(" ", strip=True) or "Document"
        lowered = title.lower()
        kind = "brochure" if "brochure" in lowered else "floorplan" if "floor" in lowered else "other"
        documents.append(ProjectDocument(title=title, type=kind, url=urljoin(base_url, link["href"])))

    brochure = next((doc.url for doc in documents if doc.type == "brochure"), None)
    return ExtractedProject(
        official_website=page_url,
        project_id=project_id,
        overview=overview,
        amenities=amenities,
        project_images=_unique(images, MAX_IMAGES),
        floor_plans=_unique(floor_plans, MAX_IMAGES),
        documents=documents,
        brochure_path=brochure,
    )


__all__ = ["ProjectExtractor", "parse_project_page", "categorize_amenity"]
