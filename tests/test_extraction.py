import pytest
import requests
from fastapi.testclient import TestClient

from propscan.api import create_app
from propscan.db.repo import Repo
from propscan.errors import ExtractionError, ValidationError
from propscan.services.extraction import ProjectExtractor, categorize_amenity
from propscan.utils.settings import Settings

PAGE_URL = "https://godrej.test/projects/aristocrat"

PAGE = """
<html>
<head><base href="https://godrej.test/projects/"></head>
<body>
  <section class="project-overview">
    <p>Godrej Aristocrat is a premium residential project in Sector 49 with 3 and 4 BHK homes across 12 acres.</p>
  </section>
  <ul class="amenities">
    <li>Swimming Pool</li>
    <li>Kids Play Area</li>
    <li>Swimming Pool</li>
    <li>Concierge</li>
  </ul>
  <div class="gallery">
    <img src="images/tower-a.jpg" alt="Tower A">
    <img data-src="//cdn.godrej.test/img/lobby.jpg" alt="Lobby">
    <img src="/assets/logo.png" alt="Godrej">
    <img src="data:image/png;base64,AAAA">
    <img src="images/tower-a.jpg">
    <img src="images/3bhk-floor-plan.jpg" alt="3 BHK">
  </div>
  <a href="docs/Aristocrat-Brochure.pdf">Download Brochure</a>
  <a href="https://godrej.test/docs/price-list.pdf">Price List</a>
  <a href="/contact">Contact</a>
</body>
</html>
"""


class _FakeSession:
    def __init__(self, pages=None, heads=None):
        self.pages = pages or {}
        self.heads = heads or {}
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(("GET", url, timeout))
        return self._outcome(self.pages[url])

    def head(self, url, timeout=None, allow_redirects=None):
        self.calls.append(("HEAD", url, timeout))
        return self._outcome(self.heads[url])

    @staticmethod
    def _outcome(outcome):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _response(status, body="", headers=None, url=PAGE_URL):
    resp = requests.Response()
    resp.status_code = status
    resp._content = body.encode("utf-8")
    resp.encoding = "utf-8"
    resp.headers.update(headers or {})
    resp.url = url
    return resp


def _image_session():
    return _FakeSession(
        heads={
            "https://img.test/a.jpg": _response(200, headers={"Content-Type": "image/jpeg", "Content-Length": "2048"}),
            "https://img.test/missing.jpg": _response(404),
            "https://img.test/slow.jpg": requests.Timeout("read timed out"),
            "https://img.test/down.jpg": requests.ConnectionError("connection refused"),
        }
    )


def test_extract_reads_project_page():
    session = _FakeSession(pages={PAGE_URL: _response(200, PAGE)})
    project = ProjectExtractor(session=session, timeout=7).extract(PAGE_URL, "prop_1")

    assert session.calls == [("GET", PAGE_URL, 7)]
    assert project.official_website == PAGE_URL
    assert project.project_id == "prop_1"
    assert project.overview.startswith("Godrej Aristocrat is a premium")
    assert [(a.name, a.category) for a in project.amenities] == [
        ("Swimming Pool", "Fitness & Wellness"),
        ("Kids Play Area", "Kids"),
        ("Concierge", "General"),
    ]
    assert project.project_images == [
        "https://godrej.test/projects/images/tower-a.jpg",
        "https://cdn.godrej.test/img/lobby.jpg",
    ]
    assert project.floor_plans == ["https://godrej.test/projects/images/3bhk-floor-plan.jpg"]
    assert [(d.type, d.url) for d in project.documents] == [
        ("brochure", "https://godrej.test/projects/docs/Aristocrat-Brochure.pdf"),
        ("other", "https://godrej.test/docs/price-list.pdf"),
    ]
    assert project.brochure_path == "https://godrej.test/projects/docs/Aristocrat-Brochure.pdf"


def test_extract_page_without_details():
    session = _FakeSession(pages={PAGE_URL: _response(200, "<html><body><p>Coming soon</p></body></html>")})
    project = ProjectExtractor(session=session).extract(PAGE_URL)

    assert project.overview is None
    assert project.amenities == []
    assert project.project_images == []
    assert project.brochure_path is None


def test_extract_needs_http_url():
    extractor = ProjectExtractor(session=_FakeSession())
    with pytest.raises(ValidationError) as exc:
        extractor.extract("  ")
    assert exc.value.fields == {"websiteUrl": "Website URL is required"}
    with pytest.raises(ValidationError):
        extractor.extract("ftp://godrej.test/brochure")


def test_extract_failures_are_typed():
    session = _FakeSession(
        pages={
            PAGE_URL: _response(404, "not here"),
            "https://down.test/": requests.ConnectionError("connection refused"),
        }
    )
    extractor = ProjectExtractor(session=session)
    with pytest.raises(ExtractionError) as exc:
        extractor.extract(PAGE_URL)
    assert exc.value.url == PAGE_URL
    with pytest.raises(ExtractionError):
        extractor.extract("https://down.test/")


def test_validate_images_reports_each_url():
    checks = ProjectExtractor(session=_image_session()).validate_images(
        ["https://img.test/a.jpg", "https://img.test/missing.jpg", "https://img.test/slow.jpg", "https://img.test/down.jpg"]
    )

    assert [(c.valid, c.error) for c in checks] == [
        (True, None),
        (False, None),
        (False, "Timeout"),
        (False, "Request failed"),
    ]
    assert checks[0].content_type == "image/jpeg"
    assert checks[0].size == 2048


def test_validate_images_needs_a_list():
    with pytest.raises(ValidationError) as exc:
        ProjectExtractor(session=_FakeSession()).validate_images("https://img.test/a.jpg")
    assert "imageUrls" in exc.value.fields


def test_categorize_amenity():
    assert categorize_amenity("Tennis Court") == "Sports"
    assert categorize_amenity("24x7 CCTV") == "Security"
    assert categorize_amenity("Banquet Hall") == "Leisure"


def _client(tmp_path, session, read_only=False):
    repo = Repo(
        Settings(data_dir=tmp_path, read_only=read_only),
        extractor=ProjectExtractor(session=session),
    )
    return TestClient(create_app(repo=repo))


def test_extract_endpoint(tmp_path):
    client = _client(tmp_path, _FakeSession(pages={PAGE_URL: _response(200, PAGE)}), read_only=True)

    resp = client.post("/api/extract", json={"websiteUrl": PAGE_URL, "projectId": "prop_1"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["officialWebsite"] == PAGE_URL
    assert body["brochurePath"].endswith("Aristocrat-Brochure.pdf")
    assert len(body["projectImages"]) == 2


def test_extract_endpoint_errors(tmp_path):
    client = _client(tmp_path, _FakeSession(pages={PAGE_URL: requests.ConnectionError("refused")}))

    missing = client.post("/api/extract", json={})
    assert missing.status_code == 422
    assert "websiteUrl" in missing.json()["fields"]

    failed = client.post("/api/extract", json={"websiteUrl": PAGE_URL})
    assert failed.status_code == 502
    assert failed.json()["error"] == "extraction_failed"


def test_validate_images_endpoint(tmp_path):
    client = _client(tmp_path, _image_session())

    resp = client.post("/api/validate-images", json={"imageUrls": ["https://img.test/a.jpg", "https://img.test/slow.jpg"]})

    assert resp.status_code == 200
    assert resp.json() == {
        "results": [
            {"url": "https://img.test/a.jpg", "valid": True, "contentType": "image/jpeg", "size": 2048},
            {"url": "https://img.test/slow.jpg", "valid": False, "error": "Timeout"},
        ]
    }
    assert client.post("/api/validate-images", json={"imageUrls": "nope"}).status_code == 422
