from fastapi.testclient import TestClient

from propscan.api import create_app
from propscan.utils.settings import Settings


def _client(tmp_path, read_only=False):
    return TestClient(create_app(Settings(data_dir=tmp_path, read_only=read_only)))


def _listing():
    return {
        "sellerName": "Rohit Sharma",
        "sellerPhone": "9876543210",
        "sellerEmail": "rohit@example.com",
        "area": "1850 sq ft",
        "city": "Gurgaon",
        "locality": "Sector 54",
        "price": "2.5 Cr",
        "description": "Corner unit",
    }


def test_health(tmp_path):
    resp = _client(tmp_path).get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "readOnly": False}


def test_property_endpoints(tmp_path):
    client = _client(tmp_path)

    created = client.post("/api/properties/Gurgaon", json={"name": "DLF Privana", "price": "7 Cr"})
    assert created.status_code == 200
    prop = created.json()
    assert prop["id"].startswith("prop_")
    assert prop["createdAt"]

    assert [p["name"] for p in client.get("/api/properties/gurgaon").json()] == ["DLF Privana"]
    assert client.get("/api/properties/noida").json() == []
    assert list(client.get("/api/properties").json()) == ["gurgaon"]

    updated = client.put(f"/api/properties/gurgaon/{prop['id']}", json={"price": "7.2 Cr"})
    assert updated.status_code == 200
    assert updated.json()["price"] == "7.2 Cr"
    assert updated.json()["name"] == "DLF Privana"

    missing = client.put("/api/properties/gurgaon/prop_missing", json={"price": "1 Cr"})
    assert missing.status_code == 404
    assert missing.json()["error"] == "not_found"

    assert client.delete(f"/api/properties/gurgaon/{prop['id']}").json() == {"success": True, "deleted": True}
    assert client.delete(f"/api/properties/gurgaon/{prop['id']}").json() == {"success": True, "deleted": False}


def test_validation_errors_are_422(tmp_path):
    resp = _client(tmp_path).post("/api/leads", json={"name": "", "phone": "12345"})
    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_failed"
    assert set(body["fields"]) == {"name", "phone"}


def test_leads_and_export(tmp_path):
    client = _client(tmp_path)
    client.post("/api/leads", json={"name": "Asha", "phone": "9999999999", "city": "Gurgaon", "source": "hero"})
    client.post("/api/leads", json={"name": "Vikram", "phone": "8888888888", "city": "Noida"})

    assert len(client.get("/api/leads").json()) == 2
    assert [lead["name"] for lead in client.get("/api/leads", params={"city": "gurgaon"}).json()] == ["Asha"]
    assert [lead["name"] for lead in client.get("/api/leads", params={"source": "HERO"}).json()] == ["Asha"]

    export = client.get("/api/leads/export", params={"city": "Gurgaon"})
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert 'filename="leads_gurgaon_' in export.headers["content-disposition"]
    lines = export.text.splitlines()
    assert lines[0] == '"Name","Phone","Email","City","Budget","Purpose","Message","Date"'
    assert len(lines) == 2
    assert lines[1].startswith('"Asha","9999999999","N/A","Gurgaon"')


def test_resale_review_flow(tmp_path):
    client = _client(tmp_path)
    listing = client.post("/api/resale-properties", json={**_listing(), "approvalStatus": "approved"}).json()
    assert listing["approvalStatus"] == "pending"
    assert client.get("/api/resale-properties/public").json() == []

    early = client.put(f"/api/resale-properties/{listing['id']}/listing-status", json={"status": "sold"})
    assert early.status_code == 409
    assert early.json() == {"error": "invalid_transition", "message": early.json()["message"], "current": "pending"}

    approved = client.post(f"/api/resale-properties/{listing['id']}/approve")
    assert approved.status_code == 200
    assert approved.json()["approvalStatus"] == "approved"
    assert [item["id"] for item in client.get("/api/resale-properties/public").json()] == [listing["id"]]
    assert len(client.get("/api/resale-properties", params={"status": "approved"}).json()) == 1

    rejected = client.post(f"/api/resale-properties/{listing['id']}/reject", json={"reason": "Too late"})
    assert rejected.status_code == 409

    sold = client.put(f"/api/resale-properties/{listing['id']}/listing-status", json={"status": "sold"})
    assert sold.json()["listingStatus"] == "sold"
    assert client.get("/api/resale-properties/public").json() == []
    assert client.get(f"/api/resale-properties/{listing['id']}").json()["listingStatus"] == "sold"


def test_resale_reject_needs_reason(tmp_path):
    client = _client(tmp_path)
    listing = client.post("/api/resale-properties", json=_listing()).json()

    resp = client.post(f"/api/resale-properties/{listing['id']}/reject", json={})
    assert resp.status_code == 422
    assert "rejectionReason" in resp.json()["fields"]

    resp = client.post(
        f"/api/resale-properties/{listing['id']}/reject",
        json={"reason": "Duplicate", "adminNotes": "Seen before"},
    )
    assert resp.json()["rejectionReason"] == "Duplicate"
    assert resp.json()["adminNotes"] == "Seen before"


def test_cities_testimonials_and_page_copy(tmp_path):
    client = _client(tmp_path)

    assert client.post("/api/cities", json={"name": "Dubai", "slug": "dubai"}).status_code == 200
    assert [city["slug"] for city in client.get("/api/cities").json()] == ["dubai"]
    assert client.put("/api/cities/dubai", json={"name": "Dubai UAE"}).json()["name"] == "Dubai UAE"

    testimonial = client.post("/api/testimonials", json={"name": "Neha", "message": "Great"}).json()
    assert client.put(f"/api/testimonials/{testimonial['id']}", json={"city": "Noida"}).json()["city"] == "Noida"
    assert client.delete(f"/api/testimonials/{testimonial['id']}").json()["deleted"] is True

    assert client.get("/api/hero-section").json()["headline"]
    assert client.put("/api/about-us", json={"content": "About"}).json() == {"content": "About"}
    assert client.get("/api/about-us").json() == {"content": "About"}


def test_read_only_deployment_refuses_writes(tmp_path):
    client = _client(tmp_path, read_only=True)

    assert client.get("/api/health").json()["readOnly"] is True
    assert client.get("/api/leads").json() == []

    resp = client.post("/api/leads", json={"name": "A", "phone": "9999999999"})
    assert resp.status_code == 403
    assert resp.json()["error"] == "read_only"
    assert not (tmp_path / "leads.json").exists()


def test_storage_failure_hides_details(tmp_path):
    (tmp_path / "leads.json").write_text("{broken")
    resp = _client(tmp_path).get("/api/leads")
    assert resp.status_code == 500
    assert resp.json() == {"error": "storage_failure", "message": "Storage failure"}


def test_unreadable_stored_listing_is_a_storage_failure(tmp_path):
    (tmp_path / "resale-properties.json").write_text(
        '[{"id": "r1", "sellerName": "A", "approvalStatus": "pending"}]'
    )
    client = _client(tmp_path)

    for resp in (client.get("/api/resale-properties/r1"), client.post("/api/resale-properties/r1/approve")):
        assert resp.status_code == 500
        assert resp.json() == {"error": "storage_failure", "message": "Storage failure"}


def test_client_city_id_is_ignored(tmp_path):
    client = _client(tmp_path)
    client.post("/api/cities", json={"name": "Gurgaon", "slug": "gurgaon"})

    resp = client.post("/api/cities", json={"id": "gurgaon", "name": "Noida", "slug": "noida"})

    assert resp.status_code == 200
    assert resp.json()["id"] == "noida"
    assert [city["id"] for city in client.get("/api/cities").json()] == ["gurgaon", "noida"]
