import json

import pytest

from propscan.db.store import RecordStore
from propscan.errors import InvalidStateTransitionError, NotFoundError, StorageError, ValidationError
from propscan.models.resale import ApprovalStatus, ListingStatus, ResaleProperty, is_publicly_visible
from propscan.services.resale import ResaleWorkflow


def _workflow(tmp_path):
    return ResaleWorkflow(RecordStore(tmp_path))


def _listing(**overrides):
    payload = {
        "sellerName": "Rohit Sharma",
        "sellerPhone": "98765 43210",
        "sellerEmail": "rohit@example.com",
        "sellerType": "Owner",
        "propertyType": "Apartment",
        "bhk": "3 BHK",
        "area": "1850 sq ft",
        "city": "Gurgaon",
        "locality": "Sector 54",
        "price": "2.5 Cr",
        "priceNegotiable": True,
        "description": "Corner unit with park view",
        "keyHighlights": ["Park view"],
    }
    payload.update(overrides)
    return payload


def test_submission_always_starts_pending(tmp_path):
    listing = _workflow(tmp_path).submit(
        _listing(approvalStatus="approved", listingStatus="sold", adminNotes="sneaky")
    )

    assert listing.id.startswith("resale_")
    assert listing.submitted_at.endswith("Z")
    assert listing.approval_status == ApprovalStatus.PENDING
    assert listing.listing_status == ListingStatus.ACTIVE
    assert listing.admin_notes is None
    assert not listing.publicly_visible


def test_missing_required_fields_are_all_reported(tmp_path):
    with pytest.raises(ValidationError) as exc:
        _workflow(tmp_path).submit({})
    assert set(exc.value.fields) == {
        "sellerName",
        "sellerPhone",
        "sellerEmail",
        "city",
        "locality",
        "area",
        "price",
        "description",
    }
    assert exc.value.fields["sellerPhone"] == "Phone is required"
    assert not (tmp_path / "resale-properties.json").exists()


def test_bad_contact_details_are_rejected(tmp_path):
    with pytest.raises(ValidationError) as exc:
        _workflow(tmp_path).submit(_listing(sellerPhone="12345", sellerEmail="rohit@"))
    assert exc.value.fields == {
        "sellerPhone": "Phone must be 10 digits",
        "sellerEmail": "Invalid email format",
    }


def test_unknown_enum_value_is_rejected(tmp_path):
    with pytest.raises(ValidationError) as exc:
        _workflow(tmp_path).submit(_listing(propertyType="Castle"))
    assert "propertyType" in exc.value.fields


def test_approve_makes_listing_public(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())

    approved = workflow.approve(listing.id, admin_notes="Verified papers")

    assert approved.approval_status == ApprovalStatus.APPROVED
    assert approved.listing_status == ListingStatus.ACTIVE
    assert approved.admin_notes == "Verified papers"
    assert approved.updated_at is not None
    assert [item.id for item in workflow.list_publicly_visible()] == [listing.id]


def test_reject_requires_reason(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())

    with pytest.raises(ValidationError) as exc:
        workflow.reject(listing.id, "   ")
    assert "rejectionReason" in exc.value.fields
    assert workflow.get(listing.id).approval_status == ApprovalStatus.PENDING

    rejected = workflow.reject(listing.id, "Duplicate listing")
    assert rejected.approval_status == ApprovalStatus.REJECTED
    assert rejected.rejection_reason == "Duplicate listing"


def test_rejection_is_final(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())
    workflow.reject(listing.id, "Blurry photos")
    before = workflow.get(listing.id)

    with pytest.raises(InvalidStateTransitionError) as exc:
        workflow.approve(listing.id)
    assert exc.value.current == "rejected"
    with pytest.raises(InvalidStateTransitionError):
        workflow.set_listing_status(listing.id, "active")

    assert workflow.get(listing.id) == before


def test_approved_listing_cannot_be_rejected(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())
    approved = workflow.approve(listing.id)

    with pytest.raises(InvalidStateTransitionError):
        workflow.reject(listing.id, "Changed my mind")
    assert workflow.get(listing.id) == approved


def test_listing_status_needs_approval(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())

    with pytest.raises(InvalidStateTransitionError) as exc:
        workflow.set_listing_status(listing.id, "sold")
    assert exc.value.current == "pending"
    assert workflow.get(listing.id).listing_status == ListingStatus.ACTIVE


def test_visibility_follows_both_states(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())
    workflow.approve(listing.id)

    for status, visible in [("sold", False), ("on-hold", False), ("active", True), ("sold", False)]:
        updated = workflow.set_listing_status(listing.id, status)
        assert updated.publicly_visible is visible
        assert (listing.id in [item.id for item in workflow.list_publicly_visible()]) is visible


def test_unknown_listing_status_is_rejected(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())
    workflow.approve(listing.id)
    with pytest.raises(ValidationError) as exc:
        workflow.set_listing_status(listing.id, "archived")
    assert "listingStatus" in exc.value.fields


def test_is_publicly_visible_truth_table():
    base = ResaleProperty.model_validate(_listing())
    for approval in ApprovalStatus:
        for availability in ListingStatus:
            listing = base.model_copy(update={"approval_status": approval, "listing_status": availability})
            expected = approval == ApprovalStatus.APPROVED and availability == ListingStatus.ACTIVE
            assert is_publicly_visible(listing) is expected


def test_list_by_approval_status(tmp_path):
    workflow = _workflow(tmp_path)
    first = workflow.submit(_listing())
    second = workflow.submit(_listing(locality="Sector 62"))
    workflow.approve(second.id)

    assert [item.id for item in workflow.list_by_approval_status("pending")] == [first.id]
    assert [item.id for item in workflow.list_by_approval_status(ApprovalStatus.APPROVED)] == [second.id]
    with pytest.raises(ValidationError):
        workflow.list_by_approval_status("archived")


def test_update_edits_details_in_any_state(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())
    workflow.reject(listing.id, "Price too high")

    updated = workflow.update(listing.id, {"price": "2.2 Cr"})

    assert updated.price == "2.2 Cr"
    assert updated.approval_status == ApprovalStatus.REJECTED
    assert updated.rejection_reason == "Price too high"


def test_update_cannot_touch_review_state(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())

    with pytest.raises(ValidationError) as exc:
        workflow.update(listing.id, {"approvalStatus": "approved", "price": "1 Cr"})
    assert "approvalStatus" in exc.value.fields
    stored = workflow.get(listing.id)
    assert stored.approval_status == ApprovalStatus.PENDING
    assert stored.price == "2.5 Cr"


def test_update_revalidates_contact_details(tmp_path):
    workflow = _workflow(tmp_path)
    listing = workflow.submit(_listing())
    with pytest.raises(ValidationError) as exc:
        workflow.update(listing.id, {"sellerPhone": "123"})
    assert "sellerPhone" in exc.value.fields


def test_unknown_listing(tmp_path):
    workflow = _workflow(tmp_path)
    with pytest.raises(NotFoundError):
        workflow.get("resale_missing")
    with pytest.raises(NotFoundError):
        workflow.approve("resale_missing")
    assert workflow.delete("resale_missing") is False


def test_stored_row_that_no_longer_fits_is_a_storage_error(tmp_path):
    (tmp_path / "resale-properties.json").write_text(
        json.dumps([{"id": "r1", "sellerName": "A", "approvalStatus": "pending"}])
    )
    workflow = _workflow(tmp_path)

    with pytest.raises(StorageError):
        workflow.get("r1")
    with pytest.raises(StorageError):
        workflow.approve("r1")
    assert workflow.list_all() == []
