"""Review workflow for user-submitted resale listings.

Sellers submit listings, which start ``pending``. An admin either approves
(listing goes live as ``active``) or rejects with a reason. Both outcomes are
final: there is no way to reopen a rejected listing. Once approved, the admin
can move the listing between ``active``, ``sold`` and ``on-hold`` in any order.
Only approved and active listings are shown to the public.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from ..db.store import RecordStore, utc_timestamp
from ..errors import InvalidStateTransitionError, NotFoundError, ValidationError
from ..models.resale import ApprovalStatus, ListingStatus, ResaleProperty, is_publicly_visible
from ..utils.logging import get_logger
from .validation import (
    FieldErrors,
    build_model,
    check_email,
    check_phone,
    parse_record,
    parse_records,
    require_text,
    screen_payload,
)

LOGGER = get_logger("services.resale")

COLLECTION = "resale-properties"

REQUIRED_FIELDS = (
    ("sellerName", "Name is required"),
    ("city", "City is required"),
    ("locality", "Locality is required"),
    ("area", "Area is required"),
    ("price", "Price is required"),
    ("description", "Description is required"),
)

# Changed only through approve/reject/set_listing_status.
STATE_FIELDS = frozenset({"approvalStatus", "listingStatus", "rejectionReason"})


def _check_listing(errors: FieldErrors, data: Mapping[str, Any]) -> None:
    for field, message in REQUIRED_FIELDS:
        require_text(errors, data, field, message)
    check_phone(errors, data, "sellerPhone")
    check_email(errors, data, "sellerEmail", required=True)


def _validated(data: Mapping[str, Any], errors: Optional[FieldErrors] = None) -> ResaleProperty:
    errors = dict(errors or {})
    _check_listing(errors, data)
    return build_model(ResaleProperty, data, errors)


class ResaleWorkflow:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    # ------------------------------------------------------------------
    # Public submission
    def submit(self, fields: Mapping[str, Any]) -> ResaleProperty:
        self.store.check_writable("submit listing")
        if not isinstance(fields, Mapping):
            raise ValidationError({"body": "Expected a JSON object"})
        seller_fields = {
            key: value
            for key, value in fields.items()
            if ResaleProperty.wire_name(key) not in ResaleProperty.workflow_fields
        }
        errors: FieldErrors = {}
        data = screen_payload(ResaleProperty, seller_fields, errors)
        data["approvalStatus"] = ApprovalStatus.PENDING.value
        data["listingStatus"] = ListingStatus.ACTIVE.value
        listing = _validated(data, errors)
        stored = self.store.append(COLLECTION, listing.to_record(), id_prefix="resale", stamp_field="submittedAt")
        LOGGER.info("listing_submitted id=%s city=%s", stored["id"], listing.city)
        return ResaleProperty.model_validate(stored)

    # ------------------------------------------------------------------
    # Reads
    def list_all(self) -> List[ResaleProperty]:
        return parse_records(ResaleProperty, self.store.read_all(COLLECTION), COLLECTION)

    def list_by_approval_status(self, status: Union[ApprovalStatus, str]) -> List[ResaleProperty]:
        wanted = _approval_status(status)
        return [listing for listing in self.list_all() if listing.approval_status == wanted]

    def list_publicly_visible(self) -> List[ResaleProperty]:
        return [listing for listing in self.list_all() if is_publicly_visible(listing)]

    def get(self, listing_id: str) -> ResaleProperty:
        row = self.store.get(COLLECTION, listing_id)
        if row is None:
            raise NotFoundError(COLLECTION, listing_id)
        return parse_record(ResaleProperty, row, COLLECTION)

    # ------------------------------------------------------------------
    # Review
    def approve(self, listing_id: str, admin_notes: Optional[str] = None) -> ResaleProperty:
        self.store.check_writable("approve listing")
        listing = self.get(listing_id)
        if listing.approval_status == ApprovalStatus.REJECTED:
            raise InvalidStateTransitionError(listing_id, listing.approval_status.value, "approve")
        changes: Dict[str, Any] = {
            "approvalStatus": ApprovalStatus.APPROVED.value,
            "listingStatus": (listing.listing_status or ListingStatus.ACTIVE).value,
        }
        if admin_notes is not None:
            changes["adminNotes"] = admin_notes
        LOGGER.info("listing_approved id=%s", listing_id)
        return self._apply(listing_id, changes)

    def reject(self, listing_id: str, reason: str, admin_notes: Optional[str] = None) -> ResaleProperty:
        self.store.check_writable("reject listing")
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError({"rejectionReason": "Rejection reason is required"})
        listing = self.get(listing_id)
        if listing.approval_status == ApprovalStatus.APPROVED:
            raise InvalidStateTransitionError(listing_id, listing.approval_status.value, "reject")
        changes: Dict[str, Any] = {
            "approvalStatus": ApprovalStatus.REJECTED.value,
            "rejectionReason": reason,
        }
        if admin_notes is not None:
            changes["adminNotes"] = admin_notes
        LOGGER.info("listing_rejected id=%s", listing_id)
        return self._apply(listing_id, changes)

    def set_listing_status(self, listing_id: str, status: Union[ListingStatus, str]) -> ResaleProperty:
        self.store.check_writable("change listing status")
        try:
            target = ListingStatus(status)
        except ValueError:
            allowed = ", ".join(item.value for item in ListingStatus)
            raise ValidationError({"listingStatus": f"Must be one of: {allowed}"}) from None
        listing = self.get(listing_id)
        if listing.approval_status != ApprovalStatus.APPROVED:
            raise InvalidStateTransitionError(
                listing_id, listing.approval_status.value, f"mark as {target.value}"
            )
        LOGGER.info("listing_status_changed id=%s from=%s to=%s", listing_id, listing.listing_status.value, target.value)
        return self._apply(listing_id, {"listingStatus": target.value})

    # ------------------------------------------------------------------
    # Admin edits
    def update(self, listing_id: str, fields: Mapping[str, Any]) -> ResaleProperty:
        """Edit listing details in any state; the review state itself is not editable here."""

        self.store.check_writable("update listing")
        if not isinstance(fields, Mapping):
            raise ValidationError({"body": "Expected a JSON object"})
        errors: FieldErrors = {}
        for key in fields:
            if ResaleProperty.wire_name(key) in STATE_FIELDS:
                errors[ResaleProperty.wire_name(key)] = "Use the approve, reject or listing-status actions"
        changes = screen_payload(ResaleProperty, fields, errors)
        if errors:
            raise ValidationError(errors)
        return self._apply(listing_id, changes, full_check=True)

    def delete(self, listing_id: str) -> bool:
        return self.store.delete(COLLECTION, listing_id)

    # ------------------------------------------------------------------
    def _apply(self, listing_id: str, changes: Dict[str, Any], full_check: bool = False) -> ResaleProperty:
        changes = {**changes, "updatedAt": utc_timestamp()}
        normalise = _normalise_edited if full_check else _normalise
        stored = self.store.update(COLLECTION, listing_id, changes, normalise=normalise)
        return ResaleProperty.model_validate(stored)


def _normalise(merged: Dict[str, Any]) -> Dict[str, Any]:
    return build_model(ResaleProperty, merged).to_record()


def _normalise_edited(merged: Dict[str, Any]) -> Dict[str, Any]:
    return _validated(merged).to_record()


def _approval_status(status: Union[ApprovalStatus, str]) -> ApprovalStatus:
    try:
        return ApprovalStatus(status)
    except ValueError:
        allowed = ", ".join(item.value for item in ApprovalStatus)
        raise ValidationError({"status": f"Must be one of: {allowed}"}) from None


__all__ = ["ResaleWorkflow", "COLLECTION", "REQUIRED_FIELDS"]
