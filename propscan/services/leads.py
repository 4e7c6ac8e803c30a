"""Lead intake: append-only capture of prospect inquiries plus CSV export."""

from __future__ import annotations

import csv
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from ..db.store import RecordStore
from ..models.lead import Lead
from ..utils.logging import get_logger
from .validation import build_model, check_email, check_phone, parse_records, require_text, screen_payload

LOGGER = get_logger("services.leads")

COLLECTION = "leads"

CSV_COLUMNS = ["Name", "Phone", "Email", "City", "Budget", "Purpose", "Message", "Date"]
MISSING = "N/A"
DATE_FORMAT = "%Y-%m-%d"


class LeadIntake:
    """Leads are never edited once stored; they can only be listed, exported or deleted."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def submit(self, fields: Mapping[str, Any]) -> Lead:
        self.store.check_writable("submit lead")
        errors: Dict[str, str] = {}
        data = screen_payload(Lead, fields, errors)
        require_text(errors, data, "name", "Name is required")
        check_phone(errors, data, "phone")
        check_email(errors, data, "email")
        lead = build_model(Lead, data, errors)
        stored = self.store.append(COLLECTION, lead.to_record(), id_prefix="lead", stamp_field="timestamp")
        LOGGER.info("lead_submitted id=%s city=%s source=%s", stored["id"], lead.city or "-", lead.source or "-")
        return Lead.model_validate(stored)

    def list_all(self) -> List[Lead]:
        return parse_records(Lead, self.store.read_all(COLLECTION), COLLECTION)

    def list_by_city(self, city: str) -> List[Lead]:
        wanted = (city or "").strip().lower()
        return [lead for lead in self.list_all() if lead.city.strip().lower() == wanted]

    def list_by_source(self, source: str) -> List[Lead]:
        wanted = (source or "").strip().lower()
        return [lead for lead in self.list_all() if (lead.source or "").strip().lower() == wanted]

    def delete(self, lead_id: str) -> bool:
        return self.store.delete(COLLECTION, lead_id)


def export_csv(leads: Iterable[Lead]) -> str:
    """Render leads as CSV text.

    Every cell is double-quoted (embedded quotes doubled) so commas and line
    breaks in free-text fields survive. Dates come from each lead's stored
    timestamp in UTC, formatted ``YYYY-MM-DD``; nothing depends on the current
    time or locale.
    """

    rows = [
        [
            lead.name,
            lead.phone,
            lead.email or MISSING,
            lead.city or MISSING,
            lead.budget or MISSING,
            lead.purpose or MISSING,
            lead.message or MISSING,
            lead.timestamp,
        ]
        for lead in leads
    ]
    df = pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=object)
    stamps = pd.to_datetime(df["Date"], utc=True, errors="coerce", format="ISO8601")
    df["Date"] = stamps.dt.strftime(DATE_FORMAT).fillna("").astype(object)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def export_filename(city: Optional[str], today: date) -> str:
    scope = (city or "").strip().lower() or "all"
    return f"leads_{scope}_{today.strftime(DATE_FORMAT)}.csv"


__all__ = ["LeadIntake", "export_csv", "export_filename", "CSV_COLUMNS", "COLLECTION"]
