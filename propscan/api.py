"""HTTP API for the site content: properties, leads, testimonials, resale listings, cities and page copy."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .db.repo import Repo
from .errors import (
    ExtractionError,
    InvalidStateTransitionError,
    NotFoundError,
    ReadOnlyModeError,
    StorageError,
    ValidationError,
)
from .models.base import RecordModel
from .services.leads import export_csv, export_filename
from .utils.logging import configure_logging, get_logger
from .utils.settings import Settings

LOGGER = get_logger("api")

router = APIRouter(prefix="/api")

Payload = Dict[str, Any]


def get_repo(request: Request) -> Repo:
    return request.app.state.repo


def _dump(record: RecordModel) -> Payload:
    return record.to_record()


def _dump_all(records: Iterable[RecordModel]) -> List[Payload]:
    return [record.to_record() for record in records]


def _deleted(flag: bool) -> Payload:
    # Deleting an unknown id is not an error; ``deleted`` tells the two cases apart.
    return {"success": True, "deleted": flag}


class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApproveRequest(_CamelBody):
    admin_notes: Optional[str] = None


class RejectRequest(_CamelBody):
    reason: str = ""
    admin_notes: Optional[str] = None


class ListingStatusRequest(_CamelBody):
    status: str


@router.get("/health")
def health(repo: Repo = Depends(get_repo)):
    return {"status": "ok", "readOnly": repo.read_only}


# ----------------------------------------------------------------------
# Properties
@router.get("/properties")
def list_properties(repo: Repo = Depends(get_repo)):
    return {city: _dump_all(items) for city, items in repo.properties.partitions().items()}


@router.get("/properties/{city}")
def list_city_properties(city: str, repo: Repo = Depends(get_repo)):
    return _dump_all(repo.properties.list_by_city(city))


@router.post("/properties/{city}")
def add_property(city: str, payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.properties.add(city, payload))


@router.put("/properties/{city}/{property_id}")
def update_property(city: str, property_id: str, payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.properties.update(city, property_id, payload))


@router.delete("/properties/{city}/{property_id}")
def delete_property(city: str, property_id: str, repo: Repo = Depends(get_repo)):
    return _deleted(repo.properties.delete(city, property_id))


# ----------------------------------------------------------------------
# Leads
@router.get("/leads")
def list_leads(
    city: Optional[str] = Query(None),
    source: Optional[str] = Query(None),
    repo: Repo = Depends(get_repo),
):
    leads = repo.leads.list_by_city(city) if city else repo.leads.list_all()
    if source:
        wanted = source.strip().lower()
        leads = [lead for lead in leads if (lead.source or "").strip().lower() == wanted]
    return _dump_all(leads)


@router.get("/leads/export")
def export_leads(city: Optional[str] = Query(None), repo: Repo = Depends(get_repo)):
    leads = repo.leads.list_by_city(city) if city else repo.leads.list_all()
    filename = export_filename(city, datetime.now(timezone.utc).date())
    return Response(
        content=export_csv(leads),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/leads")
def submit_lead(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.leads.submit(payload))


@router.delete("/leads/{lead_id}")
def delete_lead(lead_id: str, repo: Repo = Depends(get_repo)):
    return _deleted(repo.leads.delete(lead_id))


# ----------------------------------------------------------------------
# Testimonials
@router.get("/testimonials")
def list_testimonials(repo: Repo = Depends(get_repo)):
    return _dump_all(repo.testimonials.list_all())


@router.post("/testimonials")
def add_testimonial(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.testimonials.add(payload))


@router.put("/testimonials/{testimonial_id}")
def update_testimonial(testimonial_id: str, payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.testimonials.update(testimonial_id, payload))


@router.delete("/testimonials/{testimonial_id}")
def delete_testimonial(testimonial_id: str, repo: Repo = Depends(get_repo)):
    return _deleted(repo.testimonials.delete(testimonial_id))


# ----------------------------------------------------------------------
# Cities
@router.get("/cities")
def list_cities(repo: Repo = Depends(get_repo)):
    return _dump_all(repo.cities.list_all())


@router.post("/cities")
def add_city(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.cities.add(payload))


@router.put("/cities/{slug}")
def update_city(slug: str, payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.cities.update(slug, payload))


@router.delete("/cities/{slug}")
def delete_city(slug: str, repo: Repo = Depends(get_repo)):
    return _deleted(repo.cities.delete(slug))


# ----------------------------------------------------------------------
# Resale listings
@router.get("/resale-properties")
def list_resale(status: Optional[str] = Query(None), repo: Repo = Depends(get_repo)):
    if status:
        return _dump_all(repo.resale.list_by_approval_status(status))
    return _dump_all(repo.resale.list_all())


@router.get("/resale-properties/public")
def list_public_resale(repo: Repo = Depends(get_repo)):
    return _dump_all(repo.resale.list_publicly_visible())


@router.get("/resale-properties/{listing_id}")
def get_resale(listing_id: str, repo: Repo = Depends(get_repo)):
    return _dump(repo.resale.get(listing_id))


@router.post("/resale-properties")
def submit_resale(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.resale.submit(payload))


@router.put("/resale-properties/{listing_id}")
def update_resale(listing_id: str, payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.resale.update(listing_id, payload))


@router.delete("/resale-properties/{listing_id}")
def delete_resale(listing_id: str, repo: Repo = Depends(get_repo)):
    return _deleted(repo.resale.delete(listing_id))


@router.post("/resale-properties/{listing_id}/approve")
def approve_resale(listing_id: str, req: Optional[ApproveRequest] = None, repo: Repo = Depends(get_repo)):
    notes = req.admin_notes if req else None
    return _dump(repo.resale.approve(listing_id, admin_notes=notes))


@router.post("/resale-properties/{listing_id}/reject")
def reject_resale(listing_id: str, req: RejectRequest, repo: Repo = Depends(get_repo)):
    return _dump(repo.resale.reject(listing_id, req.reason, admin_notes=req.admin_notes))


@router.put("/resale-properties/{listing_id}/listing-status")
def set_resale_listing_status(listing_id: str, req: ListingStatusRequest, repo: Repo = Depends(get_repo)):
    return _dump(repo.resale.set_listing_status(listing_id, req.status))


# ----------------------------------------------------------------------
# Page copy
@router.get("/hero-section")
def get_hero_section(repo: Repo = Depends(get_repo)):
    return _dump(repo.content.get_hero_section())


@router.put("/hero-section")
def update_hero_section(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.content.update_hero_section(payload))


@router.get("/about-us")
def get_about_us(repo: Repo = Depends(get_repo)):
    return _dump(repo.content.get_about_us())


@router.put("/about-us")
def update_about_us(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return _dump(repo.content.update_about_us(payload))


# ----------------------------------------------------------------------
# Property form helpers
@router.post("/extract")
def extract_project(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    project = repo.extractor.extract(payload.get("websiteUrl"), payload.get("projectId"))
    return _dump(project)


@router.post("/validate-images")
def validate_images(payload: Payload = Body(...), repo: Repo = Depends(get_repo)):
    return {"results": _dump_all(repo.extractor.validate_images(payload.get("imageUrls")))}


# ----------------------------------------------------------------------
# Error mapping
async def _validation_failed(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "validation_failed", "message": exc.args[0], "fields": exc.fields},
    )


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "not_found", "message": str(exc)})


async def _invalid_transition(request: Request, exc: InvalidStateTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "invalid_transition", "message": str(exc), "current": exc.current},
    )


async def _extraction_failed(request: Request, exc: ExtractionError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": "extraction_failed", "message": str(exc)})


async def _read_only(request: Request, exc: ReadOnlyModeError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": "read_only", "message": str(exc)})


async def _storage_failed(request: Request, exc: StorageError) -> JSONResponse:
    LOGGER.error("storage_failure method=%s path=%s error=%s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "storage_failure", "message": "Storage failure"})


def create_app(settings: Optional[Settings] = None, repo: Optional[Repo] = None) -> FastAPI:
    if settings is None:
        settings = repo.settings if repo is not None else Settings.from_env()
    configure_logging(level=settings.log_level)

    app = FastAPI(title="PropScan API")
    app.state.repo = repo or Repo(settings)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, _validation_failed)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidStateTransitionError, _invalid_transition)
    app.add_exception_handler(ReadOnlyModeError, _read_only)
    app.add_exception_handler(StorageError, _storage_failed)
    app.add_exception_handler(ExtractionError, _extraction_failed)
    app.include_router(router)
    return app


app = create_app()
