"""
JSON web API for the media tracker.
Exposes entry operations over HTTP for other front-ends.
"""

import logging
from datetime import date
from typing import Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .constants import HTTP_BAD_REQUEST, HTTP_CONFLICT, HTTP_INTERNAL_SERVER_ERROR, HTTP_NOT_FOUND, ErrorKind
from .entry_service import EntryService
from .models import Entry, OperationResult

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.VALIDATION: HTTP_BAD_REQUEST,
    ErrorKind.NOT_FOUND: HTTP_NOT_FOUND,
    ErrorKind.INVALID_STATE: HTTP_CONFLICT,
    ErrorKind.STORE: HTTP_INTERNAL_SERVER_ERROR,
    ErrorKind.UNEXPECTED: HTTP_INTERNAL_SERVER_ERROR,
}


class EntryCreate(BaseModel):
    """Entry creation request model"""
    title: str
    type: str
    start_date: Optional[date] = None
    finish_date: Optional[date] = None
    rating: Optional[Union[int, str]] = None
    hype_rating: Optional[int] = None
    tags: list[str] = []
    status: Optional[str] = None
    finished: bool = False


class PendingCreate(BaseModel):
    """Pending entry creation request model"""
    title: str
    type: str
    hype_rating: Optional[int] = None
    tags: list[str] = []


class EntryUpdate(BaseModel):
    """Partial update request model; only fields that are sent are applied"""
    title: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[date] = None
    finish_date: Optional[date] = None
    rating: Optional[Union[int, str]] = None
    hype_rating: Optional[int] = None
    tags: Optional[list[str]] = None
    cover_url: Optional[str] = None


class StartRequest(BaseModel):
    """Start pending entry request model"""
    start_date: Optional[date] = None


def _status_code(kind: Optional[ErrorKind]) -> int:
    """HTTP status for a failed result."""
    return ERROR_STATUS_CODES.get(kind, HTTP_INTERNAL_SERVER_ERROR)


def _unwrap(result: OperationResult) -> Entry:
    """Return the entry of a successful result or raise the matching HTTP error."""
    if result.success:
        return result.entry
    status_code = _status_code(result.error_kind)
    if status_code >= HTTP_INTERNAL_SERVER_ERROR:
        logger.error(f"Request failed: {result.error}")
    if result.errors:
        raise HTTPException(status_code=status_code, detail={"error": result.error, "errors": result.errors})
    raise HTTPException(status_code=status_code, detail=result.error)


def create_app(service: EntryService) -> FastAPI:
    """Build the API around an entry service."""
    app = FastAPI(title="Media Tracker", version="0.1.0")

    @app.get("/api/entries")
    def list_entries(status: Optional[str] = None, type: Optional[str] = None, tag: Optional[str] = None):
        listed = service.list_entries(status=status, content_type=type, tag=tag)
        if not listed.success:
            raise HTTPException(status_code=_status_code(listed.error_kind), detail=listed.error)
        return [entry.model_dump(mode="json") for entry in listed.entries]

    @app.post("/api/entries", status_code=201)
    def create_entry(data: EntryCreate):
        return _unwrap(service.create_entry(data.model_dump())).model_dump(mode="json")

    @app.post("/api/entries/pending", status_code=201)
    def create_pending_entry(data: PendingCreate):
        return _unwrap(service.create_pending_entry(data.model_dump())).model_dump(mode="json")

    @app.get("/api/entries/{entry_id}")
    def get_entry(entry_id: str):
        return _unwrap(service.get_entry(entry_id)).model_dump(mode="json")

    @app.patch("/api/entries/{entry_id}")
    def update_entry(entry_id: str, data: EntryUpdate):
        changes = data.model_dump(exclude_unset=True)
        return _unwrap(service.update_entry(entry_id, changes)).model_dump(mode="json")

    @app.delete("/api/entries/{entry_id}")
    def delete_entry(entry_id: str):
        entry = _unwrap(service.delete_entry(entry_id))
        return {"deleted": entry.id}

    @app.post("/api/entries/{entry_id}/start")
    def start_entry(entry_id: str, data: Optional[StartRequest] = None):
        start_date = data.start_date if data else None
        return _unwrap(service.start_pending(entry_id, start_date)).model_dump(mode="json")

    @app.post("/api/entries/{entry_id}/cover")
    def request_new_cover(entry_id: str):
        return _unwrap(service.request_new_cover(entry_id)).model_dump(mode="json")

    @app.post("/api/entries/{entry_id}/placeholder")
    def fallback_to_placeholder(entry_id: str):
        return _unwrap(service.fallback_to_placeholder(entry_id)).model_dump(mode="json")

    @app.post("/api/covers/repair")
    def repair_covers(dry_run: bool = False, include_placeholders: bool = False):
        return service.repair_low_quality_covers(dry_run=dry_run, include_placeholders=include_placeholders).model_dump()

    @app.get("/api/stats")
    def stats():
        summary = service.summarize()
        if not summary.success:
            logger.error(f"Failed to summarize entries: {summary.error}")
            raise HTTPException(status_code=_status_code(summary.error_kind), detail=summary.error)
        return summary.model_dump(include={"total", "by_status", "by_type"})

    return app
