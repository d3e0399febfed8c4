"""Data models for tracked entries."""

import json
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import (
    MAX_TAG_LENGTH,
    MAX_TAGS,
    NOT_APPLICABLE,
    SOURCE_MANUAL,
    ContentType,
    EntryStatus,
    ErrorKind,
)
from .status import normalize_hype_rating, normalize_rating, resolve_status

logger = logging.getLogger(__name__)

# Column order used for persisted rows
ROW_FIELDS = [
    "id",
    "title",
    "type",
    "startDate",
    "finishDate",
    "rating",
    "hypeRating",
    "status",
    "tags",
    "coverUrl",
    "metadata",
    "createdAt",
]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_entry_id() -> str:
    """Generate an opaque entry identifier."""
    return uuid.uuid4().hex


def split_tags(value) -> list[str]:
    """Split a comma-separated string (or list) into cleaned, de-duplicated tags."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = []
        for item in value:
            parts.extend(str(item).split(","))

    tags = []
    for part in parts:
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def parse_row_date(value) -> Optional[date]:
    """Parse a date cell (ISO-8601 string, date or datetime)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    # Cells written with a time component still carry date-only semantics
    return date.fromisoformat(text[:10])


class MetadataEnvelope(BaseModel):
    """Cover URL plus provider metadata, tagged with where it came from."""

    model_config = ConfigDict(populate_by_name=True)

    cover_url: str = Field(default="", alias="coverURL")
    additional_info: dict[str, Any] = Field(default_factory=dict, alias="additionalInfo")
    source: str = SOURCE_MANUAL
    fetched_at: datetime = Field(default_factory=utcnow, alias="fetchedAt")

    @field_validator("cover_url", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        """Providers sometimes hand back null for a missing image."""
        return v or ""

    @property
    def has_cover(self) -> bool:
        return bool(self.cover_url and self.cover_url.strip())

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, mode="json"), ensure_ascii=False)


def default_metadata() -> MetadataEnvelope:
    """Envelope used when nothing better is available."""
    return MetadataEnvelope(cover_url="", additional_info={}, source=SOURCE_MANUAL, fetched_at=utcnow())


class Entry(BaseModel):
    """A tracked media entry."""

    # Identity
    id: str = Field(default_factory=new_entry_id)
    title: str = Field(min_length=1)
    type: ContentType

    # Progress
    status: EntryStatus
    start_date: Optional[date] = None
    finish_date: Optional[date] = None
    rating: Optional[Union[int, Literal["N/A"]]] = None
    hype_rating: Optional[int] = None

    # Presentation
    tags: list[str] = Field(default_factory=list)
    cover_url: Optional[str] = None
    metadata: Optional[MetadataEnvelope] = None

    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        """Accept aliases such as "game" or "movie"."""
        content_type = ContentType.from_label(v)
        if content_type is None:
            raise ValueError(f"Unknown content type: {v!r}")
        return content_type

    @field_validator("rating", mode="before")
    @classmethod
    def parse_rating(cls, v):
        return normalize_rating(v)

    @field_validator("hype_rating", mode="before")
    @classmethod
    def parse_hype_rating(cls, v):
        return normalize_hype_rating(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        tags = split_tags(v)
        if len(tags) > MAX_TAGS:
            raise ValueError(f"At most {MAX_TAGS} tags are allowed, got {len(tags)}")
        too_long = [t for t in tags if len(t) > MAX_TAG_LENGTH]
        if too_long:
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters: {too_long[0][:20]}...")
        return tags

    @model_validator(mode="after")
    def check_pending_has_no_dates(self):
        if self.status == EntryStatus.PENDING and (self.start_date or self.finish_date):
            raise ValueError("Pending entries cannot have a start or finish date")
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == EntryStatus.PENDING

    def to_row(self) -> dict[str, str]:
        """Flatten to a string-keyed row for the row store."""
        if self.rating is None:
            rating = ""
        else:
            rating = str(self.rating)
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "startDate": self.start_date.isoformat() if self.start_date else "",
            "finishDate": self.finish_date.isoformat() if self.finish_date else "",
            "rating": rating,
            "hypeRating": str(self.hype_rating) if self.hype_rating is not None else "",
            "status": self.status.value,
            "tags": ", ".join(self.tags),
            "coverUrl": self.cover_url or "",
            "metadata": self.metadata.to_json() if self.metadata else "",
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict) -> "Entry":
        """Build an entry from a stored row.

        A blank status column is inferred from the dates and rating; a stored
        status is always kept as-is.
        """
        start_date = parse_row_date(row.get("startDate"))
        finish_date = parse_row_date(row.get("finishDate"))
        rating = normalize_rating(row.get("rating"))
        status = resolve_status(row.get("status"), start_date, finish_date, rating)

        created_at = row.get("createdAt")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at) if created_at.strip() else None

        data = {
            "id": row["id"],
            "title": row.get("title", ""),
            "type": row.get("type"),
            "status": status,
            "start_date": start_date,
            "finish_date": finish_date,
            "rating": rating,
            "hype_rating": row.get("hypeRating"),
            "tags": row.get("tags") or [],
            "cover_url": row.get("coverUrl") or None,
            "metadata": _parse_metadata_cell(row.get("metadata")),
        }
        if created_at:
            data["created_at"] = created_at
        return cls(**data)


def _parse_metadata_cell(value) -> Optional[MetadataEnvelope]:
    if not value:
        return None
    if isinstance(value, MetadataEnvelope):
        return value
    try:
        raw = json.loads(value) if isinstance(value, str) else value
        return MetadataEnvelope.model_validate(raw)
    except Exception as e:
        logger.warning(f"Ignoring unreadable metadata cell: {e}")
        return None


def rating_display(rating) -> str:
    """Human-readable rating (marker shown as-is, absence as a dash)."""
    if rating is None:
        return "-"
    if rating == NOT_APPLICABLE:
        return NOT_APPLICABLE
    return f"{rating}/10"


class OperationResult(BaseModel):
    """Result of a single entry operation."""

    success: bool
    entry: Optional[Entry] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    errors: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, entry: Optional[Entry] = None) -> "OperationResult":
        return cls(success=True, entry=entry)

    @classmethod
    def fail(
        cls,
        error: str,
        errors: Optional[list[str]] = None,
        kind: ErrorKind = ErrorKind.VALIDATION,
    ) -> "OperationResult":
        return cls(success=False, error=error, error_kind=kind, errors=errors or [])


class EntryListResult(BaseModel):
    """Result of listing entries."""

    success: bool = True
    entries: list[Entry] = Field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class SummaryResult(BaseModel):
    """Entry counts by status and by type."""

    success: bool = True
    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


class BatchItem(BaseModel):
    """Outcome for one record in a batch operation."""

    entry_id: str
    title: str = ""
    success: bool
    reason: Optional[str] = None
    cover_url: Optional[str] = None


class BatchResult(BaseModel):
    """Result of a batch operation."""

    success: bool = True
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    dry_run: bool = False
    errors: list[str] = Field(default_factory=list)
    items: list[BatchItem] = Field(default_factory=list)
