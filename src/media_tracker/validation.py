"""Validation of user-supplied entry data."""

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from .constants import MAX_TAG_LENGTH, MAX_TAGS, ContentType, EntryStatus
from .models import parse_row_date, split_tags
from .status import has_completion_rating, normalize_hype_rating, normalize_rating, parse_status

DATE_FIELDS = {"start_date": "Start date", "finish_date": "Finish date"}


def _check_date(data: dict, field: str, errors: list[str]):
    try:
        return parse_row_date(data.get(field))
    except (TypeError, ValueError):
        errors.append(f"{DATE_FIELDS[field]} must be a date in YYYY-MM-DD format")
        return None


def validate_entry_data(data: dict, pending: bool = False) -> list[str]:
    """Check entry data and return a list of problems (empty when valid)."""
    errors = []

    title = data.get("title")
    if title is None or not str(title).strip():
        errors.append("Title is required")

    content_type = data.get("type")
    if content_type is None or not str(content_type).strip():
        errors.append("Type is required")
    elif ContentType.from_label(content_type) is None:
        allowed = ", ".join(t.value for t in ContentType)
        errors.append(f"Unknown type '{content_type}' (expected one of: {allowed})")

    start_date = _check_date(data, "start_date", errors)
    finish_date = _check_date(data, "finish_date", errors)
    if start_date and finish_date and finish_date < start_date:
        errors.append("Finish date cannot be before start date")

    rating = None
    try:
        rating = normalize_rating(data.get("rating"))
    except ValueError as e:
        errors.append(str(e))

    try:
        normalize_hype_rating(data.get("hype_rating"))
    except ValueError as e:
        errors.append(str(e))

    tags = split_tags(data.get("tags"))
    if len(tags) > MAX_TAGS:
        errors.append(f"At most {MAX_TAGS} tags are allowed (got {len(tags)})")
    for tag in tags:
        if len(tag) > MAX_TAG_LENGTH:
            errors.append(f"Tag '{tag[:20]}...' is longer than {MAX_TAG_LENGTH} characters")

    status: Optional[EntryStatus] = None
    try:
        status = parse_status(data.get("status"))
    except ValueError:
        allowed = ", ".join(s.value for s in EntryStatus)
        errors.append(f"Unknown status '{data.get('status')}' (expected one of: {allowed})")

    if (pending or status == EntryStatus.PENDING) and (start_date or finish_date):
        errors.append("Pending entries cannot have a start or finish date")

    # A completed entry is backed by a finish date, or by a rating (or the
    # finished flag) when it has no dates
    if status == EntryStatus.COMPLETED and data.get("finish_date") in (None, ""):
        errors.append("Completed entries need a finish date")
    if (
        status == EntryStatus.COMPLETED_NO_DATES
        and not has_completion_rating(rating)
        and not data.get("finished")
    ):
        errors.append("Entries completed without dates need a rating or the finished flag")

    return errors


def pydantic_messages(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic validation error into readable messages."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages
