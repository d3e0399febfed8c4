"""Status inference from dates and rating."""

import logging
from datetime import date
from typing import Optional, Union

from .constants import MAX_RATING, MIN_RATING, NOT_APPLICABLE, EntryStatus

logger = logging.getLogger(__name__)

Rating = Union[int, str, None]


def _parse_int(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid rating: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Rating must be a whole number: {value!r}")
        return int(value)
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid rating: {value!r}") from None


def normalize_rating(value) -> Rating:
    """
    Normalize a raw rating value.

    ``None`` and blank strings mean "no rating". A zero (int or ``"0"``) and the
    ``"N/A"`` marker both become the not-applicable marker, which is kept
    distinct from "no rating". Anything else must be a whole number 1..10.

    Raises:
        ValueError: if the value is not a valid rating.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.upper() == NOT_APPLICABLE:
            return NOT_APPLICABLE
        value = text

    number = _parse_int(value)
    if number == 0:
        return NOT_APPLICABLE
    if not MIN_RATING <= number <= MAX_RATING:
        raise ValueError(f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {number}")
    return number


def normalize_hype_rating(value) -> Optional[int]:
    """Normalize a hype rating (no marker allowed, blank means none)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = _parse_int(value)
    if not MIN_RATING <= number <= MAX_RATING:
        raise ValueError(f"Hype rating must be between {MIN_RATING} and {MAX_RATING}, got {number}")
    return number


def has_completion_rating(rating: Rating) -> bool:
    """True when the rating counts as a completion signal (marker does not)."""
    return isinstance(rating, int) and not isinstance(rating, bool) and rating > 0


def compute_status(
    start_date: Optional[date] = None,
    finish_date: Optional[date] = None,
    rating: Rating = None,
    explicit_finished: bool = False,
) -> EntryStatus:
    """Derive the status of an entry from its dates and rating.

    First matching rule wins:

    ========== =========== ===================== ======================
    start      finish      rating / finished     status
    ========== =========== ===================== ======================
    absent     absent      yes                   completed-no-dates
    absent     absent      no                    in-progress-no-dates
    absent     present     any                   completed
    present    absent      any                   in-progress
    present    present     any                   completed
    ========== =========== ===================== ======================

    Never returns ``pending`` or ``unknown-dates``; those are only ever set
    explicitly.
    """
    if not start_date and not finish_date:
        if has_completion_rating(rating) or explicit_finished:
            return EntryStatus.COMPLETED_NO_DATES
        return EntryStatus.IN_PROGRESS_NO_DATES
    if finish_date:
        return EntryStatus.COMPLETED
    return EntryStatus.IN_PROGRESS


def parse_status(value) -> Optional[EntryStatus]:
    """Parse a stored status value; blank means "not stored"."""
    if isinstance(value, EntryStatus):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text:
        return None
    return EntryStatus(text)


def resolve_status(
    stored_status,
    start_date: Optional[date] = None,
    finish_date: Optional[date] = None,
    rating: Rating = None,
) -> EntryStatus:
    """Status of a persisted record.

    An explicitly stored status (including ``pending``) always wins; inference
    only runs when the stored status is blank.
    """
    status = parse_status(stored_status)
    if status is not None:
        return status
    inferred = compute_status(start_date, finish_date, rating)
    logger.debug(f"Inferred status {inferred.value} for record without stored status")
    return inferred
