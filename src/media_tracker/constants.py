"""Constants used throughout the application."""

from enum import Enum
from typing import Optional


class ContentType(str, Enum):
    """Kinds of media an entry can track."""

    VIDEOGAME = "videogame"
    FILM = "film"
    SERIES = "series"
    BOOK = "book"
    PAPER = "paper"

    @classmethod
    def from_label(cls, label) -> Optional["ContentType"]:
        """Map a user or provider label (including aliases) to a content type."""
        if isinstance(label, cls):
            return label
        if label is None:
            return None
        key = str(label).strip().lower()
        if key in CONTENT_TYPE_ALIASES:
            return CONTENT_TYPE_ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            return None


CONTENT_TYPE_ALIASES = {
    "game": ContentType.VIDEOGAME,
    "movie": ContentType.FILM,
    "tv": ContentType.SERIES,
    "scientific": ContentType.PAPER,
}


class EntryStatus(str, Enum):
    """Entry lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    IN_PROGRESS_NO_DATES = "in-progress-no-dates"
    COMPLETED = "completed"
    COMPLETED_NO_DATES = "completed-no-dates"
    UNKNOWN_DATES = "unknown-dates"


class ErrorKind(str, Enum):
    """Why an operation failed."""

    VALIDATION = "validation"
    NOT_FOUND = "not-found"
    INVALID_STATE = "invalid-state"
    STORE = "store"
    UNEXPECTED = "unexpected"


# Rating sentinel for "not applicable" (a 0 rating is stored as this)
NOT_APPLICABLE = "N/A"
MIN_RATING = 1
MAX_RATING = 10

# Tag limits
MAX_TAGS = 20
MAX_TAG_LENGTH = 50

# Metadata sources
SOURCE_GOOGLE_BOOKS = "Google Books"
SOURCE_OPEN_LIBRARY = "Open Library"
SOURCE_OMDB = "OMDb"
SOURCE_RAWG = "RAWG"
SOURCE_SEMANTIC_SCHOLAR = "Semantic Scholar"
SOURCE_PLACEHOLDER = "Placeholder"
SOURCE_MANUAL = "Manual Entry"

# HTTP Status Codes
HTTP_OK = 200
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_TOO_MANY_REQUESTS = 429
HTTP_INTERNAL_SERVER_ERROR = 500

# Default values
DEFAULT_MAX_RESULTS = 10
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_WEB_UI_PORT = 8080
