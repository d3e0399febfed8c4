"""Cover image URL heuristics shared by cover resolution and cover repair."""

import re
from typing import Optional
from urllib.parse import parse_qsl, quote_plus, urlencode, urlsplit, urlunsplit

from .constants import ContentType

# Google Books content URLs are small unless explicitly sized
STRICT_COVER_PATTERN = re.compile(r"books\.google\.[a-z.]+/books/(?:content|publisher/content)", re.IGNORECASE)
GENERIC_CATALOG_PATTERN = re.compile(r"/books/content|books\.google\.|googleusercontent\.com", re.IGNORECASE)
WIDTH_PATTERN = re.compile(r"[?&](?:w|width)=(\d+)", re.IGNORECASE)

STRICT_MIN_WIDTH = 180
GENERIC_MIN_WIDTH = 128
LAST_RESORT_MIN_WIDTH = 90

GOOGLE_BOOKS_ZOOM = "1"
WIDTH_HINT = "w800"
EDGE_STYLE = "nocurl"

# Preference order; only the first one is used
PLACEHOLDER_SERVICES = [
    "https://placehold.co",
    "https://dummyimage.com",
    "https://via.placeholder.com",
]
PLACEHOLDER_SIZE = "300x450"
PLACEHOLDER_MAX_TEXT = 40

# (background, foreground) per content type
PLACEHOLDER_COLORS = {
    ContentType.BOOK: ("1e3a8a", "ffffff"),
    ContentType.FILM: ("7f1d1d", "ffffff"),
    ContentType.SERIES: ("4c1d95", "ffffff"),
    ContentType.VIDEOGAME: ("065f46", "ffffff"),
    ContentType.PAPER: ("374151", "f9fafb"),
}
DEFAULT_PLACEHOLDER_COLORS = ("6b7280", "ffffff")


def enhance_cover_url(url: Optional[str]) -> str:
    """Ask the catalog for a bigger, flat version of a cover image.

    Forces https, pins ``zoom`` to a fixed value, replaces any ``edge`` styling
    with a flat edge and appends a width hint.
    """
    if not url or not url.strip():
        return ""
    url = url.strip()
    if url.startswith("http://"):
        url = "https://" + url[len("http://"):]

    parts = urlsplit(url)
    params = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key == "edge" or key == "fife":
            continue
        if key == "zoom":
            value = GOOGLE_BOOKS_ZOOM
        params.append((key, value))
    params.append(("fife", WIDTH_HINT))
    params.append(("edge", EDGE_STYLE))

    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(params), parts.fragment))


def extract_width(url: Optional[str]) -> Optional[int]:
    """Explicit width annotation (``w=`` / ``width=``) on an image URL, if any."""
    if not url:
        return None
    match = WIDTH_PATTERN.search(url)
    if match:
        return int(match.group(1))
    return None


def is_placeholder_url(url: Optional[str]) -> bool:
    if not url:
        return False
    return any(url.startswith(service) for service in PLACEHOLDER_SERVICES)


def _width_problem(url: str) -> str:
    width = extract_width(url)
    if STRICT_COVER_PATTERN.search(url):
        if width is not None and width < STRICT_MIN_WIDTH:
            return f"Image width {width}px is below {STRICT_MIN_WIDTH}px"
        return ""
    if GENERIC_CATALOG_PATTERN.search(url) and width is not None and width < GENERIC_MIN_WIDTH:
        return f"Image width {width}px is below {GENERIC_MIN_WIDTH}px"
    return ""


def is_acceptable_cover(url: Optional[str]) -> bool:
    """Quality predicate applied to candidate catalog images."""
    if not url or not url.strip():
        return False
    return not _width_problem(url)


def low_quality_reason(url: Optional[str]) -> str:
    """Why a stored cover should be replaced, or ``""`` when it is fine."""
    if not url or not url.strip():
        return "No cover image"
    if is_placeholder_url(url):
        return "Placeholder image"
    return _width_problem(url)


def is_low_quality_cover(url: Optional[str]) -> bool:
    return bool(low_quality_reason(url))


def is_too_small_for_last_resort(url: str) -> bool:
    """Last-resort acceptance only rejects images explicitly tagged as tiny."""
    width = extract_width(url)
    return width is not None and width < LAST_RESORT_MIN_WIDTH


def placeholder_cover_url(
    title: str,
    content_type=None,
    service: Optional[str] = None,
    size: str = PLACEHOLDER_SIZE,
) -> str:
    """Deterministic placeholder image for a title."""
    content_type = ContentType.from_label(content_type)
    background, foreground = PLACEHOLDER_COLORS.get(content_type, DEFAULT_PLACEHOLDER_COLORS)
    base = (service or PLACEHOLDER_SERVICES[0]).rstrip("/")

    text = " ".join((title or "").split())
    if len(text) > PLACEHOLDER_MAX_TEXT:
        text = text[:PLACEHOLDER_MAX_TEXT - 3].rstrip() + "..."
    if not text:
        text = content_type.value.title() if content_type else "No Cover"

    return f"{base}/{size}/{background}/{foreground}?text={quote_plus(text)}"
