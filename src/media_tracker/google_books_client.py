"""Google Books API client."""

import logging
from typing import Optional

from .base_client import BaseAPIClient, pick_best, title_similarity
from .constants import DEFAULT_MAX_RESULTS, DEFAULT_REQUEST_TIMEOUT_SECONDS, SOURCE_GOOGLE_BOOKS
from .cover_quality import enhance_cover_url, is_acceptable_cover, is_too_small_for_last_resort
from .models import MetadataEnvelope, utcnow

logger = logging.getLogger(__name__)

# Preferred image sizes, largest first
IMAGE_SIZES = ["extraLarge", "large", "medium", "thumbnail", "smallThumbnail"]


class GoogleBooksClient(BaseAPIClient):
    """Client for the Google Books volumes API."""

    BASE_URL = "https://www.googleapis.com/books/v1/volumes"
    SERVICE_NAME = SOURCE_GOOGLE_BOOKS

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session=None,
    ):
        super().__init__(base_url=self.BASE_URL, api_key=api_key, timeout=timeout, session=session)
        self.max_results = max_results

    def search(self, query: str, max_results: Optional[int] = None) -> list[dict]:
        """Search volumes; returns the raw ``items`` list."""
        params = {
            "q": query,
            "maxResults": max_results or self.max_results,
            "printType": "books",
        }
        if self.api_key:
            params["key"] = self.api_key

        data = self._get_json(self.base_url, params=params)
        items = data.get("items") or []
        logger.debug(f"Google Books returned {len(items)} results for {query!r}")
        return items

    @staticmethod
    def score_candidate(item: dict, title: str) -> int:
        """Title similarity plus bonuses for the details we can display."""
        info = item.get("volumeInfo") or {}
        score = title_similarity(info.get("title"), title)
        if info.get("imageLinks"):
            score += 20
        if info.get("authors"):
            score += 5
        if info.get("publisher"):
            score += 3
        if info.get("publishedDate"):
            score += 2
        return score

    @classmethod
    def select_best_candidate(cls, items: list[dict], title: str) -> Optional[dict]:
        return pick_best(items, lambda item: cls.score_candidate(item, title))

    @staticmethod
    def image_links_in_order(item: dict) -> list[str]:
        """Image links of a volume, largest size first."""
        links = (item.get("volumeInfo") or {}).get("imageLinks") or {}
        return [links[size] for size in IMAGE_SIZES if links.get(size)]

    @classmethod
    def choose_cover(cls, item: dict) -> str:
        """Best acceptable cover for a volume, or ``""``."""
        links = cls.image_links_in_order(item)
        for link in links:
            enhanced = enhance_cover_url(link)
            if is_acceptable_cover(enhanced):
                return enhanced

        # Nothing passed: take the largest link unless it is explicitly tiny
        if links:
            largest = enhance_cover_url(links[0])
            if not is_too_small_for_last_resort(largest):
                logger.debug(f"Accepting largest Google Books image as last resort: {largest}")
                return largest
        return ""

    @staticmethod
    def extract_metadata(item: dict) -> dict:
        """Pick the volume fields shown alongside an entry."""
        info = item.get("volumeInfo") or {}
        identifiers = {i.get("type"): i.get("identifier") for i in info.get("industryIdentifiers") or []}
        return {
            "title": info.get("title", ""),
            "authors": ", ".join(info.get("authors") or []),
            "publisher": info.get("publisher", ""),
            "publishedDate": info.get("publishedDate", ""),
            "description": info.get("description", ""),
            "pageCount": info.get("pageCount"),
            "categories": ", ".join(info.get("categories") or []),
            "isbn": identifiers.get("ISBN_13") or identifiers.get("ISBN_10") or "",
            "language": info.get("language", ""),
            "googleBooksId": item.get("id", ""),
        }

    def _envelope(self, item: dict, cover_url: str) -> MetadataEnvelope:
        return MetadataEnvelope(
            cover_url=cover_url,
            additional_info=self.extract_metadata(item),
            source=SOURCE_GOOGLE_BOOKS,
            fetched_at=utcnow(),
        )

    def fetch_candidate(self, title: str) -> Optional[MetadataEnvelope]:
        """Best matching volume for a title, with its best acceptable cover."""
        items = self.search(title)
        best = self.select_best_candidate(items, title)
        if best is None:
            return None
        return self._envelope(best, self.choose_cover(best))

    def find_acceptable_cover(self, query: str) -> Optional[MetadataEnvelope]:
        """First image in any result, any size, that passes the quality check."""
        for item in self.search(query):
            for link in self.image_links_in_order(item):
                enhanced = enhance_cover_url(link)
                if is_acceptable_cover(enhanced):
                    return self._envelope(item, enhanced)
        return None
