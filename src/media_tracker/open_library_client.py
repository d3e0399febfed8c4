"""Open Library search client (cover lookup by title)."""

import logging
from typing import Optional

from .base_client import BaseAPIClient
from .constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, SOURCE_OPEN_LIBRARY
from .models import MetadataEnvelope, utcnow

logger = logging.getLogger(__name__)


class OpenLibraryClient(BaseAPIClient):
    """Client for the Open Library search and covers APIs."""

    BASE_URL = "https://openlibrary.org"
    COVERS_URL = "https://covers.openlibrary.org/b"
    SERVICE_NAME = SOURCE_OPEN_LIBRARY
    SEARCH_FIELDS = "key,title,author_name,first_publish_year,isbn,cover_i,publisher"

    def __init__(self, limit: int = 5, timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SECONDS, session=None):
        super().__init__(base_url=self.BASE_URL, timeout=timeout, session=session)
        self.limit = limit

    def search(self, title: str) -> list[dict]:
        """Search works by title; returns the raw ``docs`` list."""
        data = self._get_json(
            f"{self.base_url}/search.json",
            params={"title": title, "limit": self.limit, "fields": self.SEARCH_FIELDS},
        )
        return data.get("docs") or []

    @classmethod
    def cover_url_for(cls, doc: dict) -> str:
        """Cover image URL for a search result: by ISBN, else by cover id."""
        isbns = doc.get("isbn") or []
        if isbns:
            return f"{cls.COVERS_URL}/isbn/{isbns[0]}-L.jpg"
        if doc.get("cover_i"):
            return f"{cls.COVERS_URL}/id/{doc['cover_i']}-L.jpg"
        return ""

    def fetch_candidate(self, title: str) -> Optional[MetadataEnvelope]:
        """First search result that has a cover."""
        for doc in self.search(title):
            cover_url = self.cover_url_for(doc)
            if not cover_url:
                continue
            isbns = doc.get("isbn") or []
            return MetadataEnvelope(
                cover_url=cover_url,
                additional_info={
                    "title": doc.get("title", ""),
                    "authors": ", ".join(doc.get("author_name") or []),
                    "publisher": ", ".join((doc.get("publisher") or [])[:1]),
                    "firstPublishYear": doc.get("first_publish_year"),
                    "isbn": isbns[0] if isbns else "",
                    "openLibraryKey": doc.get("key", ""),
                },
                source=SOURCE_OPEN_LIBRARY,
                fetched_at=utcnow(),
            )
        logger.debug(f"Open Library has no cover for {title!r}")
        return None
