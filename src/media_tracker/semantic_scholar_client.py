"""Semantic Scholar Graph API client for papers."""

import logging
from typing import Optional

from .base_client import BaseAPIClient, pick_best, title_similarity
from .constants import DEFAULT_MAX_RESULTS, DEFAULT_REQUEST_TIMEOUT_SECONDS, SOURCE_SEMANTIC_SCHOLAR
from .models import MetadataEnvelope, utcnow

logger = logging.getLogger(__name__)


class SemanticScholarClient(BaseAPIClient):
    """Client for the Semantic Scholar paper search API.

    Papers have no cover art; the envelope carries bibliographic details only.
    """

    BASE_URL = "https://api.semanticscholar.org/graph/v1"
    SERVICE_NAME = SOURCE_SEMANTIC_SCHOLAR
    FIELDS = "title,authors,year,venue,citationCount,abstract,url,externalIds"

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session=None,
    ):
        headers = {"x-api-key": api_key} if api_key else None
        super().__init__(base_url=self.BASE_URL, api_key=api_key, timeout=timeout, headers=headers, session=session)
        self.max_results = max_results

    def search(self, title: str) -> list[dict]:
        data = self._get_json(
            f"{self.base_url}/paper/search",
            params={"query": title, "limit": self.max_results, "fields": self.FIELDS},
        )
        return data.get("data") or []

    @staticmethod
    def extract_metadata(paper: dict) -> dict:
        external_ids = paper.get("externalIds") or {}
        return {
            "title": paper.get("title", ""),
            "authors": ", ".join(a.get("name", "") for a in paper.get("authors") or []),
            "year": paper.get("year"),
            "venue": paper.get("venue") or "",
            "citationCount": paper.get("citationCount"),
            "abstract": paper.get("abstract") or "",
            "url": paper.get("url") or "",
            "doi": external_ids.get("DOI", ""),
            "paperId": paper.get("paperId", ""),
        }

    def fetch_candidate(self, title: str) -> Optional[MetadataEnvelope]:
        papers = self.search(title)
        best = pick_best(papers, lambda p: title_similarity(p.get("title"), title))
        if best is None:
            return None
        return MetadataEnvelope(
            cover_url="",
            additional_info=self.extract_metadata(best),
            source=SOURCE_SEMANTIC_SCHOLAR,
            fetched_at=utcnow(),
        )
