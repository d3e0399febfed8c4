"""RAWG video game database client."""

import logging
from typing import Optional

from .base_client import BaseAPIClient, ProviderError, pick_best, title_similarity
from .constants import DEFAULT_MAX_RESULTS, DEFAULT_REQUEST_TIMEOUT_SECONDS, SOURCE_RAWG
from .models import MetadataEnvelope, utcnow

logger = logging.getLogger(__name__)


class RAWGClient(BaseAPIClient):
    """Client for the RAWG games API."""

    BASE_URL = "https://api.rawg.io/api"
    SERVICE_NAME = SOURCE_RAWG

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session=None,
    ):
        super().__init__(base_url=self.BASE_URL, api_key=api_key, timeout=timeout, session=session)
        self.max_results = max_results

    def search(self, title: str) -> list[dict]:
        if not self.api_key:
            raise ProviderError("RAWG API key is not configured")

        data = self._get_json(
            f"{self.base_url}/games",
            params={"search": title, "page_size": self.max_results, "key": self.api_key},
        )
        return data.get("results") or []

    @staticmethod
    def extract_metadata(game: dict) -> dict:
        return {
            "title": game.get("name", ""),
            "released": game.get("released") or "",
            "rating": game.get("rating"),
            "metacritic": game.get("metacritic"),
            "genres": ", ".join(g.get("name", "") for g in game.get("genres") or []),
            "platforms": ", ".join(
                (p.get("platform") or {}).get("name", "") for p in game.get("platforms") or []
            ),
            "rawgId": game.get("id"),
            "slug": game.get("slug", ""),
        }

    def fetch_candidate(self, title: str) -> Optional[MetadataEnvelope]:
        games = self.search(title)
        best = pick_best(games, lambda g: title_similarity(g.get("name"), title) + (20 if g.get("background_image") else 0))
        if best is None:
            return None
        return MetadataEnvelope(
            cover_url=best.get("background_image") or "",
            additional_info=self.extract_metadata(best),
            source=SOURCE_RAWG,
            fetched_at=utcnow(),
        )
