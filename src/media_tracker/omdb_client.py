"""OMDb API client for films and series."""

import logging
from typing import Optional

from .base_client import BaseAPIClient, ProviderError
from .constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, SOURCE_OMDB
from .models import MetadataEnvelope, utcnow

logger = logging.getLogger(__name__)

MISSING = "N/A"


class OMDbClient(BaseAPIClient):
    """Client for the OMDb title lookup API."""

    BASE_URL = "https://www.omdbapi.com/"
    SERVICE_NAME = SOURCE_OMDB

    def __init__(
        self,
        api_key: Optional[str] = None,
        media_kind: str = "movie",
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        session=None,
    ):
        """``media_kind`` is OMDb's ``type`` filter: "movie" or "series"."""
        super().__init__(base_url=self.BASE_URL, api_key=api_key, timeout=timeout, session=session)
        self.media_kind = media_kind

    def lookup(self, title: str) -> Optional[dict]:
        """Look up a title; ``None`` when OMDb reports no match."""
        if not self.api_key:
            raise ProviderError("OMDb API key is not configured")

        data = self._get_json(
            self.base_url,
            params={"t": title, "type": self.media_kind, "apikey": self.api_key},
        )
        if data.get("Response") == "False":
            logger.debug(f"OMDb: {data.get('Error', 'no result')} ({title!r})")
            return None
        return data

    @staticmethod
    def _value(data: dict, key: str) -> str:
        value = data.get(key) or ""
        return "" if value == MISSING else value

    @classmethod
    def extract_metadata(cls, data: dict) -> dict:
        info = {
            "title": cls._value(data, "Title"),
            "year": cls._value(data, "Year"),
            "director": cls._value(data, "Director"),
            "actors": cls._value(data, "Actors"),
            "genre": cls._value(data, "Genre"),
            "plot": cls._value(data, "Plot"),
            "runtime": cls._value(data, "Runtime"),
            "imdbRating": cls._value(data, "imdbRating"),
            "imdbID": cls._value(data, "imdbID"),
        }
        if data.get("totalSeasons"):
            info["totalSeasons"] = cls._value(data, "totalSeasons")
        return info

    def fetch_candidate(self, title: str) -> Optional[MetadataEnvelope]:
        data = self.lookup(title)
        if data is None:
            return None
        poster = self._value(data, "Poster")
        if poster.startswith("http://"):
            poster = "https://" + poster[len("http://"):]
        return MetadataEnvelope(
            cover_url=poster,
            additional_info=self.extract_metadata(data),
            source=SOURCE_OMDB,
            fetched_at=utcnow(),
        )
