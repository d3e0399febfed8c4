"""Base API client with common functionality."""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, HTTP_TOO_MANY_REQUESTS

logger = logging.getLogger(__name__)

USER_AGENT = "media-tracker/0.1.0"


class ProviderError(Exception):
    """A metadata provider returned something unusable."""


def title_similarity(candidate: Optional[str], wanted: Optional[str]) -> int:
    """Score how well a provider's title matches the requested one.

    Exact match scores 100, containment in either direction 50, otherwise 10
    per shared whitespace-delimited word. Case-insensitive.
    """
    a = (candidate or "").strip().lower()
    b = (wanted or "").strip().lower()
    if not a or not b:
        return 0
    if a == b:
        return 100
    if a in b or b in a:
        return 50
    return 10 * len(set(a.split()) & set(b.split()))


def pick_best(items: list, score) -> Optional[dict]:
    """Highest-scoring item; ties go to the first one seen."""
    best = None
    best_score = None
    for item in items:
        item_score = score(item)
        if best_score is None or item_score > best_score:
            best, best_score = item, item_score
    return best


class BaseAPIClient:
    """Base class for metadata provider clients with common request handling."""

    SERVICE_NAME = "API"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        headers: Optional[dict] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize API client."""
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or self._build_session()

        default_headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if headers:
            default_headers.update(headers)
        self.session.headers.update(default_headers)

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()

        # Retry rate limits (429) and transient server errors
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[HTTP_TOO_MANY_REQUESTS, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _get_json(self, url: str, params: Optional[dict] = None) -> dict:
        """GET a JSON document, raising on HTTP errors and malformed bodies."""
        response = self.session.get(url, params=params, timeout=self.timeout)
        if not response.ok:
            logger.warning(f"{self.SERVICE_NAME} API error: HTTP {response.status_code}")
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"{self.SERVICE_NAME} returned malformed JSON: {e}") from e
        if not isinstance(data, dict):
            raise ProviderError(f"{self.SERVICE_NAME} returned unexpected payload type: {type(data).__name__}")
        return data
