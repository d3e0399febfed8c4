"""Shared fixtures: fake HTTP sessions and fake metadata providers."""

import pytest
import requests

from media_tracker.config import Config
from media_tracker.cover_engine import CoverResolver
from media_tracker.entry_service import EntryService
from media_tracker.models import MetadataEnvelope
from media_tracker.store import InMemoryRowStore


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload=None, status_code=200, malformed=False):
        self._payload = payload if payload is not None else {}
        self.status_code = status_code
        self.malformed = malformed
        self.text = "<html>not json</html>" if malformed else str(self._payload)

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self):
        if self.malformed:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Session returning queued responses and recording every call."""

    def __init__(self, *responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        response = self.responses.pop(0) if self.responses else FakeResponse({})
        if isinstance(response, Exception):
            raise response
        return response


class FakeAdapter:
    """Provider adapter returning a fixed result (or raising)."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def fetch_candidate(self, title):
        self.calls.append(title)
        if self.error:
            raise self.error
        return self.result


class FakeGoogleBooks(FakeAdapter):
    """Book adapter that also answers the alternative-path queries."""

    def __init__(self, result=None, error=None, alternatives=None):
        super().__init__(result, error)
        self.alternatives = alternatives or {}
        self.queries = []

    def find_acceptable_cover(self, query):
        self.queries.append(query)
        return self.alternatives.get(query)


def envelope(cover_url="https://covers.example.com/cover.jpg", source="Fake", **info):
    return MetadataEnvelope(cover_url=cover_url, additional_info=info, source=source)


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def make_envelope():
    return envelope


@pytest.fixture
def google_books():
    return FakeGoogleBooks(result=envelope("https://books.google.com/books/content?id=x&w=800", source="Google Books"))


@pytest.fixture
def open_library():
    return FakeAdapter(result=envelope("https://covers.openlibrary.org/b/isbn/123-L.jpg", source="Open Library"))


@pytest.fixture
def film_adapter():
    return FakeAdapter(result=envelope("https://m.media-amazon.com/images/poster.jpg", source="OMDb"))


@pytest.fixture
def resolver(google_books, open_library, film_adapter):
    """Resolver wired to fakes only; never touches the network."""
    adapters = {
        "book": google_books,
        "film": film_adapter,
        "series": FakeAdapter(result=None),
        "videogame": FakeAdapter(result=envelope("https://media.rawg.io/games/cover.jpg", source="RAWG")),
        "paper": FakeAdapter(result=envelope("", source="Semantic Scholar", authors="A. Author")),
    }
    return CoverResolver(Config(), adapters=adapters, google_books=google_books, open_library=open_library)


@pytest.fixture
def store():
    return InMemoryRowStore()


@pytest.fixture
def service(store, resolver):
    return EntryService(store, resolver)
