"""Tests for cover resolution and its fallback chain."""

import pytest
import requests

from conftest import FakeAdapter, FakeGoogleBooks, envelope
from media_tracker.config import Config
from media_tracker.constants import ContentType
from media_tracker.cover_engine import CoverResolver, alternative_book_queries, first_available
from media_tracker.cover_quality import PLACEHOLDER_SERVICES


def make_resolver(book=None, open_library=None, **adapters):
    google_books = book or FakeGoogleBooks()
    all_adapters = {"book": google_books, **adapters}
    return CoverResolver(
        Config(),
        adapters=all_adapters,
        google_books=google_books,
        open_library=open_library or FakeAdapter(),
    )


def test_first_available_returns_first_cover():
    calls = []

    def attempt(label, result=None, error=None):
        def run():
            calls.append(label)
            if error:
                raise error
            return result
        return (label, run)

    misses = []
    found = first_available(
        [
            attempt("broken", error=requests.ConnectionError("offline")),
            attempt("empty"),
            attempt("no image", result=envelope("", source="Details")),
            attempt("good", result=envelope("https://img.example.com/a.jpg", source="Good")),
            attempt("never"),
        ],
        misses,
    )

    assert found.source == "Good"
    assert calls == ["broken", "empty", "no image", "good"]
    assert [m.source for m in misses] == ["Details"]


def test_first_available_nothing_found():
    assert first_available([("a", lambda: None), ("b", lambda: envelope(""))]) is None


def test_book_primary_provider_wins(google_books, open_library, resolver):
    result = resolver.resolve_cover("Dune", "book")

    assert result.source == "Google Books"
    assert google_books.calls == ["Dune"]
    assert open_library.calls == []


def test_book_falls_back_to_open_library():
    open_library = FakeAdapter(result=envelope("https://covers.openlibrary.org/b/id/1-L.jpg", source="Open Library"))
    resolver = make_resolver(book=FakeGoogleBooks(error=requests.HTTPError("503")), open_library=open_library)

    result = resolver.resolve_cover("Dune", "book")
    assert result.source == "Open Library"
    assert open_library.calls == ["Dune"]


def test_book_falls_back_to_placeholder_keeping_details():
    book = FakeGoogleBooks(result=envelope("", source="Google Books", authors="Frank Herbert"))
    resolver = make_resolver(book=book, open_library=FakeAdapter(error=ValueError("bad json")))

    result = resolver.resolve_cover("Dune", "book")
    assert result.cover_url.startswith(PLACEHOLDER_SERVICES[0])
    assert result.additional_info == {"authors": "Frank Herbert", "detailsSource": "Google Books"}
    assert result.source == "Placeholder"


def test_other_types_use_their_provider(film_adapter, resolver):
    result = resolver.resolve_cover("Heat", "movie")
    assert result.source == "OMDb"
    assert film_adapter.calls == ["Heat"]


def test_non_book_types_skip_open_library(open_library, resolver):
    result = resolver.resolve_cover("Lost", "series")
    assert result.cover_url.startswith(PLACEHOLDER_SERVICES[0])
    assert result.source == "Placeholder"
    assert open_library.calls == []


def test_paper_gets_placeholder_with_paper_details(resolver):
    result = resolver.resolve_cover("Attention Is All You Need", "paper")
    assert result.cover_url.startswith(PLACEHOLDER_SERVICES[0])
    assert result.additional_info == {"authors": "A. Author", "detailsSource": "Semantic Scholar"}
    assert result.source == "Placeholder"


def test_unknown_type_yields_empty_envelope(resolver):
    result = resolver.resolve_cover("Some Podcast", "podcast")
    assert result.cover_url == ""
    assert result.additional_info == {}
    assert result.source == "Manual Entry"


@pytest.mark.parametrize("title", ["", "Dune, Part \"Two\"\nExtended", "ümlaut ☃", "a" * 500])
def test_resolve_cover_never_raises(title):
    resolver = make_resolver(
        book=FakeGoogleBooks(error=RuntimeError("boom")),
        open_library=FakeAdapter(error=requests.Timeout("slow")),
        film=FakeAdapter(error=KeyError("Poster")),
    )
    for content_type in ("book", "film", "videogame", "nonsense", None):
        result = resolver.resolve_cover(title, content_type)
        assert isinstance(result.cover_url, str)
        assert isinstance(result.additional_info, dict)
        assert result.source
        assert result.fetched_at is not None


def test_default_adapters_without_keys_use_placeholders():
    """OMDb and RAWG refuse to run without keys, so no request is made."""
    resolver = CoverResolver(Config())
    assert resolver.resolve_cover("Heat", "film").source == "Placeholder"
    assert resolver.resolve_cover("Portal", "game").source == "Placeholder"


def test_register_adapter():
    resolver = make_resolver()
    adapter = FakeAdapter(result=envelope(source="TMDb"))
    resolver.register_adapter("movie", adapter)

    assert resolver.adapters[ContentType.FILM] is adapter
    assert resolver.resolve_cover("Heat", "film").source == "TMDb"
    with pytest.raises(ValueError):
        resolver.register_adapter("podcast", adapter)


def test_alternative_book_queries():
    assert alternative_book_queries("Dune Messiah") == ['intitle:"Dune Messiah"', "Dune Messiah", "Dune+Messiah"]


def test_alternative_path_tries_open_library_first():
    open_library = FakeAdapter(result=envelope("https://covers.openlibrary.org/b/id/9-L.jpg", source="Open Library"))
    book = FakeGoogleBooks()
    resolver = make_resolver(book=book, open_library=open_library)

    result = resolver.resolve_alternative_cover("Dune", "book")
    assert result.source == "Open Library"
    assert book.queries == []
    assert book.calls == []


def test_alternative_path_tries_each_query_in_order():
    book = FakeGoogleBooks(alternatives={"Dune+Messiah": envelope("https://books.google.com/x?w=500", source="Google Books")})
    resolver = make_resolver(book=book, open_library=FakeAdapter(result=None))

    result = resolver.resolve_alternative_cover("Dune Messiah", "book")
    assert result.source == "Google Books"
    assert book.queries == ['intitle:"Dune Messiah"', "Dune Messiah", "Dune+Messiah"]


def test_alternative_path_ends_with_placeholder():
    resolver = make_resolver(open_library=FakeAdapter(error=requests.ConnectionError("offline")))
    result = resolver.resolve_alternative_cover("Dune", "book")
    assert result.source == "Placeholder"
    assert result.cover_url == resolver.placeholder_metadata("Dune", "book").cover_url


def test_alternative_path_for_other_types_skips_providers(film_adapter, open_library, google_books, resolver):
    result = resolver.resolve_alternative_cover("Heat", "film")

    assert result.source == "Placeholder"
    assert film_adapter.calls == []
    assert open_library.calls == []
    assert google_books.queries == []


def test_alternative_path_unknown_type(resolver):
    assert resolver.resolve_alternative_cover("X", "podcast").source == "Manual Entry"


def test_placeholder_settings_come_from_config():
    config = Config(placeholder={"service": "https://dummyimage.com", "size": "200x300"})
    resolver = CoverResolver(config, adapters={}, google_books=FakeGoogleBooks(), open_library=FakeAdapter())
    url = resolver.placeholder_metadata("Dune", "book").cover_url
    assert url.startswith("https://dummyimage.com/200x300/")
