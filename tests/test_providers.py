"""Unit tests for metadata provider clients (no network)."""

import pytest
import requests

from media_tracker.base_client import ProviderError, pick_best, title_similarity
from media_tracker.google_books_client import GoogleBooksClient
from media_tracker.omdb_client import OMDbClient
from media_tracker.open_library_client import OpenLibraryClient
from media_tracker.rawg_client import RAWGClient
from media_tracker.semantic_scholar_client import SemanticScholarClient

GOOGLE = "http://books.google.com/books/content?id=vol1&printsec=frontcover&img=1&zoom=1&edge=curl"


def volume(title, image_links=None, **info):
    volume_info = {"title": title, **info}
    if image_links:
        volume_info["imageLinks"] = image_links
    return {"id": title.lower().replace(" ", "-"), "volumeInfo": volume_info}


def test_title_similarity():
    assert title_similarity("Dune", "dune") == 100
    assert title_similarity("Dune Messiah", "Dune") == 50
    assert title_similarity("The Left Hand of Darkness", "Darkness Left Behind") == 20
    assert title_similarity("", "Dune") == 0


def test_pick_best_prefers_first_on_ties():
    items = [{"n": 1}, {"n": 2}, {"n": 3}]
    assert pick_best(items, lambda item: 5) == {"n": 1}
    assert pick_best(items, lambda item: item["n"]) == {"n": 3}
    assert pick_best([], lambda item: 0) is None


def test_google_books_score_candidate():
    """Exact title plus every bonus."""
    item = volume(
        "Dune",
        {"thumbnail": GOOGLE},
        authors=["Frank Herbert"],
        publisher="Chilton",
        publishedDate="1965",
    )
    assert GoogleBooksClient.score_candidate(item, "Dune") == 130
    assert GoogleBooksClient.score_candidate(volume("Dune"), "Dune") == 100


def test_google_books_select_best_candidate():
    items = [
        volume("Dune Messiah", {"thumbnail": GOOGLE}),
        volume("Dune", authors=["Frank Herbert"]),
        volume("Dune", authors=["Someone Else"]),
    ]
    best = GoogleBooksClient.select_best_candidate(items, "Dune")
    assert best["volumeInfo"]["authors"] == ["Frank Herbert"]


def test_google_books_image_order():
    item = volume("Dune", {"smallThumbnail": "s", "thumbnail": "t", "large": "l", "extraLarge": "xl"})
    assert GoogleBooksClient.image_links_in_order(item) == ["xl", "l", "t", "s"]


def test_choose_cover_takes_first_acceptable_size():
    item = volume("Dune", {"large": f"{GOOGLE}&w=100", "thumbnail": f"{GOOGLE}&w=400"})
    cover = GoogleBooksClient.choose_cover(item)
    assert cover.startswith("https://")
    assert "w=400" in cover


def test_choose_cover_last_resort_uses_largest():
    item = volume("Dune", {"large": f"{GOOGLE}&w=120", "thumbnail": f"{GOOGLE}&w=100"})
    assert "w=120" in GoogleBooksClient.choose_cover(item)


def test_choose_cover_rejects_tiny_last_resort():
    item = volume("Dune", {"smallThumbnail": f"{GOOGLE}&w=80"})
    assert GoogleBooksClient.choose_cover(item) == ""
    assert GoogleBooksClient.choose_cover(volume("Dune")) == ""


def test_google_books_fetch_candidate(fake_session, fake_response):
    session = fake_session(
        fake_response(
            {
                "items": [
                    volume("Children of Dune"),
                    volume(
                        "Dune",
                        {"thumbnail": GOOGLE},
                        authors=["Frank Herbert"],
                        industryIdentifiers=[{"type": "ISBN_13", "identifier": "9780441013593"}],
                    ),
                ]
            }
        )
    )
    client = GoogleBooksClient(api_key="key", max_results=5, timeout=3, session=session)
    envelope = client.fetch_candidate("Dune")

    assert envelope.source == "Google Books"
    assert envelope.cover_url.startswith("https://books.google.com/books/content")
    assert envelope.additional_info["authors"] == "Frank Herbert"
    assert envelope.additional_info["isbn"] == "9780441013593"
    assert session.calls[0]["params"]["q"] == "Dune"
    assert session.calls[0]["params"]["maxResults"] == 5
    assert session.calls[0]["params"]["key"] == "key"
    assert session.calls[0]["timeout"] == 3


def test_google_books_no_results(fake_session, fake_response):
    client = GoogleBooksClient(session=fake_session(fake_response({"totalItems": 0})))
    assert client.fetch_candidate("Nothing") is None


def test_google_books_find_acceptable_cover_scans_all_results(fake_session, fake_response):
    session = fake_session(
        fake_response(
            {
                "items": [
                    volume("Dune", {"thumbnail": f"{GOOGLE}&w=60"}),
                    volume("Dune", {"large": f"{GOOGLE}&w=90", "thumbnail": f"{GOOGLE}&w=300"}),
                ]
            }
        )
    )
    client = GoogleBooksClient(session=session)
    envelope = client.find_acceptable_cover('intitle:"Dune"')
    assert "w=300" in envelope.cover_url
    assert session.calls[0]["params"]["q"] == 'intitle:"Dune"'


def test_http_errors_propagate(fake_session, fake_response):
    client = GoogleBooksClient(session=fake_session(fake_response(status_code=500)))
    with pytest.raises(requests.HTTPError):
        client.fetch_candidate("Dune")


def test_malformed_body_raises_provider_error(fake_session, fake_response):
    client = GoogleBooksClient(session=fake_session(fake_response(malformed=True)))
    with pytest.raises(ProviderError):
        client.search("Dune")


def test_network_errors_propagate(fake_session):
    client = OpenLibraryClient(session=fake_session(requests.ConnectionError("offline")))
    with pytest.raises(requests.ConnectionError):
        client.fetch_candidate("Dune")


def test_open_library_cover_url():
    assert OpenLibraryClient.cover_url_for({"isbn": ["9780441013593"], "cover_i": 1}) == (
        "https://covers.openlibrary.org/b/isbn/9780441013593-L.jpg"
    )
    assert OpenLibraryClient.cover_url_for({"cover_i": 42}) == "https://covers.openlibrary.org/b/id/42-L.jpg"
    assert OpenLibraryClient.cover_url_for({}) == ""


def test_open_library_fetch_candidate_skips_docs_without_cover(fake_session, fake_response):
    session = fake_session(
        fake_response({"docs": [{"title": "Dune"}, {"title": "Dune", "cover_i": 7, "author_name": ["Frank Herbert"]}]})
    )
    envelope = OpenLibraryClient(session=session).fetch_candidate("Dune")

    assert envelope.cover_url == "https://covers.openlibrary.org/b/id/7-L.jpg"
    assert envelope.source == "Open Library"
    assert envelope.additional_info["authors"] == "Frank Herbert"
    assert session.calls[0]["params"]["title"] == "Dune"


def test_omdb_requires_api_key(fake_session):
    session = fake_session()
    with pytest.raises(ProviderError):
        OMDbClient(api_key=None, session=session).fetch_candidate("Heat")
    assert session.calls == []


def test_omdb_fetch_candidate(fake_session, fake_response):
    session = fake_session(
        fake_response(
            {
                "Response": "True",
                "Title": "Heat",
                "Year": "1995",
                "Director": "Michael Mann",
                "Poster": "http://m.media-amazon.com/images/heat.jpg",
                "imdbRating": "N/A",
            }
        )
    )
    envelope = OMDbClient(api_key="k", media_kind="movie", session=session).fetch_candidate("Heat")

    assert envelope.cover_url == "https://m.media-amazon.com/images/heat.jpg"
    assert envelope.additional_info["director"] == "Michael Mann"
    assert envelope.additional_info["imdbRating"] == ""
    assert session.calls[0]["params"] == {"t": "Heat", "type": "movie", "apikey": "k"}


def test_omdb_not_found_and_missing_poster(fake_session, fake_response):
    session = fake_session(
        fake_response({"Response": "False", "Error": "Series not found!"}),
        fake_response({"Response": "True", "Title": "Lost", "Poster": "N/A", "totalSeasons": "6"}),
    )
    client = OMDbClient(api_key="k", media_kind="series", session=session)

    assert client.fetch_candidate("Unknown Show") is None
    envelope = client.fetch_candidate("Lost")
    assert envelope.cover_url == ""
    assert envelope.additional_info["totalSeasons"] == "6"


def test_rawg_fetch_candidate(fake_session, fake_response):
    session = fake_session(
        fake_response(
            {
                "results": [
                    {"name": "Portal 2", "background_image": "https://media.rawg.io/p2.jpg"},
                    {
                        "name": "Portal",
                        "background_image": "https://media.rawg.io/p1.jpg",
                        "genres": [{"name": "Puzzle"}],
                        "platforms": [{"platform": {"name": "PC"}}],
                    },
                ]
            }
        )
    )
    envelope = RAWGClient(api_key="k", session=session).fetch_candidate("Portal")

    assert envelope.cover_url == "https://media.rawg.io/p1.jpg"
    assert envelope.additional_info["genres"] == "Puzzle"
    assert envelope.additional_info["platforms"] == "PC"


def test_rawg_requires_api_key():
    with pytest.raises(ProviderError):
        RAWGClient(api_key=None).search("Portal")


def test_semantic_scholar_has_no_cover(fake_session, fake_response):
    session = fake_session(
        fake_response(
            {
                "data": [
                    {
                        "paperId": "p1",
                        "title": "Attention Is All You Need",
                        "authors": [{"name": "Ashish Vaswani"}, {"name": "Noam Shazeer"}],
                        "year": 2017,
                        "externalIds": {"DOI": "10.5555/3295222"},
                    }
                ]
            }
        )
    )
    client = SemanticScholarClient(api_key="secret", session=session)
    envelope = client.fetch_candidate("Attention Is All You Need")

    assert envelope.cover_url == ""
    assert not envelope.has_cover
    assert envelope.additional_info["authors"] == "Ashish Vaswani, Noam Shazeer"
    assert envelope.additional_info["doi"] == "10.5555/3295222"
    assert session.headers["x-api-key"] == "secret"
