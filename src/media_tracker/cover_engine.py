"""Cover resolution across metadata providers."""

import logging
from functools import partial
from typing import Callable, Optional, Protocol

from .config import Config
from .constants import SOURCE_OPEN_LIBRARY, SOURCE_PLACEHOLDER, ContentType
from .cover_quality import placeholder_cover_url
from .google_books_client import GoogleBooksClient
from .models import MetadataEnvelope, default_metadata, utcnow
from .omdb_client import OMDbClient
from .open_library_client import OpenLibraryClient
from .rawg_client import RAWGClient
from .semantic_scholar_client import SemanticScholarClient

logger = logging.getLogger(__name__)

Attempt = tuple[str, Callable[[], Optional[MetadataEnvelope]]]


class MetadataAdapter(Protocol):
    """Anything that can look up metadata for a title."""

    def fetch_candidate(self, title: str) -> Optional[MetadataEnvelope]:
        ...


def first_available(attempts: list[Attempt], misses: Optional[list] = None) -> Optional[MetadataEnvelope]:
    """Run attempts in order until one yields an envelope with a cover.

    A failing attempt is logged and skipped. Envelopes that come back without
    a cover are collected into ``misses`` (when given) so their details can
    still be used.
    """
    for label, attempt in attempts:
        try:
            envelope = attempt()
        except Exception as e:
            logger.warning(f"{label} lookup failed: {e}")
            continue

        if envelope is None:
            logger.debug(f"{label}: no result")
            continue
        if envelope.has_cover:
            logger.debug(f"Cover found via {label}")
            return envelope

        logger.debug(f"{label}: result without a usable cover")
        if misses is not None:
            misses.append(envelope)
    return None


def build_default_adapters(config: Config, google_books: GoogleBooksClient) -> dict:
    """Primary provider per content type."""
    providers = config.providers
    return {
        ContentType.BOOK: google_books,
        ContentType.FILM: OMDbClient(providers.omdb_api_key, media_kind="movie", timeout=providers.request_timeout),
        ContentType.SERIES: OMDbClient(providers.omdb_api_key, media_kind="series", timeout=providers.request_timeout),
        ContentType.VIDEOGAME: RAWGClient(
            providers.rawg_api_key, max_results=providers.max_results, timeout=providers.request_timeout
        ),
        ContentType.PAPER: SemanticScholarClient(
            providers.semantic_scholar_api_key, max_results=providers.max_results, timeout=providers.request_timeout
        ),
    }


def alternative_book_queries(title: str) -> list[str]:
    """Query formulations tried when looking for a replacement book cover."""
    return [
        f'intitle:"{title}"',
        title,
        "+".join(title.split()),
    ]


class CoverResolver:
    """Finds a cover image and metadata for a title.

    ``resolve_cover`` is used when an entry is created; ``resolve_alternative_cover``
    when the user asks for a different cover. Neither raises: the worst case
    is a placeholder, and below that an empty envelope.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        adapters: Optional[dict] = None,
        google_books: Optional[GoogleBooksClient] = None,
        open_library: Optional[OpenLibraryClient] = None,
    ):
        config = config or Config()
        providers = config.providers
        self.placeholder_service = config.placeholder.service
        self.placeholder_size = config.placeholder.size

        self.google_books = google_books or GoogleBooksClient(
            providers.google_books_api_key,
            max_results=providers.max_results,
            timeout=providers.request_timeout,
        )
        self.open_library = open_library or OpenLibraryClient(timeout=providers.request_timeout)

        if adapters is None:
            adapters = build_default_adapters(config, self.google_books)
        self.adapters = {}
        for content_type, adapter in adapters.items():
            self.register_adapter(content_type, adapter)

    def register_adapter(self, content_type, adapter: MetadataAdapter) -> None:
        """Use ``adapter`` as the primary provider for a content type."""
        resolved = ContentType.from_label(content_type)
        if resolved is None:
            raise ValueError(f"Unknown content type: {content_type!r}")
        self.adapters[resolved] = adapter

    def placeholder_metadata(self, title: str, content_type) -> MetadataEnvelope:
        """Envelope pointing at a generated placeholder image."""
        return MetadataEnvelope(
            cover_url=placeholder_cover_url(
                title,
                content_type,
                service=self.placeholder_service,
                size=self.placeholder_size,
            ),
            additional_info={},
            source=SOURCE_PLACEHOLDER,
            fetched_at=utcnow(),
        )

    def resolve_cover(self, title: str, content_type) -> MetadataEnvelope:
        """Primary lookup: the type's provider, then fallbacks."""
        try:
            return self._resolve_primary(title, content_type)
        except Exception as e:
            logger.error(f"Cover resolution failed for {title!r}: {e}")
            return default_metadata()

    def resolve_alternative_cover(self, title: str, content_type) -> MetadataEnvelope:
        """Replacement lookup used when the user asks for a new cover.

        Only books get provider lookups here (Open Library first, then several
        Google Books query variants); every other type goes straight to a
        placeholder.
        """
        try:
            return self._resolve_alternative(title, content_type)
        except Exception as e:
            logger.error(f"Alternative cover resolution failed for {title!r}: {e}")
            return default_metadata()

    def _resolve_primary(self, title: str, content_type) -> MetadataEnvelope:
        resolved = ContentType.from_label(content_type)
        adapter = self.adapters.get(resolved) if resolved else None
        if adapter is None:
            logger.warning(f"No metadata provider for type {content_type!r}")
            return default_metadata()

        label = getattr(adapter, "SERVICE_NAME", type(adapter).__name__)
        attempts = [(label, partial(adapter.fetch_candidate, title))]
        if resolved == ContentType.BOOK:
            attempts.append((SOURCE_OPEN_LIBRARY, partial(self.open_library.fetch_candidate, title)))
        attempts.append((SOURCE_PLACEHOLDER, partial(self.placeholder_metadata, title, resolved)))

        misses = []
        envelope = first_available(attempts, misses)
        if envelope is None:
            return default_metadata()
        return self._keep_details(envelope, misses)

    def _resolve_alternative(self, title: str, content_type) -> MetadataEnvelope:
        resolved = ContentType.from_label(content_type)
        if resolved is None:
            logger.warning(f"No metadata provider for type {content_type!r}")
            return default_metadata()
        if resolved != ContentType.BOOK:
            return self.placeholder_metadata(title, resolved)

        attempts = [(SOURCE_OPEN_LIBRARY, partial(self.open_library.fetch_candidate, title))]
        for query in alternative_book_queries(title):
            attempts.append((f"Google Books [{query}]", partial(self.google_books.find_acceptable_cover, query)))
        attempts.append((SOURCE_PLACEHOLDER, partial(self.placeholder_metadata, title, resolved)))

        envelope = first_available(attempts)
        return envelope or default_metadata()

    @staticmethod
    def _keep_details(envelope: MetadataEnvelope, misses: list) -> MetadataEnvelope:
        """Attach details from a provider that had no image to a fallback cover.

        ``source`` keeps describing the cover; the provider of the details is
        recorded as ``detailsSource``.
        """
        if envelope.additional_info or not misses:
            return envelope
        details = misses[0]
        info = {**details.additional_info, "detailsSource": details.source}
        return envelope.model_copy(update={"additional_info": info})
