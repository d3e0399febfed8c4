"""Entry operations: creation, updates, status transitions and cover refresh."""

import logging
from datetime import date
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from .constants import ContentType, EntryStatus, ErrorKind
from .cover_engine import CoverResolver
from .cover_quality import is_placeholder_url, low_quality_reason
from .errors import EntryNotFoundError, StoreError, ValidationError
from .models import (
    BatchItem,
    BatchResult,
    Entry,
    EntryListResult,
    MetadataEnvelope,
    OperationResult,
    SummaryResult,
    parse_row_date,
)
from .status import compute_status, has_completion_rating, normalize_rating, parse_status
from .store import RowStore
from .validation import pydantic_messages, validate_entry_data

logger = logging.getLogger(__name__)

# Editable entry fields and the row columns they live in
FIELD_COLUMNS = {
    "title": "title",
    "type": "type",
    "status": "status",
    "start_date": "startDate",
    "finish_date": "finishDate",
    "rating": "rating",
    "hype_rating": "hypeRating",
    "tags": "tags",
    "cover_url": "coverUrl",
}

# The only columns a cover refresh may touch
COVER_COLUMNS = ("coverUrl", "metadata")


class EntryService:
    """Operations on tracked entries.

    Every public method returns a result model (``OperationResult``,
    ``EntryListResult``, ``SummaryResult`` or ``BatchResult``) instead of
    raising; unknown ids, validation problems and storage failures come back
    as failed results tagged with an ``ErrorKind``.
    """

    def __init__(self, store: RowStore, resolver: CoverResolver):
        self.store = store
        self.resolver = resolver

    # -- helpers ---------------------------------------------------------

    def _load(self, entry_id: str) -> Entry:
        row = self.store.find_by_id(entry_id)
        if row is None:
            raise EntryNotFoundError(entry_id)
        return Entry.from_row(row)

    @staticmethod
    def _failure(action: str, error: Exception) -> OperationResult:
        if isinstance(error, ValidationError):
            return OperationResult.fail("Validation failed", error.messages)
        if isinstance(error, PydanticValidationError):
            return OperationResult.fail("Validation failed", pydantic_messages(error))
        if isinstance(error, EntryNotFoundError):
            logger.warning(f"Cannot {action}: {error}")
            return OperationResult.fail(str(error), kind=ErrorKind.NOT_FOUND)
        if isinstance(error, StoreError):
            logger.error(f"Storage error while trying to {action}: {error}")
            return OperationResult.fail(f"Storage error: {error}", kind=ErrorKind.STORE)
        logger.exception(f"Unexpected error while trying to {action}")
        return OperationResult.fail(f"Unexpected error: {error}", kind=ErrorKind.UNEXPECTED)

    @staticmethod
    def _editable_values(entry: Entry) -> dict:
        return {field: getattr(entry, field) for field in FIELD_COLUMNS}

    def _apply_cover(self, entry_id: str, envelope: MetadataEnvelope) -> Entry:
        """Store a new cover, writing nothing but the cover columns."""
        values = {"coverUrl": envelope.cover_url, "metadata": envelope.to_json()}
        row = self.store.update(entry_id, {column: values[column] for column in COVER_COLUMNS})
        return Entry.from_row(row)

    # -- creation --------------------------------------------------------

    def create_entry(self, data: dict) -> OperationResult:
        """Create an entry; status is taken from ``data`` or inferred once here."""
        errors = validate_entry_data(data)
        if errors:
            return OperationResult.fail("Validation failed", errors)

        try:
            start_date = parse_row_date(data.get("start_date"))
            finish_date = parse_row_date(data.get("finish_date"))
            rating = normalize_rating(data.get("rating"))
            status = parse_status(data.get("status")) or compute_status(
                start_date, finish_date, rating, explicit_finished=bool(data.get("finished"))
            )
            entry = Entry(
                title=data["title"],
                type=data["type"],
                status=status,
                start_date=start_date,
                finish_date=finish_date,
                rating=rating,
                hype_rating=data.get("hype_rating"),
                tags=data.get("tags"),
            )
            return OperationResult.ok(self._store_new(entry))
        except Exception as e:
            return self._failure("create entry", e)

    def create_pending_entry(self, data: dict) -> OperationResult:
        """Create a wishlist entry: always ``pending``, never with dates."""
        errors = validate_entry_data({**data, "status": EntryStatus.PENDING}, pending=True)
        if data.get("rating") not in (None, ""):
            errors.append("Pending entries take a hype rating instead of a rating")
        if errors:
            return OperationResult.fail("Validation failed", errors)

        try:
            entry = Entry(
                title=data["title"],
                type=data["type"],
                status=EntryStatus.PENDING,
                hype_rating=data.get("hype_rating"),
                tags=data.get("tags"),
            )
            return OperationResult.ok(self._store_new(entry))
        except Exception as e:
            return self._failure("create pending entry", e)

    def _store_new(self, entry: Entry) -> Entry:
        envelope = self.resolver.resolve_cover(entry.title, entry.type)
        entry = entry.model_copy(update={"cover_url": envelope.cover_url or None, "metadata": envelope})
        self.store.append(entry.to_row())
        logger.info(
            f"Created {entry.type.value} entry {entry.title!r} "
            f"(status={entry.status.value}, cover source={envelope.source})"
        )
        return entry

    # -- reads -----------------------------------------------------------

    def get_entry(self, entry_id: str) -> OperationResult:
        try:
            return OperationResult.ok(self._load(entry_id))
        except Exception as e:
            return self._failure("read entry", e)

    def list_entries(
        self,
        status=None,
        content_type=None,
        tag: Optional[str] = None,
    ) -> EntryListResult:
        """All readable entries, optionally filtered.

        Rows that cannot be parsed are logged and left out.
        """
        try:
            wanted_status = parse_status(status) if status else None
        except ValueError:
            return EntryListResult(success=False, error=f"Unknown status '{status}'", error_kind=ErrorKind.VALIDATION)
        wanted_type = ContentType.from_label(content_type) if content_type else None
        if content_type and wanted_type is None:
            return EntryListResult(success=False, error=f"Unknown type '{content_type}'", error_kind=ErrorKind.VALIDATION)
        wanted_tag = tag.strip().lower() if tag else None

        try:
            rows = self.store.list()
        except StoreError as e:
            logger.error(f"Cannot list entries: {e}")
            return EntryListResult(success=False, error=f"Storage error: {e}", error_kind=ErrorKind.STORE)

        entries = []
        for row in rows:
            try:
                entry = Entry.from_row(row)
            except (PydanticValidationError, ValueError, KeyError) as e:
                logger.warning(f"Skipping unreadable row {row.get('id', '?')}: {e}")
                continue
            if wanted_status and entry.status != wanted_status:
                continue
            if wanted_type and entry.type != wanted_type:
                continue
            if wanted_tag and wanted_tag not in (t.lower() for t in entry.tags):
                continue
            entries.append(entry)
        return EntryListResult(entries=entries)

    # -- updates ---------------------------------------------------------

    def update_entry(self, entry_id: str, changes: dict) -> OperationResult:
        """Apply a partial update.

        Only the keys present in ``changes`` are written. Status is not
        re-inferred; pass ``status=""`` to clear it so it is inferred on read.
        """
        unknown = sorted(set(changes) - set(FIELD_COLUMNS))
        if unknown:
            return OperationResult.fail("Validation failed", [f"Field cannot be updated: {name}" for name in unknown])
        if not changes:
            return self.get_entry(entry_id)

        try:
            current = self._load(entry_id)
            merged = {**self._editable_values(current), **changes}
            # Completed without dates or rating means it was created with the finished flag
            merged["finished"] = current.status == EntryStatus.COMPLETED_NO_DATES and not has_completion_rating(
                current.rating
            )
            errors = validate_entry_data(merged)
            if errors:
                raise ValidationError(errors)

            clear_status = parse_status(merged.get("status")) is None
            start_date = parse_row_date(merged.get("start_date"))
            finish_date = parse_row_date(merged.get("finish_date"))
            rating = normalize_rating(merged.get("rating"))
            candidate = Entry(
                id=current.id,
                created_at=current.created_at,
                title=merged["title"],
                type=merged["type"],
                status=compute_status(start_date, finish_date, rating) if clear_status else merged["status"],
                start_date=start_date,
                finish_date=finish_date,
                rating=rating,
                hype_rating=merged.get("hype_rating"),
                tags=merged.get("tags"),
                cover_url=merged.get("cover_url") or None,
                metadata=current.metadata,
            )

            new_row = candidate.to_row()
            patch = {FIELD_COLUMNS[field]: new_row[FIELD_COLUMNS[field]] for field in changes}
            if clear_status:
                patch["status"] = ""

            row = self.store.update(entry_id, patch)
            logger.info(f"Updated entry {entry_id}: {', '.join(sorted(patch))}")
            return OperationResult.ok(Entry.from_row(row))
        except Exception as e:
            return self._failure("update entry", e)

    def start_pending(self, entry_id: str, start_date=None) -> OperationResult:
        """Move a pending entry to in-progress, starting today unless given a date."""
        try:
            current = self._load(entry_id)
            if not current.is_pending:
                return OperationResult.fail(
                    f"Entry is not pending (status: {current.status.value})", kind=ErrorKind.INVALID_STATE
                )

            try:
                started = parse_row_date(start_date) or date.today()
            except (TypeError, ValueError):
                raise ValidationError(["Start date must be a date in YYYY-MM-DD format"])

            row = self.store.update(
                entry_id,
                {"startDate": started.isoformat(), "status": EntryStatus.IN_PROGRESS.value},
            )
            logger.info(f"Started pending entry {current.title!r} on {started.isoformat()}")
            return OperationResult.ok(Entry.from_row(row))
        except Exception as e:
            return self._failure("start pending entry", e)

    def delete_entry(self, entry_id: str) -> OperationResult:
        try:
            current = self._load(entry_id)
            self.store.delete(entry_id)
            logger.info(f"Deleted entry {current.title!r} ({entry_id})")
            return OperationResult.ok(current)
        except Exception as e:
            return self._failure("delete entry", e)

    # -- covers ----------------------------------------------------------

    def request_new_cover(self, entry_id: str) -> OperationResult:
        """Look for a different cover; only the cover columns change."""
        try:
            current = self._load(entry_id)
            envelope = self.resolver.resolve_alternative_cover(current.title, current.type)
            updated = self._apply_cover(entry_id, envelope)
            logger.info(f"New cover for {current.title!r} from {envelope.source}")
            return OperationResult.ok(updated)
        except Exception as e:
            return self._failure("request new cover", e)

    def fallback_to_placeholder(self, entry_id: str) -> OperationResult:
        """Replace the cover with a generated placeholder."""
        try:
            current = self._load(entry_id)
            envelope = self.resolver.placeholder_metadata(current.title, current.type)
            return OperationResult.ok(self._apply_cover(entry_id, envelope))
        except Exception as e:
            return self._failure("fall back to placeholder", e)

    def refresh_covers(self, entry_ids: Optional[list[str]] = None) -> BatchResult:
        """Request a new cover for each entry, one at a time."""
        result = BatchResult()
        if entry_ids is None:
            try:
                entry_ids = [row["id"] for row in self.store.list() if row.get("id")]
            except StoreError as e:
                logger.error(f"Cannot list entries: {e}")
                return BatchResult(success=False, errors=[str(e)])

        for entry_id in entry_ids:
            result.processed += 1
            outcome = self.request_new_cover(entry_id)
            self._record(result, entry_id, outcome)

        result.success = result.failed == 0
        logger.info(
            f"Cover refresh summary: processed={result.processed}, "
            f"updated={result.updated}, failed={result.failed}"
        )
        return result

    def repair_low_quality_covers(self, dry_run: bool = False, include_placeholders: bool = False) -> BatchResult:
        """Request new covers for entries whose cover is missing or too small.

        Placeholder covers are only retried when ``include_placeholders`` is set.
        """
        result = BatchResult(dry_run=dry_run)
        listed = self.list_entries()
        if not listed.success:
            return BatchResult(success=False, dry_run=dry_run, errors=[listed.error])

        for entry in listed.entries:
            result.processed += 1
            reason = low_quality_reason(entry.cover_url)
            if not reason or (is_placeholder_url(entry.cover_url) and not include_placeholders):
                result.skipped += 1
                continue

            if dry_run:
                logger.info(f"[DRY RUN] Would replace cover for {entry.title!r}: {reason}")
                result.items.append(
                    BatchItem(entry_id=entry.id, title=entry.title, success=True, reason=reason, cover_url=entry.cover_url)
                )
                continue

            outcome = self.request_new_cover(entry.id)
            self._record(result, entry.id, outcome, reason=reason, title=entry.title)

        result.success = result.failed == 0
        logger.info(
            f"Cover repair summary: processed={result.processed}, updated={result.updated}, "
            f"skipped={result.skipped}, failed={result.failed}"
        )
        return result

    @staticmethod
    def _record(
        result: BatchResult,
        entry_id: str,
        outcome: OperationResult,
        reason: Optional[str] = None,
        title: str = "",
    ) -> None:
        if outcome.success:
            result.updated += 1
            result.items.append(
                BatchItem(
                    entry_id=entry_id,
                    title=outcome.entry.title if outcome.entry else title,
                    success=True,
                    reason=reason,
                    cover_url=outcome.entry.cover_url if outcome.entry else None,
                )
            )
        else:
            result.failed += 1
            result.errors.append(f"{entry_id}: {outcome.error}")
            result.items.append(BatchItem(entry_id=entry_id, title=title, success=False, reason=outcome.error))

    # -- statistics ------------------------------------------------------

    def summarize(self) -> SummaryResult:
        """Entry counts by status and by type."""
        listed = self.list_entries()
        if not listed.success:
            return SummaryResult(success=False, error=listed.error, error_kind=listed.error_kind)

        entries = listed.entries
        by_status = {status.value: 0 for status in EntryStatus}
        by_type = {content_type.value: 0 for content_type in ContentType}
        for entry in entries:
            by_status[entry.status.value] += 1
            by_type[entry.type.value] += 1
        return SummaryResult(total=len(entries), by_status=by_status, by_type=by_type)
