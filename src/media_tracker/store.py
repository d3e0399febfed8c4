"""Row stores holding entries as flat string-keyed rows."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from .errors import EntryNotFoundError, StoreError

logger = logging.getLogger(__name__)


class RowStore(Protocol):
    """Storage contract used by the entry service."""

    def list(self) -> list[dict]:
        ...

    def append(self, row: dict) -> None:
        ...

    def find_by_id(self, entry_id: str) -> Optional[dict]:
        ...

    def update(self, entry_id: str, partial: dict) -> dict:
        ...

    def delete(self, entry_id: str) -> None:
        ...


class InMemoryRowStore:
    """Row store kept in a list; rows are copied in and out."""

    def __init__(self, rows: Optional[list[dict]] = None):
        self._rows = [dict(r) for r in rows or []]

    def _index(self, entry_id: str) -> int:
        for i, row in enumerate(self._rows):
            if row.get("id") == entry_id:
                return i
        raise EntryNotFoundError(entry_id)

    def list(self) -> list[dict]:
        return [dict(r) for r in self._rows]

    def append(self, row: dict) -> None:
        if not row.get("id"):
            raise StoreError("Row has no id")
        if any(r.get("id") == row["id"] for r in self._rows):
            raise StoreError(f"Duplicate entry id: {row['id']}")
        self._commit(self._rows + [dict(row)])

    def find_by_id(self, entry_id: str) -> Optional[dict]:
        for row in self._rows:
            if row.get("id") == entry_id:
                return dict(row)
        return None

    def update(self, entry_id: str, partial: dict) -> dict:
        """Merge only the given keys into a row; returns the updated row."""
        index = self._index(entry_id)
        if "id" in partial and partial["id"] != entry_id:
            raise StoreError("Entry id cannot be changed")
        merged = {**self._rows[index], **partial}
        rows = list(self._rows)
        rows[index] = merged
        self._commit(rows)
        return dict(merged)

    def delete(self, entry_id: str) -> None:
        index = self._index(entry_id)
        self._commit(self._rows[:index] + self._rows[index + 1:])

    def _commit(self, rows: list[dict]) -> None:
        """Persist ``rows``, then make them the current contents.

        If persisting raises, the previous contents are kept.
        """
        self._persist(rows)
        self._rows = rows

    def _persist(self, rows: list[dict]) -> None:
        """Hook run before every mutation takes effect."""


class JsonRowStore(InMemoryRowStore):
    """Row store persisted to a JSON file on each mutation."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._load_rows())

    def _load_rows(self) -> list[dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to read {self.path}: {e}", e) from e

        rows = data.get("rows") if isinstance(data, dict) else data
        if not isinstance(rows, list):
            raise StoreError(f"Unexpected content in {self.path}")
        logger.debug(f"Loaded {len(rows)} rows from {self.path}")
        return rows

    def _persist(self, rows: list[dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"rows": rows}, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise StoreError(f"Failed to write {self.path}: {e}", e) from e
