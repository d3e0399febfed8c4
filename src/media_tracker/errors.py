"""Exception types raised inside the application."""

from typing import Optional


class MediaTrackerError(Exception):
    """Base class for application errors."""


class ValidationError(MediaTrackerError):
    """Entry data failed validation."""

    def __init__(self, messages: list[str]):
        self.messages = list(messages)
        super().__init__("; ".join(self.messages) or "Invalid entry data")


class EntryNotFoundError(MediaTrackerError):
    """No entry exists with the given identifier."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")


class StoreError(MediaTrackerError):
    """The row store could not be read or written."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)
