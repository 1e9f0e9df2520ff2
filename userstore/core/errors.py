"""Error hierarchy for the record store and its persistence layer."""

from __future__ import annotations

from pathlib import Path


class StoreError(Exception):
    """Base exception for every store failure."""


class UserNotFoundError(StoreError, LookupError):
    """Raised when no user with the requested id exists."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"user with id={user_id} does not exist")
        self.user_id = user_id


class PersistenceError(StoreError):
    """Base class for failures reading or writing the data file."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = str(path) if path is not None else None


class PersistenceLoadError(PersistenceError):
    """The data file exists but could not be read or decoded."""


class PersistenceSaveError(PersistenceError):
    """A flush could not encode or write the data file."""
