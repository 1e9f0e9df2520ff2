"""
JSON persistence adapter for the user table.

The document layout is fixed so files written by one release load in the next:

    {"Counter": 3, "Users": {"1": {"ID": 1, "Name": "Petya", "Age": 20}}}
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import IO, Iterable

from userstore.core.errors import PersistenceLoadError, PersistenceSaveError
from userstore.domain.users import User

logger = logging.getLogger(__name__)

COUNTER_KEY = "Counter"
USERS_KEY = "Users"


def _encode_user(user: User) -> dict:
    return {"ID": user.id, "Name": user.name, "Age": user.age}


def _decode_int(value, what: str) -> int:
    # bool is an int subclass; "true" is not a valid id or age
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{what} must not be negative, got {value}")
    return value


def _decode_user(key: str, raw) -> User:
    if not isinstance(raw, dict):
        raise ValueError(f"user {key!r} must be an object")
    try:
        key_id = int(key)
    except ValueError:
        raise ValueError(f"user key {key!r} is not an integer") from None
    user_id = _decode_int(raw.get("ID", key_id), f"user {key} ID")
    if user_id != key_id or user_id <= 0:
        raise ValueError(f"user key {key!r} does not match ID {user_id}")
    name = raw.get("Name")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise ValueError(f"user {key} Name must be a string")
    age = raw.get("Age")
    age = _decode_int(0 if age is None else age, f"user {key} Age")
    return User(id=user_id, name=name, age=age)


def encode(users: Iterable[User], counter: int) -> dict:
    return {
        COUNTER_KEY: counter,
        USERS_KEY: {str(u.id): _encode_user(u) for u in users},
    }


def decode(document) -> tuple[dict[int, User], int]:
    """Validate a parsed document and rebuild ``(users, counter)``."""
    if not isinstance(document, dict):
        raise ValueError("top-level JSON value must be an object")
    counter = _decode_int(document.get(COUNTER_KEY, 0), COUNTER_KEY)
    raw_users = document.get(USERS_KEY)
    if raw_users is None:
        raw_users = {}
    if not isinstance(raw_users, dict):
        raise ValueError(f"{USERS_KEY} must be an object")
    users: dict[int, User] = {}
    for key, raw in raw_users.items():
        user = _decode_user(key, raw)
        users[user.id] = user
    if users and counter < max(users):
        raise ValueError(f"{COUNTER_KEY}={counter} is below the highest stored id {max(users)}")
    return users, counter


def dump(users: Iterable[User], counter: int, fp: IO[str]) -> None:
    """Write the table to a text stream."""
    json.dump(encode(users, counter), fp, ensure_ascii=False, indent=2)
    fp.write("\n")


def load_stream(fp: IO[str], source: str | None = None) -> tuple[dict[int, User], int]:
    """Read a table previously written by :func:`dump`."""
    try:
        return decode(json.load(fp))
    except (ValueError, TypeError) as exc:
        raise PersistenceLoadError(f"cannot decode user data: {exc}", source) from exc


class JSONStorage:
    """File-bound codec. One instance per data file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> tuple[dict[int, User], int]:
        """Return ``(users, counter)``; a missing file is an empty table."""
        try:
            fp = self.path.open("r", encoding="utf-8")
        except FileNotFoundError:
            logger.info("Data file %s not found, starting empty", self.path, extra={"path": str(self.path)})
            return {}, 0
        except OSError as exc:
            raise PersistenceLoadError(f"cannot open {self.path}: {exc}", self.path) from exc
        with fp:
            try:
                return load_stream(fp, str(self.path))
            except OSError as exc:
                raise PersistenceLoadError(f"cannot read {self.path}: {exc}", self.path) from exc

    def save(self, users: Iterable[User], counter: int) -> None:
        """
        Replace the data file with the given table.

        The document goes to a temporary file next to the target first and is
        renamed over it only once fully written, so the previous file survives
        any failure.
        """
        directory = self.path.parent
        tmp_name = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                dump(users, counter, fp)
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceSaveError(f"cannot write {self.path}: {exc}", self.path) from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temporary file %s", tmp_name)
