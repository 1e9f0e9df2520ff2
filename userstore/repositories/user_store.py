"""In-memory user table shared by request handlers and the flush scheduler."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Protocol

from userstore.core.errors import UserNotFoundError
from userstore.core.rwlock import ReadWriteLock
from userstore.domain.users import User, merge_user

logger = logging.getLogger(__name__)

MutationListener = Callable[[str], None]


class TableStorage(Protocol):
    def load(self) -> tuple[dict[int, User], int]: ...

    def save(self, users, counter: int) -> None: ...


class UserStore:
    """
    Authoritative table of users plus the id counter.

    Mutations (create/update/delete) hold the write side of the lock; lookups
    and save_to() hold the read side. Users are frozen dataclasses, so values
    returned to callers cannot be used to change the table.
    """

    def __init__(self, users: dict[int, User] | None = None, counter: int = 0) -> None:
        users = dict(users or {})
        if users and counter < max(users):
            raise ValueError(f"counter {counter} is below the highest id {max(users)}")
        self._users = users
        self._counter = counter
        self._lock = ReadWriteLock()
        self._listeners: list[MutationListener] = []
        self._listeners_lock = threading.Lock()

    @classmethod
    def from_storage(cls, storage: TableStorage) -> "UserStore":
        users, counter = storage.load()
        logger.info(
            "Loaded %d users (counter=%d)", len(users), counter,
            extra={"count": len(users), "counter": counter},
        )
        return cls(users, counter)

    # -------------------------- reads --------------------------
    def get(self, user_id: int) -> User:
        with self._lock.read_locked():
            user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def list(self) -> list[User]:
        with self._lock.read_locked():
            users = list(self._users.values())
        users.sort(key=lambda u: u.id)
        return users

    def count(self) -> int:
        with self._lock.read_locked():
            return len(self._users)

    @property
    def counter(self) -> int:
        with self._lock.read_locked():
            return self._counter

    # -------------------------- writes --------------------------
    def create(self, draft: User) -> User:
        with self._lock.write_locked():
            self._counter += 1
            user = User(id=self._counter, name=draft.name, age=draft.age)
            self._users[user.id] = user
        self._notify("create")
        return user

    def update(self, user_id: int, patch: User) -> User:
        with self._lock.write_locked():
            current = self._users.get(user_id)
            if current is None:
                raise UserNotFoundError(user_id)
            user = merge_user(current, patch)
            self._users[user_id] = user
        self._notify("update")
        return user

    def delete(self, user_id: int) -> User:
        with self._lock.write_locked():
            user = self._users.pop(user_id, None)
            if user is None:
                raise UserNotFoundError(user_id)
        self._notify("delete")
        return user

    # -------------------------- persistence --------------------------
    def save_to(self, storage: TableStorage) -> int:
        """Write the current table through ``storage``; returns the number of users saved."""
        with self._lock.read_locked():
            storage.save(self._users.values(), self._counter)
            return len(self._users)

    def add_listener(self, callback: MutationListener) -> None:
        """Call ``callback(operation)`` after every successful mutation."""
        with self._listeners_lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: MutationListener) -> None:
        with self._listeners_lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify(self, operation: str) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for callback in listeners:
            callback(operation)
