"""User record and the partial-update rule."""

from __future__ import annotations

from dataclasses import dataclass, replace


def is_storable_text(value: str) -> bool:
    """True when ``value`` can be written to the UTF-8 data file (no lone surrogates)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


@dataclass(frozen=True)
class User:
    """
    A stored user.

    ``name == ""`` and ``age == 0`` double as "not provided" when a User is
    used as a draft or a patch; see :func:`merge_user`. Every User, drafts
    included, must be one the data file can hold.
    """

    id: int = 0
    name: str = ""
    age: int = 0

    def __post_init__(self) -> None:
        for field_name in ("id", "age"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{field_name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{field_name} must not be negative, got {value}")
        if not isinstance(self.name, str):
            raise TypeError(f"name must be a string, got {self.name!r}")
        if not is_storable_text(self.name):
            raise ValueError("name must be valid UTF-8 text")


def merge_user(current: User, patch: User) -> User:
    """
    Apply ``patch`` on top of ``current``, field by field.

    A patch field wins only when it holds a non-zero value: a non-empty name,
    an age above zero. The id is never taken from the patch. As a consequence
    an update cannot clear a name or reset an age to 0.
    """
    changes = {}
    if patch.name != "":
        changes["name"] = patch.name
    if patch.age > 0:
        changes["age"] = patch.age
    if not changes:
        return current
    return replace(current, **changes)
