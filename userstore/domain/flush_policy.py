"""Flush policy parsing (when the data file gets written)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class FlushMode(str, Enum):
    MANUAL = "manual"
    WRITE_THROUGH = "write-through"
    INTERVAL = "interval"


_MANUAL_ALIASES = {"manual", "off", "never", "none"}
_WRITE_THROUGH_ALIASES = {"write-through", "writethrough", "always", "sync"}
_INTERVAL_RE = re.compile(r"^interval\s*[(:=]\s*(\d+)\s*\)?$")


@dataclass(frozen=True)
class FlushPolicy:
    mode: FlushMode = FlushMode.MANUAL
    interval: int = 0

    def __post_init__(self) -> None:
        if self.mode is FlushMode.INTERVAL and self.interval <= 0:
            raise ValueError("interval flush policy needs a positive number of seconds")

    @classmethod
    def manual(cls) -> "FlushPolicy":
        return cls(FlushMode.MANUAL)

    @classmethod
    def write_through(cls) -> "FlushPolicy":
        return cls(FlushMode.WRITE_THROUGH)

    @classmethod
    def every(cls, seconds: int) -> "FlushPolicy":
        return cls(FlushMode.INTERVAL, int(seconds))

    @classmethod
    def from_seconds(cls, seconds: int) -> "FlushPolicy":
        """-1 (any negative) = manual, 0 = after every mutation, N = every N seconds."""
        if seconds < 0:
            return cls.manual()
        if seconds == 0:
            return cls.write_through()
        return cls.every(seconds)

    @classmethod
    def parse(cls, value: "str | int | FlushPolicy") -> "FlushPolicy":
        """
        Build a policy from operator input.

        Accepts the names ``manual``/``off``, ``write-through``/``always``,
        ``interval(N)``/``interval:N`` or a bare integer in seconds.
        """
        if isinstance(value, FlushPolicy):
            return value
        if isinstance(value, bool):
            raise ValueError(f"invalid flush policy: {value!r}")
        if isinstance(value, int):
            return cls.from_seconds(value)
        text = str(value).strip().lower()
        if text in _MANUAL_ALIASES:
            return cls.manual()
        if text in _WRITE_THROUGH_ALIASES:
            return cls.write_through()
        match = _INTERVAL_RE.match(text)
        if match:
            return cls.every(int(match.group(1)))
        try:
            seconds = int(text)
        except ValueError:
            raise ValueError(f"invalid flush policy: {value!r}") from None
        return cls.from_seconds(seconds)

    def describe(self) -> str:
        if self.mode is FlushMode.INTERVAL:
            return f"interval({self.interval})"
        return self.mode.value
