"""Option enums controlling serialisation and host matching."""
from __future__ import annotations

from enum import Enum, Flag, auto


class SerializeOptions(Flag):
    """
    Independent, combinable switches for regenerating config text.

    DEFAULT reproduces the parsed text byte for byte.
    """
    DEFAULT = 0
    STRIP_COMMENTS = auto()
    TRIM_FRONT = auto()
    TRIM_BACK = auto()
    USE_CAMEL_CASE = auto()
    USE_DEFAULT_SEPARATOR = auto()
    USE_QUOTING = auto()


class MatchingOptions(str, Enum):
    """
    How a search name is compared to a Host pattern.

    EXACT compares literally, PATTERN treats the whole pattern as one glob,
    MATCHING applies OpenSSH pattern-list semantics (comma or whitespace
    separated globs, '!' negation).
    """
    EXACT = "exact"
    PATTERN = "pattern"
    MATCHING = "matching"
