"""
Host pattern matching.

Patterns support:
- * matches any sequence of characters
- ? matches exactly one character
- everything else matches literally

A pattern list (as used by Host lines and Match criteria) is a comma or
whitespace separated list of patterns; a pattern prefixed with ! negates.
A name matches the list if it matches at least one positive pattern and
no negated pattern.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Final

from sshtools.errors import InvalidPattern
from sshtools.options import MatchingOptions
from sshtools.platform import get_local_user

_LIST_SEPARATOR: Final[re.Pattern[str]] = re.compile(r"[,\s]+")
_VALID_PATTERN: Final[re.Pattern[str]] = re.compile(r"[^\s,]+(?:[ ,][^\s,]+)*")


@lru_cache(maxsize=256)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def glob_matches(name: str, pattern: str) -> bool:
    """Check if name matches a single '*'/'?' glob."""
    return _compile_glob(pattern).fullmatch(name) is not None


def split_pattern_list(patterns: str) -> list[str]:
    """Split a pattern list on commas and whitespace runs."""
    return [p for p in _LIST_SEPARATOR.split(patterns) if p]


def check_pattern(pattern: str) -> None:
    """
    Check a Host pattern written through the API.

    Raises:
        InvalidPattern: If the pattern is empty, starts or ends with
            whitespace or a comma, or has repeated separators
    """
    assert pattern is not None, "Precondition: pattern is required"
    if not pattern:
        raise InvalidPattern(pattern, "must not be empty")
    if pattern[0].isspace() or pattern[0] == ",":
        raise InvalidPattern(pattern, "must not start with whitespace or a comma")
    if pattern[-1].isspace() or pattern[-1] == ",":
        raise InvalidPattern(pattern, "must not end with whitespace or a comma")
    if not _VALID_PATTERN.fullmatch(pattern):
        raise InvalidPattern(pattern, "entries must be separated by one space or comma")


def pattern_list_matches(name: str, patterns: str) -> bool:
    """
    Check if name matches a pattern list.

    OpenSSH behaviour:
    - Patterns in the list are OR'd together
    - A matching negated pattern (!) excludes the name even if a
      positive pattern matches
    - The name must match at least one positive pattern
    """
    matched_positive = False
    for pattern in split_pattern_list(patterns):
        if pattern.startswith("!"):
            if glob_matches(name, pattern[1:]):
                return False
        elif glob_matches(name, pattern):
            matched_positive = True
    return matched_positive


def matches(name: str, pattern: str, options: MatchingOptions = MatchingOptions.MATCHING) -> bool:
    """
    Compare a search name against a pattern.

    Args:
        name: The name being looked up
        pattern: The pattern as written in the config
        options: EXACT, PATTERN or MATCHING comparison
    """
    if options is MatchingOptions.EXACT:
        return name == pattern
    if options is MatchingOptions.PATTERN:
        return glob_matches(name, pattern)
    return pattern_list_matches(name, pattern)


class MatchingContext:
    """
    State accumulated while walking a config for one host name.

    host_name starts out as the searched name and follows the first
    HostName seen; user follows the first User. values keeps the first
    value recorded per keyword name in document order.
    """

    def __init__(self, original_host_name: str, local_user: str | None = None) -> None:
        assert isinstance(original_host_name, str), (
            f"Precondition: original_host_name must be str, got {original_host_name!r}"
        )
        self.original_host_name = original_host_name
        self.host_name = original_host_name
        self.user: str | None = None
        self._local_user = local_user
        self.canonical = False
        self.final = False
        self.values: dict[str, Any] = {}

    @property
    def local_user(self) -> str:
        """The user running this process, unless given explicitly."""
        if self._local_user is None:
            self._local_user = get_local_user()
        return self._local_user

    @property
    def remote_user(self) -> str:
        """The user to log in as; the local user unless User was set."""
        return self.user if self.user is not None else self.local_user

    def set_property(self, keyword_name: str, value: Any) -> None:
        """Record a resolved value; only the first value per keyword counts."""
        if keyword_name in self.values:
            return
        self.values[keyword_name] = value
        if keyword_name == "HostName":
            self.host_name = value
        elif keyword_name == "User":
            self.user = value

    def get(self, keyword_name: str, default: Any = None) -> Any:
        return self.values.get(keyword_name, default)

    def __repr__(self) -> str:
        return (
            f"MatchingContext(original_host_name={self.original_host_name!r}, "
            f"host_name={self.host_name!r}, user={self.user!r}, "
            f"local_user={self.local_user!r})"
        )
