"""
Tokenizer for single config lines.

Splits one physical line into the pieces needed to rebuild it exactly:
front spacing, keyword, separator, argument (with quoting) and back spacing.
Comment and blank lines are recognised first and returned as CommentToken.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Union

from sshtools.errors import (
    AmbiguousSeparator,
    MalformedLine,
    MissingSeparator,
    UnterminatedOrMissingArgument,
)

_FRONT: Final[re.Pattern[str]] = re.compile(r"\s*")
_KEY: Final[re.Pattern[str]] = re.compile(r"[0-9A-Za-z]+")
_SEPARATOR: Final[re.Pattern[str]] = re.compile(r"[\t =\v]+")


@dataclass(frozen=True)
class CommentToken:
    """A blank line or a '#' comment."""
    spacing: str
    text: str
    hashed: bool


@dataclass(frozen=True)
class ParameterToken:
    """A keyword line split into its formatting-preserving parts."""
    front_spacing: str
    key: str
    separator: str
    quoted: bool
    argument: str
    back_spacing: str


Token = Union[CommentToken, ParameterToken]


def is_comment_line(line: str) -> bool:
    """Whether line is blank or a comment once leading whitespace is ignored."""
    stripped = line.lstrip()
    return not stripped or stripped.startswith("#")


def split_front(line: str) -> tuple[str, str]:
    """Split line into (leading whitespace, remainder)."""
    spacing = _FRONT.match(line).group(0)
    return spacing, line[len(spacing):]


def split_argument(rest: str) -> tuple[str, bool, str]:
    """
    Split the text after the separator into (argument, quoted, back spacing).

    Raises:
        UnterminatedOrMissingArgument: If rest is empty or opens a quote
            that is never closed
    """
    argument = rest.rstrip()
    back_spacing = rest[len(argument):]
    if not argument:
        raise UnterminatedOrMissingArgument("Missing argument after separator")
    # Only a fully wrapped argument is unquoted; '"/opt/nc" %h %p' stays literal
    if len(argument) >= 2 and argument[0] == argument[-1] == '"':
        return argument[1:-1], True, back_spacing
    if argument.startswith('"') and argument.count('"') == 1:
        raise UnterminatedOrMissingArgument(f"Unterminated quoted argument {argument!r}")
    return argument, False, back_spacing


def tokenize_line(line: str) -> Token:
    """
    Tokenize one physical line (without its line terminator).

    Args:
        line: The raw line text

    Returns:
        CommentToken for blank/comment lines, otherwise ParameterToken

    Raises:
        MalformedLine: If the line does not start with an alphanumeric keyword
        MissingSeparator: If no separator follows the keyword
        AmbiguousSeparator: If the separator holds more than one '='
        UnterminatedOrMissingArgument: If the argument is absent or badly quoted
    """
    assert isinstance(line, str), \
        f"Precondition: line must be str, got {type(line).__name__}"

    front_spacing, rest = split_front(line)
    if not rest or rest.startswith("#"):
        hashed = rest.startswith("#")
        return CommentToken(front_spacing, rest[1:] if hashed else rest, hashed)

    key_match = _KEY.match(rest)
    if key_match is None:
        raise MalformedLine(f"Line does not start with a keyword: {rest!r}")
    key = key_match.group(0)
    rest = rest[len(key):]

    separator_match = _SEPARATOR.match(rest)
    if separator_match is None:
        raise MissingSeparator(f"Could not find a separator after keyword {key!r}")
    separator = separator_match.group(0)
    if separator.count("=") >= 2:
        raise AmbiguousSeparator(f"Multiple '=' in separator {separator!r} after keyword {key!r}")
    rest = rest[len(separator):]

    argument, quoted, back_spacing = split_argument(rest)
    return ParameterToken(front_spacing, key, separator, quoted, argument, back_spacing)
