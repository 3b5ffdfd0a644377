"""
Document parser.

Runs the tokenizer over every physical line, resolves keywords through the
registry and builds the flat line stream. Parsing is eager and fail-fast:
the first bad line aborts the whole document.
"""
from __future__ import annotations

import logging

from sshtools.errors import SSHConfigError, UnknownKeyword
from sshtools.keywords import KEYWORDS, KeywordRegistry
from sshtools.lines import Appearance, Comment, Line, Parameter
from sshtools.tokenizer import CommentToken, tokenize_line

logger = logging.getLogger(__name__)


def split_lines(text: str) -> list[str]:
    """Split text into physical lines, dropping '\\r' before line breaks."""
    return [line.rstrip("\r") for line in text.split("\n")]


def parse_line(line: str, registry: KeywordRegistry = KEYWORDS) -> Line:
    """
    Parse one physical line into a Comment or Parameter.

    Raises:
        ConfigParseError: If the line is malformed or its keyword unknown
        CriteriaError: If a Match line has bad criteria
    """
    token = tokenize_line(line)
    if isinstance(token, CommentToken):
        return Comment(token.text, token.spacing, token.hashed)

    keyword = registry.lookup(token.key)
    if keyword is None:
        raise UnknownKeyword(token.key)

    value = keyword.parse_argument(token.argument)
    appearance = Appearance(
        token.front_spacing,
        token.key,
        token.separator,
        token.quoted,
        token.back_spacing,
    )
    return Parameter(
        keyword,
        value,
        appearance,
        raw_argument=None if keyword.is_node else token.argument,
    )


def parse_lines(
    text: str,
    filename: str | None = None,
    registry: KeywordRegistry = KEYWORDS,
) -> list[Line]:
    """
    Parse a whole document into a flat list of lines.

    Args:
        text: Config text
        filename: Source name recorded in error context
        registry: Keywords to accept

    Returns:
        One Comment or Parameter per physical line, in order

    Raises:
        SSHConfigError: For the first failing line, with filename,
            line_number and line filled into its context
    """
    assert text is not None, "Precondition: text is required"
    result: list[Line] = []
    for line_number, line in enumerate(split_lines(text), 1):
        try:
            result.append(parse_line(line, registry))
        except SSHConfigError as exc:
            exc.context.filename = filename
            exc.context.line_number = line_number
            exc.context.line = line
            logger.debug(f"Parse failed at line {line_number} of {filename or '<string>'}: {exc.message}")
            raise
    logger.debug(f"Parsed {len(result)} lines from {filename or '<string>'}")
    return result
