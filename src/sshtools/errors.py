"""
SSH config error taxonomy with structured context.

Provides specific error types for every failure mode, enabling:
- Programmatic error handling with specific exception types
- Rich context (file, line number, raw line) for debugging
- Structured data for logging via to_dict()

Error hierarchy:
- SSHConfigError (base)
  - ConfigParseError
    - UnknownKeyword
    - MalformedLine
    - MissingSeparator
    - AmbiguousSeparator
    - UnterminatedOrMissingArgument
    - InvalidArgument
  - CriteriaError
    - UnknownCriteria
    - IncompatibleCriteria
  - ConfigEditError
    - DuplicateSingleValuedKeyword
    - KeywordNotPresent
    - InvalidPattern
    - IndexOutOfBounds
  - SubstitutionError
    - UnknownToken
    - UnresolvedEnvironmentVariable
  - IoFailure
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any


@dataclass
class ErrorContext:
    """
    Structured context for config errors.

    Parse errors are raised deep inside the tokenizer or a keyword's
    parse function; the parser fills in the location before re-raising.
    """
    filename: str | None = None
    line_number: int | None = None
    line: str | None = None
    keyword: str | None = None
    original_error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate invariants after initialisation."""
        # Invariant: line numbers are 1-based
        if self.line_number is not None:
            assert isinstance(self.line_number, int) and self.line_number >= 1, (
                f"line_number must be a positive int, got {self.line_number!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if key == "extra":
                field_names = {f.name for f in fields(self)} - {"extra"}
                collisions = field_names & value.keys()
                assert not collisions, (
                    f"Extra keys collision with dataclass field names: {collisions}"
                )
                result.update(value)
            else:
                result[key] = value
        return result


class SSHConfigError(Exception):
    """
    Base exception for all config errors.

    All errors carry structured context for logging and debugging.
    """

    def __init__(self, message: str, context: ErrorContext | None = None) -> None:
        # Precondition: message must be non-empty
        assert isinstance(message, str) and message.strip(), (
            f"SSHConfigError message must be a non-empty string, got {message!r}"
        )
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def __str__(self) -> str:
        ctx = self.context
        if ctx.line_number is None:
            return self.message
        location = f"{ctx.filename}:{ctx.line_number}" if ctx.filename else f"line {ctx.line_number}"
        return f"{location}: {self.message} (while parsing line {ctx.line!r})"

    @property
    def error_type(self) -> str:
        """Return the error type name for logging."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            **self.context.to_dict(),
        }


# ---------------------------------------------------------------------------
# Parse Errors
# ---------------------------------------------------------------------------

class ConfigParseError(SSHConfigError):
    """Base class for errors raised while reading config text."""
    pass


class UnknownKeyword(ConfigParseError):
    """The line's keyword is not in the keyword registry."""

    def __init__(self, keyword: str, context: ErrorContext | None = None) -> None:
        if context is None:
            context = ErrorContext()
        context.keyword = keyword
        super().__init__(f"Unknown keyword {keyword!r}", context)


class MalformedLine(ConfigParseError):
    """The line does not start with an alphanumeric keyword."""
    pass


class MissingSeparator(ConfigParseError):
    """No run of spaces, tabs or '=' follows the keyword."""
    pass


class AmbiguousSeparator(ConfigParseError):
    """The separator contains more than one '='."""
    pass


class UnterminatedOrMissingArgument(ConfigParseError):
    """
    The argument is absent or its quoting is broken.

    This is raised when:
    - Nothing follows the separator
    - A quoted argument has no closing quote
    - A Match criterion that needs an argument is last on the line
    """
    pass


class InvalidArgument(ConfigParseError):
    """A keyword could not convert its argument to its value type."""

    def __init__(
        self,
        message: str,
        keyword: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        if context is None:
            context = ErrorContext()
        context.keyword = keyword
        super().__init__(message, context)


# ---------------------------------------------------------------------------
# Criteria Errors
# ---------------------------------------------------------------------------

class CriteriaError(SSHConfigError):
    """Base class for Match criteria errors."""
    pass


class UnknownCriteria(CriteriaError):
    """A Match argument names a criterion that does not exist."""
    pass


class IncompatibleCriteria(CriteriaError):
    """
    A criterion cannot be combined with the criteria before it.

    All, Canonical and Final must stand alone (Final may follow Canonical,
    All may follow either) and never mix with argument criteria.
    """
    pass


# ---------------------------------------------------------------------------
# Edit Errors
# ---------------------------------------------------------------------------

class ConfigEditError(SSHConfigError):
    """Base class for errors raised by programmatic mutation."""
    pass


class DuplicateSingleValuedKeyword(ConfigEditError):
    """Insert of a keyword that allows one value and already has one."""
    pass


class KeywordNotPresent(ConfigEditError):
    """Remove of a keyword the container does not hold."""
    pass


class InvalidPattern(ConfigEditError):
    """
    A Host pattern given through the API would not parse back.

    Patterns must be non-empty, must not start or end with whitespace or
    a comma, and use a single space or comma between entries.
    """

    def __init__(self, pattern: str, reason: str, context: ErrorContext | None = None) -> None:
        if context is None:
            context = ErrorContext()
        context.extra["pattern"] = pattern
        super().__init__(f"Invalid host pattern {pattern!r}: {reason}", context)


class IndexOutOfBounds(ConfigEditError):
    """Positional insert outside the container's valid range."""

    def __init__(self, index: int, length: int, context: ErrorContext | None = None) -> None:
        if context is None:
            context = ErrorContext()
        context.extra["index"] = index
        context.extra["length"] = length
        super().__init__(
            f"Index {index} is out of bounds, must be in range "
            f"[{-length - 1}, {length}]",
            context,
        )


# ---------------------------------------------------------------------------
# Substitution Errors
# ---------------------------------------------------------------------------

class SubstitutionError(SSHConfigError):
    """Base class for token and environment substitution errors."""
    pass


class UnknownToken(SubstitutionError):
    """A %-token character has no registered expansion."""
    pass


class UnresolvedEnvironmentVariable(SubstitutionError):
    """A ${VAR} reference names a variable that is not set."""

    def __init__(self, variable: str, context: ErrorContext | None = None) -> None:
        if context is None:
            context = ErrorContext()
        context.extra["variable"] = variable
        super().__init__(f"Environment variable {variable!r} is not set", context)


# ---------------------------------------------------------------------------
# I/O Errors
# ---------------------------------------------------------------------------

class IoFailure(SSHConfigError):
    """
    Reading or writing a config file failed.

    The underlying OSError (or UnicodeDecodeError for a file that is not
    UTF-8) is chained as __cause__ and its text is kept in
    context.original_error.
    """

    def __init__(self, message: str, path: str, error: OSError | UnicodeDecodeError) -> None:
        context = ErrorContext(filename=path, original_error=str(error))
        super().__init__(message, context)
