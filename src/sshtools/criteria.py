"""
Match criteria.

A Match line's argument is a list of criteria, evaluated left to right
and AND'ed together. Single criteria (All, Canonical, Final) take no
argument; argument criteria (Host, User, OriginalHost, LocalUser, Exec)
take a pattern list.

Exec is recognised so configs using it still parse, but it never runs a
command and always evaluates to false.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Final, Sequence

from sshtools.errors import IncompatibleCriteria, UnknownCriteria, UnterminatedOrMissingArgument
from sshtools.matching import MatchingContext, pattern_list_matches
from sshtools.tokens import substitute

logger = logging.getLogger(__name__)

_WORDS_AND_SPACES: Final[re.Pattern[str]] = re.compile(r'(?:"[^"]*"|[^\s"]|")+|\s+')


@dataclass(frozen=True, eq=False)
class Criteria:
    """A named predicate usable in a Match line."""
    name: str
    takes_argument: bool
    predicate: Callable[[str | None, MatchingContext], bool] = field(repr=False)

    def __str__(self) -> str:
        return self.name

    def evaluate(self, argument: str | None, context: MatchingContext) -> bool:
        return self.predicate(argument, context)

    def check(self, previous: Sequence[Criteria]) -> None:
        """
        Check this criterion may follow previous on the same Match line.

        Raises:
            IncompatibleCriteria: If the combination is not allowed
        """
        if previous and previous[-1] is ALL:
            raise IncompatibleCriteria(f"Criteria {self.name} cannot follow {ALL.name}")
        if self.takes_argument:
            singles = [c.name for c in previous if not c.takes_argument]
            if singles:
                raise IncompatibleCriteria(
                    f"Criteria {self.name} cannot be combined with {', '.join(singles)}"
                )
            return
        if any(c.takes_argument for c in previous):
            raise IncompatibleCriteria(
                f"Criteria {self.name} cannot be combined with argument criteria"
            )
        if self is ALL:
            allowed_before: tuple[Criteria, ...] = (CANONICAL, FINAL)
        elif self is FINAL:
            allowed_before = (CANONICAL,)
        else:
            allowed_before = ()
        if any(c not in allowed_before for c in previous) or len(set(previous)) != len(previous):
            names = " ".join(c.name for c in [*previous, self])
            raise IncompatibleCriteria(f"Criteria combination '{names}' is not allowed")


def _matches_context_value(value: str | None, argument: str | None, context: MatchingContext) -> bool:
    if value is None or argument is None:
        return False
    return pattern_list_matches(value, substitute(argument, context))


def _exec(argument: str | None, context: MatchingContext) -> bool:
    logger.warning(f"Match exec {argument!r} is not supported and never matches")
    return False


ALL: Final = Criteria("All", False, lambda argument, context: True)
CANONICAL: Final = Criteria("Canonical", False, lambda argument, context: context.canonical)
FINAL: Final = Criteria("Final", False, lambda argument, context: context.final)
EXEC: Final = Criteria("Exec", True, _exec)
HOST: Final = Criteria(
    "Host", True,
    lambda argument, context: _matches_context_value(context.host_name, argument, context),
)
USER: Final = Criteria(
    "User", True,
    lambda argument, context: _matches_context_value(context.remote_user, argument, context),
)
ORIGINAL_HOST: Final = Criteria(
    "OriginalHost", True,
    lambda argument, context: _matches_context_value(context.original_host_name, argument, context),
)
LOCAL_USER: Final = Criteria(
    "LocalUser", True,
    lambda argument, context: _matches_context_value(context.local_user, argument, context),
)

CRITERIA: Final[dict[str, Criteria]] = {
    c.name.lower(): c
    for c in (ALL, CANONICAL, FINAL, EXEC, HOST, USER, ORIGINAL_HOST, LOCAL_USER)
}


def lookup_criteria(name: str) -> Criteria | None:
    """Find a criterion by name, ignoring case."""
    return CRITERIA.get(name.lower())


@dataclass
class MatchTerm:
    """
    One criterion on a Match line with the spacing around it.

    spacing and argument are None for single criteria; spacing_back is
    None for the last term on the line. text is the criterion name as
    written.
    """
    criteria: Criteria
    spacing: str | None = None
    argument: str | None = None
    spacing_back: str | None = None
    text: str = ""

    def __post_init__(self) -> None:
        if not self.text:
            self.text = self.criteria.name.lower()

    def evaluate(self, context: MatchingContext) -> bool:
        return self.criteria.evaluate(self.argument, context)

    def serialize(self) -> str:
        result = self.text
        if self.argument is not None:
            result += (self.spacing or " ") + self.argument
        return result + (self.spacing_back or "")


def parse_match_string(text: str) -> list[MatchTerm]:
    """
    Parse a Match argument into terms.

    Rules:
    - Criteria names are case-insensitive, the written form is kept
    - Terms are separated by whitespace
    - Argument criteria consume the next word as their argument; a
      double-quoted run such as exec "test -f x" counts as one word

    Raises:
        UnknownCriteria: If a word in criteria position is not a criterion
        UnterminatedOrMissingArgument: If an argument criterion has no argument
        IncompatibleCriteria: If criteria are combined illegally
    """
    assert text is not None, "Precondition: Match argument is required"
    parts = _WORDS_AND_SPACES.findall(text)
    terms: list[MatchTerm] = []
    i = 0
    while i < len(parts):
        word = parts[i]
        criteria = lookup_criteria(word)
        if criteria is None:
            raise UnknownCriteria(f"Expected a criteria, {word!r} is not one (in {text!r})")
        spacing = argument = None
        if criteria.takes_argument:
            if i + 2 >= len(parts):
                raise UnterminatedOrMissingArgument(
                    f"Criteria {word!r} needs an argument (in {text!r})"
                )
            spacing, argument = parts[i + 1], parts[i + 2]
            i += 2
        spacing_back = None
        if i + 1 < len(parts):
            spacing_back = parts[i + 1]
            i += 1
        criteria.check([t.criteria for t in terms])
        terms.append(MatchTerm(criteria, spacing, argument, spacing_back, word))
        i += 1
    return terms
