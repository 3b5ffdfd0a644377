"""
Ordered line containers and the tree-building pipeline.

ParameterParent is any ordered list of lines (the config root, a Host
block or a Match block). A Host or Match block is itself the value of a
Host/Match Parameter in the root's line list and exclusively owned by it.

Pipeline helpers:
- collect: flat line stream -> tree (lines after a Host/Match header
  become that node's children)
- flatten: tree -> flat stream (node headers are copied, children spliced
  in after them)
- compiled: flatten -> collect -> deep clone
- matching: the parameters that apply to a host name, in document order
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Iterable, Iterator

from sshtools import keywords
from sshtools.criteria import Criteria, MatchTerm, parse_match_string
from sshtools.errors import (
    DuplicateSingleValuedKeyword,
    IndexOutOfBounds,
    KeywordNotPresent,
    UnterminatedOrMissingArgument,
)
from sshtools.keywords import Keyword, ValueKind
from sshtools.lines import Appearance, Comment, Line, Parameter, owner_of
from sshtools.matching import MatchingContext, matches, split_pattern_list
from sshtools.options import MatchingOptions, SerializeOptions


def _check_value(keyword: Keyword, value: Any) -> None:
    assert value is not None, f"Precondition: value for {keyword} is required"
    if keyword.kind is ValueKind.STRING:
        assert isinstance(value, str), f"Precondition: {keyword} takes str, got {value!r}"
    elif keyword.kind is ValueKind.BOOL:
        assert isinstance(value, bool), f"Precondition: {keyword} takes bool, got {value!r}"
    elif keyword.kind is ValueKind.UINT16:
        assert isinstance(value, int) and not isinstance(value, bool) \
            and 0 <= value <= keywords.UINT16_MAX, \
            f"Precondition: {keyword} takes an int in [0, {keywords.UINT16_MAX}], got {value!r}"
    else:
        assert isinstance(value, Node), f"Precondition: {keyword} takes a node, got {value!r}"


class ParameterParent:
    """
    Ordered container of comments and parameters.

    Single-valued keywords may appear more than once in text; the first
    occurrence is the effective value and later ones are shadowed.
    """

    # Front spacing given to lines created through the API
    DEFAULT_INDENT = ""

    def __init__(self, lines: Iterable[Line] | None = None) -> None:
        self._lines: list[Line] = []
        for line in lines or ():
            self.append(line)

    # -- typed accessors ----------------------------------------------------

    @property
    def host_name(self) -> str | None:
        return self.get(keywords.HOST_NAME)

    @host_name.setter
    def host_name(self, value: str) -> None:
        self.set(keywords.HOST_NAME, value)

    @property
    def user(self) -> str | None:
        return self.get(keywords.USER)

    @user.setter
    def user(self, value: str) -> None:
        self.set(keywords.USER, value)

    @property
    def port(self) -> int:
        return self.get(keywords.PORT)

    @port.setter
    def port(self, value: int) -> None:
        self.set(keywords.PORT, value)

    @property
    def identity_file(self) -> str | None:
        return self.get(keywords.IDENTITY_FILE)

    @identity_file.setter
    def identity_file(self, value: str) -> None:
        self.set(keywords.IDENTITY_FILE, value)

    @property
    def identities_only(self) -> bool:
        return self.get(keywords.IDENTITIES_ONLY)

    @identities_only.setter
    def identities_only(self, value: bool) -> None:
        self.set(keywords.IDENTITIES_ONLY, value)

    # -- list behaviour -----------------------------------------------------

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def __getitem__(self, key: int | Keyword) -> Any:
        if isinstance(key, Keyword):
            return self.get(key)
        return self._lines[key]

    @property
    def lines(self) -> list[Line]:
        """A copy of the line list."""
        return list(self._lines)

    def _check_line(self, line: Line) -> None:
        assert isinstance(line, (Comment, Parameter)), (
            f"Precondition: expected a Comment or Parameter, got {line!r}"
        )

    def append(self, line: Line) -> None:
        """Add a line at the end without any keyword checks."""
        self._check_line(line)
        self._lines.append(line)

    def parameters(self) -> Iterator[Parameter]:
        """All parameter lines, skipping comments."""
        for line in self._lines:
            if isinstance(line, Parameter):
                yield line

    # -- keyword operations -------------------------------------------------

    def has(self, keyword: Keyword) -> bool:
        """Whether any line sets keyword."""
        return any(p.keyword is keyword for p in self.parameters())

    def get(self, keyword: Keyword) -> Any:
        """The effective value of keyword, or its default."""
        assert keyword is not None, "Precondition: keyword is required"
        return keyword.get(self._lines)

    def index_of(self, keyword: Keyword) -> int:
        """Line index of the first occurrence of keyword, -1 if absent."""
        assert keyword is not None, "Precondition: keyword is required"
        for i, line in enumerate(self._lines):
            if isinstance(line, Parameter) and line.keyword is keyword:
                return i
        return -1

    def insert(self, index: int, keyword: Keyword, value: Any, ignore_count: bool = False) -> Any:
        """
        Insert a new parameter at index.

        Args:
            index: Position in [-len-1, len]; negative values count from
                the end, so -1 appends
            keyword: The keyword to insert
            value: Its value
            ignore_count: Insert even if keyword is single-valued and present

        Returns:
            The inserted value

        Raises:
            IndexOutOfBounds: If index is outside the valid range
            DuplicateSingleValuedKeyword: If keyword allows one value and
                is already present
        """
        assert keyword is not None, "Precondition: keyword is required"
        _check_value(keyword, value)
        count = len(self._lines)
        if index < -count - 1 or index > count:
            raise IndexOutOfBounds(index, count)
        if not ignore_count and not keyword.allow_multiple and self.has(keyword):
            raise DuplicateSingleValuedKeyword(
                f"Already containing an entry with keyword {keyword.name}"
            )
        self._check_keyword(keyword)
        parameter = Parameter(keyword, value, Appearance.default(keyword, self.DEFAULT_INDENT))
        self._lines.insert(index if index >= 0 else count + index + 1, parameter)
        return value

    def set(self, keyword: Keyword, value: Any) -> Any:
        """
        Set the effective value of keyword.

        Replaces the value of the first occurrence, or inserts a new
        parameter at the top if keyword is absent.
        """
        assert keyword is not None, "Precondition: keyword is required"
        _check_value(keyword, value)
        for parameter in self.parameters():
            if parameter.keyword is keyword:
                parameter.value = value
                return value
        return self.insert(0, keyword, value, ignore_count=True)

    def remove(self, keyword: Keyword) -> None:
        """
        Remove the first occurrence of keyword.

        Raises:
            KeywordNotPresent: If keyword is not set
        """
        index = self.index_of(keyword)
        if index < 0:
            raise KeywordNotPresent(f"Keyword {keyword.name} not available")
        del self._lines[index]

    def _check_keyword(self, keyword: Keyword) -> None:
        pass

    # -- serialisation ------------------------------------------------------

    def render(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> list[str]:
        """Physical lines of every contained line, in order."""
        result: list[str] = []
        for line in self._lines:
            result.extend(line.render(options))
        return result

    def serialize(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> str:
        return "\n".join(self.render(options))


class Node(ParameterParent, ABC):
    """A Host or Match block: the value of a node-valued Parameter."""

    DEFAULT_INDENT = "  "

    def _check_line(self, line: Line) -> None:
        super()._check_line(line)
        if isinstance(line, Parameter):
            self._check_keyword(line.keyword)

    def _check_keyword(self, keyword: Keyword) -> None:
        assert not keyword.is_node, (
            f"Precondition: keyword {keyword} cannot be added to {type(self).__name__}"
        )

    @property
    def parameter(self) -> Parameter | None:
        """The Parameter holding this node, if attached."""
        return owner_of(self)

    @abstractmethod
    def argument_text(self) -> str:
        """The header argument as written after Host/Match."""

    @abstractmethod
    def matches(
        self,
        name: str,
        context: MatchingContext,
        options: MatchingOptions = MatchingOptions.MATCHING,
    ) -> bool:
        """Whether this block applies when looking up name."""

    @abstractmethod
    def copy(self) -> Node:
        """A new node with the same header and no lines."""

    def clone(self) -> Node:
        """A deep copy including all lines."""
        node = self.copy()
        for line in self._lines:
            node.append(line.clone())
        return node


class HostNode(Node):
    """A 'Host <patterns>' block."""

    def __init__(self, pattern: str, lines: Iterable[Line] | None = None) -> None:
        assert isinstance(pattern, str), f"Precondition: pattern must be str, got {pattern!r}"
        self.pattern = pattern
        super().__init__(lines)

    @property
    def patterns(self) -> list[str]:
        return split_pattern_list(self.pattern)

    def argument_text(self) -> str:
        return self.pattern

    def matches(
        self,
        name: str,
        context: MatchingContext,
        options: MatchingOptions = MatchingOptions.MATCHING,
    ) -> bool:
        return matches(name, self.pattern, options)

    def copy(self) -> HostNode:
        return HostNode(self.pattern)

    def __repr__(self) -> str:
        return f"HostNode({self.pattern!r}, lines={len(self._lines)})"


class MatchNode(Node):
    """A 'Match <criteria...>' block."""

    def __init__(self, terms: Iterable[MatchTerm] | None = None, lines: Iterable[Line] | None = None) -> None:
        self.terms: list[MatchTerm] = list(terms or ())
        super().__init__(lines)

    @classmethod
    def from_string(cls, text: str) -> MatchNode:
        """Build a node from a Match argument such as 'user bob host *.corp'."""
        return cls(parse_match_string(text))

    @property
    def criteria(self) -> list[Criteria]:
        return [t.criteria for t in self.terms]

    def add_criteria(self, criteria: Criteria, argument: str | None = None) -> MatchTerm:
        """
        Append a criterion to the Match line.

        Raises:
            UnterminatedOrMissingArgument: If criteria needs an argument
                and none was given
            IncompatibleCriteria: If criteria cannot follow the current ones
        """
        assert criteria is not None, "Precondition: criteria is required"
        if criteria.takes_argument and not argument:
            raise UnterminatedOrMissingArgument(f"Criteria {criteria.name} needs an argument")
        criteria.check(self.criteria)
        if self.terms and self.terms[-1].spacing_back is None:
            self.terms[-1].spacing_back = " "
        term = MatchTerm(
            criteria,
            " " if criteria.takes_argument else None,
            argument if criteria.takes_argument else None,
        )
        self.terms.append(term)
        return term

    def argument_text(self) -> str:
        return "".join(t.serialize() for t in self.terms)

    def matches(
        self,
        name: str,
        context: MatchingContext,
        options: MatchingOptions = MatchingOptions.MATCHING,
    ) -> bool:
        if not self.terms:
            return False
        return all(term.evaluate(context) for term in self.terms)

    def copy(self) -> MatchNode:
        return MatchNode(replace(t) for t in self.terms)

    def __repr__(self) -> str:
        return f"MatchNode({self.argument_text()!r}, lines={len(self._lines)})"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def collect(lines: Iterable[Line]) -> Iterator[Line]:
    """
    Group a flat line stream into nodes.

    Every line after a Host/Match header is appended to that header's
    node until the next header; lines before the first header are
    yielded as they are.
    """
    open_node: Parameter | None = None
    for line in lines:
        if isinstance(line, Parameter) and line.is_node:
            if open_node is not None:
                yield open_node
            open_node = line
        elif open_node is not None:
            open_node.value.append(line)
        else:
            yield line
    if open_node is not None:
        yield open_node


def flatten(lines: Iterable[Line]) -> Iterator[Line]:
    """
    Turn a tree back into a flat line stream.

    Node headers are emitted as copies with empty nodes, followed by the
    flattened children. Ordinary lines are only emitted until the first
    header at their level; later ones belong to no block.
    """
    after_first_node = False
    for line in lines:
        if isinstance(line, Parameter) and line.is_node:
            after_first_node = True
            yield line.header_copy()
            yield from flatten(line.value)
        elif not after_first_node:
            yield line


def cloned(lines: Iterable[Line]) -> Iterator[Line]:
    for line in lines:
        yield line.clone()


def compiled(lines: Iterable[Line]) -> Iterator[Line]:
    """flatten -> collect -> clone."""
    return cloned(collect(flatten(lines)))


def matching(
    lines: Iterable[Line],
    name: str,
    options: MatchingOptions = MatchingOptions.MATCHING,
) -> Iterator[Parameter]:
    """
    Yield the parameters that apply when looking up name.

    Ordinary parameters are always yielded and recorded in the context.
    Nodes are yielded only if they match; a matching node's parameters
    are recorded too, so later Match criteria can see them.
    """
    assert name is not None, "Precondition: name is required"
    context = MatchingContext(name)
    for line in lines:
        if not isinstance(line, Parameter):
            continue
        if line.is_node:
            if line.value.matches(name, context, options):
                for child in line.value.parameters():
                    context.set_property(child.keyword.name, child.value)
                yield line
        else:
            context.set_property(line.keyword.name, line.value)
            yield line
