"""
Line model: comments and keyword parameters with their original formatting.

A config is an ordered list of lines. Each parsed line keeps an Appearance
recording exactly how it was written, so an unmodified document serialises
back to the same text.
"""
from __future__ import annotations

import weakref
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Final, Union

from sshtools.keywords import Keyword
from sshtools.options import SerializeOptions

if TYPE_CHECKING:
    from sshtools.nodes import Node

DEFAULT_SEPARATOR: Final[str] = " "
DEFAULT_FRONT_SPACING: Final[str] = ""


@dataclass(frozen=True)
class Appearance:
    """How a parameter line was written."""
    front_spacing: str
    keyword: str
    separator: str
    quoted: bool
    back_spacing: str

    @classmethod
    def default(cls, keyword: Keyword, front_spacing: str = DEFAULT_FRONT_SPACING) -> Appearance:
        """Canonical appearance for a line created through the API."""
        return cls(front_spacing, keyword.name, DEFAULT_SEPARATOR, False, "")


@dataclass
class Comment:
    """
    A comment or blank line.

    text excludes the leading '#'; blank lines have hashed=False and
    text == "".
    """
    text: str
    spacing: str = ""
    hashed: bool = True

    @property
    def is_blank(self) -> bool:
        return not self.hashed and not self.text

    def render(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> list[str]:
        """Physical lines for this comment; empty when comments are stripped."""
        if self.hashed and SerializeOptions.STRIP_COMMENTS in options:
            return []
        front = DEFAULT_FRONT_SPACING if SerializeOptions.TRIM_FRONT in options else self.spacing
        return [front + ("#" if self.hashed else "") + self.text]

    def serialize(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> str:
        return "\n".join(self.render(options))

    def clone(self) -> Comment:
        return replace(self)


# ---------------------------------------------------------------------------
# Node ownership
# ---------------------------------------------------------------------------

# node -> weak reference to the Parameter holding it
_node_owners: weakref.WeakKeyDictionary[Any, weakref.ref[Parameter]] = weakref.WeakKeyDictionary()


def owner_of(node: Node) -> Parameter | None:
    """Return the parameter that currently holds node, if any."""
    ref = _node_owners.get(node)
    return ref() if ref is not None else None


def _attach(node: Node, parameter: Parameter) -> None:
    current = owner_of(node)
    assert current is None or current is parameter, (
        f"Precondition: {node!r} already belongs to {current!r}"
    )
    _node_owners[node] = weakref.ref(parameter)


def _detach(node: Node, parameter: Parameter) -> None:
    if owner_of(node) is parameter:
        del _node_owners[node]


# ---------------------------------------------------------------------------
# Parameter
# ---------------------------------------------------------------------------

class Parameter:
    """
    A keyword line and its typed value.

    raw_argument holds the argument text as written and is re-emitted
    until the value is reassigned.
    """

    def __init__(
        self,
        keyword: Keyword,
        value: Any,
        appearance: Appearance | None = None,
        comments: list[Comment] | None = None,
        raw_argument: str | None = None,
    ) -> None:
        assert keyword is not None, "Precondition: keyword is required"
        assert value is not None, f"Precondition: value for {keyword} is required"
        self.keyword = keyword
        self.appearance = appearance or Appearance.default(keyword)
        self.comments: list[Comment] = comments if comments is not None else []
        self._value: Any = None
        self.value = value
        self.raw_argument = raw_argument

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        assert value is not None, f"Precondition: value for {self.keyword} is required"
        if self.keyword.is_node:
            if self._value is not None:
                _detach(self._value, self)
            _attach(value, self)
        self._value = value
        self.raw_argument = None

    @property
    def is_node(self) -> bool:
        return self.keyword.is_node

    def argument_text(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> str:
        """The argument as it is written out, without quotes."""
        if self.raw_argument is not None:
            return self.raw_argument
        return self.keyword.serialize(self._value, options)

    def render(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> list[str]:
        """Physical lines: leading comments, the keyword line, then a node's lines."""
        lines: list[str] = []
        if SerializeOptions.STRIP_COMMENTS not in options:
            for comment in self.comments:
                lines.extend(comment.render(options))

        look = self.appearance
        line = DEFAULT_FRONT_SPACING if SerializeOptions.TRIM_FRONT in options else look.front_spacing
        line += self.keyword.name if SerializeOptions.USE_CAMEL_CASE in options else look.keyword
        line += DEFAULT_SEPARATOR if SerializeOptions.USE_DEFAULT_SEPARATOR in options else look.separator
        quoted = SerializeOptions.USE_QUOTING in options or look.quoted
        argument = self.argument_text(options)
        line += f'"{argument}"' if quoted else argument
        if SerializeOptions.TRIM_BACK not in options:
            line += look.back_spacing
        lines.append(line)

        if self.is_node:
            lines.extend(self._value.render(options))
        return lines

    def serialize(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> str:
        return "\n".join(self.render(options))

    def header_copy(self) -> Parameter:
        """Same keyword and appearance holding an empty copy of the node."""
        assert self.is_node, f"Precondition: {self.keyword} is not a node keyword"
        return Parameter(
            self.keyword,
            self._value.copy(),
            self.appearance,
            [c.clone() for c in self.comments],
        )

    def clone(self) -> Parameter:
        value = self._value.clone() if self.is_node else self._value
        clone = Parameter(
            self.keyword,
            value,
            self.appearance,
            [c.clone() for c in self.comments],
        )
        clone.raw_argument = self.raw_argument
        return clone

    def __repr__(self) -> str:
        return f"Parameter({self.keyword.name}={self._value!r})"


Line = Union[Comment, Parameter]
