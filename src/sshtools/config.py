"""
SSH client config document.

Provides:
- SshConfig: root of a parsed (or constructed) config tree
- read_file / deserialize_string / load_user_config: build an SshConfig
- to_config: assemble an SshConfig from a flat line stream

Usage:
    config = SshConfig.read_file("~/.ssh/config")
    host = config.set_host("db1")
    host.host_name = "10.0.0.5"
    config.write_file()

    for node in config.get_all("db1", MatchingOptions.MATCHING):
        ...
"""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Iterator

from sshtools import keywords
from sshtools.criteria import Criteria
from sshtools.errors import IoFailure
from sshtools.keywords import Keyword
from sshtools.lines import Line, Parameter
from sshtools.matching import MatchingContext, check_pattern
from sshtools.nodes import (
    HostNode,
    MatchNode,
    Node,
    ParameterParent,
    collect,
    compiled,
    matching,
)
from sshtools.options import MatchingOptions, SerializeOptions
from sshtools.parser import parse_lines
from sshtools.platform import get_config_path

logger = logging.getLogger(__name__)


class SshConfig(ParameterParent):
    """
    Root of a config tree.

    Holds global parameters and comments followed by Host/Match
    parameters whose values are the blocks. Only the root can hold
    blocks, so only the root offers Host/Match operations.
    """

    def __init__(self, filename: str | None = None, lines: Iterable[Line] | None = None) -> None:
        super().__init__(lines)
        self.filename = filename

    # -- construction -------------------------------------------------------

    @classmethod
    def deserialize_string(cls, text: str, filename: str | None = None) -> SshConfig:
        """
        Parse config text.

        Args:
            text: The config text
            filename: Optional source path, kept for write_file and errors

        Raises:
            SSHConfigError: If any line fails to parse
        """
        return to_config(parse_lines(text, filename), filename)

    @classmethod
    def read_file(cls, path: str | Path) -> SshConfig:
        """
        Read and parse a config file.

        Raises:
            IoFailure: If the file cannot be read or is not valid UTF-8
            SSHConfigError: If any line fails to parse
        """
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise IoFailure(f"Could not read config file {path}", str(path), exc) from exc
        logger.info(f"Reading config from {path}")
        return cls.deserialize_string(text, str(path))

    def write_file(self, path: str | Path | None = None) -> None:
        """
        Serialise and write the config.

        Args:
            path: Target file; defaults to the file the config was read from

        Raises:
            IoFailure: If the file cannot be written
        """
        target = path if path is not None else self.filename
        assert target is not None, "Precondition: no path given and config has no filename"
        target = Path(target).expanduser()
        text = self.serialize()
        try:
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise IoFailure(f"Could not write config file {target}", str(target), exc) from exc
        logger.info(f"Wrote config to {target}")
        logger.debug(f"Wrote {len(self)} top-level lines to {target}")

    def clone(self) -> SshConfig:
        return SshConfig(self.filename, (line.clone() for line in self._lines))

    def compiled(self) -> SshConfig:
        """A normalised deep copy: flattened, regrouped and cloned."""
        return SshConfig(self.filename, compiled(self._lines))

    # -- nodes --------------------------------------------------------------

    def nodes(self) -> Iterator[Node]:
        """All Host and Match blocks in document order."""
        for parameter in self.parameters():
            if parameter.is_node:
                yield parameter.value

    def hosts(self) -> Iterator[HostNode]:
        for node in self.nodes():
            if isinstance(node, HostNode):
                yield node

    def matching(
        self,
        name: str,
        options: MatchingOptions = MatchingOptions.MATCHING,
    ) -> Iterator[Parameter]:
        """Parameters and blocks that apply to name, in document order."""
        return matching(self._lines, name, options)

    def get_all(
        self,
        name: str | None = None,
        options: MatchingOptions = MatchingOptions.PATTERN,
    ) -> list[ParameterParent]:
        """
        The config followed by its blocks.

        Args:
            name: If given, only blocks matching name are included
            options: How name is compared to Host patterns

        Returns:
            [self, *blocks] with the config always first
        """
        result: list[ParameterParent] = [self]
        if name is None:
            result.extend(self.nodes())
            return result
        for parameter in self.matching(name, options):
            if parameter.is_node:
                result.append(parameter.value)
        return result

    def has_host(self, name: str, options: MatchingOptions = MatchingOptions.EXACT) -> bool:
        return self.find_host(name, options) is not None

    def index_of_host(self, name: str) -> int:
        """Line index of the Host block whose pattern is exactly name, -1 if none."""
        for i, line in enumerate(self._lines):
            if isinstance(line, Parameter) and isinstance(line.value, HostNode) \
                    and line.value.pattern == name:
                return i
        return -1

    def get_host(self, name: str) -> HostNode | None:
        """The first Host block whose pattern is exactly name."""
        return self.find_host(name, MatchingOptions.EXACT)

    def find_host(
        self,
        name: str,
        options: MatchingOptions = MatchingOptions.MATCHING,
    ) -> HostNode | None:
        """The first Host block matching name."""
        assert name is not None, "Precondition: name is required"
        context = MatchingContext(name)
        for host in self.hosts():
            if host.matches(name, context, options):
                return host
        return None

    def __getitem__(self, key: str | int | Keyword) -> Any:
        if isinstance(key, str):
            return self.get_host(key)
        return super().__getitem__(key)

    def insert_host(self, index: int, pattern: str) -> HostNode:
        """
        Insert a new, empty Host block at index.

        Raises:
            InvalidPattern: If pattern would not parse back
            IndexOutOfBounds: If index is outside the valid range
        """
        check_pattern(pattern)
        return self.insert(index, keywords.HOST, HostNode(pattern))

    def insert_match(self, index: int, criteria: Criteria, argument: str | None = None) -> MatchNode:
        """Insert a new Match block with a single criterion at index."""
        node = MatchNode()
        node.add_criteria(criteria, argument)
        return self.insert(index, keywords.MATCH, node)

    def set_host(self, pattern: str) -> HostNode:
        """The Host block for pattern, appended if it does not exist yet."""
        existing = self.get_host(pattern)
        if existing is not None:
            return existing
        return self.insert_host(-1, pattern)

    def set_match(self, criteria: Criteria, argument: str | None = None) -> MatchNode:
        """The Match block with exactly this one criterion, appended if missing."""
        for node in self.nodes():
            if isinstance(node, MatchNode) and len(node.terms) == 1 \
                    and node.terms[0].criteria is criteria \
                    and node.terms[0].argument == argument:
                return node
        return self.insert_match(-1, criteria, argument)

    def first_to_host(self, pattern: str) -> HostNode:
        """
        Gather the global parameters into a new Host block.

        Only parameters before the first block are used; for single-valued
        keywords the first occurrence wins. The copies are re-indented as
        block children. The block is not inserted.

        Raises:
            InvalidPattern: If pattern would not parse back
        """
        check_pattern(pattern)
        host = HostNode(pattern)
        for parameter in self.parameters():
            if parameter.is_node:
                break
            if parameter.keyword.allow_multiple or not host.has(parameter.keyword):
                child = parameter.clone()
                child.appearance = replace(child.appearance, front_spacing=HostNode.DEFAULT_INDENT)
                host.append(child)
        return host

    def serialize(self, options: SerializeOptions = SerializeOptions.DEFAULT) -> str:
        """Regenerate config text; DEFAULT reproduces parsed text exactly."""
        return super().serialize(options)

    def __repr__(self) -> str:
        return f"SshConfig(filename={self.filename!r}, lines={len(self._lines)})"


def to_config(lines: Iterable[Line], filename: str | None = None) -> SshConfig:
    """Group a flat line stream into an SshConfig."""
    return SshConfig(filename, collect(lines))


def deserialize_string(text: str, filename: str | None = None) -> SshConfig:
    return SshConfig.deserialize_string(text, filename)


def read_file(path: str | Path) -> SshConfig:
    return SshConfig.read_file(path)


def load_user_config() -> SshConfig:
    """Read the current user's ~/.ssh/config."""
    return SshConfig.read_file(get_config_path())
