"""
Tests for the keyword registry and typed argument conversion.

Tests cover:
- Case-insensitive lookup
- Registry immutability and duplicate rejection
- String, bool, uint16 and node parsing
- Defaults and first-occurrence lookup
"""
from __future__ import annotations

import pytest

from sshtools import keywords
from sshtools.errors import InvalidArgument
from sshtools.keywords import KEYWORDS, Keyword, KeywordRegistry, ValueKind
from sshtools.lines import Comment, Parameter
from sshtools.nodes import HostNode, MatchNode
from sshtools.options import SerializeOptions


# ---------------------------------------------------------------------------
# Registry Tests
# ---------------------------------------------------------------------------

class TestKeywordRegistry:
    """Test keyword lookup and registry construction."""

    def test_lookup_is_case_insensitive(self) -> None:
        """Any casing of a name finds the same keyword."""
        assert KEYWORDS.lookup("hostname") is keywords.HOST_NAME
        assert KEYWORDS.lookup("HOSTNAME") is keywords.HOST_NAME
        assert keywords.lookup("HostName") is keywords.HOST_NAME

    def test_unknown_lookup(self) -> None:
        """Unregistered names return None."""
        assert KEYWORDS.lookup("NoSuchKeyword") is None

    def test_contains(self) -> None:
        """Membership tests accept names."""
        assert "port" in KEYWORDS
        assert "Bogus" not in KEYWORDS
        assert 22 not in KEYWORDS

    def test_contains_every_constant(self) -> None:
        """Every module-level keyword is registered."""
        names = {k.name for k in KEYWORDS}
        for expected in ("Host", "Match", "HostName", "User", "Port", "IdentityFile",
                         "IdentitiesOnly", "ProxyJump", "LocalForward"):
            assert expected in names
        assert len(KEYWORDS) == len(names)

    def test_registry_frozen_after_construction(self) -> None:
        """Registering after construction is refused."""
        extra = Keyword("Extra", ValueKind.STRING, str, lambda v, o: v)
        with pytest.raises(RuntimeError):
            KEYWORDS.register(extra)

    def test_duplicate_name_rejected(self) -> None:
        """Two keywords with the same name cannot be registered."""
        first = Keyword("Dup", ValueKind.STRING, str, lambda v, o: v)
        second = Keyword("DUP", ValueKind.STRING, str, lambda v, o: v)
        with pytest.raises(ValueError):
            KeywordRegistry([first, second])

    def test_custom_registry(self) -> None:
        """A registry can be built from any keyword list."""
        registry = KeywordRegistry([keywords.PORT])
        assert registry.lookup("port") is keywords.PORT
        assert registry.lookup("user") is None


# ---------------------------------------------------------------------------
# Value Parsing Tests
# ---------------------------------------------------------------------------

class TestValueParsing:
    """Test conversion of argument text to typed values."""

    def test_string(self) -> None:
        """Strings are taken as written."""
        assert keywords.USER.parse_argument("alice") == "alice"

    @pytest.mark.parametrize("text,expected", [
        ("yes", True),
        ("YES", True),
        ("No", False),
        ("no", False),
    ])
    def test_bool(self, text: str, expected: bool) -> None:
        """Bool keywords accept yes/no in any case."""
        assert keywords.IDENTITIES_ONLY.parse_argument(text) is expected

    def test_bool_rejects_other_values(self) -> None:
        """Anything but yes/no is invalid and names the keyword."""
        with pytest.raises(InvalidArgument) as exc_info:
            keywords.IDENTITIES_ONLY.parse_argument("maybe")
        assert exc_info.value.context.keyword == "IdentitiesOnly"
        assert "IdentitiesOnly" in exc_info.value.message

    def test_uint16(self) -> None:
        """Port parses as an integer."""
        assert keywords.PORT.parse_argument("2222") == 2222
        assert keywords.PORT.parse_argument("0022") == 22
        assert keywords.PORT.parse_argument("65535") == 65535

    @pytest.mark.parametrize("text", ["abc", "-1", "+22", "22.0", "65536", " 22"])
    def test_uint16_rejects(self, text: str) -> None:
        """Non-digits and values above 65535 are invalid."""
        with pytest.raises(InvalidArgument):
            keywords.PORT.parse_argument(text)

    def test_host_node(self) -> None:
        """Host arguments become a HostNode with the pattern as written."""
        node = keywords.HOST.parse_argument("a b,c")
        assert isinstance(node, HostNode)
        assert node.pattern == "a b,c"
        assert node.patterns == ["a", "b", "c"]

    def test_match_node(self) -> None:
        """Match arguments become a MatchNode of parsed terms."""
        node = keywords.MATCH.parse_argument("user bob")
        assert isinstance(node, MatchNode)
        assert [c.name for c in node.criteria] == ["User"]

    def test_serialize(self) -> None:
        """Each kind serialises back to config text."""
        options = SerializeOptions.DEFAULT
        assert keywords.IDENTITIES_ONLY.serialize(True, options) == "yes"
        assert keywords.IDENTITIES_ONLY.serialize(False, options) == "no"
        assert keywords.PORT.serialize(22, options) == "22"
        assert keywords.HOST.serialize(HostNode("x"), options) == "x"


# ---------------------------------------------------------------------------
# Keyword Lookup Tests
# ---------------------------------------------------------------------------

class TestKeywordGet:
    """Test Keyword.get over a line list."""

    def test_default_when_absent(self) -> None:
        """Absent keywords yield their default."""
        assert keywords.PORT.get([]) == 22
        assert keywords.IDENTITIES_ONLY.get([]) is False
        assert keywords.HOST_NAME.get([]) is None

    def test_first_occurrence_wins(self) -> None:
        """The first line for a keyword is its effective value."""
        lines = [
            Comment(" note"),
            Parameter(keywords.PORT, 2200),
            Parameter(keywords.PORT, 2300),
        ]
        assert keywords.PORT.get(lines) == 2200

    def test_flags(self) -> None:
        """Node and multiplicity flags follow the keyword table."""
        assert keywords.HOST.is_node
        assert not keywords.PORT.is_node
        assert keywords.IDENTITY_FILE.allow_multiple
        assert not keywords.USER.allow_multiple
        assert str(keywords.PORT) == "Port"
