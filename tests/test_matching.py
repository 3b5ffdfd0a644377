"""
Tests for host matching and Match criteria.

Tests cover:
- Glob patterns and pattern lists with negation
- EXACT / PATTERN / MATCHING modes
- Criteria legality and evaluation
- The document matching walk and get_all ordering
"""
from __future__ import annotations

import logging

import pytest

from conftest import CONFIG_WITH_TWO_NODES_AND_COMMENT_AT_THE_END
from sshtools import criteria
from sshtools.config import deserialize_string
from sshtools.criteria import MatchTerm, lookup_criteria, parse_match_string
from sshtools.errors import IncompatibleCriteria, UnknownCriteria
from sshtools.matching import (
    MatchingContext,
    glob_matches,
    matches,
    pattern_list_matches,
    split_pattern_list,
)
from sshtools.nodes import HostNode, MatchNode
from sshtools.options import MatchingOptions


# ---------------------------------------------------------------------------
# Pattern Tests
# ---------------------------------------------------------------------------

class TestGlobs:
    """Test single glob patterns."""

    @pytest.mark.parametrize("name,pattern,expected", [
        ("foo", "foo", True),
        ("foo", "f*", True),
        ("foo", "*", True),
        ("", "*", True),
        ("foo", "f?o", True),
        ("fo", "f?o", False),
        ("foo.example.com", "*.example.com", True),
        ("example.com", "*.example.com", False),
        ("a.b", "a?b", True),
        ("axb", "a.b", False),
        ("[ab]", "[ab]", True),
        ("a", "[ab]", False),
        ("Foo", "foo", False),
    ])
    def test_glob(self, name: str, pattern: str, expected: bool) -> None:
        """'*' and '?' are wildcards, everything else is literal."""
        assert glob_matches(name, pattern) is expected

    def test_split_pattern_list(self) -> None:
        """Lists split on commas and whitespace runs."""
        assert split_pattern_list("a,b  c\t,d") == ["a", "b", "c", "d"]
        assert split_pattern_list("") == []


class TestPatternLists:
    """Test OpenSSH pattern-list semantics."""

    def test_negation_allows_other_names(self) -> None:
        """A non-excluded name matching a positive entry matches."""
        assert pattern_list_matches("foo.example.com", "foo.*,!foo.internal.example.com")

    def test_negation_excludes(self) -> None:
        """A name matching a negated entry never matches."""
        assert not pattern_list_matches(
            "foo.internal.example.com", "foo.*,!foo.internal.example.com"
        )

    def test_negation_only_never_matches(self) -> None:
        """A list with only negations matches nothing."""
        assert not pattern_list_matches("bar", "!foo")

    def test_any_positive_entry(self) -> None:
        """Positive entries are OR'd."""
        assert pattern_list_matches("b", "a b c")
        assert not pattern_list_matches("d", "a b c")


class TestMatchingModes:
    """Test EXACT, PATTERN and MATCHING comparisons."""

    def test_exact(self) -> None:
        """EXACT compares the pattern text literally."""
        assert matches("*.com", "*.com", MatchingOptions.EXACT)
        assert not matches("a.com", "*.com", MatchingOptions.EXACT)

    def test_pattern(self) -> None:
        """PATTERN treats the whole text as one glob."""
        assert matches("a.com", "*.com", MatchingOptions.PATTERN)
        assert not matches("a", "a,b", MatchingOptions.PATTERN)

    def test_matching(self) -> None:
        """MATCHING applies list semantics."""
        assert matches("a", "a,b", MatchingOptions.MATCHING)
        assert matches("a", "a,b")

    def test_host_node_matches(self) -> None:
        """HostNode delegates to the selected mode."""
        node = HostNode("web* !web3")
        context = MatchingContext("web1", local_user="me")
        assert node.matches("web1", context)
        assert not node.matches("web3", context)
        assert not node.matches("web1", context, MatchingOptions.EXACT)


# ---------------------------------------------------------------------------
# Criteria Tests
# ---------------------------------------------------------------------------

class TestCriteriaParsing:
    """Test Match argument parsing and legality rules."""

    def test_lookup_case_insensitive(self) -> None:
        """Criteria names ignore case."""
        assert lookup_criteria("ORIGINALHOST") is criteria.ORIGINAL_HOST
        assert lookup_criteria("nope") is None

    def test_terms_keep_text(self) -> None:
        """Terms record the name as written and their spacing."""
        terms = parse_match_string("User bob  host *.corp")
        assert terms[0] == MatchTerm(criteria.USER, " ", "bob", "  ", "User")
        assert terms[1] == MatchTerm(criteria.HOST, " ", "*.corp", None, "host")

    @pytest.mark.parametrize("text", [
        "all",
        "canonical",
        "final",
        "canonical final",
        "canonical all",
        "final all",
        "canonical final all",
        "host a user b",
        "exec true",
    ])
    def test_legal(self, text: str) -> None:
        """Legal combinations parse."""
        assert parse_match_string(text)

    @pytest.mark.parametrize("text", [
        "all canonical",
        "all all",
        "final canonical",
        "canonical canonical",
        "all host x",
        "host x all",
        "canonical user y",
        "user y final",
    ])
    def test_illegal(self, text: str) -> None:
        """Illegal combinations raise IncompatibleCriteria."""
        with pytest.raises(IncompatibleCriteria):
            parse_match_string(text)

    def test_quoted_argument_is_one_word(self) -> None:
        """A double-quoted argument may contain spaces."""
        terms = parse_match_string('exec "test -f x" host a')
        assert terms[0].criteria is criteria.EXEC
        assert terms[0].argument == '"test -f x"'
        assert terms[1].argument == "a"
        assert "".join(t.serialize() for t in terms) == 'exec "test -f x" host a'

    def test_quoted_exec_round_trips(self) -> None:
        """A Match exec line with a quoted command serialises unchanged."""
        text = 'Match exec "test -f ~/.vpn"\n  Port 2200'
        assert deserialize_string(text).serialize() == text

    def test_unknown(self) -> None:
        """Unknown names raise UnknownCriteria."""
        with pytest.raises(UnknownCriteria):
            parse_match_string("host x colour blue")


class TestCriteriaEvaluation:
    """Test criteria predicates against a context."""

    def test_user_and_host(self) -> None:
        """'user bob host *.corp' needs both conditions."""
        node = MatchNode.from_string("user bob host *.corp")

        context = MatchingContext("db.corp", local_user="bob")
        assert node.matches("db.corp", context)

        context = MatchingContext("db.corp", local_user="alice")
        assert not node.matches("db.corp", context)

        context = MatchingContext("db.home", local_user="bob")
        assert not node.matches("db.home", context)

    def test_user_follows_user_keyword(self) -> None:
        """A User already recorded overrides the local user."""
        context = MatchingContext("x", local_user="alice")
        context.set_property("User", "bob")
        assert criteria.USER.evaluate("bob", context)
        assert criteria.LOCAL_USER.evaluate("alice", context)

    def test_host_uses_effective_host_name(self) -> None:
        """Host compares against HostName once recorded."""
        context = MatchingContext("alias", local_user="me")
        context.set_property("HostName", "real.example.com")
        assert criteria.HOST.evaluate("*.example.com", context)
        assert criteria.ORIGINAL_HOST.evaluate("alias", context)
        assert not criteria.ORIGINAL_HOST.evaluate("real.*", context)

    def test_argument_tokens_expanded(self) -> None:
        """Criteria arguments go through token substitution."""
        context = MatchingContext("db1", local_user="me")
        assert criteria.HOST.evaluate("%n", context)

    def test_all(self) -> None:
        """All always matches."""
        assert MatchNode.from_string("all").matches("x", MatchingContext("x", "me"))

    def test_canonical_and_final_flags(self) -> None:
        """Canonical and Final follow the context flags."""
        node = MatchNode.from_string("canonical final")
        context = MatchingContext("x", local_user="me")
        assert not node.matches("x", context)
        context.canonical = True
        context.final = True
        assert node.matches("x", context)

    def test_empty_match_never_matches(self) -> None:
        """A Match with no criteria matches nothing."""
        assert not MatchNode().matches("x", MatchingContext("x", "me"))

    def test_exec_never_runs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Exec is parsed but always false, with a warning."""
        node = MatchNode.from_string("exec true")
        with caplog.at_level(logging.WARNING, logger="sshtools.criteria"):
            assert not node.matches("x", MatchingContext("x", "me"))
        assert "not supported" in caplog.text

    def test_first_value_wins(self) -> None:
        """set_property keeps the first value per keyword."""
        context = MatchingContext("x", local_user="me")
        context.set_property("HostName", "first")
        context.set_property("HostName", "second")
        assert context.host_name == "first"
        assert context.get("HostName") == "first"
        assert context.get("Port", 22) == 22


# ---------------------------------------------------------------------------
# Document Walk Tests
# ---------------------------------------------------------------------------

class TestDocumentMatching:
    """Test matching over a whole config."""

    def test_get_all_order(self) -> None:
        """get_all returns the config first, then its blocks in order."""
        config = deserialize_string(CONFIG_WITH_TWO_NODES_AND_COMMENT_AT_THE_END)
        result = config.get_all()
        assert result[0] is config
        assert [n.pattern for n in result[1:]] == ["a", "b"]

    def test_get_all_filtered(self) -> None:
        """Only matching blocks are returned for a name."""
        config = deserialize_string("Host a\nHost b\nHost *")
        result = config.get_all("b")
        assert result[0] is config
        assert [n.pattern for n in result[1:]] == ["b", "*"]

    def test_matching_yields_globals_and_matching_nodes(self) -> None:
        """Ordinary parameters always apply, nodes only when they match."""
        config = deserialize_string("User u\nHost a\n  Port 1\nHost b\n  Port 2")
        names = [p.keyword.name for p in config.matching("b")]
        assert names == ["User", "Host"]
        hosts = [p.value.pattern for p in config.matching("b") if p.is_node]
        assert hosts == ["b"]

    def test_match_sees_host_name_from_earlier_block(self) -> None:
        """A HostName from a matching Host block feeds later Match host."""
        text = (
            "Host alias\n"
            "  HostName db.corp\n"
            "Match host *.corp\n"
            "  Port 2200\n"
            "Match originalhost *.corp\n"
            "  Port 2300"
        )
        config = deserialize_string(text)
        nodes = config.get_all("alias", MatchingOptions.MATCHING)[1:]
        assert len(nodes) == 2
        assert isinstance(nodes[1], MatchNode)
        assert nodes[1].port == 2200

    def test_global_host_name_feeds_match(self) -> None:
        """Top-level HostName is recorded before blocks are checked."""
        config = deserialize_string("HostName x.corp\nMatch host *.corp\n  Port 1")
        assert len(config.get_all("anything", MatchingOptions.MATCHING)) == 2

    def test_find_host(self) -> None:
        """find_host uses list semantics by default."""
        config = deserialize_string("Host web* !web3\nHost web3")
        assert config.find_host("web1").pattern == "web* !web3"
        assert config.find_host("web3").pattern == "web3"
        assert config.find_host("db") is None
