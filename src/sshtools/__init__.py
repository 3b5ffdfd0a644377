"""sshtools: format-preserving OpenSSH client config parsing and editing."""

__version__ = "0.1.0"

from sshtools import criteria, keywords
from sshtools.config import (
    SshConfig,
    deserialize_string,
    load_user_config,
    read_file,
    to_config,
)
from sshtools.criteria import Criteria, MatchTerm, parse_match_string
from sshtools.errors import (
    AmbiguousSeparator,
    ConfigEditError,
    ConfigParseError,
    CriteriaError,
    DuplicateSingleValuedKeyword,
    ErrorContext,
    IncompatibleCriteria,
    IndexOutOfBounds,
    InvalidArgument,
    InvalidPattern,
    IoFailure,
    KeywordNotPresent,
    MalformedLine,
    MissingSeparator,
    SSHConfigError,
    SubstitutionError,
    UnknownCriteria,
    UnknownKeyword,
    UnknownToken,
    UnresolvedEnvironmentVariable,
    UnterminatedOrMissingArgument,
)
from sshtools.keywords import KEYWORDS, Keyword, KeywordRegistry, ValueKind
from sshtools.lines import Appearance, Comment, Parameter, owner_of
from sshtools.matching import MatchingContext, matches
from sshtools.nodes import (
    HostNode,
    MatchNode,
    Node,
    ParameterParent,
    cloned,
    collect,
    compiled,
    flatten,
    matching,
)
from sshtools.options import MatchingOptions, SerializeOptions
from sshtools.parser import parse_line, parse_lines
from sshtools.tokens import substitute

__all__ = [
    # Config
    "SshConfig",
    "deserialize_string",
    "read_file",
    "load_user_config",
    "to_config",
    # Model
    "ParameterParent",
    "Node",
    "HostNode",
    "MatchNode",
    "Parameter",
    "Comment",
    "Appearance",
    "owner_of",
    # Keywords
    "keywords",
    "Keyword",
    "KeywordRegistry",
    "KEYWORDS",
    "ValueKind",
    # Criteria and matching
    "criteria",
    "Criteria",
    "MatchTerm",
    "parse_match_string",
    "MatchingContext",
    "matches",
    "substitute",
    # Pipeline
    "parse_line",
    "parse_lines",
    "collect",
    "flatten",
    "cloned",
    "compiled",
    "matching",
    # Options
    "SerializeOptions",
    "MatchingOptions",
    # Errors
    "SSHConfigError",
    "ErrorContext",
    "ConfigParseError",
    "UnknownKeyword",
    "MalformedLine",
    "MissingSeparator",
    "AmbiguousSeparator",
    "UnterminatedOrMissingArgument",
    "InvalidArgument",
    "CriteriaError",
    "UnknownCriteria",
    "IncompatibleCriteria",
    "ConfigEditError",
    "DuplicateSingleValuedKeyword",
    "KeywordNotPresent",
    "InvalidPattern",
    "IndexOutOfBounds",
    "SubstitutionError",
    "UnknownToken",
    "UnresolvedEnvironmentVariable",
    "IoFailure",
]
