"""
Typed keyword registry.

Every keyword the parser accepts is described by an immutable Keyword:
its canonical name, the kind of value it holds, whether it may repeat,
its default and the functions converting its argument to and from text.
The registry is built once at import time from an explicit list and
refuses changes afterwards.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Final, Iterable, Iterator

from sshtools.errors import InvalidArgument
from sshtools.options import SerializeOptions

if TYPE_CHECKING:
    from sshtools.nodes import HostNode, MatchNode

UINT16_MAX: Final[int] = 65535

_DIGITS: Final[re.Pattern[str]] = re.compile(r"[0-9]+")


class ValueKind(str, Enum):
    """The closed set of value types a keyword can carry."""
    STRING = "string"
    BOOL = "bool"
    UINT16 = "uint16"
    NODE = "node"


@dataclass(frozen=True, eq=False)
class Keyword:
    """
    Immutable keyword descriptor.

    Keywords compare by identity; look them up through the registry
    rather than constructing new ones.
    """
    name: str
    kind: ValueKind
    parse: Callable[[str], Any] = field(repr=False)
    serialize: Callable[[Any, SerializeOptions], str] = field(repr=False)
    allow_multiple: bool = False
    default: Any = None

    def __str__(self) -> str:
        return self.name

    @property
    def is_node(self) -> bool:
        """Whether the value is a Host or Match block."""
        return self.kind is ValueKind.NODE

    def parse_argument(self, text: str) -> Any:
        """
        Convert argument text to this keyword's value type.

        Raises:
            InvalidArgument: If the text is not a valid value
        """
        try:
            return self.parse(text)
        except ValueError as exc:
            raise InvalidArgument(
                f"Invalid argument {text!r} for keyword {self.name}: {exc}",
                keyword=self.name,
            ) from exc

    def get(self, lines: Iterable[Any]) -> Any:
        """Return the first value set for this keyword, or the default."""
        for line in lines:
            if getattr(line, "keyword", None) is self:
                return line.value
        return self.default


# ---------------------------------------------------------------------------
# Parse / serialise functions per value kind
# ---------------------------------------------------------------------------

def _parse_string(text: str) -> str:
    return text


def _serialize_string(value: str, options: SerializeOptions) -> str:
    return value


def _parse_bool(text: str) -> bool:
    lowered = text.lower()
    if lowered == "yes":
        return True
    if lowered == "no":
        return False
    raise ValueError("expected 'yes' or 'no'")


def _serialize_bool(value: bool, options: SerializeOptions) -> str:
    return "yes" if value else "no"


def _parse_uint16(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise ValueError("expected an unsigned integer")
    value = int(text)
    if value > UINT16_MAX:
        raise ValueError(f"must be at most {UINT16_MAX}")
    return value


def _serialize_uint16(value: int, options: SerializeOptions) -> str:
    return str(value)


def _parse_host(text: str) -> HostNode:
    from sshtools.nodes import HostNode

    return HostNode(text)


def _parse_match(text: str) -> MatchNode:
    from sshtools.nodes import MatchNode

    return MatchNode.from_string(text)


def _serialize_node(value: HostNode | MatchNode, options: SerializeOptions) -> str:
    return value.argument_text()


def _string(name: str, allow_multiple: bool = False, default: str | None = None) -> Keyword:
    return Keyword(name, ValueKind.STRING, _parse_string, _serialize_string, allow_multiple, default)


def _bool(name: str, default: bool = False) -> Keyword:
    return Keyword(name, ValueKind.BOOL, _parse_bool, _serialize_bool, False, default)


def _uint16(name: str, default: int | None = None) -> Keyword:
    return Keyword(name, ValueKind.UINT16, _parse_uint16, _serialize_uint16, False, default)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class KeywordRegistry:
    """
    Case-insensitive name -> Keyword table.

    Registration is only possible while the registry is being built;
    once the constructor returns the table is frozen.
    """

    def __init__(self, keywords: Iterable[Keyword] = ()) -> None:
        self._by_name: dict[str, Keyword] = {}
        self._frozen = False
        for keyword in keywords:
            self.register(keyword)
        self._frozen = True

    def register(self, keyword: Keyword) -> None:
        """Add a keyword while the registry is under construction."""
        if self._frozen:
            raise RuntimeError("Keyword registry is immutable once built")
        key = keyword.name.lower()
        if key in self._by_name:
            raise ValueError(f"Keyword {keyword.name} registered twice")
        self._by_name[key] = keyword

    def lookup(self, name: str) -> Keyword | None:
        """Find a keyword by name, ignoring case."""
        return self._by_name.get(name.lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def __iter__(self) -> Iterator[Keyword]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)


HOST: Final = Keyword("Host", ValueKind.NODE, _parse_host, _serialize_node, allow_multiple=True)
MATCH: Final = Keyword("Match", ValueKind.NODE, _parse_match, _serialize_node, allow_multiple=True)
HOST_NAME: Final = _string("HostName")
USER: Final = _string("User")
PORT: Final = _uint16("Port", default=22)
IDENTITY_FILE: Final = _string("IdentityFile", allow_multiple=True)
IDENTITIES_ONLY: Final = _bool("IdentitiesOnly")
CERTIFICATE_FILE: Final = _string("CertificateFile", allow_multiple=True)
CONNECT_TIMEOUT: Final = _uint16("ConnectTimeout")
SERVER_ALIVE_INTERVAL: Final = _uint16("ServerAliveInterval")
FORWARD_AGENT: Final = _bool("ForwardAgent")
COMPRESSION: Final = _bool("Compression")
PROXY_COMMAND: Final = _string("ProxyCommand")
PROXY_JUMP: Final = _string("ProxyJump")
PREFERRED_AUTHENTICATIONS: Final = _string("PreferredAuthentications")
PUBKEY_ACCEPTED_ALGORITHMS: Final = _string("PubkeyAcceptedAlgorithms")
PKCS11_PROVIDER: Final = _string("PKCS11Provider")
STRICT_HOST_KEY_CHECKING: Final = _string("StrictHostKeyChecking")
USER_KNOWN_HOSTS_FILE: Final = _string("UserKnownHostsFile")
LOG_LEVEL: Final = _string("LogLevel")
SEND_ENV: Final = _string("SendEnv", allow_multiple=True)
SET_ENV: Final = _string("SetEnv", allow_multiple=True)
LOCAL_FORWARD: Final = _string("LocalForward", allow_multiple=True)
REMOTE_FORWARD: Final = _string("RemoteForward", allow_multiple=True)

KEYWORDS: Final = KeywordRegistry([
    HOST,
    MATCH,
    HOST_NAME,
    USER,
    PORT,
    IDENTITY_FILE,
    IDENTITIES_ONLY,
    CERTIFICATE_FILE,
    CONNECT_TIMEOUT,
    SERVER_ALIVE_INTERVAL,
    FORWARD_AGENT,
    COMPRESSION,
    PROXY_COMMAND,
    PROXY_JUMP,
    PREFERRED_AUTHENTICATIONS,
    PUBKEY_ACCEPTED_ALGORITHMS,
    PKCS11_PROVIDER,
    STRICT_HOST_KEY_CHECKING,
    USER_KNOWN_HOSTS_FILE,
    LOG_LEVEL,
    SEND_ENV,
    SET_ENV,
    LOCAL_FORWARD,
    REMOTE_FORWARD,
])


def lookup(name: str) -> Keyword | None:
    """Find a registered keyword by name, ignoring case."""
    return KEYWORDS.lookup(name)
