"""
Token and environment substitution.

Expansion runs in a fixed order, each stage working on the previous
stage's output:
1. ${VAR}  -> value of environment variable VAR
2. ~       -> home directory
3. %c      -> registered token function applied to the MatchingContext

Tokens:
- %%: literal %
- %d: home directory
- %h: effective HostName
- %l: local host name (short)
- %n: original host name as searched
- %p: effective Port
- %r: remote user name
- %u: local user name
"""
from __future__ import annotations

import logging
import os
import re
from typing import Callable, Final

from sshtools.errors import UnknownToken, UnresolvedEnvironmentVariable
from sshtools.keywords import PORT
from sshtools.matching import MatchingContext
from sshtools.platform import get_home_dir, get_local_hostname

logger = logging.getLogger(__name__)

_ENV_VARIABLE: Final[re.Pattern[str]] = re.compile(r"\$\{([^}]+)\}")
_TOKEN: Final[re.Pattern[str]] = re.compile(r"%(.)", re.DOTALL)

TOKENS: Final[dict[str, Callable[[MatchingContext], str]]] = {
    "%": lambda context: "%",
    "d": lambda context: str(get_home_dir()),
    "h": lambda context: context.host_name,
    "l": lambda context: get_local_hostname(),
    "n": lambda context: context.original_host_name,
    "p": lambda context: str(context.get(PORT.name, PORT.default)),
    "r": lambda context: context.remote_user,
    "u": lambda context: context.local_user,
}


def expand_environment(text: str) -> str:
    """
    Replace every ${VAR} with the environment value of VAR.

    Raises:
        UnresolvedEnvironmentVariable: If VAR is not set
    """
    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = os.environ.get(name)
        if value is None:
            raise UnresolvedEnvironmentVariable(name)
        return value

    return _ENV_VARIABLE.sub(_replace, text)


def expand_home(text: str) -> str:
    """Replace every ~ with the home directory."""
    if "~" not in text:
        return text
    return text.replace("~", str(get_home_dir()))


def expand_tokens(text: str, context: MatchingContext) -> str:
    """
    Replace every %c token using the TOKENS table.

    Raises:
        UnknownToken: If no function is registered for c
    """
    def _replace(match: re.Match[str]) -> str:
        char = match.group(1)
        function = TOKENS.get(char)
        if function is None:
            raise UnknownToken(f"Could not replace tokens - unknown token %{char} in {text!r}")
        return function(context)

    return _TOKEN.sub(_replace, text)


def substitute(text: str, context: MatchingContext) -> str:
    """
    Expand environment variables, '~' and %-tokens in text.

    Args:
        text: Raw text from the config
        context: Values resolved so far for the host being looked up

    Returns:
        The fully expanded text
    """
    assert isinstance(text, str), f"Precondition: text must be str, got {text!r}"
    result = expand_tokens(expand_home(expand_environment(text)), context)
    if result != text:
        logger.debug(f"Substituted {text!r} -> {result!r}")
    return result
