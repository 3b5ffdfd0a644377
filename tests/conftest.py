"""
Pytest fixtures and shared config texts for sshtools tests.

Provides:
- Config texts covering every line shape the parser accepts
- ROUND_TRIP_CONFIGS for parametrised round-trip tests
- home_dir fixture pinning HOME for '~' expansion
"""
from __future__ import annotations

from pathlib import Path

import pytest

CONFIG_WITHOUT_ANYTHING = ""

CONFIG_WITH_ONLY_ONE_LINEBREAK = "\n"

CONFIG_WITH_ONLY_ONE_COMMENT = "# just a comment"

CONFIG_WITH_ONLY_A_NODE = "Host foo"

CONFIG_WITH_ONE_NODE = "Host foo\n  HostName 1.2.3.4"

CONFIG_WITH_TWO_NODES_AND_COMMENT_AT_THE_END = """\
Host a
  User alice

Host b
  Port 2222
# trailing comment"""

CONFIG_WITH_PARAMETER_AND_NODES = """\
User global
IdentitiesOnly yes

Host *.example.com !internal.example.com
\tHostName=%h.proxy
    IdentityFile "~/.ssh/id ed25519"  \n\
Match user bob host *.corp
  Port 2200
"""

CONFIG_WITH_EVERY_PARAMETER = """\
HostName global.example.com
User admin
Port 2222
IdentityFile ~/.ssh/id_ed25519
IdentitiesOnly yes
Host alias
  HostName alias.example.com
Match all
  User everyone
"""

CONFIG_WITH_ODD_FORMATTING = """\
   # indented comment
\t\t
hostname = Lower.Example.Com\t
HOST  =  "quoted host"
\tuSeR\t\tmixed
  IdentitiesOnly=YES
  Port 0022  """

ROUND_TRIP_CONFIGS = [
    CONFIG_WITHOUT_ANYTHING,
    CONFIG_WITH_ONLY_ONE_LINEBREAK,
    CONFIG_WITH_ONLY_ONE_COMMENT,
    CONFIG_WITH_ONLY_A_NODE,
    CONFIG_WITH_ONE_NODE,
    CONFIG_WITH_TWO_NODES_AND_COMMENT_AT_THE_END,
    CONFIG_WITH_PARAMETER_AND_NODES,
    CONFIG_WITH_EVERY_PARAMETER,
    CONFIG_WITH_ODD_FORMATTING,
]


@pytest.fixture
def home_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point HOME at a temporary directory and force Unix path rules."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr("sshtools.platform.is_windows", lambda: False)
    return home
