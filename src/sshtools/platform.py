"""
Cross-platform paths and identity lookups.

Provides:
- Platform-appropriate home and SSH directory paths
- Default user and system config file locations
- Local user and host name for token expansion
"""
from __future__ import annotations

import getpass
import os
import socket
import sys
from pathlib import Path


def is_windows() -> bool:
    """Check if running on Windows."""
    return sys.platform == "win32"


def get_home_dir() -> Path:
    """
    Get the directory '~' stands for.

    Returns:
        $HOME on Unix, %USERPROFILE% on Windows
    """
    if is_windows():
        userprofile = os.environ.get("USERPROFILE")
        if userprofile:
            return Path(userprofile)
        # Fallback to HOME if USERPROFILE not set
        home = os.environ.get("HOME")
        if home:
            return Path(home)
        return Path.home()
    home = os.environ.get("HOME")
    if home:
        return Path(home)
    return Path.home()


def get_ssh_dir() -> Path:
    """
    Get the platform-appropriate SSH directory.

    Returns:
        ~/.ssh on Unix, %USERPROFILE%\\.ssh on Windows
    """
    return get_home_dir() / ".ssh"


def get_config_path() -> Path:
    """
    Get the platform-appropriate SSH config file path.

    Returns:
        Path to user SSH config file
    """
    return get_ssh_dir() / "config"


def get_system_config_path() -> Path:
    """
    Get the system-wide SSH config file path.

    Returns:
        Path to system SSH config file (/etc/ssh/ssh_config on Unix)
    """
    if is_windows():
        # Windows OpenSSH uses ProgramData
        program_data = os.environ.get("ProgramData", "C:\\ProgramData")
        return Path(program_data) / "ssh" / "ssh_config"
    return Path("/etc/ssh/ssh_config")


def get_local_user() -> str:
    """Get the name of the user running this process."""
    return getpass.getuser()


def get_local_hostname() -> str:
    """Get the local host name without its domain part."""
    return socket.gethostname().split(".", 1)[0]
