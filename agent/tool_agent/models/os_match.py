"""
Operating system name matching shared by the descriptor models.
"""
import sys
from typing import Optional

OS_WINDOWS = "windows"
OS_MACOS = "macos"
OS_LINUX = "linux"


def current_os_name() -> Optional[str]:
    """
    Name of the running operating system as used in tool descriptors.

    :return: 'windows', 'macos', 'linux', or None for any other platform
    :rtype: Optional[str]
    """
    if sys.platform == "win32":
        return OS_WINDOWS
    if sys.platform == "darwin":
        return OS_MACOS
    if sys.platform.startswith("linux"):
        return OS_LINUX
    return None


def os_matches(declared_os: str, os_name: Optional[str]) -> bool:
    """Case-insensitive comparison of a declared OS against an OS name."""
    if not os_name:
        return False
    return declared_os.casefold() == os_name.casefold()
