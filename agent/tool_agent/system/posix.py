"""
Linux and other POSIX systems: console owner from the console device, sudo launching.
"""
import os
import pwd
from typing import List, Optional

from tool_agent.system.capabilities import PlatformCapabilities
from tool_agent.system.launch_strategies import LaunchStrategy, SudoAsUserStrategy
from tool_agent.utils import get_logger

logger = get_logger(__name__)

CONSOLE_DEVICE = "/dev/console"


class PosixCapabilities(PlatformCapabilities):
    name = "posix"

    def console_owner(self) -> Optional[str]:
        try:
            owner_uid = os.stat(CONSOLE_DEVICE).st_uid
            return pwd.getpwuid(owner_uid).pw_name
        except (OSError, KeyError) as e:
            logger.warning(f"Could not determine owner of {CONSOLE_DEVICE}: {e}")
            return None

    def lookup_uid(self, username: str) -> Optional[int]:
        try:
            return pwd.getpwnam(username).pw_uid
        except KeyError:
            logger.warning(f"Unknown user: {username}")
            return None

    def launch_strategies(self) -> List[LaunchStrategy]:
        return [SudoAsUserStrategy()]
