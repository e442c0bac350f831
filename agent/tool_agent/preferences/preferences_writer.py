"""
Writes tool configuration into the console user's per-user preference store.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from tool_agent.errors import SessionUnavailableError
from tool_agent.session import ConsoleSessionBridge
from tool_agent.system import PlatformCapabilities, get_platform_capabilities
from tool_agent.utils import get_logger

logger = get_logger(__name__)

DEFAULT_FLAG_PREFIX = "--"
DEFAULT_FLAG_VALUE = "1"


def args_to_pairs(args: Sequence[str], prefix: str = DEFAULT_FLAG_PREFIX,
                  default_value: str = DEFAULT_FLAG_VALUE) -> List[Tuple[str, str]]:
    """
    Convert flag-style arguments to key/value pairs.

    ``["--serverUrl", "https://x", "--devMode"]`` becomes
    ``[("serverUrl", "https://x"), ("devMode", "1")]``. A flag not followed
    by a value gets default_value; elements that are neither a flag nor a
    flag's value are skipped.

    :param args: Argument vector
    :param prefix: Prefix marking a flag
    :param default_value: Value of a flag given without one
    :return: Pairs in argument order
    """
    pairs: List[Tuple[str, str]] = []
    i = 0
    while i < len(args):
        current = args[i]
        if not current.startswith(prefix):
            i += 1
            continue

        key = current[len(prefix):]
        if i + 1 < len(args) and not args[i + 1].startswith(prefix):
            pairs.append((key, args[i + 1]))
            i += 2
        else:
            pairs.append((key, default_value))
            i += 1
    return pairs


class PreferencesWriter:
    """Per-user preference access, performed as the console user."""

    def __init__(self, session_bridge: Optional[ConsoleSessionBridge] = None,
                 platform: Optional[PlatformCapabilities] = None,
                 flag_prefix: str = DEFAULT_FLAG_PREFIX, flag_default_value: str = DEFAULT_FLAG_VALUE):
        self.platform = platform or (session_bridge.platform if session_bridge else get_platform_capabilities())
        self.session_bridge = session_bridge or ConsoleSessionBridge(self.platform)
        self.flag_prefix = flag_prefix
        self.flag_default_value = flag_default_value

    def write(self, domain_id: str, pairs: Iterable[Tuple[str, str]]) -> None:
        """
        Write each pair into the console user's preference domain.

        Stops at the first failed write; later pairs are not attempted. A
        no-op on platforms without per-user preference domains and for an
        empty pair list. The empty check comes before the console user lookup,
        so an empty list succeeds even when nobody is logged in.

        :param domain_id: Preference domain, usually the tool's bundle identifier
        :type domain_id: str
        :param pairs: Key/value pairs to write, in order
        :type pairs: Iterable[Tuple[str, str]]
        :raises SessionUnavailableError: if there is no console user
        :raises ExternalProcessError: if a write fails
        """
        if not self.platform.supports_user_preferences:
            logger.debug(f"Per-user preferences not supported on {self.platform.name}, skipping {domain_id}")
            return

        pairs = list(pairs)
        if not pairs:
            return

        user = self.session_bridge.get_console_user()
        if user is None:
            raise SessionUnavailableError(f"No console user found to write preferences for {domain_id}")

        for key, value in pairs:
            logger.info(f"Writing preference {domain_id} {key} for {user.username}")
            self.platform.write_user_preference(user.username, domain_id, key, value)

        logger.info(f"Wrote {len(pairs)} preference(s) to {domain_id} for {user.username}")

    def write_args(self, domain_id: str, args: Sequence[str]) -> None:
        """Write flag-style arguments as preferences, see :func:`args_to_pairs`."""
        self.write(domain_id, args_to_pairs(args, self.flag_prefix, self.flag_default_value))

    def read(self, domain_id: str, key: str) -> Optional[str]:
        """
        Read one preference of the console user.

        :return: The stored value, or None if unset or unsupported on this platform
        :raises SessionUnavailableError: if there is no console user
        """
        if not self.platform.supports_user_preferences:
            return None

        user = self.session_bridge.get_console_user()
        if user is None:
            raise SessionUnavailableError(f"No console user found to read preferences of {domain_id}")
        return self.platform.read_user_preference(user.username, domain_id, key)
