"""
Windows implementation of the platform capabilities.

Only console session lookup is available here. Starting a process in
another user's session, disk images, per-user preference domains and
application bundles have no counterpart on Windows.
"""
from typing import Optional, Tuple

import pywintypes
import win32ts

from tool_agent.system.capabilities import PlatformCapabilities
from tool_agent.utils import get_logger

logger = get_logger(__name__)

NO_CONSOLE_SESSION = 0xFFFFFFFF


def get_active_console_session() -> Optional[Tuple[str, int]]:
    """
    Gets the user attached to the physical console session.

    :return: Tuple (username, sessionId), or None at the logon screen or without a console session
    :rtype: Optional[Tuple[str, int]]
    """
    session_id = win32ts.WTSGetActiveConsoleSessionId()
    if session_id == NO_CONSOLE_SESSION:
        logger.debug("No active console session.")
        return None

    try:
        user_name = win32ts.WTSQuerySessionInformation(
            win32ts.WTS_CURRENT_SERVER_HANDLE,
            session_id,
            win32ts.WTSUserName
        )
    except pywintypes.error as e:
        logger.warning(f"Could not get username for console session {session_id}: {e}")
        return None

    if not user_name:
        return None
    return user_name, session_id


class WindowsCapabilities(PlatformCapabilities):
    name = "windows"
    superuser_name = "SYSTEM"

    def console_owner(self) -> Optional[str]:
        session = get_active_console_session()
        return session[0] if session else None

    def lookup_uid(self, username: str) -> Optional[int]:
        """Session id of the console session, when it belongs to username."""
        session = get_active_console_session()
        if session and session[0].casefold() == username.casefold():
            return session[1]
        return None
