"""
Console session bridge: finds the interactive console user and starts
processes inside that user's session from the privileged agent.
"""
import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

from tool_agent.errors import NotFoundError, PlatformUnsupportedError, SessionUnavailableError
from tool_agent.models import ConsoleUser
from tool_agent.system import PlatformCapabilities, get_platform_capabilities
from tool_agent.utils import get_logger

logger = get_logger(__name__)


class ConsoleSessionBridge:
    """
    Bridges the session-less agent and the interactive console session.

    The console user is looked up again on every call because it changes
    across logins and fast user switching. This class keeps no state beyond
    the platform capabilities it was given.
    """

    def __init__(self, platform: Optional[PlatformCapabilities] = None):
        """
        :param platform: Capabilities to use, detected for the running OS when omitted
        :type platform: Optional[PlatformCapabilities]
        """
        self.platform = platform or get_platform_capabilities()

    def get_console_user(self) -> Optional[ConsoleUser]:
        """
        Resolve the owner of the console.

        :return: The console user, or None at the login screen, when the
                 superuser owns the console, or when the owner cannot be resolved
        :rtype: Optional[ConsoleUser]
        """
        username = (self.platform.console_owner() or "").strip()
        if not username or username == self.platform.superuser_name:
            logger.warning(f"No regular user at console (got: '{username}')")
            return None

        uid = self.platform.lookup_uid(username)
        if uid is None:
            logger.warning(f"Could not resolve UID of console user '{username}'")
            return None

        logger.info(f"Console user: {username} (UID: {uid})")
        return ConsoleUser(username=username, uid=uid)

    def launch_as_user(self, executable_path: str, args: Sequence[str], user: ConsoleUser) -> subprocess.Popen:
        """
        Start an executable in the given user's session.

        Strategies are tried in rank order (session-aware launch first, plain
        privilege drop second); a failed strategy is logged and the next one
        is tried.

        :param executable_path: Path of the program to start
        :type executable_path: str
        :param args: Program arguments
        :type args: Sequence[str]
        :param user: Console user who should own the process
        :type user: ConsoleUser
        :return: Handle of the started process with stdout/stderr piped
        :rtype: subprocess.Popen
        :raises NotFoundError: if executable_path does not exist
        :raises PlatformUnsupportedError: if this platform has no launch strategy
        :raises SessionUnavailableError: if every strategy failed
        """
        if not os.path.exists(executable_path):
            raise NotFoundError(f"Executable not found: {executable_path}", path=executable_path)

        strategies = self.platform.launch_strategies()
        if not strategies:
            raise PlatformUnsupportedError(
                f"Launching processes as another user is not supported on {self.platform.name}"
            )

        failures: List[str] = []
        for strategy in strategies:
            try:
                return strategy.attempt_launch(executable_path, list(args), user)
            except Exception as e:
                logger.warning(f"{strategy.name} failed to launch {executable_path} as {user.username}: {e}")
                failures.append(f"{strategy.name}: {e}")

        raise SessionUnavailableError(
            f"Could not launch {executable_path} as {user.username}: {'; '.join(failures)}"
        )

    def launch_in_console_session(self, executable_path: str, args: Sequence[str]) -> Optional[subprocess.Popen]:
        """
        Start an executable for whoever owns the console, unless it already runs.

        :return: Handle of the started process, or None if an instance was already running
        :rtype: Optional[subprocess.Popen]
        :raises SessionUnavailableError: if nobody is logged in at the console
        """
        user = self.get_console_user()
        if user is None:
            raise SessionUnavailableError(f"No console user to launch {executable_path} for")

        if self.is_process_running(executable_path):
            logger.info(f"{executable_path} is already running, not launching another instance")
            return None

        return self.launch_as_user(executable_path, args, user)

    def is_process_running(self, executable_path: str) -> bool:
        """
        Check the process table for a command line containing the path.

        :param executable_path: Path searched for in each process's command line
        :type executable_path: str
        :return: True if at least one process matches
        :rtype: bool
        """
        for proc in psutil.process_iter(['pid', 'cmdline', 'exe']):
            try:
                cmdline = proc.info.get('cmdline') or []
                command_line = ' '.join(cmdline) if cmdline else (proc.info.get('exe') or '')
                if executable_path in command_line:
                    logger.debug(f"Found running process {proc.info['pid']} for {executable_path}")
                    return True
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
        return False

    def get_app_bundle_path(self, executable_path: str) -> Optional[Path]:
        """
        Nearest enclosing application bundle of an executable.

        :return: Bundle directory, or None when not inside a bundle or bundles don't exist on this platform
        :rtype: Optional[Path]
        """
        if not self.platform.supports_app_bundles:
            return None
        return self.platform.find_app_bundle(executable_path)
