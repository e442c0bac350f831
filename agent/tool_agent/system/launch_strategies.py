"""
Ranked strategies for starting a process inside the console user's session.
"""
import subprocess
from abc import ABC, abstractmethod
from typing import Callable, List, Sequence

from tool_agent.models import ConsoleUser
from tool_agent.system.bundles import DEFAULT_BUNDLE_SUFFIX, find_app_bundle
from tool_agent.utils import get_logger

logger = get_logger(__name__)

Spawner = Callable[..., subprocess.Popen]


class LaunchStrategy(ABC):
    """
    One way of starting an executable as another user.

    Subclasses only describe the command line; spawning with both output
    streams piped is shared.
    """

    name = "base"

    def __init__(self, spawner: Spawner = subprocess.Popen):
        self._spawn = spawner

    @abstractmethod
    def build_command(self, executable_path: str, args: Sequence[str], user: ConsoleUser) -> List[str]:
        """
        Build the full command line used to launch the executable.

        :param executable_path: Absolute path of the program to start
        :param args: Arguments for the program
        :param user: Console user that should own the process
        :return: Command line to spawn
        """

    def attempt_launch(self, executable_path: str, args: Sequence[str], user: ConsoleUser) -> subprocess.Popen:
        """
        Spawn the process. Any exception means this strategy failed.

        :return: Handle of the spawned process, stdout/stderr piped
        :rtype: subprocess.Popen
        """
        command = self.build_command(executable_path, args, user)
        logger.info(f"Launching via {self.name} as {user.username} (UID {user.uid}): {' '.join(command)}")
        process = self._spawn(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        logger.info(f"Spawned via {self.name}, PID: {process.pid}")
        return process


class LaunchctlAsUserStrategy(LaunchStrategy):
    """
    Session-aware launch through ``launchctl asuser <uid>``.

    Executables inside an application bundle are started by opening the
    bundle, which gives the app normal desktop activation (dock icon,
    window server registration) that running the inner binary skips.
    """

    name = "launchctl asuser"

    def __init__(self, bundle_suffix: str = DEFAULT_BUNDLE_SUFFIX, spawner: Spawner = subprocess.Popen):
        super().__init__(spawner)
        self.bundle_suffix = bundle_suffix

    def build_command(self, executable_path: str, args: Sequence[str], user: ConsoleUser) -> List[str]:
        command = ["launchctl", "asuser", str(user.uid)]
        bundle = find_app_bundle(executable_path, self.bundle_suffix)
        if bundle is None:
            return command + [executable_path, *args]

        logger.debug(f"{executable_path} is inside bundle {bundle}, opening the bundle instead")
        command += ["open", str(bundle)]
        if args:
            command += ["--args", *args]
        return command


class SudoAsUserStrategy(LaunchStrategy):
    """Generic privilege drop through ``sudo -u <username>``."""

    name = "sudo -u"

    def build_command(self, executable_path: str, args: Sequence[str], user: ConsoleUser) -> List[str]:
        return ["sudo", "-u", user.username, executable_path, *args]
