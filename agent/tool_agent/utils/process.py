"""
Subprocess helpers for running platform helper commands.
"""
import subprocess
from typing import Callable, List, Optional, Sequence

from tool_agent.errors import ExternalProcessError
from tool_agent.utils.logger import get_logger

logger = get_logger(__name__)

OUTPUT_ENCODING = 'utf-8'


class CommandResult:
    """Exit status and captured output of a finished helper command."""

    def __init__(self, command: Sequence[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def raise_for_status(self, description: Optional[str] = None) -> 'CommandResult':
        """
        Raise :class:`ExternalProcessError` if the command exited nonzero.

        :param description: Short label used in the error message instead of the command line
        :return: self, for chaining
        :raises ExternalProcessError: if the exit status is nonzero
        """
        if not self.ok:
            raise ExternalProcessError(
                self.command, self.returncode, self.stdout, self.stderr, description=description
            )
        return self

    def __repr__(self) -> str:
        return f"CommandResult(command={self.command!r}, returncode={self.returncode})"


CommandRunner = Callable[[Sequence[str]], CommandResult]


def run_command(command: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
    """
    Run a command and capture both output streams.

    Both pipes are drained by ``communicate()`` while the process runs, so a
    chatty helper cannot block on a full pipe buffer.

    :param command: Program and arguments
    :type command: Sequence[str]
    :param timeout: Optional timeout in seconds, None waits indefinitely
    :type timeout: Optional[float]
    :return: The exit status and decoded output
    :rtype: CommandResult
    :raises OSError: if the program cannot be started
    :raises subprocess.TimeoutExpired: if the timeout elapses
    """
    argv: List[str] = [str(part) for part in command]
    logger.info(f"Running: {' '.join(argv)}")

    process = subprocess.run(
        argv,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding=OUTPUT_ENCODING,
        errors='replace',
        timeout=timeout,
        check=False
    )

    stdout = process.stdout.strip() if process.stdout else ""
    stderr = process.stderr.strip() if process.stderr else ""
    logger.info(f"'{argv[0]}' exited with {process.returncode}. stdout={stdout!r} stderr={stderr!r}")
    return CommandResult(argv, process.returncode, stdout, stderr)
