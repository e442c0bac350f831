"""
Exception types raised by the provisioning and teardown components.

Callers are expected to log these verbatim (including captured helper
output carried by :class:`ExternalProcessError`) and stop the broader
operation. Nothing here is retried automatically.
"""
from typing import Optional, Sequence


class ToolAgentError(Exception):
    """Base class for all Tool Agent errors."""


class NotFoundError(ToolAgentError):
    """An executable, bundle, or other required path does not exist."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class PlatformUnsupportedError(ToolAgentError):
    """The requested operation is not available on the current operating system."""


class SessionUnavailableError(ToolAgentError):
    """There is no interactive console user, or dropping privileges to that user failed."""


class ExternalProcessError(ToolAgentError):
    """A spawned helper exited with a nonzero status."""

    def __init__(self, command: Sequence[str], returncode: int, stdout: str = "", stderr: str = "",
                 description: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        label = description or ' '.join(self.command)
        super().__init__(
            f"{label} exited with status {returncode}\nstdout: {stdout}\nstderr: {stderr}"
        )


class ToolUninstallError(ToolAgentError):
    """Uninstallation of a single tool failed at a named step."""

    def __init__(self, tool_agent_id: str, step: str, cause: BaseException):
        self.tool_agent_id = tool_agent_id
        self.step = step
        self.cause = cause
        super().__init__(f"Failed to uninstall tool '{tool_agent_id}' at step '{step}': {cause}")


class PartialCleanupWarning(UserWarning):
    """A cleanup step failed after the primary operation had already finished."""

    def __init__(self, step: str, target: str, reason: str):
        self.step = step
        self.target = target
        self.reason = reason
        super().__init__(f"{step} failed for {target}: {reason}")
