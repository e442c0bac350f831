"""
Interfaces of the services the uninstall orchestrator depends on.

Implementations live elsewhere in the agent (registry persistence, command
template resolution, process termination, install directory layout); the
orchestrator only relies on the contracts below.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from tool_agent.models import InstalledTool


class InstalledToolsRegistry(ABC):
    """Read access to the persisted installed-tool records."""

    @abstractmethod
    def get_all(self) -> List[InstalledTool]:
        """
        All installed tools in registry order.

        :raises: Any exception if the registry cannot be read
        """


class CommandParamsResolver(ABC):
    """Replaces placeholders in command argument templates."""

    @abstractmethod
    def process(self, tool_agent_id: str, args: Sequence[str]) -> List[str]:
        """
        Resolve the argument template of a tool.

        :param tool_agent_id: Tool the arguments belong to
        :param args: Argument template
        :return: Arguments with placeholders replaced
        :raises: Any exception if a placeholder cannot be resolved
        """


class ToolKillService(ABC):
    """Stops running tool processes."""

    @abstractmethod
    def stop_installed_tool(self, tool: InstalledTool) -> None:
        """
        Stop the tool's own process.

        :raises: Any exception if the process could not be stopped
        """

    @abstractmethod
    def stop_asset(self, process_name: str, tool_agent_id: str) -> None:
        """
        Stop a named auxiliary process belonging to a tool.

        :raises: Any exception if the process could not be stopped
        """


class DirectoryManager(ABC):
    """Install directory layout."""

    @abstractmethod
    def get_tool_executable_path(self, tool_agent_id: str, executable_path: Optional[str] = None) -> Path:
        """
        Path of a tool's executable. Pure computation, the path need not exist.

        :param tool_agent_id: Tool identifier
        :param executable_path: Path recorded at install time, if any
        """
