"""
Decides which auxiliary processes must be stopped together with a tool.

Some tools leave helper daemons running that their own stop does not take
down. Matching on the tool identifier is a stopgap until tools report their
helpers; it is kept behind :class:`AuxiliaryProcessPolicy` so it can be
replaced without touching the uninstall loop.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional

from tool_agent.models import InstalledTool

DEFAULT_AUXILIARY_PROCESSES: Dict[str, str] = {
    "fleet": "osqueryd",
}


class AuxiliaryProcessPolicy(ABC):

    @abstractmethod
    def processes_for(self, tool: InstalledTool) -> List[str]:
        """Names of auxiliary processes to stop before uninstalling the tool."""


class NoAuxiliaryProcesses(AuxiliaryProcessPolicy):

    def processes_for(self, tool: InstalledTool) -> List[str]:
        return []


class SubstringAuxiliaryProcessPolicy(AuxiliaryProcessPolicy):
    """Maps case-insensitive substrings of the tool identifier to process names."""

    def __init__(self, patterns: Optional[Mapping[str, str]] = None):
        source = DEFAULT_AUXILIARY_PROCESSES if patterns is None else patterns
        self.patterns = {pattern.casefold(): process for pattern, process in source.items()}

    def processes_for(self, tool: InstalledTool) -> List[str]:
        tool_id = tool.tool_agent_id.casefold()
        processes: List[str] = []
        for pattern, process_name in self.patterns.items():
            if pattern in tool_id and process_name not in processes:
                processes.append(process_name)
        return processes
