"""
Tool lifecycle orchestration for the Tool Agent.
"""
from tool_agent.core.auxiliary_processes import (
    AuxiliaryProcessPolicy,
    NoAuxiliaryProcesses,
    SubstringAuxiliaryProcessPolicy
)
from tool_agent.core.collaborators import (
    CommandParamsResolver,
    DirectoryManager,
    InstalledToolsRegistry,
    ToolKillService
)
from tool_agent.core.tool_uninstall_service import ToolUninstallService

__all__ = [
    'AuxiliaryProcessPolicy',
    'NoAuxiliaryProcesses',
    'SubstringAuxiliaryProcessPolicy',
    'CommandParamsResolver',
    'DirectoryManager',
    'InstalledToolsRegistry',
    'ToolKillService',
    'ToolUninstallService'
]
