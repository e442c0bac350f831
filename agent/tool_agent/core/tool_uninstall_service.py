"""
Tool uninstall orchestrator.

Removes every installed tool, one at a time, in registry order. The first
tool that fails aborts the batch; tools removed before it stay removed.
For each tool the running process is always stopped before its uninstaller
runs or its files are deleted.
"""
import os
import shutil
from typing import Callable, List, Optional, TYPE_CHECKING

from tool_agent.core.auxiliary_processes import AuxiliaryProcessPolicy, SubstringAuxiliaryProcessPolicy
from tool_agent.core.collaborators import (
    CommandParamsResolver,
    DirectoryManager,
    InstalledToolsRegistry,
    ToolKillService
)
from tool_agent.errors import ExternalProcessError, ToolAgentError, ToolUninstallError
from tool_agent.models import InstalledTool
from tool_agent.system import PlatformCapabilities, get_platform_capabilities
from tool_agent.utils import CommandRunner, get_logger, run_command

if TYPE_CHECKING:
    from tool_agent.config import ConfigManager

logger = get_logger(__name__)

STEP_STOP_PROCESS = "stop process"
STEP_STOP_AUXILIARY_PROCESS = "stop auxiliary process"
STEP_RESOLVE_ARGS = "resolve uninstall arguments"
STEP_RESOLVE_EXECUTABLE = "resolve executable path"
STEP_RUN_UNINSTALL = "run uninstall command"


class ToolUninstallService:
    """
    Uninstalls all installed tools with fail-fast semantics.

    Tools are processed strictly sequentially; uninstalling tools in
    parallel could race on shared daemons or ports.
    """

    def __init__(self,
                 installed_tools_service: InstalledToolsRegistry,
                 command_params_resolver: CommandParamsResolver,
                 tool_kill_service: ToolKillService,
                 directory_manager: DirectoryManager,
                 platform: Optional[PlatformCapabilities] = None,
                 auxiliary_policy: Optional[AuxiliaryProcessPolicy] = None,
                 runner: CommandRunner = run_command):
        """
        :param installed_tools_service: Registry of installed tools
        :param command_params_resolver: Resolves placeholders in uninstall arguments
        :param tool_kill_service: Stops tool and auxiliary processes
        :param directory_manager: Computes tool executable paths
        :param platform: Capabilities used for bundle cleanup, detected when omitted
        :param auxiliary_policy: Which extra processes to stop per tool, the built-in mapping when omitted
        :param runner: Runs the uninstall command and captures its output
        """
        self.installed_tools_service = installed_tools_service
        self.command_params_resolver = command_params_resolver
        self.tool_kill_service = tool_kill_service
        self.directory_manager = directory_manager
        self.platform = platform or get_platform_capabilities()
        self.auxiliary_policy = auxiliary_policy or SubstringAuxiliaryProcessPolicy()
        self.run = runner

    @classmethod
    def from_config(cls, config: 'ConfigManager',
                    installed_tools_service: InstalledToolsRegistry,
                    command_params_resolver: CommandParamsResolver,
                    tool_kill_service: ToolKillService,
                    directory_manager: DirectoryManager,
                    platform: Optional[PlatformCapabilities] = None) -> 'ToolUninstallService':
        """Build the service with the auxiliary process mapping from configuration."""
        policy = SubstringAuxiliaryProcessPolicy(config.get('uninstall.auxiliary_processes'))
        return cls(installed_tools_service, command_params_resolver, tool_kill_service,
                   directory_manager, platform=platform, auxiliary_policy=policy)

    def uninstall_all(self) -> None:
        """
        Uninstall every tool in the registry.

        :raises ToolAgentError: if the registry cannot be read
        :raises ToolUninstallError: naming the first tool that failed and the failing step
        """
        logger.info("Starting uninstallation of all installed tools")

        try:
            installed_tools = self.installed_tools_service.get_all()
        except Exception as e:
            logger.error(f"Failed to retrieve installed tools: {e}")
            raise ToolAgentError(f"Failed to retrieve installed tools: {e}") from e

        if not installed_tools:
            logger.info("No installed tools found to uninstall")
            return

        logger.info(f"Found {len(installed_tools)} installed tools to uninstall")

        for tool in installed_tools:
            logger.info(f"Processing uninstallation for tool: {tool.tool_agent_id}")
            try:
                self.uninstall_tool(tool)
            except ToolUninstallError as e:
                logger.error(f"Aborting uninstallation of remaining tools: {e}")
                raise
            logger.info(f"Successfully uninstalled tool: {tool.tool_agent_id}")

        logger.info("All tools uninstalled successfully")

    def uninstall_tool(self, tool: InstalledTool) -> None:
        """
        Stop, run the uninstall command, and clean up one tool.

        A missing executable is treated as already uninstalled and does not fail.

        :raises ToolUninstallError: if stopping, argument resolution, or the uninstall command fails
        """
        tool_agent_id = tool.tool_agent_id

        logger.info(f"Stopping tool process before uninstallation: {tool_agent_id}")
        self._step(tool, STEP_STOP_PROCESS, self.tool_kill_service.stop_installed_tool, tool)

        for process_name in self.auxiliary_policy.processes_for(tool):
            logger.info(f"Stopping {process_name} for tool: {tool_agent_id}")
            self._step(tool, STEP_STOP_AUXILIARY_PROCESS, self.tool_kill_service.stop_asset,
                       process_name, tool_agent_id)
            logger.info(f"Successfully stopped {process_name} for tool: {tool_agent_id}")

        if tool.uninstallation_command_args:
            self._run_uninstall_command(tool)
        else:
            logger.info(f"No uninstallation command provided for tool: {tool_agent_id}")

        self._cleanup_gui_app_bundle(tool)

    def _step(self, tool: InstalledTool, step: str, func: Callable, *args):
        try:
            return func(*args)
        except Exception as e:
            raise ToolUninstallError(tool.tool_agent_id, step, e) from e

    def _run_uninstall_command(self, tool: InstalledTool):
        tool_agent_id = tool.tool_agent_id

        processed_args: List[str] = self._step(
            tool, STEP_RESOLVE_ARGS,
            self.command_params_resolver.process, tool_agent_id, list(tool.uninstallation_command_args)
        )
        logger.debug(f"Processed uninstallation args for {tool_agent_id}: {processed_args}")

        agent_path = self._step(
            tool, STEP_RESOLVE_EXECUTABLE,
            self.directory_manager.get_tool_executable_path, tool_agent_id, tool.executable_path
        )
        if not os.path.exists(agent_path):
            logger.warning(f"Tool executable not found at {agent_path}, treating {tool_agent_id} as already removed")
            return

        logger.info(f"Running uninstallation command for tool: {tool_agent_id}")
        result = self._step(tool, STEP_RUN_UNINSTALL, self.run, [str(agent_path), *processed_args])

        if not result.ok:
            error = ExternalProcessError(
                result.command, result.returncode, result.stdout, result.stderr,
                description=f"Uninstallation command for {tool_agent_id}"
            )
            raise ToolUninstallError(tool_agent_id, STEP_RUN_UNINSTALL, error) from error

        logger.info(f"Uninstallation command executed successfully for tool: {tool_agent_id}\nstdout: {result.stdout}")

    def _cleanup_gui_app_bundle(self, tool: InstalledTool):
        """Delete the application bundle of a GUI app tool. Failures are logged only."""
        if not tool.is_gui_app or not self.platform.supports_app_bundles:
            return
        if not tool.executable_path:
            logger.warning(f"No executable path recorded for GUI app {tool.tool_agent_id}, skipping bundle cleanup")
            return

        app_bundle = self.platform.find_app_bundle(tool.executable_path)
        if app_bundle is None:
            logger.warning(f"Could not find app bundle in path: {tool.executable_path}")
            return

        if not app_bundle.exists():
            logger.info(f"App bundle already removed: {app_bundle}")
            return

        logger.info(f"Removing app bundle: {app_bundle}")
        try:
            shutil.rmtree(app_bundle)
            logger.info(f"Successfully removed app bundle: {app_bundle}")
        except OSError as e:
            logger.warning(f"Failed to remove app bundle {app_bundle}: {e}")
