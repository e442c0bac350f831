"""
Registry record of a tool installed on this device, and the console session owner.
"""
from typing import Optional, Tuple

from .download_configuration import DescriptorModel, InstallationType
from .tool_installation_message import ToolInstallationMessage


class InstalledTool(DescriptorModel):
    tool_agent_id: str
    installation_type: InstallationType = InstallationType.STANDARD
    executable_path: Optional[str] = None
    uninstallation_command_args: Optional[Tuple[str, ...]] = None

    @property
    def is_gui_app(self) -> bool:
        return self.installation_type == InstallationType.GUI_APP

    @classmethod
    def from_installation_message(cls, message: ToolInstallationMessage,
                                  executable_path: Optional[str] = None) -> 'InstalledTool':
        """
        Build the record persisted after a directive has been installed.

        The installation type is taken from the download configuration that
        matches the running OS, STANDARD when none matches.
        """
        configuration = message.download_configuration_for_current_os()
        return cls(
            tool_agent_id=message.tool_agent_id,
            installation_type=configuration.installation_type if configuration else InstallationType.STANDARD,
            executable_path=executable_path,
            uninstallation_command_args=message.uninstallation_command_args,
        )


class ConsoleUser(DescriptorModel):
    """Owner of the interactive console session. Resolved per call, never cached."""

    username: str
    uid: int
