"""
Install/uninstall directive received from the controller, plus the tool assets it references.
"""
from enum import Enum
from typing import Optional, Tuple

from pydantic import Field

from .download_configuration import DescriptorModel, DownloadConfiguration
from .os_match import current_os_name, os_matches


class SessionType(str, Enum):
    """Where a tool process is expected to run."""
    SERVICE = "SERVICE"
    CONSOLE = "CONSOLE"
    USER = "USER"


class AssetSource(str, Enum):
    ARTIFACTORY = "ARTIFACTORY"
    TOOL_API = "TOOL_API"
    GITHUB = "GITHUB"


class LocalFilenameConfig(DescriptorModel):
    filename: str
    os: str

    def matches_os(self, os_name: Optional[str]) -> bool:
        return os_matches(self.os, os_name)

    def matches_current_os(self) -> bool:
        return self.matches_os(current_os_name())


def _first_for_os(configurations, os_name: Optional[str]) -> Optional[DownloadConfiguration]:
    for configuration in configurations or ():
        if configuration.matches_os(os_name):
            return configuration
    return None


class Asset(DescriptorModel):
    """A sub-resource shipped alongside a tool (e.g. a helper binary)."""

    id: str
    local_filename_configuration: Tuple[LocalFilenameConfig, ...]
    source: AssetSource
    path: Optional[str] = None
    executable: bool = False
    download_configurations: Optional[Tuple[DownloadConfiguration, ...]] = None
    version: Optional[str] = None

    def local_filename_for_os(self, os_name: Optional[str]) -> Optional[str]:
        for entry in self.local_filename_configuration:
            if entry.matches_os(os_name):
                return entry.filename
        return None

    def local_filename_for_current_os(self) -> Optional[str]:
        return self.local_filename_for_os(current_os_name())

    def download_configuration_for_current_os(self) -> Optional[DownloadConfiguration]:
        return _first_for_os(self.download_configurations, current_os_name())


class ToolInstallationMessage(DescriptorModel):
    """
    Directive to install (or reinstall) a tool on this device.

    Command argument templates may contain placeholders; resolving them is
    the job of the command parameter resolver, not of this model.
    """

    tool_agent_id: str
    tool_id: str
    tool_type: str
    version: str
    reinstall: bool = False
    session_type: Optional[SessionType] = None
    download_configurations: Optional[Tuple[DownloadConfiguration, ...]] = None
    installation_command_args: Optional[Tuple[str, ...]] = None
    uninstallation_command_args: Optional[Tuple[str, ...]] = None
    run_command_args: Tuple[str, ...] = Field(default_factory=tuple)
    tool_agent_id_command_args: Optional[Tuple[str, ...]] = None
    assets: Optional[Tuple[Asset, ...]] = None

    def download_configuration_for_os(self, os_name: Optional[str]) -> Optional[DownloadConfiguration]:
        return _first_for_os(self.download_configurations, os_name)

    def download_configuration_for_current_os(self) -> Optional[DownloadConfiguration]:
        return self.download_configuration_for_os(current_os_name())
