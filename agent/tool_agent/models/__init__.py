"""
Descriptor models for tools, their assets, and installed tool records.
"""
from .os_match import current_os_name, os_matches
from .download_configuration import DownloadConfiguration, InstallationType
from .tool_installation_message import (
    Asset,
    AssetSource,
    LocalFilenameConfig,
    SessionType,
    ToolInstallationMessage
)
from .installed_tool import ConsoleUser, InstalledTool

__all__ = [
    'current_os_name',
    'os_matches',
    'DownloadConfiguration',
    'InstallationType',
    'Asset',
    'AssetSource',
    'LocalFilenameConfig',
    'SessionType',
    'ToolInstallationMessage',
    'ConsoleUser',
    'InstalledTool'
]
