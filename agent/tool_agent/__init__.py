"""
Tool Agent - provisioning and teardown engine.

This package installs, runs, and removes third-party management tools on
behalf of the endpoint agent service.

Main components:
- DiskImageProvisioner: Extracts content from disk images
- ConsoleSessionBridge: Finds the console user and launches processes in their session
- PreferencesWriter: Writes per-user preferences as the console user
- ToolUninstallService: Fail-fast uninstallation of all installed tools
- ConfigManager: Agent configuration
"""

from .version import __version__, __app_name__

from .config import ConfigManager

from .provisioning import DiskImageProvisioner
from .session import ConsoleSessionBridge
from .preferences import PreferencesWriter, args_to_pairs
from .core import ToolUninstallService

__all__ = [
    '__version__',
    '__app_name__',

    'ConfigManager',

    'DiskImageProvisioner',
    'ConsoleSessionBridge',
    'PreferencesWriter',
    'args_to_pairs',
    'ToolUninstallService'
]
