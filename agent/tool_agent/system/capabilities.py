"""
Platform capability interface.

Every platform-conditional mechanic (disk images, per-user preferences,
application bundles, console session lookup and launching) goes through a
:class:`PlatformCapabilities` instance chosen once by
:func:`get_platform_capabilities`. The base class is the no-op variant:
it reports every optional capability as unsupported.
"""
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from tool_agent.errors import PlatformUnsupportedError
from tool_agent.system.bundles import DEFAULT_BUNDLE_SUFFIX
from tool_agent.utils import CommandRunner, get_logger, run_command

if TYPE_CHECKING:
    from tool_agent.system.launch_strategies import LaunchStrategy

logger = get_logger(__name__)


class PlatformCapabilities:
    """Platform operations with no-op or unsupported defaults."""

    name = "generic"
    supports_disk_images = False
    supports_user_preferences = False
    supports_app_bundles = False
    superuser_name = "root"

    def __init__(self, runner: CommandRunner = run_command):
        self.run = runner

    # === DISK IMAGES ===

    def mount_image(self, image_path: str, mount_point: str) -> None:
        raise PlatformUnsupportedError(f"Disk image mounting is not supported on {self.name}")

    def unmount_image(self, mount_point: str) -> None:
        raise PlatformUnsupportedError(f"Disk image unmounting is not supported on {self.name}")

    def copy_recursive(self, source: str, target_dir: str) -> None:
        """
        Copy source into target_dir, keeping the source's base name.
        Symlinks are copied as links.
        """
        destination = os.path.join(target_dir, os.path.basename(os.path.normpath(source)))
        logger.info(f"Copying {source} -> {destination}")
        if os.path.isdir(source) and not os.path.islink(source):
            shutil.copytree(source, destination, symlinks=True)
        else:
            shutil.copy2(source, destination, follow_symlinks=False)

    # === CONSOLE SESSION ===

    def console_owner(self) -> Optional[str]:
        """Username owning the console device, None when it cannot be determined."""
        return None

    def lookup_uid(self, username: str) -> Optional[int]:
        return None

    def launch_strategies(self) -> List['LaunchStrategy']:
        """Launch strategies in rank order; empty when launching as another user is unsupported."""
        return []

    # === PREFERENCES ===

    def write_user_preference(self, username: str, domain_id: str, key: str, value: str) -> None:
        raise PlatformUnsupportedError(f"Per-user preferences are not supported on {self.name}")

    def read_user_preference(self, username: str, domain_id: str, key: str) -> Optional[str]:
        raise PlatformUnsupportedError(f"Per-user preferences are not supported on {self.name}")

    # === BUNDLES ===

    def find_app_bundle(self, path: str) -> Optional[Path]:
        return None


_capabilities: Optional[PlatformCapabilities] = None


def detect_platform_capabilities(bundle_suffix: str = DEFAULT_BUNDLE_SUFFIX) -> PlatformCapabilities:
    """
    Build the capability implementation for the running OS.

    :param bundle_suffix: Directory suffix of application bundles where bundles exist
    """
    if sys.platform == "darwin":
        from tool_agent.system.macos import MacOSCapabilities
        return MacOSCapabilities(bundle_suffix=bundle_suffix)
    if sys.platform == "win32":
        from tool_agent.system.windows_utils import WindowsCapabilities
        return WindowsCapabilities()
    if os.name == "posix":
        from tool_agent.system.posix import PosixCapabilities
        return PosixCapabilities()
    return PlatformCapabilities()


def get_platform_capabilities() -> PlatformCapabilities:
    """
    Shared capability instance for this process, detected on first use.

    :rtype: PlatformCapabilities
    """
    global _capabilities
    if _capabilities is None:
        _capabilities = detect_platform_capabilities()
        logger.info(f"Using platform capabilities: {_capabilities.name}")
    return _capabilities
