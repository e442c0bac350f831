"""
macOS implementation of the platform capabilities.
"""
from pathlib import Path
from typing import List, Optional

from tool_agent.system.bundles import DEFAULT_BUNDLE_SUFFIX, find_app_bundle
from tool_agent.system.capabilities import PlatformCapabilities
from tool_agent.system.launch_strategies import LaunchctlAsUserStrategy, LaunchStrategy, SudoAsUserStrategy
from tool_agent.utils import CommandRunner, get_logger, run_command

logger = get_logger(__name__)

CONSOLE_DEVICE = "/dev/console"


class MacOSCapabilities(PlatformCapabilities):
    """Disk images via hdiutil, preferences via defaults, sessions via launchctl."""

    name = "macos"
    supports_disk_images = True
    supports_user_preferences = True
    supports_app_bundles = True

    def __init__(self, runner: CommandRunner = run_command, bundle_suffix: str = DEFAULT_BUNDLE_SUFFIX):
        super().__init__(runner)
        self.bundle_suffix = bundle_suffix

    def mount_image(self, image_path: str, mount_point: str) -> None:
        self.run(["hdiutil", "attach", "-nobrowse", "-readonly", "-mountpoint", mount_point, image_path]) \
            .raise_for_status("hdiutil attach")
        logger.info(f"Mounted {image_path} at {mount_point}")

    def unmount_image(self, mount_point: str) -> None:
        self.run(["hdiutil", "detach", "-quiet", mount_point]).raise_for_status("hdiutil detach")
        logger.info(f"Unmounted {mount_point}")

    def copy_recursive(self, source: str, target_dir: str) -> None:
        self.run(["cp", "-R", source, target_dir]).raise_for_status("cp -R")

    def console_owner(self) -> Optional[str]:
        try:
            result = self.run(["stat", "-f", "%Su", CONSOLE_DEVICE])
        except OSError as e:
            logger.warning(f"Could not run stat on {CONSOLE_DEVICE}: {e}")
            return None
        if not result.ok:
            logger.warning(f"Could not read owner of {CONSOLE_DEVICE}: {result.stderr}")
            return None
        return result.stdout.strip() or None

    def lookup_uid(self, username: str) -> Optional[int]:
        try:
            result = self.run(["id", "-u", username])
        except OSError as e:
            logger.warning(f"Could not run id for {username}: {e}")
            return None
        if not result.ok:
            logger.warning(f"Could not look up UID of {username}: {result.stderr}")
            return None
        try:
            return int(result.stdout.strip())
        except ValueError:
            logger.warning(f"Unexpected output from 'id -u {username}': {result.stdout!r}")
            return None

    def launch_strategies(self) -> List[LaunchStrategy]:
        return [LaunchctlAsUserStrategy(self.bundle_suffix), SudoAsUserStrategy()]

    def write_user_preference(self, username: str, domain_id: str, key: str, value: str) -> None:
        self.run(["sudo", "-u", username, "defaults", "write", domain_id, key, value]) \
            .raise_for_status(f"defaults write for '{key}'")

    def read_user_preference(self, username: str, domain_id: str, key: str) -> Optional[str]:
        result = self.run(["sudo", "-u", username, "defaults", "read", domain_id, key])
        if not result.ok:
            logger.debug(f"defaults read {domain_id} {key} returned {result.returncode}: {result.stderr}")
            return None
        return result.stdout

    def find_app_bundle(self, path: str) -> Optional[Path]:
        return find_app_bundle(path, self.bundle_suffix)
