"""
Disk image provisioner: mounts a disk image, copies content out of it, and
always cleans up the temporary image file and mount point.
"""
import os
import shutil
import tempfile
import uuid
from typing import List, Optional

from tool_agent.errors import PartialCleanupWarning, PlatformUnsupportedError
from tool_agent.system import PlatformCapabilities, get_platform_capabilities
from tool_agent.utils import get_logger

logger = get_logger(__name__)

IMAGE_FILE_SUFFIX = ".dmg"
MOUNT_POINT_PREFIX = "mnt_"


class DiskImageProvisioner:
    """
    Extracts content from downloaded disk images.

    Each call uses its own uniquely named temporary file and mount point, so
    independent calls may run concurrently.
    """

    def __init__(self, platform: Optional[PlatformCapabilities] = None, temp_dir: Optional[str] = None):
        """
        :param platform: Capabilities to use, detected for the running OS when omitted
        :type platform: Optional[PlatformCapabilities]
        :param temp_dir: Directory for the temporary image and mount point, system temp dir when None
        :type temp_dir: Optional[str]
        """
        self.platform = platform or get_platform_capabilities()
        self.temp_dir = temp_dir

    def extract_all(self, image_bytes: bytes, target_dir: str,
                    source_path: Optional[str] = None) -> List[PartialCleanupWarning]:
        """
        Copy the image content (or one entry of it) into target_dir.

        An existing entry in target_dir with the same name as the copied
        source is removed first, so repeated extraction replaces it.

        :param image_bytes: Raw disk image content
        :type image_bytes: bytes
        :param target_dir: Directory receiving the copy, created if missing
        :type target_dir: str
        :param source_path: Path inside the image to copy; the whole mount point when None
        :type source_path: Optional[str]
        :return: Cleanup steps that failed after the copy attempt; empty when cleanup was clean
        :rtype: List[PartialCleanupWarning]
        :raises PlatformUnsupportedError: if this platform cannot mount disk images
        :raises ExternalProcessError: if mounting or copying fails
        :raises OSError: if an existing entry in target_dir cannot be replaced
        """
        if not self.platform.supports_disk_images:
            raise PlatformUnsupportedError(
                f"Disk image extraction is not supported on {self.platform.name}. Target: {target_dir}"
            )

        logger.info(f"Extracting disk image ({len(image_bytes)} bytes) to {target_dir}, source_path={source_path}")

        temp_root = self.temp_dir or tempfile.gettempdir()
        image_id = uuid.uuid4().hex
        image_path = os.path.join(temp_root, f"{image_id}{IMAGE_FILE_SUFFIX}")
        mount_point = os.path.join(temp_root, f"{MOUNT_POINT_PREFIX}{image_id}")
        logger.debug(f"Temporary image {image_path}, mount point {mount_point}")

        mounted = False
        try:
            with open(image_path, 'wb') as f:
                f.write(image_bytes)
            os.makedirs(mount_point)

            self.platform.mount_image(image_path, mount_point)
            mounted = True

            source = os.path.normpath(os.path.join(mount_point, source_path) if source_path else mount_point)
            os.makedirs(target_dir, exist_ok=True)
            self._remove_existing_destination(source, target_dir)

            logger.info(f"Copying {source} -> {target_dir}")
            self.platform.copy_recursive(source, target_dir)
            logger.info(f"Copied {os.path.basename(source)} into {target_dir}")
        except Exception as e:
            logger.warning(f"Disk image extraction failed: {e}")
            raise
        finally:
            cleanup_warnings = self._cleanup(image_path, mount_point, mounted)

        return cleanup_warnings

    def _remove_existing_destination(self, source: str, target_dir: str):
        """
        Remove a file, directory or symlink in target_dir named like source.

        :raises OSError: if the entry cannot be removed; copying over it would merge stale content
        """
        destination = os.path.join(target_dir, os.path.basename(source))
        try:
            if os.path.islink(destination) or os.path.isfile(destination):
                logger.info(f"Removing existing entry: {destination}")
                os.remove(destination)
            elif os.path.isdir(destination):
                logger.info(f"Removing existing directory: {destination}")
                shutil.rmtree(destination)
        except OSError as e:
            logger.error(f"Could not remove existing {destination}: {e}")
            raise

    def _cleanup(self, image_path: str, mount_point: str, mounted: bool) -> List[PartialCleanupWarning]:
        """Unmount and delete temporary files. Never raises."""
        warnings: List[PartialCleanupWarning] = []

        if mounted:
            try:
                self.platform.unmount_image(mount_point)
            except Exception as e:
                warnings.append(PartialCleanupWarning("unmount", mount_point, str(e)))

        if os.path.isdir(mount_point):
            try:
                os.rmdir(mount_point)
            except OSError as e:
                warnings.append(PartialCleanupWarning("remove mount point", mount_point, str(e)))

        if os.path.exists(image_path):
            try:
                os.remove(image_path)
            except OSError as e:
                warnings.append(PartialCleanupWarning("remove temporary image", image_path, str(e)))

        for warning in warnings:
            logger.warning(f"Disk image cleanup: {warning}")
        return warnings
