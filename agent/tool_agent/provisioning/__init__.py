"""
Provisioning of tool content from downloaded packages.
"""
from tool_agent.provisioning.disk_image import DiskImageProvisioner

__all__ = [
    'DiskImageProvisioner'
]
