"""
Platform capabilities for the Tool Agent.
"""
from tool_agent.system.bundles import DEFAULT_BUNDLE_SUFFIX, find_app_bundle
from tool_agent.system.capabilities import (
    PlatformCapabilities,
    detect_platform_capabilities,
    get_platform_capabilities
)
from tool_agent.system.launch_strategies import (
    LaunchStrategy,
    LaunchctlAsUserStrategy,
    SudoAsUserStrategy
)

__all__ = [
    'DEFAULT_BUNDLE_SUFFIX',
    'find_app_bundle',
    'PlatformCapabilities',
    'detect_platform_capabilities',
    'get_platform_capabilities',
    'LaunchStrategy',
    'LaunchctlAsUserStrategy',
    'SudoAsUserStrategy'
]
