"""
Command-line entry point for the Tool Agent.
Exposes the provisioning and session operations for manual use and diagnostics.
"""
import argparse
import sys
from typing import List, Optional

from tool_agent.config import ConfigManager
from tool_agent.errors import ToolAgentError
from tool_agent.preferences import PreferencesWriter, args_to_pairs
from tool_agent.provisioning import DiskImageProvisioner
from tool_agent.session import ConsoleSessionBridge
from tool_agent.system import PlatformCapabilities, detect_platform_capabilities
from tool_agent.utils import get_logger, setup_logger
from tool_agent.version import __app_name__, __version__

logger = get_logger("tool_agent.main")


def _strip_separator(args: List[str]) -> List[str]:
    return args[1:] if args and args[0] == '--' else args


def _run_console_user(args: argparse.Namespace, config: ConfigManager, platform: PlatformCapabilities) -> int:
    """Handles the 'console-user' command."""
    user = ConsoleSessionBridge(platform).get_console_user()
    if user is None:
        print("No console user.")
        return 1
    print(f"{user.username} {user.uid}")
    return 0


def _run_is_running(args: argparse.Namespace, config: ConfigManager, platform: PlatformCapabilities) -> int:
    """Handles the 'is-running' command."""
    running = ConsoleSessionBridge(platform).is_process_running(args.executable)
    print("running" if running else "not running")
    return 0 if running else 1


def _run_launch(args: argparse.Namespace, config: ConfigManager, platform: PlatformCapabilities) -> int:
    """Handles the 'launch' command."""
    bridge = ConsoleSessionBridge(platform)
    process = bridge.launch_in_console_session(args.executable, _strip_separator(args.args))
    if process is None:
        print(f"{args.executable} is already running.")
    else:
        print(f"Launched {args.executable}, PID {process.pid}")
    return 0


def _run_extract_image(args: argparse.Namespace, config: ConfigManager, platform: PlatformCapabilities) -> int:
    """Handles the 'extract-image' command."""
    with open(args.image, 'rb') as f:
        image_bytes = f.read()

    provisioner = DiskImageProvisioner(platform, temp_dir=config.get('provisioning.temp_dir'))
    cleanup_warnings = provisioner.extract_all(image_bytes, args.target_dir, args.source)
    for warning in cleanup_warnings:
        print(f"WARNING: {warning}", file=sys.stderr)
    print(f"Extracted {args.image} to {args.target_dir}")
    return 0


def _run_write_prefs(args: argparse.Namespace, config: ConfigManager, platform: PlatformCapabilities) -> int:
    """Handles the 'write-prefs' command."""
    pairs = args_to_pairs(
        _strip_separator(args.args),
        config.get('preferences.flag_prefix'),
        config.get('preferences.flag_default_value')
    )
    PreferencesWriter(ConsoleSessionBridge(platform)).write(args.domain, pairs)
    print(f"Wrote {len(pairs)} preference(s) to {args.domain}")
    return 0


def _run_read_pref(args: argparse.Namespace, config: ConfigManager, platform: PlatformCapabilities) -> int:
    """Handles the 'read-pref' command."""
    value = PreferencesWriter(ConsoleSessionBridge(platform)).read(args.domain, args.key)
    if value is None:
        print(f"{args.domain} {args.key} is not set.")
        return 1
    print(value)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='tool-agent', description=f"{__app_name__} CLI.")
    parser.add_argument('--version', action='version', version=f"{__app_name__} {__version__}")
    parser.add_argument('--config', help='Path to the agent configuration JSON file.')
    parser.add_argument('--log-level', help='Console log level, overrides logging.console_level.')
    subparsers = parser.add_subparsers(dest='command', required=True, help='Available commands')

    console_parser = subparsers.add_parser('console-user', help='Print the console user and UID.')
    console_parser.set_defaults(func=_run_console_user)

    running_parser = subparsers.add_parser('is-running', help='Check whether an executable is running.')
    running_parser.add_argument('executable', help='Executable path to look for.')
    running_parser.set_defaults(func=_run_is_running)

    launch_parser = subparsers.add_parser('launch', help='Launch an executable in the console user session.')
    launch_parser.add_argument('executable', help='Executable to launch.')
    launch_parser.add_argument('args', nargs=argparse.REMAINDER, help='Arguments for the executable.')
    launch_parser.set_defaults(func=_run_launch)

    extract_parser = subparsers.add_parser('extract-image', help='Copy content out of a disk image.')
    extract_parser.add_argument('image', help='Disk image file.')
    extract_parser.add_argument('target_dir', help='Directory to copy into.')
    extract_parser.add_argument('--source', help='Path inside the image to copy instead of the whole image.')
    extract_parser.set_defaults(func=_run_extract_image)

    write_parser = subparsers.add_parser('write-prefs', help='Write flag-style arguments as user preferences.')
    write_parser.add_argument('domain', help='Preference domain (bundle identifier).')
    write_parser.add_argument('args', nargs=argparse.REMAINDER, help='Flags such as --serverUrl URL --devMode.')
    write_parser.set_defaults(func=_run_write_prefs)

    read_parser = subparsers.add_parser('read-pref', help='Read one user preference.')
    read_parser.add_argument('domain', help='Preference domain (bundle identifier).')
    read_parser.add_argument('key', help='Preference key.')
    read_parser.set_defaults(func=_run_read_pref)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and dispatch the command.

    :return: Process exit code
    :rtype: int
    """
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: Could not load configuration: {e}", file=sys.stderr)
        return 2

    setup_logger(
        name="tool_agent",
        console_level_name=args.log_level or config.get('logging.console_level'),
        file_level_name=config.get('logging.file_level'),
        log_file_path=config.get('logging.file_path'),
        max_bytes=config.get('logging.max_bytes'),
        backup_count=config.get('logging.backup_count')
    )

    try:
        platform = detect_platform_capabilities(config.get('session.bundle_suffix'))
        return args.func(args, config, platform)
    except ToolAgentError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
