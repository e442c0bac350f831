"""
Shared test fixtures: fake platform capabilities, a scripted command runner,
and in-memory collaborators for the uninstall orchestrator.
"""
import os
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from tool_agent.core import CommandParamsResolver, DirectoryManager, InstalledToolsRegistry, ToolKillService
from tool_agent.errors import ExternalProcessError
from tool_agent.models import InstalledTool
from tool_agent.system import PlatformCapabilities, find_app_bundle
from tool_agent.utils import CommandResult


class ScriptedRunner:
    """Command runner returning canned results keyed by the program name."""

    def __init__(self, results: Optional[Dict[str, CommandResult]] = None):
        self.results = results or {}
        self.calls: List[List[str]] = []

    def __call__(self, command: Sequence[str]) -> CommandResult:
        command = [str(part) for part in command]
        self.calls.append(command)
        for key in (' '.join(command[:2]), command[0]):
            if key in self.results:
                canned = self.results[key]
                return CommandResult(command, canned.returncode, canned.stdout, canned.stderr)
        return CommandResult(command, 0, "", "")


class FakePlatform(PlatformCapabilities):
    """
    In-process platform: "mounting" copies image_source into the mount point,
    preferences are kept in a dict, the console owner is a plain attribute.
    """

    name = "fake"

    def __init__(self, image_source: Optional[Path] = None, console_user: Optional[str] = "alice",
                 uid: Optional[int] = 501, strategies: Optional[list] = None,
                 supports_disk_images: bool = True, supports_user_preferences: bool = True,
                 supports_app_bundles: bool = True):
        super().__init__(runner=ScriptedRunner())
        self.image_source = image_source
        self.console_user = console_user
        self.uid = uid
        self.strategies = strategies if strategies is not None else []
        self.supports_disk_images = supports_disk_images
        self.supports_user_preferences = supports_user_preferences
        self.supports_app_bundles = supports_app_bundles
        self.preferences: Dict[tuple, str] = {}
        self.preference_writes: List[tuple] = []
        self.failing_preference_keys: set = set()
        self.mount_calls: List[tuple] = []
        self.unmount_calls: List[str] = []
        self.copy_calls: List[tuple] = []
        self.fail_mount = False
        self.fail_unmount = False
        self.fail_copy = False
        self.console_owner_calls = 0

    def mount_image(self, image_path: str, mount_point: str) -> None:
        self.mount_calls.append((image_path, mount_point))
        assert os.path.isfile(image_path)
        assert os.path.isdir(mount_point)
        if self.fail_mount:
            raise ExternalProcessError(["hdiutil", "attach"], 1, "", "image not recognized")
        for entry in self.image_source.iterdir():
            if entry.is_dir():
                shutil.copytree(entry, os.path.join(mount_point, entry.name), symlinks=True)
            else:
                shutil.copy2(entry, os.path.join(mount_point, entry.name))

    def unmount_image(self, mount_point: str) -> None:
        self.unmount_calls.append(mount_point)
        if self.fail_unmount:
            raise ExternalProcessError(["hdiutil", "detach"], 16, "", "resource busy")
        for entry in os.listdir(mount_point):
            path = os.path.join(mount_point, entry)
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.remove(path)

    def copy_recursive(self, source: str, target_dir: str) -> None:
        self.copy_calls.append((source, target_dir))
        if self.fail_copy:
            raise ExternalProcessError(["cp", "-R", source, target_dir], 1, "", "No space left on device")
        super().copy_recursive(source, target_dir)

    def console_owner(self) -> Optional[str]:
        self.console_owner_calls += 1
        return self.console_user

    def lookup_uid(self, username: str) -> Optional[int]:
        return self.uid

    def launch_strategies(self) -> list:
        return list(self.strategies)

    def write_user_preference(self, username: str, domain_id: str, key: str, value: str) -> None:
        self.preference_writes.append((username, domain_id, key, value))
        if key in self.failing_preference_keys:
            raise ExternalProcessError(["defaults", "write", domain_id, key, value], 1, "", "write failed")
        self.preferences[(username, domain_id, key)] = value

    def read_user_preference(self, username: str, domain_id: str, key: str) -> Optional[str]:
        return self.preferences.get((username, domain_id, key))

    def find_app_bundle(self, path: str) -> Optional[Path]:
        return find_app_bundle(path)


class FakeRegistry(InstalledToolsRegistry):
    def __init__(self, tools: Optional[List[InstalledTool]] = None, error: Optional[Exception] = None):
        self.tools = tools or []
        self.error = error

    def get_all(self) -> List[InstalledTool]:
        if self.error:
            raise self.error
        return list(self.tools)


class RecordingResolver(CommandParamsResolver):
    def __init__(self, events: List[tuple], failing_tools: Sequence[str] = ()):
        self.events = events
        self.failing_tools = set(failing_tools)

    def process(self, tool_agent_id: str, args: Sequence[str]) -> List[str]:
        self.events.append(("resolve", tool_agent_id, list(args)))
        if tool_agent_id in self.failing_tools:
            raise ValueError(f"unknown placeholder in {args}")
        return [arg.replace("${toolAgentId}", tool_agent_id) for arg in args]


class RecordingKillService(ToolKillService):
    def __init__(self, events: List[tuple], failing_tools: Sequence[str] = (), failing_assets: Sequence[str] = ()):
        self.events = events
        self.failing_tools = set(failing_tools)
        self.failing_assets = set(failing_assets)

    def stop_installed_tool(self, tool: InstalledTool) -> None:
        self.events.append(("stop", tool.tool_agent_id))
        if tool.tool_agent_id in self.failing_tools:
            raise RuntimeError(f"process of {tool.tool_agent_id} did not exit")

    def stop_asset(self, process_name: str, tool_agent_id: str) -> None:
        self.events.append(("stop_asset", process_name, tool_agent_id))
        if process_name in self.failing_assets:
            raise RuntimeError(f"{process_name} did not exit")


class FakeDirectoryManager(DirectoryManager):
    def __init__(self, tools_dir: Path):
        self.tools_dir = tools_dir

    def get_tool_executable_path(self, tool_agent_id: str, executable_path: Optional[str] = None) -> Path:
        if executable_path:
            return Path(executable_path)
        return self.tools_dir / tool_agent_id / "agent"


class RecordingRunner:
    """Uninstall command runner recording calls into the shared event list."""

    def __init__(self, events: List[tuple], results: Optional[Dict[str, CommandResult]] = None):
        self.events = events
        self.results = results or {}

    def __call__(self, command: Sequence[str]) -> CommandResult:
        command = [str(part) for part in command]
        self.events.append(("run", command))
        canned = self.results.get(command[0])
        if canned is None:
            return CommandResult(command, 0, "uninstalled", "")
        return CommandResult(command, canned.returncode, canned.stdout, canned.stderr)


@pytest.fixture
def image_source(tmp_path: Path) -> Path:
    """Directory standing in for the content of a disk image."""
    source = tmp_path / "image_content"
    bundle = source / "Tool.app" / "Contents" / "MacOS"
    bundle.mkdir(parents=True)
    (bundle / "tool").write_text("#!/bin/sh\necho new\n")
    (source / "README.txt").write_text("read me")
    return source


@pytest.fixture
def fake_platform(image_source: Path) -> FakePlatform:
    return FakePlatform(image_source=image_source)


@pytest.fixture
def events() -> List[tuple]:
    return []


@pytest.fixture
def make_executable(tmp_path: Path) -> Callable[[str], Path]:
    """Create an (empty) executable file under tmp_path and return its path."""

    def _make(relative_path: str) -> Path:
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\nexit 0\n")
        path.chmod(0o755)
        return path

    return _make
