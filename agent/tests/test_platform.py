"""
Tests for bundle resolution, launch strategies and the macOS capability commands.
"""
import subprocess
import sys
from pathlib import Path

import pytest

from conftest import ScriptedRunner
from tool_agent.errors import ExternalProcessError, PlatformUnsupportedError
from tool_agent.models import ConsoleUser
from tool_agent.session import ConsoleSessionBridge
from tool_agent.system import (
    LaunchctlAsUserStrategy,
    PlatformCapabilities,
    SudoAsUserStrategy,
    capabilities,
    detect_platform_capabilities,
    find_app_bundle,
)
from tool_agent.system.macos import MacOSCapabilities
from tool_agent.utils import CommandResult

ALICE = ConsoleUser(username="alice", uid=501)


class FakeProcess:
    pid = 4242


# ── find_app_bundle ─────────────────────────────────────────────────


class TestFindAppBundle:
    def test_executable_inside_bundle(self):
        assert find_app_bundle("/Applications/Tool.app/Contents/MacOS/tool") == Path("/Applications/Tool.app")

    def test_nearest_bundle_wins(self):
        path = "/Applications/Outer.app/Contents/Helpers/Inner.app/Contents/MacOS/inner"
        assert find_app_bundle(path) == Path("/Applications/Outer.app/Contents/Helpers/Inner.app")

    def test_path_is_bundle(self):
        assert find_app_bundle("/Applications/Tool.app") == Path("/Applications/Tool.app")

    def test_not_in_bundle(self):
        assert find_app_bundle("/usr/local/bin/tool") is None

    def test_bare_suffix_is_not_a_bundle(self):
        assert find_app_bundle("/opt/.app/tool") is None

    def test_custom_suffix(self):
        assert find_app_bundle("/opt/Tool.bundle/bin/tool", ".bundle") == Path("/opt/Tool.bundle")


# ── launch strategies ───────────────────────────────────────────────


class TestLaunchctlAsUserStrategy:
    def test_plain_executable(self):
        command = LaunchctlAsUserStrategy().build_command("/opt/tools/agent", ["--serve", "1"], ALICE)
        assert command == ["launchctl", "asuser", "501", "/opt/tools/agent", "--serve", "1"]

    def test_bundle_opened_with_args(self):
        command = LaunchctlAsUserStrategy().build_command(
            "/Applications/Tool.app/Contents/MacOS/tool", ["--tray"], ALICE)
        assert command == ["launchctl", "asuser", "501", "open", "/Applications/Tool.app", "--args", "--tray"]

    def test_bundle_opened_without_args(self):
        command = LaunchctlAsUserStrategy().build_command("/Applications/Tool.app/Contents/MacOS/tool", [], ALICE)
        assert command == ["launchctl", "asuser", "501", "open", "/Applications/Tool.app"]

    def test_nested_bundle_opens_nearest(self):
        command = LaunchctlAsUserStrategy().build_command(
            "/Applications/Outer.app/Contents/Helpers/Inner.app/Contents/MacOS/inner", [], ALICE)
        assert command[-1] == "/Applications/Outer.app/Contents/Helpers/Inner.app"

    def test_attempt_launch_pipes_output(self):
        calls = []

        def spawner(command, **kwargs):
            calls.append((command, kwargs))
            return FakeProcess()

        LaunchctlAsUserStrategy(spawner=spawner).attempt_launch("/opt/tools/agent", [], ALICE)

        ((command, kwargs),) = calls
        assert command == ["launchctl", "asuser", "501", "/opt/tools/agent"]
        assert kwargs == {"stdout": subprocess.PIPE, "stderr": subprocess.PIPE}


def test_sudo_strategy_never_opens_bundles():
    command = SudoAsUserStrategy().build_command("/Applications/Tool.app/Contents/MacOS/tool", ["-v"], ALICE)
    assert command == ["sudo", "-u", "alice", "/Applications/Tool.app/Contents/MacOS/tool", "-v"]


# ── generic and macOS capabilities ──────────────────────────────────


class TestGenericCapabilities:
    def test_optional_features_unsupported(self):
        platform = PlatformCapabilities()
        assert not platform.supports_disk_images
        assert not platform.supports_user_preferences
        assert not platform.supports_app_bundles
        assert platform.launch_strategies() == []
        assert platform.find_app_bundle("/Applications/Tool.app/Contents/MacOS/tool") is None

    def test_mount_raises(self):
        with pytest.raises(PlatformUnsupportedError):
            PlatformCapabilities().mount_image("/tmp/x.dmg", "/tmp/mnt")

    def test_copy_recursive_keeps_base_name_and_links(self, tmp_path):
        source = tmp_path / "src" / "Tool.app"
        (source / "Contents").mkdir(parents=True)
        (source / "Contents" / "Info.plist").write_text("plist")
        (source / "Current").symlink_to("Contents")
        target = tmp_path / "dst"
        target.mkdir()

        PlatformCapabilities().copy_recursive(str(source), str(target))

        assert (target / "Tool.app" / "Contents" / "Info.plist").read_text() == "plist"
        assert (target / "Tool.app" / "Current").is_symlink()


def test_detect_macos(monkeypatch):
    monkeypatch.setattr(capabilities.sys, "platform", "darwin")
    platform = detect_platform_capabilities(".bundle")
    assert isinstance(platform, MacOSCapabilities)
    assert platform.bundle_suffix == ".bundle"


class TestMacOSCapabilities:
    def test_mount_command(self):
        runner = ScriptedRunner()
        MacOSCapabilities(runner=runner).mount_image("/tmp/a.dmg", "/tmp/mnt_a")
        assert runner.calls == [
            ["hdiutil", "attach", "-nobrowse", "-readonly", "-mountpoint", "/tmp/mnt_a", "/tmp/a.dmg"]
        ]

    def test_unmount_failure(self):
        runner = ScriptedRunner({"hdiutil detach": CommandResult([], 16, "", "Resource busy")})
        with pytest.raises(ExternalProcessError) as exc_info:
            MacOSCapabilities(runner=runner).unmount_image("/tmp/mnt_a")
        assert exc_info.value.returncode == 16
        assert "Resource busy" in str(exc_info.value)

    def test_console_user_resolution(self):
        runner = ScriptedRunner({
            "stat -f": CommandResult([], 0, "alice", ""),
            "id -u": CommandResult([], 0, "501", ""),
        })
        user = ConsoleSessionBridge(MacOSCapabilities(runner=runner)).get_console_user()
        assert user == ALICE
        assert runner.calls == [["stat", "-f", "%Su", "/dev/console"], ["id", "-u", "alice"]]

    def test_console_owned_by_root(self):
        runner = ScriptedRunner({"stat -f": CommandResult([], 0, "root", "")})
        assert ConsoleSessionBridge(MacOSCapabilities(runner=runner)).get_console_user() is None
        assert len(runner.calls) == 1

    def test_uid_with_unexpected_output(self):
        runner = ScriptedRunner({"id -u": CommandResult([], 0, "no such user", "")})
        assert MacOSCapabilities(runner=runner).lookup_uid("ghost") is None

    def test_write_preference(self):
        runner = ScriptedRunner()
        MacOSCapabilities(runner=runner).write_user_preference("alice", "com.example.tool", "serverUrl", "https://x")
        assert runner.calls == [
            ["sudo", "-u", "alice", "defaults", "write", "com.example.tool", "serverUrl", "https://x"]
        ]

    def test_write_preference_failure(self):
        runner = ScriptedRunner({"sudo -u": CommandResult([], 1, "", "Could not write domain")})
        with pytest.raises(ExternalProcessError, match="Could not write domain"):
            MacOSCapabilities(runner=runner).write_user_preference("alice", "com.example.tool", "k", "v")

    def test_read_preference(self):
        runner = ScriptedRunner({"sudo -u": CommandResult([], 0, "https://x", "")})
        value = MacOSCapabilities(runner=runner).read_user_preference("alice", "com.example.tool", "serverUrl")
        assert value == "https://x"
        assert runner.calls[0][3:] == ["defaults", "read", "com.example.tool", "serverUrl"]

    def test_read_missing_preference(self):
        runner = ScriptedRunner({"sudo -u": CommandResult([], 1, "", "does not exist")})
        assert MacOSCapabilities(runner=runner).read_user_preference("alice", "com.example.tool", "x") is None

    def test_launch_strategies_ranked(self):
        strategies = MacOSCapabilities(bundle_suffix=".bundle").launch_strategies()
        assert [type(s) for s in strategies] == [LaunchctlAsUserStrategy, SudoAsUserStrategy]
        assert strategies[0].bundle_suffix == ".bundle"


@pytest.mark.skipif(sys.platform == "win32", reason="pwd is POSIX only")
class TestPosixCapabilities:
    @pytest.fixture
    def posix(self):
        from tool_agent.system import posix
        return posix

    def test_console_owner_from_device(self, posix, monkeypatch):
        monkeypatch.setattr(posix.os, "stat", lambda path: type("Stat", (), {"st_uid": 1000})())
        monkeypatch.setattr(posix.pwd, "getpwuid", lambda uid: type("Pw", (), {"pw_name": "alice"})())
        assert posix.PosixCapabilities().console_owner() == "alice"

    def test_console_device_unreadable(self, posix, monkeypatch):
        def failing_stat(path):
            raise FileNotFoundError(path)

        monkeypatch.setattr(posix.os, "stat", failing_stat)
        assert posix.PosixCapabilities().console_owner() is None

    def test_unknown_user(self, posix):
        assert posix.PosixCapabilities().lookup_uid("no-such-user-for-tool-agent") is None

    def test_sudo_only(self, posix):
        strategies = posix.PosixCapabilities().launch_strategies()
        assert [type(s) for s in strategies] == [SudoAsUserStrategy]
        assert not posix.PosixCapabilities().supports_disk_images


class TestMacOSHelpersUnavailable:
    @staticmethod
    def _missing_program(command):
        raise FileNotFoundError(2, "No such file or directory", command[0])

    def test_console_owner(self):
        assert MacOSCapabilities(runner=self._missing_program).console_owner() is None

    def test_lookup_uid(self):
        assert MacOSCapabilities(runner=self._missing_program).lookup_uid("alice") is None

    def test_no_console_user(self):
        bridge = ConsoleSessionBridge(MacOSCapabilities(runner=self._missing_program))
        assert bridge.get_console_user() is None

    def test_preferences_report_missing_session(self):
        from tool_agent.errors import SessionUnavailableError
        from tool_agent.preferences import PreferencesWriter

        platform = MacOSCapabilities(runner=self._missing_program)
        with pytest.raises(SessionUnavailableError):
            PreferencesWriter(ConsoleSessionBridge(platform)).write("com.example.tool", [("a", "1")])
