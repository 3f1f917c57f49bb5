"""测试 emulator.env 模块。"""

from __future__ import annotations

import os
from pathlib import Path

from avdmcp.emulator.env import AndroidPaths, android_env
from avdmcp.types import OSType

HOME = Path("/opt/android-sdk")


class TestAndroidPaths:
    def test_posix_layout(self):
        paths = AndroidPaths(HOME, OSType.linux)
        assert paths.adb == HOME / "platform-tools" / "adb"
        assert paths.emulator == HOME / "emulator" / "emulator"
        assert paths.avdmanager == HOME / "cmdline-tools" / "latest" / "bin" / "avdmanager"
        assert paths.sdkmanager == HOME / "cmdline-tools" / "latest" / "bin" / "sdkmanager"

    def test_macos_same_as_linux(self):
        assert AndroidPaths(HOME, OSType.macos).adb == AndroidPaths(HOME, OSType.linux).adb

    def test_windows_suffixes(self):
        paths = AndroidPaths(HOME, OSType.windows)
        assert paths.adb.name == "adb.exe"
        assert paths.emulator.name == "emulator.exe"
        assert paths.avdmanager.name == "avdmanager.bat"
        assert paths.sdkmanager.name == "sdkmanager.bat"


class TestAndroidEnv:
    def test_sets_sdk_vars(self):
        env = android_env(HOME, {"PATH": "/usr/bin", "FOO": "bar"})
        assert env["ANDROID_HOME"] == str(HOME)
        assert env["ANDROID_SDK_ROOT"] == str(HOME)
        assert env["FOO"] == "bar"

    def test_path_prefixed_in_order(self):
        env = android_env(HOME, {"PATH": "/usr/bin"})
        parts = env["PATH"].split(os.pathsep)
        assert parts == [
            str(HOME / "platform-tools"),
            str(HOME / "cmdline-tools" / "latest" / "bin"),
            str(HOME / "emulator"),
            "/usr/bin",
        ]

    def test_empty_path(self):
        env = android_env(HOME, {})
        assert env["PATH"].split(os.pathsep)[-1] == str(HOME / "emulator")

    def test_base_not_mutated(self):
        base = {"PATH": "/usr/bin"}
        android_env(HOME, base)
        assert base == {"PATH": "/usr/bin"}

    def test_defaults_to_process_env(self, monkeypatch):
        monkeypatch.setenv("AVDMCP_TEST_MARKER", "1")
        env = android_env(HOME)
        assert env["AVDMCP_TEST_MARKER"] == "1"
        assert AndroidPaths(HOME).environment()["AVDMCP_TEST_MARKER"] == "1"
