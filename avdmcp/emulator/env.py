"""Android SDK 工具路径与子进程环境。

SDK 目录结构::

    <ANDROID_HOME>/
    ├── cmdline-tools/latest/bin/   avdmanager, sdkmanager
    ├── emulator/                   emulator
    └── platform-tools/             adb

Windows 下 ``avdmanager`` / ``sdkmanager`` 是 ``.bat`` 脚本，``adb`` / ``emulator`` 是 ``.exe``。
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from avdmcp.types import OSType


def _tool_dirs(home: Path) -> list[Path]:
    return [
        home / "platform-tools",
        home / "cmdline-tools" / "latest" / "bin",
        home / "emulator",
    ]


@dataclass(frozen=True, slots=True)
class AndroidPaths:
    """SDK 根目录及四个命令行工具的可执行文件路径。

    路径只做拼接，不检查是否存在：工具缺失会在执行时以 :class:`CommandError` 暴露。
    """

    home: Path
    os_type: OSType = OSType.linux

    def _exe(self, *parts: str, suffix: str) -> Path:
        path = self.home.joinpath(*parts)
        if self.os_type == OSType.windows:
            path = path.with_name(path.name + suffix)
        return path

    @property
    def adb(self) -> Path:
        return self._exe("platform-tools", "adb", suffix=".exe")

    @property
    def emulator(self) -> Path:
        return self._exe("emulator", "emulator", suffix=".exe")

    @property
    def avdmanager(self) -> Path:
        return self._exe("cmdline-tools", "latest", "bin", "avdmanager", suffix=".bat")

    @property
    def sdkmanager(self) -> Path:
        return self._exe("cmdline-tools", "latest", "bin", "sdkmanager", suffix=".bat")

    def environment(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        return android_env(self.home, base)


def android_env(home: Path, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """构造执行 SDK 工具所需的环境变量。

    Parameters
    ----------
    home:
        SDK 根目录。
    base:
        基础环境，默认为当前进程的 ``os.environ``。

    Returns
    -------
    dict[str, str]
        ``base`` 的副本，设置了 ``ANDROID_HOME`` / ``ANDROID_SDK_ROOT``，
        并将三个工具目录置于 ``PATH`` 最前。
    """
    env = dict(os.environ if base is None else base)
    prefix = os.pathsep.join(str(d) for d in _tool_dirs(home))
    current = env.get("PATH", "")
    env["PATH"] = f"{prefix}{os.pathsep}{current}" if current else prefix
    env["ANDROID_HOME"] = str(home)
    env["ANDROID_SDK_ROOT"] = str(home)
    return env
