"""全局枚举类型定义。

与设备编排语义相关的枚举集中于此，供各层引用。
"""

from __future__ import annotations

import sys
from enum import Enum


# ── 枚举基类 ──


class BaseEnum(Enum):
    """提供更友好的中文报错信息。"""

    @classmethod
    def _missing_(cls, value: object) -> None:
        supported = ", ".join(str(m.value) for m in cls)
        raise ValueError(f'"{value}" 不是合法的 {cls.__name__} 取值。 支持: [{supported}]')


class StrEnum(str, BaseEnum):
    """字符串枚举基类。"""


# ── 系统 / 环境 ──


class OSType(StrEnum):
    """操作系统类型。"""

    windows = "Windows"
    linux = "linux"
    macos = "macOS"

    @classmethod
    def auto(cls) -> OSType:
        """根据当前运行环境自动检测。"""
        if sys.platform.startswith("win"):
            return cls.windows
        if sys.platform == "darwin":
            return cls.macos
        if sys.platform.startswith("linux"):
            return cls.linux
        raise ValueError(f"不支持的操作系统: {sys.platform}")


# ── 设备交互 ──


class SwipeDirection(StrEnum):
    """滑动方向。封闭枚举，没有默认值。"""

    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @property
    def is_vertical(self) -> bool:
        return self in (SwipeDirection.up, SwipeDirection.down)


class LaunchStep(StrEnum):
    """启动应用流程中失败的步骤。"""

    not_running = "not_running"
    """目标模拟器未运行"""
    package_not_found = "package_not_found"
    """设备上未安装该包"""
    entry_point_unresolved = "entry_point_unresolved"
    """无法解析入口 Activity"""
    start_failed = "start_failed"
    """am start 命令失败"""


class PackageSection(StrEnum):
    """``sdkmanager --list`` 输出中的分段。"""

    installed = "installed"
    available = "available"
    updates = "updates"
