"""模拟器层数据模型。

所有记录都是某一时刻外部工具状态的不可变快照，本项目不缓存、不持久化。
"""

from __future__ import annotations

from dataclasses import dataclass, field

UNKNOWN = "Unknown"
"""字段缺失时使用的占位值。"""


@dataclass(frozen=True, slots=True)
class EmulatorDescriptor:
    """已配置（不一定在运行）的 AVD。

    Attributes
    ----------
    name:
        AVD 名称，在已配置设备中唯一。
    target:
        目标平台描述，例如 ``Google APIs (Google Inc.)``。
    sdk:
        与 ``target`` 相同，保留以兼容旧字段名。
    abi:
        CPU ABI，例如 ``google_apis/x86_64``。
    """

    name: str
    target: str = UNKNOWN
    sdk: str = UNKNOWN
    abi: str = UNKNOWN


@dataclass(frozen=True, slots=True)
class RunningInstance:
    """正在运行的模拟器实例。

    ``port`` 只在实例存活期间唯一，实例退出后可能被复用。
    """

    name: str
    port: str


@dataclass(frozen=True, slots=True)
class DeviceInfo:
    """运行中实例的属性快照，缺失的属性为 ``"Unknown"``。"""

    port: str
    build_version: str = UNKNOWN
    api_level: str = UNKNOWN
    device_name: str = UNKNOWN
    manufacturer: str = UNKNOWN
    architecture: str = UNKNOWN


@dataclass(frozen=True, slots=True)
class SystemImagePackage:
    """SDK 包描述（系统镜像、平台、构建工具等）。"""

    path: str
    version: str
    description: str = ""
    installed: bool = False


@dataclass(frozen=True, slots=True)
class SdkPackageList:
    """``sdkmanager --list`` 的解析结果，已安装与可安装两个集合互不相交。"""

    installed: list[SystemImagePackage] = field(default_factory=list)
    available: list[SystemImagePackage] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ScreenGeometry:
    """屏幕几何信息。

    Attributes
    ----------
    width, height:
        像素尺寸。
    scale:
        设备像素与逻辑像素之比（density / 160），未知时为 1.0。
    """

    width: int
    height: int
    scale: float = 1.0

    @property
    def center(self) -> tuple[int, int]:
        return self.width >> 1, self.height >> 1


@dataclass(frozen=True, slots=True)
class StartOptions:
    """启动模拟器的可选参数，未设置的参数不会出现在命令行中。"""

    cold_boot: bool = False
    wipe_data: bool = False
    gpu: str | None = None
    port: int | None = None


@dataclass(frozen=True, slots=True)
class SwipePath:
    """一次滑动的像素起止点与持续时间。"""

    x0: int
    y0: int
    x1: int
    y1: int
    duration_ms: int

    @property
    def start(self) -> tuple[int, int]:
        return self.x0, self.y0

    @property
    def end(self) -> tuple[int, int]:
        return self.x1, self.y1
