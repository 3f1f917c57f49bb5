"""模拟器层 — 进程控制、文本解析、设备流程与手势。

提供四大核心能力：

1. **进程控制** (`EmulatorController`)：启动、停止、折叠模拟器，列出 AVD 与运行实例。
2. **文本解析** (`parsers`)：将 SDK 工具的文本输出解析为类型化记录，永不抛出异常。
3. **设备流程** (`launch_app`)：四步 fail-fast 的应用启动流程。
4. **手势** (`swipe`)：根据屏幕几何合成滑动坐标。
"""

from avdmcp.emulator.controller import EmulatorController, build_start_argv, serial_of
from avdmcp.emulator.env import AndroidPaths, android_env
from avdmcp.emulator.gesture import SWIPE_DURATION_MS, coerce_direction, compute_swipe, swipe
from avdmcp.emulator.models import (
    UNKNOWN,
    DeviceInfo,
    EmulatorDescriptor,
    RunningInstance,
    ScreenGeometry,
    SdkPackageList,
    StartOptions,
    SwipePath,
    SystemImagePackage,
)
from avdmcp.emulator.runner import CommandResult, CommandRunner, spawn_detached
from avdmcp.emulator.workflow import launch_app

__all__ = [
    # controller
    "EmulatorController",
    "build_start_argv",
    "serial_of",
    # env
    "AndroidPaths",
    "android_env",
    # gesture
    "SWIPE_DURATION_MS",
    "coerce_direction",
    "compute_swipe",
    "swipe",
    # models
    "UNKNOWN",
    "DeviceInfo",
    "EmulatorDescriptor",
    "RunningInstance",
    "ScreenGeometry",
    "SdkPackageList",
    "StartOptions",
    "SwipePath",
    "SystemImagePackage",
    # runner
    "CommandResult",
    "CommandRunner",
    "spawn_detached",
    # workflow
    "launch_app",
]
