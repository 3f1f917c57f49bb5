"""模拟器进程控制器 — 模拟器层核心。

负责模拟器 **进程** 的生命周期（启动 / 停止 / 折叠），以及对单个实例发出设备级命令
（属性查询、包管理、输入事件）。所有文本输出都交给 :mod:`~avdmcp.emulator.parsers`
解析，本模块不做任何格式假设。

错误策略：

- 只读列表（已配置 AVD、运行中实例、SDK 包）失败时退化为空结果并记录警告；
- 变更操作与设备命令失败时抛出 :class:`EmulatorError`，保留原始异常链；
- 任何操作都不重试，也不缓存查询结果。

使用方式::

    from avdmcp.emulator import EmulatorController

    ctrl = EmulatorController.from_config(config)
    await ctrl.start_instance("Pixel_7_API_34", StartOptions(cold_boot=True))
    running = await ctrl.list_running()
    await ctrl.stop_instance(running[0].port)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from loguru import logger

from . import parsers
from .env import AndroidPaths
from .models import (
    DeviceInfo,
    EmulatorDescriptor,
    RunningInstance,
    ScreenGeometry,
    SdkPackageList,
    StartOptions,
    SwipePath,
)
from .runner import CommandResult, CommandRunner
from avdmcp.infra.exceptions import CommandError, EmulatorError

if TYPE_CHECKING:
    from avdmcp.infra.config import AppConfig

_BASELINE_DENSITY = 160


def serial_of(port: str) -> str:
    """console 端口 → adb serial。"""
    return f"emulator-{port}"


def build_start_argv(emulator: str, avd_name: str, options: StartOptions) -> list[str]:
    """构造模拟器启动命令，未设置的选项不会出现在命令行中。"""
    argv = [emulator, "-avd", avd_name]
    if options.cold_boot:
        argv.append("-no-snapshot-load")
    if options.wipe_data:
        argv.append("-wipe-data")
    if options.gpu:
        argv += ["-gpu", options.gpu]
    if options.port is not None:
        argv += ["-port", str(options.port)]
    return argv


class EmulatorController:
    """基于 Android SDK 命令行工具的模拟器控制器。

    Parameters
    ----------
    paths:
        SDK 工具路径。
    runner:
        命令执行器；为 None 时使用 ``paths`` 派生的环境构造。
    """

    def __init__(self, paths: AndroidPaths, runner: CommandRunner | None = None) -> None:
        self._paths = paths
        self._runner = runner or CommandRunner(paths.environment())

    @classmethod
    def from_config(cls, config: AppConfig) -> EmulatorController:
        return cls(AndroidPaths(config.android_home, config.os_type))

    @property
    def paths(self) -> AndroidPaths:
        return self._paths

    # ── 内部工具 ──

    def _adb(self, port: str, *args: str) -> list[str]:
        return [str(self._paths.adb), "-s", serial_of(port), *args]

    async def _device_command(self, port: str, action: str, argv: Sequence[str]) -> CommandResult:
        """执行设备级命令，失败时包装为带端口信息的 :class:`EmulatorError`。"""
        try:
            return await self._runner.run(argv)
        except CommandError as exc:
            raise EmulatorError(f"{action}失败 (emulator-{port}): {exc}") from exc

    async def _console(self, port: str, action: str, command: str) -> str:
        """通过 ``adb emu`` 向模拟器控制台发送命令。"""
        result = await self._device_command(port, action, self._adb(port, "emu", command))
        if parsers.console_reply_failed(result.stdout):
            raise EmulatorError(
                f"{action}失败 (emulator-{port}): 控制台拒绝命令: {result.stdout.strip()}"
            )
        return result.stdout

    # ── 进程生命周期 ──

    async def start_instance(self, avd_name: str, options: StartOptions | None = None) -> str:
        """分离启动模拟器并立即返回，不等待启动完成。

        Raises
        ------
        EmulatorError
            可执行文件无法启动。
        """
        options = options or StartOptions()
        argv = build_start_argv(str(self._paths.emulator), avd_name, options)
        try:
            pid = self._runner.spawn_detached(argv)
        except CommandError as exc:
            raise EmulatorError(f"启动模拟器 {avd_name} 失败: {exc}") from exc

        logger.info("[Emulator] 已启动模拟器 {} (pid={})", avd_name, pid)
        return f"Starting emulator \"{avd_name}\"... It may take a few moments to fully boot."

    async def stop_instance(self, port: str) -> str:
        await self._console(port, "停止模拟器", "kill")
        logger.info("[Emulator] 已停止模拟器 emulator-{}", port)
        return f"Emulator on port {port} has been stopped."

    async def fold_instance(self, port: str) -> str:
        await self._console(port, "折叠模拟器", "fold")
        logger.info("[Emulator] 已折叠 emulator-{}", port)
        return f"Emulator on port {port} has been folded."

    async def unfold_instance(self, port: str) -> str:
        await self._console(port, "展开模拟器", "unfold")
        logger.info("[Emulator] 已展开 emulator-{}", port)
        return f"Emulator on port {port} has been unfolded."

    # ── 只读列表 ──

    async def list_configured(self) -> list[EmulatorDescriptor]:
        """列出已配置的 AVD。工具失败时返回空列表。"""
        try:
            result = await self._runner.run([str(self._paths.avdmanager), "list", "avd"])
        except CommandError as exc:
            logger.warning("[Emulator] 获取 AVD 列表失败，按空列表处理: {}", exc)
            return []
        return parsers.parse_avd_list(result.stdout)

    async def list_running(self) -> list[RunningInstance]:
        """列出运行中的模拟器实例。工具失败时返回空列表。"""
        try:
            result = await self._runner.run([str(self._paths.adb), "devices"])
        except CommandError as exc:
            logger.warning("[Emulator] 获取运行中实例失败，按空列表处理: {}", exc)
            return []
        return parsers.parse_adb_devices(result.stdout)

    async def is_running(self, port: str) -> bool:
        return any(inst.port == port for inst in await self.list_running())

    async def list_sdk_packages(self) -> SdkPackageList:
        """列出 SDK 包。工具失败时返回空集合。"""
        try:
            result = await self._runner.run([str(self._paths.sdkmanager), "--list"])
        except CommandError as exc:
            logger.warning(
                "[Emulator] 获取 SDK 包列表失败 (ANDROID_HOME={}): {}", self._paths.home, exc
            )
            return SdkPackageList()
        return parsers.parse_sdk_list(result.stdout)

    # ── AVD 管理 ──

    async def create_avd(self, name: str, package: str, device: str | None = None) -> str:
        """创建 AVD。

        系统镜像包不预先校验，交由 avdmanager 报错。自定义硬件配置的交互式提示
        自动回答 ``no``。

        Raises
        ------
        EmulatorError
            avdmanager 执行失败。
        """
        argv = [str(self._paths.avdmanager), "create", "avd", "-n", name, "-k", package]
        if device:
            argv += ["-d", device]
        try:
            result = await self._runner.run(argv, input_text="no\n")
        except CommandError as exc:
            raise EmulatorError(f"创建 AVD {name} 失败: {exc}") from exc

        logger.info("[Emulator] 已创建 AVD {} ({})", name, package)
        return f"AVD \"{name}\" created successfully.\n{result.stdout}"

    # ── 设备级命令 ──

    async def query_device_info(self, port: str) -> DeviceInfo:
        """读取设备属性。单个属性缺失时为 ``"Unknown"``，命令失败时抛出异常。"""
        result = await self._device_command(port, "获取设备信息", self._adb(port, "shell", "getprop"))
        return parsers.parse_device_info(port, result.stdout)

    async def list_packages(self, port: str, package_filter: str = "") -> list[str]:
        args = ["shell", "pm", "list", "packages"]
        if package_filter:
            args.append(package_filter)
        result = await self._device_command(port, "查询已安装包", self._adb(port, *args))
        return parsers.parse_package_list(result.stdout)

    async def resolve_activity(self, port: str, package: str) -> str | None:
        result = await self._device_command(
            port,
            "解析入口 Activity",
            self._adb(port, "shell", "cmd", "package", "resolve-activity", "--brief", package),
        )
        return parsers.parse_resolved_activity(result.stdout)

    async def start_activity(self, port: str, component: str) -> str:
        """``am start -n``。退出码为 0 但输出含 ``Error`` 时同样视为失败。"""
        result = await self._device_command(
            port, "启动 Activity", self._adb(port, "shell", "am", "start", "-n", component)
        )
        error = parsers.parse_start_error(result.stdout + "\n" + result.stderr)
        if error:
            raise EmulatorError(f"启动 Activity 失败 (emulator-{port}): {error}")
        return result.stdout

    async def query_screen_geometry(self, port: str) -> ScreenGeometry:
        """每次调用都重新查询，屏幕可能已旋转或折叠。

        ``scale`` 由 ``wm density`` 得出，供调用方换算逻辑像素；手势坐标只用像素尺寸。
        """
        size_result = await self._device_command(port, "获取屏幕尺寸", self._adb(port, "shell", "wm", "size"))
        size = parsers.parse_screen_size(size_result.stdout)
        if size is None:
            raise EmulatorError(
                f"获取屏幕尺寸失败 (emulator-{port}): 无法解析 {size_result.stdout.strip()!r}"
            )

        scale = 1.0
        try:
            density_result = await self._runner.run(self._adb(port, "shell", "wm", "density"))
        except CommandError as exc:
            logger.debug("[Emulator] 获取屏幕密度失败，缩放按 1.0 处理: {}", exc)
        else:
            density = parsers.parse_screen_density(density_result.stdout)
            if density:
                scale = density / _BASELINE_DENSITY

        return ScreenGeometry(width=size[0], height=size[1], scale=scale)

    async def input_swipe(self, port: str, path: SwipePath) -> None:
        await self._device_command(
            port,
            "滑动",
            self._adb(
                port, "shell", "input", "swipe",
                str(path.x0), str(path.y0), str(path.x1), str(path.y1), str(path.duration_ms),
            ),
        )
