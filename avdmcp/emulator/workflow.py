"""多步设备流程。

启动应用分四步，严格按顺序执行，任一步失败立即终止，后续命令一律不发出::

    1. 实例在运行        → 否则 LaunchError(not_running)
    2. 包已安装          → 否则 LaunchError(package_not_found)
    3. 入口 Activity 可解析 → 否则 LaunchError(entry_point_unresolved)
    4. am start 成功     → 否则 LaunchError(start_failed)

不重试，不回滚（前三步都是只读查询）。
"""

from __future__ import annotations

from loguru import logger

from .controller import EmulatorController
from avdmcp.infra.exceptions import EmulatorError, LaunchError
from avdmcp.types import LaunchStep


async def launch_app(controller: EmulatorController, port: str, package: str) -> str:
    """在指定实例上启动应用。

    第 2 步要求已安装包列表中存在与 ``package`` 完全相同的包名；
    仅前缀或子串匹配 (如 ``com.foo.bar`` 之于 ``com.foo``) 视为未安装。

    Parameters
    ----------
    controller:
        模拟器控制器。
    port:
        目标实例的 console 端口。
    package:
        应用包名。

    Returns
    -------
    str
        成功信息，包含解析出的入口组件。

    Raises
    ------
    LaunchError
        某一步前置条件不满足，``step`` 属性指明失败的步骤。
    EmulatorError
        第 2、3 步的查询命令本身无法执行。
    """
    if not await controller.is_running(port):
        raise LaunchError(LaunchStep.not_running, port, package)

    installed = await controller.list_packages(port, package)
    if package not in installed:
        raise LaunchError(LaunchStep.package_not_found, port, package)

    component = await controller.resolve_activity(port, package)
    if not component:
        raise LaunchError(LaunchStep.entry_point_unresolved, port, package)

    try:
        await controller.start_activity(port, component)
    except EmulatorError as exc:
        raise LaunchError(LaunchStep.start_failed, port, package, reason=str(exc)) from exc

    logger.info("[Workflow] 已在 emulator-{} 启动 {} ({})", port, package, component)
    return f"Launched {package} ({component}) on emulator-{port}"
