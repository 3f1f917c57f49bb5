"""滑动手势合成。

由屏幕几何与方向计算像素坐标：竖直方向在中心列上取 80% / 20% 高度，
水平方向在中心行上取 80% / 20% 宽度，持续时间固定 200ms。
"""

from __future__ import annotations

from loguru import logger

from .controller import EmulatorController
from .models import ScreenGeometry, SwipePath
from avdmcp.infra.exceptions import UnsupportedDirectionError
from avdmcp.types import SwipeDirection

SWIPE_DURATION_MS = 200

_NEAR = 2  # 20%
_FAR = 8  # 80%


def coerce_direction(direction: SwipeDirection | str) -> SwipeDirection:
    """将字符串转为 :class:`SwipeDirection`，不在枚举内时抛出异常。"""
    if isinstance(direction, SwipeDirection):
        return direction
    try:
        return SwipeDirection(direction)
    except ValueError as exc:
        raise UnsupportedDirectionError(direction) from exc


def compute_swipe(geometry: ScreenGeometry, direction: SwipeDirection | str) -> SwipePath:
    """计算滑动路径，坐标向下取整。

    只使用像素尺寸；``geometry.scale`` 不参与计算，仅写入调试日志供调用方参考。
    """
    direction = coerce_direction(direction)
    cx, cy = geometry.center

    if direction.is_vertical:
        near, far = geometry.height * _NEAR // 10, geometry.height * _FAR // 10
        y0, y1 = (far, near) if direction is SwipeDirection.up else (near, far)
        return SwipePath(cx, y0, cx, y1, SWIPE_DURATION_MS)

    near, far = geometry.width * _NEAR // 10, geometry.width * _FAR // 10
    x0, x1 = (far, near) if direction is SwipeDirection.left else (near, far)
    return SwipePath(x0, cy, x1, cy, SWIPE_DURATION_MS)


async def swipe(
    controller: EmulatorController,
    port: str,
    direction: SwipeDirection | str,
) -> SwipePath:
    """在指定实例上执行一次滑动。

    方向在发出任何命令之前校验；屏幕几何每次重新查询。

    Raises
    ------
    UnsupportedDirectionError
        方向不合法，此时不会执行任何命令。
    EmulatorError
        查询几何信息或执行滑动失败。
    """
    direction = coerce_direction(direction)
    geometry = await controller.query_screen_geometry(port)
    path = compute_swipe(geometry, direction)
    logger.debug(
        "[Gesture] swipe {} on emulator-{}: ({},{}) → ({},{}) {}ms  res={}x{} scale={:.2f}",
        direction.value, port, path.x0, path.y0, path.x1, path.y1, path.duration_ms,
        geometry.width, geometry.height, geometry.scale,
    )
    await controller.input_swipe(port, path)
    return path
