"""avdmcp 异常层级体系。

层级树::

    AvdMcpError
    ├── ConfigError
    ├── InvalidInputError
    │   └── UnsupportedDirectionError
    ├── EmulatorError
    │   ├── CommandError
    │   └── LaunchError
    └── OllamaError

文本解析失败 **不是** 异常：解析器总是退化为占位值或空集合。
"""

from __future__ import annotations

from collections.abc import Sequence

from avdmcp.types import LaunchStep


# ── 基类 ──


class AvdMcpError(Exception):
    """所有 avdmcp 异常的基类。"""


# ── 基础设施异常 ──


class ConfigError(AvdMcpError):
    """配置错误（文件缺失、字段非法等）。"""


# ── 输入校验异常 ──


class InvalidInputError(AvdMcpError):
    """调用方传入的参数非法（缺失必填字段、类型错误、超出封闭枚举）。"""


class UnsupportedDirectionError(InvalidInputError):
    """滑动方向不在 up/down/left/right 之内。"""

    def __init__(self, direction: object) -> None:
        self.direction = direction
        super().__init__(f'不支持的滑动方向 "{direction}"')


# ── 模拟器异常 ──


class EmulatorError(AvdMcpError):
    """模拟器操作失败。"""


class CommandError(EmulatorError):
    """外部命令无法执行或以非零状态退出。"""

    def __init__(
        self,
        argv: Sequence[str],
        reason: str = "",
        returncode: int | None = None,
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.reason = reason
        msg = f"命令执行失败: {' '.join(self.argv)}"
        if returncode is not None:
            msg += f" (exit {returncode})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class LaunchError(EmulatorError):
    """启动应用流程中某一步的前置条件不满足。"""

    def __init__(self, step: LaunchStep, port: str, package: str, reason: str = "") -> None:
        self.step = step
        self.port = port
        self.package = package
        msg = f"启动应用失败 [{step.value}]: {package} @ emulator-{port}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


# ── 模型服务异常 ──


class OllamaError(AvdMcpError):
    """Ollama HTTP API 请求失败。"""
