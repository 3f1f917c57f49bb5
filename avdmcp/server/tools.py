"""协议适配层 — 参数校验与结果格式化。

MCP 客户端传入的参数是弱类型 JSON，本模块负责：

- 校验必填字段与基本类型（字符串、纯数字端口、滑动方向），失败抛出 :class:`InvalidInputError`；
- 调用模拟器层 / Ollama 代理；
- 将类型化结果渲染为文本（工具）或 JSON（资源）。

核心层不再重复校验。
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
from typing import Any

from loguru import logger

from avdmcp.emulator.controller import EmulatorController
from avdmcp.emulator.gesture import coerce_direction, swipe
from avdmcp.emulator.models import StartOptions, SystemImagePackage
from avdmcp.emulator.workflow import launch_app
from avdmcp.infra.exceptions import InvalidInputError
from avdmcp.ollama.client import OllamaClient

# list_sdks 中展示的可安装包前缀
RELEVANT_SDK_PREFIXES: tuple[str, ...] = (
    "system-images;android-",
    "platforms;android-",
    "platform-tools",
    "build-tools;",
    "cmdline-tools;",
)

_CHAT_ROLES = {"user", "assistant", "system"}


# ── 参数校验 ──


def require_str(value: Any, field: str) -> str:
    """必填字符串参数。"""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"参数 {field} 为必填项，且必须是非空字符串")
    return value.strip()


def optional_str(value: Any, field: str) -> str | None:
    if value is None or value == "":
        return None
    return require_str(value, field)


def require_port(value: Any) -> str:
    """console 端口：纯数字字符串，也接受非负整数。"""
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return str(value)
    port = require_str(value, "port")
    if not port.isdigit():
        raise InvalidInputError(f'参数 port 必须为纯数字 (例如 "5554")，实际为 "{port}"')
    return port


def optional_port(value: Any) -> int | None:
    if value is None:
        return None
    return int(require_port(value))


def require_bool(value: Any, field: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidInputError(f"参数 {field} 必须是布尔值")
    return value


def require_messages(value: Any) -> list[dict[str, str]]:
    """chat 消息列表：每条包含合法的 role 与字符串 content。"""
    if not isinstance(value, list) or not value:
        raise InvalidInputError("参数 messages 为必填项，且必须是非空列表")
    messages: list[dict[str, str]] = []
    for i, msg in enumerate(value):
        if not isinstance(msg, dict):
            raise InvalidInputError(f"messages[{i}] 必须是对象")
        role = msg.get("role")
        if role not in _CHAT_ROLES:
            raise InvalidInputError(f"messages[{i}].role 必须是 user / assistant / system 之一")
        content = msg.get("content")
        if not isinstance(content, str):
            raise InvalidInputError(f"messages[{i}].content 必须是字符串")
        messages.append({"role": role, "content": content})
    return messages


# ── 格式化 ──


def _format_package(pkg: SystemImagePackage) -> str:
    suffix = f" - {pkg.description}" if pkg.description else ""
    return f"  {pkg.path} ({pkg.version}){suffix}"


def is_relevant_package(pkg: SystemImagePackage) -> bool:
    return any(prefix in pkg.path for prefix in RELEVANT_SDK_PREFIXES)


def _to_json(records: Any) -> str:
    if isinstance(records, list):
        payload = [dataclasses.asdict(r) for r in records]
    else:
        payload = dataclasses.asdict(records)
    return json.dumps(payload, indent=2, ensure_ascii=False)


# ── Android 工具 ──


class AndroidToolService:
    """Android 模拟器相关工具与资源的实现。

    Parameters
    ----------
    controller:
        模拟器控制器。
    """

    def __init__(self, controller: EmulatorController) -> None:
        self._controller = controller

    async def list_emulators(self) -> str:
        emulators = await self._controller.list_configured()
        if not emulators:
            return "No Android Virtual Devices found."
        return "\n".join(f"{e.name} (Target: {e.target}, ABI: {e.abi})" for e in emulators)

    async def start_emulator(
        self,
        avd_name: Any,
        cold_boot: Any = False,
        wipe_data: Any = False,
        gpu: Any = None,
        port: Any = None,
    ) -> str:
        options = StartOptions(
            cold_boot=require_bool(cold_boot, "cold_boot"),
            wipe_data=require_bool(wipe_data, "wipe_data"),
            gpu=optional_str(gpu, "gpu"),
            port=optional_port(port),
        )
        return await self._controller.start_instance(require_str(avd_name, "avd_name"), options)

    async def stop_emulator(self, port: Any) -> str:
        return await self._controller.stop_instance(require_port(port))

    async def fold_emulator(self, port: Any) -> str:
        return await self._controller.fold_instance(require_port(port))

    async def unfold_emulator(self, port: Any) -> str:
        return await self._controller.unfold_instance(require_port(port))

    async def list_running_emulators(self) -> str:
        running = await self._controller.list_running()
        if not running:
            return "No emulators currently running."
        lines = "\n".join(f"{inst.name} (Port: {inst.port})" for inst in running)
        return f"Running Emulators:\n{lines}"

    async def create_avd(self, name: Any, package: Any, device: Any = None) -> str:
        return await self._controller.create_avd(
            require_str(name, "name"),
            require_str(package, "package"),
            optional_str(device, "device"),
        )

    async def get_emulator_info(self, port: Any) -> str:
        info = await self._controller.query_device_info(require_port(port))
        return _to_json(info)

    async def list_sdks(self) -> str:
        sdk = await self._controller.list_sdk_packages()

        output = "Installed SDK Packages:\n"
        if sdk.installed:
            output += "\n".join(_format_package(p) for p in sdk.installed)
        else:
            output += "  No packages installed\n"

        output += "\n\nAvailable SDK Packages:\n"
        relevant = [p for p in sdk.available if is_relevant_package(p)]
        if relevant:
            output += "\n".join(_format_package(p) for p in relevant)
        else:
            output += "  No relevant packages found\n"

        if not sdk.installed and not sdk.available:
            output += (
                f"\nANDROID_HOME: {self._controller.paths.home}\n"
                "Please ensure Android SDK is properly installed and ANDROID_HOME is set correctly."
            )
        return output

    async def launch_app(self, port: Any, package_name: Any) -> str:
        return await launch_app(
            self._controller, require_port(port), require_str(package_name, "package_name")
        )

    async def swipe(self, port: Any, direction: Any) -> str:
        direction = coerce_direction(direction)
        port = require_port(port)
        path = await swipe(self._controller, port, direction)
        return (
            f"Emulator on port {port} has been swiped "
            f"from ({path.x0}, {path.y0}) to ({path.x1}, {path.y1})."
        )

    # ── 资源 ──

    async def emulators_resource(self) -> str:
        return _to_json(await self._controller.list_configured())

    async def running_resource(self) -> str:
        return _to_json(await self._controller.list_running())


# ── Ollama 工具 ──


class OllamaToolService:
    """Ollama 代理工具。``requests`` 是阻塞调用，统一放到线程中执行。"""

    def __init__(self, client: OllamaClient) -> None:
        self._client = client

    async def generate_text(
        self,
        prompt: Any,
        model: Any = None,
        temperature: Any = None,
        max_tokens: Any = None,
    ) -> str:
        prompt = require_str(prompt, "prompt")
        if temperature is not None and (
            isinstance(temperature, bool) or not isinstance(temperature, (int, float))
        ):
            raise InvalidInputError("参数 temperature 必须是数字")
        if max_tokens is not None and (isinstance(max_tokens, bool) or not isinstance(max_tokens, int)):
            raise InvalidInputError("参数 max_tokens 必须是整数")
        return await asyncio.to_thread(
            self._client.generate_text,
            prompt,
            optional_str(model, "model"),
            float(temperature) if temperature is not None else None,
            max_tokens,
        )

    async def chat(self, messages: Any, model: Any = None) -> str:
        return await asyncio.to_thread(
            self._client.chat, require_messages(messages), optional_str(model, "model")
        )

    async def list_models(self) -> str:
        text = await asyncio.to_thread(self._client.format_models)
        return text or "No models available."

    async def status_resource(self) -> str:
        status = await asyncio.to_thread(self._client.get_server_status)
        return json.dumps(status, indent=2, ensure_ascii=False)

    async def models_resource(self) -> str:
        models = await asyncio.to_thread(self._client.list_models)
        logger.debug("[Server] Ollama 模型数: {}", len(models))
        return _to_json(models)
