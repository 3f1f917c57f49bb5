"""MCP 服务入口。

使用方式::

    # stdio 传输（默认）
    avdmcp --config avdmcp.yaml

    # 或
    python -m avdmcp --log-level DEBUG
"""

from __future__ import annotations

import argparse
from pathlib import Path

from loguru import logger
from mcp.server.fastmcp import FastMCP

from .tools import AndroidToolService, OllamaToolService
from avdmcp.emulator.controller import EmulatorController
from avdmcp.infra.config import AppConfig, ConfigManager
from avdmcp.infra.logger import setup_logger
from avdmcp.ollama.client import OllamaClient


def _register_android(mcp: FastMCP, android: AndroidToolService) -> None:
    @mcp.tool(name="list_emulators", description="List all available Android emulators (AVDs)")
    async def list_emulators() -> str:
        return await android.list_emulators()

    @mcp.tool(name="start_emulator", description="Start an Android emulator")
    async def start_emulator(
        avd_name: str,
        cold_boot: bool = False,
        wipe_data: bool = False,
        gpu: str | None = None,
        port: int | None = None,
    ) -> str:
        """gpu: auto, host, swiftshader_indirect, angle_indirect, guest"""
        return await android.start_emulator(avd_name, cold_boot, wipe_data, gpu, port)

    @mcp.tool(name="stop_emulator", description="Stop a running Android emulator")
    async def stop_emulator(port: str) -> str:
        return await android.stop_emulator(port)

    @mcp.tool(name="fold_emulator", description="Fold a running Android emulator")
    async def fold_emulator(port: str) -> str:
        return await android.fold_emulator(port)

    @mcp.tool(name="unfold_emulator", description="Unfold a running Android emulator")
    async def unfold_emulator(port: str) -> str:
        return await android.unfold_emulator(port)

    @mcp.tool(
        name="list_running_emulators",
        description="List all currently running Android emulators",
    )
    async def list_running_emulators() -> str:
        return await android.list_running_emulators()

    @mcp.tool(
        name="create_avd",
        description="Create a new Android Virtual Device from an installed system image package",
    )
    async def create_avd(name: str, package: str, device: str | None = None) -> str:
        return await android.create_avd(name, package, device)

    @mcp.tool(
        name="get_emulator_info",
        description="Get detailed information about a running emulator",
    )
    async def get_emulator_info(port: str) -> str:
        return await android.get_emulator_info(port)

    @mcp.tool(name="list_sdks", description="List installed and available Android SDK packages")
    async def list_sdks() -> str:
        return await android.list_sdks()

    @mcp.tool(name="launch_app", description="Launch an app on a running Android emulator")
    async def launch_app(port: str, package_name: str) -> str:
        return await android.launch_app(port, package_name)

    @mcp.tool(
        name="swipe",
        description="Swipe on a running Android emulator (direction: up, down, left, right)",
    )
    async def swipe(port: str, direction: str) -> str:
        return await android.swipe(port, direction)

    @mcp.resource(
        "android://emulators",
        name="Android Emulators",
        description="List of all available Android Virtual Devices",
        mime_type="application/json",
    )
    async def emulators_resource() -> str:
        return await android.emulators_resource()

    @mcp.resource(
        "android://running",
        name="Running Emulators",
        description="List of currently running Android emulators",
        mime_type="application/json",
    )
    async def running_resource() -> str:
        return await android.running_resource()


def _register_ollama(mcp: FastMCP, ollama: OllamaToolService) -> None:
    @mcp.tool(name="generate_text", description="Generate text with a local Ollama model")
    async def generate_text(
        prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        return await ollama.generate_text(prompt, model, temperature, max_tokens)

    @mcp.tool(name="chat", description="Chat with a local Ollama model")
    async def chat(messages: list[dict[str, str]], model: str | None = None) -> str:
        return await ollama.chat(messages, model)

    @mcp.tool(name="list_models", description="List models available on the Ollama server")
    async def list_models() -> str:
        return await ollama.list_models()

    @mcp.resource(
        "ollama://status",
        name="Ollama Status",
        description="Ollama server status",
        mime_type="application/json",
    )
    async def status_resource() -> str:
        return await ollama.status_resource()

    @mcp.resource(
        "ollama://models",
        name="Ollama Models",
        description="Models available on the Ollama server",
        mime_type="application/json",
    )
    async def models_resource() -> str:
        return await ollama.models_resource()


def create_server(
    config: AppConfig | None = None,
    controller: EmulatorController | None = None,
    ollama: OllamaClient | None = None,
) -> FastMCP:
    """构造注册好全部工具与资源的 FastMCP 应用。

    Parameters
    ----------
    config:
        应用配置；为 None 时使用默认配置。
    controller:
        模拟器控制器；为 None 时由配置构造。
    ollama:
        Ollama 客户端；为 None 且配置启用时由配置构造。
    """
    config = config or AppConfig()
    controller = controller or EmulatorController.from_config(config)

    mcp = FastMCP(config.server.name)
    _register_android(mcp, AndroidToolService(controller))

    if config.ollama.enabled:
        client = ollama or OllamaClient(config.ollama)
        _register_ollama(mcp, OllamaToolService(client))
        logger.debug("[Server] 已注册 Ollama 工具 ({})", client.url)

    return mcp


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="avdmcp",
        description="Android 模拟器编排 MCP 服务",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("--config", type=Path, default=None, help="YAML 配置文件路径")
    p.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="日志级别（覆盖配置文件）",
    )
    p.add_argument(
        "--transport",
        default=None,
        choices=["stdio", "sse", "streamable-http"],
        help="传输方式（覆盖配置文件）",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config = ConfigManager.load(args.config)

    level = args.log_level or config.log.level
    setup_logger(config.log.dir if config.log.save_to_file else None, level=level)

    transport = args.transport or config.server.transport
    logger.info(
        "[Server] {} 启动 (transport={}, ANDROID_HOME={})",
        config.server.name, transport, config.android_home,
    )
    create_server(config).run(transport=transport)
