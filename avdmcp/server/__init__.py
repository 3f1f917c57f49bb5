"""MCP 协议层 — 将模拟器层与 Ollama 代理暴露为工具与资源。"""

from avdmcp.server.app import create_server, main
from avdmcp.server.tools import AndroidToolService, OllamaToolService

__all__ = [
    "AndroidToolService",
    "OllamaToolService",
    "create_server",
    "main",
]
