"""本地模型服务 (Ollama) 代理。模拟器层不依赖本包。"""

from avdmcp.ollama.client import OllamaClient, OllamaModel

__all__ = [
    "OllamaClient",
    "OllamaModel",
]
