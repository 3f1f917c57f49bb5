"""Ollama HTTP API 客户端。

只做请求转发与结果提取，不做流式输出、重试或鉴权。

使用方式::

    from avdmcp.ollama import OllamaClient

    client = OllamaClient(config.ollama)
    text = client.generate_text("hello", temperature=0.2)
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any

import requests
from loguru import logger

from avdmcp.infra.config import OllamaConfig
from avdmcp.infra.exceptions import OllamaError

_GB = 1024**3


@dataclass(frozen=True, slots=True)
class OllamaModel:
    """本地已拉取的模型。"""

    name: str
    size: int = 0
    modified_at: str = ""

    def describe(self) -> str:
        return f"{self.name} (Size: {self.size / _GB:.2f}GB, Modified: {self.modified_at})"


def _now_iso() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


class OllamaClient:
    """基于 ``requests`` 的同步客户端。

    Parameters
    ----------
    config:
        Ollama 配置；为 None 时使用默认值。
    """

    def __init__(self, config: OllamaConfig | None = None) -> None:
        self._config = config or OllamaConfig()

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def default_model(self) -> str:
        return self._config.default_model

    # ── HTTP ──

    def _request(self, method: str, endpoint: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self._config.url}/api/{endpoint}"
        try:
            if method == "GET":
                response = requests.get(url, timeout=self._config.timeout)
            else:
                response = requests.post(url, json=payload, timeout=self._config.timeout)
        except requests.exceptions.ConnectionError as exc:
            raise OllamaError(f"无法连接 Ollama 服务 {url}，请确认已执行 `ollama serve`") from exc
        except requests.RequestException as exc:
            raise OllamaError(f"Ollama 请求失败 ({endpoint}): {exc}") from exc

        if response.status_code != 200:
            raise OllamaError(
                f"Ollama 请求 ({endpoint}) 返回状态码 {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise OllamaError(f"Ollama 响应不是合法 JSON ({endpoint})") from exc

    # ── 公共接口 ──

    def generate_text(
        self,
        prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """单轮文本生成（``POST /api/generate``，非流式）。"""
        options: dict[str, Any] = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens

        model = model or self._config.default_model
        logger.debug("[Ollama] generate model={} options={}", model, options)
        data = self._request(
            "POST",
            "generate",
            {"model": model, "prompt": prompt, "stream": False, "options": options},
        )
        return data.get("response", "")

    def chat(self, messages: list[dict[str, str]], model: str | None = None) -> str:
        """多轮对话（``POST /api/chat``，非流式），返回助手回复内容。"""
        model = model or self._config.default_model
        logger.debug("[Ollama] chat model={} messages={}", model, len(messages))
        data = self._request(
            "POST", "chat", {"model": model, "messages": messages, "stream": False}
        )
        return (data.get("message") or {}).get("content", "")

    def list_models(self) -> list[OllamaModel]:
        data = self._request("GET", "tags")
        return [
            OllamaModel(
                name=m.get("name", ""),
                size=int(m.get("size") or 0),
                modified_at=m.get("modified_at", ""),
            )
            for m in data.get("models") or []
        ]

    def format_models(self) -> str:
        return "\n".join(m.describe() for m in self.list_models())

    def get_server_status(self) -> dict[str, Any]:
        """查询服务状态，不抛出异常：不可达时返回 ``status="offline"``。"""
        try:
            models = self.list_models()
        except OllamaError as exc:
            logger.warning("[Ollama] 服务不可用: {}", exc)
            return {
                "status": "offline",
                "url": self._config.url,
                "error": str(exc),
                "timestamp": _now_iso(),
            }
        return {
            "status": "online",
            "url": self._config.url,
            "models_count": len(models),
            "default_model": self._config.default_model,
            "timestamp": _now_iso(),
        }
