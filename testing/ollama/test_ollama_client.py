"""测试 ollama.client 模块（mock requests）。"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from avdmcp.infra.config import OllamaConfig
from avdmcp.infra.exceptions import OllamaError
from avdmcp.ollama.client import OllamaClient, OllamaModel

BASE = "http://localhost:11434"

TAGS = {
    "models": [
        {"name": "llama3:latest", "size": 4661224676, "modified_at": "2024-05-01T10:00:00Z"},
        {"name": "qwen2:0.5b", "size": 352164041, "modified_at": "2024-06-10T08:30:00Z"},
    ]
}


def _response(payload: dict, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


@pytest.fixture
def client() -> OllamaClient:
    return OllamaClient(OllamaConfig(default_model="llama3", timeout=30))


class TestGenerate:
    def test_payload_without_options(self, client):
        with patch("avdmcp.ollama.client.requests.post", return_value=_response({"response": "hi"})) as post:
            assert client.generate_text("hello") == "hi"
        post.assert_called_once_with(
            f"{BASE}/api/generate",
            json={"model": "llama3", "prompt": "hello", "stream": False, "options": {}},
            timeout=30,
        )

    def test_options(self, client):
        with patch("avdmcp.ollama.client.requests.post", return_value=_response({"response": ""})) as post:
            client.generate_text("hello", model="qwen2", temperature=0.2, max_tokens=64)
        payload = post.call_args.kwargs["json"]
        assert payload["model"] == "qwen2"
        assert payload["options"] == {"temperature": 0.2, "num_predict": 64}

    def test_zero_temperature_kept(self, client):
        with patch("avdmcp.ollama.client.requests.post", return_value=_response({"response": ""})) as post:
            client.generate_text("hello", temperature=0.0)
        assert post.call_args.kwargs["json"]["options"] == {"temperature": 0.0}


class TestChat:
    def test_returns_content(self, client):
        reply = {"message": {"role": "assistant", "content": "pong"}}
        messages = [{"role": "user", "content": "ping"}]
        with patch("avdmcp.ollama.client.requests.post", return_value=_response(reply)) as post:
            assert client.chat(messages) == "pong"
        assert post.call_args.args[0] == f"{BASE}/api/chat"
        assert post.call_args.kwargs["json"] == {"model": "llama3", "messages": messages, "stream": False}


class TestModels:
    def test_list_models(self, client):
        with patch("avdmcp.ollama.client.requests.get", return_value=_response(TAGS)):
            models = client.list_models()
        assert models[0] == OllamaModel("llama3:latest", 4661224676, "2024-05-01T10:00:00Z")

    def test_format_models(self, client):
        with patch("avdmcp.ollama.client.requests.get", return_value=_response(TAGS)):
            text = client.format_models()
        assert text.splitlines() == [
            "llama3:latest (Size: 4.34GB, Modified: 2024-05-01T10:00:00Z)",
            "qwen2:0.5b (Size: 0.33GB, Modified: 2024-06-10T08:30:00Z)",
        ]

    def test_no_models(self, client):
        with patch("avdmcp.ollama.client.requests.get", return_value=_response({})):
            assert client.list_models() == []


class TestErrors:
    def test_connection_error(self, client):
        with patch(
            "avdmcp.ollama.client.requests.post",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            with pytest.raises(OllamaError, match="无法连接"):
                client.generate_text("hello")

    def test_timeout(self, client):
        with patch("avdmcp.ollama.client.requests.post", side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(OllamaError, match="generate"):
                client.generate_text("hello")

    def test_http_error(self, client):
        with patch(
            "avdmcp.ollama.client.requests.post",
            return_value=_response({"error": "model 'x' not found"}, status=404),
        ):
            with pytest.raises(OllamaError, match="404"):
                client.chat([{"role": "user", "content": "hi"}], model="x")


class TestServerStatus:
    def test_online(self, client):
        with patch("avdmcp.ollama.client.requests.get", return_value=_response(TAGS)):
            status = client.get_server_status()
        assert status["status"] == "online"
        assert status["models_count"] == 2
        assert status["default_model"] == "llama3"
        assert status["url"] == BASE
        assert "timestamp" in status

    def test_offline_never_raises(self, client):
        with patch(
            "avdmcp.ollama.client.requests.get",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            status = client.get_server_status()
        assert status["status"] == "offline"
        assert "error" in status
