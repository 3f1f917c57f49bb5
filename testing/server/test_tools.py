"""测试 server.tools 模块 — 参数校验与结果格式化。"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import MagicMock

import pytest

from avdmcp.emulator.models import SystemImagePackage
from avdmcp.infra.exceptions import InvalidInputError, LaunchError, UnsupportedDirectionError
from avdmcp.ollama.client import OllamaClient, OllamaModel
from avdmcp.server.tools import (
    AndroidToolService,
    OllamaToolService,
    is_relevant_package,
    require_messages,
    require_port,
    require_str,
)
from avdmcp.types import LaunchStep

AVD_TEXT = "Name: Pixel\nTarget: Android 14\nABI: x86_64\nName: Fold\nTarget: Android 13\n"
DEVICES_TEXT = "List of devices attached\nemulator-5554\tdevice\nemulator-5556\tdevice\n"


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def service(controller) -> AndroidToolService:
    return AndroidToolService(controller)


# ═══════════════════════════════════════════════
# 参数校验
# ═══════════════════════════════════════════════


class TestValidation:
    @pytest.mark.parametrize("value", ["5554", 5554, " 5556 "])
    def test_port_ok(self, value):
        assert require_port(value).strip().isdigit()

    @pytest.mark.parametrize("value", [None, "", "abc", "55-54", True, -1, 5554.0])
    def test_port_invalid(self, value):
        with pytest.raises(InvalidInputError):
            require_port(value)

    @pytest.mark.parametrize("value", [None, "", "   ", 3, ["x"]])
    def test_required_str(self, value):
        with pytest.raises(InvalidInputError, match="avd_name"):
            require_str(value, "avd_name")

    def test_messages_ok(self):
        msgs = require_messages([{"role": "user", "content": "hi", "extra": 1}])
        assert msgs == [{"role": "user", "content": "hi"}]

    @pytest.mark.parametrize(
        "value",
        [None, [], "hi", [{"role": "bot", "content": "x"}], [{"role": "user"}], ["hi"]],
    )
    def test_messages_invalid(self, value):
        with pytest.raises(InvalidInputError):
            require_messages(value)


# ═══════════════════════════════════════════════
# Android 工具
# ═══════════════════════════════════════════════


class TestAndroidTools:
    def test_list_emulators(self, service, fake_runner):
        fake_runner.on("list", "avd", stdout=AVD_TEXT)
        assert run(service.list_emulators()).splitlines() == [
            "Pixel (Target: Android 14, ABI: x86_64)",
            "Fold (Target: Android 13, ABI: Unknown)",
        ]

    def test_list_emulators_empty(self, service, fake_runner):
        fake_runner.on("list", "avd", returncode=1)
        assert "No Android Virtual Devices" in run(service.list_emulators())

    def test_list_running(self, service, fake_runner):
        fake_runner.on("devices", stdout=DEVICES_TEXT)
        assert run(service.list_running_emulators()) == (
            "Running Emulators:\nemulator-5554 (Port: 5554)\nemulator-5556 (Port: 5556)"
        )

    def test_list_running_none(self, service):
        assert run(service.list_running_emulators()) == "No emulators currently running."

    def test_start_emulator(self, service, fake_runner):
        run(service.start_emulator("Pixel", cold_boot=True, gpu="host", port="5560"))
        assert fake_runner.spawned[0][1:] == ["-avd", "Pixel", "-no-snapshot-load", "-gpu", "host", "-port", "5560"]

    def test_start_emulator_requires_name(self, service, fake_runner):
        with pytest.raises(InvalidInputError):
            run(service.start_emulator(None))
        assert fake_runner.spawned == []

    def test_start_emulator_bool_type(self, service):
        with pytest.raises(InvalidInputError, match="cold_boot"):
            run(service.start_emulator("Pixel", cold_boot="yes"))

    def test_stop_validates_port(self, service, fake_runner):
        with pytest.raises(InvalidInputError):
            run(service.stop_emulator("emulator-5554"))
        assert fake_runner.calls == []

    def test_stop(self, service, fake_runner):
        assert run(service.stop_emulator("5554")) == "Emulator on port 5554 has been stopped."

    def test_create_avd(self, service, fake_runner):
        run(service.create_avd("Pixel", "system-images;android-34;google_apis;x86_64", ""))
        assert "-d" not in fake_runner.calls[0]

    def test_get_emulator_info_json(self, service, fake_runner):
        fake_runner.on("getprop", stdout="[ro.build.version.sdk]: [34]\n")
        info = json.loads(run(service.get_emulator_info("5554")))
        assert info["port"] == "5554"
        assert info["api_level"] == "34"
        assert info["manufacturer"] == "Unknown"

    def test_list_sdks(self, service, fake_runner):
        fake_runner.on(
            "--list",
            stdout=(
                "Installed packages:\n"
                "emulator | 34.1.19 | Android Emulator\n"
                "Available Packages:\n"
                "platforms;android-35 | 2 | Android SDK Platform 35\n"
                "sources;android-35 | 1 | Sources for Android 35\n"
            ),
        )
        text = run(service.list_sdks())
        assert "Installed SDK Packages:\n  emulator (34.1.19) - Android Emulator" in text
        assert "  platforms;android-35 (2) - Android SDK Platform 35" in text
        assert "sources;android-35" not in text

    def test_list_sdks_empty_hints_sdk_root(self, service, fake_runner):
        fake_runner.on("--list", returncode=1)
        text = run(service.list_sdks())
        assert "No packages installed" in text
        assert "No relevant packages found" in text
        assert "ANDROID_HOME: /opt/android-sdk" in text

    def test_launch_app_not_running(self, service, fake_runner):
        with pytest.raises(LaunchError) as exc_info:
            run(service.launch_app("5554", "com.android.settings"))
        assert exc_info.value.step == LaunchStep.not_running

    def test_launch_app_requires_package(self, service, fake_runner):
        with pytest.raises(InvalidInputError, match="package_name"):
            run(service.launch_app("5554", ""))
        assert fake_runner.calls == []

    def test_swipe(self, service, fake_runner):
        fake_runner.on("wm", "size", stdout="Physical size: 1080x2400\n")
        msg = run(service.swipe("5554", "up"))
        assert "(540, 1920)" in msg
        assert "(540, 480)" in msg

    def test_swipe_unsupported(self, service, fake_runner):
        with pytest.raises(UnsupportedDirectionError):
            run(service.swipe("5554", "diagonal"))
        assert fake_runner.calls == []

    def test_resources_json(self, service, fake_runner):
        fake_runner.on("list", "avd", stdout=AVD_TEXT)
        fake_runner.on("devices", stdout=DEVICES_TEXT)
        emulators = json.loads(run(service.emulators_resource()))
        running = json.loads(run(service.running_resource()))
        assert emulators[0] == {"name": "Pixel", "target": "Android 14", "sdk": "Android 14", "abi": "x86_64"}
        assert running == [
            {"name": "emulator-5554", "port": "5554"},
            {"name": "emulator-5556", "port": "5556"},
        ]


class TestRelevantPackages:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("system-images;android-34;google_apis;x86_64", True),
            ("platforms;android-35", True),
            ("platform-tools", True),
            ("build-tools;34.0.0", True),
            ("cmdline-tools;latest", True),
            ("sources;android-35", False),
            ("extras;google;usb_driver", False),
        ],
    )
    def test_filter(self, path, expected):
        assert is_relevant_package(SystemImagePackage(path=path, version="1")) is expected


# ═══════════════════════════════════════════════
# Ollama 工具
# ═══════════════════════════════════════════════


@pytest.fixture
def ollama_client() -> MagicMock:
    return MagicMock(spec=OllamaClient)


class TestOllamaTools:
    def test_generate_text(self, ollama_client):
        ollama_client.generate_text.return_value = "done"
        svc = OllamaToolService(ollama_client)
        assert run(svc.generate_text("hi", temperature=1, max_tokens=10)) == "done"
        ollama_client.generate_text.assert_called_once_with("hi", None, 1.0, 10)

    def test_generate_text_validates(self, ollama_client):
        svc = OllamaToolService(ollama_client)
        with pytest.raises(InvalidInputError, match="temperature"):
            run(svc.generate_text("hi", temperature="hot"))
        with pytest.raises(InvalidInputError, match="max_tokens"):
            run(svc.generate_text("hi", max_tokens=1.5))
        ollama_client.generate_text.assert_not_called()

    def test_chat(self, ollama_client):
        ollama_client.chat.return_value = "pong"
        svc = OllamaToolService(ollama_client)
        assert run(svc.chat([{"role": "user", "content": "ping"}], model="llama3")) == "pong"
        ollama_client.chat.assert_called_once_with([{"role": "user", "content": "ping"}], "llama3")

    def test_list_models_empty(self, ollama_client):
        ollama_client.format_models.return_value = ""
        assert run(OllamaToolService(ollama_client).list_models()) == "No models available."

    def test_resources(self, ollama_client):
        ollama_client.get_server_status.return_value = {"status": "offline", "error": "refused"}
        ollama_client.list_models.return_value = [OllamaModel("llama3", 1, "2024-05-01")]
        svc = OllamaToolService(ollama_client)
        assert json.loads(run(svc.status_resource()))["status"] == "offline"
        assert json.loads(run(svc.models_resource())) == [
            {"name": "llama3", "size": 1, "modified_at": "2024-05-01"}
        ]
