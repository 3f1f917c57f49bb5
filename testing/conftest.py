"""测试公共 fixtures。"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from avdmcp.emulator.controller import EmulatorController
from avdmcp.emulator.env import AndroidPaths
from avdmcp.emulator.runner import CommandResult
from avdmcp.infra.exceptions import CommandError
from avdmcp.types import OSType

SDK_HOME = Path("/opt/android-sdk")


@pytest.fixture
def tmp_yaml(tmp_path: Path):
    """创建临时 YAML 文件的工厂 fixture。"""

    def _factory(name: str, content: str) -> Path:
        p = tmp_path / name
        p.write_text(content, encoding="utf-8")
        return p

    return _factory


def _contains(argv: Sequence[str], fragment: Sequence[str]) -> bool:
    n = len(fragment)
    return any(list(argv[i : i + n]) == list(fragment) for i in range(len(argv) - n + 1))


class FakeRunner:
    """按命令片段返回预设输出的命令执行器，记录全部调用。

    规则按注册顺序的逆序匹配（后注册的覆盖先注册的）；未命中的命令返回空输出、退出码 0。
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []
        self.spawned: list[list[str]] = []
        self.spawn_error: Exception | None = None
        self._rules: list[tuple[tuple[str, ...], str, str, int, Exception | None]] = []

    def on(
        self,
        *fragment: str,
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
        error: Exception | None = None,
    ) -> FakeRunner:
        self._rules.append((fragment, stdout, stderr, returncode, error))
        return self

    async def run(
        self,
        argv: Sequence[str],
        *,
        input_text: str | None = None,
        check: bool = True,
    ) -> CommandResult:
        args = [str(a) for a in argv]
        self.calls.append(args)
        self.inputs.append(input_text)

        stdout, stderr, returncode = "", "", 0
        for fragment, out, err, rc, error in reversed(self._rules):
            if _contains(args, fragment):
                if error is not None:
                    raise error
                stdout, stderr, returncode = out, err, rc
                break

        result = CommandResult(argv=args, returncode=returncode, stdout=stdout, stderr=stderr)
        if check and not result.ok:
            raise CommandError(args, reason=result.summary, returncode=returncode)
        return result

    def spawn_detached(self, argv: Sequence[str]) -> int:
        args = [str(a) for a in argv]
        self.spawned.append(args)
        if self.spawn_error is not None:
            raise self.spawn_error
        return 4242

    def called(self, *fragment: str) -> bool:
        return any(_contains(call, fragment) for call in self.calls)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def sdk_paths() -> AndroidPaths:
    return AndroidPaths(SDK_HOME, OSType.linux)


@pytest.fixture
def controller(sdk_paths: AndroidPaths, fake_runner: FakeRunner) -> EmulatorController:
    return EmulatorController(sdk_paths, runner=fake_runner)
