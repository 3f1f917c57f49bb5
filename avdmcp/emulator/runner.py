"""外部命令执行边界。

- :meth:`CommandRunner.run`：异步执行并等待命令结束，捕获文本输出；
- :func:`spawn_detached`：以分离模式启动长驻进程（模拟器），不保留任何句柄。

命令执行没有超时与取消，这是外部工具的固有行为。
"""

from __future__ import annotations

import asyncio
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from loguru import logger

from avdmcp.infra.exceptions import CommandError


@dataclass(frozen=True, slots=True)
class CommandResult:
    """一次命令执行的结果。"""

    argv: list[str]
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def summary(self) -> str:
        """失败时用于报错的输出摘要，优先 stderr。"""
        return (self.stderr.strip() or self.stdout.strip())[:500]


class CommandRunner:
    """在指定环境下执行 SDK 命令行工具。

    Parameters
    ----------
    env:
        子进程环境变量，通常来自 :func:`~avdmcp.emulator.env.android_env`。
        为 None 时继承当前进程环境。
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = dict(env) if env is not None else None

    async def run(
        self,
        argv: Sequence[str],
        *,
        input_text: str | None = None,
        check: bool = True,
    ) -> CommandResult:
        """执行命令并等待其结束。

        Parameters
        ----------
        argv:
            命令及参数，不经过 shell。
        input_text:
            写入 stdin 的文本（用于回答交互式提示）。
        check:
            为 True 时非零退出码抛出 :class:`CommandError`。

        Raises
        ------
        CommandError
            可执行文件无法启动，或 ``check`` 为 True 且退出码非零。
        """
        args = [str(a) for a in argv]
        logger.debug("[Runner] 执行: {}", " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
            )
            out, err = await proc.communicate(
                input_text.encode("utf-8") if input_text is not None else None
            )
        except OSError as exc:
            raise CommandError(args, reason=str(exc)) from exc

        result = CommandResult(
            argv=args,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=out.decode("utf-8", errors="replace"),
            stderr=err.decode("utf-8", errors="replace"),
        )
        if check and not result.ok:
            raise CommandError(args, reason=result.summary, returncode=result.returncode)
        return result

    def spawn_detached(self, argv: Sequence[str]) -> int:
        """以当前环境分离启动进程，见 :func:`spawn_detached`。"""
        return spawn_detached(argv, env=self._env)


def spawn_detached(argv: Sequence[str], env: Mapping[str, str] | None = None) -> int:
    """分离启动进程并立即返回其 pid。

    子进程脱离当前会话（POSIX 新会话 / Windows 独立进程组），标准流重定向到空设备，
    不保留句柄也不等待，进程归属交给操作系统：本服务退出后子进程继续运行。

    Raises
    ------
    CommandError
        可执行文件无法启动。
    """
    args = [str(a) for a in argv]
    kwargs: dict = {
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.DEVNULL,
        "stderr": subprocess.DEVNULL,
        "env": dict(env) if env is not None else None,
        "close_fds": True,
    }
    if sys.platform.startswith("win"):
        kwargs["creationflags"] = subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    try:
        proc = subprocess.Popen(args, **kwargs)
    except OSError as exc:
        raise CommandError(args, reason=str(exc)) from exc

    logger.debug("[Runner] 已分离启动 pid={}: {}", proc.pid, " ".join(args))
    return proc.pid

