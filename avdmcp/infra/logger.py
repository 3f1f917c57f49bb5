"""全局日志配置。

使用方式::

    # 应用启动时调用一次
    from avdmcp.infra.logger import setup_logger
    setup_logger(log_dir=Path("log/2026-01-01"))

    # 各模块直接使用 loguru
    from loguru import logger
    logger.info("[Emulator] 启动模拟器 {}", avd_name)

stdio 传输下 stdout 属于协议通道，因此控制台日志一律写入 stderr。
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger

# 项目根目录，用于将绝对路径转换为相对路径（Ctrl+点击用）
_PROJECT_ROOT = Path(__file__).parent.parent

_FMT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level:8}</level> | "
    "<cyan>{extra[src]}</cyan> | "
    "{message}"
)

# 使用标准 logging 的第三方库，默认压到 WARNING
_NOISY_LOGGERS = (
    "httpx",
    "urllib3",
    "mcp",
    "mcp.server.lowlevel.server",
)


def _src_patcher(record: dict) -> None:
    """将 record["file"].path 转为以项目根目录为基准的相对路径，并存入 extra["src"]。

    格式示例：``avdmcp/emulator/controller.py:120``
    """
    try:
        rel = Path(record["file"].path).relative_to(_PROJECT_ROOT)
        record["extra"]["src"] = f"{rel.as_posix()}:{record['line']}"
    except ValueError:
        record["extra"]["src"] = f"{record['file'].name}:{record['line']}"


def setup_logger(
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """配置全局 loguru logger。

    日志策略：
    - 控制台（stderr）：按 *level* 过滤输出。
    - 文件（全量）：始终以 DEBUG 级别记录，文件名含 ``.debug`` 后缀。
    - 文件（过滤）：与控制台 *level* 一致，文件名不含后缀。

    Parameters
    ----------
    log_dir:
        日志文件存放目录。为 *None* 时仅输出到控制台。
    level:
        控制台及过滤文件的最低日志级别。
    rotation:
        单个日志文件最大体积或时间周期。
    retention:
        日志文件保留时长。
    """
    # 移除默认 handler，避免重复输出
    logger.remove()
    logger.configure(patcher=_src_patcher)

    logger.add(sys.stderr, level=level, format=_FMT)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "avdmcp_{time:YYYY-MM-DD}.debug.log",
            level="DEBUG",
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
            format=_FMT,
        )

        if level.upper() != "DEBUG":
            logger.add(
                log_dir / "avdmcp_{time:YYYY-MM-DD}.log",
                level=level,
                rotation=rotation,
                retention=retention,
                encoding="utf-8",
                format=_FMT,
            )

    for _noisy in _NOISY_LOGGERS:
        logging.getLogger(_noisy).setLevel(logging.WARNING)
