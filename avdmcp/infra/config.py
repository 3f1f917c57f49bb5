"""配置管理 — 基于 Pydantic v2。

配置从 YAML 文件加载，经过 Pydantic 校验后生成不可变的配置对象。

使用方式::

    from avdmcp.infra.config import ConfigManager

    config = ConfigManager.load("avdmcp.yaml")
    print(config.sdk.android_home)

配置文件示例::

    sdk:
      android_home: "/opt/android-sdk"
    ollama:
      url: "http://localhost:11434"
      default_model: "llama3"
    log:
      level: "DEBUG"
      save_to_file: true
"""

from __future__ import annotations

import datetime
import os
from pathlib import Path
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import ConfigError
from .file_utils import load_yaml
from avdmcp.types import OSType


def default_android_home(os_type: OSType, environ: dict[str, str] | None = None) -> Path:
    """返回 Android SDK 根目录。

    查找顺序：``ANDROID_HOME`` → ``ANDROID_SDK_ROOT`` → 各操作系统下 Android Studio 的默认安装位置。
    """
    env = os.environ if environ is None else environ
    for var in ("ANDROID_HOME", "ANDROID_SDK_ROOT"):
        value = env.get(var)
        if value:
            return Path(value)

    match os_type:
        case OSType.macos:
            return Path.home() / "Library" / "Android" / "sdk"
        case OSType.windows:
            local = env.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
            return Path(local) / "Android" / "Sdk"
        case _:
            return Path.home() / "Android" / "Sdk"


# ── 子配置模型 ──


class AndroidSdkConfig(BaseModel):
    """Android SDK 配置。"""

    model_config = {"frozen": True}

    android_home: Path | None = None
    """SDK 根目录。None = 从环境变量或默认位置推断"""


class OllamaConfig(BaseModel):
    """Ollama 模型服务配置。"""

    model_config = {"frozen": True}

    enabled: bool = True
    """是否注册 Ollama 相关工具与资源"""
    url: str = "http://localhost:11434"
    """Ollama 服务地址"""
    default_model: str = "llama2"
    """未指定模型时使用的默认模型"""
    timeout: float = 120.0
    """单次请求超时 (秒)"""

    @field_validator("url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LogConfig(BaseModel):
    """日志配置。"""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    """日志级别"""
    save_to_file: bool = False
    """是否写入日志文件"""
    root: Path = Path("log")
    """日志保存根目录"""
    dir: Path | None = None
    """日志保存路径。自动按日期生成"""

    @model_validator(mode="after")
    def _set_log_dir(self) -> LogConfig:
        if self.dir is None:
            ts = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            object.__setattr__(self, "dir", self.root / ts)
        return self


class ServerConfig(BaseModel):
    """MCP 服务配置。"""

    model_config = {"frozen": True}

    name: str = "android-mcp-server"
    """对外公布的服务名"""
    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
    """传输方式"""


# ── 顶层配置 ──


class AppConfig(BaseModel):
    """应用配置（顶层聚合）。"""

    model_config = {"frozen": True}

    sdk: AndroidSdkConfig = Field(default_factory=AndroidSdkConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    os_type: OSType = Field(default_factory=OSType.auto)
    """操作系统类型，自动检测"""

    @model_validator(mode="after")
    def _resolve_sdk_defaults(self) -> AppConfig:
        """自动填充 SDK 根目录。"""
        if self.sdk.android_home is None:
            home = default_android_home(self.os_type)
            new_sdk = self.sdk.model_copy(update={"android_home": home})
            object.__setattr__(self, "sdk", new_sdk)
        return self

    @property
    def android_home(self) -> Path:
        if self.sdk.android_home is None:
            raise ConfigError("Android SDK 根目录未解析，请通过 model_validate 构造配置")
        return self.sdk.android_home

    @classmethod
    def from_yaml(cls, path: str | Path) -> AppConfig:
        """从 YAML 文件加载配置。"""
        data = load_yaml(path)
        return cls.model_validate(data)


# ── ConfigManager ──


class ConfigManager:
    """配置管理器 — 提供加载入口。"""

    @staticmethod
    def load(path: str | Path | None) -> AppConfig:
        """从文件加载配置。未指定或不存在时返回默认配置。"""
        if path is None:
            return AppConfig()
        path = Path(path)
        if not path.exists():
            logger.warning("配置文件 {} 不存在，使用默认配置", path)
            return AppConfig()
        config = AppConfig.from_yaml(path)
        logger.info("已加载配置: {}", path)
        return config
