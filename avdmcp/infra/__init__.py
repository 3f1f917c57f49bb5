"""基础设施层 — 日志、配置、异常体系、文件工具。"""

from .config import (
    AndroidSdkConfig,
    AppConfig,
    ConfigManager,
    LogConfig,
    OllamaConfig,
    ServerConfig,
    default_android_home,
)
from .exceptions import (
    AvdMcpError,
    CommandError,
    ConfigError,
    EmulatorError,
    InvalidInputError,
    LaunchError,
    OllamaError,
    UnsupportedDirectionError,
)
from .file_utils import load_yaml
from .logger import setup_logger

__all__ = [
    # config
    "AndroidSdkConfig",
    "AppConfig",
    "ConfigManager",
    "LogConfig",
    "OllamaConfig",
    "ServerConfig",
    "default_android_home",
    # exceptions
    "AvdMcpError",
    "CommandError",
    "ConfigError",
    "EmulatorError",
    "InvalidInputError",
    "LaunchError",
    "OllamaError",
    "UnsupportedDirectionError",
    # file_utils
    "load_yaml",
    # logger
    "setup_logger",
]
