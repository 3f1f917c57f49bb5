"""外部工具文本输出解析。

``avdmanager`` / ``adb`` / ``sdkmanager`` 的输出没有版本契约，所有格式假设都集中在本模块，
每个函数都是纯函数，并且对任意输入都是 **全函数**：

- 块解析（AVD 列表）：缺失的字段退化为 ``"Unknown"``；
- 表解析（SDK 包、属性、设备列表）：格式不符的行直接丢弃；
- 任何解析函数都不会因为输入残缺而抛出异常。

格式漂移时只需修改这里的函数及对应测试，调用方不受影响。
"""

from __future__ import annotations

import re

from loguru import logger

from .models import (
    UNKNOWN,
    DeviceInfo,
    EmulatorDescriptor,
    RunningInstance,
    SdkPackageList,
    SystemImagePackage,
)
from avdmcp.types import PackageSection

# ── AVD 列表（块解析） ──

_AVD_BLOCK_MARKER = "Name: "


def _find_label(lines: list[str], label: str) -> str:
    """在块内查找首个包含 ``label:`` 的行，返回 ``label: `` 之后的文本。

    ``ABI`` 同时匹配旧格式 ``ABI: x86_64`` 与新格式 ``Tag/ABI: google_apis/x86_64``。
    """
    for line in lines:
        if f"{label}:" in line:
            parts = line.split(f"{label}: ", 1)
            value = parts[1].strip() if len(parts) > 1 else ""
            return value or UNKNOWN
    return UNKNOWN


def parse_avd_list(text: str) -> list[EmulatorDescriptor]:
    """解析 ``avdmanager list avd`` 的输出。

    以 ``Name: `` 为块起始标记，标记之后、下一个标记之前的所有行属于同一条记录。
    同名的块以最后出现的为准（保留首次出现的位置）。

    Parameters
    ----------
    text:
        命令的原始 stdout。

    Returns
    -------
    list[EmulatorDescriptor]
        可能为空，绝不抛出异常。
    """
    by_name: dict[str, EmulatorDescriptor] = {}
    for block in text.split(_AVD_BLOCK_MARKER)[1:]:
        lines = block.splitlines()
        name = lines[0].strip() if lines else ""
        target = _find_label(lines, "Target")
        by_name[name or UNKNOWN] = EmulatorDescriptor(
            name=name or UNKNOWN,
            target=target,
            sdk=target,
            abi=_find_label(lines, "ABI"),
        )
    logger.debug("[Parser] 解析到 {} 个 AVD", len(by_name))
    return list(by_name.values())


# ── adb devices ──

_EMULATOR_SERIAL_PREFIX = "emulator-"


def parse_adb_devices(text: str) -> list[RunningInstance]:
    """解析 ``adb devices`` 的输出，只保留状态为 ``device`` 的模拟器。

    ``offline`` / ``unauthorized`` 的实例以及物理设备、网络设备均被忽略。
    """
    running: list[RunningInstance] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2 or parts[1] != "device":
            continue
        serial = parts[0]
        if not serial.startswith(_EMULATOR_SERIAL_PREFIX):
            continue
        port = serial[len(_EMULATOR_SERIAL_PREFIX):]
        if port.isdigit():
            running.append(RunningInstance(name=serial, port=port))
    return running


# ── getprop ──

_PROP_LINE = re.compile(r"^\s*\[(?P<key>[^\]]*)\]\s*:\s*\[(?P<value>.*)\]\s*$")

DEVICE_PROPERTIES: dict[str, str] = {
    "build_version": "ro.build.version.release",
    "api_level": "ro.build.version.sdk",
    "device_name": "ro.product.model",
    "manufacturer": "ro.product.manufacturer",
    "architecture": "ro.product.cpu.abi",
}
"""DeviceInfo 字段 → 系统属性名。"""


def parse_getprop(text: str) -> dict[str, str]:
    """解析 ``getprop`` 输出的 ``[key]: [value]`` 行。"""
    props: dict[str, str] = {}
    for line in text.splitlines():
        m = _PROP_LINE.match(line)
        if m:
            props[m.group("key")] = m.group("value").strip()
    return props


def extract_property(props: dict[str, str], key: str) -> str:
    """读取单个属性，缺失或为空时返回 ``"Unknown"``。"""
    return props.get(key) or UNKNOWN


def parse_device_info(port: str, text: str) -> DeviceInfo:
    """从 ``getprop`` 输出构造 :class:`DeviceInfo`，每个字段独立退化。"""
    props = parse_getprop(text)
    values = {attr: extract_property(props, key) for attr, key in DEVICE_PROPERTIES.items()}
    return DeviceInfo(port=port, **values)


# ── sdkmanager --list（表解析） ──

_SECTION_HEADERS: list[tuple[str, PackageSection]] = [
    ("Installed packages:", PackageSection.installed),
    ("Available Packages:", PackageSection.available),
    ("Available Updates:", PackageSection.updates),
]

_TABLE_HEADERS = {"Path", "ID"}


def _split_row(line: str) -> list[str]:
    return [part.strip() for part in line.split("|") if part.strip()]


def _is_separator(line: str, parts: list[str]) -> bool:
    return "---" in line and all(set(p) <= {"-"} for p in parts)


def parse_sdk_list(text: str) -> SdkPackageList:
    """解析 ``sdkmanager --list`` 的输出。

    分类由行所在的分段决定，而不是由字段值决定：``Available Packages:`` 之前的行归入
    已安装集合，之后归入可安装集合；``Available Updates:`` 分段被忽略。
    每行按 ``|`` 切分，位置 0/1/2 分别对应路径 / 版本 / 描述（描述可选）。
    """
    installed: list[SystemImagePackage] = []
    available: list[SystemImagePackage] = []
    section = PackageSection.installed

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        header = next((sec for marker, sec in _SECTION_HEADERS if marker in line), None)
        if header is not None:
            section = header
            continue
        if section == PackageSection.updates:
            continue

        parts = _split_row(line)
        if len(parts) < 2 or parts[0] in _TABLE_HEADERS or _is_separator(line, parts):
            continue

        pkg = SystemImagePackage(
            path=parts[0],
            version=parts[1],
            description=parts[2] if len(parts) > 2 else "",
            installed=section == PackageSection.installed,
        )
        (installed if pkg.installed else available).append(pkg)

    logger.debug("[Parser] SDK 包: 已安装 {} / 可安装 {}", len(installed), len(available))
    return SdkPackageList(installed=installed, available=available)


# ── pm / cmd package ──


def parse_package_list(text: str) -> list[str]:
    """解析 ``pm list packages`` 输出的 ``package:<name>`` 行。"""
    packages: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line.startswith("package:"):
            continue
        name = line[len("package:"):]
        # -f 格式为 package:<apk 路径>=<包名>
        name = name.rsplit("=", 1)[-1].strip()
        if name:
            packages.append(name)
    return packages


def parse_resolved_activity(text: str) -> str | None:
    """从 ``cmd package resolve-activity --brief`` 输出中取入口组件。

    只看最后一个非空行，形如 ``com.android.settings/.Settings`` 才视为有效；
    ``No activity found`` 等提示返回 ``None``。
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return None
    last = lines[-1]
    if "/" not in last or any(ch.isspace() for ch in last):
        return None
    return last


def parse_start_error(text: str) -> str | None:
    """``am start`` 失败时退出码仍可能为 0，此处从输出中找出错误行。"""
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("Error:") or line.startswith("Error type"):
            return line
    return None


# ── 模拟器控制台 ──


def console_reply_failed(text: str) -> bool:
    """``adb emu`` 的控制台回复以 ``KO`` 开头表示命令被拒绝。"""
    return any(line.strip().startswith("KO") for line in text.splitlines())


# ── wm size / wm density ──

_SIZE_LINE = re.compile(r"(?P<kind>Physical|Override) size:\s*(?P<w>\d+)x(?P<h>\d+)")
_DENSITY_LINE = re.compile(r"(?P<kind>Physical|Override) density:\s*(?P<d>\d+)")


def parse_screen_size(text: str) -> tuple[int, int] | None:
    """解析 ``wm size``，``Override size`` 优先于 ``Physical size``。"""
    found: dict[str, tuple[int, int]] = {}
    for m in _SIZE_LINE.finditer(text):
        found[m.group("kind")] = (int(m.group("w")), int(m.group("h")))
    return found.get("Override") or found.get("Physical")


def parse_screen_density(text: str) -> int | None:
    """解析 ``wm density``，``Override density`` 优先。"""
    found: dict[str, int] = {}
    for m in _DENSITY_LINE.finditer(text):
        found[m.group("kind")] = int(m.group("d"))
    return found.get("Override") or found.get("Physical")
