"""
配置数据模型

定义平台枚举与进程级设置，以及设置文件的读写。
"""

import json
import os
import platform as _platform
import re
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import click
import toml
import yaml
from loguru import logger

from noisefetch.exceptions import (
    ConfigParseError,
    ConfigValidationError,
    UnsupportedPlatform,
)

APP_NAME = "noisefetch"
SETTINGS_FILENAME = "settings.json"

DEFAULT_INSTALL_URLS = ["http://127.0.0.1:8080/"]
DEFAULT_INSTALL_DIRECTORY = "./versions"
DEFAULT_INDEX_INTERVAL = timedelta(days=1)

_INTERVAL_PATTERN = re.compile(
    r"^(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2}):(?P<seconds>\d{2}(?:\.\d+)?)$"
)


class Platform(Enum):
    """支持的平台（固定集合，目录名即枚举值）"""

    WINDOWS_AMD64 = "WindowsAmd64"
    LINUX_AMD64 = "LinuxAmd64"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str) -> "Platform":
        """解析命令行传入的平台名（忽略大小写）"""
        for item in cls:
            if item.value.lower() == text.strip().lower():
                return item
        raise UnsupportedPlatform(
            f"无效的平台: `{text}`",
            context={"platform": text, "available": [p.value for p in cls]},
        )

    @classmethod
    def current(cls) -> "Platform":
        """获取当前运行的平台"""
        system = _platform.system()
        if system == "Windows":
            return cls.WINDOWS_AMD64
        if system == "Linux":
            return cls.LINUX_AMD64
        raise UnsupportedPlatform(
            "无法确定当前系统，请使用 --platform 选项", context={"system": system}
        )


def parse_interval(value: Union[str, int, float, timedelta]) -> timedelta:
    """
    解析索引自动刷新间隔

    Args:
        value: 秒数，或 ``[d.]hh:mm:ss`` 格式字符串

    Returns:
        timedelta
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigValidationError(
            "autoDownloadIndexInterval 必须为秒数或 d.hh:mm:ss 字符串",
            context={"value": value},
        )
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    match = _INTERVAL_PATTERN.match(str(value).strip())
    if not match:
        raise ConfigValidationError(
            f"无法解析刷新间隔: {value}", context={"value": value}
        )
    return timedelta(
        days=int(match.group("days") or 0),
        hours=int(match.group("hours")),
        minutes=int(match.group("minutes")),
        seconds=float(match.group("seconds")),
    )


def format_interval(interval: timedelta) -> str:
    """将 timedelta 格式化为 ``d.hh:mm:ss``"""
    total = int(interval.total_seconds())
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{days}.{hours:02d}:{minutes:02d}:{seconds:02d}"


def default_base_dir() -> Path:
    """相对路径的基准目录"""
    if home := os.environ.get("NOISEFETCH_HOME"):
        return Path(home)
    return Path(click.get_app_dir(APP_NAME))


def make_rooted(path: Union[str, Path], base: Path) -> Path:
    """相对路径以 base 为基准转为绝对路径"""
    path = Path(path)
    if path.is_absolute():
        return path
    return base / path


@dataclass
class Settings:
    """进程级设置，启动时构造一次并显式传入各组件"""

    install_urls: List[str] = field(default_factory=lambda: list(DEFAULT_INSTALL_URLS))
    install_directory: str = DEFAULT_INSTALL_DIRECTORY
    auto_download_index: bool = True
    auto_download_index_interval: timedelta = DEFAULT_INDEX_INTERVAL
    base_dir: Path = field(default_factory=default_base_dir)
    source_path: Optional[Path] = None  # 设置文件路径，不写入文件

    @property
    def install_root(self) -> Path:
        """安装根目录（绝对路径）"""
        return make_rooted(self.install_directory, self.base_dir)

    @property
    def index_cache_path(self) -> Path:
        """索引缓存文件路径"""
        return self.install_root / "index_cache.json"

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "Settings":
        """从设置字典创建（键名使用 camelCase）"""
        if not isinstance(data, dict):
            raise ConfigValidationError("设置文件顶层必须是对象")

        urls = data.get("installUrls", DEFAULT_INSTALL_URLS)
        if isinstance(urls, str):
            urls = [urls]
        if not isinstance(urls, list) or not urls:
            raise ConfigValidationError(
                "installUrls 必须是非空列表", context={"installUrls": urls}
            )

        install_urls = []
        for url in urls:
            url = str(url)
            if not url.endswith("/"):
                logger.warning(f"[配置] 镜像地址 '{url}' 未以 / 结尾，已自动补全")
                url += "/"
            install_urls.append(url)

        auto_download = data.get("autoDownloadIndex", True)
        if not isinstance(auto_download, bool):
            raise ConfigValidationError(
                "autoDownloadIndex 必须为布尔值",
                context={"autoDownloadIndex": auto_download},
            )

        return cls(
            install_urls=install_urls,
            install_directory=str(
                data.get("installDirectory", DEFAULT_INSTALL_DIRECTORY)
            ),
            auto_download_index=auto_download,
            auto_download_index_interval=parse_interval(
                data.get("autoDownloadIndexInterval", DEFAULT_INDEX_INTERVAL)
            ),
            base_dir=base_dir if base_dir is not None else default_base_dir(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为设置文件格式"""
        return {
            "installUrls": list(self.install_urls),
            "installDirectory": self.install_directory,
            "autoDownloadIndex": self.auto_download_index,
            "autoDownloadIndexInterval": format_interval(
                self.auto_download_index_interval
            ),
        }


def load_settings(
    path: Optional[Union[str, Path]] = None, base_dir: Optional[Path] = None
) -> Settings:
    """
    加载设置文件

    文件不存在时使用默认设置并写入 JSON 文件。

    Args:
        path: 设置文件路径（默认 base_dir/settings.json）
        base_dir: 相对路径基准目录

    Returns:
        Settings
    """
    base = base_dir if base_dir is not None else default_base_dir()
    settings_path = make_rooted(path or SETTINGS_FILENAME, base)

    if not settings_path.exists():
        logger.warning("[配置] 未找到设置文件，使用默认设置")
        settings = Settings(base_dir=base, source_path=settings_path)
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        settings_path.write_text(
            json.dumps(settings.to_dict(), indent=2), encoding="utf-8"
        )
        return settings

    suffix = settings_path.suffix.lower()
    try:
        if suffix == ".json":
            data = json.loads(settings_path.read_text(encoding="utf-8"))
        elif suffix == ".toml":
            data = toml.load(settings_path)
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
        else:
            raise ConfigParseError(
                f"不支持的设置文件格式: {suffix}", context={"path": str(settings_path)}
            )
    except (ValueError, toml.TomlDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"无法解析设置文件: {e}", context={"path": str(settings_path)}
        )

    settings = Settings.from_dict(data or {}, base_dir=base)
    settings.source_path = settings_path
    return settings
