"""
NoiseFetch 数据模型包

包含配置模型、API 模型和操作结果定义。
"""

from noisefetch.models.config import (
    Platform,
    Settings,
    load_settings,
    make_rooted,
    parse_interval,
    format_interval,
)
from noisefetch.models.api import (
    VersionInfo,
    VersionIndex,
    ArtifactInfo,
    VersionDetails,
)
from noisefetch.models.result import InstallStage, OperationResult

__all__ = [
    # 配置模型
    "Platform",
    "Settings",
    "load_settings",
    "make_rooted",
    "parse_interval",
    "format_interval",
    # API 模型
    "VersionInfo",
    "VersionIndex",
    "ArtifactInfo",
    "VersionDetails",
    # 结果模型
    "InstallStage",
    "OperationResult",
]
