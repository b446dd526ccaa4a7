"""
NoiseFetch 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional


class NoiseFetchError(Exception):
    """NoiseFetch 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(NoiseFetchError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class CatalogUnavailable(NoiseFetchError):
    """所有镜像都无法提供有效的版本索引"""

    def _get_default_code(self) -> str:
        return "E200"


class VersionNotFound(NoiseFetchError):
    """版本标识无法在索引中解析"""

    def _get_default_code(self) -> str:
        return "E201"


class DetailsUnavailable(NoiseFetchError):
    """所有镜像都无法提供版本详情"""

    def _get_default_code(self) -> str:
        return "E202"


class AlreadyInstalled(NoiseFetchError):
    """版本已安装（可通过 force 覆盖）"""

    def _get_default_code(self) -> str:
        return "E300"


class NotInstalled(NoiseFetchError):
    """卸载目标不存在"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadError(NoiseFetchError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E400"


class ArtifactFetchFailed(DownloadError):
    """所有镜像均无法提供校验通过的文件"""

    def _get_default_code(self) -> str:
        return "E401"


class ChecksumMismatch(DownloadError):
    """
    单个镜像的校验失败

    只在镜像层面使用，全部镜像耗尽后才升级为 ArtifactFetchFailed。
    """

    def _get_default_code(self) -> str:
        return "E402"


class ExtractionFailed(NoiseFetchError):
    """压缩包损坏或解压时文件系统出错"""

    def _get_default_code(self) -> str:
        return "E500"


class FilesystemFault(NoiseFetchError):
    """权限、磁盘空间、删除失败等文件系统错误"""

    def _get_default_code(self) -> str:
        return "E501"


class UnsupportedPlatform(NoiseFetchError):
    """无法识别或不支持的平台"""

    def _get_default_code(self) -> str:
        return "E600"


__all__ = [
    # 基础异常
    "NoiseFetchError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 索引异常
    "CatalogUnavailable",
    "VersionNotFound",
    "DetailsUnavailable",
    # 安装状态异常
    "AlreadyInstalled",
    "NotInstalled",
    # 下载异常
    "DownloadError",
    "ArtifactFetchFailed",
    "ChecksumMismatch",
    # 文件系统异常
    "ExtractionFailed",
    "FilesystemFault",
    # 平台异常
    "UnsupportedPlatform",
]
