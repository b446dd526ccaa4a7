"""
操作结果模型

引擎对外的每个操作都返回 OperationResult，由 CLI 负责格式化与退出码。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from noisefetch.exceptions import NoiseFetchError


class InstallStage(Enum):
    """安装流程阶段"""

    RESOLVING_CATALOG = "resolving_catalog"
    RESOLVING_VERSION = "resolving_version"
    CHECKING_INSTALL = "checking_install"
    FETCHING_DETAILS = "fetching_details"
    DOWNLOADING_SHARED = "downloading_shared"
    DOWNLOADING_PLATFORM = "downloading_platform"
    EXTRACTING = "extracting"
    INSTALLED = "installed"


@dataclass
class OperationResult:
    """操作结果"""

    success: bool
    message: str
    version: Optional[str] = None
    error: Optional[NoiseFetchError] = None
    stage: Optional[InstallStage] = None

    @classmethod
    def ok(
        cls,
        message: str,
        version: Optional[str] = None,
        stage: Optional[InstallStage] = None,
    ) -> "OperationResult":
        return cls(success=True, message=message, version=version, stage=stage)

    @classmethod
    def fail(
        cls,
        error: NoiseFetchError,
        stage: Optional[InstallStage] = None,
        version: Optional[str] = None,
    ) -> "OperationResult":
        return cls(
            success=False,
            message=error.message,
            version=version,
            error=error,
            stage=stage,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "version": self.version,
            "stage": self.stage.value if self.stage else None,
            "error": self.error.to_dict() if self.error else None,
        }
