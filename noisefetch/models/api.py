"""
API 数据模型

定义镜像返回的索引文档与版本详情文档。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from noisefetch.models.config import Platform


def _require(data: Dict[str, Any], key: str, kind: type) -> Any:
    """取出必需字段并检查类型"""
    if key not in data:
        raise ValueError(f"缺少字段: {key}")
    value = data[key]
    if not isinstance(value, kind):
        raise ValueError(f"字段 {key} 类型错误: {type(value).__name__}")
    return value


def _flag(data: Dict[str, Any], key: str) -> bool:
    """可选的布尔字段，缺省为 False，非布尔值视为结构无效"""
    if key not in data:
        return False
    return _require(data, key, bool)


@dataclass(frozen=True)
class VersionInfo:
    """索引中的单个版本条目"""

    version: str
    pre_release: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionInfo":
        if not isinstance(data, dict):
            raise ValueError("版本条目必须是对象")
        return cls(
            version=_require(data, "version", str),
            pre_release=_flag(data, "preRelease"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "preRelease": self.pre_release}


@dataclass(frozen=True)
class VersionIndex:
    """
    版本索引

    条目按从新到旧排列，该顺序即为 latest / latest-pre 的判定依据，
    任何地方都不会重新排序。
    """

    versions: Tuple[VersionInfo, ...] = ()

    def __iter__(self) -> Iterator[VersionInfo]:
        return iter(self.versions)

    def __len__(self) -> int:
        return len(self.versions)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionIndex":
        """从 index.json 内容创建，结构无效时抛出 ValueError"""
        if not isinstance(data, dict):
            raise ValueError("索引文档必须是对象")
        entries = _require(data, "versions", list)
        return cls(versions=tuple(VersionInfo.from_dict(entry) for entry in entries))

    def to_dict(self) -> Dict[str, Any]:
        return {"versions": [v.to_dict() for v in self.versions]}


@dataclass(frozen=True)
class ArtifactInfo:
    """可下载的压缩包：SHA-256 与候选镜像 URL 列表"""

    sha256: str
    urls: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class VersionDetails:
    """
    版本详情

    每次需要时都重新获取，不做持久化缓存（镜像 URL 可能轮换）。
    """

    index_api_version: int
    version: str
    pre_release: bool
    shared: ArtifactInfo
    extensions: Dict[Platform, ArtifactInfo]

    # 平台扩展包在详情文档中的字段前缀
    EXTENSION_KEYS = {
        Platform.WINDOWS_AMD64: "extensionWindowsAmd64",
        Platform.LINUX_AMD64: "extensionLinuxAmd64",
    }

    def extension_for(self, platform: Platform) -> Optional[ArtifactInfo]:
        """获取指定平台的扩展包"""
        return self.extensions.get(platform)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionDetails":
        """从 details/{version}.json 内容创建，结构无效时抛出 ValueError"""
        if not isinstance(data, dict):
            raise ValueError("详情文档必须是对象")

        shared = ArtifactInfo(
            sha256=_require(data, "sharedSha256", str),
            urls=[str(u) for u in _require(data, "sharedUrls", list)],
        )

        extensions = {}
        for platform, prefix in cls.EXTENSION_KEYS.items():
            sha256 = data.get(f"{prefix}Sha256")
            urls = data.get(f"{prefix}Urls")
            if sha256 is None and urls is None:
                continue
            extensions[platform] = ArtifactInfo(
                sha256=_require(data, f"{prefix}Sha256", str),
                urls=[str(u) for u in _require(data, f"{prefix}Urls", list)],
            )

        return cls(
            index_api_version=int(data.get("indexApiVersion", 1)),
            version=_require(data, "version", str),
            pre_release=_flag(data, "preRelease"),
            shared=shared,
            extensions=extensions,
        )
