"""
NoiseFetch 服务层

包含业务逻辑服务：镜像客户端、索引缓存、安装登记、版本解析。
"""

from noisefetch.services.mirror_client import MirrorClient
from noisefetch.services.catalog_cache import CatalogCache
from noisefetch.services.registry import InstallRegistry
from noisefetch.services.version_resolver import VersionResolver, LATEST, LATEST_PRE

__all__ = [
    "MirrorClient",
    "CatalogCache",
    "InstallRegistry",
    "VersionResolver",
    "LATEST",
    "LATEST_PRE",
]
