"""
版本索引缓存

将最近一次成功获取的索引保存在本地，以文件修改时间判断是否过期。
"""

import json
import os
import time
from pathlib import Path
from typing import Callable, Optional

import aiofiles
from loguru import logger

from noisefetch.exceptions import CatalogUnavailable, FilesystemFault
from noisefetch.models import Settings, VersionIndex
from noisefetch.services.mirror_client import MirrorClient


class CatalogCache:
    """版本索引缓存"""

    def __init__(
        self,
        settings: Settings,
        client: MirrorClient,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.client = client
        self._clock = clock

    @property
    def path(self) -> Path:
        return self.settings.index_cache_path

    async def get(self) -> VersionIndex:
        """
        获取索引

        本地缓存存在且有效时直接使用，否则从镜像下载。

        Raises:
            CatalogUnavailable: 无缓存且所有镜像都失败
        """
        cached = await self._load()
        if cached is not None:
            return cached
        return await self.refresh()

    async def refresh(self) -> VersionIndex:
        """
        总是从镜像下载索引并写入缓存

        全部镜像失败时保留原有缓存。

        Raises:
            CatalogUnavailable: 所有镜像都失败
        """
        index = await self.client.download_index()
        if index is None:
            logger.error("[索引] 无法下载版本索引")
            raise CatalogUnavailable(
                "无法下载版本索引",
                context={"mirrors": self.settings.install_urls},
            )

        await self._save(index)
        logger.debug(f"[索引] 已缓存 {len(index)} 个版本")
        return index

    def should_refresh(self) -> bool:
        """缓存是否需要在后台刷新"""
        if not self.settings.auto_download_index:
            return False

        try:
            mtime = self.path.stat().st_mtime
        except FileNotFoundError:
            return True

        age = self._clock() - mtime
        return age > self.settings.auto_download_index_interval.total_seconds()

    async def _load(self) -> Optional[VersionIndex]:
        if not self.path.exists():
            return None
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                return VersionIndex.from_dict(json.loads(await f.read()))
        except (ValueError, OSError) as e:
            logger.warning(f"[索引] 缓存文件无效，将重新下载: {e}")
            return None

    async def _save(self, index: VersionIndex):
        """写入临时文件后替换，避免留下半截缓存"""
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(index.to_dict(), indent=2))
            os.replace(temp_path, self.path)
        except OSError as e:
            raise FilesystemFault(
                f"无法写入索引缓存: {e}", context={"path": str(self.path)}
            ) from e
