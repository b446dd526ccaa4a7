"""
镜像客户端

从配置的镜像列表获取索引与版本详情文档。
"""

import json
from typing import Callable, List, Optional, TypeVar

import aiofiles
from loguru import logger

from noisefetch.download import MirrorFetcher
from noisefetch.exceptions import DetailsUnavailable
from noisefetch.models import Settings, VersionDetails, VersionIndex
from noisefetch.utils import remove_quietly

T = TypeVar("T")

INDEX_PATH = "index.json"


class MirrorClient:
    """镜像客户端"""

    def __init__(self, settings: Settings, fetcher: MirrorFetcher):
        self.settings = settings
        self.fetcher = fetcher

    def candidates(self, relative_path: str) -> List[str]:
        """按配置顺序拼出每个镜像上的地址"""
        return [f"{base}{relative_path}" for base in self.settings.install_urls]

    async def fetch_document(
        self, relative_path: str, parse: Callable[[dict], T]
    ) -> Optional[T]:
        """
        获取 JSON 文档

        依次尝试每个镜像，第一个能解析成功的文档胜出。

        Args:
            relative_path: 相对镜像根目录的路径
            parse: 将 JSON 对象转换为模型，结构无效时抛出 ValueError

        Returns:
            解析后的模型，全部镜像失败时返回 None
        """
        for url in self.candidates(relative_path):
            fetched = await self.fetcher.fetch([url])
            if fetched is None:
                continue

            try:
                async with aiofiles.open(fetched.path, "r", encoding="utf-8") as f:
                    data = json.loads(await f.read())
                return parse(data)
            except (ValueError, TypeError, UnicodeDecodeError) as e:
                logger.warning(f"[镜像] `{url}` 返回的文档无效: {e}")
            finally:
                remove_quietly(fetched.path)

        return None

    async def download_index(self) -> Optional[VersionIndex]:
        """下载版本索引"""
        return await self.fetch_document(INDEX_PATH, VersionIndex.from_dict)

    async def download_details(self, version: str) -> VersionDetails:
        """
        下载版本详情（不缓存）

        Raises:
            DetailsUnavailable: 所有镜像都失败
        """
        details = await self.fetch_document(
            f"details/{version}.json", VersionDetails.from_dict
        )
        if details is None:
            raise DetailsUnavailable(
                f"无法下载版本 `{version}` 的详情",
                context={"version": version, "mirrors": self.settings.install_urls},
            )
        return details
