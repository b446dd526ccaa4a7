"""
镜像下载器

按给定顺序依次尝试候选地址，第一个完整下载成功的地址胜出。
单个镜像的失败只记录日志，不会中断整个操作。
"""

import asyncio
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

import aiofiles
import aiohttp
from loguru import logger

from noisefetch.exceptions import DownloadError, FilesystemFault
from noisefetch.utils import format_size, remove_quietly


@dataclass
class FetchedFile:
    """下载到本地的临时文件"""

    path: Path
    url: str
    index: int  # 在候选列表中的位置
    size: int


class MirrorFetcher:
    """镜像下载器"""

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 300.0,
        chunk_size: int = 8192,
        temp_dir: Optional[str] = None,
        progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
    ):
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.temp_dir = temp_dir
        self._session = session
        self._owned_session = session is None
        self._progress_callback = progress_callback

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owned_session = True
        return self._session

    async def fetch(self, candidates: Sequence[str]) -> Optional[FetchedFile]:
        """
        依次尝试候选地址

        Args:
            candidates: 候选 URL 列表（严格按顺序尝试）

        Returns:
            第一个完整下载的文件，全部失败时返回 None
        """
        for index, url in enumerate(candidates):
            logger.info(f"[下载] 正在下载 `{url}`...")
            try:
                path, size = await self._download(url)
            except DownloadError as e:
                logger.warning(f"[下载] 无法访问 `{url}`: {e.message}")
                continue
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning(f"[下载] 从 `{url}` 下载失败: {e!r}")
                continue
            except OSError as e:
                # 本地写入失败，换镜像也无济于事
                raise FilesystemFault(
                    f"写入临时文件失败: {e}", context={"url": url}
                ) from e

            logger.debug(f"[下载] `{url}` -> {path} ({size} bytes)")
            return FetchedFile(path=path, url=url, index=index, size=size)

        return None

    async def _download(self, url: str) -> tuple[Path, int]:
        """下载单个地址到新的临时文件"""
        async with self.session.get(url) as response:
            if response.status != 200:
                raise DownloadError(
                    f"HTTP {response.status}",
                    context={"url": url, "status": response.status},
                )

            total_size = response.content_length
            if total_size is None:
                logger.warning("[下载] 无法确定文件大小，可能是服务器问题")

            path = self._create_temp_file()
            downloaded = 0
            try:
                async with aiofiles.open(path, "wb") as f:
                    last_percent = 0.0

                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        await f.write(chunk)
                        downloaded += len(chunk)

                        # 进度回调
                        if self._progress_callback:
                            self._progress_callback(url, downloaded, total_size)

                        if total_size:
                            percent = (downloaded / total_size) * 100
                            if percent - last_percent >= 5:
                                logger.info(
                                    f"[进度] {format_size(downloaded, total_size)} ({percent:.1f}%)"
                                )
                                last_percent = percent
            except BaseException:
                # 清理不完整的文件
                remove_quietly(path)
                raise

        return path, downloaded

    def _create_temp_file(self) -> Path:
        try:
            fd, name = tempfile.mkstemp(prefix="noisefetch-", suffix=".tmp", dir=self.temp_dir)
        except OSError as e:
            raise FilesystemFault(f"无法创建临时文件: {e}", context={"dir": self.temp_dir})
        os.close(fd)
        return Path(name)

    async def close(self):
        """关闭下载器"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
