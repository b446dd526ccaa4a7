"""
文件校验器

实现 SHA-256 计算与校验。校验失败不是异常，由调用方决定是否换镜像重试。
"""

import hashlib
import hmac
import os
from typing import Optional

import aiofiles
from loguru import logger


class ChecksumVerifier:
    """SHA-256 校验器"""

    chunk_size = 65536

    @staticmethod
    def _decode(expected_sha256: str) -> Optional[bytes]:
        """将十六进制摘要解码为字节，格式错误返回 None"""
        try:
            return bytes.fromhex(expected_sha256.strip())
        except (ValueError, AttributeError):
            logger.warning(f"[校验] 无效的 SHA-256 值: {expected_sha256!r}")
            return None

    @staticmethod
    async def calc_sha256(file_path: str) -> Optional[str]:
        """
        计算文件的 SHA-256 值

        Args:
            file_path: 文件路径

        Returns:
            十六进制摘要或 None（如果文件不存在）
        """
        if not os.path.exists(file_path):
            return None

        sha256 = hashlib.sha256()
        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    data = await f.read(ChecksumVerifier.chunk_size)
                    if not data:
                        break
                    sha256.update(data)
            return sha256.hexdigest()
        except (IOError, OSError):
            return None

    @staticmethod
    def digest_bytes(data: bytes) -> str:
        """计算内存数据的 SHA-256"""
        return hashlib.sha256(data).hexdigest()

    @staticmethod
    def verify_bytes(data: bytes, expected_sha256: str) -> bool:
        """校验内存数据"""
        expected = ChecksumVerifier._decode(expected_sha256)
        if expected is None:
            return False
        return hmac.compare_digest(hashlib.sha256(data).digest(), expected)

    @staticmethod
    async def verify(file_path: str, expected_sha256: str) -> bool:
        """
        校验文件的 SHA-256 是否匹配

        整个文件都会流过摘要计算后才比较。

        Args:
            file_path: 文件路径
            expected_sha256: 预期的十六进制 SHA-256

        Returns:
            是否匹配
        """
        expected = ChecksumVerifier._decode(expected_sha256)
        if expected is None:
            return False

        current = await ChecksumVerifier.calc_sha256(file_path)
        if current is None:
            return False

        return hmac.compare_digest(bytes.fromhex(current), expected)
