"""
NoiseFetch 下载层

包含镜像下载与文件校验功能。
"""

from noisefetch.download.fetcher import FetchedFile, MirrorFetcher
from noisefetch.download.verifier import ChecksumVerifier

__all__ = [
    "FetchedFile",
    "MirrorFetcher",
    "ChecksumVerifier",
]
