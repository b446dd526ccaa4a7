"""
NoiseFetch 压缩包处理层
"""

from noisefetch.archive.zip import ZipExtractor

__all__ = [
    "ZipExtractor",
]
