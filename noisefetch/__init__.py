"""
NoiseFetch

NoiseEngine 版本管理：解析版本、从镜像下载并校验、维护本地安装目录。
"""

__version__ = "0.1.0"
