"""
日志模块

日志统一写到 stderr，stdout 只留给命令输出（版本列表、安装结果等）。
"""

import os
import sys
from typing import Optional, TextIO

from loguru import logger

LOG_LEVEL_ENV = "NOISEFETCH_LOG_LEVEL"
DEBUG_ENV = "NOISEFETCH_DEBUG"

CONSOLE_FORMAT = "<level>{level: <8}</level> | {message}"
DEBUG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | <level>{level: <8}</level> | "
    "{name}:{function}:{line} | {message}"
)


def resolve_level(level: Optional[str] = None) -> str:
    """
    确定日志级别

    优先使用显式参数，其次 NOISEFETCH_LOG_LEVEL，NOISEFETCH_DEBUG=1 时为 DEBUG，默认 INFO。
    """
    if level:
        return level.upper()
    if os.environ.get(LOG_LEVEL_ENV):
        return os.environ[LOG_LEVEL_ENV].upper()
    if os.environ.get(DEBUG_ENV, "0") == "1":
        return "DEBUG"
    return "INFO"


def setup_logger(level: Optional[str] = None, sink: Optional[TextIO] = None) -> str:
    """
    配置命令行使用的日志输出

    Args:
        level: 日志级别，None 时从环境变量读取
        sink: 输出目标，默认 sys.stderr（调用时取值，便于测试替换）

    Returns:
        实际生效的日志级别
    """
    level = resolve_level(level)
    debug = level == "DEBUG"
    sink = sink if sink is not None else sys.stderr

    logger.remove()
    logger.add(
        sink,
        level=level,
        format=DEBUG_FORMAT if debug else CONSOLE_FORMAT,
        colorize=hasattr(sink, "isatty") and sink.isatty(),
        backtrace=debug,
        diagnose=debug,
    )
    return level
