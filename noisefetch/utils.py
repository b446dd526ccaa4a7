import os
from pathlib import Path
from typing import Optional, Union


def format_size(downloaded: int, total: Optional[int] = None) -> str:
    """按总大小选择单位格式化下载量，例如 ``1.50/3.00 MiB``"""
    reference = total if total else downloaded
    if reference < 1024:
        return f"{downloaded}/{total} bytes" if total else f"{downloaded} bytes"
    if reference < 1024 * 1024:
        unit, scale = "KiB", 1024
    else:
        unit, scale = "MiB", 1024 * 1024
    if total:
        return f"{downloaded / scale:.2f}/{total / scale:.2f} {unit}"
    return f"{downloaded / scale:.2f} {unit}"


def remove_quietly(path: Optional[Union[str, Path]]) -> None:
    """删除临时文件，文件已不存在时忽略"""
    if path is None:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
