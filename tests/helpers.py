"""测试辅助：本地镜像、压缩包与设置构造"""

import hashlib
import io
import json
import zipfile
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Optional

from aiohttp import web

from noisefetch.models import Platform, Settings

# 没有服务监听的端口，连接会被拒绝
UNREACHABLE = "http://127.0.0.1:1/"


def make_zip(files: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in files.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def make_corrupt_zip(name: str = "lib/native.so") -> bytes:
    """结构完整但压缩数据损坏的 ZIP（deflate 流被改写）"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(name, bytes(range(256)) * 64)
    data = bytearray(buffer.getvalue())
    # 本地文件头 30 字节 + 文件名之后即为压缩数据
    start = 30 + len(name.encode("utf-8")) + 2
    data[start : start + 16] = b"\xff" * 16
    return bytes(data)


def make_unsupported_zip(name: str = "lib/native.so") -> bytes:
    """中央目录中声明了未知压缩算法的 ZIP"""
    data = bytearray(make_zip({name: b"payload"}))
    central = data.index(b"PK\x01\x02")
    data[central + 10 : central + 12] = (77).to_bytes(2, "little")
    return bytes(data)


def sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class Mirror:
    """可编程的镜像：按路径返回文件或指定状态码"""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.status: Dict[str, int] = {}
        self.chunked: set = set()
        self.requests: List[str] = []
        self.base_url = ""

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def put_json(self, path: str, data) -> None:
        self.files[path] = json.dumps(data).encode("utf-8")

    async def handle(self, request: web.Request) -> web.StreamResponse:
        path = request.match_info["path"]
        self.requests.append(path)

        if path in self.status:
            return web.Response(status=self.status[path])
        if path not in self.files:
            return web.Response(status=404)

        body = self.files[path]
        if path in self.chunked:
            response = web.StreamResponse()
            response.enable_chunked_encoding()
            await response.prepare(request)
            for start in range(0, len(body), 1024):
                await response.write(body[start : start + 1024])
            await response.write_eof()
            return response
        return web.Response(body=body)


def make_settings(tmp_path: Path, urls: List[str], auto_download: bool = True) -> Settings:
    return Settings(
        install_urls=urls,
        install_directory="versions",
        auto_download_index=auto_download,
        auto_download_index_interval=timedelta(hours=1),
        base_dir=tmp_path,
    )


def publish_catalog(mirror: Mirror, versions: List[tuple]) -> None:
    mirror.put_json(
        "index.json",
        {"versions": [{"version": v, "preRelease": pre} for v, pre in versions]},
    )


def publish_version(
    mirrors: List[Mirror],
    version: str,
    shared: bytes,
    extension: bytes,
    platform: Platform = Platform.LINUX_AMD64,
    pre_release: bool = False,
) -> None:
    """
    在每个镜像上放置版本的两个压缩包并发布详情文档

    镜像上已存在的同路径文件不会被覆盖，可用于模拟被污染的镜像。
    """
    shared_path = f"files/{version}/shared.zip"
    extension_path = f"files/{version}/{platform.value}.zip"
    for m in mirrors:
        m.files.setdefault(shared_path, shared)
        m.files.setdefault(extension_path, extension)

    prefix = {
        Platform.LINUX_AMD64: "extensionLinuxAmd64",
        Platform.WINDOWS_AMD64: "extensionWindowsAmd64",
    }[platform]
    details = {
        "indexApiVersion": 1,
        "version": version,
        "preRelease": pre_release,
        "sharedSha256": sha256(shared),
        "sharedUrls": [m.url(shared_path) for m in mirrors],
        f"{prefix}Sha256": sha256(extension),
        f"{prefix}Urls": [m.url(extension_path) for m in mirrors],
    }
    for m in mirrors:
        m.put_json(f"details/{version}.json", details)
