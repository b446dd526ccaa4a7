from pathlib import Path
from typing import List

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from helpers import Mirror, make_settings
from noisefetch.download import MirrorFetcher
from noisefetch.orchestrator import VersionEngine


@pytest_asyncio.fixture
async def mirror_factory():
    servers = []

    async def factory() -> Mirror:
        mirror = Mirror()
        app = web.Application()
        app.router.add_get("/{path:.*}", mirror.handle)
        server = TestServer(app)
        await server.start_server()
        mirror.base_url = str(server.make_url("/"))
        servers.append(server)
        return mirror

    yield factory

    for server in servers:
        await server.close()


@pytest_asyncio.fixture
async def mirror(mirror_factory) -> Mirror:
    return await mirror_factory()


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tmp"
    path.mkdir()
    return path


@pytest_asyncio.fixture
async def fetcher(temp_dir: Path):
    async with MirrorFetcher(temp_dir=str(temp_dir)) as fetcher:
        yield fetcher


@pytest_asyncio.fixture
async def engine_factory(tmp_path: Path, temp_dir: Path):
    engines = []

    def factory(urls: List[str]) -> VersionEngine:
        engine = VersionEngine(
            make_settings(tmp_path, urls),
            fetcher=MirrorFetcher(temp_dir=str(temp_dir)),
        )
        engines.append(engine)
        return engine

    yield factory

    for engine in engines:
        await engine.close()
