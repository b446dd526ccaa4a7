"""
主协调器

整合索引缓存、镜像下载、文件校验与安装登记，实现安装、卸载与版本查询。
"""

import os
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger

from noisefetch.download import ChecksumVerifier, FetchedFile, MirrorFetcher
from noisefetch.exceptions import (
    AlreadyInstalled,
    ArtifactFetchFailed,
    ChecksumMismatch,
    NoiseFetchError,
    UnsupportedPlatform,
    VersionNotFound,
)
from noisefetch.models import (
    ArtifactInfo,
    InstallStage,
    OperationResult,
    Platform,
    Settings,
    VersionDetails,
    VersionIndex,
)
from noisefetch.services import (
    CatalogCache,
    InstallRegistry,
    MirrorClient,
    VersionResolver,
)
from noisefetch.utils import remove_quietly


@dataclass
class CatalogEntryReport:
    """可用版本列表中的一行"""

    version: str
    pre_release: bool
    label: str = ""  # latest / latest pre-release / pre-release
    installed_for: List[Platform] = field(default_factory=list)


class VersionEngine:
    """版本解析与安装引擎"""

    def __init__(
        self,
        settings: Settings,
        fetcher: Optional[MirrorFetcher] = None,
        verifier: Optional[ChecksumVerifier] = None,
        registry: Optional[InstallRegistry] = None,
        resolver: Optional[VersionResolver] = None,
    ):
        self.settings = settings
        self.fetcher = fetcher or MirrorFetcher()
        self.verifier = verifier or ChecksumVerifier()
        self.client = MirrorClient(settings, self.fetcher)
        self.cache = CatalogCache(settings, self.client)
        self.registry = registry or InstallRegistry(settings.install_root)
        self.resolver = resolver or VersionResolver()

    async def resolve_and_install(
        self, token: str, platform: Platform, force: bool = False
    ) -> OperationResult:
        """
        解析版本标识并安装

        Args:
            token: latest、latest-pre 或精确版本号
            platform: 目标平台
            force: 已安装时先卸载再重新安装

        Returns:
            操作结果，失败时带有失败阶段
        """
        stage = InstallStage.RESOLVING_CATALOG
        version = None
        try:
            index = await self.cache.get()

            stage = InstallStage.RESOLVING_VERSION
            version = self.resolver.resolve(index, token).version

            stage = InstallStage.CHECKING_INSTALL
            if self.registry.is_installed(version, platform):
                if not force:
                    raise AlreadyInstalled(
                        f"版本 `{version}` ({platform}) 已安装",
                        context={"version": version, "platform": platform.value},
                    )
                self.registry.uninstall(version, platform)

            stage = InstallStage.FETCHING_DETAILS
            details = await self.client.download_details(version)
            extension = details.extension_for(platform)
            if extension is None:
                raise UnsupportedPlatform(
                    f"版本 `{version}` 不提供 {platform} 平台的扩展包",
                    context={"version": version, "platform": platform.value},
                )

            logger.info(f"[安装] 正在安装版本 `{version}` ({platform})...")
            stage = InstallStage.DOWNLOADING_SHARED
            shared_path = await self._download_verified(details.shared, version)

            stage = InstallStage.DOWNLOADING_PLATFORM
            try:
                extension_path = await self._download_verified(extension, version)
            except NoiseFetchError:
                remove_quietly(shared_path)
                raise

            stage = InstallStage.EXTRACTING
            try:
                target = self.registry.install(
                    version, platform, [shared_path, extension_path]
                )
            finally:
                remove_quietly(shared_path)
                remove_quietly(extension_path)

        except NoiseFetchError as e:
            logger.error(f"[安装] {e.message}")
            return OperationResult.fail(e, stage=stage, version=version)

        logger.success(f"[安装] 已安装版本 `{version}` -> {target}")
        return OperationResult.ok(
            f"已安装版本 `{version}` ({platform})",
            version=version,
            stage=InstallStage.INSTALLED,
        )

    async def _download_verified(self, artifact: ArtifactInfo, version: str) -> Path:
        """
        下载并校验压缩包

        校验失败视同该镜像下载失败，继续尝试剩余未试过的镜像。
        """
        remaining = list(artifact.urls)
        while remaining:
            fetched = await self.fetcher.fetch(remaining)
            if fetched is None:
                break

            try:
                await self.verify_fetched(fetched, artifact.sha256)
            except ChecksumMismatch as e:
                logger.warning(
                    f"[校验] {e.message}\n"
                    f"预期: {e.context['expected'].upper()}\n"
                    f"实际: {e.context['actual'].upper()}"
                )
                remove_quietly(fetched.path)
                remaining = remaining[fetched.index + 1 :]
                continue

            return fetched.path

        raise ArtifactFetchFailed(
            f"无法下载版本 `{version}`",
            context={"version": version, "urls": list(artifact.urls)},
        )

    async def verify_fetched(self, fetched: FetchedFile, expected_sha256: str) -> None:
        """
        校验下载结果

        Raises:
            ChecksumMismatch: 文件哈希与详情中的不一致
        """
        if await self.verifier.verify(str(fetched.path), expected_sha256):
            logger.debug(f"[校验] `{fetched.url}` 校验通过")
            return

        actual = await self.verifier.calc_sha256(str(fetched.path))
        raise ChecksumMismatch(
            f"镜像 `{fetched.url}` 的文件哈希不匹配",
            context={
                "url": fetched.url,
                "expected": expected_sha256,
                "actual": actual or "",
            },
        )

    async def uninstall(self, version: str, platform: Platform) -> OperationResult:
        """卸载版本"""
        try:
            self.registry.uninstall(version, platform)
        except NoiseFetchError as e:
            logger.error(f"[卸载] {e.message}")
            return OperationResult.fail(e, version=version)
        return OperationResult.ok(
            f"已卸载版本 `{version}` ({platform})", version=version
        )

    def is_installed(self, version: str, platform: Platform) -> bool:
        return self.registry.is_installed(version, platform)

    def installed_versions(self, platform: Platform) -> List[str]:
        return self.registry.installed_versions(platform)

    async def latest_installed(self, platform: Platform) -> Optional[str]:
        """按索引顺序选出最新的已安装版本，索引不可用时返回 None"""
        try:
            index = await self.cache.get()
        except NoiseFetchError as e:
            logger.error(f"[索引] {e.message}")
            return None
        return self.registry.latest_installed(platform, index)

    async def latest_available(self) -> Optional[str]:
        """最新的稳定版本号"""
        info = self.resolver.latest(await self.cache.get())
        return info.version if info else None

    async def list_catalog(self) -> VersionIndex:
        """获取版本索引（优先使用缓存）"""
        return await self.cache.get()

    async def refresh_catalog(self) -> VersionIndex:
        """总是重新下载版本索引"""
        return await self.cache.refresh()

    async def get_details(self, version: str) -> VersionDetails:
        """
        获取版本详情

        先确认版本存在于索引中，再从镜像下载详情。
        """
        index = await self.cache.get()
        if self.resolver.find(index, version) is None:
            raise VersionNotFound(
                f"找不到版本 `{version}`，请运行 `noisefetch versions available` 刷新索引并查看可用版本",
                context={"version": version},
            )
        return await self.client.download_details(version)

    async def catalog_report(self, refresh: bool = True) -> List[CatalogEntryReport]:
        """
        生成可用版本列表

        标注最新稳定版、最新预发布版以及各版本已安装的平台。
        """
        index = await (self.cache.refresh() if refresh else self.cache.get())

        report = []
        latest = True
        latest_pre = True
        for info in index:
            if info.pre_release:
                label = "latest pre-release" if latest_pre else "pre-release"
                latest_pre = False
            else:
                label = "latest" if latest else ""
                latest = False

            report.append(
                CatalogEntryReport(
                    version=info.version,
                    pre_release=info.pre_release,
                    label=label,
                    installed_for=[
                        p for p in Platform if self.registry.is_installed(info.version, p)
                    ],
                )
            )
        return report

    def should_refresh(self) -> bool:
        return self.cache.should_refresh()

    def schedule_background_refresh(self) -> bool:
        """
        在后台子进程中刷新索引

        不等待、不影响当前命令的退出码，启动失败时忽略。
        """
        command = [sys.executable, "-m", "noisefetch", "--no-auto-refresh"]
        if self.settings.source_path is not None:
            command += ["--settings", str(self.settings.source_path)]
        command += ["versions", "available"]

        kwargs = {}
        if os.name == "nt":
            kwargs["creationflags"] = getattr(subprocess, "DETACHED_PROCESS", 0)
        else:
            kwargs["start_new_session"] = True

        env = dict(os.environ, NOISEFETCH_HOME=str(self.settings.base_dir))
        try:
            subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=env,
                **kwargs,
            )
        except OSError as e:
            logger.debug(f"[索引] 后台刷新启动失败: {e}")
            return False

        logger.debug("[索引] 已启动后台索引刷新")
        return True

    async def close(self):
        await self.fetcher.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
