"""
安装登记

以 ``<root>/<platform>/<version>`` 目录是否存在作为版本的安装状态，
不使用额外的清单文件，也不访问网络。
"""

import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from noisefetch.archive import ZipExtractor
from noisefetch.exceptions import FilesystemFault, NotInstalled
from noisefetch.models import Platform, VersionIndex
from noisefetch.utils import remove_quietly


def is_safe_name(version: str) -> bool:
    """版本名只能作为单层目录名使用"""
    return (
        bool(version)
        and version not in (".", "..")
        and "/" not in version
        and "\\" not in version
    )


class InstallRegistry:
    """安装登记"""

    def __init__(self, root: Path, extractor: Optional[ZipExtractor] = None):
        self.root = Path(root)
        self.extractor = extractor or ZipExtractor()

    def platform_dir(self, platform: Platform) -> Path:
        return self.root / platform.value

    def path_for(self, version: str, platform: Platform) -> Path:
        return self.platform_dir(platform) / version

    def is_installed(self, version: str, platform: Platform) -> bool:
        if not is_safe_name(version):
            return False
        return self.path_for(version, platform).is_dir()

    def installed_versions(self, platform: Platform) -> List[str]:
        """列出磁盘上该平台的所有版本目录"""
        directory = self.platform_dir(platform)
        if not directory.is_dir():
            return []
        return sorted(p.name for p in directory.iterdir() if p.is_dir())

    def latest_installed(
        self, platform: Platform, index: VersionIndex
    ) -> Optional[str]:
        """
        按索引顺序选出最新的已安装版本

        优先稳定版；没有已安装的稳定版时退回最新的预发布版。
        """
        installed = set(self.installed_versions(platform))
        if not installed:
            return None

        for info in index:
            if not info.pre_release and info.version in installed:
                return info.version

        for info in index:
            if info.version in installed:
                return info.version

        return None

    def uninstall(self, version: str, platform: Platform) -> None:
        """
        删除版本目录

        Raises:
            NotInstalled: 版本未安装
            FilesystemFault: 删除失败（目录可能已被部分删除）
        """
        if not self.is_installed(version, platform):
            raise NotInstalled(
                f"版本 `{version}` ({platform}) 未安装",
                context={"version": version, "platform": platform.value},
            )

        path = self.path_for(version, platform)
        logger.info(f"[卸载] 正在卸载版本 `{version}` ({platform})...")
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise FilesystemFault(
                f"无法卸载版本 `{version}` ({platform}): {e}",
                context={"path": str(path)},
            ) from e
        logger.success(f"[卸载] 已卸载版本 `{version}` ({platform})")

    def install(
        self, version: str, platform: Platform, artifacts: Sequence[Path]
    ) -> Path:
        """
        按顺序将压缩包解压到版本目录，成功后删除临时压缩包

        解压中途失败不会回滚，需先卸载再重新安装。

        Args:
            version: 版本号
            platform: 平台
            artifacts: 压缩包路径（后解压的覆盖先解压的）

        Returns:
            安装目录
        """
        if not is_safe_name(version):
            raise FilesystemFault(
                f"非法的版本名: `{version}`", context={"version": version}
            )

        target = self.path_for(version, platform)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemFault(
                f"无法创建安装目录: {e}", context={"path": str(target)}
            ) from e

        for artifact in artifacts:
            logger.info(f"[安装] 解压 {Path(artifact).name} -> {target}")
            self.extractor.extract(Path(artifact), target)

        for artifact in artifacts:
            remove_quietly(artifact)

        return target
