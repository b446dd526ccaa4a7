"""
版本解析服务

将用户输入的版本标识（latest / latest-pre / 精确版本号）解析为索引条目。
索引已按从新到旧排列，这里只按顺序查找，不做排序。
"""

from typing import Optional

from noisefetch.exceptions import VersionNotFound
from noisefetch.models import VersionIndex, VersionInfo

LATEST = "latest"
LATEST_PRE = "latest-pre"


class VersionResolver:
    """版本解析器"""

    def latest(self, index: VersionIndex) -> Optional[VersionInfo]:
        """第一个稳定版"""
        return next((v for v in index if not v.pre_release), None)

    def latest_pre(self, index: VersionIndex) -> Optional[VersionInfo]:
        """
        最新的预发布版

        取索引顺序中第一个预发布条目；索引中没有预发布版时取第一个条目。

        注意：只要索引中存在预发布版就会选中它，即使它排在更新的稳定版之后
        （如 ``[3.0, 2.1-rc]`` 选中 ``2.1-rc``）。版本号不做比较，只依赖索引顺序。
        """
        pre = next((v for v in index if v.pre_release), None)
        return pre or next(iter(index), None)

    def find(self, index: VersionIndex, version: str) -> Optional[VersionInfo]:
        """精确匹配版本号"""
        return next((v for v in index if v.version == version), None)

    def resolve(self, index: VersionIndex, token: str) -> VersionInfo:
        """
        解析版本标识

        Args:
            index: 版本索引
            token: latest、latest-pre 或精确版本号

        Returns:
            匹配的索引条目

        Raises:
            VersionNotFound: 无法匹配
        """
        if token == LATEST:
            info = self.latest(index)
        elif token == LATEST_PRE:
            info = self.latest_pre(index)
        else:
            info = self.find(index, token)

        if info is None:
            raise VersionNotFound(
                f"找不到版本 `{token}`，请运行 `noisefetch versions available` 刷新索引并查看可用版本",
                context={"token": token},
            )
        return info
