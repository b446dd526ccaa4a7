"""
ZIP 解压器

逐个成员解压到目标目录，拒绝绝对路径和越出目标目录的条目。
"""

import shutil
import zipfile
import zlib
from pathlib import Path

from loguru import logger

from noisefetch.exceptions import ExtractionFailed


class ZipExtractor:
    """ZIP 解压器"""

    def extract(self, archive_path: Path, target_dir: Path) -> int:
        """
        解压 ZIP 文件

        已存在的同名文件会被覆盖（后写入者胜出）。

        Args:
            archive_path: 压缩包路径
            target_dir: 目标目录

        Returns:
            解压出的文件数量
        """
        try:
            with zipfile.ZipFile(archive_path) as archive:
                return self._extract_members(archive, Path(target_dir))
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise ExtractionFailed(
                f"压缩包已损坏: {e}", context={"archive": str(archive_path)}
            ) from e
        except OSError as e:
            raise ExtractionFailed(
                f"解压失败: {e}",
                context={"archive": str(archive_path), "target": str(target_dir)},
            ) from e
        except (NotImplementedError, RuntimeError) as e:
            # 不支持的压缩算法或加密条目
            raise ExtractionFailed(
                f"无法解压: {e}", context={"archive": str(archive_path)}
            ) from e

    def _extract_members(self, archive: zipfile.ZipFile, target_dir: Path) -> int:
        root = target_dir.resolve()
        count = 0
        for member in archive.infolist():
            name = member.filename
            if not name:
                continue

            path = Path(name)
            if path.is_absolute() or name.startswith(("/", "\\")):
                raise ExtractionFailed(
                    "压缩包包含绝对路径", context={"entry": name}
                )
            destination = (root / path).resolve()
            try:
                destination.relative_to(root)
            except ValueError:
                raise ExtractionFailed(
                    "压缩包包含越界的相对路径", context={"entry": name}
                )

            if member.is_dir():
                destination.mkdir(parents=True, exist_ok=True)
                continue

            destination.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(member) as source, destination.open("wb") as target:
                shutil.copyfileobj(source, target)
            count += 1

        logger.debug(f"[解压] {count} 个文件 -> {target_dir}")
        return count
