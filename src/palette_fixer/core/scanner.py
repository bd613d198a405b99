"""文件扫描与筛选逻辑。"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from palette_fixer.core.exceptions import ScanRootNotFoundError
from palette_fixer.core.models import SourceImage

PNG_SUFFIX = ".png"


def _iter_candidate_files(path: Path) -> Iterator[Path]:
    """遍历路径下的所有普通文件，顺序由文件系统决定。"""

    if path.is_file():
        yield path
        return

    for candidate in path.rglob("*"):
        if candidate.is_file():
            yield candidate


def iter_source_images(root: Path, suffix: str = PNG_SUFFIX) -> Iterator[SourceImage]:
    """逐个产出 root 下扩展名严格匹配（区分大小写）的文件。

    root 不存在时抛出 ScanRootNotFoundError。
    """

    if not root.exists():
        raise ScanRootNotFoundError(f"扫描路径不存在: {root}")

    base = root if root.is_dir() else root.parent
    for candidate in _iter_candidate_files(root):
        if candidate.suffix != suffix:
            continue
        yield SourceImage(source_path=candidate, relative_path=candidate.relative_to(base))
