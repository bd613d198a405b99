"""进度更新的数据模型。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class ProgressUpdate:
    """扫描过程中的进度信息。总数未知，只记录已检查与已修复数量。"""

    scanned: int
    fixed: int
    message: Optional[str] = None
