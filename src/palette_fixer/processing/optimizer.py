"""调用 oxipng 对 PNG 做就地无损重压缩。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import oxipng

from palette_fixer.core.config import OptimizerSettings
from palette_fixer.core.exceptions import OptimizationError

LOGGER = logging.getLogger(__name__)

Optimizer = Callable[[Path, OptimizerSettings], None]


def optimize_in_place(path: Path, settings: OptimizerSettings) -> None:
    """就地重写 PNG 的压缩数据流，不改变像素。"""

    LOGGER.debug("oxipng 优化 %s (level=%d)", path, settings.level)
    try:
        oxipng.optimize(
            str(path),
            level=settings.level,
            optimize_alpha=settings.optimize_alpha,
            color_type_reduction=settings.color_type_reduction,
            grayscale_reduction=settings.grayscale_reduction,
        )
    except oxipng.PngError as exc:
        raise OptimizationError(path, "Optimize failed") from exc
