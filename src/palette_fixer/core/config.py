"""修复任务的配置模型。"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from palette_fixer.core.exceptions import InvalidConfigurationError

MismatchPolicy = str  # abort | skip

MISMATCH_POLICIES = ("abort", "skip")


@dataclass(slots=True)
class OptimizerSettings:
    """无损压缩优化相关配置。

    alpha 优化与颜色类型缩减必须保持关闭，否则无法保证像素完全一致。
    """

    level: int = 2
    optimize_alpha: bool = False
    color_type_reduction: bool = False
    grayscale_reduction: bool = False


@dataclass(slots=True)
class RepairConfig:
    """单次扫描修复任务的配置集合。"""

    mismatch_policy: MismatchPolicy = "abort"
    optimizer: OptimizerSettings = field(default_factory=OptimizerSettings)
    max_workers: int = 1
    target_suffix: str = ".png"
    report_path: Optional[Path] = None

    def validate(self) -> None:
        if self.mismatch_policy not in MISMATCH_POLICIES:
            raise InvalidConfigurationError(f"未知的像素不一致处理策略: {self.mismatch_policy}")
        if not 0 <= self.optimizer.level <= 6:
            raise InvalidConfigurationError(f"优化级别必须在 0~6 之间: {self.optimizer.level}")
        if self.max_workers < 1:
            raise InvalidConfigurationError(f"并发数量必须大于 0: {self.max_workers}")
        if self.optimizer.optimize_alpha or self.optimizer.color_type_reduction:
            raise InvalidConfigurationError("alpha 优化与颜色类型缩减会破坏像素一致性，不允许开启")
