"""核心数据模型定义。"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class PixelFormat(Enum):
    """IHDR 中的颜色类型，取值即颜色类型字节。"""

    GREYSCALE = 0
    TRUE_COLOR = 2
    INDEXED_COLOR = 3
    GREYSCALE_WITH_ALPHA = 4
    TRUE_COLOR_WITH_ALPHA = 6


@dataclass(frozen=True, slots=True)
class OpenFailure:
    """文件无法打开。"""

    is_failure = True

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class ReadFailure:
    """读取过程中出错或文件被截断。"""

    is_failure = True

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class InvalidSignature:
    """前 8 个字节不是 PNG 签名。"""

    is_failure = True

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class InvalidIhdrTag:
    """第一个块的类型不是 IHDR。"""

    is_failure = True

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class UnrecognizedPixelFormat:
    """颜色类型字节不在已知取值内。"""

    color_type: int = -1
    is_failure = True

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, slots=True)
class Classified:
    """成功识别出像素格式。

    宽、高与位深只是顺带读取，不做任何校验。
    """

    pixel_format: PixelFormat
    width: int = 0
    height: int = 0
    bit_depth: int = 0
    is_failure = False

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def is_indexed(self) -> bool:
        return self.pixel_format is PixelFormat.INDEXED_COLOR


ClassificationOutcome = Union[
    OpenFailure,
    ReadFailure,
    InvalidSignature,
    InvalidIhdrTag,
    UnrecognizedPixelFormat,
    Classified,
]


@dataclass(slots=True)
class SourceImage:
    """扫描阶段得到的候选文件信息。"""

    source_path: Path
    relative_path: Path


@dataclass(slots=True)
class RepairResult:
    """单个文件修复后的结果。"""

    source_path: Path
    size_before: int
    size_after: int
    verified: bool = True
    mismatched_pixels: int = 0

    @property
    def delta_kb(self) -> float:
        return (self.size_after - self.size_before) / 1000

    @property
    def percent(self) -> float:
        if self.size_before == 0:
            return 0.0
        return self.size_after / self.size_before * 100

    def size_change_line(self) -> str:
        return f"Size Change: [{self.delta_kb:+.0f}KB / {self.percent:.0f}%]"


@dataclass(slots=True)
class FileOutcome:
    """记录单个文件的处理结果（用于报告/日志）。"""

    relative_path: Path
    status: str
    pixel_format: Optional[PixelFormat] = None
    size_before: Optional[int] = None
    size_after: Optional[int] = None
    message: Optional[str] = None


@dataclass(slots=True)
class ScanResult:
    """一次目录扫描的汇总结果。"""

    fixed: list[FileOutcome] = field(default_factory=list)
    skipped: list[FileOutcome] = field(default_factory=list)
    failed: list[FileOutcome] = field(default_factory=list)

    @property
    def fixed_count(self) -> int:
        return len(self.fixed)

    def all_outcomes(self) -> list[FileOutcome]:
        """返回所有结果记录，方便生成报告。"""

        return [*self.fixed, *self.skipped, *self.failed]
