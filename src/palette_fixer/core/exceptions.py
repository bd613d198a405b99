"""项目内使用的自定义异常定义。"""

from __future__ import annotations

from pathlib import Path


class PaletteFixerError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(PaletteFixerError):
    """配置不合法时抛出。"""


class FatalRepairError(PaletteFixerError):
    """修复过程中的致命错误，整个任务必须立即终止。"""

    def __init__(self, path: Path, reason: str = "") -> None:
        # 参数原样交给基类，保证跨进程传递时可以被 pickle 重建。
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        if self.reason:
            return f"{self.reason}: {self.path}"
        return str(self.path)


class ImageDecodeError(FatalRepairError):
    """图片解码失败。"""


class ImageEncodeError(FatalRepairError):
    """图片重新编码写回失败。"""


class OptimizationError(FatalRepairError):
    """无损压缩优化失败。"""


class PixelMismatchError(FatalRepairError):
    """优化后的像素与优化前不一致。"""

    def __init__(self, path: Path, mismatched_pixels: int = 0) -> None:
        super().__init__(path, f"{mismatched_pixels} pixel(s) differ after optimization")
        self.args = (path, mismatched_pixels)
        self.mismatched_pixels = mismatched_pixels


class ScanRootNotFoundError(PaletteFixerError):
    """扫描根路径不存在。"""


class ProcessingAborted(PaletteFixerError):
    """其他文件触发致命错误后，本次修复在写入前被中断。"""
