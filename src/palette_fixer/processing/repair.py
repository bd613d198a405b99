"""调色板 PNG 修复：转换为直接色、无损优化并校验像素一致性。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from palette_fixer.core.config import RepairConfig
from palette_fixer.core.exceptions import (
    ImageDecodeError,
    ImageEncodeError,
    PixelMismatchError,
    ProcessingAborted,
)
from palette_fixer.core.models import RepairResult
from palette_fixer.processing.codec import decode_image, pixel_buffer, save_png, to_direct_color
from palette_fixer.processing.optimizer import Optimizer, optimize_in_place
from palette_fixer.processing.validation import buffers_identical, count_mismatched_pixels

LOGGER = logging.getLogger(__name__)

PhaseCallback = Optional[Callable[[str], None]]
AbortCheck = Optional[Callable[[], bool]]


def repair(
    path: Path,
    config: Optional[RepairConfig] = None,
    *,
    optimizer: Optimizer = optimize_in_place,
    on_phase: PhaseCallback = None,
    should_abort: AbortCheck = None,
) -> RepairResult:
    """修复单个调色板 PNG，文件会被就地覆盖。

    解码、编码与优化失败会抛出 FatalRepairError 的子类。优化后的像素与
    转换后的像素不一致时抛出 PixelMismatchError；只有在 skip 策略下才会
    写回优化前的字节并返回 verified=False 的结果。

    每次写入文件之前都会调用 should_abort，返回 True 时抛出
    ProcessingAborted，文件保持上一次写入后的状态。
    """

    config = config or RepairConfig()
    size_before = _file_size(path)

    _emit(on_phase, "converting")
    original = decode_image(path)
    try:
        converted = to_direct_color(original)
    finally:
        original.close()

    try:
        reference = pixel_buffer(converted).copy()
        _check_abort(should_abort, path)
        save_png(converted, path)
    finally:
        converted.close()
    LOGGER.debug("%s 已转换为直接色，像素数组形状 %s", path, reference.shape)

    unoptimized_bytes: Optional[bytes] = None
    if config.mismatch_policy == "skip":
        try:
            unoptimized_bytes = path.read_bytes()
        except OSError as exc:
            raise ImageDecodeError(path, "Failed to read converted image") from exc

    _emit(on_phase, "optimizing")
    _check_abort(should_abort, path)
    optimizer(path, config.optimizer)
    _emit(on_phase, "optimized")

    optimized = decode_image(path)
    try:
        candidate = pixel_buffer(optimized)
        identical = buffers_identical(reference, candidate)
        mismatched = 0 if identical else count_mismatched_pixels(reference, candidate)
    finally:
        optimized.close()

    if not identical:
        LOGGER.error("优化后像素不一致：%s (%d 个像素)", path, mismatched)
        if unoptimized_bytes is None:
            raise PixelMismatchError(path, mismatched)

        _check_abort(should_abort, path)
        try:
            path.write_bytes(unoptimized_bytes)
        except OSError as exc:
            raise ImageEncodeError(path, "Failed to restore unoptimized image") from exc
        return RepairResult(
            source_path=path,
            size_before=size_before,
            size_after=len(unoptimized_bytes),
            verified=False,
            mismatched_pixels=mismatched,
        )

    size_after = _file_size(path)
    LOGGER.info("%s: %d -> %d 字节", path, size_before, size_after)
    return RepairResult(source_path=path, size_before=size_before, size_after=size_after)


def _file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError as exc:
        raise ImageDecodeError(path, "Can't get image size") from exc


def _check_abort(should_abort: AbortCheck, path: Path) -> None:
    if should_abort and should_abort():
        LOGGER.warning("任务已中断，跳过写入：%s", path)
        raise ProcessingAborted(str(path))


def _emit(callback: PhaseCallback, phase: str) -> None:
    if callback:
        callback(phase)
