"""处理流水线：遍历目录、识别像素格式，并把调色板图片交给修复流程。"""

from __future__ import annotations

import logging
import multiprocessing
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

from palette_fixer.core.config import RepairConfig
from palette_fixer.core.exceptions import ProcessingAborted
from palette_fixer.core.header import classify
from palette_fixer.core.models import (
    ClassificationOutcome,
    FileOutcome,
    PixelFormat,
    RepairResult,
    ScanResult,
    SourceImage,
)
from palette_fixer.core.progress import ProgressUpdate
from palette_fixer.core.report import write_csv_report
from palette_fixer.core.scanner import iter_source_images
from palette_fixer.processing.repair import repair
from palette_fixer.processing.worker import RepairTask, init_worker, run_task

LOGGER = logging.getLogger(__name__)

Echo = Callable[[str], None]
ProgressCallback = Optional[Callable[[ProgressUpdate], None]]

PHASE_MESSAGES = {
    "converting": "Converting to RGB/RGBA...",
    "optimizing": "Optimizing...",
    "optimized": "Optimized.",
}
SEPARATOR = "-" * 31


def run(
    root: Path,
    config: Optional[RepairConfig] = None,
    *,
    echo: Echo = print,
    progress_callback: ProgressCallback = None,
) -> ScanResult:
    """扫描 root 并修复其中所有调色板 PNG。

    FatalRepairError 不会被捕获，会直接中断整个扫描。
    """

    config = config or RepairConfig()
    config.validate()

    LOGGER.info("开始扫描 %s", root)
    result = ScanResult()

    if config.max_workers <= 1:
        _run_sequential(root, config, result, echo, progress_callback)
    else:
        _run_parallel(root, config, result, echo, progress_callback)

    LOGGER.info("扫描完成：修复 %d 个，失败 %d 个", result.fixed_count, len(result.failed))
    if config.report_path is not None:
        _write_report(config.report_path, result)
    return result


def _run_sequential(
    root: Path,
    config: RepairConfig,
    result: ScanResult,
    echo: Echo,
    progress_callback: ProgressCallback,
) -> None:
    scanned = 0
    for source in iter_source_images(root, config.target_suffix):
        outcome = classify(source.source_path)
        if _needs_repair(source, outcome, result, echo):
            echo(f"{source.relative_path} is indexed!")
            repair_result = repair(
                source.source_path,
                config,
                on_phase=lambda phase: echo(PHASE_MESSAGES[phase]),
            )
            _record_repair(source, repair_result, result, echo)

        scanned += 1
        _emit_progress(progress_callback, scanned, result.fixed_count, source.relative_path)


def _run_parallel(
    root: Path,
    config: RepairConfig,
    result: ScanResult,
    echo: Echo,
    progress_callback: ProgressCallback,
) -> None:
    # oxipng 的线程池在 fork 后不可用，工作进程必须用 spawn 启动。
    context = multiprocessing.get_context("spawn")
    abort = context.Event()
    future_map: dict[Future, SourceImage] = {}
    scanned = 0

    def _watch(future: Future) -> None:
        if not future.cancelled() and future.exception() is not None:
            abort.set()

    with ProcessPoolExecutor(
        max_workers=config.max_workers,
        mp_context=context,
        initializer=init_worker,
        initargs=(abort,),
    ) as executor:
        for source in iter_source_images(root, config.target_suffix):
            if abort.is_set():
                break
            outcome = classify(source.source_path)
            if _needs_repair(source, outcome, result, echo):
                echo(f"{source.relative_path} is indexed!")
                future = executor.submit(run_task, RepairTask(source=source, config=config))
                future.add_done_callback(_watch)
                future_map[future] = source
            scanned += 1
            _emit_progress(progress_callback, scanned, result.fixed_count, source.relative_path)

        for future in as_completed(future_map):
            if future.cancelled():
                continue
            error = future.exception()
            if error is None:
                _record_repair(future_map[future], future.result(), result, echo)
                continue

            abort.set()
            executor.shutdown(wait=True, cancel_futures=True)
            raise _first_fatal_error(error, future_map)


def _first_fatal_error(error: BaseException, future_map: dict[Future, SourceImage]) -> BaseException:
    """优先返回真正的致命错误，而不是因中断信号产生的 ProcessingAborted。"""

    if not isinstance(error, ProcessingAborted):
        return error
    for future in future_map:
        if future.cancelled() or not future.done():
            continue
        other = future.exception()
        if other is not None and not isinstance(other, ProcessingAborted):
            return other
    return error


def _needs_repair(
    source: SourceImage,
    outcome: ClassificationOutcome,
    result: ScanResult,
    echo: Echo,
) -> bool:
    """处理识别结果；只有调色板图片返回 True。"""

    if outcome.is_failure:
        echo(f"Error {outcome.kind}: {source.relative_path}")
        result.failed.append(
            FileOutcome(relative_path=source.relative_path, status="error-header", message=outcome.kind)
        )
        return False

    if outcome.pixel_format is PixelFormat.INDEXED_COLOR:
        return True

    result.skipped.append(
        FileOutcome(relative_path=source.relative_path, status="skip-direct-color", pixel_format=outcome.pixel_format)
    )
    return False


def _record_repair(source: SourceImage, repair_result: RepairResult, result: ScanResult, echo: Echo) -> None:
    if not repair_result.verified:
        echo(f"Error PixelMismatch: {source.relative_path}")
        result.failed.append(
            FileOutcome(
                relative_path=source.relative_path,
                status="error-mismatch",
                pixel_format=PixelFormat.INDEXED_COLOR,
                size_before=repair_result.size_before,
                size_after=repair_result.size_after,
                message=f"{repair_result.mismatched_pixels} pixel(s) differ, optimization reverted",
            )
        )
        return

    echo(SEPARATOR)
    echo(repair_result.size_change_line())
    echo(SEPARATOR)
    result.fixed.append(
        FileOutcome(
            relative_path=source.relative_path,
            status="fixed",
            pixel_format=PixelFormat.INDEXED_COLOR,
            size_before=repair_result.size_before,
            size_after=repair_result.size_after,
        )
    )


def _emit_progress(callback: ProgressCallback, scanned: int, fixed: int, current: Path) -> None:
    if not callback:
        return
    callback(ProgressUpdate(scanned=scanned, fixed=fixed, message=str(current)))


def _write_report(report_path: Path, result: ScanResult) -> None:
    try:
        write_csv_report(result.all_outcomes(), report_path)
    except OSError as exc:
        LOGGER.error("写入报告失败：%s", exc)
