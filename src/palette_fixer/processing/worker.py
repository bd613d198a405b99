"""并发处理的工作单元。"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from palette_fixer.core.config import RepairConfig
from palette_fixer.core.models import RepairResult, SourceImage
from palette_fixer.processing.repair import repair

# 由进程池 initializer 注入的跨进程中断信号（multiprocessing.Event）。
_ABORT_EVENT: Optional[object] = None


@dataclass(slots=True)
class RepairTask:
    """描述单个调色板图片的修复任务。"""

    source: SourceImage
    config: RepairConfig


def init_worker(abort_event) -> None:
    """进程池 initializer：保存主进程共享的中断信号。"""

    global _ABORT_EVENT
    _ABORT_EVENT = abort_event


def _should_abort() -> bool:
    return _ABORT_EVENT is not None and _ABORT_EVENT.is_set()


def run_task(task: RepairTask) -> RepairResult:
    """在工作进程中执行修复；致命错误原样抛回主进程。

    中断信号被置位后，下一次写文件前抛出 ProcessingAborted。
    """

    return repair(task.source.source_path, task.config, should_abort=_should_abort)
