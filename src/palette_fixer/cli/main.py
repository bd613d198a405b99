"""命令行入口。"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from palette_fixer.core.config import OptimizerSettings, RepairConfig
from palette_fixer.core.exceptions import (
    FatalRepairError,
    InvalidConfigurationError,
    PixelMismatchError,
    ScanRootNotFoundError,
)
from palette_fixer.core.progress import ProgressUpdate
from palette_fixer.processing.pipeline import run
from palette_fixer.utils.logging import setup_logging

app = typer.Typer(help="将调色板 PNG 转换为 RGB/RGBA 并无损压缩，保证像素完全一致。")

USAGE = "First argument must be path to folder to be processed."
BANNER = "-" * 45


def _build_progress_callback(progress: Progress):
    task_id: Optional[int] = None

    def callback(update: ProgressUpdate) -> None:
        nonlocal task_id
        if task_id is None:
            task_id = progress.add_task("扫描 PNG", total=None)
        progress.update(task_id, completed=update.scanned, description=f"扫描 PNG（已修复 {update.fixed}）")

    return callback


@app.command("run")
def run_cli(
    root: Optional[Path] = typer.Argument(None, exists=True, help="需要处理的目录"),
    on_mismatch: str = typer.Option("abort", "--on-mismatch", help="像素不一致时的策略，abort 或 skip"),
    level: int = typer.Option(2, "--level", help="oxipng 优化级别 0~6"),
    max_workers: int = typer.Option(1, "--workers", "-w", help="并发进程数量"),
    report: Optional[Path] = typer.Option(None, "--report", help="CSV 报告输出路径"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志"),
) -> None:
    """扫描目录并修复其中的调色板 PNG。"""

    if root is None:
        typer.echo(USAGE)
        return

    setup_logging(logging.DEBUG if verbose else logging.WARNING)

    config = RepairConfig(
        mismatch_policy=on_mismatch,
        optimizer=OptimizerSettings(level=level),
        max_workers=max_workers,
        report_path=report.expanduser().resolve() if report else None,
    )
    try:
        config.validate()
    except InvalidConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(f"Scanning [{root}]")

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        TextColumn("{task.completed} 个文件"),
        TimeElapsedColumn(),
        transient=True,
    )

    try:
        with progress:
            result = run(root, config, echo=typer.echo, progress_callback=_build_progress_callback(progress))
    except PixelMismatchError as exc:
        typer.echo(BANNER)
        typer.echo("ERROR: optimized image wasn't identical to original image")
        typer.echo(f"{exc.path} ({exc.mismatched_pixels} pixel(s) differ)")
        typer.echo(BANNER)
        raise typer.Exit(code=1) from exc
    except (FatalRepairError, ScanRootNotFoundError) as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"Fixed {result.fixed_count} files.")


if __name__ == "__main__":
    app()
