"""报告生成工具。"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from palette_fixer.core.models import FileOutcome, PixelFormat

HEADER = ["relative_path", "status", "pixel_format", "size_before", "size_after", "message"]


def write_csv_report(outcomes: Iterable[FileOutcome], report_path: Path) -> Path:
    """将处理结果写入 CSV 报告。"""

    report_path.parent.mkdir(parents=True, exist_ok=True)
    with report_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for record in outcomes:
            writer.writerow(
                [
                    record.relative_path.as_posix(),
                    record.status,
                    _format_pixel_format(record.pixel_format),
                    _format_size(record.size_before),
                    _format_size(record.size_after),
                    record.message or "",
                ]
            )
    return report_path


def _format_pixel_format(value: PixelFormat | None) -> str:
    if value is None:
        return ""
    return value.name.lower()


def _format_size(value: int | None) -> str:
    if value is None:
        return ""
    return str(value)
