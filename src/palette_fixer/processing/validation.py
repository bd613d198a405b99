"""像素缓冲区的逐字节比对工具。"""

from __future__ import annotations

import numpy as np


def buffers_identical(reference: np.ndarray, candidate: np.ndarray) -> bool:
    """形状、数据类型与所有字节（含 alpha）都一致时返回 True。"""

    if reference.shape != candidate.shape or reference.dtype != candidate.dtype:
        return False
    return reference.tobytes() == candidate.tobytes()


def count_mismatched_pixels(reference: np.ndarray, candidate: np.ndarray) -> int:
    """统计不一致的像素数量；尺寸不同时视为全部不一致。"""

    if reference.shape != candidate.shape:
        return int(max(_pixel_count(reference), _pixel_count(candidate)))

    diff = reference != candidate
    if diff.ndim == 3:
        diff = diff.any(axis=-1)
    return int(np.count_nonzero(diff))


def _pixel_count(buffer: np.ndarray) -> int:
    if buffer.ndim >= 2:
        return buffer.shape[0] * buffer.shape[1]
    return buffer.size
