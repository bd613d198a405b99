"""PNG 文件头解析：只读取签名与 IHDR 前部，判断像素格式。

按顺序读取的字段（偏移从 0 开始）：

    0   签名        8 字节  137 80 78 71 13 10 26 10
    8   块长度      4 字节  大端，不校验
    12  块类型      4 字节  必须为 "IHDR"
    16  宽          4 字节  大端，不校验
    20  高          4 字节  大端，不校验
    24  位深        1 字节  不校验
    25  颜色类型    1 字节  0/2/3/4/6

颜色类型之后的滤波方法、隔行方法以及后续所有块都不会被读取。
"""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import BinaryIO

from palette_fixer.core.models import (
    ClassificationOutcome,
    Classified,
    InvalidIhdrTag,
    InvalidSignature,
    OpenFailure,
    PixelFormat,
    ReadFailure,
    UnrecognizedPixelFormat,
)

LOGGER = logging.getLogger(__name__)

PNG_SIGNATURE = bytes([137, 80, 78, 71, 13, 10, 26, 10])
IHDR_TAG = b"IHDR"
HEADER_LENGTH = 26


class _ShortRead(Exception):
    """可读字节不足。"""


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if data is None or len(data) != size:
        raise _ShortRead
    return data


def classify_stream(stream: BinaryIO) -> ClassificationOutcome:
    """从流的当前位置开始解析文件头，不做任何 seek。"""

    try:
        if _read_exact(stream, 8) != PNG_SIGNATURE:
            return InvalidSignature()

        # 块长度只读取，不与文件大小比对。
        struct.unpack(">I", _read_exact(stream, 4))

        if _read_exact(stream, 4) != IHDR_TAG:
            return InvalidIhdrTag()

        (width,) = struct.unpack(">I", _read_exact(stream, 4))
        (height,) = struct.unpack(">I", _read_exact(stream, 4))
        bit_depth = _read_exact(stream, 1)[0]
        color_type = _read_exact(stream, 1)[0]
    except (_ShortRead, OSError):
        return ReadFailure()

    try:
        pixel_format = PixelFormat(color_type)
    except ValueError:
        return UnrecognizedPixelFormat(color_type=color_type)

    return Classified(pixel_format=pixel_format, width=width, height=height, bit_depth=bit_depth)


def classify(path: Path) -> ClassificationOutcome:
    """以只读方式打开文件并判断其像素格式。"""

    try:
        handle = open(path, "rb")
    except OSError as exc:
        LOGGER.debug("无法打开文件 %s: %s", path, exc)
        return OpenFailure()

    with handle:
        outcome = classify_stream(handle)

    LOGGER.debug("%s -> %s", path, outcome)
    return outcome
