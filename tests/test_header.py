"""环节一：测试 PNG 文件头解析与像素格式判断。"""

from __future__ import annotations

import io
import struct
from pathlib import Path

import pytest
from PIL import Image

from palette_fixer.core.header import HEADER_LENGTH, PNG_SIGNATURE, classify, classify_stream
from palette_fixer.core.models import (
    Classified,
    InvalidIhdrTag,
    InvalidSignature,
    OpenFailure,
    PixelFormat,
    ReadFailure,
    UnrecognizedPixelFormat,
)

KNOWN_COLOR_TYPES = {
    0: PixelFormat.GREYSCALE,
    2: PixelFormat.TRUE_COLOR,
    3: PixelFormat.INDEXED_COLOR,
    4: PixelFormat.GREYSCALE_WITH_ALPHA,
    6: PixelFormat.TRUE_COLOR_WITH_ALPHA,
}


def make_header(
    color_type: int = 6,
    *,
    signature: bytes = PNG_SIGNATURE,
    tag: bytes = b"IHDR",
    width: int = 1,
    height: int = 1,
    bit_depth: int = 8,
) -> bytes:
    # 末尾附带滤波方法、隔行方法与 CRC，解析器不应读取它们。
    return (
        signature
        + struct.pack(">I", 13)
        + tag
        + struct.pack(">IIBB", width, height, bit_depth, color_type)
        + b"\x00\x00"
        + b"\xde\xad\xbe\xef"
    )


@pytest.mark.parametrize(
    "signature",
    [
        bytes(8),
        b"GIF89a\x00\x00",
        b"\x89PNG\r\n\x1a\x00",
        b"\x88PNG\r\n\x1a\n",
        bytes([10, 26, 10, 13, 71, 78, 80, 137]),
    ],
)
def test_invalid_signature_regardless_of_following_bytes(signature: bytes) -> None:
    data = make_header(3, signature=signature)
    assert classify_stream(io.BytesIO(data)) == InvalidSignature()


def test_invalid_signature_stops_reading() -> None:
    stream = io.BytesIO(b"NOTAPNG!" + b"\x00" * 40)
    assert classify_stream(stream) == InvalidSignature()
    assert stream.tell() == 8


@pytest.mark.parametrize("tag", [b"IDAT", b"ihdr", b"IHDx", b"\x00\x00\x00\x00"])
def test_invalid_ihdr_tag(tag: bytes) -> None:
    stream = io.BytesIO(make_header(3, tag=tag))
    assert classify_stream(stream) == InvalidIhdrTag()
    assert stream.tell() == 16


@pytest.mark.parametrize("color_type, expected", sorted(KNOWN_COLOR_TYPES.items()))
def test_known_color_types(color_type: int, expected: PixelFormat) -> None:
    outcome = classify_stream(io.BytesIO(make_header(color_type, width=640, height=480, bit_depth=4)))

    assert isinstance(outcome, Classified)
    assert outcome.pixel_format is expected
    assert (outcome.width, outcome.height, outcome.bit_depth) == (640, 480, 4)


@pytest.mark.parametrize("color_type", [value for value in range(256) if value not in KNOWN_COLOR_TYPES])
def test_unrecognized_color_types(color_type: int) -> None:
    outcome = classify_stream(io.BytesIO(make_header(color_type)))

    assert isinstance(outcome, UnrecognizedPixelFormat)
    assert outcome.color_type == color_type
    assert outcome.is_failure


@pytest.mark.parametrize("length", range(HEADER_LENGTH))
def test_truncated_header_is_read_failure(length: int) -> None:
    data = make_header(3)[:length]
    assert classify_stream(io.BytesIO(data)) == ReadFailure()


def test_never_reads_past_color_type() -> None:
    stream = io.BytesIO(make_header(3))
    classify_stream(stream)
    assert stream.tell() == HEADER_LENGTH


def test_header_of_exactly_26_bytes_is_enough() -> None:
    outcome = classify_stream(io.BytesIO(make_header(0)[:HEADER_LENGTH]))
    assert isinstance(outcome, Classified)
    assert outcome.pixel_format is PixelFormat.GREYSCALE


def test_zero_byte_file_is_read_failure(tmp_path: Path) -> None:
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"")

    outcome = classify(broken)

    assert outcome == ReadFailure()
    assert outcome.kind == "ReadFailure"


def test_missing_file_and_directory_are_open_failures(tmp_path: Path) -> None:
    assert classify(tmp_path / "missing.png") == OpenFailure()

    folder = tmp_path / "folder.png"
    folder.mkdir()
    assert classify(folder) == OpenFailure()


@pytest.mark.parametrize(
    "mode, expected",
    [
        ("L", PixelFormat.GREYSCALE),
        ("RGB", PixelFormat.TRUE_COLOR),
        ("P", PixelFormat.INDEXED_COLOR),
        ("LA", PixelFormat.GREYSCALE_WITH_ALPHA),
        ("RGBA", PixelFormat.TRUE_COLOR_WITH_ALPHA),
    ],
)
def test_classify_real_png_files(tmp_path: Path, mode: str, expected: PixelFormat) -> None:
    path = tmp_path / f"{mode.lower()}.png"
    Image.new(mode, (3, 2)).save(path)

    outcome = classify(path)

    assert isinstance(outcome, Classified)
    assert outcome.pixel_format is expected
    assert (outcome.width, outcome.height) == (3, 2)
    assert outcome.is_indexed == (expected is PixelFormat.INDEXED_COLOR)
