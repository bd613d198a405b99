"""图片解码、直接色转换与 PNG 写回。"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from palette_fixer.core.exceptions import ImageDecodeError, ImageEncodeError

LOGGER = logging.getLogger(__name__)

DIRECT_COLOR_MODES = {"RGB", "RGBA"}


def decode_image(path: Path) -> Image.Image:
    """完整解码单张图片。

    返回值为新的 Image 对象，调用者负责关闭。
    """

    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        LOGGER.debug("无法解码图像文件 %s: %s", path, exc)
        raise ImageDecodeError(path, "Failed to open image") from exc


def to_direct_color(img: Image.Image) -> Image.Image:
    """将调色板图像转换为 RGB，带透明信息时转换为 RGBA。"""

    if img.mode in DIRECT_COLOR_MODES:
        return img.copy()

    if img.mode == "PA" or "transparency" in img.info:
        return img.convert("RGBA")

    return img.convert("RGB")


def save_png(img: Image.Image, path: Path) -> None:
    """以 PNG 格式覆盖写入。"""

    if img.mode not in DIRECT_COLOR_MODES:
        raise ImageEncodeError(path, f"Refusing to save non direct-color mode {img.mode}")

    try:
        img.save(path, format="PNG")
    except (OSError, ValueError) as exc:
        raise ImageEncodeError(path, "Failed to save image") from exc


def pixel_buffer(img: Image.Image) -> np.ndarray:
    """取得解码后的原始像素数组，形状为 (高, 宽, 通道)。"""

    return np.asarray(img)
