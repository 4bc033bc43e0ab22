"""Conversions from render buffers to images, and image file output."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import PIL.Image


def as_rows(pixels: np.ndarray, bounds: tuple[int, int]) -> np.ndarray:
    """View a flat buffer as a ``(height, width)`` array."""
    width, height = bounds
    return np.asarray(pixels, dtype=np.uint8).reshape(height, width)


def to_grayscale_image(pixels: np.ndarray, bounds: tuple[int, int]) -> PIL.Image.Image:
    return PIL.Image.fromarray(as_rows(pixels, bounds))


def to_rgba(pixels: np.ndarray, bounds: tuple[int, int]) -> np.ndarray:
    """Expand gray levels into opaque RGBA texels, shape ``(height, width, 4)``."""

    gray = as_rows(pixels, bounds)
    rgba = np.empty(gray.shape + (4,), dtype=np.uint8)
    rgba[..., 0] = gray
    rgba[..., 1] = gray
    rgba[..., 2] = gray
    rgba[..., 3] = 255
    return rgba


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def write_gif(writer: Any, frame_array: np.ndarray) -> None:
    """Append ``frame_array`` to an active GIF writer."""

    writer.append_data(frame_array)
