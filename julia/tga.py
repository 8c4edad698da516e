"""Writers for rendered pixel buffers."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import numpy as np
import PIL.Image

from .errors import EncoderError

PathLike = Union[str, Path]

# No image id, no color map, uncompressed true-color, zero origin.
TGA_HEADER = bytes([0, 0, 2, 0, 0, 0, 0, 0, 0, 0, 0, 0])
TGA_BITS_PER_PIXEL = 24


def _check_buffer(width: int, height: int, pixels: np.ndarray) -> np.ndarray:
    pixels = np.ascontiguousarray(pixels, dtype=np.uint8).reshape(-1)
    expected = 3 * width * height
    if pixels.size != expected:
        raise ValueError(f"Expected {expected} bytes for a {width}x{height} image, got {pixels.size}.")
    return pixels


def tga_header(width: int, height: int) -> bytes:
    """Return the 18-byte header of a ``width`` x ``height`` 24-bit TGA file."""

    for name, value in (("width", width), ("height", height)):
        if not 0 < value < 1 << 16:
            raise ValueError(f"TGA {name} must be between 1 and 65535, got {value}.")
    dimensions = bytes([width % 256, width // 256, height % 256, height // 256, TGA_BITS_PER_PIXEL, 0])
    return TGA_HEADER + dimensions


def write_tga(path: PathLike, width: int, height: int, pixels: np.ndarray) -> Path:
    """Write ``pixels`` verbatim after a TGA header.

    The buffer is stored as-is: rows bottom-up, channels blue-green-red.
    """

    header = tga_header(width, height)
    pixels = _check_buffer(width, height, pixels)
    output_path = Path(path)
    try:
        with open(output_path, "wb") as file_unit:
            file_unit.write(header)
            file_unit.write(pixels.tobytes())
    except OSError as exc:
        raise EncoderError(f"Could not write TGA file '{output_path}': {exc}") from exc
    return output_path


def to_image(width: int, height: int, pixels: np.ndarray) -> PIL.Image.Image:
    """Convert a TGA-ordered buffer to a top-down RGB ``PIL.Image``."""

    pixels = _check_buffer(width, height, pixels).reshape(height, width, 3)
    rgb = np.ascontiguousarray(pixels[::-1, :, ::-1])
    return PIL.Image.fromarray(rgb)


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_preview(
    path: PathLike,
    width: int,
    height: int,
    pixels: np.ndarray,
    image_format: Optional[str] = None,
) -> Path:
    """Write a viewable copy of ``pixels`` in any format Pillow supports.

    The format defaults to the extension of ``path``.
    """

    output_path = Path(path)
    image_format = (image_format or output_path.suffix.lstrip(".") or "png").lower()
    image = to_image(width, height, pixels)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        image.save(str(output_path), format=_pil_format_name(image_format))
    except OSError as exc:
        raise EncoderError(f"Could not write preview '{output_path}': {exc}") from exc
    return output_path
