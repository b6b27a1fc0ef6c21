"""Writing rendered RGB buffers to image files with Pillow."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import PIL.Image

CHANNELS = 3


@dataclass(frozen=True)
class EncodeResult:
    """Outcome of :func:`write_image`; ``error`` is ``None`` on success."""

    path: Path
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def write_image(
    buffer: np.ndarray,
    width: int,
    height: int,
    path: str | Path,
    *,
    image_format: str | None = None,
) -> EncodeResult:
    """Encode an 8-bit RGB ``buffer`` of ``width * height`` pixels to ``path``.

    Failures are reported in the returned :class:`EncodeResult` instead of
    being raised, so a failed write never invalidates the rendered buffer.
    """

    path = Path(path).expanduser()
    if width < 1 or height < 1:
        return EncodeResult(path, f"invalid dimensions {width}x{height}")

    pixels = np.asarray(buffer, dtype=np.uint8)
    expected = width * height * CHANNELS
    if pixels.size != expected:
        return EncodeResult(path, f"buffer holds {pixels.size} bytes, expected {expected} for {width}x{height} RGB")

    ext = image_format or path.suffix.lstrip(".") or "png"
    image = PIL.Image.fromarray(pixels.reshape(height, width, CHANNELS))
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        image.save(str(path), format=_pil_format_name(ext))
    except (OSError, ValueError, KeyError) as exc:
        return EncodeResult(path, f"{type(exc).__name__}: {exc}")
    return EncodeResult(path)
