"""Mapping between flat pixel indices and the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import ConfigurationError


@dataclass(frozen=True)
class Region:
    """Rectangle of the complex plane sampled into an image."""

    left: float
    right: float
    top: float
    bottom: float

    def validate(self) -> None:
        bounds = (self.left, self.right, self.top, self.bottom)
        if not all(math.isfinite(value) for value in bounds):
            raise ConfigurationError(f"region bounds must be finite, got {bounds}")
        if not self.left < self.right:
            raise ConfigurationError(f"region left ({self.left}) must be smaller than right ({self.right})")
        if not self.bottom < self.top:
            raise ConfigurationError(f"region bottom ({self.bottom}) must be smaller than top ({self.top})")

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom


DEFAULT_REGION = Region(left=-2.0, right=0.75, top=1.0, bottom=-1.0)


def pixel_to_complex(index: int, width: int, height: int, region: Region) -> complex:
    """Return the point of ``region`` sampled by the flat pixel ``index``.

    Columns advance from ``left`` towards ``right`` and rows descend from
    ``top`` towards ``bottom``; the last column and row stop one step short
    of ``right`` and ``bottom``.
    """

    row = index // width
    col = index % width
    x = region.left + (region.width / width) * col
    y = region.top - (region.height / height) * row
    return complex(x, y)
