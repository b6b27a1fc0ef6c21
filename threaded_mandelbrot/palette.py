"""Piecewise-linear colour palettes indexed by ``log2`` of the escape iteration."""

from __future__ import annotations

import math
from dataclasses import dataclass

from matplotlib import colormaps

from .errors import ConfigurationError
from .escape import InSet, SampleResult

Color = tuple[float, float, float]

ITER_POW = 10
INSIDE_COLOR: Color = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class ControlPoint:
    """Anchor of the colour ramp: ``color`` is reached when ``log2(iteration) == threshold``."""

    threshold: float
    color: Color


@dataclass(frozen=True)
class Palette:
    """Control points sorted by strictly increasing threshold."""

    points: tuple[ControlPoint, ...]

    def validate(self) -> None:
        if not self.points:
            raise ConfigurationError("palette needs at least one control point")
        for point in self.points:
            if not math.isfinite(point.threshold):
                raise ConfigurationError(f"palette thresholds must be finite, got {point.threshold}")
            validate_color(point.color, "palette color")
        for lower, upper in zip(self.points, self.points[1:]):
            if not lower.threshold < upper.threshold:
                raise ConfigurationError(
                    f"palette thresholds must be strictly increasing, got {lower.threshold} then {upper.threshold}"
                )


def default_palette(iter_pow: float = ITER_POW) -> Palette:
    """Two-point ramp from deep blue at threshold 0 to white at ``iter_pow``."""

    return Palette(
        (
            # far outside the set
            ControlPoint(0, (0.0, 0.08, 0.25)),
            # escaped only near the iteration cap
            ControlPoint(iter_pow, (1.0, 1.0, 1.0)),
        )
    )


DEFAULT_PALETTE = default_palette()


def validate_color(color: Color, what: str) -> None:
    if len(color) != 3:
        raise ConfigurationError(f"{what} must have three channels, got {color!r}")
    if not all(math.isfinite(channel) for channel in color):
        raise ConfigurationError(f"{what} channels must be finite, got {color!r}")


def interpolate_color(power: float, palette: Palette) -> Color:
    """Colour for ``power = log2(iteration)`` on the palette ramp.

    The matching segment ends at the first control point whose threshold is
    not below ``power``. At or below the first threshold the first colour is
    returned as is. Past the last threshold the scan stops at the last point
    and the final segment is extrapolated, so channels may leave ``[0, 1]``
    until :func:`to_rgb8` clamps them.
    """

    points = palette.points
    index = 0
    while index + 1 < len(points) and power > points[index].threshold:
        index += 1

    if index == 0:
        return points[0].color

    lower = points[index - 1]
    upper = points[index]
    t = (power - lower.threshold) / (upper.threshold - lower.threshold)
    return tuple(hi * t + lo * (1.0 - t) for hi, lo in zip(upper.color, lower.color))


def sample_color(result: SampleResult, palette: Palette, inside_color: Color = INSIDE_COLOR) -> Color:
    if isinstance(result, InSet):
        return inside_color
    return interpolate_color(math.log2(result.iteration), palette)


def to_rgb8(color: Color) -> tuple[int, int, int]:
    """Clamp each channel to ``[0, 1]`` and truncate ``channel * 255`` to an integer."""

    return tuple(int(min(max(channel, 0.0), 1.0) * 255.0) for channel in color)


def palette_from_colormap(name: str, iter_pow: float = ITER_POW, stops: int = 8) -> Palette:
    """Sample a matplotlib colormap at ``stops`` evenly spaced thresholds over ``[0, iter_pow]``."""

    if stops < 2:
        raise ConfigurationError(f"a colormap palette needs at least two stops, got {stops}")
    if not iter_pow > 0:
        raise ConfigurationError(f"iter_pow must be positive, got {iter_pow}")
    try:
        cmap = colormaps[name]
    except KeyError as exc:
        raise ConfigurationError(f"unknown colormap '{name}'") from exc

    points = []
    for i in range(stops):
        position = i / (stops - 1)
        rgba = cmap(position)
        points.append(ControlPoint(iter_pow * position, (float(rgba[0]), float(rgba[1]), float(rgba[2]))))
    return Palette(tuple(points))
