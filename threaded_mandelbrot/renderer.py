"""Tile workers and the threaded dispatcher that render Mandelbrot images."""

from __future__ import annotations

import numbers
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import ConfigurationError, RenderAllocationError
from .escape import evaluate_point, evaluate_points
from .geometry import DEFAULT_REGION, Region, pixel_to_complex
from .palette import DEFAULT_PALETTE, INSIDE_COLOR, ITER_POW, Color, Palette, sample_color, to_rgb8, validate_color

CHANNELS = 3
DEFAULT_MAX_ITERATIONS = (1 << ITER_POW) - 1
BACKENDS = ("python", "tensorflow")


@dataclass(frozen=True)
class RenderParameters:
    """Everything a render depends on besides the number of workers."""

    width: int = 960
    height: int = 540
    region: Region = DEFAULT_REGION
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    palette: Palette = DEFAULT_PALETTE
    inside_color: Color = INSIDE_COLOR
    backend: str = "python"

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def validate(self) -> None:
        for name in ("width", "height", "max_iterations"):
            value = getattr(self, name)
            if not isinstance(value, numbers.Integral) or isinstance(value, bool):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.width < 1 or self.height < 1:
            raise ConfigurationError(f"image size must be positive, got {self.width}x{self.height}")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if self.backend not in BACKENDS:
            raise ConfigurationError(f"unknown backend '{self.backend}', expected one of {', '.join(BACKENDS)}")
        self.region.validate()
        self.palette.validate()
        validate_color(self.inside_color, "inside color")


def partition_ranges(total: int, workers: int) -> list[tuple[int, int]]:
    """Split ``[0, total)`` into ``workers`` contiguous half-open ranges.

    Every range holds ``ceil(total / workers)`` indices except the last
    non-empty one, which is truncated at ``total``. When there are more
    workers than indices the trailing ranges are empty.
    """

    if not isinstance(workers, numbers.Integral) or isinstance(workers, bool):
        raise ConfigurationError(f"worker count must be an integer, got {workers!r}")
    if workers < 1:
        raise ConfigurationError(f"worker count must be at least 1, got {workers}")
    chunk = -(-total // workers)
    return [(min(i * chunk, total), min((i + 1) * chunk, total)) for i in range(workers)]


def render_tile(buffer: Any, start: int, end: int, params: RenderParameters) -> None:
    """Colour pixels ``start`` to ``end - 1`` into ``buffer``, three bytes per pixel."""

    if params.backend == "tensorflow":
        _render_tile_batched(buffer, start, end, params)
        return

    for index in range(start, end):
        c = pixel_to_complex(index, params.width, params.height, params.region)
        result = evaluate_point(c, params.max_iterations)
        offset = CHANNELS * index
        buffer[offset:offset + CHANNELS] = to_rgb8(sample_color(result, params.palette, params.inside_color))


def _render_tile_batched(buffer: Any, start: int, end: int, params: RenderParameters) -> None:
    points = np.array(
        [pixel_to_complex(index, params.width, params.height, params.region) for index in range(start, end)],
        dtype=np.complex128,
    )
    results = evaluate_points(points, params.max_iterations)
    for index, result in zip(range(start, end), results):
        offset = CHANNELS * index
        buffer[offset:offset + CHANNELS] = to_rgb8(sample_color(result, params.palette, params.inside_color))


def allocate_buffer(pixel_count: int) -> np.ndarray:
    try:
        return np.empty(pixel_count * CHANNELS, dtype=np.uint8)
    except (MemoryError, OverflowError, ValueError) as exc:
        raise RenderAllocationError(f"could not allocate an image buffer for {pixel_count} pixels") from exc


def dispatch(buffer: Any, params: RenderParameters, workers: int) -> None:
    """Run one tile worker per range of :func:`partition_ranges` and wait for all of them."""

    ranges = partition_ranges(params.pixel_count, workers)
    with ThreadPoolExecutor(max_workers=len(ranges)) as pool:
        futures: list[Future[None]] = [pool.submit(render_tile, buffer, start, end, params) for start, end in ranges]
        for future in futures:
            future.result()


def render_frame(params: RenderParameters, *, workers: int = 1) -> np.ndarray:
    """Render ``params`` with ``workers`` threads into a flat RGB buffer.

    The buffer holds ``height * width * 3`` bytes, row-major with the top row
    first. Its content does not depend on ``workers``.
    """

    params.validate()
    if not isinstance(workers, numbers.Integral) or isinstance(workers, bool) or workers < 1:
        raise ConfigurationError(f"worker count must be at least 1, got {workers}")

    buffer = allocate_buffer(params.pixel_count)
    dispatch(buffer, params, workers)
    return buffer


def render(
    worker_count: int,
    width: int,
    height: int,
    region: Region,
    max_iterations: int,
    *,
    palette: Palette = DEFAULT_PALETTE,
    inside_color: Color = INSIDE_COLOR,
    backend: str = "python",
) -> np.ndarray:
    """Build :class:`RenderParameters` from plain arguments and pass them to :func:`render_frame`."""

    params = RenderParameters(
        width=width,
        height=height,
        region=region,
        max_iterations=max_iterations,
        palette=palette,
        inside_color=inside_color,
        backend=backend,
    )
    return render_frame(params, workers=worker_count)
