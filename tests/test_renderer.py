import threading
from dataclasses import replace

import numpy as np
import pytest

from threaded_mandelbrot import (
    DEFAULT_PALETTE,
    ConfigurationError,
    ControlPoint,
    Palette,
    Region,
    RenderAllocationError,
    RenderParameters,
    partition_ranges,
    render,
    render_frame,
    render_tile,
    to_rgb8,
)
from threaded_mandelbrot import renderer

REGION = Region(left=-2.0, right=0.75, top=1.0, bottom=-1.0)
SMALL = RenderParameters(width=23, height=13, region=REGION, max_iterations=64)


class RecordingBuffer:
    """Stands in for the image buffer and remembers every byte written."""

    def __init__(self, size):
        self.size = size
        self.writes = np.zeros(size, dtype=np.int64)
        self._lock = threading.Lock()

    def __setitem__(self, key, value):
        assert isinstance(key, slice)
        assert len(value) == key.stop - key.start
        with self._lock:
            self.writes[key.start:key.stop] += 1


@pytest.mark.parametrize(
    "total, workers, expected",
    [
        (10, 1, [(0, 10)]),
        (10, 2, [(0, 5), (5, 10)]),
        (10, 3, [(0, 4), (4, 8), (8, 10)]),
        (10, 4, [(0, 3), (3, 6), (6, 9), (9, 10)]),
        (3, 5, [(0, 1), (1, 2), (2, 3), (3, 3), (3, 3)]),
    ],
)
def test_partition_ranges(total, workers, expected):
    assert partition_ranges(total, workers) == expected


@pytest.mark.parametrize("workers", [1, 2, 3, 7, 16, 100])
def test_partition_covers_every_index_once(workers):
    total = 299
    ranges = partition_ranges(total, workers)
    assert len(ranges) == workers
    covered = [index for start, end in ranges for index in range(start, end)]
    assert covered == list(range(total))


def test_partition_rejects_zero_workers():
    with pytest.raises(ConfigurationError):
        partition_ranges(10, 0)


@pytest.mark.parametrize("workers", [1, 2, 7, 16])
def test_output_does_not_depend_on_worker_count(workers):
    reference = render_frame(SMALL, workers=1)
    assert np.array_equal(render_frame(SMALL, workers=workers), reference)


@pytest.mark.parametrize("workers", [1, 2, 7, 16, 320])
def test_every_byte_written_exactly_once(workers):
    buffer = RecordingBuffer(SMALL.pixel_count * 3)
    renderer.dispatch(buffer, SMALL, workers)
    assert np.all(buffer.writes == 1)


def test_tile_only_touches_its_range():
    buffer = RecordingBuffer(SMALL.pixel_count * 3)
    render_tile(buffer, 40, 90, SMALL)
    assert np.all(buffer.writes[:120] == 0)
    assert np.all(buffer.writes[120:270] == 1)
    assert np.all(buffer.writes[270:] == 0)


def test_buffer_layout():
    image = render_frame(SMALL, workers=3)
    assert image.dtype == np.uint8
    assert image.shape == (SMALL.pixel_count * 3,)


def test_end_to_end_small_image():
    first = render(1, 4, 4, REGION, 255)
    second = render(4, 4, 4, REGION, 255)
    assert np.array_equal(first, second)
    # the top-left corner escapes after a single step
    assert tuple(first[:3]) == to_rgb8(DEFAULT_PALETTE.points[0].color)


def test_in_set_pixels_use_inside_color():
    region = Region(left=-0.1, right=0.1, top=0.1, bottom=-0.1)
    image = render(2, 4, 4, region, 50, inside_color=(1.0, 0.0, 0.5))
    assert np.array_equal(image.reshape(-1, 3), np.tile([255, 0, 127], (16, 1)))


def test_tensorflow_backend_matches_python_backend():
    params = RenderParameters(width=17, height=11, region=REGION, max_iterations=80, backend="tensorflow")
    python_image = render_frame(replace(params, backend="python"), workers=1)
    assert np.array_equal(render_frame(params, workers=3), python_image)
    assert np.array_equal(render_frame(params, workers=1), python_image)


@pytest.mark.parametrize(
    "params",
    [
        RenderParameters(width=0, height=4),
        RenderParameters(width=4, height=0),
        RenderParameters(width=4, height=4, max_iterations=0),
        RenderParameters(width=4, height=4, region=Region(left=1.0, right=-1.0, top=1.0, bottom=-1.0)),
        RenderParameters(width=4, height=4, palette=Palette(())),
        RenderParameters(width=4, height=4, palette=Palette((ControlPoint(1, (0, 0, 0)), ControlPoint(0, (1, 1, 1))))),
        RenderParameters(width=4, height=4, inside_color=(0.0, 0.0)),
        RenderParameters(width=4, height=4, backend="cuda"),
        RenderParameters(width=2.5, height=2),
        RenderParameters(width=4, height=4.0),
        RenderParameters(width=4, height=4, max_iterations=10.5),
        RenderParameters(width=4, height=4, max_iterations=True),
    ],
)
def test_configuration_violations_fail_before_rendering(params, monkeypatch):
    def fail_dispatch(*args, **kwargs):
        raise AssertionError("workers launched for an invalid configuration")

    monkeypatch.setattr(renderer, "dispatch", fail_dispatch)
    with pytest.raises(ConfigurationError):
        render_frame(params, workers=2)


def test_zero_workers_rejected():
    with pytest.raises(ConfigurationError):
        render(0, 4, 4, REGION, 10)


def test_non_integer_size_rejected_by_render():
    with pytest.raises(ConfigurationError):
        render(1, 2.5, 2, REGION, 10)


def test_non_integer_workers_rejected():
    with pytest.raises(ConfigurationError):
        render_frame(SMALL, workers=2.5)
    with pytest.raises(ConfigurationError):
        partition_ranges(10, 2.0)


def test_allocation_failure(monkeypatch):
    def no_memory(*args, **kwargs):
        raise MemoryError

    monkeypatch.setattr(renderer.np, "empty", no_memory)
    with pytest.raises(RenderAllocationError):
        render_frame(SMALL, workers=2)


def test_worker_errors_reach_the_caller(monkeypatch):
    def broken_tile(buffer, start, end, params):
        raise RuntimeError("tile failed")

    monkeypatch.setattr(renderer, "render_tile", broken_tile)
    with pytest.raises(RuntimeError, match="tile failed"):
        render_frame(SMALL, workers=4)
