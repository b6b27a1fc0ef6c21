"""Public API for threaded Mandelbrot rendering."""

from .encoder import EncodeResult, write_image
from .errors import ConfigurationError, MandelbrotError, RenderAllocationError
from .escape import IN_SET, Escaped, InSet, SampleResult, evaluate_point, evaluate_points
from .geometry import DEFAULT_REGION, Region, pixel_to_complex
from .palette import (
    DEFAULT_PALETTE,
    INSIDE_COLOR,
    ITER_POW,
    ControlPoint,
    Palette,
    default_palette,
    interpolate_color,
    palette_from_colormap,
    sample_color,
    to_rgb8,
)
from .renderer import (
    BACKENDS,
    DEFAULT_MAX_ITERATIONS,
    RenderParameters,
    partition_ranges,
    render,
    render_frame,
    render_tile,
)

__all__ = [
    "BACKENDS",
    "ConfigurationError",
    "ControlPoint",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_PALETTE",
    "DEFAULT_REGION",
    "EncodeResult",
    "Escaped",
    "INSIDE_COLOR",
    "IN_SET",
    "ITER_POW",
    "InSet",
    "MandelbrotError",
    "Palette",
    "Region",
    "RenderAllocationError",
    "RenderParameters",
    "SampleResult",
    "evaluate_point",
    "evaluate_points",
    "default_palette",
    "interpolate_color",
    "palette_from_colormap",
    "partition_ranges",
    "pixel_to_complex",
    "render",
    "render_frame",
    "render_tile",
    "sample_color",
    "to_rgb8",
    "write_image",
]
