"""Exceptions raised by the Mandelbrot renderer."""


class MandelbrotError(Exception):
    """Base class for renderer errors."""


class ConfigurationError(MandelbrotError, ValueError):
    """Render parameters that cannot describe a valid image."""


class RenderAllocationError(MandelbrotError, MemoryError):
    """The output buffer for a render could not be acquired."""
