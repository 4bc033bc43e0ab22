"""Public API for Mandelbrot rendering utilities."""

from .renderer import (
    DEFAULT_RESOLUTION,
    DEFAULT_WORKERS,
    ITERATION_LIMIT,
    Band,
    Renderer,
    escape_time,
    intensity,
    kernel_names,
    pixel_to_point,
    render_frame,
    resolve_kernel,
    split_rows,
)
from .sequence import zoom_scales, zoom_sequence
from .viewport import DEFAULT_LOWER_RIGHT, DEFAULT_UPPER_LEFT, Viewport

__all__ = [
    "Band",
    "DEFAULT_LOWER_RIGHT",
    "DEFAULT_RESOLUTION",
    "DEFAULT_UPPER_LEFT",
    "DEFAULT_WORKERS",
    "ITERATION_LIMIT",
    "Renderer",
    "Viewport",
    "escape_time",
    "intensity",
    "kernel_names",
    "pixel_to_point",
    "render_frame",
    "resolve_kernel",
    "split_rows",
    "zoom_scales",
    "zoom_sequence",
]
