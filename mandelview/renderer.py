"""Escape-time rendering of the Mandelbrot set, split into parallel bands."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .viewport import Viewport

ITERATION_LIMIT = 255
HORIZON = 4.0
DEFAULT_RESOLUTION = (1024, 768)
DEFAULT_WORKERS = 8

Kernel = Callable[..., np.ndarray]


@dataclass(frozen=True)
class Band:
    """A run of consecutive image rows rendered by one task.

    ``upper_left`` and ``lower_right`` are the plane coordinates of the band's
    corners, kept for inspection. Pixels inside the band are mapped from the
    full viewport, so the band corners are never used for rendering.
    """

    index: int
    top: int
    rows: int
    upper_left: complex
    lower_right: complex


def escape_time(c: complex, limit: int = ITERATION_LIMIT) -> Optional[int]:
    """Try to determine if ``c`` is in the Mandelbrot set in ``limit`` iterations.

    Returns the iteration at which the orbit of ``c`` was first seen outside
    the circle of radius 2, or ``None`` if it never was. ``None`` only means
    membership could not be ruled out.
    """

    cr, ci = c.real, c.imag
    zr = zi = 0.0
    for i in range(limit):
        if zr * zr + zi * zi > HORIZON:
            return i
        zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci
    return None


def intensity(count: Optional[int]) -> int:
    """Gray level for an escape count: fast escapes are bright, members black."""
    if count is None:
        return 0
    return 255 - count


def pixel_to_point(
    bounds: tuple[int, int],
    pixel: tuple[int, int],
    upper_left: complex,
    lower_right: complex,
) -> complex:
    """Map the ``(column, row)`` pixel of an image of size ``bounds`` to the plane.

    ``upper_left`` and ``lower_right`` are the plane coordinates of the image
    corners. Row 0 is the top of the image, so the imaginary part decreases
    as the row grows.
    """

    width = lower_right.real - upper_left.real
    height = upper_left.imag - lower_right.imag
    return complex(
        upper_left.real + pixel[0] * width / bounds[0],
        upper_left.imag - pixel[1] * height / bounds[1],
    )


def split_rows(height: int, workers: int) -> list[tuple[int, int]]:
    """Partition ``height`` rows into ``workers`` contiguous ``(top, rows)`` spans.

    Every span but the trailing ones holds ``height // workers + 1`` rows; the
    last spans may be short or empty.
    """

    rows_per_band = height // workers + 1
    spans = []
    for index in range(workers):
        top = min(rows_per_band * index, height)
        rows = max(min(rows_per_band, height - top), 0)
        spans.append((top, rows))
    return spans


def _band_grid(
    bounds: tuple[int, int],
    top: int,
    rows: int,
    upper_left: complex,
    lower_right: complex,
) -> tuple[np.ndarray, np.ndarray]:
    # Same expressions as pixel_to_point, evaluated for a whole band at once.
    width, height = bounds
    plane_width = lower_right.real - upper_left.real
    plane_height = upper_left.imag - lower_right.imag

    columns = np.arange(width, dtype=np.float64)
    band_rows = np.arange(top, top + rows, dtype=np.float64)
    re = upper_left.real + columns * plane_width / width
    im = upper_left.imag - band_rows * plane_height / height
    return (
        np.broadcast_to(re, (rows, width)),
        np.broadcast_to(im[:, np.newaxis], (rows, width)),
    )


def _python_kernel(re: np.ndarray, im: np.ndarray, limit: int, device: Optional[str] = None) -> np.ndarray:
    counts = np.full(re.shape, -1, dtype=np.int64)
    for index in np.ndindex(re.shape):
        count = escape_time(complex(re[index], im[index]), limit)
        if count is not None:
            counts[index] = count
    return counts


def _numpy_kernel(re: np.ndarray, im: np.ndarray, limit: int, device: Optional[str] = None) -> np.ndarray:
    shape = re.shape
    cr = np.array(re, dtype=np.float64).ravel()
    ci = np.array(im, dtype=np.float64).ravel()
    counts = np.full(cr.size, -1, dtype=np.int64)

    # Only orbits that have not escaped yet are kept in the working arrays.
    index = np.arange(cr.size)
    zr = np.zeros_like(cr)
    zi = np.zeros_like(ci)

    with np.errstate(over="ignore", invalid="ignore"):
        for i in range(limit):
            if index.size == 0:
                break
            escaped = zr * zr + zi * zi > HORIZON
            if escaped.any():
                counts[index[escaped]] = i
                keep = ~escaped
                index, zr, zi, cr, ci = index[keep], zr[keep], zi[keep], cr[keep], ci[keep]
            zr, zi = zr * zr - zi * zi + cr, 2.0 * zr * zi + ci

    return counts.reshape(shape)


KERNELS: dict[str, Kernel] = {
    "numpy": _numpy_kernel,
    "python": _python_kernel,
}


def resolve_kernel(name: str) -> Kernel:
    """Look up an escape-time kernel by name."""

    if name == "tensorflow":
        from .tf_kernel import tensorflow_kernel

        return tensorflow_kernel
    try:
        return KERNELS[name]
    except KeyError:
        choices = ", ".join(sorted([*KERNELS, "tensorflow"]))
        raise ValueError(f"Unknown kernel '{name}'. Valid choices: {choices}.") from None


def kernel_names() -> list[str]:
    return sorted([*KERNELS, "tensorflow"])


def _intensities(counts: np.ndarray) -> np.ndarray:
    return np.where(counts < 0, 0, 255 - counts).astype(np.uint8)


class Renderer:
    """Render viewports at a fixed resolution.

    ``workers`` is the number of bands the image is cut into, each computed by
    its own thread. ``None`` sizes it from the CPU count. ``kernel`` picks the
    escape-time implementation used inside a band; every kernel produces the
    same bytes. ``device`` is only used by the tensorflow kernel.
    """

    def __init__(
        self,
        bounds: tuple[int, int] = DEFAULT_RESOLUTION,
        *,
        workers: Optional[int] = DEFAULT_WORKERS,
        kernel: str = "numpy",
        device: Optional[str] = None,
    ) -> None:
        width, height = bounds
        self._bounds = (int(width), int(height))
        if workers is None:
            workers = os.cpu_count() or DEFAULT_WORKERS
        self.workers = max(int(workers), 1)
        self.kernel = kernel
        self.device = device
        self._kernel = resolve_kernel(kernel)

    def __repr__(self) -> str:
        return f"Renderer(bounds={self._bounds}, workers={self.workers}, kernel={self.kernel!r})"

    @property
    def bounds(self) -> tuple[int, int]:
        return self._bounds

    def bands(self, viewport: Viewport) -> list[Band]:
        """Plan the bands for ``viewport``, corners taken from the full image."""

        width, height = self._bounds
        upper_left, lower_right = viewport.upper_left, viewport.lower_right
        bands = []
        for index, (top, rows) in enumerate(split_rows(height, self.workers)):
            bands.append(
                Band(
                    index=index,
                    top=top,
                    rows=rows,
                    upper_left=pixel_to_point(self._bounds, (0, top), upper_left, lower_right),
                    lower_right=pixel_to_point(self._bounds, (width, top + rows), upper_left, lower_right),
                )
            )
        return bands

    def render_band(self, pixels: np.ndarray, band: Band, viewport: Viewport) -> None:
        """Fill ``pixels``, the slice of the image owned by ``band``."""

        width = self._bounds[0]
        if pixels.size != band.rows * width:
            raise ValueError(f"band {band.index} needs {band.rows * width} pixels, got {pixels.size}")
        if band.rows == 0:
            return

        re, im = _band_grid(self._bounds, band.top, band.rows, viewport.upper_left, viewport.lower_right)
        counts = self._kernel(re, im, ITERATION_LIMIT, device=self.device)
        pixels[:] = _intensities(counts).ravel()

    def render(self, viewport: Viewport) -> np.ndarray:
        """Return a fresh row-major ``uint8`` buffer of ``width * height`` pixels."""

        width, height = self._bounds
        pixels = np.zeros(width * height, dtype=np.uint8)
        snapshot = viewport.copy()
        bands = self.bands(snapshot)

        with ThreadPoolExecutor(max_workers=len(bands)) as executor:
            futures = [
                executor.submit(
                    self.render_band,
                    pixels[band.top * width:(band.top + band.rows) * width],
                    band,
                    snapshot,
                )
                for band in bands
            ]
            for future in futures:
                future.result()

        return pixels


def render_frame(
    viewport: Viewport,
    bounds: tuple[int, int] = DEFAULT_RESOLUTION,
    **options,
) -> np.ndarray:
    """Render ``viewport`` once with a throwaway :class:`Renderer`."""

    return Renderer(bounds, **options).render(viewport)
