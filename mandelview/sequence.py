"""Viewport schedules for animated zoom sequences."""

from __future__ import annotations

from typing import Iterable, Iterator

import numpy as np

from .viewport import Viewport

EASINGS = ("linear", "ease")


def zoom_scales(frames: int, zoom_factor: float, *, final_zoom: float | None = None, easing: str = "ease") -> np.ndarray:
    """Total scale of each frame relative to the starting viewport.

    Without ``final_zoom`` frame ``k`` (counting from 1) is ``zoom_factor ** k``.
    With it, the scale runs from 1 on the first frame to ``final_zoom`` on the
    last, moving through ``final_zoom ** t`` where ``t`` advances evenly
    (``"linear"``) or along a smoothstep curve (``"ease"``).
    """

    if frames <= 0:
        return np.empty(0, dtype=np.float64)

    if final_zoom is None or final_zoom <= 0:
        return np.float64(zoom_factor) ** np.arange(1, frames + 1, dtype=np.float64)

    progress = np.linspace(0.0, 1.0, frames) if frames > 1 else np.ones(1)
    if easing == "ease":
        progress = progress * progress * (3.0 - 2.0 * progress)
    return np.float64(final_zoom) ** progress


def zoom_sequence(viewport: Viewport, scales: Iterable[float]) -> Iterator[Viewport]:
    """Zoom ``viewport`` to each total scale in turn and yield a snapshot.

    Each step applies the ratio to the previous scale, so ``viewport`` is
    mutated in place and ends on the last frame.
    """

    current = 1.0
    for scale in scales:
        scale = float(scale)
        viewport.zoom(scale / current)
        current = scale
        yield viewport.copy()
