"""TensorFlow escape-time kernel.

Imported on demand by :func:`mandelview.renderer.resolve_kernel`, so
TensorFlow is only needed when the ``tensorflow`` kernel is selected.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

HORIZON = 4.0


@tf.function
def _escape_step(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    counts: tf.Tensor,
    active: tf.Tensor,
    i: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Check every live orbit for escape, then advance the ones still inside."""

    escaped = tf.logical_and(active, zr * zr + zi * zi > HORIZON)
    counts = tf.where(escaped, i, counts)
    active = tf.logical_and(active, tf.logical_not(escaped))

    zr_next = zr * zr - zi * zi + cr
    zi_next = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_next, zr)
    zi = tf.where(active, zi_next, zi)
    return zr, zi, counts, active


@tf.function
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, limit: tf.Tensor) -> tf.Tensor:
    """Iterate with a TensorFlow while loop until every orbit escaped or ``limit``."""

    limit = tf.cast(limit, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    counts = tf.fill(tf.shape(cr), tf.constant(-1, dtype=tf.int32))
    active = tf.ones_like(cr, tf.bool)

    def cond(i, zr, zi, counts, active):
        return tf.logical_and(tf.less(i, limit), tf.reduce_any(active))

    def body(i, zr, zi, counts, active):
        zr, zi, counts, active = _escape_step(zr, zi, cr, ci, counts, active, i)
        return i + 1, zr, zi, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zr, zi, counts, active))
    return counts


def tensorflow_kernel(re: np.ndarray, im: np.ndarray, limit: int, device: Optional[str] = None) -> np.ndarray:
    """Escape counts for a band, ``-1`` where the orbit stayed bounded."""

    with tf.device(device if device is not None else "/CPU:0"):
        cr = tf.convert_to_tensor(np.ascontiguousarray(re), dtype=tf.float64)
        ci = tf.convert_to_tensor(np.ascontiguousarray(im), dtype=tf.float64)
        counts = _escape_run(cr, ci, tf.constant(limit, dtype=tf.int32))
    return counts.numpy().astype(np.int64)


def default_device() -> str:
    """Use the first GPU when one is visible, otherwise the CPU."""

    gpus = tf.config.list_physical_devices("GPU")
    if not gpus:
        return "/CPU:0"
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError:
        # Memory growth can only be set before the GPUs are initialised.
        return "/CPU:0"
    return "/GPU:0"


def prepare_device(device: Optional[str] = None, *, quiet: bool = True) -> str:
    """Resolve the device the kernel runs on, the first GPU when none is given.

    ``quiet`` turns TensorFlow's Python logger down to errors.
    """

    if quiet:
        tf.get_logger().setLevel("ERROR")
    if device is None:
        device = default_device()
    return device
