import logging

import numpy as np
import pytest

tf = pytest.importorskip("tensorflow")

from mandelview import Renderer, Viewport  # noqa: E402
from mandelview import tf_kernel  # noqa: E402
from mandelview.tf_kernel import default_device, prepare_device, tensorflow_kernel  # noqa: E402


def test_kernel_counts():
    re = np.array([[0.0, 3.0, 0.0, -2.0]])
    im = np.array([[0.0, 0.0, 2.0, 2.0]])
    counts = tensorflow_kernel(re, im, 255)
    assert counts.tolist() == [[-1, 1, 2, 1]]


def test_kernel_respects_limit():
    counts = tensorflow_kernel(np.array([[3.0]]), np.array([[0.0]]), 1)
    assert counts.tolist() == [[-1]]


def test_empty_band():
    counts = tensorflow_kernel(np.zeros((0, 5)), np.zeros((0, 5)), 255)
    assert counts.shape == (0, 5)


@pytest.mark.parametrize("workers", [1, 4])
def test_matches_numpy_kernel(workers):
    bounds = (40, 30)
    viewport = Viewport(complex(-2.2, 1.3), complex(0.8, -1.3))
    expected = Renderer(bounds, kernel="numpy").render(viewport)
    pixels = Renderer(bounds, workers=workers, kernel="tensorflow").render(viewport)
    np.testing.assert_array_equal(pixels, expected)


def test_two_by_two_reference_table():
    pixels = Renderer((2, 2), kernel="tensorflow", device="/CPU:0").render(Viewport(complex(-2, 2), complex(2, -2)))
    assert pixels.tolist() == [254, 253, 0, 0]


def test_default_device():
    device = default_device()
    assert device in ("/CPU:0", "/GPU:0")


def test_prepare_device_keeps_explicit_device():
    assert prepare_device("/CPU:0") == "/CPU:0"


def test_prepare_device_defaults_and_quiets(monkeypatch):
    monkeypatch.setattr(tf_kernel, "default_device", lambda: "/GPU:0")
    tf.get_logger().setLevel("INFO")
    assert prepare_device() == "/GPU:0"
    assert tf.get_logger().level == logging.ERROR


def test_prepare_device_leaves_logger_when_verbose():
    tf.get_logger().setLevel("INFO")
    prepare_device("/CPU:0", quiet=False)
    assert tf.get_logger().level == logging.INFO
