import pytest

from mandelview import DEFAULT_LOWER_RIGHT, DEFAULT_UPPER_LEFT, Viewport


def corners(viewport):
    return viewport.upper_left, viewport.lower_right


def test_default_viewport():
    viewport = Viewport.default()
    assert viewport.upper_left == complex(-1.20, 0.35)
    assert viewport.lower_right == complex(-1.0, 0.20)
    assert corners(viewport) == (DEFAULT_UPPER_LEFT, DEFAULT_LOWER_RIGHT)


def test_extents_follow_pixel_mapping():
    viewport = Viewport(complex(-2, 1), complex(1, -1))
    assert viewport.width == 3
    assert viewport.height == 2


def test_constructor_does_not_validate():
    viewport = Viewport(complex(1, 1), complex(1, 1))
    assert viewport.width == 0
    assert viewport.height == 0


def test_copy_is_independent():
    viewport = Viewport.default()
    snapshot = viewport.copy()
    viewport.zoom(0.5)
    assert corners(snapshot) == (DEFAULT_UPPER_LEFT, DEFAULT_LOWER_RIGHT)
    assert snapshot != viewport


def test_zoom_by_one_keeps_corners():
    viewport = Viewport.default()
    viewport.zoom(1.0)
    assert viewport.upper_left == pytest.approx(DEFAULT_UPPER_LEFT)
    assert viewport.lower_right == pytest.approx(DEFAULT_LOWER_RIGHT)


def test_zoom_in_shrinks_around_center():
    viewport = Viewport(complex(-2, 2), complex(2, -2))
    viewport.zoom(0.5)
    assert viewport.upper_left == pytest.approx(complex(-1, 1))
    assert viewport.lower_right == pytest.approx(complex(1, -1))


def test_zoom_out_grows_around_center():
    viewport = Viewport(complex(0, 1), complex(2, -1))
    viewport.zoom(2.0)
    assert viewport.upper_left == pytest.approx(complex(-1, 2))
    assert viewport.lower_right == pytest.approx(complex(3, -2))


def test_zoom_uses_original_corners():
    # Both corners are computed from the pre-zoom center.
    viewport = Viewport(complex(-1.5, 0.5), complex(0.5, -0.25))
    viewport.zoom(0.1)
    assert (viewport.upper_left + viewport.lower_right) / 2 == pytest.approx(complex(-0.5, 0.125))


def test_translate_x_moves_real_parts_by_imaginary_extent():
    viewport = Viewport(complex(-2, 1), complex(1, -1))
    viewport.translate_x(0.25)
    # lower_right.imag - upper_left.imag == -2
    assert viewport.upper_left == pytest.approx(complex(-2.5, 1))
    assert viewport.lower_right == pytest.approx(complex(0.5, -1))
    assert viewport.width == pytest.approx(3)


def test_translate_y_moves_imaginary_parts_by_real_extent():
    viewport = Viewport(complex(-2, 1), complex(1, -1))
    viewport.translate_y(0.5)
    # lower_right.real - upper_left.real == 3
    assert viewport.upper_left == pytest.approx(complex(-2, 2.5))
    assert viewport.lower_right == pytest.approx(complex(1, 0.5))
    assert viewport.height == pytest.approx(2)


@pytest.mark.parametrize("method", ["translate_x", "translate_y"])
@pytest.mark.parametrize("fraction", [0.01, -0.3, 2.5])
def test_translate_round_trip(method, fraction):
    viewport = Viewport.default()
    getattr(viewport, method)(fraction)
    getattr(viewport, method)(-fraction)
    assert viewport.upper_left == pytest.approx(DEFAULT_UPPER_LEFT)
    assert viewport.lower_right == pytest.approx(DEFAULT_LOWER_RIGHT)
