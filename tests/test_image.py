import numpy as np
import PIL.Image
import pytest

from mandelview import Renderer, Viewport
from mandelview.image import as_rows, to_grayscale_image, to_rgba, write_single_image


@pytest.fixture
def pixels():
    return np.arange(12, dtype=np.uint8) * 20


def test_as_rows_is_row_major(pixels):
    rows = as_rows(pixels, (4, 3))
    assert rows.shape == (3, 4)
    assert rows[1, 2] == pixels[1 * 4 + 2]


def test_grayscale_image(pixels):
    image = to_grayscale_image(pixels, (4, 3))
    assert image.mode == "L"
    assert image.size == (4, 3)
    assert image.getpixel((2, 1)) == pixels[6]


def test_rgba_replicates_intensity(pixels):
    rgba = to_rgba(pixels, (4, 3))
    assert rgba.shape == (3, 4, 4)
    assert rgba.dtype == np.uint8
    for channel in range(3):
        np.testing.assert_array_equal(rgba[..., channel], as_rows(pixels, (4, 3)))
    assert (rgba[..., 3] == 255).all()


@pytest.mark.parametrize("image_format,suffix", [("png", "png"), ("tif", "tif")])
def test_write_single_image(tmp_path, image_format, suffix):
    bounds = (24, 16)
    rendered = Renderer(bounds).render(Viewport.default())
    output = tmp_path / "nested" / f"frame.{suffix}"
    write_single_image(to_grayscale_image(rendered, bounds), output, image_format)

    with PIL.Image.open(output) as image:
        assert image.mode == "L"
        assert image.size == bounds
        np.testing.assert_array_equal(np.asarray(image), as_rows(rendered, bounds))


def test_write_to_directory_fails(tmp_path, pixels):
    with pytest.raises(OSError):
        write_single_image(to_grayscale_image(pixels, (4, 3)), tmp_path, "png")
