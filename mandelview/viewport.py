"""The region of the complex plane currently mapped onto the image."""

from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_UPPER_LEFT = complex(-1.20, 0.35)
DEFAULT_LOWER_RIGHT = complex(-1.0, 0.20)


@dataclass
class Viewport:
    """Rectangle spanned by ``upper_left`` and ``lower_right``.

    Navigation mutates the corners in place. The corners are never validated:
    keeping the rectangle non-degenerate is up to the caller.

    Axis convention: ``translate_x`` moves the real parts but scales by the
    imaginary extent, ``translate_y`` moves the imaginary parts but scales by
    the real extent, and ``zoom`` calls the imaginary midpoint ``center_x``.
    Pan direction on screen depends on this pairing, so it is kept as is.
    """

    upper_left: complex
    lower_right: complex

    @classmethod
    def default(cls) -> "Viewport":
        return cls(DEFAULT_UPPER_LEFT, DEFAULT_LOWER_RIGHT)

    @property
    def width(self) -> float:
        """Real extent as used by the pixel mapping."""
        return self.lower_right.real - self.upper_left.real

    @property
    def height(self) -> float:
        """Imaginary extent as used by the pixel mapping."""
        return self.upper_left.imag - self.lower_right.imag

    def copy(self) -> "Viewport":
        return replace(self)

    def zoom(self, factor: float) -> None:
        """Rescale around the center; ``factor < 1`` zooms in."""

        ul, lr = self.upper_left, self.lower_right

        center_x = (ul.imag + lr.imag) / 2.0
        center_y = (ul.real + lr.real) / 2.0

        width = lr.imag - ul.imag
        height = lr.real - ul.real

        new_width = width * factor
        new_height = height * factor

        self.upper_left = complex(center_y - new_height / 2.0, center_x - new_width / 2.0)
        self.lower_right = complex(center_y + new_height / 2.0, center_x + new_width / 2.0)

    def translate_x(self, fraction: float) -> None:
        width = self.lower_right.imag - self.upper_left.imag
        shift = width * fraction
        self.upper_left = complex(self.upper_left.real + shift, self.upper_left.imag)
        self.lower_right = complex(self.lower_right.real + shift, self.lower_right.imag)

    def translate_y(self, fraction: float) -> None:
        height = self.lower_right.real - self.upper_left.real
        shift = height * fraction
        self.upper_left = complex(self.upper_left.real, self.upper_left.imag + shift)
        self.lower_right = complex(self.lower_right.real, self.lower_right.imag + shift)
