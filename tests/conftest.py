"""Shared test fixtures."""

import numpy as np
import pytest

from pixel_buffer import Bounds, OutOfBoundsError, RasterImage, encode_image

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)


class FunctionBuffer:
    """PixelBuffer test double whose pixels come from a function of (x, y)."""

    def __init__(self, bounds: Bounds, color_at):
        self._bounds = bounds
        self._color_at = color_at
        self.reads = 0

    def bounds(self) -> Bounds:
        return self._bounds

    def at(self, x: int, y: int) -> tuple[int, int, int]:
        if not self._bounds.contains(x, y):
            raise OutOfBoundsError(f"({x}, {y}) outside {self._bounds}")
        self.reads += 1
        return self._color_at(x, y)


def solid(width: int, height: int, color, alpha: int = 255) -> RasterImage:
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[:, :] = (*color, alpha)
    return RasterImage(pixels)


@pytest.fixture
def make_solid():
    return solid


@pytest.fixture
def function_buffer():
    return FunctionBuffer


@pytest.fixture
def red_image():
    return solid(4, 4, RED)


@pytest.fixture
def quadrant_image():
    """4x4 image with one color per 2x2 quadrant."""
    pixels = np.empty((4, 4, 4), dtype=np.uint8)
    pixels[:2, :2] = (*RED, 255)
    pixels[:2, 2:] = (*GREEN, 255)
    pixels[2:, :2] = (*BLUE, 255)
    pixels[2:, 2:] = (*WHITE, 255)
    return RasterImage(pixels)


@pytest.fixture
def noise_image():
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(13, 17, 4), dtype=np.uint8)
    return RasterImage(pixels)


@pytest.fixture
def png_file(tmp_path, quadrant_image):
    path = tmp_path / 'quadrants.png'
    path.write_bytes(encode_image(quadrant_image))
    return path
