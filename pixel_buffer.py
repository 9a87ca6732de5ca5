#!/usr/bin/env python3
"""
Pixel buffers and the image I/O around them.

The pixelation and charting code only needs two things from an image:
its bounds and a way to sample one pixel. Anything with `bounds()` and
`at(x, y)` works, so tests can drive the pipeline with synthetic buffers.
"""

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import numpy as np
from PIL import Image, UnidentifiedImageError


# =============================================================================
# Constants
# =============================================================================

# Image size limits (security: prevent decompression bombs)
MAX_IMAGE_PIXELS = 50_000_000  # 50 megapixels
MAX_IMAGE_DIMENSION = 10_000  # 10k pixels per side

OPAQUE = 255


# =============================================================================
# Errors
# =============================================================================

class DecodeError(ValueError):
    """Input bytes are not a usable image."""


class InvalidArgumentError(ValueError):
    """A caller passed a value the pipeline cannot work with."""


class OutOfBoundsError(IndexError):
    """A region or coordinate fell outside the image. Always a bug."""


# =============================================================================
# Geometry
# =============================================================================

@dataclass(frozen=True)
class Bounds:
    """Image bounds. Both corners are inclusive."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    def contains(self, x: int, y: int) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y


@dataclass(frozen=True)
class Region:
    """An axis-aligned block of pixels to reduce to one color (inclusive corners)."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise InvalidArgumentError(
                f"Region corners out of order: ({self.min_x}, {self.min_y}) - "
                f"({self.max_x}, {self.max_y})"
            )

    @property
    def dx(self) -> int:
        return self.max_x - self.min_x

    @property
    def dy(self) -> int:
        return self.max_y - self.min_y

    @property
    def area(self) -> int:
        return (self.dx + 1) * (self.dy + 1)

    def within(self, bounds: Bounds) -> bool:
        return (bounds.contains(self.min_x, self.min_y)
                and bounds.contains(self.max_x, self.max_y))


def check_block_size(block_size) -> int:
    """Return block_size as an int, rejecting anything but a positive integer."""
    if isinstance(block_size, bool) or not isinstance(block_size, (int, np.integer)):
        raise InvalidArgumentError(f"Block size must be an integer, got {block_size!r}")
    if block_size <= 0:
        raise InvalidArgumentError(f"Block size must be positive, got {block_size}")
    return int(block_size)


# =============================================================================
# Buffers
# =============================================================================

class PixelBuffer(Protocol):
    """Anything that can report its bounds and sample an RGB pixel."""

    def bounds(self) -> Bounds: ...

    def at(self, x: int, y: int) -> tuple[int, int, int]: ...


class RasterImage:
    """RGBA raster backed by an (height, width, 4) uint8 array, origin at (0, 0)."""

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidArgumentError(f"Expected (h, w, 4) pixel array, got {pixels.shape}")
        self.pixels = pixels.astype(np.uint8, copy=False)

    @classmethod
    def blank(cls, width: int, height: int) -> 'RasterImage':
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def from_pil(cls, img: Image.Image) -> 'RasterImage':
        return cls(np.array(img.convert('RGBA')))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def bounds(self) -> Bounds:
        return Bounds(0, 0, self.width - 1, self.height - 1)

    def at(self, x: int, y: int) -> tuple[int, int, int]:
        if not self.bounds().contains(x, y):
            raise OutOfBoundsError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        r, g, b = self.pixels[y, x, :3]
        return (int(r), int(g), int(b))

    def crop(self, region: Region) -> np.ndarray:
        """Return the region's RGB samples as an (n, 3) array."""
        if not region.within(self.bounds()):
            raise OutOfBoundsError(f"{region} outside {self.width}x{self.height} image")
        block = self.pixels[region.min_y:region.max_y + 1, region.min_x:region.max_x + 1, :3]
        return block.reshape(-1, 3)

    def fill(self, region: Region, color: tuple[int, int, int], alpha: int = OPAQUE) -> None:
        """Set every pixel of the region to one color."""
        if not region.within(self.bounds()):
            raise OutOfBoundsError(f"{region} outside {self.width}x{self.height} image")
        self.pixels[region.min_y:region.max_y + 1, region.min_x:region.max_x + 1] = (*color, alpha)


# =============================================================================
# Decode / Encode
# =============================================================================

def decode_image(data: bytes) -> RasterImage:
    """
    Decode encoded image bytes into a RasterImage.

    Raises:
        DecodeError: If the bytes are not a recognized image or exceed size limits
    """
    try:
        img = Image.open(io.BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    # Validate image dimensions before decoding pixels (security: prevent decompression bombs)
    width, height = img.size
    if width > MAX_IMAGE_DIMENSION or height > MAX_IMAGE_DIMENSION:
        raise DecodeError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_DIMENSION}x{MAX_IMAGE_DIMENSION}"
        )
    if width * height > MAX_IMAGE_PIXELS:
        raise DecodeError(
            f"Image has {width * height:,} pixels, exceeding maximum {MAX_IMAGE_PIXELS:,}"
        )

    try:
        img.load()
    except (OSError, SyntaxError) as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    return RasterImage.from_pil(img)


def encode_image(image: RasterImage) -> bytes:
    """Encode a raster as PNG (lossless, keeps exact RGBA values)."""
    buffer = io.BytesIO()
    image.to_pil().save(buffer, format='PNG')
    return buffer.getvalue()


def load_image(image_path: str) -> RasterImage:
    """
    Read and decode an image file.

    Raises:
        FileNotFoundError: If image file doesn't exist
        DecodeError: If file is not a valid image or exceeds size limits
    """
    path = Path(image_path)
    if not path.is_file():
        raise FileNotFoundError(f"Image not found: {image_path}")
    return decode_image(path.read_bytes())


def save_image(image_path: str, image: RasterImage) -> None:
    Path(image_path).write_bytes(encode_image(image))
