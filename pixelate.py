#!/usr/bin/env python3
"""
Block-average an image into a blocky, low-resolution version.

Two averaging policies are supported per channel: the arithmetic mean and
the quadratic mean (root of the mean of squares), which leans toward the
brighter pixels in a block.
"""

import numpy as np

from pixel_buffer import (
    OutOfBoundsError, PixelBuffer, RasterImage, Region, check_block_size,
)


def color_to_hex(color: tuple[int, int, int]) -> str:
    """Format an 8-bit RGB triple as #rrggbb."""
    r, g, b = color[:3]
    return f"#{r:02x}{g:02x}{b:02x}"


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round non-negative values with halves going away from zero (127.5 -> 128)."""
    return np.floor(values + 0.5)


def region_samples(image: PixelBuffer, region: Region) -> np.ndarray:
    """Collect the RGB samples of an inclusive region as an (n, 3) float array."""
    if not region.within(image.bounds()):
        raise OutOfBoundsError(f"{region} outside image bounds {image.bounds()}")

    if isinstance(image, RasterImage):
        return image.crop(region).astype(np.float64)

    samples = [
        image.at(x, y)[:3]
        for x in range(region.min_x, region.max_x + 1)
        for y in range(region.min_y, region.max_y + 1)
    ]
    return np.array(samples, dtype=np.float64)


def average_color(image: PixelBuffer, region: Region, squared: bool = False) -> tuple[int, int, int]:
    """
    Reduce a region of pixels to one representative color.

    Args:
        image: Buffer to sample from
        region: Inclusive block of pixels, must lie inside the image
        squared: Use the quadratic mean instead of the arithmetic mean

    Returns:
        (r, g, b) with each channel in 0-255

    Raises:
        OutOfBoundsError: If the region extends past the image bounds
    """
    samples = region_samples(image, region)

    if squared:
        sums = (samples ** 2).sum(axis=0)
        means = np.sqrt(sums / region.area)
    else:
        sums = samples.sum(axis=0)
        means = sums / region.area

    r, g, b = np.clip(round_half_up(means), 0, 255).astype(np.uint8)
    return (int(r), int(g), int(b))


def pixelate(image: PixelBuffer, block_size: int, squared: bool = False) -> RasterImage:
    """
    Partition the image into block_size squares and flatten each to its average color.

    Blocks in the last row and column are clipped to the image edge. The result
    has the same dimensions as the input, fully opaque, and the input is left
    untouched.

    Raises:
        InvalidArgumentError: If block_size is not a positive integer
    """
    block_size = check_block_size(block_size)

    bounds = image.bounds()
    width, height = bounds.width, bounds.height
    output = RasterImage.blank(width, height)

    for x in range(0, width, block_size):
        for y in range(0, height, block_size):
            x_end = min(x + block_size, width)
            y_end = min(y + block_size, height)

            source = Region(bounds.min_x + x, bounds.min_y + y,
                            bounds.min_x + x_end - 1, bounds.min_y + y_end - 1)
            color = average_color(image, source, squared)

            # Output raster is anchored at the origin regardless of the source bounds
            output.fill(Region(x, y, x_end - 1, y_end - 1), color)

    return output


def average_color_image(image: PixelBuffer, squared: bool = False) -> RasterImage:
    """Fill a same-sized raster with the average color of the whole image."""
    bounds = image.bounds()
    whole = Region(bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y)
    color = average_color(image, whole, squared)

    output = RasterImage.blank(bounds.width, bounds.height)
    output.fill(Region(0, 0, bounds.width - 1, bounds.height - 1), color)
    return output
