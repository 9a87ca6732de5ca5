#!/usr/bin/env python3
"""
Crochet chart generation from a pixelated image.

Walks the tile grid of a pixelated image in a spiral that starts at the
bottom-right corner and sweeps in alternating directions, one row longer
each time, and turns the visited tiles into a row-by-row pattern with a
count of the colors it uses.

Four stages: Pixelate → Traverse → Build Pattern → Count / Render
"""

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from pixel_buffer import (
    Bounds, DecodeError, PixelBuffer, RasterImage, check_block_size,
    load_image, save_image,
)
from pixelate import average_color_image, color_to_hex, pixelate


# =============================================================================
# Constants
# =============================================================================

DEFAULT_PIXEL_SIZE = 120  # Larger blocks, fewer tiles
DEFAULT_INPUT = 'pika.png'
DEFAULT_MEAN_OUTPUT = 'pixelPika1.png'
DEFAULT_SQUARED_OUTPUT = 'pixelPika2.png'
DEFAULT_PATTERN_NAME = 'My Crochet Pattern'

# Only the increase half of the pattern is charted
INSTRUCTIONS_IN_PROGRESS = 'instructions in progress...'


# =============================================================================
# Pattern Model
# =============================================================================

@dataclass(frozen=True)
class Coordinate:
    x: int
    y: int


@dataclass(frozen=True)
class Tile:
    """One cell of the pixelated grid and the color sampled there."""
    coordinate: Coordinate
    color: tuple  # (r, g, b), 0-255

    @property
    def hex(self) -> str:
        return color_to_hex(self.color)


@dataclass
class Row:
    tiles: list = field(default_factory=list)  # [Tile] in visiting order

    def __len__(self) -> int:
        return len(self.tiles)


@dataclass
class Pattern:
    """Named, ordered collection of rows. Rows are only ever appended."""
    name: str
    rows: list = field(default_factory=list)  # [Row]

    def add_row(self, row: Row) -> list:
        self.rows.append(row)
        return self.rows

    @property
    def tile_count(self) -> int:
        return sum(len(row) for row in self.rows)

    @property
    def row_lengths(self) -> list[int]:
        return [len(row) for row in self.rows]


# =============================================================================
# Stage 2: Spiral Traversal
# =============================================================================

def row_lengths(total_rows: int) -> list[int]:
    """Lengths of the increase rows: 1, 2, ..., total_rows."""
    return list(range(1, total_rows + 1))


def step_cursor(cursor: Coordinate, bounds: Bounds, block_size: int, odd: bool) -> Coordinate:
    """
    Move the cursor one tile along the current row.

    Odd rows head toward min x and max y, even rows toward max x and min y.
    Each axis is checked on its own, so near an edge a step may move in
    only one axis. Moves are clamped so the cursor never leaves the bounds.
    """
    x, y = cursor.x, cursor.y

    if odd:
        if x > bounds.min_x:
            x = max(bounds.min_x, x - block_size)
        if y < bounds.max_y:
            y = min(bounds.max_y, y + block_size)
    else:
        if x < bounds.max_x:
            x = min(bounds.max_x, x + block_size)
        if y > bounds.min_y:
            y = max(bounds.min_y, y - block_size)

    return Coordinate(x, y)


def increase_row(cursor: Coordinate, row_length: int, bounds: Bounds,
                 block_size: int, odd: bool) -> tuple[list[Coordinate], Coordinate]:
    """
    Generate one row of the increase phase.

    Returns:
        Tuple of (coordinates visited in order, cursor after the last step)
    """
    coordinates = []
    for _ in range(row_length):
        coordinates.append(cursor)
        cursor = step_cursor(cursor, bounds, block_size, odd)
    return coordinates, cursor


def traverse(bounds: Bounds, block_size: int) -> list[list[Coordinate]]:
    """
    Spiral from the bottom-right tile toward the middle of the image.

    Row n has n tiles and rows alternate direction, starting with an odd
    row. The cursor carries over from one row to the next, so the rows are
    consecutive stretches of a single path. The row count is the image
    width in tiles.

    Raises:
        InvalidArgumentError: If block_size is not a positive integer
    """
    block_size = check_block_size(block_size)
    total_rows = bounds.width // block_size

    cursor = Coordinate(bounds.max_x, bounds.max_y)
    odd = True
    rows = []

    # Increase until middle
    for length in row_lengths(total_rows):
        coordinates, cursor = increase_row(cursor, length, bounds, block_size, odd)
        rows.append(coordinates)
        odd = not odd

    # TODO: decrease from the middle to the top-left corner once the tile
    # order for the shrinking rows is worked out.
    return rows


def pattern_corners(bounds: Bounds) -> dict:
    """Start (bottom-right), middle (top-right) and end (top-left) of the spiral."""
    return {
        'start': Coordinate(bounds.max_x, bounds.max_y),
        'middle': Coordinate(bounds.max_x, bounds.min_y),
        'end': Coordinate(bounds.min_x, bounds.min_y),
    }


# =============================================================================
# Stage 3: Pattern Building
# =============================================================================

def sample_rgb(image: PixelBuffer, coordinate: Coordinate) -> tuple[int, int, int]:
    """Sample a coordinate and drop any alpha channel."""
    return tuple(image.at(coordinate.x, coordinate.y)[:3])


def build_pattern(traversal: list[list[Coordinate]], image: PixelBuffer,
                  name: str = DEFAULT_PATTERN_NAME) -> Pattern:
    """Sample the image at every traversed coordinate and group the tiles into rows."""
    pattern = Pattern(name=name)

    for coordinates in traversal:
        row = Row([Tile(c, sample_rgb(image, c)) for c in coordinates])
        pattern.add_row(row)

    return pattern


def chart_pattern(image: PixelBuffer, block_size: int, name: str = DEFAULT_PATTERN_NAME) -> Pattern:
    return build_pattern(traverse(image.bounds(), block_size), image, name)


# =============================================================================
# Stage 4: Color Counts and Instructions
# =============================================================================

def color_counts(pattern: Pattern) -> dict[str, int]:
    """Count how many tiles of each #rrggbb color the pattern uses."""
    counts = {}
    for row in pattern.rows:
        for tile in row.tiles:
            counts[tile.hex] = counts.get(tile.hex, 0) + 1
    return counts


@dataclass
class CrochetInstructions:
    """Everything the report needs about one charted image."""
    pattern: Pattern
    counts: dict  # hex -> tile count
    corners: dict  # 'start' / 'middle' / 'end' -> Coordinate
    start_color: tuple
    status: str = INSTRUCTIONS_IN_PROGRESS


def crochet_instructions(image: PixelBuffer, block_size: int,
                         name: str = DEFAULT_PATTERN_NAME) -> CrochetInstructions:
    """Chart the increase rows of a pixelated image and count its colors."""
    bounds = image.bounds()
    corners = pattern_corners(bounds)
    start = corners['start']

    pattern = chart_pattern(image, block_size, name)

    return CrochetInstructions(
        pattern=pattern,
        counts=color_counts(pattern),
        corners=corners,
        start_color=sample_rgb(image, start),
    )


def render(instructions: CrochetInstructions) -> str:
    """Render charted instructions as plain text."""
    pattern = instructions.pattern
    corners = instructions.corners
    lines = []

    # Header
    lines.append(f"PATTERN: {pattern.name}")
    lines.append(" | ".join(
        f"{label.capitalize()} (x, y): ({c.x}, {c.y})" for label, c in corners.items()
    ))
    lines.append(f"Start tile color: {color_to_hex(instructions.start_color)}")
    lines.append(f"Rows: {len(pattern.rows)} | Tiles: {pattern.tile_count}")
    lines.append("")

    lines.append("ROWS:")
    for i, row in enumerate(pattern.rows, 1):
        noun = "tile" if len(row) == 1 else "tiles"
        lines.append(f"Row {i} ({len(row)} {noun}): {', '.join(t.hex for t in row.tiles)}")
    lines.append("")

    lines.append("COLOR COUNTS:")
    for hex_val, count in sorted(instructions.counts.items(), key=lambda kv: (-kv[1], kv[0])):
        lines.append(f"  {hex_val}: {count}")
    lines.append("")

    lines.append(f"STATUS: {instructions.status} (decrease rows not yet charted)")

    return "\n".join(lines)


def visualize_counts(counts: dict[str, int], output_path: str) -> None:
    """
    Create a swatch image with one square per pattern color and its tile count.

    Args:
        counts: Mapping of #rrggbb -> tile count
        output_path: Path to save the output image
    """
    from PIL import ImageDraw

    swatch_size = 80
    padding = 10
    text_height = 25
    items = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    cols = max(1, min(len(items), 6))
    rows = max(1, (len(items) + cols - 1) // cols)

    img_width = cols * (swatch_size + padding) + padding
    img_height = rows * (swatch_size + text_height + padding) + padding

    img = Image.new('RGB', (img_width, img_height), (240, 240, 240))
    draw = ImageDraw.Draw(img)

    for i, (hex_val, count) in enumerate(items):
        row = i // cols
        col = i % cols

        x = padding + col * (swatch_size + padding)
        y = padding + row * (swatch_size + text_height + padding)

        draw.rectangle([x, y, x + swatch_size, y + swatch_size], fill=hex_val)

        # Center text under swatch
        text = f"{hex_val} x{count}"
        bbox = draw.textbbox((0, 0), text)
        text_width = bbox[2] - bbox[0]
        text_x = x + (swatch_size - text_width) // 2
        draw.text((text_x, y + swatch_size + 4), text, fill=(0, 0, 0))

    img.save(output_path)
    print(f"Saved swatches to {output_path}")


# =============================================================================
# Main Pipeline
# =============================================================================

def run_pipeline(image: PixelBuffer, block_size: int,
                 name: str = DEFAULT_PATTERN_NAME) -> tuple[RasterImage, RasterImage, CrochetInstructions]:
    """Pixelate with both averaging policies and chart the arithmetic-mean result.

    Returns:
        Tuple of (mean_image, squared_image, instructions)
    """
    mean_image = pixelate(image, block_size, squared=False)
    squared_image = pixelate(image, block_size, squared=True)
    instructions = crochet_instructions(mean_image, block_size, name)
    return mean_image, squared_image, instructions


# =============================================================================
# CLI
# =============================================================================

def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {number}")
    return number


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Pixelate an image and chart it as a spiral crochet pattern.'
    )
    parser.add_argument(
        '--input', '-i',
        default=DEFAULT_INPUT,
        help=f'Path to the image file (default: {DEFAULT_INPUT})'
    )
    parser.add_argument(
        '--pixel-size', '-p',
        type=positive_int,
        default=DEFAULT_PIXEL_SIZE,
        help='Block size in pixels; more size, more pixelated'
    )
    parser.add_argument(
        '--name', '-n',
        default=DEFAULT_PATTERN_NAME,
        help='Pattern name'
    )
    parser.add_argument(
        '--mean-output',
        default=DEFAULT_MEAN_OUTPUT,
        help='Where to write the arithmetic-mean pixelated image'
    )
    parser.add_argument(
        '--squared-output',
        default=DEFAULT_SQUARED_OUTPUT,
        help='Where to write the quadratic-mean pixelated image'
    )
    parser.add_argument(
        '--average-output',
        default=None,
        help='Also write a flat image of the whole-image average color'
    )
    parser.add_argument(
        '--swatches',
        default=None,
        help='Also write a swatch sheet of the pattern colors'
    )
    parser.add_argument(
        '--report',
        default=None,
        help='Also write the text report to this path'
    )

    args = parser.parse_args(argv)

    try:
        image = load_image(args.input)
    except DecodeError as e:
        print(f"Error: Problem decoding image: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: Problem opening image: {e}", file=sys.stderr)
        sys.exit(1)

    mean_image, squared_image, instructions = run_pipeline(image, args.pixel_size, args.name)
    prose = render(instructions)

    try:
        save_image(args.mean_output, mean_image)
        print(f"Saved pixelated image to {args.mean_output}")
        save_image(args.squared_output, squared_image)
        print(f"Saved pixelated image to {args.squared_output}")

        if args.average_output:
            save_image(args.average_output, average_color_image(image))
            print(f"Saved average color image to {args.average_output}")
        if args.swatches:
            visualize_counts(instructions.counts, args.swatches)
        if args.report:
            Path(args.report).write_text(prose + "\n")
            print(f"Wrote: {args.report}")
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(prose)
    print()
    print(instructions.status)


if __name__ == '__main__':
    main()
