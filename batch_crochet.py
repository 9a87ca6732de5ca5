#!/usr/bin/env python3
"""Batch pixelate images and write crochet pattern reports."""

import argparse
import sys
import time
from pathlib import Path

from crochet import DEFAULT_PIXEL_SIZE, positive_int, render, run_pipeline
from pixel_buffer import load_image, save_image


def find_images(directory: Path) -> list[Path]:
    """Find all image files in directory."""
    extensions = {'.jpg', '.jpeg', '.png', '.webp'}
    images = set()
    for ext in extensions:
        images.update(directory.glob(f'*{ext}'))
        images.update(directory.glob(f'*{ext.upper()}'))
    return sorted(images)


def chart_image(image_path: Path, output_dir: Path, pixel_size: int):
    """Pixelate one image both ways and write its images and pattern report."""
    image = load_image(str(image_path))
    mean_image, squared_image, instructions = run_pipeline(image, pixel_size, name=image_path.stem)

    save_image(str(output_dir / f"{image_path.stem}-mean.png"), mean_image)
    save_image(str(output_dir / f"{image_path.stem}-squared.png"), squared_image)

    report_file = output_dir / f"{image_path.stem}-pattern.txt"
    if report_file.exists():
        print(f"  Warning: Overwriting {report_file.name}", file=sys.stderr)
    report_file.write_text(render(instructions) + "\n")

    return instructions


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Batch pixelate images and write crochet pattern reports.'
    )
    parser.add_argument(
        '--input', '-i',
        required=True,
        help='Directory containing images to chart'
    )
    parser.add_argument(
        '--output', '-o',
        required=True,
        help='Directory for pixelated images and pattern reports'
    )
    parser.add_argument(
        '--pixel-size', '-p',
        type=positive_int,
        default=DEFAULT_PIXEL_SIZE,
        help='Block size in pixels'
    )

    args = parser.parse_args(argv)

    input_dir = Path(args.input)
    output_dir = Path(args.output)

    # Validate input directory
    if not input_dir.is_dir():
        print(f"Error: Input directory not found: {input_dir}", file=sys.stderr)
        sys.exit(2)

    output_dir.mkdir(parents=True, exist_ok=True)

    images = find_images(input_dir)
    if not images:
        print(f"No images found in {input_dir}", file=sys.stderr)
        sys.exit(2)

    total = len(images)
    charted = []
    failed = []

    batch_start = time.perf_counter()

    for i, image_path in enumerate(images, 1):
        try:
            img_start = time.perf_counter()
            instructions = chart_image(image_path, output_dir, args.pixel_size)
            img_elapsed = time.perf_counter() - img_start

            pattern = instructions.pattern
            print(f"[{i}/{total}] {image_path.name}: {len(pattern.rows)} rows, "
                  f"{pattern.tile_count} tiles, {len(instructions.counts)} colors ({img_elapsed:.2f}s)")
            charted.append(instructions)

        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            print(f"[{i}/{total}] {image_path.name}: ERROR {error_msg}", file=sys.stderr)
            failed.append((image_path.name, error_msg))

    batch_elapsed = time.perf_counter() - batch_start

    # Yarn needed across every charted pattern
    yarn = {}
    for instructions in charted:
        for hex_val, count in instructions.counts.items():
            yarn[hex_val] = yarn.get(hex_val, 0) + count

    print()
    print(f"Charted {len(charted)}/{total} images in {batch_elapsed:.2f}s")
    print(f"Tiles: {sum(c.pattern.tile_count for c in charted)} | Distinct colors: {len(yarn)}")
    if failed:
        print(f"Failed ({len(failed)}):")
        for name, error in failed:
            print(f"  - {name}: {error}")
        sys.exit(1)


if __name__ == '__main__':
    main()
