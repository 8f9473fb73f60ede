#!/usr/bin/env python3
"""
Alpha Bleed
===========
Fixes dark fringes around transparent sprites and icons. Transparent pixels
next to opaque content get their RGB extrapolated from the neighboring colors,
so the image can be mipmapped, filtered or compressed without black halos.
The alpha channel is left exactly as it was.

Overwrites the input image unless an output path is given.

Usage:
    python alpha_bleed.py sprite.png
    python alpha_bleed.py sprite.png sprite_bled.png

Requirements:
    numpy, Pillow
"""

import argparse
import io
import sys
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from bleeding import bleed

__version__ = "0.1.0"


class BleedIOError(RuntimeError):
    """Reading or writing an image file failed."""


class DecodeError(BleedIOError):
    pass


class EncodeError(BleedIOError):
    pass


def decode(path):
    """Load an image file as RGBA."""
    path = Path(path)
    try:
        with Image.open(path) as img:
            return img.convert("RGBA")
    except FileNotFoundError as e:
        raise DecodeError(f"{path} not found") from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise DecodeError(f"Cannot read image {path}: {e}") from e


def encode(img, path):
    """Save an image, picking the format from the file extension.

    The image is encoded in memory first so a failed save never truncates
    an existing file at ``path``.
    """
    path = Path(path)
    image_format = Image.registered_extensions().get(path.suffix.lower())
    if image_format is None:
        raise EncodeError(f"Cannot write image {path}: unknown file extension {path.suffix!r}")

    params = {}
    # WebP drops the RGB of invisible pixels unless told otherwise
    if image_format == "WEBP":
        params["exact"] = True

    buffer = io.BytesIO()
    try:
        img.save(buffer, format=image_format, **params)
        path.write_bytes(buffer.getvalue())
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"Cannot write image {path}: {e}") from e


def bleed_image(img):
    """Return an alpha-bled RGBA copy of a PIL image and the run stats."""
    data = np.array(img.convert("RGBA"))
    stats = bleed(data)
    return Image.fromarray(data), stats


def main():
    parser = argparse.ArgumentParser(
        description="Bleed colors into transparent pixels to prevent dark fringes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sprite.png                     # overwrite sprite.png in place
  %(prog)s sprite.png sprite_bled.png     # write to a new file
        """,
    )
    parser.add_argument("input", help="Input image with transparency (PNG, WebP, TGA, ...)")
    parser.add_argument("output", nargs="?", default=None, help="Output image path (default: overwrite input)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args()

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else input_path

    print(f"Processing: {input_path}")
    try:
        img = decode(input_path)
    except DecodeError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"  Size: {img.width}x{img.height}")

    result, stats = bleed_image(img)
    if stats.bled:
        print(f"  Bled {stats.bled} pixels in {stats.passes} passes")
    else:
        print("  Nothing to bleed (no transparent pixels next to opaque content)")

    try:
        encode(result, output_path)
    except EncodeError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Saved: {output_path}")


if __name__ == "__main__":
    main()
