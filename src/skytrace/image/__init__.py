"""Image module for color encoding and output.

Components:
    color: Accumulated-sample to 8-bit channel encoding
    ppm: Plain-text PPM writer and gradient test pattern
    export: PNG export (Pillow) and PPM parsing
"""

from skytrace.image.color import MAX_CHANNEL, encode_color, encode_pixels
from skytrace.image.export import read_ppm, save_png
from skytrace.image.ppm import (
    PPM_MAGIC,
    write_color,
    write_gradient,
    write_header,
    write_pixels,
)

__all__ = [
    "MAX_CHANNEL",
    "encode_color",
    "encode_pixels",
    "PPM_MAGIC",
    "write_header",
    "write_color",
    "write_pixels",
    "write_gradient",
    "save_png",
    "read_ppm",
]
