"""ASCII PPM (P3) output.

The format is a ``P3`` marker line, a ``"{width} {height}"`` line, the
maximum channel value ``255``, then one ``"{r} {g} {b}"`` line per pixel in
row-major order, top row first.
"""

from typing import TextIO

import numpy as np
import numpy.typing as npt

from skytrace.image.color import MAX_CHANNEL, encode_color

# Magic number of the plain-text RGB variant of PPM
PPM_MAGIC = "P3"


def write_header(sink: TextIO, width: int, height: int) -> None:
    """Write the three PPM header lines."""
    sink.write(f"{PPM_MAGIC}\n{width} {height}\n{MAX_CHANNEL}\n")


def write_color(sink: TextIO, rgb: tuple[int, int, int]) -> None:
    """Write one encoded pixel as a ``"r g b"`` line."""
    sink.write(f"{rgb[0]} {rgb[1]} {rgb[2]}\n")


def write_pixels(sink: TextIO, pixels: npt.NDArray[np.uint8]) -> None:
    """Write encoded pixels in row-major order.

    Args:
        sink: Writable text stream.
        pixels: Array of shape (..., 3); leading axes are flattened in
            C order, so a (height, width, 3) image is written row by row.
    """
    lines = [f"{r} {g} {b}\n" for r, g, b in np.asarray(pixels).reshape(-1, 3).tolist()]
    sink.write("".join(lines))


def write_gradient(sink: TextIO, width: int, height: int) -> None:
    """Write a red/green gradient test pattern.

    Red ramps from 0 to 255 left to right and green from 0 to 255 top to
    bottom, with blue fixed at 0. Useful for checking that a viewer reads
    the output the right way up.

    Args:
        sink: Writable text stream.
        width: Image width in pixels.
        height: Image height in pixels.
    """
    write_header(sink, width, height)
    max_i = max(width - 1, 1)
    max_j = max(height - 1, 1)
    for j in range(height):
        for i in range(width):
            write_color(sink, encode_color((i / max_i, j / max_j, 0.0), 1))
