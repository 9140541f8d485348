"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit RGB via Pillow)
    - PPM (P3) parsing, to load rendered output back into arrays

Example:
    >>> from skytrace.image.export import save_png
    >>> pixels = camera.render(scene, sink)
    >>> save_png(pixels, "output.png")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from skytrace.image.ppm import PPM_MAGIC


def save_png(pixels: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save encoded pixels as a PNG file.

    Args:
        pixels: Array of shape (height, width, 3) with dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If pixels does not have shape (height, width, 3).
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) array, got shape {pixels.shape}")

    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    pil_image.save(filepath)


def read_ppm(text: str) -> npt.NDArray[np.uint8]:
    """Parse a plain-text (P3) PPM image.

    Args:
        text: The full contents of the PPM file.

    Returns:
        Array of shape (height, width, 3) with dtype uint8.

    Raises:
        ValueError: If the header is malformed or the pixel count does not
            match the declared dimensions.
    """
    tokens = text.split()
    if len(tokens) < 4 or tokens[0] != PPM_MAGIC:
        raise ValueError("Not a P3 PPM image")

    try:
        width, height, max_value = int(tokens[1]), int(tokens[2]), int(tokens[3])
        values = np.array([int(v) for v in tokens[4:]], dtype=np.int64)
    except ValueError as e:
        raise ValueError(f"Malformed PPM data: {e}") from e

    if values.size != width * height * 3:
        raise ValueError(
            f"Expected {width * height * 3} channel values for a {width}x{height} image, "
            f"got {values.size}"
        )
    if values.size and (values.min() < 0 or values.max() > max_value):
        raise ValueError(f"Channel values must lie in [0, {max_value}]")

    return values.reshape(height, width, 3).astype(np.uint8)
