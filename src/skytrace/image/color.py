"""Color encoding from accumulated linear samples to 8-bit channels.

The camera only sums per-sample colors. Turning that sum into displayable
channel values happens here: divide by the sample count, clamp to [0, 1],
scale by 255 and round to the nearest integer (halves round up). NaN
channels encode as 0.
"""

import math

import numpy as np
import numpy.typing as npt

# Maximum channel value of the 8-bit output
MAX_CHANNEL = 255


def _clamp01(x: float) -> float:
    # NaN (e.g. the normal of a zero-radius sphere) encodes as black
    if math.isnan(x):
        return 0.0
    return max(0.0, min(1.0, x))


def encode_color(
    accumulated: tuple[float, float, float],
    sample_count: int,
) -> tuple[int, int, int]:
    """Encode a single accumulated pixel color.

    Args:
        accumulated: Sum of the linear per-sample colors.
        sample_count: Number of samples that were summed (must be >= 1).

    Returns:
        The (r, g, b) channel values, each in [0, 255].
    """
    r, g, b = (
        int(math.floor(MAX_CHANNEL * _clamp01(c / sample_count) + 0.5)) for c in accumulated
    )
    return r, g, b


def encode_pixels(
    accumulated: npt.NDArray[np.floating],
    sample_count: int,
) -> npt.NDArray[np.uint8]:
    """Encode an array of accumulated pixel colors.

    Vectorized version of encode_color for whole rows or images.

    Args:
        accumulated: Array of shape (..., 3) holding per-pixel color sums.
        sample_count: Number of samples summed into every pixel (>= 1).

    Returns:
        Array of the same shape with dtype uint8.
    """
    linear = np.asarray(accumulated, dtype=np.float64) / sample_count
    clamped = np.clip(np.nan_to_num(linear, nan=0.0), 0.0, 1.0)
    return np.floor(MAX_CHANNEL * clamped + 0.5).astype(np.uint8)
