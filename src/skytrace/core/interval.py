"""Closed numeric interval used to bound valid ray parameters.

Intersection routines accept an Interval describing the range of ray
parameters ``t`` that count as a hit. Hits are accepted with the open
``interval_surrounds`` test so that a hit exactly at ``t_min`` (for example
the ray origin sitting on a surface) never counts, while
``interval_contains`` provides the closed test for callers that want the
endpoints included.

The default (empty) interval is ``[+inf, -inf]``: it contains nothing and
acts as an "uninitialized" sentinel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.core.interval import make_interval, interval_surrounds
    >>> @ti.kernel
    ... def check() -> ti.i32:
    ...     return interval_surrounds(make_interval(1.0, 2.0), 1.0)
    >>> check()
    0
"""

import taichi as ti
import taichi.math as tm

# Positive infinity, usable as a compile-time constant inside kernels
INFINITY = tm.inf


@ti.dataclass
class Interval:
    """A closed range of real numbers.

    Attributes:
        min: Lower bound of the range.
        max: Upper bound of the range. ``min <= max`` is assumed by callers
            but not enforced.
    """

    min: ti.f32
    max: ti.f32


@ti.func
def make_interval(lo: ti.f32, hi: ti.f32) -> Interval:
    """Create an interval from its bounds."""
    return Interval(min=lo, max=hi)


@ti.func
def empty_interval() -> Interval:
    """Create the empty interval ``[+inf, -inf]`` that contains no value."""
    return Interval(min=INFINITY, max=-INFINITY)


@ti.func
def universe_interval() -> Interval:
    """Create the interval ``[-inf, +inf]`` that contains every value."""
    return Interval(min=-INFINITY, max=INFINITY)


@ti.func
def interval_size(interval: Interval) -> ti.f32:
    """Length of the interval (negative for the empty interval)."""
    return interval.max - interval.min


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Closed containment test.

    Args:
        interval: The interval to test against.
        x: The value to test.

    Returns:
        1 if ``min <= x <= max``, 0 otherwise.
    """
    return interval.min <= x and x <= interval.max


@ti.func
def interval_surrounds(interval: Interval, x: ti.f32) -> ti.i32:
    """Open containment test that excludes both endpoints.

    Args:
        interval: The interval to test against.
        x: The value to test.

    Returns:
        1 if ``min < x < max``, 0 otherwise.
    """
    return interval.min < x and x < interval.max
