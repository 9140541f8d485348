"""Core building blocks for ray casting.

Components:
    interval: Closed parameter range with open/closed containment tests
    ray: Ray data structure and evaluation

All functions here are Taichi functions (@ti.func) meant to be called from
inside kernels.
"""

from .interval import (
    INFINITY,
    Interval,
    empty_interval,
    interval_contains,
    interval_size,
    interval_surrounds,
    make_interval,
    universe_interval,
)
from .ray import Ray, make_ray, ray_at, vec3

__all__ = [
    "INFINITY",
    "Interval",
    "make_interval",
    "empty_interval",
    "universe_interval",
    "interval_size",
    "interval_contains",
    "interval_surrounds",
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
]
