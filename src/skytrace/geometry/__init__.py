"""Geometry module for hit records and shape primitives.

Components:
    hittable: SurfaceHit record, normal orientation and the Python-side HitInfo
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) following the pattern:
    rec = hit_<shape>(shape, ray, ray_t)
"""

from .hittable import HitInfo, SurfaceHit, make_miss, set_face_normal
from .sphere import Sphere, hit_sphere

__all__ = [
    "SurfaceHit",
    "HitInfo",
    "make_miss",
    "set_face_normal",
    "Sphere",
    "hit_sphere",
]
