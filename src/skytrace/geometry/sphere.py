"""Sphere primitive with closed-form ray-sphere intersection.

The intersection solves ``|O + tD - C|^2 = r^2`` using the half-b form of
the quadratic formula:

    a      = dot(D, D)
    half_b = dot(O - C, D)
    c      = dot(O - C, O - C) - r^2
    discriminant = half_b^2 - a*c

The near root ``(-half_b - sqrt(discriminant)) / a`` is tried first and the
far root only if the near one falls outside the open interval. Because ``a``
is computed in general, unnormalized ray directions are supported and ``t``
is measured in multiples of the direction's length.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from skytrace.core.interval import Interval, interval_surrounds
from skytrace.core.ray import Ray, ray_at
from skytrace.geometry.hittable import SurfaceHit, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Zero and negative radii are not
            rejected; they produce degenerate or inside-out spheres.
    """

    center: vec3
    radius: ti.f32


@ti.func
def hit_sphere(sphere: Sphere, ray: Ray, ray_t: Interval) -> SurfaceHit:
    """Test for ray-sphere intersection.

    Args:
        sphere: The sphere to test against.
        ray: The ray to trace. Its direction need not be normalized.
        ray_t: Range of acceptable ray parameters. Roots on either endpoint
            are rejected.

    Returns:
        A SurfaceHit for the nearest root strictly inside ray_t, or a record
        with hit == 0 if there is none.
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    # Taichi requires outer-scope declaration of the result fields
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (-half_b - sqrt_d) / a
        valid = interval_surrounds(ray_t, root)
        if not valid:
            root = (-half_b + sqrt_d) / a
            valid = interval_surrounds(ray_t, root)

        if valid:
            did_hit = 1
            hit_t = root
            hit_point = ray_at(ray, root)
            outward_normal = (hit_point - sphere.center) / sphere.radius
            hit_normal, is_front_face = set_face_normal(ray.direction, outward_normal)

    return SurfaceHit(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
