"""Hit records shared by every ray-intersectable primitive.

Every primitive exposes a Taichi function of the form::

    hit_<primitive>(primitive, ray, ray_t) -> SurfaceHit

that returns the nearest intersection whose parameter lies strictly inside
``ray_t``, or a record with ``hit == 0``. The set of primitives is closed and
known at compile time, so the scene dispatches on primitive type directly
instead of through virtual calls.

The stored normal always faces against the incoming ray. ``front_face``
records whether the geometric outward normal already did so, i.e. whether
the ray arrived from outside the surface.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SurfaceHit:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 on a miss. The other
            fields are only valid when hit == 1.
        t: The ray parameter at the intersection.
        point: The intersection point in world space.
        normal: Unit surface normal, oriented against the ray direction.
        front_face: 1 if the ray hit the outside of the surface, 0 if it hit
            from inside.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@dataclass(frozen=True)
class HitInfo:
    """Python-side copy of a SurfaceHit, returned by scene queries.

    Attributes:
        t: The ray parameter at the intersection.
        point: The intersection point.
        normal: Unit normal facing against the ray.
        front_face: Whether the ray hit the outside of the surface.
        object_index: Position of the hit primitive in the scene's
            flattened insertion order.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    object_index: int


@ti.func
def make_miss() -> SurfaceHit:
    """Create a SurfaceHit indicating no intersection."""
    return SurfaceHit(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        A tuple (normal, front_face) where normal opposes ray_direction and
        front_face is 1 if outward_normal already did.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return normal, front_face
