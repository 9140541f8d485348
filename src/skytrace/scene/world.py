"""Scene collection and scene-level nearest-hit queries.

A Scene is an ordered, Python-owned collection of primitives. Scenes may be
nested: adding a Scene to another Scene adds it as a single aggregate object.
Before rendering, the collection is flattened in insertion order and uploaded
into GPU-side storage (Taichi fields, Structure-of-Arrays layout), where
``intersect_scene`` scans it linearly.

The scan narrows the upper bound of the search window to the closest hit
found so far, so each subsequent primitive is only tested against
``(ray_t.min, closest_t)``. Since the window is open, a later primitive with
exactly the same ``t`` never replaces an earlier one: the first primitive in
insertion order wins ties.

Only one scene is resident on the device at a time; ``Scene.upload`` replaces
whatever was uploaded before, while ``Scene.hit`` puts the previous contents
back once its query is done.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.scene.world import Scene
    >>> scene = Scene()
    >>> scene.add_sphere((0.0, 0.0, -1.0), 0.5)
    SphereInfo(center=(0.0, 0.0, -1.0), radius=0.5)
    >>> scene.hit((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)).t
    0.5
"""

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Union

import taichi as ti
import taichi.math as tm

from skytrace.core.interval import Interval, make_interval
from skytrace.core.ray import Ray
from skytrace.geometry.hittable import HitInfo, SurfaceHit
from skytrace.geometry.sphere import Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class SphereInfo:
    """A sphere as described on the Python side.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere.
    """

    center: tuple[float, float, float]
    radius: float


# Everything a Scene can hold: a primitive or another scene
SceneObject = Union[SphereInfo, "Scene"]


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Extends SurfaceHit with the index of the primitive that was hit.

    Attributes:
        hit: 1 if any primitive was hit, 0 on a miss.
        t: The ray parameter at the closest intersection.
        point: The intersection point.
        normal: Unit normal facing against the ray.
        front_face: 1 if the ray hit the outside of the surface.
        object_index: Index of the hit primitive in flattened insertion
            order, or -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    object_index: ti.i32


# Maximum number of primitives supported on the device
MAX_SPHERES = 1024

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Scratch fields for Python-side queries
_query_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_object_index = ti.field(dtype=ti.i32, shape=())

# Primitives currently held in device storage, in upload order
_resident: list[SphereInfo] = []


def clear_scene_storage() -> None:
    """Remove all primitives from device storage.

    Only the count is reset; stale field data is overwritten by the next
    upload.
    """
    num_spheres[None] = 0
    _resident.clear()


def _write_spheres(spheres: list[SphereInfo]) -> None:
    for idx, sphere in enumerate(spheres):
        sphere_centers[idx] = list(sphere.center)
        sphere_radii[idx] = sphere.radius
    num_spheres[None] = len(spheres)
    _resident[:] = spheres


def get_sphere_count() -> int:
    """Get the number of spheres currently uploaded to the device."""
    return int(num_spheres[None])


class Scene:
    """Ordered collection of primitives and nested scenes.

    Insertion order does not change which hit is nearest; it only decides
    ties between hits at exactly the same ray parameter.
    """

    def __init__(self, objects: Iterable[SceneObject] = ()) -> None:
        self._objects: list[SceneObject] = []
        for obj in objects:
            self.add(obj)

    @property
    def objects(self) -> tuple[SceneObject, ...]:
        """The directly owned objects, in insertion order."""
        return tuple(self._objects)

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[SceneObject]:
        return iter(self._objects)

    def add(self, obj: SceneObject) -> None:
        """Append a primitive or a nested scene.

        Args:
            obj: A SphereInfo or another Scene.

        Raises:
            TypeError: If obj is neither a SphereInfo nor a Scene.
            ValueError: If adding obj would make the scene contain itself.
        """
        if isinstance(obj, Scene):
            if obj is self or obj._contains(self):
                raise ValueError("A scene cannot contain itself")
        elif not isinstance(obj, SphereInfo):
            raise TypeError(f"Cannot add {type(obj).__name__} to a scene")
        self._objects.append(obj)

    def add_sphere(self, center: tuple[float, float, float], radius: float) -> SphereInfo:
        """Create a sphere and append it to the scene.

        Args:
            center: The center of the sphere.
            radius: The radius of the sphere.

        Returns:
            The SphereInfo that was added.
        """
        sphere = SphereInfo(
            center=(float(center[0]), float(center[1]), float(center[2])),
            radius=float(radius),
        )
        self.add(sphere)
        return sphere

    def clear(self) -> None:
        """Remove every object from the scene."""
        self._objects.clear()

    def _contains(self, other: "Scene") -> bool:
        for obj in self._objects:
            if isinstance(obj, Scene) and (obj is other or obj._contains(other)):
                return True
        return False

    def flatten(self) -> list[SphereInfo]:
        """List every primitive, descending into nested scenes in order."""
        spheres: list[SphereInfo] = []
        for obj in self._objects:
            if isinstance(obj, Scene):
                spheres.extend(obj.flatten())
            else:
                spheres.append(obj)
        return spheres

    def upload(self) -> int:
        """Copy the flattened scene into device storage.

        Returns:
            The number of primitives uploaded.

        Raises:
            RuntimeError: If the scene holds more than MAX_SPHERES primitives.
        """
        spheres = self.flatten()
        if len(spheres) > MAX_SPHERES:
            raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

        clear_scene_storage()
        _write_spheres(spheres)
        return len(spheres)

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = 0.0,
        t_max: float = math.inf,
    ) -> HitInfo | None:
        """Find the nearest hit from Python.

        Traces a single ray against this scene and copies the result back.
        Device storage holds one scene at a time: if another scene is
        resident, this one is swapped in for the query and the previous
        contents are restored afterwards.

        Args:
            origin: The ray origin.
            direction: The ray direction (need not be normalized).
            t_min: Lower bound of the open parameter interval.
            t_max: Upper bound of the open parameter interval.

        Returns:
            The nearest hit, or None if the ray misses everything.

        Raises:
            RuntimeError: If the scene holds more than MAX_SPHERES primitives.
        """
        previous = list(_resident)
        swapped = self.flatten() != previous
        if swapped:
            self.upload()
        try:
            _query_origin[None] = list(origin)
            _query_direction[None] = list(direction)
            _query_kernel(t_min, t_max)
        finally:
            if swapped:
                clear_scene_storage()
                _write_spheres(previous)

        if _query_hit[None] == 0:
            return None
        point = _query_point[None]
        normal = _query_normal[None]
        return HitInfo(
            t=float(_query_t[None]),
            point=(float(point[0]), float(point[1]), float(point[2])),
            normal=(float(normal[0]), float(normal[1]), float(normal[2])),
            front_face=bool(_query_front_face[None]),
            object_index=int(_query_object_index[None]),
        )

    def __repr__(self) -> str:
        return f"Scene(objects={len(self._objects)}, primitives={len(self.flatten())})"


@ti.func
def _to_scene_hit_record(rec: SurfaceHit, object_index: ti.i32) -> SceneHitRecord:
    """Attach the primitive index to a SurfaceHit."""
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        object_index=object_index,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        object_index=-1,
    )


@ti.func
def intersect_scene(ray: Ray, ray_t: Interval) -> SceneHitRecord:
    """Find the closest hit among all uploaded primitives.

    Must be called from inside a loop body (not at the top level of a
    kernel) so that the scan over primitives stays serial.

    Args:
        ray: The ray to trace.
        ray_t: Open range of acceptable ray parameters.

    Returns:
        The closest SceneHitRecord, or a miss record if nothing was hit.
    """
    closest_t = ray_t.max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(sphere, ray, make_interval(ray_t.min, closest_t))
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, i)

    return result


@ti.kernel
def _query_kernel(t_min: ti.f32, t_max: ti.f32):
    # Single-iteration outer loop keeps the primitive scan serial
    for _ in range(1):
        ray = Ray(origin=_query_origin[None], direction=_query_direction[None])
        rec = intersect_scene(ray, make_interval(t_min, t_max))
        _query_hit[None] = rec.hit
        _query_t[None] = rec.t
        _query_point[None] = rec.point
        _query_normal[None] = rec.normal
        _query_front_face[None] = rec.front_face
        _query_object_index[None] = rec.object_index
