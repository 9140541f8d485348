"""Scene module for scene collections and ray-scene queries.

Components:
    world: Scene collection, device storage and nearest-hit intersection
    presets: Ready-made scenes used by the driver and tests

Scene data is organized for GPU access:
    - Python-side Scene objects own the primitives and may be nested
    - Uploading flattens them, in insertion order, into Taichi fields
    - intersect_scene scans the uploaded primitives linearly
"""

from .presets import (
    SCENES,
    create_empty_scene,
    create_single_sphere_scene,
    create_sphere_scene,
)
from .world import (
    MAX_SPHERES,
    Scene,
    SceneHitRecord,
    SceneObject,
    SphereInfo,
    clear_scene_storage,
    get_sphere_count,
    intersect_scene,
)

__all__ = [
    "Scene",
    "SceneObject",
    "SphereInfo",
    "SceneHitRecord",
    "clear_scene_storage",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    "SCENES",
    "create_sphere_scene",
    "create_single_sphere_scene",
    "create_empty_scene",
]
