"""Taichi-based ray caster for sphere scenes.

This package renders a single still image by casting jittered camera rays
through a flat list of spheres and shading each hit by its surface normal,
with a vertical sky gradient for rays that escape.

Subpackages:
    core: Interval and Ray structures plus vector helpers
    geometry: Hit records and the sphere primitive
    scene: Scene collection, GPU-side storage and nearest-hit queries
    camera: Viewport geometry and the per-pixel sampling loop
    image: Color encoding, PPM output and PNG export
"""

__version__ = "0.1.0"
