"""Ready-made scenes for the command-line driver and tests.

The default scene is a small sphere floating in front of the camera on top
of a very large "ground" sphere, both seen against the sky gradient.
"""

from skytrace.scene.world import Scene

# Ground sphere is large enough to look flat near the camera
GROUND_RADIUS = 100.0


def create_sphere_scene() -> Scene:
    """Create the default two-sphere scene.

    Returns:
        A Scene with a radius 0.5 sphere at (0, 0, -1) and a radius 100
        ground sphere whose top touches y = -0.5.
    """
    scene = Scene()
    scene.add_sphere((0.0, 0.0, -1.0), 0.5)
    scene.add_sphere((0.0, -GROUND_RADIUS - 0.5, -1.0), GROUND_RADIUS)
    return scene


def create_single_sphere_scene() -> Scene:
    """Create a scene with only the radius 0.5 sphere at (0, 0, -1)."""
    scene = Scene()
    scene.add_sphere((0.0, 0.0, -1.0), 0.5)
    return scene


def create_empty_scene() -> Scene:
    """Create a scene with no objects, which renders the sky only."""
    return Scene()


# Scene builders by name, used by the command-line driver
SCENES = {
    "spheres": create_sphere_scene,
    "single": create_single_sphere_scene,
    "empty": create_empty_scene,
}
