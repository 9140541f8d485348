"""Camera module for viewport geometry and rendering.

Components:
    camera: Fixed pinhole camera, ray generation and the sampling loop

Camera responsibilities:
    - Derive viewport and per-pixel geometry from the image configuration
    - Generate jittered primary rays for box-filter anti-aliasing
    - Sum per-sample colors and hand them to the color encoder
"""

from .camera import (
    FOCAL_LENGTH,
    MAX_IMAGE_WIDTH,
    VIEWPORT_HEIGHT,
    Camera,
    CameraConfig,
    CameraState,
    ProgressCallback,
    get_ray,
    ray_color,
    sky_color,
)

__all__ = [
    "Camera",
    "CameraConfig",
    "CameraState",
    "ProgressCallback",
    "get_ray",
    "ray_color",
    "sky_color",
    "FOCAL_LENGTH",
    "VIEWPORT_HEIGHT",
    "MAX_IMAGE_WIDTH",
]
