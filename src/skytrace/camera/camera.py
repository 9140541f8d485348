"""Fixed pinhole camera and the per-pixel sampling loop.

The camera sits at the origin looking down the -z axis, with a viewport
2 units tall placed 1 unit in front of it. The viewport width follows the
image's aspect ratio. Pixel (0, 0) is the top-left pixel; rows run top to
bottom and columns left to right, matching the order pixels are written out.

Rendering works one scanline at a time. A Taichi kernel traces
``samples_per_pixel`` rays per pixel of the row (in parallel across
columns), summing the linear colors. The sums are then handed to the color
encoder together with the sample count. The camera never clamps or
quantizes colors itself.

Shading is a normal visualization: a hit is colored ``0.5 * (normal + 1)``,
and a miss gets a white-to-sky-blue gradient driven by the ray's vertical
direction.

Example:
    >>> import sys
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytrace.camera.camera import Camera, CameraConfig
    >>> from skytrace.scene.presets import create_sphere_scene
    >>>
    >>> camera = Camera(CameraConfig(image_width=400, samples_per_pixel=10))
    >>> pixels = camera.render(create_sphere_scene(), sys.stdout)
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TextIO

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from skytrace.core.interval import INFINITY, make_interval
from skytrace.core.ray import Ray, make_ray, vec3
from skytrace.image.color import encode_pixels
from skytrace.image.ppm import write_header, write_pixels
from skytrace.scene.world import Scene, intersect_scene

# =============================================================================
# Camera Constants
# =============================================================================

# Viewport height in world units
VIEWPORT_HEIGHT = 2.0

# Distance from the camera center to the viewport
FOCAL_LENGTH = 1.0

# Maximum supported image width (row accumulation buffer size)
MAX_IMAGE_WIDTH = 4096

# Progress callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for the camera.

    Attributes:
        image_width: Image width in pixels (>= 1).
        aspect_ratio: Ideal width / height ratio, used to derive the height
            when image_height is not given.
        image_height: Image height in pixels. Derived from image_width and
            aspect_ratio when None.
        samples_per_pixel: Number of rays averaged per pixel (>= 1).
        jitter: Randomly offset each sample within the pixel footprint.
            When False every sample goes through the pixel center.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    image_height: int | None = None
    samples_per_pixel: int = 10
    jitter: bool = True

    def resolved_height(self) -> int:
        """Image height, derived from the aspect ratio when not given."""
        if self.image_height is not None:
            return self.image_height
        return max(1, int(self.image_width / self.aspect_ratio))


class CameraState(Enum):
    """Lifecycle of a Camera."""

    UNCONFIGURED = "unconfigured"
    INITIALIZED = "initialized"
    RENDERING = "rendering"
    DONE = "done"


# =============================================================================
# Taichi Fields for Camera State (GPU-accessible)
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())

# Per-pixel color sums for the scanline being rendered
_row_accum = ti.Vector.field(3, dtype=ti.f32, shape=MAX_IMAGE_WIDTH)


# =============================================================================
# Camera
# =============================================================================


class Camera:
    """A fixed pinhole camera that renders a Scene to a PPM stream.

    Attributes:
        config: The camera configuration.
        state: Where the camera is in its lifecycle.
    """

    def __init__(self, config: CameraConfig | None = None) -> None:
        self.config = config if config is not None else CameraConfig()
        self.state = CameraState.UNCONFIGURED

        self.image_width = 0
        self.image_height = 0
        self.viewport_width = 0.0
        self.viewport_height = VIEWPORT_HEIGHT
        self.center = np.zeros(3)
        self.pixel00_loc = np.zeros(3)
        self.pixel_delta_u = np.zeros(3)
        self.pixel_delta_v = np.zeros(3)

    def initialize(self) -> None:
        """Compute viewport and pixel geometry from the configuration.

        Recomputes everything from scratch, so calling it again is harmless.
        Also makes this camera's geometry the one used by the ray
        generation kernels.
        """
        width = self.config.image_width
        height = self.config.resolved_height()

        # Use the actual integer ratio rather than the ideal aspect ratio
        viewport_width = VIEWPORT_HEIGHT * width / height

        center = np.zeros(3)
        viewport_u = np.array([viewport_width, 0.0, 0.0])
        viewport_v = np.array([0.0, -VIEWPORT_HEIGHT, 0.0])

        pixel_delta_u = viewport_u / width
        pixel_delta_v = viewport_v / height

        viewport_upper_left = (
            center - np.array([0.0, 0.0, FOCAL_LENGTH]) - viewport_u / 2.0 - viewport_v / 2.0
        )
        pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

        self.image_width = width
        self.image_height = height
        self.viewport_width = viewport_width
        self.center = center
        self.pixel_delta_u = pixel_delta_u
        self.pixel_delta_v = pixel_delta_v
        self.pixel00_loc = pixel00_loc

        _camera_center[None] = center.tolist()
        _pixel00_loc[None] = pixel00_loc.tolist()
        _pixel_delta_u[None] = pixel_delta_u.tolist()
        _pixel_delta_v[None] = pixel_delta_v.tolist()

        self.state = CameraState.INITIALIZED

    def get_geometry(self) -> dict[str, Any]:
        """Get the derived camera geometry for debugging.

        Returns:
            Dictionary with image size, viewport size, center, pixel00 and
            the per-pixel delta vectors.

        Raises:
            RuntimeError: If the camera has not been initialized.
        """
        if self.state == CameraState.UNCONFIGURED:
            raise RuntimeError("Camera not initialized. Call initialize() first.")

        def _as_tuple(v: npt.NDArray[np.float64]) -> tuple[float, float, float]:
            return (float(v[0]), float(v[1]), float(v[2]))

        return {
            "image_width": self.image_width,
            "image_height": self.image_height,
            "viewport_width": self.viewport_width,
            "viewport_height": self.viewport_height,
            "center": _as_tuple(self.center),
            "pixel00_loc": _as_tuple(self.pixel00_loc),
            "pixel_delta_u": _as_tuple(self.pixel_delta_u),
            "pixel_delta_v": _as_tuple(self.pixel_delta_v),
        }

    def render(
        self,
        scene: Scene,
        sink: TextIO,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.uint8]:
        """Render the scene and write it to sink as a PPM image.

        Zero image dimensions or a zero sample count are not checked here;
        callers must reject them beforehand.

        Args:
            scene: The scene to render. It is uploaded to the device first.
            sink: Writable text stream receiving the PPM output.
            callback: Optional function called after each scanline with
                (rows_done, total_rows).

        Returns:
            The encoded image as an array of shape (height, width, 3).

        Raises:
            ValueError: If the image width exceeds MAX_IMAGE_WIDTH.
            RuntimeError: If the scene exceeds the device primitive capacity.
        """
        if self.config.image_width > MAX_IMAGE_WIDTH:
            raise ValueError(
                f"Image width ({self.config.image_width}) exceeds maximum supported "
                f"({MAX_IMAGE_WIDTH})"
            )

        self.initialize()
        scene.upload()

        width = self.image_width
        height = self.image_height
        samples = self.config.samples_per_pixel
        jitter = 1 if self.config.jitter else 0

        self.state = CameraState.RENDERING
        write_header(sink, width, height)

        pixels = np.empty((height, width, 3), dtype=np.uint8)
        for j in range(height):
            _render_row(j, width, samples, jitter)
            row = encode_pixels(_row_accum.to_numpy()[:width], samples)
            write_pixels(sink, row)
            pixels[j] = row

            if callback is not None:
                callback(j + 1, height)

        self.state = CameraState.DONE
        return pixels

    def __repr__(self) -> str:
        return (
            f"Camera(width={self.config.image_width}, "
            f"height={self.config.resolved_height()}, "
            f"samples={self.config.samples_per_pixel}, state={self.state.value})"
        )


# =============================================================================
# Ray Generation and Shading (Taichi-compatible, GPU-callable)
# =============================================================================


@ti.func
def get_ray(i: ti.i32, j: ti.i32, jitter: ti.i32) -> Ray:
    """Generate a camera ray through pixel (i, j).

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).
        jitter: If 1, offset the sample point uniformly within
            [-0.5, 0.5) of a pixel along both axes; if 0, use the pixel center.

    Returns:
        A ray from the camera center with a unit-length direction.
    """
    offset_u = 0.0
    offset_v = 0.0
    if jitter == 1:
        offset_u = ti.random(ti.f32) - 0.5
        offset_v = ti.random(ti.f32) - 0.5

    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(i, ti.f32) + offset_u) * _pixel_delta_u[None]
        + (ti.cast(j, ti.f32) + offset_v) * _pixel_delta_v[None]
    )
    origin = _camera_center[None]
    return make_ray(origin, tm.normalize(pixel_sample - origin))


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background color for rays that miss everything.

    Blends from white (looking straight down) to sky blue (straight up).
    """
    white = vec3(1.0, 1.0, 1.0)
    sky_blue = vec3(0.5, 0.7, 1.0)
    unit_direction = tm.normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * white + a * sky_blue


@ti.func
def ray_color(ray: Ray) -> vec3:
    """Linear color seen along a camera ray.

    Hits are shaded by mapping the unit normal from [-1, 1] to [0, 1] per
    channel. Must be called from inside a loop body, like intersect_scene.
    """
    rec = intersect_scene(ray, make_interval(0.0, INFINITY))
    color = vec3(0.0, 0.0, 0.0)
    if rec.hit == 1:
        color = 0.5 * (rec.normal + vec3(1.0, 1.0, 1.0))
    else:
        color = sky_color(ray.direction)
    return color


@ti.kernel
def _render_row(j: ti.i32, width: ti.i32, samples: ti.i32, jitter: ti.i32):
    """Sum samples for every pixel of scanline j into _row_accum."""
    for i in range(width):
        pixel_color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples):
            pixel_color += ray_color(get_ray(i, j, jitter))
        _row_accum[i] = pixel_color
