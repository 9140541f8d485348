"""Unit and end-to-end tests for the camera.

Tests cover:
- Configuration and derived image height
- Lifecycle states
- Viewport and pixel geometry
- Ray generation with and without jitter
- Rendering: header, ordering, determinism, sky gradient, normal shading
- Sample accumulation handed to the encoder
"""

import io
import warnings

import numpy as np
import pytest
import taichi as ti


def _expected_sky(camera):
    """Closed-form sky gradient for every pixel center of an initialized camera."""
    rows = []
    for j in range(camera.image_height):
        row = []
        for i in range(camera.image_width):
            sample = camera.pixel00_loc + i * camera.pixel_delta_u + j * camera.pixel_delta_v
            direction = sample - camera.center
            direction = direction / np.linalg.norm(direction)
            a = 0.5 * (direction[1] + 1.0)
            color = (1.0 - a) * np.array([1.0, 1.0, 1.0]) + a * np.array([0.5, 0.7, 1.0])
            row.append(np.floor(255 * np.clip(color, 0.0, 1.0) + 0.5))
        rows.append(row)
    return np.array(rows)


class TestCameraConfig:
    """Tests for CameraConfig."""

    def test_height_from_aspect_ratio(self):
        """Test that the height is derived from width and aspect ratio."""
        from skytrace.camera.camera import CameraConfig

        assert CameraConfig(image_width=400).resolved_height() == 225
        assert CameraConfig(image_width=10, aspect_ratio=2.0).resolved_height() == 5

    def test_height_never_below_one(self):
        """Test that a very wide aspect ratio still yields one row."""
        from skytrace.camera.camera import CameraConfig

        assert CameraConfig(image_width=1, aspect_ratio=16.0 / 9.0).resolved_height() == 1

    def test_explicit_height_wins(self):
        """Test that a supplied height overrides the aspect ratio."""
        from skytrace.camera.camera import CameraConfig

        assert CameraConfig(image_width=400, image_height=7).resolved_height() == 7


class TestCameraGeometry:
    """Tests for initialize() and the derived geometry."""

    def test_initial_state(self):
        """Test that a new camera is unconfigured and has no geometry."""
        from skytrace.camera.camera import Camera, CameraState

        camera = Camera()
        assert camera.state == CameraState.UNCONFIGURED
        with pytest.raises(RuntimeError):
            camera.get_geometry()

    def test_geometry_values(self):
        """Test viewport size, pixel deltas and pixel00 for a 4x2 image."""
        from skytrace.camera.camera import Camera, CameraConfig, CameraState

        camera = Camera(CameraConfig(image_width=4, image_height=2))
        camera.initialize()

        assert camera.state == CameraState.INITIALIZED
        info = camera.get_geometry()
        assert info["image_width"] == 4
        assert info["image_height"] == 2
        assert info["viewport_width"] == pytest.approx(4.0)
        assert info["viewport_height"] == pytest.approx(2.0)
        assert info["center"] == pytest.approx((0.0, 0.0, 0.0))
        assert info["pixel_delta_u"] == pytest.approx((1.0, 0.0, 0.0))
        assert info["pixel_delta_v"] == pytest.approx((0.0, -1.0, 0.0))
        assert info["pixel00_loc"] == pytest.approx((-1.5, 0.5, -1.0))

    def test_viewport_uses_integer_ratio(self):
        """Test that viewport width follows the rounded image size."""
        from skytrace.camera.camera import Camera, CameraConfig

        camera = Camera(CameraConfig(image_width=400, aspect_ratio=16.0 / 9.0))
        camera.initialize()

        assert camera.viewport_width == pytest.approx(2.0 * 400 / 225)

    def test_initialize_is_idempotent(self):
        """Test that initializing twice yields the same geometry."""
        from skytrace.camera.camera import Camera, CameraConfig

        camera = Camera(CameraConfig(image_width=16, image_height=9))
        camera.initialize()
        first = camera.get_geometry()
        camera.initialize()

        assert camera.get_geometry() == first


class TestRayGeneration:
    """Tests for get_ray."""

    def test_pixel_center_ray(self):
        """Test that an unjittered ray passes through the pixel center."""
        from skytrace.camera.camera import Camera, CameraConfig, get_ray

        camera = Camera(CameraConfig(image_width=4, image_height=2))
        camera.initialize()

        origin = ti.field(dtype=ti.math.vec3, shape=())
        direction = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = get_ray(0, 0, 0)
            origin[None] = ray.origin
            direction[None] = ray.direction

        test_kernel()
        expected = np.array([-1.5, 0.5, -1.0])
        expected /= np.linalg.norm(expected)
        np.testing.assert_allclose(origin[None].to_numpy(), [0.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(direction[None].to_numpy(), expected, atol=1e-5)

    def test_jittered_rays_stay_in_pixel(self):
        """Test that jittered samples land inside the pixel footprint."""
        from skytrace.camera.camera import Camera, CameraConfig, get_ray

        camera = Camera(CameraConfig(image_width=4, image_height=2))
        camera.initialize()

        n = 256
        samples = ti.Vector.field(3, dtype=ti.f32, shape=n)
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                ray = get_ray(0, 0, 1)
                # Project back onto the viewport plane at z = -1
                samples[k] = ray.direction / -ray.direction.z
                lengths[k] = ti.math.length(ray.direction)

        test_kernel()
        points = samples.to_numpy()
        eps = 1e-5
        # Pixel (0, 0) covers x in [-2, -1] and y in [0, 1]
        assert np.all(points[:, 0] >= -2.0 - eps)
        assert np.all(points[:, 0] <= -1.0 + eps)
        assert np.all(points[:, 1] >= 0.0 - eps)
        assert np.all(points[:, 1] <= 1.0 + eps)
        np.testing.assert_allclose(lengths.to_numpy(), 1.0, atol=1e-5)
        # Samples actually vary
        assert points[:, 0].std() > 0.1
        assert points[:, 1].std() > 0.1


class TestRender:
    """End-to-end rendering tests."""

    def test_header_and_pixel_count(self):
        """Test PPM header and one line per pixel."""
        from skytrace.camera.camera import Camera, CameraConfig, CameraState
        from skytrace.scene.presets import create_sphere_scene

        camera = Camera(CameraConfig(image_width=5, image_height=3, samples_per_pixel=2))
        sink = io.StringIO()
        pixels = camera.render(create_sphere_scene(), sink)

        lines = sink.getvalue().splitlines()
        assert lines[:3] == ["P3", "5 3", "255"]
        assert len(lines) == 3 + 5 * 3
        assert pixels.shape == (3, 5, 3)
        assert pixels.dtype == np.uint8
        assert camera.state == CameraState.DONE

    def test_output_matches_returned_pixels(self):
        """Test that the written pixels are the returned ones in row-major order."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.image.export import read_ppm
        from skytrace.scene.presets import create_sphere_scene

        camera = Camera(CameraConfig(image_width=6, image_height=4, samples_per_pixel=1))
        sink = io.StringIO()
        pixels = camera.render(create_sphere_scene(), sink)

        np.testing.assert_array_equal(read_ppm(sink.getvalue()), pixels)

    def test_progress_callback(self):
        """Test that the callback reports every scanline in order."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_empty_scene

        calls = []
        camera = Camera(CameraConfig(image_width=3, image_height=4, samples_per_pixel=1))
        camera.render(create_empty_scene(), io.StringIO(), callback=lambda c, t: calls.append((c, t)))

        assert calls == [(1, 4), (2, 4), (3, 4), (4, 4)]

    def test_deterministic_without_jitter(self):
        """Test that a 2x2 render with fixed sample positions is repeatable."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_single_sphere_scene

        config = CameraConfig(image_width=2, image_height=2, samples_per_pixel=1, jitter=False)
        outputs = []
        for _ in range(3):
            sink = io.StringIO()
            Camera(config).render(create_single_sphere_scene(), sink)
            outputs.append(sink.getvalue())

        assert outputs[0] == outputs[1] == outputs[2]

    @pytest.mark.parametrize("size", [(4, 3), (7, 5)])
    def test_empty_scene_is_sky_gradient(self, size):
        """Test that an empty scene reproduces the closed-form sky gradient."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_empty_scene

        width, height = size
        camera = Camera(
            CameraConfig(image_width=width, image_height=height, samples_per_pixel=1, jitter=False)
        )
        pixels = camera.render(create_empty_scene(), io.StringIO())
        expected = _expected_sky(camera)

        assert np.abs(pixels.astype(np.int64) - expected).max() <= 1
        # Top rows look up (bluer), bottom rows look down (whiter)
        assert pixels[0, 0, 0] < pixels[-1, 0, 0]
        assert pixels[0, 0, 2] == 255
        assert pixels[-1, 0, 2] == 255

    def test_center_pixel_shows_normal(self):
        """Test that the pixel looking straight at the sphere shades (0.5, 0.5, 1)."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_single_sphere_scene

        camera = Camera(
            CameraConfig(image_width=3, image_height=3, samples_per_pixel=1, jitter=False)
        )
        pixels = camera.render(create_single_sphere_scene(), io.StringIO())

        center = pixels[1, 1].astype(np.int64)
        assert np.abs(center - np.array([128, 128, 255])).max() <= 1

    def test_zero_radius_sphere_renders_black(self):
        """Test that a degenerate sphere's undefined normal encodes as black."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.image.export import read_ppm
        from skytrace.scene.world import Scene

        scene = Scene()
        scene.add_sphere((0.0, 0.0, -1.0), 0.0)
        camera = Camera(
            CameraConfig(image_width=1, image_height=1, samples_per_pixel=1, jitter=False)
        )
        sink = io.StringIO()

        with warnings.catch_warnings():
            warnings.simplefilter("error", RuntimeWarning)
            pixels = camera.render(scene, sink)

        assert pixels.tolist() == [[[0, 0, 0]]]
        np.testing.assert_array_equal(read_ppm(sink.getvalue()), pixels)

    def test_samples_are_averaged_by_encoder(self):
        """Test that N identical samples encode like a single sample."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_sphere_scene

        base = dict(image_width=6, image_height=4, jitter=False)
        single = Camera(CameraConfig(samples_per_pixel=1, **base)).render(
            create_sphere_scene(), io.StringIO()
        )
        many = Camera(CameraConfig(samples_per_pixel=8, **base)).render(
            create_sphere_scene(), io.StringIO()
        )

        assert np.abs(single.astype(np.int64) - many.astype(np.int64)).max() <= 1

    def test_jittered_sky_stays_close(self):
        """Test that jitter only perturbs the smooth sky slightly."""
        from skytrace.camera.camera import Camera, CameraConfig
        from skytrace.scene.presets import create_empty_scene

        base = dict(image_width=8, image_height=8, samples_per_pixel=16)
        fixed = Camera(CameraConfig(jitter=False, **base)).render(create_empty_scene(), io.StringIO())
        jittered = Camera(CameraConfig(jitter=True, **base)).render(
            create_empty_scene(), io.StringIO()
        )

        assert np.abs(fixed.astype(np.int64) - jittered.astype(np.int64)).max() <= 8

    def test_width_over_capacity(self):
        """Test that widths beyond the row buffer are rejected."""
        from skytrace.camera.camera import MAX_IMAGE_WIDTH, Camera, CameraConfig
        from skytrace.scene.presets import create_empty_scene

        camera = Camera(CameraConfig(image_width=MAX_IMAGE_WIDTH + 1, image_height=1))
        with pytest.raises(ValueError):
            camera.render(create_empty_scene(), io.StringIO())
