"""Unit tests for the scanline render driver.

Tests cover:
- RenderSettings validation
- Top-to-bottom row order and progress callbacks
- Pixel sink delivery (every pixel exactly once, y = 0 at the bottom)
- Image assembly against analytic references
- Scene and camera handling of the render() entry point
"""

import numpy as np
import pytest


class RecordingSink:
    """Pixel sink that counts writes per pixel."""

    def __init__(self, width, height):
        self.pixels = np.zeros((height, width, 3), dtype=np.float32)
        self.writes = np.zeros((height, width), dtype=np.int32)
        self.order = []

    def set_pixel(self, x, y, color):
        self.pixels[y, x] = color
        self.writes[y, x] += 1
        self.order.append(y)


def _normals_reference(width, height):
    """Normal shading of the two-sphere scene through pixel centers, top row first."""
    image = np.zeros((height, width, 3))
    spheres = [((0.0, 0.0, -1.0), 0.5), ((0.0, -100.5, -1.0), 100.0)]
    for row in range(height):
        j = height - 1 - row
        for i in range(width):
            s = (i + 0.5) / width
            t = (j + 0.5) / height
            d = np.array([-2.0 + 4.0 * s, -1.0 + 2.0 * t, -1.0])
            closest = np.inf
            normal = None
            for center, radius in spheres:
                oc = -np.asarray(center)
                a = d @ d
                half_b = oc @ d
                c = oc @ oc - radius * radius
                disc = half_b * half_b - a * c
                if disc <= 0.0:
                    continue
                root = (-half_b - np.sqrt(disc)) / a
                if 0.001 < root < closest:
                    closest = root
                    normal = (root * d - np.asarray(center)) / radius
            if normal is None:
                u = 0.5 * (d[1] / np.linalg.norm(d) + 1.0)
                image[row, i] = (1.0 - u) * np.ones(3) + u * np.array([0.5, 0.7, 1.0])
            else:
                image[row, i] = 0.5 * (normal + 1.0)
    return image


def _sky_reference(width, height):
    """Empty-scene sky through the default camera's pixel centers, top row first."""
    s = (np.arange(width) + 0.5) / width
    t = (np.arange(height)[::-1] + 0.5) / height
    x, y = np.meshgrid(-2.0 + 4.0 * s, -1.0 + 2.0 * t)
    u = 0.5 * (y / np.sqrt(x * x + y * y + 1.0) + 1.0)
    return (1.0 - u)[..., None] * np.ones(3) + u[..., None] * np.array([0.5, 0.7, 1.0])


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        """Test default depth, seed, jitter, gamma and mode."""
        from pathtrace.core.integrator import RenderMode
        from pathtrace.core.scanline import RenderSettings

        settings = RenderSettings(width=200, height=100, samples_per_pixel=4)

        assert settings.max_depth == 50
        assert settings.seed == 0
        assert settings.jitter is True
        assert settings.gamma == 2.0
        assert settings.mode == RenderMode.RADIANCE
        assert settings.aspect_ratio == 2.0

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"width": 0, "height": 10, "samples_per_pixel": 1}, "must be positive"),
            ({"width": 10, "height": -1, "samples_per_pixel": 1}, "must be positive"),
            ({"width": 10000, "height": 10, "samples_per_pixel": 1}, "exceeds maximum supported"),
            ({"width": 10, "height": 10, "samples_per_pixel": 0}, "Samples per pixel"),
            ({"width": 10, "height": 10, "samples_per_pixel": 1, "max_depth": -2}, "Max depth"),
            ({"width": 10, "height": 10, "samples_per_pixel": 1, "gamma": -1.0}, "Gamma"),
            ({"width": 10, "height": 10, "samples_per_pixel": 1, "seed": 2**31}, "Seed"),
        ],
    )
    def test_validate(self, kwargs, message):
        """Test out-of-range settings raise ValueError."""
        from pathtrace.core.scanline import RenderSettings

        with pytest.raises(ValueError, match=message):
            RenderSettings(**kwargs).validate()

    def test_renderer_validates(self):
        """Test ScanlineRenderer rejects invalid settings on construction."""
        from pathtrace.core.scanline import RenderSettings, ScanlineRenderer

        with pytest.raises(ValueError):
            ScanlineRenderer(RenderSettings(width=10, height=10, samples_per_pixel=0))


class TestScanlineRenderer:
    """Tests for ScanlineRenderer."""

    def test_rows_top_to_bottom(self, default_view):
        """Test rows are produced from j = height - 1 down to 0."""
        from pathtrace.core.scanline import RenderSettings, ScanlineRenderer

        renderer = ScanlineRenderer(RenderSettings(width=8, height=5, samples_per_pixel=1))
        rows = [j for j, _ in renderer.render_rows()]

        assert rows == [4, 3, 2, 1, 0]
        assert renderer.rows_done == 5

    def test_callback_progress(self, default_view):
        """Test the callback sees every completed row count once."""
        from pathtrace.core.scanline import RenderSettings, ScanlineRenderer

        calls = []
        renderer = ScanlineRenderer(RenderSettings(width=8, height=6, samples_per_pixel=1))
        renderer.render(callback=lambda done, total: calls.append((done, total)))

        assert calls == [(k, 6) for k in range(1, 7)]

    def test_sink_receives_every_pixel_once(self, default_view):
        """Test the sink gets each pixel exactly once, bottom-up y, top row first."""
        from pathtrace.core.scanline import RenderSettings, ScanlineRenderer

        sink = RecordingSink(12, 7)
        renderer = ScanlineRenderer(RenderSettings(width=12, height=7, samples_per_pixel=1))
        image = renderer.render(sink=sink)

        assert np.all(sink.writes == 1)
        assert sink.order[0] == 6
        assert sink.order[-1] == 0
        # The returned image is top row first; the sink is bottom row first
        np.testing.assert_array_equal(image, sink.pixels[::-1])

    def test_repr(self):
        """Test the string representation."""
        from pathtrace.core.scanline import RenderSettings, ScanlineRenderer

        renderer = ScanlineRenderer(RenderSettings(width=8, height=4, samples_per_pixel=2))
        assert repr(renderer) == "ScanlineRenderer(width=8, height=4, spp=2, rows_done=0)"


class TestRender:
    """Tests for the render() entry point."""

    def test_two_sphere_normals_match_reference(self):
        """Test normal shading of the two-sphere scene matches an analytic render."""
        from pathtrace.core.integrator import RenderMode
        from pathtrace.core.scanline import render
        from pathtrace.scene.presets import two_sphere_scene

        scene, camera = two_sphere_scene()
        image = render(
            scene,
            camera,
            200,
            100,
            samples_per_pixel=1,
            jitter=False,
            gamma=1.0,
            mode=RenderMode.NORMALS,
        )

        assert image.shape == (100, 200, 3)
        error = np.abs(image - _normals_reference(200, 100)).max(axis=-1)
        # f32 vs f64 may flip a handful of silhouette pixels
        assert np.mean(error > 1e-3) < 0.005

    def test_empty_scene_is_vertical_gradient(self):
        """Test an empty scene renders the sky: rows get bluer toward the top."""
        from pathtrace.core.scanline import render
        from pathtrace.scene.manager import SceneManager
        from pathtrace.camera.thin_lens import default_camera

        scene = SceneManager()
        image = render(scene, default_camera(), 40, 20, 2, jitter=False, gamma=1.0)

        np.testing.assert_allclose(image, _sky_reference(40, 20), atol=1e-5)

        # Red falls from white (bottom) toward 0.5 (top)
        center_column = image[:, 20, 0]
        assert np.all(np.diff(center_column) > 0.0)

    def test_zero_depth_is_black(self):
        """Test max_depth 0 renders an all-black image."""
        from pathtrace.core.scanline import render
        from pathtrace.scene.presets import two_sphere_scene

        scene, camera = two_sphere_scene()
        image = render(scene, camera, 16, 8, 2, max_depth=0)

        assert np.all(image == 0.0)

    def test_same_seed_same_image(self):
        """Test a render is reproducible for a given seed."""
        from pathtrace.core.scanline import render
        from pathtrace.scene.presets import material_showcase_scene

        scene, camera = material_showcase_scene()
        first = render(scene, camera, 24, 12, 2, seed=5)
        second = render(scene, camera, 24, 12, 2, seed=5)

        np.testing.assert_array_equal(first, second)

    def test_inactive_scene_rejected(self):
        """Test rendering a scene replaced by a newer manager raises RuntimeError."""
        from pathtrace.core.scanline import render
        from pathtrace.scene.manager import SceneManager
        from pathtrace.scene.presets import two_sphere_scene

        scene, camera = two_sphere_scene()
        SceneManager()

        with pytest.raises(RuntimeError, match="newer SceneManager"):
            render(scene, camera, 8, 4, 1)

    def test_reactivated_scene_renders(self):
        """Test clear() makes a manager current again."""
        from pathtrace.core.scanline import render
        from pathtrace.scene.manager import SceneManager
        from pathtrace.camera.thin_lens import default_camera

        scene = SceneManager()
        SceneManager()
        scene.clear()

        image = render(scene, default_camera(), 8, 4, 1)
        assert image.shape == (4, 8, 3)

    def test_invalid_camera_rejected(self):
        """Test a degenerate camera raises ValueError before rendering."""
        from dataclasses import replace

        from pathtrace.core.scanline import render
        from pathtrace.scene.presets import two_sphere_scene

        scene, camera = two_sphere_scene()
        with pytest.raises(ValueError, match="Degenerate camera"):
            render(scene, replace(camera, lookat=camera.lookfrom), 8, 4, 1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
