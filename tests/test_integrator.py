"""Unit tests for the path tracing integrator.

Tests cover:
- Sky contribution for escaping rays
- Throughput along diffuse, mirror and index-matched glass paths
- Depth exhaustion and enclosed paths returning black
- Pixel estimation with gamma correction
- Render target bookkeeping
"""

import math

import numpy as np
import pytest
import taichi as ti

N = 4096


def _mean_path_color(origin, direction, max_depth, seed=1, n=N):
    """Average trace_path over n independent generator streams."""
    from src.pathtracer.core.integrator import trace_path
    from src.pathtracer.core.ray import vec3
    from src.pathtracer.core.sampler import init_rng

    colors = ti.Vector.field(3, dtype=ti.f64, shape=n)

    @ti.kernel
    def test_kernel(o: vec3, d: vec3, depth: ti.i32, seed: ti.i32):
        for i in range(n):
            color, _ = trace_path(o, d, depth, init_rng(seed, i, 0))
            colors[i] = color

    test_kernel(vec3(*origin), vec3(*direction), max_depth, seed)
    return colors.to_numpy()


def _pinhole_camera(aspect_ratio=1.0):
    from src.pathtracer.camera.thin_lens import Camera, setup_camera

    setup_camera(Camera((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), (0.0, 1.0, 0.0), 90.0, aspect_ratio))


class TestRayColor:
    """Tests for single-ray estimates."""

    def test_empty_scene_returns_sky(self):
        from src.pathtracer.core.integrator import Raytracer

        raytracer = Raytracer(width=4, height=4, max_depth=5)
        up = raytracer.ray_color((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), seed=1)
        side = raytracer.ray_color((0.0, 0.0, 0.0), (0.0, 0.0, -3.0), seed=1)
        assert up == pytest.approx((0.5, 0.7, 1.0), abs=1e-6)
        assert side == pytest.approx((0.75, 0.85, 1.0), abs=1e-6)

    def test_zero_depth_is_black(self):
        from src.pathtracer.core.integrator import Raytracer

        raytracer = Raytracer(width=4, height=4, max_depth=0)
        assert raytracer.ray_color((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), seed=1) == (0.0, 0.0, 0.0)

    def test_white_diffuse_under_uniform_sky(self):
        """A white diffuse ball under a uniform sky shows exactly the sky."""
        from src.pathtracer.scene.objects import Lambertian, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, -2.0), 1.0), Lambertian((1.0, 1.0, 1.0)))
        world.set_sky((0.3, 0.6, 0.9), (0.3, 0.6, 0.9))

        colors = _mean_path_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=2, n=256)
        assert np.allclose(colors, [0.3, 0.6, 0.9], atol=1e-6)

    def test_diffuse_bounce_is_cosine_weighted(self):
        """Under a sky that fades from 1 below to 0 above, the lit top of a
        white ball averages 1 - (1 + 2/3) / 2 = 1/6."""
        from src.pathtracer.scene.objects import Lambertian, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, 0.0), 1.0), Lambertian((1.0, 1.0, 1.0)))
        world.set_sky((1.0, 1.0, 1.0), (0.0, 0.0, 0.0))

        colors = _mean_path_color((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), max_depth=2)
        assert colors.mean() == pytest.approx(1.0 / 6.0, abs=0.01)

    def test_depth_exhausted_is_black(self):
        """With one segment a path that hits anything returns black."""
        from src.pathtracer.scene.objects import Lambertian, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, -2.0), 1.0), Lambertian((1.0, 1.0, 1.0)))

        colors = _mean_path_color((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=1, n=64)
        assert np.all(colors == 0.0)

    @pytest.mark.parametrize("radius", [1.0, 50.0, 1000.0])
    def test_enclosed_path_is_black(self, radius):
        """A path that can never escape the scene contributes nothing.

        Every bounce starts on the inner surface, so a hit point rounded to
        the outside would let the path escape to the sky.
        """
        from src.pathtracer.scene.objects import Lambertian, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, 0.0), radius), Lambertian((1.0, 1.0, 1.0)))

        colors = _mean_path_color((0.0, 0.0, 0.0), (0.3, 0.2, -1.0), max_depth=8, n=20000)
        assert np.count_nonzero(colors.any(axis=1)) == 0

    def test_mirror_reflects_sky(self):
        from src.pathtracer.core.integrator import Raytracer
        from src.pathtracer.scene.objects import Metal, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, 0.0), 1.0), Metal((0.5, 0.5, 0.5), fuzz=0.0))

        raytracer = Raytracer(width=4, height=4, max_depth=2)
        color = raytracer.ray_color((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), seed=3)
        assert color == pytest.approx((0.25, 0.35, 0.5), abs=1e-6)

        # One segment is not enough to reach the sky
        raytracer.max_depth = 1
        assert raytracer.ray_color((0.0, 5.0, 0.0), (0.0, -1.0, 0.0), seed=3) == (0.0, 0.0, 0.0)

    def test_index_matched_glass_is_invisible(self):
        """Entering and leaving a sphere of index 1 leaves the ray unchanged."""
        from src.pathtracer.core.integrator import Raytracer
        from src.pathtracer.scene.objects import Dielectric, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, 0.0), 1.0), Dielectric(1.0))

        direction = (0.05, 0.1, -1.0)
        norm = math.sqrt(sum(c * c for c in direction))
        t = 0.5 * (direction[1] / norm + 1.0)
        expected = ((1.0 - t) + 0.5 * t, (1.0 - t) + 0.7 * t, 1.0)

        raytracer = Raytracer(width=4, height=4, max_depth=3)
        for sample_index in range(16):
            color = raytracer.ray_color((0.2, -0.3, 5.0), direction, seed=11, sample_index=sample_index)
            assert color == pytest.approx(expected, abs=1e-5)


class TestGetPixel:
    """Tests for pixel estimation."""

    def test_uniform_sky_gamma(self):
        """A uniform 0.25 sky gives sqrt(0.25) = 0.5 everywhere."""
        from src.pathtracer.core.integrator import Raytracer
        from src.pathtracer.scene.intersection import set_sky

        set_sky((0.25, 0.25, 0.25), (0.25, 0.25, 0.25))
        _pinhole_camera()

        raytracer = Raytracer(width=8, height=8, samples=4, max_depth=4)
        for u, v in [(0.0, 0.0), (0.5, 0.5), (0.875, 0.125)]:
            assert raytracer.get_pixel(u, v, seed=1) == pytest.approx((0.5, 0.5, 0.5), abs=1e-6)

    def test_same_seed_same_pixel(self):
        from src.pathtracer.core.integrator import Raytracer
        from src.pathtracer.scene.objects import Lambertian, SphereShape
        from src.pathtracer.scene.world import World

        world = World()
        world.add(SphereShape((0.0, 0.0, -2.0), 1.0), Lambertian((0.7, 0.5, 0.3)))
        _pinhole_camera()

        raytracer = Raytracer(width=16, height=16, samples=8, max_depth=8)
        first = raytracer.get_pixel(0.5, 0.5, seed=42, pixel_index=136)
        second = raytracer.get_pixel(0.5, 0.5, seed=42, pixel_index=136)
        other = raytracer.get_pixel(0.5, 0.5, seed=43, pixel_index=136)
        assert first == second
        assert first != other
        assert all(0.0 <= c <= 1.0 for c in first)


class TestRaytracerValidation:
    """Tests for Raytracer settings."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0, "height": 10},
            {"width": 10, "height": -1},
            {"width": 4096, "height": 10},
            {"width": 10, "height": 10, "samples": 0},
            {"width": 10, "height": 10, "max_depth": -1},
        ],
    )
    def test_invalid_settings(self, kwargs):
        from src.pathtracer.core.integrator import Raytracer

        with pytest.raises(ValueError):
            Raytracer(**kwargs)

    def test_defaults(self):
        from src.pathtracer.core.integrator import Raytracer

        raytracer = Raytracer(width=320, height=180)
        assert raytracer.samples == 32
        assert raytracer.max_depth == 24
        assert raytracer.aspect_ratio == pytest.approx(16.0 / 9.0)


class TestRenderTarget:
    """Tests for the render target buffers."""

    def test_setup_and_dimensions(self):
        from src.pathtracer.core.integrator import (
            get_image_dimensions,
            get_image_numpy,
            get_image_uint8,
            setup_render_target,
        )

        setup_render_target(12, 7)
        assert get_image_dimensions() == (12, 7)
        assert get_image_numpy().shape == (7, 12, 3)
        assert get_image_uint8().dtype == np.uint8
        assert not get_image_numpy().any()

    def test_invalid_dimensions(self):
        from src.pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(0, 10)
        with pytest.raises(ValueError):
            setup_render_target(10, 5000)

    def test_render_rows_bounds(self):
        from src.pathtracer.core.integrator import render_rows, setup_render_target

        setup_render_target(8, 8)
        with pytest.raises(ValueError):
            render_rows(4, 8, samples=1, max_depth=1, seed=0)
        with pytest.raises(ValueError):
            render_rows(-1, 2, samples=1, max_depth=1, seed=0)

    def test_uninitialized_target(self):
        from src.pathtracer.core import integrator

        integrator._render_target_initialized[None] = 0
        with pytest.raises(RuntimeError):
            integrator.get_image_numpy()
        with pytest.raises(RuntimeError):
            integrator.render_rows(0, 1, samples=1, max_depth=1, seed=0)

    def test_render_rows_writes_band(self):
        from src.pathtracer.core.integrator import get_image_uint8, render_rows, setup_render_target
        from src.pathtracer.scene.intersection import set_sky

        set_sky((0.25, 0.25, 0.25), (0.25, 0.25, 0.25))
        _pinhole_camera()
        setup_render_target(6, 4)

        # Bottom two rows only
        render_rows(0, 2, samples=2, max_depth=2, seed=5)
        image = get_image_uint8()
        assert np.all(image[2:] == 127)
        assert np.all(image[:2] == 0)
