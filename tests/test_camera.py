"""Unit tests for the thin-lens camera.

Tests cover:
- Camera and lens validation
- Basis and viewport construction
- Ray generation through the image plane
- Defocus through the lens
"""

import math

import numpy as np
import pytest
import taichi as ti


def _trace_rays(coords, disk_point=(0.0, 0.0, 0.0)):
    """Generate camera rays for a list of (s, t) pairs."""
    from src.pathtracer.camera.thin_lens import get_ray
    from src.pathtracer.core.ray import vec3

    n = len(coords)
    st = ti.Vector.field(2, dtype=ti.f64, shape=n)
    origins = ti.Vector.field(3, dtype=ti.f64, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f64, shape=n)
    for i, (s, t) in enumerate(coords):
        st[i] = (s, t)

    @ti.kernel
    def test_kernel(disk: vec3):
        for i in range(n):
            ray = get_ray(st[i][0], st[i][1], disk)
            origins[i] = ray.origin
            directions[i] = ray.direction

    test_kernel(vec3(disk_point[0], disk_point[1], disk_point[2]))
    return origins.to_numpy(), directions.to_numpy()


class TestCameraValidation:
    """Tests for Camera and CameraLens construction."""

    @pytest.mark.parametrize("vfov", [0.0, 180.0, -10.0, 200.0])
    def test_invalid_vfov(self, vfov):
        from src.pathtracer.camera.thin_lens import Camera

        with pytest.raises(ValueError, match="field of view"):
            Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), vfov, 1.0)

    def test_invalid_aspect_ratio(self):
        from src.pathtracer.camera.thin_lens import Camera

        with pytest.raises(ValueError, match="Aspect"):
            Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 0.0)

    def test_coincident_points(self):
        from src.pathtracer.camera.thin_lens import Camera

        with pytest.raises(ValueError, match="lookfrom"):
            Camera((1, 2, 3), (1, 2, 3), (0, 1, 0), 90.0, 1.0)

    def test_parallel_vup(self):
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        camera = Camera((0, 0, 0), (0, -1, 0), (0, 1, 0), 90.0, 1.0)
        with pytest.raises(ValueError, match="vup"):
            setup_camera(camera)

    def test_lens_validation(self):
        from src.pathtracer.camera.thin_lens import CameraLens

        with pytest.raises(ValueError):
            CameraLens(aperture=-0.1, focus_dist=1.0)
        with pytest.raises(ValueError):
            CameraLens(aperture=0.1, focus_dist=0.0)

    def test_lens_from_distance(self):
        from src.pathtracer.camera.thin_lens import CameraLens

        lens = CameraLens.from_distance(0.1, (13.0, 4.0, 3.0), (0.0, 0.0, 0.0))
        assert lens.focus_dist == pytest.approx(math.sqrt(194.0))
        assert lens.aperture == 0.1


class TestCameraSetup:
    """Tests for the basis and viewport computed by setup_camera."""

    def test_viewport_geometry(self):
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 2.0))
        info = get_camera_info()
        assert info["u"] == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
        assert info["v"] == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)
        assert info["horizontal"] == pytest.approx((4.0, 0.0, 0.0), abs=1e-5)
        assert info["vertical"] == pytest.approx((0.0, 2.0, 0.0), abs=1e-5)
        assert info["lower_left"] == pytest.approx((-2.0, -1.0, -1.0), abs=1e-5)
        assert info["lens_radius"] == 0.0

    def test_focus_distance_scales_viewport(self):
        from src.pathtracer.camera.thin_lens import (
            Camera,
            CameraLens,
            get_camera_info,
            setup_camera,
        )

        lens = CameraLens(aperture=0.5, focus_dist=3.0)
        setup_camera(Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 1.0, lens))
        info = get_camera_info()
        assert info["vertical"] == pytest.approx((0.0, 6.0, 0.0), abs=1e-5)
        assert info["lower_left"] == pytest.approx((-3.0, -3.0, -3.0), abs=1e-5)
        assert info["lens_radius"] == pytest.approx(0.25)

    def test_basis_is_orthonormal(self):
        from src.pathtracer.camera.thin_lens import Camera, get_camera_info, setup_camera

        setup_camera(Camera((13, 4, 3), (0, 0, 0), (0, 1, 0), 20.0, 1.5))
        info = get_camera_info()
        u, v, w = (np.array(info[k]) for k in ("u", "v", "w"))
        for vec in (u, v, w):
            assert np.linalg.norm(vec) == pytest.approx(1.0, abs=1e-6)
        assert abs(np.dot(u, v)) < 1e-6
        assert abs(np.dot(v, w)) < 1e-6
        assert abs(np.dot(u, w)) < 1e-6
        assert w == pytest.approx(np.array([13.0, 4.0, 3.0]) / math.sqrt(194.0), abs=1e-6)


class TestGetRay:
    """Tests for ray generation."""

    def test_pinhole_rays(self):
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 2.0))
        origins, directions = _trace_rays([(0.5, 0.5), (0.0, 0.0), (1.0, 1.0)])

        assert np.allclose(origins, 0.0)
        assert directions[0] == pytest.approx([0.0, 0.0, -1.0], abs=1e-6)
        assert directions[1] == pytest.approx(np.array([-2.0, -1.0, -1.0]) / math.sqrt(6.0), abs=1e-6)
        assert directions[2] == pytest.approx(np.array([2.0, 1.0, -1.0]) / math.sqrt(6.0), abs=1e-6)
        assert np.allclose(np.linalg.norm(directions, axis=1), 1.0, atol=1e-6)

    def test_disk_point_ignored_without_lens(self):
        from src.pathtracer.camera.thin_lens import Camera, setup_camera

        setup_camera(Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 1.0))
        origins, directions = _trace_rays([(0.5, 0.5)], disk_point=(0.9, 0.1, 0.0))
        assert np.allclose(origins, 0.0)
        assert directions[0] == pytest.approx([0.0, 0.0, -1.0], abs=1e-6)

    def test_lens_rays_converge_on_focus_plane(self):
        """Rays from any lens point cross the same point of the focus plane."""
        from src.pathtracer.camera.thin_lens import Camera, CameraLens, setup_camera

        lens = CameraLens(aperture=2.0, focus_dist=2.0)
        setup_camera(Camera((0, 0, 0), (0, 0, -1), (0, 1, 0), 90.0, 1.0, lens))

        for disk in [(1.0, 0.0, 0.0), (0.0, -0.5, 0.0), (0.3, 0.4, 0.0)]:
            origins, directions = _trace_rays([(0.5, 0.5)], disk_point=disk)
            origin, direction = origins[0], directions[0]
            assert origin == pytest.approx([disk[0], disk[1], 0.0], abs=1e-6)
            # Walk to the z = -2 plane
            t = -2.0 / direction[2]
            assert origin + t * direction == pytest.approx([0.0, 0.0, -2.0], abs=1e-5)
