"""Unit tests for the pinhole camera module.

Tests cover:
- Camera setup and orthonormal basis computation
- Ray generation for center and corner pixels
- Validation of degenerate camera configurations
- Orbit camera placement
"""

import math

import pytest
import taichi as ti


def _pixel_ray(i, j, width, height):
    """Return (origin, direction) of a pixel ray as tuples."""
    from whitted.camera.pinhole import get_pixel_ray

    origin = ti.field(dtype=ti.math.vec3, shape=())
    direction = ti.field(dtype=ti.math.vec3, shape=())

    @ti.kernel
    def test_kernel(pi: ti.i32, pj: ti.i32, w: ti.i32, h: ti.i32):
        ray = get_pixel_ray(pi, pj, w, h)
        origin[None] = ray.origin
        direction[None] = ray.direction

    test_kernel(i, j, width, height)
    o, d = origin[None], direction[None]
    return (o[0], o[1], o[2]), (d[0], d[1], d[2])


def _default_camera(**overrides):
    from whitted.camera.pinhole import PinholeCamera

    params = {
        "lookfrom": (0.0, 0.0, 0.0),
        "lookat": (0.0, 0.0, -1.0),
        "vup": (0.0, 1.0, 0.0),
        "vfov": 90.0,
        "aspect_ratio": 1.0,
    }
    params.update(overrides)
    return PinholeCamera(**params)


class TestCameraSetup:
    """Tests for camera setup and basis computation."""

    def test_orthonormal_basis(self):
        """Test that u, v, w form an orthonormal basis."""
        from whitted.camera.pinhole import get_camera_info, setup_camera

        setup_camera(_default_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(0.0, 0.5, 0.0)))

        info = get_camera_info()
        u, v, w = info["u"], info["v"], info["w"]

        def dot(a, b):
            return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]

        assert abs(dot(u, v)) < 1e-6
        assert abs(dot(u, w)) < 1e-6
        assert abs(dot(v, w)) < 1e-6
        for vec in (u, v, w):
            assert abs(math.sqrt(dot(vec, vec)) - 1.0) < 1e-6

    def test_basis_looking_down_negative_z(self):
        """Test basis vectors for the canonical camera."""
        from whitted.camera.pinhole import get_camera_info, setup_camera

        setup_camera(_default_camera())

        info = get_camera_info()
        assert info["u"] == pytest.approx((1.0, 0.0, 0.0), abs=1e-6)
        assert info["v"] == pytest.approx((0.0, 1.0, 0.0), abs=1e-6)
        assert info["w"] == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)

    def test_invalid_vfov_raises(self):
        """Test field of view outside (0, 180) is rejected."""
        from whitted.camera.pinhole import setup_camera

        with pytest.raises(ValueError, match="vfov"):
            setup_camera(_default_camera(vfov=0.0))
        with pytest.raises(ValueError, match="vfov"):
            setup_camera(_default_camera(vfov=180.0))

    def test_invalid_aspect_ratio_raises(self):
        """Test a non-positive aspect ratio is rejected."""
        from whitted.camera.pinhole import setup_camera

        with pytest.raises(ValueError, match="aspect_ratio"):
            setup_camera(_default_camera(aspect_ratio=0.0))

    def test_lookfrom_equals_lookat_raises(self):
        """Test a camera without a view direction is rejected."""
        from whitted.camera.pinhole import setup_camera

        with pytest.raises(ValueError, match="differ"):
            setup_camera(_default_camera(lookat=(0.0, 0.0, 0.0)))

    def test_vup_parallel_to_view_raises(self):
        """Test an up vector along the view direction is rejected."""
        from whitted.camera.pinhole import setup_camera

        with pytest.raises(ValueError, match="parallel"):
            setup_camera(_default_camera(vup=(0.0, 0.0, 1.0)))


class TestRayGeneration:
    """Tests for pixel ray generation."""

    def test_center_pixel_looks_forward(self):
        """Test the center pixel of an odd-sized image looks along -w."""
        from whitted.camera.pinhole import setup_camera

        setup_camera(_default_camera())

        origin, direction = _pixel_ray(50, 50, 101, 101)

        assert origin == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)
        assert direction == pytest.approx((0.0, 0.0, -1.0), abs=1e-5)

    def test_ray_direction_is_normalized(self):
        """Test generated directions have unit length."""
        from whitted.camera.pinhole import setup_camera

        setup_camera(_default_camera())

        _, d = _pixel_ray(0, 0, 10, 10)
        assert abs(math.sqrt(d[0] ** 2 + d[1] ** 2 + d[2] ** 2) - 1.0) < 1e-5

    def test_bottom_left_pixel_points_down_left(self):
        """Test pixel (0, 0) is the lower-left corner."""
        from whitted.camera.pinhole import setup_camera

        setup_camera(_default_camera())

        _, d = _pixel_ray(0, 0, 10, 10)
        assert d[0] < 0.0
        assert d[1] < 0.0
        assert d[2] < 0.0

    def test_vfov_90_edge_angle(self):
        """Test the top edge of a 90 degree camera is 45 degrees up."""
        from whitted.camera.pinhole import setup_camera

        setup_camera(_default_camera())

        # Column center, top row of a tall thin image gets close to the edge
        _, d = _pixel_ray(0, 999, 1, 1000)
        angle = math.degrees(math.atan2(d[1], -d[2]))
        assert abs(angle - 45.0) < 0.1

    def test_aspect_ratio_widens_view(self):
        """Test a wide aspect ratio spreads rays horizontally."""
        from whitted.camera.pinhole import setup_camera

        setup_camera(_default_camera(aspect_ratio=2.0))

        _, d = _pixel_ray(1999, 0, 2000, 1)
        # Horizontal half-extent of the viewport is aspect * tan(45) = 2
        assert abs(d[0] / -d[2] - 2.0) < 0.01


class TestOrbitCamera:
    """Tests for orbit camera construction."""

    def test_no_rotation(self):
        """Test the unrotated eye sits on +z at the given distance."""
        from whitted.camera.pinhole import orbit_camera

        camera = orbit_camera(distance=4.0, target=(1.0, 2.0, 3.0))

        assert camera.lookfrom == pytest.approx((1.0, 2.0, 7.0))
        assert camera.lookat == pytest.approx((1.0, 2.0, 3.0))
        assert camera.vup == pytest.approx((0.0, 1.0, 0.0))

    def test_rotation_y_quarter_turn(self):
        """Test 90 degrees about Y moves the eye to +x."""
        from whitted.camera.pinhole import orbit_camera

        camera = orbit_camera(distance=5.0, rotation_y=90.0)

        assert camera.lookfrom == pytest.approx((5.0, 0.0, 0.0), abs=1e-9)

    def test_negative_tilt_raises_eye(self):
        """Test a negative X rotation moves the eye above the target."""
        from whitted.camera.pinhole import orbit_camera

        camera = orbit_camera(distance=5.0, rotation_x=-30.0)

        assert camera.lookfrom[1] == pytest.approx(5.0 * math.sin(math.radians(30.0)))
        assert camera.lookfrom[2] == pytest.approx(5.0 * math.cos(math.radians(30.0)))

    def test_straight_down_is_valid(self):
        """Test a camera looking straight down still sets up."""
        from whitted.camera.pinhole import orbit_camera, setup_camera

        camera = orbit_camera(distance=5.0, rotation_x=-90.0)
        setup_camera(camera)

        assert camera.lookfrom == pytest.approx((0.0, 5.0, 0.0), abs=1e-9)

    def test_nonpositive_distance_raises(self):
        """Test the orbit distance must be positive."""
        from whitted.camera.pinhole import orbit_camera

        with pytest.raises(ValueError, match="distance"):
            orbit_camera(distance=0.0)
