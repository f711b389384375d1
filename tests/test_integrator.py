"""Tests for the trace driver and render target.

Tests cover:
- Primary miss returns the environment color
- Single red sphere: hit distance, normal and shaded color
- Bounce limit 0 returns direct lighting only
- Mirror pair: attenuation is the product of specular coefficients
- Escaping reflections pick up the weighted environment
- Zero specular stops the bounce loop early
- Increasing the bounce limit changes the color monotonically for a mirror pair
- Argument checks for trace_ray
- Render target setup, coverage mask and image layout
"""

import numpy as np
import pytest


def _add_sphere(center, radius, diffuse=(0.0, 0.0, 0.0), specular=(0.0, 0.0, 0.0), shininess=32.0):
    from whitted.scene.intersection import add_sphere, vec3

    return add_sphere(vec3(*center), radius, vec3(*diffuse), vec3(*specular), shininess)


def _add_light(position, intensity=(1.0, 1.0, 1.0)):
    from whitted.scene.intersection import add_light, vec3

    return add_light(vec3(*position), vec3(*intensity))


def _mirror_pair(specular=0.5, diffuse=0.2):
    """Two facing mirror spheres on the z axis with a light between them."""
    ks = (specular, specular, specular)
    kd = (diffuse, diffuse, diffuse)
    _add_sphere((0, 0, -5), 1.0, diffuse=kd, specular=ks)
    _add_sphere((0, 0, 5), 1.0, diffuse=kd, specular=ks)
    _add_light((0, 0, 0))


class TestTraceMiss:
    """Tests for rays that hit nothing."""

    def test_empty_scene_returns_environment(self):
        """Test a miss returns the environment color and no hit."""
        from whitted.core.integrator import trace_ray
        from whitted.scene.environment import set_environment_color

        set_environment_color((0.2, 0.3, 0.4))

        result = trace_ray((0, 0, 0), (0, 0, -1))

        assert result.hit is False
        assert result.color == pytest.approx((0.2, 0.3, 0.4), abs=1e-6)

    def test_miss_uses_gradient(self):
        """Test an upward miss returns the zenith color of a gradient."""
        from whitted.core.integrator import trace_ray
        from whitted.scene.environment import set_environment_gradient

        set_environment_gradient((1.0, 1.0, 1.0), (0.0, 0.0, 1.0))

        result = trace_ray((0, 0, 0), (0, 1, 0))

        assert result.hit is False
        assert result.color == pytest.approx((0.0, 0.0, 1.0), abs=1e-6)


class TestSingleSphere:
    """Tests with one red matte sphere in front of the camera."""

    def test_hit_geometry(self):
        """Test hit distance and normal of the primary hit."""
        from whitted.scene.intersection import intersect_ray

        _add_sphere((0, 0, -5), 1.0, diffuse=(1, 0, 0))
        _add_light((0, 5, -5))

        result = intersect_ray((0, 0, 0), (0, 0, -1))

        assert result is not None
        assert abs(result.t - 4.0) < 1e-5
        assert result.normal == pytest.approx((0.0, 0.0, 1.0), abs=1e-5)

    def test_light_level_with_center_leaves_front_unlit(self):
        """Test a light above the center is below the front point's horizon.

        The light at (0, 5, -5) lies behind the tangent plane at (0, 0, -4),
        so the point is a hit but receives no direct light.
        """
        from whitted.core.integrator import trace_ray

        _add_sphere((0, 0, -5), 1.0, diffuse=(1, 0, 0))
        _add_light((0, 5, -5))

        result = trace_ray((0, 0, 0), (0, 0, -1))

        assert result.hit is True
        assert result.color == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)

    def test_red_sphere_is_red(self):
        """Test a lit red sphere shades to a red-dominant color."""
        from whitted.core.integrator import trace_ray

        _add_sphere((0, 0, -5), 1.0, diffuse=(1, 0, 0))
        _add_light((0, 5, 0))

        result = trace_ray((0, 0, 0), (0, 0, -1))

        r, g, b = result.color
        assert result.hit is True
        # n.l for the light at (0, 5, 0) seen from (0, 0, -4)
        assert r == pytest.approx(4.0 / np.sqrt(41.0), abs=1e-4)
        assert g == pytest.approx(0.0, abs=1e-6)
        assert b == pytest.approx(0.0, abs=1e-6)

    def test_sphere_off_axis_is_missed(self):
        """Test moving the sphere aside makes the ray see the environment."""
        from whitted.core.integrator import trace_ray
        from whitted.scene.environment import set_environment_gradient

        _add_sphere((10, 0, -5), 1.0, diffuse=(1, 0, 0))
        _add_light((0, 5, -5))
        set_environment_gradient((1.0, 1.0, 1.0), (0.5, 0.7, 1.0))

        result = trace_ray((0, 0, 0), (0, 0, -1))

        assert result.hit is False
        assert result.color == pytest.approx((0.75, 0.85, 1.0), abs=1e-6)


class TestBounces:
    """Tests for the mirror bounce loop."""

    def test_bounce_limit_zero_is_direct_only(self):
        """Test limit 0 gives exactly the direct shading of the first hit."""
        from whitted.core.integrator import trace_ray

        _mirror_pair()

        result = trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=0)

        # n.l = n.h = 1, so the color is k_d + k_s
        assert result.color == pytest.approx((0.7, 0.7, 0.7), abs=1e-4)

    def test_attenuation_is_product_of_specular(self):
        """Test three bounces add 0.7 * (1 + 0.5 + 0.25 + 0.125)."""
        from whitted.core.integrator import trace_ray

        _mirror_pair()

        result = trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=3)

        assert result.color[0] == pytest.approx(0.7 * 1.875, abs=1e-3)

    def test_color_grows_with_bounce_limit(self):
        """Test each extra bounce adds energy between facing mirrors."""
        from whitted.core.integrator import trace_ray

        _mirror_pair()

        values = [trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=k).color[0] for k in range(5)]

        assert all(b > a for a, b in zip(values, values[1:]))

    def test_escaping_reflection_adds_environment(self):
        """Test a reflection that leaves the scene adds k_s times the environment."""
        from whitted.core.integrator import trace_ray
        from whitted.scene.environment import set_environment_color

        _add_sphere((0, 0, -5), 1.0, specular=(0.5, 0.5, 0.5))
        set_environment_color((0.2, 0.4, 0.6))

        result = trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=1)

        assert result.hit is True
        assert result.color == pytest.approx((0.1, 0.2, 0.3), abs=1e-5)

    def test_zero_specular_stops_early(self):
        """Test a non-reflective surface ignores the bounce limit."""
        from whitted.core.integrator import trace_ray
        from whitted.scene.environment import set_environment_color

        _add_sphere((0, 0, -5), 1.0, diffuse=(0.5, 0.5, 0.5))
        _add_light((0, 0, 0))
        set_environment_color((1.0, 1.0, 1.0))

        direct = trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=0)
        deep = trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=10)

        assert deep.color == pytest.approx(direct.color, abs=1e-6)

    def test_default_bounce_limit_from_config(self):
        """Test trace_ray uses the configured bounce limit by default."""
        from whitted.core.config import TracerConfig, configure_tracer
        from whitted.core.integrator import trace_ray

        _mirror_pair()
        configure_tracer(TracerConfig(bounce_limit=0))

        result = trace_ray((0, 0, 0), (0, 0, -1))

        assert result.color[0] == pytest.approx(0.7, abs=1e-4)


class TestTraceRayValidation:
    """Tests for trace_ray argument checks."""

    def test_zero_direction_raises(self):
        """Test a zero-length direction is rejected."""
        from whitted.core.integrator import trace_ray

        with pytest.raises(ValueError):
            trace_ray((0, 0, 0), (0, 0, 0))

    def test_negative_bounce_limit_raises(self):
        """Test a negative bounce limit is rejected."""
        from whitted.core.integrator import trace_ray

        with pytest.raises(ValueError, match="bounce_limit"):
            trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=-1)

    def test_bounce_limit_above_ceiling_raises(self):
        """Test a bounce limit above MAX_BOUNCES is rejected."""
        from whitted.core.config import MAX_BOUNCES
        from whitted.core.integrator import trace_ray

        with pytest.raises(ValueError, match="bounce_limit"):
            trace_ray((0, 0, 0), (0, 0, -1), bounce_limit=MAX_BOUNCES + 1)


class TestRenderTarget:
    """Tests for render target setup and whole-image rendering."""

    def test_render_before_setup_raises(self):
        """Test rendering without a render target raises RuntimeError."""
        from whitted.core.integrator import render_image

        with pytest.raises(RuntimeError, match="Render target not set up"):
            render_image()

    def test_invalid_dimensions_raise(self):
        """Test non-positive and oversized dimensions are rejected."""
        from whitted.core.integrator import MAX_IMAGE_WIDTH, setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(0, 10)
        with pytest.raises(ValueError):
            setup_render_target(MAX_IMAGE_WIDTH + 1, 10)

    def test_image_shape_and_dtype(self):
        """Test the image array has shape (height, width, 3)."""
        from whitted.camera.pinhole import orbit_camera, setup_camera
        from whitted.core.integrator import get_image_numpy, render_image, setup_render_target

        setup_camera(orbit_camera(distance=5.0, aspect_ratio=16 / 9))
        setup_render_target(16, 9)
        render_image()

        image = get_image_numpy()
        assert image.shape == (9, 16, 3)
        assert image.dtype == np.float32

    def test_coverage_mask(self):
        """Test alpha is 1 on the sphere and 0 in the corners."""
        from whitted.camera.pinhole import orbit_camera, setup_camera
        from whitted.core.integrator import get_alpha_numpy, render_image, setup_render_target

        _add_sphere((0, 0, 0), 1.0, diffuse=(1, 1, 1))
        setup_camera(orbit_camera(distance=5.0, vfov=60.0))
        setup_render_target(21, 21)
        render_image()

        alpha = get_alpha_numpy()
        assert alpha.shape == (21, 21)
        assert alpha[10, 10] == 1.0
        assert alpha[0, 0] == 0.0
        assert alpha[20, 20] == 0.0

    def test_background_pixels_show_environment(self):
        """Test uncovered pixels carry the environment color."""
        from whitted.camera.pinhole import orbit_camera, setup_camera
        from whitted.core.integrator import get_image_numpy, render_image, setup_render_target
        from whitted.scene.environment import set_environment_color

        set_environment_color((0.25, 0.5, 0.75))
        setup_camera(orbit_camera(distance=5.0))
        setup_render_target(8, 8)
        render_image()

        image = get_image_numpy()
        assert np.allclose(image, [0.25, 0.5, 0.75], atol=1e-6)

    def test_top_row_is_up(self):
        """Test row 0 of the image is the top of the view."""
        from whitted.camera.pinhole import orbit_camera, setup_camera
        from whitted.core.integrator import get_image_numpy, render_image, setup_render_target
        from whitted.scene.environment import set_environment_gradient

        set_environment_gradient((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        setup_camera(orbit_camera(distance=5.0, vfov=90.0))
        setup_render_target(8, 8)
        render_image()

        image = get_image_numpy()
        assert image[0, 4, 0] > image[7, 4, 0]

    def test_render_is_deterministic(self):
        """Test two passes over the same state give identical images."""
        from whitted.camera.pinhole import setup_camera
        from whitted.core.integrator import get_image_numpy, render_image, setup_render_target
        from whitted.scene.presets import create_mirror_spheres_scene

        _, camera = create_mirror_spheres_scene()
        setup_camera(camera)
        setup_render_target(32, 24)

        render_image()
        first = get_image_numpy()
        render_image()
        second = get_image_numpy()

        assert np.array_equal(first, second)

    def test_render_pixel_matches_image(self):
        """Test render_pixel agrees with the full render."""
        from whitted.camera.pinhole import setup_camera
        from whitted.core.integrator import (
            get_image_numpy,
            render_image,
            render_pixel,
            setup_render_target,
        )
        from whitted.scene.presets import create_mirror_spheres_scene

        _, camera = create_mirror_spheres_scene()
        setup_camera(camera)
        setup_render_target(16, 12)
        render_image()
        image = get_image_numpy()

        # Pixel (i, j) with j = 0 at the bottom is image row height - 1 - j
        result = render_pixel(8, 3)
        assert result.color == pytest.approx(tuple(image[12 - 1 - 3, 8]), abs=1e-4)

    def test_render_pixel_out_of_range_raises(self):
        """Test render_pixel rejects coordinates outside the target."""
        from whitted.core.integrator import render_pixel, setup_render_target

        setup_render_target(4, 4)

        with pytest.raises(ValueError, match="outside"):
            render_pixel(4, 0)
