"""Unit tests for scene storage and the closest-hit query.

Tests cover:
- Adding spheres and lights, clearing the scene
- Capacity limits
- Closest hit among several spheres
- Equal-distance ties resolved by insertion order
- Material copied into the hit record
- Python-side intersect_ray query
"""

import pytest
import taichi as ti


def _add(center, radius, diffuse=(0.5, 0.5, 0.5), specular=(0.0, 0.0, 0.0), shininess=32.0):
    from whitted.scene.intersection import add_sphere, vec3

    return add_sphere(vec3(*center), radius, vec3(*diffuse), vec3(*specular), shininess)


class TestSceneStorage:
    """Tests for sphere and light storage."""

    def test_add_sphere_returns_sequential_indices(self):
        """Test sphere indices follow insertion order."""
        from whitted.scene.intersection import get_sphere_count

        assert _add((0, 0, -5), 1.0) == 0
        assert _add((0, 0, -8), 1.0) == 1
        assert get_sphere_count() == 2

    def test_add_light(self):
        """Test lights are stored and counted."""
        from whitted.scene.intersection import add_light, get_light_count, vec3

        assert add_light(vec3(0, 5, 0), vec3(1, 1, 1)) == 0
        assert add_light(vec3(1, 5, 0), vec3(0.5, 0.5, 0.5)) == 1
        assert get_light_count() == 2

    def test_clear_scene(self):
        """Test clear_scene removes spheres and lights."""
        from whitted.scene.intersection import (
            add_light,
            clear_scene,
            get_light_count,
            get_sphere_count,
            vec3,
        )

        _add((0, 0, -5), 1.0)
        add_light(vec3(0, 5, 0), vec3(1, 1, 1))
        clear_scene()

        assert get_sphere_count() == 0
        assert get_light_count() == 0

    def test_sphere_overflow_raises(self):
        """Test exceeding MAX_SPHERES raises RuntimeError."""
        from whitted.scene.intersection import MAX_SPHERES

        for i in range(MAX_SPHERES):
            _add((float(i), 0, -5), 0.1)

        with pytest.raises(RuntimeError, match="Maximum number of spheres"):
            _add((0, 0, -5), 0.1)

    def test_light_overflow_raises(self):
        """Test exceeding MAX_LIGHTS raises RuntimeError."""
        from whitted.scene.intersection import MAX_LIGHTS, add_light, vec3

        for i in range(MAX_LIGHTS):
            add_light(vec3(float(i), 5, 0), vec3(1, 1, 1))

        with pytest.raises(RuntimeError, match="Maximum number of lights"):
            add_light(vec3(0, 5, 0), vec3(1, 1, 1))


class TestIntersectScene:
    """Tests for the kernel-side closest-hit query."""

    def test_empty_scene_misses(self):
        """Test a ray misses when the scene has no spheres."""
        from whitted.scene.intersection import intersect_scene, vec3

        hit = ti.field(dtype=ti.i32, shape=())
        index = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 1e-4)
            hit[None] = rec.hit
            index[None] = rec.sphere_index

        test_kernel()
        assert hit[None] == 0
        assert index[None] == -1

    def test_closest_sphere_wins(self):
        """Test the nearer sphere is reported regardless of insertion order."""
        from whitted.scene.intersection import intersect_scene, vec3

        _add((0, 0, -10), 1.0, diffuse=(0, 0, 1))
        _add((0, 0, -5), 1.0, diffuse=(1, 0, 0))

        t_val = ti.field(dtype=ti.f32, shape=())
        index = ti.field(dtype=ti.i32, shape=())
        diffuse = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 1e-4)
            t_val[None] = rec.t
            index[None] = rec.sphere_index
            diffuse[None] = rec.material.diffuse

        test_kernel()
        assert abs(t_val[None] - 4.0) < 1e-5
        assert index[None] == 1
        assert abs(diffuse[None][0] - 1.0) < 1e-6
        assert abs(diffuse[None][2]) < 1e-6

    def test_equal_distance_first_added_wins(self):
        """Test identical spheres resolve to the one added first."""
        from whitted.scene.intersection import intersect_scene, vec3

        _add((0, 0, -5), 1.0, diffuse=(1, 0, 0))
        _add((0, 0, -5), 1.0, diffuse=(0, 1, 0))

        index = ti.field(dtype=ti.i32, shape=())
        diffuse = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 1e-4)
            index[None] = rec.sphere_index
            diffuse[None] = rec.material.diffuse

        test_kernel()
        assert index[None] == 0
        assert abs(diffuse[None][0] - 1.0) < 1e-6

    def test_material_copied_into_record(self):
        """Test specular and shininess of the hit sphere are returned."""
        from whitted.scene.intersection import intersect_scene, vec3

        _add((0, 0, -5), 1.0, specular=(0.25, 0.5, 0.75), shininess=12.0)

        specular = ti.field(dtype=ti.math.vec3, shape=())
        shininess = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            rec = intersect_scene(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 1e-4)
            specular[None] = rec.material.specular
            shininess[None] = rec.material.shininess

        test_kernel()
        s = specular[None]
        assert abs(s[0] - 0.25) < 1e-6
        assert abs(s[1] - 0.5) < 1e-6
        assert abs(s[2] - 0.75) < 1e-6
        assert abs(shininess[None] - 12.0) < 1e-6


class TestIntersectRay:
    """Tests for the Python-side query."""

    def test_hit_result(self):
        """Test intersect_ray returns the hit details."""
        from whitted.scene.intersection import intersect_ray

        _add((0, 0, -5), 1.0, diffuse=(1, 0, 0), specular=(0.1, 0.2, 0.3), shininess=8.0)

        result = intersect_ray((0, 0, 0), (0, 0, -1))

        assert result is not None
        assert abs(result.t - 4.0) < 1e-5
        assert abs(result.point[2] + 4.0) < 1e-5
        assert abs(result.normal[2] - 1.0) < 1e-5
        assert result.sphere_index == 0
        assert result.diffuse == pytest.approx((1.0, 0.0, 0.0))
        assert result.specular == pytest.approx((0.1, 0.2, 0.3), abs=1e-6)
        assert result.shininess == pytest.approx(8.0)

    def test_miss_returns_none(self):
        """Test intersect_ray returns None on a miss."""
        from whitted.scene.intersection import intersect_ray

        _add((0, 0, -5), 1.0)

        assert intersect_ray((0, 0, 0), (0, 0, 1)) is None

    def test_t_min_respected(self):
        """Test a custom t_min skips the nearer sphere."""
        from whitted.scene.intersection import intersect_ray

        _add((0, 0, -5), 1.0)
        _add((0, 0, -10), 1.0)

        result = intersect_ray((0, 0, 0), (0, 0, -1), t_min=5.0)

        assert result is not None
        assert result.sphere_index == 1
        assert abs(result.t - 9.0) < 1e-4

    def test_zero_direction_raises(self):
        """Test a zero-length direction is rejected."""
        from whitted.scene.intersection import intersect_ray

        with pytest.raises(ValueError):
            intersect_ray((0, 0, 0), (0, 0, 0))
