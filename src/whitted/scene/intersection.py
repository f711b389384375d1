"""Scene storage and closest-hit intersection.

This module holds the sphere and point-light storage of the scene and the
scene-level ray query shared by primary, reflection and shadow rays.

The scene stores primitives in Taichi fields (Structure of Arrays). Each
sphere owns a copy of its Phong material. Insertion order is preserved and
defines the scan order of the closest-hit query: when two spheres are hit at
exactly the same distance, the one added first wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.scene.intersection import (
    ...     add_sphere, add_light, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -5), 1.0, vec3(1, 0, 0), vec3(0, 0, 0), 32.0)
    >>> add_light(vec3(0, 5, -5), vec3(1, 1, 1))
    >>> # Use intersect_scene within a Taichi kernel
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from whitted.core.config import T_MAX, get_tracer_config
from whitted.core.ray import check_direction
from whitted.geometry.sphere import Sphere, hit_sphere
from whitted.materials.phong import PhongMaterial

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The ray parameter of the closest intersection.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal, pointing outward from the sphere
            center. Only valid if hit == 1.
        material: Copy of the hit sphere's material. Only valid if hit == 1.
        sphere_index: Index of the hit sphere, -1 for a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material: PhongMaterial
    sphere_index: ti.i32


# Maximum number of primitives and lights supported in the scene
MAX_SPHERES = 64
MAX_LIGHTS = 16

# Sphere storage: Structure of Arrays layout for GPU efficiency
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_specular = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_shininess = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Point light storage
light_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_intensities = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all spheres and lights from the scene.

    Resets the counts to zero. The field data is overwritten when new
    entries are added.
    """
    num_spheres[None] = 0
    num_lights[None] = 0


def add_sphere(
    center: vec3,
    radius: float,
    diffuse: vec3,
    specular: vec3,
    shininess: float,
) -> int:
    """Add a sphere with its material to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere (should be positive).
        diffuse: The diffuse coefficient (RGB).
        specular: The specular coefficient (RGB).
        shininess: The specular exponent.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    sphere_diffuse[idx] = diffuse
    sphere_specular[idx] = specular
    sphere_shininess[idx] = shininess
    num_spheres[None] = idx + 1
    return idx


def add_light(position: vec3, intensity: vec3) -> int:
    """Add a point light to the scene.

    Args:
        position: The light position.
        intensity: The light intensity (RGB, components should be >= 0).

    Returns:
        The index of the added light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    light_positions[idx] = position
    light_intensities[idx] = intensity
    num_lights[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


@ti.func
def get_sphere_material(index: ti.i32) -> PhongMaterial:
    """Get a copy of the material of a stored sphere."""
    return PhongMaterial(
        diffuse=sphere_diffuse[index],
        specular=sphere_specular[index],
        shininess=sphere_shininess[index],
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material=PhongMaterial(
            diffuse=vec3(0.0, 0.0, 0.0),
            specular=vec3(0.0, 0.0, 0.0),
            shininess=1.0,
        ),
        sphere_index=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
) -> SceneHitRecord:
    """Test a ray against all spheres in the scene.

    Scans the spheres in insertion order and keeps the smallest valid ray
    parameter. The comparison is strict, so an equal-distance hit found
    later never replaces an earlier one.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (not zero-length).
        t_min: Minimum ray parameter accepted as a hit.

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record if
        no sphere qualifies.
    """
    closest_t = T_MAX
    result = _make_miss_record()

    n_spheres = num_spheres[None]
    ti.loop_config(serialize=True)
    for i in range(n_spheres):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                material=get_sphere_material(i),
                sphere_index=i,
            )

    return result


# =============================================================================
# Python-side Query
# =============================================================================


@dataclass
class HitResult:
    """Result of a Python-side intersection query.

    Attributes:
        t: The ray parameter of the closest hit.
        point: The hit position.
        normal: The unit outward normal at the hit position.
        sphere_index: Index of the hit sphere in insertion order.
        diffuse: Diffuse coefficient of the hit sphere.
        specular: Specular coefficient of the hit sphere.
        shininess: Specular exponent of the hit sphere.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    sphere_index: int
    diffuse: tuple[float, float, float]
    specular: tuple[float, float, float]
    shininess: float


_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_sphere_index = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _intersect_kernel(origin: vec3, direction: vec3, t_min: ti.f32):
    rec = intersect_scene(origin, direction, t_min)
    _query_hit[None] = rec.hit
    _query_t[None] = rec.t
    _query_point[None] = rec.point
    _query_normal[None] = rec.normal
    _query_sphere_index[None] = rec.sphere_index


def _to_tuple(v) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def intersect_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    t_min: float | None = None,
) -> HitResult | None:
    """Run the closest-hit query from Python.

    Args:
        origin: The ray origin as (x, y, z).
        direction: The ray direction as (x, y, z). Need not be normalized.
        t_min: Minimum accepted ray parameter. Defaults to the configured
            hit epsilon.

    Returns:
        A HitResult for the closest hit, or None if the ray misses.

    Raises:
        ValueError: If the direction is zero-length.
    """
    direction = check_direction(direction)
    if t_min is None:
        t_min = get_tracer_config().hit_epsilon

    _intersect_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        t_min,
    )

    if _query_hit[None] == 0:
        return None

    index = int(_query_sphere_index[None])
    return HitResult(
        t=float(_query_t[None]),
        point=_to_tuple(_query_point[None]),
        normal=_to_tuple(_query_normal[None]),
        sphere_index=index,
        diffuse=_to_tuple(sphere_diffuse[index]),
        specular=_to_tuple(sphere_specular[index]),
        shininess=float(sphere_shininess[index]),
    )
