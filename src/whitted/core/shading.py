"""Direct lighting with hard shadows.

A surface point is lit by every point light whose segment from the point is
not blocked by a sphere. Unblocked lights contribute the Blinn-Phong term of
the surface material; there is no ambient term.

Shadow rays start at the surface point pushed along the normal by the
configured ray offset and are aimed at the light. An occluder only counts if
it lies strictly between the point and the light; geometry behind the light
casts no shadow.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.core.shading import shade
    >>> # Use shade(material, position, normal, view) within a Taichi kernel
"""

from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from whitted.core.config import ensure_tracer_configured, get_hit_epsilon, get_ray_offset
from whitted.core.ray import check_direction, offset_point
from whitted.materials.phong import PhongMaterial, blinn_phong, validate_phong_params
from whitted.scene.intersection import (
    intersect_scene,
    light_intensities,
    light_positions,
    num_lights,
)

vec3 = tm.vec3


@ti.func
def is_light_visible(position: vec3, normal: vec3, light_position: vec3) -> ti.i32:
    """Test whether a light is visible from a surface point.

    Args:
        position: The surface point.
        normal: The outward unit normal at the point.
        light_position: The position of the point light.

    Returns:
        1 if no sphere blocks the segment toward the light, 0 otherwise.
    """
    origin = offset_point(position, normal, get_ray_offset())
    to_light = light_position - position
    light_distance = tm.length(to_light)
    shadow_dir = to_light / light_distance

    visible = 1
    rec = intersect_scene(origin, shadow_dir, get_hit_epsilon())
    if rec.hit == 1 and rec.t <= light_distance:
        visible = 0
    return visible


@ti.func
def shade(material: PhongMaterial, position: vec3, normal: vec3, view: vec3) -> vec3:
    """Compute the direct illumination at a surface point.

    Args:
        material: The surface material.
        position: The surface point.
        normal: The outward unit normal at the point.
        view: Unit vector from the point toward the viewer.

    Returns:
        The sum of Blinn-Phong contributions of all unshadowed lights (RGB).
        Zero if the scene has no lights.
    """
    color = vec3(0.0, 0.0, 0.0)

    ti.loop_config(serialize=True)
    for i in range(num_lights[None]):
        light_pos = light_positions[i]
        if is_light_visible(position, normal, light_pos) == 1:
            light_dir = tm.normalize(light_pos - position)
            color += blinn_phong(material, normal, light_dir, view, light_intensities[i])

    return color


# =============================================================================
# Python-side Evaluation
# =============================================================================


@ti.kernel
def _shade_kernel(
    diffuse: vec3,
    specular: vec3,
    shininess: ti.f32,
    position: vec3,
    normal: vec3,
    view: vec3,
) -> vec3:
    material = PhongMaterial(diffuse=diffuse, specular=specular, shininess=shininess)
    return shade(material, position, tm.normalize(normal), tm.normalize(view))


def shade_point(
    position: Sequence[float],
    normal: Sequence[float],
    view: Sequence[float],
    diffuse: Sequence[float],
    specular: Sequence[float],
    shininess: float,
) -> tuple[float, float, float]:
    """Evaluate direct lighting at a point from Python.

    Shadow rays are traced against the current scene contents.

    Args:
        position: The surface point as (x, y, z).
        normal: The surface normal (normalized before use).
        view: Direction toward the viewer (normalized before use).
        diffuse: Diffuse coefficient (RGB).
        specular: Specular coefficient (RGB).
        shininess: Specular exponent (> 0).

    Returns:
        The shaded color as (R, G, B).

    Raises:
        ValueError: If a vector is zero-length or the material is invalid.
    """
    n = check_direction(normal)
    v = check_direction(view)
    kd, ks, alpha = validate_phong_params(diffuse, specular, shininess)
    ensure_tracer_configured()

    color = _shade_kernel(
        vec3(*kd),
        vec3(*ks),
        alpha,
        vec3(position[0], position[1], position[2]),
        vec3(*n),
        vec3(*v),
    )
    return (float(color[0]), float(color[1]), float(color[2]))
