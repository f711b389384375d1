"""Blinn-Phong material model.

A Phong material carries three parameters:

- diffuse (k_d): per-channel Lambertian coefficient
- specular (k_s): per-channel coefficient of the Blinn-Phong highlight,
  also used by the tracer as the mirror reflectance for bounces
- shininess (n): exponent controlling the width of the highlight lobe

For a single light with unit direction L, view direction V and normal N the
reflected radiance is:

    k_d * max(N . L, 0) * I  +  k_s * max(N . H, 0)^n * I,   H = normalize(L + V)

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.materials.phong import PhongMaterial, blinn_phong
    >>> # Use within a Taichi kernel:
    >>> # color += blinn_phong(material, normal, light_dir, view_dir, intensity)
"""

import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class PhongMaterial:
    """Blinn-Phong material properties.

    Attributes:
        diffuse: The diffuse coefficient (RGB, conceptually in [0, 1]).
        specular: The specular coefficient (RGB, conceptually in [0, 1]).
            Doubles as the mirror reflectance when tracing bounces.
        shininess: The specular exponent (positive).
    """

    diffuse: vec3
    specular: vec3
    shininess: ti.f32


@ti.func
def blinn_phong(
    material: PhongMaterial,
    normal: vec3,
    light_dir: vec3,
    view_dir: vec3,
    intensity: vec3,
) -> vec3:
    """Evaluate the Blinn-Phong contribution of one unoccluded light.

    Args:
        material: The surface material.
        normal: The unit surface normal.
        light_dir: Unit vector from the surface point toward the light.
        view_dir: Unit vector from the surface point toward the viewer.
        intensity: The light intensity (RGB).

    Returns:
        The diffuse plus specular radiance for this light.
    """
    half_dir = tm.normalize(light_dir + view_dir)

    diff = tm.max(tm.dot(normal, light_dir), 0.0)
    spec = ti.pow(tm.max(tm.dot(normal, half_dir), 0.0), material.shininess)

    return material.diffuse * diff * intensity + material.specular * spec * intensity


# =============================================================================
# Python-side validation
# =============================================================================


def validate_color(name: str, value: Sequence[float]) -> tuple[float, float, float]:
    """Validate and normalize an RGB triple.

    Args:
        name: Parameter name used in error messages.
        value: A sequence of three numbers.

    Returns:
        The value as a tuple of three floats.

    Raises:
        ValueError: If the value does not have exactly three finite components.
    """
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(value)}")

    result = (float(value[0]), float(value[1]), float(value[2]))
    for i, component in enumerate(result):
        if not math.isfinite(component):
            raise ValueError(f"{name} component {i} = {component} is not finite")
    return result


def validate_phong_params(
    diffuse: Sequence[float],
    specular: Sequence[float],
    shininess: float,
) -> tuple[tuple[float, float, float], tuple[float, float, float], float]:
    """Validate Phong material parameters.

    Coefficients are not clamped to [0, 1]; out-of-range values are legal and
    left to the presentation layer.

    Args:
        diffuse: The diffuse coefficient as (R, G, B).
        specular: The specular coefficient as (R, G, B).
        shininess: The specular exponent.

    Returns:
        Tuple of (diffuse, specular, shininess) with normalized types.

    Raises:
        ValueError: If a coefficient is malformed or shininess is not positive.
    """
    diffuse_rgb = validate_color("diffuse", diffuse)
    specular_rgb = validate_color("specular", specular)

    shininess = float(shininess)
    if not shininess > 0.0:
        raise ValueError(f"Shininess = {shininess} must be positive")

    return diffuse_rgb, specular_rgb, shininess
