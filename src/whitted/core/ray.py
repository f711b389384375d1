"""Rays and the few vector operations the tracer needs inside kernels.

Directions are never required to be unit length: the sphere test solves the
full quadratic, so t is always measured in multiples of the direction that
was passed in. Everything except check_direction runs inside Taichi scope.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> @ti.kernel
    ... def probe() -> ti.math.vec3:
    ...     r = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0))
    ...     return ray_at(r, 1.5)  # (0, 0, -3)
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Per-component magnitude under which a color or vector is treated as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """Half-line origin + t * direction, t >= 0.

    Attributes:
        origin: Start point.
        direction: Travel direction, any non-zero length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Point reached after travelling t direction-lengths along the ray."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror direction of incident about a unit normal.

    R = I - 2 (I . N) N. Both I and R point away from the eye, so for a
    camera ray hitting a surface I . N < 0 and R . N > 0.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def offset_point(point: vec3, normal: vec3, epsilon: ti.f32) -> vec3:
    """Lift a surface point off the surface by epsilon along its normal.

    Shadow and reflection rays start from the lifted point so they do not
    immediately re-hit the surface they leave.
    """
    return point + normal * epsilon


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """1 when every component of v is within NEAR_ZERO_EPSILON of zero."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


def check_direction(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Validate a ray direction handed in from Python.

    Kernels never see a degenerate direction because host entry points call
    this first.

    Args:
        direction: (x, y, z) sequence.

    Returns:
        The direction as three floats.

    Raises:
        ValueError: On a wrong component count or a zero-length vector.
    """
    if len(direction) != 3:
        raise ValueError(f"Ray direction must have 3 components, got {len(direction)}")

    dx, dy, dz = (float(c) for c in direction)
    if dx * dx + dy * dy + dz * dz == 0.0:
        raise ValueError("Ray direction must not be zero-length")
    return dx, dy, dz
