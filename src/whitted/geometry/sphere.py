"""Analytic ray-sphere intersection.

For a ray o + t*d and a sphere (c, r), with oc = o - c, hits satisfy

    (d.d) t^2 + 2 (oc.d) t + (oc.oc - r^2) = 0

Only the nearer root counts. If it falls outside (t_min, t_max) the sphere
is missed, even when the farther root would qualify. So a ray that starts
inside a sphere never hits it. A grazing ray with a zero discriminant also
misses.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """Kernel-side sphere geometry.

    Attributes:
        center: World-space center.
        radius: Strictly positive radius.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Result of a sphere test.

    Attributes:
        hit: 1 on a hit, 0 otherwise. The other fields are meaningful only
            when hit is 1.
        t: Ray parameter of the hit.
        point: World-space hit position.
        normal: Outward unit normal, (point - center) / radius.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def sphere_nearest_root(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
):
    """Return (has_roots, t) for the nearer root of the quadratic.

    has_roots is 1 only for a strictly positive discriminant; t is 0 when
    there are no roots. ray_direction must be non-zero but need not be unit.
    """
    oc = ray_origin - sphere.center
    qa = tm.dot(ray_direction, ray_direction)
    half_b = tm.dot(oc, ray_direction)
    qc = tm.dot(oc, oc) - sphere.radius * sphere.radius

    # Quarter discriminant: (b/2)^2 - ac has the same sign as b^2 - 4ac
    quarter_disc = half_b * half_b - qa * qc

    has_roots = 0
    t = 0.0
    if quarter_disc > 0.0:
        has_roots = 1
        t = (-half_b - ti.sqrt(quarter_disc)) / qa

    return has_roots, t


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with one sphere inside the open interval (t_min, t_max).

    Args:
        ray_origin: Ray start.
        ray_direction: Ray direction, not necessarily normalized.
        sphere: Sphere to test.
        t_min: Lower bound, the self-intersection epsilon for secondary rays.
        t_max: Upper bound, usually the closest hit found so far.

    Returns:
        HitRecord with hit == 0 on a miss.
    """
    rec = HitRecord(hit=0, t=0.0, point=vec3(0.0), normal=vec3(0.0))

    has_roots, t = sphere_nearest_root(ray_origin, ray_direction, sphere)
    if has_roots == 1 and t > t_min and t < t_max:
        p = ray_origin + t * ray_direction
        rec.hit = 1
        rec.t = t
        rec.point = p
        rec.normal = tm.normalize(p - sphere.center)

    return rec
