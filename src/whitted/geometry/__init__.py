"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are implemented as Taichi functions (@ti.func) and
are shared by primary, reflection and shadow queries; the caller supplies
the offset origin and the minimum accepted ray parameter.
"""

from .sphere import HitRecord, Sphere, hit_sphere, sphere_nearest_root

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "sphere_nearest_root",
]
