"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray dataclass, reflection and secondary-ray offsets
    config: Bounce ceiling, epsilons and runtime tracer settings
    shading: Blinn-Phong direct lighting with shadow rays
    integrator: Recursive mirror trace driver, render target and kernels
    renderer: Convenience wrapper owning the render target

The core module evaluates one camera ray per pixel: closest-hit query,
direct shading with shadow tests, then iterative mirror bounces weighted
by the running product of specular coefficients, with an environment
lookup wherever a ray leaves the scene.

All compute-intensive operations use Taichi kernels for GPU acceleration.
"""

from .config import (
    DEFAULT_BOUNCE_LIMIT,
    HIT_EPSILON,
    MAX_BOUNCES,
    RAY_OFFSET,
    TracerConfig,
    configure_tracer,
    get_tracer_config,
)
from .ray import (
    Ray,
    check_direction,
    make_ray,
    near_zero,
    offset_point,
    ray_at,
    reflect,
    vec3,
)

# Note: shading, integrator and renderer are NOT imported here to avoid
# circular imports with the scene package. Import them directly:
#   from whitted.core.integrator import trace_ray
#   from whitted.core.renderer import Renderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "reflect",
    "offset_point",
    "near_zero",
    "check_direction",
    # Configuration
    "TracerConfig",
    "configure_tracer",
    "get_tracer_config",
    "MAX_BOUNCES",
    "DEFAULT_BOUNCE_LIMIT",
    "HIT_EPSILON",
    "RAY_OFFSET",
]
