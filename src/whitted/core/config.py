"""Tracer configuration shared by the shading and tracing kernels.

Two kinds of settings control a render pass:

- Compile-time ceilings (module constants). MAX_BOUNCES bounds the
  reflection loop structurally; the kernels unroll against it.
- Runtime values (TracerConfig), stored in scalar Taichi fields so that
  changing them does not recompile any kernel. They must not change while a
  render kernel is running.

Example:
    >>> from whitted.core.config import TracerConfig, configure_tracer
    >>> configure_tracer(TracerConfig(bounce_limit=3))
"""

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)

# =============================================================================
# Compile-time Constants
# =============================================================================

# Hard ceiling on reflection bounces; a runtime bounce_limit can only lower it
MAX_BOUNCES = 16

# Default number of reflection bounces per camera ray
DEFAULT_BOUNCE_LIMIT = 5

# Smallest ray parameter accepted as a hit (rejects self-intersections)
HIT_EPSILON = 1e-4

# Distance secondary ray origins are pushed along the surface normal
RAY_OFFSET = 1e-3

# Initial closest-hit distance for scene queries
T_MAX = 1e30


@dataclass
class TracerConfig:
    """Runtime settings for a render pass.

    Attributes:
        bounce_limit: Number of mirror bounces to follow after the primary
            hit. 0 disables reflections. Must not exceed MAX_BOUNCES.
        hit_epsilon: Minimum ray parameter accepted as a hit.
        ray_offset: Offset applied along the normal to shadow and reflection
            ray origins.
    """

    bounce_limit: int = DEFAULT_BOUNCE_LIMIT
    hit_epsilon: float = HIT_EPSILON
    ray_offset: float = RAY_OFFSET

    def validate(self) -> None:
        """Check the configuration values.

        Raises:
            ValueError: If bounce_limit is outside [0, MAX_BOUNCES] or an
                epsilon is not positive.
        """
        if not 0 <= self.bounce_limit <= MAX_BOUNCES:
            raise ValueError(
                f"bounce_limit = {self.bounce_limit} is outside [0, {MAX_BOUNCES}]"
            )
        if not self.hit_epsilon > 0.0:
            raise ValueError(f"hit_epsilon = {self.hit_epsilon} must be positive")
        if not self.ray_offset > 0.0:
            raise ValueError(f"ray_offset = {self.ray_offset} must be positive")


# =============================================================================
# Taichi Fields for Runtime Settings
# =============================================================================

_bounce_limit = ti.field(dtype=ti.i32, shape=())
_hit_epsilon = ti.field(dtype=ti.f32, shape=())
_ray_offset = ti.field(dtype=ti.f32, shape=())
_config_initialized = ti.field(dtype=ti.i32, shape=())


def configure_tracer(config: TracerConfig | None = None) -> None:
    """Write a tracer configuration into the kernel-visible fields.

    Args:
        config: The configuration to apply. None applies the defaults.

    Raises:
        ValueError: If the configuration is invalid.
    """
    if config is None:
        config = TracerConfig()
    config.validate()

    _bounce_limit[None] = config.bounce_limit
    _hit_epsilon[None] = config.hit_epsilon
    _ray_offset[None] = config.ray_offset
    _config_initialized[None] = 1

    logger.debug(
        "Tracer configured: bounce_limit=%d hit_epsilon=%g ray_offset=%g",
        config.bounce_limit,
        config.hit_epsilon,
        config.ray_offset,
    )


def ensure_tracer_configured() -> None:
    """Apply the default configuration if none has been set yet."""
    if _config_initialized[None] == 0:
        configure_tracer()


def get_tracer_config() -> TracerConfig:
    """Get the active tracer configuration.

    Returns:
        The configuration currently stored in the Taichi fields (defaults are
        applied first if nothing was configured).
    """
    ensure_tracer_configured()
    return TracerConfig(
        bounce_limit=int(_bounce_limit[None]),
        hit_epsilon=float(_hit_epsilon[None]),
        ray_offset=float(_ray_offset[None]),
    )


def reset_tracer_config() -> None:
    """Forget the active configuration so the defaults apply on next use."""
    _config_initialized[None] = 0


@ti.func
def get_bounce_limit() -> ti.i32:
    """Get the runtime bounce limit inside a kernel."""
    return _bounce_limit[None]


@ti.func
def get_hit_epsilon() -> ti.f32:
    """Get the runtime hit epsilon inside a kernel."""
    return _hit_epsilon[None]


@ti.func
def get_ray_offset() -> ti.f32:
    """Get the runtime secondary-ray offset inside a kernel."""
    return _ray_offset[None]
