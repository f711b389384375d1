"""Whitted-style trace driver, render target and rendering kernels.

This module evaluates the color seen along a camera ray:

1. Find the closest sphere hit. A miss returns the environment color.
2. Shade the hit with direct Blinn-Phong lighting and shadow rays.
3. Follow perfect mirror reflections. Each bounce adds the shaded color of
   the next hit weighted by the running product of specular coefficients
   of all surfaces reflected so far. A reflection ray that escapes adds the
   weighted environment color and ends the path.

The bounce loop is iterative. MAX_BOUNCES bounds it at compile time; the
runtime bounce limit from the tracer configuration can only lower that
count. Paths whose attenuation has dropped to zero stop early.

Key features:
    - One deterministic ray per pixel (no sampling, no accumulation)
    - Coverage (alpha) of 1 for pixels whose primary ray hits a sphere
    - Runtime bounce limit without kernel recompilation

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.core.integrator import (
    ...     render_image, setup_render_target, get_image_numpy
    ... )
    >>> from whitted.scene.presets import create_mirror_spheres_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_mirror_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(512, 512)
    >>> render_image()
    >>> image = get_image_numpy()
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import get_pixel_ray
from whitted.core.config import (
    MAX_BOUNCES,
    ensure_tracer_configured,
    get_bounce_limit,
    get_hit_epsilon,
    get_ray_offset,
    get_tracer_config,
)
from whitted.core.ray import check_direction, near_zero, offset_point, reflect
from whitted.core.shading import shade
from whitted.scene.environment import sample_environment
from whitted.scene.intersection import intersect_scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Trace Driver
# =============================================================================


@ti.func
def trace_color(ray_origin: vec3, ray_direction: vec3, bounce_limit: ti.i32):
    """Compute the color seen along a ray.

    Args:
        ray_origin: The ray origin.
        ray_direction: The ray direction (not zero-length).
        bounce_limit: Number of mirror bounces to follow after the primary
            hit. Values above MAX_BOUNCES are capped by the loop.

    Returns:
        A tuple (color, hit) where color is the accumulated RGB value and hit
        is 1 if the primary ray hit a sphere, 0 otherwise.
    """
    color = vec3(0.0, 0.0, 0.0)
    hit = 0

    rec = intersect_scene(ray_origin, ray_direction, get_hit_epsilon())

    if rec.hit == 0:
        color = sample_environment(ray_direction)
    else:
        hit = 1
        color = shade(rec.material, rec.point, rec.normal, -tm.normalize(ray_direction))

        attenuation = rec.material.specular
        point = rec.point
        normal = rec.normal
        direction = ray_direction

        # Active flag for path continuation (no break inside ti.func loops)
        active = 1

        for bounce in range(MAX_BOUNCES):
            if active == 1:
                if bounce >= bounce_limit or near_zero(attenuation):
                    active = 0
                else:
                    reflect_origin = offset_point(point, normal, get_ray_offset())
                    reflect_dir = reflect(direction, normal)
                    bounce_rec = intersect_scene(reflect_origin, reflect_dir, get_hit_epsilon())

                    if bounce_rec.hit == 0:
                        color += attenuation * sample_environment(reflect_dir)
                        active = 0
                    else:
                        view = -tm.normalize(reflect_dir)
                        color += attenuation * shade(
                            bounce_rec.material, bounce_rec.point, bounce_rec.normal, view
                        )
                        attenuation *= bounce_rec.material.specular
                        point = bounce_rec.point
                        normal = bounce_rec.normal
                        direction = reflect_dir

    return color, hit


@dataclass
class TraceResult:
    """Result of tracing a single ray from Python.

    Attributes:
        color: The accumulated color as (R, G, B). Not clamped.
        hit: Whether the primary ray hit a sphere.
    """

    color: tuple[float, float, float]
    hit: bool


_trace_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_trace_hit = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_kernel(origin: vec3, direction: vec3, bounce_limit: ti.i32):
    color, hit = trace_color(origin, direction, bounce_limit)
    _trace_color[None] = color
    _trace_hit[None] = hit


def trace_ray(
    origin: Sequence[float],
    direction: Sequence[float],
    bounce_limit: int | None = None,
) -> TraceResult:
    """Trace a single ray against the current scene from Python.

    Args:
        origin: The ray origin as (x, y, z).
        direction: The ray direction as (x, y, z). Need not be normalized.
        bounce_limit: Number of mirror bounces to follow. Defaults to the
            configured bounce limit.

    Returns:
        The traced color and primary hit flag.

    Raises:
        ValueError: If the direction is zero-length or the bounce limit is
            outside [0, MAX_BOUNCES].
    """
    dx, dy, dz = check_direction(direction)
    if bounce_limit is None:
        bounce_limit = get_tracer_config().bounce_limit
    elif not 0 <= bounce_limit <= MAX_BOUNCES:
        raise ValueError(f"bounce_limit = {bounce_limit} is outside [0, {MAX_BOUNCES}]")
    ensure_tracer_configured()

    _trace_kernel(vec3(origin[0], origin[1], origin[2]), vec3(dx, dy, dz), bounce_limit)

    color = _trace_color[None]
    return TraceResult(
        color=(float(color[0]), float(color[1]), float(color[2])),
        hit=bool(_trace_hit[None]),
    )


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Coverage buffer: 1 where the primary ray hit a sphere, 0 for background
_alpha_buffer = ti.field(dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()
    logger.debug("Render target set to %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _alpha_buffer.fill(0.0)


def reset_render_target() -> None:
    """Mark the render target as not set up."""
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32):
    """Trace one ray through every active pixel.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
    """
    for i, j in ti.ndrange(width, height):
        ray = get_pixel_ray(i, j, width, height)
        color, hit = trace_color(ray.origin, ray.direction, get_bounce_limit())

        # Replace NaN/Inf with zero in the stored image
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _color_buffer[i, j] = color
        _alpha_buffer[i, j] = ti.cast(hit, ti.f32)


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32):
    ray = get_pixel_ray(pixel_i, pixel_j, width, height)
    color, hit = trace_color(ray.origin, ray.direction, get_bounce_limit())
    _trace_color[None] = color
    _trace_hit[None] = hit


# =============================================================================
# Public Rendering API
# =============================================================================


def render_pixel(pixel_i: int, pixel_j: int) -> TraceResult:
    """Trace the primary ray of a single pixel.

    Intended for testing and debugging; the render target is not written.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).

    Returns:
        The traced color and primary hit flag for the pixel.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the pixel lies outside the render target.
    """
    _check_render_target_initialized()
    ensure_tracer_configured()

    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} image")

    _render_single_pixel(pixel_i, pixel_j, width, height)

    color = _trace_color[None]
    return TraceResult(
        color=(float(color[0]), float(color[1]), float(color[2])),
        hit=bool(_trace_hit[None]),
    )


def render_image() -> None:
    """Render every pixel of the render target once.

    Uses the current camera, scene, environment and tracer configuration.
    Repeated calls with unchanged state produce identical images.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    ensure_tracer_configured()

    width, height = get_image_dimensions()
    _render_kernel(width, height)


def _to_image_layout(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Crop a (W, H, ...) buffer and convert it to top-left-origin (H, W, ...)."""
    active = buffer[:width, :height]

    # Transpose from (width, height, ...) to (height, width, ...)
    axes = (1, 0) + tuple(range(2, active.ndim))
    image = np.transpose(active, axes)

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    return np.flipud(image)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Values are linear and unclamped; tone mapping and clamping are left to
    the presentation layer.

    Returns:
        NumPy array of shape (height, width, 3) with dtype float32.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    image = _to_image_layout(_color_buffer.to_numpy(), width, height)
    return np.ascontiguousarray(image, dtype=np.float32)


def get_alpha_numpy() -> npt.NDArray[np.float32]:
    """Get the coverage mask as a NumPy array.

    Returns:
        NumPy array of shape (height, width) with dtype float32; 1.0 where the
        primary ray hit a sphere, 0.0 for background pixels.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    alpha = _to_image_layout(_alpha_buffer.to_numpy(), width, height)
    return np.ascontiguousarray(alpha, dtype=np.float32)
