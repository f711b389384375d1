"""Environment lookup for rays that leave the scene.

Any ray that escapes all geometry (a camera ray that misses, or a reflection
ray after a bounce) is resolved by looking up a color for its direction.
Three lookup modes are supported:

- CONSTANT: a single background color.
- GRADIENT: a vertical sky gradient blending horizon and zenith colors by
  the y component of the normalized direction.
- CUBEMAP: six square faces with nearest-texel lookup. Faces follow the
  OpenGL order and orientation (+X, -X, +Y, -Y, +Z, -Z).

Cube maps authored for y-up worlds can be sampled by a z-up scene with the
swap_yz option, which looks up the (x, z, y) swizzle of the direction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.scene.environment import set_environment_gradient
    >>> set_environment_gradient(horizon=(1.0, 1.0, 1.0), zenith=(0.5, 0.7, 1.0))
    >>> # Use sample_environment(direction) within a Taichi kernel
"""

import logging
from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm
from PIL import Image as PILImage

from whitted.core.ray import check_direction
from whitted.materials.phong import validate_color

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


class EnvironmentMode(IntEnum):
    """Enumeration of supported environment lookup modes."""

    CONSTANT = 0
    GRADIENT = 1
    CUBEMAP = 2


# Plain integer copies for use inside kernels
_MODE_GRADIENT = int(EnvironmentMode.GRADIENT)
_MODE_CUBEMAP = int(EnvironmentMode.CUBEMAP)

# Largest supported cube map face (preallocated to avoid kernel recompilation)
MAX_CUBEMAP_RESOLUTION = 512

# Number of cube map faces, in +X, -X, +Y, -Y, +Z, -Z order
CUBEMAP_FACES = 6

# Default background (black)
DEFAULT_ENVIRONMENT_COLOR = (0.0, 0.0, 0.0)

# =============================================================================
# Taichi Fields for Environment State
# =============================================================================

_env_mode = ti.field(dtype=ti.i32, shape=())
_env_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_env_horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
_env_zenith = ti.Vector.field(3, dtype=ti.f32, shape=())
_env_swap_yz = ti.field(dtype=ti.i32, shape=())
_cubemap_resolution = ti.field(dtype=ti.i32, shape=())
_cubemap = ti.Vector.field(
    3,
    dtype=ti.f32,
    shape=(CUBEMAP_FACES, MAX_CUBEMAP_RESOLUTION, MAX_CUBEMAP_RESOLUTION),
)


def set_environment_color(color: Sequence[float] = DEFAULT_ENVIRONMENT_COLOR) -> None:
    """Use a constant environment color.

    Args:
        color: The background color as (R, G, B).

    Raises:
        ValueError: If the color is malformed.
    """
    rgb = validate_color("color", color)
    _env_color[None] = rgb
    _env_mode[None] = int(EnvironmentMode.CONSTANT)
    logger.debug("Environment set to constant color %s", rgb)


def set_environment_gradient(
    horizon: Sequence[float],
    zenith: Sequence[float],
) -> None:
    """Use a vertical sky gradient.

    Directions pointing straight down get the horizon color, straight up the
    zenith color, with a linear blend on the y component in between.

    Args:
        horizon: Color at y = -1 as (R, G, B).
        zenith: Color at y = +1 as (R, G, B).

    Raises:
        ValueError: If a color is malformed.
    """
    horizon_rgb = validate_color("horizon", horizon)
    zenith_rgb = validate_color("zenith", zenith)
    _env_horizon[None] = horizon_rgb
    _env_zenith[None] = zenith_rgb
    _env_mode[None] = int(EnvironmentMode.GRADIENT)
    logger.debug("Environment set to gradient %s -> %s", horizon_rgb, zenith_rgb)


def set_environment_cubemap(
    faces: npt.NDArray[np.floating],
    *,
    swap_yz: bool = False,
) -> None:
    """Use a cube map.

    Args:
        faces: Linear RGB faces of shape (6, N, N, 3) in +X, -X, +Y, -Y, +Z, -Z
            order. Row 0 of each face is its top edge.
        swap_yz: Look up the (x, z, y) swizzle of each direction.

    Raises:
        ValueError: If the array shape is wrong or N exceeds
            MAX_CUBEMAP_RESOLUTION.
    """
    faces = np.asarray(faces, dtype=np.float32)
    if faces.ndim != 4 or faces.shape[0] != CUBEMAP_FACES or faces.shape[3] != 3:
        raise ValueError(f"Cube map must have shape (6, N, N, 3), got {faces.shape}")
    if faces.shape[1] != faces.shape[2]:
        raise ValueError(f"Cube map faces must be square, got {faces.shape[1:3]}")

    resolution = faces.shape[1]
    if resolution > MAX_CUBEMAP_RESOLUTION:
        raise ValueError(
            f"Cube map resolution {resolution} exceeds maximum supported "
            f"({MAX_CUBEMAP_RESOLUTION})"
        )

    padded = np.zeros(
        (CUBEMAP_FACES, MAX_CUBEMAP_RESOLUTION, MAX_CUBEMAP_RESOLUTION, 3),
        dtype=np.float32,
    )
    padded[:, :resolution, :resolution, :] = faces
    _cubemap.from_numpy(padded)
    _cubemap_resolution[None] = resolution
    _env_swap_yz[None] = 1 if swap_yz else 0
    _env_mode[None] = int(EnvironmentMode.CUBEMAP)
    logger.info("Environment cube map loaded (%dx%d per face)", resolution, resolution)


def get_environment_mode() -> EnvironmentMode:
    """Get the active environment lookup mode."""
    return EnvironmentMode(int(_env_mode[None]))


def reset_environment() -> None:
    """Restore the default black constant environment."""
    set_environment_color(DEFAULT_ENVIRONMENT_COLOR)
    _env_swap_yz[None] = 0


# =============================================================================
# Image Loading
# =============================================================================


def _image_to_linear(image: PILImage.Image, gamma: float) -> npt.NDArray[np.float32]:
    """Convert a Pillow image to a linear float RGB array."""
    rgb = np.asarray(image.convert("RGB"), dtype=np.float32) / 255.0
    if gamma != 1.0:
        rgb = np.power(rgb, gamma)
    return rgb.astype(np.float32)


def load_cubemap_faces(
    paths: Sequence[str | Path],
    *,
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Load six face images into a cube map array.

    Args:
        paths: Six image paths in +X, -X, +Y, -Y, +Z, -Z order.
        gamma: Decoding gamma applied to convert sRGB pixels to linear values.
            Use 1.0 for images that are already linear.

    Returns:
        Array of shape (6, N, N, 3) suitable for set_environment_cubemap().

    Raises:
        ValueError: If the number of paths is not six or the faces differ
            in size or are not square.
    """
    if len(paths) != CUBEMAP_FACES:
        raise ValueError(f"Expected {CUBEMAP_FACES} face images, got {len(paths)}")

    faces = []
    for path in paths:
        with PILImage.open(path) as image:
            faces.append(_image_to_linear(image, gamma))

    shapes = {face.shape for face in faces}
    if len(shapes) != 1:
        raise ValueError(f"Cube map faces differ in size: {sorted(shapes)}")

    result = np.stack(faces)
    if result.shape[1] != result.shape[2]:
        raise ValueError(f"Cube map faces must be square, got {result.shape[1:3]}")
    return result


def load_cubemap_cross(
    path: str | Path,
    *,
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Load a horizontal-cross cube map image.

    The image is a 4x3 grid of square tiles laid out as:

                 [+Y]
            [-X] [+Z] [+X] [-Z]
                 [-Y]

    Args:
        path: Image path.
        gamma: Decoding gamma (see load_cubemap_faces).

    Returns:
        Array of shape (6, N, N, 3) suitable for set_environment_cubemap().

    Raises:
        ValueError: If the image is not a 4:3 grid of square tiles.
    """
    with PILImage.open(path) as image:
        pixels = _image_to_linear(image, gamma)

    height, width = pixels.shape[:2]
    if width % 4 != 0 or height % 3 != 0 or width // 4 != height // 3:
        raise ValueError(f"Cross cube map must be a 4x3 grid of square tiles, got {width}x{height}")

    n = width // 4

    def tile(col: int, row: int) -> npt.NDArray[np.float32]:
        return pixels[row * n : (row + 1) * n, col * n : (col + 1) * n]

    # (column, row) of each face in the cross, in +X, -X, +Y, -Y, +Z, -Z order
    layout = [(2, 1), (0, 1), (1, 0), (1, 2), (1, 1), (3, 1)]
    return np.stack([tile(col, row) for col, row in layout])


# =============================================================================
# Lookup (Taichi-compatible)
# =============================================================================


@ti.func
def _cubemap_face_uv(d: vec3):
    """Select the cube face and face coordinates for a direction.

    Args:
        d: Lookup direction (not necessarily normalized, not zero).

    Returns:
        A tuple (face, u, v) with u, v in [0, 1]; v = 0 is the top row.
    """
    ax = ti.abs(d.x)
    ay = ti.abs(d.y)
    az = ti.abs(d.z)

    face = 0
    sc = 0.0
    tc = 0.0
    ma = 1.0

    if ax >= ay and ax >= az:
        ma = ax
        tc = -d.y
        if d.x > 0.0:
            face = 0
            sc = -d.z
        else:
            face = 1
            sc = d.z
    elif ay >= az:
        ma = ay
        sc = d.x
        if d.y > 0.0:
            face = 2
            tc = d.z
        else:
            face = 3
            tc = -d.z
    else:
        ma = az
        tc = -d.y
        if d.z > 0.0:
            face = 4
            sc = d.x
        else:
            face = 5
            sc = -d.x

    u = 0.5 * (sc / ma + 1.0)
    v = 0.5 * (tc / ma + 1.0)
    return face, u, v


@ti.func
def sample_cubemap(direction: vec3) -> vec3:
    """Nearest-texel cube map lookup."""
    face, u, v = _cubemap_face_uv(direction)
    res = _cubemap_resolution[None]
    col = ti.min(ti.cast(u * res, ti.i32), res - 1)
    row = ti.min(ti.cast(v * res, ti.i32), res - 1)
    return _cubemap[face, row, col]


@ti.func
def sample_environment(direction: vec3) -> vec3:
    """Look up the environment color for a direction.

    Args:
        direction: The escaping ray direction (need not be normalized).

    Returns:
        The environment color (RGB).
    """
    color = _env_color[None]
    mode = _env_mode[None]

    if mode == _MODE_GRADIENT:
        unit = tm.normalize(direction)
        a = 0.5 * (unit.y + 1.0)
        color = (1.0 - a) * _env_horizon[None] + a * _env_zenith[None]
    elif mode == _MODE_CUBEMAP:
        d = direction
        if _env_swap_yz[None] == 1:
            d = vec3(direction.x, direction.z, direction.y)
        color = sample_cubemap(d)

    return color


@ti.kernel
def _lookup_kernel(direction: vec3) -> vec3:
    return sample_environment(direction)


def lookup_environment(direction: Sequence[float]) -> tuple[float, float, float]:
    """Look up the environment color from Python.

    Args:
        direction: The direction as (x, y, z).

    Returns:
        The environment color as (R, G, B).

    Raises:
        ValueError: If the direction is zero-length.
    """
    dx, dy, dz = check_direction(direction)
    color = _lookup_kernel(vec3(dx, dy, dz))
    return (float(color[0]), float(color[1]), float(color[2]))
