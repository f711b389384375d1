"""Pinhole camera and primary-ray generation.

A camera is described on the host by a PinholeCamera (eye, target, up,
vertical field of view, aspect ratio). setup_camera turns it into a frame
stored in Taichi fields, and get_pixel_ray reads that frame inside kernels.

Frame conventions:
- w: unit vector from the target back to the eye
- u: image right, vup x w normalized
- v: image up, w x u

The image plane sits one unit in front of the eye. Its height is
2 * tan(vfov / 2) and its width is aspect_ratio times that. Pixel row 0 is
the bottom of the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from whitted.camera.pinhole import orbit_camera, setup_camera, get_pixel_ray
    >>>
    >>> setup_camera(orbit_camera(distance=6.0, rotation_x=-20.0, aspect_ratio=4.0 / 3.0))
    >>>
    >>> @ti.kernel
    ... def first_ray() -> ti.math.vec3:
    ...     return get_pixel_ray(0, 0, 640, 480).direction
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.core.ray import Ray, make_ray


@dataclass
class PinholeCamera:
    """Host-side camera description.

    Attributes:
        lookfrom: Eye position.
        lookat: Point that appears at the image center.
        vup: Approximate up direction; must not be parallel to the view.
        vfov: Vertical field of view in degrees, strictly between 0 and 180.
        aspect_ratio: Image width over height.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float


# Current camera frame, written by setup_camera
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def _unit(vector: np.ndarray, message: str) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm < 1e-8:
        raise ValueError(message)
    return vector / norm


def setup_camera(camera: PinholeCamera) -> None:
    """Load a camera into the kernel-visible frame fields.

    Call this before rendering and again whenever the camera changes.

    Raises:
        ValueError: If vfov is outside (0, 180), aspect_ratio is not
            positive, lookfrom equals lookat, or vup is parallel to the
            view direction.
    """
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov = {camera.vfov} must be in (0, 180) degrees")
    if not camera.aspect_ratio > 0.0:
        raise ValueError(f"aspect_ratio = {camera.aspect_ratio} must be positive")

    eye = np.asarray(camera.lookfrom, dtype=np.float64)
    target = np.asarray(camera.lookat, dtype=np.float64)
    up_hint = np.asarray(camera.vup, dtype=np.float64)

    w = _unit(eye - target, "Camera lookfrom and lookat must differ")
    u = _unit(np.cross(up_hint, w), "Camera vup must not be parallel to the view direction")
    v = np.cross(w, u)

    plane_h = 2.0 * math.tan(math.radians(camera.vfov) / 2.0)
    plane_w = camera.aspect_ratio * plane_h
    across = plane_w * u
    up = plane_h * v
    corner = eye - w - 0.5 * across - 0.5 * up

    for field, value in (
        (_camera_origin, eye),
        (_camera_u, u),
        (_camera_v, v),
        (_camera_w, w),
        (_viewport_horizontal, across),
        (_viewport_vertical, up),
        (_lower_left_corner, corner),
    ):
        field[None] = value.tolist()


def _rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def _rotation_y(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]])


def orbit_camera(
    distance: float,
    rotation_x: float = 0.0,
    rotation_y: float = 0.0,
    target: tuple[float, float, float] = (0.0, 0.0, 0.0),
    vfov: float = 60.0,
    aspect_ratio: float = 1.0,
) -> PinholeCamera:
    """Build a camera orbiting a target point.

    The eye starts at target + (0, 0, distance) looking down -z. It is
    rotated about the X axis first, then about the Y axis, both around the
    target. The up vector is rotated with it, so the camera stays valid when
    looking straight down.

    Args:
        distance: Distance from the target to the eye (> 0).
        rotation_x: Rotation about the X axis in degrees. Positive values
            move the eye below the target.
        rotation_y: Rotation about the Y axis in degrees.
        target: The point the camera looks at.
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.

    Returns:
        The corresponding PinholeCamera.

    Raises:
        ValueError: If the distance is not positive.
    """
    if not distance > 0.0:
        raise ValueError(f"Orbit distance = {distance} must be positive")

    rotation = _rotation_y(math.radians(rotation_y)) @ _rotation_x(math.radians(rotation_x))
    offset = rotation @ np.array([0.0, 0.0, distance])
    up = rotation @ np.array([0.0, 1.0, 0.0])
    center = np.array(target, dtype=np.float64)
    eye = center + offset

    return PinholeCamera(
        lookfrom=(float(eye[0]), float(eye[1]), float(eye[2])),
        lookat=(float(center[0]), float(center[1]), float(center[2])),
        vup=(float(up[0]), float(up[1]), float(up[2])),
        vfov=vfov,
        aspect_ratio=aspect_ratio,
    )


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Unit-direction ray from the eye through image-plane point (s, t).

    s runs 0 -> 1 from the left edge to the right edge, t runs 0 -> 1 from
    the bottom edge to the top edge.
    """
    eye = _camera_origin[None]
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(eye, tm.normalize(target - eye))


@ti.func
def get_pixel_ray(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Primary ray through the center of pixel (pixel_i, pixel_j).

    pixel_i counts columns from the left, pixel_j counts rows from the
    bottom.
    """
    s = (ti.cast(pixel_i, ti.f32) + 0.5) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + 0.5) / ti.cast(height, ti.f32)
    return get_ray(s, t)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Snapshot of the loaded camera frame as plain tuples.

    Keys: origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
