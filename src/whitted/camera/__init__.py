"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera with look-at and orbit placement

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

Each pixel receives exactly one ray through its center.
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_pixel_ray,
    get_ray,
    orbit_camera,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "orbit_camera",
    "get_ray",
    "get_pixel_ray",
    "get_camera_info",
]
