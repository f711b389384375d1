"""Mirror spheres demo scene.

This module provides a factory for the standard demo scene: a ring of
reflective spheres resting on a large ground sphere under two point
lights and a sky gradient. Every sphere reflects its neighbours, so the
scene shows the effect of the bounce limit directly.

Layout (y is up):
- Ground: a sphere of radius 1000 whose top touches y = 0
- A center sphere of radius 1 at (0, 1, 0)
- Four smaller spheres of radius 0.6 around it at distance 2.2
- Key light above and in front, fill light to the side

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.scene.presets import create_mirror_spheres_scene
    >>> from whitted.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_mirror_spheres_scene()
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

from whitted.camera.pinhole import PinholeCamera, orbit_camera
from whitted.scene.manager import SceneManager

# =============================================================================
# Scene Parameters (for interactive preview)
# =============================================================================


@dataclass
class MirrorSpheresParams:
    """Parameters for configuring the mirror spheres scene.

    Attributes:
        sphere_specular: Specular coefficient (mirror reflectance) of the
            small spheres.
        center_specular: Specular coefficient of the center sphere.
        ground_diffuse: Diffuse coefficient of the ground.
        ground_specular: Specular coefficient of the ground.
        light_intensity: Intensity scale applied to both lights.
        horizon_color: Environment color looking straight down.
        zenith_color: Environment color looking straight up.
        camera_distance: Orbit distance of the camera from the scene center.
        camera_rotation_x: Camera rotation about X in degrees.
        camera_rotation_y: Camera rotation about Y in degrees.
        aspect_ratio: Width divided by height of the output image.

    Example:
        >>> params = MirrorSpheresParams(sphere_specular=(0.9, 0.9, 0.9))
        >>> scene, camera = create_mirror_spheres_scene(params)
    """

    sphere_specular: tuple[float, float, float] = (0.6, 0.6, 0.6)
    center_specular: tuple[float, float, float] = (0.8, 0.8, 0.8)
    ground_diffuse: tuple[float, float, float] = (0.4, 0.4, 0.4)
    ground_specular: tuple[float, float, float] = (0.1, 0.1, 0.1)
    light_intensity: float = 0.8
    horizon_color: tuple[float, float, float] = (0.9, 0.9, 0.95)
    zenith_color: tuple[float, float, float] = (0.3, 0.5, 0.9)
    camera_distance: float = 7.0
    camera_rotation_x: float = -20.0
    camera_rotation_y: float = 0.0
    aspect_ratio: float = 4.0 / 3.0


# =============================================================================
# Scene Constants
# =============================================================================

GROUND_RADIUS = 1000.0
CENTER_RADIUS = 1.0
RING_RADIUS = 0.6
RING_DISTANCE = 2.2

# Diffuse colors of the four ring spheres
RING_DIFFUSE = (
    (0.6, 0.1, 0.1),
    (0.1, 0.5, 0.1),
    (0.1, 0.2, 0.6),
    (0.6, 0.5, 0.1),
)
CENTER_DIFFUSE = (0.05, 0.05, 0.05)
SPHERE_SHININESS = 64.0
GROUND_SHININESS = 8.0

KEY_LIGHT_POSITION = (4.0, 8.0, 6.0)
FILL_LIGHT_POSITION = (-6.0, 4.0, 2.0)
FILL_LIGHT_SCALE = 0.5

# Point the camera orbits around
SCENE_CENTER = (0.0, 0.8, 0.0)


# =============================================================================
# Scene Factory
# =============================================================================


def create_mirror_spheres_scene(
    params: MirrorSpheresParams | None = None,
) -> tuple[SceneManager, PinholeCamera]:
    """Create the mirror spheres demo scene.

    Args:
        params: Optional MirrorSpheresParams. If None, uses defaults.

    Returns:
        A tuple of (SceneManager, PinholeCamera). The scene manager has
        already written the geometry, lights and environment to the global
        scene storage; the camera still has to be passed to setup_camera().
    """
    if params is None:
        params = MirrorSpheresParams()

    scene = SceneManager()

    scene.add_sphere(
        center=(0.0, -GROUND_RADIUS, 0.0),
        radius=GROUND_RADIUS,
        diffuse=params.ground_diffuse,
        specular=params.ground_specular,
        shininess=GROUND_SHININESS,
    )
    scene.add_sphere(
        center=(0.0, CENTER_RADIUS, 0.0),
        radius=CENTER_RADIUS,
        diffuse=CENTER_DIFFUSE,
        specular=params.center_specular,
        shininess=SPHERE_SHININESS,
    )

    for k, diffuse in enumerate(RING_DIFFUSE):
        angle = math.pi / 4.0 + k * math.pi / 2.0
        scene.add_sphere(
            center=(
                RING_DISTANCE * math.cos(angle),
                RING_RADIUS,
                RING_DISTANCE * math.sin(angle),
            ),
            radius=RING_RADIUS,
            diffuse=diffuse,
            specular=params.sphere_specular,
            shininess=SPHERE_SHININESS,
        )

    key = params.light_intensity
    fill = params.light_intensity * FILL_LIGHT_SCALE
    scene.add_light(KEY_LIGHT_POSITION, (key, key, key))
    scene.add_light(FILL_LIGHT_POSITION, (fill, fill, fill))

    scene.set_environment_gradient(params.horizon_color, params.zenith_color)

    camera = orbit_camera(
        distance=params.camera_distance,
        rotation_x=params.camera_rotation_x,
        rotation_y=params.camera_rotation_y,
        target=SCENE_CENTER,
        vfov=45.0,
        aspect_ratio=params.aspect_ratio,
    )

    return scene, camera
