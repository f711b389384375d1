"""Scene module for scene storage, environment lookup and scene building.

Components:
    intersection: Sphere and light storage, closest-hit query
    environment: Constant, gradient and cube map environment lookup
    manager: Validating scene builder with JSON serialization
    presets: Ready-made demo scenes

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for spheres and lights
    - Insertion order preserved (it breaks distance ties)
    - Preallocated storage so scene edits never recompile kernels
"""

from .environment import (
    MAX_CUBEMAP_RESOLUTION,
    EnvironmentMode,
    get_environment_mode,
    load_cubemap_cross,
    load_cubemap_faces,
    lookup_environment,
    reset_environment,
    sample_environment,
    set_environment_color,
    set_environment_cubemap,
    set_environment_gradient,
)
from .intersection import (
    MAX_LIGHTS,
    MAX_SPHERES,
    HitResult,
    SceneHitRecord,
    add_light,
    add_sphere,
    clear_scene,
    get_light_count,
    get_sphere_count,
    intersect_ray,
    intersect_scene,
)
from .manager import (
    LightInfo,
    SceneConfig,
    SceneManager,
    SphereInfo,
)
from .presets import (
    MirrorSpheresParams,
    create_mirror_spheres_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "HitResult",
    "add_sphere",
    "add_light",
    "clear_scene",
    "get_sphere_count",
    "get_light_count",
    "intersect_scene",
    "intersect_ray",
    "MAX_SPHERES",
    "MAX_LIGHTS",
    # Environment module
    "EnvironmentMode",
    "MAX_CUBEMAP_RESOLUTION",
    "sample_environment",
    "lookup_environment",
    "set_environment_color",
    "set_environment_gradient",
    "set_environment_cubemap",
    "load_cubemap_faces",
    "load_cubemap_cross",
    "get_environment_mode",
    "reset_environment",
    # Manager module
    "SceneManager",
    "SphereInfo",
    "LightInfo",
    "SceneConfig",
    # Presets
    "MirrorSpheresParams",
    "create_mirror_spheres_scene",
]
