"""Scene manager for building, validating and serializing scenes.

This module provides a high-level scene API on top of the raw sphere, light
and environment storage. The SceneManager validates its inputs, keeps a
Python-side record of everything it added, and round-trips scenes through
plain dictionaries and JSON files.

A scene file looks like:

    {
      "spheres": [
        {"center": [0, 0, -5], "radius": 1.0,
         "diffuse": [1, 0, 0], "specular": [0.5, 0.5, 0.5], "shininess": 32}
      ],
      "lights": [{"position": [0, 5, -5], "intensity": [1, 1, 1]}],
      "environment": {"type": "gradient",
                      "horizon": [1, 1, 1], "zenith": [0.5, 0.7, 1.0]}
    }

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from whitted.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> scene.add_sphere((0, 0, -5), 1.0, diffuse=(1, 0, 0), specular=(0.5, 0.5, 0.5))
    >>> scene.add_light((0, 5, -5), (1, 1, 1))
    >>> scene.save_json("scene.json")
"""

import json
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import taichi.math as tm

from whitted.materials.phong import validate_color, validate_phong_params
from whitted.scene.environment import (
    EnvironmentMode,
    load_cubemap_cross,
    load_cubemap_faces,
    reset_environment,
    set_environment_color,
    set_environment_cubemap,
    set_environment_gradient,
)
from whitted.scene.intersection import (
    MAX_LIGHTS,
    MAX_SPHERES,
    add_light,
    add_sphere,
    clear_scene,
    get_light_count,
    get_sphere_count,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Default material parameters for spheres
DEFAULT_DIFFUSE = (0.5, 0.5, 0.5)
DEFAULT_SPECULAR = (0.0, 0.0, 0.0)
DEFAULT_SHININESS = 32.0


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        diffuse: The diffuse coefficient (RGB).
        specular: The specular coefficient (RGB).
        shininess: The specular exponent.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    diffuse: tuple[float, float, float]
    specular: tuple[float, float, float]
    shininess: float


@dataclass
class LightInfo:
    """Information about a point light in the scene.

    Attributes:
        light_index: The index in the light storage arrays.
        position: The light position.
        intensity: The light intensity (RGB).
    """

    light_index: int
    position: tuple[float, float, float]
    intensity: tuple[float, float, float]


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        spheres: List of sphere configurations.
        lights: List of light configurations.
        environment: Environment configuration (a dict with a "type" key).
    """

    spheres: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    environment: dict[str, Any] = field(default_factory=lambda: {"type": "constant"})


def _triple(value: Sequence[float]) -> tuple[float, float, float]:
    return (float(value[0]), float(value[1]), float(value[2]))


class SceneManager:
    """High-level scene builder.

    The SceneManager writes to the global scene storage (Taichi fields), so
    creating a new manager resets the active scene. Spheres are scanned in
    the order they were added.

    Attributes:
        spheres: List of SphereInfo for all spheres in the scene.
        lights: List of LightInfo for all lights in the scene.
        environment: The environment configuration in serialized form.

    Example:
        >>> scene = SceneManager()
        >>> scene.add_sphere((0, 0, -5), 1.0, diffuse=(0.2, 0.2, 0.2), specular=(0.8, 0.8, 0.8))
        >>> scene.add_light((5, 5, 0), (1.0, 1.0, 1.0))
        >>> scene.set_environment_gradient((1, 1, 1), (0.5, 0.7, 1.0))
    """

    def __init__(self) -> None:
        """Initialize an empty scene with a black environment."""
        self.spheres: list[SphereInfo] = []
        self.lights: list[LightInfo] = []
        self.environment: dict[str, Any] = {}
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        reset_environment()
        self.spheres.clear()
        self.lights.clear()
        self.environment = {"type": "constant", "color": [0.0, 0.0, 0.0]}

    def clear(self) -> None:
        """Clear the entire scene (spheres, lights and environment)."""
        self._clear_all()

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        diffuse: Sequence[float] = DEFAULT_DIFFUSE,
        specular: Sequence[float] = DEFAULT_SPECULAR,
        shininess: float = DEFAULT_SHININESS,
    ) -> int:
        """Add a sphere with its Phong material.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere (must be positive).
            diffuse: The diffuse coefficient as (R, G, B).
            specular: The specular coefficient as (R, G, B). Also acts as
                the mirror reflectance of the sphere.
            shininess: The specular exponent (must be positive).

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If the radius is not positive or a parameter is
                malformed.
        """
        center_t = validate_color("center", center)
        radius = float(radius)
        if not (math.isfinite(radius) and radius > 0.0):
            raise ValueError(f"Sphere radius = {radius} must be positive")
        kd, ks, n = validate_phong_params(diffuse, specular, shininess)

        sphere_index = add_sphere(vec3(*center_t), radius, vec3(*kd), vec3(*ks), n)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=center_t,
                radius=radius,
                diffuse=kd,
                specular=ks,
                shininess=n,
            )
        )
        return sphere_index

    def add_light(self, position: Sequence[float], intensity: Sequence[float]) -> int:
        """Add a point light.

        Args:
            position: The light position as (x, y, z).
            intensity: The light intensity as (R, G, B), components >= 0.

        Returns:
            The index of the added light.

        Raises:
            RuntimeError: If the maximum number of lights is exceeded.
            ValueError: If an intensity component is negative or a vector
                is malformed.
        """
        position_t = validate_color("position", position)
        intensity_t = validate_color("intensity", intensity)
        if min(intensity_t) < 0.0:
            raise ValueError(f"Light intensity {intensity_t} must be non-negative")

        light_index = add_light(vec3(*position_t), vec3(*intensity_t))

        self.lights.append(
            LightInfo(light_index=light_index, position=position_t, intensity=intensity_t)
        )
        return light_index

    # =========================================================================
    # Environment
    # =========================================================================

    def set_environment_color(self, color: Sequence[float]) -> None:
        """Use a constant environment color."""
        set_environment_color(color)
        self.environment = {"type": "constant", "color": list(_triple(color))}

    def set_environment_gradient(self, horizon: Sequence[float], zenith: Sequence[float]) -> None:
        """Use a vertical sky gradient from horizon (y = -1) to zenith (y = +1)."""
        set_environment_gradient(horizon, zenith)
        self.environment = {
            "type": "gradient",
            "horizon": list(_triple(horizon)),
            "zenith": list(_triple(zenith)),
        }

    def set_environment_cubemap(
        self,
        source: str | Path | Sequence[str | Path],
        *,
        swap_yz: bool = False,
        gamma: float = 2.2,
    ) -> None:
        """Use a cube map loaded from image files.

        Args:
            source: Either a single horizontal-cross image path, or six face
                image paths in +X, -X, +Y, -Y, +Z, -Z order.
            swap_yz: Sample the cube map with the (x, z, y) swizzle.
            gamma: Decoding gamma for the images.

        Raises:
            ValueError: If the images do not form a valid cube map.
            OSError: If an image cannot be read.
        """
        if isinstance(source, (str, Path)):
            faces = load_cubemap_cross(source, gamma=gamma)
            described: dict[str, Any] = {"type": "cubemap", "cross": str(source)}
        else:
            faces = load_cubemap_faces(source, gamma=gamma)
            described = {"type": "cubemap", "faces": [str(p) for p in source]}

        set_environment_cubemap(faces, swap_yz=swap_yz)
        described["swap_yz"] = swap_yz
        described["gamma"] = gamma
        self.environment = described

    def _apply_environment(self, env: dict[str, Any], base_dir: Path | None = None) -> None:
        """Apply a serialized environment description.

        Raises:
            ValueError: If the environment type is unknown.
        """
        env_type = str(env.get("type", "constant")).lower()
        if env_type == EnvironmentMode.CONSTANT.name.lower():
            self.set_environment_color(env.get("color", [0.0, 0.0, 0.0]))
        elif env_type == EnvironmentMode.GRADIENT.name.lower():
            self.set_environment_gradient(
                env.get("horizon", [1.0, 1.0, 1.0]),
                env.get("zenith", [0.5, 0.7, 1.0]),
            )
        elif env_type == EnvironmentMode.CUBEMAP.name.lower():

            def resolve(path: str) -> Path:
                p = Path(path)
                if base_dir is not None and not p.is_absolute():
                    p = base_dir / p
                return p

            if "cross" in env:
                source: Path | list[Path] = resolve(env["cross"])
            elif "faces" in env:
                source = [resolve(p) for p in env["faces"]]
            else:
                raise ValueError("Cube map environment needs a 'cross' or 'faces' entry")
            self.set_environment_cubemap(
                source,
                swap_yz=bool(env.get("swap_yz", False)),
                gamma=float(env.get("gamma", 2.2)),
            )
            # Keep the paths as written so the scene saves back unchanged
            for key in ("cross", "faces"):
                if key in env:
                    self.environment[key] = env[key]
        else:
            raise ValueError(f"Unknown environment type: {env_type}")

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_light_count(self) -> int:
        """Get the number of lights in the scene."""
        return get_light_count()

    def get_sphere_info(self, sphere_index: int) -> SphereInfo | None:
        """Get information about a sphere by index, or None if not found."""
        if 0 <= sphere_index < len(self.spheres):
            return self.spheres[sphere_index]
        return None

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing all spheres, lights and the environment.
        """
        config = SceneConfig(environment=dict(self.environment))

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "diffuse": list(sphere.diffuse),
                    "specular": list(sphere.specular),
                    "shininess": sphere.shininess,
                }
            )

        for light in self.lights:
            config.lights.append(
                {
                    "position": list(light.position),
                    "intensity": list(light.intensity),
                }
            )

        return config

    def from_config(self, config: SceneConfig, base_dir: Path | None = None) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Args:
            config: The scene configuration to load.
            base_dir: Directory used to resolve relative cube map paths.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for sphere_config in config.spheres:
            if "center" not in sphere_config or "radius" not in sphere_config:
                raise ValueError(f"Sphere entry needs 'center' and 'radius': {sphere_config}")
            self.add_sphere(
                sphere_config["center"],
                sphere_config["radius"],
                diffuse=sphere_config.get("diffuse", DEFAULT_DIFFUSE),
                specular=sphere_config.get("specular", DEFAULT_SPECULAR),
                shininess=sphere_config.get("shininess", DEFAULT_SHININESS),
            )

        for light_config in config.lights:
            if "position" not in light_config:
                raise ValueError(f"Light entry needs 'position': {light_config}")
            self.add_light(
                light_config["position"],
                light_config.get("intensity", [1.0, 1.0, 1.0]),
            )

        self._apply_environment(config.environment, base_dir)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary representation of the scene.
        """
        config = self.to_config()
        return {
            "spheres": config.spheres,
            "lights": config.lights,
            "environment": config.environment,
        }

    def from_dict(self, data: dict[str, Any], base_dir: Path | None = None) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'spheres', 'lights', 'environment' keys.
            base_dir: Directory used to resolve relative cube map paths.
        """
        config = SceneConfig(
            spheres=data.get("spheres", []),
            lights=data.get("lights", []),
            environment=data.get("environment", {"type": "constant"}),
        )
        self.from_config(config, base_dir)

    def save_json(self, path: str | Path) -> None:
        """Write the scene to a JSON file."""
        path = Path(path)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info(
            "Saved scene with %d spheres and %d lights to %s",
            len(self.spheres),
            len(self.lights),
            path,
        )

    def load_json(self, path: str | Path) -> None:
        """Replace the scene with the contents of a JSON file.

        Relative cube map paths are resolved against the file's directory.

        Raises:
            ValueError: If the file is not valid JSON or describes an
                invalid scene.
            OSError: If the file cannot be read.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid scene file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Scene file {path} must contain a JSON object")

        self.from_dict(data, base_dir=path.parent)
        logger.info(
            "Loaded scene with %d spheres and %d lights from %s",
            len(self.spheres),
            len(self.lights),
            path,
        )

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_lights() -> int:
        """Get the maximum number of lights supported."""
        return MAX_LIGHTS
