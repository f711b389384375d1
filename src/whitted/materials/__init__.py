"""Materials module.

Components:
    phong: Blinn-Phong material dataclass, per-light shading term and
        Python-side parameter validation

Every sphere carries its own copy of a PhongMaterial. The specular
coefficient serves two purposes: it scales the Blinn-Phong highlight and
it is the mirror reflectance used by the trace driver to attenuate
reflected contributions.
"""

from .phong import (
    PhongMaterial,
    blinn_phong,
    validate_color,
    validate_phong_params,
)

__all__ = [
    "PhongMaterial",
    "blinn_phong",
    "validate_color",
    "validate_phong_params",
]
