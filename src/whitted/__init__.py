"""Taichi-based Whitted-style ray tracer.

This package renders scenes of Phong-shaded spheres lit by point lights,
with hard shadows, recursive mirror reflections and an environment lookup
for escaping rays:
- Closest-hit sphere intersection with deterministic tie-breaking
- Blinn-Phong direct lighting with shadow rays
- Iterative mirror bounces under a runtime bounce limit
- Constant, gradient and cube map environments

Subpackages:
    core: Ray utilities, tracer configuration, shading and the trace driver
    geometry: Sphere primitive and ray-sphere intersection
    materials: Blinn-Phong material model
    scene: Scene storage, environment lookup, scene manager and presets
    camera: Pinhole camera with orbit placement
    preview: Tone mapping, image export and interactive preview
"""

__version__ = "0.1.0"
