"""Pytest configuration for tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset scene, environment, tracer settings and render target.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before any fields are created
    from whitted.core.config import reset_tracer_config
    from whitted.core.integrator import reset_render_target
    from whitted.scene.environment import reset_environment
    from whitted.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        reset_environment()
        reset_tracer_config()
        reset_render_target()

    _clear_all()

    yield

    _clear_all()
