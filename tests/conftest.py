"""Pytest configuration for pathcore tests.

Taichi is initialized once per session; every registry is cleared around
each test so tests do not see each other's scenes.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the whole session.

    Repeated ti.init() calls reset the runtime and invalidate fields that
    modules created at import time.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear primitives, materials, lights and the render target."""
    # Modules declare Taichi fields at import, so import after ti.init()
    from src.pathcore.core.framebuffer import clear_render_target
    from src.pathcore.lights.registry import clear_lights
    from src.pathcore.materials.phong import clear_materials
    from src.pathcore.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_materials()
        clear_lights()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def looking_down_minus_z():
    """Square camera at the origin looking down -z with a 90 degree field of view."""
    from src.pathcore.camera.pinhole import PinholeCamera, setup_camera

    camera = PinholeCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=1.0,
    )
    setup_camera(camera)
    return camera
