"""Camera models for primary ray generation."""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_camera_origin,
    get_ray,
    ray_from_screen,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_ray",
    "ray_from_screen",
    "get_camera_origin",
    "get_camera_info",
]
