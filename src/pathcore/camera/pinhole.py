"""Pinhole camera for primary ray generation.

The camera builds an orthonormal basis (u, v, w) from look-at parameters,
with w pointing from lookat back toward lookfrom, and a virtual image plane
at unit distance. Screen positions are continuous pixel coordinates: pixel
(i, j) covers [i, i + 1) x [j, j + 1), with j = 0 the bottom row.

Example:
    >>> from src.pathcore.camera.pinhole import PinholeCamera, setup_camera
    >>> setup_camera(PinholeCamera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=1.0,
    ... ))
    >>> # ray = ray_from_screen(vec2(i + 0.5, j + 0.5), width, height) inside a kernel
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathcore.core.ray import Ray, make_ray

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3


@dataclass
class PinholeCamera:
    """Pinhole camera configuration.

    Attributes:
        lookfrom: Camera position in world space.
        lookat: Point the camera looks at.
        vup: Up direction used to orient the image plane.
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Image width divided by height.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float


# =============================================================================
# Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: PinholeCamera) -> None:
    """Compute the camera basis and viewport from a configuration.

    Raises:
        ValueError: If the field of view or aspect ratio is out of range,
            or lookfrom coincides with lookat, or vup is parallel to the
            view direction.
    """
    if not 0.0 < camera.vfov < 180.0:
        raise ValueError(f"vfov must be in (0, 180) degrees, got {camera.vfov}")
    if camera.aspect_ratio <= 0.0:
        raise ValueError(f"aspect_ratio must be positive, got {camera.aspect_ratio}")

    h = math.tan(math.radians(camera.vfov) / 2.0)
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w_norm = np.linalg.norm(w)
    if w_norm < 1e-12:
        raise ValueError("lookfrom and lookat must be distinct points")
    w = w / w_norm

    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm < 1e-12:
        raise ValueError("vup must not be parallel to the view direction")
    u = u / u_norm
    v = np.cross(w, u)

    horizontal = viewport_width * u
    vertical = viewport_height * v
    lower_left = lookfrom - w - horizontal / 2.0 - vertical / 2.0

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    logger.debug(f"Camera at {camera.lookfrom} looking at {camera.lookat}, vfov={camera.vfov}")


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Ray through normalized image coordinates.

    Args:
        u: Horizontal coordinate in [0, 1], left to right.
        v: Vertical coordinate in [0, 1], bottom to top.

    Returns:
        A Ray from the camera origin with a unit direction.
    """
    point_on_viewport = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    origin = _camera_origin[None]
    return make_ray(origin, tm.normalize(point_on_viewport - origin))


@ti.func
def ray_from_screen(sample_xy: vec2, width: ti.i32, height: ti.i32) -> Ray:
    """Ray through a continuous screen position in pixel units.

    Args:
        sample_xy: Screen position; (i + 0.5, j + 0.5) is the center of
            pixel (i, j).
        width: Image width in pixels.
        height: Image height in pixels.
    """
    u = sample_xy.x / ti.cast(width, ti.f32)
    v = sample_xy.y / ti.cast(height, ti.f32)
    return get_ray(u, v)


@ti.func
def get_camera_origin() -> vec3:
    return _camera_origin[None]


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Current camera vectors, for debugging and tests."""
    names = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in names.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
