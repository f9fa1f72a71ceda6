"""Light registry and tag dispatch.

Lights live in a structure-of-arrays registry of Taichi fields, one slot
per light, tagged with its LightType. Kernels address lights by id and the
functions here dispatch on the stored tag:

    illuminate(light_id, point, u1, u2)        -> Illumination
    get_radiance(light_id, ray_dir, hit_point) -> Radiance
    is_delta(light_id)                         -> 1 for point lights
    is_sampled(light_id)                       -> 1 if used for NEE

At most one background light exists. Setting it again overwrites the same
slot, and get_background_light() returns -1 when none has been set.

Example:
    >>> from src.pathcore.lights.registry import add_area_light, set_background_light
    >>> add_area_light((-1, 2, -1), (-1, 2, 1), (1, 2, 1), intensity=(15.0, 15.0, 15.0))
    0
    >>> set_background_light((0.1, 0.1, 0.2), scale=1.0)
    1
"""

import logging
import math

import taichi as ti
import taichi.math as tm

from src.pathcore.core.frame import Frame
from src.pathcore.lights.area import AreaLight, compute_area_light_geometry, illuminate_area, radiance_area
from src.pathcore.lights.background import BackgroundLight, illuminate_background, radiance_background
from src.pathcore.lights.light import Illumination, LightType, Radiance, no_illumination, no_radiance
from src.pathcore.lights.point import PointLight, illuminate_point, radiance_point

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Light Field Storage
# =============================================================================

MAX_LIGHTS = 256

light_types = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_sampled = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_intensity = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)

# Area lights
light_p0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_e1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_e2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_frame_x = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_frame_y = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_frame_z = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)
light_inv_area = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)

# Background lights
light_scale = ti.field(dtype=ti.f32, shape=MAX_LIGHTS)

# Point lights
light_position = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LIGHTS)

num_lights = ti.field(dtype=ti.i32, shape=())
# Zero-initialized fields: has_background = 0 means no background is set
has_background = ti.field(dtype=ti.i32, shape=())
background_index = ti.field(dtype=ti.i32, shape=())


def _validate_intensity(intensity: tuple[float, float, float]) -> None:
    if len(intensity) != 3:
        raise ValueError(f"Light intensity must have 3 components, got {len(intensity)}")
    for i, component in enumerate(intensity):
        if not math.isfinite(component) or component < 0.0:
            raise ValueError(f"Light intensity component {i} = {component} must be finite and non-negative")


def _allocate_light_slot() -> int:
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    num_lights[None] = idx + 1
    return idx


def clear_lights() -> None:
    """Remove all lights, including the background."""
    num_lights[None] = 0
    has_background[None] = 0
    background_index[None] = 0


def add_area_light(
    p0: tuple[float, float, float],
    p1: tuple[float, float, float],
    p2: tuple[float, float, float],
    intensity: tuple[float, float, float],
) -> int:
    """Register a one-sided triangular area light.

    The light emits from the side its normal normalize((p1 - p0) x (p2 - p0))
    points to. Only the light itself is registered here; the emissive
    geometry that rays can hit is added to the scene by the SceneManager.

    Args:
        p0: First vertex.
        p1: Second vertex.
        p2: Third vertex.
        intensity: Emitted radiance as (R, G, B).

    Returns:
        The light id.

    Raises:
        ValueError: If the triangle is degenerate or the intensity is
            negative or non-finite.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    _validate_intensity(intensity)
    geometry = compute_area_light_geometry(p0, p1, p2)

    idx = _allocate_light_slot()
    light_types[idx] = int(LightType.AREA)
    light_sampled[idx] = 1
    light_intensity[idx] = vec3(intensity[0], intensity[1], intensity[2])
    light_p0[idx] = vec3(*geometry.p0)
    light_e1[idx] = vec3(*geometry.e1)
    light_e2[idx] = vec3(*geometry.e2)
    light_frame_x[idx] = vec3(*geometry.frame_x)
    light_frame_y[idx] = vec3(*geometry.frame_y)
    light_frame_z[idx] = vec3(*geometry.normal)
    light_inv_area[idx] = geometry.inv_area
    logger.debug(f"Added area light {idx} with inv_area={geometry.inv_area:.6g}")
    return idx


def add_point_light(
    position: tuple[float, float, float],
    intensity: tuple[float, float, float],
) -> int:
    """Register an isotropic point light.

    Raises:
        ValueError: If the intensity is negative or non-finite.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    _validate_intensity(intensity)
    idx = _allocate_light_slot()
    light_types[idx] = int(LightType.POINT)
    light_sampled[idx] = 1
    light_intensity[idx] = vec3(intensity[0], intensity[1], intensity[2])
    light_position[idx] = vec3(position[0], position[1], position[2])
    logger.debug(f"Added point light {idx} at {tuple(position)}")
    return idx


def set_background_light(
    intensity: tuple[float, float, float],
    scale: float = 1.0,
    sample_directly: bool = False,
) -> int:
    """Set the uniform environment light.

    Args:
        intensity: Base radiance as (R, G, B).
        scale: Multiplier applied to the intensity (> 0).
        sample_directly: Whether next-event estimation samples the
            background. When False, the background is only picked up by
            paths that escape the scene.

    Returns:
        The light id of the background.

    Raises:
        ValueError: If the intensity is invalid or the scale is not positive.
        RuntimeError: If the maximum number of lights is exceeded.
    """
    _validate_intensity(intensity)
    if not math.isfinite(scale) or scale <= 0.0:
        raise ValueError(f"Background scale must be positive, got {scale}")

    if has_background[None] == 1:
        idx = int(background_index[None])
    else:
        idx = _allocate_light_slot()
        background_index[None] = idx
        has_background[None] = 1

    light_types[idx] = int(LightType.BACKGROUND)
    light_sampled[idx] = 1 if sample_directly else 0
    light_intensity[idx] = vec3(intensity[0], intensity[1], intensity[2])
    light_scale[idx] = scale
    logger.debug(f"Set background light {idx} (sample_directly={sample_directly})")
    return idx


def get_light_count() -> int:
    return int(num_lights[None])


def get_background_light_id() -> int:
    """Id of the background light, or -1 if none is set."""
    if has_background[None] == 0:
        return -1
    return int(background_index[None])


def get_light_type(light_id: int) -> LightType:
    """Get the type of a registered light.

    Raises:
        ValueError: If the light id is not registered.
    """
    if light_id < 0 or light_id >= num_lights[None]:
        raise ValueError(f"Invalid light ID: {light_id}")
    return LightType(int(light_types[light_id]))


# =============================================================================
# Kernel-side Dispatch
# =============================================================================


@ti.func
def _area_light(light_id: ti.i32) -> AreaLight:
    return AreaLight(
        p0=light_p0[light_id],
        e1=light_e1[light_id],
        e2=light_e2[light_id],
        frame=Frame(x=light_frame_x[light_id], y=light_frame_y[light_id], z=light_frame_z[light_id]),
        intensity=light_intensity[light_id],
        inv_area=light_inv_area[light_id],
    )


@ti.func
def _background_light(light_id: ti.i32) -> BackgroundLight:
    return BackgroundLight(intensity=light_intensity[light_id], scale=light_scale[light_id])


@ti.func
def _point_light(light_id: ti.i32) -> PointLight:
    return PointLight(position=light_position[light_id], intensity=light_intensity[light_id])


@ti.func
def illuminate(light_id: ti.i32, point: vec3, u1: ti.f32, u2: ti.f32) -> Illumination:
    """Sample light `light_id` from a receiving point."""
    result = no_illumination(vec3(0.0, 0.0, 0.0), 0.0)
    light_type = light_types[light_id]
    if light_type == int(LightType.AREA):
        result = illuminate_area(_area_light(light_id), point, u1, u2)
    elif light_type == int(LightType.BACKGROUND):
        result = illuminate_background(_background_light(light_id), u1, u2)
    elif light_type == int(LightType.POINT):
        result = illuminate_point(_point_light(light_id), point)
    return result


@ti.func
def get_radiance(light_id: ti.i32, ray_direction: vec3, hit_point: vec3) -> Radiance:
    """Radiance of light `light_id` along a ray that reached it.

    hit_point is unused by the current variants; it is part of the
    signature for lights whose emission varies over their surface.
    """
    result = no_radiance()
    light_type = light_types[light_id]
    if light_type == int(LightType.AREA):
        result = radiance_area(_area_light(light_id), ray_direction)
    elif light_type == int(LightType.BACKGROUND):
        result = radiance_background(_background_light(light_id))
    elif light_type == int(LightType.POINT):
        result = radiance_point(_point_light(light_id))
    return result


@ti.func
def is_delta(light_id: ti.i32) -> ti.i32:
    return ti.cast(light_types[light_id] == int(LightType.POINT), ti.i32)


@ti.func
def is_sampled(light_id: ti.i32) -> ti.i32:
    return light_sampled[light_id]


@ti.func
def get_background_light() -> ti.i32:
    light_id = -1
    if has_background[None] == 1:
        light_id = background_index[None]
    return light_id
