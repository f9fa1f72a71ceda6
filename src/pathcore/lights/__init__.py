"""Light sources.

Components:
    light: LightType tag and the Illumination / Radiance result structures
    area: One-sided triangular area light
    background: Uniform environment light
    point: Isotropic point light (delta)
    registry: Light storage and dispatch by tag
"""

from .area import AreaLight, AreaLightGeometry, compute_area_light_geometry, illuminate_area, radiance_area
from .background import BACKGROUND_DISTANCE, BackgroundLight, illuminate_background, radiance_background
from .light import NEG_INF, Illumination, LightType, Radiance
from .point import PointLight, illuminate_point, radiance_point
from .registry import (
    MAX_LIGHTS,
    add_area_light,
    add_point_light,
    clear_lights,
    get_background_light,
    get_background_light_id,
    get_light_count,
    get_light_type,
    get_radiance,
    illuminate,
    is_delta,
    is_sampled,
    set_background_light,
)

__all__ = [
    "LightType",
    "Illumination",
    "Radiance",
    "NEG_INF",
    "AreaLight",
    "AreaLightGeometry",
    "compute_area_light_geometry",
    "illuminate_area",
    "radiance_area",
    "BackgroundLight",
    "BACKGROUND_DISTANCE",
    "illuminate_background",
    "radiance_background",
    "PointLight",
    "illuminate_point",
    "radiance_point",
    "MAX_LIGHTS",
    "add_area_light",
    "add_point_light",
    "set_background_light",
    "clear_lights",
    "get_light_count",
    "get_light_type",
    "get_background_light_id",
    "get_background_light",
    "illuminate",
    "get_radiance",
    "is_delta",
    "is_sampled",
]
