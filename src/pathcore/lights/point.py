"""Isotropic point light (delta light).

A point light has zero-measure support: no ray can hit it, so it only
contributes through explicit sampling. Its "pdf" is the squared distance,
which turns intensity / pdf into the inverse-square falloff.
"""

import taichi as ti
import taichi.math as tm

from src.pathcore.core.ray import length_squared
from src.pathcore.lights.light import Illumination, Radiance, no_illumination, no_radiance

vec3 = tm.vec3


@ti.dataclass
class PointLight:
    """Point light parameters.

    Attributes:
        position: Light position in world space.
        intensity: Radiant intensity (RGB).
    """

    position: vec3
    intensity: vec3


@ti.func
def illuminate_point(light: PointLight, point: vec3) -> Illumination:
    to_light = light.position - point
    dist_sq = length_squared(to_light)
    result = no_illumination(vec3(0.0, 0.0, 0.0), 0.0)
    if dist_sq > 0.0:
        dist = ti.sqrt(dist_sq)
        result = Illumination(
            dir_to_light=to_light / dist,
            dist_to_light=dist,
            pdf_w=dist_sq,
            intensity=light.intensity,
        )
    return result


@ti.func
def radiance_point(light: PointLight) -> Radiance:
    return no_radiance()
