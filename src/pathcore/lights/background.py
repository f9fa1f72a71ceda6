"""Uniform environment (background) light.

Radiance intensity * scale arrives from every direction. Sampling picks a
direction uniformly over the sphere, pdf = 1 / (4 * pi); the light sits at
infinity, represented by a large sentinel distance.
"""

import taichi as ti
import taichi.math as tm

from src.pathcore.core.ray import T_MAX
from src.pathcore.core.sampling import uniform_sphere_pdf, uniform_sphere_sample
from src.pathcore.lights.light import Illumination, Radiance

vec3 = tm.vec3

# Distance reported for a light at infinity
BACKGROUND_DISTANCE = T_MAX


@ti.dataclass
class BackgroundLight:
    """Environment light parameters.

    Attributes:
        intensity: Base radiance (RGB).
        scale: Scalar multiplier applied to the intensity.
    """

    intensity: vec3
    scale: ti.f32


@ti.func
def illuminate_background(light: BackgroundLight, u1: ti.f32, u2: ti.f32) -> Illumination:
    direction, pdf = uniform_sphere_sample(u1, u2)
    return Illumination(
        dir_to_light=direction,
        dist_to_light=BACKGROUND_DISTANCE,
        pdf_w=pdf,
        intensity=light.intensity * light.scale,
    )


@ti.func
def radiance_background(light: BackgroundLight) -> Radiance:
    return Radiance(intensity=light.intensity * light.scale, pdf=uniform_sphere_pdf())
