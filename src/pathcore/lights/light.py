"""Shared light types and result structures.

Every light variant answers the same three questions:

    illuminate(point, u1, u2) -> Illumination
        Sample a direction from a receiving point toward the light.
    get_radiance(ray_direction, hit_point) -> Radiance
        Radiance arriving along a ray that reached the light.
    is_delta() -> bool
        Whether the light has zero-measure support and so can only be
        reached by explicit sampling.

The set of variants is closed (LightType); dispatch happens on the stored
tag in lights.registry.

A returned pdf is strictly positive whenever the intensity is non-zero. A
sample that must never be used carries zero intensity and a pdf of -inf,
so a consumer can skip it by testing the pdf alone.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# pdf sentinel for "never select this sample"
NEG_INF = -float("inf")


class LightType(IntEnum):
    """Light variants supported by the light registry."""

    AREA = 0
    BACKGROUND = 1
    POINT = 2


@ti.dataclass
class Illumination:
    """Result of sampling a light from a receiving point.

    Attributes:
        dir_to_light: Unit direction from the receiving point to the light.
        dist_to_light: Distance to the sampled light point (a large
            sentinel for lights at infinity).
        pdf_w: Solid-angle pdf of the sampled direction, or -inf.
        intensity: Emitted radiance toward the receiving point (RGB).
    """

    dir_to_light: vec3
    dist_to_light: ti.f32
    pdf_w: ti.f32
    intensity: vec3


@ti.dataclass
class Radiance:
    """Radiance arriving along a ray that reached a light.

    Attributes:
        intensity: Emitted radiance (RGB).
        pdf: Density of the light's own sampling strategy for that point or
            direction, in area measure for area lights and solid-angle
            measure for the background.
    """

    intensity: vec3
    pdf: ti.f32


@ti.func
def no_illumination(direction: vec3, distance: ti.f32) -> Illumination:
    return Illumination(
        dir_to_light=direction,
        dist_to_light=distance,
        pdf_w=NEG_INF,
        intensity=vec3(0.0, 0.0, 0.0),
    )


@ti.func
def no_radiance() -> Radiance:
    return Radiance(intensity=vec3(0.0, 0.0, 0.0), pdf=0.0)
