"""One-sided triangular area light with uniform area sampling.

The light is the triangle (p0, p1, p2) emitting a constant radiance from
the side its normal normalize(e1 x e2) points to, with e1 = p1 - p0 and
e2 = p2 - p0. Points are sampled uniformly over the triangle, so the area
pdf is the reciprocal of the area:

    inv_area = 2 / |e1 x e2|

Next-event estimation needs the density in solid-angle measure at the
receiving point, which the distance and the cosine at the light convert:

    pdf_w = inv_area * dist^2 / cos_light

Example:
    >>> from src.pathcore.lights.area import compute_area_light_geometry
    >>> geometry = compute_area_light_geometry((0, 1, 0), (1, 1, 0), (0, 1, 1))
    >>> geometry.inv_area
    2.0
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathcore.core.frame import Frame, frame_from_z_numpy
from src.pathcore.core.ray import EPS_COSINE, length_squared
from src.pathcore.core.sampling import uniform_triangle_sample
from src.pathcore.lights.light import Illumination, Radiance, no_illumination, no_radiance

vec3 = tm.vec3


@ti.dataclass
class AreaLight:
    """Triangle light parameters.

    Attributes:
        p0: First vertex.
        e1: Edge p1 - p0.
        e2: Edge p2 - p0.
        frame: Frame whose z-axis is the emitting normal.
        intensity: Emitted radiance (RGB).
        inv_area: Reciprocal of the triangle area.
    """

    p0: vec3
    e1: vec3
    e2: vec3
    frame: Frame
    intensity: vec3
    inv_area: ti.f32


@dataclass(frozen=True)
class AreaLightGeometry:
    """Precomputed area light geometry (Python side).

    Attributes:
        p0: First vertex.
        e1: Edge p1 - p0.
        e2: Edge p2 - p0.
        frame_x: First frame tangent.
        frame_y: Second frame tangent.
        normal: Emitting normal (frame z-axis).
        inv_area: Reciprocal of the triangle area.
    """

    p0: tuple[float, float, float]
    e1: tuple[float, float, float]
    e2: tuple[float, float, float]
    frame_x: tuple[float, float, float]
    frame_y: tuple[float, float, float]
    normal: tuple[float, float, float]
    inv_area: float


def _as_tuple(v: np.ndarray) -> tuple[float, float, float]:
    return (float(v[0]), float(v[1]), float(v[2]))


def compute_area_light_geometry(
    p0: tuple[float, float, float],
    p1: tuple[float, float, float],
    p2: tuple[float, float, float],
) -> AreaLightGeometry:
    """Derive edges, frame and inverse area from three vertices.

    Raises:
        ValueError: If the triangle is degenerate (zero area).
    """
    v0 = np.asarray(p0, dtype=np.float64)
    e1 = np.asarray(p1, dtype=np.float64) - v0
    e2 = np.asarray(p2, dtype=np.float64) - v0
    n = np.cross(e1, e2)
    twice_area = float(np.linalg.norm(n))
    if twice_area < 1e-12:
        raise ValueError(f"Degenerate area light triangle: {p0}, {p1}, {p2}")

    frame_x, frame_y, normal = frame_from_z_numpy(n)
    return AreaLightGeometry(
        p0=_as_tuple(v0),
        e1=_as_tuple(e1),
        e2=_as_tuple(e2),
        frame_x=_as_tuple(frame_x),
        frame_y=_as_tuple(frame_y),
        normal=_as_tuple(normal),
        inv_area=2.0 / twice_area,
    )


@ti.func
def illuminate_area(light: AreaLight, point: vec3, u1: ti.f32, u2: ti.f32) -> Illumination:
    """Sample a point on the light as seen from a receiving point.

    Args:
        light: The area light.
        point: The receiving (shading) point.
        u1: Uniform random number for the barycentric warp.
        u2: Uniform random number for the barycentric warp.

    Returns:
        An Illumination with pdf_w = inv_area * dist^2 / cos_light, or zero
        intensity and pdf_w = -inf when the point is behind the light's
        plane (or on it).
    """
    bary = uniform_triangle_sample(u1, u2)
    light_point = light.p0 + light.e1 * bary.x + light.e2 * bary.y
    to_light = light_point - point
    dist_sq = length_squared(to_light)

    result = no_illumination(vec3(0.0, 0.0, 0.0), 0.0)
    if dist_sq > 0.0:
        dist = ti.sqrt(dist_sq)
        direction = to_light / dist
        cos_light = tm.dot(light.frame.z, -direction)
        result = no_illumination(direction, dist)
        if cos_light > EPS_COSINE:
            result = Illumination(
                dir_to_light=direction,
                dist_to_light=dist,
                pdf_w=light.inv_area * dist_sq / cos_light,
                intensity=light.intensity,
            )
    return result


@ti.func
def radiance_area(light: AreaLight, ray_direction: vec3) -> Radiance:
    """Radiance along a ray that hit the light.

    Only the emitting side radiates; the pdf is in area measure.
    """
    cos_light = ti.max(tm.dot(light.frame.z, -ray_direction), 0.0)
    result = no_radiance()
    if cos_light > 0.0:
        result = Radiance(intensity=light.intensity, pdf=light.inv_area)
    return result
