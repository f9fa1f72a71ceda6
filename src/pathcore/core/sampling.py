"""Sampling warps and probability densities for Monte Carlo estimation.

Every warp here is deterministic in its inputs: it maps uniform random
numbers in [0, 1) to a direction or barycentric coordinate and returns the
matching probability density. The random numbers come from the caller
(see core.rng), so the warps can be tested with fixed inputs.

Hemisphere warps produce directions in a local frame where +z is the lobe
axis; core.frame moves them to world space.

Densities:
    cosine hemisphere:     pdf = cos(theta) / pi
    power-cosine (Phong):  pdf = (n + 1) * cos(theta)^n / (2 * pi)
    uniform sphere:        pdf = 1 / (4 * pi)

All densities are in solid-angle measure.
"""

import math

import taichi as ti
import taichi.math as tm

vec2 = tm.vec2
vec3 = tm.vec3

INV_PI = 1.0 / math.pi
INV_FOUR_PI = 0.25 / math.pi


@ti.func
def cos_hemisphere_sample(u1: ti.f32, u2: ti.f32):
    """Draw a cosine-weighted direction around +z.

    Args:
        u1: Uniform random number driving the azimuth.
        u2: Uniform random number driving the elevation.

    Returns:
        A tuple of (direction, pdf) with pdf = cos(theta) / pi.
    """
    phi = 2.0 * tm.pi * u1
    r = ti.sqrt(1.0 - u2)
    direction = vec3(ti.cos(phi) * r, ti.sin(phi) * r, ti.sqrt(u2))
    return direction, direction.z * INV_PI


@ti.func
def cos_hemisphere_pdf(cos_theta: ti.f32) -> ti.f32:
    return ti.max(cos_theta, 0.0) * INV_PI


@ti.func
def pow_cos_hemisphere_sample(exponent: ti.f32, u1: ti.f32, u2: ti.f32):
    """Draw a direction from a power-cosine lobe around +z.

    This is the normalized Phong lobe: larger exponents concentrate the
    directions closer to the axis.

    Args:
        exponent: The lobe exponent n (>= 0).
        u1: Uniform random number driving the azimuth.
        u2: Uniform random number driving the elevation.

    Returns:
        A tuple of (direction, pdf) with pdf = (n + 1) * cos^n / (2 * pi).
    """
    phi = 2.0 * tm.pi * u1
    cos_theta = ti.pow(u2, 1.0 / (exponent + 1.0))
    sin_theta = ti.sqrt(ti.max(0.0, 1.0 - cos_theta * cos_theta))
    direction = vec3(ti.cos(phi) * sin_theta, ti.sin(phi) * sin_theta, cos_theta)
    return direction, pow_cos_hemisphere_pdf(exponent, cos_theta)


@ti.func
def pow_cos_hemisphere_pdf(exponent: ti.f32, cos_theta: ti.f32) -> ti.f32:
    c = ti.max(cos_theta, 0.0)
    return (exponent + 1.0) * ti.pow(c, exponent) * 0.5 * INV_PI


@ti.func
def uniform_sphere_sample(u1: ti.f32, u2: ti.f32):
    """Draw a direction uniformly over the full sphere.

    Returns:
        A tuple of (direction, pdf) with pdf = 1 / (4 * pi).
    """
    phi = 2.0 * tm.pi * u1
    z = 1.0 - 2.0 * u2
    r = 2.0 * ti.sqrt(ti.max(0.0, u2 * (1.0 - u2)))
    direction = vec3(ti.cos(phi) * r, ti.sin(phi) * r, z)
    return direction, INV_FOUR_PI


@ti.func
def uniform_sphere_pdf() -> ti.f32:
    return INV_FOUR_PI


@ti.func
def uniform_triangle_sample(u1: ti.f32, u2: ti.f32) -> vec2:
    """Draw uniform barycentric coordinates on a triangle.

    The point p0 + b.x * e1 + b.y * e2 is uniformly distributed over the
    triangle (p0, p0 + e1, p0 + e2).

    Returns:
        Barycentric weights (b1, b2) for the two edge vectors.
    """
    su = ti.sqrt(u1)
    return vec2(1.0 - su, u2 * su)


@ti.func
def power_heuristic(pdf_a: ti.f32, pdf_b: ti.f32) -> ti.f32:
    """Power heuristic (beta = 2) weight for strategy a against strategy b.

    Returns:
        pdf_a^2 / (pdf_a^2 + pdf_b^2), or 0 when both densities are zero.
    """
    a2 = pdf_a * pdf_a
    b2 = pdf_b * pdf_b
    weight = 0.0
    if a2 + b2 > 0.0:
        weight = a2 / (a2 + b2)
    return weight
