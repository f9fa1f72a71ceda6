"""Ray data structure and vector utilities shared by shading and lights.

This module provides the Ray dataclass, small vector helpers used inside
Taichi kernels, and the epsilon constants that every part of the light
transport core agrees on.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# =============================================================================
# Shared Constants
# =============================================================================

# Cosines below this are treated as grazing or below the horizon
EPS_COSINE = 1e-6

# Offset applied along a new ray direction to avoid self-intersection
EPS_RAY = 1e-4

# Valid intersection range along a ray
T_MIN = 1e-4
T_MAX = 1e10

# Rec. 709 luminance weights
LUMINANCE_R = 0.2126
LUMINANCE_G = 0.7152
LUMINANCE_B = 0.0722


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Expected to be
            normalized by every consumer in this package.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes or when the
    squared distance is what a pdf conversion needs.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length."""
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def reflect_local(v: vec3) -> vec3:
    """Mirror a local-space direction about the local z-axis (the normal).

    In a shading frame whose z-axis is the surface normal, the mirror
    direction of a vector pointing away from the surface is obtained by
    negating its tangential components.

    Args:
        v: Direction in local shading space.

    Returns:
        The mirrored direction (-x, -y, z).
    """
    return vec3(-v.x, -v.y, v.z)


@ti.func
def luminance(color: vec3) -> ti.f32:
    """Perceptual luminance of an RGB triple."""
    return LUMINANCE_R * color.x + LUMINANCE_G * color.y + LUMINANCE_B * color.z


def luminance_python(color: tuple[float, float, float]) -> float:
    """Python-side luminance, matching luminance() inside kernels."""
    return LUMINANCE_R * color[0] + LUMINANCE_G * color[1] + LUMINANCE_B * color[2]
