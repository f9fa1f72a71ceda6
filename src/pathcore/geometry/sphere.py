"""Sphere primitive and the shared primitive HitRecord.

Ray-sphere intersection solves

    |origin + t * direction - center|^2 = radius^2

in its half-b form a*t^2 + 2*h*t + c = 0. The roots come from the
cancellation-free formulation (q = -(h + sign(h) * sqrt(d)), t0 = q / a,
t1 = c / q), which stays accurate for grazing rays.

Example:
    >>> from src.pathcore.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -3), radius=1.0)
    >>> # rec = hit_sphere(origin, direction, sphere, T_MIN, T_MAX) inside a kernel
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius."""

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: Ray parameter of the intersection.
        point: World-space intersection point.
        normal: Unit surface normal, flipped to face the incoming ray.
        front_face: 1 if the ray arrived from the side the geometric
            (outward) normal points to, 0 otherwise.

    All fields except hit are only meaningful when hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def miss_record() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Roots (t0 <= t1) of a*t^2 + 2*h*t + c = 0 given sqrt(h^2 - a*c)."""
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0
    if ti.abs(q) < 1e-10:
        # Tangent ray
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        t0, t1 = t1, t0

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Nearest intersection of a ray with a sphere in the open interval (t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction (need not be normalized).
        sphere: The sphere to test.
        t_min: Lower bound on accepted t (self-intersection offset).
        t_max: Upper bound on accepted t (closest hit so far, or the
            distance to a light for shadow rays).

    Returns:
        A HitRecord; check the hit field.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    result = miss_record()
    if discriminant >= 0.0:
        t0, t1 = _solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))

        t = t0
        valid = (t > t_min) and (t < t_max)
        if not valid:
            t = t1
            valid = (t > t_min) and (t < t_max)

        if valid:
            point = ray_origin + t * ray_direction
            outward_normal = (point - sphere.center) / sphere.radius
            front_face = 1
            normal = outward_normal
            if tm.dot(ray_direction, outward_normal) > 0.0:
                # Ray is inside the sphere
                front_face = 0
                normal = -outward_normal
            result = HitRecord(hit=1, t=t, point=point, normal=normal, front_face=front_face)

    return result
