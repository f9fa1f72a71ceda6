"""Triangle primitive with Moller-Trumbore intersection.

A triangle is stored as a vertex and two edges (v0, e1 = v1 - v0,
e2 = v2 - v0). Its geometric normal is normalize(e1 x e2), so the winding
order decides which side is the front face. Area lights rely on this: the
emitting side of a light triangle is its front face.

Quads are not a separate primitive; the scene manager splits them into two
triangles sharing a diagonal.
"""

import taichi as ti
import taichi.math as tm

from src.pathcore.geometry.sphere import HitRecord, miss_record

vec3 = tm.vec3

# Determinant threshold below which the ray is treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Triangle:
    """A triangle given by a vertex and two edge vectors.

    Attributes:
        v0: First vertex.
        e1: Edge from v0 to the second vertex.
        e2: Edge from v0 to the third vertex.
    """

    v0: vec3
    e1: vec3
    e2: vec3


@ti.func
def make_triangle(v0: vec3, v1: vec3, v2: vec3) -> Triangle:
    return Triangle(v0=v0, e1=v1 - v0, e2=v2 - v0)


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Geometric (front-face) normal of the triangle."""
    return tm.normalize(tm.cross(tri.e1, tri.e2))


@ti.func
def hit_triangle(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with a triangle.

    Solves origin + t * direction = v0 + u * e1 + v * e2 for (t, u, v) with
    Cramer's rule and accepts the hit when u >= 0, v >= 0, u + v <= 1 and
    t_min < t < t_max.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The ray direction.
        tri: The triangle to test.
        t_min: Lower bound on accepted t.
        t_max: Upper bound on accepted t.

    Returns:
        A HitRecord with the normal flipped toward the ray origin and
        front_face set from the winding order.
    """
    result = miss_record()

    pvec = tm.cross(ray_direction, tri.e2)
    det = tm.dot(tri.e1, pvec)
    if ti.abs(det) >= PARALLEL_EPSILON:
        inv_det = 1.0 / det
        tvec = ray_origin - tri.v0
        u = tm.dot(tvec, pvec) * inv_det
        if u >= 0.0 and u <= 1.0:
            qvec = tm.cross(tvec, tri.e1)
            v = tm.dot(ray_direction, qvec) * inv_det
            if v >= 0.0 and u + v <= 1.0:
                t = tm.dot(tri.e2, qvec) * inv_det
                if t > t_min and t < t_max:
                    outward_normal = triangle_normal(tri)
                    front_face = 1
                    normal = outward_normal
                    if tm.dot(ray_direction, outward_normal) > 0.0:
                        front_face = 0
                        normal = -outward_normal
                    result = HitRecord(
                        hit=1,
                        t=t,
                        point=ray_origin + t * ray_direction,
                        normal=normal,
                        front_face=front_face,
                    )

    return result
