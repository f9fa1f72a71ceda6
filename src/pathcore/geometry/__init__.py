"""Geometric primitives and their ray intersection routines.

All intersection routines are Taichi functions returning a HitRecord:

    rec = hit_<shape>(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .sphere import HitRecord, Sphere, hit_sphere, miss_record
from .triangle import Triangle, hit_triangle, make_triangle, triangle_normal

__all__ = [
    "HitRecord",
    "miss_record",
    "Sphere",
    "hit_sphere",
    "Triangle",
    "hit_triangle",
    "make_triangle",
    "triangle_normal",
]
