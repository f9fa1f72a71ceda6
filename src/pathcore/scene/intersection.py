"""Scene-level nearest-hit queries.

Primitives (spheres and triangles) are stored in structure-of-arrays Taichi
fields. Each primitive carries a surface tag: a SurfaceKind and an id that
is a material id for MATERIAL surfaces and a light id for LIGHT surfaces.
The integrator shades a hit by looking at that tag.

Example:
    >>> from src.pathcore.scene.intersection import SurfaceKind, add_sphere, add_triangle
    >>> add_sphere((0.0, 0.0, -3.0), 1.0, SurfaceKind.MATERIAL, surface_id=0)
    0
    >>> add_triangle((-1, 2, -1), (-1, 2, 1), (1, 2, 1), SurfaceKind.LIGHT, surface_id=0)
    0
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.pathcore.geometry.sphere import HitRecord, Sphere, hit_sphere
from src.pathcore.geometry.triangle import Triangle, hit_triangle

vec3 = tm.vec3


class SurfaceKind(IntEnum):
    """What a primitive's surface id refers to."""

    MATERIAL = 0
    LIGHT = 1


@ti.dataclass
class SceneHitRecord:
    """Nearest intersection of a ray with the scene.

    Attributes:
        hit: 1 if any primitive was hit, 0 on a miss.
        t: Ray parameter of the nearest hit.
        point: World-space hit point.
        normal: Unit normal facing the incoming ray.
        front_face: 1 if the ray hit the side the geometric normal points to.
        surface_kind: SurfaceKind of the hit primitive.
        surface_id: Material id or light id of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    surface_kind: ti.i32
    surface_id: ti.i32


MAX_SPHERES = 1024
MAX_TRIANGLES = 4096

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_surface_kinds = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
sphere_surface_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_e1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_e2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TRIANGLES)
triangle_surface_kinds = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
triangle_surface_ids = ti.field(dtype=ti.i32, shape=MAX_TRIANGLES)
num_triangles = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all primitives. Field contents are overwritten on reuse."""
    num_spheres[None] = 0
    num_triangles[None] = 0


def add_sphere(
    center: tuple[float, float, float],
    radius: float,
    surface_kind: SurfaceKind = SurfaceKind.MATERIAL,
    surface_id: int = 0,
) -> int:
    """Add a sphere primitive.

    Returns:
        The sphere index.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    sphere_centers[idx] = vec3(center[0], center[1], center[2])
    sphere_radii[idx] = radius
    sphere_surface_kinds[idx] = int(surface_kind)
    sphere_surface_ids[idx] = surface_id
    num_spheres[None] = idx + 1
    return idx


def add_triangle(
    v0: tuple[float, float, float],
    v1: tuple[float, float, float],
    v2: tuple[float, float, float],
    surface_kind: SurfaceKind = SurfaceKind.MATERIAL,
    surface_id: int = 0,
) -> int:
    """Add a triangle primitive.

    The winding order (v0, v1, v2) defines the front face through the
    right-hand rule.

    Returns:
        The triangle index.

    Raises:
        RuntimeError: If the maximum number of triangles is exceeded.
    """
    idx = num_triangles[None]
    if idx >= MAX_TRIANGLES:
        raise RuntimeError(f"Maximum number of triangles ({MAX_TRIANGLES}) exceeded")
    p0 = vec3(v0[0], v0[1], v0[2])
    triangle_v0[idx] = p0
    triangle_e1[idx] = vec3(v1[0], v1[1], v1[2]) - p0
    triangle_e2[idx] = vec3(v2[0], v2[1], v2[2]) - p0
    triangle_surface_kinds[idx] = int(surface_kind)
    triangle_surface_ids[idx] = surface_id
    num_triangles[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    return int(num_spheres[None])


def get_triangle_count() -> int:
    return int(num_triangles[None])


@ti.func
def _to_scene_hit_record(rec: HitRecord, surface_kind: ti.i32, surface_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        surface_kind=surface_kind,
        surface_id=surface_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        surface_kind=int(SurfaceKind.MATERIAL),
        surface_id=-1,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Nearest hit among all primitives with t in (t_min, t_max).

    Each accepted hit shrinks the search interval, so later primitives
    only win when strictly closer.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        t_min: Lower bound on accepted t.
        t_max: Upper bound on accepted t. Shadow rays pass the distance to
            the sampled light point.

    Returns:
        The nearest SceneHitRecord, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, sphere_surface_kinds[i], sphere_surface_ids[i])

    for i in range(num_triangles[None]):
        tri = Triangle(v0=triangle_v0[i], e1=triangle_e1[i], e2=triangle_e2[i])
        rec = hit_triangle(ray_origin, ray_direction, tri, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _to_scene_hit_record(rec, triangle_surface_kinds[i], triangle_surface_ids[i])

    return result
