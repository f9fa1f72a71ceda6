"""Scene construction and ray queries.

Components:
    intersection: Primitive storage and nearest-hit queries
    manager: SceneManager coordinating materials, primitives and lights
    cornell_box: Cornell box test scene
"""

from .cornell_box import (
    BOX_SIZE,
    CornellBoxParams,
    create_cornell_box_scene,
    get_cornell_box_bounds,
    get_light_quad_info,
)
from .intersection import (
    MAX_SPHERES,
    MAX_TRIANGLES,
    SceneHitRecord,
    SurfaceKind,
    add_sphere,
    add_triangle,
    clear_scene,
    get_sphere_count,
    get_triangle_count,
    intersect_scene,
)
from .manager import (
    LightInfo,
    MaterialInfo,
    QuadInfo,
    SceneConfig,
    SceneManager,
    SphereInfo,
    TriangleInfo,
)

__all__ = [
    "SceneHitRecord",
    "SurfaceKind",
    "add_sphere",
    "add_triangle",
    "clear_scene",
    "get_sphere_count",
    "get_triangle_count",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_TRIANGLES",
    "SceneManager",
    "SceneConfig",
    "MaterialInfo",
    "SphereInfo",
    "TriangleInfo",
    "QuadInfo",
    "LightInfo",
    "create_cornell_box_scene",
    "CornellBoxParams",
    "get_cornell_box_bounds",
    "get_light_quad_info",
    "BOX_SIZE",
]
