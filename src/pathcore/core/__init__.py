"""Core rendering building blocks.

Components:
    ray: Ray structure, vector helpers and shared epsilons
    frame: Orthonormal shading frames
    sampling: Hemisphere, sphere and triangle warps with their pdfs
    rng: Per-pixel explicit random state
    framebuffer: Accumulating render target
    integrator: Path integrator with next-event estimation
    progressive: Batched progressive rendering driver
"""

from .frame import Frame, frame_from_z, frame_from_z_numpy, to_local, to_world
from .ray import (
    EPS_COSINE,
    EPS_RAY,
    T_MAX,
    T_MIN,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    luminance,
    luminance_python,
    make_ray,
    normalize,
    ray_at,
    reflect,
    reflect_local,
)
from .sampling import (
    cos_hemisphere_pdf,
    cos_hemisphere_sample,
    pow_cos_hemisphere_pdf,
    pow_cos_hemisphere_sample,
    power_heuristic,
    uniform_sphere_pdf,
    uniform_sphere_sample,
    uniform_triangle_sample,
)

# integrator and progressive pull in the scene and light registries; import
# them directly from src.pathcore.core.integrator / .progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "reflect_local",
    "luminance",
    "luminance_python",
    "EPS_COSINE",
    "EPS_RAY",
    "T_MIN",
    "T_MAX",
    "Frame",
    "frame_from_z",
    "frame_from_z_numpy",
    "to_local",
    "to_world",
    "cos_hemisphere_sample",
    "cos_hemisphere_pdf",
    "pow_cos_hemisphere_sample",
    "pow_cos_hemisphere_pdf",
    "uniform_sphere_sample",
    "uniform_sphere_pdf",
    "uniform_triangle_sample",
    "power_heuristic",
]
