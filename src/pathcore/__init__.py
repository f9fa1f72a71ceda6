"""Taichi-based shading and light-transport core.

This package estimates per-pixel radiance by stochastic path tracing with
importance sampling, built on Taichi kernels:
- Mixed diffuse/glossy (Phong) BRDF with closed-form pdfs
- Area, background, and point light sources behind one dispatch interface
- Path integrator with next-event estimation, Russian roulette,
  and optional multiple importance sampling
- Progressive accumulation across iterations

Subpackages:
    core: Vector and frame primitives, sampling warps, random state,
        framebuffer, integrator, and the progressive driver
    materials: Material registry and the Phong reflectance model
    lights: Light variants and the light registry
    geometry: Shape primitives and intersection routines
    scene: Scene intersection, scene manager, and the Cornell box factory
    camera: Pinhole camera ray generation
    preview: Tone mapping and image export
"""

__version__ = "0.1.0"
