"""Path integrator with next-event estimation and Russian roulette.

Each render iteration traces one path per pixel, all pixels in parallel in
a single kernel launch, and adds the path's radiance estimate into the
accumulating framebuffer.

Along a path, every surface hit:

1. builds the Phong BRDF from the ray direction and the surface's outward
   normal (surfaces are one-sided: hitting a back face ends the path),
2. samples every light that takes part in next-event estimation and adds
   throughput * intensity * f / pdf_w for each unoccluded sample,
3. samples the BRDF for the continuation direction and multiplies the
   throughput by the sample weight,
4. stops at the hard path-length cap, then plays Russian roulette with
   survival probability min(1, |throughput|).

Emission found by following BRDF samples is not added on later bounces
(next-event estimation already accounts for it) unless multiple importance
sampling is enabled, in which case both strategies are combined with the
power heuristic. A path that escapes picks up the background radiance.

Example:
    >>> from src.pathcore.core.integrator import RenderSettings, render_image, setup_render_target
    >>> from src.pathcore.scene.cornell_box import create_cornell_box_scene
    >>> from src.pathcore.camera.pinhole import setup_camera
    >>>
    >>> scene, camera, _ = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(256, 256)
    >>> render_image(num_iterations=64, settings=RenderSettings(use_mis=True))
"""

import logging
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.pathcore.camera.pinhole import ray_from_screen
from src.pathcore.core.framebuffer import (
    add_color,
    check_render_target_initialized,
    get_image_dimensions,
    get_iteration_count,
    mark_iteration_complete,
    setup_render_target,
)
from src.pathcore.core.ray import EPS_COSINE, EPS_RAY, T_MAX, T_MIN
from src.pathcore.core.rng import next_float, seed_rng
from src.pathcore.core.sampling import power_heuristic
from src.pathcore.lights.registry import (
    get_background_light,
    get_radiance,
    illuminate,
    is_delta,
    is_sampled,
    num_lights,
)
from src.pathcore.materials.phong import Brdf, eval_brdf, get_material, make_brdf, sample_brdf
from src.pathcore.scene.intersection import SurfaceKind, intersect_scene

__all__ = [
    "MAX_PATH_LENGTH",
    "RenderSettings",
    "get_iteration_count",
    "render_image",
    "render_iteration",
    "render_sample",
    "russian_roulette",
    "setup_render_target",
    "trace_path",
]

logger = logging.getLogger(__name__)

vec2 = tm.vec2
vec3 = tm.vec3

# Default hard cap on the number of bounces
MAX_PATH_LENGTH = 100


@dataclass
class RenderSettings:
    """Integrator settings.

    Attributes:
        max_path_length: Paths stop once their length exceeds this.
        use_mis: Combine light sampling and BRDF sampling with the power
            heuristic. When off, emission reached by BRDF sampling after
            the first bounce is ignored and lights are found by next-event
            estimation only.
        seed: Seed of the per-pixel random streams, applied when the first
            iteration of an accumulation is rendered.
    """

    max_path_length: int = MAX_PATH_LENGTH
    use_mis: bool = False
    seed: int = 0

    def __post_init__(self) -> None:
        if self.max_path_length < 0:
            raise ValueError(f"max_path_length must be non-negative, got {self.max_path_length}")


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def russian_roulette(throughput: vec3, u: ti.f32):
    """Probabilistically terminate a path.

    The survival probability is q = min(1, |throughput|). The path dies when
    q < u; survivors are reweighted by 1 / q, which keeps the estimator
    unbiased. A throughput of length >= 1 always survives unchanged.

    Returns:
        Tuple of (survived, new_throughput).
    """
    q = ti.min(1.0, tm.length(throughput))
    survived = 1
    new_throughput = throughput
    if q <= 0.0 or q < u:
        survived = 0
    else:
        new_throughput = throughput / q
    return survived, new_throughput


@ti.func
def _is_occluded(point: vec3, direction: vec3, distance: ti.f32, light_id: ti.i32) -> ti.i32:
    """Shadow test toward a sampled light point.

    Hitting the sampled light's own geometry does not count as occlusion.
    """
    shadow = intersect_scene(point, direction, T_MIN, distance)
    occluded = 0
    if shadow.hit == 1 and shadow.t < distance:
        occluded = 1
        if shadow.surface_kind == int(SurfaceKind.LIGHT) and shadow.surface_id == light_id:
            occluded = 0
    return occluded


@ti.func
def _direct_lighting(pixel_i: ti.i32, pixel_j: ti.i32, point: vec3, brdf: Brdf, use_mis: ti.i32) -> vec3:
    """Next-event estimate of direct light at a surface point (without throughput)."""
    contribution = vec3(0.0, 0.0, 0.0)
    for light_id in range(num_lights[None]):
        if is_sampled(light_id) == 1:
            u1 = next_float(pixel_i, pixel_j)
            u2 = next_float(pixel_i, pixel_j)
            illum = illuminate(light_id, point, u1, u2)
            if illum.pdf_w > 0.0:
                brdf_eval = eval_brdf(brdf, illum.dir_to_light)
                if brdf_eval.valid == 1:
                    if _is_occluded(point, illum.dir_to_light, illum.dist_to_light, light_id) == 0:
                        weight = 1.0
                        if use_mis == 1 and is_delta(light_id) == 0:
                            weight = power_heuristic(illum.pdf_w, brdf_eval.pdf)
                        contribution += illum.intensity * brdf_eval.value * (weight / illum.pdf_w)
    return contribution


@ti.func
def trace_path(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    sample_xy: vec2,
    width: ti.i32,
    height: ti.i32,
    max_path_length: ti.i32,
    use_mis: ti.i32,
) -> vec3:
    """Trace one camera path and return its radiance estimate.

    Args:
        pixel_i: Pixel column; selects the random stream.
        pixel_j: Pixel row (0 = bottom); selects the random stream.
        sample_xy: Screen position of the primary ray in pixel units.
        width: Image width in pixels.
        height: Image height in pixels.
        max_path_length: Hard cap on the path length.
        use_mis: 1 to weight light and BRDF strategies with the power heuristic.

    Returns:
        The radiance estimate (RGB). May contain non-finite values in
        degenerate cases; callers sanitize before accumulating.
    """
    ray = ray_from_screen(sample_xy, width, height)
    origin = ray.origin
    direction = ray.direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    path_length = 0
    # Mixture pdf of the BRDF sample that produced the current ray
    last_brdf_pdf = 0.0
    background_id = get_background_light()

    # Taichi has no break inside ti.func loops
    active = 1
    for _ in range(max_path_length + 2):
        if active == 1:
            hit = intersect_scene(origin, direction, T_MIN, T_MAX)

            if hit.hit == 0:
                if background_id >= 0:
                    background = get_radiance(background_id, direction, origin)
                    if path_length == 0 or is_sampled(background_id) == 0:
                        color += throughput * background.intensity
                    elif use_mis == 1:
                        weight = power_heuristic(last_brdf_pdf, background.pdf)
                        color += throughput * background.intensity * weight
                active = 0

            elif hit.surface_kind == int(SurfaceKind.LIGHT):
                emitted = get_radiance(hit.surface_id, direction, hit.point)
                if path_length == 0:
                    color = emitted.intensity
                elif use_mis == 1 and emitted.pdf > 0.0:
                    cos_light = ti.abs(tm.dot(hit.normal, direction))
                    if cos_light > EPS_COSINE:
                        light_pdf_w = emitted.pdf * hit.t * hit.t / cos_light
                        weight = power_heuristic(last_brdf_pdf, light_pdf_w)
                        color += throughput * emitted.intensity * weight
                active = 0

            else:
                # Geometric outward normal
                normal = hit.normal
                if hit.front_face == 0:
                    normal = -hit.normal

                brdf = make_brdf(direction, normal, get_material(hit.surface_id))
                if brdf.valid == 0:
                    active = 0
                else:
                    color += throughput * _direct_lighting(pixel_i, pixel_j, hit.point, brdf, use_mis)

                    u0 = next_float(pixel_i, pixel_j)
                    u1 = next_float(pixel_i, pixel_j)
                    u2 = next_float(pixel_i, pixel_j)
                    sample = sample_brdf(brdf, u0, u1, u2)
                    if sample.valid == 0:
                        active = 0
                    else:
                        if use_mis == 1:
                            last_brdf_pdf = eval_brdf(brdf, sample.wi).pdf
                        throughput *= sample.weight
                        origin = hit.point + sample.wi * EPS_RAY
                        direction = sample.wi

                        if path_length > max_path_length:
                            active = 0
                        else:
                            survived, throughput = russian_roulette(throughput, next_float(pixel_i, pixel_j))
                            if survived == 0:
                                active = 0

                        path_length += 1

    return color


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace negative and non-finite channels with zero."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]) or result[c] < 0.0:
            result[c] = 0.0
    return result


@ti.func
def _sample_position(pixel_i: ti.i32, pixel_j: ti.i32, iteration: ti.i32) -> vec2:
    """Pixel center on the first iteration, a uniform jitter afterwards."""
    offset = vec2(0.5, 0.5)
    if iteration > 0:
        offset = vec2(next_float(pixel_i, pixel_j), next_float(pixel_i, pixel_j))
    return vec2(ti.cast(pixel_i, ti.f32), ti.cast(pixel_j, ti.f32)) + offset


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_iteration_kernel(
    width: ti.i32,
    height: ti.i32,
    iteration: ti.i32,
    max_path_length: ti.i32,
    use_mis: ti.i32,
):
    for i, j in ti.ndrange(width, height):
        sample_xy = _sample_position(i, j, iteration)
        color = trace_path(i, j, sample_xy, width, height, max_path_length, use_mis)
        add_color(i, j, _sanitize(color))


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    iteration: ti.i32,
    max_path_length: ti.i32,
    use_mis: ti.i32,
) -> vec3:
    sample_xy = _sample_position(pixel_i, pixel_j, iteration)
    return _sanitize(trace_path(pixel_i, pixel_j, sample_xy, width, height, max_path_length, use_mis))


# =============================================================================
# Public Rendering API
# =============================================================================


def render_iteration(settings: RenderSettings | None = None) -> None:
    """Trace one path per pixel and accumulate the result.

    The random streams are seeded from settings.seed when the accumulation
    is empty, so a fixed seed reproduces the same sequence of iterations.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    check_render_target_initialized()
    if settings is None:
        settings = RenderSettings()

    width, height = get_image_dimensions()
    iteration = get_iteration_count()
    if iteration == 0:
        seed_rng(settings.seed)

    _render_iteration_kernel(width, height, iteration, settings.max_path_length, int(settings.use_mis))
    mark_iteration_complete()


def render_image(num_iterations: int = 1, settings: RenderSettings | None = None) -> None:
    """Render several iterations into the accumulation buffer.

    Can be called repeatedly to keep refining the same image.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    for _ in range(num_iterations):
        render_iteration(settings)
    logger.debug(f"Rendered {num_iterations} iterations (total {get_iteration_count()})")


def render_sample(
    pixel_i: int,
    pixel_j: int,
    settings: RenderSettings | None = None,
) -> tuple[float, float, float]:
    """Trace a single path through one pixel without accumulating it.

    Intended for debugging. The sample position follows the same rule as a
    full iteration: the pixel center while nothing has been accumulated.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).
        settings: Integrator settings.

    Returns:
        The sanitized (R, G, B) estimate.

    Raises:
        ValueError: If the pixel is outside the render target.
        RuntimeError: If the render target has not been set up.
    """
    check_render_target_initialized()
    if settings is None:
        settings = RenderSettings()

    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} render target")

    iteration = get_iteration_count()
    if iteration == 0:
        seed_rng(settings.seed)

    color = _render_single_pixel(
        pixel_i, pixel_j, width, height, iteration, settings.max_path_length, int(settings.use_mis)
    )
    return (float(color[0]), float(color[1]), float(color[2]))
