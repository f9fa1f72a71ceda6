"""Mixed diffuse/glossy (Phong) reflectance model.

A material has a diffuse albedo, a specular albedo and a glossiness
exponent. At each surface hit a Brdf value is built from the incoming ray
direction and the surface normal; it samples or evaluates incident
directions with an albedo-weighted mixture of two lobes:

    diffuse lobe:  f * cos = albedo_d * cos(theta) / pi
    glossy lobe:   f * cos = albedo_s * (n + 1) / (2 * pi) * cos(alpha)^n

where alpha is the angle to the mirror direction. Each lobe is sampled
from a distribution with exactly its own shape, so the importance weight
(f * cos / pdf) of a sample is the lobe's albedo:

    weight = (albedo_d * cos / pi) / (cos / pi) = albedo_d

The lobe is chosen with probabilities proportional to the luminance of the
two albedos. eval_brdf() returns the same probability-weighted mixture,
which is what next-event estimation uses to price a light-sampled direction.

Example:
    >>> from src.pathcore.materials.phong import add_material
    >>> plastic = add_material(diffuse=(0.5, 0.1, 0.1), specular=(0.3, 0.3, 0.3), phong_exp=40.0)
    >>> # Inside a kernel:
    >>> # brdf = make_brdf(ray_dir, normal, get_material(plastic))
    >>> # sample = sample_brdf(brdf, u0, u1, u2)
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.pathcore.core.frame import Frame, frame_from_z, to_local, to_world
from src.pathcore.core.ray import EPS_COSINE, luminance, luminance_python, reflect_local
from src.pathcore.core.sampling import (
    INV_PI,
    cos_hemisphere_sample,
    pow_cos_hemisphere_pdf,
    pow_cos_hemisphere_sample,
)

vec3 = tm.vec3

# Total albedo below which a surface is treated as fully absorptive
ABSORPTIVE_ALBEDO = 1e-9


@ti.dataclass
class Material:
    """Per-surface reflectance parameters.

    Attributes:
        diffuse: Diffuse albedo (RGB, each component in [0, 1]).
        specular: Specular albedo (RGB, each component in [0, 1]).
        phong_exp: Glossiness exponent of the specular lobe (>= 0).
    """

    diffuse: vec3
    specular: vec3
    phong_exp: ti.f32


@ti.dataclass
class LobeProbabilities:
    """Lobe selection probabilities derived from a material.

    Attributes:
        diffuse: Probability of sampling the diffuse lobe.
        specular: Probability of sampling the glossy lobe.
        continuation: Total albedo luminance; the surface's overall
            reflectance, usable as a roulette survival scale.
    """

    diffuse: ti.f32
    specular: ti.f32
    continuation: ti.f32


@ti.dataclass
class Brdf:
    """Reflectance model for one surface hit.

    Built by make_brdf() and discarded once the hit has been shaded.

    Attributes:
        valid: 1 if the surface is seen from its front side, 0 otherwise.
        material: The surface material.
        frame: Shading frame with the surface normal as z-axis.
        wo_local: Direction back toward the viewer, in local space.
        probs: Lobe selection probabilities.
    """

    valid: ti.i32
    material: Material
    frame: Frame
    wo_local: vec3
    probs: LobeProbabilities


@ti.dataclass
class BrdfSample:
    """Result of sampling an incident direction.

    Attributes:
        valid: 0 if the sampled direction fell below the horizon.
        wi: Sampled direction in world space.
        cos_theta_in: Cosine between wi and the surface normal.
        weight: Importance weight f * cos / pdf (the chosen lobe's albedo).
        pdf: Solid-angle pdf of the chosen lobe at wi.
    """

    valid: ti.i32
    wi: vec3
    cos_theta_in: ti.f32
    weight: vec3
    pdf: ti.f32


@ti.dataclass
class BrdfEval:
    """Result of evaluating the reflectance model toward a direction.

    Attributes:
        valid: 0 if the direction is below the horizon.
        value: Mixture of f * cos over both lobes (RGB).
        pdf: Mixture pdf of sampling that direction.
    """

    valid: ti.i32
    value: vec3
    pdf: ti.f32


# =============================================================================
# Lobe Probabilities
# =============================================================================


@ti.func
def lobe_probabilities(material: Material) -> LobeProbabilities:
    """Compute lobe selection probabilities from albedo luminances.

    A surface whose total albedo is below ABSORPTIVE_ALBEDO gets all-zero
    probabilities and is never sampled.
    """
    albedo_diffuse = luminance(material.diffuse)
    albedo_specular = luminance(material.specular)
    total_albedo = albedo_diffuse + albedo_specular

    probs = LobeProbabilities(diffuse=0.0, specular=0.0, continuation=0.0)
    if total_albedo >= ABSORPTIVE_ALBEDO:
        probs = LobeProbabilities(
            diffuse=albedo_diffuse / total_albedo,
            specular=albedo_specular / total_albedo,
            continuation=total_albedo,
        )
    return probs


@dataclass(frozen=True)
class LobeProbabilitiesInfo:
    """Python-side lobe probabilities for scene summaries and validation."""

    diffuse: float
    specular: float
    continuation: float


def compute_lobe_probabilities(
    diffuse: tuple[float, float, float],
    specular: tuple[float, float, float],
) -> LobeProbabilitiesInfo:
    """Python twin of lobe_probabilities()."""
    albedo_diffuse = luminance_python(diffuse)
    albedo_specular = luminance_python(specular)
    total_albedo = albedo_diffuse + albedo_specular
    if total_albedo < ABSORPTIVE_ALBEDO:
        return LobeProbabilitiesInfo(0.0, 0.0, 0.0)
    return LobeProbabilitiesInfo(
        diffuse=albedo_diffuse / total_albedo,
        specular=albedo_specular / total_albedo,
        continuation=total_albedo,
    )


# =============================================================================
# Construction
# =============================================================================


@ti.func
def make_brdf(ray_direction: vec3, normal: vec3, material: Material) -> Brdf:
    """Build the reflectance model for a surface hit.

    Args:
        ray_direction: Direction of the ray that hit the surface (pointing
            toward the surface). Negated to get the direction to the viewer.
        normal: The geometric surface normal (unit length, outward side).
        material: The surface material.

    Returns:
        A Brdf; valid == 0 when the viewer is behind the surface or at
        grazing incidence.
    """
    frame = frame_from_z(normal)
    wo_local = to_local(frame, -ray_direction)
    valid = 0
    if wo_local.z >= EPS_COSINE:
        valid = 1
    return Brdf(
        valid=valid,
        material=material,
        frame=frame,
        wo_local=wo_local,
        probs=lobe_probabilities(material),
    )


# =============================================================================
# Sampling
# =============================================================================


@ti.func
def _invalid_sample() -> BrdfSample:
    return BrdfSample(
        valid=0,
        wi=vec3(0.0, 0.0, 0.0),
        cos_theta_in=0.0,
        weight=vec3(0.0, 0.0, 0.0),
        pdf=0.0,
    )


@ti.func
def _sample_diffuse(brdf: Brdf, u1: ti.f32, u2: ti.f32) -> BrdfSample:
    wi_local, pdf = cos_hemisphere_sample(u1, u2)
    result = _invalid_sample()
    if wi_local.z >= EPS_COSINE:
        result = BrdfSample(
            valid=1,
            wi=to_world(brdf.frame, wi_local),
            cos_theta_in=wi_local.z,
            weight=brdf.material.diffuse,
            pdf=pdf,
        )
    return result


@ti.func
def _sample_specular(brdf: Brdf, u1: ti.f32, u2: ti.f32) -> BrdfSample:
    # Lobe direction around the mirror axis, moved to the normal's frame, then to world
    lobe_dir, pdf = pow_cos_hemisphere_sample(brdf.material.phong_exp, u1, u2)
    mirror_frame = frame_from_z(reflect_local(brdf.wo_local))
    wi_local = to_world(mirror_frame, lobe_dir)

    result = _invalid_sample()
    if wi_local.z >= EPS_COSINE:
        result = BrdfSample(
            valid=1,
            wi=to_world(brdf.frame, wi_local),
            cos_theta_in=wi_local.z,
            weight=brdf.material.specular,
            pdf=pdf,
        )
    return result


@ti.func
def sample_brdf(brdf: Brdf, u0: ti.f32, u1: ti.f32, u2: ti.f32) -> BrdfSample:
    """Sample an incident direction from the lobe mixture.

    Args:
        brdf: The reflectance model for this hit.
        u0: Uniform random number selecting the lobe (diffuse if
            u0 <= probs.diffuse).
        u1: First uniform random number for the lobe's warp.
        u2: Second uniform random number for the lobe's warp.

    Returns:
        A BrdfSample; valid == 0 if the Brdf is invalid, the surface is
        fully absorptive, or the direction fell below the horizon.
    """
    result = _invalid_sample()
    if brdf.valid == 1 and brdf.probs.diffuse + brdf.probs.specular > 0.0:
        if u0 <= brdf.probs.diffuse:
            result = _sample_diffuse(brdf, u1, u2)
        else:
            result = _sample_specular(brdf, u1, u2)
    return result


# =============================================================================
# Evaluation
# =============================================================================


@ti.func
def _eval_diffuse(brdf: Brdf, wi_local: vec3):
    cos_theta = ti.max(wi_local.z, 0.0)
    pdf = cos_theta * INV_PI
    return brdf.material.diffuse * pdf, pdf


@ti.func
def _eval_specular(brdf: Brdf, wi_local: vec3):
    mirror = reflect_local(brdf.wo_local)
    cos_alpha = tm.clamp(tm.dot(mirror, wi_local), 0.0, 1.0)
    lobe = pow_cos_hemisphere_pdf(brdf.material.phong_exp, cos_alpha)
    return brdf.material.specular * lobe, lobe


@ti.func
def eval_brdf(brdf: Brdf, wi: vec3) -> BrdfEval:
    """Evaluate the lobe mixture toward a world-space direction.

    Args:
        brdf: The reflectance model for this hit.
        wi: Candidate incident direction in world space (pointing away
            from the surface). Normalized internally.

    Returns:
        A BrdfEval with the mixture of f * cos and the mixture pdf;
        valid == 0 if wi is below the horizon or the Brdf is invalid.
    """
    wi_local = tm.normalize(to_local(brdf.frame, wi))
    result = BrdfEval(valid=0, value=vec3(0.0, 0.0, 0.0), pdf=0.0)
    if brdf.valid == 1 and wi_local.z >= EPS_COSINE:
        diffuse_value, diffuse_pdf = _eval_diffuse(brdf, wi_local)
        specular_value, specular_pdf = _eval_specular(brdf, wi_local)
        result = BrdfEval(
            valid=1,
            value=diffuse_value * brdf.probs.diffuse + specular_value * brdf.probs.specular,
            pdf=diffuse_pdf * brdf.probs.diffuse + specular_pdf * brdf.probs.specular,
        )
    return result


# =============================================================================
# Material Field Storage
# =============================================================================

MAX_MATERIALS = 1024

material_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_specular = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_phong_exp = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _validate_albedo(name: str, albedo: tuple[float, float, float]) -> None:
    if len(albedo) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not math.isfinite(component) or component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def clear_materials() -> None:
    """Reset the material count to zero."""
    num_materials[None] = 0


def add_material(
    diffuse: tuple[float, float, float],
    specular: tuple[float, float, float] = (0.0, 0.0, 0.0),
    phong_exp: float = 1.0,
) -> int:
    """Add a material to the registry.

    Args:
        diffuse: Diffuse albedo as (R, G, B), each in [0, 1].
        specular: Specular albedo as (R, G, B), each in [0, 1].
        phong_exp: Glossiness exponent of the specular lobe (>= 0).

    Returns:
        The material id.

    Raises:
        ValueError: If an albedo component is outside [0, 1] or the
            exponent is negative.
        RuntimeError: If the maximum number of materials is exceeded.
    """
    _validate_albedo("Diffuse albedo", diffuse)
    _validate_albedo("Specular albedo", specular)
    if not math.isfinite(phong_exp) or phong_exp < 0.0:
        raise ValueError(f"Phong exponent must be non-negative, got {phong_exp}")

    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_diffuse[idx] = vec3(diffuse[0], diffuse[1], diffuse[2])
    material_specular[idx] = vec3(specular[0], specular[1], specular[2])
    material_phong_exp[idx] = phong_exp
    num_materials[None] = idx + 1
    return idx


def get_material_count() -> int:
    return int(num_materials[None])


@ti.func
def get_material(material_id: ti.i32) -> Material:
    """Look up a material by id inside a kernel."""
    return Material(
        diffuse=material_diffuse[material_id],
        specular=material_specular[material_id],
        phong_exp=material_phong_exp[material_id],
    )
