"""Reflectance models.

Components:
    phong: Mixed diffuse/glossy BRDF with importance sampling, and the
        material registry
"""

from .phong import (
    MAX_MATERIALS,
    Brdf,
    BrdfEval,
    BrdfSample,
    LobeProbabilities,
    LobeProbabilitiesInfo,
    Material,
    add_material,
    clear_materials,
    compute_lobe_probabilities,
    eval_brdf,
    get_material,
    get_material_count,
    lobe_probabilities,
    make_brdf,
    sample_brdf,
)

__all__ = [
    "Material",
    "LobeProbabilities",
    "LobeProbabilitiesInfo",
    "Brdf",
    "BrdfSample",
    "BrdfEval",
    "lobe_probabilities",
    "compute_lobe_probabilities",
    "make_brdf",
    "sample_brdf",
    "eval_brdf",
    "add_material",
    "clear_materials",
    "get_material_count",
    "get_material",
    "MAX_MATERIALS",
]
