"""Output and visualization.

Example:
    >>> from src.pathcore.preview import save_png, show_preview
    >>> save_png(renderer, "output.png", tone_map="reinhard")
"""

from src.pathcore.preview.display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from src.pathcore.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "show_preview",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
    "compute_rmse",
]
