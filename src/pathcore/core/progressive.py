"""Progressive renderer driving the path integrator.

ProgressiveRenderer owns the render target dimensions and the integrator
settings, and adds iterations to the accumulation buffer in batches with
progress reporting. The image it returns is always the running mean of
all iterations since the last reset.

Example:
    >>> from src.pathcore.core.progressive import ProgressiveRenderer
    >>> from src.pathcore.core.integrator import RenderSettings
    >>> renderer = ProgressiveRenderer(256, 256, RenderSettings(seed=7))
    >>> renderer.render(64, batch_size=16, callback=lambda done, total: print(done, total))
    >>> renderer.save_image("cornell.png")
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.pathcore.core.framebuffer import (
    clear_render_target,
    get_image_numpy,
    get_iteration_count,
    setup_render_target,
)
from src.pathcore.core.integrator import RenderSettings, render_image

logger = logging.getLogger(__name__)

# Receives (completed_iterations, target_iterations)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates path-traced iterations into one image.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        settings: Integrator settings used for every iteration.
    """

    def __init__(self, width: int, height: int, settings: RenderSettings | None = None) -> None:
        """Set up the render target.

        Raises:
            ValueError: If the dimensions are invalid.
        """
        self._width = width
        self._height = height
        self.settings = settings if settings is not None else RenderSettings()
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def iteration_count(self) -> int:
        """Number of iterations accumulated since the last reset."""
        return get_iteration_count()

    def reset(self) -> None:
        """Discard the accumulated image. The next iteration reseeds."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the resolution and discard the accumulated image.

        Raises:
            ValueError: If the dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height

    def _batches(self, num_iterations: int, batch_size: int) -> Generator[tuple[int, int], None, None]:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        target = self.iteration_count + num_iterations
        remaining = num_iterations
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, self.settings)
            remaining -= batch
            logger.debug(f"Progressive render: {self.iteration_count}/{target} iterations")
            yield self.iteration_count, target

    def render(
        self,
        num_iterations: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add iterations to the image.

        Args:
            num_iterations: Number of iterations to add. Non-positive values
                do nothing.
            batch_size: Iterations rendered between callbacks.
            callback: Called after each batch with (completed, target).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if num_iterations <= 0:
            return
        for completed, target in self._batches(num_iterations, batch_size):
            if callback is not None:
                callback(completed, target)

    def render_progressive(
        self,
        num_iterations: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Generator form of render(), yielding (completed, target) per batch.

        Example:
            >>> for done, total in renderer.render_progressive(100, batch_size=10):
            ...     update_preview(renderer.get_image_numpy(gamma=2.2))
        """
        if num_iterations <= 0:
            return
        yield from self._batches(num_iterations, batch_size)

    def get_radiance_numpy(self) -> npt.NDArray[np.float32]:
        """Mean linear radiance per pixel, (height, width, 3), unclamped."""
        return get_image_numpy()

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Mean colour clamped to [0, 1], optionally gamma encoded.

        Args:
            gamma: Display gamma; 1.0 keeps the values linear.
        """
        image = np.clip(get_image_numpy(), 0.0, 1.0)
        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)
        return image.astype(np.float32)

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        from src.pathcore.preview.export import image_to_uint8

        return image_to_uint8(self.get_image_numpy(gamma=gamma))

    def save_image(self, filepath: str | Path, gamma: float = 2.2) -> None:
        """Write the current image as an 8-bit PNG."""
        from src.pathcore.preview.export import save_png_from_array

        save_png_from_array(self.get_radiance_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"iterations={self.iteration_count})"
        )
