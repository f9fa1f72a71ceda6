"""Accumulating framebuffer for progressive rendering.

The framebuffer sums the colour of every iteration into a preallocated
buffer; the displayed image is the sum divided by the number of completed
iterations. add_color() never overwrites, so each iteration's pixel estimate
is one more sample in the running mean.

Buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT so that
changing the active resolution never reallocates Taichi fields or triggers
kernel recompilation.

Example:
    >>> from src.pathcore.core.framebuffer import setup_render_target
    >>> setup_render_target(256, 256)
    >>> # Kernels call add_color(i, j, color) once per pixel per iteration
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Active image dimensions
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Sum of all iteration colours per pixel
_accum_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Number of completed iterations (same for every pixel)
_iteration_count = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are non-positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()
    logger.debug(f"Render target set to {width}x{height}")


def clear_render_target() -> None:
    """Clear the accumulated colour and the iteration count."""
    _accum_buffer.fill(0.0)
    _iteration_count[None] = 0


def is_render_target_initialized() -> bool:
    return bool(_render_target_initialized[None])


def check_render_target_initialized() -> None:
    """Raise if setup_render_target() has not been called.

    Raises:
        RuntimeError: If the render target is not set up.
    """
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image_dimensions() -> tuple[int, int]:
    """Get the active render target dimensions (the camera's view size).

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def get_iteration_count() -> int:
    """Number of iterations accumulated since the last clear."""
    return int(_iteration_count[None])


def mark_iteration_complete() -> None:
    _iteration_count[None] += 1


@ti.func
def add_color(i: ti.i32, j: ti.i32, color: vec3):
    """Accumulate a colour into pixel (i, j).

    Each pixel is written by exactly one task per iteration, so the
    accumulation needs no atomics.
    """
    _accum_buffer[i, j] += color


def get_accumulated_numpy() -> npt.NDArray[np.float32]:
    """Get the raw colour sums as an (height, width, 3) array.

    Rows are ordered top to bottom (pixel row 0 of the kernel is the bottom
    of the image, so the buffer is flipped vertically).

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    check_render_target_initialized()
    width, height = get_image_dimensions()

    full = _accum_buffer.to_numpy()
    image = full[:width, :height, :]

    # (width, height, 3) -> (height, width, 3), then bottom-left to top-left origin
    image = np.transpose(image, (1, 0, 2))
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the mean colour per pixel as an (height, width, 3) array.

    Values are linear radiance and are not clamped. Before any iteration
    the image is all zeros.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    image = get_accumulated_numpy()
    count = get_iteration_count()
    if count > 0:
        image = image / np.float32(count)
    return image.astype(np.float32)
