"""Explicit per-pixel random number state.

Each pixel owns one 32-bit PCG state in a Taichi field. Inside the render
kernel a pixel task only ever reads and advances its own cell, so the
parallel pixel loop needs no synchronization and a fixed seed reproduces
the same image regardless of how the runtime schedules pixels.

The generator is an LCG state transition followed by the PCG RXS-M-XS
output permutation; the top 24 bits become a float in [0, 1).

Example:
    >>> from src.pathcore.core.rng import seed_rng, next_float
    >>> seed_rng(1234)
    >>> # Inside a kernel: u = next_float(i, j)
"""

import taichi as ti

from src.pathcore.core.framebuffer import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH

# LCG multiplier and increment (both odd, both fit a signed 32-bit literal)
_LCG_MULTIPLIER = 747796405
_LCG_INCREMENT = 1013904223
_PCG_OUTPUT_MULTIPLIER = 277803737

_rng_state = ti.field(dtype=ti.u32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))


@ti.func
def _pcg_permute(state: ti.u32) -> ti.u32:
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(
        _PCG_OUTPUT_MULTIPLIER
    )
    return (word >> ti.u32(22)) ^ word


@ti.func
def _pcg_hash(value: ti.u32) -> ti.u32:
    return _pcg_permute(value * ti.u32(_LCG_MULTIPLIER) + ti.u32(_LCG_INCREMENT))


@ti.kernel
def _seed_kernel(seed: ti.i32):
    seed_u = ti.cast(seed, ti.u32)
    for i, j in _rng_state:
        pixel_index = ti.cast(j * MAX_IMAGE_WIDTH + i, ti.u32)
        _rng_state[i, j] = _pcg_hash(_pcg_hash(pixel_index) ^ seed_u)


def seed_rng(seed: int) -> None:
    """Initialize every pixel's random state from a single seed.

    Args:
        seed: Any integer; it is reduced to 32 bits.
    """
    seed_32 = seed & 0xFFFFFFFF
    if seed_32 >= 2**31:
        seed_32 -= 2**32
    _seed_kernel(seed_32)


@ti.func
def next_float(i: ti.i32, j: ti.i32) -> ti.f32:
    """Advance pixel (i, j)'s state and return a uniform float in [0, 1)."""
    state = _rng_state[i, j] * ti.u32(_LCG_MULTIPLIER) + ti.u32(_LCG_INCREMENT)
    _rng_state[i, j] = state
    word = _pcg_permute(state)
    return ti.cast(word >> ti.u32(8), ti.f32) * (1.0 / 16777216.0)
