"""Orthonormal shading frames.

A shading frame is an orthonormal basis whose z-axis is a chosen direction
(usually a surface normal or a mirror direction). Local coordinates put that
direction at (0, 0, 1), which is where all hemisphere sampling warps in
core.sampling produce their directions.

The tangent construction picks a helper axis that is not nearly parallel to
z and crosses it in. Any consistent choice works because every lobe built on
top of the frame is isotropic about z.

Example:
    >>> @ti.kernel
    ... def demo():
    ...     frame = frame_from_z(vec3(0.0, 1.0, 0.0))
    ...     local = to_local(frame, vec3(0.0, 1.0, 0.0))  # (0, 0, 1)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class Frame:
    """Orthonormal basis.

    Attributes:
        x: First tangent (local x-axis in world space).
        y: Second tangent (local y-axis in world space).
        z: The frame's principal direction (local z-axis in world space).
    """

    x: vec3
    y: vec3
    z: vec3


@ti.func
def frame_from_z(direction: vec3) -> Frame:
    """Build a right-handed frame whose z-axis is the given direction.

    Args:
        direction: The principal direction. Normalized internally.

    Returns:
        A Frame with z = normalize(direction).
    """
    z = tm.normalize(direction)
    helper = vec3(1.0, 0.0, 0.0)
    if ti.abs(z.x) > 0.9:
        helper = vec3(0.0, 1.0, 0.0)
    x = tm.normalize(tm.cross(helper, z))
    y = tm.cross(z, x)
    return Frame(x=x, y=y, z=z)


@ti.func
def to_local(frame: Frame, v: vec3) -> vec3:
    """Express a world-space vector in the frame's local coordinates."""
    return vec3(tm.dot(v, frame.x), tm.dot(v, frame.y), tm.dot(v, frame.z))


@ti.func
def to_world(frame: Frame, v: vec3) -> vec3:
    """Express a local-space vector in world coordinates."""
    return v.x * frame.x + v.y * frame.y + v.z * frame.z


def frame_from_z_numpy(
    direction: tuple[float, float, float] | npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Python-side twin of frame_from_z().

    Used when light frames are precomputed at registration time instead of
    per kernel launch.

    Args:
        direction: The principal direction (need not be normalized).

    Returns:
        Tuple of (x, y, z) basis vectors as NumPy arrays.

    Raises:
        ValueError: If the direction has zero length.
    """
    z = np.asarray(direction, dtype=np.float64)
    norm = np.linalg.norm(z)
    if norm < 1e-12:
        raise ValueError("Cannot build a frame from a zero-length direction")
    z = z / norm

    helper = np.array([1.0, 0.0, 0.0])
    if abs(z[0]) > 0.9:
        helper = np.array([0.0, 1.0, 0.0])
    x = np.cross(helper, z)
    x = x / np.linalg.norm(x)
    y = np.cross(z, x)
    return x, y, z
