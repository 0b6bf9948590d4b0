from __future__ import annotations

import math
from typing import Mapping, Sequence, Tuple

import numpy as np

from targetsense.constants import DEFAULT_FORWARD
from targetsense.types import QuaternionLike, ScalarLike, Vector3Like

try:
    import quaternion  # type: ignore
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Missing dependency `numpy-quaternion` (module name: `quaternion`). "
        "Install it (e.g. `pip install numpy-quaternion`)."
    ) from e


def _wxyz(q: QuaternionLike) -> Tuple[float, float, float, float]:
    """
    Read (w, x, y, z) out of a quaternion-like input.

    Accepts quaternion.quaternion, a length-4 (w, x, y, z) sequence or a
    mapping with keys {'w','x','y','z'}.
    """
    if isinstance(q, quaternion.quaternion):
        return float(q.w), float(q.x), float(q.y), float(q.z)
    if isinstance(q, Mapping):
        return float(q["w"]), float(q["x"]), float(q["y"]), float(q["z"])
    if isinstance(q, Sequence) and len(q) == 4:
        return float(q[0]), float(q[1]), float(q[2]), float(q[3])
    raise TypeError(
        "rotation must be a quaternion.quaternion, a length-4 sequence (w,x,y,z), "
        "or a mapping with keys w,x,y,z."
    )


def as_unit_quaternion(q: QuaternionLike) -> "quaternion.quaternion":
    """Coerce a quaternion-like input to a normalized quaternion.quaternion."""
    w, x, y, z = _wxyz(q)
    n = math.sqrt(w * w + x * x + y * y + z * z)
    if n == 0.0:
        raise ValueError("Cannot normalize a zero-norm quaternion.")
    return quaternion.quaternion(w / n, x / n, y / n, z / n)


def yaw_to_quaternion(yaw: ScalarLike, *, degrees: bool = True) -> "quaternion.quaternion":
    """
    Convert a yaw angle to a quaternion.

    Convention:
      - Z-up world; yaw is a rotation about +Z.
      - Yaw = 0 faces +X and increases toward +Y.
    """
    yaw_rad = math.radians(float(yaw)) if degrees else float(yaw)
    half = 0.5 * yaw_rad
    return quaternion.quaternion(math.cos(half), 0.0, 0.0, math.sin(half))


def forward_from_rotation(
    rotation: QuaternionLike,
    *,
    local_forward: Vector3Like = DEFAULT_FORWARD,
) -> np.ndarray:
    """
    World-space unit forward vector for a body rotation.

    Args:
        rotation: Quaternion in (w, x, y, z) format.
        local_forward: Body-frame forward axis (default +X).

    Returns:
        Unit vector of shape (3,).
    """
    v = np.asarray(local_forward, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"local_forward must be length 3, got shape {v.shape}")
    rotated = quaternion.rotate_vectors(as_unit_quaternion(rotation), v)
    n = float(np.linalg.norm(rotated))
    if n == 0.0:
        raise ValueError("local_forward has zero norm; cannot build a facing direction.")
    return rotated / n


def yaw_to_forward(yaw: ScalarLike, *, degrees: bool = True) -> np.ndarray:
    """Unit forward vector in the XY plane for a yaw angle."""
    return forward_from_rotation(yaw_to_quaternion(yaw, degrees=degrees))


def direction_to_yaw(direction: Vector3Like, *, degrees: bool = True) -> float:
    """
    Yaw of a world-space direction, ignoring its Z component.

    Raises:
        ValueError: If the direction has no extent in the XY plane.
    """
    d = np.asarray(direction, dtype=np.float64)
    if d.shape != (3,):
        raise ValueError(f"direction must be length 3, got shape {d.shape}")
    if np.allclose(d[:2], 0.0):
        raise ValueError("direction must have an XY component to compute yaw")
    yaw = math.atan2(float(d[1]), float(d[0]))
    return math.degrees(yaw) if degrees else yaw


def normalize_yaw(yaw: ScalarLike, *, degrees: bool = True) -> float:
    """Wrap a yaw angle to [-180, 180) degrees, or [-pi, pi) radians."""
    if degrees:
        return ((float(yaw) + 180.0) % 360.0) - 180.0
    return ((float(yaw) + math.pi) % (2.0 * math.pi)) - math.pi
