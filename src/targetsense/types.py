"""Shared typing aliases used across the project."""

from __future__ import annotations

from typing import Hashable, Mapping, Sequence, Tuple, Union, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import quaternion  # type: ignore

QuaternionLike = Union["quaternion.quaternion", Sequence[float], Mapping[str, float]]
ScalarLike = Union[int, float, np.floating]
Vector3Like = Union[Sequence[float], np.ndarray]
PositionLike = Vector3Like
CellRef = Tuple[int, int]  # (x, y) grid index
TargetGuid = str
EntityId = Hashable

__all__ = [
    "CellRef",
    "EntityId",
    "PositionLike",
    "QuaternionLike",
    "ScalarLike",
    "TargetGuid",
    "Vector3Like",
]
