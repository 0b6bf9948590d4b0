from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from targetsense.types import PositionLike, Vector3Like


class TargetStatus(str, Enum):
    UNKNOWN = "unknown"  # never perceived
    IMMEDIATE = "immediate"  # fully seen by at least one observer this step
    HIDDEN = "hidden"  # seen before, not now


@dataclass
class TargetCache:
    """
    Last-known kinematic state of a target.

    While the target is hidden `position` is the best guess from the belief
    grid rather than an observation.
    """

    status: TargetStatus = TargetStatus.UNKNOWN
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @property
    def is_known(self) -> bool:
        return self.status in (TargetStatus.IMMEDIATE, TargetStatus.HIDDEN)

    def set(self, position: PositionLike, velocity: Vector3Like) -> None:
        self.position = np.array(position, dtype=np.float64)
        self.velocity = np.array(velocity, dtype=np.float64)

    def copy(self) -> "TargetCache":
        return TargetCache(self.status, self.position.copy(), self.velocity.copy())
