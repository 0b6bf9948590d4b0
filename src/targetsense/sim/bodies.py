from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import numpy as np

from targetsense.constants import DEFAULT_FORWARD
from targetsense.types import PositionLike, ScalarLike, Vector3Like
from targetsense.utils.spatial.rotations import yaw_to_forward


@runtime_checkable
class HasWorldPose(Protocol):
    """Ground-truth kinematics of whatever entity carries an observer or a target."""

    @property
    def position(self) -> np.ndarray:
        ...

    @property
    def forward(self) -> np.ndarray:
        ...

    @property
    def velocity(self) -> np.ndarray:
        ...


def _vec3(value: Vector3Like, name: str) -> np.ndarray:
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must be length 3, got shape {arr.shape}")
    return arr


@dataclass
class WorldBody:
    """
    A plain kinematic body implementing `HasWorldPose`.

    Hosts that own their own actors only need to expose the three properties;
    this record is for hosts (and tests) that do not.
    """

    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    forward: np.ndarray = field(default_factory=lambda: np.asarray(DEFAULT_FORWARD, dtype=np.float64))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.position = _vec3(self.position, "position")
        self.velocity = _vec3(self.velocity, "velocity")
        self.set_forward(self.forward)

    @classmethod
    def from_yaw(
        cls,
        position: PositionLike,
        yaw: ScalarLike = 0.0,
        velocity: Vector3Like = (0.0, 0.0, 0.0),
    ) -> "WorldBody":
        """Body at `position` facing `yaw` degrees (0 = +X, 90 = +Y)."""
        return cls(position=position, forward=yaw_to_forward(yaw), velocity=velocity)

    def set_forward(self, forward: Vector3Like) -> None:
        f = _vec3(forward, "forward")
        n = float(np.linalg.norm(f))
        if n == 0.0:
            raise ValueError("forward must be non-zero")
        self.forward = f / n

    def move_to(self, position: PositionLike, velocity: Vector3Like = None) -> None:
        self.position = _vec3(position, "position")
        if velocity is not None:
            self.velocity = _vec3(velocity, "velocity")
