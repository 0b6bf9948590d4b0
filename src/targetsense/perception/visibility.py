"""Vision-cone and line-of-sight tests for observers.

`test_visibility` is the single-point check; `compute_visibility_mask` applies
it to every traversable cell centre for a set of observers, which is what the
belief grid prunes against.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Iterable, Optional

import numpy as np

from targetsense.perception.config import VisionParameters
from targetsense.sim.grid import GridTopology
from targetsense.sim.oracle import VisibilityOracle
from targetsense.types import EntityId, PositionLike, Vector3Like

if TYPE_CHECKING:
    from targetsense.perception.observer import Observer


def _unit(v: np.ndarray) -> np.ndarray:
    n = float(np.linalg.norm(v))
    if n == 0.0:
        return np.zeros_like(v)
    return v / n


def angle_between(forward: Vector3Like, direction: Vector3Like) -> float:
    """
    Angle in degrees between two directions.

    Both vectors are normalised first; a zero vector stays zero, so the dot
    product is 0 and the angle is 90 degrees. The dot product is clamped to
    [-1, 1] before the arccosine.
    """
    f = _unit(np.asarray(forward, dtype=np.float64))
    d = _unit(np.asarray(direction, dtype=np.float64))
    dot = float(np.clip(np.dot(f, d), -1.0, 1.0))
    return math.degrees(math.acos(dot))


def in_vision_cone(
    position: PositionLike,
    forward: Vector3Like,
    vision: VisionParameters,
    point: PositionLike,
) -> bool:
    """Range and cone check, without line of sight."""
    offset = np.asarray(point, dtype=np.float64) - np.asarray(position, dtype=np.float64)
    if float(np.linalg.norm(offset)) > vision.vision_distance:
        return False
    return angle_between(forward, offset) <= vision.half_angle


def test_visibility(
    position: PositionLike,
    forward: Vector3Like,
    vision: VisionParameters,
    point: PositionLike,
    oracle: VisibilityOracle,
    ignoring: Optional[EntityId] = None,
) -> bool:
    """
    Binary visibility of `point` from an observer pose.

    Fails when `point` is beyond the vision distance or outside half the vision
    angle; otherwise the oracle decides. Any obstruction counts as a failure.
    """
    if not in_vision_cone(position, forward, vision, point):
        return False
    return oracle.has_line_of_sight(position, point, ignoring)


# keep pytest from collecting the public name above as a test
test_visibility.__test__ = False


def compute_visibility_mask(
    topology: GridTopology,
    observers: Iterable["Observer"],
    oracle: VisibilityOracle,
) -> np.ndarray:
    """
    Boolean map of cells some observer can currently see.

    A cell is visible when it is traversable and at least one observer's
    `test_visibility` succeeds for its world-space centre. Non-traversable
    cells are never visible. Cost is O(cells x observers).
    """
    observers = list(observers)
    x_count, y_count = topology.dimensions
    visible = np.zeros((x_count, y_count), dtype=bool)
    if not observers:
        return visible

    for x in range(x_count):
        for y in range(y_count):
            cell = (x, y)
            if not topology.is_traversable(cell):
                continue
            centre = topology.world_position_of(cell)
            for observer in observers:
                if observer.test_visibility(centre, oracle):
                    visible[x, y] = True
                    break
    return visible


class VisibilityMaskCache:
    """
    Visibility masks for one simulation step.

    The mask depends only on the observers and the topology, so every target
    pruned in the same step can share it. Create a fresh cache per step.
    """

    def __init__(self, observers: Iterable["Observer"], oracle: VisibilityOracle) -> None:
        self.observers = list(observers)
        self.oracle = oracle
        self._masks: Dict[int, np.ndarray] = {}
        self.computed = 0

    def get(self, topology: GridTopology) -> np.ndarray:
        key = id(topology)
        mask = self._masks.get(key)
        if mask is None:
            mask = compute_visibility_mask(topology, self.observers, self.oracle)
            self._masks[key] = mask
            self.computed += 1
        return mask
