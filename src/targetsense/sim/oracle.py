"""Line-of-sight oracles.

The perception core treats visibility against world geometry as an opaque
query. Hosts with a physics scene implement `VisibilityOracle` on top of their
ray casts; the implementations here cover empty worlds and grid worlds where
non-traversable cells are solid.
"""

from __future__ import annotations

import math
from typing import Mapping, Optional, Protocol, runtime_checkable

import numpy as np
from skimage.draw import line

from targetsense.sim.bodies import HasWorldPose
from targetsense.sim.grid import GridMapTopology
from targetsense.types import CellRef, EntityId, PositionLike

# Hit id reported when a ray is stopped by static geometry rather than an entity.
WORLD_GEOMETRY = "world"


@runtime_checkable
class VisibilityOracle(Protocol):
    def has_line_of_sight(
        self,
        start: PositionLike,
        end: PositionLike,
        ignoring: Optional[EntityId] = None,
    ) -> bool:
        """True when nothing obstructs the segment from `start` to `end`."""
        ...

    def raycast_first_hit(
        self,
        start: PositionLike,
        end: PositionLike,
        ignoring: Optional[EntityId] = None,
    ) -> Optional[EntityId]:
        """Id of the first thing the segment hits, or None when it is unobstructed."""
        ...


class OpenOracle:
    """An empty world: every segment is unobstructed."""

    def has_line_of_sight(self, start, end, ignoring=None) -> bool:
        return True

    def raycast_first_hit(self, start, end, ignoring=None) -> Optional[EntityId]:
        return None


class GridLineOfSight:
    """
    Ray casts against a grid where every non-traversable cell is solid.

    The segment is rasterised between the start and end cells; the start cell
    itself never blocks. Cells outside the grid are empty space. Entities in
    `entities` occupy the cell under their position and are reported by id
    when a ray reaches them before any solid cell.
    """

    def __init__(
        self,
        topology: GridMapTopology,
        entities: Optional[Mapping[EntityId, HasWorldPose]] = None,
    ) -> None:
        self.topology = topology
        self.entities = entities if entities is not None else {}

    def _raw_cell(self, position: PositionLike) -> CellRef:
        p = np.asarray(position, dtype=np.float64)
        origin = self.topology.origin
        size = self.topology.cell_size
        return (
            int(math.floor((p[0] - origin[0]) / size)),
            int(math.floor((p[1] - origin[1]) / size)),
        )

    def _entity_cells(self, ignoring: Optional[EntityId]) -> dict:
        occupied = {}
        for entity_id, body in self.entities.items():
            if entity_id == ignoring:
                continue
            occupied.setdefault(self._raw_cell(body.position), entity_id)
        return occupied

    def raycast_first_hit(
        self,
        start: PositionLike,
        end: PositionLike,
        ignoring: Optional[EntityId] = None,
    ) -> Optional[EntityId]:
        x0, y0 = self._raw_cell(start)
        x1, y1 = self._raw_cell(end)
        xs, ys = line(x0, y0, x1, y1)
        occupied = self._entity_cells(ignoring)

        for x, y in zip(xs[1:], ys[1:]):
            cell = (int(x), int(y))
            if cell in occupied:
                return occupied[cell]
            if self.topology.in_bounds(cell) and not self.topology.is_traversable(cell):
                return WORLD_GEOMETRY
        return None

    def has_line_of_sight(
        self,
        start: PositionLike,
        end: PositionLike,
        ignoring: Optional[EntityId] = None,
    ) -> bool:
        return self.raycast_first_hit(start, end, ignoring) is None
