from __future__ import annotations

import math
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np

from targetsense.constants import LABEL_FREE
from targetsense.types import CellRef, PositionLike, Vector3Like

_ORTHOGONAL_OFFSETS: Tuple[CellRef, ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))
_DIAGONAL_OFFSETS: Tuple[CellRef, ...] = ((1, 1), (1, -1), (-1, 1), (-1, -1))


@runtime_checkable
class GridTopology(Protocol):
    """Cell identity, traversability, coordinate mapping and adjacency of a world grid."""

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(x_count, y_count)."""
        ...

    def cell_at(self, position: PositionLike) -> Optional[CellRef]:
        """Cell containing `position`, or None when it lies off the grid."""
        ...

    def world_position_of(self, cell: CellRef) -> np.ndarray:
        """World-space centre of `cell`."""
        ...

    def is_traversable(self, cell: CellRef) -> bool:
        ...

    def neighbors_of(self, cell: CellRef, traversable_only: bool = True) -> List[CellRef]:
        ...

    def in_bounds(self, cell: CellRef) -> bool:
        ...


class GridMapTopology:
    """
    Array-backed grid topology over the XY plane of a Z-up world.

    `traversable` is a 2D boolean array indexed `[x, y]`. Cell (x, y) spans
    `origin + [x, x+1) * cell_size` along X and likewise along Y; its world
    position is the centre of that square at the origin's height.
    """

    def __init__(
        self,
        traversable: np.ndarray,
        cell_size: float = 100.0,
        origin: Vector3Like = (0.0, 0.0, 0.0),
        *,
        diagonal: bool = False,
    ) -> None:
        grid = np.asarray(traversable, dtype=bool)
        if grid.ndim != 2:
            raise ValueError(f"traversable must be a 2D array, got shape {grid.shape}")
        if not cell_size > 0.0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        origin_arr = np.asarray(origin, dtype=np.float64)
        if origin_arr.shape != (3,):
            raise ValueError(f"origin must be length 3, got shape {origin_arr.shape}")

        self.traversable = grid
        self.cell_size = float(cell_size)
        self.origin = origin_arr
        self.diagonal = diagonal
        self._offsets = _ORTHOGONAL_OFFSETS + (_DIAGONAL_OFFSETS if diagonal else ())

    @classmethod
    def from_label_map(
        cls,
        label_map: np.ndarray,
        cell_size: float = 100.0,
        origin: Vector3Like = (0.0, 0.0, 0.0),
        *,
        diagonal: bool = False,
    ) -> "GridMapTopology":
        """
        Build a topology from a top-down label map (0 = occupied, 1 = free, 2 = border).

        Only free cells are traversable.
        """
        labels = np.asarray(label_map)
        if labels.ndim != 2:
            raise ValueError("label_map must be a 2D array of integer labels.")
        if not np.issubdtype(labels.dtype, np.integer):
            raise ValueError("label_map must have integer dtype.")
        return cls(labels == LABEL_FREE, cell_size, origin, diagonal=diagonal)

    @classmethod
    def open_field(cls, x_count: int, y_count: int, cell_size: float = 100.0, **kwargs) -> "GridMapTopology":
        """A fully traversable grid."""
        return cls(np.ones((x_count, y_count), dtype=bool), cell_size, **kwargs)

    @property
    def dimensions(self) -> Tuple[int, int]:
        return int(self.traversable.shape[0]), int(self.traversable.shape[1])

    def in_bounds(self, cell: CellRef) -> bool:
        x_count, y_count = self.dimensions
        return 0 <= cell[0] < x_count and 0 <= cell[1] < y_count

    def cell_at(self, position: PositionLike) -> Optional[CellRef]:
        p = np.asarray(position, dtype=np.float64)
        cell = (
            int(math.floor((p[0] - self.origin[0]) / self.cell_size)),
            int(math.floor((p[1] - self.origin[1]) / self.cell_size)),
        )
        return cell if self.in_bounds(cell) else None

    def world_position_of(self, cell: CellRef) -> np.ndarray:
        return np.array(
            [
                self.origin[0] + (cell[0] + 0.5) * self.cell_size,
                self.origin[1] + (cell[1] + 0.5) * self.cell_size,
                self.origin[2],
            ],
            dtype=np.float64,
        )

    def is_traversable(self, cell: CellRef) -> bool:
        return self.in_bounds(cell) and bool(self.traversable[cell[0], cell[1]])

    def neighbors_of(self, cell: CellRef, traversable_only: bool = True) -> List[CellRef]:
        neighbors: List[CellRef] = []
        for dx, dy in self._offsets:
            n = (cell[0] + dx, cell[1] + dy)
            if not self.in_bounds(n):
                continue
            if traversable_only and not self.traversable[n[0], n[1]]:
                continue
            neighbors.append(n)
        return neighbors
