"""Occupancy belief grid: where a target probably is while nobody can see it.

The grid holds non-negative probability mass per cell. Three operations keep
it current:

* `set_position` collapses all mass onto the cell of an observed position.
* `prune_by_visibility` removes mass from cells observers can see right now
  (the target would have been spotted there) and renormalises the rest.
* `diffuse` leaks a fixed fraction of each cell's mass to its traversable
  neighbours, a one-step random walk standing in for unseen motion.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from targetsense.constants import PROBABILITY_SPREAD
from targetsense.sim.grid import GridTopology
from targetsense.types import CellRef, PositionLike


class OccupancyBeliefGrid:
    """
    Dense probability mass over the cells of a grid topology.

    `values` is indexed `[x, y]` and shaped like `topology.dimensions`. Mass is
    never negative. After a prune the non-visible cells sum to 1, or the grid
    is all zero when nothing survived.
    """

    def __init__(self, topology: GridTopology, fill: float = 0.0) -> None:
        self.topology = topology
        self.values = np.full(topology.dimensions, float(fill), dtype=np.float64)

    def __repr__(self) -> str:
        return f"OccupancyBeliefGrid(shape={self.values.shape}, mass={self.total_mass():.6f})"

    @property
    def shape(self):
        return self.values.shape

    def total_mass(self) -> float:
        return float(self.values.sum())

    def clear(self) -> None:
        self.values.fill(0.0)

    def copy_values(self) -> np.ndarray:
        return self.values.copy()

    def set_position(self, position: PositionLike) -> Optional[CellRef]:
        """
        Put all probability in the cell containing `position`.

        Returns the cell, or None when the position is off the grid, in which
        case the grid is left empty.
        """
        self.clear()
        cell = self.topology.cell_at(position)
        if cell is None or not self.topology.in_bounds(cell):
            return None
        self.values[cell] = 1.0
        return cell

    def prune_by_visibility(self, visible: np.ndarray) -> float:
        """
        Zero every visible cell and renormalise the remaining mass.

        Args:
            visible: Boolean mask shaped like the grid, True where some
                observer currently sees the cell.

        Returns:
            Mass left in non-visible cells before renormalisation. When it is
            0 the grid stays empty.
        """
        mask = np.asarray(visible, dtype=bool)
        if mask.shape != self.values.shape:
            raise ValueError(
                f"visibility mask shape {mask.shape} does not match grid shape {self.values.shape}"
            )

        self.values[mask] = 0.0
        hidden = ~mask
        total = float(self.values[hidden].sum())
        if total > 0.0:
            self.values[hidden] /= total
        return total

    def best_guess_cell(self) -> Optional[CellRef]:
        """Cell with the greatest mass; the first in [x, y] scan order wins ties."""
        if self.values.size == 0:
            return None
        flat = int(np.argmax(self.values))
        x, y = np.unravel_index(flat, self.values.shape)
        if not self.values[x, y] > 0.0:
            return None
        return int(x), int(y)

    def best_guess_position(self) -> Optional[np.ndarray]:
        cell = self.best_guess_cell()
        if cell is None:
            return None
        return self.topology.world_position_of(cell)

    def diffuse(self, spread: float = PROBABILITY_SPREAD) -> None:
        """
        Spread `spread` of each traversable cell's mass evenly over its
        traversable neighbours.

        Sources are read from a snapshot so the result does not depend on
        visiting order. A cell with no traversable neighbour keeps all of its
        mass. Non-traversable cells neither give nor receive.
        """
        snapshot = self.values.copy()

        for x, y in np.argwhere(snapshot > 0.0):
            cell = (int(x), int(y))
            if not self.topology.is_traversable(cell):
                continue

            neighbors = self.topology.neighbors_of(cell, traversable_only=True)
            if not neighbors:
                continue

            amount = snapshot[cell] * spread
            self.values[cell] -= amount
            share = amount / len(neighbors)
            for neighbor in neighbors:
                self.values[neighbor] += share
