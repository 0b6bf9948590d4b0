from __future__ import annotations

import uuid
from typing import Optional

from targetsense.belief.occupancy import OccupancyBeliefGrid
from targetsense.belief.state import TargetCache, TargetStatus
from targetsense.sim.bodies import HasWorldPose
from targetsense.sim.grid import GridTopology
from targetsense.types import TargetGuid


class Target:
    """
    An entity observers try to keep track of.

    The belief grid is created from the topology given here; without one the
    target is tracked by status only and belief operations are skipped.
    """

    def __init__(
        self,
        body: Optional[HasWorldPose] = None,
        topology: Optional[GridTopology] = None,
        guid: Optional[TargetGuid] = None,
    ) -> None:
        self.guid: TargetGuid = guid if guid is not None else uuid.uuid4().hex
        self.body = body
        self.topology = topology
        self.last_known = TargetCache()
        self.belief: Optional[OccupancyBeliefGrid] = (
            OccupancyBeliefGrid(topology) if topology is not None else None
        )

    def __repr__(self) -> str:
        return f"Target(guid={self.guid!r}, status={self.status.value})"

    @property
    def status(self) -> TargetStatus:
        return self.last_known.status

    @property
    def is_known(self) -> bool:
        return self.last_known.is_known
