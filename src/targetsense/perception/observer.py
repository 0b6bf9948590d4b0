from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Hashable, Iterable, Optional

import numpy as np

from targetsense.constants import AWARENESS_SNAP_TOLERANCE
from targetsense.perception.config import AwarenessConfig, VisionParameters
from targetsense.perception.visibility import in_vision_cone, test_visibility
from targetsense.sim.bodies import HasWorldPose
from targetsense.sim.oracle import VisibilityOracle
from targetsense.types import PositionLike, TargetGuid

if TYPE_CHECKING:
    from targetsense.belief.target import Target


def clamp_awareness(value: float) -> float:
    """Clamp to [0, 1], snapping values within float noise of a bound onto it."""
    if value >= 1.0 - AWARENESS_SNAP_TOLERANCE:
        return 1.0
    if value <= AWARENESS_SNAP_TOLERANCE:
        return 0.0
    return float(value)


@dataclass
class AwarenessEntry:
    """What one observer currently believes about one target."""

    awareness: float = 0.0
    has_clear_los: bool = False


class Observer:
    """
    An agent that perceives targets through a vision cone.

    The observer owns one `AwarenessEntry` per target it has evaluated, keyed
    by target guid. `body` supplies the ground-truth pose; without one the
    observer sees nothing and its awareness is left untouched.
    """

    def __init__(
        self,
        body: Optional[HasWorldPose] = None,
        vision: Optional[VisionParameters] = None,
        awareness_config: Optional[AwarenessConfig] = None,
        observer_id: Optional[Hashable] = None,
    ) -> None:
        self.observer_id = observer_id if observer_id is not None else uuid.uuid4().hex
        self.body = body
        self.vision = vision if vision is not None else VisionParameters()
        self.awareness_config = awareness_config if awareness_config is not None else AwarenessConfig()
        self.target_map: Dict[TargetGuid, AwarenessEntry] = {}

    def __repr__(self) -> str:
        return f"Observer(observer_id={self.observer_id!r}, targets={len(self.target_map)})"

    def test_visibility(self, point: PositionLike, oracle: VisibilityOracle) -> bool:
        """Whether this observer can see `point` right now."""
        if self.body is None:
            return False
        return test_visibility(
            self.body.position,
            self.body.forward,
            self.vision,
            point,
            oracle,
            ignoring=self.observer_id,
        )

    def get_target_data(self, guid: TargetGuid) -> Optional[AwarenessEntry]:
        return self.target_map.get(guid)

    def forget_target(self, guid: TargetGuid) -> None:
        self.target_map.pop(guid, None)

    def update_all_target_data(self, targets: Iterable["Target"], oracle: VisibilityOracle) -> None:
        for target in targets:
            self.update_target_data(target, oracle)

    def update_target_data(self, target: "Target", oracle: VisibilityOracle) -> None:
        """
        Advance this observer's awareness of `target` by one step.

        Clear line of sight requires the target to be inside the vision cone
        and the first thing a ray towards it hits to be either nothing or the
        target itself. Clear steps gain awareness, all others decay it.
        """
        if self.body is None:
            return

        entry = self.target_map.get(target.guid)
        if entry is None:
            entry = AwarenessEntry()
            self.target_map[target.guid] = entry

        if target.body is None:
            return

        observer_pos = np.asarray(self.body.position, dtype=np.float64)
        target_pos = np.asarray(target.body.position, dtype=np.float64)

        entry.has_clear_los = False
        if in_vision_cone(observer_pos, self.body.forward, self.vision, target_pos):
            hit = oracle.raycast_first_hit(observer_pos, target_pos, ignoring=self.observer_id)
            entry.has_clear_los = hit is None or hit == target.guid

        config = self.awareness_config
        if entry.has_clear_los:
            entry.awareness = clamp_awareness(entry.awareness + config.gain_rate)
        else:
            entry.awareness = clamp_awareness(entry.awareness - config.decay_rate)
