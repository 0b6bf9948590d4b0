from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from targetsense.belief.state import TargetStatus
from targetsense.belief.target import Target
from targetsense.constants import PROBABILITY_SPREAD
from targetsense.perception.config import AwarenessConfig
from targetsense.perception.observer import Observer
from targetsense.perception.visibility import VisibilityMaskCache
from targetsense.sim.oracle import VisibilityOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeliefConfig:
    """Tunable parameters of the occupancy belief."""

    probability_spread: float = field(
        default=PROBABILITY_SPREAD,
        metadata={"help": "Fraction of each cell's mass diffused to neighbours per step."},
    )

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability_spread <= 1.0:
            raise ValueError(
                f"probability_spread must be in [0, 1], got {self.probability_spread}"
            )


@dataclass
class BeliefUpdater:
    """
    Per-target perception state machine.

    Each step a target is IMMEDIATE when any observer's awareness of it has
    reached the threshold, HIDDEN when it was known before but is not
    immediate now, and otherwise stays UNKNOWN. Immediate targets collapse
    their belief onto the observed position; hidden targets prune it against
    what observers can see; every known target diffuses it.
    """

    awareness_config: AwarenessConfig = field(default_factory=AwarenessConfig)
    config: BeliefConfig = field(default_factory=BeliefConfig)

    def is_immediate(self, target: Target, observers: Iterable[Observer]) -> bool:
        threshold = self.awareness_config.immediate_threshold
        for observer in observers:
            entry = observer.get_target_data(target.guid)
            if entry is not None and entry.awareness >= threshold:
                return True
        return False

    def update(
        self,
        target: Target,
        observers: Sequence[Observer],
        oracle: VisibilityOracle,
        visibility: Optional[VisibilityMaskCache] = None,
    ) -> TargetStatus:
        """
        Advance `target` by one step. Observers' awareness for this step must
        already be up to date.

        Args:
            target: Target to evaluate.
            observers: Every registered observer.
            oracle: Line-of-sight oracle used for pruning.
            visibility: Shared per-step mask cache; built on demand when omitted.

        Returns:
            The target's new status.
        """
        cache = target.last_known
        previous = cache.status

        if self.is_immediate(target, observers):
            cache.status = TargetStatus.IMMEDIATE
            if target.body is not None:
                cache.set(target.body.position, target.body.velocity)
                if target.belief is not None:
                    target.belief.set_position(cache.position)
        elif cache.is_known:
            cache.status = TargetStatus.HIDDEN

        if cache.status is TargetStatus.HIDDEN and target.belief is not None:
            if visibility is None:
                visibility = VisibilityMaskCache(observers, oracle)
            self.prune(target, visibility)

        # immediate targets diffuse too, so a fresh sighting already spreads by one step
        if cache.is_known and target.belief is not None:
            target.belief.diffuse(self.config.probability_spread)

        if cache.status is not previous:
            logger.debug("target %s: %s -> %s", target.guid, previous.value, cache.status.value)
        return cache.status

    def prune(self, target: Target, visibility: VisibilityMaskCache) -> None:
        """Prune the belief against current visibility and refresh the best-guess position."""
        belief = target.belief
        mass = belief.prune_by_visibility(visibility.get(belief.topology))
        if mass == 0.0:
            logger.debug("target %s: belief cleared, no mass outside visible cells", target.guid)

        best = belief.best_guess_position()
        if best is not None:
            target.last_known.position = best
