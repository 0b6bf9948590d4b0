"""Simulation context: the registries of observers and targets for one world.

A host drives the context once per simulation step. `step()` runs two
phases in a fixed order: every observer updates its awareness of every
target, then every target re-evaluates its status and belief using those
fresh awareness values.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Hashable, List, Optional, Tuple

from targetsense.belief.state import TargetCache
from targetsense.belief.target import Target
from targetsense.belief.updater import BeliefConfig, BeliefUpdater
from targetsense.perception.config import AwarenessConfig, VisionParameters
from targetsense.perception.observer import AwarenessEntry, Observer
from targetsense.perception.visibility import VisibilityMaskCache
from targetsense.sim.bodies import HasWorldPose
from targetsense.sim.grid import GridTopology
from targetsense.sim.oracle import OpenOracle, VisibilityOracle
from targetsense.types import TargetGuid

logger = logging.getLogger(__name__)


class PerceptionContext:
    """
    Owns the observers and targets of a world and advances them in lockstep.

    Registration order is preserved; the first registered target is the one
    observers attend to. Registries must not change while a step is running.
    """

    def __init__(
        self,
        topology: Optional[GridTopology] = None,
        oracle: Optional[VisibilityOracle] = None,
        awareness_config: Optional[AwarenessConfig] = None,
        belief_config: Optional[BeliefConfig] = None,
    ) -> None:
        self.topology = topology
        self.oracle: VisibilityOracle = oracle if oracle is not None else OpenOracle()
        self.awareness_config = awareness_config if awareness_config is not None else AwarenessConfig()
        self.updater = BeliefUpdater(
            awareness_config=self.awareness_config,
            config=belief_config if belief_config is not None else BeliefConfig(),
        )
        self.observers: List[Observer] = []
        self.targets: List[Target] = []
        self.step_count = 0
        self._stepping = False

    # --- registration ---

    def _check_not_stepping(self, action: str) -> None:
        if self._stepping:
            raise RuntimeError(f"cannot {action} while a simulation step is in progress")

    def register_observer(self, observer: Observer) -> Observer:
        self._check_not_stepping("register an observer")
        if observer not in self.observers:
            self.observers.append(observer)
            logger.debug("registered observer %s", observer.observer_id)
        return observer

    def unregister_observer(self, observer: Observer) -> None:
        self._check_not_stepping("unregister an observer")
        if observer in self.observers:
            self.observers.remove(observer)
            logger.debug("unregistered observer %s", observer.observer_id)

    def register_target(self, target: Target) -> Target:
        self._check_not_stepping("register a target")
        if target not in self.targets:
            self.targets.append(target)
            logger.debug("registered target %s", target.guid)
        return target

    def unregister_target(self, target: Target) -> None:
        self._check_not_stepping("unregister a target")
        if target in self.targets:
            self.targets.remove(target)
            for observer in self.observers:
                observer.forget_target(target.guid)
            logger.debug("unregistered target %s", target.guid)

    def create_observer(
        self,
        body: Optional[HasWorldPose] = None,
        vision: Optional[VisionParameters] = None,
        observer_id: Optional[Hashable] = None,
    ) -> Observer:
        observer = Observer(
            body=body,
            vision=vision,
            awareness_config=self.awareness_config,
            observer_id=observer_id,
        )
        return self.register_observer(observer)

    def create_target(
        self,
        body: Optional[HasWorldPose] = None,
        guid: Optional[TargetGuid] = None,
    ) -> Target:
        """Create and register a target whose belief grid covers this context's topology."""
        return self.register_target(Target(body=body, topology=self.topology, guid=guid))

    def get_target(self, guid: TargetGuid) -> Optional[Target]:
        for target in self.targets:
            if target.guid == guid:
                return target
        return None

    # --- stepping ---

    @contextmanager
    def _exclusive_step(self):
        self._check_not_stepping("start a step")
        self._stepping = True
        try:
            yield
        finally:
            self._stepping = False

    def advance_awareness(self) -> None:
        """Phase 1: every observer updates its awareness of every target."""
        with self._exclusive_step():
            for observer in self.observers:
                observer.update_all_target_data(self.targets, self.oracle)

    def advance_target_states(self) -> None:
        """Phase 2: every target re-evaluates status and belief from current awareness."""
        with self._exclusive_step():
            visibility = VisibilityMaskCache(self.observers, self.oracle)
            for target in self.targets:
                self.updater.update(target, self.observers, self.oracle, visibility)

    def step(self) -> None:
        self.advance_awareness()
        self.advance_target_states()
        self.step_count += 1

    # --- observer queries ---

    def current_target(self, observer: Observer) -> Optional[Target]:
        """The target `observer` attends to: the first registered one, if known."""
        if not self.targets:
            return None
        target = self.targets[0]
        return target if target.is_known else None

    def has_target(self, observer: Observer) -> bool:
        return self.current_target(observer) is not None

    def current_target_state(self, observer: Observer) -> Optional[Tuple[TargetCache, AwarenessEntry]]:
        """Copies of the last-known state and awareness entry for the current target, if both exist."""
        target = self.current_target(observer)
        if target is None:
            return None
        entry = observer.get_target_data(target.guid)
        if entry is None:
            return None
        return target.last_known.copy(), replace(entry)

    def all_target_states(
        self,
        observer: Observer,
        only_known: bool = False,
    ) -> List[Tuple[TargetCache, AwarenessEntry]]:
        """Copied state pairs for every target the observer has evaluated."""
        states = []
        for target in self.targets:
            entry = observer.get_target_data(target.guid)
            if entry is None:
                continue
            if only_known and not target.is_known:
                continue
            states.append((target.last_known.copy(), replace(entry)))
        return states
