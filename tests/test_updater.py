"""Tests for the target status state machine and its belief-grid side effects."""

import numpy as np
import pytest

from targetsense.belief.state import TargetCache, TargetStatus
from targetsense.belief.target import Target
from targetsense.belief.updater import BeliefConfig, BeliefUpdater
from targetsense.perception.config import AwarenessConfig, VisionParameters
from targetsense.perception.observer import AwarenessEntry, Observer
from targetsense.perception.visibility import VisibilityMaskCache
from targetsense.sim.bodies import WorldBody
from targetsense.sim.grid import GridMapTopology
from targetsense.sim.oracle import OpenOracle


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _target(topology=None, position=(150.0, 150.0, 0.0), velocity=(0.0, 0.0, 0.0)) -> Target:
    body = WorldBody(position=np.asarray(position, dtype=float), velocity=np.asarray(velocity, dtype=float))
    return Target(body=body, topology=topology, guid="target")


def _set_awareness(observer: Observer, target: Target, awareness: float) -> None:
    observer.target_map[target.guid] = AwarenessEntry(awareness=awareness, has_clear_los=awareness > 0.0)


def _corridor_watcher() -> Observer:
    # sees the first two cells of a 5 x 1 corridor of 100-unit cells
    return Observer(
        body=WorldBody(position=np.array([-100.0, 50.0, 0.0])),
        vision=VisionParameters(vision_angle=90.0, vision_distance=250.0),
    )


# ===========================================================================
# Transitions
# ===========================================================================


class TestTransitions:
    def test_starts_unknown(self):
        target = _target()
        assert target.status is TargetStatus.UNKNOWN
        assert not target.is_known

    def test_partial_awareness_stays_unknown(self):
        updater = BeliefUpdater()
        target = _target(GridMapTopology.open_field(3, 3))
        observer = Observer()
        _set_awareness(observer, target, 0.99)

        for _ in range(5):
            assert updater.update(target, [observer], OpenOracle()) is TargetStatus.UNKNOWN
        assert target.belief.total_mass() == 0.0

    def test_no_observers_stays_unknown(self):
        target = _target()
        assert BeliefUpdater().update(target, [], OpenOracle()) is TargetStatus.UNKNOWN

    def test_full_awareness_from_any_observer_is_immediate(self):
        target = _target(velocity=(3.0, 4.0, 0.0))
        idle, watcher = Observer(), Observer()
        _set_awareness(idle, target, 0.2)
        _set_awareness(watcher, target, 1.0)

        status = BeliefUpdater().update(target, [idle, watcher], OpenOracle())

        assert status is TargetStatus.IMMEDIATE
        assert target.last_known.position == pytest.approx([150.0, 150.0, 0.0])
        assert target.last_known.velocity == pytest.approx([3.0, 4.0, 0.0])

    def test_immediate_then_hidden_never_unknown_again(self):
        updater = BeliefUpdater()
        target = _target(GridMapTopology.open_field(3, 3))
        observer = Observer()

        _set_awareness(observer, target, 1.0)
        updater.update(target, [observer], OpenOracle())
        _set_awareness(observer, target, 0.95)
        assert updater.update(target, [observer], OpenOracle()) is TargetStatus.HIDDEN

        _set_awareness(observer, target, 0.0)
        for _ in range(10):
            assert updater.update(target, [observer], OpenOracle()) is TargetStatus.HIDDEN

        _set_awareness(observer, target, 1.0)
        assert updater.update(target, [observer], OpenOracle()) is TargetStatus.IMMEDIATE

    def test_custom_threshold(self):
        updater = BeliefUpdater(awareness_config=AwarenessConfig(immediate_threshold=0.5))
        target = _target()
        observer = Observer()
        _set_awareness(observer, target, 0.5)
        assert updater.update(target, [observer], OpenOracle()) is TargetStatus.IMMEDIATE


# ===========================================================================
# Belief side effects
# ===========================================================================


class TestBeliefEffects:
    def test_becoming_immediate_collapses_and_diffuses_same_step(self):
        # the spotted target's point mass already spreads by one diffusion step
        target = _target(GridMapTopology.open_field(3, 3))
        observer = Observer()
        _set_awareness(observer, target, 1.0)

        BeliefUpdater().update(target, [observer], OpenOracle())

        values = target.belief.values
        assert values[1, 1] == pytest.approx(0.9)
        for cell in [(0, 1), (2, 1), (1, 0), (1, 2)]:
            assert values[cell] == pytest.approx(0.025)
        assert target.belief.total_mass() == pytest.approx(1.0)

    def test_staying_immediate_recollapses_each_step(self):
        updater = BeliefUpdater()
        target = _target(GridMapTopology.open_field(3, 3))
        observer = Observer()
        _set_awareness(observer, target, 1.0)
        for _ in range(5):
            updater.update(target, [observer], OpenOracle())
        assert target.belief.values[1, 1] == pytest.approx(0.9)

    def test_hidden_prunes_visible_cells_and_moves_best_guess(self):
        topology = GridMapTopology.open_field(5, 1)
        updater = BeliefUpdater()
        target = _target(topology, position=(150.0, 50.0, 0.0))
        watcher = _corridor_watcher()

        _set_awareness(watcher, target, 1.0)
        updater.update(target, [watcher], OpenOracle())
        assert target.belief.values[:, 0] == pytest.approx([0.05, 0.9, 0.05, 0.0, 0.0])

        _set_awareness(watcher, target, 0.95)
        assert updater.update(target, [watcher], OpenOracle()) is TargetStatus.HIDDEN

        # cells 0 and 1 are in view, so all belief moves to cell 2, which then diffuses
        assert target.last_known.position == pytest.approx([250.0, 50.0, 0.0])
        assert target.belief.values[:, 0] == pytest.approx([0.0, 0.05, 0.9, 0.05, 0.0])

    def test_hidden_with_all_mass_in_view_loses_belief(self):
        topology = GridMapTopology.open_field(2, 1)
        updater = BeliefUpdater(config=BeliefConfig(probability_spread=0.0))
        target = _target(topology, position=(50.0, 50.0, 0.0))
        watcher = _corridor_watcher()

        _set_awareness(watcher, target, 1.0)
        updater.update(target, [watcher], OpenOracle())
        _set_awareness(watcher, target, 0.0)
        updater.update(target, [watcher], OpenOracle())

        assert target.status is TargetStatus.HIDDEN
        assert target.belief.total_mass() == 0.0
        # no mass anywhere, so the last observed position stands
        assert target.last_known.position == pytest.approx([50.0, 50.0, 0.0])

    def test_unknown_target_never_touches_belief(self):
        target = _target(GridMapTopology.open_field(3, 3))
        target.belief.values[0, 0] = 0.4
        BeliefUpdater().update(target, [Observer()], OpenOracle())
        assert target.belief.values[0, 0] == 0.4

    def test_shared_visibility_cache_is_used(self):
        topology = GridMapTopology.open_field(5, 1)
        updater = BeliefUpdater()
        watcher = _corridor_watcher()
        first = Target(body=WorldBody(position=np.array([150.0, 50.0, 0.0])), topology=topology, guid="a")
        second = Target(body=WorldBody(position=np.array([350.0, 50.0, 0.0])), topology=topology, guid="b")
        for target in (first, second):
            _set_awareness(watcher, target, 1.0)
            updater.update(target, [watcher], OpenOracle())
            _set_awareness(watcher, target, 0.0)

        cache = VisibilityMaskCache([watcher], OpenOracle())
        for target in (first, second):
            updater.update(target, [watcher], OpenOracle(), cache)
        assert cache.computed == 1


# ===========================================================================
# Missing collaborators
# ===========================================================================


class TestMissingCollaborators:
    def test_no_topology_tracks_status_only(self):
        target = _target()
        assert target.belief is None
        observer = Observer()
        _set_awareness(observer, target, 1.0)
        updater = BeliefUpdater()
        assert updater.update(target, [observer], OpenOracle()) is TargetStatus.IMMEDIATE
        _set_awareness(observer, target, 0.0)
        assert updater.update(target, [observer], OpenOracle()) is TargetStatus.HIDDEN

    def test_immediate_without_body_keeps_last_position(self):
        target = Target(topology=GridMapTopology.open_field(3, 3), guid="ghost")
        observer = Observer()
        _set_awareness(observer, target, 1.0)
        assert BeliefUpdater().update(target, [observer], OpenOracle()) is TargetStatus.IMMEDIATE
        assert target.last_known.position == pytest.approx([0.0, 0.0, 0.0])
        assert target.belief.total_mass() == 0.0
        assert target.belief.best_guess_cell() is None


class TestTargetCache:
    def test_known_states(self):
        cache = TargetCache()
        assert not cache.is_known
        cache.status = TargetStatus.HIDDEN
        assert cache.is_known

    def test_set_copies_input(self):
        cache = TargetCache()
        position = np.array([1.0, 2.0, 3.0])
        cache.set(position, (0.0, 0.0, 1.0))
        position[0] = 99.0
        assert cache.position == pytest.approx([1.0, 2.0, 3.0])

    def test_copy_is_independent(self):
        cache = TargetCache(TargetStatus.HIDDEN)
        cache.set((1.0, 2.0, 3.0), (4.0, 5.0, 6.0))
        snapshot = cache.copy()
        snapshot.position[0] = 99.0
        snapshot.velocity[0] = 99.0
        assert snapshot.status is TargetStatus.HIDDEN
        assert cache.position == pytest.approx([1.0, 2.0, 3.0])
        assert cache.velocity == pytest.approx([4.0, 5.0, 6.0])


class TestBeliefConfig:
    def test_spread_bounds(self):
        with pytest.raises(ValueError):
            BeliefConfig(probability_spread=1.5)
