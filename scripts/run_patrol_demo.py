import logging

import numpy as np

from targetsense.constants import LABEL_FREE, LABEL_OCCUPIED
from targetsense.sim.bodies import WorldBody
from targetsense.sim.grid import GridMapTopology
from targetsense.sim.oracle import GridLineOfSight
from targetsense.simulation.context import PerceptionContext


def build_level() -> GridMapTopology:
    # 12 x 8 room with a wall segment the intruder can slip behind
    labels = np.full((12, 8), LABEL_FREE, dtype=np.int64)
    labels[6, 2:8] = LABEL_OCCUPIED
    return GridMapTopology.from_label_map(labels, cell_size=100.0)


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    topology = build_level()
    intruder_body = WorldBody.from_yaw(position=(350.0, 150.0, 0.0), yaw=0.0, velocity=(100.0, 0.0, 0.0))
    guard_body = WorldBody.from_yaw(position=(50.0, 150.0, 0.0), yaw=0.0)

    context = PerceptionContext(topology=topology)
    intruder = context.create_target(intruder_body, guid="intruder")
    guard = context.create_observer(guard_body, observer_id="guard")
    context.oracle = GridLineOfSight(topology, entities={"intruder": intruder_body, "guard": guard_body})

    T = 25
    for i in range(T):
        # walk right along y=150, then turn up behind the wall after step 12
        if i == 12:
            intruder_body.move_to((750.0, 150.0, 0.0), velocity=(0.0, 100.0, 0.0))
        elif i > 12:
            intruder_body.move_to(intruder_body.position + np.array([0.0, 100.0, 0.0]))

        context.step()

        entry = guard.get_target_data(intruder.guid)
        guess = intruder.last_known.position
        print(
            f"Step {i+1:2d}/{T}  status={intruder.status.value:9s}  "
            f"awareness={entry.awareness:.2f}  guess=({guess[0]:.0f}, {guess[1]:.0f})  "
            f"mass={intruder.belief.total_mass():.3f}"
        )

    print("Best-guess cell:", intruder.belief.best_guess_cell())


if __name__ == "__main__":
    main()
