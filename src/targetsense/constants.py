"""Global immutable constants for target perception and belief tracking.

These values are intended to be stable across scenarios. Runtime-configurable
values should be passed through the dataclass configs in
`targetsense.perception.config` and `targetsense.belief.updater`.
"""

from __future__ import annotations

from typing import Final, Tuple

# --- Coordinate/frame constants ---
# Z-up world; an observer with zero yaw looks down +X.
DEFAULT_FORWARD: Final[Tuple[float, float, float]] = (1.0, 0.0, 0.0)


# --- Vision parameters ---
DEFAULT_VISION_ANGLE: Final[float] = 90.0  # degrees, full cone width
DEFAULT_VISION_DISTANCE: Final[float] = 1000.0  # world units


# --- Awareness parameters ---
# gain awareness twice as fast as it decays
AWARENESS_GAIN_RATE: Final[float] = 0.1
AWARENESS_DECAY_RATE: Final[float] = 0.05
IMMEDIATE_AWARENESS_THRESHOLD: Final[float] = 1.0
AWARENESS_SNAP_TOLERANCE: Final[float] = 1e-9


# --- Belief grid parameters ---
PROBABILITY_SPREAD: Final[float] = 0.1  # fraction of a cell's mass leaked per diffusion step


# --- Grid label values (top-down label maps) ---
LABEL_OCCUPIED: Final[int] = 0
LABEL_FREE: Final[int] = 1
LABEL_BORDER: Final[int] = 2

__all__ = [
    "AWARENESS_DECAY_RATE",
    "AWARENESS_GAIN_RATE",
    "AWARENESS_SNAP_TOLERANCE",
    "DEFAULT_FORWARD",
    "DEFAULT_VISION_ANGLE",
    "DEFAULT_VISION_DISTANCE",
    "IMMEDIATE_AWARENESS_THRESHOLD",
    "LABEL_BORDER",
    "LABEL_FREE",
    "LABEL_OCCUPIED",
    "PROBABILITY_SPREAD",
]
