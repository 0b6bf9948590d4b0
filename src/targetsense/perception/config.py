from __future__ import annotations

from dataclasses import dataclass, field

from targetsense.constants import (
    AWARENESS_DECAY_RATE,
    AWARENESS_GAIN_RATE,
    DEFAULT_VISION_ANGLE,
    DEFAULT_VISION_DISTANCE,
    IMMEDIATE_AWARENESS_THRESHOLD,
)


@dataclass(frozen=True)
class VisionParameters:
    """Vision cone of an observer.

    Override per observer at construction rather than editing constants.
    """

    vision_angle: float = field(
        default=DEFAULT_VISION_ANGLE,
        metadata={"help": "Full cone width in degrees."},
    )
    vision_distance: float = field(
        default=DEFAULT_VISION_DISTANCE,
        metadata={"help": "Maximum sight range in world units."},
    )

    def __post_init__(self) -> None:
        if not 0.0 < self.vision_angle <= 360.0:
            raise ValueError(f"vision_angle must be in (0, 360], got {self.vision_angle}")
        if self.vision_distance < 0.0:
            raise ValueError(f"vision_distance must be >= 0, got {self.vision_distance}")

    @property
    def half_angle(self) -> float:
        return self.vision_angle / 2.0


@dataclass(frozen=True)
class AwarenessConfig:
    """Rates at which an observer's awareness of a target builds and fades."""

    gain_rate: float = field(
        default=AWARENESS_GAIN_RATE,
        metadata={"help": "Awareness added per step with clear line of sight."},
    )
    decay_rate: float = field(
        default=AWARENESS_DECAY_RATE,
        metadata={"help": "Awareness removed per step without clear line of sight."},
    )
    immediate_threshold: float = field(
        default=IMMEDIATE_AWARENESS_THRESHOLD,
        metadata={"help": "Awareness at which a target counts as immediately seen."},
    )

    def __post_init__(self) -> None:
        if self.gain_rate < 0.0 or self.decay_rate < 0.0:
            raise ValueError("gain_rate and decay_rate must be >= 0.")
        if not 0.0 < self.immediate_threshold <= 1.0:
            raise ValueError(
                f"immediate_threshold must be in (0, 1], got {self.immediate_threshold}"
            )
