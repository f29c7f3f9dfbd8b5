"""
World state - Fused perception output.

SensorSnapshot holds the raw readings of one tick; Signals adds the
semantic values the decision layer acts on.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sensors.base import FloorColor


@dataclass
class SensorSnapshot:
    """Raw sensor readings for one tick."""

    distance_cm: float | None = None  # None when the reading was rejected
    floor_color: FloorColor = FloorColor.BACKGROUND
    heading: float = 0.0  # Degrees, cumulative
    angular_rate: float = 0.0  # deg/s
    left_speed: float = 0.0
    right_speed: float = 0.0


@dataclass
class Signals:
    """
    Current instant perception.

    Recomputed every tick, nothing is remembered between ticks.
    """

    tick: int
    snapshot: SensorSnapshot = field(default_factory=SensorSnapshot)
    enemy_visible: bool = False
    danger_level: int = 0
    in_danger_zone: bool = False

    @property
    def heading(self) -> float:
        return self.snapshot.heading

    @property
    def angular_rate(self) -> float:
        return self.snapshot.angular_rate

    @property
    def wheel_speed(self) -> float:
        """Mean absolute measured wheel speed."""
        s = self.snapshot
        return (abs(s.left_speed) + abs(s.right_speed)) / 2
