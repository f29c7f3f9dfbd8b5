"""
Perception Layer - World understanding.

Turns raw sensor readings into decision signals:
- SensorFusion: sensors -> Signals, once per tick
- SensorSnapshot / Signals: current instant perception
"""

from .world_state import SensorSnapshot, Signals
from .sensor_fusion import (
    SensorFusion,
    derive_danger_level,
    is_enemy_ahead,
    is_in_danger_zone,
    is_stalled,
)

__all__ = [
    "SensorSnapshot",
    "Signals",
    "SensorFusion",
    "derive_danger_level",
    "is_enemy_ahead",
    "is_in_danger_zone",
    "is_stalled",
]
