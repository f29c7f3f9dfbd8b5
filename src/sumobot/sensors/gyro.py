"""
Heading sensor backed by the drive board's IMU.

The ESP32 integrates the gyro and reports a cumulative heading
(not wrapped to 0-360) in every status line.
"""

from __future__ import annotations

from .base import HeadingSensor
from .motor import Motor


class Gyro(HeadingSensor):
    """Reads heading and turn rate from the last drive board status."""

    def __init__(self, board: Motor):
        self.board = board

    def angle_degrees(self) -> float:
        # Turns poll this between ticks, so pull in any fresh status first
        self.board.update()
        return self.board.heading

    def rate_deg_per_sec(self) -> float:
        return self.board.rate

    def reset(self) -> None:
        self.board.reset_gyro()
