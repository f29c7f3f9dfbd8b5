"""
Escape reflex - back off the ring edge.

Runs inline from the stance machine whenever the floor says danger and
the robot is not pushing. Blocks the loop for its whole (bounded)
duration; nothing else drives the motors meanwhile.

Sequence:
1. Stop, settle
2. Reverse at escape speed for a fixed time
3. Turn back toward the centre, harder when on the white line
4. Hand over to SEARCHING
"""

from __future__ import annotations

import logging

from config import DANGER_BOUNDARY
from robot_state import RobotState, Stance
from .base import away_from_edge, record_turn
from .motion import Motion

logger = logging.getLogger(__name__)


class EscapeReflex:
    """
    Bounded reverse-and-turn manoeuvre.

    Usage:
        escape = EscapeReflex(motion, params)
        await escape.run(state, danger_level, heading)
    """

    def __init__(self, motion: Motion, params):
        self.motion = motion
        self.params = params

    def turn_angle(self, danger_level: int) -> float:
        """Turn magnitude for a danger level; the boundary line gets the larger turn."""
        if danger_level >= DANGER_BOUNDARY:
            return self.params.escape_turn_boundary_deg
        return self.params.escape_turn_warning_deg

    async def run(self, state: RobotState, danger_level: int, heading: float) -> float:
        """
        Execute the escape.

        Args:
            state: Robot state (stance is set to SEARCHING on return)
            danger_level: current danger level, 0-6
            heading: heading when the danger was seen

        Returns:
            Signed turn angle that was commanded (positive = left).
        """
        p = self.params

        self.motion.stop()
        await self.motion.pause(p.escape_settle_ms)

        await self.motion.drive_for(-p.escape_speed, -p.escape_speed, p.escape_reverse_ms)

        direction = away_from_edge(state, heading)
        angle = self.turn_angle(danger_level) * direction.value
        status = await self.motion.turn_by(angle, p.search_speed, p.turn_timeout_ms)
        record_turn(state, status)

        state.stance = Stance.SEARCHING
        logger.info(
            f"ESCAPE danger={danger_level}: reversed {p.escape_reverse_ms}ms, "
            f"turned {angle:+.0f}° ({status.name})"
        )
        return angle
