"""
Opening move - INIT stance body.

Runs once at the start of the match: settle, then either go straight
for a visible opponent or turn to orient and start searching.
"""

from __future__ import annotations

import logging

from perception.world_state import Signals
from robot_state import RobotState, Stance
from .base import StanceBody, record_turn
from .motion import Motion

logger = logging.getLogger(__name__)


class OpeningMove(StanceBody):
    """Deduce the starting position and leave INIT on the first tick."""

    def __init__(self, motion: Motion, params):
        self.motion = motion
        self.params = params

    async def run(self, state: RobotState, signals: Signals, entered: bool) -> Stance | None:
        p = self.params

        await self.motion.pause(p.init_settle_ms)

        if signals.enemy_visible:
            logger.info("OPENING enemy ahead, engaging")
            return Stance.ENGAGED

        status = await self.motion.turn_by(
            p.init_turn_deg * state.search_direction.value, p.search_speed, p.turn_timeout_ms
        )
        record_turn(state, status)
        logger.info(f"OPENING turned {p.init_turn_deg:.0f}° {state.search_direction.name}, searching")
        return Stance.SEARCHING
