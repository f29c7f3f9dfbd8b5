"""
Search strategies - SEARCHING stance body.

Phase A (once per match): spin in place for nearly a full turn,
remembering the last heading that looked safely inside the ring as
the direction toward the arena centre.

Phase B (afterwards): short pulsed turns with a pause between them so
the proximity sensor gets a clean look each tick. The pulse direction
flips every search episode.
"""

from __future__ import annotations

import logging

from config import SAFE_DANGER_MAX
from perception.world_state import Signals
from robot_state import RobotState, Stance
from .base import StanceBody, away_from_edge, record_turn
from .motion import Motion

logger = logging.getLogger(__name__)


class SearchController(StanceBody):
    """
    SEARCHING stance body.

    Usage:
        search = SearchController(motion, params)
        await search.run(state, signals, entered)
    """

    def __init__(self, motion: Motion, params):
        self.motion = motion
        self.params = params

    def enter(self, state: RobotState, signals: Signals):
        """Start the passive scan on first entry, else flip direction."""
        if state.is_passively_scanning:
            # Interrupted by another stance; the scan is not resumed
            state.is_passively_scanning = False
            logger.info("SEARCH passive scan abandoned")
        elif not state.passive_scan_done:
            state.is_passively_scanning = True
            state.passive_scan_done = True
            state.passive_scan_start_angle = signals.heading
            logger.info(f"SEARCH passive scan from {signals.heading:.1f}°")
            return

        state.search_direction = state.search_direction.opposite
        logger.info(f"SEARCH pulsing {state.search_direction.name}")

    async def run(self, state: RobotState, signals: Signals, entered: bool) -> Stance | None:
        if entered:
            self.enter(state, signals)

        if state.is_passively_scanning:
            self._passive_scan(state, signals)
        else:
            await self._pulse(state, signals)
        return None

    def _passive_scan(self, state: RobotState, signals: Signals):
        if signals.danger_level <= SAFE_DANGER_MAX:
            state.center_vector = signals.heading

        swept = abs(signals.heading - state.passive_scan_start_angle)
        if swept >= self.params.scan_sweep_deg:
            self.motion.stop()
            state.is_passively_scanning = False
            logger.info(
                f"SEARCH passive scan done ({swept:.0f}°), "
                f"centre vector={state.center_vector}"
            )
            return

        self.motion.spin(state.search_direction, self.params.search_speed)

    async def _pulse(self, state: RobotState, signals: Signals):
        p = self.params
        direction = state.search_direction

        if signals.in_danger_zone:
            # Searching right on the edge: turn back in before anything else
            away = away_from_edge(state, signals.heading)
            logger.info(f"SEARCH protective turn {away.name} (danger={signals.danger_level})")
            status = await self.motion.turn_by(
                p.protect_turn_deg * away.value, p.search_speed, p.turn_timeout_ms
            )
            record_turn(state, status)
            return

        status = await self.motion.turn_by(
            p.pulse_turn_deg * direction.value, p.search_speed, p.turn_timeout_ms
        )
        record_turn(state, status)
        await self.motion.pause(p.pulse_pause_ms)
