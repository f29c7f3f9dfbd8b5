"""
Stance body interface.

Each stance (INIT, SEARCHING, ENGAGED) has one body. The stance
machine runs exactly one body per tick; that body alone writes the
drive motors for the tick.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from perception.world_state import Signals
from robot_state import Direction, RobotState, Stance
from .motion import TurnStatus, direction_toward


class StanceBody(ABC):
    """Base class for stance behaviours."""

    @abstractmethod
    async def run(self, state: RobotState, signals: Signals, entered: bool) -> Stance | None:
        """
        Execute one tick of the stance.

        Args:
            state: Match-long robot state.
            signals: This tick's perception.
            entered: True on the first tick after switching into the stance.

        Returns:
            A stance to switch to, or None to stay.
        """
        ...


def record_turn(state: RobotState, status: TurnStatus) -> None:
    """Count turns that hit their deadline; the next tick carries on."""
    if status is TurnStatus.TIMED_OUT:
        state.timing_overruns += 1


def away_from_edge(state: RobotState, heading: float) -> Direction:
    """Turn toward the recorded arena centre, else the search direction."""
    if state.center_vector is None:
        return state.search_direction
    return direction_toward(heading, state.center_vector)
