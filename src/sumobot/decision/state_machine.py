"""
Stance machine for match control.

Picks the active stance each tick from fixed-priority rules, runs the
escape reflex inline when the floor says danger, otherwise hands the
tick to exactly one stance body.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from strategies.motion import Motion
from perception.world_state import Signals
from robot_state import RobotState, Stance
from strategies import (
    AttackController,
    EscapeReflex,
    OpeningMove,
    SearchController,
    StanceBody,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """Outcome of the priority rules for one tick."""

    stance: Stance
    escape: bool = False


def decide(state: RobotState, signals: Signals) -> Transition:
    """
    Fixed-priority stance selection, first match wins.

    1. Danger zone while not ENGAGED -> escape, then SEARCHING
    2. ENGAGED but enemy gone -> SEARCHING
    3. Enemy visible -> ENGAGED
    4. Anything but INIT -> SEARCHING
    5. Stay in INIT
    """
    if signals.in_danger_zone and state.stance != Stance.ENGAGED:
        return Transition(Stance.SEARCHING, escape=True)
    if state.stance == Stance.ENGAGED and not signals.enemy_visible:
        return Transition(Stance.SEARCHING)
    if signals.enemy_visible:
        return Transition(Stance.ENGAGED)
    if state.stance != Stance.INIT:
        return Transition(Stance.SEARCHING)
    return Transition(Stance.INIT)


class StanceMachine:
    """
    Top-level stance machine.

    States:
    - INIT: first tick only, orient and pick a stance
    - SEARCHING: passive scan, then pulsed search
    - ENGAGED: attack the opponent ahead

    Usage:
        sm = StanceMachine(motion, params)

        # In control loop:
        await sm.step(state, signals)

        # With custom bodies:
        sm = StanceMachine(motion, params, attack=MyAttack(motion, params))
    """

    def __init__(
        self,
        motion: Motion,
        params,
        attack: StanceBody = None,
        search: StanceBody = None,
        opening: StanceBody = None,
        escape: EscapeReflex = None,
    ):
        self.motion = motion
        self.params = params

        # Stance bodies
        self.attack = attack or AttackController(motion, params)
        self.search = search or SearchController(motion, params)
        self.opening = opening or OpeningMove(motion, params)
        self.escape = escape or EscapeReflex(motion, params)

    def body_for(self, stance: Stance) -> StanceBody:
        if stance == Stance.ENGAGED:
            return self.attack
        if stance == Stance.SEARCHING:
            return self.search
        return self.opening

    async def step(self, state: RobotState, signals: Signals) -> bool:
        """
        Run one tick: transition, then the active stance body.

        A tick that runs the escape reflex ends there; the body runs on
        the next tick with fresh signals.

        Args:
            state: Match-long robot state
            signals: This tick's perception

        Returns:
            True if this tick entered a new stance
        """
        state.tick = signals.tick
        state.danger_level = signals.danger_level

        # A body changed the stance last tick, so whatever comes next is a fresh entry
        interrupted = state.stance != state.previous_stance

        old = state.stance
        transition = decide(state, signals)
        if transition.escape:
            await self.escape.run(state, signals.danger_level, signals.heading)
            state.stance = transition.stance
            if old != state.stance:
                logger.info(
                    f"Transition: {old.name} -> {state.stance.name} "
                    f"(escape, danger={signals.danger_level})"
                )
            # Signals predate the manoeuvre; the body waits for a fresh read.
            # previous_stance is left alone so a changed stance still counts
            # as an entry next tick.
            return False

        state.stance = transition.stance
        entered = interrupted or state.stance != state.previous_stance
        state.previous_stance = state.stance

        if entered:
            if old != state.stance:
                logger.info(
                    f"Transition: {old.name} -> {state.stance.name} "
                    f"(dist={signals.snapshot.distance_cm} danger={signals.danger_level})"
                )
            if state.stance != Stance.ENGAGED:
                self.motion.stop()

        requested = await self.body_for(state.stance).run(state, signals, entered)
        if requested is not None and requested != state.stance:
            logger.info(f"Transition: {state.stance.name} -> {requested.name} (requested by body)")
            state.stance = requested
            if requested != Stance.ENGAGED:
                self.motion.stop()

        return entered
