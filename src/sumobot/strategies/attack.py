"""
Attack strategies - ENGAGED stance body.

Picks a strategy from confidence on entry, then each tick:
detects being overpowered (stall) or spun out (gyro rate), scales
speed by distance to the boundary, and steers.

Strategies:
- STRAIGHT_PUSH: hold the entry heading with a proportional gyro loop
- HOOK_LEFT / HOOK_RIGHT: slow one wheel to swing the opponent around
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from config import (
    CONFIDENCE_STEP,
    SPEED_FACTOR_SAFE,
    SPEED_TIERS,
    STRAIGHT_PUSH_MIN_CONFIDENCE,
)
from perception.sensor_fusion import is_stalled
from perception.world_state import Signals
from robot_state import AttackType, RobotState, Stance
from .base import StanceBody
from .motion import Motion, normalize_angle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttackStrategy:
    """Named attack with a fixed effectiveness score."""

    type: AttackType
    score: float


DEFAULT_STRATEGIES = (
    AttackStrategy(AttackType.STRAIGHT_PUSH, 1.0),
    AttackStrategy(AttackType.HOOK_LEFT, 0.5),
    AttackStrategy(AttackType.HOOK_RIGHT, 0.5),
)


def select_best_strategy(confidence: int, strategies=DEFAULT_STRATEGIES) -> AttackType:
    """
    Straight push when confident, otherwise the better hook.

    HOOK_RIGHT needs a strictly higher score; equal scores go to HOOK_LEFT.
    """
    if confidence > STRAIGHT_PUSH_MIN_CONFIDENCE:
        return AttackType.STRAIGHT_PUSH

    scores = {s.type: s.score for s in strategies}
    if scores[AttackType.HOOK_RIGHT] > scores[AttackType.HOOK_LEFT]:
        return AttackType.HOOK_RIGHT
    return AttackType.HOOK_LEFT


def dynamic_speed(base_speed: float, danger_level: int) -> float:
    """Slow down near the boundary, push harder in the middle."""
    for min_level, factor in SPEED_TIERS:
        if danger_level >= min_level:
            return base_speed * factor
    return base_speed * SPEED_FACTOR_SAFE


def heading_hold(attack_heading: float, heading: float, speed: float, gain: float) -> tuple[float, float]:
    """
    Proportional heading hold.

    Returns:
        (left, right) wheel speeds. Positive error (target to the left)
        speeds up the right wheel.
    """
    error = normalize_angle(attack_heading - heading)
    correction = error * gain
    return speed - correction, speed + correction


class AttackController(StanceBody):
    """
    ENGAGED stance body.

    Usage:
        attack = AttackController(motion, params)
        next_stance = await attack.run(state, signals, entered)
    """

    def __init__(self, motion: Motion, params, strategies=DEFAULT_STRATEGIES):
        self.motion = motion
        self.params = params
        self.strategies = strategies
        self._log_count = 0

    def enter(self, state: RobotState, signals: Signals):
        """One-time setup when the stance becomes ENGAGED."""
        state.current_attack = select_best_strategy(state.confidence, self.strategies)
        state.attack_heading = signals.heading
        state.stall_start_tick = None
        state.push_start_tick = None
        state.push_rewarded = False
        logger.info(
            f"ENGAGE {state.current_attack.name} confidence={state.confidence} "
            f"heading={state.attack_heading:.1f}° dist={signals.snapshot.distance_cm}"
        )

    async def run(self, state: RobotState, signals: Signals, entered: bool) -> Stance | None:
        if entered:
            self.enter(state, signals)

        p = self.params

        if not signals.enemy_visible:
            logger.info("ENGAGE lost target")
            return Stance.SEARCHING

        overpowered = is_stalled(
            state,
            signals.wheel_speed,
            signals.tick,
            p.stall_speed_threshold,
            p.stall_loop_threshold,
        )
        losing_control = abs(signals.angular_rate) > p.gyro_rate_failure_threshold

        if overpowered or (state.current_attack == AttackType.STRAIGHT_PUSH and losing_control):
            state.adjust_confidence(-CONFIDENCE_STEP)
            reason = "stalled" if overpowered else f"spun out ({signals.angular_rate:.0f}°/s)"
            logger.info(f"ENGAGE abort: {reason}, confidence -> {state.confidence}")
            return Stance.SEARCHING

        speed = dynamic_speed(p.base_speed, signals.danger_level)

        if state.current_attack == AttackType.STRAIGHT_PUSH:
            gain = p.base_gyro_p_gain + state.confidence / 10
            left, right = heading_hold(state.attack_heading, signals.heading, speed, gain)
            self._reward_push(state, signals)
        elif state.current_attack == AttackType.HOOK_LEFT:
            left, right = speed - p.hook_differential, speed
        else:
            left, right = speed, speed - p.hook_differential

        self.motion.tank(left, right)

        self._log_count += 1
        if self._log_count % 10 == 1:  # Log every 10th tick (~5Hz at 50Hz loop)
            logger.debug(
                f"ENGAGE {state.current_attack.name} danger={signals.danger_level} "
                f"heading={signals.heading:.1f}° -> left={left:.0f} right={right:.0f}"
            )
        return None

    def _reward_push(self, state: RobotState, signals: Signals):
        """Confidence +1 step once per episode after a sustained push."""
        if state.push_rewarded:
            return
        if state.stall_start_tick is not None:
            # Wheels bogged down, the push has to start over
            state.push_start_tick = None
            return
        if state.push_start_tick is None:
            state.push_start_tick = signals.tick
        if signals.tick - state.push_start_tick + 1 >= self.params.push_success_ticks:
            state.adjust_confidence(CONFIDENCE_STEP)
            state.push_rewarded = True
            logger.info(f"ENGAGE push held, confidence -> {state.confidence}")
