"""Tests for the ENGAGED stance body and its helpers."""

import asyncio

import pytest

from conftest import make_signals
from robot_state import AttackType, RobotState, Stance
from strategies import (
    AttackController,
    AttackStrategy,
    dynamic_speed,
    heading_hold,
    select_best_strategy,
)

pytestmark = pytest.mark.unit


class TestSelectBestStrategy:
    def test_confident_goes_straight(self):
        assert select_best_strategy(6) is AttackType.STRAIGHT_PUSH
        assert select_best_strategy(20) is AttackType.STRAIGHT_PUSH

    def test_threshold_is_strict(self):
        assert select_best_strategy(5) is AttackType.HOOK_LEFT

    def test_low_confidence_hooks_left_on_tie(self):
        assert select_best_strategy(3) is AttackType.HOOK_LEFT
        assert select_best_strategy(0) is AttackType.HOOK_LEFT

    def test_better_right_hook_wins(self):
        strategies = (
            AttackStrategy(AttackType.STRAIGHT_PUSH, 1.0),
            AttackStrategy(AttackType.HOOK_LEFT, 0.4),
            AttackStrategy(AttackType.HOOK_RIGHT, 0.6),
        )
        assert select_best_strategy(3, strategies) is AttackType.HOOK_RIGHT


class TestSpeedAndSteering:
    @pytest.mark.parametrize("level, expected", [
        (6, 64.0),
        (5, 64.0),
        (4, 72.0),
        (3, 72.0),
        (2, 88.0),
        (0, 88.0),
    ])
    def test_dynamic_speed_tiers(self, level, expected):
        assert dynamic_speed(80, level) == pytest.approx(expected)

    def test_heading_hold_on_course(self):
        assert heading_hold(0.0, 0.0, 70.0, 2.0) == (70.0, 70.0)

    def test_heading_hold_corrects_toward_target(self):
        # Drifted right (heading below target): speed up the right wheel
        left, right = heading_hold(10.0, 0.0, 70.0, 2.0)
        assert left == pytest.approx(50.0)
        assert right == pytest.approx(90.0)

    def test_heading_hold_wraps(self):
        left, right = heading_hold(350.0, 10.0, 70.0, 1.0)
        assert left == pytest.approx(90.0)
        assert right == pytest.approx(50.0)


class TestAttackController:
    """ENGAGED body run against fake motors."""

    def _run(self, attack, state, signals, entered=False):
        return asyncio.run(attack.run(state, signals, entered))

    def _moving(self, tick, **kwargs):
        kwargs.setdefault("distance", 20.0)
        kwargs.setdefault("left", 60.0)
        kwargs.setdefault("right", 60.0)
        return make_signals(tick=tick, **kwargs)

    def test_entry_picks_strategy_and_heading(self, rig):
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=10, stall_start_tick=4)
        result = self._run(attack, state, self._moving(1, heading=33.0), entered=True)
        assert result is None
        assert state.current_attack is AttackType.STRAIGHT_PUSH
        assert state.attack_heading == 33.0
        assert state.stall_start_tick is None

    def test_straight_push_drives_with_heading_hold(self, rig):
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=10)
        self._run(attack, state, self._moving(1, heading=0.0), entered=True)
        assert rig.motors.effective() == (88, 88)

        # Heading drifted 5° right; gain = 1.0 + 10/10 = 2.0
        self._run(attack, state, self._moving(2, heading=-5.0))
        assert rig.motors.effective() == (78, 98)

    def test_hook_left_slows_left_wheel(self, rig):
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=3)
        self._run(attack, state, self._moving(1), entered=True)
        assert state.current_attack is AttackType.HOOK_LEFT
        assert rig.motors.effective() == (58, 88)

    def test_hook_right_slows_right_wheel(self, rig):
        strategies = (
            AttackStrategy(AttackType.STRAIGHT_PUSH, 1.0),
            AttackStrategy(AttackType.HOOK_LEFT, 0.2),
            AttackStrategy(AttackType.HOOK_RIGHT, 0.8),
        )
        attack = AttackController(rig.motion, rig.params, strategies)
        state = RobotState(stance=Stance.ENGAGED, confidence=0)
        self._run(attack, state, self._moving(1, danger=5), entered=True)
        assert state.current_attack is AttackType.HOOK_RIGHT
        assert rig.motors.effective() == (64, 34)

    def test_lost_target_returns_to_search(self, rig):
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED)
        result = self._run(attack, state, self._moving(1, distance=120.0), entered=True)
        assert result is Stance.SEARCHING

    def test_stall_aborts_and_costs_confidence(self, rig):
        rig.params.stall_loop_threshold = 3
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=10)

        stalled = dict(left=0.0, right=0.0)
        assert self._run(attack, state, self._moving(1, **stalled), entered=True) is None
        assert self._run(attack, state, self._moving(2, **stalled)) is None
        assert self._run(attack, state, self._moving(3, **stalled)) is Stance.SEARCHING
        assert state.confidence == 5

    def test_spin_out_aborts_straight_push(self, rig):
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=10)
        result = self._run(attack, state, self._moving(1, rate=300.0), entered=True)
        assert result is Stance.SEARCHING
        assert state.confidence == 5

    def test_spin_out_tolerated_while_hooking(self, rig):
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=3)
        result = self._run(attack, state, self._moving(1, rate=-300.0), entered=True)
        assert result is None
        assert state.confidence == 3

    def test_sustained_push_rewarded_once(self, rig):
        rig.params.push_success_ticks = 3
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=10)

        self._run(attack, state, self._moving(1), entered=True)
        self._run(attack, state, self._moving(2))
        assert state.confidence == 10
        self._run(attack, state, self._moving(3))
        assert state.confidence == 15
        for tick in range(4, 10):
            self._run(attack, state, self._moving(tick))
        assert state.confidence == 15

    def test_slow_wheels_restart_push_timer(self, rig):
        rig.params.push_success_ticks = 3
        attack = AttackController(rig.motion, rig.params)
        state = RobotState(stance=Stance.ENGAGED, confidence=10)

        self._run(attack, state, self._moving(1), entered=True)
        self._run(attack, state, self._moving(2, left=0.0, right=0.0))
        assert state.push_start_tick is None
        self._run(attack, state, self._moving(3))
        self._run(attack, state, self._moving(4))
        assert state.confidence == 10
        self._run(attack, state, self._moving(5))
        assert state.confidence == 15
