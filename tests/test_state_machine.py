"""Tests for stance priority rules and the per-tick stance machine."""

import asyncio

import pytest

from conftest import make_signals
from decision import StanceMachine, Transition, decide
from robot_state import AttackType, RobotState, Stance
from strategies import StanceBody

pytestmark = pytest.mark.unit


class RecordingBody(StanceBody):
    """Stance body that records its calls and what the wheels were doing."""

    def __init__(self, motors, request=None):
        self.motors = motors
        self.request = request
        self.calls = []

    async def run(self, state, signals, entered):
        self.calls.append((signals.tick, entered, self.motors.is_moving))
        return self.request


class TestDecide:
    """Fixed priority, first matching rule wins."""

    def test_danger_beats_enemy_when_not_engaged(self):
        state = RobotState(stance=Stance.SEARCHING)
        signals = make_signals(distance=10.0, danger=6)
        assert decide(state, signals) == Transition(Stance.SEARCHING, escape=True)

    def test_danger_escapes_from_init(self):
        state = RobotState(stance=Stance.INIT)
        assert decide(state, make_signals(danger=4)).escape is True

    def test_engaged_keeps_pushing_through_danger(self):
        state = RobotState(stance=Stance.ENGAGED)
        signals = make_signals(distance=10.0, danger=6)
        assert decide(state, signals) == Transition(Stance.ENGAGED)

    def test_engaged_without_enemy_searches(self):
        state = RobotState(stance=Stance.ENGAGED)
        assert decide(state, make_signals(distance=None, danger=6)) == Transition(Stance.SEARCHING)

    def test_enemy_engages(self):
        for stance in (Stance.INIT, Stance.SEARCHING, Stance.ENGAGED):
            state = RobotState(stance=stance)
            assert decide(state, make_signals(distance=10.0)) == Transition(Stance.ENGAGED)

    def test_searching_stays_searching(self):
        state = RobotState(stance=Stance.SEARCHING)
        assert decide(state, make_signals()) == Transition(Stance.SEARCHING)

    def test_init_stays_init(self):
        state = RobotState(stance=Stance.INIT)
        assert decide(state, make_signals(danger=3)) == Transition(Stance.INIT)


class TestStanceMachine:
    def _step(self, machine, state, signals):
        return asyncio.run(machine.step(state, signals))

    def _recording_machine(self, rig):
        bodies = {
            Stance.INIT: RecordingBody(rig.motors),
            Stance.SEARCHING: RecordingBody(rig.motors),
            Stance.ENGAGED: RecordingBody(rig.motors),
        }
        machine = StanceMachine(
            rig.motion,
            rig.params,
            attack=bodies[Stance.ENGAGED],
            search=bodies[Stance.SEARCHING],
            opening=bodies[Stance.INIT],
        )
        return machine, bodies

    def test_one_body_per_tick(self, rig):
        machine, bodies = self._recording_machine(rig)
        state = RobotState()
        ticks = [
            make_signals(tick=1),
            make_signals(tick=2, distance=20.0),
            make_signals(tick=3, distance=20.0),
            make_signals(tick=4),
        ]
        for signals in ticks:
            self._step(machine, state, signals)

        assert [c[0] for c in bodies[Stance.INIT].calls] == [1]
        assert [c[0] for c in bodies[Stance.ENGAGED].calls] == [2, 3]
        assert [c[0] for c in bodies[Stance.SEARCHING].calls] == [4]

    def test_entered_only_on_first_tick_of_stance(self, rig):
        machine, bodies = self._recording_machine(rig)
        state = RobotState(stance=Stance.SEARCHING, previous_stance=Stance.SEARCHING)
        assert self._step(machine, state, make_signals(tick=1, distance=20.0)) is True
        assert self._step(machine, state, make_signals(tick=2, distance=20.0)) is False
        assert [c[1] for c in bodies[Stance.ENGAGED].calls] == [True, False]

    def test_leaving_engaged_stops_motors_before_next_body(self, rig):
        machine, bodies = self._recording_machine(rig)
        state = RobotState(stance=Stance.ENGAGED, previous_stance=Stance.ENGAGED)
        rig.motion.tank(80, 80)
        self._step(machine, state, make_signals(tick=1, distance=None))
        assert state.stance is Stance.SEARCHING
        assert bodies[Stance.SEARCHING].calls == [(1, True, False)]

    def test_body_request_counts_as_entry_next_tick(self, rig):
        machine, bodies = self._recording_machine(rig)
        bodies[Stance.INIT].request = Stance.SEARCHING
        state = RobotState()
        self._step(machine, state, make_signals(tick=1))
        assert state.stance is Stance.SEARCHING
        self._step(machine, state, make_signals(tick=2))
        assert bodies[Stance.SEARCHING].calls[0][:2] == (2, True)

    def test_escape_tick_runs_no_body(self, rig):
        machine, bodies = self._recording_machine(rig)
        state = RobotState(stance=Stance.SEARCHING, previous_stance=Stance.SEARCHING)
        entered = self._step(machine, state, make_signals(tick=1, distance=10.0, danger=6))

        assert entered is False
        assert state.stance is Stance.SEARCHING
        assert (-80, -80) in rig.motors.history
        assert bodies[Stance.ENGAGED].calls == []
        assert bodies[Stance.SEARCHING].calls == []

        # Next tick reads fresh signals; same stance, so no entry
        self._step(machine, state, make_signals(tick=2))
        assert bodies[Stance.SEARCHING].calls == [(2, False, False)]

    def test_boundary_escape_turns_only_the_escape_angle(self, rig):
        machine = StanceMachine(rig.motion, rig.params)
        state = RobotState(
            stance=Stance.SEARCHING,
            previous_stance=Stance.SEARCHING,
            passive_scan_done=True,
        )
        self._step(machine, state, make_signals(tick=1, danger=6))
        assert rig.gyro.heading == pytest.approx(150.0, abs=3.0)
        assert not rig.motors.is_moving

    def test_escape_from_init_enters_search_next_tick(self, rig):
        machine = StanceMachine(rig.motion, rig.params)
        state = RobotState()
        assert self._step(machine, state, make_signals(tick=1, danger=5)) is False
        assert state.stance is Stance.SEARCHING

        entered = self._step(machine, state, make_signals(tick=2, heading=rig.gyro.heading))
        assert entered is True
        assert state.is_passively_scanning is True

    def test_opening_leads_into_passive_scan(self, rig):
        machine = StanceMachine(rig.motion, rig.params)
        state = RobotState()
        self._step(machine, state, make_signals(tick=1))
        assert state.stance is Stance.SEARCHING

        self._step(machine, state, make_signals(tick=2, heading=rig.gyro.heading))
        assert state.is_passively_scanning is True
        assert state.passive_scan_start_angle == pytest.approx(90.0, abs=3.0)

    def test_abort_then_reengage_reselects_strategy(self, rig):
        rig.params.stall_loop_threshold = 1
        machine = StanceMachine(rig.motion, rig.params)
        state = RobotState(
            stance=Stance.SEARCHING,
            previous_stance=Stance.SEARCHING,
            passive_scan_done=True,
        )

        # Wheels not turning while pushing: immediate stall
        self._step(machine, state, make_signals(tick=1, distance=20.0))
        assert state.stance is Stance.SEARCHING
        assert state.confidence == 5
        assert not rig.motors.is_moving

        # Opponent still ahead next tick: a fresh engagement at lower confidence
        self._step(machine, state, make_signals(tick=2, distance=20.0, left=60.0, right=60.0))
        assert state.stance is Stance.ENGAGED
        assert state.current_attack is AttackType.HOOK_LEFT
        assert rig.motors.is_moving

    def test_state_tracks_tick_and_danger(self, rig):
        machine, _ = self._recording_machine(rig)
        state = RobotState()
        self._step(machine, state, make_signals(tick=9, danger=2))
        assert state.tick == 9
        assert state.danger_level == 2
