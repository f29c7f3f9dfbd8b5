"""Shared fakes for running the behaviour stack without hardware.

The fake gyro integrates heading from the fake motors' commanded wheel
speeds whenever the fake clock advances, so turns converge the way
they do on the robot without any real waiting.
"""

from __future__ import annotations

import pytest

from errors import ActuatorFault, SensorFault
from params import Parameters
from perception.world_state import SensorSnapshot, Signals
from sensors.base import (
    DriveMotors,
    FloorColor,
    FloorColorSensor,
    HeadingSensor,
    ProximitySensor,
    Side,
    StopAction,
)
from strategies.motion import Motion


class FakeClock:
    """Virtual time; sleeping advances it instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.slept = 0.0
        self.listeners = []

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.now += seconds
        self.slept += seconds
        for listener in self.listeners:
            listener(seconds)


class FakeMotors(DriveMotors):
    """Records every command; measured speeds are set by the test."""

    def __init__(self) -> None:
        self.target = {Side.LEFT: 0, Side.RIGHT: 0}
        self.running = {Side.LEFT: False, Side.RIGHT: False}
        self.measured = {Side.LEFT: 0.0, Side.RIGHT: 0.0}
        self.stop_action = {Side.LEFT: StopAction.COAST, Side.RIGHT: StopAction.COAST}
        self.history: list[tuple[int, int]] = []
        self.stop_calls = 0
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise ActuatorFault("fake drive board unplugged")

    def effective(self) -> tuple[int, int]:
        left = self.target[Side.LEFT] if self.running[Side.LEFT] else 0
        right = self.target[Side.RIGHT] if self.running[Side.RIGHT] else 0
        return left, right

    def set_speed(self, side: Side, speed: int) -> None:
        self._check()
        self.target[side] = speed

    def start(self, side: Side) -> None:
        self._check()
        self.running[side] = True
        self.history.append(self.effective())

    def stop(self, side: Side) -> None:
        self._check()
        self.running[side] = False
        self.stop_calls += 1

    def get_speed(self, side: Side) -> float:
        return self.measured[side]

    def set_stop_action(self, side: Side, mode: StopAction) -> None:
        self._check()
        self.stop_action[side] = mode

    @property
    def is_moving(self) -> bool:
        return self.effective() != (0, 0)


class FakeGyro(HeadingSensor):
    """Heading follows the wheels: rate = (right - left) * gain deg/s."""

    def __init__(self, motors: FakeMotors, gain: float = 2.0) -> None:
        self.motors = motors
        self.gain = gain
        self.heading = 0.0
        self.rate = 0.0
        self.stuck = False

    def advance(self, seconds: float) -> None:
        if self.stuck:
            return
        left, right = self.motors.effective()
        self.heading += (right - left) * self.gain * seconds

    def angle_degrees(self) -> float:
        return self.heading

    def rate_deg_per_sec(self) -> float:
        return self.rate

    def reset(self) -> None:
        self.heading = 0.0


class FakeProximity(ProximitySensor):
    def __init__(self, distance: float | None = 200.0) -> None:
        self.distance = distance

    def distance_cm(self) -> float:
        if self.distance is None:
            raise SensorFault("no echo")
        return self.distance


class FakeFloor(FloorColorSensor):
    def __init__(self, color=FloorColor.BACKGROUND) -> None:
        self.value = color

    def color(self):
        if self.value is None:
            raise SensorFault("no frame")
        return self.value


class Rig:
    """Fake hardware plus a Motion wired to the fake clock."""

    def __init__(self, params: Parameters) -> None:
        self.params = params
        self.clock = FakeClock()
        self.motors = FakeMotors()
        self.gyro = FakeGyro(self.motors)
        self.clock.listeners.append(self.gyro.advance)
        self.motion = Motion(
            self.motors,
            self.gyro,
            sleep=self.clock.sleep,
            clock=self.clock.time,
            tolerance=params.turn_tolerance_deg,
            poll_ms=params.turn_poll_ms,
        )


def make_signals(
    tick: int = 1,
    distance: float | None = 200.0,
    danger: int = 0,
    heading: float = 0.0,
    rate: float = 0.0,
    left: float = 0.0,
    right: float = 0.0,
    enemy_threshold: float = 50.0,
    danger_threshold: int = 4,
) -> Signals:
    """Signals with derived fields computed the same way fusion does."""
    return Signals(
        tick=tick,
        snapshot=SensorSnapshot(
            distance_cm=distance,
            heading=heading,
            angular_rate=rate,
            left_speed=left,
            right_speed=right,
        ),
        enemy_visible=distance is not None and distance < enemy_threshold,
        danger_level=danger,
        in_danger_zone=danger >= danger_threshold,
    )


@pytest.fixture
def params() -> Parameters:
    return Parameters()


@pytest.fixture
def rig(params) -> Rig:
    return Rig(params)
