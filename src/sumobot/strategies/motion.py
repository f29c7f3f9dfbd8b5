"""
Motion primitives on top of the two drive motors.

Tank drive, in-place spins, timed drives and a bounded turn-to-heading.
Waiting goes through an injected async sleep and clock so behaviour
bodies can be run against a simulated clock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum, auto
from typing import Awaitable, Callable

from sensors.base import DriveMotors, HeadingSensor, Side
from robot_state import Direction

logger = logging.getLogger(__name__)


def normalize_angle(degrees: float) -> float:
    """Wrap an angle to (-180, 180]."""
    wrapped = degrees % 360.0
    if wrapped > 180.0:
        wrapped -= 360.0
    return wrapped


def direction_toward(heading: float, target: float) -> Direction:
    """Shorter spin direction from heading to target."""
    return Direction.LEFT if normalize_angle(target - heading) >= 0 else Direction.RIGHT


class TurnStatus(Enum):
    RUNNING = auto()
    REACHED = auto()
    TIMED_OUT = auto()


class TurnToHeading:
    """
    Sub-state machine for turning to a cumulative heading.

    Holds no I/O: feed it heading samples and the current time, it
    reports whether the turn is still running, done, or past its
    deadline.

    Usage:
        turn = TurnToHeading(target=90.0, deadline=now + 1.5)
        while turn.step(gyro.angle_degrees(), clock()) is TurnStatus.RUNNING:
            ...
    """

    def __init__(self, target: float, deadline: float, tolerance: float = 3.0):
        self.target = target
        self.deadline = deadline
        self.tolerance = tolerance
        self.status = TurnStatus.RUNNING
        self._sign: int | None = None

    @property
    def direction(self) -> Direction | None:
        """Spin direction decided by the first sample, None before it."""
        if self._sign is None:
            return None
        return Direction.LEFT if self._sign > 0 else Direction.RIGHT

    def step(self, heading: float, now: float) -> TurnStatus:
        if self.status is not TurnStatus.RUNNING:
            return self.status

        remaining = self.target - heading
        if self._sign is None:
            self._sign = 1 if remaining >= 0 else -1

        # Reached once within tolerance, or overshot past the target
        if remaining * self._sign <= self.tolerance:
            self.status = TurnStatus.REACHED
        elif now >= self.deadline:
            self.status = TurnStatus.TIMED_OUT
        return self.status


class Motion:
    """
    Drive commands for the stance bodies.

    Usage:
        motion = Motion(motor, gyro)
        motion.tank(60, 60)
        await motion.drive_for(-80, -80, 600)
        status = await motion.turn_by(90, speed=40, timeout_ms=1500)
    """

    def __init__(
        self,
        motors: DriveMotors,
        heading: HeadingSensor,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        tolerance: float = 3.0,
        poll_ms: int = 10,
    ):
        self.motors = motors
        self.heading = heading
        self.sleep = sleep
        self.clock = clock
        self.tolerance = tolerance
        self.poll_ms = poll_ms

    def tank(self, left: float, right: float):
        """Run each wheel at its own speed."""
        self.motors.set_speed(Side.LEFT, int(round(left)))
        self.motors.set_speed(Side.RIGHT, int(round(right)))
        self.motors.start(Side.LEFT)
        self.motors.start(Side.RIGHT)

    def spin(self, direction: Direction, speed: float):
        """Rotate in place; LEFT is counter-clockwise (heading increases)."""
        s = abs(speed) * direction.value
        self.tank(-s, s)

    def stop(self):
        self.motors.stop(Side.LEFT)
        self.motors.stop(Side.RIGHT)

    async def pause(self, ms: float):
        await self.sleep(ms / 1000.0)

    async def drive_for(self, left: float, right: float, ms: float):
        """Drive for a fixed time, then stop."""
        self.tank(left, right)
        await self.pause(ms)
        self.stop()

    async def turn_by(self, degrees: float, speed: float, timeout_ms: float) -> TurnStatus:
        """
        Turn in place by `degrees` (positive = left) relative to now.

        Polls the heading sensor until the target is reached or the
        timeout passes; motors are stopped either way.

        Returns:
            TurnStatus.REACHED or TurnStatus.TIMED_OUT
        """
        start = self.heading.angle_degrees()
        turn = TurnToHeading(
            target=start + degrees,
            deadline=self.clock() + timeout_ms / 1000.0,
            tolerance=self.tolerance,
        )

        status = turn.step(start, self.clock())
        if status is TurnStatus.RUNNING:
            self.spin(turn.direction, speed)
        while status is TurnStatus.RUNNING:
            await self.pause(self.poll_ms)
            status = turn.step(self.heading.angle_degrees(), self.clock())
        self.stop()

        if status is TurnStatus.TIMED_OUT:
            logger.warning(
                f"Turn of {degrees:.0f}° timed out after {timeout_ms:.0f}ms "
                f"(heading {self.heading.angle_degrees():.1f}°, target {turn.target:.1f}°)"
            )
        return status
