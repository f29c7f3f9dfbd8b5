"""
Sensor fusion - Turns raw readings into decision signals.

The fusion process, once per tick:
1. Read proximity, floor colour, heading, turn rate, wheel speeds
2. Reject implausible readings (degrade to safe defaults)
3. Derive enemy visibility and danger level

Everything here is stateless except stall timing, which lives in
RobotState so it survives between ticks.
"""

from __future__ import annotations

import logging
import math

from config import (
    DANGER_BOUNDARY,
    DANGER_CAUTION,
    DANGER_DEEP_WARNING,
    DANGER_INNER_SAFE,
    DANGER_NONE,
    DANGER_WARNING,
    PROXIMITY_MAX_CM,
)
from errors import SensorFault
from robot_state import Stance
from sensors.base import (
    DriveMotors,
    FloorColor,
    FloorColorSensor,
    HeadingSensor,
    ProximitySensor,
    Side,
)
from .world_state import SensorSnapshot, Signals

logger = logging.getLogger(__name__)

DANGER_BY_COLOR = {
    FloorColor.BOUNDARY: DANGER_BOUNDARY,
    FloorColor.DEEP_WARNING: DANGER_DEEP_WARNING,
    FloorColor.WARNING: DANGER_WARNING,
    FloorColor.CAUTION: DANGER_CAUTION,
    FloorColor.INNER_SAFE: DANGER_INNER_SAFE,
    FloorColor.BACKGROUND: DANGER_NONE,
}


def derive_danger_level(floor_color) -> int:
    """Danger level (0-6) for a floor colour; unknown values map to 0."""
    return DANGER_BY_COLOR.get(floor_color, DANGER_NONE)


def is_enemy_ahead(distance_cm: float | None, threshold_cm: float) -> bool:
    if distance_cm is None:
        return False
    return distance_cm < threshold_cm


def is_in_danger_zone(danger_level: int, danger_threshold: int) -> bool:
    return danger_level >= danger_threshold


def is_stalled(state, wheel_speed: float, current_tick: int, speed_threshold: float, stall_loop_threshold: int) -> bool:
    """
    Stall detection across ticks.

    While ENGAGED with the wheels below speed_threshold, the first such
    tick starts a timer; the result turns true once the run lasts
    stall_loop_threshold ticks. Any other tick clears the timer.

    Args:
        state: RobotState (reads stance, owns stall_start_tick)
        wheel_speed: measured wheel speed (sign ignored)
        current_tick: tick index, counting from 1
        speed_threshold: speed considered "not moving"
        stall_loop_threshold: ticks of no movement that count as a stall
    """
    if state.stance != Stance.ENGAGED or abs(wheel_speed) >= speed_threshold:
        state.stall_start_tick = None
        return False

    if state.stall_start_tick is None:
        state.stall_start_tick = current_tick

    return current_tick - state.stall_start_tick + 1 >= stall_loop_threshold


class SensorFusion:
    """
    Reads every sensor once per tick and produces Signals.

    Usage:
        fusion = SensorFusion(lidar, gyro, floor, motor, params)

        # In control loop:
        signals = fusion.update(tick)
    """

    def __init__(
        self,
        proximity: ProximitySensor,
        heading: HeadingSensor,
        floor: FloorColorSensor,
        motors: DriveMotors,
        params,
    ):
        self.proximity = proximity
        self.heading = heading
        self.floor = floor
        self.motors = motors
        self.params = params
        self._fault_count = 0

    def update(self, tick: int) -> Signals:
        """
        Fuse current sensor data into Signals.

        Args:
            tick: current tick index

        Returns:
            Signals for this tick
        """
        snapshot = SensorSnapshot(
            distance_cm=self._read_distance(),
            floor_color=self._read_floor(),
            heading=self.heading.angle_degrees(),
            angular_rate=self.heading.rate_deg_per_sec(),
            left_speed=self.motors.get_speed(Side.LEFT),
            right_speed=self.motors.get_speed(Side.RIGHT),
        )

        danger_level = derive_danger_level(snapshot.floor_color)
        return Signals(
            tick=tick,
            snapshot=snapshot,
            enemy_visible=is_enemy_ahead(snapshot.distance_cm, self.params.enemy_distance_cm),
            danger_level=danger_level,
            in_danger_zone=is_in_danger_zone(danger_level, self.params.danger_threshold),
        )

    def _read_distance(self) -> float | None:
        try:
            distance = self.proximity.distance_cm()
        except SensorFault as e:
            self._fault(f"proximity: {e}")
            return None

        if distance is None or math.isnan(distance) or distance < 0:
            self._fault(f"proximity: implausible reading {distance}")
            return None
        if distance > PROXIMITY_MAX_CM:
            # Far away is a valid "nothing ahead", not a fault
            return PROXIMITY_MAX_CM
        return distance

    def _read_floor(self) -> FloorColor:
        try:
            color = self.floor.color()
        except SensorFault as e:
            self._fault(f"floor: {e}")
            return FloorColor.BACKGROUND

        if not isinstance(color, FloorColor):
            self._fault(f"floor: unrecognized colour {color!r}")
            return FloorColor.BACKGROUND
        return color

    def _fault(self, message: str):
        self._fault_count += 1
        if self._fault_count % 10 == 1:  # Log every 10th fault
            logger.warning(f"Sensor fault ({self._fault_count} total), using safe default - {message}")
