"""
Hardware interfaces used by the decision layers.

Concrete drivers (motor.py, gyro.py, lidar.py, floor.py) implement
these, and tests substitute fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, auto


class Side(Enum):
    """Drive motor address."""

    LEFT = auto()
    RIGHT = auto()


class StopAction(Enum):
    """What a motor does when stopped."""

    COAST = "coast"
    BRAKE = "brake"
    HOLD = "hold"


class FloorColor(Enum):
    """Closed set of floor colours the arena uses, outermost last."""

    BACKGROUND = auto()
    INNER_SAFE = auto()
    CAUTION = auto()
    WARNING = auto()
    DEEP_WARNING = auto()
    BOUNDARY = auto()


class DriveMotors(ABC):
    """Two independently addressable drive motors."""

    @abstractmethod
    def set_speed(self, side: Side, speed: int) -> None:
        """Set signed target speed (-100..100); applied while started."""
        ...

    @abstractmethod
    def start(self, side: Side) -> None:
        ...

    @abstractmethod
    def stop(self, side: Side) -> None:
        ...

    @abstractmethod
    def get_speed(self, side: Side) -> float:
        """Measured signed wheel speed, same units as set_speed."""
        ...

    @abstractmethod
    def set_stop_action(self, side: Side, mode: StopAction) -> None:
        ...


class ProximitySensor(ABC):
    """Forward single-point distance sensor."""

    @abstractmethod
    def distance_cm(self) -> float:
        """
        Distance to the nearest object ahead.

        Raises:
            SensorFault: no valid reading available.
        """
        ...


class HeadingSensor(ABC):
    """Gyro heading (cumulative, not wrapped) and turn rate."""

    @abstractmethod
    def angle_degrees(self) -> float:
        ...

    @abstractmethod
    def rate_deg_per_sec(self) -> float:
        ...

    @abstractmethod
    def reset(self) -> None:
        ...


class FloorColorSensor(ABC):
    """Colour of the floor directly under the robot."""

    @abstractmethod
    def color(self) -> FloorColor:
        """
        Latest floor colour class.

        Raises:
            SensorFault: no frame available.
        """
        ...
