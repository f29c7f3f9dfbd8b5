"""
Sensor Layer - Hardware interfaces.

Provides access to all robot hardware:
- Motor: ESP32 drive board (two wheels, IMU, start button)
- Gyro: heading sensor backed by the drive board
- Lidar: RPLIDAR C1 as forward proximity sensor
- FloorCamera: downward camera classifying the floor colour
"""

from .base import (
    DriveMotors,
    FloorColor,
    FloorColorSensor,
    HeadingSensor,
    ProximitySensor,
    Side,
    StopAction,
)
from .motor import Motor
from .gyro import Gyro
from .lidar import Lidar
from .floor import FloorCamera

__all__ = [
    "DriveMotors",
    "FloorColor",
    "FloorColorSensor",
    "HeadingSensor",
    "ProximitySensor",
    "Side",
    "StopAction",
    "Motor",
    "Gyro",
    "Lidar",
    "FloorCamera",
]
