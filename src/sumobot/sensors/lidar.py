"""
LIDAR sensor - RPLIDAR C1 used as a forward proximity sensor.

Scans continuously in a background thread; only the narrow window
around forward (angle 0) is used to decide whether the opponent is
ahead.
"""

from __future__ import annotations

import logging
import threading
import time

from pyrplidar import PyRPlidar

from config import LIDAR_PORT, LIDAR_BAUDRATE, PROXIMITY_MAX_CM
from errors import SensorFault
from .base import ProximitySensor

logger = logging.getLogger(__name__)


class Lidar(ProximitySensor):
    """
    RPLIDAR C1 driver with background scanning.

    Usage:
        params = Parameters.load()
        lidar = Lidar(params=params)
        lidar.start()

        distance = lidar.distance_cm()  # nearest object ahead

        lidar.stop()
    """

    def __init__(
        self,
        params,
        port: str = LIDAR_PORT,
        baudrate: int = LIDAR_BAUDRATE,
        motor_pwm: int = 660,
        clock=time.monotonic,
    ):
        self.params = params
        self.port = port
        self.baudrate = baudrate
        self.motor_pwm = motor_pwm
        self.clock = clock

        self._lidar: PyRPlidar | None = None
        self._running = False
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

        # Latest valid reading per angle: angle (0-359) -> (distance mm, time)
        self._scan: dict[int, tuple[float, float]] = {}
        self._scan_timestamp: float | None = None  # Last reading of any kind

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Start LIDAR scanning in background thread."""
        if self._running:
            logger.warning("LIDAR already running")
            return True

        try:
            self._lidar = PyRPlidar()
            self._lidar.connect(port=self.port, baudrate=self.baudrate)
            self._lidar.set_motor_pwm(self.motor_pwm)
            time.sleep(1)  # Let motor spin up

            self._running = True
            self._thread = threading.Thread(target=self._scan_loop, daemon=True)
            self._thread.start()

            logger.info(f"LIDAR started on {self.port}")
            return True

        except Exception as e:
            logger.error(f"Failed to start LIDAR: {e}")
            self._running = False
            return False

    def stop(self):
        """Stop LIDAR scanning."""
        self._running = False

        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

        if self._lidar:
            try:
                self._lidar.stop()
                self._lidar.set_motor_pwm(0)
                self._lidar.disconnect()
            except Exception as e:
                logger.error(f"Error stopping LIDAR: {e}")
            self._lidar = None

        logger.info("LIDAR stopped")

    def distance_cm(self) -> float:
        """
        Nearest fresh reading within the front window, in cm.

        Raises:
            SensorFault: the scanner has produced nothing recently.
        """
        with self._lock:
            scan = dict(self._scan)
            last = self._scan_timestamp

        now = self.clock()
        max_age_s = self.params.lidar_max_age_ms / 1000.0
        if last is None or now - last > max_age_s:
            raise SensorFault("No recent LIDAR data")
        return front_distance_cm(scan, self.params.lidar_front_window, now, max_age_s)

    def get_timestamp(self) -> float | None:
        """Get timestamp of latest reading."""
        with self._lock:
            return self._scan_timestamp

    def _scan_loop(self):
        """Background scanning thread."""
        try:
            scan_generator = self._lidar.start_scan()
            window = self.params.lidar_front_window

            for reading in scan_generator():
                if not self._running:
                    break

                angle = int(reading.angle) % 360
                signed = angle if angle <= 180 else angle - 360
                now = self.clock()

                with self._lock:
                    self._scan_timestamp = now

                    # Only the forward window matters for proximity
                    if abs(signed) > window:
                        continue

                    # No echo (or a weak one) means nothing there any more
                    if (reading.distance < self.params.lidar_min_distance
                            or reading.quality < self.params.lidar_min_quality):
                        self._scan.pop(angle, None)
                        continue

                    self._scan[angle] = (reading.distance, now)

        except Exception as e:
            if self._running:
                logger.error(f"LIDAR scan error: {e}")


def front_distance_cm(scan: dict[int, tuple[float, float]], window: int, now: float, max_age_s: float) -> float:
    """
    Nearest fresh distance around forward, converted from mm to cm.

    Args:
        scan: angle (0-359) -> (distance mm, reading time)
        window: ± degrees around angle 0
        now: current time on the same clock as the readings
        max_age_s: readings older than this are ignored

    Returns:
        Distance in cm, PROXIMITY_MAX_CM when nothing fresh is ahead.
    """
    distances = []
    for offset in range(-window, window + 1):
        entry = scan.get(offset % 360)
        if entry is None:
            continue
        distance, stamp = entry
        if now - stamp <= max_age_s:
            distances.append(distance)

    if not distances:
        return PROXIMITY_MAX_CM
    return min(distances) / 10.0
