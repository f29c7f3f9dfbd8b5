"""
Drive board - ESP32 communication.

Handles:
- Sending left/right wheel speed commands to ESP32
- Stop actions (coast / brake / hold)
- Reading measured wheel speeds and IMU heading from status lines
- Start button and emergency stop
"""

from __future__ import annotations

import logging

import serial

from config import ESP32_PORT, ESP32_BAUDRATE, MOTOR_SPEED_LIMIT
from errors import ActuatorFault
from .base import DriveMotors, Side, StopAction

logger = logging.getLogger(__name__)


class Motor(DriveMotors):
    """
    ESP32 drive board communication.

    Protocol:
        Commands (Pi -> ESP32):
            C:<left>,<right>\\n          - wheel speeds, -100..100
            A:<left_mode>,<right_mode>\\n - stop actions (coast|brake|hold)
            G\\n                         - reset gyro heading
            E\\n                         - emergency stop

        Status (ESP32 -> Pi):
            S:<left>,<right>,<heading>,<rate>\\n
            B:1\\n                       - start button pressed
            E:<error_code>\\n
    """

    def __init__(self, port: str = ESP32_PORT, baudrate: int = ESP32_BAUDRATE):
        self.port = port
        self.baudrate = baudrate

        self._serial: serial.Serial | None = None
        self._connected = False

        # Commanded state per wheel
        self._target = {Side.LEFT: 0, Side.RIGHT: 0}
        self._running = {Side.LEFT: False, Side.RIGHT: False}
        self._stop_action = {Side.LEFT: StopAction.COAST, Side.RIGHT: StopAction.COAST}

        # Latest status from the board
        self._measured = {Side.LEFT: 0.0, Side.RIGHT: 0.0}
        self._heading = 0.0
        self._rate = 0.0
        self._start_pressed = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def heading(self) -> float:
        return self._heading

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def start_pressed(self) -> bool:
        return self._start_pressed

    def connect(self) -> bool:
        """Open serial connection to ESP32."""
        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                timeout=0.005
            )
            self._connected = True
            logger.info(f"Connected to ESP32 on {self.port}")
            return True
        except Exception as e:
            logger.error(f"Failed to connect to ESP32: {e}")
            self._connected = False
            return False

    def disconnect(self):
        """Close serial connection."""
        if self._serial:
            try:
                self.emergency_stop()
            except ActuatorFault as e:
                logger.error(f"Emergency stop on disconnect failed: {e}")
            self._serial.close()
            self._serial = None
        self._connected = False
        logger.info("Disconnected from ESP32")

    def set_speed(self, side: Side, speed: int) -> None:
        self._target[side] = int(max(-MOTOR_SPEED_LIMIT, min(MOTOR_SPEED_LIMIT, speed)))
        if self._running[side]:
            self._send_speeds()

    def start(self, side: Side) -> None:
        self._running[side] = True
        self._send_speeds()

    def stop(self, side: Side) -> None:
        self._running[side] = False
        self._send_speeds()

    def get_speed(self, side: Side) -> float:
        return self._measured[side]

    def set_stop_action(self, side: Side, mode: StopAction) -> None:
        self._stop_action[side] = mode
        left = self._stop_action[Side.LEFT].value
        right = self._stop_action[Side.RIGHT].value
        self._write(f"A:{left},{right}\n")

    def reset_gyro(self):
        """Zero the IMU heading."""
        self._write("G\n")
        self._heading = 0.0
        logger.info("Gyro reset")

    def emergency_stop(self):
        """Emergency stop - sends E command."""
        self._running = {Side.LEFT: False, Side.RIGHT: False}
        self._write("E\n")
        logger.warning("EMERGENCY STOP")

    def update(self) -> bool:
        """
        Drain pending status lines from ESP32 (non-blocking).

        Called once per tick by the controller, and by the gyro while a
        turn is polling the heading.

        Returns:
            True if at least one status line was handled

        Raises:
            ActuatorFault: the serial link failed (e.g. board unplugged).
        """
        handled = False
        try:
            while self._serial and self._serial.in_waiting:
                line = self._serial.readline().decode(errors="ignore").strip()
                handled = self.handle_line(line) or handled
        except (serial.SerialException, OSError) as e:
            raise ActuatorFault(f"ESP32 read failed: {e}") from e
        return handled

    def handle_line(self, line: str) -> bool:
        """Parse one status line from the board."""
        if line.startswith("S:"):
            # Status: S:<left>,<right>,<heading>,<rate>
            parts = line[2:].split(",")
            if len(parts) < 4:
                return False
            try:
                left, right, heading, rate = (float(p) for p in parts[:4])
            except ValueError:
                logger.debug(f"Malformed status: {line}")
                return False
            self._measured[Side.LEFT] = left
            self._measured[Side.RIGHT] = right
            self._heading = heading
            self._rate = rate
            return True

        if line.startswith("B:"):
            self._start_pressed = line[2:] == "1"
            return True

        if line.startswith("E:"):
            logger.error(f"ESP32 error: {line[2:]}")
            return True

        return False

    def _send_speeds(self):
        """Send current wheel speeds; a stopped wheel is sent as 0."""
        left = self._target[Side.LEFT] if self._running[Side.LEFT] else 0
        right = self._target[Side.RIGHT] if self._running[Side.RIGHT] else 0
        self._write(f"C:{left},{right}\n")

    def _write(self, command: str):
        if not self._serial:
            raise ActuatorFault("Not connected to ESP32")
        try:
            self._serial.write(command.encode())
        except serial.SerialException as e:
            raise ActuatorFault(f"ESP32 write failed: {e}") from e
        logger.debug(f"Sent: {command.strip()}")

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
