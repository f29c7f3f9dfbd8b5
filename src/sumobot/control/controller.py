"""
Main controller - Coordinates all layers.

This is the main control loop that:
1. Reads the drive board status
2. Fuses sensors into Signals
3. Lets the StanceMachine pick a stance and run its body
4. Stops when the match time is up or a stop signal arrives
"""

import asyncio
import logging
import signal
from typing import Optional

from config import CONTROL_LOOP_HZ, STATS_INTERVAL_S
from errors import ActuatorFault
from params import Parameters
from sensors import FloorCamera, Gyro, Lidar, Motor, Side, StopAction
from perception import SensorFusion, Signals
from decision import StanceMachine
from robot_state import RobotState
from strategies.motion import Motion

logger = logging.getLogger(__name__)


class Controller:
    """
    Main robot controller.

    Coordinates:
    - Sensor layer (Motor, Gyro, Lidar, FloorCamera)
    - Perception layer (SensorFusion)
    - Decision layer (StanceMachine)

    Usage:
        controller = Controller()
        asyncio.run(controller.run())

        # Timed match without waiting for the start button:
        controller = Controller(duration_s=180, wait_for_start=False)
    """

    def __init__(
        self,
        params: Optional[Parameters] = None,
        duration_s: Optional[float] = None,
        wait_for_start: bool = True,
    ):
        # Runtime parameters
        self.params = params or Parameters.load()
        for problem in self.params.validate():
            logger.warning(f"Parameter problem: {problem}")

        self.duration_s = self.params.match_duration_s if duration_s is None else duration_s
        self.wait_for_start = wait_for_start

        # Sensors
        self.motor = Motor()
        self.gyro = Gyro(self.motor)
        self.lidar = Lidar(params=self.params)
        self.floor = FloorCamera(params=self.params)

        # Perception
        self.fusion = SensorFusion(self.lidar, self.gyro, self.floor, self.motor, self.params)

        # Decision
        self.motion = Motion(
            self.motor,
            self.gyro,
            tolerance=self.params.turn_tolerance_deg,
            poll_ms=self.params.turn_poll_ms,
        )
        self.state = RobotState()
        self.stance_machine = StanceMachine(self.motion, self.params)

        # Control state
        self._running = False
        self._tick = 0

    async def run(self):
        """Run the match."""
        logger.info("Controller starting...")

        # Setup signal handlers for graceful shutdown
        loop = asyncio.get_event_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._shutdown)

        try:
            # Initialize hardware
            if not self._init_hardware():
                logger.error("Failed to initialize hardware")
                return

            self._running = True
            if self.wait_for_start:
                await self._wait_for_start()
            if not self._running:
                return

            self.gyro.reset()
            logger.info("Entering main control loop")
            await self.control_loop()

        except ActuatorFault as e:
            logger.error(f"Actuator fault, stopping: {e}")
            self._halt()
            raise
        except Exception as e:
            logger.error(f"Controller error: {e}")
            raise
        finally:
            self._cleanup()

    def _init_hardware(self) -> bool:
        """Initialize all hardware."""
        logger.info("Initializing hardware...")

        # Connect drive board
        if not self.motor.connect():
            logger.error("Failed to connect to drive board")
            return False

        # Hold position when stopped so the opponent can't shove us freely
        for side in (Side.LEFT, Side.RIGHT):
            self.motor.set_stop_action(side, StopAction.HOLD)

        # Start LIDAR
        if not self.lidar.start():
            logger.error("Failed to start LIDAR")
            return False

        # Start floor camera
        if not self.floor.start():
            logger.error("Failed to start floor camera")
            return False

        logger.info("Hardware initialized")
        return True

    async def _wait_for_start(self):
        """Block until the start button, then honour the start delay."""
        logger.info("Waiting for start button...")
        while self._running and not self.motor.start_pressed:
            self.motor.update()
            await asyncio.sleep(1.0 / CONTROL_LOOP_HZ)

        if self._running and self.params.start_delay_ms > 0:
            logger.info(f"Start pressed, waiting {self.params.start_delay_ms}ms")
            await asyncio.sleep(self.params.start_delay_ms / 1000.0)

    def _halt(self):
        """Stop all motion, best effort."""
        try:
            self.motor.emergency_stop()
        except ActuatorFault as e:
            logger.error(f"Emergency stop failed: {e}")

    def _cleanup(self):
        """Cleanup on shutdown."""
        logger.info("Cleaning up...")

        self._running = False

        # Stop motors first
        if self.motor.is_connected:
            self.motor.disconnect()

        # Stop sensors
        if self.lidar.is_running:
            self.lidar.stop()
        if self.floor.is_running:
            self.floor.stop()

        logger.info(
            f"Cleanup complete after {self._tick} ticks "
            f"(confidence={self.state.confidence}, turn overruns={self.state.timing_overruns})"
        )

    def _shutdown(self):
        """Handle shutdown signal."""
        logger.info("Shutdown requested")
        self._running = False

    async def control_loop(self):
        """Fixed-cadence loop until stopped or the match time runs out."""
        loop = asyncio.get_event_loop()
        period = 1.0 / CONTROL_LOOP_HZ
        match_end = loop.time() + self.duration_s if self.duration_s > 0 else None
        self._running = True

        while self._running:
            loop_start = loop.time()
            if match_end is not None and loop_start >= match_end:
                logger.info("Match time up, stopping")
                break

            # 1. Fresh wheel speeds and heading
            self.motor.update()

            # 2. Fuse perception
            self._tick += 1
            signals = self.fusion.update(self._tick)

            # 3. Decide and act
            await self.stance_machine.step(self.state, signals)

            # Maintain loop rate
            elapsed = loop.time() - loop_start
            await asyncio.sleep(max(0, period - elapsed))

            # Log stats periodically
            if self._tick % (CONTROL_LOOP_HZ * STATS_INTERVAL_S) == 0:
                self._log_stats(signals)

        self.motion.stop()

    def _log_stats(self, signals: Signals):
        """Log periodic statistics."""
        s = self.state
        logger.info(
            f"Tick {self._tick}: "
            f"Stance={s.stance.name}, "
            f"Attack={s.current_attack.name if s.current_attack else None}, "
            f"Confidence={s.confidence}, "
            f"Danger={signals.danger_level}, "
            f"Dist={signals.snapshot.distance_cm}, "
            f"Heading={signals.heading:.0f}°"
        )
