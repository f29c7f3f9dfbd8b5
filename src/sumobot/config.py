"""
Configuration constants for the sumo robot.

Fixed values that do not change during a match. Runtime tunables
live in params.py.
"""

# =============================================================================
# HARDWARE PORTS
# =============================================================================

# LIDAR (RPLIDAR C1) - used as forward proximity sensor
LIDAR_PORT = "/dev/ttyUSB0"
LIDAR_BAUDRATE = 460800

# ESP32 (drive board: two wheel motors + IMU + start button)
ESP32_PORT = "/dev/ttyUSB1"
ESP32_BAUDRATE = 115200

# Downward floor camera
CAMERA_INDEX = 0
CAMERA_WIDTH = 160
CAMERA_HEIGHT = 120

# =============================================================================
# CONTROL LOOP
# =============================================================================

CONTROL_LOOP_HZ = 50  # 20 ms tick
MOTOR_SPEED_LIMIT = 100  # Wheel speed range is -100..100
STATS_INTERVAL_S = 5

# =============================================================================
# CONFIDENCE MODEL
# =============================================================================

CONFIDENCE_INITIAL = 10
CONFIDENCE_MIN = 0
CONFIDENCE_MAX = 20
CONFIDENCE_STEP = 5
STRAIGHT_PUSH_MIN_CONFIDENCE = 5  # Strictly above this = straight push

# =============================================================================
# DANGER LEVELS (from floor colour)
# =============================================================================

DANGER_BOUNDARY = 6
DANGER_DEEP_WARNING = 5
DANGER_WARNING = 4
DANGER_CAUTION = 2
DANGER_INNER_SAFE = 1
DANGER_NONE = 0

# Highest level still considered safely inside the ring
SAFE_DANGER_MAX = 2

# Attack speed multipliers by danger tier: (min level, factor)
SPEED_TIERS = (
    (5, 0.8),
    (3, 0.9),
)
SPEED_FACTOR_SAFE = 1.1

# =============================================================================
# SENSOR PLAUSIBILITY
# =============================================================================

PROXIMITY_MAX_CM = 400.0  # Anything beyond this is treated as "nothing there"
