"""
Floor colour sensor - downward camera with OpenCV classification.

The camera looks straight down at the ring surface. Each frame's
centre patch is converted to HSV and matched against the colour bands
painted on the ring:
- White (boundary line)
- Red (deep warning)
- Orange/yellow (warning)
- Green (caution)
- Blue (inner safe area)
Anything else (the black ring surface) is BACKGROUND.
"""

from __future__ import annotations

import logging
import threading
import time

import cv2
import numpy as np

from config import CAMERA_INDEX, CAMERA_WIDTH, CAMERA_HEIGHT
from errors import SensorFault
from .base import FloorColor, FloorColorSensor

logger = logging.getLogger(__name__)

# Checked in this order; the boundary wins ties so a half-seen line still counts
_CLASS_ORDER = (
    FloorColor.BOUNDARY,
    FloorColor.DEEP_WARNING,
    FloorColor.WARNING,
    FloorColor.CAUTION,
    FloorColor.INNER_SAFE,
)


def _ranges(params) -> dict[FloorColor, list[tuple[np.ndarray, np.ndarray]]]:
    """(lower, upper) HSV numpy arrays per floor colour from Parameters.

    Red wraps around the hue scale, so DEEP_WARNING has two ranges.
    """
    p = params
    s_min, v_min = p.colour_s_min, p.colour_v_min
    return {
        FloorColor.BOUNDARY: [(np.array([0, 0, p.boundary_v_min]),
                               np.array([180, p.boundary_s_max, 255]))],
        FloorColor.DEEP_WARNING: [(np.array([p.deep_warning_h_min, s_min, v_min]),
                                   np.array([p.deep_warning_h_max, 255, 255])),
                                  (np.array([p.deep_warning_h_min2, s_min, v_min]),
                                   np.array([p.deep_warning_h_max2, 255, 255]))],
        FloorColor.WARNING: [(np.array([p.warning_h_min, s_min, v_min]),
                              np.array([p.warning_h_max, 255, 255]))],
        FloorColor.CAUTION: [(np.array([p.caution_h_min, s_min, v_min]),
                              np.array([p.caution_h_max, 255, 255]))],
        FloorColor.INNER_SAFE: [(np.array([p.inner_safe_h_min, s_min, v_min]),
                                 np.array([p.inner_safe_h_max, 255, 255]))],
    }


def classify_floor(hsv: np.ndarray, params) -> FloorColor:
    """
    Classify an HSV patch into a floor colour.

    A colour wins when at least params.floor_min_fraction of the patch
    falls inside its range; the best-covered colour is returned.

    Args:
        hsv: HSV image patch (uint8, OpenCV ranges).
        params: Parameters with the colour ranges.

    Returns:
        FloorColor, BACKGROUND when nothing matches well enough.
    """
    total = hsv.shape[0] * hsv.shape[1]
    if total == 0:
        return FloorColor.BACKGROUND

    best = FloorColor.BACKGROUND
    best_fraction = params.floor_min_fraction
    for color, ranges in _ranges(params).items():
        mask = None
        for lower, upper in ranges:
            part = cv2.inRange(hsv, lower, upper)
            mask = part if mask is None else cv2.bitwise_or(mask, part)
        fraction = cv2.countNonZero(mask) / total
        if fraction > best_fraction or (
            fraction == best_fraction and best is FloorColor.BACKGROUND
        ):
            best = color
            best_fraction = fraction
    return best


def centre_patch(frame: np.ndarray, size: int) -> np.ndarray:
    """Square patch of `size` pixels around the frame centre."""
    h, w = frame.shape[:2]
    half = max(1, size // 2)
    cy, cx = h // 2, w // 2
    return frame[max(0, cy - half):cy + half, max(0, cx - half):cx + half]


class FloorCamera(FloorColorSensor):
    """
    Downward camera classifying the floor colour.

    Runs capture in background thread, provides latest class.

    Usage:
        params = Parameters.load()
        floor = FloorCamera(params=params)
        floor.start()

        color = floor.color()

        floor.stop()
    """

    def __init__(self, params, index: int = CAMERA_INDEX):
        self.params = params
        self.index = index

        self._cap: cv2.VideoCapture | None = None
        self._running = False
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

        self._color: FloorColor | None = None
        self._timestamp: float = 0.0

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Start camera capture in background thread."""
        if self._running:
            logger.warning("Floor camera already running")
            return True

        self._cap = cv2.VideoCapture(self.index)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, CAMERA_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CAMERA_HEIGHT)

        if not self._cap.isOpened():
            logger.error("Failed to open floor camera")
            return False

        logger.info(f"Floor camera started: {CAMERA_WIDTH}x{CAMERA_HEIGHT}")
        self._running = True
        self._thread = threading.Thread(target=self._capture_loop, daemon=True)
        self._thread.start()
        return True

    def stop(self):
        """Stop camera capture."""
        self._running = False

        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        logger.info("Floor camera stopped")

    def color(self) -> FloorColor:
        with self._lock:
            color = self._color
        if color is None:
            raise SensorFault("No floor camera frame yet")
        return color

    def get_timestamp(self) -> float:
        """Get timestamp of latest classification."""
        with self._lock:
            return self._timestamp

    def _capture_loop(self):
        """Background capture and classification thread."""
        while self._running:
            try:
                ret, frame = self._cap.read()
                if not ret:
                    continue

                patch = centre_patch(frame, self.params.floor_patch_size)
                hsv = cv2.cvtColor(patch, cv2.COLOR_BGR2HSV)
                color = classify_floor(hsv, self.params)

                with self._lock:
                    self._color = color
                    self._timestamp = time.time()

                # Yield CPU to the control loop
                time.sleep(0.002)

            except Exception as e:
                if self._running:
                    logger.error(f"Floor camera capture error: {e}")

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
