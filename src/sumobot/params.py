"""
Runtime tunable parameters with JSON persistence.

All layers share one Parameters instance. Values are read fresh by
each component on every tick, so edits to params.json take effect on
the next start without touching code.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PARAMS_FILE = Path(__file__).parent / "params.json"


@dataclass
class Parameters:
    """Runtime tunable parameters."""

    # Detection thresholds
    enemy_distance_cm: float = 50.0  # Enemy "ahead" when closer than this
    danger_threshold: int = 4  # Danger zone when level >= this

    # Speeds (-100..100 wheel units)
    base_speed: int = 80  # Attack speed before danger tier scaling
    search_speed: int = 40  # Passive scan and pulse turns
    escape_speed: int = 80  # Reverse speed during escape

    # Attack
    base_gyro_p_gain: float = 1.0  # Heading-hold gain before confidence bonus
    gyro_rate_failure_threshold: float = 250.0  # deg/s, losing control above this
    hook_differential: int = 30  # Slow-side reduction for hook attacks
    push_success_ticks: int = 50  # Non-stalled straight push that earns confidence

    # Stall detection
    stall_speed_threshold: float = 5.0  # Measured wheel speed below this = stalled
    stall_loop_threshold: int = 25  # Consecutive ticks (0.5 s at 50 Hz)

    # Search
    scan_sweep_deg: float = 350.0  # Passive scan stops short of a full turn
    pulse_turn_deg: float = 30.0
    pulse_pause_ms: int = 100
    protect_turn_deg: float = 120.0

    # Escape reflex
    escape_settle_ms: int = 100
    escape_reverse_ms: int = 600
    escape_turn_boundary_deg: float = 150.0  # On the white line
    escape_turn_warning_deg: float = 90.0  # In the warning band

    # Turn-to-heading primitive
    turn_timeout_ms: int = 1500
    turn_tolerance_deg: float = 3.0
    turn_poll_ms: int = 10

    # Opening move (INIT)
    init_settle_ms: int = 100
    init_turn_deg: float = 90.0

    # Match
    match_duration_s: float = 0.0  # 0 = run until stopped
    start_delay_ms: int = 0  # Countdown after the start button

    # Proximity (LIDAR front window)
    lidar_front_window: int = 5  # ± degrees around forward
    lidar_min_distance: int = 60  # mm, ignore readings closer (robot body)
    lidar_min_quality: int = 10  # 0-47, minimum quality to accept
    lidar_max_age_ms: int = 200  # Forget readings older than this (~2 revolutions)

    # Floor colour classification (HSV, OpenCV ranges: H 0-180, S/V 0-255)
    floor_min_fraction: float = 0.5  # Share of patch pixels that must match
    floor_patch_size: int = 40  # Centre patch, pixels per side

    boundary_s_max: int = 40  # White: low saturation...
    boundary_v_min: int = 200  # ...and high value

    deep_warning_h_min: int = 0  # Red
    deep_warning_h_max: int = 10
    deep_warning_h_min2: int = 170  # Red wraps: high hue end
    deep_warning_h_max2: int = 180
    warning_h_min: int = 11  # Orange / yellow
    warning_h_max: int = 35
    caution_h_min: int = 36  # Green
    caution_h_max: int = 85
    inner_safe_h_min: int = 86  # Blue
    inner_safe_h_max: int = 130
    colour_s_min: int = 80  # Minimum saturation for a hue match
    colour_v_min: int = 60  # Minimum value for a hue match

    def update(self, **kwargs):
        """Update parameters from dict (e.g., from params.json)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                expected_type = type(getattr(self, key))
                try:
                    setattr(self, key, expected_type(value))
                except (TypeError, ValueError):
                    logger.warning(f"Invalid value for {key}: {value}")
            else:
                logger.warning(f"Unknown parameter {key}, ignored")

    def validate(self) -> list[str]:
        """Return a list of problems; empty when the values are usable."""
        problems = []
        if self.escape_turn_boundary_deg <= self.escape_turn_warning_deg:
            problems.append(
                "escape_turn_boundary_deg must exceed escape_turn_warning_deg"
            )
        if not 0 < self.scan_sweep_deg <= 360:
            problems.append("scan_sweep_deg must be in (0, 360]")
        if self.stall_loop_threshold < 1:
            problems.append("stall_loop_threshold must be at least 1")
        if self.turn_timeout_ms <= 0:
            problems.append("turn_timeout_ms must be positive")
        if self.match_duration_s < 0:
            problems.append("match_duration_s must not be negative")
        if self.lidar_max_age_ms <= 0:
            problems.append("lidar_max_age_ms must be positive")
        return problems

    def save(self):
        """Persist to JSON file."""
        with open(PARAMS_FILE, "w") as f:
            json.dump(asdict(self), f, indent=2)
        logger.info(f"Parameters saved to {PARAMS_FILE}")

    @classmethod
    def load(cls, path: Path = PARAMS_FILE) -> Parameters:
        """Load from JSON file, or return defaults."""
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                params = cls()
                params.update(**data)
                logger.info(f"Parameters loaded from {path}")
                return params
            except Exception as e:
                logger.warning(f"Failed to load {path}: {e}, using defaults")
        return cls()

    def to_dict(self) -> dict:
        """Convert to plain dict."""
        return asdict(self)
