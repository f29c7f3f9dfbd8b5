"""
Match-long robot state.

One RobotState is created when the controller starts and is passed by
reference into every component on every tick. Only the stance machine
changes `stance`; the bodies own their own bookkeeping fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from config import CONFIDENCE_INITIAL, CONFIDENCE_MAX, CONFIDENCE_MIN


class Stance(Enum):
    """Top-level behavioural mode."""

    INIT = auto()
    SEARCHING = auto()
    ENGAGED = auto()


class AttackType(Enum):
    STRAIGHT_PUSH = auto()
    HOOK_LEFT = auto()
    HOOK_RIGHT = auto()


class Direction(Enum):
    """Spin direction; value is the sign of the heading change."""

    LEFT = 1
    RIGHT = -1

    @property
    def opposite(self) -> Direction:
        return Direction.RIGHT if self is Direction.LEFT else Direction.LEFT


@dataclass
class RobotState:
    """Mutable state that lives for the whole match."""

    stance: Stance = Stance.INIT
    previous_stance: Stance | None = None
    tick: int = 0

    # Attack
    confidence: int = CONFIDENCE_INITIAL
    current_attack: AttackType | None = None
    attack_heading: float = 0.0
    stall_start_tick: int | None = None
    push_start_tick: int | None = None
    push_rewarded: bool = False

    # Recomputed from the floor colour each tick
    danger_level: int = 0

    # Search
    is_passively_scanning: bool = False
    passive_scan_start_angle: float = 0.0
    passive_scan_done: bool = False
    center_vector: float | None = None  # Heading toward the arena centre
    search_direction: Direction = Direction.LEFT

    # Bookkeeping
    timing_overruns: int = 0

    def adjust_confidence(self, delta: int) -> int:
        """Add delta and clamp to the allowed range; returns the new value."""
        self.confidence = max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, self.confidence + delta))
        return self.confidence
