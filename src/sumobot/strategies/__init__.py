"""
Stance behaviours (Strategy pattern).

Each stance has one body; the escape reflex runs inline from the
stance machine. Pass custom instances to StanceMachine to swap them.
"""

from .motion import (
    Motion,
    TurnStatus,
    TurnToHeading,
    direction_toward,
    normalize_angle,
)
from .base import (
    StanceBody,
    away_from_edge,
    record_turn,
)
from .attack import (
    AttackController,
    AttackStrategy,
    DEFAULT_STRATEGIES,
    dynamic_speed,
    heading_hold,
    select_best_strategy,
)
from .search import (
    SearchController,
)
from .escape import (
    EscapeReflex,
)
from .opening import (
    OpeningMove,
)
