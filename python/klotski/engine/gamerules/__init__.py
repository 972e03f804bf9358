from klotski.engine.gamerules.obstacles import (
    HIDE_STEPS,
    WAITING,
    ObstacleRecord,
    hide_obstacle,
    tick_obstacles,
)
from klotski.engine.gamerules.rules import (
    Move,
    apply_move,
    can_move,
    check_win,
    goal_origin,
    legal_moves,
    successors,
)

__all__ = [
    "HIDE_STEPS",
    "WAITING",
    "Move",
    "ObstacleRecord",
    "apply_move",
    "can_move",
    "check_win",
    "goal_origin",
    "hide_obstacle",
    "legal_moves",
    "successors",
    "tick_obstacles",
]
