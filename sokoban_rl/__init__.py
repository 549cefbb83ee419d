"""
Sokoban RL: tabular reinforcement learning on a block-pushing puzzle.

A deterministic grid engine with a static deadlock oracle, two tabular
Q-learning agents (exact-board and multi-window backoff), and a
procedural level generator driven by a staged curriculum.
"""

from sokoban_rl.grid import (
    Action, Cell, State,
    apply_action, check_win, is_valid_action, make_state, parse, serialize,
    valid_actions,
)
from sokoban_rl.deadlock import (
    has_deadlock, is_box_deadlocked, is_corner, is_potentially_solvable,
)
from sokoban_rl.agents import (
    AgentConfig, BackoffAgent, BackoffConfig, QLearningAgent, FULL_STATE,
)
from sokoban_rl.curriculum import (
    CurriculumConfig, CurriculumScheduler, LevelGenerator,
    train_with_curriculum,
)

__version__ = "0.1.0"
__all__ = [
    "Action",
    "Cell",
    "State",
    "apply_action",
    "check_win",
    "is_valid_action",
    "make_state",
    "parse",
    "serialize",
    "valid_actions",
    "has_deadlock",
    "is_box_deadlocked",
    "is_corner",
    "is_potentially_solvable",
    "AgentConfig",
    "BackoffAgent",
    "BackoffConfig",
    "QLearningAgent",
    "FULL_STATE",
    "CurriculumConfig",
    "CurriculumScheduler",
    "LevelGenerator",
    "train_with_curriculum",
]
