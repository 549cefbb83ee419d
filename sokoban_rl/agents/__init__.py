"""
Tabular learners for the puzzle.

Both agents share the same epsilon-greedy policy, reward shaping and
training loop; they differ only in how Q-values are keyed:

- QLearningAgent: one table keyed on the exact board.
- BackoffAgent: one table per player-centred window size, read from the
  most specific level that has seen the current view.
"""

from sokoban_rl.agents.tabular import (
    AgentConfig, EpisodeResult, QLearningAgent, TrainingProgress,
    compute_reward,
)
from sokoban_rl.agents.backoff import (
    BackoffAgent, BackoffConfig, BackoffLevel, FULL_STATE, extract_window,
)

__all__ = [
    "AgentConfig",
    "EpisodeResult",
    "QLearningAgent",
    "TrainingProgress",
    "compute_reward",
    "BackoffAgent",
    "BackoffConfig",
    "BackoffLevel",
    "FULL_STATE",
    "extract_window",
]
