"""
Hierarchical "backoff" Q-learning over player-centred windows.

Besides the exact board, the agent looks at square windows of the board
centred on the player (e.g. 3x3, 5x5, 7x7). Each window size gets its own
Q-table and visit-count table. Cells outside the board read as walls, and
the player always sits in the window's centre.

Reading a value backs off from specific to general:

    full board → 7x7 → 5x5 → 3x3 → 0.0

The first level whose window has been visited before answers, even if
the stored value for this particular action is still 0.0.

Writing is unconditional: one Bellman update (computed with backoff
values) is stored at every level under that level's own key. Levels
differ in what they key on, not in what they learn, so a small window
carries values over to boards the agent has never seen in full.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from sokoban_rl.agents.tabular import AgentConfig, QKey, QLearningAgent
from sokoban_rl.grid import Action, Cell, State, serialize


FULL_STATE = -1   # Window size meaning "no abstraction"


@dataclass
class BackoffConfig(AgentConfig):
    """AgentConfig plus the window sizes, smallest first."""
    window_sizes: Tuple[int, ...] = (3, 5, 7, FULL_STATE)

    def __post_init__(self):
        super().__post_init__()
        if not self.window_sizes:
            raise ValueError("window_sizes must not be empty")
        for size in self.window_sizes:
            if size != FULL_STATE and (size <= 0 or size % 2 == 0):
                raise ValueError(
                    f"window size must be odd and positive or FULL_STATE, got {size}"
                )
        # Most general first; the full board (if any) always last
        self.window_sizes = tuple(sorted(
            set(self.window_sizes),
            key=lambda s: float("inf") if s == FULL_STATE else s,
        ))


@dataclass
class BackoffLevel:
    """One abstraction level: Q-table and visit counts for one window size."""
    window_size: int
    q_table: Dict[QKey, float] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)

    def key(self, state: State) -> str:
        return serialize(extract_window(state, self.window_size))

    def visit(self, key: str) -> None:
        self.counts[key] = self.counts.get(key, 0) + 1


def extract_window(state: State, window_size: int) -> State:
    """
    Square view of side `window_size` centred on the player.

    Off-board cells are walls. FULL_STATE returns `state` itself.
    """
    if window_size == FULL_STATE:
        return state

    half = window_size // 2
    px, py = state.player
    grid = np.full((window_size, window_size), Cell.WALL, dtype=state.grid.dtype)

    # Overlap of the window with the board, in board coordinates
    x0, x1 = max(px - half, 0), min(px + half + 1, state.width)
    y0, y1 = max(py - half, 0), min(py + half + 1, state.height)
    if x0 < x1 and y0 < y1:
        grid[y0 - (py - half):y1 - (py - half),
             x0 - (px - half):x1 - (px - half)] = state.grid[y0:y1, x0:x1]

    return State(grid=grid, player=(half, half))


class BackoffAgent(QLearningAgent):
    """
    Q-learning agent that generalises through a stack of window levels.

    Selection, reward shaping, training and evaluation behave exactly as in
    QLearningAgent; only value lookups and updates go through the levels.

    Parameters
    ----------
    config : BackoffConfig, optional
        Hyperparameters, window sizes and RNG seed.
    """

    label = "Backoff"

    def __init__(self, config: Optional[BackoffConfig] = None):
        if config is not None and not isinstance(config, BackoffConfig):
            raise TypeError(
                f"BackoffAgent needs a BackoffConfig, got {type(config).__name__}"
            )
        super().__init__(config or BackoffConfig())
        self.levels: List[BackoffLevel] = [
            BackoffLevel(window_size=size) for size in self.config.window_sizes
        ]

    @property
    def num_entries(self) -> int:
        return sum(len(level.q_table) for level in self.levels)

    def _level_keys(self, state: State) -> List[str]:
        return [level.key(state) for level in self.levels]

    def _lookup(self, keys: List[str], action: Action) -> float:
        for level, key in zip(reversed(self.levels), reversed(keys)):
            if level.counts.get(key, 0) > 0:
                return level.q_table.get((key, int(action)), 0.0)
        return 0.0

    def value_backoff(self, state: State, action: Action) -> float:
        """Value from the most specific level that has seen this view."""
        return self._lookup(self._level_keys(state), action)

    def q_value(self, state: State, action: Action) -> float:
        return self.value_backoff(state, action)

    def q_values(self, state: State, actions: List[Action]) -> List[float]:
        keys = self._level_keys(state)
        return [self._lookup(keys, a) for a in actions]

    def update_all(self, state: State, action: Action,
                   next_state: State, reward: float) -> float:
        """Write one Bellman update to every level and bump visit counts."""
        new_q = self.bellman_update(state, action, next_state, reward)
        for level in self.levels:
            key = level.key(state)
            level.q_table[(key, int(action))] = new_q
            level.visit(key)
            level.visit(level.key(next_state))
        return new_q

    def update(self, state: State, action: Action,
               next_state: State, reward: float) -> float:
        return self.update_all(state, action, next_state, reward)

    def describe_windows(self, state: State) -> str:
        """What each level sees around the player, with visit counts."""
        blocks = []
        for level in self.levels:
            window = extract_window(state, level.window_size)
            name = "full" if level.window_size == FULL_STATE else (
                f"{level.window_size}x{level.window_size}")
            seen = level.counts.get(serialize(window), 0)
            blocks.append(f"Window {name} (seen {seen} times):\n{serialize(window)}")
        return "\n\n".join(blocks)
