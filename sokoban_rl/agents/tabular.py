"""
Tabular Q-learning over exact board positions.

The agent keeps one Q-table keyed on (serialized board, action index).
Unseen entries read as 0.0 and are only stored once written.

Learning loop per episode:

    select (epsilon-greedy) → step → shape reward → one-step Q update

Exploration follows a multiplicative epsilon schedule that decays once per
episode towards a floor: explore broadly at first, then exploit what has
been learned.

Every `train` call replays the same fixed starting position; varying the
level is the curriculum's job.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from sokoban_rl.grid import (
    Action, State,
    apply_action, check_win, count_boxes_on_target, is_box, serialize,
    valid_actions,
)


STEP_PENALTY = -0.01
BOX_MOVED_PENALTY = -0.02
BOX_ON_TARGET_REWARD = 1.0
WIN_REWARD = 10.0

QKey = Tuple[str, int]


@dataclass
class AgentConfig:
    """Hyperparameters shared by the tabular agents."""
    learning_rate: float = 0.1     # alpha
    discount_factor: float = 0.95  # gamma
    epsilon_start: float = 1.0
    epsilon_end: float = 0.01      # Floor epsilon
    epsilon_decay: float = 0.995   # Multiplicative decay per episode
    max_steps: int = 500           # Step cap per episode
    report_every: int = 100        # Episodes between progress reports
    seed: Optional[int] = None

    def __post_init__(self):
        if not 0.0 < self.learning_rate <= 1.0:
            raise ValueError(f"learning_rate must be in (0, 1], got {self.learning_rate}")
        if not 0.0 <= self.discount_factor <= 1.0:
            raise ValueError(f"discount_factor must be in [0, 1], got {self.discount_factor}")
        if not 0.0 <= self.epsilon_end <= self.epsilon_start <= 1.0:
            raise ValueError("epsilon schedule must satisfy 0 <= end <= start <= 1")
        if not 0.0 < self.epsilon_decay <= 1.0:
            raise ValueError(f"epsilon_decay must be in (0, 1], got {self.epsilon_decay}")
        if self.max_steps <= 0 or self.report_every <= 0:
            raise ValueError("max_steps and report_every must be positive")


@dataclass
class EpisodeResult:
    """Outcome of one episode."""
    won: bool
    total_reward: float
    steps: int
    history: List[State] = field(default_factory=list)  # Greedy rollouts only


@dataclass
class TrainingProgress:
    """Periodic training report: running averages since the call began."""
    episode: int
    average_reward: float
    win_rate: float
    epsilon: float

    def __repr__(self) -> str:
        return (f"Progress(ep={self.episode}, avg_reward={self.average_reward:.2f}, "
                f"win_rate={self.win_rate:.1%}, epsilon={self.epsilon:.3f})")


ProgressCallback = Callable[[TrainingProgress], None]


def compute_reward(old_state: State, new_state: State, won: bool) -> float:
    """
    Shaped reward for one transition.

    Every step costs STEP_PENALTY. A winning step adds WIN_REWARD and
    nothing else. Otherwise the change in boxes-on-target is added, and
    BOX_MOVED_PENALTY applies if the player's pre-move cell held a box.
    """
    reward = STEP_PENALTY
    if won:
        return reward + WIN_REWARD

    delta = count_boxes_on_target(new_state) - count_boxes_on_target(old_state)
    reward += BOX_ON_TARGET_REWARD * delta

    if is_box(old_state.cell(old_state.player)):
        reward += BOX_MOVED_PENALTY
    return reward


class QLearningAgent:
    """
    Epsilon-greedy tabular Q-learning agent.

    Parameters
    ----------
    config : AgentConfig, optional
        Hyperparameters and RNG seed. Defaults to AgentConfig().
    """

    label = "Q-learning"

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or AgentConfig()
        self.rng = random.Random(self.config.seed)
        self.q_table: Dict[QKey, float] = {}
        self.epsilon = self.config.epsilon_start
        self.episodes = 0

    @property
    def num_entries(self) -> int:
        return len(self.q_table)

    # --- Value lookups -----------------------------------------------------

    def q_value(self, state: State, action: Action) -> float:
        return self.q_table.get((serialize(state), int(action)), 0.0)

    def q_values(self, state: State, actions: List[Action]) -> List[float]:
        """Values for several actions, serializing the board once."""
        key = serialize(state)
        return [self.q_table.get((key, int(a)), 0.0) for a in actions]

    def max_q(self, state: State) -> float:
        """Best value over valid actions; 0.0 from a trapped position."""
        actions = valid_actions(state)
        if not actions:
            return 0.0
        return max(self.q_values(state, actions))

    # --- Policy ------------------------------------------------------------

    def _greedy(self, state: State, actions: List[Action]) -> Action:
        # argmax keeps the first maximum, so ties go to Up/Down/Left/Right order
        values = self.q_values(state, actions)
        return actions[int(np.argmax(values))]

    def best_action(self, state: State) -> Optional[Action]:
        actions = valid_actions(state)
        if not actions:
            return None
        return self._greedy(state, actions)

    def select_action(self, state: State) -> Optional[Action]:
        """Epsilon-greedy choice, or None when no move is possible."""
        actions = valid_actions(state)
        if not actions:
            return None
        if self.rng.random() < self.epsilon:
            return self.rng.choice(actions)
        return self._greedy(state, actions)

    # --- Learning ----------------------------------------------------------

    def bellman_update(self, state: State, action: Action,
                       next_state: State, reward: float) -> float:
        """New value for (state, action) after one observed transition."""
        old_q = self.q_value(state, action)
        target = reward + self.config.discount_factor * self.max_q(next_state)
        return old_q + self.config.learning_rate * (target - old_q)

    def update(self, state: State, action: Action,
               next_state: State, reward: float) -> float:
        new_q = self.bellman_update(state, action, next_state, reward)
        self.q_table[(serialize(state), int(action))] = new_q
        return new_q

    def train_episode(self, initial_state: State) -> EpisodeResult:
        """
        Run one exploring episode from `initial_state`, learning online.

        Ends on a win, at the step cap, or when the player is trapped.
        Epsilon decays once afterwards.
        """
        state = initial_state
        total_reward = 0.0
        steps = 0
        won = False

        while steps < self.config.max_steps:
            if check_win(state):
                won = True
                break
            action = self.select_action(state)
            if action is None:
                break

            next_state = apply_action(state, action)
            won = check_win(next_state)
            reward = compute_reward(state, next_state, won)
            self.update(state, action, next_state, reward)

            total_reward += reward
            steps += 1
            if won:
                break
            state = next_state

        self.epsilon = max(self.config.epsilon_end,
                           self.epsilon * self.config.epsilon_decay)
        self.episodes += 1
        return EpisodeResult(won=won, total_reward=total_reward, steps=steps)

    def train(self, initial_state: State, episodes: int,
              callback: Optional[ProgressCallback] = None,
              verbose: bool = False) -> Tuple[float, float]:
        """
        Train for `episodes` episodes, all starting from `initial_state`.

        Returns
        -------
        Tuple of (average reward per episode, win rate)
        """
        if episodes <= 0:
            raise ValueError(f"episodes must be positive, got {episodes}")

        total_reward = 0.0
        wins = 0
        for episode in range(1, episodes + 1):
            result = self.train_episode(initial_state)
            total_reward += result.total_reward
            wins += int(result.won)

            if episode % self.config.report_every == 0:
                progress = TrainingProgress(
                    episode=episode,
                    average_reward=total_reward / episode,
                    win_rate=wins / episode,
                    epsilon=self.epsilon,
                )
                if callback:
                    callback(progress)
                if verbose:
                    print(f"  [{self.label} ep {episode:5d}] "
                          f"avg_reward={progress.average_reward:7.2f}  "
                          f"win_rate={progress.win_rate:6.1%}  "
                          f"epsilon={progress.epsilon:.3f}")

        return total_reward / episodes, wins / episodes

    # --- Greedy play -------------------------------------------------------

    def play_episode(self, initial_state: State) -> EpisodeResult:
        """Greedy rollout without learning; records every visited state."""
        state = initial_state
        history = [state]
        total_reward = 0.0
        steps = 0
        won = check_win(state)

        while not won and steps < self.config.max_steps:
            action = self.best_action(state)
            if action is None:
                break
            next_state = apply_action(state, action)
            won = check_win(next_state)
            total_reward += compute_reward(state, next_state, won)
            steps += 1
            state = next_state
            history.append(state)

        return EpisodeResult(won=won, total_reward=total_reward,
                             steps=steps, history=history)

    def evaluate(self, initial_state: State,
                 episodes: int) -> Tuple[float, float]:
        """
        Greedy rollouts with no exploration and no table updates.

        Returns
        -------
        Tuple of (win rate, average steps per episode)
        """
        if episodes <= 0:
            raise ValueError(f"episodes must be positive, got {episodes}")

        results = [self.play_episode(initial_state) for _ in range(episodes)]
        win_rate = float(np.mean([r.won for r in results]))
        avg_steps = float(np.mean([r.steps for r in results]))
        return win_rate, avg_steps
