"""
Curriculum scheduling: staged progression through level difficulties.

Stages run in a fixed order, each walking through its own list of
settings from the CurriculumConfig:

    0 Corridor (lengths) → 1 Room (sizes) → 2 MultiBox (box counts) → 3 Complex

A success signal moves to the next setting in the current stage; running
off the end of the list moves to the first setting of the next stage.
Complex is terminal.

The training driver alternates generate → train → advance. A round that
misses the threshold is repeated on the same difficulty, with no limit
unless `max_rounds` is given.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from sokoban_rl.curriculum.generator import (
    Complex, Corridor, Difficulty, LevelGenerator, MultiBox, Room,
)
from sokoban_rl.grid import serialize


CORRIDOR, ROOM, MULTI_BOX, COMPLEX = 0, 1, 2, 3
STAGE_NAMES = ["Corridor", "Room", "Multi-box", "Complex"]


@dataclass
class CurriculumConfig:
    """Per-stage settings; the lists are indexed independently."""
    corridor_lengths: List[int] = field(default_factory=lambda: [3, 4, 5, 6, 7])
    room_sizes: List[Tuple[int, int]] = field(
        default_factory=lambda: [(5, 5), (6, 5), (6, 6), (7, 6), (7, 7)])
    box_counts: List[int] = field(default_factory=lambda: [1, 2, 2, 3, 3])

    def __post_init__(self):
        if not (self.corridor_lengths and self.room_sizes and self.box_counts):
            raise ValueError("every curriculum stage needs at least one setting")


class CurriculumScheduler:
    """Tracks (stage, substage) and maps it to a difficulty."""

    def __init__(self, config: Optional[CurriculumConfig] = None):
        self.config = config or CurriculumConfig()
        self.stage = CORRIDOR
        self.substage = 0

    @property
    def stage_name(self) -> str:
        return STAGE_NAMES[self.stage]

    @property
    def finished(self) -> bool:
        return self.stage == COMPLEX

    def _stage_length(self) -> int:
        if self.stage == CORRIDOR:
            return len(self.config.corridor_lengths)
        if self.stage == ROOM:
            return len(self.config.room_sizes)
        if self.stage == MULTI_BOX:
            return len(self.config.box_counts)
        return 1

    def current_difficulty(self) -> Difficulty:
        if self.stage == CORRIDOR:
            return Corridor(self.config.corridor_lengths[self.substage])
        if self.stage == ROOM:
            width, height = self.config.room_sizes[self.substage]
            return Room(width, height)
        if self.stage == MULTI_BOX:
            return MultiBox(self.config.box_counts[self.substage])
        return Complex()

    def advance(self, success_rate: float, threshold: float) -> bool:
        """Step forward if `success_rate` meets `threshold`; report whether it did."""
        if success_rate < threshold:
            return False
        self.substage += 1
        if self.substage >= self._stage_length():
            self.stage = min(COMPLEX, self.stage + 1)
            self.substage = 0
        return True

    def reset(self) -> None:
        self.stage = CORRIDOR
        self.substage = 0

    def describe(self) -> str:
        return f"Stage: {self.stage_name}, Level: {self.substage + 1}"


# ---------------------------------------------------------------------------
# Training driver
# ---------------------------------------------------------------------------

@dataclass
class StageLog:
    """One training round of the curriculum."""
    difficulty: Difficulty
    level: str
    average_reward: float
    win_rate: float
    advanced: bool


@dataclass
class CurriculumResult:
    completed: bool
    rounds: List[StageLog]

    def summary(self) -> str:
        lines = [
            "═" * 55,
            "  Curriculum — Training Result",
            "═" * 55,
            f"  Completed:         {'Yes' if self.completed else 'No'}",
            f"  Rounds:            {len(self.rounds)}",
        ]
        if self.rounds:
            lines.append(f"  Mean win rate:     "
                         f"{np.mean([r.win_rate for r in self.rounds]):.1%}")
            lines.append("")
            for r in self.rounds:
                mark = "✓" if r.advanced else "✗"
                lines.append(f"    {mark} {str(r.difficulty):14s} "
                             f"win_rate={r.win_rate:6.1%}  "
                             f"avg_reward={r.average_reward:7.2f}")
        lines.append("═" * 55)
        return "\n".join(lines)


def train_with_curriculum(agent, scheduler: CurriculumScheduler,
                          generator: LevelGenerator,
                          episodes_per_stage: int,
                          success_threshold: float,
                          max_rounds: Optional[int] = None,
                          verbose: bool = False) -> CurriculumResult:
    """
    Train `agent` through the curriculum until a round clears the Complex
    stage.

    `agent` is any object with `train(state, episodes) -> (avg_reward,
    win_rate)`; `verbose=True` is passed through only when set here, so
    agents without that keyword work with quiet runs. Both tabular agents
    qualify. Each round generates a fresh level for the current
    difficulty, and at least one round always runs, even when the
    scheduler already sits on the terminal stage. With `max_rounds=None`
    a difficulty the agent never masters is retried forever.
    """
    rounds: List[StageLog] = []
    train_kwargs = {"verbose": True} if verbose else {}
    completed = False

    while max_rounds is None or len(rounds) < max_rounds:
        difficulty = scheduler.current_difficulty()
        level = generator.generate(difficulty)
        if verbose:
            print(f"\n{scheduler.describe()}")
            print(f"Training on level:\n{serialize(level)}\n")

        avg_reward, win_rate = agent.train(level, episodes_per_stage,
                                           **train_kwargs)
        advanced = scheduler.advance(win_rate, success_threshold)
        rounds.append(StageLog(
            difficulty=difficulty,
            level=serialize(level),
            average_reward=avg_reward,
            win_rate=win_rate,
            advanced=advanced,
        ))

        if verbose:
            print(f"Round complete: avg_reward={avg_reward:.2f}  "
                  f"win_rate={win_rate:.1%}")
            if not advanced:
                print("Repeating current stage...")

        if advanced and scheduler.finished:
            completed = True
            break

    if verbose and completed:
        print("\nCurriculum completed!")
    return CurriculumResult(completed=completed, rounds=rounds)
