"""
Curriculum learning: levels of rising difficulty, unlocked by success.

The LevelGenerator builds corridor, room, multi-box and hand-authored
levels; the CurriculumScheduler decides which one comes next based on
the agent's win rate.
"""

from sokoban_rl.curriculum.generator import (
    COMPLEX_LEVELS, Complex, Corridor, Difficulty, LevelGenerator, MultiBox,
    Room,
)
from sokoban_rl.curriculum.scheduler import (
    CurriculumConfig, CurriculumResult, CurriculumScheduler, StageLog,
    train_with_curriculum,
)

__all__ = [
    "COMPLEX_LEVELS",
    "Complex",
    "Corridor",
    "Difficulty",
    "LevelGenerator",
    "MultiBox",
    "Room",
    "CurriculumConfig",
    "CurriculumResult",
    "CurriculumScheduler",
    "StageLog",
    "train_with_curriculum",
]
