"""
Procedural level generation for the training curriculum.

Four families of levels, in rising difficulty:

1. Corridor: a one-wide walled passage, push a single box to the far end.
2. Room: a walled rectangle with one box and one target at random.
3. MultiBox: a walled square with several box/target pairs at random.
4. Complex: a hand-authored level drawn from a fixed pool.

Random layouts are screened with the deadlock oracle and retried a bounded
number of times. When every attempt fails, a fixed line layout (player,
box, target side by side) is returned instead; it is solvable by
construction.

All randomness comes from the generator's own `random.Random`, so a seeded
generator always produces the same sequence of levels.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Union

from sokoban_rl.deadlock import is_box_deadlocked, is_potentially_solvable
from sokoban_rl.grid import Cell, Position, State, make_state, parse


# ---------------------------------------------------------------------------
# Difficulty variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Corridor:
    length: int

    def __str__(self) -> str:
        return f"Corridor {self.length}"


@dataclass(frozen=True)
class Room:
    width: int
    height: int

    def __str__(self) -> str:
        return f"Room {self.width}x{self.height}"


@dataclass(frozen=True)
class MultiBox:
    count: int

    def __str__(self) -> str:
        return f"MultiBox {self.count}"


@dataclass(frozen=True)
class Complex:

    def __str__(self) -> str:
        return "Complex"


Difficulty = Union[Corridor, Room, MultiBox, Complex]


COMPLEX_LEVELS = [
    "\n".join([
        "#######",
        "#     #",
        "# .$. #",
        "#  $  #",
        "#  @  #",
        "#######",
    ]),
    "\n".join([
        "########",
        "#      #",
        "# $  . #",
        "#  ##  #",
        "# .  $ #",
        "#   @  #",
        "########",
    ]),
    "\n".join([
        "  #####",
        "###   #",
        "#.@$  #",
        "### $.#",
        "#.##$ #",
        "# # . ##",
        "#$ *$$.#",
        "#   .  #",
        "########",
    ]),
]


def walled_room(width: int, height: int) -> State:
    """Empty floor surrounded by a one-cell wall border. No player yet."""
    state = make_state(width, height)
    state.grid[0, :] = Cell.WALL
    state.grid[-1, :] = Cell.WALL
    state.grid[:, 0] = Cell.WALL
    state.grid[:, -1] = Cell.WALL
    return state


def interior(state: State) -> List[Position]:
    return [(x, y)
            for y in range(1, state.height - 1)
            for x in range(1, state.width - 1)]


def place_player(state: State, pos: Position) -> None:
    state.set_cell(pos, Cell.PLAYER)
    state.player = pos


class LevelGenerator:
    """
    Builds levels for each difficulty variant.

    Parameters
    ----------
    seed : Optional[int]
        Seed for the generator's random source.
    max_attempts : int
        Random layouts tried before falling back to the fixed layout.
    """

    def __init__(self, seed: Optional[int] = None, max_attempts: int = 100):
        if max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {max_attempts}")
        self.rng = random.Random(seed)
        self.max_attempts = max_attempts

    def generate(self, difficulty: Difficulty) -> State:
        if isinstance(difficulty, Corridor):
            return self.corridor(difficulty.length)
        if isinstance(difficulty, Room):
            return self.room(difficulty.width, difficulty.height)
        if isinstance(difficulty, MultiBox):
            return self.multibox(difficulty.count)
        if isinstance(difficulty, Complex):
            return self.complex()
        raise TypeError(f"unknown difficulty: {difficulty!r}")

    # --- Corridor ----------------------------------------------------------

    def corridor(self, length: int, vertical: Optional[bool] = None) -> State:
        """
        A straight passage `length` cells long: player and box at one end,
        target at the other. Orientation is random unless `vertical` is given.
        """
        if length < 3:
            raise ValueError(f"corridor length must be at least 3, got {length}")
        if vertical is None:
            vertical = self.rng.random() < 0.5

        state = walled_room(length + 2, 3)
        place_player(state, (1, 1))
        state.set_cell((2, 1), Cell.BOX)
        state.set_cell((length, 1), Cell.TARGET)

        if vertical:
            state.grid = state.grid.T.copy()
            state.player = (1, 1)
        return state

    # --- Room --------------------------------------------------------------

    def room(self, width: int, height: int) -> State:
        """One box and one target at random spots in a walled room."""
        if max(width, height) < 5 or min(width, height) < 3:
            raise ValueError(f"room {width}x{height} cannot fit a three-cell line")

        for _ in range(self.max_attempts):
            state = walled_room(width, height)
            player, box, target = self.rng.sample(interior(state), 3)
            place_player(state, player)
            state.set_cell(box, Cell.BOX)
            state.set_cell(target, Cell.TARGET)
            if is_potentially_solvable(state):
                return state

        return self._line_room(width, height)

    def _line_room(self, width: int, height: int) -> State:
        """Player, box and target side by side along the longer axis."""
        state = walled_room(width, height)
        if width >= height:
            y = height // 2
            place_player(state, (1, y))
            state.set_cell((2, y), Cell.BOX)
            state.set_cell((3, y), Cell.TARGET)
        else:
            x = width // 2
            place_player(state, (x, 1))
            state.set_cell((x, 2), Cell.BOX)
            state.set_cell((x, 3), Cell.TARGET)
        return state

    # --- Multi-box ---------------------------------------------------------

    def multibox(self, count: int) -> State:
        """`count` box/target pairs in a square room sized to fit them."""
        if count <= 0:
            raise ValueError(f"box count must be positive, got {count}")
        size = max(5, count + 3)

        for _ in range(self.max_attempts):
            state = self._try_multibox(size, count)
            if state is not None and is_potentially_solvable(state):
                return state

        return self._line_multibox(size, count)

    def _try_multibox(self, size: int, count: int) -> Optional[State]:
        state = walled_room(size, size)
        free = interior(state)
        self.rng.shuffle(free)
        place_player(state, free.pop())

        for _ in range(count):
            first, second = free.pop(), free.pop()
            if not self._place_pair(state, first, second):
                if not self._place_pair(state, second, first):
                    return None
        return state

    @staticmethod
    def _place_pair(state: State, box: Position, target: Position) -> bool:
        state.set_cell(box, Cell.BOX)
        state.set_cell(target, Cell.TARGET)
        if is_box_deadlocked(box, state):
            state.set_cell(box, Cell.EMPTY)
            state.set_cell(target, Cell.EMPTY)
            return False
        return True

    @staticmethod
    def _line_multibox(size: int, count: int) -> State:
        """One row per pair: box in column 2, target in column 3."""
        state = walled_room(size, size)
        place_player(state, (1, 1))
        for row in range(1, count + 1):
            state.set_cell((2, row), Cell.BOX)
            state.set_cell((3, row), Cell.TARGET)
        return state

    # --- Complex -----------------------------------------------------------

    def complex(self) -> State:
        return parse(self.rng.choice(COMPLEX_LEVELS))
