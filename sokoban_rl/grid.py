"""
Grid engine for the block-pushing puzzle.

A level is a rectangular grid of cells. The player walks between free
cells and pushes boxes (never pulls them); the level is won once every
box rests on a target.

States are value objects: every successful move returns a fresh State
with its own copy of the grid. A blocked move returns the *same* State
object, which is how `is_valid_action` tells legal moves apart.

Text format (one glyph per cell, rows separated by newlines):

    ' '  empty floor        '#'  wall
    '$'  box                '.'  target
    '*'  box on target      '@'  player
    '+'  player on target

The serialized text doubles as the key material for the agents' Q-tables,
so the glyph mapping must stay stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Tuple

import numpy as np


Position = Tuple[int, int]   # (x, y), origin top-left


# ---------------------------------------------------------------------------
# Cells and actions
# ---------------------------------------------------------------------------

class Cell(IntEnum):
    """What occupies a grid cell."""
    EMPTY = 0
    WALL = 1
    BOX = 2
    TARGET = 3
    BOX_ON_TARGET = 4
    PLAYER = 5
    PLAYER_ON_TARGET = 6


class Action(IntEnum):
    """The four push/move directions, in table-key order."""
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3

    def delta(self) -> Tuple[int, int]:
        """x, y displacement for this action."""
        return _DELTAS[self]

    @staticmethod
    def all() -> List["Action"]:
        return [Action.UP, Action.DOWN, Action.LEFT, Action.RIGHT]


_DELTAS = {
    Action.UP: (0, -1),
    Action.DOWN: (0, 1),
    Action.LEFT: (-1, 0),
    Action.RIGHT: (1, 0),
}

GLYPHS = " #$.*@+"
_GLYPH_CODES = np.frombuffer(GLYPHS.encode("ascii"), dtype=np.uint8)
_CELL_BY_GLYPH = {glyph: Cell(i) for i, glyph in enumerate(GLYPHS)}
_NEWLINE = ord("\n")


# ---------------------------------------------------------------------------
# Cell predicates and conversions
# ---------------------------------------------------------------------------

def is_box(cell: int) -> bool:
    return cell == Cell.BOX or cell == Cell.BOX_ON_TARGET


def is_target(cell: int) -> bool:
    return cell in (Cell.TARGET, Cell.BOX_ON_TARGET, Cell.PLAYER_ON_TARGET)


def is_free(cell: int) -> bool:
    """Floor a player or box can move onto."""
    return cell == Cell.EMPTY or cell == Cell.TARGET


def without_player(cell: int) -> Cell:
    if cell == Cell.PLAYER:
        return Cell.EMPTY
    if cell == Cell.PLAYER_ON_TARGET:
        return Cell.TARGET
    return Cell(cell)


def with_player(cell: int) -> Cell:
    if cell == Cell.EMPTY:
        return Cell.PLAYER
    if cell == Cell.TARGET:
        return Cell.PLAYER_ON_TARGET
    return Cell(cell)


def without_box(cell: int) -> Cell:
    if cell == Cell.BOX:
        return Cell.EMPTY
    if cell == Cell.BOX_ON_TARGET:
        return Cell.TARGET
    return Cell(cell)


def with_box(cell: int) -> Cell:
    if cell == Cell.EMPTY:
        return Cell.BOX
    if cell == Cell.TARGET:
        return Cell.BOX_ON_TARGET
    return Cell(cell)


def step(pos: Position, action: Action) -> Position:
    dx, dy = action.delta()
    return (pos[0] + dx, pos[1] + dy)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class State:
    """
    A full board position.

    Invariant (outside of construction): the cell at `player` is PLAYER or
    PLAYER_ON_TARGET. Equality is structural.
    """
    grid: np.ndarray          # (height, width) array of Cell codes
    player: Position = (0, 0)

    @property
    def width(self) -> int:
        return int(self.grid.shape[1])

    @property
    def height(self) -> int:
        return int(self.grid.shape[0])

    def in_bounds(self, pos: Position) -> bool:
        x, y = pos
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, pos: Position) -> Cell:
        """Cell at `pos`; anything off the grid reads as a wall."""
        if not self.in_bounds(pos):
            return Cell.WALL
        return Cell(int(self.grid[pos[1], pos[0]]))

    def set_cell(self, pos: Position, cell: Cell) -> None:
        if self.in_bounds(pos):
            self.grid[pos[1], pos[0]] = cell

    def copy(self) -> State:
        return State(grid=self.grid.copy(), player=self.player)

    def positions(self, *cells: Cell) -> List[Position]:
        """All (x, y) positions holding one of `cells`, in row-major order."""
        ys, xs = np.nonzero(np.isin(self.grid, [int(c) for c in cells]))
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return (self.player == other.player
                and self.grid.shape == other.grid.shape
                and bool(np.array_equal(self.grid, other.grid)))

    __hash__ = None  # mutable during construction

    def __str__(self) -> str:
        return serialize(self)


def make_state(width: int, height: int) -> State:
    """An all-empty board with the player cached at (0, 0).

    The caller must place a PLAYER cell before handing the state on.
    """
    return State(grid=np.full((height, width), Cell.EMPTY, dtype=np.int8))


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def apply_action(state: State, action: Action) -> State:
    """
    Move (and possibly push) in the given direction.

    Returns a new State on success. A move into a wall, or a push against
    anything that is not free floor, returns `state` itself.
    """
    origin = state.player
    dest = step(origin, action)
    dest_cell = state.cell(dest)

    if is_free(dest_cell):
        new_state = state.copy()
        new_state.set_cell(origin, without_player(state.cell(origin)))
        new_state.set_cell(dest, with_player(dest_cell))
        new_state.player = dest
        return new_state

    if is_box(dest_cell):
        beyond = step(dest, action)
        beyond_cell = state.cell(beyond)
        if not is_free(beyond_cell):
            return state
        new_state = state.copy()
        new_state.set_cell(origin, without_player(state.cell(origin)))
        new_state.set_cell(dest, with_player(without_box(dest_cell)))
        new_state.set_cell(beyond, with_box(beyond_cell))
        new_state.player = dest
        return new_state

    return state


def is_valid_action(state: State, action: Action) -> bool:
    """True iff the action changes the board (identity, not equality)."""
    return apply_action(state, action) is not state


def valid_actions(state: State) -> List[Action]:
    """Valid actions in Up/Down/Left/Right order."""
    return [a for a in Action.all() if is_valid_action(state, a)]


# ---------------------------------------------------------------------------
# Predicates and counts
# ---------------------------------------------------------------------------

def count_boxes(state: State) -> int:
    return int(np.count_nonzero((state.grid == Cell.BOX)
                                | (state.grid == Cell.BOX_ON_TARGET)))


def count_targets(state: State) -> int:
    return int(np.count_nonzero(np.isin(
        state.grid,
        [Cell.TARGET, Cell.BOX_ON_TARGET, Cell.PLAYER_ON_TARGET],
    )))


def count_boxes_on_target(state: State) -> int:
    return int(np.count_nonzero(state.grid == Cell.BOX_ON_TARGET))


def check_win(state: State) -> bool:
    """At least one box, and none of them off target."""
    has_loose_box = bool(np.any(state.grid == Cell.BOX))
    return count_boxes_on_target(state) > 0 and not has_loose_box


# ---------------------------------------------------------------------------
# Text format
# ---------------------------------------------------------------------------

def serialize(state: State) -> str:
    """Row-major glyph text, rows joined by '\\n', no trailing newline."""
    codes = _GLYPH_CODES[state.grid]
    newlines = np.full((state.height, 1), _NEWLINE, dtype=np.uint8)
    text = np.hstack([codes, newlines]).tobytes().decode("ascii")
    return text[:-1]


def parse(text: str) -> State:
    """
    Build a State from glyph text.

    Short rows are padded with empty floor and unknown glyphs read as
    empty floor. The last '@' or '+' seen sets the player position; a
    level without one leaves the player cached at (0, 0).
    """
    lines = text.split("\n")
    width = max(len(line) for line in lines)
    state = make_state(width, len(lines))
    player = (0, 0)
    for y, line in enumerate(lines):
        for x, glyph in enumerate(line):
            cell = _CELL_BY_GLYPH.get(glyph, Cell.EMPTY)
            if cell == Cell.PLAYER or cell == Cell.PLAYER_ON_TARGET:
                player = (x, y)
            state.grid[y, x] = cell
    state.player = player
    return state
