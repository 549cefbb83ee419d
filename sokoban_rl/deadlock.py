"""
Static deadlock detection.

A position is deadlocked when some box can provably never reach a target.
The checks here are necessary conditions only: they never flag a box that
could still be solved, but they miss many deadlocks a full search would
find. They are cheap enough to run on every candidate layout during level
generation.

Two patterns are recognised:

1. Corner: a loose box with a wall (or the grid edge) on one vertical and
   one horizontal side can never move again.
2. Wall line: a loose box against a wall can only slide along that wall.
   If the line runs into a wall (or a cornered box) in both directions
   with no target on the way, and the box can never step off the line,
   it is stuck.
"""

from __future__ import annotations

from sokoban_rl.grid import (
    Action, Cell, Position, State,
    count_boxes, count_targets, is_box, is_target, step,
)


def _is_wall(state: State, pos: Position) -> bool:
    return state.cell(pos) == Cell.WALL


def is_corner(pos: Position, state: State) -> bool:
    """True if walls close off `pos` on one vertical and one horizontal side."""
    vertical = (_is_wall(state, step(pos, Action.UP))
                or _is_wall(state, step(pos, Action.DOWN)))
    horizontal = (_is_wall(state, step(pos, Action.LEFT))
                  or _is_wall(state, step(pos, Action.RIGHT)))
    return vertical and horizontal


def _leaves_line(state: State, pos: Position, direction: Action) -> bool:
    """Could a box at `pos` be pushed off a line running in `direction`?"""
    if direction in (Action.LEFT, Action.RIGHT):
        sides = (Action.UP, Action.DOWN)
    else:
        sides = (Action.LEFT, Action.RIGHT)
    return not any(_is_wall(state, step(pos, side)) for side in sides)


def _line_is_dead(state: State, origin: Position, direction: Action) -> bool:
    """Scan from `origin` in `direction` until the line ends.

    Returns True if it ends at a wall or a cornered box before any target
    or any cell where the box could leave the line.
    """
    pos = step(origin, direction)
    while True:
        cell = state.cell(pos)
        if cell == Cell.WALL:
            return True
        if is_target(cell):
            return False
        if is_box(cell) and is_corner(pos, state):
            return True
        if _leaves_line(state, pos, direction):
            return False
        pos = step(pos, direction)


def is_box_deadlocked(pos: Position, state: State) -> bool:
    """True if the loose box at `pos` can never reach a target."""
    if state.cell(pos) != Cell.BOX:
        return False
    if is_corner(pos, state):
        return True

    if (_is_wall(state, step(pos, Action.UP))
            or _is_wall(state, step(pos, Action.DOWN))):
        if (_line_is_dead(state, pos, Action.LEFT)
                and _line_is_dead(state, pos, Action.RIGHT)):
            return True

    if (_is_wall(state, step(pos, Action.LEFT))
            or _is_wall(state, step(pos, Action.RIGHT))):
        if (_line_is_dead(state, pos, Action.UP)
                and _line_is_dead(state, pos, Action.DOWN)):
            return True

    return False


def has_deadlock(state: State) -> bool:
    return any(is_box_deadlocked(pos, state)
               for pos in state.positions(Cell.BOX))


def is_potentially_solvable(state: State) -> bool:
    """
    Generation-time filter: as many boxes as targets (at least one of
    each) and no detected deadlock. This is not a solvability proof.
    """
    boxes = count_boxes(state)
    targets = count_targets(state)
    return boxes == targets and boxes > 0 and not has_deadlock(state)
