"""Tests for static deadlock detection."""

import unittest

from sokoban_rl.deadlock import (
    has_deadlock, is_box_deadlocked, is_corner, is_potentially_solvable,
)
from sokoban_rl.grid import Action, apply_action, parse


EMPTY_ROOM = "#####\n#   #\n#   #\n#   #\n#####"


class TestCorners(unittest.TestCase):
    """Test corner detection in a walled 3x3 interior."""

    def test_room_corners(self):
        state = parse(EMPTY_ROOM)
        for pos in [(1, 1), (3, 1), (1, 3), (3, 3)]:
            self.assertTrue(is_corner(pos, state), pos)

    def test_edges_and_centre_are_not_corners(self):
        state = parse(EMPTY_ROOM)
        for pos in [(2, 1), (1, 2), (3, 2), (2, 3), (2, 2)]:
            self.assertFalse(is_corner(pos, state), pos)

    def test_grid_edge_counts_as_wall(self):
        state = parse("@ \n  ")
        self.assertTrue(is_corner((0, 0), state))
        self.assertTrue(is_corner((1, 1), state))


class TestBoxDeadlock(unittest.TestCase):
    """Test per-box deadlock patterns."""

    def test_corridor_without_target(self):
        state = parse("#####\n#@$ #\n#####")
        self.assertTrue(is_box_deadlocked((2, 1), state))
        self.assertTrue(has_deadlock(state))

    def test_pushed_into_dead_end(self):
        state = apply_action(parse("#####\n#@$ #\n#####"), Action.RIGHT)
        self.assertTrue(is_corner((3, 1), state))
        self.assertTrue(is_box_deadlocked((3, 1), state))

    def test_box_on_target_never_deadlocked(self):
        state = parse("#####\n#@*.#\n#####")
        self.assertFalse(is_box_deadlocked((2, 1), state))
        self.assertFalse(has_deadlock(state))

    def test_non_box_cell(self):
        state = parse(EMPTY_ROOM)
        self.assertFalse(is_box_deadlocked((1, 1), state))

    def test_wall_line_with_target(self):
        state = parse("#######\n#     #\n# @   #\n# $  .#\n#######")
        self.assertFalse(is_box_deadlocked((2, 3), state))

    def test_wall_line_without_target(self):
        state = parse("#######\n#    .#\n# @   #\n# $   #\n#######")
        self.assertTrue(is_box_deadlocked((2, 3), state))

    def test_vertical_wall_line(self):
        state = parse("#####\n#  .#\n#@ $#\n#   #\n#####")
        self.assertFalse(is_box_deadlocked((3, 2), state))
        state = parse("#####\n# . #\n#@ $#\n#   #\n#####")
        self.assertTrue(is_box_deadlocked((3, 2), state))

    def test_box_can_leave_wall_line(self):
        # The wall above ends at x=3, so the box can be pushed down there
        state = parse("#######\n###   #\n#@$   #\n#   . #\n#######")
        self.assertFalse(is_box_deadlocked((2, 2), state))

    def test_scan_passes_loose_boxes(self):
        state = parse("#########\n#  $ $.@#\n#########")
        self.assertFalse(is_box_deadlocked((3, 1), state))

    def test_open_floor_never_flagged(self):
        state = parse("#####\n#   #\n# $ #\n#@ .#\n#####")
        self.assertFalse(is_box_deadlocked((2, 2), state))


class TestSolvability(unittest.TestCase):
    """Test the generation-time filter."""

    def test_simple_push(self):
        self.assertTrue(is_potentially_solvable(parse("#####\n#@$.#\n#####")))

    def test_count_mismatch(self):
        self.assertFalse(is_potentially_solvable(parse("######\n#@$..#\n######")))

    def test_no_boxes(self):
        self.assertFalse(is_potentially_solvable(parse("####\n#@.#\n####")))

    def test_deadlocked_layout(self):
        state = parse("#####\n#@ .#\n# $ #\n#####")
        self.assertTrue(has_deadlock(state))
        self.assertFalse(is_potentially_solvable(state))

    def test_open_room_layout(self):
        state = parse("#######\n#     #\n# $.@ #\n#     #\n#######")
        self.assertTrue(is_potentially_solvable(state))


if __name__ == "__main__":
    unittest.main()
