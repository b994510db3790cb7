"""
Tests for the Mahjong Puzzle board matcher
"""

import pytest

from mahjong_puzzle.board import Board
from mahjong_puzzle.hand import MeldType
from mahjong_puzzle.matcher import (
    is_triplet, is_sequence, is_meld,
    find_first_match, creates_match, matching_swaps, pair_swaps,
    has_any_valid_move, find_all_matchable_cells, iter_adjacent_swaps,
)
from mahjong_puzzle.session import GamePhase
from mahjong_puzzle.tiles import man, pin, sou, EAST, SOUTH, WEST, WHITE_DRAGON, GREEN_DRAGON, RED_DRAGON

from conftest import make_dead_board


class TestMeldPredicates:
    """Test group detection on three tiles"""

    def test_triplet(self):
        assert is_triplet(man(5), man(5), man(5))
        assert is_triplet(EAST, EAST, EAST)
        assert not is_triplet(man(5), man(5), pin(5))
        assert not is_triplet(man(5), None, man(5))

    def test_sequence_any_order(self):
        assert is_sequence(man(1), man(2), man(3))
        assert is_sequence(sou(9), sou(7), sou(8))

    def test_not_sequence(self):
        assert not is_sequence(man(1), man(2), pin(3))
        assert not is_sequence(man(1), man(2), man(4))
        assert not is_sequence(man(8), man(9), man(1))
        assert not is_sequence(WHITE_DRAGON, GREEN_DRAGON, RED_DRAGON)
        assert not is_sequence(EAST, SOUTH, WEST)
        assert not is_sequence(man(1), man(2), None)

    def test_is_meld(self):
        assert is_meld([pin(4), pin(4), pin(4)])
        assert is_meld([pin(4), pin(5), pin(6)])
        assert not is_meld([pin(4), pin(4)])


class TestFindFirstMatch:
    """Test the row-major board scan"""

    def test_dead_board_has_no_match(self, dead_board):
        assert find_first_match(dead_board) is None

    def test_horizontal_sequence(self, dead_board):
        dead_board[(4, 6)] = sou(3)
        dead_board[(4, 7)] = sou(1)
        dead_board[(4, 8)] = sou(2)
        match = find_first_match(dead_board)
        assert match.cells == ((4, 6), (4, 7), (4, 8))
        assert match.kind == MeldType.SEQUENCE
        assert match.tiles == (sou(3), sou(1), sou(2))

    def test_vertical_triplet(self, dead_board):
        for r in (7, 8, 9):
            dead_board[(r, 2)] = pin(9)
        match = find_first_match(dead_board)
        assert match.cells == ((7, 2), (8, 2), (9, 2))
        assert match.kind == MeldType.TRIPLET

    def test_row_major_order(self, dead_board):
        """The earliest starting cell wins"""
        for c in (10, 11, 12):
            dead_board[(6, c)] = man(7)
        for r in (2, 3, 4):
            dead_board[(r, 15)] = man(8)
        assert find_first_match(dead_board).cells[0] == (2, 15)

    def test_horizontal_triplet_before_vertical(self, dead_board):
        """An L of five identical tiles resolves the horizontal arm"""
        for cell in [(3, 3), (3, 4), (3, 5), (4, 3), (5, 3)]:
            dead_board[cell] = man(4)
        assert find_first_match(dead_board).cells == ((3, 3), (3, 4), (3, 5))

    def test_triplet_before_sequence(self, dead_board):
        """At one cell a vertical triplet is found before a horizontal sequence"""
        dead_board[(3, 3)] = man(4)
        dead_board[(3, 4)] = man(5)
        dead_board[(3, 5)] = man(6)
        dead_board[(4, 3)] = man(4)
        dead_board[(5, 3)] = man(4)
        match = find_first_match(dead_board)
        assert match.kind == MeldType.TRIPLET
        assert match.cells == ((3, 3), (4, 3), (5, 3))

    def test_skips_empty_cells(self, dead_board):
        dead_board.clear([(0, 0), (0, 1), (0, 2)])
        assert find_first_match(dead_board) is None


class TestSwapProbes:
    """Test probing adjacent swaps"""

    def test_swap_enumeration(self):
        swaps = list(iter_adjacent_swaps(20))
        assert len(swaps) == 760
        assert swaps[0] == ((0, 0), (0, 1))
        assert swaps[380] == ((0, 0), (1, 0))

    def test_creates_match_restores_board(self, dead_board):
        dead_board[(0, 0)] = man(1)
        dead_board[(0, 1)] = man(2)
        dead_board[(1, 2)] = man(3)
        before = dead_board.copy()

        assert creates_match(dead_board, (0, 2), (1, 2))
        assert not creates_match(dead_board, (5, 5), (5, 6))
        assert dead_board == before

    def test_dead_board_has_no_moves(self, dead_board):
        assert not has_any_valid_move(dead_board, GamePhase.COLLECTING_MELDS)
        assert matching_swaps(dead_board) == []
        assert find_all_matchable_cells(dead_board, GamePhase.COLLECTING_MELDS) == frozenset()

    def test_single_move(self, dead_board):
        dead_board[(0, 0)] = man(1)
        dead_board[(0, 1)] = man(2)
        dead_board[(1, 2)] = man(3)

        assert has_any_valid_move(dead_board, GamePhase.COLLECTING_MELDS)
        assert matching_swaps(dead_board) == [((0, 2), (1, 2))]
        assert find_all_matchable_cells(dead_board, GamePhase.COLLECTING_MELDS) == frozenset({(0, 2), (1, 2)})

    def test_forming_pair(self, dead_board):
        """Pair swaps are judged directly, so the board never counts as dead"""
        assert has_any_valid_move(dead_board, GamePhase.FORMING_PAIR)
        assert find_all_matchable_cells(dead_board, GamePhase.FORMING_PAIR) == frozenset()

    def test_pair_swaps(self, dead_board):
        dead_board[(8, 8)] = sou(5)
        dead_board[(9, 8)] = sou(5)
        assert pair_swaps(dead_board) == [((8, 8), (9, 8))]

    def test_probe_on_unsettled_board(self, dead_board):
        """With a group already on the board any swap reports a match"""
        for c in (0, 1, 2):
            dead_board[(10, c)] = pin(2)
        assert creates_match(dead_board, (18, 18), (18, 19))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
