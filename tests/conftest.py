"""
Shared fixtures for the Mahjong Puzzle tests
"""

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mahjong_puzzle.board import Board, GRID_SIZE
from mahjong_puzzle.storage import MemoryStore
from mahjong_puzzle.tiles import EAST, SOUTH, WEST, NORTH, WHITE_DRAGON, GREEN_DRAGON, RED_DRAGON

WINDS = [EAST, SOUTH, WEST, NORTH]

HOUR = 3600.0


def make_dead_board(size: int = GRID_SIZE) -> Board:
    """Winds on diagonals: no group anywhere and no swap that makes one"""
    return Board.from_rows([[WINDS[(r + c) % 4] for c in range(size)] for r in range(size)])


class CyclingRng:
    """
    random.Random stand-in whose choice() cycles through fixed tiles.
    shuffle() uses a layout if one is given, else a seeded shuffle.
    """

    def __init__(self, tiles, layout=None, seed: int = 0):
        self.tiles = list(tiles)
        self.layout = layout
        self.draws = 0
        self._random = random.Random(seed)

    def choice(self, seq):
        tile = self.tiles[self.draws % len(self.tiles)]
        self.draws += 1
        return tile

    def shuffle(self, items):
        if self.layout is not None:
            items[:] = list(self.layout)
        else:
            self._random.shuffle(items)


class FakeClock:
    """Settable wall clock"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def advance(self, hours: float) -> None:
        self.now += hours * HOUR

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def dead_board():
    return make_dead_board()


@pytest.fixture
def dragon_rng():
    """Refills draw White, Green, Red in turn, which never forms a group in a row"""
    return CyclingRng([WHITE_DRAGON, GREEN_DRAGON, RED_DRAGON])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryStore()
