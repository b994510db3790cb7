"""
Mahjong Puzzle Board Matcher

Finds triplets and sequences of three aligned tiles, and probes adjacent
swaps for hints and deadlock detection.

The scan stops at the first group found. Callers that need every
possibility probe each adjacent swap on its own instead.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional, Set, Tuple

from .tiles import Tile
from .board import Board, Cell
from .hand import MeldType
from .session import GamePhase


def is_triplet(a: Optional[Tile], b: Optional[Tile], c: Optional[Tile]) -> bool:
    """Three identical tiles"""
    if a is None or b is None or c is None:
        return False
    return a == b == c


def is_sequence(a: Optional[Tile], b: Optional[Tile], c: Optional[Tile]) -> bool:
    """Three consecutive ranks of one numbered suit, in any order"""
    if a is None or b is None or c is None:
        return False
    low, mid, high = sorted((a, b, c))
    if low.is_honor or not low.suit == mid.suit == high.suit:
        return False
    return mid.rank == low.rank + 1 and high.rank == mid.rank + 1


def is_meld(tiles) -> bool:
    if len(tiles) != 3:
        return False
    return is_triplet(*tiles) or is_sequence(*tiles)


@dataclass(frozen=True)
class Match:
    """A group of three aligned cells forming a meld"""
    cells: Tuple[Cell, Cell, Cell]
    kind: MeldType
    tiles: Tuple[Tile, Tile, Tile]


def _window(board: Board, start: Cell, vertical: bool) -> Optional[Tuple[Cell, Cell, Cell]]:
    r, c = start
    if vertical:
        cells = ((r, c), (r + 1, c), (r + 2, c))
    else:
        cells = ((r, c), (r, c + 1), (r, c + 2))
    if r < 0 or c < 0 or not board.in_bounds(cells[2]):
        return None
    return cells


def _match_at(board: Board, start: Cell, vertical: bool, kind: MeldType) -> Optional[Match]:
    cells = _window(board, start, vertical)
    if cells is None:
        return None
    tiles = tuple(board.cells[r, c] for r, c in cells)
    predicate = is_triplet if kind == MeldType.TRIPLET else is_sequence
    if predicate(*tiles):
        return Match(cells, kind, tiles)
    return None


# Order of checks at each scan position
_CHECK_ORDER = (
    (False, MeldType.TRIPLET),
    (True, MeldType.TRIPLET),
    (False, MeldType.SEQUENCE),
    (True, MeldType.SEQUENCE),
)


def find_first_match(board: Board) -> Optional[Match]:
    """
    Scan the board row by row and return the first group found.

    At each position a horizontal triplet is tried first, then a vertical
    triplet, then a horizontal and a vertical sequence.
    """
    for r in range(board.size):
        for c in range(board.size):
            if board.cells[r, c] is None:
                continue
            for vertical, kind in _CHECK_ORDER:
                match = _match_at(board, (r, c), vertical, kind)
                if match is not None:
                    return match
    return None


def _match_through(board: Board, cell: Cell) -> bool:
    """Check every window that contains the given cell"""
    r, c = cell
    for offset in range(3):
        for vertical in (False, True):
            start = (r - offset, c) if vertical else (r, c - offset)
            cells = _window(board, start, vertical)
            if cells is not None and is_meld([board.cells[x, y] for x, y in cells]):
                return True
    return False


def iter_adjacent_swaps(size: int) -> Iterator[Tuple[Cell, Cell]]:
    """Every horizontally adjacent pair, then every vertically adjacent pair"""
    for r in range(size):
        for c in range(size - 1):
            yield (r, c), (r, c + 1)
    for r in range(size - 1):
        for c in range(size):
            yield (r, c), (r + 1, c)


def creates_match(board: Board, a: Cell, b: Cell, settled: Optional[bool] = None) -> bool:
    """
    Tentatively swap two cells and report whether the board then has a match.
    The board is restored before returning.

    On a settled board (no existing match) only windows through the swapped
    cells can change, so only those are probed.
    """
    if settled is None:
        settled = find_first_match(board) is None
    board.swap(a, b)
    try:
        if settled:
            return _match_through(board, a) or _match_through(board, b)
        return find_first_match(board) is not None
    finally:
        board.swap(a, b)


def matching_swaps(board: Board) -> List[Tuple[Cell, Cell]]:
    """All adjacent swaps that would produce a match"""
    settled = find_first_match(board) is None
    return [(a, b) for a, b in iter_adjacent_swaps(board.size)
            if creates_match(board, a, b, settled)]


def pair_swaps(board: Board) -> List[Tuple[Cell, Cell]]:
    """Adjacent swaps whose two tiles are identical"""
    swaps = []
    for a, b in iter_adjacent_swaps(board.size):
        tile = board.cells[a[0], a[1]]
        if tile is not None and tile == board.cells[b[0], b[1]]:
            swaps.append((a, b))
    return swaps


def has_any_valid_move(board: Board, phase: GamePhase) -> bool:
    """
    Check whether some adjacent swap produces a match.
    Always true while forming the pair, since pair swaps are judged directly.
    """
    if phase == GamePhase.FORMING_PAIR:
        return True
    settled = find_first_match(board) is None
    for a, b in iter_adjacent_swaps(board.size):
        if creates_match(board, a, b, settled):
            return True
    return False


def find_all_matchable_cells(board: Board, phase: GamePhase) -> FrozenSet[Cell]:
    """
    Collect every cell that takes part in some match-producing swap.
    Empty while forming the pair.
    """
    if phase == GamePhase.FORMING_PAIR:
        return frozenset()
    cells: Set[Cell] = set()
    for a, b in matching_swaps(board):
        cells.add(a)
        cells.add(b)
    return frozenset(cells)
