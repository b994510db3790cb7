"""
Mahjong Puzzle Board Module

Handles the 20x20 grid: swapping, removal, gravity, refill and reshuffle.
"""

from typing import Iterable, Iterator, List, Optional, Sequence, Tuple
import numpy as np

from .tiles import Tile, random_tile

GRID_SIZE = 20

Cell = Tuple[int, int]  # (row, col)


def is_adjacent(a: Cell, b: Cell) -> bool:
    """Two cells are adjacent when their Manhattan distance is exactly 1"""
    return abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1


def iter_cells(size: int = GRID_SIZE) -> Iterator[Cell]:
    """Every cell, row-major"""
    for r in range(size):
        for c in range(size):
            yield r, c


class Board:
    """
    Square grid of optional tiles, row-major.

    A cell holds None only while a resolution pass is in progress; every
    pass ends with the board fully populated again.
    """

    def __init__(self, cells: Optional[np.ndarray] = None, size: int = GRID_SIZE):
        if cells is None:
            cells = np.full((size, size), None, dtype=object)
        if cells.ndim != 2 or cells.shape[0] != cells.shape[1]:
            raise ValueError(f"Board must be square, got shape {cells.shape}")
        self.cells = cells
        self.size = cells.shape[0]

    @classmethod
    def random(cls, rng, size: int = GRID_SIZE) -> 'Board':
        """Create a fully populated board of random tiles"""
        board = cls(size=size)
        board.refill(rng)
        return board

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Optional[Tile]]]) -> 'Board':
        """Create a board from nested rows of tiles"""
        size = len(rows)
        cells = np.full((size, size), None, dtype=object)
        for r, row in enumerate(rows):
            if len(row) != size:
                raise ValueError(f"Row {r} has {len(row)} cells, expected {size}")
            for c, tile in enumerate(row):
                cells[r, c] = tile
        return cls(cells)

    @classmethod
    def from_codes(cls, rows: Sequence[Sequence[Optional[str]]]) -> 'Board':
        """Inverse of to_codes()"""
        return cls.from_rows([
            [Tile.from_string(code) if code is not None else None for code in row]
            for row in rows
        ])

    def in_bounds(self, cell: Cell) -> bool:
        r, c = cell
        return 0 <= r < self.size and 0 <= c < self.size

    def _check(self, cell: Cell) -> None:
        if not self.in_bounds(cell):
            raise IndexError(f"Cell {cell} is outside the {self.size}x{self.size} board")

    def __getitem__(self, cell: Cell) -> Optional[Tile]:
        self._check(cell)
        return self.cells[cell[0], cell[1]]

    def __setitem__(self, cell: Cell, tile: Optional[Tile]) -> None:
        self._check(cell)
        self.cells[cell[0], cell[1]] = tile

    def swap(self, a: Cell, b: Cell) -> None:
        """Exchange the contents of two cells"""
        self._check(a)
        self._check(b)
        self.cells[a[0], a[1]], self.cells[b[0], b[1]] = self.cells[b[0], b[1]], self.cells[a[0], a[1]]

    def clear(self, cells: Iterable[Cell]) -> None:
        """Empty the given cells"""
        for cell in cells:
            self[cell] = None

    def apply_gravity(self) -> int:
        """
        Drop tiles down each column into empty cells below them.
        Relative order within a column is preserved.

        Returns:
            Number of tiles that moved
        """
        moved = 0
        for c in range(self.size):
            empty_row = -1
            for r in range(self.size - 1, -1, -1):
                if self.cells[r, c] is None:
                    if empty_row == -1:
                        empty_row = r
                elif empty_row != -1:
                    self.cells[empty_row, c] = self.cells[r, c]
                    self.cells[r, c] = None
                    empty_row -= 1
                    moved += 1
        return moved

    def refill(self, rng) -> List[Cell]:
        """
        Fill every empty cell with a freshly drawn tile.

        Returns:
            The cells that were filled, row-major
        """
        filled = self.empty_cells()
        for r, c in filled:
            self.cells[r, c] = random_tile(rng)
        return filled

    def shuffle(self, rng) -> None:
        """Uniform random permutation of every tile on the board"""
        tiles = list(self.cells.flat)
        rng.shuffle(tiles)
        for i, tile in enumerate(tiles):
            self.cells[i // self.size, i % self.size] = tile

    def empty_cells(self) -> List[Cell]:
        return [(r, c) for r, c in iter_cells(self.size) if self.cells[r, c] is None]

    @property
    def is_full(self) -> bool:
        return not self.empty_cells()

    def to_index_array(self) -> np.ndarray:
        """
        Convert to a size x size int8 array of tile kind indices.
        Empty cells are -1.
        """
        array = np.full((self.size, self.size), -1, dtype=np.int8)
        for r in range(self.size):
            for c in range(self.size):
                tile = self.cells[r, c]
                if tile is not None:
                    array[r, c] = tile.tile_index
        return array

    def to_codes(self) -> List[List[Optional[str]]]:
        """Nested rows of tile codes (None for empty), for serialization"""
        return [[tile.code if tile is not None else None for tile in row]
                for row in self.cells.tolist()]

    def copy(self) -> 'Board':
        return Board(self.cells.copy())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self.cells.tolist() == other.cells.tolist()

    def __repr__(self) -> str:
        return f"Board({self.size}x{self.size}, {len(self.empty_cells())} empty)"

    def __str__(self) -> str:
        lines = []
        for row in self.cells.tolist():
            lines.append(" ".join(str(tile) if tile is not None else "・" for tile in row))
        return "\n".join(lines)
