"""
Mahjong Puzzle Hand Module

Handles the collected hand and the melds derived from it when scoring.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple
import numpy as np

from .tiles import Tile, NUM_TILE_KINDS


class MeldType(IntEnum):
    """Types of three-tile groups"""
    TRIPLET = 0   # 刻子 - 3 identical tiles
    SEQUENCE = 1  # 順子 - 3 consecutive ranks in one numbered suit


@dataclass(frozen=True)
class Meld:
    """
    A triplet or sequence found while decomposing a winning hand.

    Attributes:
        meld_type: Triplet or sequence
        tiles: The three tiles, sorted
    """
    meld_type: MeldType
    tiles: Tuple[Tile, ...]

    def __post_init__(self):
        """Validate meld"""
        if len(self.tiles) != 3:
            raise ValueError("Meld must have exactly 3 tiles")
        tiles = tuple(sorted(self.tiles))
        object.__setattr__(self, "tiles", tiles)
        if self.meld_type == MeldType.TRIPLET:
            if not all(t == tiles[0] for t in tiles):
                raise ValueError("Triplet tiles must be identical")
        elif self.meld_type == MeldType.SEQUENCE:
            if tiles[0].is_honor or not all(t.suit == tiles[0].suit for t in tiles):
                raise ValueError("Sequence must be a single numbered suit")
            if not (tiles[1].rank == tiles[0].rank + 1 and tiles[2].rank == tiles[1].rank + 1):
                raise ValueError("Invalid sequence")

    @property
    def base_tile(self) -> Tile:
        """Lowest tile of a sequence, or the repeated tile of a triplet"""
        return self.tiles[0]

    @property
    def is_triplet(self) -> bool:
        return self.meld_type == MeldType.TRIPLET

    @property
    def is_sequence(self) -> bool:
        return self.meld_type == MeldType.SEQUENCE

    def __str__(self) -> str:
        return "[" + "".join(str(t) for t in self.tiles) + "]"


class Hand:
    """
    Tiles collected from the board.

    Melds are appended until MELD_CAPACITY, then the winning pair brings the
    hand to WIN_SIZE. The container itself does not enforce these limits.
    """

    MELD_CAPACITY = 12
    WIN_SIZE = 14

    def __init__(self, tiles: Optional[Iterable[Tile]] = None):
        self.tiles: List[Tile] = list(tiles) if tiles else []

    def extend(self, tiles: Iterable[Tile]) -> None:
        self.tiles.extend(tiles)

    def pop(self) -> Tile:
        return self.tiles.pop()

    def sort(self) -> None:
        """Sort tiles by suit and rank"""
        self.tiles.sort()

    def clear(self) -> None:
        self.tiles = []

    def count(self, tile: Tile) -> int:
        """Count occurrences of a tile kind"""
        return sum(1 for t in self.tiles if t == tile)

    def to_count_array(self) -> np.ndarray:
        """Convert to a 34-element array counting each tile kind."""
        counts = np.zeros(NUM_TILE_KINDS, dtype=np.int8)
        for tile in self.tiles:
            counts[tile.tile_index] += 1
        return counts

    def copy(self) -> 'Hand':
        return Hand(self.tiles)

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self):
        return iter(self.tiles)

    def __getitem__(self, index):
        return self.tiles[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Hand):
            return NotImplemented
        return self.tiles == other.tiles

    def __repr__(self) -> str:
        return f"Hand({len(self.tiles)} tiles)"

    def __str__(self) -> str:
        return " ".join(str(t) for t in self.tiles)
