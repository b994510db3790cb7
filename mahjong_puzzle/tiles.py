"""
Mahjong Puzzle Tiles

Defines the 34 tile kinds that can appear on the board:
- 9 Characters (萬子)
- 9 Circles (筒子)
- 9 Bamboo (索子)
- 7 Honors (字牌): East, South, West, North, White, Green, Red

The board draws kinds uniformly with replacement, so there is no per-kind
copy limit as in a physical set.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import List, Tuple


class TileSuit(IntEnum):
    """Tile suits, in sort order"""
    CHARACTERS = 0  # 萬子 (m) - Numbers 1-9
    CIRCLES = 1     # 筒子 (p) - Numbers 1-9
    BAMBOO = 2      # 索子 (s) - Numbers 1-9
    HONOR = 3       # 字牌 (z) - Winds 1-4, Dragons 5-7


class HonorType(IntEnum):
    """Honor tile ranks"""
    EAST = 1
    SOUTH = 2
    WEST = 3
    NORTH = 4
    WHITE = 5
    GREEN = 6
    RED = 7


NUMBERED_SUITS = (TileSuit.CHARACTERS, TileSuit.CIRCLES, TileSuit.BAMBOO)
DRAGON_RANKS = (HonorType.WHITE, HonorType.GREEN, HonorType.RED)

SUIT_CODES = {
    TileSuit.CHARACTERS: "m",
    TileSuit.CIRCLES: "p",
    TileSuit.BAMBOO: "s",
    TileSuit.HONOR: "z",
}
_CODE_SUITS = {code: suit for suit, code in SUIT_CODES.items()}

_KANJI_NUM = "一二三四五六七八九"
_FULL_WIDTH_NUM = "１２３４５６７８９"
_ROMAN_NUM = "ⅠⅡⅢⅣⅤⅥⅦⅧⅨ"
_HONOR_CHARS = "東南西北白發中"


@dataclass(frozen=True)
class Tile:
    """
    A tile kind on the board or in the hand.

    Tiles are plain values: two tiles are equal when suit and rank match.

    Attributes:
        suit: The suit of the tile
        rank: 1-9 for numbered suits, 1-7 for honors
    """
    suit: TileSuit
    rank: int

    def __post_init__(self):
        """Normalise and validate tile values"""
        object.__setattr__(self, "suit", TileSuit(self.suit))
        object.__setattr__(self, "rank", int(self.rank))
        if self.suit in NUMBERED_SUITS:
            if not 1 <= self.rank <= 9:
                raise ValueError(f"Numbered suits must have rank 1-9, got {self.rank}")
        elif self.suit == TileSuit.HONOR:
            if not 1 <= self.rank <= 7:
                raise ValueError(f"Honor tiles must have rank 1-7, got {self.rank}")
        else:
            raise ValueError(f"Unknown suit: {self.suit}")

    @property
    def is_honor(self) -> bool:
        return self.suit == TileSuit.HONOR

    @property
    def is_terminal(self) -> bool:
        """Check if tile is a terminal (1 or 9 of numbered suits)"""
        return not self.is_honor and self.rank in (1, 9)

    @property
    def is_terminal_or_honor(self) -> bool:
        return self.is_terminal or self.is_honor

    @property
    def is_simple(self) -> bool:
        """Check if tile is a simple (2-8 of numbered suits)"""
        return not self.is_honor and 2 <= self.rank <= 8

    @property
    def is_dragon(self) -> bool:
        return self.is_honor and self.rank in DRAGON_RANKS

    @property
    def tile_index(self) -> int:
        """
        Get unique index for this tile kind (0-33).
        Characters 0-8, Circles 9-17, Bamboo 18-26, Honors 27-33.
        """
        return self.suit * 9 + self.rank - 1

    @property
    def code(self) -> str:
        """Compact notation such as "1m", "5p", "9s" or "7z" """
        return f"{self.rank}{SUIT_CODES[self.suit]}"

    def __lt__(self, other) -> bool:
        """Comparison for sorting"""
        if not isinstance(other, Tile):
            return NotImplemented
        return (self.suit, self.rank) < (other.suit, other.rank)

    def __repr__(self) -> str:
        return f"Tile({self.suit.name}, {self.rank})"

    def __str__(self) -> str:
        """Display glyph"""
        if self.suit == TileSuit.CHARACTERS:
            return _KANJI_NUM[self.rank - 1]
        elif self.suit == TileSuit.CIRCLES:
            return _FULL_WIDTH_NUM[self.rank - 1]
        elif self.suit == TileSuit.BAMBOO:
            return _ROMAN_NUM[self.rank - 1]
        return _HONOR_CHARS[self.rank - 1]

    @classmethod
    def from_index(cls, tile_index: int) -> 'Tile':
        """Create a tile from its kind index (0-33)."""
        if not 0 <= tile_index < NUM_TILE_KINDS:
            raise ValueError(f"Tile index must be 0-33, got {tile_index}")
        return cls(TileSuit(tile_index // 9), tile_index % 9 + 1)

    @classmethod
    def from_string(cls, s: str) -> 'Tile':
        """
        Create tile from compact notation.

        Args:
            s: String like "1m", "9p", "3s" or "7z"
        """
        s = s.strip()
        if len(s) != 2 or not s[0].isdigit() or s[1] not in _CODE_SUITS:
            raise ValueError(f"Cannot parse tile string: {s!r}")
        return cls(_CODE_SUITS[s[1]], int(s[0]))


NUM_TILE_KINDS = 34

# Every kind in index order
TILE_KINDS: Tuple[Tile, ...] = tuple(
    [Tile(suit, rank) for suit in NUMBERED_SUITS for rank in range(1, 10)]
    + [Tile(TileSuit.HONOR, rank) for rank in range(1, 8)]
)


def random_tile(rng) -> Tile:
    """Draw one kind uniformly (with replacement) using a random.Random-like rng"""
    return rng.choice(TILE_KINDS)


def parse_tiles(text: str) -> List[Tile]:
    """Parse a space separated list of codes, e.g. "1m 2m 3m 7z" """
    return [Tile.from_string(part) for part in text.split()]


# Convenience functions for creating specific tiles
def man(rank: int) -> Tile:
    """Create a Characters tile (1-9m)"""
    return Tile(TileSuit.CHARACTERS, rank)

def pin(rank: int) -> Tile:
    """Create a Circles tile (1-9p)"""
    return Tile(TileSuit.CIRCLES, rank)

def sou(rank: int) -> Tile:
    """Create a Bamboo tile (1-9s)"""
    return Tile(TileSuit.BAMBOO, rank)

def honor(honor_type: int) -> Tile:
    """Create an Honor tile (1-7z)"""
    return Tile(TileSuit.HONOR, honor_type)


# Named honor tiles
EAST = honor(HonorType.EAST)
SOUTH = honor(HonorType.SOUTH)
WEST = honor(HonorType.WEST)
NORTH = honor(HonorType.NORTH)
WHITE_DRAGON = honor(HonorType.WHITE)
GREEN_DRAGON = honor(HonorType.GREEN)
RED_DRAGON = honor(HonorType.RED)
