"""
Mahjong Puzzle Scoring System

Scores a completed 14-tile hand. The hand is decomposed into a pair and
four melds, then bonus patterns are added on top of the base score.

Patterns follow an exclusion principle: a matched pattern removes the
patterns named in its `excludes` list (e.g. an outside hand excludes the
flush bonuses).
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Set, Tuple
import logging
import numpy as np

from .tiles import Tile, TileSuit, NUMBERED_SUITS, NUM_TILE_KINDS
from .hand import Hand, Meld, MeldType
from .rules import RuleSet, STANDARD_RULES

logger = logging.getLogger(__name__)

SEQUENCE_PATTERNS = ["Triple Sequence", "Full Straight", "Duplicate Sequence"]
FLUSH_PATTERNS = ["Full Flush", "Half Flush"]


@dataclass
class ScoringContext:
    """Analysis of a 14-tile hand"""
    tiles: List[Tile]

    # Computed fields (set during analysis)
    counts: np.ndarray = field(default_factory=lambda: np.zeros(NUM_TILE_KINDS, dtype=np.int8))
    pair: Optional[Tile] = None
    melds: List[Meld] = field(default_factory=list)

    def __post_init__(self):
        self.tiles = sorted(self.tiles)
        self.counts = np.zeros(NUM_TILE_KINDS, dtype=np.int8)
        for tile in self.tiles:
            self.counts[tile.tile_index] += 1
        self._decompose_hand()

    @property
    def is_decomposed(self) -> bool:
        return self.pair is not None

    def _decompose_hand(self):
        """
        Try each pair candidate in sorted order and keep the first one whose
        remainder splits into four melds.
        """
        for idx in range(NUM_TILE_KINDS):
            if self.counts[idx] < 2:
                continue
            remainder = self.counts.copy()
            remainder[idx] -= 2
            melds = self._find_melds(remainder)
            if melds is not None and len(melds) == 4:
                self.pair = Tile.from_index(idx)
                self.melds = melds
                return

    def _find_melds(self, counts: np.ndarray) -> Optional[List[Meld]]:
        """
        Decompose the remaining tiles into melds, starting from the lowest
        tile: triplet first, then a sequence starting at that tile.
        Returns None when the lowest tile fits neither.
        """
        nonzero = np.flatnonzero(counts)
        if len(nonzero) == 0:
            return []
        first_idx = int(nonzero[0])
        tile = Tile.from_index(first_idx)

        # Try triplet
        if counts[first_idx] >= 3:
            counts[first_idx] -= 3
            rest = self._find_melds(counts)
            counts[first_idx] += 3
            if rest is not None:
                return [Meld(MeldType.TRIPLET, (tile, tile, tile))] + rest

        # Try sequence (numbered suits only)
        if not tile.is_honor and tile.rank <= 7:
            idx1, idx2, idx3 = first_idx, first_idx + 1, first_idx + 2
            if counts[idx2] >= 1 and counts[idx3] >= 1:
                counts[idx1] -= 1
                counts[idx2] -= 1
                counts[idx3] -= 1
                rest = self._find_melds(counts)
                counts[idx1] += 1
                counts[idx2] += 1
                counts[idx3] += 1
                if rest is not None:
                    seq = (tile, Tile.from_index(idx2), Tile.from_index(idx3))
                    return [Meld(MeldType.SEQUENCE, seq)] + rest

        return None

    @property
    def triplets(self) -> List[Meld]:
        return [m for m in self.melds if m.is_triplet]

    @property
    def sequences(self) -> List[Meld]:
        return [m for m in self.melds if m.is_sequence]

    @property
    def has_honor(self) -> bool:
        return any(t.is_honor for t in self.tiles)

    @property
    def numbered_suits(self) -> Set[TileSuit]:
        return {t.suit for t in self.tiles if not t.is_honor}

    @property
    def components(self) -> List[Sequence[Tile]]:
        """The pair and each meld as tile groups"""
        return [(self.pair, self.pair)] + [m.tiles for m in self.melds]


@dataclass
class ScoringPattern:
    """
    Represents a scoring pattern.

    `check_func` returns how many times the pattern applies; a bool counts
    as 0 or 1.
    """
    name: str
    japanese_name: str
    points: int
    check_func: Callable[[ScoringContext], int]
    excludes: List[str] = field(default_factory=list)  # Patterns this one excludes


@dataclass
class ScoreResult:
    """Outcome of scoring one hand"""
    total: int
    base: int
    patterns: List[Tuple[ScoringPattern, int]] = field(default_factory=list)
    pair: Optional[Tile] = None
    melds: List[Meld] = field(default_factory=list)

    @property
    def pattern_names(self) -> List[str]:
        return [p.name for p, _ in self.patterns]

    @property
    def is_decomposed(self) -> bool:
        return self.pair is not None


class HandScorer:
    """
    Puzzle hand scorer.

    Implements the bonus table and the exclusion principle.
    """

    def __init__(self, rules: RuleSet = STANDARD_RULES):
        self.rules = rules
        self.patterns = self._create_patterns()

    def calculate_score(self, tiles) -> int:
        """Total score for a 14-tile hand"""
        return self.evaluate(tiles).total

    def evaluate(self, tiles) -> ScoreResult:
        """
        Score a 14-tile hand.

        Returns:
            ScoreResult with the total and the patterns that applied. A hand
            with no pair + four meld decomposition earns the base score only.
        """
        tiles = list(tiles.tiles if isinstance(tiles, Hand) else tiles)
        if len(tiles) != Hand.WIN_SIZE:
            raise ValueError(f"A winning hand has {Hand.WIN_SIZE} tiles, got {len(tiles)}")

        ctx = ScoringContext(tiles)
        base = self.rules.base_score
        if not ctx.is_decomposed:
            logger.debug("No pair + four meld decomposition, base score only")
            return ScoreResult(total=base, base=base)

        matched = self.get_matching_patterns(ctx)
        total = base + sum(p.points * hits for p, hits in matched)
        return ScoreResult(total=total, base=base, patterns=matched,
                           pair=ctx.pair, melds=list(ctx.melds))

    def get_matching_patterns(self, ctx: ScoringContext) -> List[Tuple[ScoringPattern, int]]:
        """
        Get matching patterns with their hit counts after applying exclusion rules.
        """
        matching = []
        for pattern in self.patterns:
            hits = int(pattern.check_func(ctx))
            if hits > 0:
                matching.append((pattern, hits))

        excluded_names: Set[str] = set()
        for pattern, _ in matching:
            excluded_names.update(pattern.excludes)

        return [(p, hits) for p, hits in matching if p.name not in excluded_names]

    def _create_patterns(self) -> List[ScoringPattern]:
        patterns = [
            ScoringPattern(
                "Pure Outside Hand", "純全帯么九", 2000,
                self._check_pure_outside_hand,
                FLUSH_PATTERNS + SEQUENCE_PATTERNS,
            ),
            ScoringPattern(
                "Mixed Outside Hand", "混全帯么九", 1000,
                self._check_mixed_outside_hand,
                FLUSH_PATTERNS + SEQUENCE_PATTERNS,
            ),
            ScoringPattern("Full Flush", "清一色", 4000, self._check_full_flush),
            ScoringPattern("Half Flush", "混一色", 2000, self._check_half_flush),
            ScoringPattern(
                "All Triplets", "対々和", 2000,
                self._check_all_triplets,
                SEQUENCE_PATTERNS,
            ),
            ScoringPattern("Triple Triplets", "三色同刻", 2000, self._check_triple_triplets),
            ScoringPattern("Dragon Triplet", "役牌", 500, self._count_dragon_triplets),
            ScoringPattern("Triple Sequence", "三色同順", 2000, self._check_triple_sequence),
            ScoringPattern("Full Straight", "一気通貫", 1000, self._check_full_straight),
            ScoringPattern("Duplicate Sequence", "一盃口", 500, self._check_duplicate_sequence),
        ]
        if self.rules.all_simples_bonus > 0:
            patterns.append(ScoringPattern(
                "All Simples", "断么九", self.rules.all_simples_bonus,
                self._check_all_simples,
            ))
        return patterns

    # ========== Outside hands ==========

    def _all_components_outside(self, ctx: ScoringContext) -> bool:
        """Every meld and the pair contain a terminal or honor"""
        return all(any(t.is_terminal_or_honor for t in group) for group in ctx.components)

    def _check_pure_outside_hand(self, ctx: ScoringContext) -> bool:
        """Every group has a terminal and there are no honors"""
        if ctx.has_honor or not self._all_components_outside(ctx):
            return False
        return all(any(t.is_terminal for t in group) for group in ctx.components)

    def _check_mixed_outside_hand(self, ctx: ScoringContext) -> bool:
        """Every group has a terminal or honor, with honors present"""
        return ctx.has_honor and self._all_components_outside(ctx)

    # ========== Suit purity ==========

    def _check_full_flush(self, ctx: ScoringContext) -> bool:
        """One numbered suit, no honors"""
        return len(ctx.numbered_suits) == 1 and not ctx.has_honor

    def _check_half_flush(self, ctx: ScoringContext) -> bool:
        """One numbered suit plus honors"""
        return len(ctx.numbered_suits) == 1 and ctx.has_honor

    # ========== Triplets ==========

    def _check_all_triplets(self, ctx: ScoringContext) -> bool:
        return len(ctx.triplets) == 4

    def _check_triple_triplets(self, ctx: ScoringContext) -> bool:
        """Triplets of the same rank in all three numbered suits"""
        triplets = ctx.triplets
        if len(triplets) < 3:
            return False
        by_rank = defaultdict(set)
        for meld in triplets:
            t = meld.base_tile
            if not t.is_honor:
                by_rank[t.rank].add(t.suit)
        return any(len(suits) >= 3 for suits in by_rank.values())

    def _count_dragon_triplets(self, ctx: ScoringContext) -> int:
        return sum(1 for meld in ctx.triplets if meld.base_tile.is_dragon)

    # ========== Sequences ==========

    def _sequence_starts(self, ctx: ScoringContext) -> List[Tuple[TileSuit, int]]:
        return [(m.base_tile.suit, m.base_tile.rank) for m in ctx.sequences]

    def _check_triple_sequence(self, ctx: ScoringContext) -> bool:
        """Sequences with the same starting rank in all three numbered suits"""
        starts = self._sequence_starts(ctx)
        if len(starts) < 3:
            return False
        by_rank = defaultdict(set)
        for suit, rank in starts:
            by_rank[rank].add(suit)
        return any(len(suits) >= 3 for suits in by_rank.values())

    def _check_full_straight(self, ctx: ScoringContext) -> bool:
        """123-456-789 in same suit"""
        starts = self._sequence_starts(ctx)
        for suit in NUMBERED_SUITS:
            suit_starts = set(rank for s, rank in starts if s == suit)
            if {1, 4, 7}.issubset(suit_starts):
                return True
        return False

    def _check_duplicate_sequence(self, ctx: ScoringContext) -> bool:
        """Two identical sequences (awarded once)"""
        counts = Counter(self._sequence_starts(ctx))
        return any(c >= 2 for c in counts.values())

    # ========== Optional ==========

    def _check_all_simples(self, ctx: ScoringContext) -> bool:
        return all(t.is_simple for t in ctx.tiles)
