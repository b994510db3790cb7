"""
Mahjong Puzzle Session State

Holds everything that survives between moves (board, hand, score, hint
economy and phase) and implements the two-phase state machine:

    COLLECTING_MELDS --(hand reaches 12)--> FORMING_PAIR
    FORMING_PAIR --(winning pair scored)--> COLLECTING_MELDS
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging
import math

from .tiles import Tile
from .board import Board, GRID_SIZE
from .hand import Hand
from .rules import RuleSet, STANDARD_RULES

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0


class GamePhase(IntEnum):
    """Phases of a round"""
    COLLECTING_MELDS = 0  # Matching triplets/sequences into the hand
    FORMING_PAIR = 1      # Hand holds 12 tiles, waiting for the winning pair


@dataclass
class SessionState:
    """
    Mutable session shared by every engine operation.

    Attributes:
        board: The tile grid
        hand: Tiles collected this round
        score: Total score (never negative)
        hint_currency: Hints available, within [0, rules.max_hints]
        last_recovery_timestamp: Epoch seconds of the last hint recovery
        phase: Current game phase
    """
    board: Board
    hand: Hand = field(default_factory=Hand)
    score: int = 0
    hint_currency: int = 0
    last_recovery_timestamp: float = 0.0
    phase: GamePhase = GamePhase.COLLECTING_MELDS
    rules: RuleSet = STANDARD_RULES

    @classmethod
    def new(cls, board: Board, now: float, rules: RuleSet = STANDARD_RULES) -> 'SessionState':
        """Fresh session at first launch or after a reset"""
        return cls(
            board=board,
            hint_currency=min(rules.initial_hints, rules.max_hints),
            last_recovery_timestamp=now,
            rules=rules,
        )

    # ========== Phase machine ==========

    def collect_meld(self, tiles) -> bool:
        """
        Append a matched group to the hand.

        Tiles are only kept while collecting and below the meld capacity.
        The phase moves to FORMING_PAIR once the hand reaches 12 tiles.

        Returns:
            True if the tiles were added to the hand
        """
        added = False
        if self.phase == GamePhase.COLLECTING_MELDS and len(self.hand) < Hand.MELD_CAPACITY:
            self.hand.extend(tiles)
            self.hand.sort()
            added = True

        if self.phase == GamePhase.COLLECTING_MELDS and len(self.hand) >= Hand.MELD_CAPACITY:
            self.phase = GamePhase.FORMING_PAIR
            logger.debug(f"Hand complete ({len(self.hand)} tiles), forming the pair")
        return added

    def complete_win(self, tiles, scorer):
        """
        Add the winning pair and score the hand.

        If the hand does not come to exactly 14 tiles the win is aborted: the
        two tiles are taken back off and None is returned.

        Returns:
            ScoreResult of the hand, or None if the win was aborted
        """
        tiles = list(tiles)
        self.hand.extend(tiles)
        if len(self.hand) != Hand.WIN_SIZE:
            logger.error(
                f"Hand has {len(self.hand)} tiles at win time, expected {Hand.WIN_SIZE}; aborting win"
            )
            for _ in tiles:
                self.hand.pop()
            return None

        self.hand.sort()
        result = scorer.evaluate(self.hand)
        self.award(result.total)
        logger.info(f"Win! {result.total} points ({', '.join(result.pattern_names) or 'no bonus'})")

        self.hand.clear()
        self.phase = GamePhase.COLLECTING_MELDS
        return result

    # ========== Economy ==========

    def award(self, points: int) -> int:
        """
        Add points to the score. Each score boundary crossed (every
        `score_per_bonus_hint` points) grants one hint, up to the ceiling.

        Returns:
            Hints gained
        """
        if points < 0:
            raise ValueError(f"Cannot award negative points: {points}")
        step = self.rules.score_per_bonus_hint
        old_score = self.score
        self.score += points
        earned = self.score // step - old_score // step
        return self._add_hints(earned)

    def recover_hints(self, now: float) -> int:
        """
        Recover one hint per full recovery interval elapsed since the last
        recovery, at most `max_hints_recovered_per_check` per call.

        The timestamp advances by the intervals consumed, so a partial
        interval keeps counting toward the next hint.

        Returns:
            Hints recovered
        """
        interval = self.rules.hint_recovery_hours * SECONDS_PER_HOUR
        elapsed = now - self.last_recovery_timestamp
        if elapsed < 0:
            logger.warning("Clock went backwards, resetting hint recovery timer")
            self.last_recovery_timestamp = now
            return 0

        intervals = int(elapsed // interval)
        if intervals == 0:
            return 0
        self.last_recovery_timestamp += intervals * interval
        recovered = self._add_hints(min(intervals, self.rules.max_hints_recovered_per_check))
        if recovered:
            logger.debug(f"Recovered {recovered} hint(s) after {elapsed / SECONDS_PER_HOUR:.1f}h")
        return recovered

    def consume_hint(self) -> bool:
        """Spend one hint. Returns False if none are left."""
        if self.hint_currency <= 0:
            return False
        self.hint_currency -= 1
        return True

    def _add_hints(self, count: int) -> int:
        before = self.hint_currency
        self.hint_currency = min(self.rules.max_hints, self.hint_currency + max(count, 0))
        return self.hint_currency - before

    # ========== Snapshot codec ==========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "board": self.board.to_codes(),
            "hand": [t.code for t in self.hand],
            "score": self.score,
            "hint_currency": self.hint_currency,
            "last_recovery_timestamp": self.last_recovery_timestamp,
            "phase": self.phase.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], rules: RuleSet = STANDARD_RULES) -> 'SessionState':
        """
        Restore a session from a snapshot.

        Raises:
            ValueError: if the snapshot is malformed
        """
        try:
            board = Board.from_codes(data["board"])
            hand = Hand(Tile.from_string(code) for code in data["hand"])
            score = data["score"]
            hints = data["hint_currency"]
            timestamp = float(data["last_recovery_timestamp"])
            phase = GamePhase[data["phase"]]
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed session snapshot: {e!r}") from e

        if board.size != GRID_SIZE:
            raise ValueError(f"Snapshot board is {board.size}x{board.size}, expected {GRID_SIZE}")
        if not board.is_full:
            raise ValueError("Snapshot board has empty cells")
        if not math.isfinite(timestamp):
            raise ValueError(f"Invalid recovery timestamp in snapshot: {timestamp!r}")
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValueError(f"Invalid score in snapshot: {score!r}")
        if isinstance(hints, bool) or not isinstance(hints, int) or not 0 <= hints <= rules.max_hints:
            raise ValueError(f"Invalid hint count in snapshot: {hints!r}")
        if not _hand_fits_phase(len(hand), phase):
            raise ValueError(f"Snapshot hand has {len(hand)} tiles in phase {phase.name}")

        return cls(
            board=board,
            hand=hand,
            score=score,
            hint_currency=hints,
            last_recovery_timestamp=timestamp,
            phase=phase,
            rules=rules,
        )

    def __repr__(self) -> str:
        return (f"SessionState({self.phase.name}, hand={len(self.hand)}, "
                f"score={self.score}, hints={self.hint_currency})")


def _hand_fits_phase(size: int, phase: GamePhase) -> bool:
    # Whole melds while collecting, exactly the four melds while forming the pair
    if phase == GamePhase.FORMING_PAIR:
        return size == Hand.MELD_CAPACITY
    return size % 3 == 0 and size < Hand.MELD_CAPACITY
