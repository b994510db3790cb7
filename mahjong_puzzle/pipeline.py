"""
Mahjong Puzzle Resolution Pipeline

Resolves one swap request as a sequence of stages:

    SWAPPED -> (REVERTED | RESOLVED -> FALLEN -> REFILLED -> CHAIN_CHECKED)*
            -> [RESHUFFLED -> ...] -> SETTLED

`ResolutionPipeline.resolve` is a generator yielding one `ResolutionStep`
per visible stage, so a scheduler can pause between stages for display
without the logic knowing about time. The whole run is one transaction:
callers must not mutate the session until it returns.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Callable, Dict, Generator, List, Optional, Tuple
import logging
import time

from .board import Cell, is_adjacent, iter_cells
from .matcher import Match, find_first_match, has_any_valid_move
from .scoring import HandScorer, ScoreResult
from .session import GamePhase, SessionState

logger = logging.getLogger(__name__)

# Reshuffles before the board is dealt afresh instead
MAX_RESHUFFLES = 100


class ResolutionStage(IntEnum):
    """Visible stages of a resolution"""
    SWAPPED = 0
    REVERTED = 1
    RESOLVED = 2       # Matched or winning cells removed
    FALLEN = 3
    REFILLED = 4
    CHAIN_CHECKED = 5
    RESHUFFLED = 6
    SETTLED = 7


class SwapResult(IntEnum):
    """How a swap request ended"""
    IGNORED = 0      # Cells not adjacent
    REVERTED = 1     # No match (or no pair while forming the pair)
    MATCHED = 2
    WON = 3
    WIN_ABORTED = 4  # Hand size inconsistency, nothing changed


@dataclass
class ResolutionStep:
    """One stage of a resolution, as seen by observers"""
    stage: ResolutionStage
    cells: Tuple[Cell, ...] = ()
    chain: int = 0


@dataclass
class SwapOutcome:
    """Summary of a resolved swap request"""
    result: SwapResult
    matches: List[Match] = field(default_factory=list)
    score: Optional[ScoreResult] = None
    points: int = 0
    chains: int = 0
    reshuffles: int = 0
    steps: List[ResolutionStep] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.result != SwapResult.IGNORED

    @property
    def changed_board(self) -> bool:
        return self.result in (SwapResult.MATCHED, SwapResult.WON)


class PacingScheduler:
    """
    Pauses between visible stages so a display can keep up.

    Args:
        delays: Seconds to wait after each stage (missing stages do not wait)
        sleep: Sleep function, replaceable in tests
    """

    def __init__(self, delays: Optional[Dict[ResolutionStage, float]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.delays = dict(delays or {})
        self.sleep = sleep

    @classmethod
    def from_rules(cls, rules, sleep: Callable[[float], None] = time.sleep) -> 'PacingScheduler':
        return cls({
            ResolutionStage.SWAPPED: rules.swap_delay,
            ResolutionStage.RESOLVED: rules.remove_delay,
            ResolutionStage.FALLEN: rules.fall_delay,
            ResolutionStage.REFILLED: rules.refill_delay,
            ResolutionStage.RESHUFFLED: rules.reshuffle_delay,
        }, sleep)

    def pause(self, step: ResolutionStep) -> None:
        delay = self.delays.get(step.stage, 0.0)
        if delay > 0:
            self.sleep(delay)


StepGenerator = Generator[ResolutionStep, None, SwapOutcome]


class ResolutionPipeline:
    """
    Drives swap resolution against a session.

    Args:
        session: Session to mutate
        scorer: Scores winning hands
        rng: random.Random-like source for refills and reshuffles
    """

    def __init__(self, session: SessionState, scorer: HandScorer, rng):
        self.session = session
        self.scorer = scorer
        self.rng = rng

    @property
    def board(self):
        return self.session.board

    def run(self, a: Cell, b: Cell) -> SwapOutcome:
        """Resolve a swap request without observers"""
        return drain(self.resolve(a, b))

    def resolve(self, a: Cell, b: Cell) -> StepGenerator:
        """
        Resolve a swap request, yielding each visible stage.

        Returns (as the generator's return value) the SwapOutcome.
        """
        outcome = SwapOutcome(SwapResult.IGNORED)
        if not (self.board.in_bounds(a) and self.board.in_bounds(b)) or not is_adjacent(a, b):
            return outcome

        self.board.swap(a, b)
        yield self._record(outcome, ResolutionStep(ResolutionStage.SWAPPED, (a, b)))

        if self.session.phase == GamePhase.FORMING_PAIR:
            tile_a, tile_b = self.board[a], self.board[b]
            if tile_a != tile_b:
                yield from self._revert(outcome, a, b)
                return outcome
            score = self.session.complete_win((tile_a, tile_b), self.scorer)
            if score is None:
                self.board.swap(a, b)
                outcome.result = SwapResult.WIN_ABORTED
                return outcome
            outcome.result = SwapResult.WON
            outcome.score = score
            outcome.points = score.total
            self.board.clear((a, b))
            yield self._record(outcome, ResolutionStep(ResolutionStage.RESOLVED, (a, b)))
        else:
            match = find_first_match(self.board)
            if match is None:
                yield from self._revert(outcome, a, b)
                return outcome
            outcome.result = SwapResult.MATCHED
            yield from self._remove_match(outcome, match)

        yield from self._cascade(outcome)
        return outcome

    def settle(self) -> StepGenerator:
        """
        Run the chain and deadlock checks on the current board, e.g. after a
        snapshot is restored or a fresh board is dealt.
        """
        outcome = SwapOutcome(SwapResult.IGNORED)
        yield from self._settle(outcome)
        return outcome

    def _record(self, outcome: SwapOutcome, step: ResolutionStep) -> ResolutionStep:
        outcome.steps.append(step)
        return step

    def _revert(self, outcome: SwapOutcome, a: Cell, b: Cell):
        self.board.swap(a, b)
        outcome.result = SwapResult.REVERTED
        yield self._record(outcome, ResolutionStep(ResolutionStage.REVERTED, (a, b)))

    def _remove_match(self, outcome: SwapOutcome, match: Match):
        """Move the matched tiles into the hand and clear their cells"""
        self.session.collect_meld(match.tiles)
        outcome.matches.append(match)
        self.board.clear(match.cells)
        logger.debug(f"Matched {match.kind.name} {' '.join(t.code for t in match.tiles)} at {match.cells}")
        yield self._record(outcome, ResolutionStep(ResolutionStage.RESOLVED, match.cells, outcome.chains))

    def _fall_and_refill(self, outcome: SwapOutcome):
        self.board.apply_gravity()
        yield self._record(outcome, ResolutionStep(ResolutionStage.FALLEN, chain=outcome.chains))
        filled = self.board.refill(self.rng)
        yield self._record(outcome, ResolutionStep(ResolutionStage.REFILLED, tuple(filled), outcome.chains))

    def _cascade(self, outcome: SwapOutcome):
        """Gravity and refill after a removal, then settle"""
        yield from self._fall_and_refill(outcome)
        yield from self._settle(outcome)

    def _settle(self, outcome: SwapOutcome):
        """
        Repeat chain matches until none remain, reshuffling a dead board.
        Chains only happen while collecting melds.
        """
        while self.session.phase == GamePhase.COLLECTING_MELDS:
            match = find_first_match(self.board)
            yield self._record(outcome, ResolutionStep(
                ResolutionStage.CHAIN_CHECKED, match.cells if match else (), outcome.chains))
            if match is not None:
                outcome.chains += 1
                yield from self._remove_match(outcome, match)
                yield from self._fall_and_refill(outcome)
                continue

            if has_any_valid_move(self.board, self.session.phase):
                break
            if outcome.reshuffles >= MAX_RESHUFFLES:
                logger.warning(f"Board still dead after {outcome.reshuffles} reshuffles, dealing new tiles")
                self.board.clear(iter_cells(self.board.size))
                self.board.refill(self.rng)
            else:
                logger.info("No valid moves left, reshuffling the board")
                self.board.shuffle(self.rng)
            outcome.reshuffles += 1
            yield self._record(outcome, ResolutionStep(ResolutionStage.RESHUFFLED))

        yield self._record(outcome, ResolutionStep(ResolutionStage.SETTLED, chain=outcome.chains))


def drain(steps: StepGenerator, on_step: Optional[Callable[[ResolutionStep], None]] = None) -> SwapOutcome:
    """Run a step generator to completion and return its outcome"""
    while True:
        try:
            step = next(steps)
        except StopIteration as stop:
            return stop.value
        if on_step is not None:
            on_step(step)
