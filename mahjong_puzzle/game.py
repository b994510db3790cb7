"""
Mahjong Puzzle Game Engine

Main entry point for the puzzle. Turns discrete input events (cell clicks,
hint requests) into pipeline runs, keeps the hint economy and persistence
checkpoints, and publishes frames to render sinks.
"""

from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Tuple
import logging
import random
import time

from .tiles import Tile
from .board import Board, Cell, GRID_SIZE, is_adjacent
from .hand import Hand
from .matcher import find_all_matchable_cells, find_first_match
from .pipeline import (
    PacingScheduler,
    ResolutionPipeline,
    ResolutionStep,
    SwapOutcome,
    SwapResult,
    drain,
)
from .rules import RuleSet, STANDARD_RULES
from .scoring import HandScorer
from .session import GamePhase, SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Frame:
    """Everything a render sink needs to draw one frame"""
    board: Tuple[Tuple[Optional[Tile], ...], ...]
    hand: Tuple[Tile, ...]
    phase: GamePhase
    score: int
    hint_currency: int
    selected: Optional[Cell]
    highlighted: FrozenSet[Cell]

    @property
    def status(self) -> str:
        if self.phase == GamePhase.COLLECTING_MELDS:
            return f"Collect melds ({len(self.hand)}/{Hand.MELD_CAPACITY})"
        return "Ready! Swap two identical tiles to win"

    def __str__(self) -> str:
        """Text rendering: [x] marks the selection, *x* marks hinted cells"""
        lines = [f"Score: {self.score}  Hints: {self.hint_currency}  {self.status}"]
        header = "    " + "".join(f"{c:>4}" for c in range(len(self.board)))
        lines.append(header)
        for r, row in enumerate(self.board):
            cells = []
            for c, tile in enumerate(row):
                glyph = str(tile) if tile is not None else "・"
                if self.selected == (r, c):
                    cells.append(f"[{glyph}]")
                elif (r, c) in self.highlighted:
                    cells.append(f"*{glyph}*")
                else:
                    cells.append(f" {glyph} ")
            lines.append(f"{r:>3} " + "".join(cells))
        slots = [str(t) for t in self.hand] + ["＿"] * (Hand.WIN_SIZE - len(self.hand))
        lines.append("Hand: " + " ".join(slots))
        return "\n".join(lines)


Observer = Callable[[ResolutionStep, Frame], None]


class PuzzleGame:
    """
    Mahjong Puzzle Game Engine.

    One input is handled at a time; a swap request runs the pipeline to
    completion before the next input is accepted.
    """

    def __init__(
        self,
        session: Optional[SessionState] = None,
        rules: RuleSet = STANDARD_RULES,
        seed: Optional[int] = None,
        rng=None,
        store=None,
        clock: Callable[[], float] = time.time,
        scheduler: Optional[PacingScheduler] = None,
    ):
        """
        Initialize a game.

        Args:
            session: Session to resume (a fresh one is dealt by start_game otherwise)
            rules: Rule set
            seed: Random seed for reproducibility
            rng: random.Random-like source, overrides seed
            store: Persistence store with save()/load(); None disables saving
            clock: Wall clock in epoch seconds
            scheduler: Pacing between visible stages (no pauses if None)
        """
        self.rules = rules
        self.rng = rng if rng is not None else random.Random(seed)
        self.store = store
        self.clock = clock
        self.scheduler = scheduler or PacingScheduler()
        self.scorer = HandScorer(rules)
        self.session = session
        self.observers: List[Observer] = []

        # Input state (not persisted)
        self.selected: Optional[Cell] = None
        self.highlighted: FrozenSet[Cell] = frozenset()

    @classmethod
    def load_or_start(cls, store, rules: RuleSet = STANDARD_RULES, **kwargs) -> 'PuzzleGame':
        """Resume the stored session if there is a usable one, else deal a new game"""
        session = store.load(rules)
        game = cls(session=session, rules=rules, store=store, **kwargs)
        if session is None:
            game.start_game()
        else:
            logger.info(f"Resumed session: {session!r}")
            game.resume()
        return game

    @property
    def board(self) -> Board:
        return self.session.board

    @property
    def phase(self) -> GamePhase:
        return self.session.phase

    def _pipeline(self) -> ResolutionPipeline:
        return ResolutionPipeline(self.session, self.scorer, self.rng)

    # ========== Lifecycle ==========

    def start_game(self) -> None:
        """Deal a fresh session with no initial matches"""
        board = Board.random(self.rng, GRID_SIZE)
        # Clear and redraw until the dealt board has no matches
        match = find_first_match(board)
        while match is not None:
            board.clear(match.cells)
            board.refill(self.rng)
            match = find_first_match(board)

        self.session = SessionState.new(board, self.clock(), self.rules)
        self.selected = None
        self.highlighted = frozenset()
        # Only the deadlock check can fire here; the board has no matches
        self._run(self._pipeline().settle())
        self._save()

    def reset(self, seed: Optional[int] = None) -> None:
        """Explicit reset: discard the session and deal a new one"""
        if seed is not None:
            self.rng = random.Random(seed)
        if self.store is not None:
            self.store.clear()
        self.start_game()

    def resume(self) -> None:
        """Bring a restored session to a settled state and recover hints"""
        self.selected = None
        self.highlighted = frozenset()
        self._run(self._pipeline().settle())
        self.recover_hints()
        self._save()

    # ========== Input ==========

    def select_cell(self, cell: Cell) -> Optional[SwapOutcome]:
        """
        Handle a click on a cell.

        The first click selects. A second click on an adjacent cell requests
        a swap; any other second click just clears the selection.

        Returns:
            The SwapOutcome if a swap was requested, else None
        """
        if not self.board.in_bounds(cell):
            raise ValueError(f"Cell {cell} is outside the board")

        if self.selected is None:
            self.selected = cell
            return None
        if not is_adjacent(self.selected, cell):
            self.selected = None
            return None

        first, self.selected = self.selected, None
        return self.request_swap(first, cell)

    def request_swap(self, a: Cell, b: Cell) -> SwapOutcome:
        """
        Resolve a swap request. Non-adjacent requests are ignored.

        Returns:
            SwapOutcome describing what happened
        """
        self.selected = None
        if not (self.board.in_bounds(a) and self.board.in_bounds(b)) or not is_adjacent(a, b):
            return SwapOutcome(SwapResult.IGNORED)

        # A shown hint is dismissed by the next swap
        self.highlighted = frozenset()
        outcome = self._run(self._pipeline().resolve(a, b))

        if outcome.result == SwapResult.MATCHED:
            logger.debug(
                f"Swap {a}<->{b}: {len(outcome.matches)} match(es), {outcome.chains} chain(s), "
                f"hand {len(self.session.hand)}"
            )
        self._save()
        return outcome

    def request_hint(self) -> FrozenSet[Cell]:
        """
        Spend one hint to highlight every cell that can take part in a match.

        No-op (nothing spent) without hints, while forming the pair, or while
        a hint is already shown.

        Returns:
            The highlighted cells
        """
        self.recover_hints()
        if self.highlighted or self.phase == GamePhase.FORMING_PAIR:
            return self.highlighted
        if self.session.hint_currency <= 0:
            return frozenset()

        cells = find_all_matchable_cells(self.board, self.phase)
        if cells and self.session.consume_hint():
            self.highlighted = cells
            logger.debug(f"Hint shows {len(cells)} cells, {self.session.hint_currency} hint(s) left")
            self._save()
        return self.highlighted

    def recover_hints(self) -> int:
        """Apply time-based hint recovery"""
        recovered = self.session.recover_hints(self.clock())
        if recovered:
            self._save()
        return recovered

    # ========== Rendering ==========

    def add_observer(self, observer: Observer) -> None:
        """Register a render sink called with (step, frame) after each stage"""
        self.observers.append(observer)

    def frame(self) -> Frame:
        return Frame(
            board=tuple(tuple(row) for row in self.board.cells.tolist()),
            hand=tuple(self.session.hand),
            phase=self.phase,
            score=self.session.score,
            hint_currency=self.session.hint_currency,
            selected=self.selected,
            highlighted=self.highlighted,
        )

    def _run(self, steps) -> SwapOutcome:
        def on_step(step: ResolutionStep) -> None:
            if self.observers:
                frame = self.frame()
                for observer in self.observers:
                    observer(step, frame)
            self.scheduler.pause(step)

        return drain(steps, on_step)

    def _save(self) -> None:
        if self.store is not None:
            self.store.save(self.session)

    def __repr__(self) -> str:
        return f"PuzzleGame({self.session!r})"
