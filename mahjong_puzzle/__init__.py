"""
Mahjong Puzzle Game Engine
Tile-matching puzzle scored like a Japanese Mahjong hand
"""

from .tiles import Tile, TileSuit, HonorType, TILE_KINDS
from .board import Board, GRID_SIZE, is_adjacent
from .hand import Hand, Meld, MeldType
from .matcher import Match, find_first_match, has_any_valid_move, find_all_matchable_cells
from .scoring import HandScorer, ScoreResult
from .session import GamePhase, SessionState
from .pipeline import ResolutionPipeline, ResolutionStage, SwapOutcome, SwapResult, PacingScheduler
from .game import PuzzleGame, Frame
from .storage import SessionStore, MemoryStore
from .rules import RuleSet, STANDARD_RULES, CLASSIC_RULES, get_rules

__version__ = "0.1.0"
__all__ = [
    "Tile",
    "TileSuit",
    "HonorType",
    "TILE_KINDS",
    "Board",
    "GRID_SIZE",
    "is_adjacent",
    "Hand",
    "Meld",
    "MeldType",
    "Match",
    "find_first_match",
    "has_any_valid_move",
    "find_all_matchable_cells",
    "HandScorer",
    "ScoreResult",
    "GamePhase",
    "SessionState",
    "ResolutionPipeline",
    "ResolutionStage",
    "SwapOutcome",
    "SwapResult",
    "PacingScheduler",
    "PuzzleGame",
    "Frame",
    "SessionStore",
    "MemoryStore",
    "RuleSet",
    "STANDARD_RULES",
    "CLASSIC_RULES",
    "get_rules",
]
