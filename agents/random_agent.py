"""
Random Agent for the Mahjong Puzzle

Picks among the swaps the environment marks as useful, so it only ever
plays moves that match or complete the winning pair.
"""

import numpy as np
from typing import Dict, Optional

from envs.puzzle_env import MahjongPuzzleEnv


class RandomAgent:
    """
    Uniform random player over the useful-action mask.

    With use_hints=False the hint action is never chosen, which keeps the
    hint currency intact during auto-play.
    """

    def __init__(self, seed: Optional[int] = None, use_hints: bool = True):
        self.seed = seed
        self.use_hints = use_hints
        self.rng = np.random.default_rng(seed)

    def act(self, observation: Dict[str, np.ndarray]) -> int:
        """Choose an action index from observation["valid_actions"]."""
        mask = np.array(observation["valid_actions"], dtype=bool)
        if not self.use_hints:
            mask[MahjongPuzzleEnv.ACTION_HINT] = False

        candidates = np.flatnonzero(mask)
        if len(candidates) == 0:
            # A swap nothing resolves is still legal, it is just reverted
            return int(self.rng.integers(MahjongPuzzleEnv.ACTION_HINT))

        return int(self.rng.choice(candidates))

    def predict(self, observation: Dict[str, np.ndarray], deterministic: bool = True):
        """SB3-style wrapper around act(); returns (action, None)."""
        return self.act(observation), None

    def reset(self):
        # Stateless between episodes
        pass

    def __repr__(self) -> str:
        return f"RandomAgent(seed={self.seed}, use_hints={self.use_hints})"
