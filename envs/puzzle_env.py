"""
Mahjong Puzzle Gymnasium Environment

A Gymnasium-compatible environment wrapping the puzzle engine, so agents
can play the board through swap and hint actions.
"""

import gymnasium as gym
from gymnasium import spaces
import numpy as np
from typing import Callable, Dict, Any, List, Optional, Tuple
import time

from mahjong_puzzle.board import Cell, GRID_SIZE
from mahjong_puzzle.game import PuzzleGame
from mahjong_puzzle.matcher import matching_swaps, pair_swaps, find_all_matchable_cells
from mahjong_puzzle.pipeline import SwapOutcome, SwapResult
from mahjong_puzzle.rules import RuleSet, STANDARD_RULES
from mahjong_puzzle.session import GamePhase
from mahjong_puzzle.tiles import NUM_TILE_KINDS


class MahjongPuzzleEnv(gym.Env):
    """
    Mahjong Puzzle Environment for Reinforcement Learning.

    Observation Space:
        A dictionary containing:
        - board: (20, 20) int8 - Tile kind index per cell
        - hand: (34,) int8 - Count of each tile type in the hand
        - hint_mask: (20, 20) int8 - Cells highlighted by the last hint
        - valid_actions: (761,) int8 - Binary mask of useful actions
        - game_info: (4,) float32 - [phase, hand_size, hint_currency, score / 1000]

    Action Space:
        Discrete(761):
        - 0-379: Swap (r, c) with (r, c + 1), index r * 19 + c
        - 380-759: Swap (r, c) with (r + 1, c), index 380 + r * 20 + c
        - 760: Request a hint
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 4}

    # Action space constants
    NUM_HORIZONTAL = GRID_SIZE * (GRID_SIZE - 1)
    ACTION_HORIZONTAL_START = 0
    ACTION_VERTICAL_START = NUM_HORIZONTAL
    ACTION_HINT = 2 * NUM_HORIZONTAL
    NUM_ACTIONS = ACTION_HINT + 1

    def __init__(
        self,
        rules: RuleSet = STANDARD_RULES,
        seed: Optional[int] = None,
        render_mode: Optional[str] = None,
        revert_penalty: float = 0.0,
        max_steps: int = 1000,
        clock: Callable[[], float] = time.time,
        game: Optional[PuzzleGame] = None,
    ):
        """
        Initialize the puzzle environment.

        Args:
            rules: Rule set for scoring and hints
            seed: Random seed for reproducibility
            render_mode: Rendering mode ("human" or "ansi")
            revert_penalty: Reward subtracted when a swap is reverted
            max_steps: Steps before the episode is truncated
            clock: Wall clock used for hint recovery
            game: Existing game to drive instead of a new one (e.g. a resumed session)
        """
        super().__init__()

        self.rules = rules
        self.render_mode = render_mode
        self.revert_penalty = revert_penalty
        self.max_steps = max_steps

        self.game = game if game is not None else PuzzleGame(rules=rules, seed=seed, clock=clock)

        self.observation_space = spaces.Dict({
            "board": spaces.Box(low=-1, high=NUM_TILE_KINDS - 1, shape=(GRID_SIZE, GRID_SIZE), dtype=np.int8),
            "hand": spaces.Box(low=0, high=14, shape=(NUM_TILE_KINDS,), dtype=np.int8),
            "hint_mask": spaces.Box(low=0, high=1, shape=(GRID_SIZE, GRID_SIZE), dtype=np.int8),
            "valid_actions": spaces.Box(low=0, high=1, shape=(self.NUM_ACTIONS,), dtype=np.int8),
            "game_info": spaces.Box(low=0, high=np.inf, shape=(4,), dtype=np.float32),
        })

        self.action_space = spaces.Discrete(self.NUM_ACTIONS)

        # Track episode stats
        self._episode_reward = 0.0
        self._episode_length = 0
        self._last_outcome: Optional[SwapOutcome] = None

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict]:
        """
        Reset the environment to a freshly dealt board.

        Args:
            seed: Random seed
            options: Additional options (unused)

        Returns:
            Tuple of (observation, info)
        """
        super().reset(seed=seed)

        self.game.reset(seed=seed)

        self._episode_reward = 0.0
        self._episode_length = 0
        self._last_outcome = None

        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict]:
        """
        Take a step in the environment.

        Args:
            action: Action index from action space

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        self._episode_length += 1
        action = int(action)
        if not 0 <= action < self.NUM_ACTIONS:
            raise ValueError(f"Action {action} outside Discrete({self.NUM_ACTIONS})")

        reward = 0.0
        terminated = False
        if action == self.ACTION_HINT:
            self.game.request_hint()
            self._last_outcome = None
        else:
            a, b = self.action_to_swap(action)
            score_before = self.game.session.score
            outcome = self.game.request_swap(a, b)
            self._last_outcome = outcome
            reward += (self.game.session.score - score_before) / self.rules.base_score
            if outcome.result == SwapResult.REVERTED:
                reward -= self.revert_penalty
            terminated = outcome.result == SwapResult.WON

        self._episode_reward += reward
        truncated = not terminated and self._episode_length >= self.max_steps

        obs = self._get_observation()
        info = self._get_info()

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "score": self.game.session.score,
            }

        return obs, reward, terminated, truncated, info

    # ========== Action Encoding ==========

    @classmethod
    def action_to_swap(cls, action: int) -> Tuple[Cell, Cell]:
        """Convert a swap action index to its pair of cells."""
        if cls.ACTION_HORIZONTAL_START <= action < cls.ACTION_VERTICAL_START:
            r, c = divmod(action - cls.ACTION_HORIZONTAL_START, GRID_SIZE - 1)
            return (r, c), (r, c + 1)
        if cls.ACTION_VERTICAL_START <= action < cls.ACTION_HINT:
            r, c = divmod(action - cls.ACTION_VERTICAL_START, GRID_SIZE)
            return (r, c), (r + 1, c)
        raise ValueError(f"Action {action} is not a swap")

    @classmethod
    def swap_to_action(cls, a: Cell, b: Cell) -> int:
        """Inverse of action_to_swap(); accepts the cells in either order."""
        a, b = min(a, b), max(a, b)
        if a[0] == b[0] and b[1] == a[1] + 1:
            return cls.ACTION_HORIZONTAL_START + a[0] * (GRID_SIZE - 1) + a[1]
        if a[1] == b[1] and b[0] == a[0] + 1:
            return cls.ACTION_VERTICAL_START + a[0] * GRID_SIZE + a[1]
        raise ValueError(f"Cells {a} and {b} are not adjacent")

    # ========== Observation ==========

    def observe(self) -> Dict[str, np.ndarray]:
        """Observation of the current game without stepping (the game must be started)."""
        return self._get_observation()

    def _get_observation(self) -> Dict[str, np.ndarray]:
        """Get current observation for the agent."""
        session = self.game.session

        hint_mask = np.zeros((GRID_SIZE, GRID_SIZE), dtype=np.int8)
        for r, c in self.game.highlighted:
            hint_mask[r, c] = 1

        game_info = np.array([
            session.phase.value,
            len(session.hand),
            session.hint_currency,
            session.score / self.rules.base_score,
        ], dtype=np.float32)

        return {
            "board": session.board.to_index_array(),
            "hand": session.hand.to_count_array(),
            "hint_mask": hint_mask,
            "valid_actions": self._get_valid_actions_mask(),
            "game_info": game_info,
        }

    def _valid_swaps(self) -> List[Tuple[Cell, Cell]]:
        board = self.game.board
        if self.game.phase == GamePhase.FORMING_PAIR:
            return pair_swaps(board)
        return matching_swaps(board)

    def _get_valid_actions_mask(self) -> np.ndarray:
        """
        Get binary mask of useful actions.

        Swaps are useful when they resolve (match or win). The hint action is
        useful when it would highlight something and a hint is affordable.
        If nothing resolves, every swap is left open so the mask is never empty.
        """
        mask = np.zeros(self.NUM_ACTIONS, dtype=np.int8)

        swaps = self._valid_swaps()
        for a, b in swaps:
            mask[self.swap_to_action(a, b)] = 1
        if not swaps:
            mask[:self.ACTION_HINT] = 1

        session = self.game.session
        if (session.hint_currency > 0 and not self.game.highlighted
                and find_all_matchable_cells(self.game.board, self.game.phase)):
            mask[self.ACTION_HINT] = 1

        return mask

    def _get_info(self) -> Dict[str, Any]:
        """Get additional info about the environment state."""
        session = self.game.session
        info = {
            "phase": session.phase.name,
            "score": session.score,
            "hand_size": len(session.hand),
            "hint_currency": session.hint_currency,
        }
        if self._last_outcome is not None:
            info["result"] = self._last_outcome.result.name
            info["chains"] = self._last_outcome.chains
        return info

    # ========== Rendering ==========

    def render(self) -> Optional[str]:
        """Render the environment."""
        if self.render_mode == "human":
            self._render_human()
        elif self.render_mode == "ansi":
            return self._render_ansi()
        return None

    def _render_human(self):
        """Render to console."""
        print(self._render_ansi())

    def _render_ansi(self) -> str:
        """Render as a text grid."""
        lines = [f"=== Mahjong Puzzle - Step {self._episode_length} ==="]
        if self._last_outcome is not None:
            lines.append(f"Last swap: {self._last_outcome.result.name}")
        lines.append(str(self.game.frame()))
        return "\n".join(lines)

    def close(self):
        """Clean up resources."""
        pass


# Register the environment
def register_envs():
    """Register the puzzle environment with Gymnasium."""
    gym.register(
        id="MahjongPuzzle-v0",
        entry_point="envs.puzzle_env:MahjongPuzzleEnv",
        max_episode_steps=1000,
    )
