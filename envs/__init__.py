"""
Mahjong Puzzle Gymnasium Environments
"""

from .puzzle_env import MahjongPuzzleEnv, register_envs

__all__ = ["MahjongPuzzleEnv", "register_envs"]
