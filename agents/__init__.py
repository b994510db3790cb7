"""
Mahjong Puzzle Agents
"""

from .random_agent import RandomAgent

__all__ = ["RandomAgent"]
