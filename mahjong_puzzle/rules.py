"""
Mahjong Puzzle Rule Sets

Defines rule configurations for the puzzle:
- Standard (hint economy and bonus table as shipped)
- Classic (adds the All Simples bonus of the first release)
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RuleSet:
    """
    Rule configuration for the puzzle.

    The board size, tile kinds and hand capacities are fixed by the game and
    are not part of a rule set.
    """

    name: str = "Standard"

    # Scoring
    base_score: int = 1000  # Any complete 14-tile hand
    all_simples_bonus: int = 0  # 0 disables All Simples

    # Hint economy
    initial_hints: int = 3
    max_hints: int = 10  # Hard ceiling
    hint_recovery_hours: float = 5.0  # One hint per full interval
    max_hints_recovered_per_check: int = 5
    score_per_bonus_hint: int = 10000  # One hint per boundary crossed

    # Pacing between visible pipeline stages (seconds)
    swap_delay: float = 0.2
    remove_delay: float = 0.3
    fall_delay: float = 0.3
    refill_delay: float = 0.3
    reshuffle_delay: float = 0.3

    def __repr__(self) -> str:
        return f"RuleSet({self.name})"


STANDARD_RULES = RuleSet()

CLASSIC_RULES = RuleSet(
    name="Classic",
    all_simples_bonus=1000,
)

RULE_SETS = {
    "standard": STANDARD_RULES,
    "classic": CLASSIC_RULES,
}


def get_rules(name: str) -> RuleSet:
    """Look up a rule set by name (case-insensitive)"""
    try:
        return RULE_SETS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown rule set {name!r}, expected one of {sorted(RULE_SETS)}") from None
