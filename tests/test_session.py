"""
Tests for the Mahjong Puzzle session state and hint economy
"""

import pytest

from mahjong_puzzle.hand import Hand
from mahjong_puzzle.rules import RuleSet, STANDARD_RULES, get_rules, CLASSIC_RULES
from mahjong_puzzle.scoring import HandScorer
from mahjong_puzzle.session import GamePhase, SessionState
from mahjong_puzzle.tiles import parse_tiles

from conftest import make_dead_board, HOUR

START = 1_700_000_000.0


def new_session(**kwargs) -> SessionState:
    return SessionState.new(make_dead_board(), START, **kwargs)


class TestRules:
    """Test rule set lookup"""

    def test_defaults(self):
        assert STANDARD_RULES.base_score == 1000
        assert STANDARD_RULES.max_hints == 10
        assert STANDARD_RULES.hint_recovery_hours == 5.0
        assert STANDARD_RULES.all_simples_bonus == 0

    def test_lookup(self):
        assert get_rules("standard") is STANDARD_RULES
        assert get_rules("Classic") is CLASSIC_RULES
        with pytest.raises(ValueError):
            get_rules("tenhou")


class TestPhaseMachine:
    """Test meld collection and the winning pair"""

    def test_new_session(self):
        session = new_session()
        assert session.phase == GamePhase.COLLECTING_MELDS
        assert session.hint_currency == 3
        assert session.score == 0
        assert len(session.hand) == 0
        assert session.last_recovery_timestamp == START

    def test_collect_until_twelve(self):
        session = new_session()
        for meld in ["1m 2m 3m", "5p 5p 5p", "7z 7z 7z"]:
            assert session.collect_meld(parse_tiles(meld))
            assert session.phase == GamePhase.COLLECTING_MELDS

        assert session.collect_meld(parse_tiles("4s 5s 6s"))
        assert len(session.hand) == 12
        assert session.phase == GamePhase.FORMING_PAIR
        assert list(session.hand) == sorted(session.hand)

    def test_no_collection_while_forming_pair(self):
        session = new_session()
        session.hand = Hand(parse_tiles("1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m 9m"))
        session.phase = GamePhase.FORMING_PAIR
        assert not session.collect_meld(parse_tiles("4s 5s 6s"))
        assert len(session.hand) == 12

    def test_complete_win(self):
        session = new_session()
        session.hand = Hand(parse_tiles("1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m 9m"))
        session.phase = GamePhase.FORMING_PAIR

        result = session.complete_win(parse_tiles("1s 1s"), HandScorer())

        assert result.total == 3000
        assert session.score == 3000
        assert len(session.hand) == 0
        assert session.phase == GamePhase.COLLECTING_MELDS

    def test_win_aborted_on_wrong_hand_size(self, caplog):
        """A hand that does not reach 14 tiles is left as it was"""
        session = new_session()
        session.hand = Hand(parse_tiles("1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m"))
        session.phase = GamePhase.FORMING_PAIR

        assert session.complete_win(parse_tiles("1s 1s"), HandScorer()) is None

        assert len(session.hand) == 11
        assert session.score == 0
        assert session.phase == GamePhase.FORMING_PAIR
        assert "aborting win" in caplog.text


class TestHintEconomy:
    """Test hint currency bounds, recovery and score bonuses"""

    def test_consume(self):
        session = new_session()
        assert session.consume_hint()
        assert session.hint_currency == 2
        session.hint_currency = 0
        assert not session.consume_hint()
        assert session.hint_currency == 0

    def test_recover_fifteen_hours(self):
        session = new_session()
        session.hint_currency = 0
        assert session.recover_hints(START + 15 * HOUR) == 3
        assert session.hint_currency == 3

    def test_recovery_is_capped(self):
        session = new_session()
        session.hint_currency = 9
        assert session.recover_hints(START + 15 * HOUR) == 1
        assert session.hint_currency == 10

    def test_recovery_per_check_limit(self):
        session = new_session()
        session.hint_currency = 0
        assert session.recover_hints(START + 100 * HOUR) == 5
        assert session.hint_currency == 5

    def test_partial_interval_carries_over(self):
        session = new_session()
        session.hint_currency = 0
        assert session.recover_hints(START + 4 * HOUR) == 0
        assert session.recover_hints(START + 7 * HOUR) == 1
        assert session.last_recovery_timestamp == START + 5 * HOUR
        assert session.recover_hints(START + 10 * HOUR) == 1
        assert session.hint_currency == 2

    def test_clock_going_backwards(self):
        session = new_session()
        assert session.recover_hints(START - HOUR) == 0
        assert session.last_recovery_timestamp == START - HOUR
        assert session.hint_currency == 3

    def test_score_bonus_hints(self):
        """One hint per 10000-point boundary crossed"""
        session = new_session()
        session.hint_currency = 0
        session.score = 9000
        assert session.award(2000) == 1
        assert session.award(25000) == 2
        assert session.score == 36000
        assert session.hint_currency == 3

    def test_score_bonus_capped(self):
        session = new_session()
        session.hint_currency = 10
        assert session.award(50000) == 0
        assert session.hint_currency == 10

    def test_negative_award(self):
        with pytest.raises(ValueError):
            new_session().award(-1)

    def test_custom_rules(self):
        rules = RuleSet(name="Generous", initial_hints=10, hint_recovery_hours=1.0)
        session = new_session(rules=rules)
        assert session.hint_currency == 10
        session.hint_currency = 0
        assert session.recover_hints(START + 2 * HOUR) == 2


class TestSnapshot:
    """Test the snapshot codec"""

    def test_round_trip(self):
        session = new_session()
        session.hand = Hand(parse_tiles("1m 2m 3m"))
        session.score = 4500
        session.hint_currency = 7

        restored = SessionState.from_dict(session.to_dict())

        assert restored == session
        assert restored.board == session.board
        assert list(restored.hand) == list(session.hand)

    def test_snapshot_fields(self):
        data = new_session().to_dict()
        assert set(data) == {"board", "hand", "score", "hint_currency",
                             "last_recovery_timestamp", "phase"}
        assert data["phase"] == "COLLECTING_MELDS"
        assert data["board"][0][0] == "1z"

    @pytest.mark.parametrize("key, value", [
        ("board", [["1m"]]),
        ("board", "nonsense"),
        ("hand", ["xx"]),
        ("score", -5),
        ("score", "100"),
        ("hint_currency", 11),
        ("phase", "WINNING"),
        ("score", True),
        ("hint_currency", False),
        ("last_recovery_timestamp", None),
        ("last_recovery_timestamp", float("nan")),
        ("last_recovery_timestamp", float("-inf")),
    ])
    def test_malformed(self, key, value):
        data = new_session().to_dict()
        data[key] = value
        with pytest.raises(ValueError):
            SessionState.from_dict(data)

    @pytest.mark.parametrize("hand, phase", [
        ("1m 1m 1m 2p 2p", "FORMING_PAIR"),
        ("1m 1m 1m 2p 2p 2p 3s 3s 3s", "FORMING_PAIR"),
        ("1m 1m 1m 2p", "COLLECTING_MELDS"),
        ("1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m 9m", "COLLECTING_MELDS"),
        ("1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m 9m 5z", "COLLECTING_MELDS"),
    ])
    def test_hand_does_not_fit_phase(self, hand, phase):
        data = new_session().to_dict()
        data["hand"] = hand.split()
        data["phase"] = phase
        with pytest.raises(ValueError):
            SessionState.from_dict(data)

    def test_forming_pair_with_four_melds(self):
        data = new_session().to_dict()
        data["hand"] = "1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m 9m".split()
        data["phase"] = "FORMING_PAIR"
        restored = SessionState.from_dict(data)
        assert restored.phase == GamePhase.FORMING_PAIR
        assert len(restored.hand) == 12

    def test_missing_field(self):
        data = new_session().to_dict()
        del data["score"]
        with pytest.raises(ValueError):
            SessionState.from_dict(data)

    def test_board_with_holes(self):
        data = new_session().to_dict()
        data["board"][3][3] = None
        with pytest.raises(ValueError):
            SessionState.from_dict(data)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
