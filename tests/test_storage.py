"""
Tests for Mahjong Puzzle session persistence
"""

import json
import logging

import pytest

from mahjong_puzzle.hand import Hand
from mahjong_puzzle.session import GamePhase, SessionState
from mahjong_puzzle.storage import MemoryStore, SessionStore
from mahjong_puzzle.tiles import parse_tiles

from conftest import make_dead_board


@pytest.fixture
def session():
    session = SessionState.new(make_dead_board(), 1_700_000_000.0)
    session.hand = Hand(parse_tiles("1m 1m 1m 2p 2p 2p 3s 3s 3s 9m 9m 9m"))
    session.phase = GamePhase.FORMING_PAIR
    session.score = 12500
    session.hint_currency = 4
    return session


class TestSessionStore:
    """Test the JSON file store"""

    def test_round_trip(self, tmp_path, session):
        store = SessionStore(tmp_path / "saves" / "session.json")
        store.save(session)

        restored = store.load()

        assert restored == session
        assert restored.phase == GamePhase.FORMING_PAIR

    def test_save_is_idempotent(self, tmp_path, session):
        store = SessionStore(tmp_path / "session.json")
        store.save(session)
        first = store.path.read_text(encoding="utf-8")
        store.save(session)
        assert store.path.read_text(encoding="utf-8") == first
        assert not (tmp_path / "session.json.tmp").exists()

    def test_missing_file(self, tmp_path):
        assert SessionStore(tmp_path / "nothing.json").load() is None

    def test_corrupt_json(self, tmp_path, caplog):
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            assert SessionStore(path).load() is None
        assert "Could not read snapshot" in caplog.text

    def test_wrong_shape(self, tmp_path, session, caplog):
        path = tmp_path / "session.json"
        data = session.to_dict()
        data["board"] = data["board"][:5]
        path.write_text(json.dumps(data), encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            assert SessionStore(path).load() is None
        assert "Discarding snapshot" in caplog.text

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert SessionStore(path).load() is None

    def test_clear(self, tmp_path, session):
        store = SessionStore(tmp_path / "session.json")
        store.save(session)
        store.clear()
        assert store.load() is None
        store.clear()


class TestMemoryStore:
    """Test the in-memory store"""

    def test_round_trip(self, session):
        store = MemoryStore()
        assert store.load() is None
        store.save(session)
        assert store.saves == 1
        assert store.load() == session

    def test_corrupt(self):
        store = MemoryStore()
        store.data = "{"
        assert store.load() is None

    def test_clear(self, session):
        store = MemoryStore()
        store.save(session)
        store.clear()
        assert store.load() is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
