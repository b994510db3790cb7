"""
Mahjong Puzzle Session Storage

Saves and restores session snapshots as JSON. Loading fails soft: an
unreadable or malformed snapshot is logged and treated as no snapshot.
"""

from pathlib import Path
from typing import Any, Optional, Union
import json
import logging
import os

from .rules import RuleSet, STANDARD_RULES
from .session import SessionState

logger = logging.getLogger(__name__)

DEFAULT_SAVE_PATH = Path("saves") / "session.json"


class SessionStore:
    """
    File-backed snapshot store.

    Args:
        path: JSON file holding the snapshot
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_SAVE_PATH):
        self.path = Path(path)

    def save(self, session: SessionState) -> None:
        """Write the snapshot atomically (temp file, then replace)"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def load(self, rules: RuleSet = STANDARD_RULES) -> Optional[SessionState]:
        """
        Load the snapshot.

        Returns:
            The restored session, or None if there is no usable snapshot
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read snapshot {self.path}: {e}")
            return None
        return _restore(data, rules, str(self.path))

    def clear(self) -> None:
        """Delete the snapshot (explicit reset)"""
        if self.path.exists():
            self.path.unlink()

    def __repr__(self) -> str:
        return f"SessionStore({self.path})"


class MemoryStore:
    """In-memory snapshot store for tests and headless runs"""

    def __init__(self):
        self.data: Optional[str] = None
        self.saves = 0

    def save(self, session: SessionState) -> None:
        self.data = json.dumps(session.to_dict())
        self.saves += 1

    def load(self, rules: RuleSet = STANDARD_RULES) -> Optional[SessionState]:
        if self.data is None:
            return None
        try:
            data = json.loads(self.data)
        except json.JSONDecodeError as e:
            logger.warning(f"Could not read in-memory snapshot: {e}")
            return None
        return _restore(data, rules, "memory")

    def clear(self) -> None:
        self.data = None


def _restore(data: Any, rules: RuleSet, source: str) -> Optional[SessionState]:
    if not isinstance(data, dict):
        logger.warning(f"Discarding snapshot from {source}: expected an object")
        return None
    try:
        return SessionState.from_dict(data, rules)
    except ValueError as e:
        logger.warning(f"Discarding snapshot from {source}: {e}")
        return None
