"""
High score and game history persistence.

The round controller depends only on the ``ScoreStore`` protocol;
``JsonScoreStore`` keeps everything in a single ``scores.json`` file.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from pydantic import ValidationError

from .models import Difficulty, GameHistoryEntry, Language

logger = logging.getLogger("divine-quiz")


class ScoreStore(Protocol):
    """Protocol for the score/history recorder."""

    def record_game(
        self,
        score: int,
        total_rounds: int,
        difficulty: Difficulty,
        language: Language,
        player_name: Optional[str] = None,
    ) -> GameHistoryEntry:
        """Store a finished game and return the created entry."""
        ...

    def get_high_score(self, difficulty: Difficulty) -> int:
        """Best score stored for a tier (0 when none)."""
        ...

    def set_high_score(self, difficulty: Difficulty, value: int) -> None:
        """Overwrite the best score for a tier."""
        ...


class JsonScoreStore:
    """Score store persisted to ``<data_dir>/scores.json``.

    Writes are read-modify-write of the whole file with last-write-wins
    semantics; only one game session writes at a time.

    Attributes:
        data_dir: Directory holding the scores file
        _high_scores: Best score per tier
        _history: Recorded games, oldest first
    """

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)
        self._high_scores: dict[Difficulty, int] = {}
        self._history: list[GameHistoryEntry] = []

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.load()

    @property
    def scores_path(self) -> Path:
        """Path to the scores JSON file."""
        return self.data_dir / "scores.json"

    def record_game(
        self,
        score: int,
        total_rounds: int,
        difficulty: Difficulty,
        language: Language,
        player_name: Optional[str] = None,
    ) -> GameHistoryEntry:
        entry = GameHistoryEntry(
            score=score,
            total_rounds=total_rounds,
            difficulty=difficulty,
            language=language,
            player_name=player_name,
        )
        self._history.append(entry)
        self.save()

        logger.info(
            f"Recorded game {entry.id}: {score} points over {total_rounds} rounds "
            f"({difficulty.value}, {language.value})"
        )
        return entry

    def get_high_score(self, difficulty: Difficulty) -> int:
        return self._high_scores.get(difficulty, 0)

    def set_high_score(self, difficulty: Difficulty, value: int) -> None:
        self._high_scores[difficulty] = value
        self.save()
        logger.debug(f"High score for {difficulty.value} set to {value}")

    def update_high_score(self, difficulty: Difficulty, score: int) -> bool:
        """Store ``score`` only if it beats the current high score.

        Returns:
            True if the high score changed.
        """
        if score <= self.get_high_score(difficulty):
            return False
        self.set_high_score(difficulty, score)
        return True

    def list_history(
        self,
        difficulty: Optional[Difficulty] = None,
        limit: Optional[int] = None,
    ) -> list[GameHistoryEntry]:
        """Recorded games, most recent first.

        Args:
            difficulty: Only games of this tier
            limit: Maximum number of entries
        """
        entries = [
            entry for entry in reversed(self._history)
            if difficulty is None or entry.difficulty == difficulty
        ]
        return entries[:limit] if limit is not None else entries

    def save(self) -> None:
        """Persist high scores and history to scores.json."""
        data = {
            "version": "1.0",
            "high_scores": {
                difficulty.value: value for difficulty, value in self._high_scores.items()
            },
            "history": [entry.model_dump(mode="json") for entry in self._history],
            "metadata": {
                "total_games": len(self._history),
                "last_updated": datetime.now(timezone.utc).isoformat(),
            },
        }

        with open(self.scores_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def load(self) -> None:
        """
        Load high scores and history from scores.json.

        If the file doesn't exist, starts empty.
        If the file is corrupt, logs a warning and starts fresh.
        """
        if not self.scores_path.exists():
            logger.debug(f"No existing scores at {self.scores_path}, starting empty")
            self._high_scores = {}
            self._history = []
            return

        try:
            with open(self.scores_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict) or "history" not in data:
                raise ValueError("Invalid scores structure")

            self._high_scores = {
                Difficulty(key): int(value)
                for key, value in data.get("high_scores", {}).items()
            }
            self._history = [GameHistoryEntry(**entry) for entry in data["history"]]

            logger.info(f"Loaded {len(self._history)} recorded games from {self.scores_path}")

        except (json.JSONDecodeError, ValueError, ValidationError) as e:
            logger.warning(f"Corrupt scores file {self.scores_path}, starting fresh: {e}")
            self._high_scores = {}
            self._history = []


__all__ = ["ScoreStore", "JsonScoreStore"]
