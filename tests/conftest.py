"""
Pytest configuration and fixtures for divine-quiz tests.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Add src directory to Python path to allow importing divine_quiz
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from divine_quiz.catalog import EntityCatalog  # noqa: E402
from divine_quiz.models import (  # noqa: E402
    Difficulty,
    Entity,
    GameHistoryEntry,
    GenerationResult,
    Language,
    TierSettings,
)


# Configure anyio to only use asyncio (not trio)
@pytest.fixture
def anyio_backend():
    return "asyncio"


# ---------------------------------------------------------------------------
# Generation service whose calls are resolved by the test
# ---------------------------------------------------------------------------


@dataclass
class PendingCall:
    """One outstanding generate() call."""
    entity_name: str
    quality: Difficulty
    language: Language
    future: asyncio.Future = field(repr=False)

    def resolve(self, image_url: str = "data:image/png;base64,AAAA", description: str | None = None) -> None:
        self.future.set_result(GenerationResult(image_url=image_url, description=description))

    def fail(self, error: Exception | None = None) -> None:
        self.future.set_exception(error or RuntimeError("generation failed"))


class ControlledGenerationService:
    """Generation service whose calls stay pending until the test resolves them."""

    def __init__(self) -> None:
        self.calls: list[PendingCall] = []

    async def generate(self, entity_name: str, quality: Difficulty, language: Language) -> GenerationResult:
        call = PendingCall(
            entity_name=entity_name,
            quality=quality,
            language=language,
            future=asyncio.get_running_loop().create_future(),
        )
        self.calls.append(call)
        return await call.future

    @property
    def call_count(self) -> int:
        return len(self.calls)


class RecordingScoreStore:
    """In-memory score store recording every call."""

    def __init__(self, high_score: int = 0) -> None:
        self.high_scores: dict[Difficulty, int] = {}
        self.initial_high_score = high_score
        self.games: list[dict[str, Any]] = []
        self.set_calls: list[tuple[Difficulty, int]] = []

    def record_game(self, score, total_rounds, difficulty, language, player_name=None):
        self.games.append({"score": score, "total_rounds": total_rounds})
        return GameHistoryEntry(
            score=score,
            total_rounds=total_rounds,
            difficulty=difficulty,
            language=language,
            player_name=player_name,
        )

    def get_high_score(self, difficulty: Difficulty) -> int:
        return self.high_scores.get(difficulty, self.initial_high_score)

    def set_high_score(self, difficulty: Difficulty, value: int) -> None:
        self.set_calls.append((difficulty, value))
        self.high_scores[difficulty] = value


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def entities() -> list[Entity]:
    return [
        Entity(id="ganesha", names={Language.ENGLISH: "Ganesha", Language.TAMIL: "விநாயகர்"}),
        Entity(id="shiva", names={Language.ENGLISH: "Shiva", Language.HINDI: "शिव"}),
        Entity(id="vishnu", names={Language.ENGLISH: "Vishnu"}),
        Entity(id="lakshmi", names={Language.ENGLISH: "Lakshmi"}),
        Entity(id="durga", names={Language.ENGLISH: "Durga"}),
        Entity(id="hanuman", names={Language.ENGLISH: "Hanuman", Language.TAMIL: "அனுமன்"}),
    ]


@pytest.fixture
def catalog(entities) -> EntityCatalog:
    return EntityCatalog(entities)


@pytest.fixture
def easy_tier() -> TierSettings:
    return TierSettings(label="Seeker", rounds=3, options=4, points=10, quality=Difficulty.EASY)


@pytest.fixture
def controlled_generation() -> ControlledGenerationService:
    return ControlledGenerationService()


@pytest.fixture
def score_recorder() -> RecordingScoreStore:
    return RecordingScoreStore()


@pytest.fixture
def settle():
    """Coroutine function draining ready tasks and callbacks."""
    async def _settle(iterations: int = 10) -> None:
        for _ in range(iterations):
            await asyncio.sleep(0)
    return _settle
