"""
Data models for divine-quiz.

Static data (entities, tiers, generation results, history entries) are
pydantic models; the mutable per-game state owned by the round controller
is kept in plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from shortuuid import random


class Language(str, Enum):
    """Languages a deity name can be displayed in."""
    ENGLISH = "English"
    HINDI = "Hindi"
    TELUGU = "Telugu"
    KANNADA = "Kannada"
    TAMIL = "Tamil"
    MALAYALAM = "Malayalam"


DEFAULT_LANGUAGE = Language.ENGLISH

# Options are presented as letters A-J
MAX_OPTIONS = 10


class Difficulty(str, Enum):
    """Difficulty tiers. Also used as the image-quality tier."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GameStatus(str, Enum):
    """Round lifecycle status."""
    IDLE = "idle"
    PLAYING = "playing"
    REVEALED = "revealed"
    FINISHED = "finished"


class Entity(BaseModel):
    """A quiz entity (a deity) with localized display names.

    Catalog entries are immutable. The ``description`` produced by image
    generation is attached to a copy made for the current round only.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable identifier, unique across the catalog")
    names: dict[Language, str] = Field(..., description="Display name per language")
    description: Optional[str] = Field(default=None, description="Round-scoped generated description")

    @field_validator("names")
    @classmethod
    def _require_default_language(cls, names: dict[Language, str]) -> dict[Language, str]:
        if not names.get(DEFAULT_LANGUAGE, "").strip():
            raise ValueError(f"names must include a non-empty {DEFAULT_LANGUAGE.value} entry")
        return names

    @property
    def default_name(self) -> str:
        """Name in the default language."""
        return self.names[DEFAULT_LANGUAGE]

    def display_name(self, language: Language) -> str:
        """Name in ``language``, falling back to the default language."""
        return self.names.get(language) or self.default_name

    def with_description(self, description: Optional[str]) -> "Entity":
        """Return a copy carrying ``description``."""
        return self.model_copy(update={"description": description})


class TierSettings(BaseModel):
    """Difficulty configuration: round count, option count, points and image quality."""
    label: str = Field(..., description="Display label for the tier")
    rounds: int = Field(..., ge=1, description="Rounds per game")
    options: int = Field(..., ge=1, le=MAX_OPTIONS, description="Answer options per round")
    points: int = Field(..., ge=0, description="Points for a correct answer")
    quality: Difficulty = Field(..., description="Image quality tier requested from generation")


class GenerationResult(BaseModel):
    """Image (data URI or URL) plus an optional one-sentence description."""
    image_url: str = Field(..., min_length=1)
    description: Optional[str] = None


class GameHistoryEntry(BaseModel):
    """A finished (or exited) game recorded by the score store."""
    id: str = Field(default_factory=lambda: random(length=12))
    played_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    score: int = Field(..., ge=0)
    total_rounds: int = Field(..., ge=0)
    difficulty: Difficulty
    language: Language
    player_name: Optional[str] = None


@dataclass
class RoundState:
    """Observable state of the current round.

    Attributes:
        round_id: Identifier assigned when the round is created. Empty before the first round.
        correct_entity: Entity to guess, possibly carrying a generated description.
        image_url: Generated image, None while pending or after a failure.
        options: Display-ordered options, always containing correct_entity once.
        status: Lifecycle status.
        selected_option_id: Set once an answer is submitted.
        round_index: Rounds completed in the game when this round was created.
        image_loading: True while the authoritative generation call is outstanding.
        image_error: True when the last generation call for this round failed.
        feedback: Message naming the correct entity after an answer.
    """
    round_id: str = ""
    correct_entity: Optional[Entity] = None
    image_url: Optional[str] = None
    options: list[Entity] = field(default_factory=list)
    status: GameStatus = GameStatus.IDLE
    selected_option_id: Optional[str] = None
    round_index: int = 0
    image_loading: bool = False
    image_error: bool = False
    feedback: Optional[str] = None

    @property
    def can_answer(self) -> bool:
        """Answering needs a playing round with its image on screen."""
        return self.status == GameStatus.PLAYING and self.image_url is not None

    @property
    def can_skip(self) -> bool:
        return self.status == GameStatus.PLAYING


@dataclass
class GameSession:
    """Per-game score keeping.

    Attributes:
        difficulty: Tier key.
        tier: Settings of the tier.
        language: Display language.
        score: Accumulated points, never decreasing.
        rounds_played: Rounds answered or skipped.
        high_score: Best score stored for the tier.
        player_name: Optional name recorded with the game.
        recorded: Whether the game was reported to the score store.
    """
    difficulty: Difficulty
    tier: TierSettings
    language: Language = DEFAULT_LANGUAGE
    score: int = 0
    rounds_played: int = 0
    high_score: int = 0
    player_name: Optional[str] = None
    recorded: bool = False

    @property
    def rounds_remaining(self) -> int:
        return max(0, self.tier.rounds - self.rounds_played)

    @property
    def is_complete(self) -> bool:
        return self.rounds_played >= self.tier.rounds


__all__ = [
    "Language",
    "DEFAULT_LANGUAGE",
    "MAX_OPTIONS",
    "Difficulty",
    "GameStatus",
    "Entity",
    "TierSettings",
    "GenerationResult",
    "GameHistoryEntry",
    "RoundState",
    "GameSession",
]
