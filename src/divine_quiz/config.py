"""
Quiz configuration: tier table, storage location, catalog source and
generation settings.

Values come from defaults, an optional YAML file, and environment
variables (in that order of precedence, lowest first).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .catalog import DEFAULT_CATALOG_PATH, EntityCatalog
from .errors import InsufficientCatalogError, QuizConfigurationError
from .models import DEFAULT_LANGUAGE, Difficulty, Language, TierSettings

logger = logging.getLogger("divine-quiz")

ENV_DATA_DIR = "DIVINE_QUIZ_DATA_DIR"
ENV_CATALOG = "DIVINE_QUIZ_CATALOG"
ENV_LANGUAGE = "DIVINE_QUIZ_LANGUAGE"
ENV_DIFFICULTY = "DIVINE_QUIZ_DIFFICULTY"


def default_tiers() -> dict[Difficulty, TierSettings]:
    """The stock tier table."""
    return {
        Difficulty.EASY: TierSettings(
            label="Seeker", rounds=5, options=3, points=10, quality=Difficulty.EASY,
        ),
        Difficulty.MEDIUM: TierSettings(
            label="Devotee", rounds=10, options=4, points=20, quality=Difficulty.MEDIUM,
        ),
        Difficulty.HARD: TierSettings(
            label="Sage", rounds=15, options=6, points=30, quality=Difficulty.HARD,
        ),
    }


class GenerationSettings(BaseModel):
    """Settings handed to the image generation service."""
    image_size: str = Field(default="1K", description="Requested image resolution")
    aspect_ratio: str = Field(default="1:1")
    primary_model: str = Field(default="gemini-3-pro-image-preview")
    fallback_model: str = Field(default="gemini-2.5-flash-image")
    timeout: float = Field(default=120.0, gt=0, description="Seconds per attempt")


class QuizConfig(BaseModel):
    """Top-level quiz configuration."""
    tiers: dict[Difficulty, TierSettings] = Field(default_factory=default_tiers)
    data_dir: Path = Field(default_factory=lambda: Path.cwd() / ".divine_quiz")
    catalog_path: Path = Field(default=DEFAULT_CATALOG_PATH)
    default_language: Language = DEFAULT_LANGUAGE
    default_difficulty: Difficulty = Difficulty.MEDIUM
    generation: GenerationSettings = Field(default_factory=GenerationSettings)

    def tier(self, difficulty: Difficulty) -> TierSettings:
        """Settings for ``difficulty``.

        Raises:
            QuizConfigurationError: If the tier is not configured.
        """
        try:
            return self.tiers[difficulty]
        except KeyError:
            raise QuizConfigurationError(f"No tier configured for '{difficulty.value}'") from None

    def validate_catalog(self, catalog: EntityCatalog) -> None:
        """Fail fast when a tier asks for more options than the catalog holds.

        Raises:
            InsufficientCatalogError: If any tier cannot be served.
        """
        for difficulty, tier in self.tiers.items():
            if tier.options > len(catalog):
                raise InsufficientCatalogError(
                    f"Tier '{difficulty.value}' needs {tier.options} options "
                    f"but the catalog only has {len(catalog)} entities"
                )

    def load_catalog(self) -> EntityCatalog:
        """Load the configured catalog and validate it against the tiers."""
        catalog = EntityCatalog.from_yaml(self.catalog_path)
        self.validate_catalog(catalog)
        return catalog


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if os.getenv(ENV_DATA_DIR):
        overrides["data_dir"] = Path(os.environ[ENV_DATA_DIR]).expanduser()
    if os.getenv(ENV_CATALOG):
        overrides["catalog_path"] = Path(os.environ[ENV_CATALOG]).expanduser()
    if os.getenv(ENV_LANGUAGE):
        overrides["default_language"] = os.environ[ENV_LANGUAGE]
    if os.getenv(ENV_DIFFICULTY):
        overrides["default_difficulty"] = os.environ[ENV_DIFFICULTY].lower()
    return overrides


def load_config(path: Optional[Path] = None) -> QuizConfig:
    """Build the configuration from defaults, an optional YAML file and the environment.

    Tiers listed in the YAML file replace the stock entry for that
    difficulty; unlisted tiers keep their defaults.

    Args:
        path: Optional YAML file

    Raises:
        FileNotFoundError: If ``path`` is given but missing
        QuizConfigurationError: If the resulting values are invalid
    """
    data: dict[str, Any] = {}
    if path is not None:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise QuizConfigurationError(f"{path} must contain a mapping")
        logger.debug(f"Loaded quiz configuration from {path}")

    if "tiers" in data:
        tiers: dict[Any, Any] = {d.value: t.model_dump() for d, t in default_tiers().items()}
        tiers.update(data["tiers"] or {})
        data["tiers"] = tiers

    data.update(_env_overrides())

    try:
        return QuizConfig(**data)
    except ValidationError as e:
        raise QuizConfigurationError(f"Invalid configuration: {e}") from e


__all__ = [
    "QuizConfig",
    "GenerationSettings",
    "default_tiers",
    "load_config",
]
