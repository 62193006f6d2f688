"""
Entity catalog loaded from YAML.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from .errors import CatalogError
from .models import Entity

logger = logging.getLogger("divine-quiz")

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "deities.yaml"


class EntityCatalog:
    """Static, ordered collection of quiz entities.

    Draws are uniform over the whole collection; callers must not rely on
    the order of ``all()`` for randomness.

    Example:
        >>> catalog = EntityCatalog.load_default()
        >>> catalog.get("ganesha").display_name(Language.TAMIL)
        'விநாயகர்'
    """

    def __init__(self, entities: Iterable[Entity]) -> None:
        self._entities: list[Entity] = []
        self._by_id: dict[str, Entity] = {}

        for entity in entities:
            if entity.id in self._by_id:
                raise CatalogError(f"Duplicate entity id '{entity.id}'")
            self._entities.append(entity)
            self._by_id[entity.id] = entity

        if not self._entities:
            raise CatalogError("Catalog must contain at least one entity")

    @classmethod
    def from_yaml(cls, path: Path) -> "EntityCatalog":
        """Load a catalog from a YAML file.

        Expected YAML format:
            entities:
              - id: ganesha
                names:
                  English: Ganesha
                  Hindi: गणेश

        Args:
            path: Path to the YAML file

        Raises:
            FileNotFoundError: If the file does not exist
            yaml.YAMLError: If the YAML is malformed
            CatalogError: If an entry is invalid or ids repeat
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict) or "entities" not in data:
            raise CatalogError(f"{path} must contain an 'entities' key")

        entities = []
        for index, raw in enumerate(data["entities"]):
            try:
                entities.append(Entity(**raw))
            except (TypeError, ValidationError) as e:
                raise CatalogError(f"Invalid entity #{index} in {path}: {e}") from e

        catalog = cls(entities)
        logger.info(f"Loaded {len(catalog)} entities from {path}")
        return catalog

    @classmethod
    def load_default(cls) -> "EntityCatalog":
        """Load the bundled deity catalog."""
        return cls.from_yaml(DEFAULT_CATALOG_PATH)

    def all(self) -> list[Entity]:
        return list(self._entities)

    def get(self, entity_id: str) -> Entity | None:
        return self._by_id.get(entity_id)

    def pick_random(self, rng: random.Random | None = None) -> Entity:
        """Draw one entity uniformly at random."""
        return (rng or random).choice(self._entities)

    def list_excluding(self, entity_id: str) -> list[Entity]:
        """Every entity except the one with ``entity_id``."""
        return [entity for entity in self._entities if entity.id != entity_id]

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._by_id


__all__ = ["EntityCatalog", "DEFAULT_CATALOG_PATH"]
