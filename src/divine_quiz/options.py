"""
Answer option selection.
"""

from __future__ import annotations

import random

from .catalog import EntityCatalog
from .errors import InsufficientCatalogError
from .models import Entity


def select_options(
    correct: Entity,
    catalog: EntityCatalog,
    count: int,
    rng: random.Random | None = None,
) -> list[Entity]:
    """Pick ``count`` shuffled options containing ``correct`` exactly once.

    Distractors are drawn uniformly without replacement from the catalog
    minus ``correct``; the combined list is then shuffled for display.

    Args:
        correct: The entity the player must find.
        catalog: Source of distractors.
        count: Total number of options, at least 1.
        rng: Random source. Defaults to the module-level generator.

    Returns:
        List of ``count`` entities with unique ids.

    Raises:
        ValueError: If ``count`` is below 1.
        InsufficientCatalogError: If the catalog has too few distractors.
    """
    if count < 1:
        raise ValueError("count must be at least 1")

    rng = rng or random.Random()
    others = catalog.list_excluding(correct.id)
    if count - 1 > len(others):
        raise InsufficientCatalogError(
            f"Need {count - 1} distractors for '{correct.id}' but the catalog only has {len(others)}"
        )

    options = [correct, *rng.sample(others, count - 1)]
    rng.shuffle(options)
    return options


__all__ = ["select_options"]
