"""
Single-slot round prefetcher.

While the player is looking at round N, the prefetcher picks the entity
and options for round N+1 and starts its image generation in the
background. The package sits in a one-slot holder until the round
controller takes it; taking clears the slot and hands the in-flight
generation task over to the controller.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from shortuuid import random as shortuuid_random

from ..catalog import EntityCatalog
from ..generation.base import GenerationService
from ..models import Entity, GenerationResult, Language, TierSettings
from ..options import select_options

logger = logging.getLogger("divine-quiz")


@dataclass
class RoundPackage:
    """Content for one round plus its in-flight image generation.

    Attributes:
        entity: Entity to guess.
        options: Display-ordered answer options.
        pending: Generation task started for ``entity``.
        package_id: Identifier used in logs.
    """
    entity: Entity
    options: list[Entity]
    pending: asyncio.Task[GenerationResult]
    package_id: str = field(default_factory=lambda: shortuuid_random(length=8))


@dataclass
class PrefetchStats:
    """Counters for the prefetcher.

    Attributes:
        preloads_started: Packages built in the background.
        hits: ``consume()`` calls that returned a package.
        misses: ``consume()`` calls that found the slot empty.
        discarded: Pending packages dropped by ``discard()``.
        failed_generations: Generation tasks that ended in an error.
    """
    preloads_started: int = 0
    hits: int = 0
    misses: int = 0
    discarded: int = 0
    failed_generations: int = 0

    @property
    def hit_rate(self) -> float:
        """Ratio of hits to total consume calls (0.0-1.0)."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_summary(self) -> str:
        return (
            f"Prefetch: {self.preloads_started} preloaded, "
            f"{self.hit_rate * 100:.0f}% hits ({self.hits}/{self.hits + self.misses}), "
            f"{self.discarded} discarded, {self.failed_generations} failed generations"
        )


class RoundPrefetcher:
    """Holds at most one prefetched round package.

    Args:
        catalog: Entity source.
        generation: Image generation service.
        tier: Tier settings (option count and image quality).
        language: Language requested for generated descriptions.
        rng: Random source for entity and option draws.

    Usage:
        prefetcher = RoundPrefetcher(catalog, service, tier, Language.HINDI)

        prefetcher.preload()            # after an answer
        package = prefetcher.consume()  # when the next round starts
        if package is None:
            package = prefetcher.build_package()
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        generation: GenerationService,
        tier: TierSettings,
        language: Language,
        rng: random.Random | None = None,
    ) -> None:
        self.catalog = catalog
        self.generation = generation
        self.tier = tier
        self.language = language
        self.rng = rng or random.Random()
        self.stats = PrefetchStats()
        self._slot: Optional[RoundPackage] = None
        # Strong references so running generation tasks are not garbage collected
        self._active_tasks: set[asyncio.Task] = set()

    @property
    def has_pending(self) -> bool:
        """Whether a package is waiting in the slot."""
        return self._slot is not None

    @property
    def active_task_count(self) -> int:
        """Generation tasks started here that have not finished yet."""
        return len(self._active_tasks)

    def start_generation(self, entity: Entity) -> asyncio.Task[GenerationResult]:
        """Start an image generation task for ``entity``.

        Failures are logged and marked as retrieved here; whoever awaits
        the task still receives the exception.

        Raises:
            RuntimeError: If no event loop is running.
        """
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self.generation.generate(entity.default_name, self.tier.quality, self.language)
        )
        self._active_tasks.add(task)
        task.add_done_callback(self._on_generation_done)
        return task

    def build_package(self) -> RoundPackage:
        """Synthesize a fresh package with a newly started generation call."""
        entity = self.catalog.pick_random(self.rng)
        options = select_options(entity, self.catalog, self.tier.options, rng=self.rng)
        return RoundPackage(entity=entity, options=options, pending=self.start_generation(entity))

    def preload(self) -> bool:
        """Start building the next package in the background.

        A second call while a package is pending is a no-op.

        Returns:
            True if a new package was started.
        """
        if self._slot is not None:
            logger.debug(f"Preload skipped: package {self._slot.package_id} already pending")
            return False

        try:
            package = self.build_package()
        except RuntimeError:
            # No running event loop, nothing to overlap with
            logger.debug("No running event loop, skipping preload")
            return False

        self._slot = package
        self.stats.preloads_started += 1
        logger.debug(f"Preloading package {package.package_id} ({package.entity.id})")
        return True

    def consume(self) -> Optional[RoundPackage]:
        """Take the pending package, clearing the slot.

        Returns:
            The package, or None when nothing was preloaded.
        """
        package, self._slot = self._slot, None
        if package is None:
            self.stats.misses += 1
            logger.debug("Prefetch miss, caller builds a fresh package")
            return None

        self.stats.hits += 1
        logger.debug(f"Prefetch hit: package {package.package_id} ({package.entity.id})")
        return package

    def discard(self) -> bool:
        """Drop the pending package, if any.

        The external call cannot be cancelled; its result is simply never used.

        Returns:
            True if a package was dropped.
        """
        package, self._slot = self._slot, None
        if package is None:
            return False

        self.stats.discarded += 1
        logger.debug(f"Discarded prefetched package {package.package_id}")
        return True

    def _on_generation_done(self, task: asyncio.Task) -> None:
        self._active_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.stats.failed_generations += 1
            logger.debug(f"Image generation failed: {error}")


__all__ = [
    "RoundPrefetcher",
    "RoundPackage",
    "PrefetchStats",
]
