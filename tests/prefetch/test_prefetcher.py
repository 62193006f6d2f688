"""
Tests for RoundPrefetcher.

Tests cover:
- Single-slot semantics (preload while pending is a no-op)
- Take-and-clear consume
- Discard of unused packages
- Generation failures retrieved without crashing
- Prefetch statistics
"""

from __future__ import annotations

import random

import pytest

from divine_quiz.prefetch import PrefetchStats, RoundPrefetcher
from divine_quiz.models import Language

pytestmark = pytest.mark.anyio


@pytest.fixture
def prefetcher(catalog, controlled_generation, easy_tier) -> RoundPrefetcher:
    return RoundPrefetcher(
        catalog, controlled_generation, easy_tier, Language.HINDI, rng=random.Random(5),
    )


class TestSingleSlot:
    """At most one package is ever pending."""

    async def test_second_preload_is_noop(self, prefetcher, controlled_generation, settle):
        assert prefetcher.preload()
        assert not prefetcher.preload()
        await settle()

        assert prefetcher.has_pending
        assert controlled_generation.call_count == 1
        assert prefetcher.stats.preloads_started == 1

    async def test_consume_takes_and_clears(self, prefetcher, easy_tier, settle):
        prefetcher.preload()
        package = prefetcher.consume()

        assert package is not None
        assert not prefetcher.has_pending
        assert prefetcher.consume() is None
        assert len(package.options) == easy_tier.options
        assert [o.id for o in package.options].count(package.entity.id) == 1
        assert prefetcher.stats.hits == 1
        assert prefetcher.stats.misses == 1

    async def test_preload_allowed_after_consume(self, prefetcher, controlled_generation, settle):
        prefetcher.preload()
        prefetcher.consume()

        assert prefetcher.preload()
        await settle()
        assert controlled_generation.call_count == 2

    async def test_discard(self, prefetcher):
        prefetcher.preload()

        assert prefetcher.discard()
        assert not prefetcher.discard()
        assert prefetcher.consume() is None
        assert prefetcher.stats.discarded == 1


class TestGeneration:

    async def test_generation_uses_tier_quality_and_language(self, prefetcher, controlled_generation, easy_tier, settle):
        package = prefetcher.build_package()
        await settle()

        [call] = controlled_generation.calls
        assert call.entity_name == package.entity.default_name
        assert call.quality == easy_tier.quality
        assert call.language == Language.HINDI

    async def test_pending_task_delivers_result(self, prefetcher, controlled_generation, settle):
        prefetcher.preload()
        await settle()
        controlled_generation.calls[0].resolve(image_url="data:image/png;base64,QUJD")

        package = prefetcher.consume()
        result = await package.pending

        assert result.image_url == "data:image/png;base64,QUJD"

    async def test_failure_is_counted_and_retrieved(self, prefetcher, controlled_generation, settle):
        """A failed preload never surfaces as an unhandled task error."""
        prefetcher.preload()
        await settle()
        assert prefetcher.active_task_count == 1

        controlled_generation.calls[0].fail()
        await settle()

        assert prefetcher.stats.failed_generations == 1
        assert prefetcher.active_task_count == 0

        package = prefetcher.consume()
        with pytest.raises(RuntimeError):
            await package.pending

    def test_preload_without_event_loop(self, prefetcher, controlled_generation):
        assert not prefetcher.preload()
        assert not prefetcher.has_pending
        assert controlled_generation.call_count == 0


class TestPrefetchStats:

    def test_hit_rate(self):
        stats = PrefetchStats(hits=3, misses=1)
        assert stats.hit_rate == 0.75
        assert "75% hits (3/4)" in stats.to_summary()

    def test_hit_rate_without_calls(self):
        assert PrefetchStats().hit_rate == 0.0
