"""
Round prefetching for divine-quiz.

Hides image generation latency by preparing round N+1 (entity, options
and an in-flight generation call) while the player answers round N.

Components:
- RoundPrefetcher: single-slot holder with take-and-clear semantics
- RoundPackage: entity + options + pending generation task
- PrefetchStats: hit/miss/discard counters

Usage:
    from divine_quiz.prefetch import RoundPrefetcher

    prefetcher = RoundPrefetcher(catalog, generation, tier, language)
    prefetcher.preload()
    package = prefetcher.consume() or prefetcher.build_package()
"""

from .prefetcher import PrefetchStats, RoundPackage, RoundPrefetcher

__all__ = [
    "RoundPrefetcher",
    "RoundPackage",
    "PrefetchStats",
]
