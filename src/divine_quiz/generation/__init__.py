"""
Image generation for quiz rounds.

Components:
- GenerationService: Protocol the round controller and prefetcher depend on
- GeminiGenerationService: google-genai backed service with a three-step fallback chain
- MockGenerationService: canned results for tests and offline demos

Usage:
    from divine_quiz.generation import GeminiGenerationService

    service = GeminiGenerationService(api_key=key)
    result = await service.generate("Ganesha", Difficulty.HARD, Language.TAMIL)
"""

from .base import (
    GenerationAPIError,
    GenerationConfigurationError,
    GenerationError,
    GenerationExhaustedError,
    GenerationService,
    MockGenerationService,
    clean_description,
)
from .gemini import GeminiGenerationService, GenerationAttempt

__all__ = [
    "GenerationService",
    "GenerationError",
    "GenerationConfigurationError",
    "GenerationAPIError",
    "GenerationExhaustedError",
    "MockGenerationService",
    "GeminiGenerationService",
    "GenerationAttempt",
    "clean_description",
]
