"""
Generation service protocol, exceptions and a mock implementation.

The round controller treats one ``generate()`` call as a single unit that
either resolves with an image or fails for good: any retrying with
degrading fallbacks happens inside the service.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from ..models import Difficulty, GenerationResult, Language

logger = logging.getLogger("divine-quiz")


# ---------------------------------------------------------------------------
# Custom Exceptions
# ---------------------------------------------------------------------------


class GenerationError(Exception):
    """Base exception for image generation errors."""
    pass


class GenerationConfigurationError(GenerationError):
    """Raised when the generation service is misconfigured."""
    pass


class GenerationAPIError(GenerationError):
    """Raised when a single generation attempt fails."""
    pass


class GenerationExhaustedError(GenerationError):
    """Raised when every fallback attempt failed to produce an image."""
    pass


# ---------------------------------------------------------------------------
# Generation Service Protocol
# ---------------------------------------------------------------------------


class GenerationService(Protocol):
    """Protocol for image generation, enabling easy mocking in tests."""

    async def generate(
        self,
        entity_name: str,
        quality: Difficulty,
        language: Language,
    ) -> GenerationResult:
        """Generate an image and description for an entity.

        Args:
            entity_name: Display name used in the prompt.
            quality: Visual quality tier.
            language: Language for the description.

        Returns:
            The generated image and optional description.

        Raises:
            GenerationError: If no image could be produced.
        """
        ...


_LABEL_PREFIX = re.compile(
    r"^(Description|Significance|Divine Knowledge|About|Note|Info|Meaning|Deity Description|Answer):\s*",
    re.IGNORECASE,
)
_SURROUNDING_QUOTES = re.compile(r"^[\"']|[\"']$")


def clean_description(text: str) -> str:
    """Strip meta labels and surrounding quotes models tend to add.

    Example:
        >>> clean_description('Description: "Remover of obstacles."')
        'Remover of obstacles.'
    """
    text = _LABEL_PREFIX.sub("", text.strip())
    return _SURROUNDING_QUOTES.sub("", text).strip()


# ---------------------------------------------------------------------------
# Mock Generation Service (for testing)
# ---------------------------------------------------------------------------


class MockGenerationService:
    """Mock generation service returning canned results.

    Args:
        image_url: Image URL returned for every call.
        description: Description returned for every call. ``{name}`` is
            replaced by the requested entity name.
        fail_for: Entity names whose calls raise ``GenerationExhaustedError``.
        fail_all: Make every call fail.

    Example:
        >>> mock = MockGenerationService()
        >>> (await mock.generate("Shiva", Difficulty.EASY, Language.ENGLISH)).image_url
        'data:image/png;base64,AAAA'
    """

    def __init__(
        self,
        image_url: str = "data:image/png;base64,AAAA",
        description: str | None = "{name} is a revered deity.",
        fail_for: set[str] | None = None,
        fail_all: bool = False,
    ) -> None:
        self.image_url = image_url
        self.description = description
        self.fail_for = set(fail_for or ())
        self.fail_all = fail_all
        self.call_count = 0
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        entity_name: str,
        quality: Difficulty,
        language: Language,
    ) -> GenerationResult:
        self.calls.append({"entity_name": entity_name, "quality": quality, "language": language})
        self.call_count += 1

        if self.fail_all or entity_name in self.fail_for:
            raise GenerationExhaustedError(f"Mock generation failed for {entity_name}")

        description = self.description.format(name=entity_name) if self.description else None
        return GenerationResult(image_url=self.image_url, description=description)

    def reset(self) -> None:
        """Reset call history."""
        self.call_count = 0
        self.calls.clear()


__all__ = [
    "GenerationService",
    "GenerationError",
    "GenerationConfigurationError",
    "GenerationAPIError",
    "GenerationExhaustedError",
    "MockGenerationService",
    "clean_description",
]
