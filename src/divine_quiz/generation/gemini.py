"""
Gemini-backed image generation with a descending-quality fallback chain.

Each ``generate()`` call runs up to three attempts:

1. The primary model (the pro image model when search grounding is used,
   the flash image model otherwise) with the full artistic prompt.
2. The flash image model with a shorter prompt.
3. The flash image model with a minimal prompt.

The first attempt that yields an image wins. Only when all of them fail
does the call raise ``GenerationExhaustedError``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import random
from dataclasses import dataclass
from typing import Any, Optional

from google import genai
from google.genai import types

from ..config import GenerationSettings
from ..models import Difficulty, GenerationResult, Language
from .base import (
    GenerationAPIError,
    GenerationConfigurationError,
    GenerationExhaustedError,
    clean_description,
)

logger = logging.getLogger("divine-quiz")

INDIAN_ART_STYLES = [
    "Tanjore Painting (Thanjavur) style with vibrant colors and embossed gold leaf textures",
    "Madhubani (Mithila) art style with intricate geometrical patterns and natural pigments",
    "Pattachitra style from Odisha with high detail, rich colors, and mythological narrative flair",
    "Classic Raja Ravi Varma oil painting style, elegant, realistic yet divine with Victorian influence",
    "Kangra Miniature painting style, delicate lines and poetic natural settings",
    "Mysore Painting style with subtle colors and gesso work",
    "Kalighat Art style, bold lines and expressive features from Bengal",
]

EASY_STYLE = (
    "Professional 3D Animation Movie Style (Pixar/Disney aesthetic). High-quality 3D character "
    "render, cute, friendly, vibrant colors, expressive features, and soft cinematic lighting."
)

MEDIUM_STYLES = [
    "Cinematic high-definition 3D Animation Movie Style render",
    "High-resolution realistic devotional representation, lifelike textures, professional "
    "lighting, authentic traditional photography",
]

PRIMARY_PROMPT_TEMPLATE = """\
Task: Generate a highly refined and artistic image of the Hindu Deity {name} AND a 1-sentence spiritual significance.
Artistic Style: {style}
Iconography: Ensure accurate representation of weapons, vahanas (mounts), and mudras.
Description Request: Provide exactly one sentence in {language_upper} explaining the deity's significance.
IMPORTANT: Do not include labels like "Description:" or "Significance:". Return ONLY the descriptive sentence about the deity.
"""

FALLBACK_PROMPT_TEMPLATE = (
    "High-quality refined artistic image of the deity {name} in the style: {style}. "
    "Also include a 1-sentence description in {language} without any labels."
)

MINIMAL_PROMPT_TEMPLATE = "A beautiful and respectful painting of {name}."


@dataclass
class GenerationAttempt:
    """One step of the fallback chain.

    Attributes:
        model: Model identifier.
        prompt: Full prompt text.
        image_size: Requested resolution, None to let the model decide.
        use_search: Attach the Google Search grounding tool.
        stock_description: Used when neither this nor an earlier attempt produced text.
    """
    model: str
    prompt: str
    image_size: Optional[str] = None
    use_search: bool = False
    stock_description: Optional[str] = None


def style_for(quality: Difficulty, rng: random.Random) -> tuple[str, bool]:
    """Pick the artistic style for a quality tier.

    Returns:
        ``(style_description, use_search_grounding)``
    """
    if quality == Difficulty.EASY:
        return EASY_STYLE, False
    if quality == Difficulty.MEDIUM:
        return rng.choice(MEDIUM_STYLES), True
    art_style = rng.choice(INDIAN_ART_STYLES)
    return (
        f"Exquisite Traditional Indian Art: {art_style}. High artistry, refined brushwork, "
        "traditional iconography, and cultural depth."
    ), True


class GeminiGenerationService:
    """Generation service backed by Gemini image models (google-genai SDK).

    Args:
        api_key: Gemini API key. If None, reads GEMINI_API_KEY (or API_KEY).
        settings: Model names, image size and per-attempt timeout.
        client: Pre-built ``genai.Client``; mainly for tests.
        rng: Random source for style selection.

    Raises:
        GenerationConfigurationError: If no client is given and no API key is found.
    """

    def __init__(
        self,
        api_key: str | None = None,
        settings: GenerationSettings | None = None,
        client: Any = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or GenerationSettings()
        self.rng = rng or random.Random()

        if client is None:
            api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
            if not api_key:
                raise GenerationConfigurationError(
                    "Gemini API key is required. Provide it via the 'api_key' parameter "
                    "or set the GEMINI_API_KEY environment variable."
                )
            client = genai.Client(api_key=api_key)

        self.client = client
        logger.info(
            f"Initialized GeminiGenerationService with primary={self.settings.primary_model}, "
            f"fallback={self.settings.fallback_model}, image_size={self.settings.image_size}"
        )

    def build_attempts(
        self,
        entity_name: str,
        quality: Difficulty,
        language: Language,
    ) -> list[GenerationAttempt]:
        """Build the ordered fallback chain for one request."""
        style, use_search = style_for(quality, self.rng)
        primary_model = self.settings.primary_model if use_search else self.settings.fallback_model

        return [
            GenerationAttempt(
                model=primary_model,
                prompt=PRIMARY_PROMPT_TEMPLATE.format(
                    name=entity_name, style=style, language_upper=language.value.upper(),
                ),
                image_size=self.settings.image_size,
                use_search=use_search,
            ),
            GenerationAttempt(
                model=self.settings.fallback_model,
                prompt=FALLBACK_PROMPT_TEMPLATE.format(
                    name=entity_name, style=style, language=language.value,
                ),
                stock_description=f"{entity_name} is a revered figure in Indian spirituality.",
            ),
            GenerationAttempt(
                model=self.settings.fallback_model,
                prompt=MINIMAL_PROMPT_TEMPLATE.format(name=entity_name),
                stock_description=f"{entity_name} is a manifestation of the divine.",
            ),
        ]

    async def generate(
        self,
        entity_name: str,
        quality: Difficulty,
        language: Language,
    ) -> GenerationResult:
        """Generate an image and description, walking the fallback chain.

        Raises:
            GenerationExhaustedError: If no attempt produced an image.
        """
        last_description = ""

        for number, attempt in enumerate(self.build_attempts(entity_name, quality, language), start=1):
            try:
                image_url, description = await self._run_attempt(attempt)
            except GenerationAPIError as e:
                logger.warning(f"Generation attempt {number} for {entity_name} failed: {e}")
                continue

            if description:
                last_description = description
            if image_url:
                logger.debug(f"Generated image for {entity_name} on attempt {number} ({attempt.model})")
                return GenerationResult(
                    image_url=image_url,
                    description=last_description or attempt.stock_description,
                )

            logger.warning(f"No image in response for {entity_name}, attempt {number}")

        logger.error(f"All generation attempts failed for {entity_name}")
        raise GenerationExhaustedError(
            f"Unable to generate an image of {entity_name}. Please try again."
        )

    async def _run_attempt(self, attempt: GenerationAttempt) -> tuple[str, str]:
        """Run one attempt and return ``(image_url, description)``; either may be empty."""
        config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(
                aspect_ratio=self.settings.aspect_ratio,
                image_size=attempt.image_size,
            ),
            tools=[types.Tool(google_search=types.GoogleSearch())] if attempt.use_search else None,
        )

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.models.generate_content,
                    model=attempt.model,
                    contents=attempt.prompt,
                    config=config,
                ),
                timeout=self.settings.timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationAPIError(f"timed out after {self.settings.timeout}s") from e
        except Exception as e:
            raise GenerationAPIError(f"{type(e).__name__}: {e}") from e

        return parse_response(response)


def parse_response(response: Any) -> tuple[str, str]:
    """Extract the first inline image (as a data URI) and the joined text parts."""
    image_url = ""
    text = ""

    candidates = getattr(response, "candidates", None) or []
    content = getattr(candidates[0], "content", None) if candidates else None
    for part in getattr(content, "parts", None) or []:
        inline_data = getattr(part, "inline_data", None)
        if inline_data is not None and inline_data.data:
            data = inline_data.data
            if isinstance(data, bytes):
                data = base64.b64encode(data).decode("ascii")
            mime_type = inline_data.mime_type or "image/png"
            image_url = f"data:{mime_type};base64,{data}"
        elif getattr(part, "text", None):
            text += part.text

    return image_url, clean_description(text)


__all__ = [
    "GeminiGenerationService",
    "GenerationAttempt",
    "INDIAN_ART_STYLES",
    "parse_response",
    "style_for",
]
