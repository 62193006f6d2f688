"""
Divine Quiz MCP Server
Exposes the deity image quiz as FastMCP tools.
"""

import base64
import logging
import os
from pathlib import Path
from typing import Annotated, Literal

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.utilities.types import Image
from pydantic import Field

from .config import load_config
from .generation import GeminiGenerationService
from .scores import JsonScoreStore
from .session import QuizSessionManager

logger = logging.getLogger("divine-quiz")

logging.basicConfig(
    level=logging.DEBUG,
    )

if not load_dotenv():
    logger.warning("❌ .env file invalid or not found! Set GEMINI_API_KEY in the environment instead.")

config_path = os.getenv("DIVINE_QUIZ_CONFIG")
config = load_config(Path(config_path) if config_path else None)
logger.debug(f"📂 Data path: {config.data_dir}")

catalog = config.load_catalog()
logger.debug(f"📜 Catalog loaded ({len(catalog)} entities)")

score_store = JsonScoreStore(data_dir=config.data_dir)
logger.debug("✅ Score store initialized")

manager = QuizSessionManager(
    config=config,
    catalog=catalog,
    score_store=score_store,
    generation_factory=lambda: GeminiGenerationService(settings=config.generation),
)

mcp = FastMCP(
    name="divine-quiz"
)

DifficultyName = Literal["easy", "medium", "hard"]
LanguageName = Literal["English", "Hindi", "Telugu", "Kannada", "Tamil", "Malayalam"]


def _decode_data_uri(image_url: str | None) -> tuple[bytes, str]:
    """Split a ``data:<mime>;base64,...`` URI into raw bytes and image format."""
    if image_url is None or not image_url.startswith("data:"):
        raise ValueError("No image available yet. Use wait_for_image first.")

    header, _, payload = image_url.partition(",")
    image_format = header.removeprefix("data:").split(";")[0].split("/")[-1] or "png"
    return base64.b64decode(payload), image_format


# ----------------------------------------------------------------------
# Tools
# ----------------------------------------------------------------------

@mcp.tool
async def start_game(
    player_name: Annotated[str | None, Field(description="Name recorded in the game history")] = None,
    difficulty: Annotated[DifficultyName | None, Field(description="Difficulty tier")] = None,
    language: Annotated[LanguageName | None, Field(description="Language for deity names and descriptions")] = None,
) -> str:
    """Start a new quiz game. The first image is generated in the background."""
    return manager.start_game(player_name=player_name, difficulty=difficulty, language=language)

@mcp.tool
async def get_round() -> str:
    """Show the current round: options, image status and score."""
    return manager.describe_round()

@mcp.tool
async def wait_for_image() -> str:
    """Wait until the current round's image is ready (or failed), then show the round."""
    return await manager.wait_for_image()

@mcp.tool
async def get_round_image() -> Image:
    """Return the generated image of the current round."""
    data, image_format = _decode_data_uri(manager.current_image())
    return Image(data=data, format=image_format)

@mcp.tool
async def answer(
    choice: Annotated[str, Field(description="Option letter (A, B, ...), option id or deity name")],
) -> str:
    """Answer the current round. Only possible once the image is shown."""
    return manager.answer(choice)

@mcp.tool
async def next_round() -> str:
    """Move on after an answer has been revealed."""
    return manager.next_round()

@mcp.tool
async def skip_round() -> str:
    """Skip the current round. It counts as played but scores nothing."""
    return manager.skip()

@mcp.tool
async def retry_image() -> str:
    """Generate a new image for the current round, e.g. after a failure."""
    return manager.retry()

@mcp.tool
async def restart_game() -> str:
    """Throw away the current game and start a fresh one with the same settings."""
    return manager.restart()

@mcp.tool
async def exit_game() -> str:
    """Leave the current game. Played rounds are recorded in the history."""
    return manager.exit_game()

@mcp.tool
def get_history(
    difficulty: Annotated[DifficultyName | None, Field(description="Only games of this tier")] = None,
    limit: Annotated[int, Field(description="Maximum number of games", ge=1, le=100)] = 10,
) -> str:
    """List recorded games, most recent first."""
    return manager.history(difficulty=difficulty, limit=limit)

@mcp.tool
def get_high_score(
    difficulty: Annotated[DifficultyName, Field(description="Difficulty tier")],
) -> str:
    """Show the high score of a tier."""
    return manager.high_score(difficulty)


logger.debug("✅ All tools successfully registered. Divine Quiz server running! 🕉️")

def main() -> None:
    """Main entry point for the Divine Quiz MCP Server."""
    mcp.run()

if __name__ == "__main__":
    main()
