"""
Session manager used by the presentation layer.

Owns the process-wide collaborators (configuration, catalog, score store,
generation service) and the single active round controller, and renders
the game state as text for the MCP tools in ``main.py``.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from .catalog import EntityCatalog
from .config import QuizConfig
from .controller import RoundController
from .cues import FeedbackCues
from .errors import QuizError
from .generation.base import GenerationError, GenerationService
from .models import MAX_OPTIONS, Difficulty, GameStatus, Language
from .scores import JsonScoreStore

logger = logging.getLogger("divine-quiz")

OPTION_LETTERS = "ABCDEFGHIJ"[:MAX_OPTIONS]


class QuizSessionManager:
    """Holds the active game and formats it for display.

    Args:
        config: Quiz configuration.
        catalog: Entity catalog, already validated against ``config``.
        score_store: Score store shared by all games.
        generation_factory: Builds the generation service on first use, so
            a missing API key surfaces when a game starts rather than at import.
        cues: Optional feedback cues passed to every controller.
        rng: Optional random source passed to every controller.
    """

    def __init__(
        self,
        config: QuizConfig,
        catalog: EntityCatalog,
        score_store: JsonScoreStore,
        generation_factory: Callable[[], GenerationService],
        cues: FeedbackCues | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.catalog = catalog
        self.score_store = score_store
        self.generation_factory = generation_factory
        self.cues = cues
        self.rng = rng
        self.controller: Optional[RoundController] = None
        self._generation: Optional[GenerationService] = None

    def _get_generation(self) -> GenerationService:
        if self._generation is None:
            self._generation = self.generation_factory()
        return self._generation

    def _require_controller(self) -> RoundController:
        if self.controller is None:
            raise QuizError("No game in progress. Start one with start_game.")
        return self.controller

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_game(
        self,
        player_name: Optional[str] = None,
        difficulty: Optional[str] = None,
        language: Optional[str] = None,
    ) -> str:
        """Start a new game, replacing any game in progress."""
        try:
            tier_key = Difficulty(difficulty.lower()) if difficulty else self.config.default_difficulty
            display_language = Language(language.title()) if language else self.config.default_language
        except ValueError as e:
            return f"❌ {e}"

        try:
            generation = self._get_generation()
            tier = self.config.tier(tier_key)
        except (GenerationError, QuizError) as e:
            return f"❌ Cannot start a game: {e}"

        if self.controller is not None:
            self.controller.exit()

        self.controller = RoundController(
            catalog=self.catalog,
            generation=generation,
            score_store=self.score_store,
            tier=tier,
            difficulty=tier_key,
            language=display_language,
            player_name=player_name,
            cues=self.cues,
            rng=self.rng,
        )
        self.controller.start()

        greeting = f"🕉️ Welcome{', ' + player_name if player_name else ''}! "
        return (
            f"{greeting}{tier.label} path: {tier.rounds} rounds, {tier.options} options, "
            f"{tier.points} points per correct answer.\n\n" + self.describe_round()
        )

    async def wait_for_image(self) -> str:
        """Block until the current round's image arrives or fails."""
        try:
            controller = self._require_controller()
        except QuizError as e:
            return f"❌ {e}"
        await controller.wait_for_image()
        return self.describe_round()

    def answer(self, choice: str) -> str:
        """Answer by option letter, option id or displayed name."""
        try:
            controller = self._require_controller()
            option_id = self._resolve_choice(controller, choice)
            outcome = controller.answer(option_id)
        except (QuizError, ValueError) as e:
            return f"❌ {e}"

        lines = [("✅ " if outcome.correct else "❌ ") + outcome.feedback]
        description = controller.round.correct_entity.description
        if description:
            lines.append(f"_{description}_")
        lines.append(f"Score: {outcome.score} (+{outcome.points_awarded})")
        if outcome.new_high_score:
            lines.append("🏆 New high score!")
        if outcome.finished:
            lines.append("")
            lines.append(self.describe_round())
        else:
            lines.append("Call next_round to continue.")
        return "\n".join(lines)

    def next_round(self) -> str:
        try:
            self._require_controller().start()
        except QuizError as e:
            return f"❌ {e}"
        return self.describe_round()

    def skip(self) -> str:
        try:
            self._require_controller().skip()
        except QuizError as e:
            return f"❌ {e}"
        return "⏭️ Skipped.\n\n" + self.describe_round()

    def retry(self) -> str:
        try:
            self._require_controller().retry()
        except QuizError as e:
            return f"❌ {e}"
        return "🔄 Requesting a new image.\n\n" + self.describe_round()

    def restart(self) -> str:
        try:
            self._require_controller().restart()
        except QuizError as e:
            return f"❌ {e}"
        return "🔁 New game started.\n\n" + self.describe_round()

    def exit_game(self) -> str:
        try:
            controller = self._require_controller()
        except QuizError as e:
            return f"❌ {e}"

        entry = controller.exit()
        session = controller.session
        self.controller = None
        recorded = f" Recorded as game {entry.id}." if entry else ""
        return f"👋 Left the game with {session.score} points after {session.rounds_played} rounds.{recorded}"

    def history(self, difficulty: Optional[str] = None, limit: int = 10) -> str:
        try:
            tier_key = Difficulty(difficulty.lower()) if difficulty else None
        except ValueError as e:
            return f"❌ {e}"

        entries = self.score_store.list_history(difficulty=tier_key, limit=limit)
        if not entries:
            return "📜 No games recorded yet."

        lines = ["**Your Journey:**"]
        for entry in entries:
            who = f"{entry.player_name} · " if entry.player_name else ""
            lines.append(
                f"• {entry.played_at:%Y-%m-%d %H:%M} · {who}{entry.difficulty.value} · "
                f"{entry.language.value} · {entry.score} points / {entry.total_rounds} rounds"
            )
        return "\n".join(lines)

    def high_score(self, difficulty: str) -> str:
        try:
            tier_key = Difficulty(difficulty.lower())
        except ValueError as e:
            return f"❌ {e}"
        return f"🏆 High score ({tier_key.value}): {self.score_store.get_high_score(tier_key)}"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def describe_round(self) -> str:
        """Text summary of the active game."""
        if self.controller is None:
            return "No game in progress."

        controller = self.controller
        state = controller.round
        session = controller.session

        if state.status == GameStatus.FINISHED:
            return (
                f"🎉 Game complete! Final score: {session.score} "
                f"({session.rounds_played} rounds). High score: {session.high_score}."
            )

        lines = [
            f"**Round {state.round_index + 1} / {session.tier.rounds}** · "
            f"Score: {session.score} · Status: {state.status.value}"
        ]

        if state.image_loading:
            lines.append("🖼️ Image is being generated...")
        elif state.image_error:
            lines.append("⚠️ Could not load the image. Use retry_image or skip_round.")
        elif state.image_url:
            lines.append("🖼️ Image ready (get_round_image).")

        for letter, option in zip(OPTION_LETTERS, state.options):
            marker = ""
            if state.status == GameStatus.REVEALED:
                if option.id == state.correct_entity.id:
                    marker = " ✅"
                elif option.id == state.selected_option_id:
                    marker = " ❌"
            lines.append(f"{letter}. {option.display_name(controller.language)}{marker}")

        if state.feedback:
            lines.append(state.feedback)
        return "\n".join(lines)

    def current_image(self) -> Optional[str]:
        """Image URL of the current round, if shown."""
        if self.controller is None:
            return None
        return self.controller.round.image_url

    def _resolve_choice(self, controller: RoundController, choice: str) -> str:
        options = controller.round.options
        text = choice.strip()

        if len(text) == 1 and text.upper() in OPTION_LETTERS[: len(options)]:
            return options[OPTION_LETTERS.index(text.upper())].id

        lowered = text.lower()
        for option in options:
            if lowered == option.id or lowered == option.display_name(controller.language).lower():
                return option.id
            if any(lowered == name.lower() for name in option.names.values()):
                return option.id

        raise ValueError(f"'{choice}' does not match any option")


__all__ = ["QuizSessionManager"]
