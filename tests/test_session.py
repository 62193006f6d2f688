"""
Tests for QuizSessionManager, the text layer behind the MCP tools.
"""

import random

import pytest

from divine_quiz.config import QuizConfig
from divine_quiz.generation import GenerationConfigurationError, MockGenerationService
from divine_quiz.models import MAX_OPTIONS, Difficulty, GameStatus, TierSettings
from divine_quiz.scores import JsonScoreStore
from divine_quiz.session import OPTION_LETTERS, QuizSessionManager

pytestmark = pytest.mark.anyio


@pytest.fixture
def config(tmp_path) -> QuizConfig:
    return QuizConfig(
        data_dir=tmp_path,
        default_difficulty=Difficulty.EASY,
        tiers={
            Difficulty.EASY: TierSettings(label="Seeker", rounds=2, options=3, points=10, quality=Difficulty.EASY),
            Difficulty.HARD: TierSettings(label="Sage", rounds=3, options=6, points=30, quality=Difficulty.HARD),
        },
    )


@pytest.fixture
def manager(config, catalog, tmp_path) -> QuizSessionManager:
    return QuizSessionManager(
        config=config,
        catalog=catalog,
        score_store=JsonScoreStore(tmp_path),
        generation_factory=MockGenerationService,
        rng=random.Random(9),
    )


class TestStartGame:

    async def test_start_game_describes_first_round(self, manager):
        text = manager.start_game(player_name="Meera")

        assert text.startswith("🕉️ Welcome, Meera! Seeker path: 2 rounds, 3 options")
        assert "**Round 1 / 2**" in text
        assert "A. " in text and "C. " in text
        assert "Image is being generated" in text

    async def test_language_and_difficulty_are_case_insensitive(self, manager):
        manager.start_game(difficulty="HARD", language="tamil")

        assert manager.controller.difficulty == Difficulty.HARD
        assert manager.controller.language.value == "Tamil"
        assert len(manager.controller.round.options) == 6

    async def test_invalid_difficulty(self, manager):
        assert manager.start_game(difficulty="legendary").startswith("❌")
        assert manager.controller is None

    async def test_unconfigured_tier(self, manager):
        assert manager.start_game(difficulty="medium").startswith("❌ Cannot start a game")

    async def test_missing_api_key_reported(self, config, catalog, tmp_path):
        def factory():
            raise GenerationConfigurationError("Gemini API key is required.")

        manager = QuizSessionManager(config, catalog, JsonScoreStore(tmp_path), factory)

        assert manager.start_game() == "❌ Cannot start a game: Gemini API key is required."

    async def test_new_game_records_previous_one(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        manager.answer("A")

        manager.start_game()

        [entry] = manager.score_store.list_history()
        assert entry.total_rounds == 1


class TestPlaying:

    async def test_answer_by_letter(self, manager):
        manager.start_game()
        text = await manager.wait_for_image()
        assert "Image ready" in text

        reply = manager.answer("a")

        assert reply.startswith(("✅", "❌"))
        assert "Call next_round to continue." in reply
        assert manager.controller.status == GameStatus.REVEALED

    async def test_answer_by_name(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        correct = manager.controller.round.correct_entity

        reply = manager.answer(correct.default_name.upper())

        assert reply.startswith("✅ Correct!")
        assert f"_{correct.default_name} is a revered deity._" in reply
        assert "Score: 10 (+10)" in reply
        assert "🏆 New high score!" in reply

    async def test_answer_before_image(self, manager):
        manager.start_game()
        assert manager.answer("A") == "❌ Cannot answer before the image is shown"

    async def test_unknown_choice(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        assert manager.answer("Zeus").startswith("❌ 'Zeus' does not match")

    async def test_revealed_round_marks_options(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        correct = manager.controller.round.correct_entity
        manager.answer(correct.id)

        assert f"{correct.default_name} ✅" in manager.describe_round()

    async def test_full_game(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        manager.answer("B")
        assert "Round 2 / 2" in manager.next_round()
        await manager.wait_for_image()

        text = manager.skip()

        assert "🎉 Game complete! Final score:" in text
        assert "(2 rounds)" in text
        assert manager.next_round().startswith("❌")
        assert "2 rounds" in manager.history()

    async def test_retry_and_restart(self, manager):
        manager.start_game()
        assert manager.retry().startswith("🔄")
        assert manager.restart().startswith("🔁 New game started.")
        assert manager.controller.session.rounds_played == 0

    async def test_retry_after_finish(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        manager.answer("A")
        manager.next_round()
        manager.skip()

        assert manager.retry() == "❌ Cannot retry after the game is finished"

    def test_every_option_gets_a_letter(self):
        assert len(OPTION_LETTERS) == MAX_OPTIONS

    async def test_current_image(self, manager):
        assert manager.current_image() is None
        manager.start_game()
        await manager.wait_for_image()
        assert manager.current_image() == "data:image/png;base64,AAAA"


class TestWithoutGame:

    async def test_operations_need_a_game(self, manager):
        assert manager.answer("A").startswith("❌ No game in progress")
        assert manager.skip().startswith("❌")
        assert (await manager.wait_for_image()).startswith("❌")
        assert manager.describe_round() == "No game in progress."

    async def test_exit_game(self, manager):
        manager.start_game()
        await manager.wait_for_image()
        manager.answer("A")

        text = manager.exit_game()

        assert text.startswith("👋 Left the game with")
        assert "Recorded as game" in text
        assert manager.controller is None


class TestScores:

    def test_history_empty(self, manager):
        assert manager.history() == "📜 No games recorded yet."

    def test_history_lists_games(self, manager):
        manager.score_store.record_game(30, 3, Difficulty.HARD, manager.config.default_language, player_name="Arjun")

        text = manager.history(difficulty="hard")

        assert "Arjun · hard · English · 30 points / 3 rounds" in text
        assert manager.history(difficulty="easy") == "📜 No games recorded yet."

    def test_high_score(self, manager):
        manager.score_store.set_high_score(Difficulty.HARD, 90)
        assert manager.high_score("Hard") == "🏆 High score (hard): 90"
        assert manager.high_score("mythic").startswith("❌")
