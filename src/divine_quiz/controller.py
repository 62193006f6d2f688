"""
Round controller: the quiz state machine.

Owns the current round and game session, mediates every transition
(start/next round, answer, skip, retry, restart, exit) and reconciles
image generation results that arrive in the background.

Statuses move ``idle -> playing -> revealed -> (playing | finished)``.
Transitions are synchronous and must be called from inside a running
event loop; generation calls complete later as separate events.

A completion is applied only when it carries the tag of the request the
controller currently treats as authoritative: same round id, same entity
id, latest ticket. Anything else belongs to a round the player has moved
past (or to a superseded retry) and is dropped. There is no cancellation
of the external call.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional

from shortuuid import random as shortuuid_random

from .catalog import EntityCatalog
from .cues import FeedbackCues, SilentCues
from .errors import RoundStateError
from .generation.base import GenerationService
from .models import (
    DEFAULT_LANGUAGE,
    Difficulty,
    GameHistoryEntry,
    GameSession,
    GameStatus,
    GenerationResult,
    Language,
    RoundState,
    TierSettings,
)
from .prefetch import RoundPackage, RoundPrefetcher
from .scores import ScoreStore

logger = logging.getLogger("divine-quiz")


@dataclass(frozen=True)
class RequestTag:
    """Identity of one generation request the controller awaits."""
    round_id: str
    entity_id: str
    ticket: int


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of ``RoundController.answer``.

    Attributes:
        correct: Whether the selected option was the right entity.
        points_awarded: Tier points if correct, else 0.
        feedback: Message naming the correct entity in the display language.
        score: Session score after the answer.
        rounds_played: Rounds played after the answer.
        new_high_score: The answer raised the tier's high score.
        finished: The answer ended the game.
    """
    correct: bool
    points_awarded: int
    feedback: str
    score: int
    rounds_played: int
    new_high_score: bool
    finished: bool


class RoundController:
    """Quiz state machine for one player.

    Args:
        catalog: Entity source.
        generation: Image generation service.
        score_store: High score and history recorder.
        tier: Settings of the selected difficulty.
        difficulty: Tier key used for high scores and history.
        language: Display language for names and descriptions.
        player_name: Recorded with the game history entry.
        cues: Feedback cue hooks. Defaults to ``SilentCues``.
        rng: Random source shared with the prefetcher.
        prefetcher: Custom prefetcher; built from the other arguments if None.

    Usage:
        controller = RoundController(catalog, service, store, tier, Difficulty.EASY)
        controller.start()
        await controller.wait_for_image()
        outcome = controller.answer(controller.round.options[0].id)
        controller.start()  # next round, consumes the prefetched package
    """

    def __init__(
        self,
        catalog: EntityCatalog,
        generation: GenerationService,
        score_store: ScoreStore,
        tier: TierSettings,
        difficulty: Difficulty,
        language: Language = DEFAULT_LANGUAGE,
        player_name: Optional[str] = None,
        cues: FeedbackCues | None = None,
        rng: random.Random | None = None,
        prefetcher: RoundPrefetcher | None = None,
    ) -> None:
        self.catalog = catalog
        self.generation = generation
        self.score_store = score_store
        self.tier = tier
        self.difficulty = difficulty
        self.language = language
        self.player_name = player_name
        self.cues = cues or SilentCues()
        self.rng = rng or random.Random()
        self.prefetcher = prefetcher or RoundPrefetcher(
            catalog, generation, tier, language, rng=self.rng,
        )

        self.round = RoundState()
        self.session = self._new_session()
        self.history_entry: Optional[GameHistoryEntry] = None

        self._listeners: list[Callable[["RoundController"], None]] = []
        self._loads: set[asyncio.Task] = set()
        self._current_load: Optional[asyncio.Task] = None
        self._ticket = 0

        logger.debug(
            f"RoundController created: {difficulty.value}, {tier.rounds} rounds, "
            f"{tier.options} options, language={language.value}"
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def status(self) -> GameStatus:
        return self.round.status

    @property
    def pending_loads(self) -> int:
        """Loader tasks still waiting for a generation call, stale ones included."""
        return len(self._loads)

    def subscribe(self, callback: Callable[["RoundController"], None]) -> None:
        """Register a callback invoked with the controller after every state change.

        Args:
            callback: Function receiving the controller.
        """
        self._listeners.append(callback)

    async def wait_for_image(self) -> None:
        """Wait until the authoritative generation call of the current round completes."""
        if self._current_load is not None:
            await self._current_load

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the first round or advance to the next one.

        Valid from ``idle`` or ``revealed``. Goes straight to ``finished``
        when every round has been played.

        Raises:
            RoundStateError: If a round is in play or the game is over.
        """
        if self.round.status not in (GameStatus.IDLE, GameStatus.REVEALED):
            raise RoundStateError(f"Cannot start a new round while {self.round.status.value}")

        if self.session.is_complete:
            self._finish()
            self._notify()
            return

        if self.session.rounds_played > 0:
            self.cues.play_transition()

        self._begin_round(self._acquire_package(), preload_after=False)

    next_round = start

    def answer(self, option_id: str) -> AnswerOutcome:
        """Submit an answer for the current round.

        Args:
            option_id: Id of the selected option.

        Returns:
            The scored outcome.

        Raises:
            RoundStateError: If no round is playing or its image is not shown yet.
            ValueError: If ``option_id`` is not one of the round's options.
        """
        if self.round.status != GameStatus.PLAYING:
            raise RoundStateError(f"Cannot answer while {self.round.status.value}")
        if self.round.image_url is None:
            raise RoundStateError("Cannot answer before the image is shown")

        selected = next((option for option in self.round.options if option.id == option_id), None)
        if selected is None:
            raise ValueError(f"'{option_id}' is not an option of the current round")

        correct_entity = self.round.correct_entity
        correct = selected.id == correct_entity.id
        points = self.tier.points if correct else 0

        self.session.score += points
        self.session.rounds_played += 1
        new_high_score = self._update_high_score()

        name = correct_entity.display_name(self.language)
        feedback = f"Correct! It is {name}." if correct else f"Incorrect. This is {name}."

        self.round.status = GameStatus.REVEALED
        self.round.selected_option_id = selected.id
        self.round.feedback = feedback

        if correct:
            self.cues.play_correct()
        else:
            self.cues.play_incorrect()

        logger.debug(
            f"Round {self.round.round_index + 1}: answered {selected.id}, "
            f"correct={correct}, score={self.session.score}"
        )

        if self.session.is_complete:
            self._finish()
        else:
            self.prefetcher.preload()

        self._notify()

        return AnswerOutcome(
            correct=correct,
            points_awarded=points,
            feedback=feedback,
            score=self.session.score,
            rounds_played=self.session.rounds_played,
            new_high_score=new_high_score,
            finished=self.round.status == GameStatus.FINISHED,
        )

    def skip(self) -> None:
        """Skip the current round without scoring it.

        Raises:
            RoundStateError: If no round is playing.
        """
        if self.round.status != GameStatus.PLAYING:
            raise RoundStateError(f"Cannot skip while {self.round.status.value}")

        self.cues.play_transition()
        self.session.rounds_played += 1
        logger.debug(f"Skipped round {self.round.round_index + 1} ({self.round.correct_entity.id})")

        if self.session.is_complete:
            self._finish()
            self._notify()
            return

        self._begin_round(self._acquire_package(), preload_after=True)

    def retry(self) -> None:
        """Request a new image for the current round's entity.

        Does not touch the score or round count. Starts a round instead
        when none exists yet.

        Raises:
            RoundStateError: If the game is finished.
        """
        if self.round.status == GameStatus.FINISHED:
            raise RoundStateError("Cannot retry after the game is finished")

        self.cues.play_transition()

        if self.round.correct_entity is None:
            self.start()
            return

        self.round.image_url = None
        self.round.image_error = False
        self.round.image_loading = True
        self.round.feedback = None

        logger.debug(f"Retrying image for {self.round.correct_entity.id}")
        pending = self.prefetcher.start_generation(self.round.correct_entity)
        self._track(pending, preload_after=False)
        self._notify()

    def restart(self) -> None:
        """Discard the session and any prefetched package, then start over."""
        self.cues.play_transition()
        self.prefetcher.discard()
        self._invalidate_requests()

        self.session = self._new_session()
        self.round = RoundState()
        self.history_entry = None
        logger.info(f"Restarting {self.difficulty.value} game")

        self._notify()
        self.start()

    def exit(self) -> Optional[GameHistoryEntry]:
        """Leave the game, reporting it if rounds were played and it was not reported yet.

        Returns:
            The history entry of the game, if any.
        """
        if not self.session.recorded and self.session.rounds_played > 0:
            self._record_game()

        self.prefetcher.discard()
        self._invalidate_requests()
        if self.round.status != GameStatus.FINISHED:
            self.round = RoundState()

        logger.info(
            f"Exited game: score={self.session.score}, rounds={self.session.rounds_played}"
        )
        self._notify()
        return self.history_entry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _new_session(self) -> GameSession:
        return GameSession(
            difficulty=self.difficulty,
            tier=self.tier,
            language=self.language,
            high_score=self._load_high_score(),
            player_name=self.player_name,
        )

    def _acquire_package(self) -> RoundPackage:
        return self.prefetcher.consume() or self.prefetcher.build_package()

    def _begin_round(self, package: RoundPackage, preload_after: bool) -> None:
        self.round = RoundState(
            round_id=shortuuid_random(length=8),
            correct_entity=package.entity,
            options=list(package.options),
            status=GameStatus.PLAYING,
            round_index=self.session.rounds_played,
            image_loading=True,
        )
        logger.debug(
            f"Round {self.round.round_index + 1}/{self.tier.rounds} started "
            f"({package.entity.id}, package {package.package_id})"
        )
        self._track(package.pending, preload_after)
        self._notify()

    def _track(self, pending: asyncio.Task, preload_after: bool) -> None:
        self._ticket += 1
        tag = RequestTag(
            round_id=self.round.round_id,
            entity_id=self.round.correct_entity.id,
            ticket=self._ticket,
        )
        loader = asyncio.get_running_loop().create_task(
            self._await_generation(tag, pending, preload_after)
        )
        self._loads.add(loader)
        loader.add_done_callback(self._loads.discard)
        self._current_load = loader

    def _is_current(self, tag: RequestTag) -> bool:
        entity = self.round.correct_entity
        return (
            tag.ticket == self._ticket
            and tag.round_id == self.round.round_id
            and entity is not None
            and tag.entity_id == entity.id
        )

    def _invalidate_requests(self) -> None:
        self._ticket += 1
        self._current_load = None

    async def _await_generation(
        self,
        tag: RequestTag,
        pending: asyncio.Task,
        preload_after: bool,
    ) -> None:
        try:
            result: GenerationResult = await pending
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._is_current(tag):
                logger.debug(f"Dropping stale generation failure for {tag.entity_id}")
                return
            logger.warning(f"Image generation failed for {tag.entity_id}: {e}")
            self.round.image_loading = False
            self.round.image_error = True
            self._notify()
            return

        if not self._is_current(tag):
            logger.debug(f"Dropping stale image for {tag.entity_id} (round {tag.round_id})")
            return

        self.round.image_url = result.image_url
        self.round.correct_entity = self.round.correct_entity.with_description(result.description)
        self.round.image_loading = False
        self.round.image_error = False
        self._notify()

        # A listener may have moved the game on
        if not self._is_current(tag):
            return
        if preload_after and self.session.rounds_played + 1 < self.tier.rounds:
            self.prefetcher.preload()

    def _load_high_score(self) -> int:
        try:
            return self.score_store.get_high_score(self.difficulty)
        except Exception as e:
            logger.warning(f"Could not read high score for {self.difficulty.value}: {e}")
            return 0

    def _update_high_score(self) -> bool:
        if self.session.score <= self.session.high_score:
            return False

        self.session.high_score = self.session.score
        try:
            self.score_store.set_high_score(self.difficulty, self.session.score)
        except Exception as e:
            logger.warning(f"Could not persist high score: {e}", exc_info=True)
        return True

    def _finish(self) -> None:
        self.round.status = GameStatus.FINISHED
        self.round.image_loading = False
        self.prefetcher.discard()
        self._invalidate_requests()
        if not self.session.recorded:
            self._record_game()
        logger.info(
            f"Game finished: score={self.session.score}, rounds={self.session.rounds_played} "
            f"({self.prefetcher.stats.to_summary()})"
        )

    def _record_game(self) -> None:
        self.session.recorded = True
        try:
            self.history_entry = self.score_store.record_game(
                score=self.session.score,
                total_rounds=self.session.rounds_played,
                difficulty=self.difficulty,
                language=self.language,
                player_name=self.player_name,
            )
        except Exception as e:
            logger.warning(f"Could not record game history: {e}", exc_info=True)

    def _notify(self) -> None:
        for callback in self._listeners:
            try:
                callback(self)
            except Exception as e:
                logger.error(f"Error in round state callback: {e}", exc_info=True)


__all__ = [
    "RoundController",
    "AnswerOutcome",
    "RequestTag",
]
