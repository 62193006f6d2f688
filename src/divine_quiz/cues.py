"""
Feedback cue hooks (sounds, haptics) triggered by round transitions.
"""

from typing import Protocol


class FeedbackCues(Protocol):
    """Protocol for audio or other feedback played by the presentation layer."""

    def play_correct(self) -> None: ...

    def play_incorrect(self) -> None: ...

    def play_transition(self) -> None: ...


class SilentCues:
    """Cues that do nothing. Used when no presentation layer is attached."""

    def play_correct(self) -> None:
        pass

    def play_incorrect(self) -> None:
        pass

    def play_transition(self) -> None:
        pass


__all__ = ["FeedbackCues", "SilentCues"]
