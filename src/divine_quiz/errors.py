"""
Exception hierarchy for divine-quiz.

Generation failures live in ``divine_quiz.generation.base``; everything the
round lifecycle, catalog and configuration can raise is defined here.
"""


class QuizError(Exception):
    """Base exception for quiz errors."""
    pass


class QuizConfigurationError(QuizError):
    """Raised when the quiz configuration is invalid."""
    pass


class InsufficientCatalogError(QuizConfigurationError):
    """Raised when a tier asks for more options than the catalog can supply."""
    pass


class CatalogError(QuizError):
    """Raised when catalog data is malformed."""
    pass


class RoundStateError(QuizError):
    """Raised when a transition is requested from a status that forbids it."""
    pass


__all__ = [
    "QuizError",
    "QuizConfigurationError",
    "InsufficientCatalogError",
    "CatalogError",
    "RoundStateError",
]
