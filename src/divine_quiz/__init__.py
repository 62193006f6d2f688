"""
Divine Quiz - identify Hindu deities from AI-generated images.

The round controller drives the game; the prefetcher prepares the next
round while the current one is being answered.
"""

from .catalog import EntityCatalog
from .config import QuizConfig, load_config
from .controller import AnswerOutcome, RoundController
from .models import *
from .prefetch import RoundPrefetcher
from .scores import JsonScoreStore

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("divine-quiz")
except Exception:
    __version__ = "0.1.0"  # Fallback if metadata unavailable
__all__ = [
    "EntityCatalog",
    "QuizConfig",
    "load_config",
    "RoundController",
    "AnswerOutcome",
    "RoundPrefetcher",
    "JsonScoreStore",
]
