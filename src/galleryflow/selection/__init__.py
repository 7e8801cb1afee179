"""Random selection over the detected image population."""

from .completion import CompletionLatch
from .random_selector import MIN_HEURISTIC_BOUND, RandomSelector

__all__ = ["CompletionLatch", "MIN_HEURISTIC_BOUND", "RandomSelector"]
