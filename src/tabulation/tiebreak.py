"""
Tie-break oracle.

Both engines settle every tie through a single primitive, ``choose_one(n)``,
which picks an index in ``[0, n)``. Engines take the oracle as a constructor
argument so a run can be seeded or scripted without touching engine logic.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

import numpy as np

logger = logging.getLogger(__name__)


class TieBreaker(ABC):
    """Chooses one of ``n`` tied entries."""

    def choose_one(self, n: int) -> int:
        """
        Pick the index of the winning entry.

        Args:
            n: Number of tied entries

        Returns:
            Index in ``[0, n)``

        Raises:
            ValueError: If n is not positive
        """
        if n <= 0:
            raise ValueError(f"Cannot break a tie among {n} entries")
        choice = self._choose(n)
        logger.debug(f"Tie among {n} entries resolved to index {choice}")
        return choice

    @abstractmethod
    def _choose(self, n: int) -> int:
        ...


class RandomTieBreaker(TieBreaker):
    """
    Uniform random tie-breaking (a fair coin toss for two entries).

    Args:
        seed: Seed for the numpy generator; the same seed replays the same
            sequence of draws
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def _choose(self, n: int) -> int:
        return int(self._rng.integers(0, n))


class ScriptedTieBreaker(TieBreaker):
    """Replays a fixed sequence of choices, in order."""

    def __init__(self, choices: Iterable[int]):
        self._choices = list(choices)
        self._position = 0

    @property
    def remaining(self) -> int:
        return len(self._choices) - self._position

    def _choose(self, n: int) -> int:
        if self._position >= len(self._choices):
            raise RuntimeError("Scripted tie-breaker has no choices left")
        choice = self._choices[self._position]
        if not 0 <= choice < n:
            raise ValueError(f"Scripted choice {choice} is outside [0, {n})")
        self._position += 1
        return choice
