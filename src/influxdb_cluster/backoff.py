"""Backoff strategies used to quarantine failing hosts.

Strategies are immutable: ``next()`` and ``reset()`` hand back new instances,
so a single template can be shared by every host in a pool.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import random


class BackoffStrategy(ABC):
    """Abstract base class for backoff policies."""

    @abstractmethod
    def get_delay(self) -> int:
        """Return the current delay in milliseconds."""

    @abstractmethod
    def next(self) -> "BackoffStrategy":
        """Return a strategy representing one more consecutive failure."""

    @abstractmethod
    def reset(self) -> "BackoffStrategy":
        """Return a strategy in the zero-failure state."""


class ExponentialBackoff(BackoffStrategy):
    """Exponential backoff, ``min(max, initial * 2 ** (n - jitter))``.

    ``random`` is the upper bound of the value subtracted from the failure
    count on every ``get_delay()`` call, which spreads recoveries of hosts
    that failed together.
    """

    def __init__(self, initial: int = 300, max: int = 10 * 1000, random: float = 1, counter: int = 0) -> None:
        if initial < 0 or max < 0:
            raise ValueError("initial and max must be non-negative")
        if random < 0:
            raise ValueError("random must be non-negative")
        self.initial = initial
        self.max = max
        self.random = random
        self._counter = counter

    @property
    def counter(self) -> int:
        return self._counter

    def get_delay(self) -> int:
        count = self._counter - round(random.random() * self.random)
        return int(min(self.max, self.initial * 2 ** max(count, 0)))

    def next(self) -> "ExponentialBackoff":
        return ExponentialBackoff(self.initial, self.max, self.random, self._counter + 1)

    def reset(self) -> "ExponentialBackoff":
        return ExponentialBackoff(self.initial, self.max, self.random)

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(initial={self.initial}, max={self.max}, "
            f"random={self.random}, counter={self._counter})"
        )


class ConstantBackoff(BackoffStrategy):
    """Constant delay with optional jitter in ``delay * (1 +/- jitter)``."""

    def __init__(self, delay: int, jitter: float = 0) -> None:
        self.delay = max(delay, 0)
        self.jitter = min(max(jitter, 0), 1)

    def get_delay(self) -> int:
        if self.jitter <= 0:
            return int(self.delay)
        low = self.delay * (1 - self.jitter)
        high = self.delay * (1 + self.jitter)
        return int(round(random.uniform(low, high)))

    def next(self) -> "ConstantBackoff":
        return self

    def reset(self) -> "ConstantBackoff":
        return self

    def __repr__(self) -> str:
        return f"ConstantBackoff(delay={self.delay}, jitter={self.jitter})"
