"""
Reservoir Sampling implementation for tiny-probe.

This module provides the standard reservoir sampler (Algorithm R) for
maintaining a uniform random sample of fixed size from a stream of unknown
length with bounded memory.
"""

import logging
import random
import sys
from typing import Any, Dict, Iterable, List, Optional, Protocol, TypeVar

from tiny_probe.core.base import SampleMaintainer
from tiny_probe.core.exceptions import InvalidConfigurationError, require_count

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being processed


class RandomSource(Protocol):
    """Protocol for the random number source used by the sampler."""

    def randint(self, a: int, b: int) -> int:
        """Return a uniformly random integer N such that a <= N <= b."""
        ...


class ReservoirSampler(SampleMaintainer[T]):
    """
    Standard Reservoir Sampling algorithm (Algorithm R).

    Maintains a uniform random sample of at most ``capacity`` values from a
    stream of unknown length. Once n >= capacity values have been processed,
    every one of them is in the sample with probability capacity / n.

    The first ``capacity`` values fill the sample in arrival order. After
    that a selected value overwrites the slot whose index was drawn.

    Example:
        sampler = ReservoirSampler(4, seed=7)
        for line in log_lines:
            sampler.process(line)
        sampler.samples  # four lines, uniformly chosen

    References:
        - Vitter, J. S. (1985). Random sampling with a reservoir.
          ACM Transactions on Mathematical Software, 11(1), 37-57.
    """

    def __init__(
        self,
        capacity: int,
        seed: Optional[int] = None,
        rng: Optional[RandomSource] = None,
    ):
        """
        Initialize a new reservoir sampler.

        Args:
            capacity: The number of samples to maintain. Zero is allowed and
                      yields a sampler that never retains anything.
            seed: Optional random seed for reproducibility.
            rng: Optional random source (anything with ``randint(a, b)``),
                 used instead of a seeded random.Random.

        Raises:
            InvalidConfigurationError: If capacity is not an integer or is
                negative, or if both seed and rng are given.
        """
        super().__init__()

        self._capacity = require_count("capacity", capacity, 0)
        if seed is not None and rng is not None:
            raise InvalidConfigurationError("Pass either a seed or an rng, not both")

        self._reservoir: List[T] = []
        self._random: RandomSource = rng if rng is not None else random.Random(seed)

        logger.debug(
            "ReservoirSampler created: capacity=%d, seed=%s, custom_rng=%s",
            self._capacity,
            seed,
            rng is not None,
        )

    @property
    def num_to_sample(self) -> int:
        """The capacity of the reservoir."""
        return self._capacity

    @property
    def num_processed(self) -> int:
        """The number of values processed so far."""
        return self._items_processed

    @property
    def samples(self) -> List[T]:
        """A copy of the current sample, in slot order."""
        return self._reservoir.copy()

    def process(self, value: T) -> bool:
        """
        Offer a value from the stream to the reservoir.

        Draws r uniformly from [0, n], n being the number of values processed
        before this one. The value is selected when r < capacity: it is
        appended while the reservoir is filling and replaces slot r once it is
        full.

        Args:
            value: The next value of the stream.

        Returns:
            True if the value was selected into the sample.
        """
        random_index = self._random.randint(0, self._items_processed)
        selected = random_index < self._capacity

        if selected:
            if self._items_processed >= self._capacity:
                self._reservoir[random_index] = value
            else:
                self._reservoir.append(value)

        super().update(value)

        return selected

    def update(self, item: T) -> None:
        """Process an item; the generic stream-summary entry point."""
        self.process(item)

    def process_many(self, values: Iterable[T]) -> int:
        """
        Process every value of an iterable.

        Returns:
            The number of values that were selected.
        """
        return sum(1 for value in values if self.process(value))

    def get_sample(self) -> List[T]:
        return self.samples

    def inclusion_probability(self) -> float:
        """
        Probability that any given processed value is currently in the sample.

        Returns:
            capacity / num_processed, capped at 1.0; 0.0 for an empty stream.
        """
        if self._items_processed == 0:
            return 0.0
        return min(1.0, self._capacity / self._items_processed)

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this reservoir in bytes.

        Adds the sample list, the items it holds and the random state to the
        base estimate. Items shared with the caller are counted anyway.
        """
        size = super().estimate_size()
        size += sys.getsizeof(self._reservoir)
        for item in self._reservoir:
            size += sys.getsizeof(item)
        size += sys.getsizeof(self._random)
        return size

    def error_bounds(self) -> Dict[str, Any]:
        """
        Describe the theoretical properties of the sampling process.

        For standard reservoir sampling, the key property is uniformity.
        """
        if self._items_processed == 0:
            prob_str = "N/A (empty stream)"
        elif self._items_processed <= self._capacity:
            prob_str = "1.0 (reservoir not full)"
        else:
            prob_str = (
                f"{self._capacity}/{self._items_processed} "
                f"(≈{self.inclusion_probability():.4f})"
            )

        return {
            "sampling_type": "Uniform Reservoir (Algorithm R)",
            "inclusion_probability": prob_str,
        }

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()

        current_size = len(self._reservoir)
        stats.update(
            {
                "capacity": self._capacity,
                "sample_fullness_pct": (
                    (current_size / self._capacity) * 100 if self._capacity > 0 else 0
                ),
            }
        )
        return stats

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(capacity={self._capacity}, "
            f"num_processed={self._items_processed})"
        )
