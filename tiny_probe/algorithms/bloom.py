"""
Bloom Filter implementation for tiny-probe.

This module provides a Bloom Filter, a space-efficient probabilistic data
structure used for testing set membership with a tunable false positive rate
and no false negatives, together with the union and intersection of filters
of identical shape.

Bucket positions are derived from a single call to the filter's hash
function. The 64-bit hash word is split into two values by shifting it left
and right by four bits, and the k positions are then generated by double
hashing in unsigned 64-bit arithmetic:

    position_n = (hash_a + n * hash_b) mod 2**64 mod num_buckets

This approximates k independent hash functions with one hash call. The exact
derivation determines which bits a value touches, so changing it changes the
contents of every filter.

References:
    - Bloom, B. H. (1970). Space/time trade-offs in hash coding with allowable errors.
      Communications of the ACM, 13(7), 422-426.
    - Kirsch, A., Mitzenmacher, M. (2008). Less hashing, same performance:
      Building a better Bloom filter. Random Structures & Algorithms, 33(2), 187-218.
"""

import array
import logging
import math
import operator
import sys
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from tiny_probe.core.base import MembershipTester
from tiny_probe.core.exceptions import (
    InvalidConfigurationError,
    ShapeMismatchError,
    require_count,
)
from tiny_probe.core.hash import MASK_64, HashFunction, python_hash

logger = logging.getLogger(__name__)

T = TypeVar("T")  # Type for the items being recorded

# Half the byte width of the 64-bit hash word, used as a bit count.
_HASH_SPLIT_SHIFT = 8 // 2


class BloomFilter(MembershipTester[T]):
    """
    Bloom Filter for approximate set membership testing.

    A query returns either "possibly recorded" or "definitely not recorded".
    Recorded values are never forgotten: bits are only ever set, so there is
    no removal and no way to clear a filter.

    Example:
        # Size a filter for 1000 values with a 1% false positive rate
        bloom = BloomFilter.make(1000, 0.01)

        bloom.record("apple")
        bloom.record("banana")

        bloom.contains("apple")   # True
        "orange" in bloom         # False (most likely)

        # Combine with a filter of the same shape
        both = bloom | other_bloom
    """

    def __init__(
        self,
        num_buckets: int,
        num_hashes: int,
        hash_function: Optional[HashFunction] = None,
    ):
        """
        Initialize an empty Bloom filter with explicit parameters.

        Args:
            num_buckets: Number of bits in the filter.
            num_hashes: Number of bucket positions derived per value.
            hash_function: Callable mapping a value to an integer. Defaults to
                           the built-in hash() reduced to 64 bits.

        Raises:
            InvalidConfigurationError: If num_buckets or num_hashes is not an
                integer or is less than 1.
        """
        super().__init__()

        self._num_buckets = require_count("num_buckets", num_buckets, 1)
        self._num_hashes = require_count("num_hashes", num_hashes, 1)
        self._hash_function: HashFunction = hash_function or python_hash

        # One bit per bucket, eight buckets per byte
        self._bytes = array.array("B", bytes((self._num_buckets + 7) // 8))

        logger.debug(
            "BloomFilter created: num_buckets=%d, num_hashes=%d, hash_function=%s",
            self._num_buckets,
            self._num_hashes,
            getattr(self._hash_function, "__name__", repr(self._hash_function)),
        )

    @staticmethod
    def optimal_parameters(
        max_count: int, false_positive_rate: float
    ) -> Tuple[int, int]:
        """
        Calculate the filter shape for an expected count and error target.

        Uses k = ceil(log2(1 / p)) and m = ceil(n * k / ln 2). Rounding up on
        both keeps the filter from being under-provisioned.

        Args:
            max_count: Expected number of values to be recorded.
            false_positive_rate: Target false positive rate (between 0 and 1).

        Returns:
            A (num_buckets, num_hashes) tuple.

        Raises:
            InvalidConfigurationError: If max_count is not an integer of at
                least 1, or if false_positive_rate is not strictly between
                0 and 1.
        """
        require_count("max_count", max_count, 1)
        if not (0 < false_positive_rate < 1):
            raise InvalidConfigurationError(
                "False positive rate must be between 0 and 1"
            )

        # -ln(p) rather than ln(1/p): 1/p overflows for subnormal rates
        ideal_num_hashes = -math.log(false_positive_rate) / math.log(2)
        num_hashes = math.ceil(ideal_num_hashes)

        ideal_num_buckets = max_count * (num_hashes / math.log(2))
        num_buckets = math.ceil(ideal_num_buckets)

        return num_buckets, num_hashes

    @classmethod
    def make(
        cls,
        max_count: int,
        false_positive_rate: float,
        hash_function: Optional[HashFunction] = None,
    ) -> "BloomFilter[T]":
        """
        Create a filter sized for an expected count and false positive rate.

        Args:
            max_count: Expected number of values to be recorded.
            false_positive_rate: Target false positive rate (between 0 and 1).
            hash_function: Optional hash function, see __init__.

        Returns:
            A new, empty BloomFilter.

        Raises:
            InvalidConfigurationError: If the parameters are out of range.
        """
        num_buckets, num_hashes = cls.optimal_parameters(
            max_count, false_positive_rate
        )
        return cls(num_buckets, num_hashes, hash_function=hash_function)

    @property
    def num_buckets(self) -> int:
        """Number of bits in the filter."""
        return self._num_buckets

    @property
    def num_hashes(self) -> int:
        """Number of bucket positions derived per value."""
        return self._num_hashes

    @property
    def hash_function(self) -> HashFunction:
        """The function mapping values to the hash word split into positions."""
        return self._hash_function

    def _split_hash(self, item: T) -> Tuple[int, int]:
        """
        Hash an item once and split the word into the two double-hashing bases.
        """
        word = self._hash_function(item) & MASK_64
        hash_a = (word << _HASH_SPLIT_SHIFT) & MASK_64
        hash_b = word >> _HASH_SPLIT_SHIFT
        return hash_a, hash_b

    def _get_bit_positions(self, item: T) -> List[int]:
        """
        Generate the bucket positions for an item.

        Args:
            item: The item to hash.

        Returns:
            List of num_hashes bucket positions (may contain repeats).
        """
        hash_a, hash_b = self._split_hash(item)
        return [
            ((hash_a + n * hash_b) & MASK_64) % self._num_buckets
            for n in range(self._num_hashes)
        ]

    def _set_bit(self, position: int) -> None:
        self._bytes[position // 8] |= 1 << (position % 8)

    def _test_bit(self, position: int) -> bool:
        return bool(self._bytes[position // 8] & (1 << (position % 8)))

    def record(self, value: T) -> None:
        """
        Record a value in the filter.

        Sets every bucket derived from the value. Recording the same value
        again leaves the bits unchanged.

        Args:
            value: The value to record.
        """
        super().update(value)

        for position in self._get_bit_positions(value):
            self._set_bit(position)

    def update(self, item: T) -> None:
        """Record an item; the generic stream-summary entry point."""
        self.record(item)

    def record_many(self, values: Iterable[T]) -> None:
        """Record every value of an iterable."""
        for value in values:
            self.record(value)

    def contains(self, item: T) -> bool:
        """
        Test if an item might have been recorded.

        Args:
            item: The item to test.

        Returns:
            True if the item might be in the set, False if definitely not in the set.
        """
        for position in self._get_bit_positions(item):
            if not self._test_bit(position):
                return False

        return True

    def num_buckets_populated(self) -> int:
        """Count the buckets currently set."""
        return sum(bin(byte).count("1") for byte in self._bytes)

    @property
    def fill_ratio(self) -> float:
        """Fraction of buckets currently set."""
        return self.num_buckets_populated() / self._num_buckets

    def is_empty(self) -> bool:
        """Check whether no bucket has been set yet."""
        return not any(self._bytes)

    def __eq__(self, other: object) -> bool:
        """
        Structural equality: same hash count and identical bit arrays.

        The hash function is not compared, and neither is the number of
        items recorded.
        """
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return (
            self._num_hashes == other._num_hashes
            and self._num_buckets == other._num_buckets
            and self._bytes == other._bytes
        )

    # Filters are mutable, so they are not usable as dict keys
    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(num_buckets={self._num_buckets}, "
            f"num_hashes={self._num_hashes})"
        )

    def union(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        """Return a new filter holding the bitwise OR of both filters."""
        return filter_union(self, other)

    def intersection(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        """Return a new filter holding the bitwise AND of both filters."""
        return filter_intersection(self, other)

    def merge(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        """
        Merge this Bloom filter with another one.

        The merged filter answers "possibly recorded in either filter"; it is
        the same as ``union``.
        """
        return filter_union(self, other)

    def __or__(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return filter_union(self, other)

    def __and__(self, other: "BloomFilter[T]") -> "BloomFilter[T]":
        if not isinstance(other, BloomFilter):
            return NotImplemented
        return filter_intersection(self, other)

    def estimate_cardinality(self) -> int:
        """
        Estimate the number of distinct values recorded.

        Uses n ≈ -m * ln(1 - X/m) / k, where X is the number of set bits.
        The estimate degrades as the filter saturates and is capped at the
        number of record calls.

        Returns:
            Estimated number of distinct values.
        """
        set_bits = self.num_buckets_populated()
        if set_bits == 0:
            return 0
        if set_bits >= self._num_buckets:
            return self._items_processed

        estimate = (
            -self._num_buckets
            * math.log(1.0 - set_bits / self._num_buckets)
            / self._num_hashes
        )
        return min(max(0, int(round(estimate))), self._items_processed)

    def false_positive_probability(self) -> float:
        """
        Estimate the current false positive probability from the fill ratio.

        Returns:
            (X/m)^k, where X is the number of set bits.
        """
        return min(1.0, self.fill_ratio**self._num_hashes)

    def estimate_size(self) -> int:
        size = super().estimate_size()
        size += sys.getsizeof(self._bytes)
        return size

    def error_bounds(self) -> Dict[str, Any]:
        """
        Calculate the theoretical false positive rate for the current load.

        Uses (1 - e^(-k*n/m))^k with n taken as the number of record calls,
        which overstates the rate when values were recorded more than once.
        """
        bounds = super().error_bounds()

        items = self._items_processed
        if items > 0:
            load = (self._num_hashes * items) / self._num_buckets
            bounds["load_factor"] = items / self._num_buckets
            bounds["current_theoretical_fpp"] = min(
                1.0, (1.0 - math.exp(-load)) ** self._num_hashes
            )

        return bounds

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()

        set_bits = self.num_buckets_populated()
        stats.update(
            {
                "num_buckets": self._num_buckets,
                "num_hashes": self._num_hashes,
                "buckets_populated": set_bits,
                "fill_ratio": set_bits / self._num_buckets,
                "bytes": len(self._bytes),
                "estimated_unique_items": self.estimate_cardinality(),
                "current_fpp": self.false_positive_probability(),
            }
        )
        return stats


def _check_same_shape(lhs: BloomFilter, rhs: BloomFilter, operation: str) -> None:
    lhs._check_same_type(rhs)

    if lhs.num_hashes != rhs.num_hashes:
        raise ShapeMismatchError(
            f"Number of hashes does not match for {operation}: "
            f"{lhs.num_hashes} and {rhs.num_hashes}"
        )
    if lhs.num_buckets != rhs.num_buckets:
        raise ShapeMismatchError(
            f"Number of buckets does not match for {operation}: "
            f"{lhs.num_buckets} and {rhs.num_buckets}"
        )

    if lhs.hash_function is not rhs.hash_function:
        logger.warning(
            "Computing %s of Bloom filters built with different hash functions; "
            "the result keeps the hash function of the left operand",
            operation,
        )


def _combine(
    lhs: BloomFilter,
    rhs: BloomFilter,
    combine_bytes: Callable[[int, int], int],
    operation: str,
) -> BloomFilter:
    _check_same_shape(lhs, rhs, operation)

    result = lhs.__class__(
        lhs.num_buckets, lhs.num_hashes, hash_function=lhs.hash_function
    )
    result._bytes = array.array(
        "B", (combine_bytes(a, b) for a, b in zip(lhs._bytes, rhs._bytes))
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Bloom filter %s: %d and %d buckets populated -> %d",
            operation,
            lhs.num_buckets_populated(),
            rhs.num_buckets_populated(),
            result.num_buckets_populated(),
        )
    return result


def filter_union(lhs: BloomFilter[T], rhs: BloomFilter[T]) -> BloomFilter[T]:
    """
    Combine two filters of identical shape with a bitwise OR.

    The result answers "possibly recorded in lhs or rhs". Neither input is
    modified.

    Args:
        lhs: A BloomFilter.
        rhs: A BloomFilter with the same num_buckets and num_hashes.

    Returns:
        A new BloomFilter using the hash function of lhs.

    Raises:
        TypeError: If rhs is not a BloomFilter.
        ShapeMismatchError: If num_hashes or num_buckets differ.
    """
    result = _combine(lhs, rhs, operator.or_, "union")
    result._items_processed = lhs.items_processed + rhs.items_processed
    return result


def filter_intersection(lhs: BloomFilter[T], rhs: BloomFilter[T]) -> BloomFilter[T]:
    """
    Combine two filters of identical shape with a bitwise AND.

    The result answers "possibly recorded in both lhs and rhs". It is not the
    filter that recording the true intersection would produce: bits set by
    different values in each input survive, so its false positive rate can
    exceed that of either input. Neither input is modified.

    Args:
        lhs: A BloomFilter.
        rhs: A BloomFilter with the same num_buckets and num_hashes.

    Returns:
        A new BloomFilter using the hash function of lhs.

    Raises:
        TypeError: If rhs is not a BloomFilter.
        ShapeMismatchError: If num_hashes or num_buckets differ.
    """
    result = _combine(lhs, rhs, operator.and_, "intersection")
    result._items_processed = min(lhs.items_processed, rhs.items_processed)
    return result
