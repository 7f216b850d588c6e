"""
Base classes and interfaces for tiny-probe data structures.

This module defines the abstract base classes that the probabilistic and
streaming structures implement, so that they share a consistent interface
for feeding items, querying results and inspecting their internal state.
"""

import abc
import sys
from typing import Any, Dict, Generic, List, TypeVar

T = TypeVar("T")  # Type for the items being processed
R = TypeVar("R")  # Type for the result of queries


class StreamSummary(Generic[T, R], abc.ABC):
    """
    Abstract base class for all in-memory stream structures.

    Subclasses consume items one at a time through ``update`` and answer
    questions about what they have seen through ``query``. Every structure
    counts the items it has been fed and can describe its own state through
    ``get_stats`` and ``error_bounds``.
    """

    def __init__(self) -> None:
        self._items_processed = 0

    @abc.abstractmethod
    def update(self, item: T) -> None:
        """
        Update the summary with a new item from the stream.

        Args:
            item: The new item to process.
        """
        self._items_processed += 1

    @abc.abstractmethod
    def query(self, *args: Any, **kwargs: Any) -> R:
        """
        Query the current state of the summary.

        The parameters and return value depend on the specific structure.
        """
        pass

    def _check_same_type(self, other: Any) -> None:
        """
        Check that another object is a structure of the same type.

        Raises:
            TypeError: If other is not of the same type.
        """
        if not isinstance(other, self.__class__):
            raise TypeError(
                f"Cannot combine {self.__class__.__name__} "
                f"with {other.__class__.__name__}"
            )

    def estimate_size(self) -> int:
        """
        Estimate the current memory usage of this structure in bytes.

        This is a rough figure covering the object and its instance
        dictionary. Subclasses add the size of their own storage.

        Returns:
            Estimated memory usage in bytes.
        """
        size = sys.getsizeof(self)
        if hasattr(self, "__dict__"):
            size += sys.getsizeof(self.__dict__)
        return size

    def error_bounds(self) -> Dict[str, Any]:
        """
        Get the theoretical error characteristics of this structure.

        The base implementation returns an empty dictionary.
        """
        return {}

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the current state of the structure.

        Subclasses extend the returned dictionary with their own figures
        while calling ``super().get_stats()``.

        Returns:
            A dictionary containing statistics about the structure's state.
        """
        stats: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "items_processed": self._items_processed,
            "memory_bytes": self.estimate_size(),
        }
        stats.update(self.error_bounds())
        return stats

    @property
    def items_processed(self) -> int:
        """Get the total number of items fed to this structure."""
        return self._items_processed


class SampleMaintainer(StreamSummary[T, List[T]], abc.ABC):
    """
    Abstract base class for structures that maintain a sample of the stream.
    """

    @abc.abstractmethod
    def get_sample(self) -> List[T]:
        """
        Get the current sample maintained by the structure.

        Returns:
            A list containing the current sample.
        """
        pass

    def query(self, *args: Any, **kwargs: Any) -> List[T]:
        return self.get_sample()

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats["sample_size"] = len(self.get_sample())
        return stats


class MembershipTester(StreamSummary[T, bool], abc.ABC):
    """
    Abstract base class for approximate set membership structures.

    Examples include Bloom filters. Implementations may report false
    positives but never false negatives.
    """

    @abc.abstractmethod
    def contains(self, item: T) -> bool:
        """
        Test whether an item might have been recorded.

        Args:
            item: The item to test.

        Returns:
            True if the item might be in the set, False if it definitely is not.
        """
        pass

    def query(self, item: T, *args: Any, **kwargs: Any) -> bool:
        return self.contains(item)

    def __contains__(self, item: Any) -> bool:
        return self.contains(item)
