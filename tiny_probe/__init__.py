"""
tiny-probe - Bloom filters and reservoir sampling

tiny-probe is a Python library of small in-memory building blocks for
stream processing: a Bloom filter for approximate set membership and a
reservoir sampler for uniform samples of unbounded streams.
"""

__version__ = "0.1.0"

# Import main classes to make them available at the top level
from tiny_probe.algorithms.bloom import BloomFilter, filter_intersection, filter_union
from tiny_probe.algorithms.reservoir import RandomSource, ReservoirSampler
from tiny_probe.core.base import MembershipTester, SampleMaintainer, StreamSummary
from tiny_probe.core.exceptions import InvalidConfigurationError, ShapeMismatchError
from tiny_probe.core.hash import fnv1a_64, python_hash

__all__ = [
    # Core base classes
    "StreamSummary",
    "SampleMaintainer",
    "MembershipTester",
    # Errors
    "InvalidConfigurationError",
    "ShapeMismatchError",
    # Hash functions
    "python_hash",
    "fnv1a_64",
    # Algorithm implementations
    "BloomFilter",
    "filter_union",
    "filter_intersection",
    "ReservoirSampler",
    "RandomSource",
]
