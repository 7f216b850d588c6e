"""
Algorithm implementations for tiny-probe.
"""

from tiny_probe.algorithms.bloom import BloomFilter, filter_intersection, filter_union
from tiny_probe.algorithms.reservoir import RandomSource, ReservoirSampler

__all__ = [
    "BloomFilter",
    "filter_union",
    "filter_intersection",
    "ReservoirSampler",
    "RandomSource",
]
