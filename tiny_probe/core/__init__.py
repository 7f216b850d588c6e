"""
Core functionality for tiny-probe.
"""

from tiny_probe.core.base import MembershipTester, SampleMaintainer, StreamSummary
from tiny_probe.core.exceptions import InvalidConfigurationError, ShapeMismatchError
from tiny_probe.core.hash import HashFunction, fnv1a_64, python_hash

__all__ = [
    # Base classes
    "StreamSummary",
    "SampleMaintainer",
    "MembershipTester",
    # Errors
    "InvalidConfigurationError",
    "ShapeMismatchError",
    # Utility functions
    "HashFunction",
    "python_hash",
    "fnv1a_64",
]
