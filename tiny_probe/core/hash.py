"""
Hashing functions for tiny-probe.

Bloom filters take their hash function as a constructor argument. Every
function here maps an arbitrary value to an unsigned 64-bit integer. None of
them offers cryptographic guarantees.
"""

from typing import Any, Callable

HashFunction = Callable[[Any], int]

MASK_64 = 0xFFFFFFFFFFFFFFFF


def _to_bytes(key: Any) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    # repr() is stable across processes for the builtin scalar types
    return repr(key).encode("utf-8")


def python_hash(key: Any) -> int:
    """
    Hash a value with the interpreter's built-in ``hash()``, as a 64-bit word.

    Integers of magnitude below 2**61 - 1 hash to themselves, so after the
    64-bit mask they get the same word as the identity hash C++ standard
    libraries use for integers, negative values wrapping the same way. The
    one exception is -1: CPython reserves it as an error marker, so
    ``hash(-1) == -2`` and -1 shares its buckets with -2. Larger integers are
    reduced modulo 2**61 - 1. String hashes are salted per
    process (see PYTHONHASHSEED); use ``fnv1a_64`` when positions must be
    reproducible across runs.

    Args:
        key: Any hashable value.

    Returns:
        The built-in hash reduced to an unsigned 64-bit integer.
    """
    return hash(key) & MASK_64


def fnv1a_64(key: Any, seed: int = 0) -> int:
    """
    Pure Python implementation of FNV-1a hash (64-bit variant).

    The result depends only on the bytes of the key, so it is identical in
    every process.

    Args:
        key: The key to hash. Strings are UTF-8 encoded, bytes are used as is
             and other values are hashed through their repr().
        seed: Optional seed value (modifies the initial hash value)

    Returns:
        64-bit hash value
    """
    fnv_prime = 0x100000001B3
    fnv_offset_basis = 0xCBF29CE484222325

    h = (fnv_offset_basis ^ seed) & MASK_64
    for byte in _to_bytes(key):
        h ^= byte
        h = (h * fnv_prime) & MASK_64

    return h
