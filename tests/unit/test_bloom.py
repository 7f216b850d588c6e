"""
Unit tests for the Bloom Filter implementation.
"""

import math
import unittest

from tiny_probe.algorithms.bloom import BloomFilter, filter_intersection, filter_union
from tiny_probe.core.exceptions import InvalidConfigurationError, ShapeMismatchError
from tiny_probe.core.hash import fnv1a_64

VALUES = [0, 3, 2, 5, 7, 6, 54, 383, 392, 49, 39, 590, 30, 4]


class TestBloomFilter(unittest.TestCase):
    """Test cases for BloomFilter."""

    def test_init(self):
        """Test initialization with valid and invalid parameters."""
        bf = BloomFilter(32, 2)
        self.assertEqual(bf.num_buckets, 32)
        self.assertEqual(bf.num_hashes, 2)
        self.assertEqual(bf.num_buckets_populated(), 0)
        self.assertTrue(bf.is_empty())
        self.assertEqual(len(bf._bytes), 4)

        # Bucket counts that are not a multiple of 8 round the storage up
        self.assertEqual(len(BloomFilter(20, 2)._bytes), 3)

        with self.assertRaises(InvalidConfigurationError):
            BloomFilter(0, 2)
        with self.assertRaises(InvalidConfigurationError):
            BloomFilter(20, 0)
        with self.assertRaises(ValueError):
            BloomFilter(-4, 2)

        # Non-integral parameters are rejected, not truncated
        bad_shapes = ((20.9, 2), (20, 2.7), (20.0, 2), ("20", 2), (True, 2))
        for num_buckets, num_hashes in bad_shapes:
            with self.assertRaises(InvalidConfigurationError):
                BloomFilter(num_buckets, num_hashes)

    def test_make(self):
        """Test sizing from an expected count and target error rate."""
        bf = BloomFilter.make(300, 0.01)
        self.assertEqual(bf.num_hashes, 7)
        self.assertEqual(bf.num_buckets, 3030)

        self.assertEqual(BloomFilter.optimal_parameters(300, 0.01), (3030, 7))

        # A rate of one half needs a single hash
        num_buckets, num_hashes = BloomFilter.optimal_parameters(100, 0.5)
        self.assertEqual(num_hashes, 1)
        self.assertEqual(num_buckets, math.ceil(100 / math.log(2)))

    def test_make_invalid(self):
        """Test that out-of-range sizing parameters are rejected, not clamped."""
        with self.assertRaises(InvalidConfigurationError):
            BloomFilter.make(0, 0.01)
        with self.assertRaises(InvalidConfigurationError):
            BloomFilter.make(-1, 0.01)
        for rate in (0, 0.0, 1, 1.0, 1.5, -0.1):
            with self.assertRaises(InvalidConfigurationError):
                BloomFilter.make(100, rate)
        for max_count in (300.5, 300.0, "300"):
            with self.assertRaises(InvalidConfigurationError):
                BloomFilter.make(max_count, 0.01)

    def test_make_tiny_rate(self):
        """Test sizing for the smallest positive false positive rate."""
        num_buckets, num_hashes = BloomFilter.optimal_parameters(1, 5e-324)

        # 5e-324 == 2**-1074, so log2(1 / p) is 1074 up to rounding
        self.assertIn(num_hashes, (1074, 1075))
        self.assertEqual(num_buckets, math.ceil(num_hashes / math.log(2)))

        bf = BloomFilter.make(1, 5e-324)
        bf.record(7)
        self.assertTrue(bf.contains(7))

    def test_record_and_contains(self):
        """Test that every recorded value is reported as present."""
        bf = BloomFilter(20, 2)

        for value in VALUES:
            bf.record(value)
            self.assertTrue(bf.contains(value))
            self.assertIn(value, bf)
            self.assertTrue(bf.query(value))

        for value in VALUES:
            self.assertTrue(bf.contains(value))

        self.assertEqual(bf.items_processed, len(VALUES))

    def test_no_false_negatives(self):
        """Test that false negatives never occur, even past capacity."""
        bf = BloomFilter.make(500, 0.01, hash_function=fnv1a_64)

        items = [f"item-{i}" for i in range(1000)]
        bf.record_many(items)

        for item in items:
            self.assertTrue(bf.contains(item), f"False negative for {item}")

    def test_false_positive_rate(self):
        """Test that the false positive rate stays near the sizing target."""
        bf = BloomFilter.make(1000, 0.01, hash_function=fnv1a_64)
        for i in range(1000):
            bf.update(f"item-{i}")

        n_tests = 10000
        false_positives = sum(1 for i in range(n_tests) if bf.contains(f"other-{i}"))

        self.assertLess(false_positives / n_tests, 0.03)

    def test_num_buckets_populated(self):
        """Test bucket counting on known positions."""
        bf = BloomFilter(20, 2)

        bf.record(230)
        self.assertEqual(bf.num_buckets_populated(), 2)

        # Recording the same value again is idempotent
        bf.record(230)
        self.assertEqual(bf.num_buckets_populated(), 2)

        bf.record(233)
        self.assertGreaterEqual(bf.num_buckets_populated(), 2)
        self.assertLessEqual(bf.num_buckets_populated(), 4)

    def test_bucket_positions(self):
        """Test the single-hash split and double hashing of bucket positions."""
        bf = BloomFilter(20, 2)

        # hash(230) = 230 -> hash_a = 230 << 4 = 3680, hash_b = 230 >> 4 = 14
        self.assertEqual(bf._split_hash(230), (3680, 14))
        self.assertEqual(bf._get_bit_positions(230), [0, 14])

        # Small values have hash_b == 0, so every position coincides
        self.assertEqual(BloomFilter(100, 3)._get_bit_positions(1), [16, 16, 16])

    def test_bucket_positions_wrap_at_64_bits(self):
        """Test that the split and the combination wrap like unsigned words."""
        bf = BloomFilter(100, 3)

        # hash(-1) == -2 in CPython, i.e. 2**64 - 2 as an unsigned word
        hash_a, hash_b = bf._split_hash(-1)
        self.assertEqual(hash_a, 2**64 - 32)
        self.assertEqual(hash_b, 2**60 - 1)
        self.assertEqual(bf._get_bit_positions(-1), [84, 43, 18])

    def test_custom_hash_function(self):
        """Test that the hash function is pluggable."""
        calls = []

        def constant_hash(value):
            calls.append(value)
            return 7

        bf = BloomFilter(64, 3, hash_function=constant_hash)
        bf.record("anything")

        # One hash call per value, however many positions are derived
        self.assertEqual(calls, ["anything"])
        # hash_a = 112, hash_b = 0 -> a single bucket (112 % 64 = 48)
        self.assertEqual(bf.num_buckets_populated(), 1)
        self.assertTrue(bf._test_bit(48))
        self.assertTrue(bf.contains("something else"))
        self.assertIs(bf.hash_function, constant_hash)

    def test_equals_different_num_hashes(self):
        filter_a = BloomFilter(20, 2)
        filter_b = BloomFilter(20, 3)

        self.assertFalse(filter_a == filter_b)
        self.assertFalse(filter_b == filter_a)
        self.assertTrue(filter_a == filter_a)
        self.assertTrue(filter_b == filter_b)

    def test_equals_different_num_buckets(self):
        filter_a = BloomFilter(20, 2)
        filter_b = BloomFilter(21, 2)

        self.assertFalse(filter_a == filter_b)
        self.assertFalse(filter_b == filter_a)
        self.assertTrue(filter_a == filter_a)
        self.assertTrue(filter_b == filter_b)

    def test_equals_bucket_contents(self):
        filter_a = BloomFilter(20, 2)
        filter_b = BloomFilter(20, 2)
        self.assertEqual(filter_a, filter_b)

        filter_a.record(1)
        filter_b.record(0)
        self.assertNotEqual(filter_a, filter_b)

        filter_a.record(0)
        filter_b.record(1)
        self.assertEqual(filter_a, filter_b)

        filter_a.record(232)
        self.assertNotEqual(filter_a, filter_b)

    def test_equals_other_types(self):
        bf = BloomFilter(20, 2)
        self.assertNotEqual(bf, "not a filter")
        self.assertNotEqual(bf, None)

        # Mutable, so not hashable
        with self.assertRaises(TypeError):
            hash(bf)

    def test_union(self):
        filter_a = BloomFilter(100, 3)
        filter_a.record(0)
        filter_a.record(1)

        filter_b = BloomFilter(100, 3)
        filter_b.record(2)

        union_filter = filter_union(filter_a, filter_b)
        self.assertEqual(union_filter, filter_union(filter_b, filter_a))

        for value in (0, 1, 2):
            self.assertTrue(union_filter.contains(value))
        for value in (4, 5, 6, -1):
            self.assertFalse(union_filter.contains(value))

        self.assertEqual(union_filter.num_buckets, 100)
        self.assertEqual(union_filter.num_hashes, 3)
        self.assertEqual(union_filter.items_processed, 3)

    def test_union_soundness(self):
        """Test that a union contains everything recorded in either input."""
        filter_a = BloomFilter.make(200, 0.01, hash_function=fnv1a_64)
        filter_b = BloomFilter.make(200, 0.01, hash_function=fnv1a_64)

        items_a = [f"a-{i}" for i in range(150)]
        items_b = [f"b-{i}" for i in range(150)]
        filter_a.record_many(items_a)
        filter_b.record_many(items_b)

        union_filter = filter_a.union(filter_b)
        self.assertEqual(union_filter, filter_b.union(filter_a))
        self.assertEqual(union_filter, filter_a | filter_b)
        self.assertEqual(union_filter, filter_a.merge(filter_b))

        for item in items_a + items_b:
            self.assertIn(item, union_filter)

        self.assertGreaterEqual(
            union_filter.num_buckets_populated(),
            max(filter_a.num_buckets_populated(), filter_b.num_buckets_populated()),
        )

    def test_intersection(self):
        filter_a = BloomFilter(100, 3)
        filter_a.record(0)
        filter_a.record(1)

        filter_b = BloomFilter(100, 3)
        filter_b.record(1)
        filter_b.record(2)

        intersection_filter = filter_intersection(filter_a, filter_b)
        self.assertEqual(intersection_filter, filter_intersection(filter_b, filter_a))

        self.assertTrue(intersection_filter.contains(1))
        for value in (0, 2, 4, 5, 6, -1):
            self.assertFalse(intersection_filter.contains(value))

    def test_intersection_shared_values(self):
        """Test that values recorded in both inputs survive the intersection."""
        filter_a = BloomFilter.make(200, 0.01, hash_function=fnv1a_64)
        filter_b = BloomFilter.make(200, 0.01, hash_function=fnv1a_64)

        shared = [f"shared-{i}" for i in range(50)]
        filter_a.record_many(shared + [f"a-{i}" for i in range(50)])
        filter_b.record_many(shared + [f"b-{i}" for i in range(50)])

        intersection_filter = filter_a & filter_b
        self.assertEqual(intersection_filter, filter_b.intersection(filter_a))

        for item in shared:
            self.assertIn(item, intersection_filter)

        self.assertLessEqual(
            intersection_filter.num_buckets_populated(),
            min(filter_a.num_buckets_populated(), filter_b.num_buckets_populated()),
        )

    def test_combine_does_not_modify_inputs(self):
        filter_a = BloomFilter(100, 3)
        filter_a.record(0)
        filter_b = BloomFilter(100, 3)
        filter_b.record(2)

        snapshot_a = filter_a._bytes.tolist()
        snapshot_b = filter_b._bytes.tolist()

        result = filter_union(filter_a, filter_b)
        filter_intersection(filter_a, filter_b)

        self.assertEqual(filter_a._bytes.tolist(), snapshot_a)
        self.assertEqual(filter_b._bytes.tolist(), snapshot_b)

        # The result owns its storage
        result.record(5)
        self.assertFalse(filter_a.contains(5))
        self.assertFalse(filter_b.contains(5))

    def test_shape_mismatch(self):
        """Test that filters of different shape cannot be combined."""
        base = BloomFilter(20, 2)
        base.record(230)
        snapshot = base._bytes.tolist()

        for other in (BloomFilter(20, 3), BloomFilter(21, 2)):
            with self.assertRaises(ShapeMismatchError):
                filter_union(base, other)
            with self.assertRaises(ShapeMismatchError):
                filter_intersection(base, other)
            with self.assertRaises(ShapeMismatchError):
                filter_union(other, base)
            with self.assertRaises(ValueError):
                base | other

        self.assertEqual(base._bytes.tolist(), snapshot)

    def test_combine_with_other_types(self):
        bf = BloomFilter(20, 2)
        with self.assertRaises(TypeError):
            filter_union(bf, "not a filter")
        with self.assertRaises(TypeError):
            bf | 3
        with self.assertRaises(TypeError):
            bf & [1, 2]

    def test_combine_different_hash_functions_warns(self):
        filter_a = BloomFilter(64, 2)
        filter_b = BloomFilter(64, 2, hash_function=fnv1a_64)

        with self.assertLogs("tiny_probe.algorithms.bloom", level="WARNING") as logs:
            result = filter_union(filter_a, filter_b)

        self.assertIn("different hash functions", logs.output[0])
        self.assertIs(result.hash_function, filter_a.hash_function)

    def test_estimate_cardinality(self):
        bf = BloomFilter.make(1000, 0.01, hash_function=fnv1a_64)
        self.assertEqual(bf.estimate_cardinality(), 0)

        for i in range(500):
            bf.record(f"item-{i}")

        estimate = bf.estimate_cardinality()
        self.assertGreater(estimate, 450)
        self.assertLessEqual(estimate, 500)

    def test_false_positive_probability(self):
        bf = BloomFilter(16, 2)
        self.assertEqual(bf.false_positive_probability(), 0.0)

        bf.record(1)  # sets bucket 0
        self.assertAlmostEqual(bf.fill_ratio, 1 / 16)
        self.assertAlmostEqual(bf.false_positive_probability(), (1 / 16) ** 2)

    def test_stats(self):
        bf = BloomFilter.make(100, 0.05)
        bf.record_many(range(10))

        stats = bf.get_stats()
        self.assertEqual(stats["type"], "BloomFilter")
        self.assertEqual(stats["items_processed"], 10)
        self.assertEqual(stats["num_buckets"], bf.num_buckets)
        self.assertEqual(stats["num_hashes"], bf.num_hashes)
        self.assertEqual(stats["buckets_populated"], bf.num_buckets_populated())
        self.assertIn("current_theoretical_fpp", stats)
        self.assertIn("load_factor", stats)
        self.assertGreater(stats["memory_bytes"], len(bf._bytes))

        self.assertEqual(BloomFilter(20, 2).error_bounds(), {})

    def test_repr(self):
        self.assertEqual(
            repr(BloomFilter(20, 2)), "BloomFilter(num_buckets=20, num_hashes=2)"
        )


if __name__ == "__main__":
    unittest.main()
