"""Test module for curvekit.curve_length

The tests are run using pytest.
These tests ensure that curve length approximation, lookup table creation and
distance to t conversion remain working correctly after changes and refactoring.
"""

import threading

import numpy as np
import pytest

from curvekit.bspline import BSplineBasis, BSplineCurve
from curvekit.common import DEFAULT_SCRATCH_CAPACITY, DistanceSample
from curvekit.curve_length import CurveLength, DistanceScratchTable, default_scratch_table, new_lookup_table

NESTED_RESOLUTIONS = [2, 3, 5, 9, 17, 33, 65, 129]


@pytest.fixture(name="curve")
def fixture_curve():
    """A general non planar curve."""
    return BSplineCurve.from_points([(0.0, 0.0, 0.0), (1.0, 2.0, 0.0), (3.0, 2.0, 1.0), (4.0, 0.0, -1.0)])


@pytest.fixture(name="colinear_curve")
def fixture_colinear_curve():
    """A straight curve running from (1, 0, 0) to (2, 0, 0)."""
    return BSplineCurve.from_points([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0), (3.0, 0.0, 0.0)])


@pytest.fixture(name="lookup_table")
def fixture_lookup_table(curve):
    """A lookup table with 30 samples of the general curve."""
    table = new_lookup_table(30)
    CurveLength.calculate_curve_lengths(curve, table)
    return table


###############################################################################
# Length Tests
###############################################################################


class TestCalculateLength:
    """Test class for curve length approximation."""

    def test_colinear_curve_length(self, colinear_curve):
        """Test the length of a straight curve spanning x in [1, 2]."""
        assert CurveLength.calculate_length(colinear_curve, 30) == pytest.approx(1.0)
        assert CurveLength.calculate_length(colinear_curve) == pytest.approx(1.0)

    def test_length_matches_sum_of_chords(self, curve):
        """Test the length against the chords of the polygonized curve."""
        points = BSplineBasis.polygonize_curve(curve, 29)
        expected = np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1))

        assert CurveLength.calculate_length(curve, 30) == pytest.approx(expected, rel=1e-12)

    def test_length_non_decreasing_with_resolution(self, curve):
        """Test that refining the sampling never shortens the measured length."""
        lengths = [CurveLength.calculate_length(curve, resolution) for resolution in NESTED_RESOLUTIONS]

        for shorter, longer in zip(lengths, lengths[1:]):
            assert longer >= shorter - 1e-12

    def test_length_converges(self, curve):
        """Test that successive differences shrink for refined sampling."""
        lengths = [CurveLength.calculate_length(curve, resolution) for resolution in NESTED_RESOLUTIONS[1:]]
        differences = np.diff(lengths)

        for previous, current in zip(differences, differences[1:]):
            assert current <= previous
        assert differences[-1] < 1e-3

    @pytest.mark.parametrize("resolution", [-1, 0, 1])
    def test_length_without_segments(self, curve, resolution):
        """Test that a resolution without room for one segment is rejected like a too small table."""
        with pytest.raises(ValueError, match="resolution of at least 2"):
            CurveLength.calculate_length(curve, resolution)
        with pytest.raises(ValueError, match="at least 2 entries"):
            CurveLength.calculate_curve_lengths(curve, new_lookup_table(max(resolution, 0)))

    def test_length_minimal_resolution(self, colinear_curve):
        """Test that two samples measure the chord between the curve end points."""
        assert CurveLength.calculate_length(colinear_curve, 2) == pytest.approx(1.0)


###############################################################################
# Lookup Table Tests
###############################################################################


class TestCalculateCurveLengths:
    """Test class for filling distance to t lookup tables."""

    def test_new_lookup_table(self):
        """Test the allocation of lookup tables."""
        table = new_lookup_table(5)

        assert len(table) == 5
        assert all(sample == DistanceSample(0.0, 0.0) for sample in table)

    def test_table_end_samples(self, curve, lookup_table):
        """Test that the table starts with (0, 0) and ends with (length, 1)."""
        assert lookup_table[0] == DistanceSample(0.0, 0.0)
        assert lookup_table[-1].t == 1.0
        assert lookup_table[-1].distance == pytest.approx(CurveLength.calculate_length(curve, 30))

    def test_table_is_monotone(self, lookup_table):
        """Test that distances and t are strictly increasing for a regular curve."""
        for prev, current in zip(lookup_table, lookup_table[1:]):
            assert current.distance > prev.distance
            assert current.t > prev.t

    def test_table_uniform_in_t(self, lookup_table):
        """Test that the samples are uniformly spaced in t."""
        resolution = len(lookup_table)
        for i, sample in enumerate(lookup_table):
            assert sample.t == pytest.approx(i / (resolution - 1))

    def test_table_accepts_any_mutable_sequence(self, curve):
        """Test that tables of different sizes can be filled."""
        for size in (2, 3, 24, 100):
            table = [DistanceSample()] * size
            CurveLength.calculate_curve_lengths(curve, table)

            assert table[0] == DistanceSample(0.0, 0.0)
            assert table[-1].t == 1.0

    @pytest.mark.parametrize("size", [0, 1])
    def test_table_too_small(self, curve, size):
        """Test that tables without room for both ends are rejected."""
        with pytest.raises(ValueError, match="at least 2 entries"):
            CurveLength.calculate_curve_lengths(curve, new_lookup_table(size))


###############################################################################
# Distance Inversion Tests
###############################################################################


class TestGetDistanceToInterpolation:
    """Test class for converting distances into t."""

    def test_samples_are_reproduced(self, lookup_table):
        """Test that every sample distance maps to its own t."""
        for sample in lookup_table:
            assert CurveLength.get_distance_to_interpolation(lookup_table, sample.distance) == pytest.approx(sample.t)

    def test_out_of_range_distances(self, lookup_table):
        """Test clamping of negative distances and distances beyond the curve."""
        total_length = lookup_table[-1].distance

        assert CurveLength.get_distance_to_interpolation(lookup_table, -5.0) == 0.0
        assert CurveLength.get_distance_to_interpolation(lookup_table, 0.0) == 0.0
        assert CurveLength.get_distance_to_interpolation(lookup_table, total_length) == 1.0
        assert CurveLength.get_distance_to_interpolation(lookup_table, total_length + 100.0) == 1.0

    @pytest.mark.parametrize("table", [None, [], ()])
    def test_missing_table(self, table):
        """Test that a missing or empty table maps every distance to 0."""
        assert CurveLength.get_distance_to_interpolation(table, 1.0) == 0.0

    def test_linear_interpolation(self):
        """Test interpolation inside a hand-made table."""
        table = (DistanceSample(0.0, 0.0), DistanceSample(2.0, 0.5), DistanceSample(3.0, 1.0))

        assert CurveLength.get_distance_to_interpolation(table, 1.0) == pytest.approx(0.25)
        assert CurveLength.get_distance_to_interpolation(table, 2.0) == pytest.approx(0.5)
        assert CurveLength.get_distance_to_interpolation(table, 2.5) == pytest.approx(0.75)

    def test_result_is_monotone(self, lookup_table):
        """Test that growing distances never yield a smaller t."""
        distances = np.linspace(-1.0, lookup_table[-1].distance + 1.0, 200)
        values = [CurveLength.get_distance_to_interpolation(lookup_table, d) for d in distances]

        for prev, current in zip(values, values[1:]):
            assert current >= prev
        assert all(0.0 <= value <= 1.0 for value in values)

    def test_colinear_curve_distance_is_t(self, colinear_curve):
        """Test that distance and t coincide on a straight curve of length 1."""
        table = new_lookup_table(30)
        CurveLength.calculate_curve_lengths(colinear_curve, table)

        for distance in (0.1, 0.37, 0.5, 0.99):
            assert CurveLength.get_distance_to_interpolation(table, distance) == pytest.approx(distance)

    def test_inverted_t_lies_at_distance(self, curve):
        """Test that the position at the inverted t is about the requested distance along the curve."""
        table = new_lookup_table(200)
        CurveLength.calculate_curve_lengths(curve, table)
        half = table[-1].distance / 2

        t = CurveLength.get_distance_to_interpolation(table, half)
        steps = 2000
        points = BSplineBasis.polygonize_curve(curve, steps)
        cumulative = np.concatenate(([0.0], np.cumsum(np.linalg.norm(np.diff(points, axis=0), axis=1))))

        assert np.interp(t, np.linspace(0.0, 1.0, steps + 1), cumulative) == pytest.approx(half, rel=1e-3)


###############################################################################
# Scratch Table Tests
###############################################################################


class TestDistanceScratchTable:
    """Test class for the reusable scratch table and the table-less conversion."""

    def test_default_capacity(self):
        """Test the default capacity of a scratch table."""
        scratch = DistanceScratchTable()

        assert scratch.capacity == DEFAULT_SCRATCH_CAPACITY
        assert len(scratch) == DEFAULT_SCRATCH_CAPACITY

    @pytest.mark.parametrize("capacity", [0, 1])
    def test_capacity_too_small(self, capacity):
        """Test that scratch tables without room for both ends are rejected."""
        with pytest.raises(ValueError, match="capacity of at least 2"):
            DistanceScratchTable(capacity)

    def test_fill(self, curve):
        """Test that a fill measures the curve with capacity samples."""
        scratch = DistanceScratchTable(10).fill(curve)

        assert scratch.length == pytest.approx(CurveLength.calculate_length(curve, 10))
        assert scratch.table[0] == DistanceSample(0.0, 0.0)
        assert scratch.table[-1].t == 1.0

    def test_fill_overwrites_previous_curve(self, curve, colinear_curve):
        """Test that the last fill wins."""
        scratch = DistanceScratchTable()
        scratch.fill(curve)
        scratch.fill(colinear_curve)

        assert scratch.length == pytest.approx(1.0)
        assert scratch.get_distance_to_interpolation(0.5) == pytest.approx(0.5)

    def test_curve_overload_matches_table_overload(self, curve):
        """Test the table-less conversion against an explicit table of the same size."""
        table = new_lookup_table(DEFAULT_SCRATCH_CAPACITY)
        CurveLength.calculate_curve_lengths(curve, table)

        for distance in (-1.0, 0.0, 0.5, 1.7, 3.0, 100.0):
            expected = CurveLength.get_distance_to_interpolation(table, distance)

            assert CurveLength.get_curve_distance_to_interpolation(curve, distance) == expected
            assert CurveLength.get_curve_distance_to_interpolation(curve, distance, DistanceScratchTable()) == expected

    def test_explicit_scratch_is_used(self, colinear_curve):
        """Test that a caller owned scratch table receives the samples."""
        scratch = DistanceScratchTable(5)

        t = CurveLength.get_curve_distance_to_interpolation(colinear_curve, 0.25, scratch)

        assert t == pytest.approx(0.25)
        assert scratch.length == pytest.approx(1.0)

    def test_default_scratch_is_per_thread(self):
        """Test that each thread gets its own default scratch table."""
        main_scratch = default_scratch_table()
        other_scratches = []

        thread = threading.Thread(target=lambda: other_scratches.append(default_scratch_table()))
        thread.start()
        thread.join()

        assert default_scratch_table() is main_scratch
        assert len(other_scratches) == 1
        assert other_scratches[0] is not main_scratch

    def test_concurrent_default_queries(self, curve, colinear_curve):
        """Test that threads using the default scratch table do not disturb each other."""
        expected_curve = CurveLength.get_curve_distance_to_interpolation(curve, 1.5)
        expected_colinear = CurveLength.get_curve_distance_to_interpolation(colinear_curve, 0.3)
        failures = []

        def worker(query_curve, distance, expected):
            for _ in range(200):
                if CurveLength.get_curve_distance_to_interpolation(query_curve, distance) != expected:
                    failures.append(distance)

        threads = [
            threading.Thread(target=worker, args=(curve, 1.5, expected_curve)),
            threading.Thread(target=worker, args=(colinear_curve, 0.3, expected_colinear)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert not failures
