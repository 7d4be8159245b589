"""Arc length approximation and distance to parameter lookup tables for B-spline curves."""

from __future__ import annotations

import logging
import threading
from typing import List, MutableSequence, Optional, Sequence

import numpy as np

from curvekit.bspline import BSplineBasis, BSplineCurve
from curvekit.common import DEFAULT_LENGTH_RESOLUTION, DEFAULT_SCRATCH_CAPACITY, DistanceSample
from curvekit.geom import GeomMath

logger = logging.getLogger(__name__)


def new_lookup_table(size: int) -> List[DistanceSample]:
    """Allocate a lookup table of the given size filled with (0, 0) samples."""
    return [DistanceSample(0.0, 0.0)] * size


###############################################################################
# CurveLength
###############################################################################
class CurveLength:
    """Class to measure curves and to convert curve distances into curve parameters.

    Curve lengths are approximated by sampling the curve uniformly in t and
    summing up the chord lengths between consecutive samples. The accuracy
    grows with the number of samples and drops with the curvature of the curve.

    A lookup table is any indexable sequence of DistanceSample ordered by
    ascending distance and t, starting with (0, 0) and ending with
    (total_length, 1), as filled by calculate_curve_lengths.
    """

    @staticmethod
    def calculate_length(curve: BSplineCurve, resolution: int = DEFAULT_LENGTH_RESOLUTION) -> float:
        """
        Approximate the length of a curve by summing up the lengths of linear segments.

        Args:
            curve: The curve to measure
            resolution: Number of sample points, i.e. resolution-1 linear segments

        Returns:
            float: the approximated length

        Raises:
            ValueError: If resolution is smaller than 2
        """
        if resolution < 2:
            raise ValueError(f"Measuring a curve length needs a resolution of at least 2, got {resolution}")

        magnitude = 0.0
        prev = BSplineBasis.evaluate_position(curve, 0.0)
        for i in range(1, resolution):
            point = BSplineBasis.evaluate_position(curve, i / (resolution - 1))
            magnitude += float(np.linalg.norm(point - prev))
            prev = point

        return magnitude

    @staticmethod
    def calculate_curve_lengths(curve: BSplineCurve, lookup_table: MutableSequence[DistanceSample]) -> None:
        """
        Populate a pre-allocated lookup table with distance to t values.

        The number of samples is given by the size of the lookup table. Entry i
        holds t = i / (size-1) together with the accumulated chord length up to
        that t. The first entry is always (0, 0).

        Args:
            curve: The curve to create the lookup table for
            lookup_table: Pre-allocated table, e.g. created by new_lookup_table

        Raises:
            ValueError: If the lookup table has less than 2 entries
        """
        resolution = len(lookup_table)
        if resolution < 2:
            raise ValueError(f"A lookup table needs at least 2 entries, got {resolution}")

        magnitude = 0.0
        prev = BSplineBasis.evaluate_position(curve, 0.0)
        lookup_table[0] = DistanceSample(0.0, 0.0)

        for i in range(1, resolution):
            t = i / (resolution - 1)
            point = BSplineBasis.evaluate_position(curve, t)
            magnitude += float(np.linalg.norm(point - prev))
            lookup_table[i] = DistanceSample(magnitude, t)
            prev = point

    @staticmethod
    def get_distance_to_interpolation(lookup_table: Optional[Sequence[DistanceSample]], distance: float) -> float:
        """
        Convert a distance along a curve into the curve parameter t using a lookup table.

        The table is scanned for the first sample beyond the distance and t is
        linearly interpolated between that sample and its predecessor.

        Edge cases:
        - no table, empty table or distance <= 0: 0.0
        - distance >= total length (distance of the last sample): 1.0

        Args:
            lookup_table: Table of distance to t samples, see calculate_curve_lengths
            distance: The curve relative distance to convert

        Returns:
            float: the curve parameter t in range [0, 1]
        """
        if lookup_table is None or len(lookup_table) < 1:
            logger.debug("Empty lookup table, distance %s maps to t=0", distance)
            return 0.0
        if distance <= 0.0:
            return 0.0

        resolution = len(lookup_table)
        curve_length = lookup_table[resolution - 1].distance
        if distance >= curve_length:
            return 1.0

        prev = lookup_table[0]
        for i in range(1, resolution):
            current = lookup_table[i]
            if distance < current.distance:
                fraction = (distance - prev.distance) / (current.distance - prev.distance)
                return GeomMath.lerp(prev.t, current.t, fraction)
            prev = current

        return 1.0

    @classmethod
    def get_curve_distance_to_interpolation(
        cls, curve: BSplineCurve, distance: float, scratch: Optional[DistanceScratchTable] = None
    ) -> float:
        """
        Convert a distance along a curve into the curve parameter t.

        Builds a fresh lookup table for every call, so frequent queries on the
        same curve should keep their own table (calculate_curve_lengths) and use
        get_distance_to_interpolation instead.

        Args:
            curve: The curve to query
            distance: The curve relative distance to convert
            scratch: Table to build the samples in, defaults to the scratch
                table of the calling thread

        Returns:
            float: the curve parameter t in range [0, 1]
        """
        if scratch is None:
            scratch = default_scratch_table()
        scratch.fill(curve)
        return cls.get_distance_to_interpolation(scratch.table, distance)


###############################################################################
# DistanceScratchTable
###############################################################################
class DistanceScratchTable:
    """
    Reusable lookup table for one-shot distance to t queries.

    Holds a fixed number of samples which are overwritten by every fill. An
    instance must not be filled and read by different threads at the same
    time; default_scratch_table() hands out one instance per thread.
    """

    def __init__(self, capacity: int = DEFAULT_SCRATCH_CAPACITY):
        """Initialize the table with capacity (0, 0) samples.

        Args:
            capacity: Number of samples, at least 2

        Raises:
            ValueError: If capacity is smaller than 2
        """
        if capacity < 2:
            raise ValueError(f"A scratch table needs a capacity of at least 2, got {capacity}")
        self._table: List[DistanceSample] = new_lookup_table(capacity)

    @property
    def table(self) -> List[DistanceSample]:
        """List[DistanceSample]: the samples of the last fill."""
        return self._table

    @property
    def capacity(self) -> int:
        """int: number of samples of the table."""
        return len(self._table)

    @property
    def length(self) -> float:
        """float: total curve length of the last fill."""
        return self._table[-1].distance

    def fill(self, curve: BSplineCurve) -> DistanceScratchTable:
        """Overwrite the table with the samples of the given curve."""
        CurveLength.calculate_curve_lengths(curve, self._table)
        return self

    def get_distance_to_interpolation(self, distance: float) -> float:
        """Convert a distance into t using the samples of the last fill."""
        return CurveLength.get_distance_to_interpolation(self._table, distance)

    def __len__(self) -> int:
        return len(self._table)

    def __str__(self):
        """Returns a string representation of the DistanceScratchTable instance."""
        return f"DistanceScratchTable(capacity={self.capacity}, length={self.length})"


_THREAD_LOCAL = threading.local()


def default_scratch_table() -> DistanceScratchTable:
    """Return the scratch table of the calling thread, created on first use."""
    scratch = getattr(_THREAD_LOCAL, "scratch", None)
    if scratch is None:
        scratch = DistanceScratchTable()
        _THREAD_LOCAL.scratch = scratch
    return scratch


def main():
    """Main"""
    curve = BSplineCurve.from_points([(0.0, 0.0), (1.0, 2.0), (3.0, 2.0), (4.0, 0.0)])
    for resolution in (2, 3, 5, 9, 17, 33):
        print(f"resolution {resolution:3d}: length {CurveLength.calculate_length(curve, resolution):.6f}")

    scratch = DistanceScratchTable().fill(curve)
    half = scratch.length / 2
    print(f"half length {half:.6f} at t={scratch.get_distance_to_interpolation(half):.6f}")


if __name__ == "__main__":
    main()
