"""Uniform cubic B-spline curve evaluation and rasterization utilities."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

from curvekit.common import POLYGONIZE_NUMPY_THRESHOLD, Vec3, Vec3Like, as_vec3
from curvekit.geom import GeomMath

logger = logging.getLogger(__name__)

# Common denominator of the uniform cubic B-spline basis matrix
_BASIS_NORMALIZATION: float = 6.0


###############################################################################
# BSplineCurve
###############################################################################
@dataclass(frozen=True, eq=False)
class BSplineCurve:
    """
    A single segment of a uniform cubic B-spline defined by four control points.

    The control points are NOT the end points of the curve: the uniform basis
    blends all four of them, so the curve starts at (P0 + 4*P1 + P2) / 6 and
    ends at (P1 + 4*P2 + P3) / 6.

    The control points are stored as read-only float64 arrays of shape (3,).
    2D control points are accepted and get z=0.

    Attributes:
        p0 (Vec3): first control point
        p1 (Vec3): second control point
        p2 (Vec3): third control point
        p3 (Vec3): fourth control point
    """

    p0: Vec3
    p1: Vec3
    p2: Vec3
    p3: Vec3
    _coefficients: NDArray[np.float64] = field(init=False, repr=False)

    def __post_init__(self):
        for name in ("p0", "p1", "p2", "p3"):
            object.__setattr__(self, name, as_vec3(getattr(self, name)))

        # Polynomial coefficients of the basis matrix:
        #   c0 = P0 + 4*P1 + P2
        #   c1 = -3*P0 + 3*P2
        #   c2 = 3*P0 - 6*P1 + 3*P2
        #   c3 = -P0 + 3*P1 - 3*P2 + P3
        p0, p1, p2, p3 = self.p0, self.p1, self.p2, self.p3
        coefficients = np.array(
            [
                p0 + 4.0 * p1 + p2,
                -3.0 * p0 + 3.0 * p2,
                3.0 * p0 - 6.0 * p1 + 3.0 * p2,
                -p0 + 3.0 * p1 - 3.0 * p2 + p3,
            ],
            dtype=np.float64,
        )
        coefficients.flags.writeable = False
        object.__setattr__(self, "_coefficients", coefficients)

    @classmethod
    def from_points(cls, points: Union[Sequence[Vec3Like], NDArray[np.float64]]) -> BSplineCurve:
        """
        Create a curve from a sequence of four control points.

        Args:
            points: Four (x, y) or (x, y, z) control points, e.g. an array of shape (4, 3)

        Returns:
            BSplineCurve: the new curve

        Raises:
            ValueError: If not exactly four control points are given
        """
        if len(points) != 4:
            raise ValueError(f"A cubic B-spline curve needs exactly 4 control points, got {len(points)}")
        pt0, pt1, pt2, pt3 = points
        return cls(pt0, pt1, pt2, pt3)

    @property
    def control_points(self) -> NDArray[np.float64]:
        """NDArray[np.float64]: copy of the control points as array of shape (4, 3)."""
        return np.array([self.p0, self.p1, self.p2, self.p3], dtype=np.float64)

    @property
    def coefficients(self) -> NDArray[np.float64]:
        """NDArray[np.float64]: read-only polynomial coefficients c0..c3 as array of shape (4, 3)."""
        return self._coefficients

    def approx_equal(self, other: BSplineCurve, rtol: float = 1e-9, atol: float = 1e-9) -> bool:
        """Check whether both curves have (approximately) the same control points."""
        if not isinstance(other, BSplineCurve):
            return False
        return bool(np.allclose(self.control_points, other.control_points, rtol=rtol, atol=atol))

    def __str__(self):
        """Returns a string representation of the BSplineCurve instance."""
        return (
            f"BSplineCurve(p0={self.p0.tolist()}, p1={self.p1.tolist()}, "
            f"p2={self.p2.tolist()}, p3={self.p3.tolist()})"
        )


###############################################################################
# BSplineBasis
###############################################################################
class BSplineBasis:
    """Class to evaluate uniform cubic B-spline curves.

    Provides closed-form evaluation of position, tangent, acceleration and
    curvature at a curve parameter t, and methods for polygonizing curves into
    point sequences, supporting both pure Python and NumPy-optimized
    implementations.

    All evaluation methods clamp t to [0, 1]; values outside the range are
    treated as their clamped value.
    """

    @staticmethod
    def evaluate_position(curve: BSplineCurve, t: float) -> Vec3:
        """
        Evaluate the position on the curve at parameter t.

            position = (c0 + c1*t + c2*t^2 + c3*t^3) / 6

        Args:
            curve: the curve to evaluate
            t: curve parameter, clamped to [0, 1]

        Returns:
            Vec3: new array holding the position
        """
        t1 = GeomMath.clamp01(t)
        t2 = t1 * t1
        t3 = t2 * t1
        c0, c1, c2, c3 = curve.coefficients
        return (c0 + c1 * t1 + c2 * t2 + c3 * t3) / _BASIS_NORMALIZATION

    @staticmethod
    def evaluate_tangent(curve: BSplineCurve, t: float) -> Vec3:
        """
        Evaluate the first derivative (tangent) of the curve at parameter t.

            tangent = (c1 + 2*c2*t + 3*c3*t^2) / 6

        The tangent is not normalized.
        """
        t1 = GeomMath.clamp01(t)
        t2 = t1 * t1
        _, c1, c2, c3 = curve.coefficients
        return (c1 + c2 * 2.0 * t1 + c3 * 3.0 * t2) / _BASIS_NORMALIZATION

    @staticmethod
    def evaluate_acceleration(curve: BSplineCurve, t: float) -> Vec3:
        """Evaluate the second derivative of the curve at parameter t: (2*c2 + 6*c3*t) / 6."""
        t1 = GeomMath.clamp01(t)
        c2, c3 = curve.coefficients[2], curve.coefficients[3]
        return (c2 * 2.0 + c3 * 6.0 * t1) / _BASIS_NORMALIZATION

    @classmethod
    def evaluate_curvature(cls, curve: BSplineCurve, t: float) -> float:
        """
        Evaluate the curvature of the curve at parameter t.

            kappa = sqrt(|T|^2 * |A|^2 - (T.A)^2) / (|T|^2 * |T|)

        with T being the tangent and A the acceleration at t.

        The curvature is undefined where the tangent has zero length, e.g. for
        curves with coincident control points, or where |T|^3 is too small to
        be represented as float (tangents below ~1e-108). In that case math.nan is
        returned, so callers evaluating degenerate curves must filter the
        result (math.isnan).

        Args:
            curve: the curve to evaluate
            t: curve parameter, clamped to [0, 1]

        Returns:
            float: the curvature (>= 0) or math.nan for a zero length tangent
        """
        t1 = GeomMath.clamp01(t)
        tangent = cls.evaluate_tangent(curve, t1)
        acceleration = cls.evaluate_acceleration(curve, t1)

        tangent_norm_sq = float(np.dot(tangent, tangent))
        acceleration_norm_sq = float(np.dot(acceleration, acceleration))
        derivatives_dot = float(np.dot(tangent, acceleration))

        # |T|^3 underflows to 0.0 for tiny but nonzero tangents as well
        denominator = tangent_norm_sq * math.sqrt(tangent_norm_sq)
        if denominator == 0.0:
            logger.debug("Curvature undefined for zero length tangent at t=%s of %s", t1, curve)
            return math.nan

        # Rounding may push the radicand slightly below zero for straight curves
        radicand = max(tangent_norm_sq * acceleration_norm_sq - derivatives_dot * derivatives_dot, 0.0)
        return math.sqrt(radicand) / denominator

    @classmethod
    def polygonize_curve_python_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments,too-many-locals
        cls,
        curve: BSplineCurve,
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Polygonize a curve directly into pre-allocated buffer using pure Python.

        The coefficients are unpacked to Python floats once and every point at
        t = i / steps is computed with scalar arithmetic in the same order as
        evaluate_position, so the points are identical to single evaluations.
        """
        if steps < 1:
            raise ValueError(f"Polygonizing a curve needs at least 1 step, got {steps}")

        # Extract coefficients
        (c0x, c0y, c0z), (c1x, c1y, c1z), (c2x, c2y, c2z), (c3x, c3y, c3z) = curve.coefficients.tolist()
        norm = _BASIS_NORMALIZATION

        output_idx = start_index
        for i in range(1 if skip_first else 0, steps + 1):
            t = i / steps
            t2 = t * t
            t3 = t2 * t

            output_buffer[output_idx, 0] = (c0x + c1x * t + c2x * t2 + c3x * t3) / norm
            output_buffer[output_idx, 1] = (c0y + c1y * t + c2y * t2 + c3y * t3) / norm
            output_buffer[output_idx, 2] = (c0z + c1z * t + c2z * t2 + c3z * t3) / norm
            output_idx += 1

        return steps + (1 if not skip_first else 0)

    @classmethod
    def polygonize_curve_numpy_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        curve: BSplineCurve,
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Polygonize a curve directly into pre-allocated buffer using NumPy.
        Uses direct evaluation with vectorized operations for optimal NumPy performance.
        """
        if steps < 1:
            raise ValueError(f"Polygonizing a curve needs at least 1 step, got {steps}")

        # Create parameter array
        t = np.linspace(0, 1, steps + 1, dtype=np.float64)
        if skip_first:
            t = t[1:]  # Skip t=0, but keep t=1.0

        # Monomial basis (1, t, t^2, t^3) times coefficients c0..c3
        t2 = t * t
        monomials = np.stack((np.ones_like(t), t, t2, t2 * t), axis=1)
        positions = (monomials @ curve.coefficients) / _BASIS_NORMALIZATION

        # Write directly to output buffer
        end_idx = start_index + len(t)
        output_buffer[start_index:end_idx, :3] = positions

        return len(t)

    @classmethod
    def polygonize_curve_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        curve: BSplineCurve,
        steps: int,
        output_buffer: NDArray[np.float64],
        start_index: int = 0,
        skip_first: bool = False,
    ) -> int:
        """
        Polygonize a curve directly into pre-allocated buffer.
        Uses pure Python for small step counts, NumPy for larger ones.

        Args:
            curve: The curve to polygonize
            steps: Number of segments to divide the curve into
            output_buffer: Pre-allocated buffer of shape (N, 3) to write points into
            start_index: Starting index in output_buffer
            skip_first: If True, skip writing the first point (to avoid duplication)

        Returns:
            Number of points written to buffer

        Raises:
            ValueError: If steps is smaller than 1
        """
        if steps < POLYGONIZE_NUMPY_THRESHOLD:
            return cls.polygonize_curve_python_inplace(curve, steps, output_buffer, start_index, skip_first)
        return cls.polygonize_curve_numpy_inplace(curve, steps, output_buffer, start_index, skip_first)

    @classmethod
    def polygonize_curve(cls, curve: BSplineCurve, steps: int) -> NDArray[np.float64]:
        """
        Polygonize a curve into line segments.
        Uses pure Python for small step counts, NumPy for larger ones.

        Args:
            curve: The curve to polygonize
            steps: Number of segments to divide the curve into

        Returns:
            NDArray[np.float64] of shape (steps+1, 3) containing the polygonized points (x, y, z)
        """
        # Create buffer and call in-place implementation
        result = np.empty((steps + 1, 3), dtype=np.float64)
        cls.polygonize_curve_inplace(curve, steps, result, start_index=0, skip_first=False)
        return result
