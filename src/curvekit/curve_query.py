"""Nearest point queries between B-spline curves and rays."""

from __future__ import annotations

import math

import numpy as np

from curvekit.bspline import BSplineBasis, BSplineCurve
from curvekit.common import DEFAULT_RAY_RESOLUTION, Ray, RayQueryResult, Vec3
from curvekit.geom import GeomMath


class CurveQuery:
    """Utility class for picking points on curves with rays."""

    @staticmethod
    def get_nearest_point(curve: BSplineCurve, ray: Ray, resolution: int = DEFAULT_RAY_RESOLUTION) -> RayQueryResult:
        """Find the point on a curve nearest to a ray.

        The curve is rasterized into resolution points uniformly in t, i.e.
        resolution-1 line segments. For each segment the closest pair of points
        between the ray and the segment is computed and the segment with the
        smallest distance wins (the first one on ties). Its local segment
        parameter is mapped into the global parameter range:

            t = (segment_index + line_param) / (resolution - 1)

        The result is an approximation: the nearest point of the smooth curve
        may lie between the rasterized segments. A higher resolution is more
        accurate, but slower to calculate.

        Args:
            curve: The curve to test
            ray: The input ray
            resolution: Number of sample points the curve is rasterized into

        Returns:
            RayQueryResult: nearest position on the rasterized curve, its t and
                the distance to the ray

        Raises:
            ValueError: If resolution is smaller than 2
        """
        if resolution < 2:
            raise ValueError(f"Nearest point search needs a resolution of at least 2, got {resolution}")

        steps = resolution - 1
        points = np.empty((resolution, 3), dtype=np.float64)
        BSplineBasis.polygonize_curve_inplace(curve, steps, points, start_index=0, skip_first=False)

        best_dist_sq = math.inf
        best_index = 0
        best_line_param = 0.0
        position: Vec3 = points[0].copy()

        for index in range(steps):
            ray_point, line_point, _, line_param = GeomMath.ray_line_nearest_point(
                ray.origin, ray.direction, points[index], points[index + 1]
            )
            delta = line_point - ray_point
            dist_sq = float(np.dot(delta, delta))

            if dist_sq < best_dist_sq:
                position = line_point
                best_dist_sq = dist_sq
                best_index = index
                best_line_param = line_param

        t = (best_index + best_line_param) / steps
        return RayQueryResult(position=position, t=min(t, 1.0), distance=math.sqrt(best_dist_sq))

    @classmethod
    def get_nearest_point_position(
        cls, curve: BSplineCurve, ray: Ray, resolution: int = DEFAULT_RAY_RESOLUTION
    ) -> Vec3:
        """Return only the position of get_nearest_point."""
        return cls.get_nearest_point(curve, ray, resolution).position
