"""Handling geometric primitives"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from curvekit.common import Vec3, Vec3Like

# Absolute tolerance floor used by GeomMath.approximately
_APPROXIMATELY_EPSILON: float = 1.0e-4


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to geometry handling."""

    @staticmethod
    def clamp01(value: float) -> float:
        """Clamp the given value to the range [0, 1]."""
        return min(max(float(value), 0.0), 1.0)

    @staticmethod
    def lerp(start: float, end: float, fraction: float) -> float:
        """Linear interpolation between start and end, fraction is not clamped."""
        return start + (end - start) * fraction

    @staticmethod
    def approximately(a: float, b: float) -> bool:
        """
        Compare two floats using a relative tolerance with an absolute floor.

        Two values are considered equal if
            |b - a| < max(1e-6 * max(|a|, |b|), 8 * 1e-4)

        Args:
            a (float): first value
            b (float): second value

        Returns:
            bool: True if both values are approximately equal
        """
        return abs(b - a) < max(1.0e-6 * max(abs(a), abs(b)), _APPROXIMATELY_EPSILON * 8)

    @staticmethod
    def ray_line_nearest_point(
        ray_origin: Vec3Like,
        ray_direction: Vec3Like,
        line_start: Vec3Like,
        line_end: Vec3Like,
    ) -> Tuple[Vec3, Vec3, float, float]:
        """
        Find the closest pair of points between a ray and a line segment.

        The ray is treated as the infinite line
            R(s) = ray_origin + s * ray_direction
        and the segment as
            L(u) = line_start + u * (line_end - line_start),  u in [0, 1]

        The squared distance |L(u) - R(s)|^2 minimized over s is a convex
        quadratic in u, so clamping the unconstrained solution u to [0, 1]
        yields the exact nearest point on the segment. The ray parameter is then
        the projection of that point onto the ray.

        Degenerate input:
        - parallel ray and segment or zero length segment: u = 0
        - zero length ray direction: s = 0 (the ray origin is used)

        Args:
            ray_origin: Origin of the ray
            ray_direction: Direction of the ray, need not be normalized
            line_start: Start point of the segment
            line_end: End point of the segment

        Returns:
            Tuple[Vec3, Vec3, float, float]: (point_on_ray, point_on_segment, ray_param, line_param)
        """
        origin = np.asarray(ray_origin, dtype=np.float64)
        direction = np.asarray(ray_direction, dtype=np.float64)
        start = np.asarray(line_start, dtype=np.float64)
        edge = np.asarray(line_end, dtype=np.float64) - start
        offset = start - origin

        dir_dot_dir = float(np.dot(direction, direction))
        dir_dot_edge = float(np.dot(direction, edge))
        edge_dot_edge = float(np.dot(edge, edge))
        dir_dot_offset = float(np.dot(direction, offset))
        edge_dot_offset = float(np.dot(edge, offset))

        denominator = dir_dot_dir * edge_dot_edge - dir_dot_edge * dir_dot_edge
        if denominator > 0.0 and math.isfinite(denominator):
            line_param = (dir_dot_edge * dir_dot_offset - dir_dot_dir * edge_dot_offset) / denominator
            line_param = min(max(line_param, 0.0), 1.0)
        else:
            line_param = 0.0

        if dir_dot_dir > 0.0:
            ray_param = (dir_dot_offset + line_param * dir_dot_edge) / dir_dot_dir
        else:
            ray_param = 0.0

        line_point = start + edge * line_param
        ray_point = origin + direction * ray_param
        return ray_point, line_point, ray_param, line_param


def main():
    """Main"""
    ray_point, line_point, ray_param, line_param = GeomMath.ray_line_nearest_point(
        (0.5, 1.0, 0.0), (0.0, -1.0, 0.0), (0.0, 0.0, 0.0), (2.0, 0.0, 0.0)
    )
    print("ray point:  ", ray_point, "s =", ray_param)
    print("line point: ", line_point, "u =", line_param)


if __name__ == "__main__":
    main()
