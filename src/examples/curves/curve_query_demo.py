"""
This script demonstrates evaluating, measuring and picking a uniform cubic
B-spline curve with curvekit.
"""

from curvekit.bspline import BSplineBasis, BSplineCurve
from curvekit.common import Ray
from curvekit.curve_length import CurveLength, DistanceScratchTable, new_lookup_table
from curvekit.curve_query import CurveQuery


def print_curve_evaluation(curve: BSplineCurve) -> None:
    """
    Prints position, tangent, acceleration and curvature along the curve.

    Args:
        curve (BSplineCurve): The curve to evaluate.
    """
    print("Curve evaluation:")
    for t in (0.0, 0.25, 0.5, 0.75, 1.0):
        position = BSplineBasis.evaluate_position(curve, t)
        tangent = BSplineBasis.evaluate_tangent(curve, t)
        acceleration = BSplineBasis.evaluate_acceleration(curve, t)
        curvature = BSplineBasis.evaluate_curvature(curve, t)
        print(f"    t={t:4.2f}  position={position}  tangent={tangent}  acceleration={acceleration}")
        print(f"            curvature={curvature:.6f}")


def print_curve_lengths(curve: BSplineCurve) -> None:
    """
    Prints the approximated length and converts some distances into t.

    Args:
        curve (BSplineCurve): The curve to measure.
    """
    length = CurveLength.calculate_length(curve)
    print("Curve length:", length)

    lookup_table = new_lookup_table(30)
    CurveLength.calculate_curve_lengths(curve, lookup_table)
    for fraction in (0.0, 0.25, 0.5, 0.75, 1.0):
        distance = fraction * lookup_table[-1].distance
        t = CurveLength.get_distance_to_interpolation(lookup_table, distance)
        print(f"    distance={distance:9.4f}  t={t:.6f}")

    scratch = DistanceScratchTable()
    t_scratch = CurveLength.get_curve_distance_to_interpolation(curve, length / 2, scratch)
    print(f"    half length (scratch table): t={t_scratch:.6f}")


def print_nearest_point(curve: BSplineCurve, ray: Ray) -> None:
    """
    Prints the point on the curve nearest to the given ray.

    Args:
        curve (BSplineCurve): The curve to pick.
        ray (Ray): The picking ray.
    """
    print("Nearest point:")
    for resolution in (4, 8, 16, 32):
        result = CurveQuery.get_nearest_point(curve, ray, resolution)
        print(
            f"    resolution={resolution:3d}  position={result.position}  "
            f"t={result.t:.6f}  distance={result.distance:.6f}"
        )


def main():
    """Main"""
    curve = BSplineCurve.from_points([(0.0, 0.0, 0.0), (1.0, 2.0, 0.0), (3.0, 2.0, 0.0), (4.0, 0.0, 0.0)])
    print(curve)
    print()
    print_curve_evaluation(curve)
    print()
    print_curve_lengths(curve)
    print()
    position = BSplineBasis.evaluate_position(curve, 0.3)
    print_nearest_point(curve, Ray(origin=position + (0.0, 0.0, 5.0), direction=(0.0, 0.0, -1.0)))


if __name__ == "__main__":
    main()
