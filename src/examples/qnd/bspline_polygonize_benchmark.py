# bspline_polygonize_benchmark.py
# Run with: python bspline_polygonize_benchmark.py
# Compares the pure Python and the NumPy polygonizer of curvekit.bspline to
# find the step count at which NumPy starts to win (POLYGONIZE_NUMPY_THRESHOLD).

import timeit

import numpy as np

from curvekit.bspline import BSplineBasis, BSplineCurve

# Test curve: a nice "S" shape
CURVE = BSplineCurve.from_points([(0.0, 0.0, 0.0), (100.0, 200.0, 0.0), (0.0, -200.0, 50.0), (200.0, 0.0, 0.0)])

STEPS_LIST = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 150, 200, 300, 500, 1_000, 3_000]


def python_inplace(steps: int, buffer: np.ndarray):
    BSplineBasis.polygonize_curve_python_inplace(CURVE, steps, buffer)


def numpy_inplace(steps: int, buffer: np.ndarray):
    BSplineBasis.polygonize_curve_numpy_inplace(CURVE, steps, buffer)


versions = {
    "Python loop": python_inplace,
    "NumPy": numpy_inplace,
}


def main(steps_list=None, budget: int = 150_000):
    """Run the benchmark and print the crossover step count."""
    steps_list = steps_list or STEPS_LIST

    print("B-spline Polygonization Benchmark (lower = better)")
    print("Steps   |   Python loop    |      NumPy       | Fastest")
    print("-" * 62)

    crossover = None
    for steps in steps_list:
        buffer = np.empty((steps + 1, 3), dtype=np.float64)
        timings = {}
        # Auto-scale repeats so each test takes reasonable time
        repeats = max(1, budget // steps)

        for name, func in versions.items():
            dt = timeit.timeit(lambda: func(steps, buffer), number=repeats)  # pylint: disable=cell-var-from-loop
            timings[name] = dt * 1000 / repeats  # ms per call

        fastest = min(timings, key=timings.get)
        if crossover is None and fastest == "NumPy":
            crossover = steps

        print(f"{steps:6}  |  {timings['Python loop']:9.3f} ms  |  {timings['NumPy']:9.3f} ms  |  {fastest}")

    if crossover:
        print(f"\n-> Use pure Python loop when steps < {crossover}")
    else:
        print("\nPure Python loop wins at all tested step counts!")


if __name__ == "__main__":
    main()
