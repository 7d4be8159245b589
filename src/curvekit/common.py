"""Central module containing types, constants and defaults for curve evaluation."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray

###############################################################################
# Types
###############################################################################


Vec3 = NDArray[np.float64]  # 3D vector as numpy array of shape (3,)

Vec3Like = Union[Sequence[float], NDArray[np.float64]]  # (x, y) or (x, y, z)


###############################################################################
# Enums and Consts
###############################################################################


# Number of sample points used when rasterizing a curve for ray queries
DEFAULT_RAY_RESOLUTION: int = 16

# Number of sample points used when approximating the curve length
DEFAULT_LENGTH_RESOLUTION: int = 30

# Number of entries of the scratch lookup table for one-shot distance queries
DEFAULT_SCRATCH_CAPACITY: int = 24

# Below this step count the scalar polygonizer is used instead of the NumPy one,
# see examples/qnd/bspline_polygonize_benchmark.py
POLYGONIZE_NUMPY_THRESHOLD: int = 70


###############################################################################
# Data classes
###############################################################################


@dataclass(frozen=True)
class DistanceSample:
    """
    One entry of a distance to interpolation lookup table.

    Attributes:
        distance (float): Accumulated curve length from t=0 up to this sample.
        t (float): Curve parameter in range [0, 1] belonging to the distance.
    """

    distance: float = 0.0
    t: float = 0.0


@dataclass(frozen=True, eq=False)
class Ray:
    """
    A ray given by origin and direction.

    The direction does not need to be normalized. Both vectors are converted
    to read-only float64 arrays of shape (3,), 2D inputs get z=0.
    """

    origin: Vec3
    direction: Vec3

    def __post_init__(self):
        object.__setattr__(self, "origin", as_vec3(self.origin))
        object.__setattr__(self, "direction", as_vec3(self.direction))


@dataclass(frozen=True, eq=False)
class RayQueryResult:
    """
    Result of a nearest point query between a curve and a ray.

    Attributes:
        position (Vec3): Nearest position on the (rasterized) curve.
        t (float): Curve parameter in range [0, 1] at which the position is located.
        distance (float): Distance between the position and the ray.
    """

    position: Vec3
    t: float
    distance: float


###############################################################################
# Functions
###############################################################################


def as_vec3(value: Vec3Like) -> Vec3:
    """
    Convert a 2D or 3D point/vector into a read-only float64 array of shape (3,).

    Args:
        value: (x, y) or (x, y, z) as sequence or numpy array

    Returns:
        Vec3: a new array, z is set to 0.0 for 2D input

    Raises:
        ValueError: If the input does not hold 2 or 3 coordinates
    """
    array = np.asarray(value, dtype=np.float64)
    if array.ndim != 1 or array.shape[0] not in (2, 3):
        raise ValueError(f"Expected (x, y) or (x, y, z) coordinates, got shape {array.shape}")

    vec = np.zeros(3, dtype=np.float64)
    vec[: array.shape[0]] = array
    vec.flags.writeable = False
    return vec


def main() -> None:
    """Display system information and the default resolutions."""
    print("sys.path:  ", sys.path)
    print()
    print("PYTHONPATH:", os.environ.get("PYTHONPATH", ""))
    print()

    print("DEFAULT_RAY_RESOLUTION:    ", DEFAULT_RAY_RESOLUTION)
    print("DEFAULT_LENGTH_RESOLUTION: ", DEFAULT_LENGTH_RESOLUTION)
    print("DEFAULT_SCRATCH_CAPACITY:  ", DEFAULT_SCRATCH_CAPACITY)

    print()


if __name__ == "__main__":
    main()
