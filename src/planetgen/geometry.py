"""Small vector helpers for points on the unit sphere.

Scalar paths (one direction at a time, as used by the height function)
work on plain ``(x, y, z)`` tuples.  Bulk paths over mesh and grid
buffers use numpy directly in the modules that own those buffers.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

Vec3 = Tuple[float, float, float]

# Directions shorter than this cannot be normalised meaningfully.
_MIN_LENGTH = 1e-12


def normalize(v: Sequence[float]) -> Vec3:
    """Return *v* scaled to unit length.

    Raises ``ValueError`` for zero-length (or non-finite) input so that
    every query path treats degenerate directions the same way.
    """
    x, y, z = float(v[0]), float(v[1]), float(v[2])
    length = math.sqrt(x * x + y * y + z * z)
    if not length > _MIN_LENGTH or math.isinf(length):
        raise ValueError(f"Cannot normalise direction {tuple(v)!r}")
    return (x / length, y / length, z / length)


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def sub(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale(v: Sequence[float], s: float) -> Vec3:
    return (v[0] * s, v[1] * s, v[2] * s)


def length(v: Sequence[float]) -> float:
    return math.sqrt(dot(v, v))


def angular_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Cheap angular distance ``1 − a·b`` between two unit vectors.

    Ranges from 0 (same point) to 2 (antipodal).  Monotonic in the true
    great-circle angle, which is all the plate queries need.
    """
    return 1.0 - dot(a, b)


def project_tangent(v: Sequence[float], normal: Sequence[float]) -> Vec3:
    """Remove the component of *v* along the unit vector *normal*."""
    d = dot(v, normal)
    return (v[0] - normal[0] * d, v[1] - normal[1] * d, v[2] - normal[2] * d)
