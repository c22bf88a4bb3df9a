"""Icosphere builder — recursive midpoint subdivision of an icosahedron.

Starts from the regular 12-vertex / 20-face icosahedron.  Each pass
splits every triangle into four by inserting the midpoint of each edge;
a per-pass cache keyed by the unordered vertex-index pair guarantees
each edge is split exactly once, so no vertex is duplicated.  New
points are normalised onto the unit sphere.

Subdivision never renumbers existing vertices, so the vertices of level
``n − 1`` are exactly the first vertices of level ``n``.  The session
relies on that to sample heights once at the highest detail and slice
them for every lower level.

Faces are wound counter-clockwise when seen from outside the sphere,
so ``(b − a) × (c − a)`` points outward for every triangle.

Functions
---------
- :func:`build_icosphere` — one level
- :func:`build_icosphere_levels` — every level from 0 to *n*
- :func:`icosphere_vertex_count` / :func:`icosphere_face_count`
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

MAX_SUBDIVISIONS = 8
"""Upper bound on subdivision; level 8 already has ~1.3 M triangles."""

_PHI = (1.0 + math.sqrt(5.0)) / 2.0

_ICOSAHEDRON_VERTICES: Tuple[Tuple[float, float, float], ...] = (
    (-1.0, _PHI, 0.0), (1.0, _PHI, 0.0), (-1.0, -_PHI, 0.0), (1.0, -_PHI, 0.0),
    (0.0, -1.0, _PHI), (0.0, 1.0, _PHI), (0.0, -1.0, -_PHI), (0.0, 1.0, -_PHI),
    (_PHI, 0.0, -1.0), (_PHI, 0.0, 1.0), (-_PHI, 0.0, -1.0), (-_PHI, 0.0, 1.0),
)

_ICOSAHEDRON_FACES: Tuple[Tuple[int, int, int], ...] = (
    (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
    (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
    (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
    (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
)


def icosphere_vertex_count(subdivisions: int) -> int:
    """Number of vertices at *subdivisions*: ``10 · 4ⁿ + 2``."""
    return 10 * 4 ** subdivisions + 2


def icosphere_face_count(subdivisions: int) -> int:
    """Number of triangles at *subdivisions*: ``20 · 4ⁿ``."""
    return 20 * 4 ** subdivisions


@dataclass(frozen=True, eq=False)
class Icosphere:
    """A triangulated sphere in index-buffer form.

    Attributes
    ----------
    subdivisions : int
        Subdivision level this sphere was built at.
    radius : float
        Target radius; :attr:`positions` are scaled by it.
    directions : numpy.ndarray
        ``(n, 3)`` float64 unit vectors, read-only.
    faces : numpy.ndarray
        ``(m, 3)`` int64 vertex indices, read-only.
    """

    subdivisions: int
    radius: float
    directions: np.ndarray
    faces: np.ndarray

    @property
    def vertex_count(self) -> int:
        return int(self.directions.shape[0])

    @property
    def face_count(self) -> int:
        return int(self.faces.shape[0])

    @property
    def positions(self) -> np.ndarray:
        """Vertex positions on the sphere of :attr:`radius`."""
        return self.directions * self.radius


def _validate(subdivisions: int, radius: float) -> None:
    if isinstance(subdivisions, bool) or not isinstance(subdivisions, int):
        raise ValueError(f"subdivisions must be an int, got {subdivisions!r}")
    if subdivisions < 0:
        raise ValueError(f"subdivisions must be >= 0, got {subdivisions}")
    if subdivisions > MAX_SUBDIVISIONS:
        raise ValueError(f"subdivisions must be <= {MAX_SUBDIVISIONS}, got {subdivisions}")
    if not radius > 0:
        raise ValueError(f"radius must be positive, got {radius!r}")


def _unit(v: Tuple[float, float, float]) -> Tuple[float, float, float]:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    return (v[0] / length, v[1] / length, v[2] / length)


def _freeze(
    level: int,
    radius: float,
    vertices: List[Tuple[float, float, float]],
    faces: List[Tuple[int, int, int]],
) -> Icosphere:
    directions = np.array(vertices, dtype=np.float64)
    face_array = np.array(faces, dtype=np.int64)
    directions.setflags(write=False)
    face_array.setflags(write=False)
    return Icosphere(level, float(radius), directions, face_array)


def build_icosphere_levels(max_subdivisions: int, radius: float = 1.0) -> List[Icosphere]:
    """Build every icosphere level from 0 up to *max_subdivisions*.

    Parameters
    ----------
    max_subdivisions : int
        Highest subdivision level, in ``[0, MAX_SUBDIVISIONS]``.
    radius : float
        Target radius (must be positive).

    Returns
    -------
    list[Icosphere]
        ``levels[n]`` is the sphere at subdivision ``n``.
    """
    _validate(max_subdivisions, radius)

    vertices: List[Tuple[float, float, float]] = [_unit(v) for v in _ICOSAHEDRON_VERTICES]
    faces: List[Tuple[int, int, int]] = list(_ICOSAHEDRON_FACES)
    levels = [_freeze(0, radius, vertices, faces)]

    for level in range(1, max_subdivisions + 1):
        cache: Dict[Tuple[int, int], int] = {}

        def midpoint(a: int, b: int) -> int:
            key = (a, b) if a < b else (b, a)
            idx = cache.get(key)
            if idx is not None:
                return idx
            va, vb = vertices[a], vertices[b]
            vertices.append(_unit((
                (va[0] + vb[0]) * 0.5,
                (va[1] + vb[1]) * 0.5,
                (va[2] + vb[2]) * 0.5,
            )))
            idx = len(vertices) - 1
            cache[key] = idx
            return idx

        next_faces: List[Tuple[int, int, int]] = []
        for a, b, c in faces:
            ab = midpoint(a, b)
            bc = midpoint(b, c)
            ca = midpoint(c, a)
            next_faces.append((a, ab, ca))
            next_faces.append((b, bc, ab))
            next_faces.append((c, ca, bc))
            next_faces.append((ab, bc, ca))
        faces = next_faces
        levels.append(_freeze(level, radius, vertices, faces))

    return levels


def build_icosphere(subdivisions: int, radius: float = 1.0) -> Icosphere:
    """Build a single icosphere at *subdivisions* with the given *radius*.

    Raises ``ValueError`` for a negative (or too large) level or a
    non-positive radius.
    """
    return build_icosphere_levels(subdivisions, radius)[-1]
