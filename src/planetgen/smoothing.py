"""Adaptive mesh smoothing — Taubin λ|μ passes with per-vertex weights.

Plain Laplacian smoothing shrinks a closed mesh and erodes every
coastline it touches.  Here each iteration is a shrink step with
``+strength`` followed by an unshrink step with
``−strength · unshrink_ratio`` (ratio > 1), and every vertex carries a
weight that scales its step:

==========================  ===============================
vertex                      weight
==========================  ===============================
coastline                   0 (never moves)
one hop from coastline      ``coast_neighbor_weight``
ocean                       by depth: deep / mid / shallow
land peak                   ``peak_weight``
beach (just above sea)      ``beach_weight``
other land                  ``inland_weight``
==========================  ===============================

After each step a moved vertex is pushed back to its original radial
distance, so smoothing redistributes vertices tangentially and never
changes the planet's silhouette.

Functions
---------
- :func:`build_vertex_adjacency` — sorted neighbour lists from faces
- :func:`adjacency_matrix` — the same as a ``scipy.sparse`` CSR matrix
- :func:`classify_coastline` — land/water boundary mask
- :func:`smoothing_weights` — per-vertex step weights
- :func:`taubin_smooth` — the smoothing passes themselves
- :func:`smooth_terrain` — all of the above in one call
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Union

import numpy as np
from scipy import sparse

from .config import SmoothingConfig

logger = logging.getLogger(__name__)

Adjacency = Union[Sequence[Sequence[int]], sparse.spmatrix]


# ═══════════════════════════════════════════════════════════════════
# Adjacency
# ═══════════════════════════════════════════════════════════════════

def build_vertex_adjacency(faces: np.ndarray, vertex_count: int) -> List[List[int]]:
    """Return, for each vertex, the sorted indices of its edge neighbours."""
    neighbours: List[set] = [set() for _ in range(vertex_count)]
    for a, b, c in np.asarray(faces, dtype=np.int64).tolist():
        neighbours[a].update((b, c))
        neighbours[b].update((a, c))
        neighbours[c].update((a, b))
    return [sorted(s) for s in neighbours]


def adjacency_matrix(adjacency: Adjacency) -> sparse.csr_matrix:
    """Symmetric 0/1 CSR matrix from neighbour lists (passed through if sparse)."""
    if sparse.issparse(adjacency):
        return sparse.csr_matrix(adjacency)
    rows: List[int] = []
    cols: List[int] = []
    for i, nbrs in enumerate(adjacency):
        rows.extend([i] * len(nbrs))
        cols.extend(nbrs)
    n = len(adjacency)
    data = np.ones(len(rows), dtype=np.float64)
    return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))


# ═══════════════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════════════

def classify_coastline(adjacency: Adjacency, heights, sea_level: float) -> np.ndarray:
    """Boolean mask of vertices with at least one neighbour across the water line.

    Land is ``height >= sea_level``.  Both sides of the boundary are
    marked, so the full land/water edge is pinned.
    """
    matrix = adjacency_matrix(adjacency)
    land = (np.asarray(heights, dtype=np.float64) >= sea_level).astype(np.float64)
    land_neighbours = matrix @ land
    degree = np.asarray(matrix.sum(axis=1)).ravel()
    is_land = land > 0.5
    return np.where(is_land, land_neighbours < degree, land_neighbours > 0)


def smoothing_weights(
    adjacency: Adjacency,
    heights,
    sea_level: float,
    coastline: np.ndarray,
    config: SmoothingConfig,
) -> np.ndarray:
    """Per-vertex multiplier on the Laplacian step (see module table)."""
    h = np.asarray(heights, dtype=np.float64)
    coast = np.asarray(coastline, dtype=bool)
    matrix = adjacency_matrix(adjacency)

    offset = h - sea_level
    depth = -offset

    weights = np.full(h.shape, config.inland_weight, dtype=np.float64)

    # Ocean, graduated by depth
    water = offset < 0.0
    weights[water] = config.shallow_ocean_weight
    weights[water & (depth >= config.mid_ocean_depth)] = config.mid_ocean_weight
    weights[water & (depth >= config.deep_ocean_depth)] = config.deep_ocean_weight

    # Land extremes
    land = ~water
    weights[land & (offset < config.beach_band)] = config.beach_weight
    weights[land & (offset > config.peak_elevation)] = config.peak_weight

    # Coastline ring
    near_coast = (matrix @ coast.astype(np.float64)) > 0
    weights[near_coast] = config.coast_neighbor_weight
    weights[coast] = 0.0
    return weights


# ═══════════════════════════════════════════════════════════════════
# Taubin smoothing
# ═══════════════════════════════════════════════════════════════════

def _laplacian_step(
    points: np.ndarray,
    matrix: sparse.csr_matrix,
    degree: np.ndarray,
    weights: np.ndarray,
    factor: float,
    radii: np.ndarray,
    moving: np.ndarray,
) -> np.ndarray:
    sums = matrix @ points
    safe = np.where(degree > 0, degree, 1.0)[:, None]
    mean = np.where(degree[:, None] > 0, sums / safe, points)
    stepped = points + (factor * weights)[:, None] * (mean - points)

    # Re-project moved vertices onto their original radius.
    lengths = np.linalg.norm(stepped[moving], axis=1)
    lengths = np.where(lengths > 0, lengths, 1.0)
    stepped[moving] *= (radii[moving] / lengths)[:, None]
    stepped[~moving] = points[~moving]
    return stepped


def taubin_smooth(
    positions,
    adjacency: Adjacency,
    weights,
    iterations: int = 2,
    strength: float = 0.5,
    unshrink_ratio: float = 1.06,
) -> np.ndarray:
    """Run *iterations* λ|μ pairs and return the smoothed positions.

    *positions* is not modified.  Vertices whose weight is zero come
    back bit-for-bit identical.
    """
    if iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {iterations}")
    if unshrink_ratio <= 1.0:
        raise ValueError(f"unshrink_ratio must be > 1, got {unshrink_ratio}")

    original = np.asarray(positions, dtype=np.float64)
    points = original.copy()
    w = np.asarray(weights, dtype=np.float64)
    matrix = adjacency_matrix(adjacency)
    degree = np.asarray(matrix.sum(axis=1)).ravel()
    radii = np.linalg.norm(original, axis=1)
    moving = w > 0.0

    shrink = strength
    unshrink = -strength * unshrink_ratio
    for _ in range(iterations):
        points = _laplacian_step(points, matrix, degree, w, shrink, radii, moving)
        points = _laplacian_step(points, matrix, degree, w, unshrink, radii, moving)

    points[~moving] = original[~moving]
    return points


def smooth_terrain(
    positions,
    faces: np.ndarray,
    heights,
    sea_level: float,
    config: SmoothingConfig,
) -> tuple:
    """Classify, weight and smooth a terrain mesh.

    Returns ``(smoothed_positions, coastline_mask)``.
    """
    pts = np.asarray(positions, dtype=np.float64)
    adjacency = adjacency_matrix(build_vertex_adjacency(faces, pts.shape[0]))
    coast = classify_coastline(adjacency, heights, sea_level)
    weights = smoothing_weights(adjacency, heights, sea_level, coast, config)
    smoothed = taubin_smooth(
        pts, adjacency, weights,
        iterations=config.iterations,
        strength=config.strength,
        unshrink_ratio=config.unshrink_ratio,
    )
    logger.debug(
        "Smoothed %d vertices (%d coastline, %d iterations)",
        pts.shape[0], int(coast.sum()), config.iterations,
    )
    return smoothed, coast
