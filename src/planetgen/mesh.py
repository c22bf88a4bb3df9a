"""Mesh assembly — displaced, smoothed, coloured icosphere levels.

A :class:`MeshLevel` is what a renderer consumes: positions, normals,
per-vertex colours, equirectangular UVs and a triangle index buffer,
plus the raw heights and the coastline mask it was built from.

Build steps for one level:

1. displace every unit direction radially by its raw height;
2. (optionally) run adaptive Taubin smoothing with the shared
   effective sea level;
3. compute area-weighted vertex normals;
4. colour by elevation relative to sea level, with polar ice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .config import GenerationConfig
from .icosphere import Icosphere
from .smoothing import smooth_terrain


# ═══════════════════════════════════════════════════════════════════
# Colour ramps
# ═══════════════════════════════════════════════════════════════════

# (height relative to sea level, R, G, B) control points.
# Colours are linearly interpolated between them.

_RAMP_WATER: List[Tuple[float, int, int, int]] = [
    (-0.35, 10, 25, 80),     # abyss
    (-0.12, 20, 50, 120),    # deep ocean
    (-0.04, 35, 90, 160),    # continental shelf
    (0.00, 60, 135, 190),    # shallows
]

_RAMP_LAND: List[Tuple[float, int, int, int]] = [
    (0.000, 200, 190, 140),  # beach
    (0.010, 90, 150, 70),    # coastal green
    (0.040, 110, 160, 60),   # lowland
    (0.080, 150, 150, 70),   # dry upland
    (0.120, 130, 105, 70),   # mountain brown
    (0.160, 115, 100, 90),   # rock
    (0.200, 230, 230, 235),  # snow line
    (0.450, 250, 250, 255),  # snow cap
]

_ICE: Tuple[float, float, float] = (0.92, 0.95, 0.98)


def _lerp_ramp(ramp: List[Tuple[float, int, int, int]], values: np.ndarray) -> np.ndarray:
    """Interpolate *ramp* at every entry of *values*; returns ``(n, 3)`` in ``[0, 1]``."""
    stops = np.array([p[0] for p in ramp], dtype=np.float64)
    out = np.empty(values.shape + (3,), dtype=np.float64)
    for channel in range(3):
        colour = np.array([p[channel + 1] for p in ramp], dtype=np.float64) / 255.0
        out[..., channel] = np.interp(values, stops, colour)
    return out


def elevation_colors(
    raw_heights: np.ndarray,
    directions: np.ndarray,
    sea_level: float,
    ice_latitude: float,
) -> np.ndarray:
    """Per-vertex RGB (float32) from elevation with polar ice caps."""
    offset = np.asarray(raw_heights, dtype=np.float64) - sea_level
    colors = np.where(
        (offset < 0.0)[:, None],
        _lerp_ramp(_RAMP_WATER, offset),
        _lerp_ramp(_RAMP_LAND, offset),
    )
    lat = np.degrees(np.arcsin(np.clip(directions[:, 1], -1.0, 1.0)))
    ice = np.abs(lat) >= ice_latitude
    colors[ice] = _ICE
    return colors.astype(np.float32)


# ═══════════════════════════════════════════════════════════════════
# Geometry helpers
# ═══════════════════════════════════════════════════════════════════

def vertex_normals(positions: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted vertex normals, unit length.

    A vertex whose accumulated normal vanishes falls back to its
    radial direction.
    """
    a = positions[faces[:, 0]]
    b = positions[faces[:, 1]]
    c = positions[faces[:, 2]]
    face_normals = np.cross(b - a, c - a)
    accum = np.zeros_like(positions)
    for k in range(3):
        np.add.at(accum, faces[:, k], face_normals)
    lengths = np.linalg.norm(accum, axis=1)
    radial = positions / np.maximum(np.linalg.norm(positions, axis=1), 1e-12)[:, None]
    safe = lengths > 1e-12
    normals = radial.copy()
    normals[safe] = accum[safe] / lengths[safe][:, None]
    return normals


def equirectangular_uvs(directions: np.ndarray) -> np.ndarray:
    """UVs matching :mod:`planetgen.projection` (u from longitude, v from the north pole)."""
    lat = np.degrees(np.arcsin(np.clip(directions[:, 1], -1.0, 1.0)))
    lon = np.degrees(np.arctan2(directions[:, 2], directions[:, 0]))
    return np.stack([(lon + 180.0) / 360.0, (90.0 - lat) / 180.0], axis=1).astype(np.float32)


# ═══════════════════════════════════════════════════════════════════
# Mesh level
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class MeshLevel:
    """One renderable detail level of the planet."""

    subdivisions: int
    positions: np.ndarray
    normals: np.ndarray
    colors: np.ndarray
    uvs: np.ndarray
    indices: np.ndarray
    raw_heights: np.ndarray
    coastline: np.ndarray

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])


def build_mesh_level(
    sphere: Icosphere,
    raw_heights: np.ndarray,
    sea_level: float,
    config: GenerationConfig,
) -> MeshLevel:
    """Assemble a :class:`MeshLevel` from an icosphere and its raw heights."""
    heights = np.asarray(raw_heights, dtype=np.float64)
    if heights.shape != (sphere.vertex_count,):
        raise ValueError(
            f"Expected {sphere.vertex_count} heights for level {sphere.subdivisions}, "
            f"got {heights.shape}"
        )

    dirs = sphere.directions
    positions = dirs * (config.radius * (1.0 + config.mesh.height_scale * heights))[:, None]

    if config.mesh.smooth and config.smoothing.iterations > 0:
        positions, coastline = smooth_terrain(
            positions, sphere.faces, heights, sea_level, config.smoothing,
        )
    else:
        land = heights >= sea_level
        coastline = np.zeros(heights.shape, dtype=bool)
        f = sphere.faces
        mixed = (land[f] != land[f[:, :1]]).any(axis=1)
        coastline[f[mixed].ravel()] = True

    arrays = dict(
        positions=positions,
        normals=vertex_normals(positions, sphere.faces),
        colors=elevation_colors(heights, dirs, sea_level, config.mesh.ice_latitude),
        uvs=equirectangular_uvs(dirs),
        indices=np.array(sphere.faces, dtype=np.int64),
        raw_heights=heights.copy(),
        coastline=np.asarray(coastline, dtype=bool),
    )
    for arr in arrays.values():
        arr.setflags(write=False)
    return MeshLevel(subdivisions=sphere.subdivisions, **arrays)
