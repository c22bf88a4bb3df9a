"""Equirectangular projection between sphere directions and grid texels.

Conventions
-----------
* North is ``+y``.  Latitude is ``asin(y)``; longitude is
  ``atan2(z, x)``, so ``+x`` is longitude 0 and ``+z`` is 90°E.
* Row 0 is the northern edge of the grid, column 0 is longitude −180°.
* A direction maps to the texel that contains it; the inverse returns
  the texel centre.  A round trip therefore lands within one texel.

Scalar helpers work on tuples; the ``*_grid`` helpers produce whole
numpy arrays for the climate bake.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np

from .geometry import Vec3, normalize


def direction_to_lat_lon(direction: Sequence[float]) -> Tuple[float, float]:
    """Latitude and longitude, in degrees, of *direction*."""
    x, y, z = normalize(direction)
    lat = math.degrees(math.asin(max(-1.0, min(1.0, y))))
    lon = math.degrees(math.atan2(z, x))
    return lat, lon


def lat_lon_to_direction(lat: float, lon: float) -> Vec3:
    """Unit direction for a latitude / longitude pair in degrees."""
    phi = math.radians(lat)
    lam = math.radians(lon)
    c = math.cos(phi)
    return (c * math.cos(lam), math.sin(phi), c * math.sin(lam))


def direction_to_texel(direction: Sequence[float], width: int, height: int) -> Tuple[int, int]:
    """``(row, col)`` of the texel containing *direction*."""
    lat, lon = direction_to_lat_lon(direction)
    u = (lon + 180.0) / 360.0
    v = (90.0 - lat) / 180.0
    col = min(int(u * width), width - 1)
    row = min(int(v * height), height - 1)
    return max(row, 0), max(col, 0)


def texel_lat_lon(row: int, col: int, width: int, height: int) -> Tuple[float, float]:
    """Latitude / longitude of the centre of texel ``(row, col)``."""
    lat = 90.0 - (row + 0.5) * 180.0 / height
    lon = -180.0 + (col + 0.5) * 360.0 / width
    return lat, lon


def texel_to_direction(row: int, col: int, width: int, height: int) -> Vec3:
    """Unit direction through the centre of texel ``(row, col)``."""
    return lat_lon_to_direction(*texel_lat_lon(row, col, width, height))


# ═══════════════════════════════════════════════════════════════════
# Whole-grid helpers
# ═══════════════════════════════════════════════════════════════════

def texel_lat_lon_grid(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """``(lat, lon)`` arrays in degrees, each of shape ``(height, width)``."""
    lats = 90.0 - (np.arange(height) + 0.5) * 180.0 / height
    lons = -180.0 + (np.arange(width) + 0.5) * 360.0 / width
    lon_grid, lat_grid = np.meshgrid(lons, lats)
    return lat_grid, lon_grid


def lat_lon_to_direction_array(lat: np.ndarray, lon: np.ndarray) -> np.ndarray:
    """Vectorised :func:`lat_lon_to_direction`; result has a trailing axis of 3."""
    phi = np.radians(lat)
    lam = np.radians(lon)
    c = np.cos(phi)
    return np.stack([c * np.cos(lam), np.sin(phi), c * np.sin(lam)], axis=-1)


def texel_direction_grid(width: int, height: int) -> np.ndarray:
    """Unit directions of every texel centre, shape ``(height, width, 3)``."""
    lat, lon = texel_lat_lon_grid(width, height)
    return lat_lon_to_direction_array(lat, lon)


def lat_lon_to_texel_array(
    lat: np.ndarray, lon: np.ndarray, width: int, height: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised nearest texel for lat / lon arrays; longitude wraps."""
    lon_wrapped = (np.asarray(lon) + 180.0) % 360.0
    cols = np.floor(lon_wrapped / 360.0 * width).astype(np.int64)
    rows = np.floor((90.0 - np.asarray(lat)) / 180.0 * height).astype(np.int64)
    return np.clip(rows, 0, height - 1), np.clip(cols, 0, width - 1)
