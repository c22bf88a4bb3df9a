"""Terrain mask codec — one byte per climate texel.

Layout::

    bit  7 6 5 4 3 | 2       | 1 0
         reserved  | coastal | terrain class

The reserved bits are carried through decode/encode untouched so that
future flags survive a round trip.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Tuple

import numpy as np

CLASS_MASK = 0b0000_0011
COASTAL_BIT = 0b0000_0100
RESERVED_MASK = 0b1111_1000


class TerrainClass(IntEnum):
    DEEP_OCEAN = 0
    SHALLOW_WATER = 1
    LOWLAND = 2
    HIGHLAND = 3

    @property
    def is_water(self) -> bool:
        return self in (TerrainClass.DEEP_OCEAN, TerrainClass.SHALLOW_WATER)


def encode_terrain_mask(terrain_class: int, coastal: bool, reserved: int = 0) -> int:
    """Pack a class, coastal flag and reserved bits into one byte.

    *reserved* is the already-shifted upper bits (``value & 0xF8``).
    """
    try:
        cls = TerrainClass(terrain_class)
    except ValueError:
        raise ValueError(f"Invalid terrain class: {terrain_class!r}") from None
    if reserved & ~RESERVED_MASK:
        raise ValueError(f"Reserved bits must fit in 0xF8, got {reserved:#x}")
    return int(cls) | (COASTAL_BIT if coastal else 0) | reserved


def decode_terrain_mask(value: int) -> Tuple[TerrainClass, bool, int]:
    """Unpack a mask byte into ``(class, coastal, reserved_bits)``."""
    if isinstance(value, bool) or not 0 <= int(value) <= 255:
        raise ValueError(f"Terrain mask must be a byte in 0..255, got {value!r}")
    value = int(value)
    return (
        TerrainClass(value & CLASS_MASK),
        bool(value & COASTAL_BIT),
        value & RESERVED_MASK,
    )


def classify_terrain(
    heights: np.ndarray,
    sea_level: float,
    shallow_depth: float,
    highland_elevation: float,
) -> np.ndarray:
    """Vectorised terrain class (``uint8``) for an array of raw heights."""
    h = np.asarray(heights, dtype=np.float64)
    offset = h - sea_level
    classes = np.full(h.shape, int(TerrainClass.LOWLAND), dtype=np.uint8)
    classes[offset >= highland_elevation] = int(TerrainClass.HIGHLAND)
    classes[offset < 0.0] = int(TerrainClass.SHALLOW_WATER)
    classes[offset < -shallow_depth] = int(TerrainClass.DEEP_OCEAN)
    return classes


def encode_mask_array(classes: np.ndarray, coastal: np.ndarray) -> np.ndarray:
    """Vectorised :func:`encode_terrain_mask` with no reserved bits set."""
    c = np.asarray(classes, dtype=np.uint8)
    if np.any(c > CLASS_MASK):
        raise ValueError("Terrain class array contains values above 3")
    return (c | np.where(np.asarray(coastal, dtype=bool), COASTAL_BIT, 0)).astype(np.uint8)
