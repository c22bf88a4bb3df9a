"""Effective sea level — guarantees a minimum land fraction.

The nominal sea level from the config is kept whenever enough of the
sampled heights already sit at or above it.  Otherwise the water line
drops to the percentile that leaves exactly ``min_land_ratio`` of the
samples dry.  The result is computed once, from the highest-detail
mesh, and shared by every lower-detail mesh and the climate bake.
"""

from __future__ import annotations

import logging
import math

import numpy as np

logger = logging.getLogger(__name__)


def land_fraction(raw_heights, sea_level: float) -> float:
    """Fraction of *raw_heights* at or above *sea_level*."""
    heights = np.asarray(raw_heights, dtype=np.float64)
    if heights.size == 0:
        raise ValueError("land_fraction needs at least one height sample")
    return float(np.count_nonzero(heights >= sea_level)) / heights.size


def effective_sea_level(raw_heights, nominal: float, min_land_ratio: float) -> float:
    """Return the water line that keeps at least *min_land_ratio* dry.

    Parameters
    ----------
    raw_heights : array_like
        Raw (unsmoothed) heights of the highest-detail vertices.
    nominal : float
        Configured sea level.
    min_land_ratio : float
        Required land fraction in ``[0, 1]``.

    Returns
    -------
    float
        *nominal* if it already satisfies the ratio, otherwise the
        sorted height at index ``floor((1 − ratio) · n)``.
    """
    if not 0.0 <= min_land_ratio <= 1.0:
        raise ValueError(f"min_land_ratio must be in [0, 1], got {min_land_ratio!r}")
    heights = np.asarray(raw_heights, dtype=np.float64).ravel()
    if heights.size == 0:
        raise ValueError("effective_sea_level needs at least one height sample")

    current = land_fraction(heights, nominal)
    if current >= min_land_ratio:
        logger.debug("Nominal sea level %.4f kept (land %.1f%%)", nominal, current * 100)
        return float(nominal)

    ordered = np.sort(heights)
    index = min(int(math.floor((1.0 - min_land_ratio) * ordered.size)), ordered.size - 1)
    level = float(ordered[index])
    logger.info(
        "Sea level lowered %.4f -> %.4f (land %.1f%% -> %.1f%%)",
        nominal, level, current * 100, land_fraction(heights, level) * 100,
    )
    return level
