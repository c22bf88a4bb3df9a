"""Tectonic plate field — seeded plates and boundary queries.

A small set of plates (12 by default) scattered uniformly over the
sphere stands in for a tectonic simulation.  Each plate carries a
tangential drift vector, a continental / oceanic flag and a base
elevation.  The height function asks two things of the field:

* which two plates are nearest to a direction (angular distance
  ``1 − dot``, linear scan — plate counts are small), and
* how strongly those two plates converge along the axis between them,
  which approximates orogeny along the shared boundary.

Usage
-----
>>> from planetgen.noise import make_rng
>>> from planetgen.config import PlateConfig
>>> field = generate_plates(make_rng(7), PlateConfig())
>>> nearest, second, d1, d2 = field.nearest_two((0.0, 1.0, 0.0))
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Sequence, Tuple

from .config import PlateConfig
from .geometry import Vec3, angular_distance, dot, normalize, project_tangent, scale, sub

# Convergence weights by collision type.
CONTINENT_CONTINENT_WEIGHT = 1.0
MIXED_WEIGHT = 0.6
OCEAN_OCEAN_WEIGHT = 0.3

# Distance reported for the missing second plate of a one-plate field.
_NO_NEIGHBOUR_DISTANCE = 2.0


@dataclass(frozen=True)
class Plate:
    """One tectonic plate.  Immutable once generated."""

    index: int
    direction: Vec3
    drift: Vec3
    continental: bool
    base_elevation: float


@dataclass(frozen=True)
class PlateField:
    """The plates of one generation plus the boundary tuning.

    Attributes
    ----------
    plates : tuple[Plate, ...]
        Non-empty.
    convergence_gain : float
        Uplift per unit of closing drift.
    boundary_width : float
        Width of the boundary band in ``1 − dot`` units.
    """

    plates: Tuple[Plate, ...]
    convergence_gain: float = 0.07
    boundary_width: float = 0.06

    def __post_init__(self) -> None:
        if not self.plates:
            raise RuntimeError("PlateField needs at least one plate")

    def __len__(self) -> int:
        return len(self.plates)

    # ── queries ─────────────────────────────────────────────────────

    def nearest_two(self, direction: Sequence[float]) -> Tuple[Plate, Plate, float, float]:
        """Nearest and second-nearest plate to unit *direction*.

        Returns ``(nearest, second, d1, d2)`` with ``d1 <= d2``.  A
        one-plate field returns that plate twice with ``d2 = 2``.
        """
        best = second = self.plates[0]
        d_best = d_second = math.inf
        for plate in self.plates:
            d = angular_distance(direction, plate.direction)
            if d < d_best:
                second, d_second = best, d_best
                best, d_best = plate, d
            elif d < d_second:
                second, d_second = plate, d
        if math.isinf(d_second):
            return best, best, d_best, _NO_NEIGHBOUR_DISTANCE
        return best, second, d_best, d_second

    def boundary_factor(self, d1: float, d2: float) -> float:
        """1.0 on the boundary between two plates, falling to 0.0 inside."""
        if self.boundary_width <= 0:
            return 0.0
        t = (d2 - d1) / self.boundary_width
        return 1.0 - max(0.0, min(1.0, t))

    def convergence(self, a: Plate, b: Plate) -> float:
        """Signed convergence strength between plates *a* and *b*.

        The relative drift of *b* with respect to *a*, projected onto
        the axis from *a* to *b* and negated: positive when the plates
        close on each other, negative when they pull apart.
        """
        if a.index == b.index:
            return 0.0
        axis_raw = sub(b.direction, a.direction)
        if dot(axis_raw, axis_raw) == 0.0:
            return 0.0
        axis = normalize(axis_raw)
        closing = -dot(sub(b.drift, a.drift), axis)
        return closing * self.convergence_gain * collision_weight(a, b)


def collision_weight(a: Plate, b: Plate) -> float:
    """Weight for the collision type of plates *a* and *b*."""
    if a.continental and b.continental:
        return CONTINENT_CONTINENT_WEIGHT
    if a.continental or b.continental:
        return MIXED_WEIGHT
    return OCEAN_OCEAN_WEIGHT


# ═══════════════════════════════════════════════════════════════════
# Generation
# ═══════════════════════════════════════════════════════════════════

def _random_direction(rng: random.Random) -> Vec3:
    # Uniform on the sphere: uniform height, uniform azimuth.
    y = rng.uniform(-1.0, 1.0)
    theta = rng.uniform(0.0, 2.0 * math.pi)
    r = math.sqrt(max(0.0, 1.0 - y * y))
    return (r * math.cos(theta), y, r * math.sin(theta))


def _random_drift(rng: random.Random, position: Vec3, lo: float, hi: float) -> Vec3:
    magnitude = rng.uniform(lo, hi)
    while True:
        raw = (rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0))
        tangent = project_tangent(raw, position)
        if dot(tangent, tangent) > 1e-6:
            return scale(normalize(tangent), magnitude)


def generate_plates(rng: random.Random, config: PlateConfig) -> PlateField:
    """Draw ``config.count`` plates from *rng*.

    Draw order per plate is fixed (direction, drift, type, elevation)
    so the field depends on nothing but the RNG state.
    """
    if config.count <= 0:
        raise ValueError(f"Plate count must be positive, got {config.count}")

    plates = []
    for i in range(config.count):
        direction = _random_direction(rng)
        drift = _random_drift(rng, direction, config.drift_min, config.drift_max)
        continental = rng.random() < config.continental_ratio
        lo, hi = config.continental_elevation if continental else config.oceanic_elevation
        plates.append(Plate(
            index=i,
            direction=direction,
            drift=drift,
            continental=continental,
            base_elevation=rng.uniform(lo, hi),
        ))

    return PlateField(
        plates=tuple(plates),
        convergence_gain=config.convergence_gain,
        boundary_width=config.boundary_width,
    )
