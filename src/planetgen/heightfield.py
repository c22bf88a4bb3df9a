"""Height field synthesis — one scalar elevation per sphere direction.

:class:`HeightField` is the single source of terrain truth.  The mesh
pipeline samples it at icosphere vertices and the climate baker samples
it at grid texels; because :meth:`HeightField.sample` is a pure
function of the plates, the noise bank, the per-world drama and the
config, both consumers always agree on the terrain.

Pipeline (per direction, in order)
----------------------------------
1. Base tectonic term — plate elevation blend, boundary uplift, hotspots.
2. Domain warp of the continent lookup point.
3. Continent shape — two octaves, sign-preserving power, gain, bias.
4. Terrain drama — one per-world multiplier on all relief terms.
5. Plains suppression — broad noise regions with flattened relief.
6. Coastal flattening — relief damped near sea level, except at
   plate boundaries.
7. Relief — ridgelines, fine detail, land-only mid detail.
8. Coastline micro-detail — land erodes more than sea fills.
9. Wave erosion — rare cliff coasts, common beaches pulled flat.
10. Hypsometric compression of elevation above sea level.

The result is clamped to ``[raw_min, raw_max]``.
"""

from __future__ import annotations

import logging
import math
import multiprocessing
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import HeightConfig
from .geometry import normalize
from .noise import NoiseBank, cellular_3d, clamp, fbm_3d, lerp, ridged_3d, smoothstep
from .plates import PlateField

logger = logging.getLogger(__name__)

# Offsets that decorrelate second lookups into an already-used source.
_HOTSPOT_OFFSET = (31.7, -11.3, 5.9)
_WAVE_OFFSET = (17.0, 43.0, -29.0)


# ═══════════════════════════════════════════════════════════════════
# Terrain drama
# ═══════════════════════════════════════════════════════════════════

def draw_terrain_drama(
    rng: random.Random,
    tiers: Sequence[Tuple[float, float, float]],
) -> float:
    """Draw the per-world relief multiplier from a tiered distribution.

    *tiers* is a sequence of ``(probability, low, high)``; one tier is
    chosen by probability, then a value uniformly within it.  Exactly
    two RNG draws are consumed whatever the outcome.
    """
    pick = rng.random()
    spread = rng.random()
    cumulative = 0.0
    for probability, lo, hi in tiers:
        cumulative += probability
        if pick < cumulative:
            return lo + (hi - lo) * spread
    _, lo, hi = tiers[-1]
    return lo + (hi - lo) * spread


# ═══════════════════════════════════════════════════════════════════
# Hypsometric compression
# ═══════════════════════════════════════════════════════════════════

def hypsometric_curve(elevation: float, config: HeightConfig) -> float:
    """Remap an elevation above sea level through the hypsometric curve.

    Identity up to ``hyp_identity_limit``, then a square band, a cubic
    band and a logarithmic tail.  Continuous and strictly increasing
    for the default parameters, so ordering of peaks is preserved while
    high ground is squeezed toward an Earth-like distribution.
    """
    if elevation <= 0.0:
        return elevation

    b1 = config.hyp_identity_limit
    b2 = config.hyp_square_limit
    b3 = config.hyp_cubic_limit
    s2 = config.hyp_square_rate
    s3 = config.hyp_cubic_rate

    if elevation <= b1:
        return elevation

    if elevation <= b2:
        u = elevation - b1
        return b1 + u - s2 * u * u

    u2 = b2 - b1
    y2 = b1 + u2 - s2 * u2 * u2
    slope2 = 1.0 - 2.0 * s2 * u2
    if elevation <= b3:
        u = elevation - b2
        return y2 + slope2 * u - s3 * u * u * u

    u3 = b3 - b2
    y3 = y2 + slope2 * u3 - s3 * u3 * u3 * u3
    slope3 = max(slope2 - 3.0 * s3 * u3 * u3, 1e-6)
    c = config.hyp_log_scale
    return y3 + c * math.log1p(slope3 * (elevation - b3) / c)


# ═══════════════════════════════════════════════════════════════════
# Relief and coastline terms
# ═══════════════════════════════════════════════════════════════════

def plains_relief(plains_noise: float, config: HeightConfig) -> float:
    """Relief multiplier from the plains noise; ``1 − plains_strength`` deep in a plain."""
    mask = smoothstep(
        config.plains_threshold - config.plains_softness,
        config.plains_threshold + config.plains_softness,
        plains_noise,
    )
    return 1.0 - config.plains_strength * mask


def coastal_relief(elevation: float, sea_level: float, boundary: float, config: HeightConfig) -> float:
    """Relief multiplier near sea level.

    Drops to ``coastal_min_relief`` at the water line and recovers over
    ``coastal_band``.  Plate boundaries keep full relief, so coastal
    mountain ranges survive.
    """
    depth = smoothstep(0.0, config.coastal_band, abs(elevation - sea_level))
    return lerp(config.coastal_min_relief, 1.0, max(depth, boundary))


def coastline_detail(offset: float, erosion: float, cell: float, config: HeightConfig) -> float:
    """Micro-detail added at *offset* from sea level.

    *erosion* is fbm in ``[-1, 1]`` and *cell* a cellular value in
    ``[0, 1]``.  Zero outside ``micro_band``.  Negative deltas (land
    eroded) are scaled by ``land_erosion``, positive ones (sea filled) by
    ``sea_fill``.
    """
    if abs(offset) >= config.micro_band:
        return 0.0
    falloff = 1.0 - abs(offset) / config.micro_band
    delta = (0.55 * erosion + 0.45 * (2.0 * cell - 1.0)) * config.micro_strength * falloff
    delta *= config.land_erosion if delta < 0.0 else config.sea_fill
    return delta


def is_cliff(noise: NoiseBank, x: float, y: float, z: float, config: HeightConfig) -> bool:
    """Whether the shore at ``(x, y, z)`` is a cliff that resists wave erosion."""
    f = config.wave_frequency
    ox, oy, oz = _WAVE_OFFSET
    a = noise.coast_cellular.noise3(x * f + ox, y * f + oy, z * f + oz)
    b = noise.coast_erosion.noise3(x * f + ox, y * f + oy, z * f + oz)
    return 0.5 * (a + b) > config.cliff_threshold


def beach_erosion(elevation: float, sea_level: float, config: HeightConfig) -> float:
    """Pull low shore land toward ``sea_level + beach_height``.

    Only elevations in ``[sea_level, sea_level + wave_band)`` move; the
    pull fades out toward the top of the band.
    """
    offset = elevation - sea_level
    if not 0.0 <= offset < config.wave_band:
        return elevation
    strength = config.beach_strength * (1.0 - offset / config.wave_band)
    return lerp(elevation, sea_level + config.beach_height, strength)


# ═══════════════════════════════════════════════════════════════════
# Height field
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class HeightField:
    """Pure direction → raw elevation function for one generation.

    Attributes
    ----------
    plates : PlateField
    noise : NoiseBank
    config : HeightConfig
    sea_level : float
        Nominal sea level; the coastal terms are placed around it.
    drama : float
        Per-world relief multiplier from :func:`draw_terrain_drama`.
    """

    plates: PlateField
    noise: NoiseBank
    config: HeightConfig
    sea_level: float
    drama: float

    def __call__(self, direction: Sequence[float]) -> float:
        return self.sample(direction)

    def sample(self, direction: Sequence[float]) -> float:
        """Raw elevation at *direction* (normalised first; zero length raises)."""
        x, y, z = normalize(direction)
        cfg = self.config
        n = self.noise
        sea = self.sea_level

        # 1. Base tectonic term
        nearest, second, d1, d2 = self.plates.nearest_two((x, y, z))
        total = d1 + d2
        t = d1 / total if total > 0 else 0.0
        base = lerp(nearest.base_elevation, second.base_elevation, t)
        boundary = self.plates.boundary_factor(d1, d2)
        uplift = self.plates.convergence(nearest, second) * boundary * boundary
        ox, oy, oz = _HOTSPOT_OFFSET
        hot = fbm_3d(n.mid_detail, x + ox, y + oy, z + oz,
                     octaves=2, frequency=cfg.hotspot_frequency)
        hotspot = max(0.0, hot - cfg.hotspot_threshold) * cfg.hotspot_gain
        elevation = (base + uplift) * cfg.tectonic_weight + hotspot

        # 2. Domain warp
        wf = cfg.warp_frequency
        ws = cfg.warp_strength
        wx = x + ws * n.warp_x.noise3(x * wf, y * wf, z * wf)
        wy = y + ws * n.warp_y.noise3(x * wf, y * wf, z * wf)
        wz = z + ws * n.warp_z.noise3(x * wf, y * wf, z * wf)

        # 3. Continent shape
        c1 = fbm_3d(n.continent, wx, wy, wz,
                    octaves=cfg.continent_octaves, frequency=cfg.continent_frequency)
        c2 = fbm_3d(n.continent_detail, wx, wy, wz,
                    octaves=cfg.continent_detail_octaves,
                    frequency=cfg.continent_detail_frequency)
        c = lerp(c1, c2, cfg.continent_detail_weight)
        shaped = math.copysign(abs(c) ** cfg.continent_power, c)
        elevation += shaped * cfg.continent_gain + cfg.ocean_bias

        # 4 + 5. Drama and plains suppression
        plains = fbm_3d(n.plains, x, y, z, octaves=2, frequency=cfg.plains_frequency)
        plains_mul = plains_relief(plains, cfg)

        # 6. Coastal flattening, gated by depth or boundary proximity
        coastal_mul = coastal_relief(elevation, sea, boundary, cfg)

        relief_mul = self.drama * plains_mul * coastal_mul

        # 7. Relief terms
        land = smoothstep(sea - 0.02, sea + 0.06, elevation)
        ridge = ridged_3d(n.ridge, x, y, z,
                          octaves=cfg.ridge_octaves, frequency=cfg.ridge_frequency)
        mountains = (ridge * ridge * cfg.mountain_gain
                     * (0.4 + 0.6 * boundary) * (0.3 + 0.7 * land))
        fine = fbm_3d(n.fine_detail, x, y, z,
                      octaves=cfg.fine_octaves, frequency=cfg.fine_frequency) * cfg.fine_gain
        mid = fbm_3d(n.mid_detail, x, y, z,
                     octaves=cfg.mid_octaves, frequency=cfg.mid_frequency) * cfg.mid_gain * land
        elevation += relief_mul * (mountains + fine + mid)

        # 8. Coastline micro-detail
        offset = elevation - sea
        if abs(offset) < cfg.micro_band:
            cell = cellular_3d(n.coast_cellular, x, y, z, frequency=cfg.micro_frequency)
            erosion = fbm_3d(n.coast_erosion, x, y, z,
                             octaves=2, frequency=cfg.micro_frequency * 1.7)
            elevation += coastline_detail(offset, erosion, cell, cfg)

        # 9. Wave erosion
        offset = elevation - sea
        if 0.0 <= offset < cfg.wave_band and not is_cliff(n, x, y, z, cfg):
            elevation = beach_erosion(elevation, sea, cfg)

        # 10. Hypsometric compression
        offset = elevation - sea
        if offset > 0.0:
            elevation = sea + hypsometric_curve(offset, cfg)

        return clamp(elevation, cfg.raw_min, cfg.raw_max)

    def sample_many(self, directions: np.ndarray, workers: int = 1) -> np.ndarray:
        """Sample every row of an ``(n, 3)`` direction array.

        With ``workers > 1`` the rows are split into contiguous chunks
        and evaluated in a process pool; chunks are reassembled in
        order, so the result is identical to the sequential path.
        """
        dirs = np.asarray(directions, dtype=np.float64)
        if dirs.ndim != 2 or dirs.shape[1] != 3:
            raise ValueError(f"directions must have shape (n, 3), got {dirs.shape}")
        count = dirs.shape[0]

        if workers <= 1 or count < 2 * workers:
            return np.fromiter(
                (self.sample(row) for row in dirs), dtype=np.float64, count=count,
            )

        bounds = np.linspace(0, count, workers * 4 + 1).astype(int)
        chunks = [dirs[lo:hi] for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]
        logger.debug("Sampling %d directions on %d workers (%d chunks)", count, workers, len(chunks))
        with multiprocessing.Pool(
            processes=workers, initializer=_init_worker, initargs=(self,),
        ) as pool:
            parts = pool.map(_sample_chunk, chunks)
        return np.concatenate(parts)


# ═══════════════════════════════════════════════════════════════════
# Worker-process plumbing
# ═══════════════════════════════════════════════════════════════════

_worker_field: Optional[HeightField] = None


def _init_worker(field: HeightField) -> None:
    global _worker_field
    _worker_field = field


def _sample_chunk(chunk: np.ndarray) -> np.ndarray:
    if _worker_field is None:
        raise RuntimeError("Height worker used before initialisation")
    return np.array([_worker_field.sample(row) for row in chunk], dtype=np.float64)
