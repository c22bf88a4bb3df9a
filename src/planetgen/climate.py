"""Climate baker — insolation, precipitation, thermal inertia, terrain mask.

The bake samples the same height function as the mesh pipeline on a
fixed equirectangular grid (see :mod:`planetgen.projection`) and derives
four channels per texel:

insolation
    Cosine-power falloff from the equator with a floor set by axial
    tilt, a small drop past the tropic, a penalty beyond 60° and an
    eccentricity reduction at extreme latitude.  Non-increasing with
    ``|latitude|``.

precipitation
    Five whole-grid passes, each reading the previous pass's complete
    buffer:

    1. ocean evaporation (insolation-driven, water only);
    2. advection + orographic pass;
    3. land re-evaporation of pass-2 rainfall (ocean texels feed
       nothing here, their moisture is counted once in pass 2);
    4. a second advection + orographic pass;
    5. weighted combination, coherent noise, Hadley-cell multiplier,
       clamp to ``[0, 1]``.

    Advection is semi-Lagrangian: from every texel the wind is traced
    backwards a fixed number of steps, re-evaluating the latitude-band
    wind at each step, and the source field is accumulated with
    exponential distance decay.  Only terrain above the cloud base
    affects the orographic term.

thermal inertia
    High over ocean and growing with depth; low over land, rising with
    moisture and falling with elevation.

terrain mask
    One byte per texel, see :mod:`planetgen.terrain_mask`.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence, Tuple

import numpy as np

from .config import ClimateConfig
from .noise import NoiseSource, fbm_3d
from .projection import (
    direction_to_texel,
    lat_lon_to_texel_array,
    texel_direction_grid,
    texel_lat_lon_grid,
)
from .terrain_mask import (
    CLASS_MASK,
    COASTAL_BIT,
    TerrainClass,
    classify_terrain,
    encode_mask_array,
)

logger = logging.getLogger(__name__)

HeightSampler = Callable[[np.ndarray], np.ndarray]

# Ocean / land thermal inertia bands.
OCEAN_INERTIA_BASE = 0.7
OCEAN_INERTIA_DEPTH_GAIN = 0.3
OCEAN_INERTIA_FULL_DEPTH = 0.3
LAND_INERTIA_BASE = 0.1
LAND_INERTIA_MOISTURE_GAIN = 0.25
LAND_INERTIA_ELEVATION_LOSS = 0.3
LAND_INERTIA_RANGE = (0.05, 0.4)

# Band edges of the latitude wind model, in degrees.
TRADE_WIND_LIMIT = 30.0
WESTERLY_LIMIT = 60.0

# Hadley-cell bands, in degrees.
ITCZ_HALF_WIDTH = 15.0
SUBTROPIC_LIMIT = 35.0

# Longitude steps near the poles are capped by this cos(lat) floor.
_MIN_COS_LAT = 0.2
_MAX_TRACE_LAT = 89.999


# ═══════════════════════════════════════════════════════════════════
# Insolation
# ═══════════════════════════════════════════════════════════════════

def insolation(latitude, config: ClimateConfig):
    """Annual-mean insolation in ``[0, 1]`` for latitude(s) in degrees.

    Accepts a scalar or an array; returns the same kind.
    """
    a = np.abs(np.asarray(latitude, dtype=np.float64))
    tilt = config.axial_tilt

    floor = np.clip(0.05 + 0.0064 * tilt, 0.0, 1.0)
    cos_lat = np.clip(np.cos(np.radians(a)), 0.0, 1.0)
    base = floor + (1.0 - floor) * cos_lat ** config.insolation_power

    t = np.clip((a - tilt) / config.tropic_fade, 0.0, 1.0)
    tropic = 1.0 - config.tropic_drop * t * t * (3.0 - 2.0 * t)

    polar_span = max(90.0 - config.polar_latitude, 1e-9)
    polar = 1.0 - config.polar_penalty * np.clip((a - config.polar_latitude) / polar_span, 0.0, 1.0)

    arctic = 90.0 - tilt
    ecc = 1.0 - 2.0 * config.eccentricity * np.clip((a - arctic) / max(tilt, 1e-9), 0.0, 1.0)

    result = np.clip(config.sun_intensity * base * tropic * polar * ecc, 0.0, 1.0)
    if np.ndim(latitude) == 0:
        return float(result)
    return result


# ═══════════════════════════════════════════════════════════════════
# Wind and advection
# ═══════════════════════════════════════════════════════════════════

def wind_field(latitude, config: ClimateConfig) -> Tuple[np.ndarray, np.ndarray]:
    """Band wind ``(u, v)`` — eastward and northward components.

    Trade winds blow westward and equatorward below 30°, westerlies
    eastward and poleward to 60°, polar easterlies westward and
    equatorward beyond.  ``rotation_direction = −1`` mirrors ``u``.
    """
    lat = np.asarray(latitude, dtype=np.float64)
    a = np.abs(lat)
    hemi = np.sign(lat)
    westerly = (a >= TRADE_WIND_LIMIT) & (a < WESTERLY_LIMIT)

    u = np.where(westerly, 1.0, -1.0) * config.rotation_direction
    v = np.where(westerly, hemi, -hemi) * config.coriolis
    return u, v


def _trace_upwind(
    lat0: np.ndarray,
    lon0: np.ndarray,
    config: ClimateConfig,
) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
    """Yield ``(rows, cols)`` of each backward step along the wind."""
    lat = lat0.copy()
    lon = lon0.copy()
    step = config.step_degrees
    for _ in range(config.advection_steps):
        u, v = wind_field(lat, config)
        mag = np.hypot(u, v)
        mag = np.where(mag > 0, mag, 1.0)
        cos_lat = np.maximum(np.cos(np.radians(lat)), _MIN_COS_LAT)
        lat = np.clip(lat - step * v / mag, -_MAX_TRACE_LAT, _MAX_TRACE_LAT)
        lon = (lon - step * u / mag / cos_lat + 180.0) % 360.0 - 180.0
        yield lat_lon_to_texel_array(lat, lon, config.width, config.height)


def advect(
    source: np.ndarray,
    terrain: np.ndarray,
    lat: np.ndarray,
    lon: np.ndarray,
    config: ClimateConfig,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Semi-Lagrangian upwind accumulation of *source*.

    Parameters
    ----------
    source : ndarray
        ``(H, W)`` moisture source field.
    terrain : ndarray
        ``(H, W)`` height above the cloud base (zero below it).
    lat, lon : ndarray
        Texel-centre coordinates in degrees.

    Returns
    -------
    moisture : ndarray
        Decay-weighted mean of *source* over the local texel and every
        upwind step.
    slope : ndarray
        Terrain rise from one step upwind to here (windward > 0).
    shadow : ndarray
        How far decayed upwind terrain towers over the local texel.
    """
    accumulated = source.astype(np.float64, copy=True)
    total_weight = np.ones_like(accumulated)
    barrier = np.zeros_like(accumulated)
    slope = np.zeros_like(accumulated)

    weight = 1.0
    for k, (rows, cols) in enumerate(_trace_upwind(lat, lon, config), start=1):
        weight *= config.advection_decay
        accumulated += weight * source[rows, cols]
        total_weight += weight
        upwind = terrain[rows, cols]
        if k == 1:
            slope = terrain - upwind
        np.maximum(barrier, upwind * weight, out=barrier)

    moisture = accumulated / total_weight
    shadow = np.maximum(0.0, barrier - terrain)
    return moisture, slope, shadow


def orographic(
    moisture: np.ndarray,
    slope: np.ndarray,
    shadow: np.ndarray,
    config: ClimateConfig,
) -> np.ndarray:
    """Windward enhancement and leeward rain-shadow applied to *moisture*."""
    lift = 1.0 + config.orographic_gain * np.maximum(slope, 0.0)
    penalty = 1.0 + config.rain_shadow_gain * shadow
    return moisture * lift / penalty


def hadley_multiplier(latitude, config: ClimateConfig):
    """Boost inside the ITCZ, dry subtropical band, neutral beyond."""
    a = np.abs(np.asarray(latitude, dtype=np.float64))
    itcz = 1.0 + config.itcz_boost * (1.0 - a / ITCZ_HALF_WIDTH)
    dry_span = SUBTROPIC_LIMIT - ITCZ_HALF_WIDTH
    dry = 1.0 - config.subtropic_dryness * np.sin(math.pi * (a - ITCZ_HALF_WIDTH) / dry_span)
    result = np.where(a < ITCZ_HALF_WIDTH, itcz, np.where(a < SUBTROPIC_LIMIT, dry, 1.0))
    if np.ndim(latitude) == 0:
        return float(result)
    return result


def thermal_inertia(heights: np.ndarray, precipitation: np.ndarray, sea_level: float) -> np.ndarray:
    offset = np.asarray(heights, dtype=np.float64) - sea_level
    depth = np.maximum(-offset, 0.0)
    ocean = OCEAN_INERTIA_BASE + OCEAN_INERTIA_DEPTH_GAIN * np.minimum(1.0, depth / OCEAN_INERTIA_FULL_DEPTH)
    land = (
        LAND_INERTIA_BASE
        + LAND_INERTIA_MOISTURE_GAIN * precipitation
        - LAND_INERTIA_ELEVATION_LOSS * np.maximum(offset, 0.0)
    )
    land = np.clip(land, *LAND_INERTIA_RANGE)
    return np.where(offset < 0.0, ocean, land)


def coastal_texels(water: np.ndarray, radius: int = 1) -> np.ndarray:
    """Texels with a 4-neighbour of the other kind within *radius* steps.

    Longitude wraps; latitude is edge-padded (no neighbour past a pole).
    """
    coastal = np.zeros(water.shape, dtype=bool)
    padded = np.pad(water, ((radius, radius), (0, 0)), mode="edge")
    h = water.shape[0]
    for r in range(1, radius + 1):
        coastal |= np.roll(water, r, axis=1) != water
        coastal |= np.roll(water, -r, axis=1) != water
        coastal |= padded[radius - r:radius - r + h] != water
        coastal |= padded[radius + r:radius + r + h] != water
    return coastal


# ═══════════════════════════════════════════════════════════════════
# Climate grid
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ClimateSample:
    """Climate at one texel."""

    insolation: float
    precipitation: float
    thermal_inertia: float
    terrain_type: TerrainClass
    is_coastal: bool
    is_water: bool


@dataclass(frozen=True, eq=False)
class ClimateGrid:
    """Baked, read-only equirectangular climate dataset.

    All channel arrays share the shape ``(height, width)``; row 0 is
    the northern edge.  The arrays are copied and frozen on
    construction.
    """

    insolation: np.ndarray
    precipitation: np.ndarray
    thermal_inertia: np.ndarray
    mask: np.ndarray
    sea_level: float

    def __post_init__(self) -> None:
        shape = np.shape(self.mask)
        if len(shape) != 2:
            raise ValueError(f"Climate channels must be 2-D, got shape {shape}")
        for name in ("insolation", "precipitation", "thermal_inertia"):
            arr = np.array(getattr(self, name), dtype=np.float32)
            if arr.shape != shape:
                raise ValueError(f"{name} has shape {arr.shape}, expected {shape}")
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        mask = np.array(self.mask, dtype=np.uint8)
        mask.setflags(write=False)
        object.__setattr__(self, "mask", mask)

    @property
    def height(self) -> int:
        return int(self.mask.shape[0])

    @property
    def width(self) -> int:
        return int(self.mask.shape[1])

    @property
    def terrain_class(self) -> np.ndarray:
        return self.mask & CLASS_MASK

    @property
    def coastal(self) -> np.ndarray:
        return (self.mask & COASTAL_BIT) != 0

    def texel(self, row: int, col: int) -> ClimateSample:
        bits = int(self.mask[row, col])
        terrain = TerrainClass(bits & CLASS_MASK)
        return ClimateSample(
            insolation=float(self.insolation[row, col]),
            precipitation=float(self.precipitation[row, col]),
            thermal_inertia=float(self.thermal_inertia[row, col]),
            terrain_type=terrain,
            is_coastal=bool(bits & COASTAL_BIT),
            is_water=terrain.is_water,
        )

    def sample(self, direction: Sequence[float]) -> ClimateSample:
        """Nearest-texel lookup for a direction."""
        row, col = direction_to_texel(direction, self.width, self.height)
        return self.texel(row, col)

    # ── raster form ─────────────────────────────────────────────────

    def to_raster(self) -> np.ndarray:
        """``(H, W, 4)`` float32 raster; the mask channel is ``byte / 255``."""
        return np.stack(
            [
                self.insolation,
                self.precipitation,
                self.thermal_inertia,
                self.mask.astype(np.float32) / 255.0,
            ],
            axis=-1,
        ).astype(np.float32)

    @classmethod
    def from_raster(cls, raster: np.ndarray, sea_level: float) -> "ClimateGrid":
        data = np.asarray(raster, dtype=np.float32)
        if data.ndim != 3 or data.shape[2] != 4:
            raise ValueError(f"Climate raster must have shape (H, W, 4), got {data.shape}")
        mask = np.clip(np.rint(data[..., 3] * 255.0), 0, 255).astype(np.uint8)
        return cls(data[..., 0], data[..., 1], data[..., 2], mask, float(sea_level))


# ═══════════════════════════════════════════════════════════════════
# Bake
# ═══════════════════════════════════════════════════════════════════

def _moisture_noise(directions: np.ndarray, source: Optional[NoiseSource], frequency: float) -> np.ndarray:
    if source is None:
        return np.zeros(directions.shape[:-1], dtype=np.float64)
    flat = directions.reshape(-1, 3)
    values = np.fromiter(
        (fbm_3d(source, x, y, z, octaves=2, frequency=frequency) for x, y, z in flat),
        dtype=np.float64,
        count=flat.shape[0],
    )
    return values.reshape(directions.shape[:-1])


def bake_climate(
    height_sampler: HeightSampler,
    sea_level: float,
    config: ClimateConfig,
    moisture_source: Optional[NoiseSource] = None,
) -> ClimateGrid:
    """Bake a :class:`ClimateGrid` from a height function.

    Parameters
    ----------
    height_sampler : callable
        ``(n, 3)`` directions → ``(n,)`` raw heights; normally
        :meth:`HeightField.sample_many`.
    sea_level : float
        Effective sea level shared with the meshes.
    config : ClimateConfig
    moisture_source : NoiseSource, optional
        Coherent noise for local precipitation variation.
    """
    if config.width <= 0 or config.height <= 0:
        raise ValueError(f"Climate grid must be positive, got {config.width}x{config.height}")

    t0 = time.perf_counter()
    w, h = config.width, config.height
    lat, lon = texel_lat_lon_grid(w, h)
    directions = texel_direction_grid(w, h)

    heights = np.asarray(height_sampler(directions.reshape(-1, 3)), dtype=np.float64).reshape(h, w)
    logger.debug("Sampled %dx%d climate heights in %.2fs", w, h, time.perf_counter() - t0)

    water = heights < sea_level
    sun = insolation(lat, config)
    terrain = np.maximum(0.0, heights - sea_level - config.cloud_base)

    # 1. Ocean evaporation
    evaporation = np.where(water, sun * config.evaporation_rate, 0.0)

    # 2. First advection + orographic pass
    moisture, slope, shadow = advect(evaporation, terrain, lat, lon, config)
    first = orographic(moisture, slope, shadow, config)

    # 3. Land re-evaporation
    reevaporation = np.where(water, 0.0, first * sun * config.reevaporation_rate)

    # 4. Second advection + orographic pass
    moisture, slope, shadow = advect(reevaporation, terrain, lat, lon, config)
    second = orographic(moisture, slope, shadow, config)

    # 5. Combine
    variation = _moisture_noise(directions, moisture_source, config.noise_frequency)
    precipitation = (
        config.first_pass_weight * first
        + config.second_pass_weight * second
        + config.noise_amplitude * variation
    )
    precipitation = np.clip(precipitation * hadley_multiplier(lat, config), 0.0, 1.0)

    inertia = thermal_inertia(heights, precipitation, sea_level)
    classes = classify_terrain(heights, sea_level, config.shallow_depth, config.highland_elevation)
    mask = encode_mask_array(classes, coastal_texels(water, config.coastal_radius))

    grid = ClimateGrid(sun, precipitation, inertia, mask, float(sea_level))
    logger.info(
        "Baked %dx%d climate grid in %.2fs (mean precipitation %.3f)",
        w, h, time.perf_counter() - t0, float(precipitation.mean()),
    )
    return grid
