"""Generation session — one seed in, meshes and climate out.

:func:`generate` runs the whole pipeline:

1. validate the config;
2. draw the noise bank, the plates and the terrain drama from one
   seeded RNG (in that order);
3. build every icosphere level up to the configured subdivision;
4. sample raw heights once at the highest level (lower levels are a
   vertex prefix and reuse the same samples);
5. compute the effective sea level from those samples;
6. build the mesh levels, highest detail first;
7. bake the climate grid against the same height function.

The returned :class:`GenerationSession` is immutable and answers point
queries.  Nothing is cached at module level, so two calls with the
same seed and config are fully independent and produce identical
results.

Usage
-----
>>> from planetgen import generate, GenerationConfig
>>> session = generate(1337, GenerationConfig(subdivisions=4, radius=60.0))
>>> session.query_climate((0.0, 1.0, 0.0)).insolation  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .climate import ClimateGrid, ClimateSample, bake_climate
from .config import EARTHLIKE, GenerationConfig
from .heightfield import HeightField, draw_terrain_drama
from .icosphere import build_icosphere_levels
from .mesh import MeshLevel, build_mesh_level
from .noise import NoiseBank, make_rng
from .plates import PlateField, generate_plates
from .sea_level import effective_sea_level
from .suitability import NEUTRAL_SCORE, is_known_tag, spawn_suitability

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class GenerationSession:
    """Everything produced by one :func:`generate` call.

    Attributes
    ----------
    seed : int
    config : GenerationConfig
    height_field : HeightField
        The pure terrain function (carries plates, noise and drama).
    sea_level : float
        Effective sea level shared by every mesh and the climate grid.
    mesh_levels : tuple of MeshLevel
        Highest detail first.
    climate : ClimateGrid or None
        ``None`` when the bake was disabled.
    """

    seed: int
    config: GenerationConfig
    height_field: HeightField
    sea_level: float
    mesh_levels: Tuple[MeshLevel, ...]
    climate: Optional[ClimateGrid]

    @property
    def noise(self) -> NoiseBank:
        return self.height_field.noise

    @property
    def plates(self) -> PlateField:
        return self.height_field.plates

    @property
    def terrain_drama(self) -> float:
        return self.height_field.drama

    @property
    def mesh(self) -> MeshLevel:
        """The highest-detail mesh."""
        return self.mesh_levels[0]

    # ── queries ─────────────────────────────────────────────────────

    def query_height(self, direction: Sequence[float]) -> float:
        """Raw terrain height at *direction*."""
        return self.height_field.sample(direction)

    def query_climate(self, direction: Sequence[float]) -> Optional[ClimateSample]:
        """Nearest-texel climate, or ``None`` if no grid was baked."""
        if self.climate is None:
            return None
        return self.climate.sample(direction)

    def query_precipitation(self, direction: Sequence[float]) -> Optional[float]:
        sample = self.query_climate(direction)
        return None if sample is None else sample.precipitation

    def query_spawn_suitability(self, direction: Sequence[float], tag: str) -> Optional[float]:
        """Suitability of *direction* for *tag*.

        Unknown tags score the neutral 0.5.  Known tags return ``None``
        when no climate grid is available.
        """
        if not is_known_tag(tag):
            return NEUTRAL_SCORE
        sample = self.query_climate(direction)
        if sample is None:
            return None
        return spawn_suitability(sample, tag)


# ═══════════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════════

def build_height_field(seed: int, config: Optional[GenerationConfig] = None) -> HeightField:
    """Build only the pure height function for *seed* (no mesh, no bake)."""
    cfg = EARTHLIKE if config is None else config
    rng = make_rng(seed)
    noise = NoiseBank.from_rng(rng)
    plates = generate_plates(rng, cfg.plates)
    drama = draw_terrain_drama(rng, cfg.height.drama_tiers)
    logger.debug(
        "Seed %d: %d plates (%d continental), drama %.3f",
        seed, len(plates), sum(p.continental for p in plates.plates), drama,
    )
    return HeightField(
        plates=plates, noise=noise, config=cfg.height,
        sea_level=cfg.sea_level, drama=drama,
    )


def generate(seed: int, config: Optional[GenerationConfig] = None) -> GenerationSession:
    """Generate a planet for *seed*.

    Raises
    ------
    ConfigError
        If *config* is invalid; raised before any work starts.
    TypeError
        If *seed* is not an integer.
    """
    cfg = EARTHLIKE if config is None else config
    cfg.validate()
    make_rng(seed)

    t_start = time.perf_counter()
    field = build_height_field(seed, cfg)

    t0 = time.perf_counter()
    levels = build_icosphere_levels(cfg.subdivisions, cfg.radius)
    top = levels[-1]
    logger.info(
        "Built %d icosphere levels (%d vertices at level %d) in %.2fs",
        len(levels), top.vertex_count, cfg.subdivisions, time.perf_counter() - t0,
    )

    t0 = time.perf_counter()
    heights = field.sample_many(top.directions, workers=cfg.workers)
    logger.info("Sampled %d heights in %.2fs", heights.size, time.perf_counter() - t0)

    sea = effective_sea_level(heights, cfg.sea_level, cfg.min_land_ratio)

    t0 = time.perf_counter()
    lowest = cfg.subdivisions - cfg.lod_levels + 1
    meshes = tuple(
        build_mesh_level(levels[n], heights[: levels[n].vertex_count], sea, cfg)
        for n in range(cfg.subdivisions, lowest - 1, -1)
    )
    logger.info("Built %d mesh levels in %.2fs", len(meshes), time.perf_counter() - t0)

    climate = None
    if cfg.bake_climate:
        climate = bake_climate(
            lambda dirs: field.sample_many(dirs, workers=cfg.workers),
            sea,
            cfg.climate,
            moisture_source=field.noise.moisture,
        )

    logger.info("Generated seed %d in %.2fs", seed, time.perf_counter() - t_start)
    return GenerationSession(
        seed=int(seed),
        config=cfg,
        height_field=field,
        sea_level=sea,
        mesh_levels=meshes,
        climate=climate,
    )


# ═══════════════════════════════════════════════════════════════════
# Functional interface
# ═══════════════════════════════════════════════════════════════════

def query_height(session: GenerationSession, direction: Sequence[float]) -> float:
    return session.query_height(direction)


def query_climate(session: GenerationSession, direction: Sequence[float]) -> Optional[ClimateSample]:
    return session.query_climate(direction)


def query_precipitation(session: GenerationSession, direction: Sequence[float]) -> Optional[float]:
    return session.query_precipitation(direction)


def query_spawn_suitability(
    session: GenerationSession, direction: Sequence[float], tag: str,
) -> Optional[float]:
    return session.query_spawn_suitability(direction, tag)
