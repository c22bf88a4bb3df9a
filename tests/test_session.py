"""End-to-end tests for session.py — one seed through the whole pipeline.

The shared session uses seed 1337 at subdivision 4 with radius 60 and a
small climate grid so the module runs in a few seconds.
"""

from __future__ import annotations

import numpy as np
import pytest

from planetgen.config import ClimateConfig, ConfigError, GenerationConfig
from planetgen.diagnostics import HYPSOMETRIC_TARGETS, hypsometric_breakdown
from planetgen.icosphere import build_icosphere, icosphere_vertex_count
from planetgen.projection import texel_to_direction
from planetgen.sea_level import effective_sea_level, land_fraction
from planetgen.session import (
    GenerationSession,
    build_height_field,
    generate,
    query_climate,
    query_height,
    query_precipitation,
    query_spawn_suitability,
)

SEED = 1337
CONFIG = GenerationConfig(
    subdivisions=4,
    radius=60.0,
    sea_level=0.02,
    climate=ClimateConfig(width=64, height=32),
)
NORTH_POLE = (0.0, 1.0, 0.0)

pytestmark = pytest.mark.slow


@pytest.fixture(scope="module")
def session() -> GenerationSession:
    return generate(SEED, CONFIG)


# ═══════════════════════════════════════════════════════════════════
# Determinism
# ═══════════════════════════════════════════════════════════════════


class TestDeterminism:
    def test_same_seed_same_planet(self, session):
        again = generate(SEED, CONFIG)
        assert again.mesh.vertex_count == session.mesh.vertex_count
        assert np.array_equal(again.mesh.positions[0], session.mesh.positions[0])
        assert np.array_equal(again.mesh.raw_heights, session.mesh.raw_heights)
        assert again.sea_level == session.sea_level
        assert np.array_equal(again.climate.precipitation, session.climate.precipitation)

    def test_different_seed_differs(self, session):
        other = build_height_field(SEED + 1, CONFIG)
        dirs = build_icosphere(2).directions
        assert not np.array_equal(
            other.sample_many(dirs), session.height_field.sample_many(dirs),
        )

    def test_height_field_matches_session(self, session):
        field = build_height_field(SEED, CONFIG)
        assert field.drama == session.terrain_drama
        d = build_icosphere(4).directions[17]
        assert field.sample(d) == session.query_height(d)


# ═══════════════════════════════════════════════════════════════════
# Meshes and sea level
# ═══════════════════════════════════════════════════════════════════


class TestMeshes:
    def test_vertex_count(self, session):
        assert session.mesh.vertex_count == icosphere_vertex_count(4) == 2562

    def test_levels_highest_first(self, session):
        assert [m.subdivisions for m in session.mesh_levels] == [4, 3, 2]

    def test_levels_share_height_prefix(self, session):
        top = session.mesh.raw_heights
        for level in session.mesh_levels[1:]:
            assert np.array_equal(level.raw_heights, top[: level.vertex_count])

    def test_raw_heights_are_queries(self, session):
        dirs = build_icosphere(4).directions
        for i in (0, 100, 2561):
            assert session.mesh.raw_heights[i] == pytest.approx(session.query_height(dirs[i]))

    def test_positions_near_radius(self, session):
        r = np.linalg.norm(session.mesh.positions, axis=1)
        assert np.all(r > 60.0 * 0.9)
        assert np.all(r < 60.0 * 1.1)

    def test_land_ratio_guarantee(self, session):
        assert land_fraction(session.mesh.raw_heights, session.sea_level) >= CONFIG.min_land_ratio
        assert session.sea_level <= CONFIG.sea_level

    def test_coastline_present(self, session):
        assert session.mesh.coastline.any()

    def test_height_distribution(self, session):
        bands = {b.name: b.fraction for b in hypsometric_breakdown(session.mesh.raw_heights, session.sea_level)}
        assert bands["low"] > bands["mid"] > bands["high"] > bands["very_high"] >= bands["extreme"]


class TestEarthLikeHypsometry:
    @pytest.fixture(scope="class")
    def bands(self):
        field = build_height_field(SEED, CONFIG)
        heights = field.sample_many(build_icosphere(5).directions)
        sea = effective_sea_level(heights, CONFIG.sea_level, CONFIG.min_land_ratio)
        return {b.name: b.fraction for b in hypsometric_breakdown(heights, sea)}

    @pytest.mark.parametrize("name", ["low", "mid", "high", "very_high"])
    def test_band_near_earth(self, bands, name):
        assert abs(bands[name] - HYPSOMETRIC_TARGETS[name]) <= 0.05

    def test_extreme_band_is_rare(self, bands):
        assert bands["extreme"] < 0.001


# ═══════════════════════════════════════════════════════════════════
# Climate queries
# ═══════════════════════════════════════════════════════════════════


class TestClimateQueries:
    def test_grid_shares_sea_level(self, session):
        assert session.climate.sea_level == session.sea_level

    def test_pole_is_cold(self, session):
        assert session.query_climate(NORTH_POLE).insolation <= 0.25

    def test_no_camels_at_pole(self, session):
        assert session.query_spawn_suitability(NORTH_POLE, "camel") == 0.0

    def test_no_camels_on_cold_land(self, session):
        grid = session.climate
        cold_land = (grid.insolation < 0.6) & (grid.terrain_class >= 2)
        texels = np.argwhere(cold_land)
        assert len(texels) > 0
        for row, col in texels:
            d = texel_to_direction(int(row), int(col), grid.width, grid.height)
            assert not session.query_climate(d).is_water
            assert session.query_spawn_suitability(d, "camel") == 0.0

    def test_camels_in_hot_dry_land(self, session):
        grid = session.climate
        hot_dry = (
            (grid.insolation >= 0.75)
            & (grid.precipitation <= 0.25)
            & (grid.terrain_class >= 2)
        )
        for row, col in np.argwhere(hot_dry):
            d = texel_to_direction(int(row), int(col), grid.width, grid.height)
            assert session.query_spawn_suitability(d, "camel") == 1.0

    def test_precipitation_in_unit_range(self, session):
        p = session.query_precipitation((1.0, 0.0, 0.0))
        assert 0.0 <= p <= 1.0

    def test_unknown_tag_neutral(self, session):
        assert session.query_spawn_suitability(NORTH_POLE, "dragon") == 0.5

    def test_functional_interface(self, session):
        d = (0.3, 0.4, -0.5)
        assert query_height(session, d) == session.query_height(d)
        assert query_climate(session, d) == session.query_climate(d)
        assert query_precipitation(session, d) == session.query_precipitation(d)
        assert query_spawn_suitability(session, d, "fish") == session.query_spawn_suitability(d, "fish")


class TestWithoutClimate:
    @pytest.fixture(scope="class")
    def bare(self):
        cfg = CONFIG.with_overrides(subdivisions=2, lod_levels=1, bake_climate=False)
        return generate(SEED, cfg)

    def test_no_grid(self, bare):
        assert bare.climate is None
        assert bare.query_climate(NORTH_POLE) is None
        assert bare.query_precipitation(NORTH_POLE) is None

    def test_known_tag_unavailable(self, bare):
        assert bare.query_spawn_suitability(NORTH_POLE, "camel") is None

    def test_unknown_tag_still_neutral(self, bare):
        assert bare.query_spawn_suitability(NORTH_POLE, "dragon") == 0.5

    def test_height_queries_still_work(self, bare):
        assert isinstance(bare.query_height(NORTH_POLE), float)


# ═══════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════


class TestErrors:
    def test_bad_radius(self):
        with pytest.raises(ConfigError):
            generate(SEED, CONFIG.with_overrides(radius=0.0))

    def test_bad_subdivisions(self):
        with pytest.raises(ConfigError):
            generate(SEED, CONFIG.with_overrides(subdivisions=-1))

    @pytest.mark.parametrize("seed", ["1337", 13.37, None])
    def test_bad_seed(self, seed):
        with pytest.raises(TypeError):
            generate(seed, CONFIG.with_overrides(subdivisions=1, lod_levels=1, bake_climate=False))
