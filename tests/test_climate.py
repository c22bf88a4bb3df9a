"""Tests for climate.py — insolation, winds, advection, bake and grid."""

from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from planetgen.climate import (
    ClimateGrid,
    ClimateSample,
    advect,
    bake_climate,
    coastal_texels,
    hadley_multiplier,
    insolation,
    orographic,
    thermal_inertia,
    wind_field,
)
from planetgen.config import ClimateConfig
from planetgen.noise import NoiseBank
from planetgen.projection import lat_lon_to_direction, texel_lat_lon_grid
from planetgen.terrain_mask import TerrainClass

SMALL = ClimateConfig(width=96, height=48)


def _lat_lon(dirs):
    lat = np.degrees(np.arcsin(np.clip(dirs[:, 1], -1, 1)))
    lon = np.degrees(np.arctan2(dirs[:, 2], dirs[:, 0]))
    return lat, lon


def ocean_world(dirs):
    return np.full(dirs.shape[0], -0.2)


def plateau_world(dirs, ridge=False):
    """Ocean with a tropical plateau between 30°W and 30°E, optionally ridged at 0°."""
    lat, lon = _lat_lon(dirs)
    h = np.full(dirs.shape[0], -0.2)
    plateau = (np.abs(lat) < 20) & (np.abs(lon) < 30)
    h[plateau] = 0.05
    if ridge:
        h[plateau & (np.abs(lon) < 3)] = 0.3
    return h


# ═══════════════════════════════════════════════════════════════════
# Insolation
# ═══════════════════════════════════════════════════════════════════


class TestInsolation:
    def test_equator_is_full(self):
        assert insolation(0.0, ClimateConfig()) == pytest.approx(1.0)

    def test_poles_at_earth_tilt(self):
        pole = insolation(90.0, ClimateConfig())
        assert 0.15 <= pole <= 0.20
        assert insolation(-90.0, ClimateConfig()) == pole

    def test_non_increasing_with_latitude(self):
        values = insolation(np.linspace(0.0, 90.0, 721), ClimateConfig())
        assert np.all(np.diff(values) <= 1e-12)

    def test_in_unit_range(self):
        values = insolation(np.linspace(-90.0, 90.0, 361), ClimateConfig(sun_intensity=1.5))
        assert values.min() >= 0.0
        assert values.max() <= 1.0

    def test_scalar_and_array(self):
        assert isinstance(insolation(10.0, ClimateConfig()), float)
        assert insolation(np.array([0.0, 45.0]), ClimateConfig()).shape == (2,)

    def test_tilt_raises_polar_floor(self):
        low = insolation(90.0, ClimateConfig(axial_tilt=5.0))
        high = insolation(90.0, ClimateConfig(axial_tilt=40.0))
        assert high > low


# ═══════════════════════════════════════════════════════════════════
# Winds and precipitation terms
# ═══════════════════════════════════════════════════════════════════


class TestWindField:
    def test_bands(self):
        u, v = wind_field(np.array([15.0, 45.0, 75.0, -15.0, -45.0]), ClimateConfig())
        assert u.tolist() == [-1.0, 1.0, -1.0, -1.0, 1.0]
        # Trades equatorward, westerlies poleward, polar easterlies equatorward.
        assert v[0] < 0 and v[1] > 0 and v[2] < 0
        assert v[3] > 0 and v[4] < 0

    def test_rotation_reverses_zonal_component(self):
        lat = np.array([10.0, 40.0, 70.0])
        u1, v1 = wind_field(lat, ClimateConfig(rotation_direction=1))
        u2, v2 = wind_field(lat, ClimateConfig(rotation_direction=-1))
        assert np.array_equal(u1, -u2)
        assert np.array_equal(v1, v2)


class TestHadley:
    cfg = ClimateConfig()

    def test_itcz_boost(self):
        assert hadley_multiplier(0.0, self.cfg) == pytest.approx(1.0 + self.cfg.itcz_boost)

    def test_subtropic_dry(self):
        assert hadley_multiplier(25.0, self.cfg) == pytest.approx(1.0 - self.cfg.subtropic_dryness)

    def test_neutral_beyond(self):
        assert hadley_multiplier(50.0, self.cfg) == 1.0
        assert hadley_multiplier(-70.0, self.cfg) == 1.0

    @pytest.mark.parametrize("edge", [15.0, 35.0])
    def test_continuous(self, edge):
        assert hadley_multiplier(edge - 1e-6, self.cfg) == pytest.approx(
            hadley_multiplier(edge + 1e-6, self.cfg), abs=1e-4)


class TestAdvection:
    def test_uniform_source_stays_uniform(self):
        lat, lon = texel_lat_lon_grid(SMALL.width, SMALL.height)
        source = np.full(lat.shape, 0.4)
        flat = np.zeros(lat.shape)
        moisture, slope, shadow = advect(source, flat, lat, lon, SMALL)
        assert np.allclose(moisture, 0.4)
        assert np.all(slope == 0.0)
        assert np.all(shadow == 0.0)

    def test_moisture_comes_from_upwind(self):
        # Trade winds blow westward, so a source east of a texel reaches it.
        lat, lon = texel_lat_lon_grid(SMALL.width, SMALL.height)
        source = np.where((np.abs(lat) < 10) & (lon > 20) & (lon < 40), 1.0, 0.0)
        moisture, _, _ = advect(source, np.zeros(lat.shape), lat, lon, SMALL)
        tropics = np.abs(lat) < 10
        west = moisture[tropics & (lon > 0) & (lon < 15)].mean()
        east = moisture[tropics & (lon > 45) & (lon < 60)].mean()
        assert west > east

    def test_orographic_terms(self):
        cfg = ClimateConfig()
        m = np.array([0.5, 0.5, 0.5])
        out = orographic(m, np.array([0.0, 0.05, 0.0]), np.array([0.0, 0.0, 0.05]), cfg)
        assert out[0] == pytest.approx(0.5)
        assert out[1] > 0.5
        assert out[2] < 0.5


class TestThermalInertia:
    def test_ocean_high_and_deepening(self):
        ti = thermal_inertia(np.array([-0.01, -0.1, -0.3]), np.zeros(3), 0.0)
        assert np.all(ti >= 0.7)
        assert ti[0] < ti[1] < ti[2]

    def test_land_band(self):
        ti = thermal_inertia(np.array([0.01, 0.01, 0.4]), np.array([0.0, 1.0, 0.0]), 0.0)
        assert np.all((ti >= 0.05) & (ti <= 0.4))
        assert ti[1] > ti[0]
        assert ti[2] < ti[0]


class TestCoastalTexels:
    def test_wraps_longitude(self):
        water = np.ones((4, 8), dtype=bool)
        water[:, 0] = False
        coast = coastal_texels(water)
        assert coast[:, 7].all()
        assert coast[:, 1].all()
        assert not coast[:, 4].any()

    def test_no_neighbour_past_pole(self):
        water = np.ones((4, 8), dtype=bool)
        water[0, :] = False
        coast = coastal_texels(water)
        assert coast[0].all() and coast[1].all()
        assert not coast[3].any()


# ═══════════════════════════════════════════════════════════════════
# Bake
# ═══════════════════════════════════════════════════════════════════


@pytest.fixture(scope="module")
def ocean_grid():
    return bake_climate(ocean_world, 0.0, SMALL)


@pytest.fixture(scope="module")
def plateau_grids():
    flat = bake_climate(plateau_world, 0.0, SMALL)
    ridged = bake_climate(lambda d: plateau_world(d, ridge=True), 0.0, SMALL)
    return flat, ridged


class TestBake:
    def test_shapes_and_dtypes(self, ocean_grid):
        assert ocean_grid.insolation.shape == (48, 96)
        assert ocean_grid.precipitation.dtype == np.float32
        assert ocean_grid.mask.dtype == np.uint8

    def test_precipitation_bounds(self, ocean_grid, plateau_grids):
        for grid in (ocean_grid, *plateau_grids):
            assert grid.precipitation.min() >= 0.0
            assert grid.precipitation.max() <= 1.0

    def test_itcz_wetter_than_subtropics(self, ocean_grid):
        lat, _ = texel_lat_lon_grid(SMALL.width, SMALL.height)
        a = np.abs(lat)
        itcz = ocean_grid.precipitation[a < 15].mean()
        subtropics = ocean_grid.precipitation[(a >= 15) & (a < 35)].mean()
        assert itcz > subtropics

    def test_all_ocean_mask(self, ocean_grid):
        assert np.all(ocean_grid.terrain_class == TerrainClass.DEEP_OCEAN)
        assert not ocean_grid.coastal.any()
        assert ocean_grid.thermal_inertia.min() >= 0.7

    def test_plateau_mask(self, plateau_grids):
        flat, ridged = plateau_grids
        classes = set(np.unique(ridged.terrain_class).tolist())
        assert {int(TerrainClass.DEEP_OCEAN), int(TerrainClass.LOWLAND), int(TerrainClass.HIGHLAND)} <= classes
        assert flat.coastal.any()

    def test_rain_shadow_west_of_ridge(self, plateau_grids):
        flat, ridged = plateau_grids
        lat, lon = texel_lat_lon_grid(SMALL.width, SMALL.height)
        lee = (np.abs(lat) < 15) & (lon < -5) & (lon > -15)
        assert ridged.precipitation[lee].mean() < flat.precipitation[lee].mean()

    def test_ridge_below_cloud_base_casts_no_shadow(self):
        cfg = replace(SMALL, cloud_base=0.5)
        low = bake_climate(lambda d: plateau_world(d, ridge=True), 0.0, cfg)
        reference = bake_climate(plateau_world, 0.0, cfg)
        assert np.allclose(low.precipitation, reference.precipitation)

    def test_ocean_moisture_counted_once(self, ocean_grid):
        single = bake_climate(ocean_world, 0.0, replace(SMALL, second_pass_weight=0.0))
        assert np.allclose(single.precipitation, ocean_grid.precipitation)

    def test_land_reevaporation_feeds_second_pass(self, plateau_grids):
        flat, _ = plateau_grids
        single = bake_climate(plateau_world, 0.0, replace(SMALL, second_pass_weight=0.0))
        assert np.all(flat.precipitation >= single.precipitation)
        assert not np.allclose(flat.precipitation, single.precipitation)

    def test_deterministic(self):
        a = bake_climate(plateau_world, 0.0, SMALL)
        b = bake_climate(plateau_world, 0.0, SMALL)
        assert np.array_equal(a.precipitation, b.precipitation)
        assert np.array_equal(a.mask, b.mask)

    def test_moisture_noise_varies_result(self):
        noise = NoiseBank.from_seed(3).moisture
        a = bake_climate(ocean_world, 0.0, SMALL)
        b = bake_climate(ocean_world, 0.0, SMALL, moisture_source=noise)
        assert not np.array_equal(a.precipitation, b.precipitation)

    def test_rejects_empty_grid(self):
        with pytest.raises(ValueError):
            bake_climate(ocean_world, 0.0, replace(SMALL, width=0))


# ═══════════════════════════════════════════════════════════════════
# Climate grid
# ═══════════════════════════════════════════════════════════════════


class TestClimateGrid:
    def test_read_only(self, ocean_grid):
        with pytest.raises(ValueError):
            ocean_grid.precipitation[0, 0] = 1.0
        with pytest.raises(ValueError):
            ocean_grid.mask[0, 0] = 3

    def test_sample(self, plateau_grids):
        _, ridged = plateau_grids
        sample = ridged.sample(lat_lon_to_direction(0.0, 10.0))
        assert isinstance(sample, ClimateSample)
        assert sample.terrain_type is TerrainClass.LOWLAND
        assert not sample.is_water
        ocean = ridged.sample(lat_lon_to_direction(0.0, 120.0))
        assert ocean.is_water
        assert ocean.terrain_type is TerrainClass.DEEP_OCEAN

    def test_pole_sample(self, ocean_grid):
        assert ocean_grid.sample((0.0, 1.0, 0.0)).insolation <= 0.25

    def test_raster_round_trip(self, plateau_grids):
        _, ridged = plateau_grids
        raster = ridged.to_raster()
        assert raster.shape == (48, 96, 4)
        assert raster.dtype == np.float32
        back = ClimateGrid.from_raster(raster, ridged.sea_level)
        assert np.array_equal(back.mask, ridged.mask)
        assert np.array_equal(back.precipitation, ridged.precipitation)

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            ClimateGrid(np.zeros((2, 3)), np.zeros((2, 3)), np.zeros((3, 3)), np.zeros((2, 3)), 0.0)

    def test_bad_raster(self):
        with pytest.raises(ValueError):
            ClimateGrid.from_raster(np.zeros((4, 4, 3)), 0.0)
