"""Tests for projection.py — equirectangular mapping conventions and round trips."""

from __future__ import annotations

import math

import numpy as np
import pytest

from planetgen.projection import (
    direction_to_lat_lon,
    direction_to_texel,
    lat_lon_to_direction,
    lat_lon_to_texel_array,
    texel_direction_grid,
    texel_lat_lon,
    texel_lat_lon_grid,
    texel_to_direction,
)

W, H = 64, 32


class TestConventions:
    def test_north_is_plus_y(self):
        lat, _ = direction_to_lat_lon((0.0, 1.0, 0.0))
        assert lat == pytest.approx(90.0)

    def test_longitude_zero_is_plus_x(self):
        lat, lon = direction_to_lat_lon((1.0, 0.0, 0.0))
        assert (lat, lon) == (pytest.approx(0.0), pytest.approx(0.0))

    def test_plus_z_is_east(self):
        _, lon = direction_to_lat_lon((0.0, 0.0, 1.0))
        assert lon == pytest.approx(90.0)

    def test_north_pole_in_row_zero(self):
        assert direction_to_texel((0.0, 1.0, 0.0), W, H)[0] == 0

    def test_south_pole_in_last_row(self):
        assert direction_to_texel((0.0, -1.0, 0.0), W, H)[0] == H - 1

    def test_column_zero_is_minus_180(self):
        _, col = direction_to_texel(lat_lon_to_direction(0.0, -179.9), W, H)
        assert col == 0

    def test_plus_180_clamped_to_last_column(self):
        _, col = direction_to_texel((-1.0, 0.0, 0.0), W, H)
        assert col in (0, W - 1)

    def test_non_unit_direction(self):
        assert direction_to_texel((0.0, 5.0, 0.0), W, H) == direction_to_texel((0.0, 1.0, 0.0), W, H)


class TestRoundTrip:
    @pytest.mark.parametrize("lat,lon", [(0, 0), (45, 90), (-30, -120), (80, 170), (-89, 10)])
    def test_lat_lon_direction(self, lat, lon):
        back = direction_to_lat_lon(lat_lon_to_direction(lat, lon))
        assert back == (pytest.approx(lat), pytest.approx(lon))

    def test_texel_round_trip_exact(self):
        for row in range(0, H, 3):
            for col in range(0, W, 5):
                assert direction_to_texel(texel_to_direction(row, col, W, H), W, H) == (row, col)

    def test_direction_round_trip_within_one_texel(self):
        rng = np.random.default_rng(3)
        for v in rng.normal(size=(200, 3)):
            d = v / np.linalg.norm(v)
            row, col = direction_to_texel(d, W, H)
            back = texel_to_direction(row, col, W, H)
            angle = math.degrees(math.acos(max(-1.0, min(1.0, float(np.dot(d, back))))))
            # One texel diagonal at the equator.
            assert angle <= math.hypot(360.0 / W, 180.0 / H)


class TestGrids:
    def test_grid_matches_scalar(self):
        lat, lon = texel_lat_lon_grid(W, H)
        assert lat.shape == (H, W)
        assert (lat[3, 7], lon[3, 7]) == (pytest.approx(texel_lat_lon(3, 7, W, H)[0]),
                                          pytest.approx(texel_lat_lon(3, 7, W, H)[1]))

    def test_direction_grid_unit(self):
        dirs = texel_direction_grid(W, H)
        assert dirs.shape == (H, W, 3)
        assert np.allclose(np.linalg.norm(dirs, axis=-1), 1.0)

    def test_vectorised_texel_lookup(self):
        lat, lon = texel_lat_lon_grid(W, H)
        rows, cols = lat_lon_to_texel_array(lat, lon, W, H)
        assert np.array_equal(rows, np.repeat(np.arange(H)[:, None], W, axis=1))
        assert np.array_equal(cols, np.repeat(np.arange(W)[None, :], H, axis=0))

    def test_vectorised_lookup_wraps_longitude(self):
        rows, cols = lat_lon_to_texel_array(np.array([0.0]), np.array([190.0]), W, H)
        _, expected = direction_to_texel(lat_lon_to_direction(0.0, -170.0), W, H)
        assert cols[0] == expected
