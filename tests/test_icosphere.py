"""Tests for icosphere.py — subdivision, counts, winding, prefix property."""

from __future__ import annotations

import numpy as np
import pytest

from planetgen.icosphere import (
    MAX_SUBDIVISIONS,
    build_icosphere,
    build_icosphere_levels,
    icosphere_face_count,
    icosphere_vertex_count,
)


@pytest.fixture(scope="module")
def levels():
    return build_icosphere_levels(3, radius=2.5)


class TestCounts:
    @pytest.mark.parametrize("n", [0, 1, 2, 3])
    def test_vertex_and_face_counts(self, levels, n):
        sphere = levels[n]
        assert sphere.vertex_count == icosphere_vertex_count(n)
        assert sphere.face_count == icosphere_face_count(n)

    def test_base_icosahedron(self):
        sphere = build_icosphere(0)
        assert sphere.vertex_count == 12
        assert sphere.face_count == 20

    def test_euler_characteristic(self, levels):
        for sphere in levels:
            edges = {tuple(sorted(e)) for f in sphere.faces.tolist()
                     for e in ((f[0], f[1]), (f[1], f[2]), (f[2], f[0]))}
            assert sphere.vertex_count - len(edges) + sphere.face_count == 2


class TestGeometry:
    def test_unit_directions(self, levels):
        norms = np.linalg.norm(levels[-1].directions, axis=1)
        assert np.allclose(norms, 1.0)

    def test_positions_scaled(self, levels):
        norms = np.linalg.norm(levels[-1].positions, axis=1)
        assert np.allclose(norms, 2.5)

    def test_no_duplicate_vertices(self, levels):
        rounded = np.round(levels[-1].directions, 9)
        assert len({tuple(r) for r in rounded}) == levels[-1].vertex_count

    def test_outward_winding(self, levels):
        sphere = levels[-1]
        v = sphere.directions
        f = sphere.faces
        normals = np.cross(v[f[:, 1]] - v[f[:, 0]], v[f[:, 2]] - v[f[:, 0]])
        centroids = v[f].mean(axis=1)
        assert np.all(np.einsum("ij,ij->i", normals, centroids) > 0)

    def test_arrays_read_only(self, levels):
        with pytest.raises(ValueError):
            levels[0].directions[0, 0] = 5.0
        with pytest.raises(ValueError):
            levels[0].faces[0, 0] = 1


class TestLevels:
    def test_lower_level_is_prefix(self, levels):
        for lo, hi in zip(levels[:-1], levels[1:]):
            assert np.array_equal(hi.directions[: lo.vertex_count], lo.directions)

    def test_single_level_matches_levels(self, levels):
        sphere = build_icosphere(3, radius=2.5)
        assert np.array_equal(sphere.directions, levels[3].directions)
        assert np.array_equal(sphere.faces, levels[3].faces)


class TestValidation:
    def test_negative_subdivision(self):
        with pytest.raises(ValueError):
            build_icosphere(-1)

    def test_too_many_subdivisions(self):
        with pytest.raises(ValueError):
            build_icosphere(MAX_SUBDIVISIONS + 1)

    @pytest.mark.parametrize("radius", [0.0, -1.0])
    def test_non_positive_radius(self, radius):
        with pytest.raises(ValueError):
            build_icosphere(1, radius=radius)

    def test_non_integer_subdivision(self):
        with pytest.raises(ValueError):
            build_icosphere(1.5)
