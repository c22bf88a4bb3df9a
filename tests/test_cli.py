"""Tests for the planetgen command-line interface."""

from __future__ import annotations

import json

import pytest

from planetgen.cli import build_parser, main
from planetgen.config import ClimateConfig, GenerationConfig, load_config, save_config
from planetgen.io import climate_metadata, load_climate_grid, validate_mesh_payload

SMALL = GenerationConfig(subdivisions=2, lod_levels=2, climate=ClimateConfig(width=32, height=16))


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "small.json"
    save_config(SMALL, path)
    return path


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_requires_seed(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["generate"])

    def test_defaults(self):
        args = build_parser().parse_args(["generate", "--seed", "3"])
        assert args.preset == "earthlike"
        assert args.output_dir == "exports"
        assert args.subdivisions is None


class TestGenerate:
    def test_writes_meshes_and_climate(self, tmp_path, config_path, capsys):
        out = tmp_path / "out"
        main(["generate", "--seed", "1337", "--config", str(config_path),
              "--out-dir", str(out), "--png"])
        assert load_config(out / "config.json") == SMALL
        for n in (2, 1):
            payload = json.loads((out / f"mesh_l{n}.json").read_text(encoding="utf-8"))
            assert validate_mesh_payload(payload) == []
        assert load_climate_grid(out / "climate.npz").width == 32
        assert climate_metadata(out / "climate.npz")["seed"] == 1337
        assert (out / "climate.png").exists()
        assert "Saved" in capsys.readouterr().out

    def test_no_climate(self, tmp_path, config_path):
        out = tmp_path / "out"
        main(["generate", "--seed", "1", "--config", str(config_path),
              "--out-dir", str(out), "--no-climate"])
        assert (out / "mesh_l2.json").exists()
        assert not (out / "climate.npz").exists()

    def test_subdivision_override_clamps_levels(self, tmp_path, config_path):
        out = tmp_path / "out"
        main(["generate", "--seed", "1", "--config", str(config_path),
              "--subdivisions", "0", "--out-dir", str(out), "--no-climate"])
        assert sorted(p.name for p in out.glob("mesh_*.json")) == ["mesh_l0.json"]

    def test_invalid_config_exits(self, tmp_path, config_path, capsys):
        with pytest.raises(SystemExit) as info:
            main(["generate", "--seed", "1", "--config", str(config_path),
                  "--radius", "-1", "--out-dir", str(tmp_path)])
        assert info.value.code == 2
        assert "Invalid configuration" in capsys.readouterr().out


class TestOtherCommands:
    def test_bake_climate(self, tmp_path, config_path):
        out = tmp_path / "grid.npz"
        main(["bake-climate", "--seed", "5", "--config", str(config_path),
              "--out", str(out), "--width", "24", "--height", "12"])
        grid = load_climate_grid(out)
        assert (grid.width, grid.height) == (24, 12)

    def test_report(self, tmp_path, config_path, capsys):
        json_path = tmp_path / "report.json"
        main(["report", "--seed", "9", "--config", str(config_path), "--json", str(json_path)])
        assert capsys.readouterr().out.startswith("seed 9")
        assert json.loads(json_path.read_text(encoding="utf-8"))["seed"] == 9

    def test_render(self, tmp_path, config_path):
        grid_path = tmp_path / "grid.npz"
        main(["bake-climate", "--seed", "5", "--config", str(config_path), "--out", str(grid_path)])
        panels = tmp_path / "panels.png"
        profile = tmp_path / "profile.png"
        main(["render", "--in", str(grid_path), "--out", str(panels),
              "--profile", str(profile), "--dpi", "50"])
        assert panels.exists()
        assert profile.exists()
