"""planetgen command-line interface."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import EARTHLIKE, HIGH_DETAIL, PREVIEW, ConfigError, GenerationConfig, load_config

_PRESETS = {
    "earthlike": EARTHLIKE,
    "preview": PREVIEW,
    "high-detail": HIGH_DETAIL,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Procedural planet generator")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="-v for INFO, -vv for DEBUG logging")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_config_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--seed", type=int, required=True)
        p.add_argument("--config", dest="config_path", help="JSON config file")
        p.add_argument("--preset", choices=sorted(_PRESETS), default="earthlike")
        p.add_argument("--subdivisions", type=int)
        p.add_argument("--radius", type=float)
        p.add_argument("--sea-level", dest="sea_level", type=float)
        p.add_argument("--workers", type=int)

    generate = sub.add_parser("generate", help="Generate meshes and climate for a seed")
    add_config_args(generate)
    generate.add_argument("--out-dir", dest="output_dir", default="exports")
    generate.add_argument("--no-climate", action="store_true")
    generate.add_argument("--png", action="store_true", help="Also export the climate PNG")

    bake = sub.add_parser("bake-climate", help="Bake only the climate grid for a seed")
    add_config_args(bake)
    bake.add_argument("--out", dest="output_path", required=True)
    bake.add_argument("--width", type=int)
    bake.add_argument("--height", type=int)

    report = sub.add_parser("report", help="Print a generation summary")
    add_config_args(report)
    report.add_argument("--json", dest="json_path", help="Also write the report as JSON")

    render = sub.add_parser("render", help="Render a baked climate archive to PNG panels")
    render.add_argument("--in", dest="input_path", required=True)
    render.add_argument("--out", dest="output_path", required=True)
    render.add_argument("--profile", dest="profile_path",
                        help="Also write a latitude profile plot")
    render.add_argument("--dpi", type=int, default=120)

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _resolve_config(args: argparse.Namespace) -> GenerationConfig:
    config = load_config(args.config_path) if args.config_path else _PRESETS[args.preset]
    overrides = {
        name: getattr(args, name)
        for name in ("subdivisions", "radius", "sea_level", "workers")
        if getattr(args, name) is not None
    }
    if overrides:
        config = config.with_overrides(**overrides)
        if "subdivisions" in overrides:
            config = config.with_overrides(lod_levels=min(config.lod_levels, config.subdivisions + 1))
    return config


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "generate":
            _cmd_generate(args)
        elif args.command == "bake-climate":
            _cmd_bake_climate(args)
        elif args.command == "report":
            _cmd_report(args)
        elif args.command == "render":
            _cmd_render(args)
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}")
        raise SystemExit(2)


def _cmd_generate(args) -> None:
    from .io import export_climate_png, export_mesh_json, save_climate_grid
    from .config import save_config
    from .session import generate

    config = _resolve_config(args)
    if args.no_climate:
        config = config.with_overrides(bake_climate=False)
    session = generate(args.seed, config)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    save_config(config, output_dir / "config.json")
    for level in session.mesh_levels:
        path = export_mesh_json(level, output_dir / f"mesh_l{level.subdivisions}.json",
                                radius=config.radius)
        print(f"Saved {path}")
    if session.climate is not None:
        path = save_climate_grid(session.climate, output_dir / "climate.npz", seed=args.seed)
        print(f"Saved {path}")
        if args.png:
            path = export_climate_png(session.climate, output_dir / "climate.png")
            print(f"Saved {path}")


def _cmd_bake_climate(args) -> None:
    from dataclasses import replace

    from .climate import bake_climate
    from .icosphere import build_icosphere
    from .io import save_climate_grid
    from .sea_level import effective_sea_level
    from .session import build_height_field

    config = _resolve_config(args)
    climate = config.climate
    if args.width is not None:
        climate = replace(climate, width=args.width)
    if args.height is not None:
        climate = replace(climate, height=args.height)
    config = config.with_overrides(climate=climate)
    config.validate()

    field = build_height_field(args.seed, config)
    sphere = build_icosphere(config.subdivisions)
    sea = effective_sea_level(
        field.sample_many(sphere.directions, workers=config.workers),
        config.sea_level, config.min_land_ratio,
    )
    grid = bake_climate(
        lambda dirs: field.sample_many(dirs, workers=config.workers),
        sea, config.climate, moisture_source=field.noise.moisture,
    )
    path = save_climate_grid(grid, args.output_path, seed=args.seed)
    print(f"Saved {path}")


def _cmd_report(args) -> None:
    from .diagnostics import format_report, generation_report
    from .session import generate

    session = generate(args.seed, _resolve_config(args))
    report = generation_report(session)
    for line in format_report(report):
        print(line)
    if args.json_path:
        Path(args.json_path).write_text(json.dumps(report, indent=2), encoding="utf-8")


def _cmd_render(args) -> None:
    from .io import load_climate_grid
    from .visualize import render_climate_panels, render_latitude_profile

    grid = load_climate_grid(args.input_path)
    render_climate_panels(grid, args.output_path, title=Path(args.input_path).name, dpi=args.dpi)
    print(f"Saved {args.output_path}")
    if args.profile_path:
        render_latitude_profile(grid, args.profile_path, dpi=args.dpi)
        print(f"Saved {args.profile_path}")


if __name__ == "__main__":
    main()
