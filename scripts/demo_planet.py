#!/usr/bin/env python3
"""Demo: generate a planet, print its report and render the climate panels.

Usage
-----
    python scripts/demo_planet.py --seed 1337 --out exports/planet
    python scripts/demo_planet.py --seed 7 --preset preview --tag camel
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from planetgen import EARTHLIKE, HIGH_DETAIL, PREVIEW, generate
from planetgen.diagnostics import format_report, generation_report
from planetgen.io import export_climate_png, export_mesh_json
from planetgen.projection import lat_lon_to_direction
from planetgen.visualize import render_climate_panels, render_latitude_profile

PRESETS = {
    "earthlike": EARTHLIKE,
    "preview": PREVIEW,
    "high-detail": HIGH_DETAIL,
}

MERIDIAN_LATITUDES = (0.0, 20.0, 45.0, 70.0, 89.0)


def main() -> None:
    parser = argparse.ArgumentParser(description="Planet generation demo")
    parser.add_argument("--seed", type=int, default=1337)
    parser.add_argument("--preset", choices=list(PRESETS.keys()), default="earthlike")
    parser.add_argument("--radius", type=float, default=60.0)
    parser.add_argument("--out", default="exports/planet")
    parser.add_argument("--dpi", type=int, default=120)
    parser.add_argument("--tag", default="camel", help="Spawn tag scored along the prime meridian")
    args = parser.parse_args()

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)

    # ── 1. Generate ─────────────────────────────────────────────────
    config = PRESETS[args.preset].with_overrides(radius=args.radius)
    print(f"Generating seed {args.seed} (preset={args.preset}, subdivisions={config.subdivisions})…")
    session = generate(args.seed, config)

    # ── 2. Report ───────────────────────────────────────────────────
    for line in format_report(generation_report(session)):
        print(line)

    # ── 3. Walk the meridian ────────────────────────────────────────
    print(f"\n{'lat':>5}  {'height':>8}  {'sun':>5}  {'rain':>5}  {args.tag}")
    for lat in MERIDIAN_LATITUDES:
        d = lat_lon_to_direction(lat, 0.0)
        sample = session.query_climate(d)
        score = session.query_spawn_suitability(d, args.tag)
        print(
            f"{lat:5.0f}  {session.query_height(d):8.4f}  "
            f"{sample.insolation:5.2f}  {sample.precipitation:5.2f}  {score:.2f}"
        )

    # ── 4. Export ───────────────────────────────────────────────────
    path = export_mesh_json(session.mesh, out / f"mesh_l{session.mesh.subdivisions}.json",
                            radius=config.radius)
    print(f"\nSaved {path}")
    print(f"Saved {export_climate_png(session.climate, out / 'climate.png')}")
    print(f"Saved {render_climate_panels(session.climate, out / 'panels.png', title=f'seed {args.seed}', dpi=args.dpi)}")
    print(f"Saved {render_latitude_profile(session.climate, out / 'profile.png', dpi=args.dpi)}")


if __name__ == "__main__":
    main()
