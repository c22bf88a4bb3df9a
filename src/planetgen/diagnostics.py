"""Generation diagnostics — elevation breakdown, band means, summary report."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from .climate import ClimateGrid, insolation
from .config import ClimateConfig
from .projection import texel_lat_lon_grid
from .sea_level import land_fraction
from .terrain_mask import TerrainClass

# Upper edges (height above sea level, raw units) of the land bands.
# The last band is open-ended; 0.22 is the image of a raw offset of
# about 0.63 under the default hypsometric curve.
HYPSOMETRIC_BANDS: Tuple[Tuple[str, float], ...] = (
    ("low", 0.043),
    ("mid", 0.094),
    ("high", 0.16),
    ("very_high", 0.22),
    ("extreme", float("inf")),
)

# Land fraction per band for an Earth-like world.
HYPSOMETRIC_TARGETS: Dict[str, float] = {
    "low": 0.51,
    "mid": 0.37,
    "high": 0.11,
    "very_high": 0.01,
    "extreme": 0.0,
}

CLIMATE_CHANNELS = ("insolation", "precipitation", "thermal_inertia")


@dataclass(frozen=True)
class BandStats:
    name: str
    fraction: float
    count: int


def hypsometric_breakdown(heights, sea_level: float) -> List[BandStats]:
    """Fraction of land samples in each :data:`HYPSOMETRIC_BANDS` band.

    Only samples at or above *sea_level* count.  With no land every
    fraction is zero.
    """
    h = np.asarray(heights, dtype=np.float64)
    above = h[h >= sea_level] - sea_level
    total = above.size
    stats = []
    lower = 0.0
    for name, upper in HYPSOMETRIC_BANDS:
        count = int(np.count_nonzero((above >= lower) & (above < upper)))
        stats.append(BandStats(name, count / total if total else 0.0, count))
        lower = upper
    return stats


def latitude_band_mean(grid: ClimateGrid, channel: str, lo: float, hi: float) -> float:
    """Mean of *channel* over texels with ``lo <= |lat| < hi`` (degrees)."""
    if channel not in CLIMATE_CHANNELS:
        raise ValueError(f"Unknown climate channel: {channel!r}. Available: {list(CLIMATE_CHANNELS)}")
    lat, _ = texel_lat_lon_grid(grid.width, grid.height)
    a = np.abs(lat)
    rows = (a >= lo) & (a < hi)
    if not rows.any():
        raise ValueError(f"No texels between {lo} and {hi} degrees")
    return float(np.asarray(getattr(grid, channel), dtype=np.float64)[rows].mean())


def insolation_profile(config: ClimateConfig, step: float = 5.0) -> List[Tuple[float, float]]:
    """``(latitude, insolation)`` pairs from the equator to the pole."""
    lats = np.arange(0.0, 90.0 + step / 2, step)
    values = insolation(lats, config)
    return [(float(lat), float(v)) for lat, v in zip(lats, values)]


def terrain_class_fractions(grid: ClimateGrid) -> Dict[str, float]:
    classes = grid.terrain_class
    return {
        cls.name.lower(): float(np.count_nonzero(classes == int(cls))) / classes.size
        for cls in TerrainClass
    }


def generation_report(session: Any) -> Dict[str, Any]:
    """JSON-friendly summary of a :class:`~planetgen.session.GenerationSession`."""
    top = session.mesh_levels[0]
    heights = top.raw_heights
    plates = session.plates.plates
    report: Dict[str, Any] = {
        "seed": session.seed,
        "subdivisions": session.config.subdivisions,
        "nominal_sea_level": session.config.sea_level,
        "effective_sea_level": session.sea_level,
        "terrain_drama": session.terrain_drama,
        "plates": {
            "count": len(plates),
            "continental": sum(1 for p in plates if p.continental),
        },
        "meshes": [
            {"subdivisions": m.subdivisions, "vertices": m.vertex_count, "triangles": m.triangle_count}
            for m in session.mesh_levels
        ],
        "land_fraction": land_fraction(heights, session.sea_level),
        "coastline_vertices": int(top.coastline.sum()),
        "height_range": [float(heights.min()), float(heights.max())],
        "hypsometry": {b.name: b.fraction for b in hypsometric_breakdown(heights, session.sea_level)},
        "climate": None,
    }
    grid = session.climate
    if grid is not None:
        report["climate"] = {
            "width": grid.width,
            "height": grid.height,
            "mean_precipitation": float(grid.precipitation.mean()),
            "itcz_precipitation": latitude_band_mean(grid, "precipitation", 0.0, 15.0),
            "subtropic_precipitation": latitude_band_mean(grid, "precipitation", 15.0, 35.0),
            "terrain_classes": terrain_class_fractions(grid),
        }
    return report


def format_report(report: Dict[str, Any]) -> List[str]:
    """Human-readable lines for :func:`generation_report` output."""
    lines = [
        f"seed {report['seed']}  subdivisions {report['subdivisions']}",
        f"  sea level: {report['nominal_sea_level']:.4f} nominal, "
        f"{report['effective_sea_level']:.4f} effective",
        f"  land fraction: {report['land_fraction']:.1%}",
        f"  plates: {report['plates']['count']} ({report['plates']['continental']} continental)",
        f"  terrain drama: {report['terrain_drama']:.3f}",
    ]
    for name, fraction in report["hypsometry"].items():
        lines.append(f"  {name:>10}: {fraction:6.1%}  (Earth {HYPSOMETRIC_TARGETS[name]:.0%})")
    climate = report["climate"]
    if climate is not None:
        lines.append(
            f"  climate {climate['width']}x{climate['height']}: "
            f"ITCZ {climate['itcz_precipitation']:.3f} vs subtropics "
            f"{climate['subtropic_precipitation']:.3f}"
        )
    return lines
