"""Climate panel rendering — quick-look PNGs of a baked climate grid.

Four panels side by side: insolation, precipitation, thermal inertia
and terrain class (with coastal texels outlined).  Uses the Agg
backend, so it works headless.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import numpy as np

from .climate import ClimateGrid
from .terrain_mask import TerrainClass

# Terrain-class colours, indexed by class value.
_CLASS_COLORS = [
    "#14326e",  # deep ocean
    "#3c8cc8",  # shallow water
    "#6aa84f",  # lowland
    "#8c6e4b",  # highland
]


def _ensure_mpl():
    """Lazy-import matplotlib on the Agg backend; raise helpful error if missing."""
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from matplotlib.colors import ListedColormap
        return plt, ListedColormap
    except ImportError as exc:
        raise RuntimeError(
            "matplotlib is required for visualisation. "
            "Install with `pip install matplotlib`."
        ) from exc


def render_climate_panels(
    grid: ClimateGrid,
    output_path: str | Path,
    title: Optional[str] = None,
    dpi: int = 120,
    figsize: Tuple[float, float] = (20, 3.6),
) -> Path:
    """Render the four climate channels of *grid* to a PNG."""
    plt, ListedColormap = _ensure_mpl()

    extent = (-180.0, 180.0, -90.0, 90.0)
    fig, axes = plt.subplots(1, 4, figsize=figsize)

    panels = [
        ("Insolation", grid.insolation, "inferno", 0.0, 1.0),
        ("Precipitation", grid.precipitation, "YlGnBu", 0.0, 1.0),
        ("Thermal inertia", grid.thermal_inertia, "viridis", 0.0, 1.0),
    ]
    for ax, (name, data, cmap, vmin, vmax) in zip(axes, panels):
        im = ax.imshow(data, cmap=cmap, vmin=vmin, vmax=vmax, extent=extent, aspect="auto")
        ax.set_title(name, fontsize=10)
        fig.colorbar(im, ax=ax, fraction=0.046, pad=0.02)

    ax = axes[3]
    classes = np.asarray(grid.terrain_class, dtype=np.float64)
    ax.imshow(
        classes,
        cmap=ListedColormap(_CLASS_COLORS),
        vmin=-0.5, vmax=len(TerrainClass) - 0.5,
        extent=extent, aspect="auto", interpolation="nearest",
    )
    coast = np.ma.masked_where(~grid.coastal, np.ones(grid.coastal.shape))
    ax.imshow(coast, cmap=ListedColormap(["#f4e4a1"]), extent=extent, aspect="auto",
              interpolation="nearest")
    ax.set_title("Terrain class", fontsize=10)

    for ax in axes:
        ax.set_xlabel("longitude")
        ax.set_xticks([-180, -90, 0, 90, 180])
        ax.set_yticks([-90, -45, 0, 45, 90])
    axes[0].set_ylabel("latitude")

    if title:
        fig.suptitle(title, fontsize=12)
    fig.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight", pad_inches=0.2)
    plt.close(fig)
    return output_path


def render_latitude_profile(
    grid: ClimateGrid,
    output_path: str | Path,
    dpi: int = 120,
) -> Path:
    """Plot zonal means of insolation and precipitation against latitude."""
    plt, _ = _ensure_mpl()
    lats = 90.0 - (np.arange(grid.height) + 0.5) * 180.0 / grid.height

    fig, ax = plt.subplots(figsize=(6, 4))
    ax.plot(lats, grid.insolation.mean(axis=1), label="insolation", color="#d1495b")
    ax.plot(lats, grid.precipitation.mean(axis=1), label="precipitation", color="#00798c")
    ax.set_xlabel("latitude")
    ax.set_xlim(-90, 90)
    ax.set_ylim(0, 1)
    ax.legend(loc="upper right", fontsize=8)
    ax.grid(alpha=0.3)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return output_path
