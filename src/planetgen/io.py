"""Persistence — climate grids, PNG rasters and mesh payloads.

Functions
---------
- :func:`save_climate_grid` / :func:`load_climate_grid` — exact ``.npz``
- :func:`export_climate_png` — 4-channel RGBA PNG (8 bits per channel)
- :func:`mesh_payload` / :func:`export_mesh_json` — renderer JSON
- :func:`validate_mesh_payload` — structural check of a mesh payload
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
from PIL import Image

from .climate import ClimateGrid
from .mesh import MeshLevel

PathLike = Union[str, Path]

_FORMAT_VERSION = "1.0"


# ═══════════════════════════════════════════════════════════════════
# Climate grid
# ═══════════════════════════════════════════════════════════════════

def save_climate_grid(
    grid: ClimateGrid,
    path: PathLike,
    *,
    seed: Optional[int] = None,
) -> Path:
    """Write *grid* losslessly to a compressed ``.npz`` archive."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    metadata = {"version": _FORMAT_VERSION, "sea_level": grid.sea_level, "seed": seed}
    with out.open("wb") as fh:
        np.savez_compressed(
            fh,
            insolation=grid.insolation,
            precipitation=grid.precipitation,
            thermal_inertia=grid.thermal_inertia,
            mask=grid.mask,
            metadata=np.array(json.dumps(metadata)),
        )
    return out


def load_climate_grid(path: PathLike) -> ClimateGrid:
    """Read a grid written by :func:`save_climate_grid`."""
    with np.load(Path(path), allow_pickle=False) as data:
        missing = {"insolation", "precipitation", "thermal_inertia", "mask", "metadata"} - set(data.files)
        if missing:
            raise ValueError(f"{path} is not a climate archive (missing {sorted(missing)})")
        metadata = json.loads(str(data["metadata"]))
        return ClimateGrid(
            insolation=data["insolation"],
            precipitation=data["precipitation"],
            thermal_inertia=data["thermal_inertia"],
            mask=data["mask"],
            sea_level=float(metadata["sea_level"]),
        )


def climate_metadata(path: PathLike) -> Dict[str, Any]:
    with np.load(Path(path), allow_pickle=False) as data:
        return json.loads(str(data["metadata"]))


def export_climate_png(grid: ClimateGrid, path: PathLike) -> Path:
    """Save the grid as an RGBA PNG.

    R = insolation, G = precipitation, B = thermal inertia (each
    quantised to 8 bits), A = the terrain mask byte verbatim.
    """
    rgb = np.stack([grid.insolation, grid.precipitation, grid.thermal_inertia], axis=-1)
    rgb8 = np.clip(np.rint(rgb * 255.0), 0, 255).astype(np.uint8)
    rgba = np.concatenate([rgb8, grid.mask[..., None]], axis=-1)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(np.ascontiguousarray(rgba)).save(out)
    return out


def load_climate_png(path: PathLike, sea_level: float) -> ClimateGrid:
    """Read a PNG written by :func:`export_climate_png` (8-bit precision)."""
    with Image.open(Path(path)) as img:
        rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    channels = rgba[..., :3].astype(np.float32) / 255.0
    return ClimateGrid(
        insolation=channels[..., 0],
        precipitation=channels[..., 1],
        thermal_inertia=channels[..., 2],
        mask=rgba[..., 3],
        sea_level=sea_level,
    )


# ═══════════════════════════════════════════════════════════════════
# Mesh payload
# ═══════════════════════════════════════════════════════════════════

def mesh_payload(level: MeshLevel, *, radius: Optional[float] = None) -> Dict[str, Any]:
    """Build a JSON-serialisable dict for one mesh level.

    Keys: ``metadata`` (version, subdivisions, counts, radius),
    ``positions``, ``normals``, ``colors``, ``uvs``, ``indices``
    (flat lists) and ``coastline`` (vertex indices).
    """
    return {
        "metadata": {
            "version": _FORMAT_VERSION,
            "subdivisions": level.subdivisions,
            "vertex_count": level.vertex_count,
            "triangle_count": level.triangle_count,
            "radius": radius,
        },
        "positions": np.round(level.positions, 6).ravel().tolist(),
        "normals": np.round(level.normals, 6).ravel().tolist(),
        "colors": np.round(level.colors.astype(np.float64), 4).ravel().tolist(),
        "uvs": np.round(level.uvs.astype(np.float64), 6).ravel().tolist(),
        "indices": level.indices.ravel().tolist(),
        "coastline": np.flatnonzero(level.coastline).tolist(),
    }


def export_mesh_json(
    level: MeshLevel,
    path: PathLike,
    *,
    radius: Optional[float] = None,
    indent: Optional[int] = None,
) -> Path:
    payload = mesh_payload(level, radius=radius)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(payload, indent=indent), encoding="utf-8")
    return out


def validate_mesh_payload(payload: Dict[str, Any]) -> List[str]:
    """Return a list of structural problems (empty = valid)."""
    errors: List[str] = []
    meta = payload.get("metadata")
    if not isinstance(meta, dict):
        return ["Missing top-level key: metadata"]

    for key in ("positions", "normals", "colors", "uvs", "indices"):
        if key not in payload:
            errors.append(f"Missing top-level key: {key}")
    if errors:
        return errors

    n = meta.get("vertex_count", 0)
    m = meta.get("triangle_count", 0)
    for key, width in (("positions", 3), ("normals", 3), ("colors", 3), ("uvs", 2)):
        if len(payload[key]) != n * width:
            errors.append(f"{key}: expected {n * width} values, got {len(payload[key])}")
    if len(payload["indices"]) != m * 3:
        errors.append(f"indices: expected {m * 3} values, got {len(payload['indices'])}")
    elif payload["indices"] and max(payload["indices"]) >= n:
        errors.append("indices reference vertices past vertex_count")
    return errors
