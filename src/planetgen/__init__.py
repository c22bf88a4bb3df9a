"""planetgen — seeded procedural planets with a baked climate.

Public API is organised into layers:

- **Core** — noise, plates, icosphere, height field, sea level
- **Mesh** — adaptive smoothing and mesh levels
- **Climate** — projection, terrain mask, climate bake, spawn rules
- **Session** — one-call generation and point queries
- **Config** — stage configs and presets
- **I/O & Diagnostics** — persistence, reports, panels (matplotlib)
"""

# ── Core ────────────────────────────────────────────────────────────
from .noise import NoiseBank, make_rng, fbm_3d, ridged_3d, cellular_3d, smoothstep, lerp, clamp
from .plates import Plate, PlateField, generate_plates
from .icosphere import (
    Icosphere,
    MAX_SUBDIVISIONS,
    build_icosphere,
    build_icosphere_levels,
    icosphere_vertex_count,
    icosphere_face_count,
)
from .heightfield import (
    HeightField, draw_terrain_drama, hypsometric_curve,
    plains_relief, coastal_relief, coastline_detail, is_cliff, beach_erosion,
)
from .sea_level import effective_sea_level, land_fraction

# ── Mesh ────────────────────────────────────────────────────────────
from .smoothing import (
    build_vertex_adjacency,
    classify_coastline,
    smoothing_weights,
    taubin_smooth,
    smooth_terrain,
)
from .mesh import MeshLevel, build_mesh_level

# ── Climate ─────────────────────────────────────────────────────────
from .projection import (
    direction_to_lat_lon,
    lat_lon_to_direction,
    direction_to_texel,
    texel_to_direction,
)
from .terrain_mask import TerrainClass, encode_terrain_mask, decode_terrain_mask
from .climate import ClimateGrid, ClimateSample, bake_climate, insolation
from .suitability import SpawnRule, Habitat, DEFAULT_SPAWN_RULES, NEUTRAL_SCORE, spawn_suitability

# ── Session ─────────────────────────────────────────────────────────
from .session import (
    GenerationSession,
    generate,
    build_height_field,
    query_height,
    query_climate,
    query_precipitation,
    query_spawn_suitability,
)

# ── Config ──────────────────────────────────────────────────────────
from .config import (
    ConfigError,
    PlateConfig,
    HeightConfig,
    SmoothingConfig,
    ClimateConfig,
    MeshConfig,
    GenerationConfig,
    EARTHLIKE,
    PREVIEW,
    HIGH_DETAIL,
    load_config,
    save_config,
)

# ── I/O & Diagnostics ───────────────────────────────────────────────
from .io import save_climate_grid, load_climate_grid, export_climate_png, export_mesh_json, mesh_payload
from .diagnostics import hypsometric_breakdown, latitude_band_mean, insolation_profile, generation_report

__all__ = [
    # Core
    "NoiseBank", "make_rng", "fbm_3d", "ridged_3d", "cellular_3d",
    "smoothstep", "lerp", "clamp",
    "Plate", "PlateField", "generate_plates",
    "Icosphere", "MAX_SUBDIVISIONS", "build_icosphere", "build_icosphere_levels",
    "icosphere_vertex_count", "icosphere_face_count",
    "HeightField", "draw_terrain_drama", "hypsometric_curve",
    "plains_relief", "coastal_relief", "coastline_detail", "is_cliff", "beach_erosion",
    "effective_sea_level", "land_fraction",
    # Mesh
    "build_vertex_adjacency", "classify_coastline", "smoothing_weights",
    "taubin_smooth", "smooth_terrain",
    "MeshLevel", "build_mesh_level",
    # Climate
    "direction_to_lat_lon", "lat_lon_to_direction", "direction_to_texel", "texel_to_direction",
    "TerrainClass", "encode_terrain_mask", "decode_terrain_mask",
    "ClimateGrid", "ClimateSample", "bake_climate", "insolation",
    "SpawnRule", "Habitat", "DEFAULT_SPAWN_RULES", "NEUTRAL_SCORE", "spawn_suitability",
    # Session
    "GenerationSession", "generate", "build_height_field",
    "query_height", "query_climate", "query_precipitation", "query_spawn_suitability",
    # Config
    "ConfigError", "PlateConfig", "HeightConfig", "SmoothingConfig", "ClimateConfig",
    "MeshConfig", "GenerationConfig", "EARTHLIKE", "PREVIEW", "HIGH_DETAIL",
    "load_config", "save_config",
    # I/O & Diagnostics
    "save_climate_grid", "load_climate_grid", "export_climate_png", "export_mesh_json",
    "mesh_payload", "hypsometric_breakdown", "latitude_band_mean", "insolation_profile",
    "generation_report",
]
