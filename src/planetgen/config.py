"""Generation configuration — every tuneable knob in one place.

Each stage has its own dataclass with documented defaults; a
:class:`GenerationConfig` aggregates them together with the
planet-level parameters (subdivision, radius, sea level, land ratio).
Named presets at the bottom of the module cover the common cases.

Configs round-trip through plain dicts (and therefore JSON) via
:meth:`GenerationConfig.to_dict` / :meth:`GenerationConfig.from_dict`.
Unknown keys are rejected rather than silently ignored.

Usage
-----
>>> from planetgen.config import GenerationConfig, PREVIEW
>>> cfg = GenerationConfig(subdivisions=4, radius=60.0)
>>> cfg.validate()
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Dict, Tuple, Type, TypeVar, Union

from .icosphere import MAX_SUBDIVISIONS

PathLike = Union[str, Path]

T = TypeVar("T")


class ConfigError(ValueError):
    """Raised when a configuration is rejected before generation starts."""


# ═══════════════════════════════════════════════════════════════════
# Stage configs
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PlateConfig:
    """Tectonic plate field parameters.

    Attributes
    ----------
    count : int
        Number of plates.
    continental_ratio : float
        Probability that a plate is continental.
    drift_min, drift_max : float
        Band for the magnitude of each plate's tangential drift.
    continental_elevation, oceanic_elevation : tuple of float
        ``(lo, hi)`` ranges for the plate base elevation.
    convergence_gain : float
        Scale of boundary uplift per unit of closing drift.
    boundary_width : float
        Width (in ``1 − dot`` units) of the boundary influence band.
    """

    count: int = 12
    continental_ratio: float = 0.4
    drift_min: float = 0.2
    drift_max: float = 1.0
    continental_elevation: Tuple[float, float] = (0.03, 0.09)
    oceanic_elevation: Tuple[float, float] = (-0.22, -0.08)
    convergence_gain: float = 0.07
    boundary_width: float = 0.06


@dataclass(frozen=True)
class HeightConfig:
    """Height-field synthesis parameters.

    Groups follow the order of the synthesis pipeline: tectonics,
    warp, continents, drama tiers, plains, coastal flattening, relief,
    coastline detail, wave erosion, hypsometric compression.
    """

    raw_min: float = -0.35
    raw_max: float = 0.45

    # Base tectonic term
    tectonic_weight: float = 1.0
    hotspot_frequency: float = 1.3
    hotspot_threshold: float = 0.4
    hotspot_gain: float = 0.2

    # Domain warp
    warp_frequency: float = 1.1
    warp_strength: float = 0.35

    # Continent shape
    continent_frequency: float = 0.9
    continent_octaves: int = 4
    continent_detail_frequency: float = 2.3
    continent_detail_octaves: int = 3
    continent_detail_weight: float = 0.3
    continent_power: float = 0.8
    continent_gain: float = 0.3
    ocean_bias: float = -0.02

    # Terrain drama: (probability, low, high) per tier
    drama_tiers: Tuple[Tuple[float, float, float], ...] = (
        (0.50, 0.35, 0.70),
        (0.30, 0.70, 1.10),
        (0.15, 1.10, 1.50),
        (0.05, 1.50, 2.00),
    )

    # Plains suppression
    plains_frequency: float = 0.7
    plains_threshold: float = 0.05
    plains_softness: float = 0.15
    plains_strength: float = 0.8

    # Coastal flattening
    coastal_band: float = 0.05
    coastal_min_relief: float = 0.25

    # Relief terms
    ridge_frequency: float = 2.4
    ridge_octaves: int = 4
    mountain_gain: float = 0.2
    fine_frequency: float = 9.0
    fine_octaves: int = 3
    fine_gain: float = 0.01
    mid_frequency: float = 4.5
    mid_octaves: int = 2
    mid_gain: float = 0.03

    # Coastline micro-detail
    micro_band: float = 0.015
    micro_frequency: float = 18.0
    micro_strength: float = 0.012
    land_erosion: float = 1.0
    sea_fill: float = 0.45

    # Wave erosion
    wave_band: float = 0.02
    wave_frequency: float = 30.0
    cliff_threshold: float = 0.38
    beach_height: float = 0.003
    beach_strength: float = 0.7

    # Hypsometric compression (elevations above sea level)
    hyp_identity_limit: float = 0.05
    hyp_square_limit: float = 0.15
    hyp_square_rate: float = 2.5
    hyp_cubic_limit: float = 0.30
    hyp_cubic_rate: float = 5.0
    hyp_log_scale: float = 0.05


@dataclass(frozen=True)
class SmoothingConfig:
    """Adaptive (Taubin) mesh smoothing parameters.

    Weights are per-vertex multipliers on the Laplacian step; see
    :func:`planetgen.smoothing.smoothing_weights` for the rules.
    """

    iterations: int = 2
    strength: float = 0.5
    unshrink_ratio: float = 1.06
    coast_neighbor_weight: float = 0.1
    deep_ocean_depth: float = 0.12
    mid_ocean_depth: float = 0.04
    deep_ocean_weight: float = 1.0
    mid_ocean_weight: float = 0.7
    shallow_ocean_weight: float = 0.4
    peak_elevation: float = 0.12
    peak_weight: float = 0.15
    beach_band: float = 0.015
    beach_weight: float = 0.25
    inland_weight: float = 0.5


@dataclass(frozen=True)
class ClimateConfig:
    """Climate bake parameters.

    Attributes
    ----------
    width, height : int
        Equirectangular grid resolution in texels.
    axial_tilt : float
        Degrees.  Sets the tropic band and the polar floor.
    eccentricity : float
        Orbital eccentricity; small reduction at extreme latitude.
    sun_intensity : float
        Relative stellar flux (1.0 = Earth).
    rotation_direction : int
        ``1`` for prograde rotation, ``-1`` reverses every wind band.
    coriolis : float
        Meridional cross-component of the band winds.
    advection_steps : int
        Backward steps per advection sample.
    step_degrees : float
        Great-circle length of one backward step.
    advection_decay : float
        Per-step weight multiplier (exponential distance decay).
    """

    width: int = 512
    height: int = 256
    axial_tilt: float = 23.44
    eccentricity: float = 0.0167
    sun_intensity: float = 1.0
    insolation_power: float = 1.2
    tropic_drop: float = 0.06
    tropic_fade: float = 12.0
    polar_latitude: float = 60.0
    polar_penalty: float = 0.15

    rotation_direction: int = 1
    coriolis: float = 0.25
    advection_steps: int = 24
    step_degrees: float = 1.5
    advection_decay: float = 0.88
    evaporation_rate: float = 0.85
    reevaporation_rate: float = 0.6
    cloud_base: float = 0.03
    orographic_gain: float = 6.0
    rain_shadow_gain: float = 8.0
    first_pass_weight: float = 0.75
    second_pass_weight: float = 0.5
    noise_amplitude: float = 0.05
    noise_frequency: float = 3.0
    itcz_boost: float = 0.3
    subtropic_dryness: float = 0.5

    shallow_depth: float = 0.08
    highland_elevation: float = 0.08
    coastal_radius: int = 1


@dataclass(frozen=True)
class MeshConfig:
    """Displayed mesh parameters.

    *height_scale* converts raw heights (fractions of the planet
    radius) into radial displacement; values above ~0.2 look cartoonish.
    """

    height_scale: float = 0.1
    ice_latitude: float = 72.0
    smooth: bool = True


# ═══════════════════════════════════════════════════════════════════
# Top-level config
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GenerationConfig:
    """Everything :func:`planetgen.session.generate` needs besides the seed.

    Attributes
    ----------
    subdivisions : int
        Icosphere subdivision level of the highest-detail mesh.
    radius : float
        Planet radius in scene units.
    sea_level : float
        Nominal sea level in raw-height units.
    min_land_ratio : float
        Minimum fraction of highest-detail vertices at or above the
        effective sea level.
    lod_levels : int
        Number of mesh detail levels (``subdivisions``,
        ``subdivisions − 1``, …).
    bake_climate : bool
        Whether to bake the climate grid.
    workers : int
        Processes used for height sampling (1 = in-process).
    """

    subdivisions: int = 5
    radius: float = 1.0
    sea_level: float = 0.02
    min_land_ratio: float = 0.3
    lod_levels: int = 3
    bake_climate: bool = True
    workers: int = 1
    plates: PlateConfig = field(default_factory=PlateConfig)
    height: HeightConfig = field(default_factory=HeightConfig)
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)
    climate: ClimateConfig = field(default_factory=ClimateConfig)
    mesh: MeshConfig = field(default_factory=MeshConfig)

    # ── validation ──────────────────────────────────────────────────

    def validate(self) -> None:
        """Raise :class:`ConfigError` describing every problem found."""
        errors = []
        int_levels = isinstance(self.subdivisions, int) and not isinstance(self.subdivisions, bool)
        if not int_levels or self.subdivisions < 0:
            errors.append(f"subdivisions must be a non-negative int, got {self.subdivisions!r}")
        elif self.subdivisions > MAX_SUBDIVISIONS:
            errors.append(f"subdivisions must be <= {MAX_SUBDIVISIONS}, got {self.subdivisions}")
        if not self.radius > 0:
            errors.append(f"radius must be positive, got {self.radius!r}")
        if not 0.0 <= self.min_land_ratio <= 1.0:
            errors.append(f"min_land_ratio must be in [0, 1], got {self.min_land_ratio!r}")
        if int_levels and not 1 <= self.lod_levels <= max(self.subdivisions, 0) + 1:
            errors.append(
                f"lod_levels must be in [1, subdivisions + 1], got {self.lod_levels!r}"
            )
        if self.workers < 1:
            errors.append(f"workers must be >= 1, got {self.workers!r}")

        p = self.plates
        if p.count <= 0:
            errors.append(f"plates.count must be positive, got {p.count!r}")
        if not 0.0 <= p.continental_ratio <= 1.0:
            errors.append(f"plates.continental_ratio must be in [0, 1], got {p.continental_ratio!r}")
        if p.drift_min < 0 or p.drift_max < p.drift_min:
            errors.append("plates drift band must satisfy 0 <= drift_min <= drift_max")

        h = self.height
        if h.raw_min >= h.raw_max:
            errors.append("height.raw_min must be below height.raw_max")
        if not h.drama_tiers:
            errors.append("height.drama_tiers must not be empty")
        elif abs(sum(t[0] for t in h.drama_tiers) - 1.0) > 1e-6:
            errors.append("height.drama_tiers probabilities must sum to 1")

        s = self.smoothing
        if s.iterations < 0:
            errors.append(f"smoothing.iterations must be >= 0, got {s.iterations!r}")
        if s.unshrink_ratio <= 1.0:
            errors.append("smoothing.unshrink_ratio must be > 1 (unshrink outweighs shrink)")

        c = self.climate
        if c.width <= 0 or c.height <= 0:
            errors.append(f"climate grid must be positive, got {c.width}x{c.height}")
        if c.advection_steps < 1:
            errors.append("climate.advection_steps must be >= 1")
        if c.rotation_direction not in (1, -1):
            errors.append("climate.rotation_direction must be 1 or -1")
        if not 0.0 < c.advection_decay <= 1.0:
            errors.append("climate.advection_decay must be in (0, 1]")

        if errors:
            raise ConfigError("; ".join(errors))

    # ── serialisation ───────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GenerationConfig":
        return _from_dict(cls, payload)

    def with_overrides(self, **changes: Any) -> "GenerationConfig":
        """Return a copy with top-level fields replaced."""
        return replace(self, **changes)


def _from_dict(cls: Type[T], payload: Dict[str, Any]) -> T:
    known = {f.name: f for f in fields(cls)}  # type: ignore[arg-type]
    unknown = set(payload) - set(known)
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")

    defaults = cls()  # type: ignore[call-arg]
    kwargs: Dict[str, Any] = {}
    for name, value in payload.items():
        current = getattr(defaults, name)
        if is_dataclass(current):
            if not isinstance(value, dict):
                raise ConfigError(f"{cls.__name__}.{name} must be a mapping")
            kwargs[name] = _from_dict(type(current), value)
        elif isinstance(current, tuple):
            kwargs[name] = _to_tuple(value)
        elif isinstance(current, float) and isinstance(value, int) and not isinstance(value, bool):
            kwargs[name] = float(value)
        else:
            kwargs[name] = value
    return cls(**kwargs)  # type: ignore[call-arg]


def _to_tuple(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_to_tuple(v) for v in value)
    return value


# ═══════════════════════════════════════════════════════════════════
# File I/O helpers
# ═══════════════════════════════════════════════════════════════════


def save_config(config: GenerationConfig, path: PathLike) -> None:
    """Write *config* to a JSON file."""
    Path(path).write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")


def load_config(path: PathLike) -> GenerationConfig:
    """Read and validate a JSON config file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")
    config = GenerationConfig.from_dict(payload)
    config.validate()
    return config


# ═══════════════════════════════════════════════════════════════════
# Preset configs
# ═══════════════════════════════════════════════════════════════════

EARTHLIKE = GenerationConfig()

PREVIEW = GenerationConfig(
    subdivisions=3,
    lod_levels=2,
    climate=ClimateConfig(width=128, height=64),
    smoothing=SmoothingConfig(iterations=1),
)

HIGH_DETAIL = GenerationConfig(
    subdivisions=6,
    lod_levels=4,
    climate=ClimateConfig(width=2048, height=1024),
)
