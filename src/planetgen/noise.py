"""Seeded noise sources and 3-D noise primitives for spherical terrain.

Every primitive takes a noise *source* (an ``opensimplex.OpenSimplex``
instance, or anything else exposing ``noise3(x, y, z)``) and a point
``(x, y, z)`` and returns a ``float``.  Sampling on the unit sphere in
3-D avoids the seam and polar artefacts of 2-D lat/lon noise.  There is
no dependency on plates, meshes or climate data here.

A :class:`NoiseBank` bundles the twelve independently seeded sources a
planet needs.  Sub-seeds are drawn from the generation RNG in a fixed
order, so one integer seed reproduces every source exactly.

Functions
---------
- :func:`make_rng` — validated ``random.Random`` for a generation seed
- :func:`fbm_3d` — Fractal Brownian Motion (multi-octave noise)
- :func:`ridged_3d` — inverted-abs noise that forms sharp ridges
- :func:`cellular_3d` — abs-folded single octave, cell-edge pattern
- :func:`smoothstep` / :func:`lerp` / :func:`clamp` — shaping helpers
"""

from __future__ import annotations

import numbers
import random
from dataclasses import dataclass
from typing import Protocol, Tuple

from opensimplex import OpenSimplex

# ═══════════════════════════════════════════════════════════════════
# Sources
# ═══════════════════════════════════════════════════════════════════

NOISE_CHANNELS: Tuple[str, ...] = (
    "continent",
    "continent_detail",
    "ridge",
    "fine_detail",
    "mid_detail",
    "moisture",
    "warp_x",
    "warp_y",
    "warp_z",
    "coast_cellular",
    "coast_erosion",
    "plains",
)
"""Channel names, in the order their sub-seeds are drawn."""


class NoiseSource(Protocol):
    def noise3(self, x: float, y: float, z: float) -> float:
        ...


def make_rng(seed: int) -> random.Random:
    """Return the generation RNG for *seed*.

    Any integer is a valid seed.  Anything else is a programming error
    and raises ``TypeError``.
    """
    if isinstance(seed, bool) or not isinstance(seed, numbers.Integral):
        raise TypeError(f"Seed must be an integer, got {type(seed).__name__}")
    return random.Random(int(seed))


@dataclass(frozen=True, eq=False)
class NoiseBank:
    """The twelve coherent-noise sources used by one generation.

    Instances are read-only after construction and safe to share
    between worker processes.
    """

    seeds: Tuple[int, ...]
    continent: OpenSimplex
    continent_detail: OpenSimplex
    ridge: OpenSimplex
    fine_detail: OpenSimplex
    mid_detail: OpenSimplex
    moisture: OpenSimplex
    warp_x: OpenSimplex
    warp_y: OpenSimplex
    warp_z: OpenSimplex
    coast_cellular: OpenSimplex
    coast_erosion: OpenSimplex
    plains: OpenSimplex

    @classmethod
    def from_rng(cls, rng: random.Random) -> "NoiseBank":
        """Draw one 31-bit sub-seed per channel and build the sources."""
        seeds = tuple(rng.getrandbits(31) for _ in NOISE_CHANNELS)
        sources = {
            name: OpenSimplex(seed=sub_seed)
            for name, sub_seed in zip(NOISE_CHANNELS, seeds)
        }
        return cls(seeds=seeds, **sources)

    @classmethod
    def from_seed(cls, seed: int) -> "NoiseBank":
        return cls.from_rng(make_rng(seed))

    def source(self, name: str) -> OpenSimplex:
        """Look up a source by channel name (``KeyError`` if unknown)."""
        if name not in NOISE_CHANNELS:
            raise KeyError(name)
        return getattr(self, name)


# ═══════════════════════════════════════════════════════════════════
# Fractal Brownian Motion
# ═══════════════════════════════════════════════════════════════════

def fbm_3d(
    source: NoiseSource,
    x: float,
    y: float,
    z: float,
    *,
    octaves: int = 4,
    lacunarity: float = 2.0,
    persistence: float = 0.5,
    frequency: float = 1.0,
) -> float:
    """3-D Fractal Brownian Motion — layered multi-octave noise.

    Sums several octaves of *source*, each at higher frequency and
    lower amplitude, producing natural-looking variation on a sphere.

    Parameters
    ----------
    source : NoiseSource
        Seeded noise source.
    x, y, z : float
        Sample coordinates (typically a unit direction).
    octaves : int
        Number of noise layers (more = finer detail).
    lacunarity : float
        Frequency multiplier between octaves (typically ~2.0).
    persistence : float
        Amplitude multiplier between octaves (typically ~0.5).
    frequency : float
        Base spatial frequency (larger = smaller features).

    Returns
    -------
    float
        A value in approximately ``[−1, 1]``.
    """
    value = 0.0
    amplitude = 1.0
    freq = frequency
    max_amp = 0.0

    for _ in range(octaves):
        value += amplitude * source.noise3(x * freq, y * freq, z * freq)
        max_amp += amplitude
        amplitude *= persistence
        freq *= lacunarity

    return value / max_amp if max_amp > 0 else 0.0


# ═══════════════════════════════════════════════════════════════════
# Ridged noise
# ═══════════════════════════════════════════════════════════════════

def ridged_3d(
    source: NoiseSource,
    x: float,
    y: float,
    z: float,
    *,
    octaves: int = 4,
    lacunarity: float = 2.2,
    persistence: float = 0.5,
    frequency: float = 1.0,
    ridge_offset: float = 1.0,
) -> float:
    """3-D ridged multifractal noise — sharp ridges on a sphere.

    Each octave's noise is ``offset − |noise|``, so zero-crossings of
    the base noise become peaks.  Later octaves are weighted by the
    previous octave's signal, concentrating detail on the ridges.

    Returns a value in ``[0, 1]``.
    """
    value = 0.0
    weight = 1.0
    freq = frequency

    for i in range(octaves):
        signal = source.noise3(x * freq, y * freq, z * freq)
        signal = ridge_offset - abs(signal)
        signal *= signal
        signal *= weight
        weight = max(0.0, min(1.0, signal * persistence))
        value += signal * (persistence ** i)
        freq *= lacunarity

    max_val = sum(persistence ** i for i in range(octaves))
    return max(0.0, min(1.0, value / max_val)) if max_val > 0 else 0.0


def cellular_3d(
    source: NoiseSource,
    x: float,
    y: float,
    z: float,
    *,
    frequency: float = 1.0,
) -> float:
    """Cell-edge pattern: ``1 − |noise|`` of a single octave.

    Peaks trace a network of thin walls around rounded cells, which is
    what breaks up straight coastlines.  Returns a value in ``[0, 1]``.
    """
    n = source.noise3(x * frequency, y * frequency, z * frequency)
    return max(0.0, min(1.0, 1.0 - abs(n)))


# ═══════════════════════════════════════════════════════════════════
# Shaping helpers
# ═══════════════════════════════════════════════════════════════════

def clamp(value: float, lo: float, hi: float) -> float:
    return lo if value < lo else hi if value > hi else value


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def smoothstep(edge0: float, edge1: float, x: float) -> float:
    """Hermite step from 0 at *edge0* to 1 at *edge1*."""
    if edge1 == edge0:
        return 0.0 if x < edge0 else 1.0
    t = clamp((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)
