"""Spawn suitability — how well a climate sample suits a creature category.

Each category tag maps to a :class:`SpawnRule`: a habitat (land, water
or any) plus optional insolation and precipitation thresholds.  A
threshold is soft: the score ramps linearly from 0 to 1 across
``margin`` below a minimum (or above a maximum) and is 1 once the
threshold is met.  The final score is the product of all factors.

Tags are matched case-insensitively.  An unknown tag scores the
neutral :data:`NEUTRAL_SCORE`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional

from .climate import ClimateSample
from .terrain_mask import TerrainClass

NEUTRAL_SCORE = 0.5


class Habitat(Enum):
    LAND = "land"
    WATER = "water"
    ANY = "any"


@dataclass(frozen=True)
class SpawnRule:
    """Climate envelope for one category.

    Attributes
    ----------
    habitat : Habitat
    min_insolation, max_insolation : float, optional
    min_precipitation, max_precipitation : float, optional
    margin : float
        Width of the soft ramp outside each threshold.
    terrain_classes : frozenset of TerrainClass, optional
        If given, other classes score 0.
    """

    habitat: Habitat = Habitat.ANY
    min_insolation: Optional[float] = None
    max_insolation: Optional[float] = None
    min_precipitation: Optional[float] = None
    max_precipitation: Optional[float] = None
    margin: float = 0.1
    terrain_classes: Optional[FrozenSet[TerrainClass]] = None

    def score(self, sample: ClimateSample) -> float:
        if self.habitat is Habitat.LAND and sample.is_water:
            return 0.0
        if self.habitat is Habitat.WATER and not sample.is_water:
            return 0.0
        if self.terrain_classes is not None and sample.terrain_type not in self.terrain_classes:
            return 0.0

        result = 1.0
        result *= _above(sample.insolation, self.min_insolation, self.margin)
        result *= _below(sample.insolation, self.max_insolation, self.margin)
        result *= _above(sample.precipitation, self.min_precipitation, self.margin)
        result *= _below(sample.precipitation, self.max_precipitation, self.margin)
        return result


def _above(value: float, threshold: Optional[float], margin: float) -> float:
    if threshold is None or value >= threshold:
        return 1.0
    if margin <= 0:
        return 0.0
    return max(0.0, min(1.0, (value - (threshold - margin)) / margin))


def _below(value: float, threshold: Optional[float], margin: float) -> float:
    if threshold is None or value <= threshold:
        return 1.0
    if margin <= 0:
        return 0.0
    return max(0.0, min(1.0, ((threshold + margin) - value) / margin))


DEFAULT_SPAWN_RULES: Mapping[str, SpawnRule] = {
    "camel": SpawnRule(Habitat.LAND, min_insolation=0.75, max_precipitation=0.25),
    "lizard": SpawnRule(Habitat.LAND, min_insolation=0.7, max_precipitation=0.4),
    "deer": SpawnRule(
        Habitat.LAND, min_insolation=0.4, max_insolation=0.85,
        min_precipitation=0.3,
        terrain_classes=frozenset({TerrainClass.LOWLAND}),
    ),
    "frog": SpawnRule(Habitat.LAND, min_insolation=0.5, min_precipitation=0.55),
    "goat": SpawnRule(
        Habitat.LAND, min_insolation=0.3,
        terrain_classes=frozenset({TerrainClass.HIGHLAND}),
    ),
    "polar_bear": SpawnRule(Habitat.ANY, max_insolation=0.35),
    "penguin": SpawnRule(Habitat.ANY, max_insolation=0.3, min_precipitation=0.05),
    "fish": SpawnRule(Habitat.WATER),
    "whale": SpawnRule(
        Habitat.WATER,
        terrain_classes=frozenset({TerrainClass.DEEP_OCEAN}),
    ),
}


def spawn_suitability(
    sample: ClimateSample,
    tag: str,
    rules: Optional[Mapping[str, SpawnRule]] = None,
) -> float:
    """Score in ``[0, 1]`` for *tag* at *sample* (neutral for unknown tags)."""
    table = DEFAULT_SPAWN_RULES if rules is None else rules
    rule = table.get(tag.strip().lower())
    if rule is None:
        return NEUTRAL_SCORE
    return rule.score(sample)


def is_known_tag(tag: str, rules: Optional[Mapping[str, SpawnRule]] = None) -> bool:
    table = DEFAULT_SPAWN_RULES if rules is None else rules
    return tag.strip().lower() in table


def rule_table(rules: Optional[Mapping[str, SpawnRule]] = None) -> Dict[str, SpawnRule]:
    """A mutable copy of the rule table, for callers that want to extend it."""
    return dict(DEFAULT_SPAWN_RULES if rules is None else rules)
