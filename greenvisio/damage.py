# -*- coding: utf-8 -*-
"""
Damage vectors

A damage is a four-dimensional additive impact quantity: Human Health,
Ecosystem Quality, Climate Change and Resources. Every component of a
meeting (a device, a software session, a journey) computes one, and
categories and meetings are plain sums of them.
"""

from dataclasses import dataclass, fields
from functools import reduce
from typing import Any, Callable, Dict, Iterable, Mapping

from greenvisio.constants import Bound

# snake_case field name -> serialized name
_SERIALIZED_NAMES = {
    "human_health": "humanHealth",
    "ecosystem_quality": "ecosystemQuality",
    "climate_change": "climateChange",
    "resources": "resources",
}

DAMAGE_CATEGORIES = tuple(_SERIALIZED_NAMES)


@dataclass(frozen=True)
class DamageVector:
    """
    Damage caused by a component of the meeting, a group of components or
    the meeting itself.

    IMMUTABLE: every operation returns a new vector.
    """
    human_health: float = 0.0
    ecosystem_quality: float = 0.0
    climate_change: float = 0.0
    resources: float = 0.0

    @classmethod
    def zero(cls) -> "DamageVector":
        return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DamageVector":
        """
        Build a vector from a mapping keyed by snake_case or camelCase names.

        Missing categories default to 0.
        """
        values = {}
        for name, serialized in _SERIALIZED_NAMES.items():
            if name in data:
                values[name] = float(data[name])
            elif serialized in data:
                values[name] = float(data[serialized])
        return cls(**values)

    def add(self, other: "DamageVector") -> "DamageVector":
        """Return the componentwise sum of this damage and ``other``."""
        return DamageVector(
            human_health=self.human_health + other.human_health,
            ecosystem_quality=self.ecosystem_quality + other.ecosystem_quality,
            climate_change=self.climate_change + other.climate_change,
            resources=self.resources + other.resources,
        )

    __add__ = add

    def transform(self, mutation: Callable[[str, float], float]) -> "DamageVector":
        """
        Apply ``mutation(category, value)`` on the four damage values.

        Args:
            mutation: Function receiving the category name and its value

        Returns:
            A new DamageVector holding the mutated values
        """
        return DamageVector(**{
            f.name: mutation(f.name, getattr(self, f.name)) for f in fields(self)
        })

    def scale(self, factor: float) -> "DamageVector":
        return self.transform(lambda _category, value: value * factor)

    def to_dict(self) -> Dict[str, float]:
        """Serialize with the camelCase names used by the request/response payloads"""
        return {
            serialized: getattr(self, name)
            for name, serialized in _SERIALIZED_NAMES.items()
        }


def sum_damages(damages: Iterable[DamageVector]) -> DamageVector:
    """Left fold of ``damages`` with DamageVector.add, starting from zero."""
    return reduce(DamageVector.add, damages, DamageVector.zero())


@dataclass(frozen=True)
class DamageRange:
    """
    Lower/upper pair of damage vectors.

    Reference values given as a single number are stored with
    ``lower == upper``.
    """
    lower: DamageVector
    upper: DamageVector

    @classmethod
    def fixed(cls, value: DamageVector) -> "DamageRange":
        return cls(lower=value, upper=value)

    @property
    def is_fixed(self) -> bool:
        return self.lower == self.upper

    def select(self, bound: Bound = Bound.UPPER) -> DamageVector:
        return self.lower if Bound(bound) is Bound.LOWER else self.upper
