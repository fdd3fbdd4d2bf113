# -*- coding: utf-8 -*-
"""Damage of one category (hardware, software or journey) of a meeting."""

from typing import Iterable, Optional, Tuple

from greenvisio.constants import Category
from greenvisio.damage import DamageVector, sum_damages


class CategoryDamage:
    """
    Ordered damages computed by the components of one category.

    ``total_damage`` is their sum, folded on first access and cached.
    """

    def __init__(self, category: Category, damages: Iterable[DamageVector] = ()):
        self.category = Category(category)
        self.damages: Tuple[DamageVector, ...] = tuple(damages)
        self._total_damage: Optional[DamageVector] = None

    @property
    def total_damage(self) -> DamageVector:
        if self._total_damage is None:
            self._total_damage = sum_damages(self.damages)
        return self._total_damage

    def __len__(self) -> int:
        return len(self.damages)

    def __repr__(self) -> str:
        return f"CategoryDamage({self.category.value!r}, {len(self.damages)} components)"
