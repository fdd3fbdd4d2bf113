# -*- coding: utf-8 -*-
"""
Hardware damage

A Hardware is either a leaf device carrying raw damage data (embodied,
operating, standby) or a composite grouping child hardware, never both.
Composite damage is the exact sum of its children's damage.

Attribution of a leaf device to a meeting:

    operating kinds:  raw (per hour) x factor x duration (h)
    embodied kinds:   raw (whole device) x factor / usage time (h) x duration (h)

where ``factor`` is ``share_for_visio`` (times ``size`` for size dependent
devices) and the duration is the meeting duration for VISIO kinds, or the
standby time the device accrues for that meeting for STANDBY kinds.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from greenvisio.constants import (
    Bound,
    DamageKind,
    HOURS_IN_DAY,
    MINUTES_IN_HOUR,
    WORKING_DAYS_PER_YEAR,
    damage_field,
    is_embodied,
    is_standby,
)
from greenvisio.damage import DamageVector, sum_damages
from greenvisio.database import HardwareRecord, ReferenceDatabase, get_database
from greenvisio.exceptions import ValidationError

logger = logging.getLogger(__name__)

Number = Union[int, float]


_OVERRIDE_KEYS = frozenset({"size", "shareForVisio", "share_for_visio", "components"})


def _override_value(override: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in override:
            return override[key]
    return None


class Hardware:
    """
    One device (leaf) or cluster of devices (composite) used in a meeting.

    Args:
        name: Identifier of the hardware in the reference database
        size: Size of the device (cm of diagonal for screens). Required for
            size dependent devices, defaults to 1 otherwise. Cascades to
            children as their default.
        share_for_visio: Fraction (0-1) of the device usage attributed to
            the meeting. Cascades to children as their default.
        components: Per-child overrides keyed by child name, e.g.
            ``{"TV_SCREEN": {"size": 107}}``. Overrides may nest their own
            ``components`` for nested composites.
        database: Reference database (process-wide one by default)

    Raises:
        NotFoundError: Unknown hardware name
        ValidationError: Invalid size, share or override
    """

    def __init__(
        self,
        name: str,
        size: Optional[Number] = None,
        share_for_visio: Optional[Number] = None,
        components: Optional[Mapping[str, Mapping[str, Any]]] = None,
        database: Optional[ReferenceDatabase] = None,
    ):
        self.database = database or get_database()
        self.record: HardwareRecord = self.database.get_hardware(name)
        self.name = name

        self._validate(size, share_for_visio)
        self.size = float(size) if size is not None else 1.0
        self.share_for_visio = float(share_for_visio) if share_for_visio is not None else 1.0

        self.children: Tuple["Hardware", ...] = self._build_children(
            size, share_for_visio, components or {}
        )

    def _validate(self, size: Optional[Number], share_for_visio: Optional[Number]) -> None:
        invalid: Dict[str, str] = {}

        if size is None:
            if self.record.is_size_dependent:
                invalid["size"] = "required for size dependent hardware"
        elif isinstance(size, bool) or not isinstance(size, (int, float)):
            invalid["size"] = f"must be a number, got {size!r}"
        elif size <= 0:
            invalid["size"] = f"must be > 0, got {size}"

        if share_for_visio is not None:
            if isinstance(share_for_visio, bool) or not isinstance(share_for_visio, (int, float)):
                invalid["shareForVisio"] = f"must be a number, got {share_for_visio!r}"
            elif not 0 <= share_for_visio <= 1:
                invalid["shareForVisio"] = f"must be between 0 and 1, got {share_for_visio}"

        if invalid:
            raise ValidationError(
                f"Invalid hardware {self.name}",
                component="Hardware",
                context={"hardware": self.name},
                invalid_fields=invalid,
            )

    def _build_children(
        self,
        size: Optional[Number],
        share_for_visio: Optional[Number],
        overrides: Mapping[str, Mapping[str, Any]],
    ) -> Tuple["Hardware", ...]:
        if not isinstance(overrides, Mapping):
            raise ValidationError(
                f"Overrides for {self.name} must be a mapping keyed by component name",
                component="Hardware",
                context={"hardware": self.name},
                invalid_fields={"components": f"must be a mapping, got {type(overrides).__name__}"},
            )

        unknown = [child for child in overrides if child not in self.record.components]
        if unknown:
            raise ValidationError(
                f"Overrides for {self.name} name hardware that is not one of its components",
                component="Hardware",
                context={"hardware": self.name, "components": list(self.record.components)},
                invalid_fields={child: "not a component" for child in unknown},
            )

        invalid: Dict[str, str] = {}
        for child_name, override in overrides.items():
            if override is None:
                continue
            if not isinstance(override, Mapping):
                invalid[child_name] = f"override must be a mapping, got {type(override).__name__}"
                continue
            for key in sorted(set(override) - _OVERRIDE_KEYS):
                invalid[f"{child_name}.{key}"] = "unknown override"
        if invalid:
            raise ValidationError(
                f"Invalid component overrides for {self.name}",
                component="Hardware",
                context={"hardware": self.name},
                invalid_fields=invalid,
            )

        children = []
        for child_name in self.record.components:
            override = overrides.get(child_name) or {}
            child_size = _override_value(override, "size")
            child_share = _override_value(override, "shareForVisio", "share_for_visio")
            children.append(Hardware(
                child_name,
                size=child_size if child_size is not None else size,
                share_for_visio=child_share if child_share is not None else share_for_visio,
                components=override.get("components"),
                database=self.database,
            ))
        return tuple(children)

    def _check_duration(self, meeting_duration: Number) -> None:
        if (isinstance(meeting_duration, bool) or not isinstance(meeting_duration, (int, float))
                or meeting_duration <= 0):
            raise ValidationError(
                f"Invalid meeting duration for hardware {self.name}",
                component="Hardware",
                context={"hardware": self.name},
                invalid_fields={"meetingDuration": f"must be a number > 0, got {meeting_duration!r}"},
            )

    @property
    def is_composite(self) -> bool:
        return bool(self.children)

    def compute_time(self, kind: DamageKind) -> Optional[float]:
        """
        Usage time (hours) of the device in the state matching ``kind``.

        Known times override the lifetime/duty-cycle derivation:
        ``lifetime x 230 x hours_per_day`` for VISIO kinds and
        ``lifetime x 230 x (24 - hours_per_day)`` for STANDBY kinds.

        Returns:
            Hours, or None for composites and devices without time data
        """
        if self.is_composite:
            return None

        standby = is_standby(kind)
        known = self.database.known_standby_time if standby else self.database.known_operating_time
        if self.name in known:
            return known[self.name]

        lifetime = self.record.lifetime_years
        hours_per_day = self.record.operating_hours_per_day
        if lifetime is None or hours_per_day is None:
            return None

        daily_hours = HOURS_IN_DAY - hours_per_day if standby else hours_per_day
        return lifetime * WORKING_DAYS_PER_YEAR * daily_hours

    def get_duration(self, kind: DamageKind, meeting_duration: Number) -> float:
        """
        Minutes of the device life attributed to a meeting of ``meeting_duration`` minutes.

        STANDBY kinds scale the meeting duration by the standby/operating
        time ratio of the device duty cycle.
        """
        if not is_standby(kind):
            return meeting_duration
        operating_time = self.compute_time(DamageKind.OPERATING_VISIO)
        standby_time = self.compute_time(DamageKind.OPERATING_STANDBY)
        return meeting_duration * standby_time / operating_time

    def get_typed_damage(self, kind: DamageKind, bound: Bound = Bound.UPPER) -> Optional[DamageVector]:
        """Raw reference damage for ``kind``, or None when the record has none."""
        raw = self.record.damage(damage_field(kind))
        if raw is None:
            return None
        return raw.select(bound)

    def compute_typed_damage(
        self,
        kind: DamageKind,
        meeting_duration: Number,
        bound: Bound = Bound.UPPER,
    ) -> DamageVector:
        """Damage of ``kind`` attributed to a meeting of ``meeting_duration`` minutes"""
        self._check_duration(meeting_duration)
        if self.is_composite:
            return sum_damages(
                child.compute_typed_damage(kind, meeting_duration, bound) for child in self.children
            )

        raw = self.get_typed_damage(kind, bound)
        if raw is None:
            return DamageVector.zero()

        factor = self.share_for_visio
        if self.record.is_size_dependent:
            factor *= self.size

        hours = self.get_duration(kind, meeting_duration) / MINUTES_IN_HOUR
        if is_embodied(kind):
            hours /= self.compute_time(kind)

        return raw.scale(factor * hours)

    def compute_damage(self, meeting_duration: Number, bound: Bound = Bound.UPPER) -> DamageVector:
        """Sum of the four damage kinds for a meeting of ``meeting_duration`` minutes"""
        self._check_duration(meeting_duration)
        damage = sum_damages(
            self.compute_typed_damage(kind, meeting_duration, bound) for kind in DamageKind
        )
        logger.debug(f"Hardware {self.name} ({meeting_duration} min, {Bound(bound).value}): {damage}")
        return damage

    def __repr__(self) -> str:
        if self.is_composite:
            return f"Hardware({self.name!r}, children={[c.name for c in self.children]})"
        return f"Hardware({self.name!r}, size={self.size}, share_for_visio={self.share_for_visio})"
