# -*- coding: utf-8 -*-
"""
Meeting damage constants and enumerations.

Time constants used to derive hardware usage time from lifetime and
duty-cycle classes, plus the enumerations shared by every calculator.
"""

from enum import Enum

MINUTES_IN_HOUR = 60
HOURS_IN_DAY = 24
WORKING_DAYS_PER_YEAR = 230
SECONDS_IN_MINUTE = 60

# kbit -> GB: /8 bits per byte, /1e6 kB per GB
KBITS_IN_GIGABYTE = 8_000_000


class DamageKind(str, Enum):
    """Kinds of hardware damage attributed to a meeting"""
    EMBODIED_VISIO = "embodied_visio"
    EMBODIED_STANDBY = "embodied_standby"
    OPERATING_VISIO = "operating_visio"
    OPERATING_STANDBY = "operating_standby"


class Bound(str, Enum):
    """Which end of a ranged reference value to use"""
    LOWER = "LOWER"
    UPPER = "UPPER"


class Category(str, Enum):
    """Contributors summed into a meeting's total damage"""
    HARDWARE = "hardware"
    SOFTWARE = "software"
    JOURNEY = "journey"


_DAMAGE_FIELDS = {
    DamageKind.EMBODIED_VISIO: "embodied",
    DamageKind.EMBODIED_STANDBY: "embodied",
    DamageKind.OPERATING_VISIO: "operating",
    DamageKind.OPERATING_STANDBY: "standby",
}


def damage_field(kind: DamageKind) -> str:
    """Name of the hardware record field holding the raw damage for ``kind``."""
    return _DAMAGE_FIELDS[DamageKind(kind)]


def is_embodied(kind: DamageKind) -> bool:
    return DamageKind(kind) in (DamageKind.EMBODIED_VISIO, DamageKind.EMBODIED_STANDBY)


def is_standby(kind: DamageKind) -> bool:
    return DamageKind(kind) in (DamageKind.EMBODIED_STANDBY, DamageKind.OPERATING_STANDBY)
