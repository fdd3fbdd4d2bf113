# -*- coding: utf-8 -*-
"""
Reference Database

Loads the hardware, software and transport YAML tables once per process,
validates them and normalizes every scalar-or-range value into uniform
lower/upper pairs, so the computation path never deals with polymorphic
shapes.

The loaded database is immutable and safe to read concurrently.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from greenvisio.constants import Bound, HOURS_IN_DAY
from greenvisio.damage import DAMAGE_CATEGORIES, DamageRange, DamageVector
from greenvisio.exceptions import InvalidSchema, NotFoundError

logger = logging.getLogger(__name__)

PACKAGED_DATA_DIR = Path(__file__).parent / "data"

HARDWARE_FILE = "hardware.yaml"
SOFTWARE_FILE = "software.yaml"
TRANSPORT_FILE = "transport.yaml"

_CAMEL_CATEGORIES = {
    "humanHealth": "human_health",
    "ecosystemQuality": "ecosystem_quality",
    "climateChange": "climate_change",
    "resources": "resources",
}


@dataclass(frozen=True)
class ValueRange:
    """Lower/upper pair of plain numbers (bandwidth, energy intensity)"""
    lower: float
    upper: float

    def select(self, bound: Bound = Bound.UPPER) -> float:
        return self.lower if Bound(bound) is Bound.LOWER else self.upper


@dataclass(frozen=True)
class HardwareRecord:
    """
    One hardware entry of the reference table.

    A record is either a leaf carrying damage data, or a composite listing
    child records and carrying no damage of its own.
    """
    name: str
    label: str = ""
    embodied: Optional[DamageRange] = None
    operating: Optional[DamageRange] = None
    standby: Optional[DamageRange] = None
    lifetime_class: Optional[str] = None
    lifetime_years: Optional[float] = None
    duty_cycle_class: Optional[str] = None
    operating_hours_per_day: Optional[float] = None
    is_size_dependent: bool = False
    components: Tuple[str, ...] = ()

    @property
    def is_composite(self) -> bool:
        return bool(self.components)

    @property
    def has_damage(self) -> bool:
        return any(d is not None for d in (self.embodied, self.operating, self.standby))

    def damage(self, field_name: str) -> Optional[DamageRange]:
        """Raw damage stored under ``field_name`` (embodied, operating or standby)"""
        if field_name not in ("embodied", "operating", "standby"):
            raise KeyError(field_name)
        return getattr(self, field_name)


@dataclass(frozen=True)
class SoftwareRecord:
    """One software entry; bandwidth is sorted by participant threshold"""
    name: str
    label: str = ""
    file_size_mb: Optional[float] = None
    bandwidth: Tuple[Tuple[int, ValueRange], ...] = ()

    def bandwidth_for(self, instances_number: int) -> Optional[ValueRange]:
        """
        Bandwidth range (kbit/s) for ``instances_number`` participants.

        Uses the largest threshold not exceeding ``instances_number``; a count
        below every threshold uses the smallest one. Returns None when the
        software has no bandwidth data.
        """
        if not self.bandwidth:
            return None
        selected = self.bandwidth[0][1]
        for threshold, speed in self.bandwidth:
            if threshold <= instances_number:
                selected = speed
            else:
                break
        return selected


@dataclass(frozen=True)
class TransportRecord:
    name: str
    label: str = ""
    damage_per_km: DamageVector = field(default_factory=DamageVector)


@dataclass(frozen=True)
class NetworkProfile:
    """Conversion of transferred data into damage"""
    energy_intensity_kwh_per_gb: ValueRange
    electricity_damage_per_kwh: DamageVector


# ==============================================================================
# Normalization helpers
# ==============================================================================

def _parse_number(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSchema(
            f"Expected a number at {where}, got {value!r}",
            context={"where": where},
        )
    return float(value)


def _parse_value_range(value: Any, where: str) -> ValueRange:
    """Normalize ``5``, ``{lower, upper}`` or ``{minimum, ideal}`` into a ValueRange."""
    if isinstance(value, Mapping):
        if "lower" in value and "upper" in value:
            lower = _parse_number(value["lower"], f"{where}.lower")
            upper = _parse_number(value["upper"], f"{where}.upper")
        elif "minimum" in value and "ideal" in value:
            lower = _parse_number(value["minimum"], f"{where}.minimum")
            upper = _parse_number(value["ideal"], f"{where}.ideal")
        else:
            raise InvalidSchema(
                f"Range at {where} needs lower/upper or minimum/ideal keys",
                context={"where": where, "keys": sorted(value)},
            )
        if lower > upper:
            raise InvalidSchema(
                f"Range at {where} has lower > upper ({lower} > {upper})",
                context={"where": where},
            )
        return ValueRange(lower=lower, upper=upper)
    number = _parse_number(value, where)
    return ValueRange(lower=number, upper=number)


def _parse_damage_vector(raw: Any, where: str) -> DamageVector:
    if not isinstance(raw, Mapping):
        raise InvalidSchema(f"Expected a damage mapping at {where}", context={"where": where})
    unknown = set(raw) - set(_CAMEL_CATEGORIES) - set(DAMAGE_CATEGORIES)
    if unknown:
        raise InvalidSchema(
            f"Unknown damage categories at {where}: {sorted(unknown)}",
            context={"where": where},
        )
    values = {
        key: _parse_number(value, f"{where}.{key}") for key, value in raw.items()
    }
    return DamageVector.from_mapping(values)


def _parse_damage_range(raw: Any, where: str) -> Optional[DamageRange]:
    """
    Normalize a raw damage entry into a DamageRange.

    Each category may be a single value or a {lower, upper} range; missing
    categories are 0. Returns None when the entry is absent.
    """
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise InvalidSchema(f"Expected a damage mapping at {where}", context={"where": where})

    lower: Dict[str, float] = {}
    upper: Dict[str, float] = {}
    for key, value in raw.items():
        category = _CAMEL_CATEGORIES.get(key, key)
        if category not in DAMAGE_CATEGORIES:
            raise InvalidSchema(
                f"Unknown damage category '{key}' at {where}",
                context={"where": where},
            )
        pair = _parse_value_range(value, f"{where}.{key}")
        lower[category] = pair.lower
        upper[category] = pair.upper

    return DamageRange(lower=DamageVector(**lower), upper=DamageVector(**upper))


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Load one YAML table, failing loudly on missing or malformed files"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        logger.error(f"Reference table not found: {path}")
        raise InvalidSchema(f"Reference table not found: {path}", source=str(path)) from e
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse reference table {path}: {e}")
        raise InvalidSchema(f"Failed to parse reference table {path}", source=str(path)) from e

    if not isinstance(data, dict):
        raise InvalidSchema(f"Reference table {path} must be a mapping", source=str(path))
    return data


# ==============================================================================
# Database
# ==============================================================================

class ReferenceDatabase:
    """
    Hardware, software and transport reference tables.

    Usage:
        >>> db = ReferenceDatabase()
        >>> db.get_hardware("DESKTOP").lifetime_years
        5.0
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        """
        Load and validate the reference tables.

        Args:
            data_dir: Directory holding hardware.yaml, software.yaml and
                transport.yaml (defaults to the tables packaged with greenvisio)

        Raises:
            InvalidSchema: If a table is missing, malformed or inconsistent
        """
        self.data_dir = Path(data_dir) if data_dir else PACKAGED_DATA_DIR

        self.lifetimes: Dict[str, float] = {}
        self.operating_time_per_day: Dict[str, float] = {}
        self.known_operating_time: Dict[str, float] = {}
        self.known_standby_time: Dict[str, float] = {}
        self._hardware: Dict[str, HardwareRecord] = {}
        self._software: Dict[str, SoftwareRecord] = {}
        self._transport: Dict[str, TransportRecord] = {}

        self._load_hardware(_read_yaml(self.data_dir / HARDWARE_FILE))
        self._load_software(_read_yaml(self.data_dir / SOFTWARE_FILE))
        self._load_transport(_read_yaml(self.data_dir / TRANSPORT_FILE))

        logger.info(
            f"Loaded reference database from {self.data_dir}: "
            f"{len(self._hardware)} hardware, {len(self._software)} software, "
            f"{len(self._transport)} transportation means"
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_hardware(self, data: Dict[str, Any]) -> None:
        self.lifetimes = {
            name: _parse_number(value, f"lifetimes.{name}")
            for name, value in (data.get("lifetimes") or {}).items()
        }
        self.operating_time_per_day = {
            name: _parse_number(value, f"operating_time_per_day.{name}")
            for name, value in (data.get("operating_time_per_day") or {}).items()
        }
        self.known_operating_time = {
            name: _parse_number(value, f"known_operating_time.{name}")
            for name, value in (data.get("known_operating_time") or {}).items()
        }
        self.known_standby_time = {
            name: _parse_number(value, f"known_standby_time.{name}")
            for name, value in (data.get("known_standby_time") or {}).items()
        }

        for hours_class, hours in self.operating_time_per_day.items():
            if not 0 < hours < HOURS_IN_DAY:
                raise InvalidSchema(
                    f"operating_time_per_day.{hours_class} must be in (0, {HOURS_IN_DAY}), got {hours}",
                    source=HARDWARE_FILE,
                )

        records = data.get("hardware") or {}
        if not isinstance(records, Mapping):
            raise InvalidSchema("'hardware' must be a mapping", source=HARDWARE_FILE)

        for name, raw in records.items():
            self._hardware[name] = self._parse_hardware(name, raw or {})

        errors = self._validate_hardware()
        if errors:
            raise InvalidSchema(
                f"Hardware table is inconsistent ({len(errors)} errors)",
                source=HARDWARE_FILE,
                schema_errors=errors,
            )

    def _parse_hardware(self, name: str, raw: Mapping[str, Any]) -> HardwareRecord:
        where = f"hardware.{name}"

        lifetime_class = raw.get("lifetime")
        if lifetime_class is not None and lifetime_class not in self.lifetimes:
            raise InvalidSchema(
                f"{where}.lifetime references unknown class '{lifetime_class}'",
                source=HARDWARE_FILE,
            )
        duty_cycle_class = raw.get("operatingTimePerDay")
        if duty_cycle_class is not None and duty_cycle_class not in self.operating_time_per_day:
            raise InvalidSchema(
                f"{where}.operatingTimePerDay references unknown class '{duty_cycle_class}'",
                source=HARDWARE_FILE,
            )

        components = raw.get("components") or []
        if not isinstance(components, list):
            raise InvalidSchema(f"{where}.components must be a list", source=HARDWARE_FILE)

        return HardwareRecord(
            name=name,
            label=raw.get("label", ""),
            embodied=_parse_damage_range(raw.get("embodied"), f"{where}.embodied"),
            operating=_parse_damage_range(raw.get("operating"), f"{where}.operating"),
            standby=_parse_damage_range(raw.get("standby"), f"{where}.standby"),
            lifetime_class=lifetime_class,
            lifetime_years=self.lifetimes.get(lifetime_class) if lifetime_class else None,
            duty_cycle_class=duty_cycle_class,
            operating_hours_per_day=(
                self.operating_time_per_day.get(duty_cycle_class) if duty_cycle_class else None
            ),
            is_size_dependent=bool(raw.get("isSizeDependent", False)),
            components=tuple(components),
        )

    def _validate_hardware(self) -> List[str]:
        errors: List[str] = []
        can_derive = lambda r: r.lifetime_years is not None and r.operating_hours_per_day is not None

        for record in self._hardware.values():
            if record.is_composite:
                if record.has_damage:
                    errors.append(f"{record.name}: composite hardware cannot carry its own damage")
                if record.is_size_dependent:
                    errors.append(f"{record.name}: only leaf hardware can be size dependent")
                for child in record.components:
                    if child not in self._hardware:
                        errors.append(f"{record.name}: unknown component '{child}'")
            elif record.has_damage:
                if record.name not in self.known_operating_time and not can_derive(record):
                    errors.append(f"{record.name}: no operating time (known or derivable)")
                if record.name not in self.known_standby_time and not can_derive(record):
                    errors.append(f"{record.name}: no standby time (known or derivable)")

        if not errors:
            errors.extend(self._find_cycles())
        return errors

    def _find_cycles(self) -> List[str]:
        errors: List[str] = []
        done: set = set()

        def visit(name: str, path: Tuple[str, ...]) -> None:
            if name in path:
                errors.append("component cycle: " + " -> ".join(path + (name,)))
                return
            if name in done:
                return
            for child in self._hardware[name].components:
                visit(child, path + (name,))
            done.add(name)

        for name in self._hardware:
            visit(name, ())
        return errors

    def _load_software(self, data: Dict[str, Any]) -> None:
        network = data.get("network")
        if not isinstance(network, Mapping):
            raise InvalidSchema("'network' section is required", source=SOFTWARE_FILE)
        self.network = NetworkProfile(
            energy_intensity_kwh_per_gb=_parse_value_range(
                network.get("energy_intensity_kwh_per_gb"),
                "network.energy_intensity_kwh_per_gb",
            ),
            electricity_damage_per_kwh=_parse_damage_vector(
                network.get("electricity_damage_per_kwh"),
                "network.electricity_damage_per_kwh",
            ),
        )

        for name, raw in (data.get("software") or {}).items():
            raw = raw or {}
            where = f"software.{name}"
            speed = raw.get("downloadSpeed")

            if speed is None or speed == "unknown":
                bandwidth: Tuple[Tuple[int, ValueRange], ...] = ()
            elif isinstance(speed, Mapping):
                bandwidth = tuple(sorted(
                    (int(threshold), _parse_value_range(value, f"{where}.downloadSpeed.{threshold}"))
                    for threshold, value in speed.items()
                ))
            else:
                bandwidth = ((1, _parse_value_range(speed, f"{where}.downloadSpeed")),)

            file_size = raw.get("fileSize")
            self._software[name] = SoftwareRecord(
                name=name,
                label=raw.get("label", ""),
                file_size_mb=_parse_number(file_size, f"{where}.fileSize") if file_size is not None else None,
                bandwidth=bandwidth,
            )

    def _load_transport(self, data: Dict[str, Any]) -> None:
        for name, raw in (data.get("transport") or {}).items():
            raw = raw or {}
            self._transport[name] = TransportRecord(
                name=name,
                label=raw.get("label", ""),
                damage_per_km=_parse_damage_vector(
                    raw.get("damage_per_km"), f"transport.{name}.damage_per_km"
                ),
            )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_hardware(self, name: str) -> HardwareRecord:
        try:
            return self._hardware[name]
        except KeyError:
            raise NotFoundError(f"Unknown hardware: {name}", table="hardware", identifier=name) from None

    def get_software(self, name: str) -> SoftwareRecord:
        try:
            return self._software[name]
        except KeyError:
            raise NotFoundError(f"Unknown software: {name}", table="software", identifier=name) from None

    def get_transport(self, name: str) -> TransportRecord:
        try:
            return self._transport[name]
        except KeyError:
            raise NotFoundError(
                f"Unknown transportation mean: {name}", table="transport", identifier=name
            ) from None

    def hardware_names(self) -> List[str]:
        return list(self._hardware)

    def software_names(self) -> List[str]:
        return list(self._software)

    def transport_names(self) -> List[str]:
        return list(self._transport)

    def hardware_records(self) -> List[HardwareRecord]:
        return list(self._hardware.values())

    def software_records(self) -> List[SoftwareRecord]:
        return list(self._software.values())

    def transport_records(self) -> List[TransportRecord]:
        return list(self._transport.values())


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_database: Optional[ReferenceDatabase] = None
_database_lock = threading.Lock()


def get_database() -> ReferenceDatabase:
    """Return the process-wide database, loading it on first use."""
    global _database
    if _database is None:
        with _database_lock:
            if _database is None:
                from greenvisio.config import get_config
                _database = ReferenceDatabase(get_config().data_dir or None)
    return _database


def reset_database() -> None:
    """Drop the process-wide database so the next access reloads it (testing)."""
    global _database
    with _database_lock:
        _database = None
