# -*- coding: utf-8 -*-
"""
Meeting damage

MeetingDamage sums the hardware, software and journey categories of a
meeting. MeetingScenario holds the request context (user, duration,
participants, components) and is the entry point computing it.

Usage:
    >>> scenario = MeetingScenario(
    ...     user="jdoe",
    ...     meeting_duration=120,
    ...     number_of_participants=4,
    ...     payload={"hardware": [{"name": "LAPTOP"}], "software": [{"name": "SKYPE"}]},
    ... )
    >>> scenario.compute_damage().to_dict()["totalDamage"]
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from greenvisio.category import CategoryDamage
from greenvisio.config import VisioConfig, get_config
from greenvisio.constants import Category
from greenvisio.damage import DamageVector
from greenvisio.database import ReferenceDatabase, get_database
from greenvisio.exceptions import ExecutionError, ValidationError
from greenvisio.hardware import Hardware
from greenvisio.models import (
    DamagePayload,
    HardwareSpec,
    JourneySpec,
    SoftwareSpec,
    parse_model,
)
from greenvisio.software import Software
from greenvisio.transport import Journey

logger = logging.getLogger(__name__)

ComponentSpecs = Sequence[Union[Mapping[str, Any], Any]]


class MeetingDamage:
    """
    Damage of a whole meeting.

    Built either from three precomputed CategoryDamage:

        MeetingDamage(hardware_damage=..., software_damage=..., journey_damage=...)

    or from component specs, then computed with a damage payload:

        damage = MeetingDamage(hardware_components=[{"name": "DESKTOP"}], ...)
        damage.compute_damage({"hardware": {...}, "software": {...}, "journey": {}})

    A missing precomputed category is an empty one.
    """

    def __init__(
        self,
        hardware_damage: Optional[CategoryDamage] = None,
        software_damage: Optional[CategoryDamage] = None,
        journey_damage: Optional[CategoryDamage] = None,
        hardware_components: Optional[ComponentSpecs] = None,
        software_components: Optional[ComponentSpecs] = None,
        journey_components: Optional[ComponentSpecs] = None,
        database: Optional[ReferenceDatabase] = None,
    ):
        precomputed = (hardware_damage, software_damage, journey_damage)
        components = (hardware_components, software_components, journey_components)
        if any(d is not None for d in precomputed) and any(c is not None for c in components):
            raise ValidationError(
                "MeetingDamage takes either category damages or component specs, not both",
                component="MeetingDamage",
            )

        self.database = database
        self.hardware_components = [parse_model(HardwareSpec, c) for c in hardware_components or []]
        self.software_components = [parse_model(SoftwareSpec, c) for c in software_components or []]
        self.journey_components = [parse_model(JourneySpec, c) for c in journey_components or []]

        self.hardware_damage: Optional[CategoryDamage] = None
        self.software_damage: Optional[CategoryDamage] = None
        self.journey_damage: Optional[CategoryDamage] = None
        self._total_damage: Optional[DamageVector] = None

        if any(d is not None for d in precomputed):
            self._set_categories(
                hardware_damage if hardware_damage is not None else CategoryDamage(Category.HARDWARE),
                software_damage if software_damage is not None else CategoryDamage(Category.SOFTWARE),
                journey_damage if journey_damage is not None else CategoryDamage(Category.JOURNEY),
            )

    @property
    def is_computed(self) -> bool:
        return self._total_damage is not None

    @property
    def total_damage(self) -> DamageVector:
        if self._total_damage is None:
            raise ExecutionError(
                "Meeting damage has not been computed",
                component="MeetingDamage",
                step="total_damage",
            )
        return self._total_damage

    def _set_categories(
        self,
        hardware_damage: CategoryDamage,
        software_damage: CategoryDamage,
        journey_damage: CategoryDamage,
    ) -> None:
        self.hardware_damage = hardware_damage
        self.software_damage = software_damage
        self.journey_damage = journey_damage
        self._total_damage = (
            hardware_damage.total_damage
            .add(software_damage.total_damage)
            .add(journey_damage.total_damage)
        )

    def compute_damage(self, damage_payload: Union[Mapping[str, Any], DamagePayload]) -> DamageVector:
        """
        Build every component then compute the three categories.

        All components are resolved and validated before any damage is
        computed.

        Raises:
            ValidationError: Invalid payload or component spec
            NotFoundError: Unknown hardware, software or transportation mean
        """
        payload = parse_model(DamagePayload, damage_payload, component="MeetingDamage")
        database = self.database or get_database()

        hardware = [
            Hardware(
                spec.name,
                size=spec.size,
                share_for_visio=spec.share_for_visio,
                components=spec.components,
                database=database,
            )
            for spec in self.hardware_components
        ]
        software = [Software(spec.name, database=database) for spec in self.software_components]
        journeys = [
            Journey(
                spec.passenger,
                spec.mean,
                spec.distance,
                spec.number_of_people,
                database=database,
            )
            for spec in self.journey_components
        ]

        options = payload.hardware
        hardware_damage = CategoryDamage(
            Category.HARDWARE,
            [h.compute_damage(options.meeting_duration, options.bound) for h in hardware],
        )
        options = payload.software
        software_damage = CategoryDamage(
            Category.SOFTWARE,
            [
                s.compute_damage(
                    options.instances_number,
                    options.bandwith_bound,
                    options.network_bound,
                    options.meeting_duration,
                )
                for s in software
            ],
        )
        journey_damage = CategoryDamage(Category.JOURNEY, [j.compute_damage() for j in journeys])

        self._set_categories(hardware_damage, software_damage, journey_damage)
        return self._total_damage

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        total = self.total_damage
        return {
            "hardwareDamage": self.hardware_damage.total_damage.to_dict(),
            "softwareDamage": self.software_damage.total_damage.to_dict(),
            "journeyDamage": self.journey_damage.total_damage.to_dict(),
            "totalDamage": total.to_dict(),
        }


class MeetingScenario:
    """
    Context of one damage estimation request.

    Args:
        user: Identifier of the user creating the meeting
        meeting_duration: Duration of the meeting in minutes
        number_of_participants: Participants connected to the meeting
        payload: Components keyed by category (``hardware``, ``software``,
            ``journey``)
        database: Reference database (process-wide one by default)
        config: Configuration providing the default bounds (process-wide one
            by default)
    """

    def __init__(
        self,
        user: str,
        meeting_duration: Union[int, float],
        number_of_participants: int,
        payload: Optional[Mapping[str, List[Any]]] = None,
        database: Optional[ReferenceDatabase] = None,
        config: Optional[VisioConfig] = None,
    ):
        invalid = {}
        if (isinstance(meeting_duration, bool) or not isinstance(meeting_duration, (int, float))
                or meeting_duration <= 0):
            invalid["meetingDuration"] = f"must be a number > 0, got {meeting_duration!r}"
        if (isinstance(number_of_participants, bool) or not isinstance(number_of_participants, int)
                or number_of_participants < 1):
            invalid["numberOfParticipants"] = f"must be an integer >= 1, got {number_of_participants!r}"
        payload = payload or {}
        unknown = set(payload) - {c.value for c in Category}
        if unknown:
            invalid.update({key: "unknown category" for key in sorted(unknown)})
        if invalid:
            raise ValidationError(
                f"Invalid meeting scenario for {user}",
                component="MeetingScenario",
                invalid_fields=invalid,
            )

        self.user = user
        self.meeting_duration = meeting_duration
        self.number_of_participants = number_of_participants
        self.payload = payload
        self.database = database
        self.config = config
        self.damage: Optional[MeetingDamage] = None

    def default_damage_payload(self) -> Dict[str, Dict[str, Any]]:
        """Options derived from the scenario and the configured default bounds"""
        config = self.config or get_config()
        return {
            Category.HARDWARE.value: {
                "meetingDuration": self.meeting_duration,
                "bound": config.default_hardware_bound,
            },
            Category.SOFTWARE.value: {
                "instancesNumber": self.number_of_participants,
                "bandwithBound": config.default_bandwidth_bound,
                "networkBound": config.default_network_bound,
                "meetingDuration": self.meeting_duration,
            },
            Category.JOURNEY.value: {},
        }

    def compute_damage(
        self,
        damage_payload: Optional[Union[Mapping[str, Any], DamagePayload]] = None,
    ) -> MeetingDamage:
        """Compute the meeting damage and store it as ``self.damage``."""
        if damage_payload is None:
            damage_payload = self.default_damage_payload()

        damage = MeetingDamage(
            hardware_components=self.payload.get(Category.HARDWARE.value, []),
            software_components=self.payload.get(Category.SOFTWARE.value, []),
            journey_components=self.payload.get(Category.JOURNEY.value, []),
            database=self.database,
        )
        damage.compute_damage(damage_payload)
        self.damage = damage

        logger.info(
            f"Computed meeting damage for {self.user}: {self.meeting_duration} min, "
            f"{self.number_of_participants} participants, "
            f"{len(damage.hardware_damage)} hardware, {len(damage.software_damage)} software, "
            f"{len(damage.journey_damage)} journeys"
        )
        return damage
