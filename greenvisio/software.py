# -*- coding: utf-8 -*-
"""
Software damage

The damage of a videoconference software is the damage of carrying its
download stream through the network for the meeting duration:

    GB     = bandwidth (kbit/s) x duration (s) / 8e6
    damage = electricity damage per kWh x GB x network intensity (kWh/GB)
"""

import logging
from typing import Optional, Union

from greenvisio.constants import Bound, KBITS_IN_GIGABYTE, SECONDS_IN_MINUTE
from greenvisio.damage import DamageVector
from greenvisio.database import ReferenceDatabase, SoftwareRecord, get_database
from greenvisio.exceptions import ValidationError

logger = logging.getLogger(__name__)


class Software:
    """
    Videoconference software used by the meeting.

    Raises:
        NotFoundError: Unknown software name
    """

    def __init__(self, name: str, database: Optional[ReferenceDatabase] = None):
        self.database = database or get_database()
        self.record: SoftwareRecord = self.database.get_software(name)
        self.name = name

    def bandwidth(self, instances_number: int, bandwith_bound: Bound = Bound.UPPER) -> float:
        """Download speed in kbit/s for ``instances_number`` participants (0 when unknown)"""
        if isinstance(instances_number, bool) or not isinstance(instances_number, int) or instances_number < 1:
            raise ValidationError(
                f"Invalid number of instances for {self.name}",
                component="Software",
                invalid_fields={"instancesNumber": f"must be an integer >= 1, got {instances_number!r}"},
            )
        speed = self.record.bandwidth_for(instances_number)
        if speed is None:
            return 0.0
        return speed.select(bandwith_bound)

    def compute_damage(
        self,
        instances_number: int,
        bandwith_bound: Bound = Bound.UPPER,
        network_bound: Bound = Bound.UPPER,
        meeting_duration: Optional[Union[int, float]] = None,
    ) -> DamageVector:
        """
        Damage of the software stream over a meeting of ``meeting_duration`` minutes.

        Args:
            instances_number: Number of participants connected to the meeting
            bandwith_bound: Bound of the bandwidth range
            network_bound: Bound of the network energy intensity range
            meeting_duration: Duration of the meeting in minutes (required, > 0)

        Returns:
            DamageVector, zero when the bandwidth is unknown

        Raises:
            ValidationError: Invalid number of instances or meeting duration
        """
        if (meeting_duration is None or isinstance(meeting_duration, bool)
                or not isinstance(meeting_duration, (int, float)) or meeting_duration <= 0):
            raise ValidationError(
                f"Invalid meeting duration for {self.name}",
                component="Software",
                invalid_fields={"meetingDuration": f"must be a number > 0, got {meeting_duration!r}"},
            )
        kbps = self.bandwidth(instances_number, bandwith_bound)
        gigabytes = kbps * meeting_duration * SECONDS_IN_MINUTE / KBITS_IN_GIGABYTE

        network = self.database.network
        kwh = gigabytes * network.energy_intensity_kwh_per_gb.select(network_bound)
        damage = network.electricity_damage_per_kwh.scale(kwh)

        logger.debug(
            f"Software {self.name}: {instances_number} instances, {kbps} kbit/s, "
            f"{gigabytes:.4f} GB over {meeting_duration} min"
        )
        return damage

    def __repr__(self) -> str:
        return f"Software({self.name!r})"
