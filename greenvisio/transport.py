# -*- coding: utf-8 -*-
"""
Journey damage

A journey is one participant travelling to the meeting with a
transportation mean; the per-km damage of the mean is shared between the
people travelling together.
"""

import logging
from typing import Optional, Union

from greenvisio.damage import DamageVector
from greenvisio.database import ReferenceDatabase, TransportRecord, get_database
from greenvisio.exceptions import ValidationError

logger = logging.getLogger(__name__)


class TransportationMean:
    """Transportation mean from the reference database"""

    def __init__(self, name: str, database: Optional[ReferenceDatabase] = None):
        self.database = database or get_database()
        self.record: TransportRecord = self.database.get_transport(name)
        self.name = name

    @property
    def damage_per_km(self) -> DamageVector:
        return self.record.damage_per_km

    def __repr__(self) -> str:
        return f"TransportationMean({self.name!r})"


class Journey:
    """
    Travel of ``passenger`` over ``distance`` km, shared by ``number_of_people``.

    Raises:
        NotFoundError: Unknown transportation mean
        ValidationError: Non-positive distance or number of people
    """

    def __init__(
        self,
        passenger: str,
        mean: Union[str, TransportationMean],
        distance: Union[int, float],
        number_of_people: int = 1,
        database: Optional[ReferenceDatabase] = None,
    ):
        invalid = {}
        if isinstance(distance, bool) or not isinstance(distance, (int, float)) or distance <= 0:
            invalid["distance"] = f"must be a number > 0, got {distance!r}"
        if (isinstance(number_of_people, bool) or not isinstance(number_of_people, int)
                or number_of_people < 1):
            invalid["numberOfPeople"] = f"must be an integer >= 1, got {number_of_people!r}"
        if invalid:
            raise ValidationError(
                f"Invalid journey for {passenger}",
                component="Journey",
                context={"passenger": passenger},
                invalid_fields=invalid,
            )

        self.passenger = passenger
        self.mean = mean if isinstance(mean, TransportationMean) else TransportationMean(mean, database)
        self.distance = distance
        self.number_of_people = number_of_people

    def compute_damage(self) -> DamageVector:
        damage = self.mean.damage_per_km.scale(self.distance / self.number_of_people)
        logger.debug(
            f"Journey {self.passenger}: {self.distance} km by {self.mean.name} "
            f"shared by {self.number_of_people}"
        )
        return damage

    def __repr__(self) -> str:
        return (
            f"Journey({self.passenger!r}, {self.mean.name!r}, distance={self.distance}, "
            f"number_of_people={self.number_of_people})"
        )
