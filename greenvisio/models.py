# -*- coding: utf-8 -*-
"""
GreenVisio request and option models

Pydantic v2 models describing what callers send to the engine:

    - HardwareSpec, SoftwareSpec, JourneySpec: one component of a meeting
    - HardwareDamageOptions, SoftwareDamageOptions, JourneyDamageOptions:
      per-category computation options, grouped in DamagePayload
    - MeetingRequest: a full estimation request

Field names are snake_case; the camelCase names used by the JSON payloads
(``shareForVisio``, ``numberOfPeople``, ``meetingDuration``...) are accepted
as aliases. pydantic errors are converted into greenvisio ValidationError by
``parse_model``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from greenvisio.constants import Bound
from greenvisio.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_MODEL_CONFIG = {"extra": "forbid", "populate_by_name": True}


def _upper_bound(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper()
    return value


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


class HardwareSpec(BaseModel):
    """Hardware used by the meeting.

    Attributes:
        name: Hardware identifier in the reference database.
        size: Device size, required for size dependent devices.
        share_for_visio: Fraction of the device usage due to the meeting.
        components: Per-child overrides for composite hardware.
    """

    name: str = Field(..., min_length=1, description="Hardware identifier")
    size: Optional[float] = Field(None, gt=0, description="Device size")
    share_for_visio: Optional[float] = Field(
        None,
        ge=0.0,
        le=1.0,
        alias="shareForVisio",
        description="Fraction of the device usage attributed to the meeting",
    )
    components: Optional[Dict[str, Dict[str, Any]]] = Field(
        None,
        description="Overrides keyed by child hardware name",
    )

    model_config = _MODEL_CONFIG


class SoftwareSpec(BaseModel):
    """Videoconference software used by the meeting."""

    name: str = Field(..., min_length=1, description="Software identifier")

    model_config = _MODEL_CONFIG


class JourneySpec(BaseModel):
    """One participant trip to the meeting."""

    passenger: str = Field(default="", description="Passenger label")
    mean: str = Field(..., min_length=1, description="Transportation mean identifier")
    distance: float = Field(..., gt=0, description="Distance in km")
    number_of_people: int = Field(
        ...,
        ge=1,
        alias="numberOfPeople",
        description="People sharing the transportation mean",
    )

    model_config = _MODEL_CONFIG


# ---------------------------------------------------------------------------
# Computation options
# ---------------------------------------------------------------------------


class HardwareDamageOptions(BaseModel):
    meeting_duration: float = Field(..., gt=0, alias="meetingDuration")
    bound: Bound = Field(default=Bound.UPPER)

    model_config = _MODEL_CONFIG

    @field_validator("bound", mode="before")
    @classmethod
    def normalise_bound(cls, v: Any) -> Any:
        return _upper_bound(v)


class SoftwareDamageOptions(BaseModel):
    instances_number: int = Field(..., ge=1, alias="instancesNumber")
    bandwith_bound: Bound = Field(default=Bound.UPPER, alias="bandwithBound")
    network_bound: Bound = Field(default=Bound.UPPER, alias="networkBound")
    meeting_duration: float = Field(..., gt=0, alias="meetingDuration")

    model_config = _MODEL_CONFIG

    @field_validator("bandwith_bound", "network_bound", mode="before")
    @classmethod
    def normalise_bounds(cls, v: Any) -> Any:
        return _upper_bound(v)


class JourneyDamageOptions(BaseModel):
    model_config = _MODEL_CONFIG


class DamagePayload(BaseModel):
    """Per-category options of a damage computation."""

    hardware: HardwareDamageOptions
    software: SoftwareDamageOptions
    journey: JourneyDamageOptions = Field(default_factory=JourneyDamageOptions)

    model_config = _MODEL_CONFIG


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class MeetingRequest(BaseModel):
    """Meeting damage estimation request.

    Attributes:
        user: Identifier of the user creating the meeting.
        meeting_duration: Meeting duration in minutes.
        number_of_participants: Participants connected to the meeting.
        hardware: Hardware used by the meeting.
        software: Software used by the meeting.
        journeys: Trips made by participants.
        options: Explicit computation options. When omitted they are derived
            from the meeting and the configured default bounds.
    """

    user: str = Field(default="anonymous")
    meeting_duration: float = Field(..., gt=0, alias="meetingDuration")
    number_of_participants: int = Field(..., ge=1, alias="numberOfParticipants")
    hardware: List[HardwareSpec] = Field(default_factory=list)
    software: List[SoftwareSpec] = Field(default_factory=list)
    journeys: List[JourneySpec] = Field(default_factory=list)
    options: Optional[DamagePayload] = None

    model_config = _MODEL_CONFIG

    @model_validator(mode="after")
    def check_component_counts(self, info: ValidationInfo) -> "MeetingRequest":
        """Reject requests carrying more entries than allowed.

        The limit is ``max_components`` from the validation context when the
        caller passes one, the process-wide configuration otherwise.
        """
        context = info.context or {}
        limit = context.get("max_components")
        if limit is None:
            from greenvisio.config import get_config

            limit = get_config().max_components
        for name in ("hardware", "software", "journeys"):
            count = len(getattr(self, name))
            if count > limit:
                raise ValueError(f"{name} has {count} entries, maximum is {limit}")
        return self


def parse_model(
    model_cls: Type[ModelT],
    data: Any,
    component: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> ModelT:
    """Validate ``data`` into ``model_cls``.

    Args:
        model_cls: Target pydantic model.
        data: Mapping to validate, or an existing ``model_cls`` instance.
        component: Component name reported in the error.
        context: Validation context handed to the model validators
            (e.g. ``{"max_components": 10}``).

    Returns:
        Validated model instance.

    Raises:
        ValidationError: If ``data`` does not match the model. ``invalid_fields``
            maps each failing location (dotted) to the pydantic message.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data, context=context)
    except pydantic.ValidationError as e:
        invalid_fields = {
            ".".join(str(part) for part in error["loc"]) or "__root__": error["msg"]
            for error in e.errors()
        }
        raise ValidationError(
            f"Invalid {model_cls.__name__}: {e.error_count()} validation error(s)",
            component=component or model_cls.__name__,
            invalid_fields=invalid_fields,
        ) from e


__all__ = [
    "HardwareSpec",
    "SoftwareSpec",
    "JourneySpec",
    "HardwareDamageOptions",
    "SoftwareDamageOptions",
    "JourneyDamageOptions",
    "DamagePayload",
    "MeetingRequest",
    "parse_model",
]
