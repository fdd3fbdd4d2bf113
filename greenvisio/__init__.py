"""
GreenVisio: environmental damage of videoconference meetings
============================================================

Estimates the damage (Human Health, Ecosystem Quality, Climate Change,
Resources) caused by a meeting: hardware used, software streams and
participants' journeys.
"""

from ._version import __version__

from greenvisio.category import CategoryDamage
from greenvisio.constants import Bound, Category, DamageKind
from greenvisio.damage import DamageRange, DamageVector, sum_damages
from greenvisio.exceptions import (
    ExecutionError,
    GreenVisioException,
    InvalidSchema,
    NotFoundError,
    ValidationError,
)
from greenvisio.hardware import Hardware
from greenvisio.meeting import MeetingDamage, MeetingScenario
from greenvisio.software import Software
from greenvisio.transport import Journey, TransportationMean

__author__ = "GreenLang Team"
__license__ = "MIT"

__all__ = [
    "__version__",
    "Bound",
    "Category",
    "CategoryDamage",
    "DamageKind",
    "DamageRange",
    "DamageVector",
    "ExecutionError",
    "GreenVisioException",
    "Hardware",
    "InvalidSchema",
    "Journey",
    "MeetingDamage",
    "MeetingScenario",
    "NotFoundError",
    "Software",
    "TransportationMean",
    "ValidationError",
    "sum_damages",
]
