# -*- coding: utf-8 -*-
"""
GreenVisio Service Facade

Single entry point used by callers and the CLI. ``estimate`` validates a
raw request dictionary, runs a MeetingScenario, records provenance and
Prometheus metrics, and returns a JSON-ready result.

Example:
    >>> from greenvisio.service import get_service
    >>> result = get_service().estimate({
    ...     "user": "jdoe",
    ...     "meetingDuration": 60,
    ...     "numberOfParticipants": 2,
    ...     "hardware": [{"name": "LAPTOP"}],
    ... })
    >>> sorted(result)
    ['hardwareDamage', 'journeyDamage', 'provenanceHash', 'softwareDamage', 'totalDamage']
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Mapping, Optional

from greenvisio.config import VisioConfig, get_config
from greenvisio.constants import Category
from greenvisio.database import ReferenceDatabase, get_database
from greenvisio.exceptions import NotFoundError, ValidationError
from greenvisio.meeting import MeetingScenario
from greenvisio.metrics import record_components, record_estimation, set_reference_entries
from greenvisio.models import MeetingRequest, parse_model
from greenvisio.provenance import ProvenanceTracker, get_provenance_tracker

logger = logging.getLogger(__name__)


class MeetingImpactService:
    """Facade over the meeting damage engine.

    Attributes:
        config: VisioConfig instance.
        database: Reference database used for every estimation.
        provenance: ProvenanceTracker for SHA-256 audit trails.
    """

    def __init__(
        self,
        config: Optional[VisioConfig] = None,
        database: Optional[ReferenceDatabase] = None,
        provenance: Optional[ProvenanceTracker] = None,
    ) -> None:
        self.config = config if config is not None else get_config()
        self.database = database if database is not None else get_database()
        self.provenance = provenance if provenance is not None else get_provenance_tracker()

        tables = {
            "hardware": len(self.database.hardware_names()),
            "software": len(self.database.software_names()),
            "transport": len(self.database.transport_names()),
        }
        for table, count in tables.items():
            set_reference_entries(table, count)
        if self.config.enable_provenance:
            self.provenance.record(
                "reference_database",
                "load_database",
                str(self.database.data_dir),
                data=tables,
            )

        logger.info("MeetingImpactService created")

    def estimate(self, request: Mapping[str, Any]) -> Dict[str, Any]:
        """Estimate the damage of one meeting.

        Args:
            request: Dictionary with ``user``, ``meetingDuration``,
                ``numberOfParticipants``, ``hardware``, ``software``,
                ``journeys`` and optional ``options`` (damage payload).

        Returns:
            ``hardwareDamage``, ``softwareDamage``, ``journeyDamage`` and
            ``totalDamage`` (each a damage dictionary), plus
            ``provenanceHash`` (empty when provenance is disabled).

        Raises:
            ValidationError: Malformed request.
            NotFoundError: Unknown hardware, software or transportation mean.
        """
        t0 = time.perf_counter()
        status = "failure"
        try:
            meeting = parse_model(
                MeetingRequest,
                request,
                component="MeetingImpactService",
                context={"max_components": self.config.max_components},
            )
            scenario = MeetingScenario(
                user=meeting.user,
                meeting_duration=meeting.meeting_duration,
                number_of_participants=meeting.number_of_participants,
                payload={
                    Category.HARDWARE.value: meeting.hardware,
                    Category.SOFTWARE.value: meeting.software,
                    Category.JOURNEY.value: meeting.journeys,
                },
                database=self.database,
                config=self.config,
            )
            damage = scenario.compute_damage(meeting.options)
            result: Dict[str, Any] = damage.to_dict()

            result["provenanceHash"] = ""
            if self.config.enable_provenance:
                entry = self.provenance.record(
                    "meeting",
                    "estimate",
                    meeting.user,
                    data={
                        "request": meeting.model_dump(mode="json", by_alias=True),
                        "result": dict(result),
                    },
                )
                result["provenanceHash"] = entry.hash_value

            record_components(Category.HARDWARE.value, len(meeting.hardware))
            record_components(Category.SOFTWARE.value, len(meeting.software))
            record_components(Category.JOURNEY.value, len(meeting.journeys))
            status = "success"
            return result
        except ValidationError:
            status = "validation_error"
            raise
        except NotFoundError:
            status = "not_found"
            raise
        finally:
            elapsed = time.perf_counter() - t0
            record_estimation(status, elapsed)
            logger.info("Meeting estimation finished: status=%s elapsed=%.2fms", status, elapsed * 1000)

    def catalog(self) -> Dict[str, List[Dict[str, Any]]]:
        """Identifiers and labels of every known hardware, software and transportation mean."""
        return {
            "hardware": [
                {
                    "name": record.name,
                    "label": record.label,
                    "isSizeDependent": record.is_size_dependent,
                    "components": list(record.components),
                }
                for record in self.database.hardware_records()
            ],
            "software": [
                {"name": record.name, "label": record.label, "hasBandwidth": bool(record.bandwidth)}
                for record in self.database.software_records()
            ],
            "transport": [
                {"name": record.name, "label": record.label}
                for record in self.database.transport_records()
            ],
        }

    def health(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "data_dir": str(self.database.data_dir),
            "hardware": len(self.database.hardware_names()),
            "software": len(self.database.software_names()),
            "transport": len(self.database.transport_names()),
            "provenance_entries": len(self.provenance),
            "provenance_chain_valid": self.provenance.verify_chain(),
        }


# ---------------------------------------------------------------------------
# Thread-safe singleton
# ---------------------------------------------------------------------------

_singleton_lock = threading.Lock()
_singleton_instance: Optional[MeetingImpactService] = None


def get_service() -> MeetingImpactService:
    """Return the process-wide MeetingImpactService, creating it on first use."""
    global _singleton_instance
    if _singleton_instance is None:
        with _singleton_lock:
            if _singleton_instance is None:
                _singleton_instance = MeetingImpactService()
    return _singleton_instance


def reset_service() -> None:
    """Drop the process-wide service (testing)."""
    global _singleton_instance
    with _singleton_lock:
        _singleton_instance = None


__all__ = [
    "MeetingImpactService",
    "get_service",
    "reset_service",
]
