# -*- coding: utf-8 -*-
"""Tests for the MeetingImpactService facade."""

import pytest
from prometheus_client import REGISTRY

from greenvisio.config import VisioConfig
from greenvisio.damage import DamageVector
from greenvisio.exceptions import NotFoundError, ValidationError
from greenvisio.meeting import MeetingScenario
from greenvisio.provenance import ProvenanceTracker
from greenvisio.service import MeetingImpactService, get_service


def _estimations(status):
    return REGISTRY.get_sample_value("gl_visio_estimations_total", {"status": status}) or 0.0


@pytest.fixture
def tracker():
    return ProvenanceTracker()


@pytest.fixture
def service(database, tracker):
    return MeetingImpactService(config=VisioConfig(), database=database, provenance=tracker)


class TestEstimate:

    def test_result_shape(self, service, meeting_request):
        result = service.estimate(meeting_request)
        assert set(result) == {
            "hardwareDamage", "softwareDamage", "journeyDamage", "totalDamage", "provenanceHash",
        }
        assert set(result["totalDamage"]) == {"humanHealth", "ecosystemQuality", "climateChange", "resources"}

    def test_matches_scenario(self, service, database, meeting_request):
        result = service.estimate(meeting_request)

        scenario = MeetingScenario(
            "vlegauch",
            120,
            5,
            {
                "hardware": meeting_request["hardware"],
                "software": meeting_request["software"],
                "journey": meeting_request["journeys"],
            },
            database=database,
        )
        expected = scenario.compute_damage().to_dict()
        for key in ("hardwareDamage", "softwareDamage", "journeyDamage", "totalDamage"):
            assert result[key] == pytest.approx(expected[key])

    def test_explicit_options(self, service, meeting_request):
        upper = service.estimate(meeting_request)
        meeting_request["options"] = {
            "hardware": {"meetingDuration": 120, "bound": "LOWER"},
            "software": {"instancesNumber": 5, "meetingDuration": 120},
        }
        lower = service.estimate(meeting_request)
        assert lower["hardwareDamage"]["climateChange"] < upper["hardwareDamage"]["climateChange"]
        assert lower["softwareDamage"] == upper["softwareDamage"]

    def test_provenance_is_recorded(self, service, tracker, meeting_request):
        result = service.estimate(meeting_request)
        entries = tracker.get_entries(entity_type="meeting")
        assert len(entries) == 1
        assert entries[0].entity_id == "vlegauch"
        assert result["provenanceHash"] == entries[0].hash_value
        assert tracker.verify_chain()

    def test_provenance_disabled(self, database, tracker, meeting_request):
        service = MeetingImpactService(
            config=VisioConfig(enable_provenance=False), database=database, provenance=tracker,
        )
        assert service.estimate(meeting_request)["provenanceHash"] == ""
        assert len(tracker) == 0

    def test_empty_meeting(self, service):
        result = service.estimate({"meetingDuration": 30, "numberOfParticipants": 1})
        assert result["totalDamage"] == DamageVector.zero().to_dict()


class TestEstimateErrors:

    def test_invalid_request(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.estimate({"meetingDuration": -1, "numberOfParticipants": 2})
        assert "meetingDuration" in exc_info.value.invalid_fields

    def test_unknown_hardware(self, service, meeting_request):
        meeting_request["hardware"].append({"name": "SMARTWATCH"})
        with pytest.raises(NotFoundError):
            service.estimate(meeting_request)

    def test_component_limit_follows_service_config(self, database, tracker):
        service = MeetingImpactService(
            config=VisioConfig(max_components=1), database=database, provenance=tracker,
        )
        request = {
            "meetingDuration": 60,
            "numberOfParticipants": 2,
            "hardware": [{"name": "LAPTOP"}, {"name": "LAPTOP"}],
        }
        with pytest.raises(ValidationError) as exc_info:
            service.estimate(request)
        assert "maximum is 1" in str(exc_info.value.invalid_fields)

    def test_metrics_count_outcomes(self, service, meeting_request):
        successes = _estimations("success")
        invalid = _estimations("validation_error")

        service.estimate(meeting_request)
        with pytest.raises(ValidationError):
            service.estimate({"meetingDuration": 0, "numberOfParticipants": 2})

        assert _estimations("success") == successes + 1
        assert _estimations("validation_error") == invalid + 1


class TestCatalogAndHealth:

    def test_catalog(self, service):
        catalog = service.catalog()
        hardware = {entry["name"]: entry for entry in catalog["hardware"]}
        assert hardware["TV_SCREEN"]["isSizeDependent"] is True
        assert hardware["TV"]["components"] == ["TV_SCREEN_BASE", "TV_SCREEN"]
        software = {entry["name"]: entry for entry in catalog["software"]}
        assert software["JITSI"]["hasBandwidth"] is False
        assert "BIKE_ONE_PERSON_ONE_KM" in {entry["name"] for entry in catalog["transport"]}

    def test_health(self, service):
        health = service.health()
        assert health["status"] == "healthy"
        assert health["provenance_chain_valid"] is True
        assert health["provenance_entries"] == 1

    def test_get_service_is_singleton(self):
        assert get_service() is get_service()
