# -*- coding: utf-8 -*-
"""
Meeting damage tests

MeetingDamage aggregation, damage payload validation and the
MeetingScenario entry point, including an end-to-end meeting.
"""

import pytest

from greenvisio.category import CategoryDamage
from greenvisio.config import VisioConfig, set_config
from greenvisio.constants import Bound, Category
from greenvisio.damage import DamageVector
from greenvisio.exceptions import ExecutionError, NotFoundError, ValidationError
from greenvisio.hardware import Hardware
from greenvisio.meeting import MeetingDamage, MeetingScenario
from greenvisio.software import Software
from greenvisio.transport import Journey

DAMAGE_PAYLOAD = {
    "hardware": {"meetingDuration": 120, "bound": "UPPER"},
    "software": {
        "instancesNumber": 5,
        "bandwithBound": "UPPER",
        "networkBound": "UPPER",
        "meetingDuration": 120,
    },
    "journey": {},
}


def _assert_close(actual: DamageVector, expected: DamageVector):
    assert actual.to_dict() == pytest.approx(expected.to_dict(), rel=1e-9, abs=1e-15)


# ==============================================================================
# MeetingDamage
# ==============================================================================

class TestMeetingDamageFromCategories:
    """MeetingDamage built from precomputed categories."""

    def test_total_is_sum_of_categories(self, database):
        hardware = CategoryDamage(Category.HARDWARE, [
            Hardware("DESKTOP", database=database).compute_damage(120),
            Hardware("DESKTOP", database=database).compute_damage(120),
            Hardware("LAPTOP", database=database).compute_damage(120),
        ])
        software = CategoryDamage(Category.SOFTWARE, [
            Software("SKYPE", database=database).compute_damage(5, Bound.UPPER, Bound.UPPER, 120),
        ])
        journeys = CategoryDamage(Category.JOURNEY, [
            Journey("Passenger 1", "CAR_ELECTRIC_ONE_KM", 100, n, database=database).compute_damage()
            for n in (3, 2, 5)
        ] + [
            Journey("Passenger 1", "CAR_HEAT_ENGINE_ONE_KM", 100, 2, database=database).compute_damage(),
        ])

        meeting = MeetingDamage(
            hardware_damage=hardware,
            software_damage=software,
            journey_damage=journeys,
        )

        assert meeting.total_damage == hardware.total_damage.add(software.total_damage).add(
            journeys.total_damage
        )

    def test_missing_category_is_empty(self):
        hardware = CategoryDamage(Category.HARDWARE, [DamageVector(climate_change=2.0)])
        meeting = MeetingDamage(hardware_damage=hardware)
        assert meeting.total_damage == DamageVector(climate_change=2.0)
        assert meeting.journey_damage.total_damage == DamageVector.zero()

    def test_empty_category_is_kept(self):
        software = CategoryDamage(Category.SOFTWARE)
        meeting = MeetingDamage(
            hardware_damage=CategoryDamage(Category.HARDWARE, [DamageVector(resources=1.0)]),
            software_damage=software,
        )
        assert meeting.software_damage is software

    def test_cannot_mix_categories_and_components(self):
        with pytest.raises(ValidationError):
            MeetingDamage(
                hardware_damage=CategoryDamage(Category.HARDWARE),
                software_components=[{"name": "SKYPE"}],
            )


class TestMeetingDamageFromComponents:
    """MeetingDamage built from component specs then computed."""

    def test_total_before_compute(self):
        meeting = MeetingDamage(hardware_components=[{"name": "DESKTOP"}])
        assert not meeting.is_computed
        with pytest.raises(ExecutionError):
            meeting.total_damage

    def test_compute_matches_independent_components(self, database):
        meeting = MeetingDamage(
            hardware_components=[{"name": "LAPTOP", "shareForVisio": 0.5}],
            software_components=[{"name": "HANGOUTS"}],
            journey_components=[
                {"passenger": "P1", "mean": "TRAMWAY_ONE_PERSON_KM", "distance": 8, "numberOfPeople": 1},
            ],
            database=database,
        )
        total = meeting.compute_damage(DAMAGE_PAYLOAD)

        expected = (
            Hardware("LAPTOP", share_for_visio=0.5, database=database).compute_damage(120)
            .add(Software("HANGOUTS", database=database).compute_damage(5, meeting_duration=120))
            .add(Journey("P1", "TRAMWAY_ONE_PERSON_KM", 8, 1, database=database).compute_damage())
        )
        _assert_close(total, expected)
        assert meeting.total_damage == total

    def test_hardware_bound_is_applied(self, database):
        upper = MeetingDamage(hardware_components=[{"name": "DESKTOP"}], database=database)
        lower = MeetingDamage(hardware_components=[{"name": "DESKTOP"}], database=database)
        upper.compute_damage(DAMAGE_PAYLOAD)
        lower.compute_damage({**DAMAGE_PAYLOAD, "hardware": {"meetingDuration": 120, "bound": "lower"}})
        assert lower.total_damage.climate_change < upper.total_damage.climate_change

    def test_to_dict(self, database):
        meeting = MeetingDamage(hardware_components=[{"name": "DESKTOP"}], database=database)
        meeting.compute_damage(DAMAGE_PAYLOAD)
        result = meeting.to_dict()
        assert set(result) == {"hardwareDamage", "softwareDamage", "journeyDamage", "totalDamage"}
        assert result["softwareDamage"] == DamageVector.zero().to_dict()
        assert result["totalDamage"] == result["hardwareDamage"]

    def test_size_dependent_components(self, database):
        meeting = MeetingDamage(
            hardware_components=[{"name": "TV", "components": {"TV_SCREEN": {"size": 107}}}],
            database=database,
        )
        meeting.compute_damage(DAMAGE_PAYLOAD)
        assert meeting.total_damage.climate_change > 0


class TestMeetingDamageErrors:
    """Invalid specs and payloads fail before any computation."""

    def test_missing_number_of_people(self):
        with pytest.raises(ValidationError) as exc_info:
            MeetingDamage(journey_components=[
                {"passenger": "P1", "mean": "CAR_ELECTRIC_ONE_KM", "distance": 10},
            ])
        assert "numberOfPeople" in exc_info.value.invalid_fields

    def test_missing_distance(self):
        with pytest.raises(ValidationError) as exc_info:
            MeetingDamage(journey_components=[
                {"passenger": "P1", "mean": "CAR_ELECTRIC_ONE_KM", "numberOfPeople": 1},
            ])
        assert "distance" in exc_info.value.invalid_fields

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration(self, database, duration):
        meeting = MeetingDamage(hardware_components=[{"name": "DESKTOP"}], database=database)
        payload = {**DAMAGE_PAYLOAD, "hardware": {"meetingDuration": duration}}
        with pytest.raises(ValidationError) as exc_info:
            meeting.compute_damage(payload)
        assert "hardware.meetingDuration" in exc_info.value.invalid_fields
        assert not meeting.is_computed

    def test_missing_software_options(self, database):
        meeting = MeetingDamage(hardware_components=[{"name": "DESKTOP"}], database=database)
        with pytest.raises(ValidationError):
            meeting.compute_damage({"hardware": {"meetingDuration": 60}})

    def test_missing_size(self, database):
        meeting = MeetingDamage(hardware_components=[{"name": "TV"}], database=database)
        with pytest.raises(ValidationError):
            meeting.compute_damage(DAMAGE_PAYLOAD)
        assert not meeting.is_computed

    def test_nested_override_must_be_a_mapping(self, database):
        meeting = MeetingDamage(
            hardware_components=[{
                "name": "VISIO_ROOM",
                "components": {"TV": {"size": 100, "components": ["TV_SCREEN"]}},
            }],
            database=database,
        )
        with pytest.raises(ValidationError) as exc_info:
            meeting.compute_damage(DAMAGE_PAYLOAD)
        assert "components" in exc_info.value.invalid_fields
        assert not meeting.is_computed

    def test_unknown_component(self, database):
        meeting = MeetingDamage(
            hardware_components=[{"name": "DESKTOP"}],
            software_components=[{"name": "MSN_MESSENGER"}],
            database=database,
        )
        with pytest.raises(NotFoundError):
            meeting.compute_damage(DAMAGE_PAYLOAD)
        assert not meeting.is_computed


# ==============================================================================
# MeetingScenario
# ==============================================================================

class TestMeetingScenario:
    """Request-scoped entry point."""

    def test_end_to_end(self, database, meeting_request):
        """3 desktops, 1 laptop, 5-participant Skype, carpool and bus, 120 minutes."""
        payload = {
            "hardware": meeting_request["hardware"],
            "software": meeting_request["software"],
            "journey": meeting_request["journeys"],
        }
        scenario = MeetingScenario("vlegauch", 120, 5, payload, database=database)
        scenario.compute_damage(DAMAGE_PAYLOAD)

        hardware = (
            Hardware("DESKTOP", database=database).compute_damage(120).scale(3)
            .add(Hardware("LAPTOP", database=database).compute_damage(120))
        )
        software = Software("SKYPE", database=database).compute_damage(5, Bound.UPPER, Bound.UPPER, 120)
        journeys = (
            Journey("Passenger 1", "CAR_ELECTRIC_ONE_KM", 120, 4, database=database).compute_damage()
            .add(Journey("Passenger 1", "BUS_LARGE_DISTANCE_ONE_PERSON_KM", 40, 1,
                         database=database).compute_damage())
        )

        damage = scenario.damage
        _assert_close(damage.hardware_damage.total_damage, hardware)
        _assert_close(damage.software_damage.total_damage, software)
        _assert_close(damage.journey_damage.total_damage, journeys)
        _assert_close(damage.total_damage, hardware.add(software).add(journeys))
        assert damage.total_damage == (
            damage.hardware_damage.total_damage
            .add(damage.software_damage.total_damage)
            .add(damage.journey_damage.total_damage)
        )

    def test_matches_meeting_damage(self, database):
        payload = {
            "hardware": [
                {"name": "DESKTOP"},
                {"name": "LAPTOP"},
                {"name": "LOGITECH_KIT"},
                {"name": "TV", "size": 107},
                {"name": "METAL_STRUCTURE"},
            ],
            "software": [{"name": "SKYPE"}],
            "journey": [
                {"passenger": "Passenger 2", "mean": "TRAIN_REGIONAL_ONE_PERSON_KM",
                 "distance": 300, "numberOfPeople": 1},
                {"passenger": "Passenger 2", "mean": "BIKE_ONE_PERSON_ONE_KM",
                 "distance": 10, "numberOfPeople": 1},
            ],
        }
        scenario = MeetingScenario("vlegauch", 120, 4, payload, database=database)
        scenario.compute_damage(DAMAGE_PAYLOAD)

        expected = MeetingDamage(
            hardware_components=payload["hardware"],
            software_components=payload["software"],
            journey_components=payload["journey"],
            database=database,
        )
        expected.compute_damage(DAMAGE_PAYLOAD)

        assert scenario.damage.total_damage == expected.total_damage

    def test_default_payload_from_scenario(self, database):
        payload = {"software": [{"name": "SKYPE"}]}
        scenario = MeetingScenario("jdoe", 60, 3, payload, database=database)
        scenario.compute_damage()

        expected = Software("SKYPE", database=database).compute_damage(3, Bound.UPPER, Bound.UPPER, 60)
        assert scenario.damage.total_damage == expected

    def test_default_bounds_from_config(self, database):
        set_config(VisioConfig(default_bandwidth_bound="LOWER", default_network_bound="lower"))
        scenario = MeetingScenario("jdoe", 60, 3, {"software": [{"name": "SKYPE"}]}, database=database)
        scenario.compute_damage()

        expected = Software("SKYPE", database=database).compute_damage(3, Bound.LOWER, Bound.LOWER, 60)
        assert scenario.damage.total_damage == expected

    def test_empty_meeting(self, database):
        scenario = MeetingScenario("jdoe", 30, 1, database=database)
        assert scenario.compute_damage().total_damage == DamageVector.zero()

    @pytest.mark.parametrize("duration,participants", [(0, 2), (-5, 2), (60, 0), (60, 1.5)])
    def test_invalid_scenario(self, duration, participants):
        with pytest.raises(ValidationError):
            MeetingScenario("jdoe", duration, participants)

    def test_unknown_payload_category(self):
        with pytest.raises(ValidationError) as exc_info:
            MeetingScenario("jdoe", 60, 2, {"catering": []})
        assert "catering" in exc_info.value.invalid_fields
