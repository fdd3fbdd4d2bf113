# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import shutil
from pathlib import Path
from typing import Any, Dict

import pytest
import yaml

from greenvisio.config import reset_config
from greenvisio.database import PACKAGED_DATA_DIR, ReferenceDatabase, reset_database
from greenvisio.provenance import reset_provenance_tracker
from greenvisio.service import reset_service


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Every test starts from fresh configuration, database and service."""
    reset_config()
    reset_database()
    reset_provenance_tracker()
    reset_service()
    yield
    reset_config()
    reset_database()
    reset_provenance_tracker()
    reset_service()


@pytest.fixture(scope="session")
def data_dir() -> Path:
    """Directory of the packaged reference tables."""
    return PACKAGED_DATA_DIR


@pytest.fixture(scope="session")
def database() -> ReferenceDatabase:
    """Reference database loaded from the packaged tables."""
    return ReferenceDatabase()


@pytest.fixture
def hardware_table(data_dir) -> Dict[str, Any]:
    """Raw content of the packaged hardware table, safe to mutate."""
    with open(data_dir / "hardware.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def custom_data_dir(tmp_path, data_dir):
    """Build a data directory holding a custom hardware table.

    Returns a callable taking the hardware table content; software and
    transport tables are copied from the packaged ones.
    """
    def _build(hardware: Dict[str, Any]) -> Path:
        target = tmp_path / "data"
        target.mkdir(exist_ok=True)
        shutil.copy(data_dir / "software.yaml", target / "software.yaml")
        shutil.copy(data_dir / "transport.yaml", target / "transport.yaml")
        with open(target / "hardware.yaml", "w", encoding="utf-8") as f:
            yaml.safe_dump(hardware, f)
        return target

    return _build


@pytest.fixture
def meeting_request() -> Dict[str, Any]:
    """Request of a 2 hour meeting with desktops, Skype and two journeys."""
    return {
        "user": "vlegauch",
        "meetingDuration": 120,
        "numberOfParticipants": 5,
        "hardware": [
            {"name": "DESKTOP"},
            {"name": "DESKTOP"},
            {"name": "DESKTOP"},
            {"name": "LAPTOP"},
        ],
        "software": [{"name": "SKYPE"}],
        "journeys": [
            {
                "passenger": "Passenger 1",
                "mean": "CAR_ELECTRIC_ONE_KM",
                "distance": 120,
                "numberOfPeople": 4,
            },
            {
                "passenger": "Passenger 1",
                "mean": "BUS_LARGE_DISTANCE_ONE_PERSON_KM",
                "distance": 40,
                "numberOfPeople": 1,
            },
        ],
    }
