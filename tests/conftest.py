"""Shared test fixtures for fhirstore tests.

Provides sample resources and a ResourceStore backed by a temporary
SQLite file.
"""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from fhirstore.schemas.resource import (
    HumanName,
    Observation,
    Patient,
    Practitioner,
    Quantity,
    Reference,
)
from fhirstore.storage.resource_store import ResourceStore


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SAMPLE_PATIENT_ID = "123"
SAMPLE_TIMESTAMP = datetime(2026, 2, 9, 14, 30, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Resource fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def sample_patient() -> Patient:
    """Patient/123 named Jane."""
    return Patient(
        id=SAMPLE_PATIENT_ID,
        active=True,
        name=[HumanName(family="Doe", given=["Jane"])],
        gender="female",
        birthDate=date(1990, 4, 1),
    )


@pytest.fixture
def sample_practitioner() -> Practitioner:
    return Practitioner(
        id=SAMPLE_PATIENT_ID,
        name=[HumanName(family="House", given=["Gregory"])],
    )


@pytest.fixture
def sample_observation() -> Observation:
    """Heart rate observation for Patient/123."""
    return Observation(
        id="obs-1",
        status="final",
        code="8867-4",
        subject=Reference(reference=f"Patient/{SAMPLE_PATIENT_ID}"),
        effectiveDateTime=SAMPLE_TIMESTAMP,
        valueQuantity=Quantity(value=72.0, unit="beats/minute"),
    )


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "FHIRDB"


@pytest.fixture
def store(db_path: Path) -> ResourceStore:
    """A ResourceStore with its schema created."""
    s = ResourceStore(db_path)
    s.ensure_schema()
    return s
