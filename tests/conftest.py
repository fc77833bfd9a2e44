"""
Shared fixtures: an app wired to in-memory repositories and a token per role.
"""

import os

os.environ["API_KEYS"] = ",".join(
    [
        "admin-token:admin-1",
        "doctor-token:doc-1",
        "doctor2-token:doc-2",
        "nurse-token:nurse-1",
        "patient-token:patient-1",
        "other-patient-token:patient-2",
        "stranger-token:stranger-1",
    ]
)
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from fastapi.testclient import TestClient

from fakes import FakeChartRepository, FakeProfileRepository, FakeRecordRepository
from homecare.api import deps
from homecare.app import app
from homecare.core.auth import reset_auth_service
from homecare.core.utils.patient_id_cache import PatientIdCache
from homecare.domain.entities.chart import PatientChart
from homecare.domain.entities.profile import Profile
from homecare.domain.enums.roles import UserRole


@pytest.fixture
def profiles():
    return FakeProfileRepository(
        {
            "admin-1": Profile(role=UserRole.ADMIN, full_name="Ada Admin"),
            "doc-1": Profile(role=UserRole.DOCTOR, full_name="Dr. Grey", doxy_room_url="https://doxy.me/drgrey"),
            "doc-2": Profile(role=UserRole.DOCTOR, full_name="Dr. Shepherd"),
            "nurse-1": Profile(role=UserRole.NURSE, display_name="Nurse Joy"),
            "patient-1": Profile(role=UserRole.PATIENT, phone="+15550001", linked_patient_id="legacy-1"),
            "patient-2": Profile(role=UserRole.PATIENT),
        }
    )


@pytest.fixture
def charts():
    return FakeChartRepository([PatientChart("chart-1", auth_user_id="patient-1", phone="+15550001")])


@pytest.fixture
def prescriptions():
    return FakeRecordRepository()


@pytest.fixture
def lab_requests():
    return FakeRecordRepository()


@pytest.fixture
def lab_results():
    return FakeRecordRepository()


@pytest.fixture
def notes():
    return FakeRecordRepository()


@pytest.fixture
def appointments():
    return FakeRecordRepository()


@pytest.fixture
def call_logs():
    return FakeRecordRepository()


@pytest.fixture
def availability():
    return FakeRecordRepository()


@pytest.fixture
def cache():
    return PatientIdCache()


@pytest.fixture
def client(
    profiles, charts, prescriptions, lab_requests, lab_results, notes, appointments, call_logs, availability, cache
):
    """Test client without lifespan, so no database connection is attempted."""
    reset_auth_service()
    app.dependency_overrides = {
        deps.get_profile_repository: lambda: profiles,
        deps.get_chart_repository: lambda: charts,
        deps.get_prescription_repository: lambda: prescriptions,
        deps.get_lab_request_repository: lambda: lab_requests,
        deps.get_lab_result_repository: lambda: lab_results,
        deps.get_note_repository: lambda: notes,
        deps.get_appointment_repository: lambda: appointments,
        deps.get_call_log_repository: lambda: call_logs,
        deps.get_availability_repository: lambda: availability,
        deps.get_patient_id_cache: lambda: cache,
    }
    yield TestClient(app)
    app.dependency_overrides = {}
    reset_auth_service()
