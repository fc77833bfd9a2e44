"""FastAPI dependency providers.

Repositories and the patient id resolver are provided here so tests can swap
them through ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ..adapters.db.mongo.repositories.chart_repository import MongoChartRepository
from ..adapters.db.mongo.repositories.profile_repository import MongoProfileRepository
from ..adapters.db.mongo.repositories.record_repository import (
    APPOINTMENTS_COLLECTION,
    AVAILABILITY_COLLECTION,
    CALL_LOGS_COLLECTION,
    LAB_REQUESTS_COLLECTION,
    LAB_RESULTS_COLLECTION,
    NOTES_COLLECTION,
    PRESCRIPTIONS_COLLECTION,
    MongoRecordRepository,
)
from ..application.ports.repositories.chart_repo import ChartRepository
from ..application.ports.repositories.profile_repo import ProfileRepository
from ..application.ports.repositories.record_repo import RecordRepository
from ..core.config import get_settings
from ..core.container import ServiceNames, get_service
from ..core.utils.patient_id_cache import CachedPatientIdResolver, PatientIdCache
from ..core.utils.patient_id_resolver import PatientIdResolver
from ..domain.entities.profile import Profile

logger = logging.getLogger("homecare")


@lru_cache()
def get_chart_repository() -> ChartRepository:
    """Get chart repository instance."""
    return MongoChartRepository()


@lru_cache()
def get_profile_repository() -> ProfileRepository:
    """Get profile repository instance."""
    return MongoProfileRepository()


@lru_cache()
def get_prescription_repository() -> RecordRepository:
    return MongoRecordRepository(PRESCRIPTIONS_COLLECTION)


@lru_cache()
def get_lab_request_repository() -> RecordRepository:
    return MongoRecordRepository(LAB_REQUESTS_COLLECTION, sort=(("requestedAt", -1), ("createdAt", -1)))


@lru_cache()
def get_lab_result_repository() -> RecordRepository:
    return MongoRecordRepository(LAB_RESULTS_COLLECTION)


@lru_cache()
def get_note_repository() -> RecordRepository:
    return MongoRecordRepository(NOTES_COLLECTION)


@lru_cache()
def get_appointment_repository() -> RecordRepository:
    return MongoRecordRepository(APPOINTMENTS_COLLECTION)


@lru_cache()
def get_call_log_repository() -> RecordRepository:
    return MongoRecordRepository(CALL_LOGS_COLLECTION)


@lru_cache()
def get_availability_repository() -> RecordRepository:
    return MongoRecordRepository(AVAILABILITY_COLLECTION, sort=(("updatedAt", -1),))


def get_patient_id_cache() -> PatientIdCache:
    """Process-wide resolution cache owned by the container."""
    return get_service(ServiceNames.PATIENT_ID_CACHE)


def get_patient_id_resolver(
    charts: Annotated[ChartRepository, Depends(get_chart_repository)],
    cache: Annotated[PatientIdCache, Depends(get_patient_id_cache)],
) -> CachedPatientIdResolver:
    """Cached resolver over the chart store, configured from settings."""
    settings = get_settings().patient_ids
    resolver = PatientIdResolver(
        charts,
        lookup_limit=settings.lookup_limit,
        lookup_timeout=settings.lookup_timeout_seconds,
        debug=settings.debug,
    )
    return CachedPatientIdResolver(resolver, cache)


def get_current_user(request: Request) -> str:
    """
    Get current authenticated user ID from request state.

    The authentication middleware must have run first (which it does by default).
    """
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        # This should not happen if authentication middleware is working
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user_id


async def get_current_profile(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user)],
    profiles: Annotated[ProfileRepository, Depends(get_profile_repository)],
) -> Profile:
    """Load the caller's profile; a caller without one is refused."""
    try:
        profile = await profiles.get_profile(user_id)
    except Exception as e:
        logger.error(f"❌ Failed to load profile for {user_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load user profile")

    if profile is None:
        logger.warning(f"No user profile for {user_id}")
        raise HTTPException(status_code=403, detail="No user profile")

    request.state.profile = profile
    return profile


# Dependency annotations for FastAPI
ChartRepositoryDep = Annotated[ChartRepository, Depends(get_chart_repository)]
ProfileRepositoryDep = Annotated[ProfileRepository, Depends(get_profile_repository)]
PrescriptionRepositoryDep = Annotated[RecordRepository, Depends(get_prescription_repository)]
LabRequestRepositoryDep = Annotated[RecordRepository, Depends(get_lab_request_repository)]
LabResultRepositoryDep = Annotated[RecordRepository, Depends(get_lab_result_repository)]
NoteRepositoryDep = Annotated[RecordRepository, Depends(get_note_repository)]
AppointmentRepositoryDep = Annotated[RecordRepository, Depends(get_appointment_repository)]
CallLogRepositoryDep = Annotated[RecordRepository, Depends(get_call_log_repository)]
AvailabilityRepositoryDep = Annotated[RecordRepository, Depends(get_availability_repository)]
PatientIdCacheDep = Annotated[PatientIdCache, Depends(get_patient_id_cache)]
PatientIdResolverDep = Annotated[CachedPatientIdResolver, Depends(get_patient_id_resolver)]
CurrentUserDep = Annotated[str, Depends(get_current_user)]
CurrentProfileDep = Annotated[Profile, Depends(get_current_profile)]
