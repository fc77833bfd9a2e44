"""
Telemedicine endpoints: appointments, call logs and provider availability.

Visibility follows the caller's role:

- admin: every record
- patient: appointments and call logs filed under their own auth id
- doctor/nurse: appointments assigned to them plus the unassigned request pool,
  and call logs they hosted

Assignments written by older clients carry the provider under ``providerUid``,
so every provider match checks both keys.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import APIRouter, HTTPException, Query

from ...adapters.db.mongo.filters import (
    build_patient_filter,
    build_provider_filter,
    build_unassigned_filter,
    parse_object_id,
)
from ...application.ports.repositories.profile_repo import ProfileRepository
from ...domain.telemedicine import (
    APPOINTMENT_COMPLETED,
    APPOINTMENT_REQUESTED,
    CALL_ENDED,
    CALL_STARTED,
    call_duration_seconds,
    channel_name_for,
    sanitize_availability_slots,
)
from ..deps import (
    AppointmentRepositoryDep,
    AvailabilityRepositoryDep,
    CallLogRepositoryDep,
    CurrentProfileDep,
    CurrentUserDep,
    ProfileRepositoryDep,
)
from ..errors import APIError, BadRequestError, ForbiddenError, RecordNotFoundError
from ..guards import (
    AdminDep,
    AppointmentRequesterDep,
    CareTeamDep,
    DoctorOrAdminDep,
    TelemedicineParticipantDep,
    can_manage_availability,
)
from ..schemas.common import CreatedResponse, OkResponse, first_present
from ..schemas.telemedicine import (
    AppointmentCreateRequest,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentSchema,
    AppointmentUpdateRequest,
    AvailabilitySchema,
    AvailabilityUpdateRequest,
    CallLogCreateRequest,
    CallLogListResponse,
    CallLogSchema,
    CallLogUpdateRequest,
)
from ..utils.responses import server_error

router = APIRouter(prefix="/telemedicine", tags=["Telemedicine"])
logger = logging.getLogger("homecare")


def _by_id(record_id: str) -> Optional[Dict[str, Any]]:
    object_id = parse_object_id(record_id)
    return {"_id": object_id} if object_id is not None else None


async def _provider_room_url(profiles: ProfileRepository, provider_id: str) -> Optional[str]:
    """The provider's video room link from their profile; lookup failures leave it unset."""
    try:
        provider = await profiles.get_profile(provider_id)
    except Exception as e:
        logger.warning(f"[TELEMEDICINE] Could not load provider {provider_id} for room link: {e}")
        return None
    return provider.doxy_room_url if provider else None


def _appointment_changes(payload: AppointmentUpdateRequest) -> Dict[str, Any]:
    """Body fields to ``$set``, with preferred times folded into the requested window."""
    changes = payload.model_dump(exclude_unset=True, by_alias=True)
    preferred_start = changes.pop("preferredStartAt", None)
    preferred_end = changes.pop("preferredEndAt", None)
    if preferred_start and not changes.get("requestedStartAt"):
        changes["requestedStartAt"] = preferred_start
    if preferred_end and not changes.get("requestedEndAt"):
        changes["requestedEndAt"] = preferred_end
    return changes


# ---------------------------------------------------------------------------
# /telemedicine/appointments
# ---------------------------------------------------------------------------


@router.get("/appointments", response_model=AppointmentListResponse)
async def list_appointments(
    user_id: CurrentUserDep,
    profile: TelemedicineParticipantDep,
    appointments: AppointmentRepositoryDep,
):
    """List the appointments the caller may see, newest first."""
    try:
        if profile.is_admin:
            query: Dict[str, Any] = {}
        elif profile.is_patient:
            query = build_patient_filter([user_id])
        else:
            assigned = build_provider_filter([user_id])["$or"]
            query = {"$or": [*assigned, {"status": APPOINTMENT_REQUESTED, **build_unassigned_filter()}]}

        docs = await appointments.find_where(query)
        return AppointmentListResponse(appointments=[AppointmentSchema.from_document(doc) for doc in docs])
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error fetching appointments: {e}", exc_info=True)
        raise server_error("Failed to fetch appointments", e)


@router.get("/pending", response_model=AppointmentListResponse)
async def list_pending_appointments(
    user_id: CurrentUserDep,
    profile: CareTeamDep,
    appointments: AppointmentRepositoryDep,
    include_unassigned: bool = Query(True, alias="includeUnassigned"),
):
    """Requested appointments waiting for a provider, for the provider dashboard."""
    try:
        query: Dict[str, Any] = {"status": APPOINTMENT_REQUESTED}
        if not profile.is_admin:
            clauses = build_provider_filter([user_id])["$or"]
            if include_unassigned:
                clauses.append(build_unassigned_filter())
            query["$or"] = clauses

        docs = await appointments.find_where(query)
        return AppointmentListResponse(appointments=[AppointmentSchema.from_document(doc) for doc in docs])
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error fetching pending appointments: {e}", exc_info=True)
        raise server_error("Failed to fetch pending appointments", e)


@router.post("/appointments", response_model=AppointmentResponse)
async def create_appointment(
    payload: AppointmentCreateRequest,
    user_id: CurrentUserDep,
    profile: AppointmentRequesterDep,
    appointments: AppointmentRepositoryDep,
    profiles: ProfileRepositoryDep,
):
    """
    Request an appointment.

    Patients book for themselves; admins book for the patient named in the body.
    New appointments always start as ``requested``.
    """
    try:
        body_patient = payload.body_patient_id()
        patient_id = body_patient if profile.is_admin else user_id
        if not patient_id:
            raise BadRequestError("patientId is required")
        if not profile.is_admin and body_patient and body_patient != patient_id:
            raise ForbiddenError("patientId must match auth user")
        if (payload.status or APPOINTMENT_REQUESTED) != APPOINTMENT_REQUESTED:
            raise BadRequestError("status must be requested")

        appointment_id = ObjectId()
        room_url = await _provider_room_url(profiles, payload.provider_id) if payload.provider_id else None
        now = datetime.now(timezone.utc)
        doc = {
            "_id": appointment_id,
            "patientId": patient_id,
            "patientName": payload.patient_name if payload.patient_name is not None else (profile.full_name or ""),
            "providerId": payload.provider_id,
            "providerName": payload.provider_name,
            "providerDoxyRoomUrl": room_url,
            "reason": payload.reason or "",
            "isVideo": payload.is_video is True,
            "specialistLevel": payload.specialist_level or "General",
            "specialty": payload.specialty,
            "requestedAt": now,
            "requestedStartAt": payload.preferred_start_at or payload.requested_start_at,
            "requestedEndAt": payload.preferred_end_at or payload.requested_end_at,
            "scheduledAt": payload.scheduled_at,
            "scheduledEndAt": payload.scheduled_end_at,
            "status": APPOINTMENT_REQUESTED,
            "channelName": channel_name_for(appointment_id),
            "createdAt": now,
            "updatedAt": now,
        }
        await appointments.create(doc)
        logger.info(f"[TELEMEDICINE] Created appointment {appointment_id} for patient {patient_id}")
        return AppointmentResponse(appointment=AppointmentSchema.from_document(doc))
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error creating appointment: {e}", exc_info=True)
        raise server_error("Failed to create appointment", e)


@router.patch("/appointments/{appointment_id}", response_model=OkResponse)
async def update_appointment(
    appointment_id: str,
    payload: AppointmentUpdateRequest,
    user_id: CurrentUserDep,
    profile: TelemedicineParticipantDep,
    appointments: AppointmentRepositoryDep,
    profiles: ProfileRepositoryDep,
):
    """
    Update an appointment.

    Admins and providers may change any appointment; assigning a provider
    attaches their video room link. Patients may only edit their own request
    while it is still ``requested``, and it stays ``requested``.
    """
    try:
        query = _by_id(appointment_id)
        if query is None:
            raise RecordNotFoundError("Appointment", appointment_id)

        changes = _appointment_changes(payload)
        legacy_provider = changes.pop("providerUid", None)
        changes["updatedAt"] = datetime.now(timezone.utc)

        if profile.is_patient:
            changes["status"] = APPOINTMENT_REQUESTED
            own_request = {**query, "status": APPOINTMENT_REQUESTED, **build_patient_filter([user_id])}
            if not await appointments.update_where(own_request, changes):
                raise ForbiddenError("Not allowed")
            logger.info(f"[TELEMEDICINE] Patient {user_id} updated appointment {appointment_id}")
            return OkResponse()

        if legacy_provider and not changes.get("providerId"):
            changes["providerId"] = legacy_provider
        if "providerId" in changes:
            if changes["providerId"]:
                if "providerDoxyRoomUrl" not in changes:
                    room_url = await _provider_room_url(profiles, changes["providerId"])
                    if room_url:
                        changes["providerDoxyRoomUrl"] = room_url
            elif changes["providerId"] is None:
                changes["providerDoxyRoomUrl"] = None

        if not await appointments.update_where(query, changes):
            raise RecordNotFoundError("Appointment", appointment_id)
        logger.info(f"[TELEMEDICINE] Updated appointment {appointment_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error updating appointment: {e}", exc_info=True)
        raise server_error("Failed to update appointment", e)


@router.post("/appointments/{appointment_id}/complete", response_model=OkResponse)
async def complete_appointment(
    appointment_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    appointments: AppointmentRepositoryDep,
    call_logs: CallLogRepositoryDep,
):
    """Mark an appointment completed and close its open call log, if any."""
    try:
        query = _by_id(appointment_id)
        appointment = await appointments.find_one_where(query) if query else None
        if not appointment:
            raise RecordNotFoundError("Appointment", appointment_id)

        assigned = first_present(appointment, "providerId", "providerUid")
        if not (profile.is_admin or (profile.is_care_provider and assigned == user_id)):
            raise ForbiddenError("Not allowed")

        now = datetime.now(timezone.utc)
        await appointments.update_where(query, {"status": APPOINTMENT_COMPLETED, "updatedAt": now})

        active = await call_logs.find_one_where({"appointmentId": appointment_id, "endedAt": None})
        if active:
            await call_logs.update_where(
                {"_id": active["_id"]},
                {
                    "endedAt": now,
                    "durationSeconds": call_duration_seconds(active.get("startedAt"), now),
                    "status": CALL_ENDED,
                    "updatedAt": now,
                },
            )
            logger.info(f"[TELEMEDICINE] Closed call log {active['_id']} for appointment {appointment_id}")

        logger.info(f"[TELEMEDICINE] Completed appointment {appointment_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error completing appointment: {e}", exc_info=True)
        raise server_error("Failed to complete appointment", e)


@router.delete("/appointments/{appointment_id}", response_model=OkResponse)
async def delete_appointment(
    appointment_id: str,
    profile: AdminDep,
    appointments: AppointmentRepositoryDep,
):
    try:
        query = _by_id(appointment_id)
        if query is None or not await appointments.delete_one_where(query):
            raise RecordNotFoundError("Appointment", appointment_id)
        logger.info(f"[TELEMEDICINE] Deleted appointment {appointment_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error deleting appointment: {e}", exc_info=True)
        raise server_error("Failed to delete appointment", e)


# ---------------------------------------------------------------------------
# /telemedicine/call-logs
# ---------------------------------------------------------------------------


@router.get("/call-logs", response_model=CallLogListResponse)
async def list_call_logs(
    user_id: CurrentUserDep,
    profile: TelemedicineParticipantDep,
    call_logs: CallLogRepositoryDep,
):
    try:
        if profile.is_admin:
            query: Dict[str, Any] = {}
        elif profile.is_patient:
            query = build_patient_filter([user_id])
        else:
            query = build_provider_filter([user_id])

        docs = await call_logs.find_where(query)
        return CallLogListResponse(call_logs=[CallLogSchema.from_document(doc) for doc in docs])
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error fetching call logs: {e}", exc_info=True)
        raise server_error("Failed to fetch call logs", e)


@router.post("/call-logs", response_model=CreatedResponse)
async def create_call_log(
    payload: CallLogCreateRequest,
    user_id: CurrentUserDep,
    profile: DoctorOrAdminDep,
    call_logs: CallLogRepositoryDep,
):
    """Start a call log. Doctors log their own calls; admins may log for any provider."""
    try:
        provider_id = payload.provider_id or payload.provider_uid or user_id
        if provider_id != user_id and not profile.is_admin:
            raise ForbiddenError("providerId must match auth user")

        now = datetime.now(timezone.utc)
        if payload.channel_name is not None:
            channel_name = payload.channel_name
        else:
            channel_name = channel_name_for(payload.appointment_id) if payload.appointment_id else ""
        doc = {
            "patientId": payload.patient_id if payload.patient_id is not None else payload.patient_uid,
            "providerId": provider_id,
            "appointmentId": payload.appointment_id,
            "channelName": channel_name,
            "isVideo": payload.is_video is True,
            "startedAt": payload.started_at or now,
            "endedAt": payload.ended_at,
            "durationSeconds": payload.duration_seconds,
            "status": payload.status or CALL_STARTED,
            "createdAt": now,
            "updatedAt": now,
        }
        record_id = await call_logs.create(doc)
        logger.info(f"[TELEMEDICINE] Created call log {record_id} for provider {provider_id}")
        return CreatedResponse(id=record_id)
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error creating call log: {e}", exc_info=True)
        raise server_error("Failed to create call log", e)


@router.patch("/call-logs/{log_id}", response_model=OkResponse)
async def update_call_log(
    log_id: str,
    payload: CallLogUpdateRequest,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    call_logs: CallLogRepositoryDep,
):
    """Update a call log; ending a call fills in its duration when none is given."""
    try:
        query = _by_id(log_id)
        existing = await call_logs.find_one_where(query) if query else None
        if not existing:
            raise RecordNotFoundError("Call log", log_id)

        host = first_present(existing, "providerId", "providerUid")
        if not (profile.is_admin or (profile.is_doctor and host == user_id)):
            raise ForbiddenError("Not allowed")

        changes = payload.model_dump(exclude_unset=True, by_alias=True)
        changes["updatedAt"] = datetime.now(timezone.utc)
        if changes.get("endedAt") and changes.get("durationSeconds") is None:
            started_at = changes.get("startedAt") or existing.get("startedAt")
            duration = call_duration_seconds(started_at, changes["endedAt"])
            if duration is not None:
                changes["durationSeconds"] = duration
            if not changes.get("status"):
                changes["status"] = CALL_ENDED

        await call_logs.update_where(query, changes)
        logger.info(f"[TELEMEDICINE] Updated call log {log_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error updating call log: {e}", exc_info=True)
        raise server_error("Failed to update call log", e)


@router.delete("/call-logs/{log_id}", response_model=OkResponse)
async def delete_call_log(
    log_id: str,
    profile: AdminDep,
    call_logs: CallLogRepositoryDep,
):
    try:
        query = _by_id(log_id)
        if query is None or not await call_logs.delete_one_where(query):
            raise RecordNotFoundError("Call log", log_id)
        logger.info(f"[TELEMEDICINE] Deleted call log {log_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error deleting call log: {e}", exc_info=True)
        raise server_error("Failed to delete call log", e)


# ---------------------------------------------------------------------------
# /telemedicine/availability
# ---------------------------------------------------------------------------


@router.get("/availability", response_model=List[AvailabilitySchema])
async def list_availability(
    profile: CurrentProfileDep,
    availability: AvailabilityRepositoryDep,
):
    """Every provider's published availability, most recently updated first."""
    try:
        docs = await availability.find_where({})
        return [AvailabilitySchema.from_document(doc) for doc in docs]
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error fetching availability: {e}", exc_info=True)
        raise server_error("Failed to fetch availability", e)


@router.get("/availability/{provider_id}", response_model=Optional[AvailabilitySchema])
async def get_availability(
    provider_id: str,
    profile: CurrentProfileDep,
    availability: AvailabilityRepositoryDep,
):
    """One provider's availability, or null when none is published."""
    try:
        doc = await availability.find_one_where(build_provider_filter([provider_id]))
        return AvailabilitySchema.from_document(doc) if doc else None
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error fetching availability for {provider_id}: {e}", exc_info=True)
        raise server_error("Failed to fetch availability", e)


@router.put("/availability/{provider_id}", response_model=OkResponse)
async def put_availability(
    provider_id: str,
    payload: AvailabilityUpdateRequest,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    availability: AvailabilityRepositoryDep,
):
    """Replace a provider's published slots, creating the record on first publish."""
    try:
        if not can_manage_availability(profile, user_id, provider_id):
            raise ForbiddenError("Not allowed")

        now = datetime.now(timezone.utc)
        doc = {
            "providerId": provider_id,
            "slots": sanitize_availability_slots(payload.slots),
            "updatedAt": now,
            "updatedByUid": user_id,
        }
        await availability.update_where(
            build_provider_filter([provider_id]), doc, on_insert={"createdAt": now}, upsert=True
        )
        logger.info(f"[TELEMEDICINE] Published {len(doc['slots'])} availability slots for {provider_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error saving availability: {e}", exc_info=True)
        raise server_error("Failed to save availability", e)


@router.delete("/availability/{provider_id}", response_model=OkResponse)
async def delete_availability(
    provider_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    availability: AvailabilityRepositoryDep,
):
    """Withdraw a provider's availability. Deleting nothing is not an error."""
    try:
        if not can_manage_availability(profile, user_id, provider_id):
            raise ForbiddenError("Not allowed")
        if await availability.delete_one_where(build_provider_filter([provider_id])):
            logger.info(f"[TELEMEDICINE] Deleted availability for {provider_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[TELEMEDICINE] Error deleting availability: {e}", exc_info=True)
        raise server_error("Failed to delete availability", e)
