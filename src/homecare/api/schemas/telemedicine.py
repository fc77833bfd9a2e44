"""
Telemedicine appointment, call log and provider availability schemas.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from ...domain.telemedicine import APPOINTMENT_REQUESTED, CALL_STARTED, channel_name_for
from .common import CamelModel, first_present, text_or

When = Optional[Union[datetime, str]]


# ============================================================================
# APPOINTMENTS
# ============================================================================


class AppointmentCreateRequest(CamelModel):
    patient_id: Optional[str] = Field(None, description="Required when an admin books for a patient")
    patient_uid: Optional[str] = Field(None, description="Legacy name for patientId")
    patient_name: Optional[str] = None
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    reason: Optional[str] = None
    is_video: Optional[bool] = None
    specialist_level: Optional[str] = None
    specialty: Optional[str] = None
    preferred_start_at: Optional[datetime] = None
    preferred_end_at: Optional[datetime] = None
    requested_start_at: Optional[datetime] = None
    requested_end_at: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    status: Optional[str] = Field(None, description="Must be 'requested' when given")

    def body_patient_id(self) -> Optional[str]:
        return self.patient_id if self.patient_id is not None else self.patient_uid


class AppointmentUpdateRequest(CamelModel):
    """Only the fields present in the request body are changed."""

    patient_name: Optional[str] = None
    provider_id: Optional[str] = None
    provider_uid: Optional[str] = Field(None, description="Legacy name for providerId")
    provider_name: Optional[str] = None
    provider_doxy_room_url: Optional[str] = None
    reason: Optional[str] = None
    is_video: Optional[bool] = None
    specialist_level: Optional[str] = None
    specialty: Optional[str] = None
    preferred_start_at: Optional[datetime] = None
    preferred_end_at: Optional[datetime] = None
    requested_start_at: Optional[datetime] = None
    requested_end_at: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None
    scheduled_end_at: Optional[datetime] = None
    status: Optional[str] = None
    channel_name: Optional[str] = None


class AppointmentSchema(CamelModel):
    id: str
    patient_id: str = ""
    patient_name: str = ""
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    provider_doxy_room_url: Optional[str] = None
    reason: str = ""
    is_video: bool = False
    specialist_level: str = "General"
    specialty: Optional[str] = None
    requested_at: When = None
    scheduled_at: When = None
    scheduled_end_at: When = None
    requested_start_at: When = None
    requested_end_at: When = None
    status: str = APPOINTMENT_REQUESTED
    channel_name: str = ""

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AppointmentSchema":
        appointment_id = str(doc.get("_id"))
        provider = first_present(doc, "providerId", "providerUid")
        return cls(
            id=appointment_id,
            patient_id=text_or(first_present(doc, "patientId", "patientUid")),
            patient_name=text_or(doc.get("patientName")),
            provider_id=text_or(provider) if provider is not None else None,
            provider_name=doc.get("providerName"),
            provider_doxy_room_url=doc.get("providerDoxyRoomUrl"),
            reason=text_or(doc.get("reason")),
            is_video=doc.get("isVideo") is True,
            specialist_level=text_or(doc.get("specialistLevel"), "General"),
            specialty=doc.get("specialty"),
            requested_at=first_present(doc, "requestedAt", "createdAt") or datetime.now(timezone.utc),
            scheduled_at=doc.get("scheduledAt"),
            scheduled_end_at=doc.get("scheduledEndAt"),
            requested_start_at=doc.get("requestedStartAt"),
            requested_end_at=doc.get("requestedEndAt"),
            status=text_or(doc.get("status"), APPOINTMENT_REQUESTED),
            channel_name=text_or(doc.get("channelName"), channel_name_for(appointment_id)),
        )


class AppointmentListResponse(CamelModel):
    appointments: List[AppointmentSchema]


class AppointmentResponse(CamelModel):
    appointment: AppointmentSchema


# ============================================================================
# CALL LOGS
# ============================================================================


class CallLogCreateRequest(CamelModel):
    patient_id: Optional[str] = None
    patient_uid: Optional[str] = Field(None, description="Legacy name for patientId")
    provider_id: Optional[str] = Field(None, description="Defaults to the caller")
    provider_uid: Optional[str] = Field(None, description="Legacy name for providerId")
    appointment_id: Optional[str] = None
    channel_name: Optional[str] = None
    is_video: Optional[bool] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    status: Optional[str] = None


class CallLogUpdateRequest(CamelModel):
    """Only the fields present in the request body are changed."""

    appointment_id: Optional[str] = None
    channel_name: Optional[str] = None
    is_video: Optional[bool] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    status: Optional[str] = None


class CallLogSchema(CamelModel):
    id: str
    appointment_id: Optional[str] = None
    patient_id: Optional[str] = None
    provider_id: Optional[str] = None
    channel_name: str = ""
    is_video: bool = False
    started_at: When = None
    ended_at: When = None
    duration_seconds: Optional[int] = None
    status: str = CALL_STARTED
    created_at: When = None
    updated_at: When = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "CallLogSchema":
        appointment_id = doc.get("appointmentId")
        default_channel = channel_name_for(appointment_id) if appointment_id else ""
        now = datetime.now(timezone.utc)
        return cls(
            id=str(doc.get("_id")),
            appointment_id=appointment_id,
            patient_id=first_present(doc, "patientId", "patientUid"),
            provider_id=first_present(doc, "providerId", "providerUid"),
            channel_name=text_or(doc.get("channelName"), default_channel),
            is_video=doc.get("isVideo") is True,
            started_at=first_present(doc, "startedAt", "createdAt") or now,
            ended_at=doc.get("endedAt"),
            duration_seconds=doc.get("durationSeconds"),
            status=text_or(doc.get("status"), CALL_STARTED),
            created_at=doc.get("createdAt") or now,
            updated_at=doc.get("updatedAt"),
        )


class CallLogListResponse(CamelModel):
    call_logs: List[CallLogSchema]


# ============================================================================
# PROVIDER AVAILABILITY
# ============================================================================


class AvailabilityUpdateRequest(CamelModel):
    slots: Any = Field(None, description="Published slots; sanitised before storage")


class AvailabilitySchema(CamelModel):
    id: str
    provider_id: str = ""
    slots: List[Any] = Field(default_factory=list)
    updated_at: When = None
    updated_by_uid: Optional[str] = None
    created_at: When = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "AvailabilitySchema":
        slots = doc.get("slots")
        return cls(
            id=str(doc.get("_id")),
            provider_id=text_or(first_present(doc, "providerId", "providerUid")),
            slots=slots if isinstance(slots, list) else [],
            updated_at=doc.get("updatedAt"),
            updated_by_uid=doc.get("updatedByUid"),
            created_at=doc.get("createdAt"),
        )
