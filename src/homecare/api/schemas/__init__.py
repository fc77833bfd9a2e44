"""
API schemas package.
"""

# Common schemas
from .common import ApiResponse, CreatedResponse, ErrorResponse, OkResponse

# Record schemas
from .lab import (
    LabRequestCreateRequest,
    LabRequestListResponse,
    LabRequestSchema,
    LabRequestUpdateRequest,
    LabResultCreateRequest,
    LabResultListResponse,
    LabResultSchema,
    LabResultUpdateRequest,
)
from .note import NoteCreateRequest, NoteListResponse, NoteResponse, NoteSchema, NoteUpdateRequest
from .prescription import (
    PrescriptionCreateRequest,
    PrescriptionListResponse,
    PrescriptionSchema,
    PrescriptionUpdateRequest,
)
from .telemedicine import (
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

__all__ = [
    "ApiResponse",
    "CreatedResponse",
    "ErrorResponse",
    "OkResponse",
    "LabRequestCreateRequest",
    "LabRequestListResponse",
    "LabRequestSchema",
    "LabRequestUpdateRequest",
    "LabResultCreateRequest",
    "LabResultListResponse",
    "LabResultSchema",
    "LabResultUpdateRequest",
    "NoteCreateRequest",
    "NoteListResponse",
    "NoteResponse",
    "NoteSchema",
    "NoteUpdateRequest",
    "PrescriptionCreateRequest",
    "PrescriptionListResponse",
    "PrescriptionSchema",
    "PrescriptionUpdateRequest",
    "AppointmentCreateRequest",
    "AppointmentListResponse",
    "AppointmentResponse",
    "AppointmentSchema",
    "AppointmentUpdateRequest",
    "AvailabilitySchema",
    "AvailabilityUpdateRequest",
    "CallLogCreateRequest",
    "CallLogListResponse",
    "CallLogSchema",
    "CallLogUpdateRequest",
]
