"""
Lab request and lab result schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .common import CamelModel, EditTracking, first_present, text_or

TestsValue = Union[str, List[str]]


def tests_text(value: Any) -> str:
    """``tests`` is free text; older documents stored a list of test names."""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return ""


class LabRequestCreateRequest(CamelModel):
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    requested_at: Optional[datetime] = None
    tests: Optional[TestsValue] = Field(None, description="Requested tests as free text")
    type: Optional[str] = Field(None, description="Legacy single test type, used when tests is absent")
    clinical_notes: Optional[str] = None
    notes: Optional[str] = Field(None, description="Legacy name for clinicalNotes")
    priority: Optional[str] = None
    status: Optional[str] = None


class LabRequestUpdateRequest(CamelModel):
    """Only the fields present in the request body are changed."""

    tests: Optional[TestsValue] = None
    clinical_notes: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    requested_at: Optional[datetime] = None
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None


class LabRequestSchema(EditTracking):
    id: str
    patient_id: str = ""
    doctor_id: str = ""
    doctor_name: str = ""
    requested_at: Optional[Union[datetime, str]] = None
    tests: str = ""
    clinical_notes: str = ""
    priority: str = "routine"
    status: str = "requested"

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LabRequestSchema":
        tests = doc.get("tests")
        if tests is None:
            tests = doc.get("type")
        return cls(
            id=str(doc.get("_id")),
            patient_id=text_or(doc.get("patientId")),
            doctor_id=text_or(first_present(doc, "doctorId", "requestedByUid")),
            doctor_name=text_or(first_present(doc, "doctorName", "requestedByName", "requestedByUid")),
            requested_at=first_present(doc, "requestedAt", "createdAt"),
            tests=tests_text(tests),
            clinical_notes=text_or(first_present(doc, "clinicalNotes", "notes")),
            priority=text_or(doc.get("priority"), "routine"),
            status=text_or(doc.get("status"), "requested"),
            updated_at=doc.get("updatedAt"),
            updated_by=doc.get("updatedBy"),
            updated_by_name=doc.get("updatedByName"),
            is_edited=bool(doc.get("isEdited", False)),
            edit_history=doc.get("editHistory"),
        )


class LabRequestListResponse(CamelModel):
    lab_requests: List[LabRequestSchema]


class LabResultCreateRequest(CamelModel):
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    notes: Optional[str] = None


class LabResultUpdateRequest(CamelModel):
    """Only the fields present in the request body are changed."""

    file_url: Optional[str] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    notes: Optional[str] = None


class LabResultSchema(CamelModel):
    id: str
    patient_id: str = ""
    lab_request_id: str = ""
    uploaded_by_id: str = ""
    uploaded_by_name: str = ""
    uploaded_by_role: str = ""
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    content_type: Optional[str] = None
    notes: str = ""
    created_at: Optional[Union[datetime, str]] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "LabResultSchema":
        return cls(
            id=str(doc.get("_id")),
            patient_id=text_or(doc.get("patientId")),
            lab_request_id=text_or(doc.get("labRequestId")),
            uploaded_by_id=text_or(first_present(doc, "uploadedById", "uploadedByUid")),
            uploaded_by_name=text_or(first_present(doc, "uploadedByName", "uploadedByUid")),
            uploaded_by_role=text_or(doc.get("uploadedByRole")),
            file_url=doc.get("fileUrl"),
            file_name=doc.get("fileName"),
            content_type=doc.get("contentType"),
            notes=text_or(doc.get("notes")),
            created_at=doc.get("createdAt"),
        )


class LabResultListResponse(BaseModel):
    results: List[LabResultSchema]
