"""
Prescription schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .common import CamelModel, EditTracking, first_present, text_or


class PrescriptionCreateRequest(CamelModel):
    doctor_id: Optional[str] = Field(None, description="Prescribing doctor; defaults to the caller")
    doctor_name: Optional[str] = Field(None, description="Prescribing doctor's display name")
    medication: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None
    status: Optional[str] = None


class PrescriptionUpdateRequest(CamelModel):
    """Only the fields present in the request body are changed."""

    medication: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None
    instructions: Optional[str] = None
    status: Optional[str] = None


class PrescriptionSchema(EditTracking):
    id: str
    patient_id: str = ""
    doctor_id: str = ""
    doctor_name: str = ""
    created_at: Optional[Union[datetime, str]] = None
    medication: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    instructions: str = ""
    status: str = "active"

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PrescriptionSchema":
        """Map a stored prescription, including legacy ``prescribedBy*`` fields."""
        return cls(
            id=str(doc.get("_id")),
            patient_id=text_or(doc.get("patientId")),
            doctor_id=text_or(first_present(doc, "doctorId", "prescribedByUid")),
            doctor_name=text_or(first_present(doc, "doctorName", "prescribedByName", "prescribedByUid")),
            created_at=doc.get("createdAt"),
            medication=text_or(doc.get("medication")),
            dosage=text_or(doc.get("dosage")),
            frequency=text_or(doc.get("frequency")),
            duration=text_or(doc.get("duration")),
            instructions=text_or(doc.get("instructions")),
            status=text_or(doc.get("status"), "active"),
            updated_at=doc.get("updatedAt"),
            updated_by=doc.get("updatedBy"),
            updated_by_name=doc.get("updatedByName"),
            is_edited=bool(doc.get("isEdited", False)),
            edit_history=doc.get("editHistory"),
        )


class PrescriptionListResponse(BaseModel):
    prescriptions: List[PrescriptionSchema]
