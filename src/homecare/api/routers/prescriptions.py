"""
Prescription endpoints.

- read: any signed-in user, across every id the patient's records may be filed under
- create/update: doctor or admin (updates also pass the prescription edit policy)
- delete: admin
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from ...domain.errors import DomainError
from ...domain.prescription_policy import check_prescription_edit
from ..deps import CurrentUserDep, CurrentProfileDep, PatientIdResolverDep, PrescriptionRepositoryDep
from ..errors import APIError, RecordNotFoundError
from ..guards import AdminDep, DoctorOrAdminDep
from ..schemas.common import CreatedResponse, ErrorResponse, OkResponse
from ..schemas.prescription import (
    PrescriptionCreateRequest,
    PrescriptionListResponse,
    PrescriptionSchema,
    PrescriptionUpdateRequest,
)
from ..utils.responses import server_error

router = APIRouter(prefix="/patients", tags=["Prescriptions"])
logger = logging.getLogger("homecare")


@router.get("/{patient_id}/prescriptions", response_model=PrescriptionListResponse)
async def list_prescriptions(
    patient_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    resolver: PatientIdResolverDep,
    prescriptions: PrescriptionRepositoryDep,
):
    """List the patient's prescriptions, newest first."""
    try:
        patient_ids = await resolver.resolve(patient_id, user_id, profile)
        docs = await prescriptions.list_for_patients(patient_ids.to_list())
        return PrescriptionListResponse(
            prescriptions=[PrescriptionSchema.from_document(doc) for doc in docs]
        )
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[PRESCRIPTIONS] Error fetching prescriptions: {e}", exc_info=True)
        raise server_error("Failed to fetch prescriptions", e)


@router.post("/{patient_id}/prescriptions", response_model=CreatedResponse)
async def create_prescription(
    patient_id: str,
    payload: PrescriptionCreateRequest,
    user_id: CurrentUserDep,
    profile: DoctorOrAdminDep,
    prescriptions: PrescriptionRepositoryDep,
):
    try:
        now = datetime.now(timezone.utc)
        doc = {
            "patientId": patient_id,
            "doctorId": payload.doctor_id if payload.doctor_id is not None else user_id,
            "doctorName": payload.doctor_name if payload.doctor_name is not None else profile.name_or(user_id),
            "medication": payload.medication or "",
            "dosage": payload.dosage or "",
            "frequency": payload.frequency or "",
            "duration": payload.duration or "",
            "instructions": payload.instructions or "",
            "status": payload.status or "active",
            "createdAt": now,
            "updatedAt": now,
            "updatedBy": None,
            "updatedByName": None,
            "isEdited": False,
            "editHistory": [],
        }
        record_id = await prescriptions.create(doc)
        logger.info(f"[PRESCRIPTIONS] Created prescription {record_id} for patient {patient_id}")
        return CreatedResponse(id=record_id)
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[PRESCRIPTIONS] Error creating prescription: {e}", exc_info=True)
        raise server_error("Failed to create prescription", e)


@router.patch(
    "/{patient_id}/prescriptions/{rx_id}",
    response_model=OkResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Edit not allowed"},
        404: {"model": ErrorResponse, "description": "Prescription not found"},
    },
)
async def update_prescription(
    patient_id: str,
    rx_id: str,
    payload: PrescriptionUpdateRequest,
    user_id: CurrentUserDep,
    profile: DoctorOrAdminDep,
    prescriptions: PrescriptionRepositoryDep,
):
    """
    Update a prescription.

    The prescribing doctor may change details within 30 minutes of creation and
    status at any time; other prescribers may only change status after 24 hours.
    """
    try:
        existing = await prescriptions.get(rx_id, patient_id)
        if not existing:
            raise RecordNotFoundError("Prescription", rx_id)

        changes = payload.model_dump(exclude_unset=True, by_alias=True)
        if not changes:
            return OkResponse()

        now = datetime.now(timezone.utc)
        check_prescription_edit(profile, user_id, existing, changes, now=now)

        update = {
            "updatedAt": now,
            "updatedBy": user_id,
            "updatedByName": profile.name_or(user_id),
            "isEdited": True,
            **changes,
        }
        if not await prescriptions.update(rx_id, patient_id, update, history_entry=update):
            raise RecordNotFoundError("Prescription", rx_id)

        logger.info(f"[PRESCRIPTIONS] Updated prescription {rx_id}")
        return OkResponse()
    except (APIError, DomainError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[PRESCRIPTIONS] Error updating prescription: {e}", exc_info=True)
        raise server_error("Failed to update prescription", e)


@router.delete("/{patient_id}/prescriptions/{rx_id}", response_model=OkResponse)
async def delete_prescription(
    patient_id: str,
    rx_id: str,
    profile: AdminDep,
    prescriptions: PrescriptionRepositoryDep,
):
    try:
        if not await prescriptions.delete(rx_id, patient_id):
            raise RecordNotFoundError("Prescription", rx_id)
        logger.info(f"[PRESCRIPTIONS] Deleted prescription {rx_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[PRESCRIPTIONS] Error deleting prescription: {e}", exc_info=True)
        raise server_error("Failed to delete prescription", e)
