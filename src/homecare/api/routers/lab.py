"""
Lab request and lab result endpoints.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException

from ..deps import (
    CurrentProfileDep,
    CurrentUserDep,
    LabRequestRepositoryDep,
    LabResultRepositoryDep,
    PatientIdResolverDep,
)
from ..errors import APIError, ForbiddenError, NotFoundError, RecordNotFoundError
from ..guards import AdminDep, DoctorOrAdminDep, ResultUploaderDep, can_modify_result
from ..schemas.common import CreatedResponse, OkResponse, text_or
from ..schemas.lab import (
    LabRequestCreateRequest,
    LabRequestListResponse,
    LabRequestSchema,
    LabRequestUpdateRequest,
    LabResultCreateRequest,
    LabResultListResponse,
    LabResultSchema,
    LabResultUpdateRequest,
    tests_text,
)
from ..utils.responses import server_error

router = APIRouter(prefix="/patients", tags=["Lab"])
logger = logging.getLogger("homecare")


# ---------------------------------------------------------------------------
# /patients/{patient_id}/lab_requests
# ---------------------------------------------------------------------------


@router.get("/{patient_id}/lab_requests", response_model=LabRequestListResponse)
async def list_lab_requests(
    patient_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    resolver: PatientIdResolverDep,
    lab_requests: LabRequestRepositoryDep,
):
    """List lab requests, most recently requested first."""
    try:
        patient_ids = await resolver.resolve(patient_id, user_id, profile)
        docs = await lab_requests.list_for_patients(patient_ids.to_list())
        return LabRequestListResponse(lab_requests=[LabRequestSchema.from_document(doc) for doc in docs])
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_REQUESTS] Error fetching lab requests: {e}", exc_info=True)
        raise server_error("Failed to fetch lab requests", e)


@router.post("/{patient_id}/lab_requests", response_model=CreatedResponse)
async def create_lab_request(
    patient_id: str,
    payload: LabRequestCreateRequest,
    user_id: CurrentUserDep,
    profile: DoctorOrAdminDep,
    lab_requests: LabRequestRepositoryDep,
):
    try:
        now = datetime.now(timezone.utc)
        tests = payload.tests if payload.tests is not None else payload.type
        clinical_notes = payload.clinical_notes if payload.clinical_notes is not None else payload.notes
        doc = {
            "patientId": patient_id,
            "doctorId": payload.doctor_id if payload.doctor_id is not None else user_id,
            "doctorName": payload.doctor_name if payload.doctor_name is not None else profile.name_or(user_id),
            "requestedAt": payload.requested_at or now,
            "tests": tests_text(tests),
            "clinicalNotes": text_or(clinical_notes),
            "priority": payload.priority or "routine",
            "status": payload.status or "requested",
            "createdAt": now,
            "updatedAt": now,
            "updatedBy": None,
            "updatedByName": None,
            "isEdited": False,
            "editHistory": [],
        }
        record_id = await lab_requests.create(doc)
        logger.info(f"[LAB_REQUESTS] Created lab request {record_id} for patient {patient_id}")
        return CreatedResponse(id=record_id)
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_REQUESTS] Error creating lab request: {e}", exc_info=True)
        raise server_error("Failed to create lab request", e)


@router.patch("/{patient_id}/lab_requests/{lab_id}", response_model=OkResponse)
async def update_lab_request(
    patient_id: str,
    lab_id: str,
    payload: LabRequestUpdateRequest,
    user_id: CurrentUserDep,
    profile: DoctorOrAdminDep,
    lab_requests: LabRequestRepositoryDep,
):
    try:
        changes = payload.model_dump(exclude_unset=True, by_alias=True)
        if "tests" in changes:
            changes["tests"] = tests_text(changes["tests"])
        if "clinicalNotes" in changes:
            changes["clinicalNotes"] = text_or(changes["clinicalNotes"])

        update = {
            "updatedAt": datetime.now(timezone.utc),
            "updatedBy": user_id,
            "updatedByName": profile.name_or(user_id),
            "isEdited": True,
            **changes,
        }
        if not await lab_requests.update(lab_id, patient_id, update, history_entry=update):
            raise RecordNotFoundError("Lab request", lab_id)

        logger.info(f"[LAB_REQUESTS] Updated lab request {lab_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_REQUESTS] Error updating lab request: {e}", exc_info=True)
        raise server_error("Failed to update lab request", e)


@router.delete("/{patient_id}/lab_requests/{lab_id}", response_model=OkResponse)
async def delete_lab_request(
    patient_id: str,
    lab_id: str,
    profile: AdminDep,
    lab_requests: LabRequestRepositoryDep,
    lab_results: LabResultRepositoryDep,
):
    """Delete a lab request together with its results."""
    try:
        if not await lab_requests.delete(lab_id, patient_id):
            raise RecordNotFoundError("Lab request", lab_id)

        removed = await lab_results.delete_where(patient_id, {"labRequestId": lab_id})
        logger.info(f"[LAB_REQUESTS] Deleted lab request {lab_id} and {removed} associated results")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_REQUESTS] Error deleting lab request: {e}", exc_info=True)
        raise server_error("Failed to delete lab request", e)


# ---------------------------------------------------------------------------
# /patients/{patient_id}/lab_requests/{lab_id}/results
# ---------------------------------------------------------------------------


@router.get("/{patient_id}/lab_requests/{lab_id}/results", response_model=LabResultListResponse)
async def list_lab_results(
    patient_id: str,
    lab_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    resolver: PatientIdResolverDep,
    lab_results: LabResultRepositoryDep,
):
    try:
        patient_ids = await resolver.resolve(patient_id, user_id, profile)
        docs = await lab_results.list_for_patients(patient_ids.to_list(), extra={"labRequestId": lab_id})
        return LabResultListResponse(results=[LabResultSchema.from_document(doc) for doc in docs])
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_RESULTS] Error fetching lab results: {e}", exc_info=True)
        raise server_error("Failed to fetch lab results", e)


@router.post("/{patient_id}/lab_requests/{lab_id}/results", response_model=CreatedResponse)
async def create_lab_result(
    patient_id: str,
    lab_id: str,
    payload: LabResultCreateRequest,
    user_id: CurrentUserDep,
    profile: ResultUploaderDep,
    lab_results: LabResultRepositoryDep,
):
    try:
        now = datetime.now(timezone.utc)
        doc = {
            "patientId": patient_id,
            "labRequestId": lab_id,
            "uploadedById": user_id,
            "uploadedByName": profile.name_or(user_id),
            "uploadedByRole": profile.role.value,
            "fileUrl": payload.file_url,
            "fileName": payload.file_name,
            "contentType": payload.content_type,
            "notes": payload.notes or "",
            "createdAt": now,
            "updatedAt": now,
        }
        record_id = await lab_results.create(doc)
        logger.info(f"[LAB_RESULTS] Created lab result {record_id} for lab request {lab_id}")
        return CreatedResponse(id=record_id)
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_RESULTS] Error creating lab result: {e}", exc_info=True)
        raise server_error("Failed to create lab result", e)


async def _modifiable_result(lab_results, patient_id: str, lab_id: str, result_id: str, profile, user_id: str) -> dict:
    existing = await lab_results.get(result_id, patient_id, extra={"labRequestId": lab_id})
    if not existing:
        raise NotFoundError("Not found", {"record_id": result_id})
    if not can_modify_result(profile, user_id, existing):
        raise ForbiddenError("Not allowed")
    return existing


@router.patch("/{patient_id}/lab_requests/{lab_id}/results/{result_id}", response_model=OkResponse)
async def update_lab_result(
    patient_id: str,
    lab_id: str,
    result_id: str,
    payload: LabResultUpdateRequest,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    lab_results: LabResultRepositoryDep,
):
    try:
        await _modifiable_result(lab_results, patient_id, lab_id, result_id, profile, user_id)
        update = {
            "updatedAt": datetime.now(timezone.utc),
            **payload.model_dump(exclude_unset=True, by_alias=True),
        }
        await lab_results.update(result_id, patient_id, update, extra={"labRequestId": lab_id})
        logger.info(f"[LAB_RESULTS] Updated lab result {result_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_RESULTS] Error updating lab result: {e}", exc_info=True)
        raise server_error("Failed to update lab result", e)


@router.delete("/{patient_id}/lab_requests/{lab_id}/results/{result_id}", response_model=OkResponse)
async def delete_lab_result(
    patient_id: str,
    lab_id: str,
    result_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    lab_results: LabResultRepositoryDep,
):
    try:
        await _modifiable_result(lab_results, patient_id, lab_id, result_id, profile, user_id)
        await lab_results.delete(result_id, patient_id, extra={"labRequestId": lab_id})
        logger.info(f"[LAB_RESULTS] Deleted lab result {result_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[LAB_RESULTS] Error deleting lab result: {e}", exc_info=True)
        raise server_error("Failed to delete lab result", e)
