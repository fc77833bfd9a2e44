"""
Patient note endpoints.

- read: any signed-in user
- create/update: nurse, doctor or admin
- delete: admin
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ..deps import CurrentProfileDep, CurrentUserDep, NoteRepositoryDep, PatientIdResolverDep
from ..errors import APIError, BadRequestError, RecordNotFoundError
from ..guards import AdminDep, NotesStaffDep
from ..schemas.common import OkResponse
from ..schemas.note import NoteCreateRequest, NoteListResponse, NoteResponse, NoteSchema, NoteUpdateRequest
from ..utils.responses import server_error

router = APIRouter(prefix="/patients", tags=["Notes"])
logger = logging.getLogger("homecare")


def _previous_state(existing: Dict[str, Any]) -> Dict[str, Any]:
    """Snapshot of the editable note fields before an update."""
    return {
        "noteText": existing.get("noteText") or existing.get("text") or "",
        "visitDate": existing.get("visitDate") or existing.get("createdAt"),
        "vitals": existing.get("vitals") or {},
        "flagged": existing.get("flagged", False),
    }


@router.get("/{patient_id}/notes", response_model=NoteListResponse)
async def list_notes(
    patient_id: str,
    user_id: CurrentUserDep,
    profile: CurrentProfileDep,
    resolver: PatientIdResolverDep,
    notes: NoteRepositoryDep,
):
    try:
        patient_ids = await resolver.resolve(patient_id, user_id, profile)
        docs = await notes.list_for_patients(patient_ids.to_list())
        return NoteListResponse(notes=[NoteSchema.from_document(doc) for doc in docs])
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[NOTES] Error fetching notes: {e}", exc_info=True)
        raise server_error("Failed to fetch notes", e)


@router.post("/{patient_id}/notes", response_model=NoteResponse)
async def create_note(
    patient_id: str,
    payload: NoteCreateRequest,
    user_id: CurrentUserDep,
    profile: NotesStaffDep,
    notes: NoteRepositoryDep,
):
    note_text = payload.body_text()
    if not note_text:
        raise BadRequestError("noteText is required")

    try:
        now = datetime.now(timezone.utc)
        author_name = payload.author_name if payload.author_name is not None else (profile.display_name or "")
        note = {
            "patientId": patient_id,
            "authorId": user_id,
            "authorUid": user_id,
            "authorName": author_name,
            "role": profile.role.value,
            "createdAt": now,
            "visitDate": payload.visit_date or now,
            "vitals": payload.vitals or {},
            "noteText": note_text,
            "flagged": payload.flagged is True,
            "updatedAt": now,
            "updatedBy": user_id,
            "updatedByName": author_name,
            "isEdited": False,
            "editHistory": [],
        }
        record_id = await notes.create(note)
        logger.info(f"[NOTES] Created note {record_id} for patient {patient_id}")
        return NoteResponse(note=NoteSchema.from_document({**note, "_id": record_id}))
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[NOTES] Error creating note: {e}", exc_info=True)
        raise server_error("Failed to create note", e)


@router.patch("/{patient_id}/notes/{note_id}", response_model=OkResponse)
async def update_note(
    patient_id: str,
    note_id: str,
    payload: NoteUpdateRequest,
    user_id: CurrentUserDep,
    profile: NotesStaffDep,
    notes: NoteRepositoryDep,
):
    """Update a note, recording its previous state in the edit history."""
    update: Dict[str, Any] = {}
    if payload.has_text():
        note_text = payload.body_text()
        if not note_text:
            raise BadRequestError("noteText cannot be empty")
        update["noteText"] = note_text
    if payload.visit_date is not None:
        update["visitDate"] = payload.visit_date
    if payload.vitals is not None:
        update["vitals"] = payload.vitals
    if payload.flagged is not None:
        update["flagged"] = payload.flagged is True

    try:
        existing = await notes.get(note_id, patient_id)
        if not existing:
            raise RecordNotFoundError("Note", note_id)

        now = datetime.now(timezone.utc)
        editor_name = profile.display_name or ""
        update.update(
            {
                "updatedAt": now,
                "updatedBy": user_id,
                "updatedByName": editor_name,
                "isEdited": True,
            }
        )
        history_entry = {
            "at": now,
            "by": user_id,
            "byName": editor_name,
            "previous": _previous_state(existing),
        }
        if not await notes.update(note_id, patient_id, update, history_entry=history_entry):
            raise RecordNotFoundError("Note", note_id)

        logger.info(f"[NOTES] Updated note {note_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[NOTES] Error updating note: {e}", exc_info=True)
        raise server_error("Failed to update note", e)


@router.delete("/{patient_id}/notes/{note_id}", response_model=OkResponse)
async def delete_note(
    patient_id: str,
    note_id: str,
    profile: AdminDep,
    notes: NoteRepositoryDep,
):
    try:
        if not await notes.delete(note_id, patient_id):
            raise RecordNotFoundError("Note", note_id)
        logger.info(f"[NOTES] Deleted note {note_id}")
        return OkResponse()
    except (APIError, HTTPException):
        raise
    except Exception as e:
        logger.error(f"[NOTES] Error deleting note: {e}", exc_info=True)
        raise server_error("Failed to delete note", e)
