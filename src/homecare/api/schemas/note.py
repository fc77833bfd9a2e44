"""
Patient note schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .common import CamelModel, EditTracking, first_present, text_or


class NoteCreateRequest(CamelModel):
    note_text: Optional[str] = Field(None, description="Note body; required and non-blank")
    text: Optional[str] = Field(None, description="Legacy name for noteText")
    visit_date: Optional[datetime] = None
    vitals: Optional[Dict[str, Any]] = None
    flagged: Optional[bool] = None
    author_name: Optional[str] = None

    def body_text(self) -> str:
        raw = self.note_text if self.note_text is not None else self.text
        return (raw or "").strip()


class NoteUpdateRequest(CamelModel):
    note_text: Optional[str] = None
    text: Optional[str] = None
    visit_date: Optional[datetime] = None
    vitals: Optional[Dict[str, Any]] = None
    flagged: Optional[bool] = None

    def has_text(self) -> bool:
        return self.note_text is not None or self.text is not None

    def body_text(self) -> str:
        raw = self.note_text if self.note_text is not None else self.text
        return (raw or "").strip()


class NoteSchema(EditTracking):
    id: str
    patient_id: str = ""
    author_id: str = ""
    author_uid: str = ""
    author_name: str = ""
    role: str = ""
    created_at: Optional[Union[datetime, str]] = None
    visit_date: Optional[Union[datetime, str]] = None
    vitals: Dict[str, Any] = Field(default_factory=dict)
    note_text: str = ""
    flagged: bool = False

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "NoteSchema":
        author = text_or(first_present(doc, "authorId", "authorUid"))
        return cls(
            id=str(doc.get("_id")),
            patient_id=text_or(doc.get("patientId")),
            author_id=author,
            author_uid=text_or(doc.get("authorUid"), author),
            author_name=text_or(doc.get("authorName")),
            role=text_or(doc.get("role")),
            created_at=doc.get("createdAt"),
            visit_date=doc.get("visitDate"),
            vitals=doc.get("vitals") or {},
            note_text=text_or(first_present(doc, "noteText", "text")),
            flagged=doc.get("flagged") is True,
            updated_at=doc.get("updatedAt"),
            updated_by=doc.get("updatedBy"),
            updated_by_name=doc.get("updatedByName"),
            is_edited=bool(doc.get("isEdited", False)),
            edit_history=doc.get("editHistory"),
        )


class NoteListResponse(BaseModel):
    notes: List[NoteSchema]


class NoteResponse(BaseModel):
    note: NoteSchema
