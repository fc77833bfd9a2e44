"""
Common schemas shared by all routers.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# ============================================================================
# BASE RESPONSE SCHEMAS
# ============================================================================


class ApiResponse(BaseModel, Generic[T]):
    success: bool = Field(True, description="Operation success status")
    message: str = Field("", description="Response message")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Response timestamp",
    )
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Request ID for tracking")
    data: Optional[T] = Field(None, description="Response payload")


class ErrorResponse(BaseModel):
    """Standardized error response schema."""

    success: bool = Field(False, description="Operation success status")
    error: str = Field(..., description="Error type/code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp",
    )
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Request ID for tracking")


class OkResponse(BaseModel):
    """Acknowledgement for writes that return no record."""

    ok: bool = True


class CreatedResponse(BaseModel):
    """Id of a newly created record."""

    id: str


# ============================================================================
# RECORD SCHEMA BASES
# ============================================================================


class CamelModel(BaseModel):
    """Base for record payloads exchanged with clients in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EditTracking(CamelModel):
    """Audit fields maintained on edited records."""

    updated_at: Optional[Union[datetime, str]] = None
    updated_by: Optional[str] = None
    updated_by_name: Optional[str] = None
    is_edited: bool = False
    edit_history: Optional[list] = None


def text_or(value: Any, default: str = "") -> str:
    """Stored scalar as text; legacy documents are not consistently typed."""
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def first_present(doc: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key present (and not None) in ``doc``."""
    for key in keys:
        if doc.get(key) is not None:
            return doc[key]
    return None
