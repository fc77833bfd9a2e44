"""MongoDB Beanie model for user profile documents."""

from datetime import datetime
from typing import Optional

from beanie import Document
from pydantic import ConfigDict, Field


class UserProfileMongo(Document):
    """User profile keyed by the identity provider's user id."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = Field(default=None, description="Auth user id")
    role: Optional[str] = Field(None, description="Role name (admin, doctor, nurse, patient, ...)")
    patient_id: Optional[str] = Field(None, alias="patientId", description="Linked legacy patient id")
    phone: Optional[str] = Field(None, description="Phone number")
    email: Optional[str] = Field(None, description="Email address")
    full_name: Optional[str] = Field(None, alias="fullName")
    display_name: Optional[str] = Field(None, alias="displayName")
    name: Optional[str] = Field(None)
    is_verified: Optional[bool] = Field(None, alias="isVerified")
    is_active: Optional[bool] = Field(None, alias="isActive")
    doxy_room_url: Optional[str] = Field(None, alias="doxyRoomUrl", description="Provider video room link")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Settings:
        name = "users"
        indexes = [
            "role",
            "phone",
        ]
