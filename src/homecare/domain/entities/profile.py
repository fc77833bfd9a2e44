"""
Caller profile entity.

Profiles are loaded from the ``users`` collection by the profile repository and
validated here, so the rest of the application only ever sees a closed role
enumeration and normalised optional strings.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..enums.roles import CARE_PROVIDER_ROLES, PRESCRIBER_ROLES, STAFF_ROLES, UserRole


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Profile:
    """Authenticated caller's profile."""

    role: UserRole = UserRole.UNKNOWN
    linked_patient_id: Optional[str] = None
    phone: Optional[str] = None
    full_name: Optional[str] = None
    display_name: Optional[str] = None
    is_verified: bool = False
    is_active: bool = False
    doxy_room_url: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", UserRole.parse(self.role))
        object.__setattr__(self, "linked_patient_id", _clean(self.linked_patient_id))
        object.__setattr__(self, "phone", _clean(self.phone))

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "Profile":
        """Build a profile from a stored user document."""
        return cls(
            role=UserRole.parse(data.get("role")),
            linked_patient_id=data.get("patientId"),
            phone=data.get("phone"),
            full_name=_clean(data.get("fullName")),
            display_name=_clean(data.get("displayName") or data.get("name")),
            is_verified=data.get("isVerified") is True,
            is_active=data.get("isActive") is True,
            doxy_room_url=_clean(
                data.get("doxyRoomUrl") or data.get("doxyRoomURL") or data.get("doxyUrl") or data.get("doxyURL")
            ),
        )

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_doctor(self) -> bool:
        return self.role is UserRole.DOCTOR

    @property
    def is_nurse(self) -> bool:
        return self.role is UserRole.NURSE

    @property
    def is_patient(self) -> bool:
        return self.role is UserRole.PATIENT

    @property
    def is_prescriber(self) -> bool:
        return self.role in PRESCRIBER_ROLES

    @property
    def is_care_provider(self) -> bool:
        return self.role in CARE_PROVIDER_ROLES

    @property
    def is_verified_staff(self) -> bool:
        return self.role in STAFF_ROLES and self.is_verified and self.is_active

    def name_or(self, fallback: str) -> str:
        """Best display name for audit fields."""
        return self.full_name or self.display_name or fallback
