"""
User role enum shared by authorization and patient id resolution.
"""

from enum import Enum
from typing import Any


class UserRole(str, Enum):
    """Roles a profile can carry."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    NURSE = "nurse"
    PATIENT = "patient"
    PRESCRIBER = "prescriber"
    PROVIDER = "provider"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "UserRole":
        """Map a stored role value onto the enum; anything unrecognised is UNKNOWN."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        normalized = str(value).strip().lower()
        for role in cls:
            if role.value == normalized:
                return role
        return cls.UNKNOWN


STAFF_ROLES = frozenset({UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE})
PRESCRIBER_ROLES = frozenset({UserRole.DOCTOR, UserRole.PRESCRIBER, UserRole.PROVIDER})
# Staff who take telemedicine appointments and publish availability.
CARE_PROVIDER_ROLES = frozenset({UserRole.DOCTOR, UserRole.NURSE})
