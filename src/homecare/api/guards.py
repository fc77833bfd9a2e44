"""
Role guards for record routes.

Each guard is a dependency that returns the caller's profile when the role is
allowed and answers 403 otherwise.
"""

from typing import Annotated, Any, Callable, Mapping

from fastapi import Depends, HTTPException

from ..domain.entities.profile import Profile
from ..domain.enums.roles import UserRole
from .deps import CurrentProfileDep


def require_roles(*roles: UserRole, message: str) -> Callable[[Profile], Profile]:
    allowed = frozenset(roles)

    def guard(profile: CurrentProfileDep) -> Profile:
        if profile.role not in allowed:
            raise HTTPException(status_code=403, detail=message)
        return profile

    return guard


require_admin = require_roles(UserRole.ADMIN, message="Admin only")
require_doctor_or_admin = require_roles(UserRole.ADMIN, UserRole.DOCTOR, message="Doctor only")
require_staff_for_notes = require_roles(
    UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE, message="Staff only"
)
require_result_uploader = require_roles(
    UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE, UserRole.PATIENT, message="Not allowed"
)
require_telemedicine_participant = require_result_uploader
require_care_team = require_roles(UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE, message="Not allowed")
require_appointment_requester = require_roles(UserRole.ADMIN, UserRole.PATIENT, message="Not allowed")


def can_modify_result(profile: Profile, caller_uid: str, existing: Mapping[str, Any]) -> bool:
    """Admins and doctors may change any result; nurses and patients only their own uploads."""
    if profile.is_admin or profile.is_doctor:
        return True
    owner = existing.get("uploadedById") or existing.get("uploadedByUid")
    return (profile.is_nurse or profile.is_patient) and owner == caller_uid


def can_manage_availability(profile: Profile, caller_uid: str, provider_id: str) -> bool:
    """Admins manage any provider's availability; doctors and nurses only their own."""
    return profile.is_admin or (profile.is_care_provider and provider_id == caller_uid)


AdminDep = Annotated[Profile, Depends(require_admin)]
DoctorOrAdminDep = Annotated[Profile, Depends(require_doctor_or_admin)]
NotesStaffDep = Annotated[Profile, Depends(require_staff_for_notes)]
ResultUploaderDep = Annotated[Profile, Depends(require_result_uploader)]
TelemedicineParticipantDep = Annotated[Profile, Depends(require_telemedicine_participant)]
CareTeamDep = Annotated[Profile, Depends(require_care_team)]
AppointmentRequesterDep = Annotated[Profile, Depends(require_appointment_requester)]
