"""
Edit policy for prescriptions.

- Admin: can edit anything at any time.
- Prescribing doctor (creator): details within 30 minutes, status at any time.
- Other prescribers: status only, and only 24 hours after creation.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from .entities.profile import Profile
from .errors import EditNotAllowedError

PRESCRIPTION_DETAIL_FIELDS = ("medication", "dosage", "frequency", "duration", "instructions")
PRESCRIPTION_EDITABLE_FIELDS = PRESCRIPTION_DETAIL_FIELDS + ("status",)

CREATOR_EDIT_WINDOW = timedelta(minutes=30)
STATUS_HANDOVER_AGE = timedelta(hours=24)


def as_utc(value: Any) -> Optional[datetime]:
    """Coerce a stored timestamp (datetime or ISO string) to an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def prescriber_of(existing: Mapping[str, Any]) -> Optional[str]:
    value = existing.get("doctorId") or existing.get("prescribedByUid") or existing.get("prescriberId")
    return str(value) if value else None


def check_prescription_edit(
    profile: Profile,
    caller_uid: str,
    existing: Mapping[str, Any],
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> None:
    """Raise ``EditNotAllowedError`` when ``changes`` may not be applied by the caller."""
    if profile.is_admin:
        return

    if not profile.is_prescriber:
        raise EditNotAllowedError("Not allowed", "Not allowed")

    now = as_utc(now) or datetime.now(timezone.utc)
    created_at = as_utc(existing.get("createdAt"))
    age = (now - created_at) if created_at else None
    within_window = age is not None and age <= CREATOR_EDIT_WINDOW
    after_handover = age is not None and age >= STATUS_HANDOVER_AGE

    changing_details = any(field in changes for field in PRESCRIPTION_DETAIL_FIELDS)
    changing_status = "status" in changes

    if prescriber_of(existing) == str(caller_uid):
        if changing_details and not within_window:
            raise EditNotAllowedError(
                "Edit window expired",
                "Edit window expired. After 30 minutes, only status can be changed.",
            )
        return

    if changing_details:
        raise EditNotAllowedError(
            "Not allowed",
            "Only the prescribing doctor can edit medication details.",
        )
    if changing_status and not after_handover:
        raise EditNotAllowedError(
            "Edit window",
            "Only the prescribing doctor can change status within the first 24 hours.",
        )
