"""
Telemedicine record rules.

- Every appointment has a video channel named after its id.
- Call durations are whole seconds and never negative.
- Published availability is reduced to a fixed slot shape before it is stored.
"""

from typing import Any, Dict, List, Optional

from .prescription_policy import as_utc

APPOINTMENT_REQUESTED = "requested"
APPOINTMENT_COMPLETED = "completed"
CALL_STARTED = "started"
CALL_ENDED = "ended"

CHANNEL_PREFIX = "fausford-"


def channel_name_for(appointment_id: Any) -> str:
    return f"{CHANNEL_PREFIX}{appointment_id}"


def call_duration_seconds(started_at: Any, ended_at: Any) -> Optional[int]:
    """Seconds between two timestamps; None when either is missing or unparseable."""
    start = as_utc(started_at)
    end = as_utc(ended_at)
    if start is None or end is None:
        return None
    return max(0, int((end - start).total_seconds()))


def _calendar_slot(entry: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(entry, dict) or not entry.get("startAt") or not entry.get("endAt"):
        return None
    start = as_utc(entry["startAt"])
    end = as_utc(entry["endAt"])
    if start is None or end is None:
        return None
    return {**entry, "startAt": start, "endAt": end}


def sanitize_availability_slots(raw: Any) -> List[Dict[str, Any]]:
    """
    Keep only the recognised parts of each published slot.

    A slot may carry a ``weekly`` schedule map, ``specialties``, a
    ``providerLevel`` and dated ``calendarSlots``. Anything else is dropped, and
    slots left empty (for example ``{}``) are not stored at all.
    """
    if not isinstance(raw, list):
        return []

    cleaned: List[Dict[str, Any]] = []
    for slot in raw:
        if not isinstance(slot, dict):
            continue
        out: Dict[str, Any] = {}
        if isinstance(slot.get("weekly"), dict):
            out["weekly"] = slot["weekly"]
        if isinstance(slot.get("specialties"), list):
            out["specialties"] = slot["specialties"]
        if isinstance(slot.get("providerLevel"), str):
            out["providerLevel"] = slot["providerLevel"]

        calendar = slot.get("calendarSlots")
        if isinstance(calendar, list):
            dated = [parsed for parsed in map(_calendar_slot, calendar) if parsed is not None]
            if dated:
                out["calendarSlots"] = dated

        if out:
            cleaned.append(out)
    return cleaned

