"""
Patient chart entity as read from the chart store.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PatientChart:
    """Read-only view of a patient chart document.

    ``chart_id`` is the store-assigned document id. ``owner_uid`` is the
    secondary owner field that some deployments fill with the patient's auth id
    instead of ``auth_user_id``; the two linkage mechanisms are kept apart.
    """

    chart_id: str
    auth_user_id: Optional[str] = None
    owner_uid: Optional[str] = None
    phone: Optional[str] = None
