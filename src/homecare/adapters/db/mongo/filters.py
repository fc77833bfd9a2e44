"""
Query builders for clinical record collections.

Records have been written with the patient identifier under either
``patientId`` or the older ``patientUid`` key. Telemedicine records do the same
for the provider with ``providerId`` and ``providerUid``.
"""

from typing import Any, Dict, Iterable, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId

PATIENT_ID_KEYS = ("patientId", "patientUid")
PROVIDER_ID_KEYS = ("providerId", "providerUid")


def _any_key_filter(keys: Sequence[str], values: Iterable[str]) -> Dict[str, Any]:
    clauses = [{key: value} for value in values for key in keys]
    if not clauses:
        # An empty $or is rejected by MongoDB; match nothing instead.
        return {"_id": {"$in": []}}
    return {"$or": clauses}


def build_patient_filter(patient_ids: Iterable[str]) -> Dict[str, Any]:
    """``$or`` filter matching a record stored under any of ``patient_ids``."""
    return _any_key_filter(PATIENT_ID_KEYS, patient_ids)


def build_provider_filter(provider_ids: Iterable[str]) -> Dict[str, Any]:
    """``$or`` filter matching a record assigned to any of ``provider_ids``."""
    return _any_key_filter(PROVIDER_ID_KEYS, provider_ids)


def build_unassigned_filter() -> Dict[str, Any]:
    """Records with no provider under either key (null or missing)."""
    return {key: None for key in PROVIDER_ID_KEYS}


def parse_object_id(value: str) -> Optional[ObjectId]:
    """ObjectId for ``value``, or None if it is not a valid id."""
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
