"""
Core utilities.
"""

from .patient_id_cache import CachedPatientIdResolver, PatientIdCache
from .patient_id_resolver import LookupResult, PatientIdResolver, ResolvedPatientIds

__all__ = [
    "CachedPatientIdResolver",
    "LookupResult",
    "PatientIdCache",
    "PatientIdResolver",
    "ResolvedPatientIds",
]
