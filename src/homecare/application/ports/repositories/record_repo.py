"""
Clinical record repository interface.

Records are plain documents (camelCase keys, ``_id`` as the record id) because
several generations of clients have written them with diverging field names.
Patient-scoped methods serve the chart records; the ``*_where`` methods take a raw
filter for collections keyed by something else (appointments, call logs,
provider availability).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence


class RecordRepository(ABC):
    """Abstract repository for one clinical record collection."""

    @abstractmethod
    async def list_for_patients(
        self, patient_ids: Sequence[str], extra: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Records whose ``patientId`` or ``patientUid`` is any of ``patient_ids``."""
        pass

    @abstractmethod
    async def get(
        self, record_id: str, patient_id: str, extra: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Find one record by id, scoped to a patient id."""
        pass

    @abstractmethod
    async def create(self, document: Mapping[str, Any]) -> str:
        """Insert a record and return its id."""
        pass

    @abstractmethod
    async def update(
        self,
        record_id: str,
        patient_id: str,
        changes: Mapping[str, Any],
        history_entry: Optional[Mapping[str, Any]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Apply ``changes`` (and append ``history_entry`` to editHistory). Returns whether a record matched."""
        pass

    @abstractmethod
    async def delete(
        self, record_id: str, patient_id: str, extra: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """Delete one record. Returns whether a record was deleted."""
        pass

    @abstractmethod
    async def delete_where(self, patient_id: str, extra: Mapping[str, Any]) -> int:
        """Delete every record of a patient matching ``extra``; returns the count."""
        pass

    @abstractmethod
    async def find_where(self, query: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Records matching a raw filter, in the collection's sort order."""
        pass

    @abstractmethod
    async def find_one_where(self, query: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """First record matching a raw filter in the collection's sort order."""
        pass

    @abstractmethod
    async def update_where(
        self,
        query: Mapping[str, Any],
        changes: Mapping[str, Any],
        on_insert: Optional[Mapping[str, Any]] = None,
        upsert: bool = False,
    ) -> bool:
        """Set ``changes`` on the first matching record, inserting one when ``upsert`` is set.

        Returns whether a record matched or was inserted.
        """
        pass

    @abstractmethod
    async def delete_one_where(self, query: Mapping[str, Any]) -> bool:
        """Delete the first record matching a raw filter. Returns whether one was deleted."""
        pass
