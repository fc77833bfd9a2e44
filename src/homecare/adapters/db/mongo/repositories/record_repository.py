"""
MongoDB implementation of RecordRepository.

One instance serves one clinical collection (prescriptions, lab requests,
lab results, notes or one of the telemedicine collections). Documents are
returned as stored; mapping to the API shape happens in the schemas.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from homecare.application.ports.repositories.record_repo import RecordRepository
from homecare.core.container import ServiceNames, get_service
from homecare.core.exceptions import DatabaseError

from ..filters import build_patient_filter, parse_object_id

logger = logging.getLogger("homecare")

SortSpec = Sequence[Tuple[str, int]]

PRESCRIPTIONS_COLLECTION = "patient_prescriptions"
LAB_REQUESTS_COLLECTION = "lab_requests"
LAB_RESULTS_COLLECTION = "lab_results"
NOTES_COLLECTION = "patient_notes"
APPOINTMENTS_COLLECTION = "telemedicine_appointments"
CALL_LOGS_COLLECTION = "telemedicine_call_logs"
AVAILABILITY_COLLECTION = "telemedicine_provider_availability"


class MongoRecordRepository(RecordRepository):
    """MongoDB implementation of RecordRepository."""

    def __init__(
        self,
        collection_name: str,
        sort: SortSpec = (("createdAt", -1),),
        database: Optional[AsyncIOMotorDatabase] = None,
    ) -> None:
        self.collection_name = collection_name
        self.sort = list(sort)
        self._database = database

    @property
    def collection(self) -> AsyncIOMotorCollection:
        database = self._database or get_service(ServiceNames.DATABASE)
        return database[self.collection_name]

    @contextmanager
    def _driver_errors(self, action: str) -> Iterator[None]:
        """Re-raise driver failures as DatabaseError naming the collection."""
        try:
            yield
        except PyMongoError as e:
            logger.error(f"❌ Failed to {action} {self.collection_name}: {e}")
            raise DatabaseError(
                f"Failed to {action} {self.collection_name}",
                {"collection": self.collection_name, "error": str(e)},
            ) from e

    def _scoped(
        self, record_id: str, patient_id: str, extra: Optional[Mapping[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        """Filter for one record of one patient; None when ``record_id`` is not an ObjectId."""
        object_id = parse_object_id(record_id)
        if object_id is None:
            return None
        query: Dict[str, Any] = {"_id": object_id, "patientId": patient_id}
        if extra:
            query.update(extra)
        return query

    async def list_for_patients(
        self, patient_ids: Sequence[str], extra: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Find all records stored under any of the patient ids."""
        query = build_patient_filter(patient_ids)
        if extra:
            query = {**query, **extra}
        return await self.find_where(query)

    async def get(
        self, record_id: str, patient_id: str, extra: Optional[Mapping[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        query = self._scoped(record_id, patient_id, extra)
        if query is None:
            return None
        with self._driver_errors("read"):
            return await self.collection.find_one(query)

    async def create(self, document: Mapping[str, Any]) -> str:
        with self._driver_errors("insert into"):
            result = await self.collection.insert_one(dict(document))
        logger.info(f"Created {self.collection_name} record {result.inserted_id}")
        return str(result.inserted_id)

    async def update(
        self,
        record_id: str,
        patient_id: str,
        changes: Mapping[str, Any],
        history_entry: Optional[Mapping[str, Any]] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        query = self._scoped(record_id, patient_id, extra)
        if query is None:
            return False

        update: Dict[str, Any] = {"$set": dict(changes)}
        if history_entry is not None:
            update["$push"] = {"editHistory": dict(history_entry)}

        with self._driver_errors("update"):
            result = await self.collection.update_one(query, update)
        if result.matched_count:
            logger.info(f"Updated {self.collection_name} record {record_id}")
        return result.matched_count > 0

    async def delete(
        self, record_id: str, patient_id: str, extra: Optional[Mapping[str, Any]] = None
    ) -> bool:
        query = self._scoped(record_id, patient_id, extra)
        if query is None:
            return False
        deleted = await self.delete_one_where(query)
        if deleted:
            logger.info(f"Deleted {self.collection_name} record {record_id}")
        return deleted

    async def delete_where(self, patient_id: str, extra: Mapping[str, Any]) -> int:
        with self._driver_errors("delete from"):
            result = await self.collection.delete_many({"patientId": patient_id, **extra})
        return result.deleted_count

    async def find_where(self, query: Mapping[str, Any]) -> List[Dict[str, Any]]:
        with self._driver_errors("read"):
            cursor = self.collection.find(dict(query)).sort(self.sort)
            return await cursor.to_list(length=None)

    async def find_one_where(self, query: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        with self._driver_errors("read"):
            return await self.collection.find_one(dict(query), sort=self.sort)

    async def update_where(
        self,
        query: Mapping[str, Any],
        changes: Mapping[str, Any],
        on_insert: Optional[Mapping[str, Any]] = None,
        upsert: bool = False,
    ) -> bool:
        update: Dict[str, Any] = {"$set": dict(changes)}
        if on_insert:
            update["$setOnInsert"] = dict(on_insert)

        with self._driver_errors("update"):
            result = await self.collection.update_one(dict(query), update, upsert=upsert)
        if result.upserted_id is not None:
            logger.info(f"Created {self.collection_name} record {result.upserted_id}")
            return True
        return result.matched_count > 0

    async def delete_one_where(self, query: Mapping[str, Any]) -> bool:
        with self._driver_errors("delete from"):
            result = await self.collection.delete_one(dict(query))
        return result.deleted_count > 0
