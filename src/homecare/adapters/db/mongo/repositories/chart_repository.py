"""
MongoDB implementation of ChartRepository.

Chart documents predate the ODM models and some deployments store the owner's
auth id under a field literally named ``id``, so the collection is read with the
raw Motor driver rather than through a Beanie document.
"""

from typing import Any, Dict, List, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from homecare.application.ports.repositories.chart_repo import ChartField, ChartRepository
from homecare.core.config import ChartStoreSettings, get_settings
from homecare.core.container import ServiceNames, get_service
from homecare.domain.entities.chart import PatientChart

from ..filters import parse_object_id


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class MongoChartRepository(ChartRepository):
    """MongoDB implementation of ChartRepository."""

    def __init__(
        self,
        database: Optional[AsyncIOMotorDatabase] = None,
        settings: Optional[ChartStoreSettings] = None,
    ) -> None:
        self._database = database
        self._settings = settings or get_settings().charts

    @property
    def collection(self) -> AsyncIOMotorCollection:
        database = self._database or get_service(ServiceNames.DATABASE)
        return database[self._settings.collection]

    def _field_name(self, field: ChartField) -> str:
        return {
            ChartField.PHONE: self._settings.phone_field,
            ChartField.OWNER_ID: self._settings.owner_id_field,
            ChartField.AUTH_USER_ID: self._settings.auth_user_id_field,
        }[field]

    async def get_by_id(self, chart_id: str) -> Optional[PatientChart]:
        """Find a chart by document id; ids may be stored as strings or ObjectIds."""
        candidates: List[Any] = [chart_id]
        object_id = parse_object_id(chart_id)
        if object_id is not None:
            candidates.append(object_id)

        doc = await self.collection.find_one({"_id": {"$in": candidates}})
        if not doc:
            return None
        return self._doc_to_domain(doc)

    async def find_by_field(self, field: ChartField, value: str, limit: int) -> List[PatientChart]:
        """Find up to ``limit`` charts whose ``field`` equals ``value``."""
        query: Dict[str, Any] = {self._field_name(field): value}
        cursor = self.collection.find(query).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [self._doc_to_domain(doc) for doc in docs]

    def _doc_to_domain(self, doc: Mapping[str, Any]) -> PatientChart:
        """Convert a chart document to domain entity."""
        return PatientChart(
            chart_id=str(doc["_id"]),
            auth_user_id=_as_text(doc.get(self._settings.auth_user_id_field)),
            owner_uid=_as_text(doc.get(self._settings.owner_id_field)),
            phone=_as_text(doc.get(self._settings.phone_field)),
        )
