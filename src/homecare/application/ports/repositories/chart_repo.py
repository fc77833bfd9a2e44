"""
Patient chart repository interface.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional

from ....domain.entities.chart import PatientChart


class ChartField(str, Enum):
    """Chart fields that support equality search."""

    PHONE = "phone"
    OWNER_ID = "owner_id"
    AUTH_USER_ID = "auth_user_id"


class ChartRepository(ABC):
    """Abstract read-only access to patient charts."""

    @abstractmethod
    async def get_by_id(self, chart_id: str) -> Optional[PatientChart]:
        """Return the chart whose document id is ``chart_id``, or None if it does not exist."""
        pass

    @abstractmethod
    async def find_by_field(self, field: ChartField, value: str, limit: int) -> List[PatientChart]:
        """Return up to ``limit`` charts whose ``field`` equals ``value``."""
        pass
