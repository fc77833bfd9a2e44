"""
Profile repository interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ....domain.entities.profile import Profile


class ProfileRepository(ABC):
    """Abstract repository for caller profiles."""

    @abstractmethod
    async def get_profile(self, uid: str) -> Optional[Profile]:
        """Return the profile for an auth id, or None when no profile is stored."""
        pass
