"""
MongoDB implementation of ProfileRepository.
"""

from typing import Optional

from homecare.application.ports.repositories.profile_repo import ProfileRepository
from homecare.domain.entities.profile import Profile

from ..models.user_profile_m import UserProfileMongo


class MongoProfileRepository(ProfileRepository):
    """MongoDB implementation of ProfileRepository."""

    async def get_profile(self, uid: str) -> Optional[Profile]:
        """Load the profile stored under ``uid``."""
        profile_mongo = await UserProfileMongo.get(uid)
        if not profile_mongo:
            return None
        return self._mongo_to_domain(profile_mongo)

    def _mongo_to_domain(self, profile_mongo: UserProfileMongo) -> Profile:
        """Convert MongoDB model to domain entity."""
        return Profile.from_document(profile_mongo.model_dump(by_alias=True))
