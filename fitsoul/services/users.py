"""User document mirror in the users collection."""

from datetime import datetime, timezone
from typing import Any
from motor.motor_asyncio import AsyncIOMotorDatabase

from fitsoul.models.user import User, UserProfile


def epoch_millis(moment: datetime | None = None) -> int:
    moment = moment or datetime.now(timezone.utc)
    return int(moment.timestamp() * 1000)


class UserStore:
    """Service for the Firestore-style ``users/{uid}`` documents.

    Documents are keyed by uid (``_id``) and carry camelCase fields so other
    clients of the collection see the same layout the mobile app writes.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db.users

    async def mirror_user(self, user: User, now: datetime | None = None) -> None:
        """Upsert identity fields for a freshly authenticated user.

        ``createdAt`` is only written when the document is first inserted;
        ``lastLoginAt`` is refreshed on every call.
        """
        timestamp = epoch_millis(now)
        await self.users.update_one(
            {"_id": user.uid},
            {
                "$set": {
                    "uid": user.uid,
                    "email": user.email,
                    "displayName": user.display_name,
                    "lastLoginAt": timestamp,
                },
                "$setOnInsert": {"createdAt": timestamp},
            },
            upsert=True,
        )

    async def update_profile(self, uid: str, profile: UserProfile) -> None:
        """Store onboarding metrics under ``profile``."""
        await self.users.update_one(
            {"_id": uid},
            {"$set": {"profile": profile.to_document()}},
        )

    async def get_user_document(self, uid: str) -> dict[str, Any] | None:
        return await self.users.find_one({"_id": uid})
