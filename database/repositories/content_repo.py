"""ContentRecord repository for the content_records collection."""
from typing import Optional, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from pipeline.errors import DuplicateSlugError


class ContentRepository:
    """Repository for ContentRecord persistence."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.content_records

    async def create(self, record: Dict[str, Any]) -> str:
        """Insert a content record and return its ID."""
        try:
            await self.collection.insert_one(record)
        except DuplicateKeyError as e:
            key_pattern = (e.details or {}).get("keyPattern", {})
            if "slug" in key_pattern:
                raise DuplicateSlugError(record["slug"]) from e
            raise
        return record["_id"]

    async def get(self, content_id: str) -> Optional[Dict[str, Any]]:
        """Get a content record by ID."""
        return await self.collection.find_one({"_id": content_id})

    async def get_by_fixture_id(self, fixture_id: int) -> Optional[Dict[str, Any]]:
        """Get the prediction written for a fixture, if any."""
        return await self.collection.find_one({"original_fixture_id": fixture_id})

    async def slug_exists(self, slug: str) -> bool:
        """Check if a content record owns the given slug."""
        count = await self.collection.count_documents({"slug": slug}, limit=1)
        return count > 0
