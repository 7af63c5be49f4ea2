"""SourceItem repository for the source_items collection."""
from datetime import timedelta
from typing import Optional, List, Dict, Any
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pipeline.status import CLAIMABLE_STATUSES, SourceItemStatus
from shared.utils import generate_source_item_id, get_utc_now


class SourceItemRepository:
    """Repository for SourceItem reads and status writes."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.source_items

    async def create(
        self,
        external_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        content: Optional[str] = None,
        link: Optional[str] = None,
        image_url: Optional[str] = None,
        categories: List[str] = None,
        pub_date=None,
        kind: str = "article",
        fixture_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """Create a source item in `fetched` state."""
        now = get_utc_now()
        item = {
            "_id": generate_source_item_id(),
            "external_id": external_id,
            "kind": kind,
            "fixture_id": fixture_id,
            "title": title,
            "description": description,
            "content": content,
            "link": link,
            "image_url": image_url,
            "categories": categories or [],
            "pub_date": pub_date or now,
            "status": SourceItemStatus.FETCHED.value,
            "processed_content_id": None,
            "error_message": None,
            "processing_started_at": None,
            "created_at": now,
            "updated_at": now
        }
        await self.collection.insert_one(item)
        return item

    async def get(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Get a source item by ID."""
        return await self.collection.find_one({"_id": item_id})

    async def get_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        """Get a source item by its external source ID."""
        return await self.collection.find_one({"external_id": external_id})

    async def upsert_fixture_item(self, fixture_id: int) -> Dict[str, Any]:
        """Get or create the source item standing for a fixture."""
        now = get_utc_now()
        return await self.collection.find_one_and_update(
            {"external_id": f"fixture-{fixture_id}"},
            {
                "$setOnInsert": {
                    "_id": generate_source_item_id(),
                    "kind": "fixture",
                    "fixture_id": fixture_id,
                    "categories": ["football"],
                    "status": SourceItemStatus.FETCHED.value,
                    "processed_content_id": None,
                    "error_message": None,
                    "processing_started_at": None,
                    "pub_date": now,
                    "created_at": now,
                    "updated_at": now
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )

    async def claim(self, item_id: str) -> Optional[Dict[str, Any]]:
        """
        Atomically move a claimable item to `processing`.

        Returns the claimed item, or None when it was not claimable
        (already processing, or processed).
        """
        now = get_utc_now()
        return await self.collection.find_one_and_update(
            {
                "_id": item_id,
                "status": {"$in": [status.value for status in CLAIMABLE_STATUSES]}
            },
            {
                "$set": {
                    "status": SourceItemStatus.PROCESSING.value,
                    "processing_started_at": now,
                    "error_message": None,
                    "updated_at": now
                }
            },
            return_document=ReturnDocument.AFTER
        )

    async def mark_processed(self, item_id: str, content_id: str) -> bool:
        """Set `processed` with the back-reference, only while still processing."""
        result = await self.collection.update_one(
            {"_id": item_id, "status": SourceItemStatus.PROCESSING.value},
            {
                "$set": {
                    "status": SourceItemStatus.PROCESSED.value,
                    "processed_content_id": content_id,
                    "error_message": None,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0

    async def mark_terminal(
        self,
        item_id: str,
        status: SourceItemStatus,
        error_message: Optional[str] = None
    ) -> bool:
        """Set a failure terminal status, only while still processing."""
        result = await self.collection.update_one(
            {"_id": item_id, "status": SourceItemStatus.PROCESSING.value},
            {
                "$set": {
                    "status": SourceItemStatus(status).value,
                    "error_message": error_message,
                    "updated_at": get_utc_now()
                }
            }
        )
        return result.modified_count > 0

    async def find_fetched(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Newest `fetched` article items, by publication date."""
        cursor = self.collection.find(
            {"status": SourceItemStatus.FETCHED.value, "kind": "article"}
        ).sort("pub_date", -1).limit(limit)
        return await cursor.to_list(length=limit)

    async def find_stale_processing(self, older_than_minutes: int) -> List[Dict[str, Any]]:
        """Items that have been `processing` for longer than the given age."""
        cutoff = get_utc_now() - timedelta(minutes=older_than_minutes)
        cursor = self.collection.find({
            "status": SourceItemStatus.PROCESSING.value,
            "processing_started_at": {"$lt": cutoff}
        })
        return await cursor.to_list(length=None)
