"""FastAPI dependencies wiring routes to repositories and services."""
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import redis.asyncio as redis

from api.services.publisher import PublisherService
from database.connection import get_db, get_redis
from database.repositories import ContentRepository, SourceItemRepository
from pipeline.factory import build_pipeline
from pipeline.orchestrator import ContentPipeline


async def get_pipeline(db: AsyncIOMotorDatabase = Depends(get_db)) -> ContentPipeline:
    """Dependency for the content pipeline."""
    return build_pipeline(db)


async def get_source_item_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> SourceItemRepository:
    """Dependency for the source item repository."""
    return SourceItemRepository(db)


async def get_publisher(redis_client: redis.Redis = Depends(get_redis)) -> PublisherService:
    """Dependency for the task publisher."""
    return PublisherService(redis_client)


async def get_content_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ContentRepository:
    """Dependency for the content record repository."""
    return ContentRepository(db)
