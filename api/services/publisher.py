"""Publisher service for pushing pipeline tasks to the Redis queue."""
import json
from typing import List, Dict, Any, Optional
import redis.asyncio as redis
from shared.config import settings
from shared.utils import generate_task_id


class PublisherService:
    """Service for publishing pipeline tasks and progress events to Redis."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client
        self.queue_name = settings.redis_queue_name
        self.progress_channel = settings.redis_progress_channel

    async def publish_task(
        self,
        kind: str,
        target_id: Any,
        persona_id: Optional[str] = None,
        category_hint: Optional[str] = None
    ) -> str:
        """
        Publish a single pipeline task.

        `kind` is "article" (target is an external source id) or "fixture"
        (target is a fixture id).
        """
        task_id = generate_task_id()

        task = {
            "task_id": task_id,
            "kind": kind,
            "target_id": target_id,
            "persona_id": persona_id,
            "category_hint": category_hint
        }

        # LPUSH + worker RPOP gives FIFO
        await self.redis.lpush(self.queue_name, json.dumps(task))

        return task_id

    async def publish_article_tasks(
        self,
        items: List[Dict[str, Any]],
        persona_id: Optional[str] = None
    ) -> List[str]:
        """Publish one article task per source item."""
        task_ids = []
        for item in items:
            task_id = await self.publish_task(
                kind="article",
                target_id=item["external_id"],
                persona_id=persona_id
            )
            task_ids.append(task_id)
        return task_ids

    async def get_queue_length(self) -> int:
        """Get the length of the task queue."""
        return await self.redis.llen(self.queue_name)

    async def publish_progress(
        self,
        external_id: Optional[str],
        message: str,
        event_type: str = "progress",
        **fields: Any
    ):
        """Publish a pipeline event to the progress channel for WebSocket clients."""
        update = {
            "type": event_type,
            "external_id": external_id,
            "message": message
        }
        update.update(fields)
        await self.redis.publish(self.progress_channel, json.dumps(update, default=str))
