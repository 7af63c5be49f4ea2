"""Worker process for consuming and running pipeline tasks."""
import asyncio
import json
import logging
from typing import Optional, Dict, Any
import redis.asyncio as redis

from api.services.publisher import PublisherService
from pipeline.errors import PipelineError
from pipeline.orchestrator import ContentPipeline
from shared.config import settings

logger = logging.getLogger(__name__)


class PipelineWorker:
    """
    Worker that runs pipeline tasks from the Redis queue, one at a time.

    Failed runs are never re-queued: the orchestrator has already written
    the terminal status, and re-triggering is an operator decision.
    """

    def __init__(
        self,
        pipeline: ContentPipeline,
        redis_client: redis.Redis,
        worker_id: str = "worker-1"
    ):
        self.pipeline = pipeline
        self.redis = redis_client
        self.worker_id = worker_id
        self.publisher = PublisherService(redis_client)
        self.queue_name = settings.redis_queue_name
        self.running = True

    async def start(self):
        """Start the worker loop."""
        logger.info(f"Worker {self.worker_id} starting...")

        while self.running:
            task = await self._get_next_task()

            if task:
                await self._process_task(task)
            else:
                # No tasks available, wait before polling again
                await asyncio.sleep(settings.consumer_poll_interval)

    async def stop(self):
        """Stop the worker gracefully."""
        logger.info(f"Worker {self.worker_id} stopping...")
        self.running = False

    async def _get_next_task(self) -> Optional[Dict[str, Any]]:
        """Pop the next task from the queue, skipping malformed entries."""
        result = await self.redis.rpop(self.queue_name)
        if not result:
            return None
        try:
            return json.loads(result)
        except json.JSONDecodeError:
            logger.error(f"Failed to parse task: {result}")
            return None

    async def _process_task(self, task: Dict[str, Any]):
        """Run one pipeline task and publish its outcome."""
        kind = task.get("kind", "article")
        target_id = task.get("target_id")
        persona_id = task.get("persona_id")
        category_hint = task.get("category_hint")
        channel_id = f"fixture-{target_id}" if kind == "fixture" else target_id

        logger.info(f"Worker {self.worker_id} processing {kind} {target_id}")

        async def on_progress(message: str):
            await self.publisher.publish_progress(channel_id, message)

        try:
            if kind == "fixture":
                result = await self.pipeline.run_fixture(
                    int(target_id), persona_id, category_hint, on_progress=on_progress
                )
            else:
                result = await self.pipeline.run(
                    target_id, persona_id, category_hint, on_progress=on_progress
                )
        except PipelineError as e:
            await self._handle_failure(channel_id, e)
            return
        except Exception as e:
            # Keep the loop alive for the next task
            logger.exception(f"Unexpected worker error on {kind} {target_id}: {e}")
            await self.publisher.publish_progress(
                channel_id, str(e), event_type="pipeline_result", status="error", error="worker_error"
            )
            return

        logger.info(f"Task {task.get('task_id')} finished with content {result.content_id}")
        await self.publisher.publish_progress(
            channel_id,
            "already processed" if result.already_processed else "processed",
            event_type="pipeline_result",
            status="processed",
            content_id=result.content_id,
            slug=result.slug,
            already_processed=result.already_processed
        )

    async def _handle_failure(self, channel_id: str, error: PipelineError):
        """Report a classified failure. No automatic retry."""
        log = logger.info if error.terminal_status == "skipped" else logger.error
        log(f"Pipeline run for {channel_id} ended with {error.code}: {error.message}")
        await self.publisher.publish_progress(
            channel_id,
            error.message,
            event_type="pipeline_result",
            status=error.terminal_status,
            error=error.code
        )
