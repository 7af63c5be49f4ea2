"""Main consumer entry point."""
import asyncio
import signal
import os
import logging
from consumer.worker import PipelineWorker
from database.connection import DatabaseConnection
from database.repositories import SourceItemRepository
from pipeline.factory import build_pipeline
from pipeline.reconcile import reconcile_stale_items
from shared.config import settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Main entry point for the pipeline worker service."""
    # Generate worker ID from environment or hostname
    worker_id = os.getenv("WORKER_ID", f"worker-{os.getpid()}")

    logger.info(f"Starting consumer with worker ID: {worker_id}")

    # Initialize database connections
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    # Items a crashed worker left in processing would otherwise stay locked
    if settings.reconcile_on_startup:
        await reconcile_stale_items(SourceItemRepository(db))

    worker = PipelineWorker(build_pipeline(db), redis_client, worker_id)

    # Setup signal handlers for graceful shutdown
    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(worker.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        await worker.start()
    except Exception as e:
        logger.error(f"Worker error: {e}")
    finally:
        # Cleanup
        await DatabaseConnection.close_connections()
        logger.info("Consumer shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
