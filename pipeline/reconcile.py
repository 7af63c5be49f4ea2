"""Recovery for items left in `processing` by a crashed run."""
import logging
from typing import List

from pipeline.status import SourceItemStatus, transition
from shared.config import settings

logger = logging.getLogger(__name__)


async def reconcile_stale_items(source_items, older_than_minutes: int = None) -> List[str]:
    """
    Move items stuck in `processing` longer than `older_than_minutes` to
    `error`, and return their ids.
    """
    minutes = settings.stale_processing_minutes if older_than_minutes is None else older_than_minutes
    target = transition(SourceItemStatus.PROCESSING, SourceItemStatus.ERROR)

    reset = []
    for item in await source_items.find_stale_processing(minutes):
        message = f"Processing abandoned: no terminal status after {minutes} minutes"
        if await source_items.mark_terminal(item["_id"], target, message):
            reset.append(item["_id"])
            logger.warning(f"Reset stale source item {item['_id']} to {target.value}")

    logger.info(f"Reconciliation reset {len(reset)} stale source item(s)")
    return reset
