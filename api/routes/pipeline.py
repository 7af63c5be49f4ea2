"""Pipeline trigger routes for the REST API."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response, status

from api.dependencies import get_pipeline, get_publisher, get_source_item_repo
from api.services.publisher import PublisherService
from api.schemas.requests import ProcessRequest, BatchRequest
from api.schemas.responses import ProcessResponse, BatchResponse, ReconcileResponse, QueueResponse
from database.repositories import SourceItemRepository
from pipeline.orchestrator import ContentPipeline, PipelineResult
from pipeline.reconcile import reconcile_stale_items

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


def _to_response(result: PipelineResult, response: Response) -> ProcessResponse:
    # New content is 201, an idempotent no-op is 200
    response.status_code = status.HTTP_200_OK if result.already_processed else status.HTTP_201_CREATED
    return ProcessResponse(
        content_id=result.content_id,
        slug=result.slug,
        already_processed=result.already_processed
    )


@router.post(
    "/articles/{external_id}/process",
    response_model=ProcessResponse,
    status_code=status.HTTP_201_CREATED
)
async def process_article(
    external_id: str,
    response: Response,
    request: Optional[ProcessRequest] = None,
    pipeline: ContentPipeline = Depends(get_pipeline)
):
    """
    Rewrite an ingested article into a draft content record.

    - 201 with the new content id and slug
    - 200 with alreadyProcessed when the item was processed before
    - classified error otherwise (409 while another run holds the item)
    """
    request = request or ProcessRequest()
    result = await pipeline.run(external_id, request.persona_id, request.category_hint)
    return _to_response(result, response)


@router.post(
    "/fixtures/{fixture_id}/predict",
    response_model=ProcessResponse,
    status_code=status.HTTP_201_CREATED
)
async def predict_fixture(
    fixture_id: int,
    response: Response,
    request: Optional[ProcessRequest] = None,
    pipeline: ContentPipeline = Depends(get_pipeline)
):
    """Write a match prediction for a fixture, at most once per fixture."""
    request = request or ProcessRequest()
    result = await pipeline.run_fixture(fixture_id, request.persona_id, request.category_hint)
    return _to_response(result, response)


@router.post("/batch", response_model=BatchResponse, status_code=status.HTTP_202_ACCEPTED)
async def enqueue_batch(
    request: Optional[BatchRequest] = None,
    source_items: SourceItemRepository = Depends(get_source_item_repo),
    publisher: PublisherService = Depends(get_publisher)
):
    """Queue the newest fetched articles for the worker."""
    request = request or BatchRequest()
    items = await source_items.find_fetched(limit=request.limit)
    await publisher.publish_article_tasks(items, persona_id=request.persona_id)

    logger.info(f"Queued {len(items)} source item(s) for processing")
    return BatchResponse(
        queued=len(items),
        source_item_ids=[item["external_id"] for item in items]
    )


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile(
    source_items: SourceItemRepository = Depends(get_source_item_repo)
):
    """Move items stuck in processing past the configured age to error."""
    reset = await reconcile_stale_items(source_items)
    return ReconcileResponse(reset=len(reset), source_item_ids=reset)


@router.get("/queue", response_model=QueueResponse)
async def queue_length(
    publisher: PublisherService = Depends(get_publisher)
):
    """Get the number of pending pipeline tasks."""
    return QueueResponse(length=await publisher.get_queue_length())
