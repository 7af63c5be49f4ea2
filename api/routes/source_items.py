"""Read-only source item routes for the REST API."""
from fastapi import APIRouter, HTTPException, Depends, status

from api.dependencies import get_source_item_repo
from api.models.source_item import SourceItemModel
from api.schemas.responses import SourceItemStatusResponse
from database.repositories import SourceItemRepository


router = APIRouter(prefix="/source-items", tags=["source-items"])


@router.get("/{external_id}", response_model=SourceItemStatusResponse)
async def get_source_item(
    external_id: str,
    source_items: SourceItemRepository = Depends(get_source_item_repo)
):
    """Get the pipeline status of a source item."""
    doc = await source_items.get_by_external_id(external_id)

    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source item {external_id} not found"
        )

    item = SourceItemModel(**doc)
    return SourceItemStatusResponse(
        id=item.id,
        external_id=item.external_id,
        kind=item.kind.value,
        status=item.status.value,
        processed_content_id=item.processed_content_id,
        error_message=item.error_message,
        updated_at=item.updated_at
    )
