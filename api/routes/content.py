"""Read-only content record routes for the REST API."""
from fastapi import APIRouter, HTTPException, Depends, status

from api.dependencies import get_content_repo
from api.models.content_record import ContentRecordModel
from database.repositories import ContentRepository


router = APIRouter(prefix="/content", tags=["content"])


@router.get("/{content_id}", response_model=ContentRecordModel, response_model_by_alias=False)
async def get_content_record(
    content_id: str,
    content_records: ContentRepository = Depends(get_content_repo)
):
    """Get a generated content record."""
    doc = await content_records.get(content_id)

    if not doc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Content record {content_id} not found"
        )

    return ContentRecordModel(**doc)
