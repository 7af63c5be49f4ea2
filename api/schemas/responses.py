"""Response schemas for API endpoints."""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Responses are serialised with camelCase aliases."""
    model_config = ConfigDict(populate_by_name=True)


class ProcessResponse(CamelModel):
    """Response schema for a pipeline run."""
    content_id: str = Field(..., alias="contentId", description="Content record identifier")
    slug: Optional[str] = Field(None, description="Content record slug")
    status: str = Field(default="processed", description="Terminal status of the source item")
    already_processed: bool = Field(
        default=False,
        alias="alreadyProcessed",
        description="Whether the run was an idempotent no-op"
    )


class BatchResponse(CamelModel):
    """Response schema for batch enqueue."""
    queued: int = Field(..., description="Number of tasks queued")
    source_item_ids: List[str] = Field(
        default_factory=list,
        alias="sourceItemIds",
        description="External ids of the queued items"
    )


class ReconcileResponse(CamelModel):
    """Response schema for stale-lock reconciliation."""
    reset: int = Field(..., description="Number of items moved out of processing")
    source_item_ids: List[str] = Field(default_factory=list, alias="sourceItemIds")


class QueueResponse(BaseModel):
    """Response schema for the task queue length."""
    length: int = Field(..., description="Pending tasks in the queue")


class SourceItemStatusResponse(CamelModel):
    """Read-only status view of a source item."""
    id: str = Field(..., description="Source item identifier")
    external_id: str = Field(..., alias="externalId")
    kind: str
    status: str
    processed_content_id: Optional[str] = Field(None, alias="processedContentId")
    error_message: Optional[str] = Field(None, alias="errorMessage")
    updated_at: datetime = Field(..., alias="updatedAt")


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error code")
    detail: Optional[str] = Field(None, description="Detailed error information")
    status: Optional[str] = Field(None, description="Terminal status written for the source item")
