"""Source item model definitions."""
from enum import Enum
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from pipeline.status import SourceItemStatus


class SourceItemKind(str, Enum):
    """What a source item stands for."""
    ARTICLE = "article"
    FIXTURE = "fixture"


class SourceItemModel(BaseModel):
    """Source item model for database representation."""
    id: str = Field(alias="_id")
    external_id: str
    kind: SourceItemKind = SourceItemKind.ARTICLE
    fixture_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    link: Optional[str] = None
    image_url: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    pub_date: Optional[datetime] = None
    status: SourceItemStatus
    processed_content_id: Optional[str] = None
    error_message: Optional[str] = None
    processing_started_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
