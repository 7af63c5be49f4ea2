"""Content record model definitions."""
from enum import Enum
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class ContentStatusEnum(str, Enum):
    """Publication status of a content record."""
    DRAFT = "draft"
    PUBLISHED = "published"


class NewsTypeEnum(str, Enum):
    """Kind of content a record holds."""
    NEWS = "news"
    PREDICTION = "prediction"


class ImageReference(BaseModel):
    """Featured image of a content record."""
    url: str
    title: Optional[str] = None
    alt: Optional[str] = None


class ContentRecordModel(BaseModel):
    """Content record model for database representation."""
    id: str = Field(alias="_id")
    title: str
    slug: str
    content: str
    status: ContentStatusEnum = ContentStatusEnum.DRAFT
    is_ai_generated: bool = True
    news_type: NewsTypeEnum = NewsTypeEnum.NEWS
    sports_category: List[str] = Field(default_factory=lambda: ["general"])
    author: str
    image: Optional[ImageReference] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    source_item_id: Optional[str] = None
    original_fixture_id: Optional[int] = None
    linked_fixture_id: Optional[int] = None
    linked_league_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        populate_by_name = True
