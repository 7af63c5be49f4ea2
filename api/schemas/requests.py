"""Request schemas for API endpoints."""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from pipeline.orchestrator import CATEGORIES


class ProcessRequest(BaseModel):
    """Request schema for triggering a pipeline run."""
    model_config = ConfigDict(populate_by_name=True)

    persona_id: Optional[str] = Field(default=None, alias="personaId", description="Author persona to write as")
    category_hint: Optional[str] = Field(
        default=None,
        alias="categoryHint",
        description="Sports category (football, basketball, tennis, general)"
    )

    @field_validator('category_hint')
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        """Validate the category against the allowed values."""
        if v is None:
            return v
        v = v.strip().lower()
        if v not in CATEGORIES:
            raise ValueError(f"categoryHint must be one of {', '.join(CATEGORIES)}")
        return v


class BatchRequest(BaseModel):
    """Request schema for enqueuing a batch of fetched articles."""
    model_config = ConfigDict(populate_by_name=True)

    limit: int = Field(default=10, ge=1, le=100, description="Maximum number of items to enqueue")
    persona_id: Optional[str] = Field(default=None, alias="personaId", description="Author persona to write as")
