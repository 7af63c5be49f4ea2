# Routes module
from .content import router as content_router
from .pipeline import router as pipeline_router
from .source_items import router as source_items_router

__all__ = ["content_router", "pipeline_router", "source_items_router"]
