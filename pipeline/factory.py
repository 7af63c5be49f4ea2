"""Wires the pipeline to its MongoDB repositories and external clients."""
from motor.motor_asyncio import AsyncIOMotorDatabase

from database.repositories import (
    ContentRepository,
    PersonaRepository,
    PromptTemplateRepository,
    SourceItemRepository,
)
from pipeline.assembler import ContentAssembler
from pipeline.fixtures import FixtureDataClient
from pipeline.generation import GenerationClient
from pipeline.images import ImageProcessor
from pipeline.orchestrator import ContentPipeline
from pipeline.scraper import ArticleScraper
from pipeline.storage import get_storage
from pipeline.variants import ArticleRewriteVariant, FixturePredictionVariant


def build_pipeline(db: AsyncIOMotorDatabase) -> ContentPipeline:
    """Pipeline configured from settings, shared by the API and the worker."""
    return ContentPipeline(
        source_items=SourceItemRepository(db),
        content_records=ContentRepository(db),
        personas=PersonaRepository(db),
        generator=GenerationClient(prompt_repo=PromptTemplateRepository(db)),
        image_processor=ImageProcessor(get_storage()),
        article_variant=ArticleRewriteVariant(ContentAssembler(page_fetcher=ArticleScraper())),
        fixture_variant=FixturePredictionVariant(FixtureDataClient()),
    )
