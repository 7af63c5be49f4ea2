"""Pipeline orchestrator: one run turns a source item into a content record."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence

from pipeline.errors import (
    Conflict,
    DuplicateSlugError,
    PipelineError,
    PipelineFailure,
    SourceItemNotFound,
)
from pipeline.prompts import persona_directive
from pipeline.sanitizer import SanitizeMode, sanitize, summarize
from pipeline.slugs import resolve_slug
from pipeline.status import SourceItemStatus, transition
from pipeline.validator import validate_title
from shared.config import settings
from shared.utils import generate_content_id, get_utc_now

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], Awaitable[None]]

CATEGORIES = ("football", "basketball", "tennis", "general")
DEFAULT_CATEGORY = "general"
SLUG_INSERT_ATTEMPTS = 3


@dataclass
class PipelineResult:
    """Outcome of a successful (or idempotent) run."""
    source_item_id: str
    content_id: str
    slug: Optional[str]
    already_processed: bool = False


def resolve_category(category_hint: Optional[str], tags: Optional[Sequence[str]] = None) -> str:
    """Explicit hint, then the first allowed source tag, then `general`."""
    candidates = [category_hint] + list(tags or [])
    for candidate in candidates:
        if candidate and candidate.strip().lower() in CATEGORIES:
            return candidate.strip().lower()
    return DEFAULT_CATEGORY


class ContentPipeline:
    """
    Sequences context assembly, title and body generation, image processing
    and persistence for a single source item.

    The `processing` status doubles as the single-flight lock: it is taken
    with an atomic conditional write, and every run that took it ends by
    writing exactly one terminal status.
    """

    def __init__(
        self,
        source_items,
        content_records,
        personas,
        generator,
        image_processor,
        article_variant,
        fixture_variant=None,
        default_author: str = None,
    ):
        self.source_items = source_items
        self.content_records = content_records
        self.personas = personas
        self.generator = generator
        self.image_processor = image_processor
        self.article_variant = article_variant
        self.fixture_variant = fixture_variant
        self.default_author = default_author or settings.default_author

    async def run(
        self,
        external_id: str,
        persona_id: Optional[str] = None,
        category_hint: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """Rewrite the external article `external_id`."""
        item = await self.source_items.get_by_external_id(external_id)
        if not item:
            raise SourceItemNotFound(f"Source item {external_id} not found")
        return await self._run_item(item, self.article_variant, persona_id, category_hint, on_progress)

    async def run_fixture(
        self,
        fixture_id: int,
        persona_id: Optional[str] = None,
        category_hint: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """Write a prediction for `fixture_id`, at most once per fixture."""
        if self.fixture_variant is None:
            raise PipelineFailure("Fixture predictions are not configured")

        existing = await self.content_records.get_by_fixture_id(fixture_id)
        if existing:
            logger.info(f"Prediction for fixture {fixture_id} already exists: {existing['_id']}")
            return PipelineResult(
                source_item_id=existing.get("source_item_id"),
                content_id=existing["_id"],
                slug=existing.get("slug"),
                already_processed=True,
            )

        item = await self.source_items.upsert_fixture_item(fixture_id)
        return await self._run_item(item, self.fixture_variant, persona_id, category_hint, on_progress)

    async def _run_item(self, item, variant, persona_id, category_hint, on_progress) -> PipelineResult:
        item_id = item["_id"]
        status = SourceItemStatus(item["status"])

        if status == SourceItemStatus.PROCESSED:
            return await self._already_processed(item)
        if status == SourceItemStatus.PROCESSING:
            raise Conflict(f"Source item {item_id} is already being processed")

        transition(status, SourceItemStatus.PROCESSING)
        claimed = await self.source_items.claim(item_id)
        if claimed is None:
            # Lost the race: either a concurrent run holds the lock or finished already
            current = await self.source_items.get(item_id)
            if current and current.get("status") == SourceItemStatus.PROCESSED.value:
                return await self._already_processed(current)
            raise Conflict(f"Source item {item_id} is already being processed")

        await self._report(on_progress, f"Processing {variant.name} {item_id}")
        try:
            return await self._execute(claimed, variant, persona_id, category_hint, on_progress)
        except PipelineError as e:
            await self._fail(item_id, e, on_progress)
            raise
        except asyncio.CancelledError:
            await self._fail(item_id, PipelineFailure("Pipeline run was cancelled"), on_progress)
            raise
        except Exception as e:
            failure = PipelineFailure(f"Unexpected error while processing {item_id}: {e}")
            await self._fail(item_id, failure, on_progress)
            raise failure from e

    async def _execute(self, item, variant, persona_id, category_hint, on_progress) -> PipelineResult:
        item_id = item["_id"]

        persona = await self._load_persona(persona_id)
        directive = persona_directive(persona)

        await self._report(on_progress, f"Assembling generation context for {item_id}")
        context = await variant.build_context(item)
        if context.truncated:
            await self._report(on_progress, f"Context for {item_id} truncated")

        await self._report(on_progress, f"Generating title for {item_id}")
        raw_title = await self.generator.generate(variant.title_role, context.prompt_values(), directive)
        title = validate_title(
            sanitize(raw_title, SanitizeMode.PLAIN_TITLE),
            original=variant.title_reference(context),
        )
        await self._report(on_progress, f'Generated title for {item_id}: "{title}"')

        await self._report(on_progress, f"Generating content for {item_id}")
        values = dict(context.prompt_values(), generated_title=title)
        raw_body = await self.generator.generate(variant.content_role, values, directive)
        body = sanitize(raw_body, SanitizeMode.HTML_BODY)
        await self._report(on_progress, f"Generated {len(body)} chars of content for {item_id}")

        image_url, slug = await asyncio.gather(
            self._process_image(context.image_url, variant.naming_hint(title, context), on_progress),
            resolve_slug(title, self.content_records),
        )

        record = self._build_record(
            item, variant, context, title, body, slug, image_url,
            author=persona["name"] if persona else self.default_author,
            category=resolve_category(category_hint, item.get("categories")),
        )
        content_id = await self._insert_record(record, title)
        await self._report(on_progress, f"Saved content record {content_id} with slug '{record['slug']}'")

        if not await self.source_items.mark_processed(item_id, content_id):
            raise PipelineFailure(f"Source item {item_id} left processing before it could be marked processed")

        await self._report(on_progress, f"Source item {item_id} processed")
        return PipelineResult(source_item_id=item_id, content_id=content_id, slug=record["slug"])

    async def _load_persona(self, persona_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not persona_id:
            return None
        persona = await self.personas.get_active(persona_id)
        if persona is None:
            logger.warning(f"Persona {persona_id} not found or inactive, generating without a persona")
        return persona

    async def _process_image(self, image_url, naming_hint, on_progress) -> Optional[str]:
        if not image_url:
            return None
        await self._report(on_progress, f"Processing image {image_url}")
        url = await self.image_processor.process(image_url, naming_hint)
        if url is None:
            await self._report(on_progress, "Image processing failed, continuing without an image")
        return url

    def _build_record(self, item, variant, context, title, body, slug, image_url, author, category) -> Dict[str, Any]:
        now = get_utc_now()
        image = None
        if image_url:
            image_title, image_alt = variant.image_labels(title, context)
            image = {"url": image_url, "title": image_title, "alt": image_alt}

        record = {
            "_id": generate_content_id(),
            "title": title,
            "slug": slug,
            "content": body,
            "status": "draft",
            "is_ai_generated": True,
            "news_type": variant.news_type,
            "sports_category": [category],
            "author": author,
            "image": image,
            "meta_title": variant.meta_title(title),
            "meta_description": summarize(body, variant.meta_description_length),
            "source_item_id": item["_id"],
            "created_at": now,
            "updated_at": now,
        }
        record.update(context.record_fields)
        return record

    async def _insert_record(self, record: Dict[str, Any], title: str) -> str:
        """Insert, re-resolving the slug if another run took it meanwhile."""
        for _ in range(SLUG_INSERT_ATTEMPTS):
            try:
                return await self.content_records.create(record)
            except DuplicateSlugError as e:
                logger.warning(f"{e}, resolving a new slug")
                record["slug"] = await resolve_slug(title, self.content_records)
        raise PipelineFailure(f"Could not find a free slug for '{title}'")

    async def _fail(self, item_id: str, error: PipelineError, on_progress) -> None:
        """Write the terminal status for a failed run. Never raises."""
        logger.error(f"Pipeline failed for {item_id} with {type(error).__name__}: {error.message}")
        target = SourceItemStatus(error.terminal_status or SourceItemStatus.ERROR.value)
        try:
            transition(SourceItemStatus.PROCESSING, target)
            await self.source_items.mark_terminal(item_id, target, error.message)
        except Exception as e:
            logger.error(f"Could not write terminal status {target.value} for {item_id}: {e}")
        await self._report(on_progress, f"Source item {item_id} marked {target.value}: {error.message}")

    async def _already_processed(self, item: Mapping[str, Any]) -> PipelineResult:
        content_id = item.get("processed_content_id")
        record = await self.content_records.get(content_id) if content_id else None
        logger.info(f"Source item {item['_id']} already processed as {content_id}")
        return PipelineResult(
            source_item_id=item["_id"],
            content_id=content_id,
            slug=record.get("slug") if record else None,
            already_processed=True,
        )

    async def _report(self, on_progress: Optional[ProgressCallback], message: str) -> None:
        logger.info(message)
        if on_progress is None:
            return
        try:
            await on_progress(message)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
