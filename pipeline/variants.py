"""The two pipeline variants: external-article rewrite and fixture prediction.

Both share the orchestrator; a variant only decides how the generation
context is built and how the generated text is labelled on the record.
"""
from typing import Any, Dict, Mapping, Optional, Tuple

from pipeline.assembler import ContentAssembler, GenerationContext
from pipeline.fixtures import FixtureDataClient, build_fixture_context
from pipeline.prompts import PromptRole


class ArticleRewriteVariant:
    """Rewrites an ingested news article into an original piece."""

    name = "article"
    news_type = "news"
    title_role = PromptRole.TITLE
    content_role = PromptRole.CONTENT
    meta_description_length = 150

    def __init__(self, assembler: ContentAssembler):
        self.assembler = assembler

    async def build_context(self, item: Mapping[str, Any]) -> GenerationContext:
        return await self.assembler.assemble(item)

    def title_reference(self, context: GenerationContext) -> Optional[str]:
        """Source headline the generated title must differ from."""
        return context.original_title or None

    def image_labels(self, title: str, context: GenerationContext) -> Tuple[str, str]:
        """(title, alt) text for the featured image."""
        return title, f"{title} image"

    def naming_hint(self, title: str, context: GenerationContext) -> str:
        return title

    def meta_title(self, title: str) -> str:
        return f"{title} - Sports News"


class FixturePredictionVariant:
    """Writes a match preview and prediction from sports-provider data."""

    name = "fixture"
    news_type = "prediction"
    title_role = PromptRole.PREDICTION_TITLE
    content_role = PromptRole.PREDICTION_CONTENT
    meta_description_length = 160

    def __init__(self, fixture_client: FixtureDataClient):
        self.fixture_client = fixture_client

    async def build_context(self, item: Mapping[str, Any]) -> GenerationContext:
        bundle = await self.fixture_client.get_fixture_bundle(item["fixture_id"])
        return build_fixture_context(bundle)

    def title_reference(self, context: GenerationContext) -> Optional[str]:
        # No source headline exists, only the length check applies
        return None

    def image_labels(self, title: str, context: GenerationContext) -> Tuple[str, str]:
        matchup = self._matchup(context)
        return f"{matchup} Prediction", f"{matchup} match prediction"

    def naming_hint(self, title: str, context: GenerationContext) -> str:
        return f"{self._matchup(context)} prediction"

    def meta_title(self, title: str) -> str:
        return f"{title} | Match Prediction"

    def _matchup(self, context: GenerationContext) -> str:
        extra: Dict[str, Any] = context.extra
        return f"{extra['home_team']} vs {extra['away_team']}"
