"""Builds the generation context for a source item."""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pipeline.errors import InsufficientContext
from shared.config import settings

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "... (truncated for AI processing)"
MIN_FULL_CONTENT_CHARS = 50
MIN_PAGE_TEXT_CHARS = 50


@dataclass
class GenerationContext:
    """Prompt inputs for one run, plus the image and record fields they imply."""
    original_title: str
    original_description: str
    additional_context: str
    truncated: bool = False
    used_page_fetch: bool = False
    image_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    record_fields: Dict[str, Any] = field(default_factory=dict)

    def prompt_values(self) -> Dict[str, Any]:
        values = {
            "original_title": self.original_title,
            "original_description": self.original_description,
            "additional_context": self.additional_context,
        }
        values.update(self.extra)
        return values


class ContentAssembler:
    """Assembles title, description, body and fetched page text into one block."""

    def __init__(self, page_fetcher=None, min_chars: int = None, max_chars: int = None):
        self.page_fetcher = page_fetcher
        self.min_chars = settings.min_context_chars if min_chars is None else min_chars
        self.max_chars = settings.max_context_chars if max_chars is None else max_chars

    async def assemble(self, item: Mapping[str, Any]) -> GenerationContext:
        """
        Build the generation context for a source item.

        Raises InsufficientContext when, after the page-fetch fallback, the
        combined text is still below the minimum.
        """
        title = (item.get("title") or "").strip()
        description = (item.get("description") or "").strip()
        body = (item.get("content") or "").strip()
        link = item.get("link")

        combined = ""
        if title:
            combined += f"Title: {title}\n"
        if description:
            combined += f"Description: {description}\n"
        if len(body) > MIN_FULL_CONTENT_CHARS:
            combined += f"\nFull Content: {body}\n"

        used_page_fetch = False
        if link and len(combined) < self.min_chars and self.page_fetcher is not None:
            logger.info(f"Context too short ({len(combined)} chars), fetching source page {link}")
            page_text = await self.page_fetcher.fetch_text(link)
            if page_text and len(page_text) > MIN_PAGE_TEXT_CHARS:
                combined += f"\nWebpage Context: {page_text}\n"
                used_page_fetch = True
            else:
                logger.info(f"No substantial page text extracted from {link}")

        if len(combined) < self.min_chars:
            raise InsufficientContext(
                f"Article content too short to generate from ({len(combined)} < {self.min_chars} chars)"
            )

        truncated = False
        if len(combined) > self.max_chars:
            combined = combined[:self.max_chars] + TRUNCATION_MARKER
            truncated = True
            logger.warning(f"Generation context truncated to {self.max_chars} chars")

        return GenerationContext(
            original_title=title,
            original_description=description,
            additional_context=combined,
            truncated=truncated,
            used_page_fetch=used_page_fetch,
            image_url=item.get("image_url"),
        )
