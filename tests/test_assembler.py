"""Content assembler tests."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from pipeline.assembler import TRUNCATION_MARKER, ContentAssembler
from pipeline.errors import InsufficientContext


@pytest.fixture
def fetcher():
    fetcher = MagicMock()
    fetcher.fetch_text = AsyncMock(return_value=None)
    return fetcher


class TestContentAssembler:
    """Tests for ContentAssembler.assemble."""

    @pytest.mark.asyncio
    async def test_labels_in_priority_order(self, fetcher, sample_source_item):
        """Title, description and body appear as labelled sections in order."""
        sample_source_item["content"] = "Full match report. " * 10
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        context = await assembler.assemble(sample_source_item)

        text = context.additional_context
        assert text.index("Title: ") < text.index("Description: ") < text.index("Full Content: ")
        assert context.original_title == "Team A beats Team B 3-1"
        assert context.image_url == "https://news.example.com/images/derby.jpg"
        fetcher.fetch_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_short_body_not_labelled(self, fetcher, sample_source_item):
        """Bodies of 50 characters or fewer are left out."""
        sample_source_item["content"] = "Short teaser."
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        context = await assembler.assemble(sample_source_item)

        assert "Full Content" not in context.additional_context

    @pytest.mark.asyncio
    async def test_page_fetch_fallback(self, fetcher, sample_source_item):
        """Thin items fall back to the linked page."""
        sample_source_item["description"] = "Short."
        fetcher.fetch_text.return_value = "Scraped article body. " * 20
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        context = await assembler.assemble(sample_source_item)

        fetcher.fetch_text.assert_awaited_once_with("https://news.example.com/team-a-beats-team-b")
        assert "Webpage Context: Scraped article body." in context.additional_context
        assert context.used_page_fetch is True

    @pytest.mark.asyncio
    async def test_insufficient_after_fallback(self, fetcher, sample_source_item):
        """Still too short after the page fetch raises InsufficientContext."""
        sample_source_item["description"] = "Short."
        fetcher.fetch_text.return_value = None
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        with pytest.raises(InsufficientContext):
            await assembler.assemble(sample_source_item)

    @pytest.mark.asyncio
    async def test_empty_item_without_link(self, fetcher):
        """An empty item with no link never calls the fetcher."""
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        with pytest.raises(InsufficientContext):
            await assembler.assemble({"title": "", "description": "", "content": "", "link": None})
        fetcher.fetch_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_truncates_to_budget(self, fetcher, sample_source_item):
        """Contexts over the budget are cut and marked."""
        sample_source_item["content"] = "x" * 10000
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        context = await assembler.assemble(sample_source_item)

        assert context.truncated is True
        assert context.additional_context.endswith(TRUNCATION_MARKER)
        assert len(context.additional_context) == 8000 + len(TRUNCATION_MARKER)

    @pytest.mark.asyncio
    async def test_prompt_values(self, fetcher, sample_source_item):
        """Prompt values expose the template placeholders."""
        assembler = ContentAssembler(page_fetcher=fetcher, min_chars=100, max_chars=8000)

        values = (await assembler.assemble(sample_source_item)).prompt_values()

        assert set(values) == {"original_title", "original_description", "additional_context"}
