"""Scraper unit tests."""
import asyncio
import pytest
import aiohttp
from unittest.mock import AsyncMock, MagicMock, patch
from pipeline.scraper import ArticleScraper, ScrapedPage


LONG_PARAGRAPH = (
    "Team A came from behind to beat Team B in a derby decided by two late goals from the bench, "
    "with the manager praising the composure of a young side that has now won five in a row. "
)


class TestArticleScraper:
    """Tests for ArticleScraper class."""

    @pytest.fixture
    def scraper(self):
        """Create scraper instance."""
        return ArticleScraper(timeout=10, max_redirects=5)

    def test_scraper_initialization(self, scraper):
        """Test scraper initializes with correct settings."""
        assert scraper.timeout == 10
        assert scraper.max_redirects == 5
        assert "Mozilla" in scraper.headers["User-Agent"]

    def test_extract_prefers_article_element(self, scraper):
        """The first selector with enough text wins."""
        html = f"""
        <html><body>
            <div class="sidebar"><p>Subscribe now</p></div>
            <article><p>{LONG_PARAGRAPH}</p><p>{LONG_PARAGRAPH}</p></article>
        </body></html>
        """
        text = scraper.extract_text(html)
        assert text.startswith("Team A came from behind")
        assert "Subscribe" not in text

    def test_extract_removes_noise(self, scraper):
        """Scripts, navigation and ads are removed before extraction."""
        html = f"""
        <html><body>
            <script>var secret = "password123";</script>
            <nav>Home | Sport | Video</nav>
            <div class="ad-unit">Buy tickets</div>
            <div class="entry-content"><p>{LONG_PARAGRAPH}</p><p>{LONG_PARAGRAPH}</p></div>
        </body></html>
        """
        text = scraper.extract_text(html)
        assert "password123" not in text
        assert "Buy tickets" not in text
        assert "Home | Sport" not in text

    def test_extract_falls_back_to_longest_candidate(self, scraper):
        """With no long match the longest candidate is returned."""
        html = "<html><body><main>Short main text</main><p>Short para</p><p>Another</p></body></html>"
        assert scraper.extract_text(html) == "Short para Another"

    def test_extract_nothing(self, scraper):
        """Pages without any content candidates give None."""
        assert scraper.extract_text("<html><body><script>x()</script></body></html>") is None

    def test_clean_text_removes_whitespace(self, scraper):
        """Test text cleaning collapses whitespace."""
        text = "Line 1\n\n\n\n\nLine 2   \n   Line 3"
        assert scraper._clean_text(text) == "Line 1 Line 2 Line 3"

    @pytest.mark.asyncio
    async def test_scrape_timeout(self, scraper):
        """Timeouts are reported, not raised."""
        with patch.object(scraper, "_download", AsyncMock(side_effect=asyncio.TimeoutError())):
            page = await scraper.scrape("https://example.com/slow")
        assert page.success is False
        assert "Timeout" in page.error

    @pytest.mark.asyncio
    async def test_scrape_404_error(self, scraper):
        """HTTP errors are reported with the status."""
        error = aiohttp.ClientResponseError(request_info=MagicMock(), history=(), status=404)
        with patch.object(scraper, "_download", AsyncMock(side_effect=error)):
            page = await scraper.scrape("https://example.com/missing")
        assert page.success is False
        assert "404" in page.error

    @pytest.mark.asyncio
    async def test_fetch_text_success(self, scraper):
        """fetch_text returns the extracted text."""
        html = f"<article><p>{LONG_PARAGRAPH}</p><p>{LONG_PARAGRAPH}</p></article>"
        with patch.object(scraper, "_download", AsyncMock(return_value=html)):
            text = await scraper.fetch_text("https://example.com/story")
        assert "Team A came from behind" in text

    @pytest.mark.asyncio
    async def test_fetch_text_swallows_failures(self, scraper):
        """fetch_text gives None on any failure."""
        with patch.object(scraper, "_download", AsyncMock(side_effect=aiohttp.ClientConnectionError("refused"))):
            assert await scraper.fetch_text("https://example.com/down") is None


class TestScrapedPage:
    """Tests for ScrapedPage dataclass."""

    def test_scraped_page_success(self):
        """Test successful scrape result."""
        result = ScrapedPage(text="Test content", success=True)
        assert result.success
        assert result.error is None

    def test_scraped_page_failure(self):
        """Test failed scrape result."""
        result = ScrapedPage(text=None, success=False, error="HTTP Error 404")
        assert not result.success
        assert "404" in result.error
