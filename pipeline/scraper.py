"""Best-effort article text extraction from source pages."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import aiohttp
from bs4 import BeautifulSoup

from shared.config import settings

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

CONTENT_SELECTORS = (
    "article",
    "main",
    ".article-content",
    ".post-content",
    ".entry-content",
    ".story-content",
    ".body-content",
    "#article-body",
    "#main-content",
    "#content",
    "p",
)

NOISE_SELECTORS = (
    "script", "style", "header", "footer", "nav", "aside",
    "form", "iframe", "noscript", ".ad-unit", ".advertisement",
)


@dataclass
class ScrapedPage:
    """Container for fetched page text."""
    text: Optional[str]
    success: bool
    error: Optional[str] = None


class ArticleScraper:
    """Fetches a page and extracts the main article text."""

    def __init__(
        self,
        timeout: int = None,
        max_redirects: int = None,
        min_text_length: int = 200,
        selectors: Sequence[str] = CONTENT_SELECTORS,
    ):
        self.timeout = timeout or settings.page_fetch_timeout
        self.max_redirects = max_redirects or settings.page_fetch_max_redirects
        self.min_text_length = min_text_length
        self.selectors = tuple(selectors)
        self.headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def fetch_text(self, url: str) -> Optional[str]:
        """Extracted article text for `url`, or None. Never raises."""
        page = await self.scrape(url)
        if not page.success:
            logger.warning(f"Page fetch for {url} gave no content: {page.error}")
            return None
        return page.text

    async def scrape(self, url: str) -> ScrapedPage:
        """
        Fetch `url` and extract its article text.

        Returns ScrapedPage with the text and success status.
        """
        try:
            html = await self._download(url)
        except asyncio.TimeoutError:
            return ScrapedPage(text=None, success=False, error=f"Timeout after {self.timeout} seconds")
        except aiohttp.ClientResponseError as e:
            return ScrapedPage(text=None, success=False, error=f"HTTP Error {e.status}")
        except aiohttp.ClientError as e:
            return ScrapedPage(text=None, success=False, error=f"Network error: {str(e)}")
        except Exception as e:
            return ScrapedPage(text=None, success=False, error=f"Unexpected error: {str(e)}")

        text = self.extract_text(html)
        if not text:
            return ScrapedPage(text=None, success=False, error="Failed to extract article content")

        logger.info(f"Extracted {len(text)} chars from {url}")
        return ScrapedPage(text=text, success=True)

    async def _download(self, url: str) -> str:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=self.headers,
        ) as session:
            async with session.get(url, max_redirects=self.max_redirects, raise_for_status=True) as response:
                return await response.text()

    def extract_text(self, html: str) -> Optional[str]:
        """
        Run the selector strategies in order.

        The first strategy yielding more than `min_text_length` characters
        wins; otherwise the longest candidate seen is returned.
        """
        soup = BeautifulSoup(html, "html.parser")
        for element in soup.select(", ".join(NOISE_SELECTORS)):
            element.decompose()

        candidates: List[str] = []
        for strategy in self._strategies(soup):
            text = strategy()
            if not text:
                continue
            if len(text) > self.min_text_length:
                return text
            candidates.append(text)

        if candidates:
            return max(candidates, key=len)
        return None

    def _strategies(self, soup: BeautifulSoup) -> List[Callable[[], Optional[str]]]:
        return [lambda selector=selector: self._select_text(soup, selector) for selector in self.selectors]

    def _select_text(self, soup: BeautifulSoup, selector: str) -> Optional[str]:
        elements = soup.select(selector)
        if not elements:
            return None
        text = " ".join(element.get_text(separator=" ") for element in elements)
        return self._clean_text(text) or None

    def _clean_text(self, text: str) -> str:
        """Collapse whitespace runs."""
        return " ".join(text.split())
