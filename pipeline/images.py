"""Featured image processing: download, resize/transcode, upload."""
import asyncio
import io
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse

import aiohttp
from PIL import Image

from pipeline.scraper import BROWSER_USER_AGENT
from shared.config import settings
from shared.utils import slugify, time_suffix

logger = logging.getLogger(__name__)

EXTENSIONS_BY_CONTENT_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/avif": ".avif",
}


@dataclass
class DownloadedImage:
    data: bytes
    content_type: str


@dataclass
class EncodedImage:
    data: bytes
    content_type: str
    extension: str


class ImageProcessor:
    """Turns a remote image into an optimised stored asset."""

    def __init__(
        self,
        storage,
        timeout: int = None,
        max_redirects: int = None,
        max_size: Tuple[int, int] = None,
        quality: int = None,
        key_prefix: str = None,
    ):
        self.storage = storage
        self.timeout = timeout or settings.image_download_timeout
        self.max_redirects = max_redirects or settings.image_max_redirects
        self.max_size = max_size or (settings.image_max_width, settings.image_max_height)
        self.quality = quality or settings.image_webp_quality
        self.key_prefix = key_prefix if key_prefix is not None else settings.image_key_prefix

    async def process(self, image_url: str, naming_hint: str) -> Optional[str]:
        """
        Download, optimise and upload an image.

        Returns the public URL of the stored asset, or None on any failure.
        """
        try:
            logger.info(f"Downloading image {image_url}")
            downloaded = await self._download(image_url)
            encoded = await self._encode(downloaded, image_url)
            key = self.build_key(naming_hint, encoded.extension)
            url = await self.storage.upload(key, encoded.data, encoded.content_type)
        except Exception as e:
            logger.error(f"Failed to process image from {image_url}: {e}")
            return None

        logger.info(f"Image stored at {url}")
        return url

    def build_key(self, naming_hint: str, extension: str) -> str:
        """Object key: prefix, slugified hint (50 chars max), time suffix."""
        slug = slugify(naming_hint)[:50].strip("-") or "image"
        name = f"{slug}-{time_suffix(6)}{extension}"
        if self.key_prefix:
            name = f"{self.key_prefix}-{name}"
        return name

    async def _download(self, url: str) -> DownloadedImage:
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers={"User-Agent": BROWSER_USER_AGENT},
        ) as session:
            async with session.get(url, max_redirects=self.max_redirects, raise_for_status=True) as response:
                data = await response.read()
                content_type = response.headers.get("Content-Type", "image/jpeg")

        logger.info(f"Downloaded {len(data)} bytes ({content_type}) from {url}")
        return DownloadedImage(data=data, content_type=content_type.split(";")[0].strip().lower())

    async def _encode(self, image: DownloadedImage, source_url: str) -> EncodedImage:
        # Animated formats are stored untouched
        if "image/gif" in image.content_type:
            logger.info("GIF detected, bypassing optimisation")
            return EncodedImage(data=image.data, content_type="image/gif", extension=".gif")

        try:
            data = await asyncio.to_thread(self.transcode, image.data)
            return EncodedImage(data=data, content_type="image/webp", extension=".webp")
        except Exception as e:
            logger.warning(f"Transcoding failed for {source_url}, storing original bytes: {e}")
            return EncodedImage(
                data=image.data,
                content_type=image.content_type,
                extension=fallback_extension(source_url, image.content_type),
            )

    def transcode(self, data: bytes) -> bytes:
        """Fit inside max_size without upscaling and encode as WebP."""
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
            img.thumbnail(self.max_size)
            buffer = io.BytesIO()
            img.save(buffer, format="WEBP", quality=self.quality)
        return buffer.getvalue()


def fallback_extension(url: str, content_type: str) -> str:
    """Extension from the URL path, then the content type, then .jpg."""
    ext = os.path.splitext(urlparse(url).path)[1].lower()
    if ext and len(ext) <= 5:
        return ext
    return EXTENSIONS_BY_CONTENT_TYPE.get(content_type, ".jpg")
