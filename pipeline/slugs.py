"""Unique slug resolution for content records."""
import logging
import uuid

from shared.utils import slugify, time_suffix

logger = logging.getLogger(__name__)

FALLBACK_SLUG = "post"


async def resolve_slug(title: str, content_repo) -> str:
    """
    URL-safe slug for `title` that no content record owns yet.

    A taken slug gets a short time-derived suffix; if that is taken as well
    a random suffix is added.
    """
    base = slugify(title) or FALLBACK_SLUG

    if not await content_repo.slug_exists(base):
        return base

    candidate = f"{base}-{time_suffix()}"
    if await content_repo.slug_exists(candidate):
        candidate = f"{candidate}-{uuid.uuid4().hex[:4]}"

    logger.warning(f"Slug '{base}' already exists, using '{candidate}'")
    return candidate
