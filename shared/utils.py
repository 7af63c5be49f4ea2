"""Shared utility functions."""
import re
import time
import uuid
import unicodedata
from datetime import datetime, timezone


def generate_source_item_id() -> str:
    """Generate a unique source item ID."""
    return f"src_{uuid.uuid4().hex[:12]}"


def generate_content_id() -> str:
    """Generate a unique content record ID."""
    return f"post_{uuid.uuid4().hex[:12]}"


def generate_task_id() -> str:
    """Generate a unique task ID."""
    return f"task_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def slugify(text: str) -> str:
    """Lowercase, ASCII-only, hyphen-separated form of text."""
    # Characters NFKD cannot decompose into ASCII
    text = text.replace("ı", "i").replace("İ", "I").replace("ß", "ss")
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    ascii_text = re.sub(r"[^a-z0-9\s-]", "", ascii_text)
    return re.sub(r"[\s-]+", "-", ascii_text).strip("-")


def time_suffix(digits: int = 5) -> str:
    """Last `digits` digits of the current epoch time in milliseconds."""
    return str(int(time.time() * 1000))[-digits:]
