"""Cleanup and format checks for generated text."""
import re
from enum import Enum

from bs4 import BeautifulSoup

from pipeline.errors import InsufficientContentSentinel, OutputFormatError
from pipeline.prompts import INSUFFICIENT_CONTENT_MARKER


class SanitizeMode(str, Enum):
    PLAIN_TITLE = "plain-title"
    HTML_BODY = "html-body"


TONE_ECHO_RE = re.compile(r"^AI JOURNALIST TONE & STYLE:[\s\S]*?\n\n", re.IGNORECASE)
TITLE_PREAMBLE_RE = re.compile(
    r"^(here'?s?\s+(is\s+)?(the|a|your)\s+(new\s+|rewritten\s+|generated\s+|requested\s+)?"
    r"(title|headline|article|news article|response)|article title|generated title|new title|title|headline)"
    r"(\s*[:\-]\s*|[ \t]*\n)\s*",
    re.IGNORECASE,
)
FENCED_BLOCK_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n?([\s\S]*?)(?:```|\Z)")
# Any preamble prose before the first tag of the fragment
LEADING_PROSE_RE = re.compile(r"^[^<]+(?=<[a-zA-Z])")
DOCUMENT_BLOCK_RE = re.compile(
    r"<(head|title|style|script)\b[^>]*>[\s\S]*?</\1\s*>", re.IGNORECASE
)
DOCUMENT_TAG_RE = re.compile(
    r"<!DOCTYPE[^>]*>|</?(html|head|body|meta|link)\b[^>]*>", re.IGNORECASE
)
ANY_TAG_RE = re.compile(r"<[^>]*>?")
HTML_TAG_RE = re.compile(r"<[a-z][a-z0-9]*\b[^>]*>", re.IGNORECASE)
TOP_LEVEL_HEADING_RE = re.compile(r"<h1\b", re.IGNORECASE)
CONTENT_SEPARATOR = "---START_CONTENT---"

# Markdown used as syntax, checked against the text outside tags
MARKDOWN_SYNTAX_RES = (
    re.compile(r"^\s{0,3}#{1,6}\s+\S", re.MULTILINE),
    re.compile(r"\*\*[^*\n]+\*\*"),
    re.compile(r"(?<![\w])__[^_\n]+__(?![\w])"),
    re.compile(r"(?<![\w*])\*[^*\s][^*\n]*\*(?![\w*])"),
    re.compile(r"`[^`\n]+`"),
    re.compile(r"\[[^\]\n]+\]\([^)\n]+\)"),
    re.compile(r"^\s{0,3}[*+-]\s+\S", re.MULTILINE),
    re.compile(r"```"),
)
TITLE_MARKUP_CHARS_RE = re.compile(r"[*_`#\[\]]")
TITLE_LIST_PREFIX_RE = re.compile(r"^\s*(?:[-+>]|\d+[.)])\s+")


def contains_insufficient_content_sentinel(raw: str) -> bool:
    """True when the model answered with the not-enough-material marker."""
    return INSUFFICIENT_CONTENT_MARKER in (raw or "").upper()


def extract_fenced_block(text: str) -> str:
    """Contents of the first fenced block, or `text` unchanged when there is none."""
    match = FENCED_BLOCK_RE.search(text)
    if match is None:
        return text
    return match.group(1).strip()


def strip_document_markup(text: str) -> str:
    """Remove full-document wrappers (doctype/html/head/body/title/style/script)."""
    text = DOCUMENT_BLOCK_RE.sub("", text)
    return DOCUMENT_TAG_RE.sub("", text).strip()


def to_plain_text(html: str) -> str:
    """Plain-text rendering of an HTML fragment, whitespace collapsed."""
    text = BeautifulSoup(html or "", "html.parser").get_text(separator=" ")
    return re.sub(r"\s+", " ", text).strip()


def summarize(html: str, limit: int) -> str:
    """SEO summary: first `limit` plain-text characters plus an ellipsis."""
    return to_plain_text(html)[:limit] + "..."


def has_markdown_syntax(html: str) -> bool:
    outside_tags = ANY_TAG_RE.sub("", html)
    return any(pattern.search(outside_tags) for pattern in MARKDOWN_SYNTAX_RES)


def sanitize(raw: str, mode: SanitizeMode) -> str:
    """
    Clean model output according to `mode`.

    plain-title: single line of plain text, no markup of any kind.
    html-body: HTML fragment; raises InsufficientContentSentinel when the
    model declined, OutputFormatError when the fragment has no HTML tags,
    contains markdown syntax or a top-level heading.
    """
    mode = SanitizeMode(mode)
    if mode is SanitizeMode.PLAIN_TITLE:
        return _sanitize_title(raw or "")
    return _sanitize_body(raw or "")


def _sanitize_title(raw: str) -> str:
    text = extract_fenced_block(raw.strip())
    text = strip_document_markup(text)
    text = TONE_ECHO_RE.sub("", text).strip()
    text = TITLE_PREAMBLE_RE.sub("", text, count=1).strip()
    text = ANY_TAG_RE.sub("", text)

    lines = []
    for line in text.splitlines():
        line = TITLE_LIST_PREFIX_RE.sub("", line)
        line = TITLE_MARKUP_CHARS_RE.sub("", line).strip()
        if line:
            lines.append(line)

    title = re.sub(r"\s+", " ", " ".join(lines)).strip()
    return title.strip("\"'“”‘’ ").strip()


def _sanitize_body(raw: str) -> str:
    if contains_insufficient_content_sentinel(raw):
        raise InsufficientContentSentinel(
            f"AI determined content insufficient for expansion: {raw.strip()[:200]}"
        )

    text = TONE_ECHO_RE.sub("", raw.strip()).strip()
    if CONTENT_SEPARATOR in text:
        text = text.split(CONTENT_SEPARATOR, 1)[1].strip()
    text = extract_fenced_block(text)
    text = strip_document_markup(text)
    text = re.sub(r"^\s*\n", "", text, flags=re.MULTILINE).strip()
    text = LEADING_PROSE_RE.sub("", text, count=1).strip()

    if not HTML_TAG_RE.search(text):
        raise OutputFormatError("AI output format error: content contains no HTML tags")
    if has_markdown_syntax(text):
        raise OutputFormatError("AI output format error: content still contains Markdown syntax")
    if TOP_LEVEL_HEADING_RE.search(text):
        raise OutputFormatError("AI output format error: content unexpectedly contains <h1> tags")

    return text
