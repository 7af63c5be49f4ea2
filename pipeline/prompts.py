"""Built-in prompt templates and prompt assembly."""
import re
from enum import Enum
from typing import Any, Dict, Mapping, Optional

INSUFFICIENT_CONTENT_MARKER = "CONTENT INSUFFICIENT FOR EXPANSION"
PLACEHOLDER_RE = re.compile(r"\{(\w+)\}")


class PromptRole(str, Enum):
    """Prompt roles, one stored template per role."""
    TITLE = "title"
    CONTENT = "content"
    PREDICTION_TITLE = "prediction_title"
    PREDICTION_CONTENT = "prediction_content"


DEFAULT_TITLE_PROMPT = (
    "YOUR ONLY TASK IS TO GENERATE A NEWS ARTICLE TITLE. Output MUST be plain text only, on a single line. "
    "NO HTML, NO Markdown. NO preambles. NO prefixes like 'Title: '.\n\n"
    "You are an expert sports journalist. Generate a **new, original, SEO-friendly title** for a news article "
    "based on the following original title and description. The new title MUST be highly distinct from the "
    "original, capture a fresh angle, and avoid simply rephrasing original keywords.\n\n"
    "Original Title: {original_title}\n"
    "Original Description: {original_description}\n\n"
    "Generated Title:"
)

DEFAULT_CONTENT_PROMPT = (
    "Your ONLY task is to generate a news article content in HTML. NO Markdown, NO preambles, NO extra text, "
    "NO code block wrappers (```html). DO NOT INCLUDE `<!DOCTYPE html>`, `<html>`, `<head>`, `<body>`, `<h1>`, "
    "or any other full document tags.\n\n"
    "You are an expert sports journalist. Analyze the following news title, description, and provided context. "
    "Your goal is to generate a comprehensive, human-like, SEO-optimized HTML article, approximately 700 words "
    "long. Focus on deep insights, storytelling, and compelling analysis.\n\n"
    "GUIDELINES:\n"
    "1. HTML CONTENT: Provide valid HTML. Use <h2> for main headings, <p> for paragraphs, <strong>, <em>, "
    "<ul>, <li>, <a>. Ensure natural flow, rich detail, and human tone. Integrate relevant keywords naturally "
    "for SEO, but avoid stuffing.\n\n"
    "HTML Example Structure:\n"
    "<h2>Introduction Heading</h2><p>This is the engaging introduction paragraph...</p>\n"
    "<h2>Key Developments</h2><p>Here's a detailed paragraph...</p><ul><li>...</li></ul>\n"
    "<h2>Conclusion</h2><p>The concluding paragraph summarizes...</p>\n\n"
    "IMPORTANT: If the provided content is too short or lacks sufficient detail for a 700-word SEO-optimized "
    f"expansion, respond ONLY with '{INSUFFICIENT_CONTENT_MARKER}: [brief reason]'. No other text.\n\n"
    "Generated Article Title: {generated_title}\n"
    "Original News Title: {original_title}\n"
    "Original News Description: {original_description}\n"
    "Additional Context: {additional_context}"
)

DEFAULT_PREDICTION_TITLE_PROMPT = (
    "You are an expert sports journalist. Your ONLY task is to generate a new, original, SEO-friendly title "
    "for a news article about the upcoming match: {home_team} vs {away_team} in the {league_name}.\n\n"
    "The new title MUST be highly distinct, capture a fresh angle, and be plain text only with no markdown "
    "or quotes.\n\n"
    "Generated Title:"
)

DEFAULT_PREDICTION_CONTENT_PROMPT = (
    "You are an expert sports journalist and a charismatic storyteller. Your task is to transform the provided "
    "raw match data into a compelling, conversational narrative in PURE HTML.\n\n"
    "CRITICAL INSTRUCTIONS:\n"
    "1. HTML ONLY: Your entire response MUST be valid HTML. Use tags like <h2>, <h3>, <p>, <strong>, <em>, "
    "<ul>, and <li>.\n"
    "2. NO MARKDOWN: No markdown syntax like # or * is allowed.\n"
    "3. NO PREAMBLE: Your response must start directly with an HTML tag (e.g., <h2>).\n\n"
    "ARTICLE STRUCTURE:\n"
    "1. Engaging intro with a hook.\n"
    "2. Recent form of both teams.\n"
    "3. Head-to-head analysis.\n"
    "4. Key players.\n"
    "5. A clearly stated prediction.\n\n"
    f"If the match data is too thin to write about, respond ONLY with '{INSUFFICIENT_CONTENT_MARKER}: "
    "[brief reason]'.\n\n"
    "Generated Title: {generated_title}\n"
    "Match Data:\n{match_data}\n\n"
    "Your Generated HTML Article (Must start with <h2>):"
)

DEFAULT_TEMPLATES: Dict[PromptRole, str] = {
    PromptRole.TITLE: DEFAULT_TITLE_PROMPT,
    PromptRole.CONTENT: DEFAULT_CONTENT_PROMPT,
    PromptRole.PREDICTION_TITLE: DEFAULT_PREDICTION_TITLE_PROMPT,
    PromptRole.PREDICTION_CONTENT: DEFAULT_PREDICTION_CONTENT_PROMPT,
}


def persona_directive(persona: Optional[Mapping[str, Any]]) -> str:
    """Tone directive for an active persona, empty otherwise."""
    if not persona or not persona.get("is_active"):
        return ""
    return (
        f'As "{persona["name"]}", your unique journalistic voice and tone should be: '
        f'{persona.get("tone_prompt", "")}\n\n'
    )


def build_prompt(template: str, values: Mapping[str, Any], directive: str = "") -> str:
    """
    Prepend the persona directive and substitute `{name}` placeholders.

    Placeholders without a value are left untouched; braces that are not
    placeholders (JSON examples in stored templates) are not interpreted.
    """
    def substitute(match):
        name = match.group(1)
        if name not in values:
            return match.group(0)
        value = values[name]
        return "" if value is None else str(value)

    # One pass, so braces inside inserted values are never expanded
    return PLACEHOLDER_RE.sub(substitute, f"{directive}{template}")
