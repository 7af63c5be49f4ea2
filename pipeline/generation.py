"""Text generation client with timeout and retry policy."""
import logging
from typing import Any, Mapping, Optional

import httpx

from pipeline.errors import (
    GenerationFailed,
    GenerationServiceError,
    GenerationTimeout,
    PipelineError,
    UpstreamQuotaExceeded,
)
from pipeline.prompts import DEFAULT_TEMPLATES, PromptRole, build_prompt
from pipeline.retry import retry_async
from shared.config import settings

logger = logging.getLogger(__name__)

SHORT_OUTPUT_ROLES = frozenset({PromptRole.TITLE, PromptRole.PREDICTION_TITLE})


def is_transient_generation_error(error: BaseException) -> bool:
    """Retry predicate: timeouts, rate limits and 5xx only."""
    return isinstance(error, GenerationServiceError) and error.is_transient


class GenerationClient:
    """Client for the text generation service."""

    def __init__(
        self,
        prompt_repo=None,
        provider: str = None,
        model: str = None,
        api_key: str = None,
        base_url: str = None,
        max_attempts: int = None,
        title_timeout: float = None,
        content_timeout: float = None,
        title_retry_delay: float = None,
        content_retry_delay: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.prompt_repo = prompt_repo
        self.provider = provider or settings.llm_provider
        self.model = model or settings.llm_model
        if self.provider == "openai":
            self.api_key = api_key or settings.openai_api_key
            self.base_url = base_url or settings.openai_base_url
        else:
            self.api_key = api_key or settings.gemini_api_key
            self.base_url = base_url or settings.gemini_base_url
        self.max_attempts = max_attempts or settings.generation_max_attempts
        self.title_timeout = title_timeout if title_timeout is not None else settings.title_timeout
        self.content_timeout = content_timeout if content_timeout is not None else settings.content_timeout
        self.title_retry_delay = (
            title_retry_delay if title_retry_delay is not None else settings.title_retry_delay
        )
        self.content_retry_delay = (
            content_retry_delay if content_retry_delay is not None else settings.content_retry_delay
        )
        self.transport = transport

    async def generate(
        self,
        role: PromptRole,
        values: Mapping[str, Any],
        directive: str = "",
    ) -> str:
        """
        Generate raw text for a prompt role.

        The role's template is resolved at call time (stored override first,
        built-in default otherwise), the persona directive is prepended and
        placeholders are filled from `values`.

        Raises GenerationTimeout, UpstreamQuotaExceeded or GenerationFailed.
        """
        template = await self.resolve_template(role)
        prompt = build_prompt(template, values, directive)
        timeout, delay = self._policy(role)

        result = await retry_async(
            lambda: self._request(prompt, timeout),
            is_transient=is_transient_generation_error,
            max_attempts=self.max_attempts,
            delay=delay,
            label=f"{role.value} generation",
        )

        if result.success:
            logger.info(f"{role.value} generation returned {len(result.value)} chars after {result.attempts} attempt(s)")
            return result.value

        raise self._classify(role, result.error, result.attempts) from result.error

    async def resolve_template(self, role: PromptRole) -> str:
        """Stored template for the role, or the built-in default."""
        if self.prompt_repo is not None:
            stored = await self.prompt_repo.get_template(role.value)
            if stored:
                return stored
            logger.info(f"No stored prompt for role '{role.value}', using built-in default")
        return DEFAULT_TEMPLATES[role]

    def _policy(self, role: PromptRole):
        if role in SHORT_OUTPUT_ROLES:
            return self.title_timeout, self.title_retry_delay
        return self.content_timeout, self.content_retry_delay

    def _classify(self, role: PromptRole, error: BaseException, attempts: int) -> PipelineError:
        if isinstance(error, GenerationServiceError):
            if error.timed_out:
                return GenerationTimeout(f"AI {role.value} generation timed out after {attempts} attempt(s)")
            if error.is_quota_exhausted:
                return UpstreamQuotaExceeded(f"Generation service quota exceeded: {error.message}")
            return GenerationFailed(
                f"AI {role.value} generation failed after {attempts} attempt(s): {error.message}"
            )
        return GenerationFailed(f"AI {role.value} generation failed: {error}")

    async def _request(self, prompt: str, timeout: float) -> str:
        """Issue one request, normalising every failure to GenerationServiceError."""
        if not self.api_key:
            raise GenerationServiceError(f"API key for provider '{self.provider}' is not configured")

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                if self.provider == "openai":
                    text = await self._call_openai(client, prompt)
                else:
                    text = await self._call_gemini(client, prompt)
        except httpx.TimeoutException as e:
            raise GenerationServiceError(f"Request timed out after {timeout}s", timed_out=True) from e
        except httpx.HTTPStatusError as e:
            raise GenerationServiceError(
                _error_message(e.response), status=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise GenerationServiceError(f"Network error: {e}") from e

        if not text or not text.strip():
            raise GenerationServiceError("Generation service returned an empty response")
        return text

    async def _call_gemini(self, client: httpx.AsyncClient, prompt: str) -> str:
        response = await client.post(
            f"{self.base_url}/models/{self.model}:generateContent",
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.api_key,
            },
            json={"contents": [{"parts": [{"text": prompt}]}]},
        )
        response.raise_for_status()
        data = response.json()
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            reason = data.get("promptFeedback", {}).get("blockReason", "no candidates")
            raise GenerationServiceError(f"Unparseable Gemini response: {reason}")
        return "".join(part.get("text", "") for part in parts)

    async def _call_openai(self, client: httpx.AsyncClient, prompt: str) -> str:
        response = await client.post(
            f"{self.base_url}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": self.model,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": 0.7,
            },
        )
        response.raise_for_status()
        data = response.json()
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            raise GenerationServiceError("Unparseable OpenAI response")


def _error_message(response: httpx.Response) -> str:
    """Best-effort error message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}: {response.text[:200]}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return f"HTTP {response.status_code}: {error.get('message') or error.get('status')}"
    return f"HTTP {response.status_code}: {error or body}"
