"""Text generation client tests."""
import json
import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock

from pipeline.errors import GenerationFailed, GenerationTimeout, UpstreamQuotaExceeded
from pipeline.generation import GenerationClient
from pipeline.prompts import DEFAULT_TITLE_PROMPT, PromptRole


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_client(handler, prompt_repo=None, provider="gemini") -> GenerationClient:
    return GenerationClient(
        prompt_repo=prompt_repo,
        provider=provider,
        model="test-model",
        api_key="test-key",
        base_url="https://llm.test/v1",
        max_attempts=3,
        title_retry_delay=0,
        content_retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


class TestGenerationClient:
    """Tests for GenerationClient requests and retries."""

    @pytest.mark.asyncio
    async def test_gemini_request_shape(self):
        """Prompt is sent to generateContent with the API key header."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=gemini_reply("A fresh headline"))

        client = make_client(handler)
        text = await client.generate(PromptRole.TITLE, {"original_title": "Old", "original_description": "Desc"})

        assert text == "A fresh headline"
        assert seen[0].url.path == "/v1/models/test-model:generateContent"
        assert seen[0].headers["x-goog-api-key"] == "test-key"
        body = json.loads(seen[0].content)
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "Original Title: Old" in prompt

    @pytest.mark.asyncio
    async def test_openai_request_shape(self):
        """The OpenAI provider posts chat completions."""
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/chat/completions"
            assert request.headers["authorization"] == "Bearer test-key"
            return httpx.Response(200, json={"choices": [{"message": {"content": "<p>Body</p>"}}]})

        client = make_client(handler, provider="openai")
        assert await client.generate(PromptRole.CONTENT, {}) == "<p>Body</p>"

    @pytest.mark.asyncio
    async def test_retries_transient_then_succeeds(self):
        """5xx responses are retried."""
        responses = iter([
            httpx.Response(503, json={"error": {"message": "overloaded"}}),
            httpx.Response(200, json=gemini_reply("Recovered headline")),
        ])
        calls = []

        def handler(request):
            calls.append(request)
            return next(responses)

        client = make_client(handler)
        assert await client.generate(PromptRole.TITLE, {}) == "Recovered headline"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_permanent_error_aborts_immediately(self):
        """4xx other than 429 is not retried."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(400, json={"error": {"message": "bad request"}})

        client = make_client(handler)
        with pytest.raises(GenerationFailed):
            await client.generate(PromptRole.CONTENT, {})
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_three_attempts_then_generation_failed(self):
        """Exhausted retries raise GenerationFailed after three attempts."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"error": {"message": "internal"}})

        client = make_client(handler)
        with pytest.raises(GenerationFailed):
            await client.generate(PromptRole.CONTENT, {})
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_timeout_classified(self):
        """Repeated timeouts raise GenerationTimeout."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = make_client(handler)
        with pytest.raises(GenerationTimeout):
            await client.generate(PromptRole.TITLE, {})

    @pytest.mark.asyncio
    async def test_quota_classified(self):
        """Rate limits mentioning quota surface as UpstreamQuotaExceeded."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429, json={"error": {"message": "Quota exceeded for this project"}})

        client = make_client(handler)
        with pytest.raises(UpstreamQuotaExceeded):
            await client.generate(PromptRole.TITLE, {})
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_empty_response_is_failure(self):
        """An empty completion is treated as a failed generation."""
        client = make_client(lambda request: httpx.Response(200, json=gemini_reply("   ")))
        with pytest.raises(GenerationFailed):
            await client.generate(PromptRole.TITLE, {})

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_without_request(self):
        """No API key means no request and an immediate failure."""
        calls = []
        client = make_client(lambda request: calls.append(request))
        client.api_key = None

        with pytest.raises(GenerationFailed):
            await client.generate(PromptRole.TITLE, {})
        assert calls == []


class TestTemplateResolution:
    """Tests for stored prompt overrides."""

    @pytest.mark.asyncio
    async def test_stored_template_overrides_default(self):
        """A stored template for the role is used."""
        repo = MagicMock()
        repo.get_template = AsyncMock(return_value="Custom: {original_title}")
        client = make_client(lambda request: httpx.Response(200, json=gemini_reply("x")), prompt_repo=repo)

        assert await client.resolve_template(PromptRole.TITLE) == "Custom: {original_title}"
        repo.get_template.assert_awaited_once_with("title")

    @pytest.mark.asyncio
    async def test_default_used_without_override(self):
        """Without a stored template the built-in default is used."""
        repo = MagicMock()
        repo.get_template = AsyncMock(return_value=None)
        client = make_client(lambda request: httpx.Response(200, json=gemini_reply("x")), prompt_repo=repo)

        assert await client.resolve_template(PromptRole.TITLE) == DEFAULT_TITLE_PROMPT

    @pytest.mark.asyncio
    async def test_directive_prepended(self):
        """The persona directive comes before the template."""
        prompts = []

        def handler(request):
            prompts.append(json.loads(request.content)["contents"][0]["parts"][0]["text"])
            return httpx.Response(200, json=gemini_reply("ok"))

        client = make_client(handler)
        await client.generate(PromptRole.TITLE, {}, directive='As "Pundit", be bold\n\n')

        assert prompts[0].startswith('As "Pundit", be bold\n\nYOUR ONLY TASK')
