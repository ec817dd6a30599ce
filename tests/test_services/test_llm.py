"""
Tests for the LLM service.

Tests cover:
- Provider selection and configuration state
- OpenAI-compatible request format and response parsing
- API errors and retries
- Circuit breaker integration
- Mock provider
"""

import json
from unittest.mock import patch

import httpx
import pytest

from guardian.config import Settings
from guardian.immune import CircuitBreakerError
from guardian.services.llm import (
    DEFAULT_API_BASES,
    SECURITY_ANALYST_PROMPT,
    LLMConfig,
    LLMConfigurationError,
    LLMMessage,
    LLMProvider,
    LLMRequestError,
    LLMService,
    MockLLMProvider,
    OpenAICompatibleProvider,
)


def _provider_with(handler) -> OpenAICompatibleProvider:
    provider = OpenAICompatibleProvider(
        api_key="gsk_test",
        model="llama3-8b-8192",
        api_base=DEFAULT_API_BASES["groq"],
    )
    provider._http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return provider


def _completion(content: str | None = "All good", total_tokens: int | None = 42) -> dict:
    body: dict = {"model": "llama3-8b-8192", "choices": [{"message": {"content": content}}]}
    if total_tokens is not None:
        body["usage"] = {"total_tokens": total_tokens}
    return body


class TestLLMConfig:

    def test_from_settings(self):
        settings = Settings(
            _env_file=None,
            llm_provider="groq",
            groq_api_key="gsk_abc",
            ai_model="mixtral",
            llm_temperature=0.2,
        )
        config = LLMConfig.from_settings(settings)

        assert config.provider == LLMProvider.GROQ
        assert config.api_key == "gsk_abc"
        assert config.model == "mixtral"
        assert config.temperature == 0.2


class TestLLMService:

    def test_unconfigured_without_key(self, unconfigured_llm: LLMService):
        assert unconfigured_llm.is_configured is False

    @pytest.mark.asyncio
    async def test_complete_requires_configuration(self, unconfigured_llm: LLMService):
        with pytest.raises(LLMConfigurationError):
            await unconfigured_llm.security_completion("hello")

    def test_mock_is_always_configured(self, llm_service: LLMService):
        assert llm_service.is_configured is True

    def test_groq_with_key_is_configured(self):
        service = LLMService(LLMConfig(provider=LLMProvider.GROQ, api_key="gsk_abc"))
        assert service.is_configured is True

    @pytest.mark.asyncio
    async def test_security_completion_sends_system_prompt(self):
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion("Looks safe", 77))

        service = LLMService(LLMConfig(provider=LLMProvider.GROQ, api_key="gsk_test"))
        service._provider = _provider_with(handler)

        response = await service.security_completion("Analyze this")

        assert response.content == "Looks safe"
        assert response.tokens_used == 77
        assert captured["url"] == "https://api.groq.com/openai/v1/chat/completions"
        assert captured["auth"] == "Bearer gsk_test"
        assert captured["body"]["model"] == "llama3-8b-8192"
        assert captured["body"]["temperature"] == 0.5
        assert captured["body"]["messages"] == [
            {"role": "system", "content": SECURITY_ANALYST_PROMPT},
            {"role": "user", "content": "Analyze this"},
        ]
        await service.close()

    @pytest.mark.asyncio
    async def test_retries_then_raises(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503, text="overloaded")

        service = LLMService(
            LLMConfig(provider=LLMProvider.GROQ, api_key="gsk_test", max_retries=2)
        )
        service._provider = _provider_with(handler)

        with patch("guardian.services.llm.asyncio.sleep"):
            with pytest.raises(LLMRequestError):
                await service.security_completion("x")

        assert calls == 2

    @pytest.mark.asyncio
    async def test_open_circuit_rejects_calls(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="down")

        service = LLMService(LLMConfig(provider=LLMProvider.GROQ, api_key="gsk_test"))
        service._provider = _provider_with(handler)

        # The llm circuit opens after three failures
        for _ in range(3):
            with pytest.raises(LLMRequestError):
                await service.security_completion("x")

        with pytest.raises(CircuitBreakerError):
            await service.security_completion("x")


class TestOpenAICompatibleProvider:

    @pytest.mark.asyncio
    async def test_error_message_includes_body(self):
        provider = _provider_with(lambda request: httpx.Response(401, text="invalid api key"))

        with pytest.raises(LLMRequestError) as exc_info:
            await provider.complete([LLMMessage(role="user", content="hi")])

        assert str(exc_info.value) == "Groq API error: invalid api key"
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_fields_default(self):
        """No content and no usage read as empty text and zero tokens."""
        provider = _provider_with(
            lambda request: httpx.Response(200, json=_completion(content=None, total_tokens=None))
        )

        response = await provider.complete([LLMMessage(role="user", content="hi")])

        assert response.content == ""
        assert response.tokens_used == 0

    @pytest.mark.asyncio
    async def test_empty_choices(self):
        provider = _provider_with(lambda request: httpx.Response(200, json={"choices": []}))

        response = await provider.complete([LLMMessage(role="user", content="hi")])

        assert response.content == ""
        assert response.model == "llama3-8b-8192"


class TestMockProvider:

    @pytest.mark.asyncio
    async def test_fixed_response(self):
        provider = MockLLMProvider(tokens_per_call=5)

        response = await provider.complete([LLMMessage(role="user", content="hi")])

        assert response.content == MockLLMProvider.RESPONSE
        assert response.tokens_used == 5
        assert response.to_dict()["model"] == "mock"
