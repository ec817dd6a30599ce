"""
Tests for the AI analysis service.

Tests cover:
- Prompt construction and code truncation
- Unconfigured fallback text
- AiQuery recording and token accounting
- Error text on LLM failure
- Usage limit checks
"""

from unittest.mock import AsyncMock, patch

import pytest

from guardian.models import AiQueryCreate
from guardian.repositories import MemStorage
from guardian.services.analysis import (
    MAX_CODE_CHARS,
    UNAVAILABLE_MESSAGE,
    AnalysisService,
    build_contract_prompt,
    build_event_prompt,
)
from guardian.services.llm import LLMRequestError, LLMResponse, LLMService


@pytest.fixture
async def feed(storage: MemStorage):
    return await storage.get_contract(1)


class TestPrompts:

    @pytest.mark.asyncio
    async def test_contract_prompt(self, feed):
        prompt = build_contract_prompt(feed, "0x6080")

        assert "Contract Name: Guardian Feed" in prompt
        assert f"Contract Address: {feed.address}" in prompt
        assert "Contract Type: FEED" in prompt
        assert "1. Reentrancy vulnerabilities" in prompt
        assert "(truncated)" not in prompt

    @pytest.mark.asyncio
    async def test_long_code_truncated(self, feed):
        code = "0x" + "ab" * MAX_CODE_CHARS
        prompt = build_contract_prompt(feed, code)

        assert code[:MAX_CODE_CHARS] + " ...(truncated)" in prompt
        assert code not in prompt

    @pytest.mark.asyncio
    async def test_event_prompt_renders_json(self, feed):
        prompt = build_event_prompt(feed, "BadgeClaim", {"tokenId": "42"})

        assert "Event: BadgeClaim" in prompt
        assert '"tokenId": "42"' in prompt
        assert prompt.endswith("Provide a concise analysis.")


class TestAnalysisService:

    @pytest.mark.asyncio
    async def test_initialize_with_mock(self, analysis: AnalysisService):
        assert await analysis.initialize() is True

    @pytest.mark.asyncio
    async def test_initialize_unconfigured(self, unconfigured_llm: LLMService, storage):
        service = AnalysisService(unconfigured_llm, storage)
        assert await service.initialize() is False

    @pytest.mark.asyncio
    async def test_unconfigured_returns_fixed_message(
        self, unconfigured_llm: LLMService, storage, feed
    ):
        service = AnalysisService(unconfigured_llm, storage)

        text, tokens = await service.analyze_contract(feed, "0x6080")

        assert (text, tokens) == (UNAVAILABLE_MESSAGE, 0)
        assert await storage.get_ai_queries() == []

    @pytest.mark.asyncio
    async def test_successful_analysis_recorded(self, llm_service: LLMService, storage, feed):
        service = AnalysisService(llm_service, storage)
        reply = LLMResponse(content="No reentrancy found", model="m", tokens_used=250)

        with patch.object(llm_service, "security_completion", AsyncMock(return_value=reply)):
            text, tokens = await service.analyze_contract(feed, "0x6080")

        assert (text, tokens) == ("No reentrancy found", 250)
        queries = await storage.get_ai_queries()
        assert len(queries) == 1
        assert queries[0].contract_id == feed.id
        assert queries[0].response == "No reentrancy found"
        assert queries[0].token_count == 250
        assert "Contract Name: Guardian Feed" in queries[0].query

    @pytest.mark.asyncio
    async def test_failure_returns_error_text(self, llm_service: LLMService, storage, feed):
        service = AnalysisService(llm_service, storage)
        failing = AsyncMock(side_effect=LLMRequestError("Groq API error: rate limited"))

        with patch.object(llm_service, "security_completion", failing):
            text, tokens = await service.analyze_event(feed, "Vote", {})

        assert text == "Error analyzing event: Groq API error: rate limited"
        assert tokens == 0
        assert await storage.get_ai_queries() == []

    @pytest.mark.asyncio
    async def test_query_returns_none_on_error(self, llm_service: LLMService, storage):
        service = AnalysisService(llm_service, storage)

        with patch.object(
            llm_service, "security_completion", AsyncMock(side_effect=RuntimeError("x"))
        ):
            assert await service.query("hi") is None


class TestTokenUsage:

    @pytest.mark.asyncio
    async def test_usage_percentage(self, analysis: AnalysisService, storage):
        await storage.create_ai_query(AiQueryCreate(contract_id=1, query="q", token_count=250))

        usage = await analysis.get_token_usage()

        assert usage.used == 250
        assert usage.limit == 1000
        assert usage.percentage == 25.0

    @pytest.mark.asyncio
    async def test_within_limit(self, analysis: AnalysisService, storage):
        assert await analysis.is_within_usage_limit() is True

        await storage.create_ai_query(AiQueryCreate(contract_id=1, query="q", token_count=1000))

        assert await analysis.is_within_usage_limit() is False

    @pytest.mark.asyncio
    async def test_zero_limit(self, llm_service: LLMService, storage):
        service = AnalysisService(llm_service, storage, token_limit=0)

        usage = await service.get_token_usage()

        assert usage.percentage == 0.0
        assert await service.is_within_usage_limit() is False

    @pytest.mark.asyncio
    async def test_storage_failure_fails_closed(self, analysis: AnalysisService, storage):
        with patch.object(
            storage, "get_total_query_token_count", AsyncMock(side_effect=RuntimeError("db"))
        ):
            assert await analysis.is_within_usage_limit() is False
            usage = await analysis.get_token_usage()

        assert usage.used == 0
