"""
Guardian AI - LLM Service

Chat-completion client used for smart contract and event analysis.

Supports LLM providers:
- Groq (default, OpenAI-compatible API)
- OpenAI
- Mock (tests and offline demos)

Without an API key the service reports itself as unconfigured and callers
fall back to a fixed "analysis unavailable" message instead of failing.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from guardian.immune.circuit_breaker import GuardianCircuits

if TYPE_CHECKING:
    from guardian.config import Settings

logger = structlog.get_logger(__name__)

SECURITY_ANALYST_PROMPT = (
    "You are an expert blockchain security analyzer specializing in smart "
    "contract vulnerabilities. Provide clear, concise analysis of potential "
    "security issues."
)

DEFAULT_API_BASES = {
    "groq": "https://api.groq.com/openai/v1",
    "openai": "https://api.openai.com/v1",
}


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    GROQ = "groq"
    OPENAI = "openai"
    MOCK = "mock"


@dataclass
class LLMConfig:
    """Configuration for LLM service."""

    provider: LLMProvider = LLMProvider.GROQ
    model: str = "llama3-8b-8192"
    api_key: str | None = None
    api_base: str | None = None
    max_tokens: int | None = None
    temperature: float = 0.5
    timeout_seconds: float = 60.0
    max_retries: int = 1

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMConfig:
        return cls(
            provider=LLMProvider(settings.llm_provider),
            model=settings.ai_model,
            api_key=settings.groq_api_key,
            api_base=settings.llm_api_base,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            timeout_seconds=settings.llm_timeout_seconds,
            max_retries=settings.llm_max_retries,
        )


@dataclass
class LLMMessage:
    """A message in a conversation."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: str
    model: str
    tokens_used: int = 0
    finish_reason: str = "stop"
    latency_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "model": self.model,
            "tokens_used": self.tokens_used,
            "finish_reason": self.finish_reason,
            "latency_ms": self.latency_ms,
        }


class LLMConfigurationError(Exception):
    """Raised when the LLM is used without being configured."""


class LLMRequestError(Exception):
    """Raised when the provider answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class LLMProviderBase(ABC):
    """Base class for LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[LLMMessage],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Generate a completion."""

    async def close(self) -> None:
        """Release provider resources."""


class OpenAICompatibleProvider(LLMProviderBase):
    """
    Provider for any ``/chat/completions`` API (Groq, OpenAI).

    The HTTP client is created lazily and reused across requests.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str,
        label: str = "Groq",
        timeout: float = 60.0,
    ):
        self._api_key = api_key
        self._model = model
        self._api_base = api_base.rstrip("/")
        self._label = label
        self._timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def complete(
        self,
        messages: list[LLMMessage],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        start_time = time.monotonic()

        url = f"{self._api_base}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if temperature is not None:
            payload["temperature"] = temperature

        response = await self._get_client().post(url, headers=headers, json=payload)
        if response.is_error:
            raise LLMRequestError(
                f"{self._label} API error: {response.text}",
                status_code=response.status_code,
            )
        data = response.json()

        choices = data.get("choices") or [{}]
        choice = choices[0]
        content = (choice.get("message") or {}).get("content") or ""

        return LLMResponse(
            content=content,
            model=data.get("model", self._model),
            tokens_used=(data.get("usage") or {}).get("total_tokens") or 0,
            finish_reason=choice.get("finish_reason") or "stop",
            latency_ms=(time.monotonic() - start_time) * 1000,
        )


class MockLLMProvider(LLMProviderBase):
    """
    Offline provider returning a fixed, neutral assessment.

    The text deliberately avoids every vulnerability keyword so that mock
    runs never raise alerts on their own.
    """

    RESPONSE = (
        "[MOCK LLM RESPONSE]\n"
        "No live model is configured, so no assessment was performed.\n"
        "Set LLM_PROVIDER=groq and GROQ_API_KEY to enable real analysis."
    )

    def __init__(self, tokens_per_call: int = 0) -> None:
        self._tokens_per_call = tokens_per_call
        logger.warning(
            "mock_llm_provider_initialized",
            hint="Set GROQ_API_KEY for real analysis",
        )

    async def complete(
        self,
        messages: list[LLMMessage],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        return LLMResponse(
            content=self.RESPONSE,
            model="mock",
            tokens_used=self._tokens_per_call,
        )


class LLMService:
    """
    LLM access for the analysis service.

    Usage:
        service = LLMService(LLMConfig(provider=LLMProvider.GROQ, api_key="gsk_..."))
        if service.is_configured:
            response = await service.complete([LLMMessage("user", "Hello")])
    """

    def __init__(self, config: LLMConfig | None = None):
        self._config = config or LLMConfig()
        self._provider = self._create_provider()

        logger.info(
            "llm_service_initialized",
            provider=self._config.provider.value,
            model=self._config.model,
            configured=self.is_configured,
        )

    @property
    def config(self) -> LLMConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return self._provider is not None

    def _create_provider(self) -> LLMProviderBase | None:
        provider = self._config.provider

        if provider == LLMProvider.MOCK:
            return MockLLMProvider()

        if provider in (LLMProvider.GROQ, LLMProvider.OPENAI):
            if not self._config.api_key:
                logger.warning("llm_api_key_missing", provider=provider.value)
                return None
            return OpenAICompatibleProvider(
                api_key=self._config.api_key,
                model=self._config.model,
                api_base=self._config.api_base or DEFAULT_API_BASES[provider.value],
                label="Groq" if provider == LLMProvider.GROQ else "OpenAI",
                timeout=self._config.timeout_seconds,
            )

        raise LLMConfigurationError(
            f"Unsupported LLM provider: {provider}. Supported providers: groq, openai, mock."
        )

    async def complete(
        self,
        messages: list[LLMMessage],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """
        Generate a completion through the ``llm`` circuit breaker.

        Raises:
            LLMConfigurationError: No provider is configured
            CircuitBreakerError: Too many recent provider failures
            LLMRequestError / httpx.HTTPError: The last attempt failed
        """
        if self._provider is None:
            raise LLMConfigurationError("LLM API key not configured")

        max_tokens = max_tokens or self._config.max_tokens
        temperature = temperature if temperature is not None else self._config.temperature
        breaker = GuardianCircuits.llm()

        for attempt in range(self._config.max_retries):
            try:
                response: LLMResponse = await breaker.call(
                    self._provider.complete,
                    messages,
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
                logger.debug(
                    "llm_completion",
                    model=response.model,
                    tokens_used=response.tokens_used,
                    latency_ms=round(response.latency_ms, 2),
                )
                return response
            except (LLMRequestError, httpx.HTTPError) as e:
                if attempt == self._config.max_retries - 1:
                    raise
                logger.warning("llm_retry", attempt=attempt + 1, error=str(e))
                await asyncio.sleep(2 ** attempt)

        raise LLMConfigurationError("max_retries must be at least 1")

    async def security_completion(self, prompt: str) -> LLMResponse:
        """Ask ``prompt`` under the security-analyst system prompt."""
        return await self.complete([
            LLMMessage(role="system", content=SECURITY_ANALYST_PROMPT),
            LLMMessage(role="user", content=prompt),
        ])

    async def close(self) -> None:
        """Close the provider's HTTP client."""
        if self._provider is not None:
            await self._provider.close()
        logger.info("llm_service_closed")


__all__ = [
    "SECURITY_ANALYST_PROMPT",
    "LLMProvider",
    "LLMConfig",
    "LLMConfigurationError",
    "LLMRequestError",
    "LLMMessage",
    "LLMResponse",
    "LLMService",
    "MockLLMProvider",
    "OpenAICompatibleProvider",
]
