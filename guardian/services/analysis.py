"""
AI Analysis Service

Builds security-analysis prompts for contracts and events, sends them to
the LLM, and records every successful exchange as an AiQuery so token usage
can be tracked against the configured limit.

Analysis methods never raise: failures come back as an explanatory string
with a token count of zero, which the monitor treats like any other text.
"""

from __future__ import annotations

import json
from typing import Any

import structlog

from guardian.models import AiQueryCreate, Contract, TokenUsage
from guardian.repositories import GuardianStorage
from guardian.services.llm import LLMService

logger = structlog.get_logger(__name__)

MAX_CODE_CHARS = 8000
UNAVAILABLE_MESSAGE = "AI analysis unavailable: API key not configured"
HEALTH_PROBE_PROMPT = "Hello, are you working?"


def build_contract_prompt(contract: Contract, code: str) -> str:
    truncated = " ...(truncated)" if len(code) > MAX_CODE_CHARS else ""
    return (
        "Analyze the following smart contract for security vulnerabilities:\n"
        "\n"
        f"Contract Name: {contract.name}\n"
        f"Contract Address: {contract.address}\n"
        f"Contract Type: {contract.type.value}\n"
        "\n"
        "Contract Code:\n"
        f"{code[:MAX_CODE_CHARS]}{truncated}\n"
        "\n"
        "Specifically look for:\n"
        "1. Reentrancy vulnerabilities\n"
        "2. Access control issues\n"
        "3. Integer overflow/underflow\n"
        "4. Logic errors\n"
        "5. Gas optimization issues\n"
        "6. Front-running vulnerabilities\n"
        "\n"
        "Provide a detailed analysis with security rating and recommendations."
    )


def build_event_prompt(contract: Contract, event_name: str, event_data: Any) -> str:
    return (
        "Analyze the following blockchain event:\n"
        "\n"
        f"Contract: {contract.name} ({contract.address})\n"
        f"Event: {event_name}\n"
        f"Event Data: {json.dumps(event_data, indent=2, default=str)}\n"
        "\n"
        "Is this event suspicious or unusual in any way?\n"
        "Does it indicate a potential security issue?\n"
        "What actions might be recommended based on this event?\n"
        "\n"
        "Provide a concise analysis."
    )


class AnalysisService:
    """LLM-backed contract and event analysis with usage accounting."""

    def __init__(
        self,
        llm: LLMService,
        storage: GuardianStorage,
        token_limit: int = 100_000,
    ):
        self._llm = llm
        self._storage = storage
        self._token_limit = token_limit

    @property
    def is_configured(self) -> bool:
        return self._llm.is_configured

    @property
    def token_limit(self) -> int:
        return self._token_limit

    async def initialize(self) -> bool:
        """Probe the LLM once. Returns False when unconfigured or unreachable."""
        if not self._llm.is_configured:
            logger.warning("ai_service_not_configured")
            return False

        answer = await self.query(HEALTH_PROBE_PROMPT)
        if answer:
            logger.info("ai_service_initialized")
            return True
        logger.warning("ai_service_probe_failed")
        return False

    async def query(self, prompt: str) -> str | None:
        """Free-form prompt. Returns None on any failure."""
        if not self._llm.is_configured:
            return None
        try:
            response = await self._llm.security_completion(prompt)
        except Exception as e:  # Callers only need to know there is no answer
            logger.error("ai_query_failed", error=str(e))
            return None
        return response.content

    async def _analyze(
        self, contract: Contract, prompt: str, error_prefix: str
    ) -> tuple[str, int]:
        if not self._llm.is_configured:
            return UNAVAILABLE_MESSAGE, 0

        try:
            response = await self._llm.security_completion(prompt)
            await self._storage.create_ai_query(
                AiQueryCreate(
                    contract_id=contract.id,
                    query=prompt,
                    response=response.content,
                    token_count=response.tokens_used,
                )
            )
        except Exception as e:  # Reported back as analysis text
            logger.error(
                "ai_analysis_failed",
                contract=contract.name,
                error=str(e),
            )
            return f"{error_prefix}: {e}", 0

        logger.info(
            "ai_analysis_complete",
            contract=contract.name,
            tokens_used=response.tokens_used,
        )
        return response.content, response.tokens_used

    async def analyze_contract(self, contract: Contract, code: str) -> tuple[str, int]:
        """Security review of contract bytecode or source. Returns (analysis, tokens)."""
        return await self._analyze(
            contract,
            build_contract_prompt(contract, code),
            "Error analyzing contract",
        )

    async def analyze_event(
        self, contract: Contract, event_name: str, event_data: Any
    ) -> tuple[str, int]:
        """Assess whether a single event looks suspicious. Returns (analysis, tokens)."""
        return await self._analyze(
            contract,
            build_event_prompt(contract, event_name, event_data),
            "Error analyzing event",
        )

    async def is_within_usage_limit(self) -> bool:
        try:
            used = await self._storage.get_total_query_token_count()
        except Exception as e:  # Fail closed: no spend when usage is unknown
            logger.error("token_usage_check_failed", error=str(e))
            return False
        return used < self._token_limit

    async def get_token_usage(self) -> TokenUsage:
        try:
            used = await self._storage.get_total_query_token_count()
        except Exception as e:  # Dashboard shows zero rather than an error
            logger.error("token_usage_lookup_failed", error=str(e))
            return TokenUsage(used=0, limit=self._token_limit, percentage=0.0)

        percentage = (used / self._token_limit) * 100 if self._token_limit else 0.0
        return TokenUsage(used=used, limit=self._token_limit, percentage=percentage)
