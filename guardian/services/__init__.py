"""
Guardian Services Module

Contains the monitoring pipeline:
- LLMService: Chat-completion client (Groq / OpenAI / mock)
- AnalysisService: Contract and event analysis with token accounting
- BlockchainService: Demo data or live JSON-RPC access
- MonitorService: Scheduled security checks and AI sweeps
- ContractScanner: Demo vulnerability scan reports
"""

from .analysis import AnalysisService
from .blockchain import BlockchainService, BlockchainUnavailableError
from .llm import (
    LLMConfig,
    LLMConfigurationError,
    LLMMessage,
    LLMProvider,
    LLMRequestError,
    LLMResponse,
    LLMService,
)
from .monitor import MonitorService
from .scanner import ContractScanner
from .scheduler import BackgroundScheduler

__all__ = [
    "AnalysisService",
    "BackgroundScheduler",
    "BlockchainService",
    "BlockchainUnavailableError",
    "ContractScanner",
    "LLMConfig",
    "LLMConfigurationError",
    "LLMMessage",
    "LLMProvider",
    "LLMRequestError",
    "LLMResponse",
    "LLMService",
    "MonitorService",
]
