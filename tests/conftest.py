"""
Guardian AI Test Configuration

Shared pytest fixtures for all test modules.
"""

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Set test environment before any guardian import reads settings
_current_env = os.environ.get("APP_ENV", "")
if _current_env == "production":
    raise RuntimeError("Test fixtures cannot be loaded in production environment.")

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "mock")
os.environ.setdefault("DEMO_MODE", "true")
os.environ.setdefault("MONITOR_AUTOSTART", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from guardian.config import Settings  # noqa: E402
from guardian.immune import circuit_breaker  # noqa: E402
from guardian.repositories import MemStorage  # noqa: E402
from guardian.services import (  # noqa: E402
    AnalysisService,
    BlockchainService,
    LLMConfig,
    LLMProvider,
    LLMService,
    MonitorService,
)


@pytest.fixture(autouse=True)
def reset_circuit_registry() -> Generator[None, None, None]:
    """Give every test fresh circuit breakers."""
    circuit_breaker._global_registry = None
    yield
    circuit_breaker._global_registry = None


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        app_env="testing",
        llm_provider="mock",
        demo_mode=True,
        monitor_autostart=False,
        daily_token_limit=1000,
    )


@pytest.fixture
def storage(settings: Settings) -> MemStorage:
    """Store seeded with the three Guardian contracts."""
    return MemStorage(settings)


@pytest.fixture
def empty_storage() -> MemStorage:
    return MemStorage(seed=False)


@pytest.fixture
def llm_service() -> LLMService:
    return LLMService(LLMConfig(provider=LLMProvider.MOCK))


@pytest.fixture
def unconfigured_llm() -> LLMService:
    """Groq selected but no API key."""
    return LLMService(LLMConfig(provider=LLMProvider.GROQ, api_key=None))


@pytest.fixture
def analysis(llm_service: LLMService, storage: MemStorage) -> AnalysisService:
    return AnalysisService(llm_service, storage, token_limit=1000)


@pytest.fixture
def blockchain(storage: MemStorage) -> BlockchainService:
    return BlockchainService(storage, demo_mode=True)


@pytest.fixture
def monitor(
    storage: MemStorage,
    blockchain: BlockchainService,
    analysis: AnalysisService,
) -> MonitorService:
    """Monitor with intervals long enough that loops never tick during a test."""
    return MonitorService(
        storage,
        blockchain,
        analysis,
        security_check_interval_seconds=3600,
        ai_analysis_interval_seconds=3600,
    )


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Create a test FastAPI application.

    The container is built from test settings: demo chain data, the mock
    LLM, and no monitor autostart.
    """
    from guardian.api.app import GuardianApp, create_app

    guardian = GuardianApp(settings=settings)

    @asynccontextmanager
    async def _test_lifespan(application: FastAPI):
        await guardian.initialize()
        yield
        await guardian.shutdown()

    application = create_app(title="Guardian Test", version="test", docs_url=None)
    application.state.guardian = guardian
    application.router.lifespan_context = _test_lifespan
    return application


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a synchronous test client (runs the test lifespan)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def guardian(app: FastAPI, client: TestClient):
    """The initialized GuardianApp behind ``client``."""
    return app.state.guardian
