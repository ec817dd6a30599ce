"""
Tests for guardian.monitoring.logging processors and context helpers.
"""

from __future__ import annotations

from typing import Any

import structlog

from guardian import __version__
from guardian.monitoring.logging import (
    add_service_info,
    add_timestamp,
    bind_context,
    drop_color_codes,
    sanitize_sensitive_data,
    unbind_context,
)


class TestProcessors:

    def test_add_timestamp(self) -> None:
        result = add_timestamp(None, "info", {"event": "x"})  # type: ignore[arg-type]

        assert "T" in result["timestamp"]
        assert result["timestamp"].endswith("+00:00")

    def test_add_service_info(self) -> None:
        result = add_service_info(None, "info", {"event": "x"})  # type: ignore[arg-type]

        assert result["service"] == "guardian-ai"
        assert result["version"] == __version__

    def test_drop_color_codes(self) -> None:
        result = drop_color_codes(
            None, "info", {"event": "\x1b[31mred\x1b[0m", "count": 3}  # type: ignore[arg-type]
        )

        assert result == {"event": "red", "count": 3}


class TestSanitize:

    def test_redacts_credentials(self) -> None:
        event: dict[str, Any] = {
            "event": "llm_request",
            "groq_api_key": "gsk_live",
            "headers": {"Authorization": "Bearer abc"},
            "sentry_dsn": "https://key@sentry.example/1",
        }

        result = sanitize_sensitive_data(None, "info", event)  # type: ignore[arg-type]

        assert result["event"] == "llm_request"
        assert result["groq_api_key"] == "[REDACTED]"
        assert result["headers"]["Authorization"] == "[REDACTED]"
        assert result["sentry_dsn"] == "[REDACTED]"

    def test_token_counts_kept(self) -> None:
        event: dict[str, Any] = {"event": "ai_analysis_complete", "tokens_used": 42}

        result = sanitize_sensitive_data(None, "info", event)  # type: ignore[arg-type]

        assert result["tokens_used"] == 42

    def test_nested_lists(self) -> None:
        event: dict[str, Any] = {"items": [{"password": "p", "name": "n"}]}

        result = sanitize_sensitive_data(None, "info", event)  # type: ignore[arg-type]

        assert result["items"] == [{"password": "[REDACTED]", "name": "n"}]


class TestContext:

    def test_bind_and_unbind(self) -> None:
        bind_context(correlation_id="abc")
        assert structlog.contextvars.get_contextvars()["correlation_id"] == "abc"

        unbind_context("correlation_id")
        assert "correlation_id" not in structlog.contextvars.get_contextvars()
