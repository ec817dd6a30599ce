"""
Guardian AI - Resilience

Circuit breakers around the LLM API and blockchain RPC.
"""

from guardian.immune.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitBreakerRegistry,
    CircuitState,
    GuardianCircuits,
    get_circuit_registry,
)

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitBreakerRegistry",
    "CircuitState",
    "GuardianCircuits",
    "get_circuit_registry",
]
