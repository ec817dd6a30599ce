"""
Guardian AI - Monitoring Module

Structured logging and request context helpers.
"""

from .logging import bind_context, configure_logging, unbind_context

__all__ = [
    "configure_logging",
    "bind_context",
    "unbind_context",
]
