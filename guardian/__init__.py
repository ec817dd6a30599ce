"""
Guardian AI - Smart Contract Security Monitor

Watches a set of smart contracts, records their events, and turns
LLM security analysis into severity-tagged alerts for a polling dashboard.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
