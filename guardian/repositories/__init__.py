"""
Guardian AI Storage Layer
"""

from guardian.repositories.base import DuplicateContractError, GuardianStorage, StorageError
from guardian.repositories.memory import MemStorage, default_contracts

__all__ = [
    "GuardianStorage",
    "StorageError",
    "DuplicateContractError",
    "MemStorage",
    "default_contracts",
]
