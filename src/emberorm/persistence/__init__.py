"""
Persistence layer components: repository, identity map, transactions.
"""

from .identity_map import IdentityMap
from .repository import Repository, RepositoryError
from .transaction import TransactionError, TransactionManager

__all__ = ["IdentityMap", "Repository", "RepositoryError", "TransactionError", "TransactionManager"]
