"""Storage collaborators: repository interface plus in-memory and PostgreSQL backends."""

from .memory_repository import InMemoryRepository
from .pg_repository import PostgresRepository
from .repository import ImportRepository, RepositoryError

__all__ = [
    "ImportRepository",
    "RepositoryError",
    "InMemoryRepository",
    "PostgresRepository",
]
