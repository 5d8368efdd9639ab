"""Repository adapters - Token store implementations."""

from .memory import InMemoryTokenStore
from .postgres import PostgresTokenStore, run_migrations

__all__ = ["InMemoryTokenStore", "PostgresTokenStore", "run_migrations"]
