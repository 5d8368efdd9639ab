"""
PostgreSQL token store adapter - Implements TokenStore protocol.

This module provides the PostgreSQL implementation of the domain's
token store port using psycopg3's async connection pool with raw SQL.

Concurrency Design - Conditional Verification:
----------------------------------------------
mark_verified issues a single UPDATE guarded by ``status = 'PENDING'``.
PostgreSQL row locking serializes concurrent updates on the same token,
so exactly one caller sees rowcount == 1. There is no read-then-write
window on the verification path.

Every psycopg error (including pool timeouts) is logged and re-raised as
StoreUnavailable so callers never see driver exceptions.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timezone
from pathlib import Path

import psycopg
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from src.domain.exceptions import StoreUnavailable
from src.domain.ports import VerificationRecord, VerificationStatus

logger = logging.getLogger(__name__)


class PostgresTokenStore:
    """
    Implements TokenStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 AsyncConnectionPool for database connections
        """
        self._pool = pool

    async def put(self, record: VerificationRecord) -> None:
        """
        Insert or fully overwrite the record at record.token.

        Commits before returning. verified_at is stamped with database time
        when the record is written in VERIFIED state.
        """
        sql = """
            INSERT INTO email_verifications (token, email, status, created_at, verified_at)
            VALUES (%s, %s, %s, %s, CASE WHEN %s = 'VERIFIED' THEN NOW() END)
            ON CONFLICT (token) DO UPDATE
            SET email = EXCLUDED.email,
                status = EXCLUDED.status,
                created_at = EXCLUDED.created_at,
                verified_at = EXCLUDED.verified_at
        """
        status = record.status.value

        async with self._connection("put", record.token) as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(
                    sql, (record.token, record.email, status, record.created_at, status)
                )
            await conn.commit()

    async def get(self, token: str) -> VerificationRecord | None:
        """
        Fetch the record for a token.

        Returns:
            VerificationRecord with created_at in UTC, or None if unknown
        """
        sql = """
            SELECT token, email, status, created_at
            FROM email_verifications
            WHERE token = %s
        """

        async with self._connection("get", token) as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(sql, (token,))
                row = await cursor.fetchone()

        if row is None:
            return None

        return VerificationRecord(
            token=row[0],
            email=row[1],
            status=VerificationStatus(row[2]),
            created_at=row[3].astimezone(timezone.utc),
        )

    async def mark_verified(self, token: str) -> bool:
        """
        Set VERIFIED only if the record is currently PENDING.

        Returns:
            True if this call performed the transition
        """
        sql = """
            UPDATE email_verifications
            SET status = %s, verified_at = NOW()
            WHERE token = %s AND status = %s
        """

        async with self._connection("mark_verified", token) as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(
                    sql,
                    (VerificationStatus.VERIFIED.value, token, VerificationStatus.PENDING.value),
                )
                updated = cursor.rowcount == 1
            await conn.commit()

        return updated

    async def ping(self) -> bool:
        """Run SELECT 1 against the database."""
        async with self._connection("ping") as conn:
            await conn.execute("SELECT 1")
        return True

    @asynccontextmanager
    async def _connection(
        self, operation: str, token: str | None = None
    ) -> AsyncIterator[AsyncConnection]:
        """Borrow a pooled connection, translating driver errors to StoreUnavailable."""
        try:
            async with self._pool.connection() as conn:
                yield conn
        except psycopg.Error as exc:
            logger.error("Token store %s failed: %s", operation, exc, exc_info=True)
            raise StoreUnavailable(operation, token) from exc


async def run_migrations(pool: AsyncConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 AsyncConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            async with pool.connection() as conn:
                await conn.execute(sql_content)
                await conn.commit()

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
