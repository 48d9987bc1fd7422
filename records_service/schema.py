"""Idempotent startup DDL for the accounts and record tables."""

from __future__ import annotations

import logging

import psycopg
from psycopg_pool import AsyncConnectionPool

from .domain.kinds import CREATED_COLUMN, KINDS, OWNER_COLUMN, RecordKind

logger = logging.getLogger(__name__)

ACCOUNTS_DDL = """
CREATE TABLE IF NOT EXISTS usuarios (
    id SERIAL PRIMARY KEY,
    nome VARCHAR(255),
    usuario VARCHAR(255) UNIQUE NOT NULL,
    senha VARCHAR(255) NOT NULL
)
"""

_OWNER_DDL = "INTEGER REFERENCES usuarios(id) ON DELETE CASCADE"
_CREATED_DDL = "TIMESTAMPTZ NOT NULL DEFAULT NOW()"


def _create_table(kind: RecordKind) -> str:
    columns = [
        "id SERIAL PRIMARY KEY",
        f"{OWNER_COLUMN} {_OWNER_DDL}",
        *(f"{spec.name} {spec.ddl}" for spec in kind.fields),
        f"{CREATED_COLUMN} {_CREATED_DDL}",
    ]
    body = ",\n    ".join(columns)
    return f"CREATE TABLE IF NOT EXISTS {kind.table} (\n    {body}\n)"


def _add_columns(kind: RecordKind) -> list[str]:
    # Tables created by older deployments may predate tenant isolation or newer fields.
    added = [(OWNER_COLUMN, _OWNER_DDL), *((spec.name, spec.ddl) for spec in kind.fields)]
    added.append((CREATED_COLUMN, _CREATED_DDL))
    return [
        f"ALTER TABLE {kind.table} ADD COLUMN IF NOT EXISTS {name} {ddl}"
        for name, ddl in added
    ]


def schema_statements(kinds: tuple[RecordKind, ...] = KINDS) -> list[str]:
    """Return every DDL statement, in execution order. None of them drop data."""
    statements = [
        ACCOUNTS_DDL.strip(),
        f"ALTER TABLE usuarios ADD COLUMN IF NOT EXISTS {CREATED_COLUMN} {_CREATED_DDL}",
    ]
    statements.extend(_create_table(kind) for kind in kinds)
    for kind in kinds:
        statements.extend(_add_columns(kind))
    statements.extend(
        f"CREATE INDEX IF NOT EXISTS idx_{kind.table}_{OWNER_COLUMN} ON {kind.table} ({OWNER_COLUMN})"
        for kind in kinds
    )
    return statements


async def ensure_schema(pool: AsyncConnectionPool, kinds: tuple[RecordKind, ...] = KINDS) -> bool:
    """Converge the database to the current schema.

    Each statement runs in its own transaction block so a failure is logged and skipped
    without aborting the remaining ones. Returns ``True`` when every statement
    succeeded. Never raises for database errors: a deployment whose tables
    already exist keeps serving even if DDL is refused.
    """
    failures = 0
    try:
        async with pool.connection() as conn:
            for statement in schema_statements(kinds):
                try:
                    async with conn.transaction():
                        await conn.execute(statement)
                except psycopg.Error as exc:
                    failures += 1
                    logger.warning("schema statement failed, continuing: %s (%s)", statement.splitlines()[0], exc)
    except psycopg.Error:
        logger.exception("database unavailable while checking schema; continuing startup")
        return False

    if failures:
        logger.warning("schema check finished with %d failed statement(s)", failures)
        return False
    logger.info("database schema verified for %d record kinds", len(kinds))
    return True
