"""Database repositories for accounts and tenant-scoped business records."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator

import psycopg
from psycopg import AsyncCursor, sql
from psycopg.rows import dict_row, tuple_row
from psycopg_pool import AsyncConnectionPool

from .domain.account import Account
from .domain.errors import DuplicateLogin, StoreUnavailable
from .domain.kinds import OWNER_COLUMN, RecordKind

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AccountRecord:
    """Row projection of ``usuarios`` including the stored password hash."""

    account_id: int
    name: str | None
    login: str
    password_hash: str

    def to_domain(self) -> Account:
        return Account(account_id=self.account_id, name=self.name, login=self.login)


class AccountRepository:
    """Postgres-backed account persistence."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def create_account(self, name: str | None, login: str, password_hash: str) -> int:
        """Insert an account and return its id; raises ``DuplicateLogin`` if taken."""
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(
                        """
                        INSERT INTO usuarios (nome, usuario, senha)
                        VALUES (%s, %s, %s)
                        ON CONFLICT (usuario) DO NOTHING
                        RETURNING id
                        """,
                        (name, login, password_hash),
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as exc:
            logger.exception("failed to create account for login %s", login)
            raise StoreUnavailable() from exc

        if row is None:
            raise DuplicateLogin()
        return row[0]

    async def find_by_login(self, login: str) -> AccountRecord | None:
        """Return the account stored under ``login`` or ``None``."""
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=tuple_row) as cur:
                    await cur.execute(
                        """
                        SELECT id, nome, usuario, senha
                        FROM usuarios
                        WHERE usuario = %s
                        """,
                        (login,),
                    )
                    row = await cur.fetchone()
        except psycopg.Error as exc:
            logger.exception("failed to look up login %s", login)
            raise StoreUnavailable() from exc

        if not row:
            return None
        return AccountRecord(*row)


class RecordRepository:
    """CRUD for one record kind, always filtered by the owning account.

    Update and delete match on both the record id and the owner column, so a
    request against another tenant's row affects zero rows exactly like a
    request against an id that never existed.
    """

    def __init__(self, pool: AsyncConnectionPool, kind: RecordKind) -> None:
        self._pool = pool
        self.kind = kind
        self._table = sql.Identifier(kind.table)
        self._owner = sql.Identifier(OWNER_COLUMN)
        self._columns = [sql.Identifier(name) for name in kind.columns]

    def _values(self, fields: dict[str, Any]) -> list[Any]:
        return [fields.get(name) for name in self.kind.columns]

    async def list(self, account_id: int | None) -> list[dict[str, Any]]:
        """Return the owner's rows, newest first."""
        query = sql.SQL("SELECT * FROM {table} WHERE {owner} = %s ORDER BY id DESC").format(
            table=self._table, owner=self._owner
        )
        async with self._cursor("list") as cur:
            await cur.execute(query, (account_id,))
            return await cur.fetchall()

    async def create(self, account_id: int, fields: dict[str, Any]) -> int:
        """Insert a row stamped with ``account_id`` and return its id."""
        columns = [self._owner, *self._columns]
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING id").format(
            table=self._table,
            columns=sql.SQL(", ").join(columns),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        async with self._cursor("create", commit=True) as cur:
            await cur.execute(query, [account_id, *self._values(fields)])
            row = await cur.fetchone()
        return row["id"]

    async def update(self, account_id: int | None, record_id: int, fields: dict[str, Any]) -> int:
        """Overwrite every field of one owned row; returns the affected count."""
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(column) for column in self._columns
        )
        query = sql.SQL("UPDATE {table} SET {assignments} WHERE id = %s AND {owner} = %s").format(
            table=self._table, assignments=assignments, owner=self._owner
        )
        async with self._cursor("update", commit=True) as cur:
            await cur.execute(query, [*self._values(fields), record_id, account_id])
            return cur.rowcount

    async def delete(self, account_id: int | None, record_id: int) -> int:
        """Delete one owned row; returns the affected count."""
        query = sql.SQL("DELETE FROM {table} WHERE id = %s AND {owner} = %s").format(
            table=self._table, owner=self._owner
        )
        async with self._cursor("delete", commit=True) as cur:
            await cur.execute(query, (record_id, account_id))
            return cur.rowcount

    @asynccontextmanager
    async def _cursor(self, operation: str, commit: bool = False) -> AsyncIterator[AsyncCursor]:
        """Borrow a pooled connection, yield a dict cursor and map driver errors."""
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    yield cur
                if commit:
                    await conn.commit()
        except psycopg.Error as exc:
            logger.exception("%s %s failed", self.kind.table, operation)
            raise StoreUnavailable() from exc