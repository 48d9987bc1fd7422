from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from records_service.api import routes
from records_service.api.errors import register_error_handlers
from records_service.api.records import router as records_router
from records_service.domain.errors import DuplicateLogin, StoreUnavailable
from records_service.domain.kinds import KINDS, RecordKind
from records_service.domain.service import AccountService
from records_service.repository import AccountRecord
from records_service.security.passwords import PasswordHasher
from records_service.security.rate_limiter import SlidingWindowRateLimiter


class FakeAccountRepository:
    """In-memory account store with the same unique-login rule as ``usuarios``."""

    def __init__(self) -> None:
        self.accounts: dict[str, AccountRecord] = {}
        self.fail = False

    async def create_account(self, name: str | None, login: str, password_hash: str) -> int:
        if self.fail:
            raise StoreUnavailable()
        if login in self.accounts:
            raise DuplicateLogin()
        account_id = len(self.accounts) + 1
        self.accounts[login] = AccountRecord(account_id, name, login, password_hash)
        return account_id

    async def find_by_login(self, login: str) -> AccountRecord | None:
        if self.fail:
            raise StoreUnavailable()
        return self.accounts.get(login)


class FakeRecordRepository:
    """In-memory record table filtered by owner exactly like the SQL statements."""

    def __init__(self, kind: RecordKind) -> None:
        self.kind = kind
        self.rows: list[dict[str, Any]] = []
        self.fail = False
        self._seq = 0

    def _check(self) -> None:
        if self.fail:
            raise StoreUnavailable()

    def _owned(self, account_id: int | None, record_id: int) -> dict[str, Any] | None:
        # "usuario_id = NULL" never matches in SQL
        for row in self.rows:
            if account_id is not None and row["id"] == record_id and row["usuario_id"] == account_id:
                return row
        return None

    async def list(self, account_id: int | None) -> list[dict[str, Any]]:
        self._check()
        owned = [dict(row) for row in self.rows if account_id is not None and row["usuario_id"] == account_id]
        return sorted(owned, key=lambda row: row["id"], reverse=True)

    async def create(self, account_id: int, fields: dict[str, Any]) -> int:
        self._check()
        self._seq += 1
        row = {"id": self._seq, "usuario_id": account_id}
        row.update({name: fields.get(name) for name in self.kind.columns})
        self.rows.append(row)
        return self._seq

    async def update(self, account_id: int | None, record_id: int, fields: dict[str, Any]) -> int:
        self._check()
        row = self._owned(account_id, record_id)
        if row is None:
            return 0
        row.update({name: fields.get(name) for name in self.kind.columns})
        return 1

    async def delete(self, account_id: int | None, record_id: int) -> int:
        self._check()
        row = self._owned(account_id, record_id)
        if row is None:
            return 0
        self.rows.remove(row)
        return 1


class FakeConnection:
    """Async connection double recording every statement and its parameters."""

    def __init__(self) -> None:
        self.executed: list[tuple[Any, Any]] = []
        self.rows: list[Any] = []
        self.rowcount = 0
        self.error: Exception | None = None
        self.failing_statements: set[str] = set()
        self.statement_error: Exception | None = None
        self.commits = 0

    def cursor(self, row_factory=None) -> "FakeCursor":
        return FakeCursor(self)

    async def execute(self, statement: Any, params: Any = None) -> None:
        if statement in self.failing_statements:
            raise self.statement_error
        self.executed.append((statement, params))

    async def commit(self) -> None:
        self.commits += 1

    @asynccontextmanager
    async def transaction(self):
        yield self


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn
        self.rowcount = conn.rowcount

    async def __aenter__(self) -> "FakeCursor":
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False

    async def execute(self, query: Any, params: Any = None) -> None:
        if self._conn.error is not None:
            raise self._conn.error
        self._conn.executed.append((query, params))

    async def fetchone(self) -> Any:
        return self._conn.rows[0] if self._conn.rows else None

    async def fetchall(self) -> list[Any]:
        return list(self._conn.rows)


class FakePool:
    def __init__(self) -> None:
        self.conn = FakeConnection()
        self.unavailable: Exception | None = None

    @asynccontextmanager
    async def connection(self):
        if self.unavailable is not None:
            raise self.unavailable
        yield self.conn


@pytest.fixture
def fake_pool() -> FakePool:
    return FakePool()


@pytest.fixture
def api_client():
    """Provide a FastAPI test client wired to in-memory repositories."""
    account_repository = FakeAccountRepository()
    service = AccountService(account_repository, PasswordHasher(10))
    record_repositories = {kind.name: FakeRecordRepository(kind) for kind in KINDS}

    app = FastAPI()
    register_error_handlers(app)
    app.include_router(routes.router)
    app.include_router(records_router)
    app.state.account_service = service
    app.state.record_repositories = record_repositories
    app.state.rate_limiter = SlidingWindowRateLimiter(max_requests=100, window_seconds=60)

    with TestClient(app) as client:
        yield client, account_repository, record_repositories


@pytest.fixture
def register_and_login(api_client):
    """Register ``login`` and return the account id the login endpoint hands back."""
    client, _, _ = api_client

    def _register_and_login(login: str, password: str = "pw123", name: str | None = None) -> int:
        created = client.post("/register", json={"name": name or login, "login": login, "password": password})
        assert created.status_code == 201
        response = client.post("/login", json={"login": login, "password": password})
        assert response.status_code == 200
        return response.json()["accountId"]

    return _register_and_login
