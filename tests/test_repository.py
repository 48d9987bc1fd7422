from __future__ import annotations

import asyncio

import psycopg
import pytest

from records_service.domain.errors import DuplicateLogin, StoreUnavailable
from records_service.domain.kinds import CUSTOMER, PRODUCT
from records_service.repository import AccountRecord, AccountRepository, RecordRepository


def test_list_filters_by_owner(fake_pool):
    fake_pool.conn.rows = [{"id": 2, "usuario_id": 7}, {"id": 1, "usuario_id": 7}]
    repository = RecordRepository(fake_pool, CUSTOMER)

    rows = asyncio.run(repository.list(7))

    assert [row["id"] for row in rows] == [2, 1]
    (_, params), = fake_pool.conn.executed
    assert params == (7,)


def test_create_stamps_owner_before_kind_columns(fake_pool):
    fake_pool.conn.rows = [{"id": 11}]
    repository = RecordRepository(fake_pool, PRODUCT)
    fields = PRODUCT.normalize({"nome": "Widget"})

    record_id = asyncio.run(repository.create(3, fields))

    assert record_id == 11
    (_, params), = fake_pool.conn.executed
    assert params[0] == 3
    assert params[1:] == [fields[name] for name in PRODUCT.columns]
    assert fake_pool.conn.commits == 1


def test_update_filters_by_id_and_owner(fake_pool):
    fake_pool.conn.rowcount = 0
    repository = RecordRepository(fake_pool, CUSTOMER)

    affected = asyncio.run(repository.update(5, 42, CUSTOMER.normalize({"nome": "Bob"})))

    assert affected == 0
    (_, params), = fake_pool.conn.executed
    assert params[-2:] == [42, 5]


def test_delete_filters_by_id_and_owner(fake_pool):
    fake_pool.conn.rowcount = 1
    repository = RecordRepository(fake_pool, CUSTOMER)

    affected = asyncio.run(repository.delete(5, 42))

    assert affected == 1
    (_, params), = fake_pool.conn.executed
    assert params == (42, 5)


def test_driver_errors_become_store_unavailable(fake_pool):
    fake_pool.conn.error = psycopg.OperationalError("server closed the connection")
    repository = RecordRepository(fake_pool, CUSTOMER)

    with pytest.raises(StoreUnavailable):
        asyncio.run(repository.list(1))


def test_pool_timeout_becomes_store_unavailable(fake_pool):
    fake_pool.unavailable = psycopg.OperationalError("couldn't get a connection")
    repository = RecordRepository(fake_pool, CUSTOMER)

    with pytest.raises(StoreUnavailable):
        asyncio.run(repository.delete(1, 1))


def test_create_account_conflict_is_duplicate_login(fake_pool):
    fake_pool.conn.rows = []
    repository = AccountRepository(fake_pool)

    with pytest.raises(DuplicateLogin):
        asyncio.run(repository.create_account("n", "x", "$2b$10$hash"))


def test_create_account_returns_new_id(fake_pool):
    fake_pool.conn.rows = [(9,)]
    repository = AccountRepository(fake_pool)

    assert asyncio.run(repository.create_account("n", "x", "$2b$10$hash")) == 9
    (_, params), = fake_pool.conn.executed
    assert params == ("n", "x", "$2b$10$hash")


def test_find_by_login_maps_row(fake_pool):
    fake_pool.conn.rows = [(4, "Alice", "alice", "$2b$10$hash")]
    repository = AccountRepository(fake_pool)

    record = asyncio.run(repository.find_by_login("alice"))

    assert record == AccountRecord(4, "Alice", "alice", "$2b$10$hash")
    assert record.to_domain().account_id == 4
