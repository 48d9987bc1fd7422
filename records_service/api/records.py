"""CRUD routes for every tenant-scoped record kind.

One router is generated per kind from its field schema. The caller's tenant
comes from the ``account-id`` header and is trusted as-is: nothing binds it to
a login, so any client can assert any account id.
"""

# eager annotations: routes are typed with generated payload models
import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Request, status

from ..domain.errors import StoreUnavailable, ValidationGap
from ..domain.kinds import KINDS, RecordKind
from ..metrics import RECORD_OPERATIONS
from ..repository import RecordRepository

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def parse_account_id(raw: str | None) -> int | None:
    """Return the header value as an int, or ``None`` for a missing or garbled tenant."""
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def tenant(account_id: str | None = Header(default=None, alias="account-id")) -> int | None:
    return parse_account_id(account_id)


def repository_for(kind: RecordKind):
    def get_repository(request: Request) -> RecordRepository:
        return request.app.state.record_repositories[kind.name]

    return get_repository


def build_record_router(kind: RecordKind, path: str, include_in_schema: bool = True) -> APIRouter:
    """Return the list/create/update/delete routes for ``kind`` mounted at ``path``."""
    router = APIRouter(prefix=f"{API_PREFIX}/{path}", tags=[kind.name])
    get_repository = repository_for(kind)
    payload_model = kind.model

    def count(operation: str, outcome: str) -> None:
        RECORD_OPERATIONS.labels(kind=kind.name, operation=operation, outcome=outcome).inc()

    @router.get("", include_in_schema=include_in_schema)
    async def list_records(
        account_id: int | None = Depends(tenant),
        repository: RecordRepository = Depends(get_repository),
    ) -> list[dict[str, Any]]:
        try:
            rows = await repository.list(account_id)
        except StoreUnavailable:
            count("list", "error")
            raise
        count("list", "ok")
        return rows

    @router.post("", status_code=status.HTTP_201_CREATED, include_in_schema=include_in_schema)
    async def create_record(
        payload: payload_model,
        account_id: int | None = Depends(tenant),
        repository: RecordRepository = Depends(get_repository),
    ) -> dict[str, Any]:
        if account_id is None:
            count("create", "rejected")
            raise ValidationGap("account-id header is required")
        try:
            record_id = await repository.create(account_id, kind.normalize(payload))
        except StoreUnavailable:
            count("create", "error")
            raise
        count("create", "ok")
        logger.info("%s %s created for account %s", kind.name, record_id, account_id)
        return {"message": f"{kind.label} saved", "id": record_id}

    @router.put("/{record_id}", include_in_schema=include_in_schema)
    async def update_record(
        record_id: int,
        payload: payload_model,
        account_id: int | None = Depends(tenant),
        repository: RecordRepository = Depends(get_repository),
    ) -> dict[str, Any]:
        try:
            affected = await repository.update(account_id, record_id, kind.normalize(payload))
        except StoreUnavailable:
            count("update", "error")
            raise
        count("update", "ok" if affected else "no_match")
        return {"message": f"{kind.label} updated", "affected": affected}

    @router.delete("/{record_id}", include_in_schema=include_in_schema)
    async def delete_record(
        record_id: int,
        account_id: int | None = Depends(tenant),
        repository: RecordRepository = Depends(get_repository),
    ) -> dict[str, Any]:
        try:
            affected = await repository.delete(account_id, record_id)
        except StoreUnavailable:
            count("delete", "error")
            raise
        count("delete", "ok" if affected else "no_match")
        return {"message": f"{kind.label} deleted", "affected": affected}

    return router


def build_records_router(kinds: tuple[RecordKind, ...] = KINDS) -> APIRouter:
    """Mount every kind under its primary path, plus hidden legacy aliases."""
    router = APIRouter()
    for kind in kinds:
        primary, *aliases = kind.paths
        router.include_router(build_record_router(kind, primary))
        for alias in aliases:
            router.include_router(build_record_router(kind, alias, include_in_schema=False))
    return router


router = build_records_router()
