"""HTTP routes for account registration and login."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..domain.contracts import RegisterInput
from ..domain.service import AccountService
from ..security.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["accounts"])


class RegisterRequest(BaseModel):
    """Payload accepted when creating an account; legacy Portuguese keys also work."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "nome"))
    login: str = Field(..., min_length=1, validation_alias=AliasChoices("login", "usuario"))
    password: str = Field(..., min_length=1, validation_alias=AliasChoices("password", "senha"))


class LoginRequest(BaseModel):
    """Credentials submitted to ``/login``."""

    login: str = Field(..., validation_alias=AliasChoices("login", "usuario"))
    password: str = Field(..., validation_alias=AliasChoices("password", "senha"))


class MessageResponse(BaseModel):
    message: str


class LoginResponse(BaseModel):
    """Identity the client must echo back in the ``account-id`` header."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: int = Field(..., alias="accountId")
    name: str | None
    message: str


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_rate_limiter(request: Request) -> RateLimiter:
    """Resolve the limiter built during application startup."""
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "/cadastrar",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def register(
    request: Request,
    payload: RegisterRequest,
    service: AccountService = Depends(get_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> MessageResponse:
    """Create an account; a taken login answers 400."""
    await rate_limiter.guard(f"register:{_client_host(request)}")
    await service.register(
        RegisterInput(name=payload.name, login=payload.login, password=payload.password)
    )
    return MessageResponse(message="account created")


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_service),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> LoginResponse:
    """Check credentials and return the account id used as the tenant header."""
    await rate_limiter.guard(f"login:{payload.login}")
    account = await service.login(payload.login, payload.password)
    return LoginResponse(account_id=account.account_id, name=account.name, message="login successful")
