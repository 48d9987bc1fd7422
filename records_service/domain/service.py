"""Account service orchestrating registration and password login."""

from __future__ import annotations

import logging

import anyio.to_thread

from .account import Account
from .contracts import RegisterInput
from .errors import AccountNotFound, InvalidCredential, ValidationGap
from ..repository import AccountRepository
from ..security.passwords import PasswordHasher

logger = logging.getLogger(__name__)


class AccountService:
    """Credential workflows backed by Postgres storage."""

    def __init__(self, repository: AccountRepository, hasher: PasswordHasher) -> None:
        self._repository = repository
        self._hasher = hasher

    async def register(self, payload: RegisterInput) -> int:
        """Create an account, storing only the bcrypt hash of the password.

        Raises
        ------
        ValidationGap
            When the login or password is empty.
        DuplicateLogin
            When the login is already taken.
        """
        if not payload.login or not payload.password:
            raise ValidationGap("login and password are required")
        password_hash = await anyio.to_thread.run_sync(self._hasher.hash, payload.password)
        account_id = await self._repository.create_account(payload.name, payload.login, password_hash)
        logger.info("account %s registered", account_id)
        return account_id

    async def login(self, login: str, password: str) -> Account:
        """Verify credentials and return the account identity.

        ``AccountNotFound`` and ``InvalidCredential`` both derive from
        ``AuthFailure`` and render identically to the caller.
        """
        record = await self._repository.find_by_login(login)
        if record is None:
            logger.info("login rejected: unknown login")
            raise AccountNotFound()
        valid = await anyio.to_thread.run_sync(self._hasher.verify, password, record.password_hash)
        if not valid:
            logger.info("login rejected for account %s: bad password", record.account_id)
            raise InvalidCredential()
        return record.to_domain()
