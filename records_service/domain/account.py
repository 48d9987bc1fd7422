from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class Account:
    """Aggregate root for an authenticated tenant."""

    account_id: int
    name: str | None
    login: str
