"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class RegisterInput:
    """Validated inputs required to create an account."""

    name: str | None
    login: str
    password: str

