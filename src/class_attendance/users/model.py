from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Directory entry for a user.

    Accounts are created by the authentication service; this side only reads them.
    """

    user_id: int
    full_name: str
    email: str
    role: Role


@dataclass(frozen=True)
class Identity:
    """Who is calling: resolved from the bearer token on every request."""

    user_id: int
    role: Role
