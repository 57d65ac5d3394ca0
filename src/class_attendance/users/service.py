from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

import jwt

from ..common.validators import parse_id
from ..core.constants import DEFAULT_JWT_ALGORITHM, DEFAULT_TOKEN_TTL_HOURS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import Identity, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


class IdentityService:
    """Resolve bearer tokens into an Identity.

    Tokens are HS256 JWTs carrying ``id`` and ``role`` claims. Issuing them
    belongs to the login service; ``issue_token`` exists for scripts and tests.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = DEFAULT_JWT_ALGORITHM,
        token_ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS,
    ):
        if not secret_key:
            raise ValueError("JWT secret must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._token_ttl = timedelta(hours=int(token_ttl_hours))

    def issue_token(self, user_id: int, role: Role, *, expires_in: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id": str(int(user_id)),
            "role": Role(role).value,
            "iat": now,
            "exp": now + (expires_in or self._token_ttl),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def resolve(self, token: Optional[str]) -> Identity:
        if not token:
            raise AuthenticationError("No token provided")

        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected token: %s", e)
            raise AuthenticationError("Invalid token")

        user_id = parse_id(claims.get("id"))
        if user_id is None:
            raise AuthenticationError("Invalid token")
        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise AuthenticationError("Invalid token")

        return Identity(user_id=user_id, role=role)

    @staticmethod
    def token_from_header(header: Optional[str]) -> Optional[str]:
        """Accept both ``Bearer <token>`` and a bare token."""

        if not header:
            return None
        parts = header.strip().split(" ", 1)
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1].strip() or None
        return parts[0] or None


class UserService:
    """Use case: read the user directory."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_students(self, *, actor: Identity) -> Sequence[User]:
        if actor.role != Role.FACULTY:
            raise AuthorizationError("Access denied")
        return self._users.list_by_role(Role.STUDENT)
