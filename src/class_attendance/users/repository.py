from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for the user directory.

    Note: the service layer depends on this interface, never on a concrete DB.
    """

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError
