from dataclasses import dataclass
from typing import Iterable
import uuid

from app.domain.enums import UserRole
from app.domain.errors import Forbidden


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller; the role is trusted as verified upstream."""
    id: uuid.UUID
    role: UserRole

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER


def require_role(user: CurrentUser, allowed: Iterable[UserRole], action: str) -> None:
    allowed = frozenset(allowed)
    if user.role not in allowed:
        raise Forbidden(
            action=action,
            user_id=user.id,
            role=user.role,
            allowed_roles=sorted(role.value for role in allowed),
        )
