from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Thực thể miền (domain): User.

    Only the fields the workflow needs: role and team drive approval scope,
    ``is_active`` gates OT approval.
    """

    user_id: int
    full_name: str
    username: str
    role: Role
    team_id: Optional[int] = None
    is_active: bool = True

    @property
    def is_approver(self) -> bool:
        return self.role in (Role.MANAGER, Role.ADMIN)

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "name": self.full_name,
            "username": self.username,
            "role": self.role.value,
            "teamId": self.team_id,
            "isActive": self.is_active,
        }
