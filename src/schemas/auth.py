from __future__ import annotations

from typing import Optional

from src.shared.base import BaseSchema

ROLE_AGENT = "agent"
ROLE_ADMIN = "admin"


class CurrentUser(BaseSchema):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = ROLE_AGENT

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
