from enum import Enum
from typing import Optional
from uuid import UUID
from sqlmodel import SQLModel


class ActorRole(str, Enum):
    ADMIN = "admin"
    PARTNER = "partner"


class TokenData(SQLModel):
    """Claims issued by the identity provider."""
    sub: str
    role: ActorRole
    name: Optional[str] = None
    title: Optional[str] = None
    partner_id: Optional[UUID] = None


class Actor(SQLModel):
    """
    The resolved identity behind the current request.
    Used as `submitted_by` / `changed_by` / `sender_email` on every write.
    """
    email: str
    name: str
    title: str
    role: ActorRole
    partner_id: Optional[UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN
