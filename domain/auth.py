"""Domain Entities - Administrator accounts"""
from enum import Enum
from pydantic import BaseModel, Field
from uuid import UUID, uuid4
from typing import Optional


class AdminRole(str, Enum):
    OWNER = "owner"
    MANAGER = "manager"


class User(BaseModel):
    """Administrator acting on bookings"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: AdminRole = AdminRole.MANAGER
    disabled: bool = False

    class Config:
        from_attributes = True

    @property
    def actor_id(self) -> str:
        """Identity recorded in audit entries and booking stamps"""
        return self.username


class UserInDB(User):
    """User with hashed password for storage"""
    hashed_password: str
