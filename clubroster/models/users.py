from typing import Optional, List, TYPE_CHECKING
from uuid import UUID, uuid4
from sqlmodel import SQLModel, Field, Relationship
from .base import TimestampModel
from .types import UserRole

if TYPE_CHECKING:
    from .clubs import ClubLeader


class AuthIdentity(TimestampModel, table=True):
    """
    Account record owned by the auth provider.

    The application profile (`User`) only references it through
    `auth_user_id`, the same way it would reference a hosted provider's
    subject id.
    """
    __tablename__ = "auth_identity"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str = Field(min_length=4)
    is_active: bool = Field(default=True)


class UserBase(SQLModel):
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None


class User(UserBase, TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    auth_user_id: UUID = Field(foreign_key="auth_identity.id", unique=True, index=True)
    role: UserRole = Field(default=UserRole.ADMIN)

    # Relationships
    clubs: List["ClubLeader"] = Relationship(back_populates="user")
