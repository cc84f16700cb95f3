from datetime import datetime
from typing import List, Optional, TYPE_CHECKING
from uuid import UUID
from sqlmodel import SQLModel, Field, Relationship
from .base import TimestampModel, UTCDateTime, utcnow
from .types import ClubStatus

if TYPE_CHECKING:
    from .invitations import Invitation
    from .users import User


class ClubBase(SQLModel):
    club_name: str = Field(index=True)
    club_description: Optional[str] = None


class Club(ClubBase, TimestampModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    status: ClubStatus = Field(default=ClubStatus.ACTIVE)

    leaders: List["ClubLeader"] = Relationship(back_populates="club")
    invitations: List["Invitation"] = Relationship(back_populates="club")

    @property
    def is_active(self) -> bool:
        return self.status == ClubStatus.ACTIVE


class ClubLeader(SQLModel, table=True):
    __tablename__ = "club_leader"

    # (user_id, club_id) is the primary key, so a user leads a club at most once
    user_id: UUID = Field(
        foreign_key="user.id",
        primary_key=True
    )
    club_id: int = Field(
        foreign_key="club.id",
        primary_key=True
    )
    position: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    # Relationships
    club: Club = Relationship(back_populates="leaders")
    user: "User" = Relationship(back_populates="clubs")
