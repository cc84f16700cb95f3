from datetime import datetime
from typing import Optional, TYPE_CHECKING
from uuid import UUID, uuid4
from sqlmodel import Field, Relationship
from .base import TimestampModel, UTCDateTime
from .types import UserRole, InvitationStatus

if TYPE_CHECKING:
    from .clubs import Club


class Invitation(TimestampModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    token: str = Field(unique=True, index=True)
    email: str = Field(index=True)
    club_id: Optional[int] = Field(default=None, foreign_key="club.id")
    role: UserRole
    position: Optional[str] = None
    invited_by_id: Optional[UUID] = Field(default=None, foreign_key="user.id")
    expires_at: datetime = Field(sa_type=UTCDateTime)
    used_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    used_by_id: Optional[UUID] = Field(default=None, foreign_key="user.id")

    # Owning club; None for super admin invitations
    club: Optional["Club"] = Relationship(back_populates="invitations")

    @property
    def is_consumed(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def status_at(self, now: datetime) -> InvitationStatus:
        if self.is_consumed:
            return InvitationStatus.USED
        if self.is_expired(now):
            return InvitationStatus.EXPIRED
        return InvitationStatus.PENDING
