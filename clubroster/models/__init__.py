
from .base import TimestampModel
from .types import UserRole, ClubStatus, InvitationStatus
from .clubs import Club, ClubLeader
from .users import AuthIdentity, User
from .invitations import Invitation

__all__ = [
    "TimestampModel",
    "UserRole",
    "ClubStatus",
    "InvitationStatus",
    "Club",
    "ClubLeader",
    "AuthIdentity",
    "User",
    "Invitation",
]
