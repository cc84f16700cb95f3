from enum import Enum

class UserRole(str, Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class ClubStatus(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    USED = "used"
    EXPIRED = "expired"
