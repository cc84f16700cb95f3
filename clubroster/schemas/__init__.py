from .users import UserRead, ClubRead, CurrentUserResponse
from .auth import TokenResponse, LoginRequest
from .invitations import (
    InvitationCreate, InvitationBatchCreate, SuperAdminInvitationCreate,
    InvitationResponse, InvitationBatchResponse, InvitationListItem,
    InviteInfoResponse, InviteRegisterRequest, InviteAssignRequest,
    InviteConsumedResponse, PruneResponse
)

__all__ = [
    "UserRead", "ClubRead", "CurrentUserResponse",
    "TokenResponse", "LoginRequest",
    "InvitationCreate", "InvitationBatchCreate", "SuperAdminInvitationCreate",
    "InvitationResponse", "InvitationBatchResponse", "InvitationListItem",
    "InviteInfoResponse", "InviteRegisterRequest", "InviteAssignRequest",
    "InviteConsumedResponse", "PruneResponse"
]
