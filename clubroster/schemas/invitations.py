from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import EmailStr, field_validator
from sqlmodel import SQLModel, Field
from ..models.types import UserRole, InvitationStatus

class InvitationCreate(SQLModel):
    email: EmailStr
    role: UserRole = UserRole.ADMIN
    position: Optional[str] = Field(default=None, max_length=64)

class InvitationBatchCreate(SQLModel):
    invites: List[InvitationCreate] = Field(min_length=1, max_length=50)

class SuperAdminInvitationCreate(SQLModel):
    email: EmailStr

class InvitationResponse(SQLModel):
    id: UUID
    email: str
    role: UserRole
    position: Optional[str] = None
    expires_at: datetime
    club_name: Optional[str] = None
    invite_link: str

class InvitationBatchResponse(SQLModel):
    invitations: List[InvitationResponse]

class InvitationListItem(SQLModel):
    id: UUID
    email: str
    role: UserRole
    position: Optional[str] = None
    status: InvitationStatus
    created_at: datetime
    expires_at: datetime
    used_at: Optional[datetime] = None

class InviteInfoResponse(SQLModel):
    club_name: Optional[str]
    role: UserRole
    role_display_name: str
    position: Optional[str] = None
    email: str
    expires_at: datetime

class InviteRegisterRequest(SQLModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    password: str
    confirm_password: str

    @field_validator("first_name", "last_name")
    def strip_names(cls, v):
        return v.strip()

class InviteAssignRequest(SQLModel):
    email: EmailStr
    password: str

class InviteConsumedResponse(SQLModel):
    message: str
    user_id: UUID
    role: UserRole
    club_id: Optional[int] = None
    club_name: Optional[str] = None
    redirect_path: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    is_new_user: bool = False
    already_member: bool = False

class PruneResponse(SQLModel):
    removed: int
