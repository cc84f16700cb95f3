from typing import List, Optional
from datetime import datetime
from uuid import UUID
from sqlmodel import SQLModel
from ..models.types import UserRole, ClubStatus


class ClubRead(SQLModel):
    id: int
    club_name: str
    club_description: Optional[str] = None
    status: ClubStatus


class UserRead(SQLModel):
    id: UUID
    first_name: str
    last_name: str
    role: UserRole
    avatar_url: Optional[str] = None
    created_at: datetime


class CurrentUserResponse(SQLModel):
    user: UserRead
    email: str
    role: UserRole
    redirect_path: str
    clubs: List[ClubRead]
